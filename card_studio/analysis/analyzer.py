# analyze-card-image: wraps the provider chain and shapes the response the
# card creator expects (including the sports-card style compatibility keys).
from datetime import datetime
from typing import Any, Dict

from card_studio.analysis.multimodal import run_multimodal_analysis
from studio_logs.loggers import analysis_logger


def format_analysis_response(result: Dict[str, Any]) -> Dict[str, Any]:
    detected = result["detected_objects"]
    star_wars = result.get("category") == "star_wars"
    return {
        "extractedText": detected,
        "subjects": detected,
        "playerName": result["title"],
        "team": "Galactic Empire" if star_wars else "Legendary Collection",
        "year": str(datetime.now().year),
        "sport": "Star Wars" if star_wars else "Fantasy",
        "cardNumber": "",
        "confidence": result["confidence"],
        "analysisType": "visual",
        "analysisMethod": result["analysis_method"],
        "visualAnalysis": {
            "subjects": detected,
            "colors": ["Mixed"],
            "mood": "Epic" if star_wars else "Mysterious",
            "style": "Cinematic",
            "theme": result.get("category") or "Adventure",
            "setting": "Galaxy Far Far Away" if star_wars else "Fantasy Realm",
        },
        "creativeTitle": result["title"],
        "creativeDescription": result["description"],
        "rarity": result["rarity"],
        "tags": result.get("tags", []),
    }


def error_fallback_response() -> Dict[str, Any]:
    """The 'Mysterious Entity' concept returned when analysis blows up."""
    return {
        "extractedText": ["unknown"],
        "subjects": ["unknown"],
        "playerName": "Mysterious Entity",
        "team": "Unknown Realm",
        "year": str(datetime.now().year),
        "sport": "Fantasy",
        "cardNumber": "",
        "confidence": 0.3,
        "analysisType": "fallback",
        "analysisMethod": "error_fallback",
        "visualAnalysis": {
            "subjects": ["Unknown"],
            "colors": ["Unknown"],
            "mood": "Mysterious",
            "style": "Enigmatic",
            "theme": "Mystery",
            "setting": "Unknown Realm",
        },
        "creativeTitle": "Mysterious Entity",
        "creativeDescription": "An enigmatic presence with unknown origins.",
        "rarity": "common",
        "tags": ["mysterious", "unknown"],
    }


def analyze_card_image(image_data: str, rng=None, **providers) -> Dict[str, Any]:
    """Run the chain; any unexpected failure yields error_fallback_response()."""
    analysis_logger.info("analysis_started", input_kind=_input_kind(image_data))
    try:
        result = run_multimodal_analysis(image_data, rng=rng, **providers)
    except Exception as e:
        analysis_logger.error("analysis_error", error=str(e), error_type=type(e).__name__)
        return error_fallback_response()

    response = format_analysis_response(result)
    analysis_logger.info(
        "analysis_complete",
        method=result["analysis_method"],
        confidence=result["confidence"],
        title=result["title"]
    )
    return response


def _input_kind(image_data) -> str:
    if not isinstance(image_data, str):
        return "invalid"
    if image_data.startswith("data:"):
        return "data_url"
    if image_data.startswith(("http://", "https://")):
        return "url"
    return "base64"
