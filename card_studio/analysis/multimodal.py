"""Sequential fallback chain over the vision providers.

OpenAI Vision -> BLIP caption -> CLIP zero-shot -> ResNet-50 -> URL clues ->
generic concept. A character match at any stage ends the chain; otherwise the
first stage that produced keywords decides the method and confidence.
"""
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from card_studio.analysis.character_db import find_character_match, generate_character_card
from card_studio.analysis.creative_mapping import objects_to_card_concept
from card_studio.analysis.providers import (
    BLIPProvider,
    CLIPProvider,
    OpenAIVisionProvider,
    ProviderError,
    ResNetProvider,
)
from card_studio.card_utils.images import ImageDecodeError, decode_image_data
from studio_logs.loggers import analysis_logger

SUFFIXES = (
    "character", "figure", "person", "creature", "robot", "warrior",
    "hero", "villain", "jedi", "sith", "master",
)
_SUFFIX_RE = re.compile(" (" + "|".join(SUFFIXES) + ")")

# one pattern per suffix; matches for different suffixes may overlap
KEYWORD_PATTERNS = [re.compile(r"(\w+) " + suffix) for suffix in SUFFIXES] + [
    re.compile(r"small green"),
    re.compile(r"green ears"),
    re.compile(r"wise"),
    re.compile(r"force"),
    re.compile(r"lightsaber"),
]

STOPWORDS = {
    "this", "that", "with", "from", "they", "have", "been", "were", "will",
    "image", "shows", "appears",
}

URL_CONTEXT = [
    (("yoda",), "yoda green jedi master"),
    (("vader",), "darth vader mask black sith"),
    (("darth",), "darth vader mask black sith"),
    (("luke",), "luke skywalker jedi young"),
    (("leia",), "princess leia rebel leader"),
    (("han", "solo"), "han solo smuggler"),
    (("chewbacca",), "chewbacca wookiee furry"),
    (("chewie",), "chewbacca wookiee furry"),
    (("r2d2",), "r2d2 droid blue white"),
    (("r2-d2",), "r2d2 droid blue white"),
    (("c3po",), "c3po droid gold protocol"),
    (("c-3po",), "c3po droid gold protocol"),
]


def extract_keywords(description: str) -> List[str]:
    """Pull card-worthy keywords out of a caption or description."""
    text = description.lower()
    keywords = []

    for pattern in KEYWORD_PATTERNS:
        for match in pattern.finditer(text):
            keyword = _SUFFIX_RE.sub("", match.group(0), count=1)
            if len(keyword) > 2:
                keywords.append(keyword)

    if ("green" in text and "small" in text) or "yoda" in text:
        keywords.append("yoda")
    if ("mask" in text and "black" in text) or "vader" in text or "darth" in text:
        keywords.append("darth_vader")
    if ("jedi" in text and "young" in text) or "luke" in text:
        keywords.append("luke_skywalker")

    if not keywords:
        words = [w for w in text.split(" ") if len(w) > 3 and w not in STOPWORDS]
        keywords.extend(words[:3])

    return keywords or ["mysterious_entity"]


def extract_context_from_url(image_url: str) -> Optional[str]:
    """Character hints from the path of an http(s) image URL."""
    try:
        parsed = urlparse(image_url)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https"):
        return None

    path = parsed.path.lower()
    for needles, context in URL_CONTEXT:
        if all(n in path for n in needles):
            return context
    return None


def _character_result(match: Dict[str, Any], method: str, confidence: float, rng) -> Dict[str, Any]:
    card = generate_character_card(match, rng)
    analysis_logger.info("character_identified", character=match["key"], method=method)
    return {
        "title": card["title"],
        "description": card["description"],
        "detected_objects": [match["key"]],
        "analysis_method": method,
        "confidence": confidence,
        "category": card["category"],
        "rarity": card["rarity"],
        "tags": card["tags"],
    }


def _run_provider(provider, image_bytes, image_data):
    """Provider output, or None when it is missing, unconfigured or failed."""
    if provider is None:
        return None
    if not provider.available:
        analysis_logger.debug("provider_skipped_no_key", provider=provider.name)
        return None
    analysis_logger.info("provider_attempt", provider=provider.name)
    try:
        output = provider.analyze(image_bytes, image_data)
    except ProviderError as e:
        analysis_logger.warning("provider_failed", provider=provider.name, error=str(e))
        return None
    analysis_logger.info("provider_succeeded", provider=provider.name)
    return output or None


def run_multimodal_analysis(image_data: str, vision=..., captioner=..., clip=..., resnet=...,
                            rng=None) -> Dict[str, Any]:
    """
    Analyze an image and produce a card concept.

    Providers default to the configured ones; pass ``None`` to leave a stage
    out. ``rng`` (a ``random.Random``) makes title/description picks
    repeatable.
    """
    vision = OpenAIVisionProvider() if vision is ... else vision
    captioner = BLIPProvider() if captioner is ... else captioner
    clip = CLIPProvider() if clip is ... else clip
    resnet = ResNetProvider() if resnet is ... else resnet

    try:
        image_bytes = decode_image_data(image_data)
    except ImageDecodeError as e:
        analysis_logger.warning("image_decode_failed", error=str(e))
        image_bytes = None

    results: List[str] = []
    method = "fallback"
    confidence = 0.3

    description = _run_provider(vision, image_bytes, image_data)
    if description:
        match = find_character_match(description)
        if match:
            return _character_result(match, "openai_vision_character", 0.95, rng)
        results = extract_keywords(description)
        method, confidence = "openai_vision", 0.85

    caption = _run_provider(captioner, image_bytes, image_data)
    if caption:
        match = find_character_match(caption)
        if match:
            return _character_result(match, "blip_character", 0.85, rng)
        if not results:
            results = extract_keywords(caption)
            method, confidence = "blip_caption", 0.75

    if not results:
        labels = _run_provider(clip, image_bytes, image_data)
        if labels:
            match = find_character_match(" ".join(labels))
            if match:
                return _character_result(match, "clip_character", 0.8, rng)
            results = labels
            method, confidence = "clip_zero_shot", 0.7

    if not results:
        labels = _run_provider(resnet, image_bytes, image_data)
        if labels:
            match = find_character_match(" ".join(labels))
            if match:
                return _character_result(match, "resnet_character_pattern", 0.8, rng)
            results = labels
            method, confidence = "huggingface_resnet50", 0.6

    if not results:
        context = extract_context_from_url(image_data)
        if context:
            match = find_character_match(context)
            if match:
                return _character_result(match, "url_context_character", 0.7, rng)
        analysis_logger.info("analysis_intelligent_fallback")
        results = ["mysterious_figure"]
        method, confidence = "intelligent_fallback", 0.4

    concept = objects_to_card_concept(results, rng)
    return {
        "title": concept["title"],
        "description": concept["description"],
        "detected_objects": results,
        "analysis_method": method,
        "confidence": confidence,
        "category": "general",
        "rarity": concept["rarity"],
        "tags": concept["tags"],
    }
