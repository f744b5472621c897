# visual effects.
# Filters mirror the editor's CSS filter set and are applied in the order
# given. Values use CSS units: percentages for brightness/contrast/
# saturation/sepia/grayscale, pixels for blur, degrees for hue-rotate.
from typing import Any, Dict, List

from PIL import Image, ImageEnhance, ImageFilter, ImageOps

FILTER_RANGES = {
    "brightness": (0, 300),
    "contrast": (0, 300),
    "saturation": (0, 300),
    "blur": (0, 50),
    "sepia": (0, 100),
    "grayscale": (0, 100),
    "hue-rotate": (-360, 360),
}

# material effect intensities (0-100) per rarity; stored in
# design_metadata["effects"] when the creator picks a preset
RARITY_EFFECT_PRESETS = {
    "common": {
        "vintage": 20, "holographic": 0, "chrome": 0, "foilspray": 0,
        "crystal": 0, "gold": 0, "aurora": 0,
    },
    "uncommon": {
        "vintage": 0, "holographic": 15, "chrome": 0, "brushedmetal": 20,
        "foilspray": 10, "crystal": 0, "gold": 0, "aurora": 0,
    },
    "rare": {
        "vintage": 0, "holographic": 40, "chrome": 25, "interference": 20,
        "foilspray": 25, "waves": 15, "crystal": 0, "gold": 0, "aurora": 0,
    },
    "ultra-rare": {
        "vintage": 0, "holographic": 0, "chrome": 60, "crystal": 35,
        "prizm": 40, "foilspray": 0, "gold": 0, "aurora": 0,
    },
    "legendary": {
        "vintage": 0, "holographic": 30, "chrome": 0, "crystal": 0,
        "gold": 70, "aurora": 45, "foilspray": 20, "prizm": 0,
    },
}


class EffectError(ValueError):
    pass


def validate_filters(filters: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    cleaned = []
    for f in filters or []:
        kind = f.get("type")
        if kind not in FILTER_RANGES:
            raise EffectError(f"Unknown filter '{kind}'. Allowed: {', '.join(FILTER_RANGES)}")
        try:
            value = float(f.get("value"))
        except (TypeError, ValueError):
            raise EffectError(f"Filter '{kind}' needs a numeric value")
        low, high = FILTER_RANGES[kind]
        if not low <= value <= high:
            raise EffectError(f"Filter '{kind}' value must be between {low} and {high}")
        cleaned.append({"type": kind, "value": value})
    return cleaned


def _sepia(image: Image.Image, amount: float) -> Image.Image:
    toned = ImageOps.colorize(ImageOps.grayscale(image), black="#2b1d0e", white="#fff4e0")
    return Image.blend(image, toned, amount)


def _hue_rotate(image: Image.Image, degrees: float) -> Image.Image:
    hsv = image.convert("HSV")
    h, s, v = hsv.split()
    shift = int(round(degrees / 360 * 255)) % 256
    h = h.point(lambda p: (p + shift) % 256)
    return Image.merge("HSV", (h, s, v)).convert("RGB")


def apply_filters(image: Image.Image, filters: List[Dict[str, Any]]) -> Image.Image:
    """Apply validated filters to a copy of ``image``; alpha is preserved."""
    filters = validate_filters(filters)

    alpha = image.getchannel("A") if image.mode in ("RGBA", "LA") else None
    result = image.convert("RGB")

    for f in filters:
        kind, value = f["type"], f["value"]
        if kind == "brightness":
            result = ImageEnhance.Brightness(result).enhance(value / 100)
        elif kind == "contrast":
            result = ImageEnhance.Contrast(result).enhance(value / 100)
        elif kind == "saturation":
            result = ImageEnhance.Color(result).enhance(value / 100)
        elif kind == "blur":
            if value:
                result = result.filter(ImageFilter.GaussianBlur(radius=value))
        elif kind == "sepia":
            result = _sepia(result, value / 100)
        elif kind == "grayscale":
            gray = ImageOps.grayscale(result).convert("RGB")
            result = Image.blend(result, gray, value / 100)
        elif kind == "hue-rotate":
            result = _hue_rotate(result, value)

    if alpha is not None:
        result.putalpha(alpha)
    return result


def rarity_preset(rarity: str) -> Dict[str, int]:
    if rarity not in RARITY_EFFECT_PRESETS:
        raise EffectError(f"No effect preset for rarity '{rarity}'")
    return dict(RARITY_EFFECT_PRESETS[rarity])
