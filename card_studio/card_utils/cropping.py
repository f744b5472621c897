"""Crop bounds math for positioning an uploaded photo inside a card.

Crop rectangles are kept in *display* pixels, the coordinate space of the
preview the user drags over. ``extract_crops`` scales them back to the
natural size of the image before cutting with Pillow.
"""
from dataclasses import dataclass, asdict, replace
from typing import Dict, List, Optional

from PIL import Image

from card_studio.card_utils.images import to_data_url

ASPECT_RATIOS = {
    "card": 2.5 / 3.5,
    "landscape": 3 / 2,
    "portrait": 2 / 3,
    "square": 1.0,
    "free": None,
}

CROP_TYPES = ("main", "frame", "element")
HANDLES = ("move", "tl", "tr", "bl", "br")

MIN_CROP_SIZE = 50
MAX_OUTPUT_WIDTH = 1200
MAX_OUTPUT_HEIGHT = 1600

MIN_ZOOM = 0.5
MAX_ZOOM = 3.0
ZOOM_STEP = 0.25


class CropError(ValueError):
    pass


@dataclass
class CropArea:
    x: float
    y: float
    width: float
    height: float
    rotation: float = 0
    type: str = "main"

    @classmethod
    def from_percent(cls, x, y, width, height, image_width, image_height, **kwargs):
        """Build a pixel crop from percentages of the image size."""
        return cls(
            x=x / 100 * image_width,
            y=y / 100 * image_height,
            width=width / 100 * image_width,
            height=height / 100 * image_height,
            **kwargs
        )

    def to_percent(self, image_width, image_height) -> Dict[str, float]:
        return {
            "x": round(self.x / image_width * 100, 4),
            "y": round(self.y / image_height * 100, 4),
            "width": round(self.width / image_width * 100, 4),
            "height": round(self.height / image_height * 100, 4),
        }

    def as_dict(self) -> Dict:
        return asdict(self)


def resolve_aspect(aspect) -> Optional[float]:
    """Accept a preset name, a number, or None (free)."""
    if aspect is None:
        return None
    if isinstance(aspect, str):
        if aspect not in ASPECT_RATIOS:
            raise CropError(f"Unknown aspect ratio '{aspect}'")
        return ASPECT_RATIOS[aspect]
    aspect = float(aspect)
    if aspect <= 0:
        raise CropError("Aspect ratio must be positive")
    return aspect


def default_crop(image_width, image_height, aspect="card") -> CropArea:
    """Centred crop covering 80% of the limiting side at the given ratio."""
    ratio = resolve_aspect(aspect)
    if ratio is None:
        width, height = image_width * 0.8, image_height * 0.8
    elif image_width / image_height > ratio:
        height = image_height * 0.8
        width = height * ratio
    else:
        width = image_width * 0.8
        height = width / ratio
    return CropArea(
        x=(image_width - width) / 2,
        y=(image_height - height) / 2,
        width=width,
        height=height,
    )


def clamp_crop(crop: CropArea, bounds_width, bounds_height) -> CropArea:
    """Return a copy of ``crop`` that lies entirely inside the bounds."""
    width = min(max(crop.width, 1), bounds_width)
    height = min(max(crop.height, 1), bounds_height)
    x = min(max(crop.x, 0), bounds_width - width)
    y = min(max(crop.y, 0), bounds_height - height)
    return replace(crop, x=x, y=y, width=width, height=height)


def drag(crop: CropArea, handle: str, dx, dy, bounds_width, bounds_height, aspect="card") -> CropArea:
    """Apply one mouse-drag delta to a crop.

    ``move`` slides the rectangle without leaving the bounds. Corner handles
    resize from that corner, never below MIN_CROP_SIZE, and a ``main`` crop
    keeps its aspect ratio: right-side handles derive height from width,
    left-side handles derive width from height.
    """
    if handle not in HANDLES:
        raise CropError(f"Unknown drag handle '{handle}'")

    new = replace(crop)

    if handle == "move":
        new.x = max(0, min(crop.x + dx, bounds_width - crop.width))
        new.y = max(0, min(crop.y + dy, bounds_height - crop.height))
        return new

    # a dragged edge stops MIN_CROP_SIZE short of the far bound
    max_x = max(0, bounds_width - MIN_CROP_SIZE)
    max_y = max(0, bounds_height - MIN_CROP_SIZE)

    if handle == "tl":
        new.x = min(max(0, crop.x + dx), max_x)
        new.y = min(max(0, crop.y + dy), max_y)
        new.width = crop.width - dx
        new.height = crop.height - dy
    elif handle == "tr":
        new.y = min(max(0, crop.y + dy), max_y)
        new.width = crop.width + dx
        new.height = crop.height - dy
    elif handle == "bl":
        new.x = min(max(0, crop.x + dx), max_x)
        new.width = crop.width - dx
        new.height = crop.height + dy
    elif handle == "br":
        new.width = crop.width + dx
        new.height = crop.height + dy

    new.width = max(MIN_CROP_SIZE, new.width)
    new.height = max(MIN_CROP_SIZE, new.height)

    new.width = min(new.width, bounds_width - new.x)
    new.height = min(new.height, bounds_height - new.y)

    ratio = resolve_aspect(aspect)
    if crop.type == "main" and ratio:
        if "r" in handle:
            new.height = new.width / ratio
        else:
            new.width = new.height * ratio
        # locking the ratio can push the far edge out again
        if new.y + new.height > bounds_height:
            new.height = bounds_height - new.y
            new.width = new.height * ratio
        if new.x + new.width > bounds_width:
            new.width = bounds_width - new.x
            new.height = new.width / ratio

    return clamp_crop(new, bounds_width, bounds_height)


def clamp_zoom(zoom) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, float(zoom)))


def zoom_in(zoom) -> float:
    return clamp_zoom(zoom + ZOOM_STEP)


def zoom_out(zoom) -> float:
    return clamp_zoom(zoom - ZOOM_STEP)


class CropHistory:
    """Undo/redo stack of crop states."""

    def __init__(self):
        self._states: List[CropArea] = []
        self._index = -1

    def push(self, crop: CropArea):
        # a new edit after undo drops the redo tail
        self._states = self._states[:self._index + 1]
        self._states.append(replace(crop))
        self._index = len(self._states) - 1

    @property
    def current(self) -> Optional[CropArea]:
        if self._index < 0:
            return None
        return replace(self._states[self._index])

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._states) - 1

    def undo(self) -> Optional[CropArea]:
        if self.can_undo():
            self._index -= 1
        return self.current

    def redo(self) -> Optional[CropArea]:
        if self.can_redo():
            self._index += 1
        return self.current


def extract_crops(image: Image.Image, crops: List[CropArea], display_width=None,
                  display_height=None, fmt="PNG", quality=95) -> Dict:
    """
    Cut each crop out of ``image`` and encode it as a data URL.

    Crop coordinates are in display space; ``display_width``/``display_height``
    default to the natural image size. The result has ``main`` and ``frame``
    (last one wins) and an ``elements`` list when any element crops exist.
    """
    if not crops:
        raise CropError("No crop areas given")

    natural_width, natural_height = image.size
    display_width = display_width or natural_width
    display_height = display_height or natural_height
    scale_x = natural_width / display_width
    scale_y = natural_height / display_height

    results: Dict = {}
    elements = []

    for crop in crops:
        if crop.type not in CROP_TYPES:
            raise CropError(f"Unknown crop type '{crop.type}'")
        crop = clamp_crop(crop, display_width, display_height)

        left = round(crop.x * scale_x)
        top = round(crop.y * scale_y)
        source_width = max(1, round(crop.width * scale_x))
        source_height = max(1, round(crop.height * scale_y))

        piece = image
        if crop.rotation:
            piece = image.rotate(-crop.rotation, resample=Image.Resampling.BICUBIC, expand=False)
        piece = piece.crop((left, top, left + source_width, top + source_height))

        output_size = (min(MAX_OUTPUT_WIDTH, source_width), min(MAX_OUTPUT_HEIGHT, source_height))
        if output_size != piece.size:
            piece = piece.resize(output_size, Image.Resampling.LANCZOS)

        data_url = to_data_url(piece, fmt=fmt, quality=quality)

        if crop.type == "main":
            results["main"] = data_url
        elif crop.type == "frame":
            results["frame"] = data_url
        else:
            elements.append(data_url)

    if elements:
        results["elements"] = elements

    return results
