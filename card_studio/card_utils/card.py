# card record.
# CardData is the single persisted entity: metadata the creator fills in,
# the chosen template and its design data, and the publishing settings.
# Drafts inside the wizard use the same model, so nothing here requires a
# title; validate_card() is what enforces it before save/publish.
import json
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError

RARITIES = ("common", "uncommon", "rare", "ultra-rare", "legendary")

# providers and older clients send these spellings
RARITY_ALIASES = {
    "epic": "legendary",
    "ultra rare": "ultra-rare",
    "ultra_rare": "ultra-rare",
    "ultrarare": "ultra-rare",
}

VISIBILITIES = ("private", "public", "shared")
COLLABORATION_TYPES = ("solo", "collaboration")

MAX_TITLE_LENGTH = 100
MAX_TAGS = 10

DEFAULT_TITLE = "My New Card"


class CardValidationError(ValueError):
    """Raised with every problem found in a card, not just the first."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class PublishingOptions(BaseModel):
    marketplace_listing: bool = False
    crd_catalog_inclusion: bool = True
    print_available: bool = False
    pricing: Dict[str, Any] = Field(default_factory=lambda: {"currency": "USD", "base_price": None})
    distribution: Dict[str, Any] = Field(default_factory=lambda: {"limited_edition": False, "edition_size": None})


class CreatorAttribution(BaseModel):
    creator_name: str = ""
    creator_id: str = ""
    collaboration_type: str = "solo"


class CardData(BaseModel):
    id: Optional[str] = None
    title: str = ""
    description: str = ""
    rarity: str = "common"
    tags: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    template_id: Optional[str] = None
    design_metadata: Dict[str, Any] = Field(default_factory=dict)
    publishing_options: PublishingOptions = Field(default_factory=PublishingOptions)
    creator_attribution: CreatorAttribution = Field(default_factory=CreatorAttribution)
    creator_id: Optional[str] = None
    is_public: bool = False
    visibility: str = "private"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


def normalize_rarity(value: Optional[str]) -> str:
    """Map a rarity spelling onto one of RARITIES.

    ``None`` and the empty string become ``common``. Anything unknown raises
    CardValidationError.
    """
    if value is None or not str(value).strip():
        return "common"
    rarity = str(value).strip().lower()
    rarity = RARITY_ALIASES.get(rarity, rarity)
    if rarity not in RARITIES:
        raise CardValidationError([f"Invalid rarity '{value}'. Allowed: {', '.join(RARITIES)}"])
    return rarity


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Lowercase, strip and de-duplicate tags, keeping first-seen order.

    A bare string is a single tag.
    """
    if isinstance(tags, str):
        tags = [tags]
    elif tags is not None and not isinstance(tags, (list, tuple, set)):
        raise CardValidationError(["Tags must be a list"])
    seen = []
    for tag in tags or []:
        if not isinstance(tag, str):
            continue
        cleaned = tag.strip().lower()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


def validate_card(card: CardData, known_template_ids: Optional[Iterable[str]] = None,
                  require_title: bool = True) -> List[str]:
    errors = []

    title = (card.title or "").strip()
    if require_title and not title:
        errors.append("Please enter a card title")
    if len(title) > MAX_TITLE_LENGTH:
        errors.append(f"Title must be at most {MAX_TITLE_LENGTH} characters")

    try:
        normalize_rarity(card.rarity)
    except CardValidationError as e:
        errors.extend(e.errors)

    if len(card.tags) > MAX_TAGS:
        errors.append(f"A card can have at most {MAX_TAGS} tags")

    if card.visibility not in VISIBILITIES:
        errors.append(f"Invalid visibility '{card.visibility}'")

    if card.creator_attribution.collaboration_type not in COLLABORATION_TYPES:
        errors.append(f"Invalid collaboration type '{card.creator_attribution.collaboration_type}'")

    if known_template_ids is not None and card.template_id and card.template_id not in set(known_template_ids):
        errors.append(f"Unknown template '{card.template_id}'")

    errors.extend(_publishing_errors(card.publishing_options))
    return errors


def _publishing_errors(options: PublishingOptions) -> List[str]:
    errors = []
    base_price = options.pricing.get("base_price")
    if base_price is not None:
        if not isinstance(base_price, (int, float)) or base_price < 0:
            errors.append("Base price must be a non-negative number")

    distribution = options.distribution
    if distribution.get("limited_edition"):
        size = distribution.get("edition_size")
        if size is not None and (not isinstance(size, int) or size <= 0):
            errors.append("Edition size must be a positive whole number")
    return errors


def _build(model, data: Dict[str, Any]):
    try:
        return model(**data)
    except ValidationError as e:
        raise CardValidationError(
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        ) from e


def merge_publishing_options(current: PublishingOptions, updates: Dict[str, Any]) -> PublishingOptions:
    """Shallow merge, except pricing/distribution which merge one level down."""
    merged = current.model_dump()
    for key, value in (updates or {}).items():
        if key in ("pricing", "distribution") and isinstance(value, dict):
            merged[key] = {**merged.get(key, {}), **value}
        else:
            merged[key] = value
    return _build(PublishingOptions, merged)


def merge_attribution(current: CreatorAttribution, updates: Dict[str, Any]) -> CreatorAttribution:
    return _build(CreatorAttribution, {**current.model_dump(), **(updates or {})})


def apply_updates(card: CardData, updates: Dict[str, Any]) -> CardData:
    """Return a copy of ``card`` with ``updates`` applied.

    Rarity and tags are normalized on the way in; publishing options and
    creator attribution are merged rather than replaced.
    """
    data = card.model_dump()
    for key, value in (updates or {}).items():
        if key in ("id", "created_at", "updated_at"):
            continue
        if key == "rarity":
            data[key] = normalize_rarity(value)
        elif key == "tags":
            data[key] = normalize_tags(value)
        elif key == "publishing_options":
            data[key] = merge_publishing_options(card.publishing_options, value).model_dump()
        elif key == "creator_attribution":
            data[key] = merge_attribution(card.creator_attribution, value).model_dump()
        elif key in CardData.model_fields:
            data[key] = value
    return _build(CardData, data)


# JSON-encoded columns in the Cards table
_JSON_COLUMNS = ("tags", "design_metadata", "publishing_options", "creator_attribution")


def card_to_row(card: CardData) -> Dict[str, Any]:
    row = card.model_dump()
    for column in _JSON_COLUMNS:
        row[column] = json.dumps(row[column])
    row["is_public"] = 1 if card.is_public else 0
    return row


def card_from_row(row: Dict[str, Any]) -> CardData:
    data = dict(row)
    for column in _JSON_COLUMNS:
        raw = data.get(column)
        data[column] = json.loads(raw) if raw else None
        if data[column] is None:
            data.pop(column)
    data["is_public"] = bool(data.get("is_public"))
    return CardData(**data)
