"""Card creation wizard.

A session walks a fixed list of steps for its mode. Moving forward checks
the current step first; moving back never does. The draft card rides along
and is handed to a ``save`` callable on completion.
"""
import uuid
from typing import Any, Callable, Dict, List, Optional

from card_studio.card_utils.card import (
    DEFAULT_TITLE,
    CardData,
    CardValidationError,
    apply_updates,
    merge_attribution,
    merge_publishing_options,
    normalize_rarity,
    normalize_tags,
    validate_card,
)
from card_studio.card_utils.templates import suggest_template

MODE_STEPS = {
    "quick": ["intent", "upload", "details", "publish"],
    "guided": ["intent", "upload", "details", "design", "publish"],
    "advanced": ["intent", "upload", "design", "details", "publish"],
    "bulk": ["intent", "upload", "complete"],
}

MODE_DESCRIPTIONS = {
    "quick": "Simple form-based card creation",
    "guided": "Step-by-step wizard with help",
    "advanced": "Full editor with all features",
    "bulk": "Create multiple cards at once",
}


class WizardValidationError(ValueError):
    def __init__(self, step: str, message: str):
        self.step = step
        self.message = message
        super().__init__(message)


class CardCreationError(RuntimeError):
    pass


def _new_draft() -> CardData:
    return CardData(title=DEFAULT_TITLE)


class WizardSession:

    def __init__(self, mode: str = "quick", creator_id: Optional[str] = None,
                 session_id: Optional[str] = None):
        if mode not in MODE_STEPS:
            raise ValueError(f"Unknown mode '{mode}'. Allowed: {', '.join(MODE_STEPS)}")
        self.session_id = session_id or str(uuid.uuid4())
        self.initial_mode = mode
        self.creator_id = creator_id
        self.mode = mode
        self.current_step = MODE_STEPS[mode][0]
        self.errors: Dict[str, str] = {}
        self.ai_analysis_complete = False
        self.selected_photo: Optional[str] = None
        self.selected_template_id: Optional[str] = None
        self.is_creating = False
        self.creation_error: Optional[str] = None
        self.saved_card_id: Optional[str] = None
        self.card = _new_draft()
        if creator_id:
            self.card = apply_updates(self.card, {
                "creator_id": creator_id,
                "creator_attribution": {"creator_id": creator_id},
            })

    # -- derived state

    @property
    def steps(self) -> List[str]:
        return MODE_STEPS[self.mode]

    @property
    def step_index(self) -> int:
        if self.current_step not in self.steps:
            # "complete" after saving in a mode that has no complete step
            return len(self.steps) - 1
        return self.steps.index(self.current_step)

    @property
    def progress(self) -> float:
        if self.current_step == "complete":
            return 100.0
        return self.step_index / (len(self.steps) - 1) * 100

    @property
    def can_go_back(self) -> bool:
        return self.step_index > 0 and self.current_step != "complete"

    @property
    def can_advance(self) -> bool:
        return self.step_index < len(self.steps) - 1

    # -- selection

    def set_mode(self, mode: str):
        if mode not in MODE_STEPS:
            raise ValueError(f"Unknown mode '{mode}'. Allowed: {', '.join(MODE_STEPS)}")
        self.mode = mode
        self.current_step = MODE_STEPS[mode][0]
        self.errors = {}

    def select_photo(self, image_url: str):
        self.selected_photo = image_url
        self.card = apply_updates(self.card, {"image_url": image_url})
        self.errors.pop("upload", None)

    def select_template(self, template: Dict[str, Any]):
        self.selected_template_id = template["id"]
        self.card = apply_updates(self.card, {
            "template_id": template["id"],
            "design_metadata": dict(template.get("template_data", {})),
        })
        self.errors.pop("design", None)

    def apply_analysis(self, analysis: Dict[str, Any], templates: List[Dict[str, Any]]):
        """Prefill the draft from an analysis result and suggest a frame."""
        title = analysis.get("creativeTitle") or analysis.get("title") or self.card.title
        description = analysis.get("creativeDescription") or analysis.get("description") or ""
        try:
            rarity = normalize_rarity(analysis.get("rarity"))
        except CardValidationError:
            rarity = self.card.rarity
        try:
            tags = normalize_tags(analysis.get("tags") or analysis.get("subjects") or [])
        except CardValidationError:
            tags = []

        self.card = apply_updates(self.card, {
            "title": title,
            "description": description,
            "rarity": rarity,
            "tags": tags[:10],
        })
        self.ai_analysis_complete = True

        suggested = suggest_template(tags, templates)
        if suggested:
            self.select_template(suggested)
        return suggested

    # -- field updates

    def update_fields(self, updates: Dict[str, Any]):
        self.card = apply_updates(self.card, updates)
        if "image_url" in updates:
            self.selected_photo = updates["image_url"]

    def update_publishing_options(self, updates: Dict[str, Any]):
        self.card = self.card.model_copy(update={
            "publishing_options": merge_publishing_options(self.card.publishing_options, updates)
        })

    def update_creator_attribution(self, updates: Dict[str, Any]):
        self.card = self.card.model_copy(update={
            "creator_attribution": merge_attribution(self.card.creator_attribution, updates)
        })

    # -- navigation

    def validate_step(self, step: Optional[str] = None) -> Optional[str]:
        """Error message for ``step`` (default: current), or None when it passes."""
        step = step or self.current_step
        if step == "upload" and not self.card.image_url:
            return "Please upload a photo first"
        if step == "details" and not self.card.title.strip():
            return "Please enter a card title"
        if step == "design" and not self.card.template_id:
            return "Please select a template"
        return None

    def next_step(self, target_step: Optional[str] = None) -> str:
        error = self.validate_step()
        if error:
            self.errors[self.current_step] = error
            raise WizardValidationError(self.current_step, error)
        self.errors.pop(self.current_step, None)

        if target_step:
            if target_step not in self.steps:
                raise WizardValidationError(
                    self.current_step, f"Step '{target_step}' is not part of {self.mode} mode"
                )
            self.current_step = target_step
        else:
            next_index = min(self.step_index + 1, len(self.steps) - 1)
            self.current_step = self.steps[next_index]
        return self.current_step

    def previous_step(self) -> str:
        prev_index = max(self.step_index - 1, 0)
        self.current_step = self.steps[prev_index]
        return self.current_step

    # -- completion

    def complete(self, save: Callable[[CardData], Optional[str]],
                 known_template_ids: Optional[List[str]] = None) -> CardData:
        """Validate and persist the draft.

        ``save`` returns the stored card id, or None on failure.
        A session that already saved its card returns it instead of saving
        a second copy.
        """
        if self.saved_card_id:
            return self.card

        self.is_creating = True
        self.creation_error = None
        try:
            errors = validate_card(self.card, known_template_ids=known_template_ids)
            if errors:
                raise CardValidationError(errors)
            card_id = save(self.card)
            if not card_id:
                raise CardCreationError("Failed to save card")
        except (CardValidationError, CardCreationError) as e:
            self.creation_error = str(e)
            if isinstance(e, CardCreationError):
                raise
            raise CardCreationError(str(e)) from e
        finally:
            self.is_creating = False

        self.saved_card_id = card_id
        self.card = self.card.model_copy(update={"id": card_id})
        self.current_step = "complete"
        return self.card

    def start_over(self):
        self.set_mode(self.initial_mode)
        self.creation_error = None
        self.saved_card_id = None
        self.ai_analysis_complete = False
        self.selected_photo = None
        self.card = apply_updates(self.card, {
            "title": DEFAULT_TITLE,
            "description": "",
            "image_url": None,
        })

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "mode": self.mode,
            "steps": self.steps,
            "current_step": self.current_step,
            "progress": round(self.progress, 2),
            "can_advance": self.can_advance,
            "can_go_back": self.can_go_back,
            "errors": dict(self.errors),
            "ai_analysis_complete": self.ai_analysis_complete,
            "selected_photo": self.selected_photo,
            "selected_template_id": self.selected_template_id,
            "is_creating": self.is_creating,
            "creation_error": self.creation_error,
            "saved_card_id": self.saved_card_id,
            "card": self.card.model_dump(),
        }


class WizardRegistry:
    """Process-local store of open wizard sessions."""

    def __init__(self):
        self._sessions: Dict[str, WizardSession] = {}

    def create(self, mode: str = "quick", creator_id: Optional[str] = None) -> WizardSession:
        session = WizardSession(mode=mode, creator_id=creator_id)
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> Optional[WizardSession]:
        return self._sessions.get(session_id)

    def discard(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self):
        return len(self._sessions)
