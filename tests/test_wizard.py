"""
Tests for the card creation wizard state machine.
"""

import pytest

from card_studio.card_utils.card import DEFAULT_TITLE, CardValidationError
from card_studio.card_utils.wizard import (
    MODE_STEPS,
    CardCreationError,
    WizardRegistry,
    WizardSession,
    WizardValidationError,
)

TEMPLATES = [
    {"id": "crd-adaptive-full-bleed", "tags": ["minimal"], "template_data": {"layout": "full-bleed"}},
    {"id": "adaptive-cinematic", "tags": ["star wars", "galaxy"], "template_data": {"layout": "letterbox"}},
]


def ready_session(mode="quick"):
    session = WizardSession(mode=mode)
    session.select_photo("/uploads/photo.png")
    return session


class TestNavigation:

    def test_starts_at_intent(self):
        session = WizardSession()
        assert session.current_step == "intent"
        assert session.progress == 0
        assert not session.can_go_back
        assert session.card.title == DEFAULT_TITLE

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            WizardSession(mode="turbo")

    def test_upload_needs_photo(self):
        session = WizardSession()
        session.next_step()
        with pytest.raises(WizardValidationError) as exc:
            session.next_step()
        assert exc.value.step == "upload"
        assert session.errors == {"upload": "Please upload a photo first"}
        assert session.current_step == "upload"

    def test_selecting_photo_clears_error(self):
        session = WizardSession()
        session.next_step()
        with pytest.raises(WizardValidationError):
            session.next_step()
        session.select_photo("/uploads/p.png")
        assert session.errors == {}
        assert session.next_step() == "details"

    def test_details_needs_title(self):
        session = ready_session()
        session.next_step()
        session.next_step()
        session.update_fields({"title": "  "})
        with pytest.raises(WizardValidationError, match="Please enter a card title"):
            session.next_step()

    def test_design_needs_template(self):
        session = ready_session("advanced")
        session.next_step()
        session.next_step()
        assert session.current_step == "design"
        with pytest.raises(WizardValidationError, match="Please select a template"):
            session.next_step()
        session.select_template(TEMPLATES[0])
        assert session.next_step() == "details"
        assert session.card.design_metadata == {"layout": "full-bleed"}

    def test_full_walk_and_progress(self):
        session = ready_session()
        seen = [session.current_step]
        while session.can_advance:
            seen.append(session.next_step())
        assert seen == MODE_STEPS["quick"]
        assert session.progress == 100
        # staying on the last step is not an error
        assert session.next_step() == "publish"

    def test_back_never_validates(self):
        session = WizardSession()
        session.next_step()
        assert session.previous_step() == "intent"
        assert session.previous_step() == "intent"

    def test_jump_to_target(self):
        session = ready_session()
        assert session.next_step("details") == "details"

    def test_jump_to_step_outside_mode(self):
        session = ready_session()
        with pytest.raises(WizardValidationError):
            session.next_step("design")

    def test_set_mode_resets_to_first_step(self):
        session = ready_session()
        session.next_step()
        session.set_mode("guided")
        assert session.steps == MODE_STEPS["guided"]
        assert session.current_step == "intent"


class TestAnalysis:

    def test_prefills_card_and_suggests_template(self):
        session = WizardSession()
        suggested = session.apply_analysis({
            "creativeTitle": "Jedi Master Yoda",
            "creativeDescription": "Wise.",
            "rarity": "epic",
            "tags": ["Star Wars", "Force"],
        }, TEMPLATES)
        assert suggested["id"] == "adaptive-cinematic"
        assert session.card.title == "Jedi Master Yoda"
        assert session.card.rarity == "legendary"
        assert session.card.tags == ["star wars", "force"]
        assert session.card.template_id == "adaptive-cinematic"
        assert session.ai_analysis_complete

    def test_invalid_rarity_keeps_current(self):
        session = WizardSession()
        session.apply_analysis({"creativeTitle": "Odd", "rarity": "mythic"}, TEMPLATES)
        assert session.card.rarity == "common"

    def test_falls_back_to_subjects_and_default_template(self):
        session = WizardSession()
        suggested = session.apply_analysis({"subjects": ["Baseball"]}, TEMPLATES)
        assert session.card.tags == ["baseball"]
        assert session.card.title == DEFAULT_TITLE
        assert suggested["id"] == "crd-adaptive-full-bleed"

    def test_string_subjects(self):
        session = WizardSession()
        session.apply_analysis({"creativeTitle": "x", "subjects": "Dragon"}, [])
        assert session.card.tags == ["dragon"]

    def test_no_templates(self):
        session = WizardSession()
        assert session.apply_analysis({"creativeTitle": "x"}, []) is None
        assert session.card.template_id is None


class TestComplete:

    def test_saves_and_finishes(self):
        session = ready_session()
        saved = []
        card = session.complete(lambda c: saved.append(c) or "card-1")
        assert card.id == "card-1"
        assert session.saved_card_id == "card-1"
        assert session.current_step == "complete"
        assert session.progress == 100
        assert not session.can_go_back
        assert saved[0].image_url == "/uploads/photo.png"

    def test_validation_failure_is_wrapped(self):
        session = ready_session()
        session.update_fields({"title": ""})
        with pytest.raises(CardCreationError) as exc:
            session.complete(lambda c: "never")
        assert isinstance(exc.value.__cause__, CardValidationError)
        assert session.creation_error == "Please enter a card title"
        assert session.is_creating is False

    def test_unknown_template(self):
        session = ready_session()
        session.select_template({"id": "gone", "template_data": {}})
        with pytest.raises(CardCreationError):
            session.complete(lambda c: "x", known_template_ids=["crd-adaptive-full-bleed"])

    def test_save_failure(self):
        session = ready_session()
        with pytest.raises(CardCreationError, match="Failed to save card"):
            session.complete(lambda c: None)
        assert session.saved_card_id is None
        assert session.current_step == "intent"

    def test_second_complete_does_not_save_again(self):
        session = ready_session()
        saved = []
        first = session.complete(lambda c: saved.append(c) or "card-1")
        second = session.complete(lambda c: saved.append(c) or "card-2")
        assert second.id == first.id == "card-1"
        assert len(saved) == 1

    def test_start_over(self):
        session = ready_session("guided")
        session.update_fields({"title": "Kept?", "tags": ["keep"]})
        session.complete(lambda c: "card-2")
        session.start_over()
        assert session.current_step == "intent"
        assert session.mode == "guided"
        assert session.card.title == DEFAULT_TITLE
        assert session.card.image_url is None
        assert session.saved_card_id is None

    def test_creator_prefilled(self):
        session = WizardSession(creator_id="user-7")
        assert session.card.creator_id == "user-7"
        assert session.card.creator_attribution.creator_id == "user-7"


class TestRegistry:

    def test_lifecycle(self):
        registry = WizardRegistry()
        session = registry.create(mode="bulk")
        assert registry.get(session.session_id) is session
        assert len(registry) == 1
        assert registry.discard(session.session_id)
        assert registry.get(session.session_id) is None
        assert not registry.discard(session.session_id)

    def test_to_dict(self):
        state = WizardRegistry().create().to_dict()
        assert state["steps"] == MODE_STEPS["quick"]
        assert state["card"]["title"] == DEFAULT_TITLE
        assert state["can_advance"] is True
