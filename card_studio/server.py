from fastapi import FastAPI, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
import uuid

#logging stuff
from studio_logs.loggers import server_logger, card_logger, wizard_logger
from studio_logs.endpoints import router as logs_router
from studio_logs.middleware import RequestLoggingMiddleware

from card_studio.server_classes import (
    AnalyzeRequest,
    CreateCardRequest,
    CropRequest,
    DragRequest,
    EffectsRequest,
    PublishRequest,
    StartWizardRequest,
    UpdateCardRequest,
    WizardAnalysisRequest,
    WizardModeRequest,
    WizardNextRequest,
    WizardPhotoRequest,
    WizardTemplateRequest,
    WizardUpdateRequest,
)
from card_studio.analysis.analyzer import analyze_card_image
from card_studio.card_utils import images
from card_studio.card_utils.card import (
    CardData,
    CardValidationError,
    apply_updates,
    merge_publishing_options,
    validate_card,
)
from card_studio.card_utils.cropping import CropArea, CropError, drag, extract_crops
from card_studio.card_utils.effects import EffectError, apply_filters, rarity_preset
from card_studio.card_utils.images import ImageDecodeError, decode_image_data, load_image, to_data_url
from card_studio.card_utils.templates import TEMPLATE_JSON_DIR
from card_studio.card_utils.wizard import (
    CardCreationError,
    WizardRegistry,
    WizardValidationError,
)

# import our DB access functions
from card_studio.utils.db_access import (
    init_db,
    create_card_entry,
    get_card_by_id,
    list_cards,
    update_card_entry,
    delete_card_entry,
    get_templates,
    get_template_by_id,
    scan_and_register_templates,
)

app = FastAPI(title="Card Studio")
app.include_router(logs_router)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware, logger=server_logger)

wizards = WizardRegistry()


def _error(status_code: int, message: str, **extra):
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def _template_ids():
    return [t["id"] for t in get_templates()]


def _save_new_card(card: CardData):
    """Persist a draft under a fresh id. Returns the id, or None on failure."""
    card_id = str(uuid.uuid4())
    if create_card_entry(card.model_copy(update={"id": card_id})):
        return card_id
    return None


# startup functions
@app.on_event("startup")
async def startup_event():
    init_db()

    # register any new frames from template_json
    if TEMPLATE_JSON_DIR.exists():
        results = scan_and_register_templates(TEMPLATE_JSON_DIR)
        if results["added"]:
            server_logger.info(
                "startup_templates_registered",
                count=len(results["added"]),
                templates=results["added"]
            )
        if results["errors"]:
            server_logger.warning(
                "startup_template_registration_errors",
                errors=results["errors"]
            )


@app.get("/")
async def read_root():
    return {"service": "card-studio", "status": "ok"}


# ------------------------------------------------------------- templates

@app.get("/templates")
async def list_templates(category: str = None):
    templates = get_templates(category)
    return {"templates": templates, "count": len(templates)}


@app.get("/templates/{template_id}")
async def read_template(template_id: str):
    template = get_template_by_id(template_id)
    if not template:
        return _error(404, "Template not found")
    return template


@app.post("/admin/register_templates")
async def register_templates_from_directory():
    """
    Admin endpoint: scan template_json and register any new templates.
    """
    server_logger.info("admin_register_templates_invoked")

    if not TEMPLATE_JSON_DIR.exists():
        server_logger.error(
            "admin_register_templates_dir_not_found",
            path=str(TEMPLATE_JSON_DIR)
        )
        return _error(500, "template_json directory not found")

    results = scan_and_register_templates(TEMPLATE_JSON_DIR)

    if results["errors"]:
        server_logger.warning(
            "admin_register_templates_had_errors",
            errors=results["errors"]
        )

    server_logger.info(
        "admin_register_templates_complete",
        added_count=len(results["added"]),
        skipped_count=len(results["skipped"]),
        error_count=len(results["errors"])
    )

    return JSONResponse(status_code=200, content={
        "message": "Template registration complete",
        "added": results["added"],
        "skipped": results["skipped"],
        "errors": results["errors"],
        "summary": {
            "added_count": len(results["added"]),
            "skipped_count": len(results["skipped"]),
            "error_count": len(results["errors"])
        }
    })


# ----------------------------------------------------------------- cards

@app.post("/cards")
async def create_card(req: CreateCardRequest):
    card_logger.info(
        "card_create_attempt",
        title=req.title,
        creator_id=req.creator_id,
        template_id=req.template_id
    )

    try:
        card = apply_updates(CardData(), req.model_dump(exclude_none=True))
    except CardValidationError as e:
        card_logger.warning("card_create_invalid", errors=e.errors)
        return _error(400, str(e), errors=e.errors)

    errors = validate_card(card, known_template_ids=_template_ids())
    if errors:
        card_logger.warning("card_create_invalid", errors=errors)
        return _error(400, "; ".join(errors), errors=errors)

    card_id = _save_new_card(card)
    if not card_id:
        card_logger.error("card_create_write_failed", title=card.title)
        return _error(500, "Failed to create card")

    card_logger.info("card_create_success", card_id=card_id, rarity=card.rarity)
    return JSONResponse(status_code=201, content={
        "message": "Card created successfully",
        "card": get_card_by_id(card_id).model_dump()
    })


@app.get("/cards")
async def read_cards(creator_id: str = None, rarity: str = None, tag: str = None,
                     public_only: bool = False, limit: int = 50):
    limit = max(1, min(limit, 200))
    cards = list_cards(creator_id=creator_id, rarity=rarity, tag=tag,
                       public_only=public_only, limit=limit)
    return {"cards": [c.model_dump() for c in cards], "count": len(cards)}


@app.get("/cards/{card_id}")
async def read_card(card_id: str):
    card = get_card_by_id(card_id)
    if not card:
        return _error(404, "Card not found")
    return card.model_dump()


@app.patch("/cards/{card_id}")
async def update_card(card_id: str, req: UpdateCardRequest):
    card = get_card_by_id(card_id)
    if not card:
        card_logger.warning("card_update_not_found", card_id=card_id)
        return _error(404, "Card not found")

    updates = req.model_dump(exclude_unset=True)
    try:
        updated = apply_updates(card, updates)
    except CardValidationError as e:
        return _error(400, str(e), errors=e.errors)

    errors = validate_card(updated, known_template_ids=_template_ids())
    if errors:
        card_logger.warning("card_update_invalid", card_id=card_id, errors=errors)
        return _error(400, "; ".join(errors), errors=errors)

    if not update_card_entry(updated):
        card_logger.error("card_update_write_failed", card_id=card_id)
        return _error(500, "Failed to update card")

    card_logger.info("card_update_success", card_id=card_id, fields=sorted(updates))
    return get_card_by_id(card_id).model_dump()


@app.delete("/cards/{card_id}")
async def delete_card(card_id: str):
    if not delete_card_entry(card_id):
        return _error(404, "Card not found")
    card_logger.info("card_delete_success", card_id=card_id)
    return {"message": "Card deleted", "id": card_id}


@app.post("/cards/{card_id}/publish")
async def publish_card(card_id: str, req: PublishRequest):
    card = get_card_by_id(card_id)
    if not card:
        return _error(404, "Card not found")

    if req.visibility not in ("public", "shared"):
        return _error(400, "Published cards must be public or shared")

    try:
        options = merge_publishing_options(card.publishing_options, req.publishing_options)
    except CardValidationError as e:
        return _error(400, str(e), errors=e.errors)

    published = card.model_copy(update={
        "publishing_options": options,
        "visibility": req.visibility,
        "is_public": req.visibility == "public",
    })

    errors = validate_card(published, known_template_ids=_template_ids())
    if errors:
        card_logger.warning("card_publish_invalid", card_id=card_id, errors=errors)
        return _error(400, "; ".join(errors), errors=errors)

    if not update_card_entry(published):
        card_logger.error("card_publish_write_failed", card_id=card_id)
        return _error(500, "Failed to publish card")

    card_logger.info(
        "card_publish_success",
        card_id=card_id,
        marketplace=published.publishing_options.marketplace_listing
    )
    return get_card_by_id(card_id).model_dump()


# ---------------------------------------------------------------- images

@app.post("/uploads")
async def upload_image(file: UploadFile = File(...)):
    raw = await file.read()
    try:
        path = images.save_upload(raw, file.filename)
    except ImageDecodeError as e:
        server_logger.warning("upload_rejected", filename=file.filename, error=str(e))
        return _error(400, str(e))

    server_logger.info("upload_stored", filename=file.filename, path=path, size=len(raw))
    return JSONResponse(status_code=201, content={"image_url": path})


@app.get("/uploads/{name}")
async def read_upload(name: str):
    path = images.UPLOAD_DIR / name
    # name must stay inside the upload directory
    if path.name != name or not path.is_file():
        return _error(404, "Upload not found")
    return FileResponse(path)


@app.post("/analyze")
def analyze_image(req: AnalyzeRequest):
    return analyze_card_image(req.imageData)


@app.post("/crop")
def crop_image(req: CropRequest):
    try:
        image = load_image(decode_image_data(req.imageData))
        crops = [CropArea(**c.model_dump()) for c in req.crops]
        result = extract_crops(
            image, crops,
            display_width=req.display_width,
            display_height=req.display_height,
            fmt=req.output_format
        )
    except (ImageDecodeError, CropError) as e:
        server_logger.warning("crop_failed", error=str(e))
        return _error(400, str(e))

    server_logger.info("crop_extracted", crops=len(req.crops), image_size=list(image.size))
    return result


@app.post("/crop/drag")
async def drag_crop(req: DragRequest):
    try:
        crop = drag(
            CropArea(**req.crop.model_dump()),
            req.handle, req.dx, req.dy,
            req.bounds_width, req.bounds_height,
            aspect=req.aspect
        )
    except CropError as e:
        return _error(400, str(e))
    return {
        "crop": crop.as_dict(),
        "percent": crop.to_percent(req.bounds_width, req.bounds_height)
    }


@app.post("/effects/apply")
def apply_effects(req: EffectsRequest):
    try:
        image = load_image(decode_image_data(req.imageData))
        result = apply_filters(image, [f.model_dump() for f in req.filters])
        data_url = to_data_url(result, fmt=req.output_format)
    except (ImageDecodeError, EffectError) as e:
        server_logger.warning("effects_failed", error=str(e))
        return _error(400, str(e))
    return {"imageData": data_url, "filters": [f.model_dump() for f in req.filters]}


@app.get("/effects/presets/{rarity}")
async def read_effect_preset(rarity: str):
    try:
        return {"rarity": rarity, "effects": rarity_preset(rarity)}
    except EffectError as e:
        return _error(404, str(e))


# ---------------------------------------------------------------- wizard

def _wizard_or_404(session_id: str):
    session = wizards.get(session_id)
    if not session:
        wizard_logger.warning("wizard_session_not_found", session_id=session_id)
    return session


@app.post("/wizard")
async def start_wizard(req: StartWizardRequest):
    try:
        session = wizards.create(mode=req.mode, creator_id=req.creator_id)
    except ValueError as e:
        return _error(400, str(e))
    wizard_logger.info("wizard_started", session_id=session.session_id, mode=session.mode)
    return JSONResponse(status_code=201, content=session.to_dict())


@app.get("/wizard/{session_id}")
async def read_wizard(session_id: str):
    session = _wizard_or_404(session_id)
    if not session:
        return _error(404, "Wizard session not found")
    return session.to_dict()


@app.post("/wizard/{session_id}/mode")
async def wizard_set_mode(session_id: str, req: WizardModeRequest):
    session = _wizard_or_404(session_id)
    if not session:
        return _error(404, "Wizard session not found")
    try:
        session.set_mode(req.mode)
    except ValueError as e:
        return _error(400, str(e))
    return session.to_dict()


@app.post("/wizard/{session_id}/photo")
async def wizard_select_photo(session_id: str, req: WizardPhotoRequest):
    session = _wizard_or_404(session_id)
    if not session:
        return _error(404, "Wizard session not found")
    session.select_photo(req.image_url)
    wizard_logger.info("wizard_photo_selected", session_id=session_id)
    return session.to_dict()


@app.post("/wizard/{session_id}/template")
async def wizard_select_template(session_id: str, req: WizardTemplateRequest):
    session = _wizard_or_404(session_id)
    if not session:
        return _error(404, "Wizard session not found")
    template = get_template_by_id(req.template_id)
    if not template:
        return _error(404, "Template not found")
    session.select_template(template)
    wizard_logger.info("wizard_template_selected", session_id=session_id, template_id=req.template_id)
    return session.to_dict()


@app.post("/wizard/{session_id}/analysis")
def wizard_apply_analysis(session_id: str, req: WizardAnalysisRequest):
    session = _wizard_or_404(session_id)
    if not session:
        return _error(404, "Wizard session not found")

    analysis = req.analysis
    if analysis is None:
        image_data = req.imageData or session.selected_photo
        if not image_data:
            return _error(400, "Please upload a photo first")
        analysis = analyze_card_image(image_data)

    try:
        suggested = session.apply_analysis(analysis, get_templates())
    except CardValidationError as e:
        return _error(400, str(e), errors=e.errors)
    wizard_logger.info(
        "wizard_analysis_applied",
        session_id=session_id,
        method=analysis.get("analysisMethod"),
        template_id=suggested["id"] if suggested else None
    )
    return {"analysis": analysis, "wizard": session.to_dict()}


@app.post("/wizard/{session_id}/fields")
async def wizard_update_fields(session_id: str, req: WizardUpdateRequest):
    session = _wizard_or_404(session_id)
    if not session:
        return _error(404, "Wizard session not found")
    try:
        session.update_fields(req.updates)
    except CardValidationError as e:
        return _error(400, str(e), errors=e.errors)
    return session.to_dict()


@app.post("/wizard/{session_id}/publishing")
async def wizard_update_publishing(session_id: str, req: WizardUpdateRequest):
    session = _wizard_or_404(session_id)
    if not session:
        return _error(404, "Wizard session not found")
    try:
        session.update_publishing_options(req.updates)
    except CardValidationError as e:
        return _error(400, str(e), errors=e.errors)
    return session.to_dict()


@app.post("/wizard/{session_id}/attribution")
async def wizard_update_attribution(session_id: str, req: WizardUpdateRequest):
    session = _wizard_or_404(session_id)
    if not session:
        return _error(404, "Wizard session not found")
    try:
        session.update_creator_attribution(req.updates)
    except CardValidationError as e:
        return _error(400, str(e), errors=e.errors)
    return session.to_dict()


@app.post("/wizard/{session_id}/next")
async def wizard_next(session_id: str, req: WizardNextRequest = None):
    session = _wizard_or_404(session_id)
    if not session:
        return _error(404, "Wizard session not found")
    target = req.target_step if req else None
    try:
        session.next_step(target)
    except WizardValidationError as e:
        wizard_logger.warning("wizard_step_blocked", session_id=session_id, step=e.step, error=e.message)
        return _error(422, e.message, step=e.step)
    wizard_logger.info("wizard_step_advanced", session_id=session_id, step=session.current_step)
    return session.to_dict()


@app.post("/wizard/{session_id}/back")
async def wizard_back(session_id: str):
    session = _wizard_or_404(session_id)
    if not session:
        return _error(404, "Wizard session not found")
    session.previous_step()
    return session.to_dict()


@app.post("/wizard/{session_id}/complete")
async def wizard_complete(session_id: str):
    session = _wizard_or_404(session_id)
    if not session:
        return _error(404, "Wizard session not found")

    already_saved = session.saved_card_id is not None
    try:
        card = session.complete(_save_new_card, known_template_ids=_template_ids())
    except CardCreationError as e:
        wizard_logger.error("wizard_creation_failed", session_id=session_id, error=str(e))
        status = 400 if isinstance(e.__cause__, CardValidationError) else 500
        return _error(status, "Failed to create card", description=str(e))

    stored = get_card_by_id(card.id)
    if not stored:
        return _error(404, "Card not found")

    if already_saved:
        wizard_logger.info("wizard_complete_repeated", session_id=session_id, card_id=card.id)
    else:
        wizard_logger.info("wizard_card_created", session_id=session_id, card_id=card.id)
    return JSONResponse(status_code=200 if already_saved else 201, content={
        "message": "Card created successfully!",
        "card": stored.model_dump(),
        "wizard": session.to_dict()
    })


@app.post("/wizard/{session_id}/start_over")
async def wizard_start_over(session_id: str):
    session = _wizard_or_404(session_id)
    if not session:
        return _error(404, "Wizard session not found")
    session.start_over()
    return session.to_dict()


@app.delete("/wizard/{session_id}")
async def wizard_discard(session_id: str):
    if not wizards.discard(session_id):
        return _error(404, "Wizard session not found")
    return {"message": "Wizard session discarded"}
