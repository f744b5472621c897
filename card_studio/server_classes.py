from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union

class CreateCardRequest(BaseModel):
    title: str
    description: str = ""
    rarity: Optional[str] = "common"
    tags: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    template_id: Optional[str] = None
    design_metadata: Dict[str, Any] = Field(default_factory=dict)
    publishing_options: Optional[Dict[str, Any]] = None
    creator_attribution: Optional[Dict[str, Any]] = None
    creator_id: Optional[str] = None
    visibility: str = "private"

class UpdateCardRequest(BaseModel):
    # only the fields a client actually sends are applied
    title: Optional[str] = None
    description: Optional[str] = None
    rarity: Optional[str] = None
    tags: Optional[List[str]] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    template_id: Optional[str] = None
    design_metadata: Optional[Dict[str, Any]] = None
    publishing_options: Optional[Dict[str, Any]] = None
    creator_attribution: Optional[Dict[str, Any]] = None
    visibility: Optional[str] = None

class PublishRequest(BaseModel):
    publishing_options: Dict[str, Any] = Field(default_factory=dict)
    visibility: str = "public"

class AnalyzeRequest(BaseModel):
    imageData: str

class CropAreaModel(BaseModel):
    x: float
    y: float
    width: float
    height: float
    rotation: float = 0
    type: str = "main"

class CropRequest(BaseModel):
    imageData: str
    crops: List[CropAreaModel]
    display_width: Optional[float] = None
    display_height: Optional[float] = None
    output_format: str = "PNG"

class DragRequest(BaseModel):
    crop: CropAreaModel
    handle: str
    dx: float
    dy: float
    bounds_width: float
    bounds_height: float
    aspect: Optional[Union[str, float]] = "card"

class FilterModel(BaseModel):
    type: str
    value: float

class EffectsRequest(BaseModel):
    imageData: str
    filters: List[FilterModel]
    output_format: str = "PNG"

class StartWizardRequest(BaseModel):
    mode: str = "quick"
    creator_id: Optional[str] = None

class WizardModeRequest(BaseModel):
    mode: str

class WizardPhotoRequest(BaseModel):
    image_url: str

class WizardTemplateRequest(BaseModel):
    template_id: str

class WizardAnalysisRequest(BaseModel):
    # either run the analysis on imageData, or apply a result the client already has
    imageData: Optional[str] = None
    analysis: Optional[Dict[str, Any]] = None

class WizardUpdateRequest(BaseModel):
    updates: Dict[str, Any]

class WizardNextRequest(BaseModel):
    target_step: Optional[str] = None
