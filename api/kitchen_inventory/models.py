from typing import Optional, Dict, Any, List, Union
from pydantic import BaseModel, Field, AliasChoices, ConfigDict, computed_field, StrictInt

from kitchen_inventory.db_models import StockStatus


class InventoryItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    quantity: int
    status: str
    expiry: str
    cost: str

    @computed_field
    @property
    def status_label(self) -> str:
        parsed = StockStatus.parse(self.status)
        return parsed.display_label if parsed else self.status


# All optional: missing fields are reported by the service (400).
class UpsertItemIn(BaseModel):
    cost: Optional[Union[str, int, float]] = None
    expiry: Optional[str] = None
    status: Optional[str] = None
    quantity: Optional[StrictInt] = None


class UpdateItemIn(BaseModel):
    cost: Optional[Union[str, int, float]] = None
    expiry: Optional[str] = None
    status: Optional[str] = None


class DetectionIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    label: str = Field(validation_alias=AliasChoices("label", "class"))
    confidence: float = Field(default=1.0, ge=0.0, le=1.0, validation_alias=AliasChoices("confidence", "score"))
    bbox: List[float] = Field(default_factory=list, validation_alias=AliasChoices("bbox", "boundingBox"))


class FrameIn(BaseModel):
    detections: List[DetectionIn] = Field(default_factory=list)


class FrameReportOut(BaseModel):
    counts: Dict[str, int]
    dropped: int
    applied: List[Dict[str, Any]]
    failed: List[str]


class HealthOut(BaseModel):
    status: str
    version: str
    database: Dict[str, Any]
