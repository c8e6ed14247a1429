from pydantic import BaseModel, Field
from typing import Any, Dict, Optional


class PluginInstallRequest(BaseModel):
    source_path: str
    type: str
    name: str = Field(..., pattern=r"^[a-z][a-z0-9_]*$")


class PluginSettingsUpdate(BaseModel):
    settings: Dict[str, Any]


class PluginSettingsResponse(BaseModel):
    component: str
    schema_: Dict[str, Dict[str, Any]] = Field(default_factory=dict, alias="schema")
    settings: Dict[str, Any]

    class Config:
        populate_by_name = True


class BlockCreate(BaseModel):
    block_name: str
    page_type: str = Field(..., min_length=1, max_length=100)
    region: Optional[str] = None
    config: Dict[str, Any] = {}
    context_id: Optional[str] = None
    course_id: Optional[str] = None


class BlockUpdate(BaseModel):
    region: Optional[str] = None
    weight: Optional[int] = None
    config: Optional[Dict[str, Any]] = None
    visible: Optional[bool] = None


class BlockMove(BaseModel):
    region: str
    weight: Optional[int] = None


class BlockInstanceResponse(BaseModel):
    id: str
    block_name: str
    page_type: str
    context_id: str
    region: str
    weight: int
    config: Dict[str, Any] = {}
    visible: bool = True
