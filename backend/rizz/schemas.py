# rizz/schemas.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .pickup import Category, GenerationRequest, PickupItem, clamp_count, parse_category


# =========================
# /healthz
# =========================
class HealthOutput(BaseModel):
    ok: bool = True
    build: Optional[str] = None
    routes: Optional[List[str]] = None
    meta: Optional[Dict[str, Any]] = None


# =========================
# /api/generate-pickup-lines
# =========================
class GeneratePickupLinesInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scenario: Optional[str] = None
    count: int = 1
    category: Category = "none"
    include_translations: bool = Field(True, alias="includeTranslations")

    @field_validator("count", mode="before")
    @classmethod
    def _default_count(cls, v: Any) -> Any:
        return 1 if v is None else v

    @field_validator("count")
    @classmethod
    def _clamp_count(cls, v: int) -> int:
        return clamp_count(v)

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, v: Any) -> str:
        if v is not None and not isinstance(v, str):
            raise ValueError("category must be a string")
        return parse_category(v)

    def to_request(self) -> GenerationRequest:
        return GenerationRequest(
            scenario=self.scenario or "",
            requested_count=self.count,
            category=self.category,
            include_translations=self.include_translations,
        )


class PickupLineOut(BaseModel):
    tagalog: str
    translation: str = ""

    @classmethod
    def from_item(cls, item: PickupItem) -> "PickupLineOut":
        return cls(**item.to_wire())


class GeneratePickupLinesOutput(BaseModel):
    lines: List[PickupLineOut] = Field(default_factory=list)
    note: Optional[str] = None


# =========================
# /api/generate (single free-form line)
# =========================
class GenerateInput(BaseModel):
    prompt: Optional[str] = ""


class GenerateOutput(BaseModel):
    text: str
    note: Optional[str] = None


# =========================
# /api/favorites
# =========================
class FavoriteCreateInput(BaseModel):
    content: Optional[str] = None
    translation: Optional[str] = None


# =========================
# /api/auth/session
# =========================
class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None


class SessionOutput(BaseModel):
    user: Optional[SessionUser] = None
