"""Pydantic models for marker input records."""

from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class MarkerRecord(BaseModel):
    """
    A caller-supplied marker record.

    Only ``key`` and ``position`` matter for clustering; every other field is
    kept as-is and handed back to the rendering layer.
    """

    key: Optional[str] = Field(default=None, description="Stable marker identifier")
    position: Optional[str] = Field(default=None, description="'lng,lat' in decimal degrees")
    name: Optional[str] = Field(default=None, description="Display label")

    model_config = {"extra": "allow", "populate_by_name": True}

    @field_validator("key", "name", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        if value is None or (isinstance(value, float) and math.isnan(value)):
            return None
        return str(value)

    @field_validator("position", mode="before")
    @classmethod
    def _normalize_position(cls, value: Any) -> Optional[str]:
        if value is None or (isinstance(value, float) and math.isnan(value)):
            return None
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return f"{value[0]},{value[1]}"
        text = str(value).strip()
        return text or None
