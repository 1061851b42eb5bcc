# coding: utf-8

"""
    Gem Mirror API (v1)
"""

from __future__ import annotations

from pydantic import BaseModel, Field, StrictStr
from typing import ClassVar


class HealthStatus(BaseModel):
    status: StrictStr = Field(description="Service status.")
    __properties: ClassVar[list[str]] = ["status"]
