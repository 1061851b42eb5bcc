# coding: utf-8

"""
    Gem Mirror API (v1)
"""

from __future__ import annotations

from pydantic import BaseModel, Field, StrictStr
from typing import Any, ClassVar, Dict, Optional
from typing_extensions import Self


class Error(BaseModel):
    """
    Error envelope returned by every failing endpoint.
    """  # noqa: E501

    error: StrictStr = Field(description="Machine readable error code.")
    message: StrictStr = Field(description="Human readable description.")
    request_id: Optional[StrictStr] = Field(default=None, alias="requestId")
    details: Optional[Dict[str, Any]] = None
    __properties: ClassVar[list[str]] = ["error", "message", "requestId", "details"]

    model_config = {
        "populate_by_name": True,
        "validate_assignment": True,
        "protected_namespaces": (),
    }

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, obj: Optional[Dict[str, Any]]) -> Optional[Self]:
        if obj is None:
            return None
        return cls.model_validate(obj)
