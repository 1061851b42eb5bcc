# coding: utf-8

"""
    Gem Mirror API (v1)
"""

from __future__ import annotations

from pydantic import BaseModel, Field, StrictBool, StrictStr
from typing import Any, ClassVar, Dict, Optional
from typing_extensions import Annotated, Self

from mirror_api.domain.models import DEFAULT_PLATFORM, Payload


class SpecPayload(BaseModel):
    """
    Identity of one gem release: name, version, platform and prerelease flag.
    """  # noqa: E501

    name: Annotated[StrictStr, Field(min_length=1)] = Field(description="Gem name.")
    version: Annotated[StrictStr, Field(min_length=1)] = Field(description="Version number.")
    platform: StrictStr = Field(default=DEFAULT_PLATFORM, description="Platform, `ruby` for pure gems.")
    prerelease: StrictBool = Field(default=False, description="Whether the version is a prerelease.")
    __properties: ClassVar[list[str]] = ["name", "version", "platform", "prerelease"]

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

    def to_domain(self) -> Payload:
        return Payload(
            name=self.name,
            version=self.version,
            platform=self.platform or DEFAULT_PLATFORM,
            prerelease=self.prerelease,
        )
