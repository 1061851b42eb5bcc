# coding: utf-8

from typing import ClassVar, Dict, List, Tuple  # noqa: F401

from mirror_api.models.spec_payload import SpecPayload
from mirror_api.service.facade import MirrorServiceFacade


class BaseSpecsApi:
    subclasses: ClassVar[Tuple] = ()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        BaseSpecsApi.subclasses = BaseSpecsApi.subclasses + (cls,)
    async def add_spec(
        self,
        spec_payload: SpecPayload,
        services: MirrorServiceFacade,
    ) -> SpecPayload:
        ...


    async def remove_spec(
        self,
        spec_payload: SpecPayload,
        services: MirrorServiceFacade,
    ) -> SpecPayload:
        ...
