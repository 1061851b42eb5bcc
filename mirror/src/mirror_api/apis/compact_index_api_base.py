# coding: utf-8

from typing import ClassVar, Dict, List, Tuple, Optional  # noqa: F401

from fastapi import Response

from mirror_api.service.facade import MirrorServiceFacade


class BaseCompactIndexApi:
    subclasses: ClassVar[Tuple] = ()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        BaseCompactIndexApi.subclasses = BaseCompactIndexApi.subclasses + (cls,)
    async def get_names(
        self,
        services: MirrorServiceFacade,
        if_none_match: Optional[str],
    ) -> Response:
        ...


    async def get_versions(
        self,
        services: MirrorServiceFacade,
        if_none_match: Optional[str],
    ) -> Response:
        ...


    async def get_info(
        self,
        gem: str,
        services: MirrorServiceFacade,
        if_none_match: Optional[str],
    ) -> Response:
        ...
