# coding: utf-8

from typing import Dict, List, Optional  # noqa: F401
import importlib
import pkgutil

from mirror_api.apis.compact_index_api_base import BaseCompactIndexApi
import mirror_api.impl

from fastapi import (  # noqa: F401
    APIRouter,
    Depends,
    Header,
    HTTPException,
    Path,
    Response,
)

from mirror_api.service.facade import MirrorServiceFacade, get_mirror_services

_TEXT_RESPONSE = {"content": {"text/plain": {}}}

router = APIRouter()

ns_pkg = mirror_api.impl
for _, name, _ in pkgutil.iter_modules(ns_pkg.__path__, ns_pkg.__name__ + "."):
    importlib.import_module(name)


@router.get(
    "/names",
    responses={
        200: {**_TEXT_RESPONSE, "description": "Every known gem name"},
        304: {"description": "Not modified"},
    },
    tags=["CompactIndex"],
    summary="List gem names",
    response_class=Response,
)
async def get_names(
    if_none_match: Optional[str] = Header(None, alias="If-None-Match"),
    services: MirrorServiceFacade = Depends(get_mirror_services),
) -> Response:
    if not BaseCompactIndexApi.subclasses:
        raise HTTPException(status_code=500, detail="Not implemented")
    return await BaseCompactIndexApi.subclasses[0]().get_names(services, if_none_match)


@router.get(
    "/versions",
    responses={
        200: {**_TEXT_RESPONSE, "description": "Versions list of every gem"},
        304: {"description": "Not modified"},
    },
    tags=["CompactIndex"],
    summary="List gem versions",
    response_class=Response,
)
async def get_versions(
    if_none_match: Optional[str] = Header(None, alias="If-None-Match"),
    services: MirrorServiceFacade = Depends(get_mirror_services),
) -> Response:
    if not BaseCompactIndexApi.subclasses:
        raise HTTPException(status_code=500, detail="Not implemented")
    return await BaseCompactIndexApi.subclasses[0]().get_versions(services, if_none_match)


@router.get(
    "/info/{gem}",
    responses={
        200: {**_TEXT_RESPONSE, "description": "Info body of one gem, empty when unknown"},
        304: {"description": "Not modified"},
    },
    tags=["CompactIndex"],
    summary="Get gem info",
    response_class=Response,
)
async def get_info(
    gem: str = Path(..., description="Gem name"),
    if_none_match: Optional[str] = Header(None, alias="If-None-Match"),
    services: MirrorServiceFacade = Depends(get_mirror_services),
) -> Response:
    if not BaseCompactIndexApi.subclasses:
        raise HTTPException(status_code=500, detail="Not implemented")
    return await BaseCompactIndexApi.subclasses[0]().get_info(gem, services, if_none_match)
