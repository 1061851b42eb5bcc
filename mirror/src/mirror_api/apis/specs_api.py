# coding: utf-8

from typing import Dict, List  # noqa: F401
import importlib
import pkgutil

from mirror_api.apis.specs_api_base import BaseSpecsApi
import mirror_api.impl

from fastapi import (  # noqa: F401
    APIRouter,
    Body,
    Depends,
    HTTPException,
)

from mirror_api.models.error import Error
from mirror_api.models.spec_payload import SpecPayload
from mirror_api.service.facade import MirrorServiceFacade, get_mirror_services

router = APIRouter()

ns_pkg = mirror_api.impl
for _, name, _ in pkgutil.iter_modules(ns_pkg.__path__, ns_pkg.__name__ + "."):
    importlib.import_module(name)


@router.post(
    "/api/v1/add_spec.json",
    responses={
        200: {"model": SpecPayload, "description": "OK"},
        400: {"model": Error, "description": "Invalid input"},
        500: {"model": Error, "description": "Ingestion failed"},
    },
    tags=["Specs"],
    summary="Ingest one gem release",
    response_model_by_alias=True,
)
async def add_spec(
    spec_payload: SpecPayload = Body(None, description=""),
    services: MirrorServiceFacade = Depends(get_mirror_services),
) -> SpecPayload:
    if not BaseSpecsApi.subclasses:
        raise HTTPException(status_code=500, detail="Not implemented")
    return await BaseSpecsApi.subclasses[0]().add_spec(spec_payload, services)


@router.post(
    "/api/v1/remove_spec.json",
    responses={
        200: {"model": SpecPayload, "description": "OK"},
        400: {"model": Error, "description": "Invalid input"},
        500: {"model": Error, "description": "Removal failed"},
    },
    tags=["Specs"],
    summary="Retract one gem release from the index",
    response_model_by_alias=True,
)
async def remove_spec(
    spec_payload: SpecPayload = Body(None, description=""),
    services: MirrorServiceFacade = Depends(get_mirror_services),
) -> SpecPayload:
    if not BaseSpecsApi.subclasses:
        raise HTTPException(status_code=500, detail="Not implemented")
    return await BaseSpecsApi.subclasses[0]().remove_spec(spec_payload, services)
