from __future__ import annotations

import asyncio
import logging

from mirror_api.apis.specs_api_base import BaseSpecsApi
from mirror_api.http.errors import bad_request, internal_error
from mirror_api.models.spec_payload import SpecPayload
from mirror_api.service.facade import MirrorServiceFacade
from mirror_api.service.ingestion import Failed, IngestMode, IngestionResult, Skipped

LOGGER = logging.getLogger(__name__)


def _respond(result: IngestionResult, action: str) -> SpecPayload:
    if isinstance(result, Failed):
        raise internal_error(
            f"Failed to {action} {result.payload.full_name}.",
            error="ingestion_failed",
            details={"reason": str(result.error), "type": type(result.error).__name__},
        )
    if isinstance(result, Skipped):
        LOGGER.info("Skipped %s of %s: %s", action, result.payload.full_name, result.reason)
    return SpecPayload.from_dict(result.payload.to_dict())


class SpecsApiImpl(BaseSpecsApi):
    async def add_spec(
        self,
        spec_payload: SpecPayload,
        services: MirrorServiceFacade,
    ) -> SpecPayload:
        if spec_payload is None:
            raise bad_request("Spec payload is required.")
        result = await asyncio.to_thread(services.ingest, spec_payload.to_domain(), IngestMode.ADD)
        return _respond(result, "add")

    async def remove_spec(
        self,
        spec_payload: SpecPayload,
        services: MirrorServiceFacade,
    ) -> SpecPayload:
        if spec_payload is None:
            raise bad_request("Spec payload is required.")
        result = await asyncio.to_thread(
            services.ingest, spec_payload.to_domain(), IngestMode.REMOVE
        )
        return _respond(result, "remove")
