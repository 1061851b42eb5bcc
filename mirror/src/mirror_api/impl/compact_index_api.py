from __future__ import annotations

from typing import Optional

from fastapi import Response, status
from fastapi.responses import PlainTextResponse

from mirror_api.apis.compact_index_api_base import BaseCompactIndexApi
from mirror_api.service.facade import MirrorServiceFacade
from mirror_api.service.index_cache import CachedBody


def _conditional_response(entry: CachedBody, if_none_match: Optional[str]) -> Response:
    headers = {"ETag": entry.etag}
    if entry.matches(if_none_match):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)
    return PlainTextResponse(entry.body, headers=headers)


class CompactIndexApiImpl(BaseCompactIndexApi):
    async def get_names(
        self,
        services: MirrorServiceFacade,
        if_none_match: Optional[str],
    ) -> Response:
        return _conditional_response(services.index_cache.names(), if_none_match)

    async def get_versions(
        self,
        services: MirrorServiceFacade,
        if_none_match: Optional[str],
    ) -> Response:
        return _conditional_response(services.index_cache.versions(), if_none_match)

    async def get_info(
        self,
        gem: str,
        services: MirrorServiceFacade,
        if_none_match: Optional[str],
    ) -> Response:
        return _conditional_response(services.index_cache.info(gem), if_none_match)
