# coding: utf-8

"""
    Gem Mirror API

    Compact index (names, versions, info) and spec ingestion endpoints.

    The version of the OpenAPI document: 1.0.0
"""


from fastapi import FastAPI

from mirror_api.apis.compact_index_api import router as CompactIndexApiRouter
from mirror_api.apis.health_api import router as HealthApiRouter
from mirror_api.apis.specs_api import router as SpecsApiRouter

app = FastAPI(
    title="Gem Mirror API",
    description="Compact index (names, versions, info) and spec ingestion endpoints.",
    version="1.0.0",
)

app.include_router(CompactIndexApiRouter)
app.include_router(HealthApiRouter)
app.include_router(SpecsApiRouter)
