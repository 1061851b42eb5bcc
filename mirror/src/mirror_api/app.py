"""Runtime entrypoint that layers startup behaviour on the generated FastAPI app."""

from __future__ import annotations

import logging

from mirror_api import main as generated_main
from mirror_api.db.migrations import upgrade_database
from mirror_api.service.facade import get_mirror_services

LOGGER = logging.getLogger(__name__)

app = generated_main.app


@app.on_event("startup")
def _startup() -> None:
    upgrade_database()
    services = get_mirror_services()
    LOGGER.info(
        "Mirror API ready (ingest lock=%s, workers=%d)",
        type(services.section).__name__,
        services.runner.max_workers,
    )
