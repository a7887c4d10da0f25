"""HTTP trigger for ingestion runs, for use with an external scheduler."""

from __future__ import annotations

import logging
import secrets

from fastapi import FastAPI, Header
from fastapi.responses import JSONResponse

from . import __version__
from .config import AppConfig, get_ingest_secret
from .logging_utils import log_event
from .runner import run_ingestion
from .store import Store
from .summarize.base import Summarizer


def create_app(
    cfg: AppConfig,
    store: Store,
    summarizer: Summarizer,
    logger: logging.Logger | None = None,
) -> FastAPI:
    """Build the FastAPI app exposing ``/api/ingest``.

    Raises:
        ValueError: If no ingestion secret is configured
    """
    secret = get_ingest_secret(cfg.server)
    if not secret:
        raise ValueError(
            f"Ingestion secret is not configured (set {cfg.server.ingest_secret_env} or server.ingest_secret)"
        )
    logger = logger or logging.getLogger("policy_feed")

    app = FastAPI(
        title="Policy Feed",
        description="Trigger and inspect Pennsylvania policy news ingestion",
        version=__version__,
    )

    @app.post("/api/ingest")
    def trigger_ingest(authorization: str | None = Header(default=None)):
        """Run one ingestion cycle. Requires ``Authorization: Bearer <secret>``."""
        if not _authorized(authorization, secret):
            log_event(logger, "Unauthorized ingest request", level=logging.WARNING, event="ingest_unauthorized")
            return JSONResponse({"error": "Unauthorized"}, status_code=401)
        try:
            result = run_ingestion(cfg, store, summarizer, logger=logger)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Ingestion failed")
            return JSONResponse(
                {"error": "Ingestion failed", "message": f"{type(exc).__name__}: {exc}"},
                status_code=500,
            )
        return {"success": True, "results": result.to_dict()}

    @app.get("/api/ingest")
    def ingest_status():
        """Report store counts."""
        try:
            stats = store.stats()
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to read store stats")
            return JSONResponse(
                {"error": "Failed to get status", "message": f"{type(exc).__name__}: {exc}"},
                status_code=500,
            )
        return {"status": "ready", "stats": stats}

    return app


def _authorized(header: str | None, secret: str) -> bool:
    if not header:
        return False
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return False
    return secrets.compare_digest(token.strip().encode("utf-8"), secret.encode("utf-8"))
