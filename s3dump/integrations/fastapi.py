# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
s3dump FastAPI Integration - HTTP entrypoint for dumps.

Every request runs one complete dump: session, secrets, storage client,
produce/upload pipeline and presigned link. Nothing is shared between
requests.
"""

import time
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import datetime, UTC
from typing import Any, Awaitable, Callable

import structlog
from structlog.contextvars import bound_contextvars
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from ulid import ULID

from s3dump.cloud import (
    connect_storage,
    create_session,
    fetch_credential_bundle,
    presign_download_url,
)
from s3dump.config import DumpConfig
from s3dump.core import object_key_for, run_dump_pipeline
from s3dump.exceptions import StorageError

logger = structlog.get_logger()

# The dump endpoint answers any method
DUMP_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

SessionFactory = Callable[[], Awaitable[Any]]

MSG_SESSION_FAILED = "can't initialize session"
MSG_SECRETS_FAILED = "can't get secrets"
MSG_STORAGE_FAILED = "s3 unavailable"


def _server_timing(start: float) -> dict:
    return {"Server-Timing": f"total;dur={time.perf_counter() - start:.3f}"}


async def handle_dump_request(
    config: DumpConfig,
    session_factory: SessionFactory = create_session,
) -> PlainTextResponse:
    """
    Run one dump and build the HTTP response.

    Status 500 with a short message when the session, the secrets or the
    storage client are unavailable, or with the pipeline's error message
    when the dump fails. Status 200 with the presigned URL on success, or
    with the presigning error when only the link could not be minted.

    Args:
        config: Dump configuration
        session_factory: Coroutine function returning the cloud session

    Returns:
        Plain-text response carrying a Server-Timing header
    """
    start = time.perf_counter()

    with bound_contextvars(dump_id=str(ULID())):
        try:
            session = await session_factory()
        except Exception as e:
            logger.error("session_init_failed", error=str(e))
            return PlainTextResponse(MSG_SESSION_FAILED, status_code=500, headers=_server_timing(start))

        try:
            bundle = await fetch_credential_bundle(session, config)
        except Exception as e:
            logger.error("secrets_unavailable", error=str(e))
            return PlainTextResponse(MSG_SECRETS_FAILED, status_code=500, headers=_server_timing(start))

        async with AsyncExitStack() as stack:
            try:
                s3_client = await connect_storage(stack, session, config, bundle)
            except Exception as e:
                logger.error("storage_unavailable", error=str(e))
                return PlainTextResponse(MSG_STORAGE_FAILED, status_code=500, headers=_server_timing(start))

            key = object_key_for(config, datetime.now(UTC))

            try:
                result = await run_dump_pipeline(config, s3_client, key)
            except Exception as e:
                return PlainTextResponse(str(e), status_code=500, headers=_server_timing(start))

            headers = _server_timing(start)

            try:
                url = await presign_download_url(
                    s3_client,
                    result.upload.bucket,
                    result.upload.key,
                    config.presign_ttl_seconds,
                )
            except StorageError as e:
                logger.error("presign_failed", key=key, error=str(e))
                return PlainTextResponse(
                    f"error generating presigned url: {e.message}",
                    status_code=200,
                    headers=headers,
                )

        logger.info("dump_link_issued", key=key, ttl=config.presign_ttl_seconds)
        return PlainTextResponse(f"{url}\n", status_code=200, headers=headers)


def register_dump_routes(
    app: FastAPI,
    config: DumpConfig,
    path: str = "/",
    session_factory: SessionFactory = create_session,
) -> None:
    """
    Register the dump and health endpoints on a FastAPI app.

    Args:
        app: FastAPI application
        config: Dump configuration
        path: URL path of the dump endpoint (default: /)
        session_factory: Coroutine function returning the cloud session
    """

    async def dump() -> PlainTextResponse:
        """Archive the configured root to S3 and return a download link."""
        return await handle_dump_request(config, session_factory)

    app.add_api_route(
        path,
        dump,
        methods=DUMP_METHODS,
        response_class=PlainTextResponse,
    )

    @app.get("/health")
    async def health_check() -> dict:
        """
        Liveness check.

        Reports the non-secret configuration; no cloud calls are made.
        """
        return {
            "status": "ok",
            "bucket": config.bucket,
            "region": config.region,
            "root_path": str(config.root_path),
            "compression": config.compression.value,
        }


def create_app(
    config: DumpConfig,
    session_factory: SessionFactory = create_session,
    path: str = "/",
) -> FastAPI:
    """
    Create a FastAPI application serving dumps.

    The configuration is validated before this is called and is never
    re-read from the environment while serving.

    Args:
        config: Dump configuration
        session_factory: Coroutine function returning the cloud session
        path: URL path of the dump endpoint

    Returns:
        FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "s3dump_app_started",
            bucket=config.bucket,
            region=config.region,
            root_path=str(config.root_path),
        )
        yield
        logger.info("s3dump_app_stopped")

    app = FastAPI(title="s3dump", lifespan=lifespan)
    app.state.s3dump_config = config
    register_dump_routes(app, config, path=path, session_factory=session_factory)
    return app
