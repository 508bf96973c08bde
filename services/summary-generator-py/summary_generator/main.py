"""HTTP entrypoint for the summary generator.

Run with: python -m summary_generator.main
"""

import sys
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Config, load_config, validate_config
from .coordinator import RequestCoordinator
from .errors import ConfigError
from .extractor import ContentExtractor
from .logging import JsonLogger, create_logger
from .model_client import ModelBackend, build_backend, get_schema
from .prompts import PromptStyle
from .routes import health, summary
from .summarizer import SummaryGenerator


def build_coordinator(
    cfg: Config,
    logger: JsonLogger,
    fetch_client: httpx.AsyncClient,
    backend: ModelBackend,
) -> RequestCoordinator:
    extractor = ContentExtractor(fetch_client, logger)
    generator = SummaryGenerator(
        backend,
        get_schema(cfg.llm_response_schema),
        cfg.llm_model,
        logger,
        style=PromptStyle(cfg.summary_style),
    )
    return RequestCoordinator(extractor, generator, logger)


def create_app(cfg: Optional[Config] = None, coordinator: Optional[RequestCoordinator] = None) -> FastAPI:
    """Build the FastAPI app.

    Process-wide clients (page fetcher, model backend) are created in the
    lifespan and closed on shutdown. Passing ``coordinator`` skips that and
    serves the given instance as-is.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if coordinator is not None:
            yield
            return

        c = cfg or load_config()
        validate_config(c)
        logger = create_logger(c.log_level, service="summary-generator")
        # transport defaults apart from redirects
        fetch_client = httpx.AsyncClient(follow_redirects=True)
        backend = build_backend(c)
        app.state.coordinator = build_coordinator(c, logger, fetch_client, backend)
        logger.info(
            "app.started",
            provider=c.llm_provider,
            model=c.llm_model,
            schema=c.llm_response_schema,
            style=c.summary_style,
        )
        try:
            yield
        finally:
            await fetch_client.aclose()
            await backend.aclose()
            logger.info("app.stopped")

    app = FastAPI(title="Summary Generator", lifespan=lifespan)
    if coordinator is not None:
        app.state.coordinator = coordinator
    app.include_router(health.router)
    app.include_router(summary.router)
    app.add_exception_handler(StarletteHTTPException, summary.method_not_allowed_handler)
    return app


def _uvicorn_level(level: str) -> str:
    return "warning" if level == "warn" else level


def main() -> int:
    cfg = load_config()
    logger = create_logger(cfg.log_level, service="summary-generator")
    try:
        validate_config(cfg)
    except ConfigError as e:
        logger.error("setup.failed", error=str(e))
        return 1

    logger.info("setup.completed", host=cfg.host, port=cfg.port)
    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port, log_level=_uvicorn_level(cfg.log_level))
    return 0


if __name__ == "__main__":
    sys.exit(main())
