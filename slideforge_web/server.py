"""
FastAPI Server for SlideForge

Browser form plus REST API that turns a topic into a downloadable .pptx.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import argparse
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from slideforge_core.config import SlideForgeConfig, get_config, load_config
from slideforge_core.errors import SlideForgeError
from slideforge_core.logging_utils import mask_secrets, setup_logging
from slideforge_core.orchestrator import GenerationOrchestrator
from slideforge_core.version import __version__ as SLIDEFORGE_VERSION

from .rate_limit import RateLimiter, install_rate_limit
from .routers import (
    design_router,
    generation_router,
    set_design_orchestrator,
    set_generation_orchestrator,
)

logger = logging.getLogger(__name__)

static_dir = Path(__file__).parent / "static"

FALLBACK_INDEX = """
<html>
    <head><title>SlideForge</title></head>
    <body>
        <h1>SlideForge</h1>
        <p>Frontend not found. Please ensure static files are in slideforge_web/static/</p>
    </body>
</html>
"""


def create_app(
    config: Optional[SlideForgeConfig] = None,
    orchestrator: Optional[GenerationOrchestrator] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Configuration (default: global config from slideforge.yaml + env)
        orchestrator: Pre-built orchestrator (default: built from config)
    """
    config = config or get_config()
    orchestrator = orchestrator or GenerationOrchestrator.from_config(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Files orphaned by a previous run or an aborted client
        orchestrator.sweep_stale_files()
        mode = f"AI ({config.llm.backend})" if orchestrator.ai_available else "demo"
        logger.info(f"SlideForge {SLIDEFORGE_VERSION} ready, content mode: {mode}")
        yield

    app = FastAPI(
        title="SlideForge",
        description="AI presentation generator: topic in, .pptx out",
        version=SLIDEFORGE_VERSION,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Generation-Mode", "X-Generation-Model"],
    )
    if config.rate_limit.enabled:
        install_rate_limit(app, RateLimiter(config.rate_limit))

    # -------------------------------------------------------------------------
    # Error rendering: {error, details?, suggestion?}
    # -------------------------------------------------------------------------

    @app.exception_handler(SlideForgeError)
    async def slideforge_error_handler(request: Request, exc: SlideForgeError):
        log = logger.warning if exc.status_code < 500 else logger.error
        log(f"{request.method} {request.url.path} → {exc.status_code} {exc.error}: "
            f"{mask_secrets(exc.details or '')}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in exc.errors()
        )
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid request",
                "details": details,
                "suggestion": "Send a JSON body with at least a 'topic' field.",
            },
        )

    # -------------------------------------------------------------------------
    # Routes
    # -------------------------------------------------------------------------

    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    set_generation_orchestrator(orchestrator)
    set_design_orchestrator(orchestrator)
    app.include_router(generation_router)
    app.include_router(design_router)

    @app.get("/", response_class=HTMLResponse)
    async def read_root():
        """Serve the presentation form."""
        index_path = static_dir / "index.html"
        if index_path.exists():
            return index_path.read_text(encoding="utf-8")
        return FALLBACK_INDEX

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": SLIDEFORGE_VERSION,
        }

    return app


def main():
    """Main entry point for slideforge-web CLI."""
    parser = argparse.ArgumentParser(
        prog="slideforge-web",
        description="SlideForge Web - AI presentation generator",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (default: server.host from config, 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind to (default: server.port from config or $PORT, 5000)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to slideforge.yaml (default: search upward from the working directory)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: logging.level from config)",
    )

    args = parser.parse_args()

    # .env first so that keys reach the config overrides
    load_dotenv()
    config = load_config(Path(args.config)) if args.config else get_config()
    setup_logging(args.log_level or config.logging.level)

    host = args.host or config.server.host
    port = args.port or config.server.port
    app = create_app(config)

    print("=" * 60)
    print("SlideForge Web")
    print("=" * 60)
    print(f"Server: http://{host}:{port}")
    print(f"LLM: {config.llm.backend} ({', '.join(config.llm.models)})"
          f"{'' if config.llm.has_credentials else ' - no key, demo mode'}")
    print(f"Output: {Path(config.server.output_dir).resolve()}")
    print("=" * 60)
    print("\nPress Ctrl+C to stop")
    print()

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
