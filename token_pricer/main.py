from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from token_pricer.api.rate_limit import install_rate_limit
from token_pricer.api.routes import health_router, price_router, tokens_router
from token_pricer.core.config import settings
from token_pricer.core.logging import get_logger
from token_pricer.services.price_service import PriceService

log = get_logger("app")


def create_app(price_service: Optional[PriceService] = None) -> FastAPI:
    """Build the FastAPI app. Tests pass a pre-built ``price_service`` whose settings then apply."""
    config = price_service.settings if price_service is not None else settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info(f"Starting token price API in {config.ENV.upper()} mode")

        service = price_service or PriceService.build(config)
        app.state.price_service = service

        # Snapshot + catalog warm-up; failures leave the service in degraded mode
        await service.initialize()

        yield

        log.info("Shutting down token price API...")
        await service.aclose()
        log.info("Application shutdown complete")

    app = FastAPI(
        title="Solana Token Price API",
        description="Best-effort token prices in USDC via Jupiter quotes with fallback strategies",
        version="1.0.0",
        lifespan=lifespan,
        # Disable docs in production for security
        docs_url="/docs" if config.docs_enabled else None,
        redoc_url="/redoc" if config.docs_enabled else None,
        openapi_url="/openapi.json" if config.docs_enabled else None,
        debug=config.debug_enabled,
    )

    app.include_router(price_router)
    app.include_router(tokens_router)
    app.include_router(health_router)

    install_rate_limit(app, config)
    # added last so it wraps the rate limiter
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Latency-Ms"],
    )
    return app


app = create_app()


def run(host: str = "0.0.0.0", port: int = 3000) -> None:
    uvicorn.run("token_pricer.main:app", host=host, port=port, log_config=None)
