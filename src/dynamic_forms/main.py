#!/usr/bin/env python3
"""Dynamic Forms API - form submission and CSV import backend"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from dynamic_forms.config import config
from dynamic_forms.logging_config import setup_logging
from dynamic_forms.models.database import dispose_engine
from dynamic_forms.routers.analytics import router as analytics_router
from dynamic_forms.routers.error_handlers import (
    internal_error_response,
    register_error_handlers,
)
from dynamic_forms.routers.forms import router as forms_router
from dynamic_forms.routers.health import health

# INFO -> stdout, WARNING/ERROR -> stderr
log_level = setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting Dynamic Forms API ({config['environment']})")
    yield
    logger.info("Shutting down gracefully")
    dispose_engine()


app = FastAPI(
    title="Dynamic Forms API",
    description="Collect form submissions from web forms and bulk CSV imports",
    version="1.0.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def catch_unhandled_errors(request: Request, call_next):
    """Turn anything the exception handlers did not claim into a 500 envelope"""
    try:
        return await call_next(request)
    except Exception as e:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return internal_error_response(e)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type"],
)

register_error_handlers(app)

app.include_router(health)
app.include_router(forms_router)
app.include_router(analytics_router)


def run():
    port = config["port"]
    logger.info(f"Starting Dynamic Forms API on 0.0.0.0:{port}")
    logger.info("Health check available at /health")

    try:
        # log_config=None keeps the handlers installed by setup_logging
        uvicorn.run(
            app,
            host="0.0.0.0",
            port=port,
            log_level=log_level,
            log_config=None,
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise


if __name__ == "__main__":
    run()
