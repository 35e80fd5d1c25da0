"""Entry points for the intake and resolver services."""

import logging
import sys

import uvicorn

from cep_weather.config import Settings, load_settings
from cep_weather.server import build_intake_app, build_resolver_app

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings):
    """
    Setup logging configuration.

    Args:
        settings: Application settings
    """
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stdout,
    )


def run_intake():
    """Run the intake service."""
    settings = load_settings()
    setup_logging(settings)

    logger.info("Starting intake service on %s:%s", settings.INTAKE_HOST, settings.INTAKE_PORT)
    uvicorn.run(
        build_intake_app(settings),
        host=settings.INTAKE_HOST,
        port=settings.INTAKE_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


def run_resolver():
    """Run the resolver service."""
    settings = load_settings()
    setup_logging(settings)

    try:
        app = build_resolver_app(settings)
    except ValueError as exc:
        logger.error("Failed to create resolver app: %s", exc)
        sys.exit(1)

    logger.info("Starting resolver service on %s:%s", settings.RESOLVER_HOST, settings.RESOLVER_PORT)
    uvicorn.run(
        app,
        host=settings.RESOLVER_HOST,
        port=settings.RESOLVER_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
