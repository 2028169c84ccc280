"""
Logging setup.

Library modules only create loggers with ``logging.getLogger(__name__)``;
the embedding application calls ``setup_logging()`` once at startup.
"""

import logging

from toggle_rollout.core.config import Settings, settings as default_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def resolve_log_level(config: Settings) -> int:
    """Explicit LOG_LEVEL wins, otherwise DEBUG switches between DEBUG and INFO."""
    if config.LOG_LEVEL:
        return logging.getLevelName(config.LOG_LEVEL)
    return logging.DEBUG if config.DEBUG else logging.INFO


def setup_logging(config: Settings | None = None) -> None:
    """Configure root logging from settings."""
    config = config or default_settings
    logging.basicConfig(level=resolve_log_level(config), format=LOG_FORMAT)
    logging.getLogger(__name__).info(
        f"Logging configured for {config.APP_NAME} in {config.APP_ENV} mode"
    )
