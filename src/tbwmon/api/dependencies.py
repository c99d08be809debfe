"""
API dependency injection configuration.

This module provides the dependency functions used by the FastAPI routes. The
service is a process-wide singleton built from the configuration file; tests
replace it through ``app.dependency_overrides``.
"""

import logging
from typing import Optional

from ..config import TbwmonConfig, load_config
from ..service import TbwService

# Set up logging
logger = logging.getLogger(__name__)

# Singleton instances
_config: Optional[TbwmonConfig] = None
_service: Optional[TbwService] = None


def get_config() -> TbwmonConfig:
    """Get or load the configuration singleton."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: TbwmonConfig) -> None:
    """Install an explicit configuration before the service is built."""
    global _config, _service
    _config = config
    _service = None


def get_service() -> TbwService:
    """Get or create the TbwService singleton instance."""
    global _service
    if _service is None:
        logger.info("Initializing TbwService")
        _service = TbwService.from_config(get_config())
    return _service


def reset_service() -> None:
    """Close and forget the service singleton."""
    global _service
    if _service is not None:
        _service.close()
        _service = None
