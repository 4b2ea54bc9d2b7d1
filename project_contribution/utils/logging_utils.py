"""Logging setup for the Project Contribution service."""

import logging
import logging.config
from pathlib import Path
from typing import Optional

import yaml

from ..config.settings import settings

SERVICE_LOGGER_NAME = "project_contribution"


def setup_logging(config_path: Optional[Path] = None, debug: Optional[bool] = None) -> None:
    """
    Configure logging for the contribution service from a dictConfig YAML file.

    Falls back to ``basicConfig`` at INFO when the file is missing or invalid,
    so the service still logs admission denials and GitHub failures.

    Args:
        config_path: Path to the logging configuration YAML file. Defaults to
            ``settings.LOGGING_CONFIG_PATH``.
        debug: Force the service logger to DEBUG. Defaults to ``settings.DEBUG``.
    """
    config_path = Path(config_path or settings.LOGGING_CONFIG_PATH)
    debug = settings.DEBUG if debug is None else debug

    if not config_path.exists():
        logging.basicConfig(level=logging.INFO)
        logging.getLogger(SERVICE_LOGGER_NAME).warning(
            f"Contribution service logging config not found at {config_path}. Using basicConfig."
        )
    else:
        try:
            with open(config_path, 'rt') as f:
                log_config = yaml.safe_load(f.read())
            logging.config.dictConfig(log_config)
        except (OSError, ValueError, TypeError, AttributeError, ImportError, yaml.YAMLError) as e:
            logging.basicConfig(level=logging.INFO)
            logging.getLogger(SERVICE_LOGGER_NAME).error(
                f"Invalid contribution service logging config {config_path}: {e}. Using basicConfig."
            )
        else:
            logging.getLogger(SERVICE_LOGGER_NAME).info(f"Contribution service logging configured from {config_path}")

    if debug:
        logging.getLogger(SERVICE_LOGGER_NAME).setLevel(logging.DEBUG)
