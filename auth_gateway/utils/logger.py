"""
Logging utilities for the auth gateway

Configures structlog on top of stdlib logging. A YAML dictConfig file can
replace the default stdlib handler setup.
"""

import logging
import logging.config
import os
import sys
from typing import Any, Dict, Optional

import structlog
import yaml


DEFAULT_LOGGING_CONFIG: Dict[str, Any] = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'plain': {
            'format': '%(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'level': 'INFO',
            'formatter': 'plain',
            'stream': 'ext://sys.stdout',
        },
    },
    'root': {
        'level': 'INFO',
        'handlers': ['console'],
    },
    'loggers': {
        'httpx': {'level': 'WARNING'},
        'httpcore': {'level': 'WARNING'},
    },
}


def _load_config_file(config_path: str) -> Optional[Dict[str, Any]]:
    """Load a YAML logging configuration, or None if unusable"""
    if not os.path.exists(config_path):
        print(f"Logging config not found at {config_path}, using defaults", file=sys.stderr)
        return None
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        print(f"Failed to load logging config from {config_path}: {e}", file=sys.stderr)
        return None
    if not isinstance(config, dict) or 'version' not in config:
        print(f"Logging config at {config_path} is not a dictConfig mapping", file=sys.stderr)
        return None
    return config


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    config_path: Optional[str] = None,
) -> None:
    """
    Setup logging configuration

    Args:
        log_level: Root log level
        log_format: 'json' for machine-readable output, 'console' for development
        config_path: Optional YAML dictConfig file for stdlib handlers
    """
    level = log_level.upper()

    config = _load_config_file(config_path) if config_path else None
    if config is None:
        config = {
            **DEFAULT_LOGGING_CONFIG,
            'handlers': {
                name: {**handler, 'level': level}
                for name, handler in DEFAULT_LOGGING_CONFIG['handlers'].items()
            },
            'root': {**DEFAULT_LOGGING_CONFIG['root'], 'level': level},
        }
    logging.config.dictConfig(config)

    if log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger bound to the given name"""
    return structlog.get_logger(name)
