"""Logging configuration for the command line."""

import logging.config


def build_logging_config(verbose: bool = False) -> dict:
    """Return a dictConfig mapping with a single console handler."""
    level = "DEBUG" if verbose else "INFO"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "simple": {"format": "%(levelname)s %(name)s: %(message)s"},
            "verbose": {
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "verbose" if verbose else "simple",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "bankrecon": {"level": level, "handlers": ["console"], "propagate": False},
            # keep SQL noise out of verbose output
            "sqlalchemy": {"level": "WARNING", "propagate": True},
        },
    }


def configure_logging(verbose: bool = False) -> None:
    """Apply the bankrecon logging configuration."""
    logging.config.dictConfig(build_logging_config(verbose))
