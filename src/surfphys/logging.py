"""
Structured logging configuration for surfphys.

Provides:
- SurfaceLogger: Structured logger with context binding
- get_logger: Get a logger for a specific component
- configure_logging: Configure logging output format

Physics kernels never log. Orchestration (engine loop, driver),
configuration loading and the CLI emit structured events through
structlog, routed into the standard library ``surfphys`` logger.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict, Optional

import structlog


class SurfaceLogger:
    """
    Structured logger for engine and configuration events.

    Example:
        log = SurfaceLogger("engine")
        log = log.bind(n_points=1000, n_ksub=8)

        log.info("run_started", n_steps=365)
        log.debug("step_complete", step=1)
        log.warning("non_finite_state", fields=["tsurf"])
    """

    def __init__(
        self,
        component: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the logger.

        Args:
            component: Component name (e.g., "engine", "config")
            context: Initial context bindings
        """
        self._component = component
        self._context = context or {}
        self._logger = structlog.get_logger(f"surfphys.{component}")
        if context:
            self._logger = self._logger.bind(**context)

    @property
    def component(self) -> str:
        return self._component

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self._context)

    def bind(self, **kwargs: Any) -> "SurfaceLogger":
        """
        Create a new logger with additional context bindings.

        Args:
            **kwargs: Key-value pairs to bind to the logger

        Returns:
            New SurfaceLogger with bound context
        """
        new_context = {**self._context, **kwargs}
        return SurfaceLogger(self._component, new_context)

    def debug(self, event: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._logger.debug(event, **kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        """Log info message."""
        self._logger.info(event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._logger.warning(event, **kwargs)

    def error(self, event: str, **kwargs: Any) -> None:
        """Log error message."""
        self._logger.error(event, **kwargs)

    def exception(self, event: str, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._logger.exception(event, **kwargs)


def get_logger(component: str) -> SurfaceLogger:
    """
    Get a logger for a specific component.

    Args:
        component: Component name (e.g., "engine", "config", "cli")

    Returns:
        SurfaceLogger instance

    Example:
        log = get_logger("config")
        log.info("config_loaded", path="surface.toml")
    """
    return SurfaceLogger(component)


def configure_logging(
    level: str = "INFO",
    format: str = "json",
    output: str = "stderr",
) -> None:
    """
    Configure logging output.

    Args:
        level: Log level ("DEBUG", "INFO", "WARNING", "ERROR")
        format: Output format ("json", "console", "simple")
        output: Output destination ("stderr", "stdout", or file path)

    Example:
        # JSON output for batch runs
        configure_logging(level="INFO", format="json")

        # Pretty console output for development
        configure_logging(level="DEBUG", format="console")
    """
    level_num = getattr(logging, level.upper(), logging.INFO)

    if output == "stderr":
        handler = logging.StreamHandler(sys.stderr)
    elif output == "stdout":
        handler = logging.StreamHandler(sys.stdout)
    else:
        handler = logging.FileHandler(output)

    if format == "console":
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    else:
        handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger = logging.getLogger("surfphys")
    root_logger.setLevel(level_num)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if format == "json":
        renderer = structlog.processors.JSONRenderer()
        stamper = structlog.processors.TimeStamper(fmt="iso")
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=format == "console")
        stamper = structlog.processors.TimeStamper(fmt="%H:%M:%S")

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            stamper,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

