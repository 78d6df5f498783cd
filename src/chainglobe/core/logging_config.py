"""
Structured logging configuration for chainglobe.

Provides JSON-formatted logs with provider and entity context so that soft
failures of the public data providers stay visible even though they never
surface as exceptions.

Usage:
    from chainglobe.core.logging_config import configure_logging, get_logger

    configure_logging(level="INFO", serialize=False, enable_file=False)
    logger = get_logger(__name__)
    logger.bind(event="snapshot_refreshed", entity="Ethereum").info("snapshot_refreshed | Ethereum")
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger


# Values of extra["event"] routed to the provider activity log
PROVIDER_EVENTS = (
    "provider_fetch_ok",
    "provider_fetch_failed",
    "bulk_cache_refreshed",
    "provider_budget_wait",
    "snapshot_refreshed",
    "warmup_failed",
)


CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def _is_provider_event(record: Dict[str, Any]) -> bool:
    return record["extra"].get("event") in PROVIDER_EVENTS


def configure_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    enable_console: bool = True,
    enable_file: bool = True,
    rotation: str = "1 day",
    retention: str = "14 days",
    compression: str = "zip",
    serialize: bool = True
) -> None:
    """
    Replace loguru's default sink with the chainglobe sinks.

    Sinks:
        stderr                   all records at ``level`` (JSON or colored text)
        chainglobe_{time}.log    all records at ``level``
        providers_{time}.log     provider/cache/snapshot events, INFO and up
        errors_{time}.log        WARNING and up (soft provider failures land here)

    Args:
        level: Minimum level for console and main file
        log_dir: Where the rotating files go (default: ./logs)
        enable_console: Add the stderr sink
        enable_file: Add the three file sinks
        rotation, retention, compression: Passed through to loguru
        serialize: One JSON object per line instead of text

    Raises:
        PermissionError, OSError: log_dir cannot be created
    """
    logger.remove()

    if enable_console:
        console = {"serialize": True} if serialize else {"format": CONSOLE_FORMAT, "colorize": True}
        logger.add(sys.stderr, level=level, backtrace=True, diagnose=False, **console)

    if not enable_file:
        return

    log_dir = log_dir or Path("logs")
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        logger.error(f"Log directory {log_dir} is not writable")
        raise PermissionError(f"Failed to create log directory {log_dir}: {e}") from e
    except OSError as e:
        logger.error(f"Log directory {log_dir} could not be created: {e}")
        raise OSError(f"Failed to create log directory {log_dir}: {e}") from e

    file_sinks = (
        ("chainglobe", level, None),
        ("providers", "INFO", _is_provider_event),
        ("errors", "WARNING", None),
    )
    for prefix, sink_level, sink_filter in file_sinks:
        logger.add(
            log_dir / f"{prefix}_{{time}}.log",
            level=sink_level,
            filter=sink_filter,
            rotation=rotation,
            retention=retention,
            compression=compression,
            serialize=serialize,
            backtrace=True,
            diagnose=False
        )


def get_logger(name: str) -> Any:
    """Logger bound to a module name (pass __name__)."""
    return logger.bind(module=name)


class ProviderEventLogger:
    """
    Logger for provider fetch events with standardized fields.

    Every provider outcome is logged with the same keys so that failure
    rates per provider can be grepped out of the provider activity log.
    """

    def __init__(self, provider: str):
        self.logger = logger.bind(provider=provider)
        self.provider = provider

    def _base_context(self, entity: Optional[str]) -> Dict[str, Any]:
        context: Dict[str, Any] = {"provider": self.provider}
        if entity:
            context["entity"] = entity
        return context

    def fetch_ok(self, entity: Optional[str] = None, **kwargs):
        """Log a successful provider fetch."""
        context = self._base_context(entity)
        context.update({"event": "provider_fetch_ok", **kwargs})
        self.logger.bind(**context).debug("provider_fetch_ok")

    def fetch_failed(
        self,
        cause: str,
        entity: Optional[str] = None,
        detail: Optional[str] = None,
        **kwargs
    ):
        """Log a soft provider failure (never re-raised)."""
        context = self._base_context(entity)
        context.update({
            "event": "provider_fetch_failed",
            "cause": cause,
            "detail": detail,
            **kwargs
        })
        self.logger.bind(**context).warning(
            f"provider_fetch_failed | {self.provider} | "
            f"entity={entity or '-'} | cause={cause} | {detail or ''}"
        )

    def bulk_refreshed(self, key: str, items: int, **kwargs):
        """Log a bulk cache refresh."""
        context = self._base_context(None)
        context.update({
            "event": "bulk_cache_refreshed",
            "key": key,
            "items": items,
            **kwargs
        })
        self.logger.bind(**context).info(
            f"bulk_cache_refreshed | {self.provider}:{key} | items={items}"
        )

    def budget_wait(self, wait_seconds: float):
        """Log a call held back by the local call budget."""
        context = self._base_context(None)
        context.update({"event": "provider_budget_wait", "wait_seconds": wait_seconds})
        self.logger.bind(**context).debug(
            f"provider_budget_wait | {self.provider} | wait={wait_seconds}s"
        )
