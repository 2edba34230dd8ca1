"""
structlog setup and the per-seed wide event.

Every seed gets one summary event that the pipeline fills in as it goes
(crawl counts, extractor outcome, gate result) and that is logged exactly
once when the seed is done, successful or not. Regular log lines carry the
seed's run_id and slug so they can be joined to that summary.

All output goes to stderr; stdout is reserved for --dry-run records.
"""

import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import Processor

_seed_event: ContextVar[dict[str, Any]] = ContextVar("seed_event")
_seed_started_at: ContextVar[float] = ContextVar("seed_started_at", default=0.0)

MAX_ERROR_MESSAGE_LENGTH = 500


def get_seed_event() -> dict[str, Any]:
    """Return the wide event of the seed being processed (empty outside a seed)."""
    return _seed_event.get({})


def enrich_event(**kwargs: Any) -> None:
    """
    Merge fields into the current seed's wide event.

    Dotted keys build nested sections:

        enrich_event(pages_captured=7, **{"crawl.impressum_found": True})
    """
    event = get_seed_event()
    for key, value in kwargs.items():
        *sections, leaf = key.split(".")
        target = event
        for section in sections:
            target = target.setdefault(section, {})
        target[leaf] = value


def init_seed_event(
    seed_url: str,
    slug: str,
    run_id: str | None = None,
    service_name: str = "provider-crawler",
    service_version: str = "dev",
) -> dict[str, Any]:
    event = {
        "run_id": run_id or uuid.uuid4().hex[:8],
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "seed": {"url": seed_url, "slug": slug},
        "service": {"name": service_name, "version": service_version},
    }
    _seed_event.set(event)
    _seed_started_at.set(time.monotonic())
    return event


def finalize_seed_event(error: Exception | None = None) -> dict[str, Any]:
    """Stamp duration and outcome onto the seed's event and return it."""
    event = get_seed_event()
    event["duration_ms"] = int((time.monotonic() - _seed_started_at.get()) * 1000)
    event["outcome"] = "success" if error is None else "error"
    if error is not None:
        event["error"] = {
            "type": type(error).__name__,
            "message": str(error)[:MAX_ERROR_MESSAGE_LENGTH],
        }
    return event


def add_seed_context(logger: Any, method_name: str, event_dict: dict) -> dict:
    """structlog processor: tag log lines with the active seed's run_id and slug."""
    seed_event = get_seed_event()
    if "run_id" in seed_event:
        event_dict["run_id"] = seed_event["run_id"]
        event_dict.setdefault("slug", seed_event.get("seed", {}).get("slug"))
    return event_dict


def configure_logging(json_logs: bool = True, log_level: str = "INFO") -> None:
    """
    Configure structlog (and stdlib logging for third-party libraries).

    Args:
        json_logs: JSON lines when True, colored console output otherwise.
        log_level: Minimum level name, e.g. "DEBUG" or "WARNING".
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_seed_context,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_logs:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)


def emit_wide_event(event: dict[str, Any]) -> None:
    """Log the seed's summary event; hidden records log as warnings."""
    log = structlog.get_logger("wide_event")
    if event.get("outcome") == "error":
        log.error("seed_completed", **event)
    elif event.get("publish_status") == "hidden":
        log.warning("seed_completed", **event)
    else:
        log.info("seed_completed", **event)
