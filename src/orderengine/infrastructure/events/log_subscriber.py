"""Subscriber that writes every published domain event to the log."""

from __future__ import annotations

from dataclasses import asdict

import structlog

from orderengine.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


def log_event(event: DomainEvent) -> None:
    payload = asdict(event)
    payload["timestamp"] = event.timestamp.isoformat()
    logger.info("domain_event", event_type=type(event).__name__, **payload)
