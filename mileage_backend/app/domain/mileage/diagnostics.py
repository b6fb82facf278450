"""
Diagnostic events and sinks.

Advisory signals about GPS data quality and mileage plausibility.
They are never errors: a sink receives them, nothing else reacts.
"""

import enum
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol
from uuid import UUID

from pydantic import BaseModel, Field

from mileage_backend.app.core.observability import get_correlation_id

logger = logging.getLogger("mileage.diagnostics")


class DiagnosticKind(str, enum.Enum):
    """
    Diagnostic event kinds.

    HIGH_FILTER_RATE: too many segments lost to the accuracy gate
    NO_DATA: no GPS samples at all in the shift window
    IMPLAUSIBLE_TOTAL: shift total above the plausibility ceiling
    BREAKDOWN_DIVERGENCE: per-delivery sum far from the shift total
    INVERTED_SHIFT_WINDOW: shift ends before it starts
    """
    HIGH_FILTER_RATE = "HIGH_FILTER_RATE"
    NO_DATA = "NO_DATA"
    IMPLAUSIBLE_TOTAL = "IMPLAUSIBLE_TOTAL"
    BREAKDOWN_DIVERGENCE = "BREAKDOWN_DIVERGENCE"
    INVERTED_SHIFT_WINDOW = "INVERTED_SHIFT_WINDOW"


class DiagnosticEvent(BaseModel):
    kind: DiagnosticKind
    message: str
    shift_id: Optional[UUID] = None
    driver_id: Optional[UUID] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    correlation_id: Optional[str] = Field(default_factory=get_correlation_id)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DiagnosticSink(Protocol):
    async def report(self, event: DiagnosticEvent) -> None:
        ...


class LoggingDiagnosticSink:
    """Writes each event as a structured warning record."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    async def report(self, event: DiagnosticEvent) -> None:
        self.log.warning(
            event.message,
            extra={
                "diagnostic_kind": event.kind.value,
                "shift_id": str(event.shift_id) if event.shift_id else None,
                "driver_id": str(event.driver_id) if event.driver_id else None,
                "details": event.details,
                "correlation_id": event.correlation_id,
            }
        )


class RecordingDiagnosticSink:
    """Keeps events in memory. Useful for tests and batch reports."""

    def __init__(self):
        self.events: List[DiagnosticEvent] = []

    async def report(self, event: DiagnosticEvent) -> None:
        self.events.append(event)

    def kinds(self) -> List[DiagnosticKind]:
        return [event.kind for event in self.events]
