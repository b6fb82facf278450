"""
Consistency Monitor.

Non-blocking plausibility checks run alongside mileage computation.
Checks only build DiagnosticEvents; they never modify the computed numbers.
Emission to the sink is scheduled as a background task, so a slow or
failing sink never delays or fails the caller.
"""

import asyncio
import logging
import math
from typing import List, Optional, Sequence, Set
from uuid import UUID

from mileage_backend.app.core.mileage_config import MileageConfig
from mileage_backend.app.domain.mileage.diagnostics import (
    DiagnosticEvent, DiagnosticKind, DiagnosticSink, LoggingDiagnosticSink
)
from mileage_backend.app.schemas.mileage import DeliveryDistance, ShiftWindow, WindowDistance

logger = logging.getLogger("mileage.monitor")


def check_window(
    shift: ShiftWindow,
    window: WindowDistance,
    config: MileageConfig,
    delivery_id: Optional[UUID] = None,
) -> List[DiagnosticEvent]:
    """No-data and high-filter-rate checks for a shift or delivery window."""
    events = []
    scope = {"delivery_id": str(delivery_id)} if delivery_id else {}

    if window.raw_sample_count == 0:
        events.append(DiagnosticEvent(
            kind=DiagnosticKind.NO_DATA,
            message="No GPS samples recorded in window",
            shift_id=shift.shift_id,
            driver_id=shift.driver_id,
            details={
                **scope,
                "window_start": window.window_start.isoformat(),
                "window_end": window.window_end.isoformat(),
            }
        ))
        return events

    rate = window.accuracy_filter_rate
    if rate >= config.filter_rate_threshold:
        events.append(DiagnosticEvent(
            kind=DiagnosticKind.HIGH_FILTER_RATE,
            message="High share of GPS data rejected by accuracy gate",
            shift_id=shift.shift_id,
            driver_id=shift.driver_id,
            details={
                **scope,
                "filter_rate": round(rate, 4),
                "threshold": config.filter_rate_threshold,
                "raw_samples": window.raw_sample_count,
                "accurate_samples": window.accurate_sample_count,
                "raw_segments": window.raw_segment_count,
                "candidate_segments": window.candidate_segment_count,
            }
        ))

    return events


def check_total(shift: ShiftWindow, total_km: float, config: MileageConfig) -> List[DiagnosticEvent]:
    if total_km <= config.implausible_total_km:
        return []
    return [DiagnosticEvent(
        kind=DiagnosticKind.IMPLAUSIBLE_TOTAL,
        message="Shift mileage exceeds plausibility ceiling",
        shift_id=shift.shift_id,
        driver_id=shift.driver_id,
        details={"total_km": total_km, "ceiling_km": config.implausible_total_km}
    )]


def check_breakdown(
    shift: ShiftWindow,
    total_km: float,
    deliveries: Sequence[DeliveryDistance],
    config: MileageConfig,
) -> List[DiagnosticEvent]:
    """
    Compare the per-delivery sum with the independently computed total.

    Skipped when the total is zero or the shift has no deliveries.
    """
    if total_km <= 0 or not deliveries:
        return []

    deliveries_km = math.fsum(d.distance_km for d in deliveries)
    deviation = abs(deliveries_km - total_km) / total_km
    if deviation <= config.divergence_threshold:
        return []

    return [DiagnosticEvent(
        kind=DiagnosticKind.BREAKDOWN_DIVERGENCE,
        message="Delivery breakdown diverges from shift total",
        shift_id=shift.shift_id,
        driver_id=shift.driver_id,
        details={
            "total_km": total_km,
            "deliveries_km": deliveries_km,
            "deviation": round(deviation, 4),
            "threshold": config.divergence_threshold,
            "delivery_count": len(deliveries),
        }
    )]


def check_shift_bounds(shift: ShiftWindow) -> List[DiagnosticEvent]:
    if not shift.is_inverted:
        return []
    return [DiagnosticEvent(
        kind=DiagnosticKind.INVERTED_SHIFT_WINDOW,
        message="Shift ends before it starts; mileage treated as zero",
        shift_id=shift.shift_id,
        driver_id=shift.driver_id,
        details={"shift_start": shift.start.isoformat(), "shift_end": shift.end.isoformat()}
    )]


class ConsistencyMonitor:

    def __init__(self, config: MileageConfig, sink: Optional[DiagnosticSink] = None):
        self.config = config
        self.sink = sink or LoggingDiagnosticSink()
        self._pending: Set[asyncio.Task] = set()

    def observe_shift(self, shift: ShiftWindow, window: WindowDistance, total_km: float) -> List[DiagnosticEvent]:
        events = check_shift_bounds(shift)
        if not shift.is_inverted:
            events += check_window(shift, window, self.config)
        events += check_total(shift, total_km, self.config)
        self.schedule(events)
        return events

    def observe_breakdown(
        self,
        shift: ShiftWindow,
        total_km: float,
        deliveries: Sequence[DeliveryDistance],
        delivery_windows: Sequence[WindowDistance] = (),
    ) -> List[DiagnosticEvent]:
        """
        Check the breakdown against the total and each measured delivery window.

        ``delivery_windows`` holds only windows that were actually measured;
        invalid delivery windows are never aggregated and have nothing to check.
        """
        events = []
        for delivery, window in zip(deliveries, delivery_windows):
            if window is not None:
                events += check_window(shift, window, self.config, delivery_id=delivery.delivery_id)
        events += check_breakdown(shift, total_km, deliveries, self.config)
        self.schedule(events)
        return events

    def schedule(self, events: Sequence[DiagnosticEvent]) -> None:
        """Hand events to the sink without waiting for it."""
        if not events:
            return
        task = asyncio.create_task(self.emit(list(events)))
        self._pending.add(task)
        task.add_done_callback(self._on_emitted)

    async def drain(self) -> None:
        """Wait for every scheduled emission. Used at shutdown and in tests."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def emit(self, events: Sequence[DiagnosticEvent]) -> None:
        for event in events:
            try:
                await self.sink.report(event)
            except Exception:
                # Advisory channel only: log and carry on
                logger.exception(
                    "Diagnostic sink failed",
                    extra={"diagnostic_kind": event.kind.value, "shift_id": str(event.shift_id)}
                )

    def _on_emitted(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("Diagnostic emission cancelled")
        elif task.exception() is not None:
            logger.error("Diagnostic emission failed", exc_info=task.exception())
