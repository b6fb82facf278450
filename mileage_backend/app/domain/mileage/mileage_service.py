"""
Mileage Service (Domain Logic).

Public entry point of the mileage engine. Computes GPS-derived shift mileage,
optionally with a per-delivery breakdown, and writes the shift total back.

Flow:
1. Validate identifier (no store access on failure)
2. Resolve shift window (and delivery windows, concurrently)
3. Aggregate shift total and delivery distances, concurrently
4. Persist shift total (only after every read succeeded)
5. Schedule advisories on the consistency monitor (not awaited)

Recomputation is idempotent: the same samples always give the same numbers
and the same persisted value.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional, Union
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import async_sessionmaker

from mileage_backend.app.core.exceptions import ResourceNotFoundError
from mileage_backend.app.core.mileage_config import MileageConfig
from mileage_backend.app.core.validators import parse_identifier
from mileage_backend.app.domain.mileage.consistency_monitor import ConsistencyMonitor
from mileage_backend.app.domain.mileage.delivery_windows import DeliveryWindowResolver, derive_window
from mileage_backend.app.domain.mileage.diagnostics import DiagnosticSink
from mileage_backend.app.domain.mileage.sample_store import SampleStore
from mileage_backend.app.domain.mileage.shift_window import ShiftWindowResolver, utc_now
from mileage_backend.app.domain.mileage.window_distance import WindowDistanceAggregator, safe_distance_km
from mileage_backend.app.models.driver_shift import DriverShift
from mileage_backend.app.schemas.mileage import (
    DeliveryDistance, DeliveryWindow, MileageBreakdown, MileageResult, ShiftWindow, WindowDistance
)

logger = logging.getLogger("mileage.service")


class MileageService:

    def __init__(
        self,
        session_factory: async_sessionmaker,
        config: Optional[MileageConfig] = None,
        sink: Optional[DiagnosticSink] = None,
        clock: Callable[[], datetime] = utc_now,
        aggregator: Optional[WindowDistanceAggregator] = None,
    ):
        self.session_factory = session_factory
        self.config = config or MileageConfig.from_settings()
        self.clock = clock
        self.aggregator = aggregator or WindowDistanceAggregator(SampleStore(session_factory), self.config)
        self.shift_resolver = ShiftWindowResolver(session_factory, clock=clock)
        self.delivery_resolver = DeliveryWindowResolver(session_factory)
        self.monitor = ConsistencyMonitor(self.config, sink)

    async def compute_shift_mileage(self, shift_id: Union[str, UUID]) -> MileageResult:
        """
        Compute and persist the GPS distance of a shift.

        Raises:
            InvalidIdentifierError: Malformed shift_id
            ResourceNotFoundError: No such shift
        """
        shift_uuid = parse_identifier(shift_id, "shift_id")

        shift = await self.shift_resolver.resolve(shift_uuid)
        if shift is None:
            raise ResourceNotFoundError("Shift", shift_uuid)

        window = await self._measure_shift(shift)
        total_km = window.distance_km

        await self._persist_total(shift.shift_id, total_km)
        self.monitor.observe_shift(shift, window, total_km)

        logger.info(
            "Shift mileage computed",
            extra={"shift_id": str(shift.shift_id), "total_km": total_km}
        )
        return MileageResult(shift_id=shift.shift_id, total_km=total_km)

    async def compute_shift_mileage_with_breakdown(self, shift_id: Union[str, UUID]) -> MileageBreakdown:
        """
        Compute the shift total plus one distance per delivery.

        Each delivery is measured independently over its own window, so the
        breakdown need not sum exactly to the total. Only the shift total is
        persisted.

        Raises:
            InvalidIdentifierError: Malformed shift_id
            ResourceNotFoundError: No such shift
        """
        shift_uuid = parse_identifier(shift_id, "shift_id")

        shift, deliveries = await asyncio.gather(
            self.shift_resolver.resolve(shift_uuid),
            self.delivery_resolver.load(shift_uuid),
        )
        if shift is None:
            raise ResourceNotFoundError("Shift", shift_uuid)

        windows = [derive_window(delivery, shift) for delivery in deliveries]

        window, *measured = await asyncio.gather(
            self._measure_shift(shift),
            *(self._measure_delivery(shift, delivery_window) for delivery_window in windows),
        )
        total_km = window.distance_km
        breakdown = [
            DeliveryDistance(
                delivery_id=delivery_window.delivery_id,
                distance_km=safe_distance_km(delivery.distance_km) if delivery is not None else 0.0
            )
            for delivery_window, delivery in zip(windows, measured)
        ]

        await self._persist_total(shift.shift_id, total_km)
        self.monitor.observe_shift(shift, window, total_km)
        self.monitor.observe_breakdown(shift, total_km, breakdown, measured)

        logger.info(
            "Shift mileage breakdown computed",
            extra={
                "shift_id": str(shift.shift_id),
                "total_km": total_km,
                "delivery_count": len(breakdown),
            }
        )
        return MileageBreakdown(shift_id=shift.shift_id, total_km=total_km, deliveries=breakdown)

    async def measure_driver_window(
        self,
        driver_id: Union[str, UUID],
        start: datetime,
        end: datetime,
    ) -> WindowDistance:
        """
        Distance travelled by a driver in an arbitrary window. Nothing is persisted.

        Raises:
            InvalidIdentifierError: Malformed driver_id
        """
        driver_uuid = parse_identifier(driver_id, "driver_id")
        return await self.aggregator.measure(driver_uuid, start, end)

    async def _measure_shift(self, shift: ShiftWindow) -> WindowDistance:
        if shift.is_inverted:
            return WindowDistance(driver_id=shift.driver_id, window_start=shift.start, window_end=shift.end)
        return await self.aggregator.measure(shift.driver_id, shift.start, shift.end)

    async def _measure_delivery(self, shift: ShiftWindow, window: DeliveryWindow) -> Optional[WindowDistance]:
        # Untrustworthy window: not measured, recorded as zero
        if not window.is_valid:
            logger.debug(
                "Skipping delivery with empty window",
                extra={"shift_id": str(shift.shift_id), "delivery_id": str(window.delivery_id)}
            )
            return None
        return await self.aggregator.measure(shift.driver_id, window.start, window.end)

    async def _persist_total(self, shift_id: UUID, total_km: float) -> None:
        """Last-writer-wins overwrite of the shift total."""
        stmt = update(DriverShift).where(
            DriverShift.id == shift_id
        ).values(
            total_distance_km=safe_distance_km(total_km),
            updated_at=self.clock()
        )
        async with self.session_factory() as session:
            await session.execute(stmt)
            await session.commit()
