"""
Driver Shift database model.

A shift is a bounded work session for one driver.
"""

import uuid

from sqlalchemy import Column, Float, DateTime, Uuid
from sqlalchemy.sql import func
from mileage_backend.app.db.session import Base


class DriverShift(Base):
    """
    Driver Shift model.

    ``shift_end`` is NULL while the shift is still open.
    The mileage engine only ever writes ``total_distance_km`` and ``updated_at``.
    """
    __tablename__ = "driver_shifts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    driver_id = Column(Uuid, nullable=False, index=True)

    shift_start = Column(DateTime(timezone=True), nullable=False)
    shift_end = Column(DateTime(timezone=True), nullable=True)

    # GPS-derived mileage (written back by the engine)
    total_distance_km = Column(Float, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<DriverShift(id={self.id}, driver_id={self.driver_id}, total_distance_km={self.total_distance_km})>"
