"""
Driver Location database model.

Stores the GPS breadcrumb trail reported by a driver's device.
"""

import uuid

from sqlalchemy import Column, Float, DateTime, Index, Uuid
from sqlalchemy.sql import func
from mileage_backend.app.db.session import Base


class DriverLocation(Base):
    """
    Driver Location model.

    One timestamped GPS fix for a driver. Rows are appended by the
    location-reporting pipeline and are read-only for the mileage engine.
    Rows carrying ``deleted_at`` are soft-deleted and must never be read.
    """
    __tablename__ = "driver_locations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    driver_id = Column(Uuid, nullable=False, index=True)

    # GPS fix
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    accuracy = Column(Float, nullable=True)  # Error radius in meters
    speed = Column(Float, nullable=True)  # Meters per second
    heading = Column(Float, nullable=True)

    # Timing
    recorded_at = Column(DateTime(timezone=True), nullable=False)  # When GPS was recorded
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("driver_locations_driver_recorded_idx", "driver_id", "recorded_at"),
    )

    def __repr__(self):
        return f"<DriverLocation(driver_id={self.driver_id}, lat={self.latitude}, lng={self.longitude})>"
