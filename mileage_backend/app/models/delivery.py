"""
Delivery database model.

Only the lifecycle timestamps needed to scope mileage are mapped here.
"""

import uuid

from sqlalchemy import Column, ForeignKey, DateTime, Uuid
from sqlalchemy.sql import func
from mileage_backend.app.db.session import Base


class Delivery(Base):
    """
    Delivery model.

    Associated with at most one shift. Every lifecycle timestamp is optional.
    """
    __tablename__ = "deliveries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # References
    driver_id = Column(Uuid, nullable=True, index=True)
    shift_id = Column(Uuid, ForeignKey('driver_shifts.id'), nullable=True, index=True)

    # Lifecycle
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    picked_up_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    estimated_delivery_time = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Delivery(id={self.id}, shift_id={self.shift_id})>"
