"""
Booking model representing one seat reserved for one showtime.

Key design decisions:
- Unique constraint on (showtime_id, seat_number) is the storage-level backstop
  for double booking; admission checks it first under the showtime lock.
- Optional idempotency_key is unique so retried requests resolve to one row.
- UUID primary key; bookings are leaves in the reference graph and are hard-deleted.
"""

import uuid

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Uuid, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from cinema_booking.db.base import Base


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    showtime_id = Column(Integer, ForeignKey("showtimes.id"), nullable=False, index=True)
    seat_number = Column(Integer, nullable=False)
    user_id = Column(String(255), nullable=False, index=True)
    idempotency_key = Column(String(255), nullable=True)
    # Set from the admission clock at insert time
    created_at = Column(DateTime(timezone=True), nullable=False)

    showtime = relationship("Showtime", back_populates="bookings")

    __table_args__ = (
        UniqueConstraint("showtime_id", "seat_number", name="uq_bookings_showtime_seat"),
        UniqueConstraint("idempotency_key", name="uq_bookings_idempotency_key"),
        CheckConstraint("seat_number > 0", name="check_booking_seat_positive"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, showtime={self.showtime_id}, seat={self.seat_number}, user={self.user_id})>"
