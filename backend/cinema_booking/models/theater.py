"""
Theater model. `capacity` bounds both the seat numbers that can be booked and
the number of bookings per showtime.

The theater row is the lock target for showtime admission: creating or
rescheduling a showtime takes SELECT ... FOR UPDATE on it, so overlap checks
for the same theater run one at a time.
"""

from sqlalchemy import Column, Integer, String, CheckConstraint
from sqlalchemy.orm import relationship

from cinema_booking.db.base import Base, TimestampMixin


class Theater(Base, TimestampMixin):
    __tablename__ = "theaters"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    capacity = Column(Integer, nullable=False)

    showtimes = relationship("Showtime", back_populates="theater")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_theater_capacity_positive"),
    )

    def __repr__(self) -> str:
        return f"<Theater(id={self.id}, name={self.name}, capacity={self.capacity})>"
