"""
Showtime model: one screening of a movie in a theater.

Key design decisions:
- No two showtimes in a theater may overlap. This cannot be expressed as a
  portable storage constraint, so it is enforced by showtime admission under
  a theater row lock.
- The showtime row is the lock target for booking admission.
- Indexes on theater_id and the time window serve the overlap scan.
"""

from sqlalchemy import Column, Integer, DateTime, Numeric, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from cinema_booking.db.base import Base, TimestampMixin


class Showtime(Base, TimestampMixin):
    __tablename__ = "showtimes"

    id = Column(Integer, primary_key=True, index=True)
    movie_id = Column(Integer, ForeignKey("movies.id"), nullable=False, index=True)
    theater_id = Column(Integer, ForeignKey("theaters.id"), nullable=False, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    # Relationships are loaded explicitly by the services (selectinload/joinedload)
    movie = relationship("Movie", back_populates="showtimes")
    theater = relationship("Theater", back_populates="showtimes")
    bookings = relationship("Booking", back_populates="showtime")

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="check_showtime_window"),
        CheckConstraint("price >= 0", name="check_showtime_price_non_negative"),
        Index("ix_showtimes_theater_window", "theater_id", "start_time", "end_time"),
    )

    def __repr__(self) -> str:
        return f"<Showtime(id={self.id}, movie={self.movie_id}, theater={self.theater_id}, start={self.start_time})>"
