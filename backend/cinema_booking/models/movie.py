"""
Movie catalog entry. Referenced by showtimes; the foreign key blocks deleting
a movie that is still scheduled.
"""

from sqlalchemy import Column, Integer, String, Numeric, CheckConstraint
from sqlalchemy.orm import relationship

from cinema_booking.db.base import Base, TimestampMixin


class Movie(Base, TimestampMixin):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False, index=True)
    genre = Column(String(50), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    rating = Column(Numeric(3, 1), nullable=False)
    release_year = Column(Integer, nullable=False)

    showtimes = relationship("Showtime", back_populates="movie")

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="check_movie_duration_positive"),
    )

    def __repr__(self) -> str:
        return f"<Movie(id={self.id}, title={self.title}, duration={self.duration_minutes}m)>"
