"""Initial schema: movies, theaters, showtimes, bookings with constraints.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "movies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("genre", sa.String(50), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("rating", sa.Numeric(3, 1), nullable=False),
        sa.Column("release_year", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("duration_minutes > 0", name="check_movie_duration_positive"),
    )
    op.create_index("ix_movies_id", "movies", ["id"])
    op.create_index("ix_movies_title", "movies", ["title"])

    op.create_table(
        "theaters",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("capacity", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("capacity > 0", name="check_theater_capacity_positive"),
    )
    op.create_index("ix_theaters_id", "theaters", ["id"])

    op.create_table(
        "showtimes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("movie_id", sa.Integer(), sa.ForeignKey("movies.id"), nullable=False),
        sa.Column("theater_id", sa.Integer(), sa.ForeignKey("theaters.id"), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("end_time > start_time", name="check_showtime_window"),
        sa.CheckConstraint("price >= 0", name="check_showtime_price_non_negative"),
    )
    op.create_index("ix_showtimes_id", "showtimes", ["id"])
    op.create_index("ix_showtimes_movie_id", "showtimes", ["movie_id"])
    op.create_index("ix_showtimes_theater_id", "showtimes", ["theater_id"])
    # Serves the overlap scan: WHERE theater_id = ? AND start_time <= ? AND end_time >= ?
    op.create_index("ix_showtimes_theater_window", "showtimes", ["theater_id", "start_time", "end_time"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("showtime_id", sa.Integer(), sa.ForeignKey("showtimes.id"), nullable=False),
        sa.Column("seat_number", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("idempotency_key", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        # Storage-level backstop for double booking; admission checks first under the showtime lock
        sa.UniqueConstraint("showtime_id", "seat_number", name="uq_bookings_showtime_seat"),
        sa.UniqueConstraint("idempotency_key", name="uq_bookings_idempotency_key"),
        sa.CheckConstraint("seat_number > 0", name="check_booking_seat_positive"),
    )
    op.create_index("ix_bookings_showtime_id", "bookings", ["showtime_id"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("showtimes")
    op.drop_table("theaters")
    op.drop_table("movies")
