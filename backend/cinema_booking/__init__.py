"""Cinema booking API: showtime scheduling and seat admission over PostgreSQL."""
