"""
Shared schema types.
"""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel

from cinema_booking.core.clock import as_utc

# Aware UTC on the way in and on the way out; naive input is read as UTC
UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]


class MessageResponse(BaseModel):
    message: str
