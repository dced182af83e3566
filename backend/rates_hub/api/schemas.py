"""
Request and response schemas for the HTTP API.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, PositiveFloat, StringConstraints

# ISO 4217 style code, e.g. "USD"
CurrencyCode = Annotated[str, StringConstraints(pattern=r"^[A-Z]{3}$")]


class RatesUpdateRequest(BaseModel):
    """New exchange rates to push to every connected client."""

    rates: dict[CurrencyCode, PositiveFloat]


class RatesUpdateResponse(BaseModel):
    """Outcome of a rates broadcast."""

    status: Literal["broadcast"] = "broadcast"
    recipients: int = Field(ge=0)  # connections the update was queued for
