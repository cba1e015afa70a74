# File: src/parkit/application/dtos.py
"""
Data Transfer Objects (DTOs) for the ParkIt parking system

Results returned by the application service to the presentation layer.
Every result carries an Outcome so callers can branch on the reason an
operation was aborted without parsing messages.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..domain.models import ParkingSpot, Ticket


class Outcome(str, Enum):
    """Why a vehicle operation finished the way it did"""
    SUCCESS = "success"
    INVALID_INPUT = "invalid_input"
    NO_AVAILABILITY = "no_availability"
    NOT_FOUND = "not_found"
    ALREADY_PARKED = "already_parked"
    STORE_FAILURE = "store_failure"


class BaseDTO(BaseModel):
    """Base DTO with common functionality"""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_dict(self, exclude_none: bool = False) -> Dict[str, Any]:
        """Convert DTO to dictionary"""
        return self.model_dump(mode="json", exclude_none=exclude_none)


class ParkingSpotDTO(BaseDTO):
    """Parking spot DTO"""
    parking_number: int = Field(gt=0)
    parking_type: str
    available: bool

    @classmethod
    def from_domain(cls, spot: ParkingSpot) -> 'ParkingSpotDTO':
        return cls(
            parking_number=spot.id,
            parking_type=spot.parking_type.value,
            available=spot.is_available
        )


class TicketDTO(BaseDTO):
    """Ticket DTO"""
    ticket_id: Optional[int] = None
    parking_number: int
    parking_type: str
    vehicle_reg_number: str
    in_time: datetime
    out_time: Optional[datetime] = None
    price: Decimal = Decimal("0")

    @classmethod
    def from_domain(cls, ticket: Ticket) -> 'TicketDTO':
        return cls(
            ticket_id=ticket.id,
            parking_number=ticket.parking_spot.id,
            parking_type=ticket.parking_spot.parking_type.value,
            vehicle_reg_number=ticket.vehicle_reg_number,
            in_time=ticket.in_time,
            out_time=ticket.out_time,
            price=ticket.price
        )


class ParkingAllocationDTO(BaseDTO):
    """Result of a vehicle entry"""
    success: bool
    outcome: Outcome
    message: str
    spot: Optional[ParkingSpotDTO] = None
    ticket: Optional[TicketDTO] = None
    recurring_user: bool = False
    discount_percent: Decimal = Decimal("0")


class ParkingExitDTO(BaseDTO):
    """Result of a vehicle exit"""
    success: bool
    outcome: Outcome
    message: str
    ticket: Optional[TicketDTO] = None
    discount_applied: bool = False

    @property
    def price(self) -> Optional[Decimal]:
        return self.ticket.price if self.ticket else None
