# File: src/parkit/domain/models.py
"""
Domain Models for the ParkIt parking system

This module contains:
1. ParkingType: the closed set of vehicle categories
2. ParkingSpot: a physical spot with a fixed category and mutable availability
3. Ticket: the record of one vehicle's stay, from entry to exit and pricing
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional


class ParkingType(Enum):
    """
    Enumeration of vehicle categories
    Each category has its own hourly rate and its own pool of spots
    """
    CAR = "CAR"
    BIKE = "BIKE"

    @classmethod
    def from_selection(cls, selection: int) -> Optional['ParkingType']:
        """Map a console menu selection (1 = CAR, 2 = BIKE) to a type"""
        return _SELECTIONS.get(selection)

    def __str__(self) -> str:
        return self.value


_SELECTIONS = {
    1: ParkingType.CAR,
    2: ParkingType.BIKE,
}


class ParkingSpot:
    """
    Entity: a parking spot

    The category is fixed at creation; only availability changes over time.
    """

    def __init__(self, id: int, parking_type: ParkingType, is_available: bool = True):
        if id <= 0:
            raise ValueError(f"Parking spot number must be positive, got: {id}")
        self._id = id
        self._parking_type = parking_type
        self.is_available = is_available

    @property
    def id(self) -> int:
        return self._id

    @property
    def parking_type(self) -> ParkingType:
        return self._parking_type

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParkingSpot):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return f"ParkingSpot(id={self._id}, type={self._parking_type.value}, available={self.is_available})"


class Ticket:
    """
    Entity: a parking ticket

    Open while out_time is None; closed once out_time and price are set.
    recurring_user is computed when the ticket is opened and is not persisted.
    """

    def __init__(
        self,
        parking_spot: ParkingSpot,
        vehicle_reg_number: str,
        in_time: datetime,
        out_time: Optional[datetime] = None,
        price: Decimal = Decimal("0"),
        id: Optional[int] = None,
        recurring_user: bool = False
    ):
        self.id = id
        self.parking_spot = parking_spot
        self.vehicle_reg_number = vehicle_reg_number
        self.in_time = in_time
        self.out_time = out_time
        self.price = price
        self.recurring_user = recurring_user

    @property
    def is_open(self) -> bool:
        return self.out_time is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "parking_number": self.parking_spot.id,
            "parking_type": self.parking_spot.parking_type.value,
            "vehicle_reg_number": self.vehicle_reg_number,
            "in_time": self.in_time.isoformat(),
            "out_time": self.out_time.isoformat() if self.out_time else None,
            "price": float(self.price),
        }

    def __repr__(self) -> str:
        return (
            f"Ticket(id={self.id}, reg={self.vehicle_reg_number!r}, "
            f"spot={self.parking_spot.id}, in={self.in_time}, out={self.out_time}, price={self.price})"
        )
