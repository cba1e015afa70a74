# File: src/parkit/domain/fare_calculator.py
"""
Fare calculation for completed parking stays

Pricing rules:
- Stays up to the free-parking threshold (30 minutes by default) cost nothing
- Longer stays are billed per fractional hour at the category's hourly rate
- Recurring users get the discount factor applied to the hourly price

All amounts are Decimal. The duration is taken as an exact number of
microseconds so no unit conversion happens more than once. Prices are
rounded half-up to four decimal places, the precision they are stored with.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict

from .models import ParkingType, Ticket

MICROSECONDS_PER_HOUR = Decimal(3600 * 1000 * 1000)
ONE_MICROSECOND = timedelta(microseconds=1)

# Same scale as the ticket.price column
PRICE_QUANTUM = Decimal("0.0001")


class FareCalculationError(ValueError):
    """Base exception for fare calculation errors"""
    pass


class InvalidTicketError(FareCalculationError):
    """Raised when the ticket times cannot be priced"""
    pass


class UnknownParkingTypeError(FareCalculationError):
    """Raised when a ticket's spot has no configured rate"""
    pass


@dataclass(frozen=True)
class FareRates:
    """
    Value Object: tunable pricing parameters
    """
    car_rate_per_hour: Decimal = Decimal("1.5")
    bike_rate_per_hour: Decimal = Decimal("1.0")
    free_parking_minutes: int = 30
    recurring_discount: Decimal = Decimal("0.95")

    def __post_init__(self):
        if self.car_rate_per_hour < 0 or self.bike_rate_per_hour < 0:
            raise ValueError("Hourly rates cannot be negative")
        if self.free_parking_minutes < 0:
            raise ValueError("Free parking threshold cannot be negative")
        if not Decimal("0") < self.recurring_discount <= Decimal("1"):
            raise ValueError(f"Discount factor must be in (0, 1]: {self.recurring_discount}")

    @classmethod
    def from_settings(cls, settings) -> 'FareRates':
        return cls(
            car_rate_per_hour=Decimal(settings.car_rate_per_hour),
            bike_rate_per_hour=Decimal(settings.bike_rate_per_hour),
            free_parking_minutes=settings.free_parking_minutes,
            recurring_discount=Decimal(settings.recurring_discount),
        )

    @property
    def free_parking_threshold(self) -> timedelta:
        return timedelta(minutes=self.free_parking_minutes)

    @property
    def discount_percent(self) -> Decimal:
        """Recurring-user reduction as a percentage, e.g. 5 for a 0.95 factor"""
        return ((Decimal("1") - self.recurring_discount) * 100).normalize()

    def hourly_rates(self) -> Dict[ParkingType, Decimal]:
        return {
            ParkingType.CAR: self.car_rate_per_hour,
            ParkingType.BIKE: self.bike_rate_per_hour,
        }


class FareCalculatorService:
    """
    Domain Service: prices a closed ticket in place
    Stateless apart from the configured rates
    """

    def __init__(self, rates: FareRates = None):
        self.rates = rates or FareRates()
        self.logger = logging.getLogger(self.__class__.__name__)

    def calculate_fare(self, ticket: Ticket, discount: bool = False) -> Decimal:
        """
        Compute the ticket price and store it on the ticket

        Raises:
            InvalidTicketError: out time missing or before in time
            UnknownParkingTypeError: spot category has no rate
        """
        if ticket.out_time is None:
            raise InvalidTicketError("Out time provided is incorrect: None")
        if ticket.out_time < ticket.in_time:
            raise InvalidTicketError(f"Out time provided is incorrect: {ticket.out_time.isoformat()}")

        duration = ticket.out_time - ticket.in_time

        if duration <= self.rates.free_parking_threshold:
            ticket.price = Decimal("0")
            self.logger.debug(f"Free parking for {ticket.vehicle_reg_number} ({duration})")
            return ticket.price

        rate = self.rates.hourly_rates().get(ticket.parking_spot.parking_type)
        if rate is None:
            raise UnknownParkingTypeError(f"Unknown Parking Type: {ticket.parking_spot.parking_type}")

        hours = Decimal(duration // ONE_MICROSECOND) / MICROSECONDS_PER_HOUR
        price = hours * rate

        if discount:
            price = price * self.rates.recurring_discount
        price = price.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)

        ticket.price = price
        self.logger.debug(
            f"Fare for {ticket.vehicle_reg_number}: {hours:.4f}h x {rate} "
            f"{'with' if discount else 'without'} discount = {price:.4f}"
        )
        return price
