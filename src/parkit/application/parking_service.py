# File: src/parkit/application/parking_service.py
"""
Parking Management Application Service

Orchestrates the vehicle lifecycle:
1. Entry - find a spot, reserve it, open a ticket
2. Exit - close the ticket, price the stay, persist it, free the spot

Failure discipline:
- Ordinary negative answers (bad input, already parked, no spot, no open
  ticket, store failure) come back as a DTO with an Outcome, never as an exception
- A ticket that could not be closed keeps its spot occupied
- A ticket that could not be saved does not give its spot back; the spot
  stays reserved and the failure is logged for an operator
- Fare calculation errors mean the stored data is inconsistent and propagate

Recurring users are vehicles with at least one previously completed stay.
The current ticket is never counted: at entry it does not exist yet, at exit
it is still open in the store when the count is taken. When the count cannot
be read the vehicle is treated as a first visit and a warning is logged.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from ..domain.fare_calculator import FareCalculatorService
from ..domain.models import ParkingSpot, ParkingType, Ticket
from ..infrastructure.repositories import StoreStatus, TicketRepository
from .dtos import Outcome, ParkingAllocationDTO, ParkingExitDTO, ParkingSpotDTO, TicketDTO
from .spot_allocator import SpotAllocator


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ParkingServiceError(Exception):
    """Base exception for parking service errors"""
    pass


class InvalidInputError(ParkingServiceError, ValueError):
    """Exception for invalid vehicle type selections and registration numbers"""
    pass


# ============================================================================
# MAIN PARKING SERVICE
# ============================================================================

class ParkingService:
    """
    Main application service for parking management

    All collaborators are injected; the clock is injectable so tests can
    control entry and exit times.
    """

    def __init__(
        self,
        spot_allocator: SpotAllocator,
        ticket_repository: TicketRepository,
        fare_calculator: Optional[FareCalculatorService] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.spot_allocator = spot_allocator
        self.ticket_repository = ticket_repository
        self.fare_calculator = fare_calculator or FareCalculatorService()
        self.clock = clock

        self.logger.info("ParkingService initialized")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def get_vehicle_type(selection: int) -> ParkingType:
        """Map a menu selection to a ParkingType, raising for anything but 1 or 2"""
        parking_type = ParkingType.from_selection(selection)
        if parking_type is None:
            raise InvalidInputError(f"Entered input is invalid: {selection}")
        return parking_type

    def get_next_parking_number_if_available(self, selection: int) -> Optional[ParkingSpot]:
        """
        Next free spot for a menu selection

        Returns None for an invalid selection (without touching the store),
        when the lot is full for that type, or when the lookup failed.
        """
        try:
            parking_type = self.get_vehicle_type(selection)
        except InvalidInputError as e:
            self.logger.error(f"Error parsing user input for type of vehicle: {e}")
            return None

        parking_number = self.spot_allocator.find_available_spot(parking_type)
        if parking_number is None:
            self.logger.info(f"Parking slots might be full for {parking_type}")
            return None

        return ParkingSpot(parking_number, parking_type, True)

    # ------------------------------------------------------------------
    # Use cases
    # ------------------------------------------------------------------

    def process_incoming_vehicle(self, selection: int, vehicle_reg_number: str) -> ParkingAllocationDTO:
        """
        Park a vehicle

        Use Case: Vehicle Entry
        1. Validate registration and vehicle type
        2. Refuse a vehicle that already has an open ticket
        3. Find a free spot
        4. Reserve it
        5. Check for recurring user
        6. Open and save the ticket
        """
        reg_number = self._clean_reg_number(vehicle_reg_number)
        if reg_number is None:
            return self._entry_failure(Outcome.INVALID_INPUT, "Invalid input provided")

        if ParkingType.from_selection(selection) is None:
            self.logger.error(f"Unknown vehicle type selection {selection!r} for {reg_number}")
            return self._entry_failure(Outcome.INVALID_INPUT, f"Entered input is invalid: {selection}")

        # One open ticket per registration
        open_ticket = self.ticket_repository.get_ticket(reg_number)
        if open_ticket.status is StoreStatus.FAILED:
            return self._entry_failure(Outcome.STORE_FAILURE, f"Could not look up ticket for {reg_number}")
        if open_ticket.ok:
            return self._entry_failure(
                Outcome.ALREADY_PARKED,
                f"Vehicle {reg_number} is already parked in spot number: {open_ticket.value.parking_spot.id}"
            )

        parking_spot = self.get_next_parking_number_if_available(selection)
        if parking_spot is None:
            return self._entry_failure(Outcome.NO_AVAILABILITY, "No parking spot available")

        allocation = self.spot_allocator.allocate(parking_spot)
        if not allocation.ok:
            return self._entry_failure(
                Outcome.STORE_FAILURE,
                f"Could not reserve parking spot {parking_spot.id} ({allocation.status.value})"
            )

        recurring_user = self._has_completed_stay(reg_number)
        ticket = Ticket(
            parking_spot=parking_spot,
            vehicle_reg_number=reg_number,
            in_time=self.clock(),
            recurring_user=recurring_user
        )

        saved = self.ticket_repository.save_ticket(ticket)
        if not saved.ok:
            # Spot stays allocated: no automatic rollback of committed steps
            self.logger.warning(
                f"Ticket for {reg_number} not saved ({saved.status.value}); "
                f"parking spot {parking_spot.id} remains reserved"
            )
            return ParkingAllocationDTO(
                success=False,
                outcome=Outcome.STORE_FAILURE,
                message=f"Could not save ticket for {reg_number}",
                spot=ParkingSpotDTO.from_domain(parking_spot),
                recurring_user=recurring_user
            )

        if ticket.id is None:
            ticket.id = saved.value

        discount_percent = self.fare_calculator.rates.discount_percent if recurring_user else Decimal("0")
        if recurring_user:
            self.logger.info(f"Welcome back {reg_number}, a {discount_percent:f}% discount applies at exit")
        self.logger.info(
            f"Vehicle {reg_number} parked at spot {parking_spot.id} ({parking_spot.parking_type}) "
            f"in time {ticket.in_time.isoformat()}"
        )

        return ParkingAllocationDTO(
            success=True,
            outcome=Outcome.SUCCESS,
            message=f"Please park your vehicle in spot number: {parking_spot.id}",
            spot=ParkingSpotDTO.from_domain(parking_spot),
            ticket=TicketDTO.from_domain(ticket),
            recurring_user=recurring_user,
            discount_percent=discount_percent
        )

    def process_exiting_vehicle(self, vehicle_reg_number: str) -> ParkingExitDTO:
        """
        Let a vehicle out

        Use Case: Vehicle Exit
        1. Find the open ticket
        2. Close it and compute the fare
        3. Persist the ticket
        4. Release the spot, only once the ticket is persisted
        """
        reg_number = self._clean_reg_number(vehicle_reg_number)
        if reg_number is None:
            return self._exit_failure(Outcome.INVALID_INPUT, "Invalid input provided")

        lookup = self.ticket_repository.get_ticket(reg_number)
        if lookup.status is StoreStatus.FAILED:
            return self._exit_failure(Outcome.STORE_FAILURE, f"Could not look up ticket for {reg_number}")
        if not lookup.ok:
            return self._exit_failure(Outcome.NOT_FOUND, f"No open ticket for {reg_number}")

        ticket = lookup.value
        ticket.out_time = self.clock()

        discount = self._has_completed_stay(reg_number)
        self.fare_calculator.calculate_fare(ticket, discount)

        updated = self.ticket_repository.update_ticket(ticket)
        if not updated.ok:
            self.logger.warning(
                f"Ticket {ticket.id} for {reg_number} not closed ({updated.status.value}); "
                f"parking spot {ticket.parking_spot.id} stays occupied"
            )
            return self._exit_failure(
                Outcome.STORE_FAILURE,
                "Unable to update ticket information. Error occurred"
            )

        released = self.spot_allocator.release(ticket.parking_spot)
        if not released.ok:
            return ParkingExitDTO(
                success=False,
                outcome=Outcome.STORE_FAILURE,
                message=f"Ticket closed but parking spot {ticket.parking_spot.id} could not be released",
                ticket=TicketDTO.from_domain(ticket),
                discount_applied=discount
            )

        self.logger.info(
            f"Vehicle {reg_number} left spot {ticket.parking_spot.id}, "
            f"fare {ticket.price:.2f} (discount={discount})"
        )
        return ParkingExitDTO(
            success=True,
            outcome=Outcome.SUCCESS,
            message=f"Please pay the parking fare: {ticket.price:.2f}",
            ticket=TicketDTO.from_domain(ticket),
            discount_applied=discount
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _clean_reg_number(self, vehicle_reg_number: Optional[str]) -> Optional[str]:
        if vehicle_reg_number is None or not vehicle_reg_number.strip():
            self.logger.error("Blank vehicle registration number")
            return None
        return vehicle_reg_number.strip()

    def _has_completed_stay(self, reg_number: str) -> bool:
        """True when the vehicle has a closed ticket; a failed count is treated as a first visit"""
        completed = self.ticket_repository.count_completed_tickets(reg_number)
        if completed.status is StoreStatus.FAILED:
            self.logger.warning(
                f"Could not count previous stays for {reg_number} ({completed.error}); "
                f"no recurring-user discount applied"
            )
            return False
        return bool(completed.ok and completed.value)

    def _entry_failure(self, outcome: Outcome, message: str) -> ParkingAllocationDTO:
        self.logger.warning(f"Vehicle entry aborted: {message}")
        return ParkingAllocationDTO(success=False, outcome=outcome, message=message)

    def _exit_failure(self, outcome: Outcome, message: str) -> ParkingExitDTO:
        self.logger.warning(f"Vehicle exit aborted: {message}")
        return ParkingExitDTO(success=False, outcome=outcome, message=message)
