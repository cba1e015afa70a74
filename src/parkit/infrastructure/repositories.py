# File: src/parkit/infrastructure/repositories.py
"""
Repository Pattern Implementation for the ParkIt parking system

Repositories give the application layer a narrow, collection-like interface
to spots and tickets while hiding the storage technology.

Every operation reports its outcome through a StoreResult carrying a
StoreStatus reason code, so callers can tell a legitimately empty answer
(EMPTY, NO_CHANGE) apart from an operation that failed (FAILED). Storage
errors are caught and logged here and never leak to the service layer.

Storage Implementations:
- SQLAlchemy repositories - relational database (SQLite by default)
- In-memory repositories - for tests and demos
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Generic, List, Optional, TypeVar

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String,
    func, select, update
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, relationship

from ..domain.models import ParkingSpot, ParkingType, Ticket

T = TypeVar('T')


# ============================================================================
# STORE RESULTS
# ============================================================================

class StoreStatus(Enum):
    """Reason code attached to every store operation"""
    OK = "ok"                # Row found / exactly one row changed
    EMPTY = "empty"          # Query succeeded, nothing matched
    NO_CHANGE = "no_change"  # Write succeeded, zero rows affected
    FAILED = "failed"        # Store unreachable or statement error


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    """Outcome of a store operation, truthy only when status is OK"""
    status: StoreStatus
    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is StoreStatus.OK

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: Optional[T] = None) -> 'StoreResult[T]':
        return cls(StoreStatus.OK, value)

    @classmethod
    def empty(cls) -> 'StoreResult[T]':
        return cls(StoreStatus.EMPTY)

    @classmethod
    def no_change(cls) -> 'StoreResult[T]':
        return cls(StoreStatus.NO_CHANGE)

    @classmethod
    def failed(cls, error: str) -> 'StoreResult[T]':
        return cls(StoreStatus.FAILED, error=error)


# ============================================================================
# REPOSITORY INTERFACES
# ============================================================================

class ParkingSpotRepository(ABC):
    """Spot store interface"""

    @abstractmethod
    def get_next_available_slot(self, parking_type: ParkingType) -> StoreResult[int]:
        """Lowest available spot number of the given type"""
        pass

    @abstractmethod
    def update_parking(self, parking_spot: ParkingSpot) -> StoreResult[None]:
        """
        Write parking_spot.is_available to the store, only if the stored
        flag currently holds the opposite value (compare-and-swap)
        """
        pass


class TicketRepository(ABC):
    """Ticket store interface"""

    @abstractmethod
    def save_ticket(self, ticket: Ticket) -> StoreResult[int]:
        """Insert a new ticket, returns the generated ticket id"""
        pass

    @abstractmethod
    def get_ticket(self, vehicle_reg_number: str) -> StoreResult[Ticket]:
        """The open ticket (no out time) for a registration"""
        pass

    @abstractmethod
    def update_ticket(self, ticket: Ticket) -> StoreResult[None]:
        """Persist out time and price of an existing ticket"""
        pass

    @abstractmethod
    def count_completed_tickets(self, vehicle_reg_number: str) -> StoreResult[int]:
        """Number of closed tickets for a registration (OK with 0 when there are none)"""
        pass


# ============================================================================
# SQLALCHEMY ORM MODELS
# ============================================================================

Base = declarative_base()


class ParkingSpotModel(Base):
    """SQLAlchemy model for ParkingSpot"""
    __tablename__ = 'parking'

    parking_number = Column(Integer, primary_key=True, autoincrement=False)
    type = Column(String(10), nullable=False)
    available = Column(Boolean, nullable=False, default=True)

    tickets = relationship('TicketModel', back_populates='parking')


class TicketModel(Base):
    """SQLAlchemy model for Ticket"""
    __tablename__ = 'ticket'

    id = Column(Integer, primary_key=True, autoincrement=True)
    parking_number = Column(Integer, ForeignKey('parking.parking_number'), nullable=False)
    vehicle_reg_number = Column(String(10), nullable=False, index=True)
    price = Column(Numeric(10, 4), nullable=True)
    in_time = Column(DateTime, nullable=False)
    out_time = Column(DateTime, nullable=True)

    parking = relationship('ParkingSpotModel', back_populates='tickets', lazy='joined')


# ============================================================================
# DOMAIN <-> ORM MAPPERS
# ============================================================================

class Mapper:
    """Maps between domain models and ORM models"""

    @staticmethod
    def parking_spot_to_domain(model: ParkingSpotModel) -> ParkingSpot:
        return ParkingSpot(
            id=model.parking_number,
            parking_type=ParkingType(model.type),
            is_available=model.available
        )

    @staticmethod
    def ticket_to_orm(ticket: Ticket) -> TicketModel:
        return TicketModel(
            parking_number=ticket.parking_spot.id,
            vehicle_reg_number=ticket.vehicle_reg_number,
            price=ticket.price,
            in_time=ticket.in_time,
            out_time=ticket.out_time
        )

    @staticmethod
    def ticket_to_domain(model: TicketModel) -> Ticket:
        return Ticket(
            id=model.id,
            parking_spot=Mapper.parking_spot_to_domain(model.parking),
            vehicle_reg_number=model.vehicle_reg_number,
            in_time=model.in_time,
            out_time=model.out_time,
            price=Decimal(str(model.price)) if model.price is not None else Decimal("0")
        )


# ============================================================================
# SQLALCHEMY REPOSITORIES
# ============================================================================

class SQLAlchemyRepository(ABC):
    """Base SQLAlchemy repository, holds the injected database handle"""

    def __init__(self, database):
        self.database = database
        self._logger = logging.getLogger(self.__class__.__name__)


class SQLAlchemyParkingSpotRepository(SQLAlchemyRepository, ParkingSpotRepository):
    """Spot store backed by the parking table"""

    def get_next_available_slot(self, parking_type: ParkingType) -> StoreResult[int]:
        try:
            with self.database.session_scope() as session:
                number = session.scalar(
                    select(func.min(ParkingSpotModel.parking_number)).where(
                        ParkingSpotModel.type == parking_type.value,
                        ParkingSpotModel.available == True
                    )
                )
        except SQLAlchemyError as e:
            self._logger.error(f"Error fetching next available slot for {parking_type}: {e}")
            return StoreResult.failed(str(e))

        if number is None:
            return StoreResult.empty()
        return StoreResult.success(number)

    def update_parking(self, parking_spot: ParkingSpot) -> StoreResult[None]:
        try:
            with self.database.session_scope() as session:
                result = session.execute(
                    update(ParkingSpotModel)
                    .where(
                        ParkingSpotModel.parking_number == parking_spot.id,
                        ParkingSpotModel.available == (not parking_spot.is_available)
                    )
                    .values(available=parking_spot.is_available)
                )
                rowcount = result.rowcount
        except SQLAlchemyError as e:
            self._logger.error(f"Error updating parking spot {parking_spot.id}: {e}")
            return StoreResult.failed(str(e))

        if rowcount == 1:
            return StoreResult.success()
        self._logger.warning(
            f"Parking spot {parking_spot.id} not updated to available={parking_spot.is_available} "
            f"({rowcount} rows affected)"
        )
        return StoreResult.no_change()


class SQLAlchemyTicketRepository(SQLAlchemyRepository, TicketRepository):
    """Ticket store backed by the ticket table"""

    def save_ticket(self, ticket: Ticket) -> StoreResult[int]:
        if ticket is None:
            self._logger.error("Refusing to save an empty ticket")
            return StoreResult.failed("ticket is None")

        try:
            with self.database.session_scope() as session:
                model = Mapper.ticket_to_orm(ticket)
                session.add(model)
                session.flush()
                ticket.id = model.id
        except SQLAlchemyError as e:
            self._logger.error(f"Error saving ticket for {ticket.vehicle_reg_number}: {e}")
            return StoreResult.failed(str(e))

        self._logger.debug(f"Saved ticket {ticket.id}")
        return StoreResult.success(ticket.id)

    def get_ticket(self, vehicle_reg_number: str) -> StoreResult[Ticket]:
        try:
            with self.database.session_scope() as session:
                model = session.query(TicketModel).filter(
                    TicketModel.vehicle_reg_number == vehicle_reg_number,
                    TicketModel.out_time.is_(None)
                ).order_by(TicketModel.in_time.desc()).first()
                ticket = Mapper.ticket_to_domain(model) if model else None
        except SQLAlchemyError as e:
            self._logger.error(f"Error fetching ticket for {vehicle_reg_number}: {e}")
            return StoreResult.failed(str(e))

        if ticket is None:
            return StoreResult.empty()
        return StoreResult.success(ticket)

    def update_ticket(self, ticket: Ticket) -> StoreResult[None]:
        if ticket.out_time is None:
            self._logger.error(f"Ticket {ticket.id} has no out time, not updating")
            return StoreResult.failed("out time is not set")

        try:
            with self.database.session_scope() as session:
                result = session.execute(
                    update(TicketModel)
                    .where(TicketModel.id == ticket.id)
                    .values(price=ticket.price, out_time=ticket.out_time)
                )
                rowcount = result.rowcount
        except SQLAlchemyError as e:
            self._logger.error(f"Error updating ticket {ticket.id}: {e}")
            return StoreResult.failed(str(e))

        if rowcount == 1:
            return StoreResult.success()
        return StoreResult.no_change()

    def count_completed_tickets(self, vehicle_reg_number: str) -> StoreResult[int]:
        try:
            with self.database.session_scope() as session:
                count = session.query(TicketModel).filter(
                    TicketModel.vehicle_reg_number == vehicle_reg_number,
                    TicketModel.out_time.isnot(None)
                ).count()
        except SQLAlchemyError as e:
            self._logger.error(f"Error counting tickets for {vehicle_reg_number}: {e}")
            return StoreResult.failed(str(e))

        return StoreResult.success(count)


# ============================================================================
# IN-MEMORY REPOSITORIES (For Testing)
# ============================================================================

class InMemoryParkingSpotRepository(ParkingSpotRepository):
    """In-memory spot store; update_parking is a locked compare-and-swap"""

    def __init__(self, spots: Optional[List[ParkingSpot]] = None):
        self._storage: Dict[int, ParkingSpot] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)
        for spot in spots or []:
            self.add(spot)

    def add(self, spot: ParkingSpot) -> ParkingSpot:
        self._storage[spot.id] = ParkingSpot(spot.id, spot.parking_type, spot.is_available)
        return spot

    def get(self, spot_id: int) -> Optional[ParkingSpot]:
        return self._storage.get(spot_id)

    def get_next_available_slot(self, parking_type: ParkingType) -> StoreResult[int]:
        with self._lock:
            candidates = [
                spot.id for spot in self._storage.values()
                if spot.parking_type is parking_type and spot.is_available
            ]
        if not candidates:
            return StoreResult.empty()
        return StoreResult.success(min(candidates))

    def update_parking(self, parking_spot: ParkingSpot) -> StoreResult[None]:
        with self._lock:
            stored = self._storage.get(parking_spot.id)
            if stored is None or stored.is_available == parking_spot.is_available:
                return StoreResult.no_change()
            stored.is_available = parking_spot.is_available
        self._logger.debug(f"Spot {parking_spot.id} available={parking_spot.is_available}")
        return StoreResult.success()

    def clear(self):
        """Clear all data (for testing)"""
        self._storage.clear()


class InMemoryTicketRepository(TicketRepository):
    """In-memory ticket store"""

    def __init__(self):
        self._storage: Dict[int, Ticket] = {}
        self._next_id = 1
        self._logger = logging.getLogger(self.__class__.__name__)

    def save_ticket(self, ticket: Ticket) -> StoreResult[int]:
        if ticket is None:
            return StoreResult.failed("ticket is None")
        ticket.id = self._next_id
        self._next_id += 1
        self._storage[ticket.id] = self._copy(ticket)
        return StoreResult.success(ticket.id)

    def get_ticket(self, vehicle_reg_number: str) -> StoreResult[Ticket]:
        open_tickets = [
            t for t in self._storage.values()
            if t.vehicle_reg_number == vehicle_reg_number and t.out_time is None
        ]
        if not open_tickets:
            return StoreResult.empty()
        latest = max(open_tickets, key=lambda t: t.in_time)
        return StoreResult.success(self._copy(latest))

    def update_ticket(self, ticket: Ticket) -> StoreResult[None]:
        if ticket.out_time is None:
            return StoreResult.failed("out time is not set")
        stored = self._storage.get(ticket.id)
        if stored is None:
            return StoreResult.no_change()
        stored.out_time = ticket.out_time
        stored.price = ticket.price
        return StoreResult.success()

    def count_completed_tickets(self, vehicle_reg_number: str) -> StoreResult[int]:
        return StoreResult.success(sum(
            1 for t in self._storage.values()
            if t.vehicle_reg_number == vehicle_reg_number and t.out_time is not None
        ))

    def all_tickets(self) -> List[Ticket]:
        return [self._copy(t) for t in self._storage.values()]

    @staticmethod
    def _copy(ticket: Ticket) -> Ticket:
        spot = ticket.parking_spot
        return Ticket(
            id=ticket.id,
            parking_spot=ParkingSpot(spot.id, spot.parking_type, spot.is_available),
            vehicle_reg_number=ticket.vehicle_reg_number,
            in_time=ticket.in_time,
            out_time=ticket.out_time,
            price=ticket.price
        )
