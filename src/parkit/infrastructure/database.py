# File: src/parkit/infrastructure/database.py
"""
Database connection management

Owns the SQLAlchemy engine and session factory. Every store operation runs
inside session_scope(), which commits on success and rolls back on error.
A Database instance is created once by the entry point and injected into the
repositories; nothing here is module-level state.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..domain.models import ParkingType
from .repositories import Base, ParkingSpotModel


class Database:
    """Engine and session factory for one database URL"""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.logger = logging.getLogger(self.__class__.__name__)
        self.engine: Engine = self._create_engine(url, echo)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        self.logger.info(f"Database configured for {self.engine.url.render_as_string(hide_password=True)}")

    @staticmethod
    def _create_engine(url: str, echo: bool) -> Engine:
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise each session sees an empty database
            return create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(url, echo=echo, pool_pre_ping=True)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations"""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)
        self.logger.info("Database schema created")

    def drop_schema(self) -> None:
        Base.metadata.drop_all(self.engine)
        self.logger.info("Database schema dropped")

    def seed_spots(self, car_spots: int, bike_spots: int) -> int:
        """
        Insert the spot inventory if the parking table is empty.
        CAR spots are numbered first, BIKE spots follow.
        Returns the number of spots inserted.
        """
        with self.session_scope() as session:
            existing = session.scalar(select(func.count()).select_from(ParkingSpotModel))
            if existing:
                self.logger.info(f"Parking table already holds {existing} spots, skipping seed")
                return 0

            number = 0
            for parking_type, count in ((ParkingType.CAR, car_spots), (ParkingType.BIKE, bike_spots)):
                for _ in range(count):
                    number += 1
                    session.add(ParkingSpotModel(
                        parking_number=number,
                        type=parking_type.value,
                        available=True
                    ))

        self.logger.info(f"Seeded {number} parking spots ({car_spots} car, {bike_spots} bike)")
        return number

    def dispose(self) -> None:
        self.engine.dispose()
