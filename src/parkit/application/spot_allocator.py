# File: src/parkit/application/spot_allocator.py
"""
Spot allocation

Finds the next free spot of a category and flips spot availability on
allocate / release. The availability write is delegated to the spot store as
a conditional update, so allocating a spot that someone else took in the
meantime reports NO_CHANGE instead of double-booking it.
"""

import logging
from typing import Optional

from ..domain.models import ParkingSpot, ParkingType
from ..infrastructure.repositories import ParkingSpotRepository, StoreResult, StoreStatus


class SpotAllocator:
    """Chooses and reserves spots through an injected spot store"""

    def __init__(self, parking_spot_repository: ParkingSpotRepository):
        self.parking_spot_repository = parking_spot_repository
        self.logger = logging.getLogger(self.__class__.__name__)

    def find_available_spot(self, parking_type: ParkingType) -> Optional[int]:
        """Lowest free spot number of the type, None when there is none or the query failed"""
        result = self.parking_spot_repository.get_next_available_slot(parking_type)

        if result.status is StoreStatus.FAILED:
            self.logger.error(f"Could not look up a {parking_type} spot: {result.error}")
            return None
        if not result.ok or result.value is None or result.value <= 0:
            self.logger.info(f"No {parking_type} spot available")
            return None
        return result.value

    def allocate(self, parking_spot: ParkingSpot) -> StoreResult[None]:
        """Mark the spot unavailable; parking_spot is updated only on success"""
        return self._set_availability(parking_spot, False)

    def release(self, parking_spot: ParkingSpot) -> StoreResult[None]:
        """Mark the spot available again; parking_spot is updated only on success"""
        return self._set_availability(parking_spot, True)

    def _set_availability(self, parking_spot: ParkingSpot, available: bool) -> StoreResult[None]:
        previous = parking_spot.is_available
        parking_spot.is_available = available
        result = self.parking_spot_repository.update_parking(parking_spot)

        if not result.ok:
            parking_spot.is_available = previous
            self.logger.warning(
                f"Spot {parking_spot.id} not set to available={available}: {result.status.value}"
            )
        return result
