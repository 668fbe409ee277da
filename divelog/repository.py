"""Persistence sink interface for dive records"""

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, Iterable, List

from .dives import Dive
from .exceptions import DiveNotFoundError

logger = logging.getLogger(__name__)


class DiveRepository(ABC):
    """Where parsed dives end up; the store assigns ids"""

    @abstractmethod
    def create(self, dive: Dive) -> Dive:
        """Persist a new dive and return it with its assigned id"""

    @abstractmethod
    def update(self, dive: Dive) -> Dive:
        """Replace the stored dive that has the same id"""

    @abstractmethod
    def delete(self, dive_id: int) -> None:
        """Remove a dive by id"""

    @abstractmethod
    def get(self, dive_id: int) -> Dive:
        """Fetch a dive by id"""

    @abstractmethod
    def list(self) -> List[Dive]:
        """All stored dives"""

    def bulk_create(self, dives: Iterable[Dive]) -> List[Dive]:
        """Persist an imported batch"""
        return [self.create(dive) for dive in dives]


class InMemoryDiveRepository(DiveRepository):
    """Repository backed by a dict, handy for tests and one-shot imports"""

    def __init__(self):
        self._dives: Dict[int, Dive] = {}
        self._next_id = 1

    def create(self, dive: Dive) -> Dive:
        stored = replace(dive, id=self._next_id)
        self._dives[stored.id] = stored
        self._next_id += 1
        logger.debug(f"Stored dive {stored.id} at {stored.location}")
        return stored

    def update(self, dive: Dive) -> Dive:
        if dive.id not in self._dives:
            raise DiveNotFoundError(dive.id)
        self._dives[dive.id] = dive
        return dive

    def delete(self, dive_id: int) -> None:
        if self._dives.pop(dive_id, None) is None:
            raise DiveNotFoundError(dive_id)

    def get(self, dive_id: int) -> Dive:
        try:
            return self._dives[dive_id]
        except KeyError:
            raise DiveNotFoundError(dive_id)

    def list(self) -> List[Dive]:
        return list(self._dives.values())
