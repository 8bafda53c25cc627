"""
Identifier providers.

Services never call ``uuid4()`` directly for entity ids; they receive an
``IdProvider`` so tests can pin identifiers the same way they pin time.
"""

from abc import ABC, abstractmethod
from uuid import UUID, uuid4


class IdProvider(ABC):
    """Supplies opaque unique identifiers."""

    @abstractmethod
    def new_id(self) -> UUID:
        ...


class UUID4Provider(IdProvider):
    """Production provider: random version-4 UUIDs."""

    def new_id(self) -> UUID:
        return uuid4()


class SequentialIdProvider(IdProvider):
    """Test provider: ``UUID(int=start)``, ``UUID(int=start + 1)``, ..."""

    def __init__(self, start: int = 1):
        self._next = start

    def new_id(self) -> UUID:
        value = UUID(int=self._next)
        self._next += 1
        return value
