"""
Abstract base class for durable queue slots.

A slot holds one opaque serialized value (the offline queue as a JSON
array). Implementations raise ``PersistenceError`` when the underlying
medium cannot be read or written.
"""

from abc import ABC, abstractmethod


class BaseSlotStore(ABC):
    """Interface that every durable slot backend must implement."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier of the slot (file path, row key, ...)."""

    @abstractmethod
    async def read(self) -> str | None:
        """Return the stored value, or ``None`` if the slot was never written.

        Raises:
            PersistenceError: If the slot exists but cannot be read.
        """

    @abstractmethod
    async def write(self, payload: str) -> None:
        """Replace the stored value atomically.

        Raises:
            PersistenceError: If the value could not be stored.
        """

    async def close(self) -> None:
        """Release backend resources. Default: nothing to release."""
