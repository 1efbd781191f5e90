"""Byte-addressed main memory behind the caches."""

from __future__ import annotations


class InvalidAddressError(IndexError):
    """Raised for an access outside the memory."""


class MainMemory:
    """A flat array of bytes addressed by ``address_length`` bits."""

    def __init__(self, address_length: int = 16) -> None:
        self._data = bytearray(1 << address_length)

    @property
    def size(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def _check(self, address: int) -> None:
        if not 0 <= address < len(self._data):
            raise InvalidAddressError(f"Invalid memory address {address}")

    def read(self, address: int) -> int:
        """Return the byte stored at ``address``."""
        self._check(address)
        return self._data[address]

    def write(self, address: int, value: int) -> None:
        """Store the low byte of ``value`` at ``address``."""
        self._check(address)
        self._data[address] = value & 0xFF