"""Banked ROM access, bank switching and small byte stacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping

__all__ = ["BankPtr", "ByteStack", "BankedMemory", "N_PUSH_BANKS", "BANK_PTR_SIZE"]

N_PUSH_BANKS = 10
BANK_PTR_SIZE = 3
_INITIAL_BANK = 1


@dataclass(frozen=True)
class BankPtr:
    """Location of data: a ROM bank and an offset within it."""

    bank: int = 0
    offset: int = 0


class ByteStack:
    """A bounded stack of 8-bit values."""

    def __init__(self, capacity: int | None = None, items: Iterable[int] = ()) -> None:
        self.capacity = capacity
        self._items: list[int] = []
        for item in items:
            self.push(item)

    def push(self, elem: int) -> None:
        """Push a value onto the top of the stack."""
        if not 0 <= elem <= 0xFF:
            raise ValueError(f"stack element out of byte range: {elem}")
        if self.capacity is not None and len(self._items) >= self.capacity:
            raise OverflowError("stack is full")
        self._items.append(elem)

    def pop(self) -> int:
        """Remove and return the top value."""
        if not self._items:
            raise IndexError("pop from empty stack")
        return self._items.pop()

    def shift(self) -> int:
        """Remove and return the bottom value."""
        if not self._items:
            raise IndexError("shift from empty stack")
        return self._items.pop(0)

    def peek(self) -> int:
        """Return the top value without removing it."""
        if not self._items:
            raise IndexError("peek at empty stack")
        return self._items[-1]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[int]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"ByteStack({self._items!r})"


class BankedMemory:
    """Read-only banked memory with a stack of switched banks."""

    def __init__(self, banks: Mapping[int, bytes]) -> None:
        self._banks = {number: bytes(data) for number, data in banks.items()}
        self._current = _INITIAL_BANK
        self._stack = ByteStack(N_PUSH_BANKS)

    def _bank(self, bank: int) -> bytes:
        try:
            return self._banks[bank]
        except KeyError:
            raise KeyError(f"no such bank: {bank}") from None

    def read_bytes(self, bank: int, offset: int, n: int) -> bytes:
        """Copy ``n`` bytes starting at ``offset`` in ``bank``."""
        data = self._bank(bank)
        if offset < 0 or n < 0 or offset + n > len(data):
            raise IndexError(f"read of {n} bytes at {offset} outside bank {bank}")
        return data[offset : offset + n]

    def read_ubyte(self, bank: int, offset: int) -> int:
        """Read one byte from ``bank``."""
        return self.read_bytes(bank, offset, 1)[0]

    def read_bank_ptr(self, bank: int, offset: int) -> BankPtr:
        """Read a packed bank pointer: bank byte then little-endian offset."""
        raw = self.read_bytes(bank, offset, BANK_PTR_SIZE)
        return BankPtr(raw[0], int.from_bytes(raw[1:3], "little"))

    def push_bank(self, bank: int) -> None:
        """Remember the current bank and switch to ``bank``."""
        self._stack.push(self._current)
        self._current = bank

    def pop_bank(self) -> None:
        """Switch back to the bank that was current before the last push."""
        self._current = self._stack.pop()

    def current_bank(self) -> int:
        """The bank currently switched in."""
        return self._current