from __future__ import annotations

from typing import Protocol


class HashProvider(Protocol):
    """One-way secret hashing. The algorithm is the adapter's concern."""

    def hash(self, secret: str) -> str: ...

    def verify(self, secret: str, digest: str) -> bool: ...

    def burn(self, secret: str) -> None:
        """Spend the cost of one ``verify`` without a real digest."""
        ...
