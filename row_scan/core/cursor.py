"""Cursor, slot and scanner protocols.

The scan engine consumes any object implementing ``Cursor``. Every cursor
implementation MUST expose the same five operations; ``unsafe`` and
``mapper`` attributes are optional and default to strict mode and the
process-wide mapper.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Slot(Protocol):
    """A writable destination for one column value."""

    def assign(self, value: Any) -> None:
        """Store ``value`` into this slot."""
        ...


@runtime_checkable
class Scanner(Protocol):
    """Types that decode a single column value into themselves."""

    def scan(self, value: Any) -> None:
        """Decode ``value`` into this instance."""
        ...


@runtime_checkable
class Cursor(Protocol):
    """Sequential result-set cursor."""

    def columns(self) -> Sequence[str]:
        """Ordered column names of the result set."""
        ...

    def advance(self) -> bool:
        """Move to the next row. Returns False when no row is available."""
        ...

    def decode_into(self, slots: Sequence[Slot]) -> None:
        """Assign the current row's values to ``slots``, positionally."""
        ...

    def final_error(self) -> BaseException | None:
        """Error that ended iteration early, checked after advance() is False."""
        ...

    def close(self) -> None:
        """Release the cursor."""
        ...


def is_scanner_type(cls: Any) -> bool:
    """Check whether instances of ``cls`` implement ``Scanner``."""
    return isinstance(cls, type) and callable(getattr(cls, "scan", None))
