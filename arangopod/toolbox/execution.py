"""Execution modes for manager operations.

Every manager call resolves its mode once from the transaction manager: an
operation either runs now against the driver, or is buffered as a statement
of the open transaction.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .transaction import TransactionManager


class ExecutionMode:
    """Base class for execution modes."""

    is_buffered = False


class Immediate(ExecutionMode):
    """Run operations against the driver right away."""

    def __repr__(self) -> str:
        return "Immediate()"


class Buffered(ExecutionMode):
    """Record operations as commands of an open transaction."""

    is_buffered = True

    def __init__(self, transaction_manager: "TransactionManager") -> None:
        self.transaction_manager = transaction_manager

    def __repr__(self) -> str:
        return f"Buffered({self.transaction_manager!r})"


IMMEDIATE = Immediate()
