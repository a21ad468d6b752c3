"""Exceptions raised by the price table calculator."""


class PriceTableError(Exception):
    """Base class for all calculator errors."""


class InvalidInput(PriceTableError, ValueError):
    """A loan input is non-numeric or outside the engine's domain."""

    def __init__(self, field: str, value: object, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")


class NoConvergence(PriceTableError, ArithmeticError):
    """An iterative rate search ended without reaching its tolerance."""
