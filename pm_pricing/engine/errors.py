class InvalidInputError(ValueError):
    """Raised before any arithmetic when a query is malformed or out of range."""


class UndefinedInverseError(ValueError):
    """Raised when a collateral budget cannot be inverted into a token count."""


class NumericOverflowError(OverflowError):
    """Raised when an exponent leaves the range of the pricing context."""
