from contextlib import contextmanager
from decimal import (
    Context, Decimal, DivisionByZero, InvalidOperation, Overflow,
    ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, localcontext,
)
from typing import Iterator

from .errors import NumericOverflowError

DEFAULT_PRECISION = 80
DEFAULT_ROUNDING = ROUND_HALF_UP

# On-chain LMSR math truncates its series expansions of exp/ln. Quoted costs are
# scaled up and refunds scaled down by this slack so that an off-chain quote
# never undercuts what the contract charges or overstates what it pays out.
FIXED_POINT_SLACK = Decimal('1e-9')
FIXED_POINT_BIAS = Decimal(1) + FIXED_POINT_SLACK

ZERO = Decimal(0)
ONE = Decimal(1)


def _build_context(precision: int, rounding: str) -> Context:
    return Context(
        prec=precision,
        rounding=rounding,
        traps=[InvalidOperation, DivisionByZero, Overflow],
    )


_context = _build_context(DEFAULT_PRECISION, DEFAULT_ROUNDING)


def configure_context(precision: int = DEFAULT_PRECISION, rounding: str = DEFAULT_ROUNDING) -> None:
    """
    Replace the shared pricing context.

    Meant to run once at process start. Computations already inside
    pricing_context() keep the copy they entered with.
    """
    global _context
    if precision < 1:
        raise ValueError(f"Invalid precision: {precision}. Must be positive.")
    _context = _build_context(precision, rounding)


def get_context() -> Context:
    return _context.copy()


@contextmanager
def pricing_context() -> Iterator[Context]:
    """
    Enter a local copy of the shared context for one whole computation.

    decimal keeps one context per thread, so entering an explicit copy is what
    makes every thread price with the same precision and rounding.
    """
    with localcontext(_context) as ctx:
        try:
            yield ctx
        except Overflow as e:
            raise NumericOverflowError(f"Exponent overflow at precision {ctx.prec}") from e
        except InvalidOperation as e:
            raise NumericOverflowError(f"Invalid decimal operation, exponent out of range: {e}") from e


def to_decimal(value: int | float | str | Decimal) -> Decimal:
    """Exact conversion; floats go through str like the rest of the codebase."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def exp(x: Decimal) -> Decimal:
    return x.exp()


def ln(x: Decimal) -> Decimal:
    return x.ln()


def ceil(x: Decimal) -> Decimal:
    return x.to_integral_value(rounding=ROUND_CEILING)


def floor(x: Decimal) -> Decimal:
    return x.to_integral_value(rounding=ROUND_FLOOR)
