"""RAY fixed-point helpers (WTON balances carry 27 decimals)."""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal, InvalidOperation, localcontext

RAY_DECIMALS = 27
RAY = 10**RAY_DECIMALS


def ray_to_float(value: int) -> float:
    """Convert a RAY-scaled integer to a float without precision collapse.

    Balances routinely exceed 2**53, so dividing the raw integer as a float
    loses digits. The whole and fractional parts are converted separately and
    recombined instead.

    Precondition: ``value >= 0``; balances are never negative.
    """
    whole, remainder = divmod(value, RAY)
    return float(whole) + remainder / RAY


def parse_ray(raw: str | int) -> int:
    """Parse a fixed-point integer as returned by a data provider.

    Raises ValueError for anything other than a non-negative base-10 integer.
    """
    if isinstance(raw, bool):
        raise ValueError(f"Malformed fixed-point value: {raw!r}")
    if isinstance(raw, int):
        if raw < 0:
            raise ValueError(f"Negative fixed-point value: {raw}")
        return raw
    text = str(raw).strip()
    if not text.isdecimal():
        raise ValueError(f"Malformed fixed-point value: {raw!r}")
    return int(text)


def to_ray(amount: str | int | float | Decimal) -> int:
    """Whole-token amount to RAY, floored to the nearest unit."""
    try:
        value = Decimal(str(amount))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid token amount: {amount!r}") from exc
    if not value.is_finite():
        raise ValueError(f"Invalid token amount: {amount!r}")
    with localcontext() as ctx:
        ctx.prec = 80
        scaled = (value * RAY).to_integral_value(rounding=ROUND_FLOOR)
    return int(scaled)


def format_ray(value: int, places: int = 2) -> str:
    """Human-facing token string, truncated to ``places`` decimals."""
    sign = "-" if value < 0 else ""
    whole, remainder = divmod(abs(value), RAY)
    if places <= 0:
        return f"{sign}{whole:,}"
    places = min(places, RAY_DECIMALS)
    fraction = remainder // 10 ** (RAY_DECIMALS - places)
    return f"{sign}{whole:,}.{fraction:0{places}d}"
