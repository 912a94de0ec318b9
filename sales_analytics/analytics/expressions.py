"""
Calendar and Rounding Expressions

Polars expressions shared by the aggregation, window and report modules.

Rounding is half-away-from-zero (0.125 -> 0.13, -12.5 -> -13), the
behaviour of ROUND on exact numerics in the warehouse the reports were
first written against.

Month differences use calendar-field subtraction: the month count drops by
one when the later date's day-of-month is smaller than the earlier one's,
so 2021-01-31 -> 2021-02-28 is 0 whole months and 2021-01-15 -> 2021-02-15
is 1.
"""

from datetime import date, datetime
from typing import Union

import polars as pl

DateLike = Union[pl.Expr, date, datetime]


def as_date(value: Union[date, datetime]) -> date:
    """Drop the time part of an evaluation timestamp"""
    if isinstance(value, datetime):
        return value.date()
    return value


def _to_expr(value: DateLike) -> pl.Expr:
    if isinstance(value, pl.Expr):
        return value
    return pl.lit(as_date(value), dtype=pl.Date)


def round_half_away(expr: pl.Expr, decimals: int = 0) -> pl.Expr:
    """Round half away from zero to ``decimals`` places (nulls stay null)"""
    factor = 10 ** decimals
    magnitude = (expr.abs() * factor + 0.5).floor() / factor
    return pl.when(expr < 0).then(-magnitude).otherwise(magnitude)


def format_fixed(expr: pl.Expr, decimals: int = 2, suffix: str = "") -> pl.Expr:
    """Render a number as text with exactly ``decimals`` places (nulls stay null)"""
    units = round_half_away(expr * 10 ** decimals).cast(pl.Int64)
    sign = pl.when(units < 0).then(pl.lit("-")).otherwise(pl.lit(""))
    whole = (units.abs() // 10 ** decimals).cast(pl.Utf8)
    if decimals == 0:
        return pl.concat_str([sign, whole, pl.lit(suffix)])
    fraction = (units.abs() % 10 ** decimals).cast(pl.Utf8).str.zfill(decimals)
    return pl.concat_str([sign, whole, pl.lit("."), fraction, pl.lit(suffix)])


def _forward_months(start: pl.Expr, end: pl.Expr) -> pl.Expr:
    months = (
        (end.dt.year().cast(pl.Int64) - start.dt.year().cast(pl.Int64)) * 12
        + (end.dt.month().cast(pl.Int64) - start.dt.month().cast(pl.Int64))
    )
    borrow = (end.dt.day() < start.dt.day()).cast(pl.Int64)
    return months - borrow


def whole_months_between(start: DateLike, end: DateLike) -> pl.Expr:
    """
    Whole calendar months from ``start`` to ``end``.

    Negative when ``end`` precedes ``start``; null when either side is null.
    """
    start, end = _to_expr(start), _to_expr(end)
    return (
        pl.when(end >= start)
        .then(_forward_months(start, end))
        .otherwise(-_forward_months(end, start))
    )


def whole_years_between(start: DateLike, end: DateLike) -> pl.Expr:
    """Whole calendar years from ``start`` to ``end`` (age in years)"""
    months = whole_months_between(start, end)
    return pl.when(months >= 0).then(months // 12).otherwise(-((-months) // 12))


def days_between(start: DateLike, end: DateLike) -> pl.Expr:
    """Elapsed days from ``start`` to ``end``"""
    return (_to_expr(end) - _to_expr(start)).dt.total_days()
