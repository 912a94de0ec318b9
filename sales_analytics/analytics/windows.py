"""
Window Computation Engine

Partitioned running aggregates, whole-partition aggregates, grand totals
and lag lookups over an already aggregated frame.

Every primitive appends one column and returns the rows in their input
order. Internally the frame is stably sorted by partition and order keys,
scanned once with per-partition accumulators, and restored.

Ordering rules:
- Null order keys sort last.
- Rows sharing an order key within a partition (peers) keep their input
  order. Running aggregates give all peers the same value, the aggregate up
  to and including the last peer; ``lag`` walks peers in input order.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import polars as pl

from .expressions import round_half_away

_ROW = "__row_nr"
_SUM = "__running_sum"
_COUNT = "__running_count"

RUNNING_FUNCS = ("sum", "avg")


@dataclass(frozen=True)
class WindowSpec:
    """Partition and order keys of a window; no partition means the whole input"""
    order_by: Sequence[str]
    partition_by: Sequence[str] = ()

    @property
    def sort_keys(self) -> List[str]:
        return [*self.partition_by, *self.order_by]


def _over(expr: pl.Expr, keys: Sequence[str]) -> pl.Expr:
    return expr.over(list(keys)) if keys else expr


def _ordered(df: pl.DataFrame, spec: WindowSpec) -> pl.DataFrame:
    if not spec.order_by:
        raise ValueError("A window needs at least one order key")
    return df.with_row_index(_ROW).sort(spec.sort_keys, nulls_last=True, maintain_order=True)


def _restored(df: pl.DataFrame) -> pl.DataFrame:
    return df.sort(_ROW).drop(_ROW)


def _check_func(func: str) -> str:
    if func not in RUNNING_FUNCS:
        raise ValueError(f"Unsupported window function '{func}', expected one of {RUNNING_FUNCS}")
    return func


def running_aggregate(
    df: pl.DataFrame,
    spec: WindowSpec,
    column: str,
    alias: str,
    func: str = "sum",
    decimals: Optional[int] = None,
) -> pl.DataFrame:
    """
    Running sum or average of ``column`` within each partition.

    The frame of a row covers every row of its partition whose order key is
    less than or equal to its own. Null measure values are skipped; a frame
    without any non-null value yields null.
    """
    _check_func(func)
    ordered = _ordered(df, spec)
    value = pl.col(column)

    ordered = ordered.with_columns(
        _over(value.fill_null(0).cum_sum(), spec.partition_by).alias(_SUM),
        _over(value.is_not_null().cast(pl.Int64).cum_sum(), spec.partition_by).alias(_COUNT),
    )
    # Peers share the frame end
    ordered = ordered.with_columns(
        pl.col(_SUM).last().over(spec.sort_keys),
        pl.col(_COUNT).last().over(spec.sort_keys),
    )

    if func == "sum":
        result = pl.col(_SUM)
    else:
        result = pl.col(_SUM) / pl.col(_COUNT)
    if decimals is not None:
        result = round_half_away(result, decimals)

    ordered = ordered.with_columns(
        pl.when(pl.col(_COUNT) > 0).then(result).otherwise(None).alias(alias)
    ).drop(_SUM, _COUNT)
    return _restored(ordered)


def partition_aggregate(
    df: pl.DataFrame,
    partition_by: Sequence[str],
    column: str,
    alias: str,
    func: str = "sum",
    decimals: Optional[int] = None,
) -> pl.DataFrame:
    """Sum or average of ``column`` over the whole partition, attached to each row"""
    _check_func(func)
    value = pl.col(column)
    expr = value.sum() if func == "sum" else value.mean()
    if decimals is not None:
        expr = round_half_away(expr, decimals)
    return df.with_columns(_over(expr, partition_by).alias(alias))


def grand_total(df: pl.DataFrame, column: str, alias: str) -> pl.DataFrame:
    """Total of ``column`` over the entire input, identical on every row"""
    return partition_aggregate(df, (), column, alias, func="sum")


def lag(
    df: pl.DataFrame,
    spec: WindowSpec,
    column: str,
    alias: str,
    offset: int = 1,
) -> pl.DataFrame:
    """
    Value of ``column`` ``offset`` rows earlier in the partition.

    Rows without a predecessor get null, never zero.
    """
    if offset < 1:
        raise ValueError("Lag offset must be at least 1")
    ordered = _ordered(df, spec)
    ordered = ordered.with_columns(
        _over(pl.col(column).shift(offset), spec.partition_by).alias(alias)
    )
    return _restored(ordered)
