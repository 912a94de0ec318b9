"""
Aggregation Engine

Groups sales lines by arbitrary keys (time buckets, product, category,
customer) and computes named measures per group.

Example:
    totals = aggregate(
        sales,
        [pl.col("order_date").dt.year().alias("order_year")],
        [
            Measure("total_sales", "sales_amount", MeasureFunc.SUM),
            Measure("total_customers", "customer_key", MeasureFunc.COUNT_DISTINCT),
        ],
    )
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Union

import polars as pl

from .expressions import round_half_away

GroupKey = Union[str, pl.Expr]


class MeasureFunc(str, Enum):
    """Aggregate functions available to a measure"""
    SUM = "sum"
    COUNT = "count"
    COUNT_DISTINCT = "count_distinct"
    MIN = "min"
    MAX = "max"
    AVG = "avg"


@dataclass(frozen=True)
class Measure:
    """
    One output column of an aggregation.

    ``sum``, ``count`` and ``count_distinct`` ignore nulls; ``count_distinct``
    dedupes by value. ``decimals`` rounds an ``avg`` half away from zero.
    """
    name: str
    column: str
    func: MeasureFunc
    decimals: Optional[int] = None

    def to_expr(self) -> pl.Expr:
        col = pl.col(self.column)
        func = MeasureFunc(self.func)

        if func == MeasureFunc.SUM:
            # A group without any value sums to null, not 0
            expr = pl.when(col.count() > 0).then(col.sum())
        elif func == MeasureFunc.COUNT:
            expr = col.drop_nulls().len()
        elif func == MeasureFunc.COUNT_DISTINCT:
            expr = col.drop_nulls().n_unique()
        elif func == MeasureFunc.MIN:
            expr = col.min()
        elif func == MeasureFunc.MAX:
            expr = col.max()
        else:
            expr = col.mean()
            if self.decimals is not None:
                expr = round_half_away(expr, self.decimals)

        return expr.alias(self.name)


def aggregate(
    df: pl.DataFrame,
    group_keys: Sequence[GroupKey],
    measures: Sequence[Measure],
) -> pl.DataFrame:
    """
    Group ``df`` by ``group_keys`` and evaluate ``measures`` per group.

    Keys are compared by equality; a null key forms its own group. The
    output holds one row per distinct key combination in unspecified order.

    Args:
        df: Input rows (sales lines are expected to be date-filtered already)
        group_keys: Column names or aliased expressions
        measures: Output measures

    Returns:
        Aggregated frame with key columns followed by measure columns
    """
    if not group_keys:
        return df.select([m.to_expr() for m in measures])
    return df.group_by(list(group_keys)).agg([m.to_expr() for m in measures])
