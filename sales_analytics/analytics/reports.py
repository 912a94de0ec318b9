"""
Analytical Reports

The five report shapes built on the aggregation, window and classification
engines:

1. Change over time   - sales, customers and quantity per time bucket
2. Cumulative         - running totals and running average prices
3. Segmentation       - products by cost range, customers by spend and tenure
4. Part-to-whole      - each category's share of total sales
5. Performance        - yearly product sales vs. average and vs. previous year

Every report starts from the date-validity filter and sorts its output.
"""

from enum import Enum
from typing import List

import polars as pl
import structlog

from sales_analytics.ingestion.sources import valid_sales
from .aggregation import Measure, MeasureFunc, aggregate
from .classification import AVG_CHANGE, COST_RANGE, PY_CHANGE, SPENDING_SEGMENT
from .expressions import days_between, format_fixed, round_half_away
from .windows import WindowSpec, grand_total, lag, partition_aggregate, running_aggregate

logger = structlog.get_logger(__name__)

_YEAR = "__year"


class TimeGrain(str, Enum):
    """Time bucket of a trend report"""
    DAY = "day"                  # calendar date
    MONTH = "month"              # month number 1-12, all years combined
    YEAR = "year"
    YEAR_MONTH = "year_month"    # (year, month number)
    MONTH_START = "month_start"  # date truncated to the 1st of the month
    YEAR_START = "year_start"    # date truncated to January 1st


def time_keys(grain: TimeGrain) -> List[pl.Expr]:
    """Grouping expressions for a time grain"""
    order_date = pl.col("order_date")
    year = order_date.dt.year().alias("order_year")
    month = order_date.dt.month().cast(pl.Int32).alias("order_month")

    grain = TimeGrain(grain)
    if grain == TimeGrain.DAY:
        return [order_date.alias("order_date")]
    if grain == TimeGrain.MONTH:
        return [month]
    if grain == TimeGrain.YEAR:
        return [year]
    if grain == TimeGrain.YEAR_MONTH:
        return [year, month]
    if grain == TimeGrain.MONTH_START:
        return [order_date.dt.truncate("1mo").alias("order_date")]
    return [order_date.dt.truncate("1y").alias("order_date")]


def time_key_names(grain: TimeGrain) -> List[str]:
    return [key.meta.output_name() for key in time_keys(grain)]


# =============================================================================
# CHANGE OVER TIME
# =============================================================================

def daily_sales(sales: pl.DataFrame) -> pl.DataFrame:
    """Individual order lines (order_date, sales_amount) in date order"""
    return (
        valid_sales(sales)
        .select("order_date", "sales_amount")
        .sort("order_date", maintain_order=True)
    )


def change_over_time(sales: pl.DataFrame, grain: TimeGrain = TimeGrain.YEAR) -> pl.DataFrame:
    """
    Sales trend at the given time grain.

    Columns: <grain keys>, total_sales, total_customers, total_quantity
    """
    keys = time_key_names(grain)
    trend = aggregate(
        valid_sales(sales),
        time_keys(grain),
        [
            Measure("total_sales", "sales_amount", MeasureFunc.SUM),
            Measure("total_customers", "customer_key", MeasureFunc.COUNT_DISTINCT),
            Measure("total_quantity", "quantity", MeasureFunc.SUM),
        ],
    )
    return trend.sort(keys).select(*keys, "total_sales", "total_customers", "total_quantity")


# =============================================================================
# CUMULATIVE
# =============================================================================

def cumulative(
    sales: pl.DataFrame,
    grain: TimeGrain = TimeGrain.MONTH_START,
    reset_each_year: bool = False,
) -> pl.DataFrame:
    """
    Running totals of sales and running average of the average price.

    With ``reset_each_year`` both running columns restart every calendar
    year (year-to-date figures).

    Columns: order_date, total_sales, avg_price, running_total_sales,
    running_avg_price
    """
    grain = TimeGrain(grain)
    if grain not in (TimeGrain.MONTH_START, TimeGrain.YEAR_START):
        raise ValueError(f"Cumulative report needs a date grain (month_start or year_start), got '{grain.value}'")

    totals = aggregate(
        valid_sales(sales),
        time_keys(grain),
        [
            Measure("total_sales", "sales_amount", MeasureFunc.SUM),
            Measure("avg_price", "price", MeasureFunc.AVG, decimals=2),
        ],
    ).sort("order_date")

    partition = ()
    if reset_each_year:
        totals = totals.with_columns(pl.col("order_date").dt.year().alias(_YEAR))
        partition = (_YEAR,)

    spec = WindowSpec(order_by=("order_date",), partition_by=partition)
    totals = running_aggregate(totals, spec, "total_sales", "running_total_sales", func="sum")
    totals = running_aggregate(totals, spec, "avg_price", "running_avg_price", func="avg", decimals=2)

    return totals.select(
        "order_date", "total_sales", "avg_price", "running_total_sales", "running_avg_price"
    )


# =============================================================================
# SEGMENTATION
# =============================================================================

def _segment_counts(df: pl.DataFrame, label: str, key: str, alias: str) -> pl.DataFrame:
    counts = aggregate(df, [label], [Measure(alias, key, MeasureFunc.COUNT)])
    return counts.sort([alias, label], descending=[True, False])


def product_cost_ranges(products: pl.DataFrame) -> pl.DataFrame:
    """Each product with its cost range"""
    ranged = COST_RANGE.apply(
        products.select("product_key", "product_name", "cost"), "cost_range"
    )
    return ranged.sort("product_key", nulls_last=True)


def product_segment_counts(products: pl.DataFrame) -> pl.DataFrame:
    """Number of products per cost range, largest range first"""
    return _segment_counts(product_cost_ranges(products), "cost_range", "product_key", "total_products")


def customer_spending(sales: pl.DataFrame) -> pl.DataFrame:
    """
    Lifetime spending and day-based tenure per customer.

    Grouped on the sales line's customer key, so lines whose customer is
    missing from the dimension still count.

    Columns: customer_key, total_spending, first_order, last_order,
    lifespan_days
    """
    spending = aggregate(
        valid_sales(sales),
        ["customer_key"],
        [
            Measure("total_spending", "sales_amount", MeasureFunc.SUM),
            Measure("first_order", "order_date", MeasureFunc.MIN),
            Measure("last_order", "order_date", MeasureFunc.MAX),
        ],
    )
    return spending.with_columns(
        days_between(pl.col("first_order"), pl.col("last_order")).alias("lifespan_days")
    ).sort("customer_key", nulls_last=True)


def customer_spending_segments(sales: pl.DataFrame) -> pl.DataFrame:
    """Customers labelled VIP / Regular / New by spend and day-based tenure"""
    return SPENDING_SEGMENT.apply(customer_spending(sales), "customer_segment")


def customer_segment_counts(sales: pl.DataFrame) -> pl.DataFrame:
    """Number of customers per spending segment, largest segment first"""
    return _segment_counts(
        customer_spending_segments(sales), "customer_segment", "customer_key", "total_customers"
    )


# =============================================================================
# PART-TO-WHOLE
# =============================================================================

def part_to_whole(sales: pl.DataFrame, products: pl.DataFrame) -> pl.DataFrame:
    """
    Share of total sales per product category.

    Sales lines without a matching product contribute under a null
    category. The percentage is absent when total sales are zero.

    Columns: category, total_sales, overall_sales, percentage_of_total
    """
    joined = valid_sales(sales).join(
        products.select("product_key", "category"),
        on="product_key",
        how="left",
    )
    by_category = aggregate(
        joined,
        ["category"],
        [Measure("total_sales", "sales_amount", MeasureFunc.SUM)],
    )
    by_category = grand_total(by_category, "total_sales", "overall_sales")

    share = pl.when(pl.col("overall_sales") != 0).then(
        round_half_away(pl.col("total_sales") * 100 / pl.col("overall_sales"), 2)
    )
    by_category = by_category.with_columns(
        format_fixed(share, 2, suffix="%").alias("percentage_of_total")
    )

    return by_category.sort(
        ["total_sales", "category"], descending=[True, False], nulls_last=True
    ).select("category", "total_sales", "overall_sales", "percentage_of_total")


# =============================================================================
# PERFORMANCE
# =============================================================================

def yearly_product_sales(sales: pl.DataFrame, products: pl.DataFrame) -> pl.DataFrame:
    """Sales per (order_year, product_name)"""
    joined = valid_sales(sales).join(
        products.select("product_key", "product_name"),
        on="product_key",
        how="left",
    )
    return aggregate(
        joined,
        [pl.col("order_date").dt.year().alias("order_year"), "product_name"],
        [Measure("current_year_sales", "sales_amount", MeasureFunc.SUM)],
    )


def product_performance(sales: pl.DataFrame, products: pl.DataFrame) -> pl.DataFrame:
    """
    Yearly product sales against the product's average and previous year.

    The first year of a product has no previous-year value: py_sales and
    diff_py are null and py_change is "no change".

    Columns: order_year, product_name, current_year_sales,
    product_avg_sales, diff_avg_sales, avg_change, py_sales, diff_py,
    py_change
    """
    yearly = yearly_product_sales(sales, products)

    yearly = partition_aggregate(
        yearly, ["product_name"], "current_year_sales", "product_avg_sales", func="avg", decimals=0
    )
    yearly = yearly.with_columns(
        (pl.col("current_year_sales") - pl.col("product_avg_sales")).alias("diff_avg_sales")
    )
    yearly = AVG_CHANGE.apply(yearly, "avg_change")

    by_year = WindowSpec(order_by=("order_year",), partition_by=("product_name",))
    yearly = lag(yearly, by_year, "current_year_sales", "py_sales")
    yearly = yearly.with_columns(
        (pl.col("current_year_sales") - pl.col("py_sales")).alias("diff_py")
    )
    yearly = PY_CHANGE.apply(yearly, "py_change")

    return yearly.sort(["product_name", "order_year"], nulls_last=True).select(
        "order_year",
        "product_name",
        "current_year_sales",
        "product_avg_sales",
        "diff_avg_sales",
        "avg_change",
        "py_sales",
        "diff_py",
        "py_change",
    )
