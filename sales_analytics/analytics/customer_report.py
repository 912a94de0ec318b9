"""
Customer Report

Consolidated per-customer view combining aggregation, calendar arithmetic
and classification:

- Customer attributes: number, full name, age and age group
- Activity: orders, sales, quantity, distinct products, last order date,
  lifespan in whole months
- Segment: VIP / Regular / New on month-based tenure and sales
- KPIs: recency in months, average order value, average monthly spend

The report is derived from the record sets on every call; nothing is
stored between calls.
"""

from datetime import date, datetime
from typing import Union

import polars as pl
import structlog

from sales_analytics.ingestion.sources import valid_sales
from .aggregation import Measure, MeasureFunc, aggregate
from .classification import AGE_GROUP, CUSTOMER_SEGMENT
from .expressions import as_date, round_half_away, whole_months_between, whole_years_between

logger = structlog.get_logger(__name__)

CUSTOMER_REPORT_COLUMNS = [
    "customer_key",
    "customer_number",
    "customer_name",
    "age",
    "age_group",
    "customer_segment",
    "recency_months",
    "avg_order_value",
    "avg_monthly_spend",
    "total_orders",
    "total_sales",
    "total_quantity",
    "total_products",
    "last_order_date",
    "lifespan",
]

_GROUP_KEYS = ["customer_key", "customer_number", "customer_name", "age"]


def customer_base(
    sales: pl.DataFrame,
    customers: pl.DataFrame,
    as_of: Union[date, datetime],
) -> pl.DataFrame:
    """
    Dated sales lines joined with their customer's attributes.

    Lines whose customer is missing keep their figures with null
    attributes.
    """
    attributes = customers.select(
        "customer_key",
        "customer_number",
        pl.concat_str(
            [
                pl.col("first_name").fill_null(""),
                pl.lit(" "),
                pl.col("last_name").fill_null(""),
            ]
        ).alias("customer_name"),
        whole_years_between(pl.col("birthdate"), as_of).alias("age"),
    )
    return (
        valid_sales(sales)
        .select("order_number", "product_key", "customer_key", "order_date", "sales_amount", "quantity")
        .join(attributes, on="customer_key", how="left")
    )


def aggregate_customers(base: pl.DataFrame) -> pl.DataFrame:
    """One row per customer with order activity and month-based lifespan"""
    totals = aggregate(
        base,
        _GROUP_KEYS,
        [
            Measure("total_orders", "order_number", MeasureFunc.COUNT_DISTINCT),
            Measure("total_sales", "sales_amount", MeasureFunc.SUM),
            Measure("total_quantity", "quantity", MeasureFunc.SUM),
            Measure("total_products", "product_key", MeasureFunc.COUNT_DISTINCT),
            Measure("first_order_date", "order_date", MeasureFunc.MIN),
            Measure("last_order_date", "order_date", MeasureFunc.MAX),
        ],
    )
    return totals.with_columns(
        whole_months_between(pl.col("first_order_date"), pl.col("last_order_date")).alias("lifespan")
    ).drop("first_order_date")


def customer_report(
    sales: pl.DataFrame,
    customers: pl.DataFrame,
    as_of: Union[date, datetime],
) -> pl.DataFrame:
    """
    Build the consolidated customer report.

    Args:
        sales: Conformed sales lines
        customers: Conformed customer dimension
        as_of: Evaluation date for age and recency

    Returns:
        One row per customer, ordered by customer_key
    """
    as_of = as_date(as_of)
    report = aggregate_customers(customer_base(sales, customers, as_of))

    report = AGE_GROUP.apply(report, "age_group")
    report = CUSTOMER_SEGMENT.apply(report, "customer_segment")

    total_sales = pl.col("total_sales")
    total_orders = pl.col("total_orders")
    lifespan = pl.col("lifespan")

    report = report.with_columns(
        whole_months_between(pl.col("last_order_date"), as_of).alias("recency_months"),
        pl.when((total_sales == 0) | (total_orders == 0))
        .then(pl.lit(0.0))
        .otherwise(round_half_away(total_sales / total_orders, 2))
        .alias("avg_order_value"),
        pl.when(lifespan == 0)
        .then(round_half_away(total_sales, 2))
        .otherwise(round_half_away(total_sales / lifespan, 2))
        .alias("avg_monthly_spend"),
    )

    logger.debug("Customer report built", customers=report.height, as_of=str(as_of))
    return report.sort("customer_key", nulls_last=True).select(CUSTOMER_REPORT_COLUMNS)
