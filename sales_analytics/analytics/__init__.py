"""
Analytics Module
"""
from .aggregation import Measure, MeasureFunc, aggregate
from .classification import Rule, RuleSet, comparison_rules
from .composer import ReportComposer
from .customer_report import customer_report
from .reports import (
    TimeGrain,
    change_over_time,
    cumulative,
    customer_segment_counts,
    customer_spending_segments,
    daily_sales,
    part_to_whole,
    product_cost_ranges,
    product_performance,
    product_segment_counts,
)
from .windows import WindowSpec, grand_total, lag, partition_aggregate, running_aggregate

__all__ = [
    "Measure",
    "MeasureFunc",
    "aggregate",
    "Rule",
    "RuleSet",
    "comparison_rules",
    "ReportComposer",
    "customer_report",
    "TimeGrain",
    "change_over_time",
    "cumulative",
    "customer_segment_counts",
    "customer_spending_segments",
    "daily_sales",
    "part_to_whole",
    "product_cost_ranges",
    "product_performance",
    "product_segment_counts",
    "WindowSpec",
    "grand_total",
    "lag",
    "partition_aggregate",
    "running_aggregate",
]
