"""
Report Composer

Entry point for running reports against a data source. Each call reads one
snapshot of the record sets, optionally validates it, and hands the frames
to the pure report functions.
"""

import time
from datetime import date, datetime
from typing import Any, Callable, Optional, Union

import polars as pl
import structlog
from prometheus_client import Counter, Gauge, Histogram

from sales_analytics.config import Settings, get_settings
from sales_analytics.ingestion.sources import DataSource, Snapshot, load_snapshot
from sales_analytics.quality.validators import (
    DataQualityError,
    ValidationStatus,
    validate_record_sets,
)
from . import reports
from .customer_report import customer_report
from .expressions import as_date
from .reports import TimeGrain

logger = structlog.get_logger(__name__)


# =============================================================================
# METRICS
# =============================================================================

REPORTS_BUILT = Counter(
    "sales_reports_built_total",
    "Total number of reports built",
    ["report", "status"],
)

REPORT_BUILD_TIME = Histogram(
    "sales_report_build_seconds",
    "Time spent loading the snapshot and building a report",
    ["report"],
)

SNAPSHOT_ROWS = Gauge(
    "sales_snapshot_rows",
    "Rows per record set in the last loaded snapshot",
    ["entity"],
)


class ReportComposer:
    """
    Runs the analytical reports over a data source.

    Reports are recomputed from a fresh snapshot on every call.

    Example:
        composer = ReportComposer(FileDataSource("data/sample"))
        trend = composer.change_over_time(TimeGrain.YEAR)
        view = composer.customer_report(as_of=date(2025, 1, 1))
    """

    def __init__(
        self,
        source: DataSource,
        settings: Optional[Settings] = None,
        clock: Callable[[], date] = date.today,
    ):
        self.source = source
        self.settings = settings or get_settings()
        self.clock = clock

    def evaluation_date(self, as_of: Optional[Union[date, datetime]] = None) -> date:
        """Explicit date, else the configured reference date, else the clock"""
        if as_of is not None:
            return as_date(as_of)
        if self.settings.reporting.reference_date is not None:
            return self.settings.reporting.reference_date
        return as_date(self.clock())

    def snapshot(self) -> Snapshot:
        """Read the record sets once and run the input quality checks"""
        snapshot = load_snapshot(self.source)
        SNAPSHOT_ROWS.labels(entity="customers").set(snapshot.customers.height)
        SNAPSHOT_ROWS.labels(entity="products").set(snapshot.products.height)
        SNAPSHOT_ROWS.labels(entity="sales").set(snapshot.sales.height)

        quality = self.settings.data_quality
        if quality.enable_data_quality_checks:
            results = validate_record_sets(snapshot.customers, snapshot.products, snapshot.sales)
            for entity, result in results.items():
                if result.status != ValidationStatus.PASSED:
                    logger.warning(
                        "Record set failed validation",
                        entity=entity.value,
                        status=result.status.value,
                        failed=result.failed_checks,
                        warnings=result.warning_count,
                    )
                    if quality.data_quality_strict and result.status == ValidationStatus.FAILED:
                        raise DataQualityError(entity.value, result)

        return snapshot

    def _run(
        self,
        name: str,
        build: Callable[[Snapshot], pl.DataFrame],
        **context: Any,
    ) -> pl.DataFrame:
        started_at = time.perf_counter()
        try:
            report = build(self.snapshot())
        except Exception:
            REPORTS_BUILT.labels(report=name, status="error").inc()
            raise

        duration = time.perf_counter() - started_at
        REPORTS_BUILT.labels(report=name, status="success").inc()
        REPORT_BUILD_TIME.labels(report=name).observe(duration)
        logger.info(
            "Report built",
            report=name,
            rows=report.height,
            duration_seconds=round(duration, 4),
            **context,
        )
        return report

    # Change over time

    def daily_sales(self) -> pl.DataFrame:
        return self._run("daily_sales", lambda s: reports.daily_sales(s.sales))

    def change_over_time(self, grain: TimeGrain = TimeGrain.YEAR) -> pl.DataFrame:
        grain = TimeGrain(grain)
        return self._run(
            "change_over_time",
            lambda s: reports.change_over_time(s.sales, grain),
            grain=grain.value,
        )

    # Cumulative

    def cumulative(
        self,
        grain: TimeGrain = TimeGrain.MONTH_START,
        reset_each_year: bool = False,
    ) -> pl.DataFrame:
        grain = TimeGrain(grain)
        return self._run(
            "cumulative",
            lambda s: reports.cumulative(s.sales, grain, reset_each_year),
            grain=grain.value,
            reset_each_year=reset_each_year,
        )

    # Segmentation

    def product_cost_ranges(self) -> pl.DataFrame:
        return self._run("product_cost_ranges", lambda s: reports.product_cost_ranges(s.products))

    def product_segment_counts(self) -> pl.DataFrame:
        return self._run("product_segment_counts", lambda s: reports.product_segment_counts(s.products))

    def customer_spending_segments(self) -> pl.DataFrame:
        return self._run("customer_spending_segments", lambda s: reports.customer_spending_segments(s.sales))

    def customer_segment_counts(self) -> pl.DataFrame:
        return self._run("customer_segment_counts", lambda s: reports.customer_segment_counts(s.sales))

    # Part-to-whole

    def part_to_whole(self) -> pl.DataFrame:
        return self._run("part_to_whole", lambda s: reports.part_to_whole(s.sales, s.products))

    # Performance

    def product_performance(self) -> pl.DataFrame:
        return self._run("product_performance", lambda s: reports.product_performance(s.sales, s.products))

    # Customer report

    def customer_report(self, as_of: Optional[Union[date, datetime]] = None) -> pl.DataFrame:
        evaluation_date = self.evaluation_date(as_of)
        return self._run(
            "customer_report",
            lambda s: customer_report(s.sales, s.customers, evaluation_date),
            as_of=str(evaluation_date),
        )
