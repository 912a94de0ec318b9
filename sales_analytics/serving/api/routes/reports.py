"""
Reports API Endpoints

REST API over the analytical reports. Every request recomputes its report
from a fresh read of the record sets.
"""

from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
import polars as pl
import structlog

from sales_analytics.analytics.composer import ReportComposer
from sales_analytics.analytics.reports import TimeGrain
from sales_analytics.ingestion.sources import DataSource, create_data_source

router = APIRouter()
logger = structlog.get_logger(__name__)


class ReportResponse(BaseModel):
    """Tabular report response"""
    report: str
    row_count: int
    columns: List[str]
    rows: List[Dict[str, Any]]
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_frame(cls, report: str, df: pl.DataFrame) -> "ReportResponse":
        return cls(
            report=report,
            row_count=df.height,
            columns=df.columns,
            rows=df.to_dicts(),
        )


@lru_cache
def get_data_source() -> DataSource:
    """Data source configured in the settings, built once per process"""
    return create_data_source()


def get_composer(source: DataSource = Depends(get_data_source)) -> ReportComposer:
    return ReportComposer(source)


# =============================================================================
# CHANGE OVER TIME / CUMULATIVE
# =============================================================================

@router.get("/change-over-time", response_model=ReportResponse)
def get_change_over_time(
    grain: TimeGrain = Query(TimeGrain.YEAR, description="Time bucket"),
    composer: ReportComposer = Depends(get_composer),
) -> ReportResponse:
    """Sales, distinct customers and quantity per time bucket"""
    return ReportResponse.from_frame(
        "change_over_time", composer.change_over_time(grain)
    )


@router.get("/daily-sales", response_model=ReportResponse)
def get_daily_sales(composer: ReportComposer = Depends(get_composer)) -> ReportResponse:
    """Dated sales lines in date order"""
    return ReportResponse.from_frame("daily_sales", composer.daily_sales())


@router.get("/cumulative", response_model=ReportResponse)
def get_cumulative(
    grain: TimeGrain = Query(TimeGrain.MONTH_START, description="month_start or year_start"),
    reset_each_year: bool = Query(False, description="Restart running figures every year"),
    composer: ReportComposer = Depends(get_composer),
) -> ReportResponse:
    """Running total of sales and running average of the average price"""
    return ReportResponse.from_frame(
        "cumulative", composer.cumulative(grain, reset_each_year)
    )


# =============================================================================
# SEGMENTATION
# =============================================================================

@router.get("/segments/products", response_model=ReportResponse)
def get_product_segments(composer: ReportComposer = Depends(get_composer)) -> ReportResponse:
    return ReportResponse.from_frame("product_cost_ranges", composer.product_cost_ranges())


@router.get("/segments/products/summary", response_model=ReportResponse)
def get_product_segment_summary(composer: ReportComposer = Depends(get_composer)) -> ReportResponse:
    return ReportResponse.from_frame("product_segment_counts", composer.product_segment_counts())


@router.get("/segments/customers", response_model=ReportResponse)
def get_customer_segments(composer: ReportComposer = Depends(get_composer)) -> ReportResponse:
    return ReportResponse.from_frame(
        "customer_spending_segments", composer.customer_spending_segments()
    )


@router.get("/segments/customers/summary", response_model=ReportResponse)
def get_customer_segment_summary(composer: ReportComposer = Depends(get_composer)) -> ReportResponse:
    return ReportResponse.from_frame("customer_segment_counts", composer.customer_segment_counts())


# =============================================================================
# PART-TO-WHOLE / PERFORMANCE
# =============================================================================

@router.get("/part-to-whole", response_model=ReportResponse)
def get_part_to_whole(composer: ReportComposer = Depends(get_composer)) -> ReportResponse:
    """Each category's share of total sales"""
    return ReportResponse.from_frame("part_to_whole", composer.part_to_whole())


@router.get("/performance", response_model=ReportResponse)
def get_product_performance(composer: ReportComposer = Depends(get_composer)) -> ReportResponse:
    """Yearly product sales against the product average and the previous year"""
    return ReportResponse.from_frame("product_performance", composer.product_performance())


# =============================================================================
# CUSTOMER REPORT
# =============================================================================

@router.get("/customers", response_model=ReportResponse)
def get_customer_report(
    as_of: Optional[date] = Query(None, description="Evaluation date for age and recency"),
    composer: ReportComposer = Depends(get_composer),
) -> ReportResponse:
    """Consolidated per-customer report"""
    logger.debug("Customer report requested", as_of=str(as_of) if as_of else None)
    return ReportResponse.from_frame("customer_report", composer.customer_report(as_of))
