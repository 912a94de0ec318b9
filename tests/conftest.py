"""
Test Suite Configuration
"""
from datetime import date
from typing import Generator

import pytest
import polars as pl
from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool

from sales_analytics.config import Settings
from sales_analytics.config.settings import DataQualitySettings, ReportingSettings
from sales_analytics.database.models import Base
from sales_analytics.ingestion.schema import Entity
from sales_analytics.ingestion.sources import InMemoryDataSource, conform


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with a pinned evaluation date"""
    return Settings(
        APP_ENV="testing",
        reporting=ReportingSettings(reference_date=date(2014, 1, 1)),
        data_quality=DataQualitySettings(ENABLE_DATA_QUALITY_CHECKS=True, DATA_QUALITY_STRICT=False),
    )


@pytest.fixture
def sample_customers_df() -> pl.DataFrame:
    """Customer dimension; Ruben has no known birthdate"""
    return conform(pl.DataFrame({
        "customer_key": [1, 2, 3],
        "customer_id": [11000, 11001, 11002],
        "customer_number": ["AW00011000", "AW00011001", "AW00011002"],
        "first_name": ["Jon", "Eugene", "Ruben"],
        "last_name": ["Yang", "Huang", "Torres"],
        "country": ["Australia", "Australia", "United States"],
        "marital_status": ["Married", "Single", "Married"],
        "gender": ["Male", "Male", "Male"],
        "birthdate": [date(1971, 10, 6), date(1976, 5, 10), None],
        "create_date": [date(2025, 10, 6)] * 3,
    }), Entity.CUSTOMERS)


@pytest.fixture
def sample_products_df() -> pl.DataFrame:
    """Product dimension; the helmet is never sold"""
    return conform(pl.DataFrame({
        "product_key": [1, 2, 3, 4],
        "product_id": [210, 211, 212, 213],
        "product_number": ["BK-M82S-38", "BK-R93R-62", "BC-M005", "HL-U509"],
        "product_name": ["Mountain-100", "Road-150", "Water Bottle", "Sport Helmet"],
        "category_id": ["BI_MB", "BI_RB", "AC_BC", "AC_HE"],
        "category": ["Bikes", "Bikes", "Accessories", "Accessories"],
        "subcategory": ["Mountain Bikes", "Road Bikes", "Bottles and Cages", "Helmets"],
        "cost": [1000.0, 500.0, 3.0, 100.0],
        "product_line": ["Mountain", "Road", "Other Sales", "Other Sales"],
        "start_date": [date(2011, 7, 1)] * 4,
    }), Entity.PRODUCTS)


@pytest.fixture
def sample_sales_df() -> pl.DataFrame:
    """
    Sales fact.

    SO5 belongs to customer 99, who is missing from the dimension, and SO6
    has no order date.
    """
    return conform(pl.DataFrame({
        "order_number": ["SO1", "SO1", "SO2", "SO3", "SO4", "SO5", "SO6"],
        "product_key": [1, 3, 2, 1, 3, 2, 3],
        "customer_key": [1, 1, 2, 1, 2, 99, 3],
        "order_date": [
            date(2012, 1, 15),
            date(2012, 1, 15),
            date(2012, 3, 10),
            date(2013, 2, 20),
            date(2013, 2, 25),
            date(2013, 6, 1),
            None,
        ],
        "sales_amount": [3000.0, 5.0, 1000.0, 3000.0, 10.0, 1000.0, 5.0],
        "quantity": [1, 1, 1, 1, 2, 1, 1],
        "price": [3000.0, 5.0, 1000.0, 3000.0, 5.0, 1000.0, 5.0],
    }), Entity.SALES)


@pytest.fixture
def sample_source(sample_customers_df, sample_products_df, sample_sales_df) -> InMemoryDataSource:
    """In-memory source over the sample star schema"""
    return InMemoryDataSource(
        customers=sample_customers_df,
        products=sample_products_df,
        sales=sample_sales_df,
    )


@pytest.fixture
def test_engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine with the star schema tables"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    yield engine

    engine.dispose()
