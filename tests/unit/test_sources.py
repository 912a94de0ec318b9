"""
Unit Tests - Data Sources
"""
from datetime import date, datetime, timezone

import pytest
import polars as pl
from sqlalchemy.orm import Session

from sales_analytics.database.models import DimCustomer, DimProduct, FactSales
from sales_analytics.ingestion.schema import ENTITY_SCHEMAS, Entity, empty_frame
from sales_analytics.ingestion.sources import (
    DatabaseDataSource,
    DataSourceError,
    FileDataSource,
    FileFormat,
    InMemoryDataSource,
    conform,
    create_data_source,
    load_snapshot,
)
from sales_analytics.config import Settings
from sales_analytics.config.settings import DataSourceSettings


class TestConform:
    """Tests for schema conformance"""

    def test_missing_columns_added_as_nulls(self):
        """Test that absent fields become typed nulls"""
        df = pl.DataFrame({"order_number": ["SO1"], "sales_amount": [10]})

        result = conform(df, Entity.SALES)

        assert result.schema == ENTITY_SCHEMAS[Entity.SALES]
        assert result["order_date"].to_list() == [None]
        assert result["sales_amount"].to_list() == [10.0]

    def test_string_dates_parsed(self):
        """Test ISO date strings, with unparseable values becoming null"""
        df = pl.DataFrame({"order_date": ["2012-01-15", "not a date", None]})

        result = conform(df, Entity.SALES)

        assert result["order_date"].to_list() == [date(2012, 1, 15), None, None]

    def test_extra_columns_dropped(self):
        """Test that backend-specific columns are removed"""
        df = pl.DataFrame({"customer_key": [1], "loyalty_tier": ["gold"]})

        result = conform(df, Entity.CUSTOMERS)

        assert "loyalty_tier" not in result.columns

    def test_uncastable_column_raises(self):
        """Test that a value not fitting the schema is reported"""
        df = pl.DataFrame({"quantity": ["many"]})

        with pytest.raises(DataSourceError):
            conform(df, Entity.SALES)

    def test_empty_frame(self):
        """Test conformance of a frame without columns"""
        result = conform(pl.DataFrame(), Entity.PRODUCTS)

        assert result.height == 0
        assert result.schema == empty_frame(Entity.PRODUCTS).schema


class TestInMemoryDataSource:
    """Tests for InMemoryDataSource"""

    def test_fetch_from_records(self):
        """Test building record sets from dictionaries"""
        source = InMemoryDataSource(sales=[
            {"order_number": "SO1", "customer_key": 1, "order_date": "2012-01-15", "sales_amount": 5.0},
        ])

        sales = source.fetch(Entity.SALES)

        assert sales["order_date"].to_list() == [date(2012, 1, 15)]
        assert source.fetch("customers").height == 0

    def test_iter_records(self, sample_source):
        """Test row-by-row iteration"""
        rows = list(sample_source.iter_records(Entity.PRODUCTS))

        assert len(rows) == 4
        assert rows[0]["product_name"] == "Mountain-100"

    def test_load_snapshot(self, sample_source):
        """Test that a snapshot carries all three record sets"""
        before = datetime.now(timezone.utc)
        snapshot = load_snapshot(sample_source)

        assert snapshot.customers.height == 3
        assert snapshot.products.height == 4
        assert snapshot.sales.height == 7
        assert snapshot.valid_sales.height == 6
        assert before <= snapshot.loaded_at <= datetime.now(timezone.utc)


class TestFileDataSource:
    """Tests for FileDataSource"""

    def test_read_csv(self, tmp_path, sample_customers_df, sample_products_df, sample_sales_df):
        """Test reading the three record sets from CSV files"""
        sample_customers_df.write_csv(tmp_path / "dim_customers.csv")
        sample_products_df.write_csv(tmp_path / "dim_products.csv")
        sample_sales_df.write_csv(tmp_path / "fact_sales.csv")

        snapshot = load_snapshot(FileDataSource(tmp_path))

        assert snapshot.sales.schema == ENTITY_SCHEMAS[Entity.SALES]
        assert snapshot.sales["order_date"].null_count() == 1
        assert snapshot.customers["birthdate"].to_list()[0] == date(1971, 10, 6)
        assert snapshot.products["cost"].to_list() == [1000.0, 500.0, 3.0, 100.0]

    def test_read_parquet(self, tmp_path, sample_sales_df):
        """Test reading a Parquet record set"""
        sample_sales_df.write_parquet(tmp_path / "fact_sales.parquet")

        sales = FileDataSource(tmp_path, FileFormat.PARQUET).fetch(Entity.SALES)

        assert sales.equals(sample_sales_df)

    def test_custom_file_names(self, tmp_path, sample_products_df):
        """Test overriding the file looked up for a record set"""
        sample_products_df.write_ndjson(tmp_path / "products.jsonl")

        source = FileDataSource(tmp_path, "jsonl", file_names={Entity.PRODUCTS: "products.jsonl"})

        assert source.fetch(Entity.PRODUCTS).height == 4

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises DataSourceError"""
        with pytest.raises(DataSourceError):
            FileDataSource(tmp_path).fetch(Entity.SALES)

    def test_unsupported_format(self, tmp_path):
        """Test that an unknown file format is rejected"""
        with pytest.raises(DataSourceError):
            FileDataSource(tmp_path, "xlsx")

    def test_create_from_settings(self, tmp_path):
        """Test building the configured file source"""
        settings = Settings(
            APP_ENV="testing",
            data_source=DataSourceSettings(backend="file", path=str(tmp_path), file_format="parquet"),
        )

        source = create_data_source(settings)

        assert isinstance(source, FileDataSource)
        assert source.path_for(Entity.SALES) == tmp_path / "fact_sales.parquet"


class TestDatabaseDataSource:
    """Tests for DatabaseDataSource"""

    def test_read_star_schema(self, test_engine):
        """Test reading the gold tables through SQLAlchemy"""
        with Session(test_engine) as session:
            session.add_all([
                DimCustomer(customer_key=1, customer_number="AW00011000", first_name="Jon",
                            last_name="Yang", birthdate=date(1971, 10, 6)),
                DimProduct(product_key=1, product_name="Road-150", category="Bikes", cost=500.0),
                FactSales(order_number="SO1", product_key=1, customer_key=1,
                          order_date=date(2012, 1, 15), sales_amount=1000.0, quantity=1, price=1000.0),
                FactSales(order_number="SO2", product_key=1, customer_key=1,
                          order_date=None, sales_amount=1000.0, quantity=1, price=1000.0),
            ])
            session.commit()

        snapshot = load_snapshot(DatabaseDataSource(test_engine))

        assert snapshot.customers["customer_number"].to_list() == ["AW00011000"]
        assert snapshot.products["cost"].to_list() == [500.0]
        assert snapshot.sales.schema == ENTITY_SCHEMAS[Entity.SALES]
        assert snapshot.valid_sales["order_date"].to_list() == [date(2012, 1, 15)]

    def test_missing_table(self, test_engine):
        """Test that a query failure raises DataSourceError"""
        FactSales.__table__.drop(test_engine)

        with pytest.raises(DataSourceError):
            DatabaseDataSource(test_engine).fetch(Entity.SALES)
