"""
Data Sources

Read access to the customers, products and sales record sets.
Supports:
- In-memory frames (tests, notebooks)
- CSV, JSON lines and Parquet files
- The gold star schema in a relational database

Every read is conformed to the schemas in ``schema.py`` so the reporting
layer never sees backend-specific columns or dtypes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

import polars as pl
import structlog
from sqlalchemy import Engine, select
from sqlalchemy.exc import SQLAlchemyError

from sales_analytics.config import Settings, get_settings
from sales_analytics.database.connection import init_database
from sales_analytics.database.models import DimCustomer, DimProduct, FactSales
from .schema import DATE_FORMAT, ENTITY_SCHEMAS, ENTITY_TABLES, Entity, empty_frame

logger = structlog.get_logger(__name__)

NULL_VALUES = ["", "NULL", "null", "None", "NA", "N/A"]

FrameLike = Union[pl.DataFrame, Iterable[Mapping[str, Any]]]


class DataSourceError(RuntimeError):
    """A record set could not be read or does not fit its schema"""


class FileFormat(str, Enum):
    """Supported file formats"""
    CSV = "csv"
    JSONL = "jsonl"
    PARQUET = "parquet"


def _date_expr(name: str, source: pl.DataType) -> pl.Expr:
    col = pl.col(name)
    if source == pl.Utf8:
        # Unparseable dates become null and drop out at the date-validity filter
        return col.str.to_date(DATE_FORMAT, strict=False)
    if isinstance(source, pl.Datetime):
        return col.dt.date()
    return col.cast(pl.Date)


def conform(df: pl.DataFrame, entity: Entity) -> pl.DataFrame:
    """
    Conform a raw frame to the entity schema.

    Missing columns are added as typed nulls, extra columns are dropped and
    the remaining ones are cast to the schema dtypes.

    Raises:
        DataSourceError: If a column cannot be cast
    """
    entity = Entity(entity)
    schema = ENTITY_SCHEMAS[entity]

    if df.width == 0:
        return empty_frame(entity)

    columns: List[pl.Expr] = []
    for name, dtype in schema.items():
        if name not in df.columns:
            columns.append(pl.lit(None, dtype=dtype).alias(name))
        elif dtype == pl.Date:
            columns.append(_date_expr(name, df.schema[name]).alias(name))
        else:
            columns.append(pl.col(name).cast(dtype).alias(name))

    try:
        return df.select(columns)
    except pl.exceptions.PolarsError as e:
        raise DataSourceError(f"Record set '{entity.value}' does not fit its schema: {e}") from e


def valid_sales(sales: pl.DataFrame) -> pl.DataFrame:
    """Date-validity filter: keep only sales lines with an order date"""
    return sales.filter(pl.col("order_date").is_not_null())


class DataSource(ABC):
    """
    Read access to the three record sets.

    Consistency contract: a source backed by a live store must serve the
    three record sets of one ``load_snapshot`` call from the same committed
    state. The reporting layer reads each record set exactly once per report
    and never re-reads mid-computation.
    """

    name: str = "source"

    @abstractmethod
    def _read(self, entity: Entity) -> pl.DataFrame:
        """Read the raw frame for one entity"""

    def fetch(self, entity: Union[Entity, str]) -> pl.DataFrame:
        """Bulk read one record set, conformed to its schema"""
        entity = Entity(entity)
        df = conform(self._read(entity), entity)
        logger.debug("Record set fetched", source=self.name, entity=entity.value, rows=df.height)
        return df

    def iter_records(self, entity: Union[Entity, str]) -> Iterator[Dict[str, Any]]:
        """Row-by-row read of one record set"""
        yield from self.fetch(entity).iter_rows(named=True)


class InMemoryDataSource(DataSource):
    """
    Data source over frames already held in memory.

    Example:
        source = InMemoryDataSource(sales=[{"order_number": "SO1", ...}])
    """

    name = "memory"

    def __init__(
        self,
        customers: Optional[FrameLike] = None,
        products: Optional[FrameLike] = None,
        sales: Optional[FrameLike] = None,
    ):
        self._frames: Dict[Entity, pl.DataFrame] = {
            Entity.CUSTOMERS: self._as_frame(customers, Entity.CUSTOMERS),
            Entity.PRODUCTS: self._as_frame(products, Entity.PRODUCTS),
            Entity.SALES: self._as_frame(sales, Entity.SALES),
        }

    @staticmethod
    def _as_frame(data: Optional[FrameLike], entity: Entity) -> pl.DataFrame:
        if data is None:
            return empty_frame(entity)
        if isinstance(data, pl.DataFrame):
            return data
        rows = list(data)
        if not rows:
            return empty_frame(entity)
        return pl.DataFrame(rows, infer_schema_length=None)

    def _read(self, entity: Entity) -> pl.DataFrame:
        return self._frames[entity]


class FileDataSource(DataSource):
    """
    Data source over one file per record set.

    Files are looked up as ``<directory>/<table>.<format>`` where table is
    ``dim_customers``, ``dim_products`` or ``fact_sales`` unless
    ``file_names`` overrides it.

    Example:
        source = FileDataSource("data/sample", FileFormat.CSV)
        sales = source.fetch(Entity.SALES)
    """

    name = "file"

    def __init__(
        self,
        directory: Union[str, Path],
        file_format: Union[FileFormat, str] = FileFormat.CSV,
        file_names: Optional[Dict[Entity, str]] = None,
    ):
        self.directory = Path(directory)
        try:
            self.file_format = FileFormat(file_format)
        except ValueError as e:
            raise DataSourceError(f"Unsupported file format: {file_format}") from e
        self.file_names = {
            entity: f"{table}.{self.file_format.value}"
            for entity, table in ENTITY_TABLES.items()
        }
        if file_names:
            self.file_names.update({Entity(k): v for k, v in file_names.items()})

    def path_for(self, entity: Entity) -> Path:
        return self.directory / self.file_names[Entity(entity)]

    def _read(self, entity: Entity) -> pl.DataFrame:
        path = self.path_for(entity)
        if not path.exists():
            raise DataSourceError(f"Record set file not found: {path}")

        try:
            if self.file_format == FileFormat.CSV:
                return pl.read_csv(
                    path,
                    try_parse_dates=True,
                    null_values=NULL_VALUES,
                    infer_schema_length=10000,
                )
            if self.file_format == FileFormat.JSONL:
                return pl.read_ndjson(path)
            return pl.read_parquet(path)
        except (pl.exceptions.PolarsError, OSError) as e:
            logger.error("Failed to read record set", path=str(path), error=str(e))
            raise DataSourceError(f"Cannot read {path}: {e}") from e


class DatabaseDataSource(DataSource):
    """
    Data source over the gold star schema tables.

    Uses the injected engine, or initializes the shared engine from the
    database settings on first read.
    """

    name = "database"

    _MODELS = {
        Entity.CUSTOMERS: DimCustomer,
        Entity.PRODUCTS: DimProduct,
        Entity.SALES: FactSales,
    }

    def __init__(self, engine: Optional[Engine] = None):
        self._engine = engine

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = init_database()
        return self._engine

    def _read(self, entity: Entity) -> pl.DataFrame:
        table = self._MODELS[entity].__table__
        stmt = select(*[table.c[name] for name in ENTITY_SCHEMAS[entity]])

        try:
            with self.engine.connect() as conn:
                return pl.read_database(query=stmt, connection=conn)
        except SQLAlchemyError as e:
            logger.error("Failed to query record set", table=table.name, error=str(e))
            raise DataSourceError(f"Cannot read table {table.name}: {e}") from e


def create_data_source(settings: Optional[Settings] = None) -> DataSource:
    """Build the data source configured in the settings"""
    settings = settings or get_settings()
    if settings.data_source.backend == "database":
        return DatabaseDataSource()
    return FileDataSource(settings.data_source.path, settings.data_source.file_format)


@dataclass(frozen=True)
class Snapshot:
    """The three record sets as read for one report invocation"""
    customers: pl.DataFrame
    products: pl.DataFrame
    sales: pl.DataFrame
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def valid_sales(self) -> pl.DataFrame:
        return valid_sales(self.sales)


def load_snapshot(source: DataSource) -> Snapshot:
    """Read all three record sets once"""
    snapshot = Snapshot(
        customers=source.fetch(Entity.CUSTOMERS),
        products=source.fetch(Entity.PRODUCTS),
        sales=source.fetch(Entity.SALES),
    )
    logger.info(
        "Snapshot loaded",
        source=source.name,
        customers=snapshot.customers.height,
        products=snapshot.products.height,
        sales=snapshot.sales.height,
        loaded_at=snapshot.loaded_at.isoformat(),
    )
    return snapshot
