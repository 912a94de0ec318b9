"""
Data Access Module
"""
from .schema import Entity, ENTITY_SCHEMAS, ENTITY_TABLES, empty_frame
from .sources import (
    DataSource,
    DataSourceError,
    DatabaseDataSource,
    FileDataSource,
    FileFormat,
    InMemoryDataSource,
    Snapshot,
    conform,
    create_data_source,
    load_snapshot,
    valid_sales,
)

__all__ = [
    "Entity",
    "ENTITY_SCHEMAS",
    "ENTITY_TABLES",
    "empty_frame",
    "DataSource",
    "DataSourceError",
    "DatabaseDataSource",
    "FileDataSource",
    "FileFormat",
    "InMemoryDataSource",
    "Snapshot",
    "conform",
    "create_data_source",
    "load_snapshot",
    "valid_sales",
]
