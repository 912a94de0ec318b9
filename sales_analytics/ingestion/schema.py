"""
Record Set Schemas

Field contract of the three record sets of the sales star schema. Every
frame handed to the reporting layer carries exactly these columns and
dtypes, whatever backend it was read from.
"""

from enum import Enum
from typing import Dict

import polars as pl


class Entity(str, Enum):
    """Record sets exposed by a data source"""
    CUSTOMERS = "customers"
    PRODUCTS = "products"
    SALES = "sales"


CUSTOMER_SCHEMA: Dict[str, pl.DataType] = {
    "customer_key": pl.Int64,
    "customer_id": pl.Int64,
    "customer_number": pl.Utf8,
    "first_name": pl.Utf8,
    "last_name": pl.Utf8,
    "country": pl.Utf8,
    "marital_status": pl.Utf8,
    "gender": pl.Utf8,
    "birthdate": pl.Date,
    "create_date": pl.Date,
}

PRODUCT_SCHEMA: Dict[str, pl.DataType] = {
    "product_key": pl.Int64,
    "product_id": pl.Int64,
    "product_number": pl.Utf8,
    "product_name": pl.Utf8,
    "category_id": pl.Utf8,
    "category": pl.Utf8,
    "subcategory": pl.Utf8,
    "cost": pl.Float64,
    "product_line": pl.Utf8,
    "start_date": pl.Date,
}

SALES_SCHEMA: Dict[str, pl.DataType] = {
    "order_number": pl.Utf8,
    "product_key": pl.Int64,
    "customer_key": pl.Int64,
    "order_date": pl.Date,
    "shipping_date": pl.Date,
    "due_date": pl.Date,
    "sales_amount": pl.Float64,
    "quantity": pl.Int64,
    "price": pl.Float64,
}

ENTITY_SCHEMAS: Dict[Entity, Dict[str, pl.DataType]] = {
    Entity.CUSTOMERS: CUSTOMER_SCHEMA,
    Entity.PRODUCTS: PRODUCT_SCHEMA,
    Entity.SALES: SALES_SCHEMA,
}

# Table / file stem of each record set in the gold layer
ENTITY_TABLES: Dict[Entity, str] = {
    Entity.CUSTOMERS: "dim_customers",
    Entity.PRODUCTS: "dim_products",
    Entity.SALES: "fact_sales",
}

DATE_FORMAT = "%Y-%m-%d"


def empty_frame(entity: Entity) -> pl.DataFrame:
    """Zero-row frame carrying the entity's schema"""
    return pl.DataFrame(schema=ENTITY_SCHEMAS[Entity(entity)])
