"""
Database Models - Gold Star Schema

Tables backing the analytical reports:

Fact Tables:
- FactSales: one row per order line

Dimension Tables:
- DimCustomer: customer attributes (who bought)
- DimProduct: product catalog and cost (what was sold)

Foreign keys are deliberately not enforced: the reports tolerate sales lines
whose product or customer is missing from the dimensions.
"""

from datetime import date
from typing import Optional

from sqlalchemy import Date, Index, Integer, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# DIMENSION TABLES
# =============================================================================

class DimCustomer(Base):
    """Customer Dimension Table"""
    __tablename__ = "dim_customers"

    customer_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    customer_id: Mapped[Optional[int]] = mapped_column(Integer)
    customer_number: Mapped[Optional[str]] = mapped_column(String(20))
    first_name: Mapped[Optional[str]] = mapped_column(String(50))
    last_name: Mapped[Optional[str]] = mapped_column(String(50))
    country: Mapped[Optional[str]] = mapped_column(String(50))
    marital_status: Mapped[Optional[str]] = mapped_column(String(20))
    gender: Mapped[Optional[str]] = mapped_column(String(10))
    birthdate: Mapped[Optional[date]] = mapped_column(Date)  # used to calculate age
    create_date: Mapped[Optional[date]] = mapped_column(Date)


class DimProduct(Base):
    """Product Dimension Table"""
    __tablename__ = "dim_products"

    product_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    product_id: Mapped[Optional[int]] = mapped_column(Integer)
    product_number: Mapped[Optional[str]] = mapped_column(String(50))
    product_name: Mapped[Optional[str]] = mapped_column(String(255))
    category_id: Mapped[Optional[str]] = mapped_column(String(20))
    category: Mapped[Optional[str]] = mapped_column(String(100))
    subcategory: Mapped[Optional[str]] = mapped_column(String(100))
    cost: Mapped[Optional[float]] = mapped_column(Numeric(12, 2, asdecimal=False))
    product_line: Mapped[Optional[str]] = mapped_column(String(50))
    start_date: Mapped[Optional[date]] = mapped_column(Date)

    __table_args__ = (
        Index("ix_dim_products_category", "category"),
    )


# =============================================================================
# FACT TABLES
# =============================================================================

class FactSales(Base):
    """
    Sales Fact Table

    Grain: one row per order line. The surrogate ``sales_line_id`` only
    exists to give the ORM a primary key; it is not part of the record set.
    """
    __tablename__ = "fact_sales"

    sales_line_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_number: Mapped[Optional[str]] = mapped_column(String(50))
    product_key: Mapped[Optional[int]] = mapped_column(Integer)
    customer_key: Mapped[Optional[int]] = mapped_column(Integer)
    order_date: Mapped[Optional[date]] = mapped_column(Date)
    shipping_date: Mapped[Optional[date]] = mapped_column(Date)
    due_date: Mapped[Optional[date]] = mapped_column(Date)
    sales_amount: Mapped[Optional[float]] = mapped_column(Numeric(12, 2, asdecimal=False))
    quantity: Mapped[Optional[int]] = mapped_column(Integer)
    price: Mapped[Optional[float]] = mapped_column(Numeric(12, 2, asdecimal=False))

    __table_args__ = (
        Index("ix_fact_sales_order_date", "order_date"),
        Index("ix_fact_sales_customer", "customer_key"),
        Index("ix_fact_sales_product", "product_key"),
    )
