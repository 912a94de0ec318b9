"""
Database Module
"""
from .connection import init_database, close_database, get_engine, check_database_health
from .models import Base, DimCustomer, DimProduct, FactSales

__all__ = [
    "init_database",
    "close_database",
    "get_engine",
    "check_database_health",
    "Base",
    "DimCustomer",
    "DimProduct",
    "FactSales",
]
