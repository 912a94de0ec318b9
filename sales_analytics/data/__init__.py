"""
Data Generation Module
"""
from .generators import CustomerGenerator, ProductGenerator, SalesGenerator, SampleDataGenerator

__all__ = [
    "SampleDataGenerator",
    "CustomerGenerator",
    "ProductGenerator",
    "SalesGenerator",
]
