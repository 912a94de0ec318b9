"""
Sales Analytics

Analytical reports over a sales star schema (sales fact, customer and
product dimensions).
"""

__version__ = "1.0.0"
