"""
Synthetic Data Generator

Generates a consistent star schema sample for testing and development:
- Customers with demographics and birthdates
- Products across the bike shop categories with costs
- Sales lines referencing both dimensions

A small share of sales lines carry no order date or point at a customer
missing from the dimension, so the reports' handling of both is exercised.
"""

import random
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, Optional, Union

import polars as pl
import structlog
from faker import Faker

from sales_analytics.ingestion.schema import ENTITY_TABLES, Entity
from sales_analytics.ingestion.sources import FileFormat, conform

logger = structlog.get_logger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

CATEGORIES = [
    ("Bikes", "BI", ["Mountain Bikes", "Road Bikes", "Touring Bikes"], (400, 2200)),
    ("Components", "CO", ["Handlebars", "Wheels", "Frames", "Brakes", "Chains"], (10, 1100)),
    ("Clothing", "CL", ["Jerseys", "Shorts", "Socks", "Caps", "Gloves"], (3, 45)),
    ("Accessories", "AC", ["Helmets", "Bottles and Cages", "Tires and Tubes", "Bike Racks"], (1, 120)),
]

PRODUCT_LINES = ["Mountain", "Road", "Touring", "Other Sales"]
COUNTRIES = ["United States", "Australia", "United Kingdom", "Germany", "France", "Canada"]
MARITAL_STATUSES = ["Married", "Single"]
GENDERS = [("Male", 0.49), ("Female", 0.49), ("n/a", 0.02)]

ORDER_START = date(2010, 12, 29)
ORDER_END = date(2014, 1, 28)


# =============================================================================
# GENERATORS
# =============================================================================

class CustomerGenerator:
    """Generate the customer dimension"""

    def __init__(self, fake: Faker, rng: random.Random):
        self.fake = fake
        self.rng = rng

    def generate(self, n: int = 500) -> pl.DataFrame:
        """Generate n customers with keys 1..n"""
        customers = []

        for key in range(1, n + 1):
            customer_id = 11000 + key - 1
            customers.append({
                "customer_key": key,
                "customer_id": customer_id,
                "customer_number": f"AW{customer_id:08d}",
                "first_name": self.fake.first_name(),
                "last_name": self.fake.last_name(),
                "country": self.rng.choice(COUNTRIES),
                "marital_status": self.rng.choice(MARITAL_STATUSES),
                "gender": self.rng.choices(
                    [g[0] for g in GENDERS],
                    weights=[g[1] for g in GENDERS],
                )[0],
                # Unknown birthdates fall into the oldest age group
                "birthdate": self.fake.date_between(
                    start_date=date(1916, 1, 1), end_date=date(1986, 12, 31)
                ) if self.rng.random() > 0.01 else None,
                "create_date": self.fake.date_between(
                    start_date=date(2025, 10, 6), end_date=date(2026, 1, 28)
                ),
            })

        return pl.DataFrame(customers)


class ProductGenerator:
    """Generate the product dimension"""

    def __init__(self, fake: Faker, rng: random.Random):
        self.fake = fake
        self.rng = rng

    def generate(self, n: int = 120) -> pl.DataFrame:
        """Generate n products with keys 1..n"""
        products = []

        for key in range(1, n + 1):
            category, code, subcategories, (low, high) = self.rng.choice(CATEGORIES)
            subcategory = subcategories[self.rng.randrange(len(subcategories))]

            products.append({
                "product_key": key,
                "product_id": 200 + key,
                "product_number": f"{code[:2]}-{self.fake.bothify('?###').upper()}-{self.rng.randint(38, 62)}",
                "product_name": f"{self.fake.word().title()} {subcategory[:-1] if subcategory.endswith('s') else subcategory} {key}",
                "category_id": f"{code}_{subcategory[:2].upper()}",
                "category": category,
                "subcategory": subcategory,
                # A few products have no recorded cost
                "cost": round(self.rng.uniform(low, high), 2) if self.rng.random() > 0.02 else None,
                "product_line": self.rng.choice(PRODUCT_LINES),
                "start_date": self.fake.date_between(start_date=date(2003, 7, 1), end_date=date(2013, 7, 1)),
            })

        return pl.DataFrame(products)


class SalesGenerator:
    """Generate the sales fact over existing dimensions"""

    def __init__(
        self,
        customers_df: pl.DataFrame,
        products_df: pl.DataFrame,
        rng: random.Random,
        missing_date_rate: float = 0.005,
        orphan_rate: float = 0.002,
    ):
        self.customer_keys = customers_df["customer_key"].to_list()
        self.product_data = products_df.select(["product_key", "cost"]).to_dicts()
        self.rng = rng
        self.missing_date_rate = missing_date_rate
        self.orphan_rate = orphan_rate

    def generate(
        self,
        n_orders: int = 3000,
        start_date: date = ORDER_START,
        end_date: date = ORDER_END,
    ) -> pl.DataFrame:
        """Generate n_orders orders of one to four lines each"""
        span_days = (end_date - start_date).days
        orphan_key = max(self.customer_keys, default=0) + 1
        lines = []

        for i in range(n_orders):
            order_number = f"SO{43697 + i}"
            customer_key = self.rng.choice(self.customer_keys)
            if self.rng.random() < self.orphan_rate:
                customer_key = orphan_key

            order_date = start_date + timedelta(days=self.rng.randint(0, span_days))
            shipping_date = order_date + timedelta(days=7)
            due_date = order_date + timedelta(days=12)
            if self.rng.random() < self.missing_date_rate:
                order_date = None

            num_lines = self.rng.choices([1, 2, 3, 4], weights=[0.55, 0.25, 0.15, 0.05])[0]
            for product in self.rng.sample(self.product_data, k=min(num_lines, len(self.product_data))):
                quantity = self.rng.choices([1, 2, 3], weights=[0.85, 0.10, 0.05])[0]
                unit_cost = product["cost"] if product["cost"] is not None else self.rng.uniform(1, 50)
                price = round(unit_cost * self.rng.uniform(1.2, 1.8))

                lines.append({
                    "order_number": order_number,
                    "product_key": product["product_key"],
                    "customer_key": customer_key,
                    "order_date": order_date,
                    "shipping_date": shipping_date,
                    "due_date": due_date,
                    "sales_amount": float(price * quantity),
                    "quantity": quantity,
                    "price": float(price),
                })

        return pl.DataFrame(lines, infer_schema_length=None)


# =============================================================================
# MAIN GENERATOR
# =============================================================================

class SampleDataGenerator:
    """
    Seeded generator of the three record sets.

    Example:
        data = SampleDataGenerator(seed=42).generate_all()
        source = InMemoryDataSource(**data)
    """

    def __init__(self, seed: Optional[int] = 42):
        self.seed = seed
        self.rng = random.Random(seed)
        self.fake = Faker()
        if seed is not None:
            self.fake.seed_instance(seed)

    def generate_all(
        self,
        n_customers: int = 500,
        n_products: int = 120,
        n_orders: int = 3000,
    ) -> Dict[str, pl.DataFrame]:
        """Generate a complete, schema-conformed dataset"""
        customers_df = CustomerGenerator(self.fake, self.rng).generate(n_customers)
        products_df = ProductGenerator(self.fake, self.rng).generate(n_products)
        sales_df = SalesGenerator(customers_df, products_df, self.rng).generate(n_orders)

        data = {
            "customers": conform(customers_df, Entity.CUSTOMERS),
            "products": conform(products_df, Entity.PRODUCTS),
            "sales": conform(sales_df, Entity.SALES),
        }
        logger.info(
            "Sample data generated",
            seed=self.seed,
            customers=data["customers"].height,
            products=data["products"].height,
            sales=data["sales"].height,
        )
        return data

    @staticmethod
    def save(
        data: Dict[str, pl.DataFrame],
        output_dir: Union[str, Path],
        file_format: Union[FileFormat, str] = FileFormat.CSV,
    ) -> Dict[Entity, Path]:
        """Write each record set where FileDataSource expects it"""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        file_format = FileFormat(file_format)

        paths = {}
        for entity, table in ENTITY_TABLES.items():
            df = data[entity.value]
            path = output_dir / f"{table}.{file_format.value}"
            if file_format == FileFormat.CSV:
                df.write_csv(path)
            elif file_format == FileFormat.JSONL:
                df.write_ndjson(path)
            else:
                df.write_parquet(path)
            paths[entity] = path
            logger.info("Record set saved", entity=entity.value, rows=df.height, path=str(path))

        return paths
