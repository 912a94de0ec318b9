"""
Sample Dataset Generator

Writes dim_customers, dim_products and fact_sales files that the file data
source reads.

Usage:
    python scripts/generate_dataset.py --output data/sample --orders 3000
"""

import argparse
from pathlib import Path

from sales_analytics.config.logging import configure_logging
from sales_analytics.data import SampleDataGenerator
from sales_analytics.ingestion.sources import FileFormat

DEFAULT_OUTPUT = Path(__file__).parent.parent / "data" / "sample"


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a sample sales star schema")
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT, help="Output directory")
    parser.add_argument(
        "--format",
        choices=[f.value for f in FileFormat],
        default=FileFormat.CSV.value,
        help="File format (default: csv)",
    )
    parser.add_argument("--customers", type=int, default=500, help="Number of customers")
    parser.add_argument("--products", type=int, default=120, help="Number of products")
    parser.add_argument("--orders", type=int, default=3000, help="Number of orders")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    configure_logging("INFO")

    generator = SampleDataGenerator(seed=args.seed)
    data = generator.generate_all(
        n_customers=args.customers,
        n_products=args.products,
        n_orders=args.orders,
    )
    paths = generator.save(data, args.output, args.format)

    print("Generated sample dataset:")
    for entity, path in paths.items():
        print(f"   {entity.value:<10} {data[entity.value].height:>7,} rows -> {path}")


if __name__ == "__main__":
    main()
