"""Storefront database management CLI.

Usage:
    PROTEAN_ENV=production python src/manage.py setup-db   # Create all tables
    PROTEAN_ENV=production python src/manage.py drop-db    # Drop all tables
    PROTEAN_ENV=production python src/manage.py seed-catalog  # Demo products for load tests
"""

import argparse
import json
import sys
from pathlib import Path

from protean.utils.globals import current_domain

from storefront.catalog.product import Product
from storefront.domain import logger, storefront
from storefront.stock.adjustment import RecordStockMovement
from storefront.utils.db import drop_db, setup_db


def setup_database():
    storefront.init()
    setup_db(storefront)
    logger.info("Storefront schema ready")


def drop_database():
    storefront.init()
    drop_db(storefront)
    logger.info("Storefront schema dropped")


DEMO_CATALOG = [
    ("Cotton T-Shirt", "LT-TS", 45000, [("M", "Black"), ("L", "Black"), ("XL", "Navy")]),
    ("Denim Jeans", "LT-JN", 180000, [("30", "Blue"), ("32", "Blue")]),
    ("Ankle Socks", "LT-SK", 12000, [("Free", "White")]),
]


def seed_catalog(output: Path, stock: int):
    """Register demo products with stocked variants and write their ids to ``output``."""
    storefront.init()
    lines = []
    with storefront.domain_context():
        for name, sku, price, variants in DEMO_CATALOG:
            product = Product.register(name=name, sku=sku, base_price=price)
            added = [
                product.add_variant(f"{sku}-{size}-{color[:3].upper()}", size=size, color=color)
                for size, color in variants
            ]
            current_domain.repository_for(Product).add(product)

            for variant in added:
                current_domain.process(
                    RecordStockMovement(
                        variant_id=str(variant.id),
                        movement_type="purchase",
                        quantity=stock,
                        note="Load test seed",
                    ),
                    asynchronous=False,
                )
                lines.append({"product_id": str(product.id), "variant_id": str(variant.id)})

    output.write_text(json.dumps(lines, indent=2))
    logger.info("Demo catalog seeded", variants=len(lines), output=str(output))


def main():
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    seed = subparsers.add_parser("seed-catalog", help="Register demo products for load tests")
    seed.add_argument("--output", type=Path, default=Path("loadtests/catalog.json"))
    seed.add_argument("--stock", type=int, default=10000)

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed-catalog":
        seed_catalog(args.output, args.stock)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
