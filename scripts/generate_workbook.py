"""
Coffee Sales Workbook Generator
Generates a denormalized sales workbook with the quirks real exports have:
inconsistent name casing, stray whitespace, anonymous sales, missing
stores and payment types, and a handful of unreadable dates.
"""

import argparse
import random
from datetime import datetime, timedelta
from pathlib import Path

import numpy as np
import polars as pl
from faker import Faker
from openpyxl import Workbook

fake = Faker()
random.seed(42)
np.random.seed(42)
Faker.seed(42)

PRODUCTS = {
    "Latte": ("Coffee", 3.50),
    "Americano": ("Coffee", 2.75),
    "Cappuccino": ("Coffee", 3.25),
    "Cortado": ("Coffee", 3.00),
    "Espresso": ("Coffee", 2.00),
    "Hot Chocolate": ("Chocolate", 4.00),
    "Cocoa": ("Chocolate", 3.75),
    "Chai Latte": ("Tea", 3.60),
}
STORES = ["Downtown", "Airport", "University", "Harbor"]
PAYMENTS = ["card", "cash"]

HEADER = ["Date", "coffee_name", "Category", "Price", "Quantity", "customer_id", "payment_method", "Store"]


def _messy(name: str) -> str:
    """Same key, different spelling"""
    return random.choice([name, name.lower(), name.upper(), f" {name}", f"{name} "])


# ==========================================
# SALES
# ==========================================
def generate_sales(n=5000, start=None):
    print(f"📊 Generating {n:,} sales...")

    start = start or datetime(2024, 3, 1)
    names = list(PRODUCTS)
    clients = [f"ANON-{fake.unique.random_int(1, 999999):06d}" for _ in range(n // 10 or 1)]

    random_days = np.random.randint(0, 365, n)
    random_minutes = np.random.randint(7 * 60, 22 * 60, n)
    timestamps = [
        start + timedelta(days=int(d), minutes=int(m))
        for d, m in zip(random_days, random_minutes)
    ]
    products = [str(p) for p in np.random.choice(names, n)]

    df = pl.DataFrame({
        "Date": timestamps,
        "coffee_name": [_messy(p) for p in products],
        "Category": [PRODUCTS[p][0] for p in products],
        "Price": [PRODUCTS[p][1] for p in products],
        "Quantity": np.random.choice([1, 1, 1, 2, 3], n),
        "customer_id": np.random.choice(clients, n),
        "payment_method": np.random.choice(PAYMENTS, n, p=[0.7, 0.3]),
        "Store": np.random.choice(STORES, n),
    })

    # ~20% anonymous, ~2% without store, ~2% without payment type
    df = df.with_columns(
        pl.when(pl.Series(np.random.random(n) < 0.20)).then(None).otherwise(pl.col("customer_id")).alias("customer_id"),
        pl.when(pl.Series(np.random.random(n) < 0.02)).then(None).otherwise(pl.col("Store")).alias("Store"),
        pl.when(pl.Series(np.random.random(n) < 0.02)).then(None).otherwise(pl.col("payment_method")).alias("payment_method"),
    )
    print(f"   ✅ sales: {n:,} rows")
    return df


def write_workbook(sheets, output):
    workbook = Workbook()
    workbook.remove(workbook.active)

    for title, df, bad_dates in sheets:
        sheet = workbook.create_sheet(title)
        sheet.append(HEADER)
        for i, row in enumerate(df.iter_rows()):
            row = list(row)
            if i in bad_dates:
                row[0] = "unknown"
            sheet.append(row)

    output.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(output)


# ==========================================
# MAIN
# ==========================================
def main():
    parser = argparse.ArgumentParser(description="Generate a coffee sales workbook")
    parser.add_argument("--rows", type=int, default=5000, help="Rows on the main sheet (default: 5000)")
    parser.add_argument("--output", default="Coffe_sales.xlsx", help="Output workbook")
    args = parser.parse_args()

    print("=" * 60)
    print("☕ Coffee Sales Workbook Generator")
    print("=" * 60 + "\n")

    sales = generate_sales(args.rows)
    extra = generate_sales(max(args.rows // 10, 1), start=datetime(2025, 3, 1))
    bad_dates = set(np.random.choice(args.rows, size=min(5, args.rows), replace=False).tolist())

    output = Path(args.output)
    write_workbook([("Sales", sales, bad_dates), ("Sales 2025", extra, set())], output)

    size = output.stat().st_size / 1024 / 1024
    print("\n" + "=" * 60)
    print("✅ Workbook Generation Complete!")
    print("=" * 60)
    print(f"\n📁 Output: {output} ({size:.2f} MB)")
    print(f"📊 Total: {len(sales) + len(extra):,} rows, {len(bad_dates)} with unreadable dates\n")


if __name__ == "__main__":
    main()
