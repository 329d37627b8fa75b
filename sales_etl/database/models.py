"""
Database Models - Normalized Sales Schema

This module defines the relational model produced by the workbook import.
One transaction table references four reference tables:

Transaction Table:
- Sale: one row per source transaction row

Reference Tables:
- Product: product catalog keyed by case-insensitive name
- Client: anonymous clients keyed by code, with derived purchase statistics
- PaymentMethod: payment types keyed by case-insensitive type
- Store: points of sale keyed by case-insensitive name

Table and column names are the contract consumed by the reporting queries.
"""

from datetime import datetime, date, time
from typing import Optional, List

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# Monetary columns are read back as floats so totals compare exactly in tests
Money = Numeric(10, 2, asdecimal=False)


# =============================================================================
# REFERENCE TABLES
# =============================================================================

class Client(Base):
    """
    Client Table

    Clients are anonymous codes taken from the source. The purchase
    statistics are a materialized view over sales, recomputed by the
    aggregation pass and never written by the import itself.
    """
    __tablename__ = "clients"

    client_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    anonymous_code: Mapped[Optional[str]] = mapped_column(String(100))
    client_type: Mapped[Optional[str]] = mapped_column(String(50))

    # Derived statistics
    first_purchase_date: Mapped[Optional[date]] = mapped_column(Date)
    last_purchase_date: Mapped[Optional[date]] = mapped_column(Date)
    total_purchases: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    total_spent: Mapped[float] = mapped_column(Money, default=0, server_default="0")

    # Audit
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )

    # Relationships
    sales: Mapped[List["Sale"]] = relationship(back_populates="client")

    __table_args__ = (
        Index("idx_clients_code", "anonymous_code"),
    )


class Product(Base):
    """
    Product Table

    Product catalog built lazily from the product names found in the source.
    """
    __tablename__ = "products"

    product_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100))
    base_price: Mapped[Optional[float]] = mapped_column(Money)

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="1")

    # Audit
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    sales: Mapped[List["Sale"]] = relationship(back_populates="product")

    __table_args__ = (
        Index("idx_products_name", "name"),
    )


class PaymentMethod(Base):
    """Payment Method Table"""
    __tablename__ = "payment_methods"

    payment_method_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    payment_type: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="1")

    sales: Mapped[List["Sale"]] = relationship(back_populates="payment_method")

    __table_args__ = (
        Index("idx_payment_methods_type", "payment_type"),
    )


class Store(Base):
    """Store Table"""
    __tablename__ = "stores"

    store_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(300))
    city: Mapped[Optional[str]] = mapped_column(String(100))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="1")
    opening_date: Mapped[Optional[date]] = mapped_column(Date)

    # Audit
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )

    sales: Mapped[List["Sale"]] = relationship(back_populates="store")

    __table_args__ = (
        Index("idx_stores_name", "name"),
    )


# =============================================================================
# TRANSACTION TABLE
# =============================================================================

class Sale(Base):
    """
    Sale Table

    Grain is one source row. Product, payment method and store are
    mandatory references; client is null for anonymous sales. Calendar
    attributes are derived from the sale timestamp at import time.
    """
    __tablename__ = "sales"

    sale_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Timestamps
    sale_date: Mapped[date] = mapped_column(Date, nullable=False)
    sale_timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    time_of_day: Mapped[Optional[time]] = mapped_column(Time)

    # Reference foreign keys
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("products.product_id"), nullable=False
    )
    payment_method_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("payment_methods.payment_method_id"), nullable=False
    )
    client_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("clients.client_id")
    )
    store_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("stores.store_id"), nullable=False
    )

    # Measures
    unit_price: Mapped[float] = mapped_column(Money, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    total_amount: Mapped[float] = mapped_column(Money, nullable=False)

    # Derived calendar attributes
    day_period: Mapped[Optional[str]] = mapped_column(String(20))
    weekday_name: Mapped[Optional[str]] = mapped_column(String(20))
    month_name: Mapped[Optional[str]] = mapped_column(String(20))
    weekday_number: Mapped[Optional[int]] = mapped_column(Integer)  # 0=Sunday
    month_number: Mapped[Optional[int]] = mapped_column(Integer)  # 1=January

    # Audit
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    product: Mapped["Product"] = relationship(back_populates="sales")
    payment_method: Mapped["PaymentMethod"] = relationship(back_populates="sales")
    client: Mapped[Optional["Client"]] = relationship(back_populates="sales")
    store: Mapped["Store"] = relationship(back_populates="sales")

    __table_args__ = (
        Index("idx_sales_date", "sale_date"),
        Index("idx_sales_product", "product_id"),
        Index("idx_sales_client", "client_id"),
        Index("idx_sales_store", "store_id"),
        Index("idx_sales_payment_method", "payment_method_id"),
        Index("idx_sales_timestamp", "sale_timestamp"),
        Index("idx_sales_month", "month_number"),
        # Composite indexes for the reporting queries
        Index("idx_sales_date_store", "sale_date", "store_id"),
        Index("idx_sales_product_date", "product_id", "sale_date"),
    )
