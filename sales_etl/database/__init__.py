"""
Database Module
"""
from .connection import (
    build_engine,
    build_session_factory,
    close_database,
    get_db,
    init_database,
)
from .models import Base, Client, PaymentMethod, Product, Sale, Store
from .schema import describe_schema, recreate_schema

__all__ = [
    "build_engine",
    "build_session_factory",
    "close_database",
    "get_db",
    "init_database",
    "Base",
    "Client",
    "PaymentMethod",
    "Product",
    "Sale",
    "Store",
    "describe_schema",
    "recreate_schema",
]
