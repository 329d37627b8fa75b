"""
Sales Normalization Pipeline

Loads denormalized sales workbooks into a normalized relational store.
"""

__version__ = "1.0.0"
