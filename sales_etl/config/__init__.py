"""
Sales Normalization Pipeline
Configuration Module
"""
from .settings import Settings, ImportSettings, get_settings

__all__ = ["Settings", "ImportSettings", "get_settings"]
