#!/usr/bin/env python
"""
Sales Normalization Pipeline Setup
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="sales-etl",
    version="1.0.0",
    description="Loads denormalized sales workbooks into a normalized relational database",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "scripts", "workflows"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Database",
        "Topic :: Scientific/Engineering :: Information Analysis",
    ],
    python_requires=">=3.11",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-asyncio>=0.23.0",
            "faker>=20.0.0",
            "numpy>=1.26.0",
        ],
        "postgres": [
            "asyncpg>=0.29.0",
        ],
        "workflows": [
            "prefect>=2.14.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "sales-etl=sales_etl.main:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    keywords=[
        "etl",
        "excel",
        "sales",
        "normalization",
        "sqlalchemy",
        "sqlite",
    ],
)
