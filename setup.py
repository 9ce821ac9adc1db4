#!/usr/bin/env python3
"""
KV-Store Setup Script
=====================
Allows installation of the kv-store package.

Usage:
    pip install -e .           # Development install
    pip install -e ".[test]"   # Development install with test tools
    pip install .              # Regular install
"""

from setuptools import setup, find_packages

setup(
    name="kv-store",
    version="1.0.0",
    description="Asynchronous key-value storage with an in-memory TTL engine",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "kv-store=kvstore.cli:main",
        ],
    },
)
