#!/usr/bin/env python3
"""
EnergyLedger - A proof-of-work ledger for tokenized energy and compute

Install with: pip install -e .
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="energyledger",
    version="1.0.0",
    author="EnergyLedger Team",
    description="An in-memory proof-of-work ledger that tokenizes metered energy and compute",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Security :: Cryptography",
    ],
    python_requires=">=3.8",
    install_requires=[
        "argon2-cffi>=21.3.0",
        "ecdsa>=0.18.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
)
