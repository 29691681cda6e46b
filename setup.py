"""
Setup configuration for adlens package.
"""

from setuptools import setup, find_packages

setup(
    name="adlens",
    version="1.0.0",
    description="Creative performance aggregation and benchmarking for ad accounts",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "pydantic>=2.0",
        "python-dotenv>=1.0.0",
        "pyyaml>=6.0",
        "click>=8.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "adlens=adlens.cli.main:cli",
        ],
    },
)
