#!/usr/bin/env python
"""Setup script for the Fermi Estimation Tool."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="fermi-tool",
    version="1.0.0",
    author="Fermi Estimation Team",
    description="Monte Carlo engine for Fermi estimates",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["examples"]),
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Mathematics",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.11",
    install_requires=[
        "numpy>=1.24.0",
        "pandas>=2.0.0",
        "scipy>=1.10.0",
        "numba>=0.58.0",
        "matplotlib>=3.7.0",
        "plotly>=5.15.0",
        "openpyxl>=3.1.0",
        "pydantic>=2.0.0",
        "typer>=0.9.0",
        "pytest>=7.4.0",
        "rich>=13.0.0",
        "pyyaml>=6.0.0",
        "sympy>=1.12",
    ],
    extras_require={
        "dev": [
            "pytest-cov",
            "black",
            "flake8",
            "mypy",
            "pre-commit",
        ],
    },
    entry_points={
        "console_scripts": [
            "fermi-tool=fermi_tool.cli:app",
        ],
    },
    include_package_data=True,
    package_data={
        "fermi_tool": [
            "templates/*.json",
        ],
    },
)
