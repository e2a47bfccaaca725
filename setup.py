"""
Setup script for times-tables.

Times Tables is a spaced-repetition trainer for multiplication facts.
It serves two roles:

1. Terminal practice - Quick sessions with a local progress file
2. HTTP API - Multi-user practice backed by SQLite

The 'times-tables' command is the primary entry point.
"""

from setuptools import find_packages, setup

setup(
    name="times-tables",
    version="1.0.0",
    description="Spaced-repetition multiplication practice with progressive table unlocking",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.11",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP API
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
        "passlib>=1.7.4",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "httpx>=0.25.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "times-tables=times_tables.delivery.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition multiplication cli education",
)
