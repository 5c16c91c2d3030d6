"""
Setup script for focus-gate.

focus-gate is the backend of a distraction-blocking focus tool. It serves
three roles:

1. Gating API - challenges that temporarily unlock blocked domains
2. Progression - XP, levels and daily streaks for completed focus sessions
3. Operator CLI - database setup, unlock sweeps and challenge previews

The 'focusgate' command is the CLI entry point; the API runs under uvicorn.
"""

from setuptools import find_packages, setup

setup(
    name="focus-gate",
    version="0.1.0",
    description="Distraction gating engine: focus sessions, unlock challenges and progression",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config", "main"],
    python_requires=">=3.11",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # API
        "fastapi>=0.110.0",
        "uvicorn>=0.27.0",
        # Database
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP (FastAPI TestClient)
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
        # IANA zones for zoneinfo on platforms without a system database
        "tzdata>=2024.1",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "focusgate=src.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Environment :: Web Environment",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: FastAPI",
    ],
    keywords="focus productivity distraction-blocking gamification",
)
