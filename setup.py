#!/usr/bin/env python3
"""Minimal setup.py for pip installation of stack-secrets."""

from setuptools import setup, find_packages

# Read version from __version__.py
version_dict = {}
with open("src/stack_secrets/__version__.py") as fp:
    exec(fp.read(), version_dict)

setup(
    name="stack-secrets",
    version=version_dict["__version__"],
    description="Versioned secret storage for stack deployments backed by Google Cloud Secret Manager",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        # Core dependencies
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "python-dotenv",
        # Google Cloud
        "google-cloud-secret-manager>=2.0",
        "google-api-core",
        "google-auth",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov",
            "black",
            "ruff",
            "isort",
            "mypy",
        ]
    },
)
