"""
Setup script for colops

This setup.py is primarily for compatibility. The main configuration is in pyproject.toml.
However, this script handles:
1. Reading the version from src/colops/__init__.py
2. Using README.md as the long description when present
"""

from pathlib import Path
from setuptools import setup


# Read version from src/colops/__init__.py
def get_version():
    version_file = Path("src/colops/__init__.py")
    if version_file.exists():
        for line in version_file.read_text().splitlines():
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip('"').strip("'")
    return "0.1.0"


# Read long description from README
def get_long_description():
    readme = Path("README.md")
    if readme.exists():
        return readme.read_text(encoding="utf-8")
    return ""


# Configuration is primarily in pyproject.toml
setup(
    version=get_version(),
    long_description=get_long_description(),
    long_description_content_type="text/markdown",
    zip_safe=False,
)
