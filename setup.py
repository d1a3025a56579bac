"""Setup script for the GENOVA marketplace core."""

from setuptools import setup, find_packages
from pathlib import Path

readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text() if readme_path.exists() else ""

setup(
    name="genova-marketplace",
    version="0.1.0",
    description="Expert marketplace core: onboarding, inquiries, projects, availability and moderation",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(include=["genova", "genova.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml>=6.0",
        "jsonschema>=4.17.0",
        "requests>=2.31.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "api": [
            "flask>=3.0.0",
        ],
        "dev": [
            "pytest>=7.4.0",
            "flask>=3.0.0",
            "black>=23.0.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "genova=genova.cli:main",
            "genova-api=genova.api.routes:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Office/Business",
    ],
    keywords=[
        "marketplace",
        "experts",
        "onboarding",
        "moderation",
    ],
)
