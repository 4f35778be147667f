"""
Shipwright - Scaffolding Generator
Install: pip install -e .
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="shipwright-scaffold",
    version="0.1.0",
    author="Shipwright Team",
    author_email="",
    description="Generate migrations, entities, controllers and views from compact field specs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "shipwright": [
            "bundled/*/*.j2",
            "bundled/*/*/*.j2",
        ],
    },
    include_package_data=True,
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Code Generators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: FastAPI",
    ],
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
        "Jinja2>=3.1",
        "sqlalchemy>=2.0.0",
    ],
    extras_require={
        # Needed by the controllers and tests shipwright generates.
        "app": [
            "fastapi>=0.100.0",
            "python-multipart>=0.0.5",
            "httpx>=0.24.0",
            "Faker>=18.0",
        ],
        "dev": [
            "fastapi>=0.100.0",
            "python-multipart>=0.0.5",
            "pytest>=7.0",
            "httpx>=0.24.0",
            "Faker>=18.0",
            "black>=23.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "shipwright=shipwright.cli:cli_main",
        ],
    },
    keywords="scaffolding, generator, crud, fastapi, sqlalchemy, code-generator",
)
