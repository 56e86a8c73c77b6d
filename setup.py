"""
Setup configuration for pagecomposer package.
"""

from setuptools import setup, find_packages

setup(
    name="pagecomposer",
    version="0.1.0",
    description="Section assembly, layout injection and style isolation for generated pages",
    packages=find_packages(include=["pagecomposer", "pagecomposer.*"]),
    python_requires=">=3.9",
    install_requires=[
        "supabase>=2.0",
        "pydantic>=2.0",
        "pydantic-graph>=0.1,<2",
        "tenacity>=8.0",
        "click>=8.0",
        "python-dotenv>=1.0",
        "pyyaml>=6.0",
        "logfire>=0.40",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "pagecomposer=pagecomposer.cli.main:cli",
        ],
    },
)
