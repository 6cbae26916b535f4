"""Setup configuration for auto-tester."""

from setuptools import setup, find_packages

setup(
    name="auto-tester",
    version="0.1.0",
    description="Test selection and execution harness for map and globe test cases",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.12",
    install_requires=[
        "requests>=2.31.0",
        "pyyaml>=6.0",
        "click>=8.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "auto-tester=auto_tester.cli:main",
        ],
    },
)
