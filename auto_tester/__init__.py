"""Test selection and execution harness."""

__version__ = "0.1.0"
