"""Publish static-analysis reports as GitHub check runs."""

__version__ = "0.1.0"
