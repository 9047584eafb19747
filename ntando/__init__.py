"""Ntando - deploy static sites and repositories under free custom domains."""

__version__ = "1.0.0"
