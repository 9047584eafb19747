"""Command-line client for Ntando."""
