"""HTTP API for Ntando."""
