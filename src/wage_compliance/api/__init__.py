"""HTTP API for the compliance engine."""
