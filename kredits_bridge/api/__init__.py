"""HTTP API for Kredits Bridge."""
