"""Domain layer: contribution models and the error taxonomy."""
