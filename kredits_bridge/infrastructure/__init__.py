"""Infrastructure layer: HTTP adapters, stubs and observability."""
