"""Bootstrap wiring for Kredits Bridge."""

from kredits_bridge.bootstrap.container import KreditsContainer, build_container
from kredits_bridge.bootstrap.logging import configure_structlog

__all__ = ["KreditsContainer", "build_container", "configure_structlog"]
