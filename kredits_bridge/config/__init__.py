"""Configuration for Kredits Bridge."""

from kredits_bridge.config.kredits_config import (
    ContributionRulesConfig,
    IntegrationsConfig,
    KreditsConfig,
    LedgerConfig,
    ReviewBatchConfig,
    load_config,
    load_review_batch_config,
)

__all__ = [
    "ContributionRulesConfig",
    "IntegrationsConfig",
    "KreditsConfig",
    "LedgerConfig",
    "ReviewBatchConfig",
    "load_config",
    "load_review_batch_config",
]
