"""Classifier: turns labels and size metrics into an amount and a kind.

Label amounts come from a configured table; the category keywords and the
wiki size tiers are fixed.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from kredits_bridge.domain.models.contribution import ContributionKind

KREDITS_LABEL_PATTERN = re.compile(r"kredits-\d+")

# Checked in order; the first category with a matching label wins.
KIND_KEYWORDS: tuple[tuple[ContributionKind, re.Pattern[str]], ...] = (
    (ContributionKind.OPS, re.compile(r"ops|operations")),
    (ContributionKind.DOCS, re.compile(r"docs|documentation")),
    (ContributionKind.DESIGN, re.compile(r"design")),
    (ContributionKind.COMMUNITY, re.compile(r"community")),
)

WIKI_TIER_LIMITS = (280, 2000)  # 280: less than a tweet


def kredits_label(labels: Iterable[str], amounts: Mapping[str, int]) -> str | None:
    """Return the first recognized kredits label, if any.

    A label is recognized when it has the `kredits-N` form and appears in
    the amount table.
    """
    for label in labels:
        if KREDITS_LABEL_PATTERN.fullmatch(label) and label in amounts:
            return label
    return None


def amount_from_labels(labels: Iterable[str], amounts: Mapping[str, int]) -> int:
    """Return the kredits amount for `labels`; 0 when no label is recognized."""
    label = kredits_label(labels, amounts)
    if label is None:
        return 0
    return amounts[label]


def kind_from_labels(labels: Iterable[str]) -> ContributionKind:
    """Return the contribution kind for `labels`, defaulting to dev."""
    labels = list(labels)
    for kind, pattern in KIND_KEYWORDS:
        if any(pattern.search(label) for label in labels):
            return kind
    return ContributionKind.DEV


def amount_from_character_delta(delta: int, tiers: tuple[int, int, int]) -> int:
    """Return the wiki amount for a cumulative character delta.

    Args:
        delta: Characters added across a batch of edits.
        tiers: Amounts for the small, medium and large tier.
    """
    if delta < WIKI_TIER_LIMITS[0]:
        return tiers[0]
    if delta < WIKI_TIER_LIMITS[1]:
        return tiers[1]
    return tiers[2]


class Classifier:
    """Classifier bound to one configured amount table.

    Example:
        classifier = Classifier({"kredits-1": 500})
        classifier.classify(["kredits-1", "docs"])  # (500, ContributionKind.DOCS)
    """

    def __init__(
        self,
        label_amounts: Mapping[str, int],
        wiki_amounts: tuple[int, int, int] = (500, 1500, 5000),
    ) -> None:
        self._label_amounts = dict(label_amounts)
        self._wiki_amounts = wiki_amounts

    @property
    def label_amounts(self) -> Mapping[str, int]:
        return self._label_amounts

    def amount(self, labels: Iterable[str]) -> int:
        return amount_from_labels(labels, self._label_amounts)

    def kind(self, labels: Iterable[str]) -> ContributionKind:
        return kind_from_labels(labels)

    def classify(self, labels: Iterable[str]) -> tuple[int, ContributionKind]:
        """Return (amount, kind) for an event's labels."""
        labels = list(labels)
        return self.amount(labels), self.kind(labels)

    def classify_wiki_edits(self, characters_added: int) -> tuple[int, ContributionKind]:
        """Return (amount, kind) for a batch of wiki edits."""
        return (
            amount_from_character_delta(characters_added, self._wiki_amounts),
            ContributionKind.DOCS,
        )
