"""
Kredits Bridge - contribution attribution for the Kredits ledger.

Turns work done on external platforms (closed issues and merged pull
requests, wiki edits, community calls, pull request reviews) into
kredits awarded to contributors on an append-only ledger.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
