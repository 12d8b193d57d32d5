"""Startup check of the signing wallet's balance."""

from __future__ import annotations

import structlog

from kredits_bridge.application.ports.chat_notifier import ChatNotifierProtocol
from kredits_bridge.application.ports.ledger import LedgerProtocol

log = structlog.get_logger()


async def check_signer_balance(
    ledger: LedgerProtocol,
    notifier: ChatNotifierProtocol,
    chat_room: str,
    minimum: float,
) -> float:
    """Log the signer balance and alert the room when it is too low.

    Returns:
        The balance read from the ledger.
    """
    address = ledger.signer_address
    balance = await ledger.get_balance(address)
    log.info("signer_balance", address=address, balance=balance)

    if balance < minimum:
        log.warning("signer_balance_low", address=address, balance=balance, minimum=minimum)
        await notifier.post(
            chat_room,
            f"Yo gang, I'm broke! Please drop me some funds to {address}. kthxbai.",
        )
    return balance
