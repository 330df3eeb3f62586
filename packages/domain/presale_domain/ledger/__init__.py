"""Presale round ledger.

Pure building blocks plus the aggregate that composes them:
- admission: how much of a deposit is admitted
- settlement: which asset investors claim after close
- vesting: how much is claimable at a given time
- presale_round: PresaleRound, the stateful ledger

Usage:
    from presale_domain.ledger import PresaleRound

    presale_round = PresaleRound(config, usdc, clock=clock)
    presale_round.deposit_for("alice", to_atto(100), **ticket.deposit_kwargs())
"""

from .admission import admitted_amount, cap_room, investor_room, meets_minimum
from .settlement import hurdle_met, is_refund, resolve_settlement_token
from .vesting import (
    Claimable,
    claimable_amount,
    linear_vested,
    vested_amount,
    vesting_progress,
    vesting_window,
)
from .presale_round import PresaleRound, system_clock

__all__ = [
    "admitted_amount",
    "cap_room",
    "investor_room",
    "meets_minimum",
    "hurdle_met",
    "is_refund",
    "resolve_settlement_token",
    "Claimable",
    "claimable_amount",
    "linear_vested",
    "vested_amount",
    "vesting_progress",
    "vesting_window",
    "PresaleRound",
    "system_clock",
]
