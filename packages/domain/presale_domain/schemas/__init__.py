"""Presale domain schemas.

This package contains all Pydantic models for the presale domain layer:
- Base types and conventions (atto-unit amounts, addresses, timestamps)
- Round configuration
- Invite entries and admission tickets
- Round state with sum-typed status and settlement binding
- Events (event-sourced ledger)
- Workbook configuration

Usage:
    from presale_domain.schemas import (
        RoundConfig, RoundState, InviteTicket, DepositEvent, to_atto
    )
"""

# Base types
from .base import (
    DomainModel,
    ATTO,
    AttoAmount,
    Timestamp,
    Duration,
    Address,
    InviteCodeHash,
    HexRoot,
    to_atto,
    from_atto,
)

# Configuration
from .config import RoundConfig

# Invites
from .invites import (
    InviteCodeRange,
    InviteTicket,
)

# State
from .state import (
    RoundState,
    RoundOpen,
    RoundClosed,
    RoundStatus,
    SettlementUnbound,
    SettlementBound,
    SettlementBinding,
)

# Workbook
from .workbook import RoundWorkbookCFG

# Events
from .events import (
    RoundEvent,
    DepositEvent,
    ClaimEvent,
    SettlementTokenBoundEvent,
    RoundClosedEvent,
    OwnershipTransferredEvent,
    AnyRoundEvent,
    parse_event,
)

__all__ = [
    # Base types
    "DomainModel",
    "ATTO",
    "AttoAmount",
    "Timestamp",
    "Duration",
    "Address",
    "InviteCodeHash",
    "HexRoot",
    "to_atto",
    "from_atto",
    # Configuration
    "RoundConfig",
    # Invites
    "InviteCodeRange",
    "InviteTicket",
    # State
    "RoundState",
    "RoundOpen",
    "RoundClosed",
    "RoundStatus",
    "SettlementUnbound",
    "SettlementBound",
    "SettlementBinding",
    # Workbook
    "RoundWorkbookCFG",
    # Events
    "RoundEvent",
    "DepositEvent",
    "ClaimEvent",
    "SettlementTokenBoundEvent",
    "RoundClosedEvent",
    "OwnershipTransferredEvent",
    "AnyRoundEvent",
    "parse_event",
]
