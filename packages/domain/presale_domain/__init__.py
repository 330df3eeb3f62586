"""Presale Domain Engine - invite-gated fundraising rounds.

This package provides the settlement engine for a gated presale:
- Merkle-committed invite codes with per-invite contribution bounds
- Hard-capped contribution ledger that scales the last deposit to fit
- Hurdle evaluation at close: reward token on success, refund on failure
- Linear vesting with cliff for rewards, immediate refunds otherwise
- Event-sourced state with a replayable deposit/claim log

The domain layer is designed to be:
- Framework-agnostic (no web or chain dependencies)
- Testable (pure Python with Pydantic validation)
- Deterministic (injectable clock, pluggable asset interface)
"""

from .schemas import *  # noqa: F403, F401
from .errors import (  # noqa: F401
    PresaleError,
    AuthorizationError,
    AdmissionError,
    RoundClosedError,
    GoalReachedError,
    InvalidInviteError,
    InviteAlreadyUsedError,
    InvestmentLimitError,
    MinimumInvestmentError,
    SequencingError,
    RoundAlreadyClosedError,
    SettlementTokenAlreadyBoundError,
    TransferError,
)
from .assets import FungibleAsset, InMemoryAsset  # noqa: F401
from .merkle import InviteMerkleTree, hash_invite_code, invite_leaf, verify_invite  # noqa: F401
from .ledger import PresaleRound, Claimable  # noqa: F401

__version__ = "0.1.0"
