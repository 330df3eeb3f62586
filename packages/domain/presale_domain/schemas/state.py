"""Mutable round state.

RoundState is the single aggregate every operation reads and writes. It is
only ever changed by applying RoundEvents, so replaying a round's event log
from an empty state reproduces it exactly.

One-way and set-once fields are sum types rather than nullable fields:
    status:     RoundOpen | RoundClosed(closed_at)
    settlement: SettlementUnbound | SettlementBound(token)
"""

from typing import Annotated, Dict, Iterable, Literal, Optional, Union, TYPE_CHECKING
from pydantic import Field

from .base import DomainModel, Address, AttoAmount, Timestamp

if TYPE_CHECKING:
    from .events import RoundEvent


# =============================================================================
# Round Status
# =============================================================================

class RoundOpen(DomainModel):
    """Round accepts deposits (subject to the hard cap)."""

    status: Literal["open"] = "open"


class RoundClosed(DomainModel):
    """Round no longer accepts deposits; vesting is anchored at closed_at."""

    status: Literal["closed"] = "closed"

    closed_at: Timestamp = Field(
        description="Timestamp of the close transition"
    )


RoundStatus = Annotated[
    Union[RoundOpen, RoundClosed],
    Field(discriminator='status')
]


# =============================================================================
# Settlement Token Binding
# =============================================================================

class SettlementUnbound(DomainModel):
    """No settlement token has been bound yet."""

    binding: Literal["unbound"] = "unbound"


class SettlementBound(DomainModel):
    """Settlement token bound; investors claim this asset."""

    binding: Literal["bound"] = "bound"

    token: Address = Field(
        description="Address of the asset investors claim"
    )


SettlementBinding = Annotated[
    Union[SettlementUnbound, SettlementBound],
    Field(discriminator='binding')
]


# =============================================================================
# Round State
# =============================================================================

class RoundState(DomainModel):
    """Ledger of a single presale round.

    Invariants (maintained by the operations in PresaleRound):
        - total_allocated == sum(allocations.values()) <= hard_cap
        - allocations and claimed only grow
        - claimed[investor] <= allocations[investor]
        - invite_bindings entries are never replaced
    """

    owner: Optional[Address] = Field(
        default=None,
        description="Controlling party (None once ownership is renounced)"
    )

    status: RoundStatus = Field(
        default_factory=RoundOpen,
        description="Open, or Closed with the close timestamp"
    )

    settlement: SettlementBinding = Field(
        default_factory=SettlementUnbound,
        description="Asset investors will claim"
    )

    allocations: Dict[str, int] = Field(
        default_factory=dict,
        description="Cumulative contribution per investor (atto-units)"
    )

    total_allocated: AttoAmount = Field(
        default=0,
        description="Sum of all allocations"
    )

    invite_bindings: Dict[str, str] = Field(
        default_factory=dict,
        description="Invite code hash -> investor that first used it"
    )

    claimed: Dict[str, int] = Field(
        default_factory=dict,
        description="Cumulative amount paid out per investor"
    )

    @property
    def is_open(self) -> bool:
        return isinstance(self.status, RoundOpen)

    @property
    def closed_at(self) -> Optional[int]:
        if isinstance(self.status, RoundClosed):
            return self.status.closed_at
        return None

    @property
    def settlement_token(self) -> Optional[str]:
        if isinstance(self.settlement, SettlementBound):
            return self.settlement.token
        return None

    def allocation_of(self, investor: str) -> int:
        return self.allocations.get(investor, 0)

    def claimed_of(self, investor: str) -> int:
        return self.claimed.get(investor, 0)

    @classmethod
    def replay(cls, events: Iterable['RoundEvent'], owner: Optional[str] = None) -> 'RoundState':
        """Rebuild state by applying events in order to a fresh round.

        Args:
            events: Event log, oldest first
            owner: Owner at construction (before any ownership events)

        Returns:
            The state the round had after the last event
        """
        state = cls(owner=owner)
        for event in events:
            event.apply(state)
        return state
