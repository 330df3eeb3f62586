"""Round events for the event-sourced ledger.

Events are immutable records of what happened to a round. PresaleRound
validates an operation, performs any external transfer, then creates the
event and applies it to RoundState. The event log is therefore both the
deposit/claim stream for off-engine indexers and a complete audit trail:
replaying it from an empty state reproduces the round.

Event amounts are always what actually moved (an admitted deposit may be
smaller than what was requested).
"""

from abc import ABC, abstractmethod
from typing import Annotated, Literal, Optional, Union, TYPE_CHECKING
from pydantic import Field, TypeAdapter

from .base import DomainModel, Address, AttoAmount, InviteCodeHash, Timestamp

if TYPE_CHECKING:
    from .state import RoundState


# =============================================================================
# Event Base Class
# =============================================================================

class RoundEvent(DomainModel, ABC):
    """Base class for all round events.

    Event-sourcing principles:
        1. Events are append-only (never modified or deleted)
        2. sequence is the position in the round's log
        3. State is computed by replaying events in order

    Example event timeline:
        1. SettlementTokenBoundEvent: operator stages the reward token
        2. DepositEvent: alice contributes 100 USDC
        3. DepositEvent: bob contributes 9_900 USDC (scaled from 10_000)
        4. RoundClosedEvent: hurdle met, reward token confirmed
        5. ClaimEvent: alice claims her first vested tranche
    """

    sequence: int = Field(
        ge=0,
        description="Position of this event in the round's log"
    )

    timestamp: Timestamp = Field(
        description="Clock time when the event was recorded"
    )

    @abstractmethod
    def apply(self, state: 'RoundState') -> None:
        """Apply this event to the round state (mutates state)."""
        pass


# =============================================================================
# Deposit
# =============================================================================

class DepositEvent(RoundEvent):
    """Contribution admitted for an investor under an invite code."""

    event_type: Literal["deposit"] = "deposit"

    investor: Address = Field(
        description="Investor credited with the allocation"
    )

    amount: AttoAmount = Field(
        description="Admitted amount (after scaling to investor and cap room)"
    )

    requested_amount: AttoAmount = Field(
        description="Amount the caller asked to deposit"
    )

    code_hash: InviteCodeHash = Field(
        description="Invite code the deposit was admitted under"
    )

    payer: Address = Field(
        description="Account the contribution asset was pulled from"
    )

    def apply(self, state: 'RoundState') -> None:
        state.allocations[self.investor] = state.allocation_of(self.investor) + self.amount
        state.total_allocated = state.total_allocated + self.amount
        state.invite_bindings.setdefault(self.code_hash, self.investor)


# =============================================================================
# Claim
# =============================================================================

class ClaimEvent(RoundEvent):
    """Settlement tokens paid out to an investor (zero is a valid payout)."""

    event_type: Literal["claim"] = "claim"

    investor: Address = Field(
        description="Investor paid"
    )

    amount: AttoAmount = Field(
        description="Incremental amount paid by this claim"
    )

    token: Optional[Address] = Field(
        default=None,
        description="Asset paid out (None while no settlement token is bound)"
    )

    def apply(self, state: 'RoundState') -> None:
        state.claimed[self.investor] = state.claimed_of(self.investor) + self.amount


# =============================================================================
# Round Lifecycle
# =============================================================================

class SettlementTokenBoundEvent(RoundEvent):
    """Operator staged the reward token investors will claim."""

    event_type: Literal["settlement_token_bound"] = "settlement_token_bound"

    token: Address = Field(
        description="Address of the staged settlement token"
    )

    def apply(self, state: 'RoundState') -> None:
        from .state import SettlementBound

        state.settlement = SettlementBound(token=self.token)


class RoundClosedEvent(RoundEvent):
    """Round closed; settlement token resolved against the hurdle.

    When the hurdle is missed (or no token was staged) settlement_token is the
    contribution asset and every investor is refunded in full.
    """

    event_type: Literal["round_closed"] = "round_closed"

    settlement_token: Address = Field(
        description="Settlement token after resolution"
    )

    total_allocated: AttoAmount = Field(
        description="Total raised at close"
    )

    hurdle_met: bool = Field(
        description="True if total_allocated reached the hurdle"
    )

    def apply(self, state: 'RoundState') -> None:
        from .state import RoundClosed, SettlementBound

        state.status = RoundClosed(closed_at=self.timestamp)
        state.settlement = SettlementBound(token=self.settlement_token)


class OwnershipTransferredEvent(RoundEvent):
    """Controlling party changed (new_owner None = renounced)."""

    event_type: Literal["ownership_transferred"] = "ownership_transferred"

    previous_owner: Optional[Address] = None

    new_owner: Optional[Address] = None

    def apply(self, state: 'RoundState') -> None:
        state.owner = self.new_owner


# =============================================================================
# Discriminated Union
# =============================================================================

AnyRoundEvent = Annotated[
    Union[
        DepositEvent,
        ClaimEvent,
        SettlementTokenBoundEvent,
        RoundClosedEvent,
        OwnershipTransferredEvent,
    ],
    Field(discriminator='event_type')
]
"""Discriminated union of all round event types.

Used to load a persisted log back into typed events:

    events = [parse_event(record) for record in json.load(fp)]
    state = RoundState.replay(events, owner=config.owner)
"""

_event_adapter = TypeAdapter(AnyRoundEvent)


def parse_event(data: dict) -> RoundEvent:
    """Validate a serialized event (e.g. from model_dump()) into its event class."""
    return _event_adapter.validate_python(data)
