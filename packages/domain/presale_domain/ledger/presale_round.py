"""Presale round aggregate.

PresaleRound owns a RoundState and is the only thing that mutates it. Every
operation follows the same shape:

    1. Validate against current state (raise before touching anything)
    2. Build the event
    3. Move assets through the external FungibleAsset (raise TransferError on failure)
    4. Apply the event to state and notify subscribers

Because validation and transfers happen before the event is applied, a
rejected call leaves the round exactly as it was.
"""

import logging
import time
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..assets import FungibleAsset
from ..errors import (
    AdmissionError,
    AuthorizationError,
    GoalReachedError,
    InvalidInviteError,
    InviteAlreadyUsedError,
    InvestmentLimitError,
    MinimumInvestmentError,
    RoundAlreadyClosedError,
    RoundClosedError,
    SettlementTokenAlreadyBoundError,
    TransferError,
)
from ..merkle import BytesLike, verify_invite
from ..schemas.config import RoundConfig
from ..schemas.events import (
    ClaimEvent,
    DepositEvent,
    OwnershipTransferredEvent,
    RoundClosedEvent,
    RoundEvent,
    SettlementTokenBoundEvent,
)
from ..schemas.state import RoundState, SettlementBound
from .admission import admitted_amount, cap_room, investor_room, meets_minimum
from .settlement import hurdle_met, resolve_settlement_token
from .vesting import Claimable, claimable_amount, vested_amount

logger = logging.getLogger(__name__)

Clock = Callable[[], int]
EventListener = Callable[[RoundEvent], None]


def system_clock() -> int:
    """Wall-clock time in whole seconds."""
    return int(time.time())


class PresaleRound:
    """Invite-gated fundraising round with hurdle, refunds and vesting.

    Example:
        usdc = InMemoryAsset("0xusdc")
        presale_round = PresaleRound(config, usdc)

        ticket = tree.ticket(code_hash)
        presale_round.deposit_for("alice", to_atto(100), **ticket.deposit_kwargs())

        presale_round.set_settlement_token(reward_token, caller=config.owner)
        presale_round.close_round(caller=config.owner)

        presale_round.claim_for("alice")
    """

    def __init__(
        self,
        config: RoundConfig,
        contribution_asset: FungibleAsset,
        clock: Optional[Clock] = None,
        state: Optional[RoundState] = None,
        events: Optional[Sequence[RoundEvent]] = None,
    ):
        """Initialize a round.

        Args:
            config: Immutable round parameters
            contribution_asset: Asset investors contribute; its address must match config
            clock: Callable returning the current timestamp (default: wall clock)
            state: Existing state to resume (default: fresh open round)
            events: Event log matching state (default: empty)

        Raises:
            ValueError: If the contribution asset does not match the config
        """
        if contribution_asset.address != config.contribution_asset:
            raise ValueError(
                f"Contribution asset {contribution_asset.address} does not match "
                f"configured {config.contribution_asset}"
            )
        self.config = config
        self.contribution_asset = contribution_asset
        self.clock: Clock = clock or system_clock
        self.state = state if state is not None else RoundState(owner=config.owner)
        self._events: List[RoundEvent] = list(events or [])
        self._listeners: List[EventListener] = []
        self._assets: Dict[str, FungibleAsset] = {contribution_asset.address: contribution_asset}

    @classmethod
    def restore(
        cls,
        config: RoundConfig,
        contribution_asset: FungibleAsset,
        events: Iterable[RoundEvent],
        settlement_asset: Optional[FungibleAsset] = None,
        clock: Optional[Clock] = None,
    ) -> 'PresaleRound':
        """Rebuild a round from its event log.

        Args:
            config: Parameters the round was created with
            contribution_asset: Contribution asset handle
            events: Persisted event log, oldest first
            settlement_asset: Handle for a bound reward token, if any
            clock: Clock for further operations
        """
        events = list(events)
        state = RoundState.replay(events, owner=config.owner)
        presale_round = cls(config, contribution_asset, clock=clock, state=state, events=events)
        if settlement_asset is not None:
            presale_round._assets[settlement_asset.address] = settlement_asset
        return presale_round

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    @property
    def address(self) -> str:
        return self.config.round_address

    @property
    def owner(self) -> Optional[str]:
        return self.state.owner

    @property
    def hard_cap(self) -> int:
        return self.config.hard_cap

    @property
    def hurdle(self) -> int:
        return self.config.hurdle

    @property
    def total_allocated(self) -> int:
        return self.state.total_allocated

    @property
    def is_open(self) -> bool:
        return self.state.is_open

    @property
    def is_goal_reached(self) -> bool:
        """True once the hard cap is filled (deposits blocked even if still open)."""
        return self.state.total_allocated >= self.config.hard_cap

    @property
    def closed_at(self) -> Optional[int]:
        return self.state.closed_at

    @property
    def settlement_token(self) -> Optional[str]:
        """Address of the bound settlement token, or None."""
        return self.state.settlement_token

    @property
    def is_refunding(self) -> bool:
        """True once closed with the contribution asset as settlement."""
        return (
            not self.state.is_open
            and self.state.settlement_token == self.config.contribution_asset
        )

    @property
    def events(self) -> Tuple[RoundEvent, ...]:
        return tuple(self._events)

    def allocation(self, investor: str) -> int:
        return self.state.allocation_of(investor)

    def claimed(self, investor: str) -> int:
        return self.state.claimed_of(investor)

    def invite_holder(self, code_hash: str) -> Optional[str]:
        """Investor an invite code is bound to, if it has been used."""
        return self.state.invite_bindings.get(code_hash)

    def investors(self) -> List[str]:
        return list(self.state.allocations.keys())

    def entitlement(self, investor: str, at: int) -> int:
        """Cumulative amount investor is entitled to at `at`."""
        return vested_amount(
            allocation=self.state.allocation_of(investor),
            status=self.state.status,
            settlement=self.state.settlement,
            contribution_asset=self.config.contribution_asset,
            cliff=self.config.vesting_cliff_duration,
            duration=self.config.vesting_duration,
            at=at,
        )

    def calculate_claimable(self, investor: str, at: int) -> Claimable:
        """Preview what claim_for() would pay at `at` without paying it."""
        return claimable_amount(self.entitlement(investor, at), self.state.claimed_of(investor))

    def calculate_claimable_now(self, investor: str) -> Claimable:
        return self.calculate_claimable(investor, self.clock())

    def subscribe(self, listener: EventListener) -> None:
        """Register a callback invoked with every event after it is applied.

        Exceptions raised by the callback are logged, never propagated: by the
        time listeners run, the operation has committed.
        """
        self._listeners.append(listener)

    # ------------------------------------------------------------------ #
    # Deposits
    # ------------------------------------------------------------------ #

    def deposit_for(
        self,
        investor: str,
        amount: int,
        min_investment: int,
        max_investment: int,
        code_hash: str,
        proof: Sequence[BytesLike],
        sender: Optional[str] = None,
    ) -> int:
        """Contribute on behalf of an invited investor.

        Args:
            investor: Investor credited with the allocation
            amount: Requested amount (atto-units)
            min_investment: Invite minimum exactly as committed
            max_investment: Invite maximum exactly as committed
            code_hash: Hex keccak hash of the invite code
            proof: Merkle proof for the invite entry
            sender: Account paying (default: the investor)

        Returns:
            Admitted amount (may be less than requested)

        Raises:
            ValueError: If amount is not positive
            AdmissionError: If the deposit is rejected
            TransferError: If the contribution asset could not be pulled
        """
        if amount <= 0:
            raise ValueError(f"Deposit amount must be positive, got {amount}")
        payer = sender or investor
        try:
            admitted = self._admit(investor, amount, min_investment, max_investment, code_hash, proof)
        except AdmissionError as exc:
            logger.warning("Deposit of %d for %s rejected: %s", amount, investor, exc)
            raise

        event = DepositEvent(
            sequence=len(self._events),
            timestamp=self.clock(),
            investor=investor,
            amount=admitted,
            requested_amount=amount,
            code_hash=code_hash,
            payer=payer,
        )
        self._pull(payer, admitted)
        self._emit(event)

        if admitted < amount:
            logger.info(
                "Deposit for %s scaled from %d to %d (total %d/%d)",
                investor, amount, admitted, self.state.total_allocated, self.config.hard_cap,
            )
        else:
            logger.info(
                "Deposit of %d for %s admitted (total %d/%d)",
                admitted, investor, self.state.total_allocated, self.config.hard_cap,
            )
        return admitted

    def _admit(
        self,
        investor: str,
        amount: int,
        min_investment: int,
        max_investment: int,
        code_hash: str,
        proof: Sequence[BytesLike],
    ) -> int:
        """Run every admission check and return the admitted amount."""
        if not self.state.is_open:
            raise RoundClosedError()

        allocation = self.state.allocation_of(investor)
        if not meets_minimum(allocation, amount, min_investment):
            raise MinimumInvestmentError(allocation + amount, min_investment)

        if not verify_invite(code_hash, min_investment, max_investment, proof, self.config.merkle_root):
            raise InvalidInviteError(code_hash)

        bound_to = self.state.invite_bindings.get(code_hash)
        if bound_to is not None and bound_to != investor:
            raise InviteAlreadyUsedError(code_hash, bound_to)

        room = investor_room(allocation, max_investment)
        if room == 0:
            raise InvestmentLimitError(investor)

        remaining = cap_room(self.state.total_allocated, self.config.hard_cap)
        if remaining == 0:
            raise GoalReachedError()

        return admitted_amount(amount, room, remaining)

    # ------------------------------------------------------------------ #
    # Round lifecycle
    # ------------------------------------------------------------------ #

    def set_settlement_token(self, token: FungibleAsset, caller: str) -> None:
        """Stage the reward token investors will claim on success.

        Raises:
            AuthorizationError: If caller is not the owner
            SettlementTokenAlreadyBoundError: If a token is already bound
        """
        self._only_owner(caller)
        if isinstance(self.state.settlement, SettlementBound):
            raise SettlementTokenAlreadyBoundError(self.state.settlement.token)

        self._assets[token.address] = token
        self._emit(SettlementTokenBoundEvent(
            sequence=len(self._events),
            timestamp=self.clock(),
            token=token.address,
        ))
        logger.info("Settlement token %s bound to round %s", token.address, self.address)

    def close_round(self, caller: str) -> str:
        """Close the round and resolve the settlement token.

        Returns:
            Address of the resolved settlement token

        Raises:
            AuthorizationError: If caller is not the owner
            RoundAlreadyClosedError: If the round is already closed
        """
        self._only_owner(caller)
        if not self.state.is_open:
            raise RoundAlreadyClosedError()

        total = self.state.total_allocated
        token = resolve_settlement_token(
            self.state.settlement, total, self.config.hurdle, self.config.contribution_asset
        )
        met = hurdle_met(total, self.config.hurdle)
        self._emit(RoundClosedEvent(
            sequence=len(self._events),
            timestamp=self.clock(),
            settlement_token=token,
            total_allocated=total,
            hurdle_met=met,
        ))

        if met and token != self.config.contribution_asset:
            logger.info("Round %s closed at %d: raised %d, hurdle met, settling in %s",
                        self.address, self.state.closed_at, total, token)
        else:
            logger.info("Round %s closed at %d: raised %d of hurdle %d, refunding",
                        self.address, self.state.closed_at, total, self.config.hurdle)
        return token

    # ------------------------------------------------------------------ #
    # Claims
    # ------------------------------------------------------------------ #

    def claim_for(self, investor: str, at: Optional[int] = None) -> int:
        """Pay out everything investor is entitled to and has not yet claimed.

        Args:
            investor: Investor to pay
            at: Evaluation time (default: now; may not be in the future)

        Returns:
            Amount paid by this call (zero when nothing new has vested)

        Raises:
            ValueError: If `at` is later than the clock
            TransferError: If the settlement token transfer fails
        """
        now = self.clock()
        if at is None:
            at = now
        elif at > now:
            raise ValueError(f"Cannot claim against a future timestamp ({at} > {now})")

        payout = self.calculate_claimable(investor, at).claimable
        token = self.state.settlement_token
        event = ClaimEvent(
            sequence=len(self._events),
            timestamp=now,
            investor=investor,
            amount=payout,
            token=token,
        )
        if payout > 0:
            self._pay(token, investor, payout)
        self._emit(event)
        if payout:
            logger.info("Claimed %d %s for %s (total %d of %d)",
                        payout, token, investor,
                        self.state.claimed_of(investor), self.state.allocation_of(investor))
        return payout

    # ------------------------------------------------------------------ #
    # Ownership
    # ------------------------------------------------------------------ #

    def transfer_ownership(self, new_owner: str, caller: str) -> None:
        self._only_owner(caller)
        if not new_owner:
            raise ValueError("new_owner must be a non-empty address (use renounce_ownership)")
        self._emit(OwnershipTransferredEvent(
            sequence=len(self._events),
            timestamp=self.clock(),
            previous_owner=self.state.owner,
            new_owner=new_owner,
        ))

    def renounce_ownership(self, caller: str) -> None:
        """Drop the owner; no administrative call can succeed afterwards."""
        self._only_owner(caller)
        self._emit(OwnershipTransferredEvent(
            sequence=len(self._events),
            timestamp=self.clock(),
            previous_owner=self.state.owner,
            new_owner=None,
        ))

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _only_owner(self, caller: str) -> None:
        if self.state.owner is None or caller != self.state.owner:
            raise AuthorizationError(caller)

    def _pull(self, payer: str, amount: int) -> None:
        asset = self.contribution_asset
        if not asset.transfer_from(self.address, payer, self.address, amount):
            raise TransferError(asset.address, payer, self.address, amount)

    def _pay(self, token: str, investor: str, amount: int) -> None:
        asset = self._assets.get(token)
        if asset is None:
            raise TransferError(token, self.address, investor, amount)
        if not asset.transfer(self.address, investor, amount):
            raise TransferError(token, self.address, investor, amount)

    def _emit(self, event: RoundEvent) -> None:
        event.apply(self.state)
        self._events.append(event)
        # The event is committed; a listener failure must not fail the operation
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Listener %r failed on %s event #%d",
                    listener, event.event_type, event.sequence,
                )

    def __repr__(self) -> str:
        status = "open" if self.state.is_open else f"closed@{self.state.closed_at}"
        return (
            f"PresaleRound({self.address}, {status}, "
            f"{self.state.total_allocated}/{self.config.hard_cap})"
        )
