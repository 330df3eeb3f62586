"""Shared fixtures for presale domain tests.

Round setup mirrors a typical seed presale:
- Hard cap 10,000 USDC, hurdle 5,000 USDC
- 1 week cliff, 1 month linear vesting
- 10 small invites (100 - 1,000) followed by 10 large invites (1,000 - 10,000)
- A sponsor account funds deposits on behalf of investors
"""

from typing import List

import pytest

from presale_domain import (
    InMemoryAsset,
    InviteCodeRange,
    InviteMerkleTree,
    InviteTicket,
    PresaleRound,
    RoundConfig,
    hash_invite_code,
    to_atto,
)

SECONDS_IN_ONE_WEEK = 604_800
SECONDS_IN_ONE_MONTH = 2_628_000
START_TIME = 1_700_000_000

HARD_CAP = to_atto(10_000)
HURDLE = to_atto(5_000)

OWNER = "0xowner"
SPONSOR = "0xsponsor"
ROUND_ADDRESS = "0xpresale"


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: int = START_TIME):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now


class InviteBook:
    """Hands out committed invites in order, like an operator mailing codes."""

    def __init__(self, tree: InviteMerkleTree):
        self.tree = tree
        self._remaining: List[str] = tree.code_hashes()

    def next_invite(self) -> InviteTicket:
        if not self._remaining:
            raise RuntimeError("All invite codes used")
        return self.tree.ticket(self._remaining.pop(0))

    def skip(self, count: int) -> None:
        for _ in range(count):
            self.next_invite()


def build_invite_ranges() -> dict:
    ranges = {}
    for i in range(10):
        ranges[hash_invite_code(f"small-{i:02d}")] = InviteCodeRange(
            min_investment=to_atto(100), max_investment=to_atto(1_000)
        )
    for i in range(10):
        ranges[hash_invite_code(f"large-{i:02d}")] = InviteCodeRange(
            min_investment=to_atto(1_000), max_investment=to_atto(10_000)
        )
    return ranges


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def invite_tree() -> InviteMerkleTree:
    return InviteMerkleTree.from_ranges(build_invite_ranges())


@pytest.fixture
def invites(invite_tree) -> InviteBook:
    return InviteBook(invite_tree)


@pytest.fixture
def usdc() -> InMemoryAsset:
    asset = InMemoryAsset("0xusdc", symbol="USDC")
    asset.mint(SPONSOR, to_atto(10_000_000_000))
    asset.approve(SPONSOR, spender=ROUND_ADDRESS, amount=to_atto(10_000_000_000))
    return asset


@pytest.fixture
def reward_token() -> InMemoryAsset:
    return InMemoryAsset("0xreward", symbol="TOKEN")


@pytest.fixture
def round_config(invite_tree) -> RoundConfig:
    return RoundConfig(
        hard_cap=HARD_CAP,
        hurdle=HURDLE,
        merkle_root=invite_tree.hex_root,
        vesting_cliff_duration=SECONDS_IN_ONE_WEEK,
        vesting_duration=SECONDS_IN_ONE_MONTH,
        contribution_asset="0xusdc",
        owner=OWNER,
        round_address=ROUND_ADDRESS,
    )


@pytest.fixture
def presale_round(round_config, usdc, clock) -> PresaleRound:
    return PresaleRound(round_config, usdc, clock=clock)


@pytest.fixture
def deposit(presale_round, invites):
    """Deposit from the sponsor for an investor using the next invite."""

    def _deposit(investor: str, amount: int, ticket: InviteTicket = None) -> int:
        ticket = ticket or invites.next_invite()
        return presale_round.deposit_for(
            investor, amount, sender=SPONSOR, **ticket.deposit_kwargs()
        )

    return _deposit
