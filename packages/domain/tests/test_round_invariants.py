"""Property-style checks over seeded random deposit and claim sequences.

Tests cover:
- total_allocated never exceeds the hard cap and equals the sum of allocations
- no investor exceeds the max of the invite they deposited under
- claims are monotonic and never exceed the allocation
- the round's balances always cover what it still owes
"""

import random

import pytest

from presale_domain import AdmissionError, to_atto

from conftest import (
    HARD_CAP,
    OWNER,
    ROUND_ADDRESS,
    SECONDS_IN_ONE_MONTH,
    SECONDS_IN_ONE_WEEK,
)


def check_ledger(presale_round, limits):
    allocations = {inv: presale_round.allocation(inv) for inv in presale_round.investors()}
    assert presale_round.total_allocated == sum(allocations.values())
    assert presale_round.total_allocated <= HARD_CAP
    for investor, allocation in allocations.items():
        assert allocation <= limits[investor]


@pytest.mark.parametrize("seed", [1, 7, 42, 1234])
def test_random_deposits_respect_caps(seed, presale_round, invites, deposit, usdc):
    rng = random.Random(seed)
    tickets = [invites.next_invite() for _ in range(20)]
    investors = [f"0xinvestor{i:02d}" for i in range(20)]
    limits = {}

    for _ in range(60):
        index = rng.randrange(len(tickets))
        investor, ticket = investors[index], tickets[index]
        amount = rng.randint(1, 3 * ticket.max_investment)
        try:
            deposit(investor, amount, ticket)
        except AdmissionError:
            pass
        else:
            limits[investor] = ticket.max_investment
        check_ledger(presale_round, limits)
        assert usdc.balance_of(ROUND_ADDRESS) == presale_round.total_allocated


@pytest.mark.parametrize("seed", [3, 11, 99])
def test_random_claims_are_monotonic(seed, presale_round, invites, deposit, reward_token, clock):
    rng = random.Random(seed)
    invites.skip(10)
    investors = [f"0xinvestor{i}" for i in range(4)]
    for investor in investors:
        deposit(investor, to_atto(rng.randint(1_500, 2_500)))

    presale_round.set_settlement_token(reward_token, caller=OWNER)
    reward_token.mint(ROUND_ADDRESS, presale_round.total_allocated)
    presale_round.close_round(caller=OWNER)

    previous = {investor: 0 for investor in investors}
    horizon = presale_round.closed_at + SECONDS_IN_ONE_WEEK + SECONDS_IN_ONE_MONTH

    while clock.now < horizon:
        clock.advance(rng.randint(1, SECONDS_IN_ONE_WEEK))
        for investor in rng.sample(investors, rng.randint(1, len(investors))):
            presale_round.claim_for(investor)
            claimed = presale_round.claimed(investor)
            assert claimed >= previous[investor]
            assert claimed <= presale_round.allocation(investor)
            assert claimed == presale_round.entitlement(investor, clock.now)
            previous[investor] = claimed

        owed = presale_round.total_allocated - sum(presale_round.claimed(i) for i in investors)
        assert reward_token.balance_of(ROUND_ADDRESS) == owed

    for investor in investors:
        presale_round.claim_for(investor)
        assert presale_round.claimed(investor) == presale_round.allocation(investor)
    assert reward_token.balance_of(ROUND_ADDRESS) == 0
