"""Deposit admission arithmetic.

Pure functions, no round state. PresaleRound feeds them the current
allocation and totals and uses the result as the amount actually pulled.

A deposit is never over-admitted: it is trimmed to the smallest of what was
requested, what the investor's invite still allows, and what the hard cap
still allows. The last deposit into a nearly full round therefore fills it
exactly instead of failing.
"""


def investor_room(allocation: int, max_investment: int) -> int:
    """Remaining amount an investor may still contribute under their invite.

    Example:
        investor_room(allocation=300, max_investment=1000) → 700
        investor_room(allocation=1000, max_investment=1000) → 0
    """
    return max(0, max_investment - allocation)


def cap_room(total_allocated: int, hard_cap: int) -> int:
    """Remaining capacity of the round before the hard cap."""
    return max(0, hard_cap - total_allocated)


def admitted_amount(requested: int, per_investor_room: int, round_room: int) -> int:
    """Amount admitted from a deposit request.

    Args:
        requested: Amount the caller asked to deposit
        per_investor_room: investor_room() for the depositing investor
        round_room: cap_room() for the round

    Returns:
        min(requested, per_investor_room, round_room)

    Example:
        hard cap 10_000, total 9_900, request 1_000 →
        admitted_amount(1_000, 10_000, 100) → 100
    """
    return min(requested, per_investor_room, round_room)


def meets_minimum(allocation: int, requested: int, min_investment: int) -> bool:
    """Whether a deposit keeps the investor's lifetime total at or above the minimum.

    The minimum applies to the cumulative contribution: a first deposit must
    clear it on its own, later top-ups may be arbitrarily small.
    """
    return allocation + requested >= min_investment
