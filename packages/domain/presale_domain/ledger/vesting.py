"""Entitlement over time.

Refunds (settlement token == contribution asset) are paid in full as soon as
the round closes. Rewards vest linearly after a cliff:

    amount
      ^
 alloc|                      ___________
      |                    /
      |                  /
      |                /
    0 |_______________/
      +-------|-------|-----------|-------> time
          closed_at  start        end
                  (+cliff)   (+cliff+duration)

Nothing is claimable while the round is open.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from ..schemas.state import RoundClosed, RoundStatus, SettlementBinding, SettlementBound
from .settlement import is_refund


@dataclass(frozen=True)
class Claimable:
    """Preview of a claim at a given time.

    Attributes:
        claimable: Amount a claim would pay now (incremental)
        total_claimed: Cumulative amount claimed after that claim
    """
    claimable: int
    total_claimed: int

    def __iter__(self):
        return iter((self.claimable, self.total_claimed))


def vesting_window(closed_at: int, cliff: int, duration: int) -> Tuple[int, int]:
    """(start, end) of the linear ramp."""
    start = closed_at + cliff
    return start, start + duration


def linear_vested(allocation: int, start: int, end: int, at: int) -> int:
    """Amount of allocation vested at `at` on a linear ramp from start to end.

    A zero-length ramp vests everything the instant it starts.
    """
    if at < start:
        return 0
    if at >= end:
        return allocation
    return allocation * (at - start) // (end - start)


def vested_amount(
    allocation: int,
    status: RoundStatus,
    settlement: SettlementBinding,
    contribution_asset: str,
    cliff: int,
    duration: int,
    at: int,
) -> int:
    """Total entitlement of an investor at time `at`.

    Args:
        allocation: Investor's final allocation
        status: Round status (entitlement is 0 while open)
        settlement: Settlement binding (refund path when it is the contribution asset)
        contribution_asset: Address of the contribution asset
        cliff: Vesting cliff in seconds
        duration: Vesting duration in seconds
        at: Evaluation timestamp

    Returns:
        Cumulative entitlement (not reduced by what was already claimed)

    Example (cliff 1 week, duration 1 month, allocation 1000):
        at closed_at                     → 0
        at closed_at + cliff             → 0
        at closed_at + cliff + month/2   → 500
        at closed_at + cliff + month     → 1000
    """
    if not isinstance(status, RoundClosed):
        return 0
    if not isinstance(settlement, SettlementBound):
        return 0
    if is_refund(settlement.token, contribution_asset):
        return allocation
    start, end = vesting_window(status.closed_at, cliff, duration)
    return linear_vested(allocation, start, end, at)


def claimable_amount(entitlement: int, already_claimed: int) -> Claimable:
    """Incremental claimable amount given cumulative entitlement and past claims."""
    delta = max(0, entitlement - already_claimed)
    return Claimable(claimable=delta, total_claimed=already_claimed + delta)


def vesting_progress(
    status: RoundStatus, cliff: int, duration: int, at: int
) -> Optional[float]:
    """Fraction of the reward ramp elapsed at `at` (None while open)."""
    if not isinstance(status, RoundClosed):
        return None
    start, end = vesting_window(status.closed_at, cliff, duration)
    if at < start:
        return 0.0
    if at >= end:
        return 1.0
    return (at - start) / (end - start)
