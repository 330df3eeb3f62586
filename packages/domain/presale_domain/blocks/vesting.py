"""Vesting schedule computation block.

Evaluates every investor's entitlement at a series of timestamps, giving the
release curve of the round (flat at full allocation for refunds).
"""

from typing import List
import pandas as pd

from .base import Block, BlockContext
from ..ledger import PresaleRound, vesting_window
from ..schemas import from_atto

SCHEDULE_COLUMNS = [
    "investor",
    "timestamp",
    "vested",
    "claimed",
    "claimable",
    "vested_pct",
]


def vesting_sample_times(presale_round: PresaleRound, points: int = 5) -> List[int]:
    """Evenly spaced timestamps from close to the end of vesting.

    Returns the close time, the cliff end, then `points` samples across the
    linear ramp (inclusive of its end). Empty while the round is open.
    """
    closed_at = presale_round.closed_at
    if closed_at is None:
        return []
    if points < 2:
        raise ValueError(f"points must be at least 2, got {points}")

    config = presale_round.config
    start, end = vesting_window(closed_at, config.vesting_cliff_duration, config.vesting_duration)
    times = [closed_at, start]
    times.extend(start + (end - start) * i // (points - 1) for i in range(points))
    return sorted(set(times))


class VestingScheduleBlock(Block):
    """Computes per-investor vesting curves.

    Inputs (from context):
        - presale_round: PresaleRound to evaluate
        - round_allocations: DataFrame from AllocationBlock (defines investor order)
        - vesting_sample_times: List of timestamps to evaluate at

    Outputs (to context):
        - vesting_schedule: long-format DataFrame with columns:
            * investor: Investor address
            * timestamp: Evaluation time
            * vested: Cumulative entitlement at timestamp (whole units)
            * claimed: Claimed so far (whole units, current)
            * claimable: What a claim at timestamp would pay (whole units)
            * vested_pct: vested / allocation percentage
    """

    def __init__(self, round_key: str = "presale_round"):
        self.round_key = round_key

    def inputs(self) -> List[str]:
        return [self.round_key, "round_allocations", "vesting_sample_times"]

    def outputs(self) -> List[str]:
        return ["vesting_schedule"]

    def execute(self, context: BlockContext) -> None:
        presale_round: PresaleRound = context.get(self.round_key)
        allocations_df: pd.DataFrame = context.get("round_allocations")
        times: List[int] = context.get("vesting_sample_times")

        rows = []
        for investor in allocations_df["investor"]:
            allocation = presale_round.allocation(investor)
            claimed = presale_round.claimed(investor)
            for timestamp in times:
                vested = presale_round.entitlement(investor, timestamp)
                rows.append({
                    "investor": investor,
                    "timestamp": timestamp,
                    "vested": float(from_atto(vested)),
                    "claimed": float(from_atto(claimed)),
                    "claimable": float(from_atto(max(0, vested - claimed))),
                    "vested_pct": vested / allocation * 100 if allocation > 0 else 0.0,
                })

        context.set("vesting_schedule", pd.DataFrame(rows, columns=SCHEDULE_COLUMNS))
