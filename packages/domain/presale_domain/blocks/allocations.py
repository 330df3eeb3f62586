"""Allocation computation block.

Converts a PresaleRound into DataFrames for Excel rendering or analysis.

Output DataFrames:
- round_allocations: Per-investor allocation, claims and share of the raise
- round_summary: High-level round metrics (totals, fill, hurdle outcome)
"""

from typing import Dict, List
import pandas as pd

from .base import Block, BlockContext
from ..ledger import PresaleRound, hurdle_met
from ..schemas import from_atto

ALLOCATION_COLUMNS = [
    "investor",
    "invite_code_hash",
    "allocation",
    "claimed",
    "unclaimed",
    "share_pct",
]


def _units(amount: int) -> float:
    return float(from_atto(amount))


class AllocationBlock(Block):
    """Converts a PresaleRound to allocation DataFrames.

    Inputs (from context):
        - presale_round: PresaleRound to report on

    Outputs (to context):
        - round_allocations: DataFrame with columns:
            * investor: Investor address
            * invite_code_hash: Invite the investor was admitted under
            * allocation: Contributed amount (whole units)
            * claimed: Amount already paid out (whole units)
            * unclaimed: allocation - claimed (whole units)
            * share_pct: Percentage of total raised

        - round_summary: DataFrame with single row:
            * round_address, status, closed_at
            * hard_cap, hurdle, total_allocated (whole units)
            * fill_pct: total_allocated / hard_cap percentage
            * hurdle_met: Whether total_allocated reached the hurdle
            * settlement_token: Bound settlement token (None while unbound)
            * refunding: True once closed in refund mode
            * investors: Number of investors with an allocation
    """

    def __init__(self, round_key: str = "presale_round"):
        self.round_key = round_key

    def inputs(self) -> List[str]:
        return [self.round_key]

    def outputs(self) -> List[str]:
        return ["round_allocations", "round_summary"]

    def execute(self, context: BlockContext) -> None:
        presale_round: PresaleRound = context.get(self.round_key)

        allocations_df = self._compute_allocations(presale_round)
        context.set("round_allocations", allocations_df)
        context.set("round_summary", self._compute_summary(presale_round, allocations_df))

    def _compute_allocations(self, presale_round: PresaleRound) -> pd.DataFrame:
        codes_by_investor: Dict[str, List[str]] = {}
        for code_hash, investor in presale_round.state.invite_bindings.items():
            codes_by_investor.setdefault(investor, []).append(code_hash)

        total = presale_round.total_allocated
        rows = []
        for investor in presale_round.investors():
            allocation = presale_round.allocation(investor)
            claimed = presale_round.claimed(investor)
            rows.append({
                "investor": investor,
                # Investors may hold several invites; list them in use order
                "invite_code_hash": ",".join(codes_by_investor.get(investor, [])),
                "allocation": _units(allocation),
                "claimed": _units(claimed),
                "unclaimed": _units(allocation - claimed),
                "share_pct": allocation / total * 100 if total > 0 else 0.0,
            })

        if not rows:
            return pd.DataFrame(columns=ALLOCATION_COLUMNS)

        df = pd.DataFrame(rows, columns=ALLOCATION_COLUMNS)
        return df.sort_values("allocation", ascending=False).reset_index(drop=True)

    def _compute_summary(
        self, presale_round: PresaleRound, allocations_df: pd.DataFrame
    ) -> pd.DataFrame:
        config = presale_round.config
        total = presale_round.total_allocated
        return pd.DataFrame([{
            "round_address": presale_round.address,
            "status": "open" if presale_round.is_open else "closed",
            "closed_at": presale_round.closed_at,
            "hard_cap": _units(config.hard_cap),
            "hurdle": _units(config.hurdle),
            "total_allocated": _units(total),
            "fill_pct": total / config.hard_cap * 100,
            "hurdle_met": hurdle_met(total, config.hurdle),
            "settlement_token": presale_round.settlement_token,
            "refunding": presale_round.is_refunding,
            "investors": len(allocations_df),
        }])
