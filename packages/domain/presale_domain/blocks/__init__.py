"""Reporting blocks for presale rounds.

This package contains the computation layer that transforms a PresaleRound
into DataFrames suitable for Excel rendering or other consumption.

Architecture:
    PresaleRound (ledger) → Blocks (computation) → DataFrames (output)

Available blocks:
- AllocationBlock: per-investor allocations and round summary
- VestingScheduleBlock: entitlement curve per investor over sample times

Usage:
    from presale_domain.blocks import (
        AllocationBlock, BlockContext, BlockExecutor, VestingScheduleBlock,
        vesting_sample_times,
    )

    context = BlockContext()
    context.set("presale_round", presale_round)
    context.set("vesting_sample_times", vesting_sample_times(presale_round))

    BlockExecutor([VestingScheduleBlock(), AllocationBlock()]).execute(context)
    schedule_df = context.get("vesting_schedule")
"""

from .base import Block, BlockExecutor, BlockContext
from .allocations import AllocationBlock
from .vesting import VestingScheduleBlock, vesting_sample_times

__all__ = [
    "Block",
    "BlockExecutor",
    "BlockContext",
    "AllocationBlock",
    "VestingScheduleBlock",
    "vesting_sample_times",
]
