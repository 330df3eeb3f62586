"""Tests for the reporting blocks.

Tests cover:
- BlockContext get/set/has operations
- Dependency ordering and executor validation
- AllocationBlock DataFrames for open, filled and empty rounds
- vesting_sample_times and VestingScheduleBlock curves
"""

import pandas as pd
import pytest

from presale_domain import to_atto
from presale_domain.blocks import (
    AllocationBlock,
    Block,
    BlockContext,
    BlockExecutor,
    VestingScheduleBlock,
    vesting_sample_times,
)
from presale_domain.blocks.base import CircularDependencyError, topological_sort

from conftest import OWNER, ROUND_ADDRESS, SECONDS_IN_ONE_MONTH, SECONDS_IN_ONE_WEEK


# =============================================================================
# Context and Executor
# =============================================================================

class StubBlock(Block):
    """Writes '<name>_output' to each declared output."""

    def __init__(self, name, inputs, outputs):
        self.name = name
        self._inputs = inputs
        self._outputs = outputs

    def inputs(self):
        return self._inputs

    def outputs(self):
        return self._outputs

    def execute(self, context):
        for key in self._outputs:
            context.set(key, f"{self.name}_output")

    def __repr__(self):
        return f"StubBlock({self.name})"


def test_block_context_roundtrip():
    context = BlockContext()
    assert not context.has("alpha")
    context.set("alpha", 1)
    context.set("beta", 2)
    assert context.get("alpha") == 1
    assert set(context.keys()) == {"alpha", "beta"}


def test_block_context_missing_key():
    with pytest.raises(KeyError, match="Key 'missing' not found"):
        BlockContext().get("missing")


def test_sort_orders_producers_first():
    allocations = StubBlock("allocations", ["presale_round"], ["round_allocations"])
    schedule = StubBlock("schedule", ["round_allocations"], ["vesting_schedule"])
    report = StubBlock("report", ["vesting_schedule"], ["report"])

    assert topological_sort([report, schedule, allocations]) == [allocations, schedule, report]


def test_sort_detects_cycles():
    first = StubBlock("first", ["b"], ["a"])
    second = StubBlock("second", ["a"], ["b"])
    with pytest.raises(CircularDependencyError, match="Circular dependency detected"):
        topological_sort([first, second])


def test_sort_rejects_duplicate_outputs():
    with pytest.raises(ValueError, match="Multiple blocks produce"):
        topological_sort([StubBlock("a", [], ["x"]), StubBlock("b", [], ["x"])])


def test_executor_requires_external_inputs():
    executor = BlockExecutor([StubBlock("a", ["presale_round"], ["out"])])
    with pytest.raises(KeyError, match="requires input 'presale_round'"):
        executor.execute(BlockContext())


def test_executor_checks_declared_outputs():

    class SilentBlock(Block):
        def inputs(self):
            return []

        def outputs(self):
            return ["never_written"]

        def execute(self, context):
            pass

    with pytest.raises(ValueError, match="declared output 'never_written' but didn't write"):
        BlockExecutor([SilentBlock()]).execute(BlockContext())


def test_executor_runs_chain():
    context = BlockContext()
    BlockExecutor([StubBlock("b", ["a"], ["b"]), StubBlock("a", [], ["a"])]).execute(context)
    assert context.get("b") == "b_output"


def test_sort_keeps_given_order_for_independent_blocks():
    allocations = StubBlock("allocations", ["presale_round"], ["round_allocations"])
    summary = StubBlock("summary", ["round_allocations"], ["summary"])
    schedule = StubBlock("schedule", ["round_allocations"], ["vesting_schedule"])
    workbook = StubBlock("workbook", ["summary", "vesting_schedule"], ["workbook"])

    ordered = topological_sort([workbook, schedule, summary, allocations])

    assert ordered == [allocations, schedule, summary, workbook]


def test_executor_rejects_cycles_when_built():
    with pytest.raises(CircularDependencyError, match="Circular dependency detected"):
        BlockExecutor([StubBlock("first", ["b"], ["a"]), StubBlock("second", ["a"], ["b"])])


# =============================================================================
# AllocationBlock
# =============================================================================

def run_allocations(presale_round):
    context = BlockContext()
    context.set("presale_round", presale_round)
    AllocationBlock().execute(context)
    return context.get("round_allocations"), context.get("round_summary")


def test_allocation_block_empty_round(presale_round):
    allocations_df, summary_df = run_allocations(presale_round)

    assert allocations_df.empty
    assert list(allocations_df.columns) == [
        "investor", "invite_code_hash", "allocation", "claimed", "unclaimed", "share_pct",
    ]
    summary = summary_df.iloc[0]
    assert summary["status"] == "open"
    assert summary["investors"] == 0
    assert summary["fill_pct"] == 0
    assert not summary["hurdle_met"]


def test_allocation_block_open_round(presale_round, invites, deposit):
    first = invites.next_invite()
    deposit("0xalice", to_atto(250), first)
    deposit("0xbob", to_atto(750))

    allocations_df, summary_df = run_allocations(presale_round)

    # Largest allocation first
    assert list(allocations_df["investor"]) == ["0xbob", "0xalice"]
    assert list(allocations_df["allocation"]) == [750.0, 250.0]
    assert list(allocations_df["share_pct"]) == pytest.approx([75.0, 25.0])
    assert allocations_df.loc[1, "invite_code_hash"] == first.code_hash

    summary = summary_df.iloc[0]
    assert summary["round_address"] == ROUND_ADDRESS
    assert summary["total_allocated"] == 1_000.0
    assert summary["hard_cap"] == 10_000.0
    assert summary["fill_pct"] == pytest.approx(10.0)
    assert summary["settlement_token"] is None


def test_allocation_block_lists_every_invite_used(presale_round, invites, deposit):
    first = invites.next_invite()
    second = invites.next_invite()
    deposit("0xalice", to_atto(100), first)
    deposit("0xalice", to_atto(100), second)

    allocations_df, _ = run_allocations(presale_round)

    assert allocations_df.loc[0, "invite_code_hash"] == f"{first.code_hash},{second.code_hash}"
    assert allocations_df.loc[0, "allocation"] == 200.0


def test_allocation_block_tracks_claims(presale_round, invites, deposit, reward_token, clock):
    invites.skip(10)
    deposit("0xalice", to_atto(6_000))
    presale_round.set_settlement_token(reward_token, caller=OWNER)
    reward_token.mint(ROUND_ADDRESS, to_atto(6_000))
    presale_round.close_round(caller=OWNER)
    clock.advance(SECONDS_IN_ONE_WEEK + SECONDS_IN_ONE_MONTH // 2)
    presale_round.claim_for("0xalice")

    allocations_df, summary_df = run_allocations(presale_round)

    row = allocations_df.iloc[0]
    assert row["claimed"] == 3_000.0
    assert row["unclaimed"] == 3_000.0

    summary = summary_df.iloc[0]
    assert summary["status"] == "closed"
    assert summary["hurdle_met"]
    assert not summary["refunding"]
    assert summary["settlement_token"] == reward_token.address


# =============================================================================
# Vesting Schedule
# =============================================================================

def test_sample_times_empty_while_open(presale_round):
    assert vesting_sample_times(presale_round) == []


def test_sample_times_cover_cliff_and_ramp(presale_round):
    presale_round.close_round(caller=OWNER)
    closed_at = presale_round.closed_at
    start = closed_at + SECONDS_IN_ONE_WEEK

    times = vesting_sample_times(presale_round, points=5)

    assert times == [
        closed_at,
        start,
        start + SECONDS_IN_ONE_MONTH // 4,
        start + SECONDS_IN_ONE_MONTH // 2,
        start + 3 * SECONDS_IN_ONE_MONTH // 4,
        start + SECONDS_IN_ONE_MONTH,
    ]


def test_sample_times_reject_too_few_points(presale_round):
    presale_round.close_round(caller=OWNER)
    with pytest.raises(ValueError, match="at least 2"):
        vesting_sample_times(presale_round, points=1)


def run_schedule(presale_round, points=5):
    context = BlockContext()
    context.set("presale_round", presale_round)
    context.set("vesting_sample_times", vesting_sample_times(presale_round, points))
    BlockExecutor([VestingScheduleBlock(), AllocationBlock()]).execute(context)
    return context.get("vesting_schedule")


def test_vesting_schedule_reward_curve(presale_round, invites, deposit, reward_token):
    invites.skip(10)
    deposit("0xalice", to_atto(4_000))
    deposit("0xbob", to_atto(2_000))
    presale_round.set_settlement_token(reward_token, caller=OWNER)
    presale_round.close_round(caller=OWNER)

    schedule_df = run_schedule(presale_round, points=3)
    alice = schedule_df[schedule_df["investor"] == "0xalice"]

    # close, cliff end, mid ramp, end
    assert list(alice["vested"]) == [0.0, 0.0, 2_000.0, 4_000.0]
    assert list(alice["vested_pct"]) == pytest.approx([0.0, 0.0, 50.0, 100.0])
    assert list(alice["claimable"]) == list(alice["vested"])
    assert len(schedule_df) == 8


def test_vesting_schedule_refund_is_flat(presale_round, deposit):
    deposit("0xalice", to_atto(500))
    presale_round.close_round(caller=OWNER)

    schedule_df = run_schedule(presale_round)

    assert set(schedule_df["vested"]) == {500.0}
    assert isinstance(schedule_df, pd.DataFrame)


def test_vesting_schedule_subtracts_claims(presale_round, deposit):
    deposit("0xalice", to_atto(500))
    presale_round.close_round(caller=OWNER)
    presale_round.claim_for("0xalice")

    schedule_df = run_schedule(presale_round)

    assert set(schedule_df["claimed"]) == {500.0}
    assert set(schedule_df["claimable"]) == {0.0}
