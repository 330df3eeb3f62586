"""Base classes for reporting blocks.

This module provides the foundation for the blocks architecture:
- Block abstract base class
- BlockContext for passing data between blocks
- BlockExecutor for dependency resolution and execution
- Topological sort for DAG execution order
"""

from abc import ABC, abstractmethod
from graphlib import CycleError, TopologicalSorter
from typing import Any, Dict, List, Set
from dataclasses import dataclass, field


# =============================================================================
# Block Context
# =============================================================================

@dataclass
class BlockContext:
    """Context object for passing data between blocks.

    Blocks read their inputs from context and write their outputs to context.

    Example:
        context = BlockContext()
        context.set("presale_round", presale_round)

        AllocationBlock().execute(context)

        allocations_df = context.get("round_allocations")
    """

    _data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        """Get value from context.

        Raises:
            KeyError: If key not found in context
        """
        if key not in self._data:
            raise KeyError(f"Key '{key}' not found in context. Available keys: {list(self._data.keys())}")
        return self._data[key]

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def has(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> List[str]:
        return list(self._data.keys())


# =============================================================================
# Block Base Class
# =============================================================================

class Block(ABC):
    """Abstract base class for reporting blocks.

    A Block is a reusable computation unit that:
    1. Declares its input dependencies (what it reads from context)
    2. Declares its output keys (what it writes to context)
    3. Implements compute logic in execute() method

    Blocks never mutate the round they read; they only derive DataFrames.
    """

    @abstractmethod
    def inputs(self) -> List[str]:
        """Context keys this block reads."""
        pass

    @abstractmethod
    def outputs(self) -> List[str]:
        """Context keys this block writes."""
        pass

    @abstractmethod
    def execute(self, context: BlockContext) -> None:
        """Read inputs from context, compute, write outputs to context.

        Raises:
            KeyError: If required inputs not available in context
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(inputs={self.inputs()}, outputs={self.outputs()})"


# =============================================================================
# Dependency Resolution
# =============================================================================

class CircularDependencyError(Exception):
    """Raised when blocks have circular dependencies."""
    pass


def topological_sort(blocks: List[Block]) -> List[Block]:
    """Sort blocks so every block runs after the blocks producing its inputs.

    Inputs nobody produces are expected in the initial context. Blocks that
    become runnable together keep their relative order from ``blocks``.

    Raises:
        ValueError: If two blocks declare the same output
        CircularDependencyError: If blocks have circular dependencies

    Example:
        topological_sort([VestingScheduleBlock(), AllocationBlock()])
        → [AllocationBlock(...), VestingScheduleBlock(...)]
    """
    producers: Dict[str, Block] = {}
    for block in blocks:
        for key in block.outputs():
            if key in producers:
                raise ValueError(
                    f"Multiple blocks produce '{key}': {producers[key]} and {block}"
                )
            producers[key] = block

    graph: Dict[Block, Set[Block]] = {
        block: {producers[key] for key in block.inputs() if key in producers}
        for block in blocks
    }
    position = {block: index for index, block in enumerate(blocks)}

    sorter = TopologicalSorter(graph)
    try:
        sorter.prepare()
    except CycleError as exc:
        raise CircularDependencyError(
            f"Circular dependency detected among blocks: {exc.args[1]}"
        ) from exc

    ordered: List[Block] = []
    while sorter.is_active():
        ready = sorted(sorter.get_ready(), key=position.__getitem__)
        ordered.extend(ready)
        sorter.done(*ready)
    return ordered


# =============================================================================
# Block Executor
# =============================================================================

class BlockExecutor:
    """Executes blocks in dependency order.

    The order is resolved once, when the executor is built.

    Example:
        executor = BlockExecutor([VestingScheduleBlock(), AllocationBlock()])
        context = BlockContext()
        context.set("presale_round", presale_round)
        context.set("vesting_sample_times", [t0, t1, t2])

        executor.execute(context)

        schedule_df = context.get("vesting_schedule")

    Raises:
        CircularDependencyError: If blocks have circular dependencies
        ValueError: If two blocks declare the same output
    """

    def __init__(self, blocks: List[Block]):
        self.blocks = topological_sort(blocks)

    def execute(self, context: BlockContext) -> BlockContext:
        """Execute all blocks in dependency order.

        Raises:
            KeyError: If required inputs not available in context
            ValueError: If a block did not write a declared output
        """
        for block in self.blocks:
            missing = [key for key in block.inputs() if not context.has(key)]
            if missing:
                raise KeyError(
                    f"Block {block} requires input '{missing[0]}' but it's not in context. "
                    f"Available keys: {context.keys()}"
                )

            block.execute(context)

            unwritten = [key for key in block.outputs() if not context.has(key)]
            if unwritten:
                raise ValueError(
                    f"Block {block} declared output '{unwritten[0]}' but didn't write it to context"
                )

        return context
