"""Fungible asset interface consumed by the round.

The round never owns asset balances itself; it asks an external asset to move
funds and treats a False return as failure. PresaleRound wraps every call so
that a failed transfer aborts the whole operation.

To plug in a real token (an on-chain ERC-20 client, a custody API, ...):
1. Subclass FungibleAsset
2. Implement transfer(), transfer_from() and balance_of()
3. Pass the instance to PresaleRound

InMemoryAsset is the reference implementation used for simulations and tests.
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, Tuple

logger = logging.getLogger(__name__)


class FungibleAsset(ABC):
    """Abstract fungible asset with ERC-20 style transfer semantics.

    Callers are explicit because there is no ambient message sender:
    transfer() moves the caller's own funds, transfer_from() moves an owner's
    funds using the caller's allowance.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """Return the asset's address (its identity in the round)."""
        pass

    @abstractmethod
    def balance_of(self, account: str) -> int:
        """Return the balance of account in atto-units."""
        pass

    @abstractmethod
    def transfer(self, caller: str, to: str, amount: int) -> bool:
        """Move amount from caller to to. Returns False on failure."""
        pass

    @abstractmethod
    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> bool:
        """Move amount from owner to to using caller's allowance. Returns False on failure."""
        pass


class InMemoryAsset(FungibleAsset):
    """Balance-and-allowance ledger held in memory.

    Example:
        usdc = InMemoryAsset("0xusdc", symbol="USDC")
        usdc.mint("alice", to_atto(1000))
        usdc.approve("alice", spender="round", amount=to_atto(1000))
        usdc.transfer_from("round", "alice", "round", to_atto(100))  # True
    """

    def __init__(self, address: str, symbol: str = ""):
        self._address = address
        self.symbol = symbol or address
        self.balances: Dict[str, int] = defaultdict(int)
        self.allowances: Dict[Tuple[str, str], int] = defaultdict(int)
        self.total_supply = 0

    @property
    def address(self) -> str:
        return self._address

    def mint(self, to: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Cannot mint a negative amount: {amount}")
        self.balances[to] += amount
        self.total_supply += amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Cannot approve a negative amount: {amount}")
        self.allowances[(owner, spender)] = amount

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances[(owner, spender)]

    def balance_of(self, account: str) -> int:
        return self.balances[account]

    def transfer(self, caller: str, to: str, amount: int) -> bool:
        if amount < 0 or self.balances[caller] < amount:
            logger.debug("%s transfer of %d from %s refused", self.symbol, amount, caller)
            return False
        self.balances[caller] -= amount
        self.balances[to] += amount
        return True

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> bool:
        if amount < 0:
            return False
        # Owners moving their own funds need no allowance
        if caller != owner and self.allowances[(owner, caller)] < amount:
            logger.debug(
                "%s allowance of %s for %s below %d", self.symbol, owner, caller, amount
            )
            return False
        if self.balances[owner] < amount:
            return False
        if caller != owner:
            self.allowances[(owner, caller)] -= amount
        self.balances[owner] -= amount
        self.balances[to] += amount
        return True

    def __repr__(self) -> str:
        return f"InMemoryAsset({self.symbol!r}, address={self._address!r})"
