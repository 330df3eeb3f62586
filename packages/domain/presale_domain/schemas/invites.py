"""Invite entries and admission tickets.

An invite entry is a pre-committed admission ticket: the keccak hash of a
plaintext invite code bound to a contribution range. The full set of entries
never reaches the engine; only its Merkle root does. Investors present a
ticket (entry + Merkle proof) with every deposit.
"""

from typing import List
from pydantic import Field, model_validator

from .base import DomainModel, AttoAmount, InviteCodeHash


class InviteCodeRange(DomainModel):
    """Contribution bounds attached to an invite code.

    Example:
        InviteCodeRange(
            min_investment=to_atto(100),
            max_investment=to_atto(1000),
        )
    """

    min_investment: AttoAmount = Field(
        description="Minimum lifetime contribution for the invite holder"
    )

    max_investment: AttoAmount = Field(
        description="Maximum lifetime contribution for the invite holder"
    )

    @model_validator(mode='after')
    def validate_bounds(self) -> 'InviteCodeRange':
        if self.min_investment > self.max_investment:
            raise ValueError(
                f"min_investment ({self.min_investment}) must not exceed "
                f"max_investment ({self.max_investment})"
            )
        return self


class InviteTicket(InviteCodeRange):
    """Everything an investor presents to deposit under an invite.

    The ticket is built off-engine from the invite tree and handed to the
    investor together with the plaintext code. Bounds must match the committed
    entry exactly or the proof will not verify.

    Usage:
        ticket = tree.ticket(code_hash)
        presale_round.deposit_for(investor, amount, **ticket.deposit_kwargs())
    """

    code_hash: InviteCodeHash = Field(
        description="keccak-256 of the plaintext invite code"
    )

    proof: List[str] = Field(
        default_factory=list,
        description="Merkle proof as 0x-prefixed 32-byte hex siblings, leaf to root"
    )

    def deposit_kwargs(self) -> dict:
        """Keyword arguments for PresaleRound.deposit_for()."""
        return {
            "min_investment": self.min_investment,
            "max_investment": self.max_investment,
            "code_hash": self.code_hash,
            "proof": list(self.proof),
        }
