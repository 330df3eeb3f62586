"""Round configuration supplied at construction.

Everything here is fixed for the life of a round. The only values that change
afterwards (owner, settlement token, closed_at) live in RoundState and move
through explicit operations.
"""

from typing import Any
from pydantic import Field, field_validator, model_validator

from .base import DomainModel, Address, AttoAmount, Duration, HexRoot


class RoundConfig(DomainModel):
    """Immutable parameters of a presale round.

    Example:
        RoundConfig(
            hard_cap=to_atto(10_000),
            hurdle=to_atto(5_000),
            merkle_root=tree.hex_root,
            vesting_cliff_duration=604_800,      # 1 week
            vesting_duration=2_628_000,          # 1 month
            contribution_asset="0xusdc",
            owner="0xdeployer",
        )
    """

    hard_cap: AttoAmount = Field(
        description="Maximum total the round will ever accept"
    )

    hurdle: AttoAmount = Field(
        description="Total raised at or above which the round succeeds"
    )

    merkle_root: HexRoot = Field(
        description="Root of the invite entry tree (0x-prefixed hex)"
    )

    vesting_cliff_duration: Duration = Field(
        default=0,
        description="Seconds after close before any reward vests"
    )

    vesting_duration: Duration = Field(
        default=0,
        description="Seconds over which rewards vest linearly after the cliff"
    )

    contribution_asset: Address = Field(
        description="Address of the asset investors contribute (and get refunded in)"
    )

    owner: Address = Field(
        description="Controlling party allowed to bind the settlement token and close"
    )

    round_address: Address = Field(
        default="presale_round",
        description="Account holding contributed funds and settlement tokens"
    )

    @field_validator('merkle_root', mode='before')
    @classmethod
    def normalize_root(cls, v: Any) -> Any:
        """Accept raw bytes or hex with any case/prefix; store 0x-lowercase hex."""
        if isinstance(v, (bytes, bytearray)):
            return "0x" + bytes(v).hex()
        if isinstance(v, str):
            text = v[2:] if v.startswith(("0x", "0X")) else v
            return "0x" + text.lower()
        return v

    @model_validator(mode='after')
    def validate_totals(self) -> 'RoundConfig':
        if self.hard_cap == 0:
            raise ValueError("hard_cap must be positive")
        if self.hurdle > self.hard_cap:
            raise ValueError(
                f"hurdle ({self.hurdle}) cannot exceed hard_cap ({self.hard_cap})"
            )
        if self.round_address in (self.owner, self.contribution_asset):
            raise ValueError("round_address must differ from owner and contribution_asset")
        return self
