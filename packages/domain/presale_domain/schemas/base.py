"""Base classes and type system for presale domain models.

This module provides the foundational types, validators, and base classes
used throughout the presale schema system.
"""

from decimal import Decimal
from typing import Annotated, Union
from pydantic import BaseModel, Field, ConfigDict

# =============================================================================
# Base Model
# =============================================================================

class DomainModel(BaseModel):
    """Base class for all domain models.

    Provides common configuration for all Pydantic models in the domain layer:
    - Validation on assignment for runtime safety
    - Enum value serialization
    """

    model_config = ConfigDict(
        frozen=False,  # Round state is mutated by events
        validate_assignment=True,
        use_enum_values=True,
        arbitrary_types_allowed=True,
    )


# =============================================================================
# Type Aliases - Numeric
# =============================================================================

ATTO = 10 ** 18
"""Number of atto-units in one whole unit (18-decimal fixed point)."""

AttoAmount = Annotated[
    int,
    Field(ge=0, description="Fixed-point amount in atto-units (1 unit = 10**18)")
]

Timestamp = Annotated[
    int,
    Field(ge=0, description="Unix timestamp in seconds")
]

Duration = Annotated[
    int,
    Field(ge=0, description="Duration in seconds (zero allowed)")
]


def to_atto(value: Union[int, str, Decimal]) -> int:
    """Convert a whole-unit amount into atto-units.

    Args:
        value: Amount in whole units (e.g. 100 or "0.5")

    Returns:
        Integer amount in atto-units

    Raises:
        ValueError: If value is negative or has more than 18 decimals

    Example:
        to_atto(100) → 100_000_000_000_000_000_000
        to_atto("0.5") → 500_000_000_000_000_000
    """
    scaled = Decimal(str(value)) * ATTO
    if scaled < 0:
        raise ValueError(f"Amount must be non-negative, got: {value}")
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount has more than 18 decimals: {value}")
    return int(scaled)


def from_atto(amount: int) -> Decimal:
    """Convert atto-units back into whole units (exact)."""
    return Decimal(amount) / ATTO


# =============================================================================
# ID Conventions
# =============================================================================

Address = Annotated[
    str,
    Field(
        min_length=1,
        description="Account or asset address (e.g., '0xabc...', 'investor_alice')"
    )
]

InviteCodeHash = Annotated[
    str,
    Field(
        pattern=r'^[0-9a-f]{64}$',
        description="Lowercase hex keccak-256 of an invite code (no 0x prefix)"
    )
]

HexRoot = Annotated[
    str,
    Field(
        pattern=r'^0x[0-9a-f]{64}$',
        description="32-byte Merkle root as 0x-prefixed lowercase hex"
    )
]


# =============================================================================
# Conventions
# =============================================================================
#
# Amounts:
#   - Always integers in atto-units; whole units only at the edges
#     (to_atto / from_atto, report rendering)
#
# Addresses:
#   - Opaque strings; the engine compares them for equality only
#   - "0x..." hex addresses and readable ids ("investor_alice") both work
#
# Invite code hashes:
#   - keccak-256 of the plaintext code as 64 lowercase hex chars
#   - The plaintext code never reaches the engine
#
# =============================================================================
