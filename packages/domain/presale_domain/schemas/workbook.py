"""Workbook configuration - entry point for Excel generation.

RoundWorkbookCFG controls what the Excel renderer emits for a round: which
sheets, their titles and how densely the vesting curve is sampled.
"""

from typing import Optional
from pydantic import Field, field_validator

from .base import DomainModel


class RoundWorkbookCFG(DomainModel):
    """Display options for a round report workbook.

    Examples:
        # Defaults: Summary, Allocations and Vesting sheets
        RoundWorkbookCFG(title="Seed Presale")

        # Allocations only, no vesting curve
        RoundWorkbookCFG(title="Seed Presale", include_vesting=False)
    """

    title: str = Field(
        default="Presale Round",
        description="Title shown at the top of every sheet"
    )

    summary_sheet: str = Field(default="Summary")

    allocations_sheet: str = Field(default="Allocations")

    vesting_sheet: str = Field(default="Vesting")

    include_vesting: bool = Field(
        default=True,
        description="Render the vesting sheet (skipped while the round is open)"
    )

    vesting_sample_points: int = Field(
        default=5,
        ge=2,
        le=100,
        description="Samples across the linear vesting ramp"
    )

    unit_label: Optional[str] = Field(
        default=None,
        description="Label for amounts (e.g. 'USDC'); defaults to the contribution asset"
    )

    @field_validator('summary_sheet', 'allocations_sheet', 'vesting_sheet')
    @classmethod
    def validate_sheet_name(cls, v: str) -> str:
        """Excel sheet names must be 1-31 characters without []:*?/\\."""
        if not v or len(v) > 31:
            raise ValueError(f"Sheet name must be 1-31 characters, got: {v!r}")
        if any(ch in v for ch in '[]:*?/\\'):
            raise ValueError(f"Sheet name contains invalid characters: {v!r}")
        return v
