"""Excel rendering for presale round reports."""

from .round_workbook_renderer import RoundWorkbookRenderer

__all__ = ["RoundWorkbookRenderer"]
