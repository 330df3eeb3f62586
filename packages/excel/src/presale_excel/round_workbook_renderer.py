"""Round report renderer: summary, allocations and vesting sheets."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, Border, Side, Alignment, PatternFill
from openpyxl.utils import get_column_letter

from presale_domain.blocks import (
    AllocationBlock,
    BlockContext,
    BlockExecutor,
    VestingScheduleBlock,
    vesting_sample_times,
)
from presale_domain.ledger import PresaleRound
from presale_domain.schemas import RoundWorkbookCFG

logger = logging.getLogger(__name__)

AMOUNT_FORMAT = '#,##0.00'
PCT_FORMAT = '0.00"%"'


class RoundWorkbookRenderer:
    """Render a presale round into a report workbook.

    Sheets:
        - Summary: round parameters, totals and outcome
        - Allocations: one row per investor with a SUM totals row
        - Vesting: entitlement per investor at sampled timestamps (closed rounds only)
    """

    def __init__(self, presale_round: PresaleRound, config: Optional[RoundWorkbookCFG] = None):
        self.presale_round = presale_round
        self.config = config or RoundWorkbookCFG()
        self.unit_label = self.config.unit_label or presale_round.config.contribution_asset

        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")
        self.label_font = Font(bold=True)
        self.total_fill = PatternFill(start_color="E7E6E6", end_color="E7E6E6", fill_type="solid")
        self.success_font = Font(bold=True, color="006400")
        self.refund_font = Font(bold=True, color="C00000")

        self.thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )
        self.top_border = Border(top=Side(style='medium'))
        self.center_align = Alignment(horizontal='center', vertical='center')

    def render(self, output_path: str) -> str:
        wb = self.build_workbook()
        wb.save(output_path)
        logger.info("Round report for %s written to %s", self.presale_round.address, output_path)
        return output_path

    def build_workbook(self) -> Workbook:
        frames = self._compute_frames()

        wb = Workbook()
        wb.remove(wb.active)

        self._render_summary_sheet(wb, frames["round_summary"])
        self._render_allocations_sheet(wb, frames["round_allocations"])
        if "vesting_schedule" in frames:
            self._render_vesting_sheet(wb, frames["vesting_schedule"])

        return wb

    def _compute_frames(self) -> Dict[str, pd.DataFrame]:
        context = BlockContext()
        context.set("presale_round", self.presale_round)
        blocks = [AllocationBlock()]
        keys = ["round_summary", "round_allocations"]

        # Vesting curve only exists once the round has closed
        if self.config.include_vesting and not self.presale_round.is_open:
            context.set(
                "vesting_sample_times",
                vesting_sample_times(self.presale_round, self.config.vesting_sample_points),
            )
            blocks.append(VestingScheduleBlock())
            keys.append("vesting_schedule")

        BlockExecutor(blocks).execute(context)
        return {key: context.get(key) for key in keys}

    # ------------------------------------------------------------------ #
    # Sheets
    # ------------------------------------------------------------------ #

    def _render_summary_sheet(self, wb: Workbook, summary_df: pd.DataFrame) -> None:
        sheet = wb.create_sheet(title=self.config.summary_sheet)
        sheet.sheet_view.showGridLines = False
        self._write_title(sheet, f"{self.config.title} - Summary", span=2)

        summary = summary_df.iloc[0]
        status = str(summary["status"]).capitalize()
        if summary["closed_at"] is not None and not pd.isna(summary["closed_at"]):
            status = f"{status} ({self._format_timestamp(int(summary['closed_at']))})"

        rows = [
            ("Round", summary["round_address"], None),
            ("Status", status, None),
            (f"Hard cap ({self.unit_label})", summary["hard_cap"], AMOUNT_FORMAT),
            (f"Hurdle ({self.unit_label})", summary["hurdle"], AMOUNT_FORMAT),
            (f"Total raised ({self.unit_label})", summary["total_allocated"], AMOUNT_FORMAT),
            ("Cap filled", summary["fill_pct"], PCT_FORMAT),
            ("Hurdle met", "Yes" if summary["hurdle_met"] else "No", None),
            ("Settlement token", summary["settlement_token"] or "Not bound", None),
            ("Investors", int(summary["investors"]), None),
        ]

        for offset, (label, value, number_format) in enumerate(rows):
            row = 3 + offset
            label_cell = sheet.cell(row=row, column=1, value=label)
            label_cell.font = self.label_font
            value_cell = sheet.cell(row=row, column=2, value=value)
            if number_format:
                value_cell.number_format = number_format

        outcome_row = 3 + len(rows) + 1
        outcome = sheet.cell(row=outcome_row, column=1)
        if self.presale_round.is_open:
            outcome.value = "Round open"
        elif summary["refunding"]:
            outcome.value = "Refunding contributions"
            outcome.font = self.refund_font
        else:
            outcome.value = "Distributing reward token"
            outcome.font = self.success_font

        self._autosize(sheet, [28, 48])

    def _render_allocations_sheet(self, wb: Workbook, allocations_df: pd.DataFrame) -> None:
        sheet = wb.create_sheet(title=self.config.allocations_sheet)
        sheet.sheet_view.showGridLines = False
        self._write_title(sheet, f"{self.config.title} - Allocations", span=6)

        headers = [
            "Investor",
            "Invite code hash",
            f"Allocation ({self.unit_label})",
            f"Claimed ({self.unit_label})",
            f"Unclaimed ({self.unit_label})",
            "Share of raise",
        ]
        self._write_header(sheet, 3, headers)

        first_row = 4
        for offset, record in enumerate(allocations_df.itertuples(index=False)):
            row = first_row + offset
            values = [
                record.investor,
                record.invite_code_hash,
                record.allocation,
                record.claimed,
                record.unclaimed,
                record.share_pct,
            ]
            for col, value in enumerate(values, start=1):
                cell = sheet.cell(row=row, column=col, value=value)
                cell.border = self.thin_border
                if 3 <= col <= 5:
                    cell.number_format = AMOUNT_FORMAT
                elif col == 6:
                    cell.number_format = PCT_FORMAT

        last_row = first_row + len(allocations_df) - 1
        total_row = max(last_row, first_row - 1) + 1
        total_label = sheet.cell(row=total_row, column=1, value="Total")
        total_label.font = self.label_font
        for col in range(1, 7):
            sheet.cell(row=total_row, column=col).fill = self.total_fill
            sheet.cell(row=total_row, column=col).border = self.top_border
        for col in range(3, 6):
            letter = get_column_letter(col)
            cell = sheet.cell(row=total_row, column=col)
            if len(allocations_df):
                cell.value = f"=SUM({letter}{first_row}:{letter}{last_row})"
            else:
                cell.value = 0
            cell.number_format = AMOUNT_FORMAT
            cell.font = self.label_font

        sheet.freeze_panes = sheet.cell(row=first_row, column=1)
        self._autosize(sheet, [24, 68, 20, 20, 20, 14])

    def _render_vesting_sheet(self, wb: Workbook, schedule_df: pd.DataFrame) -> None:
        sheet = wb.create_sheet(title=self.config.vesting_sheet)
        sheet.sheet_view.showGridLines = False

        # Wide layout: one row per investor, one column per sample time
        times: List[int] = sorted(schedule_df["timestamp"].unique().tolist()) if len(schedule_df) else []
        self._write_title(sheet, f"{self.config.title} - Vesting ({self.unit_label})", span=len(times) + 1)

        headers = ["Investor"] + [self._format_timestamp(int(t)) for t in times]
        self._write_header(sheet, 3, headers)

        if len(schedule_df):
            pivot = schedule_df.pivot(index="investor", columns="timestamp", values="vested")
            investors = list(dict.fromkeys(schedule_df["investor"]))
            for offset, investor in enumerate(investors):
                row = 4 + offset
                sheet.cell(row=row, column=1, value=investor).border = self.thin_border
                for col, timestamp in enumerate(times, start=2):
                    cell = sheet.cell(row=row, column=col, value=float(pivot.loc[investor, timestamp]))
                    cell.number_format = AMOUNT_FORMAT
                    cell.border = self.thin_border

        self._autosize(sheet, [24] + [20] * len(times))

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _write_title(self, sheet, title: str, span: int) -> None:
        cell = sheet["A1"]
        cell.value = title
        cell.font = Font(size=14, bold=True)
        if span > 1:
            sheet.merge_cells(start_row=1, start_column=1, end_row=1, end_column=span)

    def _write_header(self, sheet, row: int, headers: List[str]) -> None:
        for col, header in enumerate(headers, start=1):
            cell = sheet.cell(row=row, column=col, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.center_align
            cell.border = self.thin_border

    @staticmethod
    def _autosize(sheet, widths: List[int]) -> None:
        for idx, width in enumerate(widths, start=1):
            sheet.column_dimensions[get_column_letter(idx)].width = width

    @staticmethod
    def _format_timestamp(timestamp: int) -> str:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


__all__ = ["RoundWorkbookRenderer"]
