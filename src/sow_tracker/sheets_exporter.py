from __future__ import annotations

import logging
from typing import Any

import gspread
from google.auth import default

from .models.forecast import ForecastTable

logger = logging.getLogger(__name__)

SHEETS_SCOPES = (
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
)


def build_forecast_rows(table: ForecastTable) -> list[list[Any]]:
    """Flatten a forecast table into sheet rows.

    One header row, then a total row per manager followed by that manager's
    contracts (indented), and a closing grand-total row. Amounts are rounded
    to whole currency units.
    """
    column_ids = [column.id for column in table.columns]
    rows: list[list[Any]] = [["Project / Manager", *[column.display for column in table.columns]]]
    for manager in table.managers:
        rows.append([manager.manager, *[round(manager.totals.get(cid, 0.0)) for cid in column_ids]])
        for contract in manager.contracts:
            rows.append(
                [
                    f"    {contract.project_name}",
                    *[round(contract.billing.get(cid, 0.0)) for cid in column_ids],
                ]
            )
    rows.append(
        ["Overall Monthly Estimates", *[round(table.grand_totals.get(cid, 0.0)) for cid in column_ids]]
    )
    return rows


class ForecastSheetExporter:
    """Writes the manager forecast table to a Google Sheet."""

    def __init__(self, *, sheets_client: Any | None = None) -> None:
        if sheets_client is None:
            credentials, _ = default(scopes=list(SHEETS_SCOPES))
            sheets_client = gspread.authorize(credentials)
        self.sheets_client = sheets_client

    def export(
        self,
        table: ForecastTable,
        *,
        title: str,
        template_id: str | None = None,
    ) -> str:
        """Create a spreadsheet holding the forecast.

        Args:
            table: Forecast to write
            title: Title of the new spreadsheet
            template_id: Optional spreadsheet to copy instead of starting blank

        Returns:
            Google Sheets URL
        """
        if template_id:
            spreadsheet = self.sheets_client.copy(template_id, title=title)
        else:
            spreadsheet = self.sheets_client.create(title)

        rows = build_forecast_rows(table)
        spreadsheet.sheet1.update(values=rows, range_name="A1")

        logger.info(
            "Exported billing forecast",
            extra={"title": title, "rows": len(rows), "columns": len(table.columns)},
        )
        return spreadsheet.url


__all__ = ["ForecastSheetExporter", "build_forecast_rows"]
