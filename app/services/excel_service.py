"""
Excel export of registrations for the admin dashboard
"""

import io
from typing import List

import pandas as pd

from app.services.registration_service import Registration

class ExcelService:
    """Service for building Excel workbooks"""

    SHEET_NAME = "Registrations"
    COLUMNS = [
        "Event Date", "Venue", "Name", "Table", "First Time",
        "Language Goals", "Marketing Source", "Registered At",
    ]

    @staticmethod
    def registrations_frame(registrations: List[Registration]) -> pd.DataFrame:
        """One row per registration, in the order given"""
        data = [
            {
                "Event Date": r.event_date,
                "Venue": r.venue_id or "",
                "Name": r.user_name,
                "Table": r.table_id,
                "First Time": "Yes" if r.is_first_time else "No",
                "Language Goals": r.language_goals,
                "Marketing Source": r.marketing_source,
                "Registered At": r.created_at,
            }
            for r in registrations
        ]
        return pd.DataFrame(data, columns=ExcelService.COLUMNS)

    @staticmethod
    def export_registrations(registrations: List[Registration]) -> bytes:
        df = ExcelService.registrations_frame(registrations)

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name=ExcelService.SHEET_NAME)

        return buffer.getvalue()
