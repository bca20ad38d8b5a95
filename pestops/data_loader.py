"""Data loading utilities for Pest Ops Workforce Analytics"""
import json
import pandas as pd
from pathlib import Path
from typing import List

from .models import Job, Technician, Absence

# Column aliases accepted in spreadsheets exported from the case system
COLUMN_ALIASES = {
    'pris': 'price',
    'due_date': 'end_date',
    'skadedjur': 'category',
    'rapport': 'report',
    'ärende': 'title',
    'case': 'title',
    'origin': 'source'
}

DATE_COLUMNS = ['start_date', 'end_date', 'completed_date', 'created_at']


class DataLoader:
    """
    Load job, technician and absence data from files.
    """

    @staticmethod
    def _frame_to_jobs(df: pd.DataFrame) -> List[Job]:
        # Normalize column names
        df.columns = df.columns.str.strip().str.lower()
        df = df.rename(columns=COLUMN_ALIASES)

        for column in DATE_COLUMNS:
            if column in df.columns:
                df[column] = pd.to_datetime(df[column], errors='coerce')

        jobs = []
        for index, row in df.iterrows():
            record = {}
            for column, value in row.items():
                if pd.isna(value):
                    record[column] = None
                elif isinstance(value, pd.Timestamp):
                    record[column] = value.to_pydatetime()
                else:
                    record[column] = value

            # Rows without an id get their spreadsheet row number
            if not record.get('id'):
                record['id'] = str(index + 1)
            elif isinstance(record['id'], float) and record['id'].is_integer():
                record['id'] = str(int(record['id']))
            jobs.append(Job.from_dict(record))

        return jobs

    @staticmethod
    def load_from_excel(filepath: str) -> List[Job]:
        """
        Load jobs from an Excel file.

        Expected columns:
        - ID (optional, row number when missing)
        - Title, Description, Report (optional)
        - Status
        - Price (or Pris)
        - Start Date, End Date, Completed Date, Created At (optional)
        - Primary/Secondary/Tertiary Assignee ID and Name (optional)
        - Category (optional, or Skadedjur)
        - Source: private or business (optional)

        Args:
            filepath: Path to Excel file

        Returns:
            List of Job objects
        """
        df = pd.read_excel(filepath)
        df.columns = df.columns.astype(str).str.strip().str.lower().str.replace(' ', '_')
        return DataLoader._frame_to_jobs(df)

    @staticmethod
    def load_from_csv(filepath: str) -> List[Job]:
        """
        Load jobs from a CSV file.
        Uses the same columns as Excel loading.
        """
        df = pd.read_csv(filepath, dtype=str)
        df.columns = df.columns.astype(str).str.strip().str.lower().str.replace(' ', '_')
        return DataLoader._frame_to_jobs(df)

    @staticmethod
    def load_jobs(filepath: str) -> List[Job]:
        """Load jobs from Excel, CSV or JSON depending on the suffix."""
        suffix = Path(filepath).suffix.lower()
        if suffix == '.csv':
            return DataLoader.load_from_csv(filepath)
        if suffix == '.json':
            with open(filepath, 'r', encoding='utf-8') as f:
                return [Job.from_dict(j) for j in json.load(f)]
        return DataLoader.load_from_excel(filepath)

    @staticmethod
    def load_technicians(filepath: str) -> List[Technician]:
        """
        Load technicians from a JSON file.

        Expected format:
        [
            {
                "id": "tech1",
                "name": "Anna Berg",
                "is_active": true,
                "work_schedule": {
                    "monday": {"active": true, "start": "08:00", "end": "16:00"},
                    ...
                },
                "absences": [
                    {"start_date": "2026-07-01", "end_date": "2026-07-14", "reason": "Semester"}
                ]
            },
            ...
        ]
        """
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)

        technicians = []
        for t in data:
            absences = [dict(a, technician_id=str(t['id'])) for a in t.get('absences') or []]
            technicians.append(Technician.from_dict({**t, 'absences': absences}))
        return technicians

    @staticmethod
    def load_absences(filepath: str) -> List[Absence]:
        """Load absences from a JSON list of {technician_id, start_date, end_date, reason}."""
        with open(filepath, 'r', encoding='utf-8') as f:
            return [Absence.from_dict(a) for a in json.load(f)]
