"""Google Sheets storage backend for the record store"""
import json
import os
from typing import List, Optional, Dict, Any
from pathlib import Path
import streamlit as st

import gspread
from google.oauth2.service_account import Credentials

# Google Sheets configuration
SCOPES = [
    'https://www.googleapis.com/auth/spreadsheets.readonly',
    'https://www.googleapis.com/auth/drive.readonly'
]

# Worksheet columns, used by the template script
JOB_COLUMNS = [
    'id', 'case_number', 'title', 'status', 'price', 'source', 'category',
    'start_date', 'end_date', 'completed_date', 'created_at',
    'primary_assignee_id', 'primary_assignee_name',
    'secondary_assignee_id', 'secondary_assignee_name',
    'tertiary_assignee_id', 'tertiary_assignee_name',
    'description', 'report'
]
TECHNICIAN_COLUMNS = [
    'id', 'name', 'email', 'role', 'is_active', 'work_schedule',
    'specializations', 'work_areas'
]
ABSENCE_COLUMNS = ['id', 'technician_id', 'start_date', 'end_date', 'reason', 'notes']

NUMERIC_FIELDS = ['price']
BOOLEAN_FIELDS = ['is_active']


def _sheet_id() -> Optional[str]:
    try:
        if hasattr(st, 'secrets') and 'sheet_id' in st.secrets:
            return st.secrets['sheet_id']
    except FileNotFoundError:
        pass
    return os.environ.get('PESTOPS_SHEET_ID')


class GoogleSheetsClient:
    """Read-only client for the jobs, technicians and absences worksheets"""

    def __init__(self):
        self.client = None
        self.spreadsheet = None
        self._connect()

    def _get_credentials(self) -> Optional[Credentials]:
        """Get Google credentials from various sources"""

        # Option 1: Streamlit secrets (for deployed app)
        try:
            if hasattr(st, 'secrets') and 'gcp_service_account' in st.secrets:
                creds_dict = dict(st.secrets['gcp_service_account'])
                return Credentials.from_service_account_info(creds_dict, scopes=SCOPES)
        except FileNotFoundError:
            pass

        # Option 2: Environment variable with JSON content
        creds_json = os.environ.get('GOOGLE_CREDENTIALS_JSON')
        if creds_json:
            creds_dict = json.loads(creds_json)
            return Credentials.from_service_account_info(creds_dict, scopes=SCOPES)

        # Option 3: Local file in secrets folder
        secrets_path = Path(__file__).parent.parent / "secrets" / "google_credentials.json"
        if secrets_path.exists():
            return Credentials.from_service_account_file(str(secrets_path), scopes=SCOPES)

        # Option 4: File path from environment variable
        creds_file = os.environ.get('GOOGLE_CREDENTIALS_FILE')
        if creds_file and Path(creds_file).exists():
            return Credentials.from_service_account_file(creds_file, scopes=SCOPES)

        return None

    def _connect(self):
        """Connect to Google Sheets"""
        creds = self._get_credentials()
        if not creds:
            raise ValueError(
                "Google credentials not found. Please provide credentials via:\n"
                "1. Streamlit secrets (gcp_service_account)\n"
                "2. GOOGLE_CREDENTIALS_JSON environment variable\n"
                "3. secrets/google_credentials.json file\n"
                "4. GOOGLE_CREDENTIALS_FILE environment variable"
            )
        sheet_id = _sheet_id()
        if not sheet_id:
            raise ValueError("Spreadsheet id not found (sheet_id secret or PESTOPS_SHEET_ID)")

        self.client = gspread.authorize(creds)
        self.spreadsheet = self.client.open_by_key(sheet_id)

    def get_records(self, worksheet_name: str) -> List[Dict[str, Any]]:
        """
        Read every row of a worksheet as a dictionary.

        Empty cells become None, numeric and boolean columns are converted.
        Errors propagate to the caller.
        """
        worksheet = self.spreadsheet.worksheet(worksheet_name)
        records = worksheet.get_all_records()

        for record in records:
            for key, value in list(record.items()):
                if value == '':
                    record[key] = None

            # Convert numeric fields
            for field in NUMERIC_FIELDS:
                if record.get(field) is not None:
                    try:
                        record[field] = float(record[field])
                    except (ValueError, TypeError):
                        record[field] = None

            # Convert boolean
            for field in BOOLEAN_FIELDS:
                # Blank cells keep the model default
                if record.get(field) is not None:
                    record[field] = str(record[field]).lower() in ('true', '1', 'yes')

        return records

    def get_all_jobs(self) -> List[Dict[str, Any]]:
        return self.get_records('jobs')

    def get_all_technicians(self) -> List[Dict[str, Any]]:
        return self.get_records('technicians')

    def get_all_absences(self) -> List[Dict[str, Any]]:
        return self.get_records('absences')


# Singleton instance - cached as Streamlit resource (survives reruns)
@st.cache_resource
def get_sheets_client() -> GoogleSheetsClient:
    """Get or create the Google Sheets client singleton (cached across reruns)."""
    return GoogleSheetsClient()
