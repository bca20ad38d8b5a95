"""Record store for jobs, technicians and absences - Google Sheets Backend"""
import json
import os
from datetime import date, datetime, time
from pathlib import Path
from typing import Callable, List, Optional, Dict, Any

from .models import Job, Technician, Absence
from .errors import RecordFetchError


def _use_google_sheets() -> bool:
    """Determine if we should use Google Sheets or local storage"""
    # Check for environment variable to force local storage
    if os.environ.get('USE_LOCAL_STORAGE', '').lower() == 'true':
        return False

    # Check if we have Google credentials available
    try:
        # Check Streamlit secrets
        import streamlit as st
        if hasattr(st, 'secrets') and 'gcp_service_account' in st.secrets:
            return True
    except FileNotFoundError:
        pass

    # Check environment variable
    if os.environ.get('GOOGLE_CREDENTIALS_JSON'):
        return True

    # Check local secrets file
    secrets_path = Path(__file__).parent.parent / "secrets" / "google_credentials.json"
    if secrets_path.exists():
        return True

    return False


def _in_range(value: Optional[datetime], start_date: Optional[date],
              end_date: Optional[date]) -> bool:
    if value is None:
        return False
    if start_date is not None and value < datetime.combine(start_date, time.min):
        return False
    if end_date is not None and value > datetime.combine(end_date, time.max):
        return False
    return True


class RecordStore:
    """Read-only access to jobs, technicians and absences

    Automatically uses Google Sheets when credentials are available,
    falls back to local JSON files for development.

    A query raises RecordFetchError when the backend cannot be read.
    Individual malformed records are reported and left out.
    """

    def __init__(self, data_dir: str = "data"):
        self.data_dir = Path(data_dir)
        self.jobs_file = self.data_dir / "jobs.json"
        self.technicians_file = self.data_dir / "technicians.json"
        self.absences_file = self.data_dir / "absences.json"

        self._use_sheets = _use_google_sheets()
        self._sheets_client = None

        if self._use_sheets:
            try:
                from .sheets_storage import get_sheets_client
                self._sheets_client = get_sheets_client()
                print("✅ Using Google Sheets storage")
            except Exception as e:
                print(f"⚠️ Failed to connect to Google Sheets: {e}")
                print("📁 Falling back to local storage")
                self._use_sheets = False

        # Ensure local data directory exists (for fallback)
        if not self._use_sheets:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            for path in (self.jobs_file, self.technicians_file, self.absences_file):
                if not path.exists():
                    self._save_local(path, [])

    @property
    def backend(self) -> str:
        return 'sheets' if self._use_sheets else 'local'

    def _fetch(self, entity: str, sheets_call: Callable[[], List[Dict[str, Any]]],
               local_path: Path) -> List[Dict[str, Any]]:
        try:
            if self._use_sheets:
                return sheets_call()
            return self._load_local(local_path)
        except Exception as e:
            print(f"❌ Error fetching {entity}: {e}")
            raise RecordFetchError(entity, e) from e

    def _convert(self, entity: str, records: List[Dict[str, Any]], factory) -> list:
        # A malformed record is skipped; the rest of the batch is kept
        converted = []
        for record in records:
            if not (record.get('id') or entity == 'absences'):
                continue
            try:
                converted.append(factory(record))
            except (KeyError, ValueError, TypeError) as e:
                print(f"⚠️ Skipping malformed {entity} record {record.get('id', '')}: {e}")
        return converted

    # ============ JOBS ============

    def get_jobs(self,
                 start_date: Optional[date] = None,
                 end_date: Optional[date] = None,
                 date_field: str = 'completed_date',
                 status: Optional[str] = None,
                 technician_id: Optional[str] = None,
                 priced_only: bool = False) -> List[Job]:
        """
        Get jobs matching simple field filters.

        Args:
            start_date: Inclusive lower bound on date_field
            end_date: Inclusive upper bound on date_field
            date_field: 'completed_date', 'start_date' or 'created_at'
            status: Exact status label
            technician_id: Jobs where the technician holds any role
            priced_only: Only jobs with a price

        Returns:
            List of Job objects
        """
        records = self._fetch('jobs', lambda: self._sheets_client.get_all_jobs(), self.jobs_file)
        jobs = self._convert('jobs', records, Job.from_dict)

        if start_date is not None or end_date is not None:
            jobs = [j for j in jobs if _in_range(getattr(j, date_field), start_date, end_date)]
        if status is not None:
            jobs = [j for j in jobs if j.status == status]
        if technician_id is not None:
            jobs = [j for j in jobs if j.role_of(technician_id) is not None]
        if priced_only:
            jobs = [j for j in jobs if j.price is not None]
        return jobs

    def get_job_by_id(self, job_id: str) -> Optional[Job]:
        """Get a specific job by ID"""
        for job in self.get_jobs():
            if job.id == job_id:
                return job
        return None

    # ============ TECHNICIANS ============

    def get_technicians(self, active_only: bool = True) -> List[Technician]:
        """Get technicians with their work schedules"""
        records = self._fetch('technicians', lambda: self._sheets_client.get_all_technicians(),
                              self.technicians_file)
        technicians = self._convert('technicians', records, Technician.from_dict)
        if active_only:
            technicians = [t for t in technicians if t.is_active]
        return technicians

    def get_technician_by_id(self, tech_id: str) -> Optional[Technician]:
        """Get a technician by ID"""
        for tech in self.get_technicians(active_only=False):
            if tech.id == tech_id:
                return tech
        return None

    def get_technician_by_name(self, name: str) -> Optional[Technician]:
        """Get a technician by name (case-insensitive)"""
        name_lower = name.lower().strip()
        for tech in self.get_technicians(active_only=False):
            if tech.name.lower().strip() == name_lower:
                return tech
        return None

    # ============ ABSENCES ============

    def get_absences(self, start_date: Optional[date] = None,
                     end_date: Optional[date] = None) -> List[Absence]:
        """Get absences overlapping the inclusive date range"""
        records = self._fetch('absences', lambda: self._sheets_client.get_all_absences(),
                              self.absences_file)
        absences = [a for a in self._convert('absences', records, Absence.from_dict)
                    if a.is_dated]

        range_start = datetime.combine(start_date, time.min) if start_date else datetime.min
        range_end = datetime.combine(end_date, time.max) if end_date else datetime.max
        return [a for a in absences if a.overlaps(range_start, range_end)]

    # ============ LOCAL FILES ============

    def _load_local(self, path: Path) -> List[Dict[str, Any]]:
        if not path.exists():
            return []
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def _save_local(self, path: Path, records: List[Dict[str, Any]]):
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(records, f, indent=2, ensure_ascii=False)
