"""Data models for Pest Ops Workforce Analytics"""
import json
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, time, timedelta
from typing import Optional, Literal, Dict, List, Tuple, Any
from zoneinfo import ZoneInfo

from config import ASSIGNEE_ROLES, JOB_SOURCES, LOCAL_TIMEZONE

AssigneeRole = Literal['primary', 'secondary', 'tertiary']
JobSource = Literal['private', 'business']


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp into a naive local datetime.

    Accepts datetime, date, ISO strings (with or without offset or 'Z')
    and empty values. Aware timestamps are converted to the local timezone.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(ZoneInfo(LOCAL_TIMEZONE)).replace(tzinfo=None)
    return parsed


def parse_clock(value: Any) -> time:
    """Parse 'HH:MM' or 'HH:MM:SS' into a time."""
    if isinstance(value, time):
        return value
    parts = [int(p) for p in str(value).strip().split(':')]
    while len(parts) < 3:
        parts.append(0)
    return time(parts[0], parts[1], parts[2])


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


@dataclass
class DaySchedule:
    """One weekday entry of a technician's recurring work schedule"""
    active: bool
    start: time
    end: time

    def __post_init__(self):
        self.start = parse_clock(self.start)
        self.end = parse_clock(self.end)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DaySchedule':
        active = data.get('active', False)
        if isinstance(active, str):
            active = active.lower() in ('true', '1', 'yes')
        return cls(
            active=bool(active),
            start=data.get('start') or '00:00',
            end=data.get('end') or '00:00'
        )


@dataclass
class Absence:
    """A registered absence period for a technician"""
    technician_id: str
    start: datetime
    end: datetime
    reason: str = ""
    notes: str = ""

    @property
    def is_dated(self) -> bool:
        return self.start is not None and self.end is not None

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start <= end and self.end >= start

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Absence':
        return cls(
            technician_id=str(data.get('technician_id', '')),
            start=parse_datetime(data.get('start_date') or data.get('start')),
            end=parse_datetime(data.get('end_date') or data.get('end')),
            reason=data.get('reason') or '',
            notes=data.get('notes') or ''
        )


@dataclass
class Technician:
    """Represents a technician"""
    id: str
    name: str
    is_active: bool = True
    email: Optional[str] = None
    role: str = ""
    work_schedule: Dict[str, DaySchedule] = field(default_factory=dict)
    absences: List[Absence] = field(default_factory=list)
    specializations: List[str] = field(default_factory=list)
    work_areas: List[str] = field(default_factory=list)

    def __post_init__(self):
        # Weekday keys are matched case-insensitively
        schedule = {}
        for day, entry in (self.work_schedule or {}).items():
            if isinstance(entry, dict):
                entry = DaySchedule.from_dict(entry)
            schedule[str(day).strip().lower()] = entry
        self.work_schedule = schedule

    @property
    def has_schedule(self) -> bool:
        return bool(self.work_schedule)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Technician':
        schedule = data.get('work_schedule') or {}
        if isinstance(schedule, str):
            schedule = json.loads(schedule) if schedule.strip() else {}

        is_active = data.get('is_active')
        if is_active is None or is_active == '':
            is_active = True
        elif isinstance(is_active, str):
            is_active = is_active.lower() in ('true', '1', 'yes')

        def _as_list(value):
            if isinstance(value, str):
                return [v.strip() for v in value.split(',') if v.strip()]
            return list(value or [])

        # Absences without both dates cannot be placed on the calendar
        absences = [a if isinstance(a, Absence) else Absence.from_dict(a)
                    for a in data.get('absences') or []]
        absences = [a for a in absences if a.is_dated]

        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            is_active=bool(is_active),
            email=data.get('email') or None,
            role=data.get('role') or '',
            work_schedule=schedule,
            absences=absences,
            specializations=_as_list(data.get('specializations')),
            work_areas=_as_list(data.get('work_areas'))
        )


@dataclass
class Job:
    """Represents a single pest-control case"""
    id: str
    title: str = ""
    price: Optional[float] = None
    status: str = ""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    primary_assignee_id: Optional[str] = None
    primary_assignee_name: Optional[str] = None
    secondary_assignee_id: Optional[str] = None
    secondary_assignee_name: Optional[str] = None
    tertiary_assignee_id: Optional[str] = None
    tertiary_assignee_name: Optional[str] = None
    category: Optional[str] = None
    description: str = ""
    report: str = ""
    source: JobSource = 'private'
    case_number: Optional[str] = None

    @property
    def assignees(self) -> List[Tuple[str, str, str]]:
        """(role, technician id, technician name) for every assigned role"""
        result = []
        for role in ASSIGNEE_ROLES:
            tech_id = getattr(self, f'{role}_assignee_id')
            if tech_id:
                name = getattr(self, f'{role}_assignee_name') or ''
                result.append((role, tech_id, name))
        return result

    @property
    def technician_count(self) -> int:
        return len(self.assignees)

    def role_of(self, technician_id: str) -> Optional[str]:
        """Highest-precedence role the technician holds on this job"""
        for role, tech_id, _ in self.assignees:
            if tech_id == technician_id:
                return role
        return None

    @property
    def has_booking(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    @property
    def duration_hours(self) -> Optional[float]:
        if not self.has_booking:
            return None
        return (self.end_date - self.start_date).total_seconds() / 3600

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Job':
        def _text(key):
            value = data.get(key)
            return str(value) if value not in (None, '') else None

        # Unknown origins are reported as private cases
        source = str(data.get('source') or '').strip().lower()
        if source not in JOB_SOURCES:
            source = 'private'

        return cls(
            id=str(data['id']),
            title=data.get('title') or '',
            price=_optional_float(data.get('price', data.get('pris'))),
            status=data.get('status') or '',
            start_date=parse_datetime(data.get('start_date')),
            end_date=parse_datetime(data.get('end_date', data.get('due_date'))),
            completed_date=parse_datetime(data.get('completed_date')),
            created_at=parse_datetime(data.get('created_at')),
            primary_assignee_id=_text('primary_assignee_id'),
            primary_assignee_name=_text('primary_assignee_name'),
            secondary_assignee_id=_text('secondary_assignee_id'),
            secondary_assignee_name=_text('secondary_assignee_name'),
            tertiary_assignee_id=_text('tertiary_assignee_id'),
            tertiary_assignee_name=_text('tertiary_assignee_name'),
            category=_text('category') or _text('skadedjur'),
            description=data.get('description') or '',
            report=data.get('report') or data.get('rapport') or '',
            source=source,
            case_number=_text('case_number')
        )


@dataclass
class WorkDay:
    """A concrete work interval on one calendar day"""
    date: date
    start: time
    end: time
    weekday: str

    @property
    def start_datetime(self) -> datetime:
        return datetime.combine(self.date, self.start)

    @property
    def end_datetime(self) -> datetime:
        return datetime.combine(self.date, self.end)

    @property
    def hours(self) -> float:
        return max(timedelta(0), self.end_datetime - self.start_datetime).total_seconds() / 3600


@dataclass
class SuggestedSlot:
    """Proposed booking window inside a gap"""
    start_time: str
    end_time: str
    duration_hours: float


@dataclass
class Gap:
    """Idle interval inside a technician's work day"""
    technician_id: str
    technician_name: str
    date: str
    weekday: str
    start_time: str
    end_time: str
    duration_hours: float
    classification: Literal['minor', 'major']
    suggested_slot: SuggestedSlot

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TechnicianUtilization:
    """Booked versus available work hours for one technician"""
    technician_id: str
    technician_name: str
    total_work_hours: float
    scheduled_hours: float
    available_hours: float
    utilization_percent: float
    status: Literal['underutilized', 'optimal', 'overutilized']
    work_days: int = 0
    booked_jobs: int = 0
    specializations: List[str] = field(default_factory=list)
    work_areas: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class JobCommission:
    """Commission attribution for a single job"""
    job: Job
    base_amount: float  # price * commission rate
    shares: Dict[str, float]  # role -> amount

    @property
    def total(self) -> float:
        return sum(self.shares.values())

    def share_for(self, technician_id: str) -> Tuple[Optional[str], float]:
        role = self.job.role_of(technician_id)
        if role is None:
            return None, 0.0
        return role, self.shares.get(role, 0.0)


@dataclass
class MonthlyBreakdown:
    """One technician's provision for one month"""
    month: str
    provision_amount: float = 0.0
    cases_count: int = 0
    revenue: float = 0.0


@dataclass
class TechnicianProvision:
    """Aggregated provision for one technician over a window"""
    technician_id: str
    technician_name: str
    technician_email: Optional[str] = None
    total_provision_amount: float = 0.0
    total_cases: int = 0
    total_revenue: float = 0.0
    primary_cases: int = 0
    secondary_cases: int = 0
    tertiary_cases: int = 0
    job_ids: List[str] = field(default_factory=list)
    monthly_breakdown: List[MonthlyBreakdown] = field(default_factory=list)

    def month(self, month: str) -> Optional[MonthlyBreakdown]:
        for entry in self.monthly_breakdown:
            if entry.month == month:
                return entry
        return None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TopEarner:
    name: str
    amount: float


@dataclass
class MonthlyProvisionSummary:
    """Provision totals for one calendar month"""
    month: str
    total_provision: float = 0.0
    total_revenue: float = 0.0
    total_cases: int = 0
    technician_count: int = 0
    top_earner: Optional[TopEarner] = None
    private_cases_count: int = 0
    business_cases_count: int = 0
    private_provision: float = 0.0
    business_provision: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProvisionGraphPoint:
    """One month of graph data; technicians without provision are absent"""
    month: str
    total_provision: float = 0.0
    technician_data: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
