"""Aggregation facade: one analytics payload for dashboards and the assistant"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple

from .models import Absence, Job, Technician, TechnicianProvision, MonthlyProvisionSummary
from .calculator import CommissionCalculator, CommissionPolicy
from .classifiers import CategoryClassifier
from .gap_analyzer import GapAnalyzer
from .utilization import UtilizationCalculator
from .provisions import ProvisionAggregator, month_range, window_start
from .pricing import PricingPatternAnalyzer
from .job_storage import RecordStore
from .errors import AggregationError, RecordFetchError
from config import (
    DEFAULT_MONTHS_BACK, DEFAULT_SCHEDULE_DAYS, RECENT_CASES_DAYS, COMPLETED_STATUS
)


@dataclass
class ReportWindow:
    """The periods an aggregation covers, all derived from one 'now'"""
    now: datetime
    months_back: int = DEFAULT_MONTHS_BACK
    schedule_days: int = DEFAULT_SCHEDULE_DAYS
    recent_days: int = RECENT_CASES_DAYS

    def __post_init__(self):
        if self.months_back < 1:
            raise ValueError("months_back must be at least 1")
        if self.schedule_days < 1:
            raise ValueError("schedule_days must be at least 1")

    @property
    def today(self) -> date:
        return self.now.date()

    @property
    def start_date(self) -> date:
        return window_start(self.today, self.months_back)

    @property
    def months(self) -> List[str]:
        return month_range(self.today, self.months_back)

    @property
    def schedule_end(self) -> date:
        return self.today + timedelta(days=self.schedule_days)

    @property
    def recent_start(self) -> date:
        return self.today - timedelta(days=self.recent_days)

    def to_dict(self) -> dict:
        return {
            'now': self.now.isoformat(),
            'start_date': self.start_date.isoformat(),
            'end_date': self.today.isoformat(),
            'months': self.months,
            'schedule_start': self.today.isoformat(),
            'schedule_end': self.schedule_end.isoformat(),
            'recent_start': self.recent_start.isoformat()
        }


@dataclass
class CaseFilters:
    """Post-aggregation filters for the case list"""
    category: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def matches(self, summary: dict) -> bool:
        if self.category and summary['category'].lower() != self.category.lower():
            return False
        if self.min_price is not None and summary['price'] < self.min_price:
            return False
        if self.max_price is not None and summary['price'] > self.max_price:
            return False
        reference = summary['reference_date']
        if self.start_date is not None and (not reference or reference < self.start_date.isoformat()):
            return False
        if self.end_date is not None and (not reference or reference[:10] > self.end_date.isoformat()):
            return False
        return True


def _iso(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ''


def reference_date(job: Job) -> Optional[datetime]:
    """The date a case is reported under: completion, else start, else creation"""
    return job.completed_date or job.start_date or job.created_at


def _between(value: Optional[datetime], start: date, end: date) -> bool:
    if value is None:
        return False
    return datetime.combine(start, time.min) <= value <= datetime.combine(end, time.max)


def case_summary(job: Job, classifier: CategoryClassifier) -> dict:
    return {
        'id': job.id,
        'case_number': job.case_number or '',
        'title': job.title,
        'status': job.status,
        'price': job.price if job.price is not None else 0.0,
        'category': classifier.classify(job),
        'source': job.source,
        'start_date': _iso(job.start_date),
        'end_date': _iso(job.end_date),
        'completed_date': _iso(job.completed_date),
        'created_at': _iso(job.created_at),
        'reference_date': _iso(reference_date(job)),
        'technician_count': job.technician_count,
        'assignees': [{'role': role, 'technician_id': tech_id, 'technician_name': name}
                      for role, tech_id, name in job.assignees]
    }


def performance_metrics(jobs: List[Job], completed_status: str = COMPLETED_STATUS) -> dict:
    """Case counts, scheduling lead time and revenue for a set of recent jobs."""
    scheduled = [j for j in jobs if j.start_date is not None]
    lead_times = [
        (j.start_date - j.created_at).total_seconds() / 3600
        for j in scheduled if j.created_at is not None
    ]
    return {
        'total_cases': len(jobs),
        'scheduled_cases': len(scheduled),
        'completed_cases': len([j for j in jobs if j.status == completed_status]),
        'avg_scheduling_time_hours': sum(lead_times) / len(lead_times) if lead_times else 0.0,
        'total_revenue': sum(j.price or 0.0 for j in jobs)
    }


def technician_absences(technician: Technician, absences: List[Absence]) -> List[Absence]:
    merged = [a for a in technician.absences if a.is_dated]
    merged.extend(a for a in absences
                  if a.technician_id == technician.id and a.is_dated and a not in merged)
    return sorted(merged, key=lambda a: a.start)


def absence_overview(technician: Technician, absences: List[Absence],
                     start: date, end: date) -> dict:
    """Whether and why a technician is away during the period."""
    range_start = datetime.combine(start, time.min)
    range_end = datetime.combine(end, time.max)
    periods = [a for a in technician_absences(technician, absences)
               if a.overlaps(range_start, range_end)]
    return {
        'technician_id': technician.id,
        'technician_name': technician.name,
        'is_absent': bool(periods),
        'absence_periods': [{
            'start_date': a.start.isoformat(),
            'end_date': a.end.isoformat(),
            'reason': a.reason,
            'notes': a.notes
        } for a in periods],
        'absence_summary': ', '.join(
            f"{a.reason} ({a.start.date().isoformat()} - {a.end.date().isoformat()})"
            for a in periods
        )
    }


def _absent_on(periods: List[Absence], day: str) -> bool:
    day_date = date.fromisoformat(day)
    return any(a.overlaps(datetime.combine(day_date, time.min),
                          datetime.combine(day_date, time.max)) for a in periods)


def window_provisions(jobs: List[Job], technicians: List[Technician], window: ReportWindow,
                      aggregator: ProvisionAggregator) -> Tuple[List[TechnicianProvision],
                                                                List[MonthlyProvisionSummary]]:
    """Technician provisions and monthly summaries for jobs completed in the window."""
    completed = [j for j in jobs if _between(j.completed_date, window.start_date, window.today)]
    provisions = aggregator.technician_provisions(technicians, completed)
    monthly = aggregator.monthly_summary(completed, provisions, window.months)
    return provisions, monthly


def compute_aggregates(jobs: List[Job], technicians: List[Technician],
                       absences: List[Absence], window: ReportWindow,
                       technician_id: Optional[str] = None,
                       filters: Optional[CaseFilters] = None,
                       policy: Optional[CommissionPolicy] = None) -> dict:
    """
    Build the complete analytics payload from already fetched records.

    Pure and deterministic: the same records and window always give the same
    payload. Callers own any caching.

    Args:
        jobs: Jobs of the window (completed, scheduled and recent)
        technicians: Active technicians with work schedules
        absences: Absences overlapping the window
        window: Report periods
        technician_id: Restrict technician views and the case list to one technician
        filters: Post-aggregation filters for the case list
        policy: Commission policy (configured policy when omitted)

    Returns:
        Nested dictionaries and lists only
    """
    if technician_id is not None:
        technicians = [t for t in technicians if t.id == technician_id]

    classifier = CategoryClassifier()
    calculator = CommissionCalculator(policy)
    aggregator = ProvisionAggregator(calculator)
    gap_analyzer = GapAnalyzer()
    utilization = UtilizationCalculator()
    pricing = PricingPatternAnalyzer(classifier=classifier)

    today = window.today

    # Cases of the window
    window_jobs = [j for j in jobs if _between(reference_date(j), window.start_date, today)]
    if technician_id is not None:
        window_jobs = [j for j in window_jobs if j.role_of(technician_id) is not None]
    window_jobs = sorted(window_jobs, key=lambda j: (reference_date(j), j.id), reverse=True)

    summaries = [case_summary(j, classifier) for j in window_jobs]
    filtered = [s for s in summaries if filters is None or filters.matches(s)]

    recent_jobs = [j for j in jobs if _between(j.created_at, window.recent_start, today)]

    # Provisions
    provisions, monthly = window_provisions(jobs, technicians, window, aggregator)
    graph = aggregator.graph_data(provisions, window.months)
    kpi = aggregator.kpi_summary(provisions, monthly, today)

    # Schedule
    upcoming = sorted(
        (j for j in jobs if _between(j.start_date, today, window.schedule_end)),
        key=lambda j: (j.start_date, j.id)
    )
    gaps = gap_analyzer.analyze(technicians, upcoming, today, window.schedule_end)
    availability = utilization.calculate_batch(technicians, upcoming, today, window.schedule_end)

    absence_by_tech = {
        t.id: absence_overview(t, absences, today, window.schedule_end) for t in technicians
    }
    periods_by_tech = {t.id: technician_absences(t, absences) for t in technicians}
    available_gaps = [g for g in gaps if not _absent_on(periods_by_tech[g.technician_id], g.date)]

    # Pricing
    priced = [j for j in window_jobs if j.price is not None and j.price > 0]
    patterns = pricing.analyze(priced)

    return {
        'window': window.to_dict(),
        'cases': {
            'case_list': filtered,
            'total_cases': len(summaries),
            'filtered_cases': len(filtered),
            'performance_metrics': performance_metrics(recent_jobs)
        },
        'technicians': [{
            'id': t.id,
            'name': t.name,
            'email': t.email or '',
            'role': t.role,
            'is_active': t.is_active,
            'has_schedule': t.has_schedule,
            'specializations': list(t.specializations),
            'work_areas': list(t.work_areas),
            'absence': absence_by_tech[t.id]
        } for t in technicians],
        'schedule': {
            'upcoming_cases': [case_summary(j, classifier) for j in upcoming],
            'schedule_gaps': [g.to_dict() for g in gaps],
            'available_gaps': [g.to_dict() for g in available_gaps],
            'technician_availability': [u.to_dict() for u in availability],
            'utilization_summary': utilization.calculate_summary(availability),
            'absent_technicians': [a for a in absence_by_tech.values() if a['is_absent']]
        },
        'analytics': {
            'commission_policy': calculator.policy.name,
            'technician_provisions': [p.to_dict() for p in provisions],
            'monthly_summary': [m.to_dict() for m in monthly],
            'graph_data': [g.to_dict() for g in graph],
            'kpi': kpi
        },
        'pricing': {
            'recent_cases_with_prices': [case_summary(j, classifier) for j in priced],
            'pricing_patterns': patterns
        }
    }


def _merge_jobs(*job_lists: List[Job]) -> List[Job]:
    seen = set()
    merged = []
    for jobs in job_lists:
        for job in jobs:
            if job.id not in seen:
                seen.add(job.id)
                merged.append(job)
    return merged


class WorkforceAnalyticsService:
    """
    Fetches records and hands them to compute_aggregates.

    Independent fetches run concurrently. If any of them fails the whole
    aggregation is aborted with a single AggregationError.
    """

    def __init__(self, store: Optional[RecordStore] = None,
                 policy: Optional[CommissionPolicy] = None):
        self.store = store if store is not None else RecordStore()
        self.policy = policy

    def fetch(self, window: ReportWindow) -> Tuple[List[Job], List[Technician], List[Absence]]:
        """
        Issue the wide queries for a window.

        Returns:
            (jobs, technicians, absences)
        """
        store = self.store
        queries = {
            'completed jobs': lambda: store.get_jobs(window.start_date, window.today,
                                                     date_field='completed_date',
                                                     status=COMPLETED_STATUS),
            'scheduled jobs': lambda: store.get_jobs(window.today, window.schedule_end,
                                                     date_field='start_date'),
            'recent jobs': lambda: store.get_jobs(window.start_date, window.today,
                                                  date_field='created_at'),
            'technicians': lambda: store.get_technicians(active_only=True),
            'absences': lambda: store.get_absences(window.today, window.schedule_end),
        }

        with ThreadPoolExecutor(max_workers=len(queries)) as pool:
            futures = {name: pool.submit(query) for name, query in queries.items()}
            results: Dict[str, list] = {}
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except RecordFetchError as e:
                    raise AggregationError(e.user_message, e) from e

        jobs = _merge_jobs(results['completed jobs'], results['scheduled jobs'], results['recent jobs'])
        return jobs, results['technicians'], results['absences']

    def get_coordinator_data(self, months_back: int = DEFAULT_MONTHS_BACK,
                             technician_id: Optional[str] = None,
                             filters: Optional[CaseFilters] = None,
                             now: Optional[datetime] = None,
                             schedule_days: int = DEFAULT_SCHEDULE_DAYS) -> dict:
        """Fetch and aggregate everything the dashboards and the assistant need."""
        window = ReportWindow(now=now or datetime.now(), months_back=months_back,
                              schedule_days=schedule_days)
        print(f"🔄 Aggregating workforce analytics for last {months_back} months...")

        jobs, technicians, absences = self.fetch(window)
        bundle = compute_aggregates(jobs, technicians, absences, window,
                                    technician_id=technician_id, filters=filters,
                                    policy=self.policy)

        print(f"✅ Aggregated {len(jobs)} jobs for {len(technicians)} technicians")
        return bundle

    def get_technician_provision_details(self, technician_id: str,
                                         months_back: int = DEFAULT_MONTHS_BACK,
                                         now: Optional[datetime] = None) -> Optional[dict]:
        """One technician's provision record, or None if the technician is unknown."""
        bundle = self.get_coordinator_data(months_back=months_back,
                                           technician_id=technician_id, now=now)
        provisions = bundle['analytics']['technician_provisions']
        if not provisions:
            print(f"ℹ️ No provision data found for technician {technician_id}")
            return None
        return provisions[0]
