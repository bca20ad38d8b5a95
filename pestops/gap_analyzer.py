"""Schedule gap analysis for Pest Ops Workforce Analytics"""
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from .models import Gap, Job, SuggestedSlot, Technician, WorkDay
from .work_calendar import expand_work_days
from config import (
    MIN_GAP_HOURS, MAJOR_GAP_HOURS, SUGGESTED_SLOT_HOURS, WEEKDAY_DISPLAY_NAMES
)


def booked_jobs(technician_id: str, jobs: List[Job],
                start_date: date, end_date: date) -> List[Job]:
    """
    Jobs that occupy the technician's calendar in the period.

    A job counts when the technician is the primary assignee, the job has
    both a start and an end, and the start falls inside the inclusive range.
    """
    return [
        job for job in jobs
        if job.primary_assignee_id == technician_id
        and job.has_booking
        and start_date <= job.start_date.date() <= end_date
    ]


class GapAnalyzer:
    """
    Finds unbooked time inside technicians' work days.

    Walk:
    =====
    Bookings of the day are sorted by start (stable). A cursor starts at the
    work-day start; every booking that starts after the cursor leaves a gap
    [cursor, booking start), then the cursor moves to max(cursor, booking end).
    Whatever is left between the cursor and the work-day end is a trailing gap.
    Overlapping bookings are tolerated, not merged or validated.

    Gaps shorter than the minimum are dropped; long ones are 'major'.
    """

    def __init__(self,
                 min_gap_hours: float = MIN_GAP_HOURS,
                 major_gap_hours: float = MAJOR_GAP_HOURS,
                 slot_hours: float = SUGGESTED_SLOT_HOURS,
                 weekday_names: Optional[Dict[str, str]] = None):
        self.min_gap_hours = min_gap_hours
        self.major_gap_hours = major_gap_hours
        self.slot_hours = slot_hours
        self.weekday_names = weekday_names if weekday_names is not None else WEEKDAY_DISPLAY_NAMES

    def idle_intervals(self, work_day: WorkDay,
                       bookings: List[Job]) -> List[Tuple[datetime, datetime]]:
        """
        Raw idle intervals of one work day, before the minimum-length filter.

        Args:
            work_day: The work interval
            bookings: Booked jobs (only those starting on this date are used)

        Returns:
            List of (start, end) datetimes
        """
        day_start = work_day.start_datetime
        day_end = work_day.end_datetime

        day_bookings = sorted(
            (b for b in bookings if b.has_booking and b.start_date.date() == work_day.date),
            key=lambda b: b.start_date
        )

        intervals = []
        cursor = day_start
        for booking in day_bookings:
            if booking.start_date > cursor:
                # A booking after closing time still ends the gap at closing time
                gap_end = min(booking.start_date, day_end)
                if gap_end > cursor:
                    intervals.append((cursor, gap_end))
            cursor = max(cursor, booking.end_date)

        if cursor < day_end:
            intervals.append((cursor, day_end))

        return intervals

    def classify(self, duration_hours: float) -> str:
        return 'major' if duration_hours >= self.major_gap_hours else 'minor'

    def suggest_slot(self, start: datetime, end: datetime) -> SuggestedSlot:
        """Fixed-length proposal anchored at the gap start, clipped to the gap end."""
        slot_end = min(start + timedelta(hours=self.slot_hours), end)
        return SuggestedSlot(
            start_time=start.strftime('%H:%M'),
            end_time=slot_end.strftime('%H:%M'),
            duration_hours=round((slot_end - start).total_seconds() / 3600, 1)
        )

    def find_day_gaps(self, technician: Technician, work_day: WorkDay,
                      bookings: List[Job]) -> List[Gap]:
        """Gaps of at least the minimum length for one technician and day."""
        gaps = []
        for start, end in self.idle_intervals(work_day, bookings):
            duration = (end - start).total_seconds() / 3600
            if duration < self.min_gap_hours:
                continue
            gaps.append(Gap(
                technician_id=technician.id,
                technician_name=technician.name,
                date=work_day.date.isoformat(),
                weekday=self.weekday_names.get(work_day.weekday, work_day.weekday),
                start_time=start.strftime('%H:%M'),
                end_time=end.strftime('%H:%M'),
                duration_hours=round(duration, 1),
                classification=self.classify(duration),
                suggested_slot=self.suggest_slot(start, end)
            ))
        return gaps

    def find_technician_gaps(self, technician: Technician, jobs: List[Job],
                             start_date: date, end_date: date) -> List[Gap]:
        """All gaps for one technician; no schedule means no gaps."""
        work_days = expand_work_days(technician.work_schedule, start_date, end_date)
        if not work_days:
            return []

        bookings = booked_jobs(technician.id, jobs, start_date, end_date)
        gaps = []
        for work_day in work_days:
            gaps.extend(self.find_day_gaps(technician, work_day, bookings))
        return gaps

    def analyze(self, technicians: List[Technician], jobs: List[Job],
                start_date: date, end_date: date) -> List[Gap]:
        """
        Gaps for every technician in the period, merged and sorted by date.

        Args:
            technicians: Technicians with work schedules
            jobs: Booked jobs for the period (any assignee)
            start_date: First day (inclusive)
            end_date: Last day (inclusive)

        Returns:
            List of Gap objects
        """
        gaps = []
        for technician in technicians:
            gaps.extend(self.find_technician_gaps(technician, jobs, start_date, end_date))
        return sorted(gaps, key=lambda g: g.date)
