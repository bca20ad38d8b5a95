"""Technician utilization for Pest Ops Workforce Analytics"""
from datetime import date
from typing import List

from .models import Job, Technician, TechnicianUtilization
from .work_calendar import expand_work_days, total_work_hours
from .gap_analyzer import booked_jobs
from config import UNDERUTILIZED_BELOW, OVERUTILIZED_ABOVE


def classify_utilization(percent: float) -> str:
    if percent < UNDERUTILIZED_BELOW:
        return 'underutilized'
    if percent > OVERUTILIZED_ABOVE:
        return 'overutilized'
    return 'optimal'


class UtilizationCalculator:
    """
    Compares booked hours with scheduled work hours per technician.

    - Work hours come from the expanded weekly schedule.
    - Booked hours are the durations of jobs where the technician is primary.
    - Zero work hours gives 0% utilization, never a division error.
    """

    def calculate_single(self, technician: Technician, jobs: List[Job],
                         start_date: date, end_date: date) -> TechnicianUtilization:
        work_days = expand_work_days(technician.work_schedule, start_date, end_date)
        work_hours = total_work_hours(work_days)

        bookings = [
            job for job in booked_jobs(technician.id, jobs, start_date, end_date)
            if job.end_date >= job.start_date
        ]
        scheduled_hours = sum(job.duration_hours for job in bookings)

        utilization = (scheduled_hours / work_hours * 100) if work_hours > 0 else 0.0

        return TechnicianUtilization(
            technician_id=technician.id,
            technician_name=technician.name,
            total_work_hours=work_hours,
            scheduled_hours=scheduled_hours,
            available_hours=max(0.0, work_hours - scheduled_hours),
            utilization_percent=utilization,
            status=classify_utilization(utilization),
            work_days=len(work_days),
            booked_jobs=len(bookings),
            specializations=list(technician.specializations),
            work_areas=list(technician.work_areas)
        )

    def calculate_batch(self, technicians: List[Technician], jobs: List[Job],
                        start_date: date, end_date: date) -> List[TechnicianUtilization]:
        """Utilization for all technicians, least utilized first."""
        results = [
            self.calculate_single(tech, jobs, start_date, end_date)
            for tech in technicians
        ]
        return sorted(results, key=lambda r: r.utilization_percent)

    def calculate_summary(self, results: List[TechnicianUtilization]) -> dict:
        total_work = sum(r.total_work_hours for r in results)
        total_scheduled = sum(r.scheduled_hours for r in results)
        return {
            'technician_count': len(results),
            'total_work_hours': total_work,
            'total_scheduled_hours': total_scheduled,
            'total_available_hours': sum(r.available_hours for r in results),
            'average_utilization': (total_scheduled / total_work * 100) if total_work > 0 else 0.0,
            'underutilized': len([r for r in results if r.status == 'underutilized']),
            'optimal': len([r for r in results if r.status == 'optimal']),
            'overutilized': len([r for r in results if r.status == 'overutilized'])
        }
