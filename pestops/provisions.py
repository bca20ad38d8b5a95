"""Provision aggregation for Pest Ops Workforce Analytics"""
from collections import Counter
from datetime import date
from typing import Dict, List, Optional

from .models import (
    Job, Technician, TechnicianProvision, MonthlyBreakdown,
    MonthlyProvisionSummary, ProvisionGraphPoint, TopEarner
)
from .calculator import CommissionCalculator


def month_key(value) -> str:
    """YYYY-MM of a date or datetime"""
    return value.strftime('%Y-%m')


def shift_month(year: int, month: int, delta: int) -> tuple:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_range(now: date, months_back: int) -> List[str]:
    """The months_back calendar months ending with the month of now, oldest first."""
    keys = []
    for offset in range(months_back - 1, -1, -1):
        year, month = shift_month(now.year, now.month, -offset)
        keys.append(f"{year:04d}-{month:02d}")
    return keys


def window_start(now: date, months_back: int) -> date:
    """First day of the oldest month in the window"""
    year, month = shift_month(now.year, now.month, -(max(months_back, 1) - 1))
    return date(year, month, 1)


class ProvisionAggregator:
    """
    Rolls per-job commission up into technician, monthly and graph views.

    Every view is recomputed from the job list on each call; the monthly
    totals use the same policy as the technician totals, so the sum of all
    technicians' provision for a month equals that month's total.
    """

    def __init__(self, calculator: Optional[CommissionCalculator] = None):
        self.calculator = calculator if calculator is not None else CommissionCalculator()

    def technician_provisions(self, technicians: List[Technician],
                              jobs: List[Job]) -> List[TechnicianProvision]:
        """
        Provision per technician, highest total first.

        Args:
            technicians: Technicians to report on
            jobs: Jobs of the window (ineligible ones are ignored)

        Returns:
            List of TechnicianProvision objects
        """
        commissions = self.calculator.calculate_batch(jobs)
        policy = self.calculator.policy

        provisions = []
        for tech in technicians:
            provision = TechnicianProvision(
                technician_id=tech.id,
                technician_name=tech.name,
                technician_email=tech.email
            )
            months: Dict[str, MonthlyBreakdown] = {}

            for commission in commissions:
                role, amount = commission.share_for(tech.id)
                if role is None or not policy.pays(role):
                    continue
                price = commission.job.price

                provision.total_provision_amount += amount
                provision.total_cases += 1
                provision.total_revenue += price
                setattr(provision, f'{role}_cases', getattr(provision, f'{role}_cases') + 1)
                provision.job_ids.append(commission.job.id)

                key = month_key(commission.job.completed_date)
                bucket = months.setdefault(key, MonthlyBreakdown(month=key))
                bucket.provision_amount += amount
                bucket.cases_count += 1
                bucket.revenue += price

            provision.monthly_breakdown = [months[k] for k in sorted(months)]
            provisions.append(provision)

        return sorted(provisions, key=lambda p: p.total_provision_amount, reverse=True)

    def monthly_summary(self, jobs: List[Job], provisions: List[TechnicianProvision],
                        months: List[str]) -> List[MonthlyProvisionSummary]:
        """
        One summary per month of the window, including months without jobs.

        Args:
            jobs: Jobs of the window
            provisions: Result of technician_provisions for the same jobs
            months: Month keys of the window (see month_range)

        Returns:
            List of MonthlyProvisionSummary ordered by month
        """
        summaries = {m: MonthlyProvisionSummary(month=m) for m in months}
        technicians_by_month = {m: set() for m in months}

        for commission in self.calculator.calculate_batch(jobs):
            job = commission.job
            key = month_key(job.completed_date)
            if key not in summaries:
                continue

            summary = summaries[key]
            summary.total_cases += 1
            summary.total_revenue += job.price
            summary.total_provision += commission.total

            for _, tech_id, _ in job.assignees:
                technicians_by_month[key].add(tech_id)

            if job.source == 'business':
                summary.business_cases_count += 1
                summary.business_provision += commission.total
            else:
                summary.private_cases_count += 1
                summary.private_provision += commission.total

        for key, summary in summaries.items():
            summary.technician_count = len(technicians_by_month[key])
            summary.top_earner = self._top_earner(provisions, key)

        return [summaries[m] for m in sorted(summaries)]

    def _top_earner(self, provisions: List[TechnicianProvision], month: str) -> Optional[TopEarner]:
        earnings = []
        for provision in provisions:
            bucket = provision.month(month)
            if bucket is not None and bucket.provision_amount > 0:
                earnings.append((provision.technician_name, bucket.provision_amount))
        if not earnings:
            return None
        name, amount = sorted(earnings, key=lambda e: e[1], reverse=True)[0]
        return TopEarner(name=name, amount=amount)

    def graph_data(self, provisions: List[TechnicianProvision], months: List[str],
                   selected_technicians: Optional[List[str]] = None) -> List[ProvisionGraphPoint]:
        """
        Per-technician provision series for charting.

        Technicians with no provision in a month are left out of that month's
        technician_data rather than written as zero.

        Args:
            provisions: Result of technician_provisions
            months: Month keys of the window
            selected_technicians: Optional technician ids to include

        Returns:
            List of ProvisionGraphPoint ordered by month
        """
        if selected_technicians:
            provisions = [p for p in provisions if p.technician_id in selected_technicians]

        # Shared display names get the technician id appended
        name_counts = Counter(p.technician_name for p in provisions)
        labels = {
            p.technician_id: p.technician_name if name_counts[p.technician_name] == 1
            else f"{p.technician_name} ({p.technician_id})"
            for p in provisions
        }

        points = []
        for month in months:
            point = ProvisionGraphPoint(month=month)
            for provision in provisions:
                bucket = provision.month(month)
                amount = bucket.provision_amount if bucket is not None else 0.0
                if amount > 0:
                    point.technician_data[labels[provision.technician_id]] = amount
                    point.total_provision += amount
            points.append(point)
        return points

    @staticmethod
    def technician_details(provisions: List[TechnicianProvision],
                           technician_id: str) -> Optional[TechnicianProvision]:
        for provision in provisions:
            if provision.technician_id == technician_id:
                return provision
        return None

    @staticmethod
    def kpi_summary(provisions: List[TechnicianProvision],
                    summaries: List[MonthlyProvisionSummary], now: date) -> dict:
        """Headline provision figures for the dashboard cards."""
        current_month = month_key(now)
        year_prefix = f"{now.year:04d}-"

        current = next((s for s in summaries if s.month == current_month), None)
        ytd = [s for s in summaries if s.month.startswith(year_prefix)]
        provision_ytd = sum(s.total_provision for s in ytd)
        revenue_ytd = sum(s.total_revenue for s in ytd)

        active = [p for p in provisions if p.total_cases > 0]
        top = provisions[0] if provisions and provisions[0].total_cases > 0 else None

        return {
            'current_month_provision': current.total_provision if current else 0.0,
            'total_provision_ytd': provision_ytd,
            'total_revenue_ytd': revenue_ytd,
            'provision_rate': (provision_ytd / revenue_ytd * 100) if revenue_ytd > 0 else 0.0,
            'active_technicians': len(active),
            'average_provision_per_technician': (provision_ytd / len(active)) if active else 0.0,
            'top_earner': {
                'name': top.technician_name,
                'amount': top.total_provision_amount,
                'cases': top.total_cases
            } if top else None
        }

    @staticmethod
    def payroll_rows(provisions: List[TechnicianProvision]) -> List[dict]:
        """One row per technician and month for the payroll export."""
        rows = []
        for provision in sorted(provisions, key=lambda p: p.technician_name):
            for bucket in provision.monthly_breakdown:
                rows.append({
                    'month': bucket.month,
                    'technician_id': provision.technician_id,
                    'technician_name': provision.technician_name,
                    'technician_email': provision.technician_email or '',
                    'provision_amount': round(bucket.provision_amount, 2),
                    'cases_count': bucket.cases_count,
                    'revenue': bucket.revenue
                })
        return rows
