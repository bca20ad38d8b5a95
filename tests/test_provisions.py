"""Tests for provision aggregation"""
import sys
from datetime import date, datetime
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pestops.models import Job, Technician
from pestops.calculator import CommissionCalculator, FlatPrimaryPolicy
from pestops.provisions import ProvisionAggregator, month_range, window_start, shift_month


def job(job_id, price, completed, primary, secondary=None, tertiary=None, source='private',
        status='Completed'):
    names = {'t1': 'Anna Berg', 't2': 'Erik Lund', 't3': 'Sara Ek'}
    return Job(
        id=job_id,
        price=price,
        status=status,
        completed_date=completed,
        primary_assignee_id=primary,
        primary_assignee_name=names.get(primary),
        secondary_assignee_id=secondary,
        secondary_assignee_name=names.get(secondary),
        tertiary_assignee_id=tertiary,
        tertiary_assignee_name=names.get(tertiary),
        source=source
    )


TECHNICIANS = [
    Technician(id='t1', name='Anna Berg', email='anna@example.se'),
    Technician(id='t2', name='Erik Lund'),
    Technician(id='t3', name='Sara Ek'),
]

JOBS = [
    job('1', 10000, datetime(2026, 9, 10), 't1', secondary='t2'),
    job('2', 4000, datetime(2026, 10, 2), 't2', source='business'),
    job('3', 20000, datetime(2026, 10, 8), 't1', secondary='t2', tertiary='t3'),
    job('4', 5000, datetime(2026, 10, 9), 't3', status='Open'),
]

MONTHS = ['2026-08', '2026-09', '2026-10']


class TestMonthHelpers:
    def test_month_range_is_contiguous(self):
        assert month_range(date(2026, 2, 14), 4) == ['2025-11', '2025-12', '2026-01', '2026-02']

    def test_month_range_single_month(self):
        assert month_range(date(2026, 10, 19), 1) == ['2026-10']

    def test_window_start_is_first_of_oldest_month(self):
        assert window_start(date(2026, 10, 19), 12) == date(2025, 11, 1)
        assert window_start(date(2026, 10, 19), 1) == date(2026, 10, 1)

    def test_shift_month_across_year(self):
        assert shift_month(2026, 1, -1) == (2025, 12)
        assert shift_month(2025, 12, 1) == (2026, 1)


class TestProvisionAggregator:
    """Test cases for ProvisionAggregator"""

    def setup_method(self):
        self.aggregator = ProvisionAggregator(CommissionCalculator())
        self.provisions = self.aggregator.technician_provisions(TECHNICIANS, JOBS)

    def test_technician_totals(self):
        """
        Test: Anna primary on 10 000 and 20 000
        Expected:
        - 300 + 600 = 900 provision
        - 30 000 revenue, 2 primary cases
        """
        anna = ProvisionAggregator.technician_details(self.provisions, 't1')

        assert anna.total_provision_amount == pytest.approx(900)
        assert anna.total_revenue == pytest.approx(30000)
        assert anna.total_cases == 2
        assert anna.primary_cases == 2
        assert anna.job_ids == ['1', '3']
        assert anna.technician_email == 'anna@example.se'

    def test_roles_counted_separately(self):
        """
        Test: Erik secondary on 1 and 3, primary on 2
        Expected: 150 + 120 + 300 = 570
        """
        erik = ProvisionAggregator.technician_details(self.provisions, 't2')

        assert erik.total_provision_amount == pytest.approx(570)
        assert erik.primary_cases == 1
        assert erik.secondary_cases == 2

    def test_sorted_by_provision_descending(self):
        assert [p.technician_id for p in self.provisions] == ['t1', 't2', 't3']

    def test_open_jobs_ignored(self):
        sara = ProvisionAggregator.technician_details(self.provisions, 't3')

        assert sara.total_cases == 1
        assert sara.tertiary_cases == 1
        assert sara.total_provision_amount == pytest.approx(100)

    def test_monthly_breakdown(self):
        anna = ProvisionAggregator.technician_details(self.provisions, 't1')

        assert [m.month for m in anna.monthly_breakdown] == ['2026-09', '2026-10']
        assert anna.month('2026-10').provision_amount == pytest.approx(600)
        assert anna.month('2026-08') is None

    def test_flat_policy_pays_primary_only(self):
        aggregator = ProvisionAggregator(CommissionCalculator(FlatPrimaryPolicy()))

        provisions = aggregator.technician_provisions(TECHNICIANS, JOBS)
        erik = ProvisionAggregator.technician_details(provisions, 't2')

        assert erik.total_cases == 1
        assert erik.total_provision_amount == pytest.approx(200)
        assert erik.secondary_cases == 0

    def test_monthly_summary_covers_every_month(self):
        summaries = self.aggregator.monthly_summary(JOBS, self.provisions, MONTHS)

        assert [s.month for s in summaries] == MONTHS
        assert summaries[0].total_cases == 0
        assert summaries[0].top_earner is None

    def test_monthly_summary_matches_technician_totals(self):
        """The month's total equals the sum of every technician's share that month."""
        summaries = self.aggregator.monthly_summary(JOBS, self.provisions, MONTHS)

        for summary in summaries:
            per_tech = sum(p.month(summary.month).provision_amount
                           for p in self.provisions if p.month(summary.month))
            assert summary.total_provision == pytest.approx(per_tech)

    def test_monthly_summary_october(self):
        """
        Test: October has job 2 (business, 4 000) and job 3 (private, 20 000)
        Expected:
        - Provision 120 (Erik primary) + 1 000 (full split) = 1 120
        - Three distinct technicians, Anna tops with 600
        """
        october = self.aggregator.monthly_summary(JOBS, self.provisions, MONTHS)[2]

        assert october.total_cases == 2
        assert october.total_revenue == pytest.approx(24000)
        assert october.total_provision == pytest.approx(1120)
        assert october.technician_count == 3
        assert october.business_cases_count == 1
        assert october.business_provision == pytest.approx(120)
        assert october.private_provision == pytest.approx(1000)
        assert october.top_earner.name == 'Anna Berg'
        assert october.top_earner.amount == pytest.approx(600)

    def test_graph_data_is_sparse(self):
        graph = self.aggregator.graph_data(self.provisions, MONTHS)

        assert graph[0].technician_data == {}
        assert 'Sara Ek' not in graph[1].technician_data
        assert graph[2].technician_data['Sara Ek'] == pytest.approx(100)
        assert graph[2].total_provision == pytest.approx(1120)

    def test_graph_data_selected_technicians(self):
        graph = self.aggregator.graph_data(self.provisions, MONTHS, selected_technicians=['t3'])

        assert graph[2].technician_data == {'Sara Ek': pytest.approx(100)}

    def test_kpi_summary(self):
        summaries = self.aggregator.monthly_summary(JOBS, self.provisions, MONTHS)

        kpi = ProvisionAggregator.kpi_summary(self.provisions, summaries, date(2026, 10, 19))

        assert kpi['current_month_provision'] == pytest.approx(1120)
        assert kpi['total_provision_ytd'] == pytest.approx(1570)
        assert kpi['total_revenue_ytd'] == pytest.approx(34000)
        assert kpi['active_technicians'] == 3
        assert kpi['top_earner']['name'] == 'Anna Berg'

    def test_kpi_summary_without_data(self):
        kpi = ProvisionAggregator.kpi_summary([], [], date(2026, 10, 19))

        assert kpi['provision_rate'] == 0.0
        assert kpi['average_provision_per_technician'] == 0.0
        assert kpi['top_earner'] is None

    def test_payroll_rows(self):
        rows = ProvisionAggregator.payroll_rows(self.provisions)

        assert [(r['technician_name'], r['month']) for r in rows] == [
            ('Anna Berg', '2026-09'), ('Anna Berg', '2026-10'),
            ('Erik Lund', '2026-09'), ('Erik Lund', '2026-10'),
            ('Sara Ek', '2026-10'),
        ]
        assert rows[0]['provision_amount'] == 300.0
        assert rows[2]['technician_email'] == ''

    def test_graph_data_duplicate_names(self):
        """
        Test: two technicians both named Anna Berg, 10 000 primary each in October
        Expected: two series of 300, summing to the 600 total
        """
        technicians = [Technician(id='a1', name='Anna Berg'), Technician(id='a2', name='Anna Berg')]
        jobs = [job('x', 10000, datetime(2026, 10, 1), 'a1'), job('y', 10000, datetime(2026, 10, 2), 'a2')]
        provisions = self.aggregator.technician_provisions(technicians, jobs)

        october = self.aggregator.graph_data(provisions, ['2026-10'])[0]

        assert october.technician_data == {'Anna Berg (a1)': pytest.approx(300),
                                           'Anna Berg (a2)': pytest.approx(300)}
        assert october.total_provision == pytest.approx(sum(october.technician_data.values()))
