"""Tests for pricing pattern analysis"""
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pestops.models import Job
from pestops.pricing import PricingPatternAnalyzer


def priced_job(job_id, category, price, hours=None, day=1, technicians=1, description=''):
    start = datetime(2026, 9, day, 8, 0)
    assignees = ['t1', 't2', 't3'][:technicians]
    return Job(
        id=job_id,
        title=f'Case {job_id}',
        price=price,
        status='Completed',
        category=category,
        description=description,
        start_date=start if hours is not None else None,
        end_date=start + timedelta(hours=hours) if hours is not None else None,
        completed_date=datetime(2026, 9, day, 17, 0),
        primary_assignee_id=assignees[0] if technicians >= 1 else None,
        secondary_assignee_id=assignees[1] if technicians >= 2 else None,
        tertiary_assignee_id=assignees[2] if technicians >= 3 else None
    )


RODENT_JOBS = [
    priced_job('r1', 'Rodents', 1000, hours=1, day=1),
    priced_job('r2', 'Rodents', 2000, hours=3, day=2),
    priced_job('r3', 'Rodents', 6000, hours=5, day=3, technicians=2),
]

ANT_JOBS = [
    priced_job('a1', 'Ants', 900, hours=1, day=4),
    priced_job('a2', 'Ants', 1100, hours=1, day=5),
]


class TestPricingPatternAnalyzer:
    """Test cases for PricingPatternAnalyzer"""

    def setup_method(self):
        self.analyzer = PricingPatternAnalyzer()

    def test_small_category_excluded(self):
        """
        Test: Rodents with 3 priced jobs, Ants with 2
        Expected: only Rodents is reported
        """
        patterns = self.analyzer.analyze(RODENT_JOBS + ANT_JOBS)

        assert [p['category'] for p in patterns] == ['Rodents']

    def test_price_stats(self):
        """
        Test: prices 1 000, 2 000, 6 000
        Expected: mean 3 000, median 2 000, spread 5 000
        """
        pattern = self.analyzer.analyze(RODENT_JOBS)[0]
        stats = pattern['price_stats']

        assert pattern['case_count'] == 3
        assert stats['mean'] == pytest.approx(3000)
        assert stats['median'] == pytest.approx(2000)
        assert stats['min'] == 1000
        assert stats['max'] == 6000
        assert stats['spread'] == 5000

    def test_duration_stats_and_buckets(self):
        pattern = self.analyzer.analyze(RODENT_JOBS)[0]

        assert pattern['duration_stats']['mean_hours'] == pytest.approx(3.0)
        assert pattern['duration_stats']['jobs_with_duration'] == 3
        buckets = pattern['duration_buckets']
        assert buckets['short']['count'] == 1
        assert buckets['medium']['count'] == 1
        assert buckets['long']['count'] == 1
        assert buckets['long']['mean_price'] == pytest.approx(6000)

    def test_jobs_without_duration(self):
        jobs = [priced_job(f'x{i}', 'Wasps', 1500) for i in range(3)]

        pattern = self.analyzer.analyze(jobs)[0]

        assert pattern['duration_stats']['jobs_with_duration'] == 0
        assert pattern['duration_stats']['mean_hours'] == 0.0
        assert all(b['count'] == 0 for b in pattern['duration_buckets'].values())

    def test_technician_count_breakdown(self):
        breakdown = self.analyzer.analyze(RODENT_JOBS)[0]['technician_count_breakdown']

        assert breakdown['1']['count'] == 2
        assert breakdown['1']['mean_price'] == pytest.approx(1500)
        assert breakdown['2']['count'] == 1
        assert '3' not in breakdown

    def test_complexity_distribution(self):
        """The two-technician job scores 1 (medium), the others 0 (low)."""
        distribution = self.analyzer.analyze(RODENT_JOBS)[0]['complexity_distribution']

        assert distribution['low']['count'] == 2
        assert distribution['medium']['count'] == 1
        assert distribution['medium']['mean_score'] == 1.0
        assert 'high' not in distribution

    def test_samples_most_recent_first(self):
        samples = self.analyzer.analyze(RODENT_JOBS)[0]['samples']

        assert [s['id'] for s in samples] == ['r3', 'r2', 'r1']
        assert samples[0]['date'] == '2026-09-03'
        assert samples[0]['technician_count'] == 2

    def test_sample_cap(self):
        jobs = [priced_job(f'r{i}', 'Rodents', 1000 + i, hours=2, day=i) for i in range(1, 11)]
        analyzer = PricingPatternAnalyzer(max_samples=4)

        pattern = analyzer.analyze(jobs)[0]

        assert pattern['case_count'] == 10
        assert [s['id'] for s in pattern['samples']] == ['r10', 'r9', 'r8', 'r7']

    def test_unpriced_jobs_ignored(self):
        jobs = RODENT_JOBS[:2] + [priced_job('r0', 'Rodents', 0), priced_job('rn', 'Rodents', None)]

        assert self.analyzer.analyze(jobs) == []

    def test_sorted_by_case_count(self):
        wasps = [priced_job(f'w{i}', 'Wasps', 1200, hours=1, day=i) for i in range(1, 5)]

        patterns = self.analyzer.analyze(RODENT_JOBS + wasps)

        assert [p['category'] for p in patterns] == ['Wasps', 'Rodents']

    def test_category_guessed_from_description(self):
        jobs = [priced_job(f'g{i}', None, 800, description='Getingbo på vinden') for i in range(3)]

        patterns = self.analyzer.by_category(jobs)

        assert list(patterns) == ['Wasps']

    def test_empty_input(self):
        assert self.analyzer.analyze([]) == []
