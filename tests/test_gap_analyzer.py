"""Tests for schedule gap analysis"""
import sys
from datetime import date, datetime, timedelta
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pestops.models import DaySchedule, Job, Technician, WorkDay
from pestops.gap_analyzer import GapAnalyzer, booked_jobs

MONDAY = date(2026, 10, 19)


def technician(tech_id='t1', name='Anna Berg', start='08:00', end='16:00'):
    return Technician(
        id=tech_id,
        name=name,
        work_schedule={'monday': DaySchedule(active=True, start=start, end=end)}
    )


def booking(job_id, start, end, primary='t1', secondary=None, day=MONDAY):
    def at(clock):
        hour, minute = (int(p) for p in clock.split(':'))
        return datetime(day.year, day.month, day.day, hour, minute)
    return Job(
        id=job_id,
        title=f'Job {job_id}',
        start_date=at(start),
        end_date=at(end),
        primary_assignee_id=primary,
        primary_assignee_name='Anna Berg' if primary == 't1' else primary,
        secondary_assignee_id=secondary
    )


def monday(start='08:00', end='16:00'):
    tech = technician(start=start, end=end)
    entry = tech.work_schedule['monday']
    return WorkDay(date=MONDAY, start=entry.start, end=entry.end, weekday='monday')


class TestGapAnalyzer:
    """Test cases for GapAnalyzer"""

    def setup_method(self):
        self.analyzer = GapAnalyzer()

    def test_single_booking_splits_day(self):
        """
        Test: Mon 08:00-16:00, one job 10:00-11:30
        Expected:
        - 08:00-10:00, 2.0h, minor (below the 3h major threshold)
        - 11:30-16:00, 4.5h, major
        """
        gaps = self.analyzer.find_technician_gaps(
            technician(), [booking('1', '10:00', '11:30')], MONDAY, MONDAY
        )

        assert [(g.start_time, g.end_time) for g in gaps] == [('08:00', '10:00'), ('11:30', '16:00')]
        assert gaps[0].duration_hours == 2.0
        assert gaps[0].classification == 'minor'
        assert gaps[1].duration_hours == 4.5
        assert gaps[1].classification == 'major'
        assert gaps[0].date == '2026-10-19'
        assert gaps[0].weekday == 'måndag'

    def test_gaps_and_bookings_cover_work_day(self):
        """Idle intervals plus booked time add up to the 8h work day."""
        bookings = [booking('1', '08:30', '10:00'), booking('2', '12:00', '13:15')]

        intervals = self.analyzer.idle_intervals(monday(), bookings)
        idle = sum(((end - start) for start, end in intervals), timedelta())
        booked = sum(((b.end_date - b.start_date) for b in bookings), timedelta())

        assert idle + booked == timedelta(hours=8)

    def test_short_gaps_are_dropped(self):
        """
        Test: bookings 08:00-10:00 and 10:30-15:30
        Expected: the 30 minute gap and the 30 minute tail are both dropped
        """
        gaps = self.analyzer.find_technician_gaps(
            technician(),
            [booking('1', '08:00', '10:00'), booking('2', '10:30', '15:30')],
            MONDAY, MONDAY
        )

        assert gaps == []

    def test_exactly_one_hour_is_kept(self):
        gaps = self.analyzer.find_technician_gaps(
            technician(), [booking('1', '08:00', '15:00')], MONDAY, MONDAY
        )

        assert len(gaps) == 1
        assert gaps[0].duration_hours == 1.0
        assert gaps[0].classification == 'minor'

    def test_exactly_three_hours_is_major(self):
        gaps = self.analyzer.find_technician_gaps(
            technician(), [booking('1', '08:00', '13:00')], MONDAY, MONDAY
        )

        assert gaps[0].duration_hours == 3.0
        assert gaps[0].classification == 'major'

    def test_overlapping_bookings_are_tolerated(self):
        """
        Test: 09:00-12:00 and 10:00-11:00 overlap
        Expected: cursor stays at 12:00, gaps 08-09 and 12-16
        """
        gaps = self.analyzer.find_technician_gaps(
            technician(),
            [booking('1', '09:00', '12:00'), booking('2', '10:00', '11:00')],
            MONDAY, MONDAY
        )

        assert [(g.start_time, g.end_time) for g in gaps] == [('08:00', '09:00'), ('12:00', '16:00')]

    def test_booking_outside_work_hours_does_not_extend_gap(self):
        """A booking after closing time ends the gap at closing time."""
        gaps = self.analyzer.find_technician_gaps(
            technician(), [booking('1', '17:00', '18:00')], MONDAY, MONDAY
        )

        assert len(gaps) == 1
        assert (gaps[0].start_time, gaps[0].end_time) == ('08:00', '16:00')
        assert gaps[0].duration_hours == 8.0

    def test_empty_day_is_one_gap(self):
        gaps = self.analyzer.find_technician_gaps(technician(), [], MONDAY, MONDAY)

        assert len(gaps) == 1
        assert gaps[0].classification == 'major'
        assert gaps[0].suggested_slot.start_time == '08:00'
        assert gaps[0].suggested_slot.end_time == '10:00'
        assert gaps[0].suggested_slot.duration_hours == 2.0

    def test_suggested_slot_clipped_to_gap(self):
        """
        Test: 1.5h gap 14:30-16:00
        Expected: slot 14:30-16:00, not past the gap end
        """
        gaps = self.analyzer.find_technician_gaps(
            technician(), [booking('1', '08:00', '14:30')], MONDAY, MONDAY
        )

        slot = gaps[0].suggested_slot
        assert (slot.start_time, slot.end_time) == ('14:30', '16:00')
        assert slot.duration_hours == 1.5

    def test_no_schedule_means_no_gaps(self):
        tech = Technician(id='t1', name='Anna Berg')
        assert self.analyzer.find_technician_gaps(tech, [], MONDAY, MONDAY + timedelta(days=6)) == []

    def test_only_primary_bookings_block_time(self):
        """A job where the technician is only secondary leaves the day free."""
        job = booking('1', '08:00', '16:00', primary='t2', secondary='t1')

        gaps = self.analyzer.find_technician_gaps(technician(), [job], MONDAY, MONDAY)

        assert len(gaps) == 1
        assert gaps[0].duration_hours == 8.0

    def test_analyze_sorts_by_date(self):
        anna = Technician(id='t1', name='Anna Berg', work_schedule={
            'monday': DaySchedule(True, '08:00', '16:00'),
            'tuesday': DaySchedule(True, '08:00', '16:00')
        })
        erik = Technician(id='t2', name='Erik Lund', work_schedule={
            'monday': DaySchedule(True, '08:00', '12:00')
        })

        gaps = self.analyzer.analyze([anna, erik], [], MONDAY, MONDAY + timedelta(days=1))

        assert [g.date for g in gaps] == ['2026-10-19', '2026-10-19', '2026-10-20']
        assert {g.technician_id for g in gaps[:2]} == {'t1', 't2'}

    def test_to_dict_is_plain(self):
        gap = self.analyzer.find_technician_gaps(technician(), [], MONDAY, MONDAY)[0]
        data = gap.to_dict()

        assert data['suggested_slot'] == {'start_time': '08:00', 'end_time': '10:00', 'duration_hours': 2.0}
        assert data['technician_name'] == 'Anna Berg'


class TestBookedJobs:
    def test_requires_booking_and_range(self):
        inside = booking('1', '09:00', '10:00')
        outside = booking('2', '09:00', '10:00', day=MONDAY + timedelta(days=8))
        unbooked = Job(id='3', primary_assignee_id='t1', start_date=datetime(2026, 10, 19, 9))

        result = booked_jobs('t1', [inside, outside, unbooked], MONDAY, MONDAY + timedelta(days=6))

        assert [j.id for j in result] == ['1']
