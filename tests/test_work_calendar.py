"""Tests for work calendar expansion"""
import sys
from datetime import date, time
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pestops.models import DaySchedule, Technician
from pestops.work_calendar import expand_work_days, total_work_hours, weekday_name


WEEKDAYS = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday']


def office_hours():
    schedule = {day: DaySchedule(active=True, start='08:00', end='16:00') for day in WEEKDAYS}
    schedule['saturday'] = DaySchedule(active=False, start='09:00', end='12:00')
    return schedule


class TestExpandWorkDays:
    """Test cases for expand_work_days"""

    def test_week_of_office_hours(self):
        """
        Test: Mon-Fri 08-16 over Mon 2026-10-19 .. Sun 2026-10-25
        Expected: five work days of 8h each, 40h in total
        """
        days = expand_work_days(office_hours(), date(2026, 10, 19), date(2026, 10, 25))

        assert [d.date for d in days] == [date(2026, 10, 19 + i) for i in range(5)]
        assert days[0].weekday == 'monday'
        assert days[0].start == time(8, 0)
        assert days[0].end == time(16, 0)
        assert total_work_hours(days) == 40

    def test_inactive_day_is_skipped(self):
        days = expand_work_days(office_hours(), date(2026, 10, 24), date(2026, 10, 24))
        assert days == []

    def test_range_is_inclusive(self):
        days = expand_work_days(office_hours(), date(2026, 10, 19), date(2026, 10, 19))
        assert len(days) == 1

    def test_empty_schedule_gives_no_days(self):
        assert expand_work_days({}, date(2026, 10, 19), date(2026, 10, 25)) == []
        assert expand_work_days(None, date(2026, 10, 19), date(2026, 10, 25)) == []

    def test_weekday_keys_are_case_insensitive(self):
        tech = Technician.from_dict({
            'id': 't1',
            'name': 'Anna',
            'work_schedule': {'Monday': {'active': True, 'start': '07:30', 'end': '15:30'}}
        })

        days = expand_work_days(tech.work_schedule, date(2026, 10, 19), date(2026, 10, 25))

        assert len(days) == 1
        assert days[0].hours == 8

    def test_schedule_from_json_string(self):
        tech = Technician.from_dict({
            'id': 't1',
            'name': 'Anna',
            'work_schedule': '{"friday": {"active": "true", "start": "10:00", "end": "14:00"}}'
        })

        days = expand_work_days(tech.work_schedule, date(2026, 10, 19), date(2026, 10, 25))

        assert [d.date for d in days] == [date(2026, 10, 23)]
        assert days[0].hours == 4

    def test_weekday_name(self):
        assert weekday_name(date(2026, 10, 19)) == 'monday'
        assert weekday_name(date(2026, 10, 25)) == 'sunday'
