"""
Water Route - Next visit computation
Run: cd backend && pytest tests/test_recurrence.py -v
"""

from datetime import datetime, timedelta

import pytest

from services.recurrence import (
    get_day_index,
    day_name_for,
    next_visit_date,
    parse_date,
    roll_specific_date,
)
from tests.fakes import MONDAY, TUESDAY, WEDNESDAY, SATURDAY


def noon(d):
    return datetime(d.year, d.month, d.day, 12, 0)


class TestDayNames:

    def test_accent_and_case_insensitive(self):
        assert get_day_index("Miércoles") == 3
        assert get_day_index("miercoles") == 3
        assert get_day_index("SÁBADO") == 6
        assert get_day_index("Domingo") == 0

    def test_unknown_day(self):
        assert get_day_index("Sin Asignar") == -1
        assert get_day_index("") == -1
        assert get_day_index(None) == -1

    def test_day_name_for_date(self):
        assert day_name_for(MONDAY) == "Lunes"
        assert day_name_for(WEDNESDAY) == "Miércoles"
        assert day_name_for(SATURDAY + timedelta(days=1)) == "Domingo"


class TestSpecificDate:

    def test_specific_date_wins_for_once(self):
        client = {"freq": "once", "specificDate": "2026-10-22", "visitDay": "Jueves"}
        assert next_visit_date(client, "Lunes", today=MONDAY) == datetime(2026, 10, 22, 12, 0)

    def test_specific_date_wins_for_cyclic(self):
        client = {"freq": "biweekly", "specificDate": "2026-11-02", "visitDay": "Lunes",
                  "lastVisited": datetime(2026, 10, 12, 9, 0)}
        assert next_visit_date(client, today=MONDAY) == datetime(2026, 11, 2, 12, 0)

    def test_once_without_date_is_unscheduled(self):
        assert next_visit_date({"freq": "once", "visitDay": "Lunes"}, today=MONDAY) is None

    def test_unparseable_specific_date(self):
        assert next_visit_date({"freq": "once", "specificDate": "mañana"}, today=MONDAY) is None


class TestWeekly:

    def test_today_counts(self):
        client = {"freq": "weekly", "visitDay": "Lunes"}
        assert next_visit_date(client, today=MONDAY) == noon(MONDAY)

    def test_for_day_overrides_visit_day(self):
        client = {"freq": "weekly", "visitDay": "Lunes", "visitDays": ["Lunes", "Martes"]}
        assert next_visit_date(client, "Martes", today=MONDAY) == noon(TUESDAY)

    def test_wraps_to_next_week(self):
        client = {"freq": "weekly", "visitDay": "Lunes"}
        assert next_visit_date(client, today=WEDNESDAY) == noon(MONDAY + timedelta(days=7))

    @pytest.mark.parametrize("last_visited", [
        None,
        datetime(2026, 10, 12, 8, 30),
        datetime(2026, 10, 10, 18, 0),
        datetime(2026, 9, 1, 10, 0),
        datetime(2026, 10, 20, 10, 0),
    ])
    @pytest.mark.parametrize("day", ["Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado"])
    def test_weekly_stability(self, day, last_visited):
        """Weekly clients always land within 6 days, whatever the anchor"""
        client = {"freq": "weekly", "visitDay": day, "lastVisited": last_visited}
        result = next_visit_date(client, today=WEDNESDAY)
        assert 0 <= (result.date() - WEDNESDAY).days <= 6
        assert result == next_visit_date({"freq": "weekly", "visitDay": day}, today=WEDNESDAY)

    def test_unresolvable_day(self):
        assert next_visit_date({"freq": "weekly", "visitDay": "Sin Asignar"}, today=MONDAY) is None
        assert next_visit_date({"freq": "biweekly"}, today=MONDAY) is None


class TestAnchorCorrection:

    def test_biweekly_short_gap_pushes_one_week(self):
        """Last visit 3 days before the naive Tuesday -> one week later"""
        naive = TUESDAY
        client = {"freq": "biweekly", "visitDay": "Martes",
                  "lastVisited": datetime.combine(naive - timedelta(days=3), datetime.min.time())}
        assert next_visit_date(client, today=MONDAY) == noon(naive + timedelta(days=7))

    def test_biweekly_long_gap_keeps_naive_date(self):
        client = {"freq": "biweekly", "visitDay": "Martes",
                  "lastVisited": datetime(2026, 10, 3, 11, 0)}
        assert next_visit_date(client, today=MONDAY) == noon(TUESDAY)

    def test_visited_today_skips_full_cycle(self):
        client = {"freq": "biweekly", "visitDay": "Martes",
                  "lastVisited": datetime(2026, 10, 12, 9, 15)}
        assert next_visit_date(client, today=MONDAY) == noon(TUESDAY + timedelta(days=14))

    def test_pre_marked_future_visit(self):
        client = {"freq": "triweekly", "visitDay": "Lunes",
                  "lastVisited": datetime(2026, 10, 15, 9, 0)}
        assert next_visit_date(client, today=MONDAY) == noon(MONDAY + timedelta(days=21))

    def test_monthly_short_gap(self):
        client = {"freq": "monthly", "visitDay": "Martes",
                  "lastVisited": datetime(2026, 10, 8, 16, 0)}
        assert next_visit_date(client, today=MONDAY) == noon(TUESDAY + timedelta(days=21))

    def test_anchor_as_iso_string(self):
        client = {"freq": "biweekly", "visitDay": "Martes", "lastVisited": "2026-10-10T10:00:00"}
        assert next_visit_date(client, today=MONDAY) == noon(TUESDAY + timedelta(days=7))

    def test_garbage_anchor_is_ignored(self):
        client = {"freq": "biweekly", "visitDay": "Martes", "lastVisited": "nunca"}
        assert next_visit_date(client, today=MONDAY) == noon(TUESDAY)


class TestParseDate:

    def test_formats(self):
        assert parse_date(None) is None
        assert parse_date("") is None
        assert parse_date("2026-10-12") == datetime(2026, 10, 12)
        assert parse_date(datetime(2026, 10, 12, 7, 0)) == datetime(2026, 10, 12, 7, 0)
        assert parse_date(MONDAY) == datetime(2026, 10, 12)
        assert parse_date(True) is None

    def test_legacy_seconds_dict(self):
        epoch = 1760270400
        assert parse_date({"seconds": epoch}) == parse_date(epoch)
        assert parse_date(epoch) is not None


class TestRollSpecificDate:

    def test_biweekly_roll(self):
        assert roll_specific_date("2026-10-05", "biweekly", today=MONDAY) == "2026-10-19"

    def test_rolls_until_tomorrow(self):
        assert roll_specific_date("2026-09-01", "weekly", today=MONDAY) == "2026-10-13"

    def test_invalid_date(self):
        assert roll_specific_date("??", "weekly", today=MONDAY) is None
