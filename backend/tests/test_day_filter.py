"""
Water Route - Day visibility filter and list ranks
Run: cd backend && pytest tests/test_day_filter.py -v
"""

from datetime import datetime

import pytest

from models.client import ALL_DAYS
from services.day_filter import (
    visible_clients,
    completed_clients,
    day_clients,
    day_counts,
    filtered_directory,
    sort_rank,
    is_future_day,
    head_rank,
    tail_rank,
)
from tests.fakes import MONDAY, WEDNESDAY, SUNDAY


def ids(clients):
    return [c["id"] for c in clients]


# ═══════════════════════════════════════════════════════════════
# 1. MEMBERSHIP
# ═══════════════════════════════════════════════════════════════

class TestMembership:

    def test_matches_visit_days_or_legacy_visit_day(self):
        clients = [
            {"id": "a", "freq": "weekly", "visitDays": ["Lunes", "Jueves"]},
            {"id": "b", "freq": "weekly", "visitDay": "Lunes"},
            {"id": "c", "freq": "weekly", "visitDay": "Martes", "visitDays": ["Martes"]},
        ]
        assert ids(visible_clients(clients, "Lunes", today=MONDAY)) == ["a", "b"]
        assert ids(visible_clients(clients, "Jueves", today=MONDAY)) == ["a"]

    @pytest.mark.parametrize("day", ALL_DAYS)
    def test_on_demand_never_visible(self, day):
        clients = [
            {"id": "dir", "freq": "on_demand", "visitDay": day, "visitDays": ALL_DAYS},
            {"id": "w", "freq": "weekly", "visitDays": [day]},
        ]
        for today in (MONDAY, WEDNESDAY, SUNDAY):
            assert "dir" not in ids(visible_clients(clients, day, today=today))

    def test_completed_moves_to_completed_list(self):
        client = {"id": "a", "freq": "once", "visitDay": "Lunes", "specificDate": "2026-10-12"}
        assert ids(visible_clients([client], "Lunes", today=MONDAY)) == ["a"]
        assert completed_clients([client], "Lunes") == []

        done = {**client, "isCompleted": True}
        assert visible_clients([done], "Lunes", today=MONDAY) == []
        assert ids(completed_clients([done], "Lunes")) == ["a"]

    def test_completed_ignores_frequency_rules(self):
        client = {"id": "a", "freq": "monthly", "visitDay": "Lunes", "isCompleted": True,
                  "lastVisited": datetime(2026, 10, 12, 8, 0)}
        assert ids(completed_clients([client], "Lunes")) == ["a"]

    def test_empty_day(self):
        assert visible_clients([{"id": "a", "freq": "weekly", "visitDay": ""}], "") == []

    def test_undated_once_stays_visible(self):
        client = {"id": "a", "freq": "once", "visitDay": "Lunes"}
        assert ids(visible_clients([client], "Lunes", today=MONDAY)) == ["a"]


# ═══════════════════════════════════════════════════════════════
# 2. MULTI-WEEK FREQUENCIES
# ═══════════════════════════════════════════════════════════════

class TestDueFilter:

    def test_future_day_shown_eagerly(self):
        """Tuesday is still ahead on Monday: shown even if due next week"""
        client = {"id": "a", "freq": "biweekly", "visitDay": "Martes",
                  "lastVisited": datetime(2026, 10, 10, 9, 0)}
        assert ids(visible_clients([client], "Martes", today=MONDAY)) == ["a"]

    def test_today_hidden_until_due(self):
        client = {"id": "a", "freq": "biweekly", "visitDay": "Lunes",
                  "lastVisited": datetime(2026, 10, 10, 9, 0)}
        assert visible_clients([client], "Lunes", today=MONDAY) == []

    def test_today_shown_when_due(self):
        client = {"id": "a", "freq": "biweekly", "visitDay": "Lunes",
                  "lastVisited": datetime(2026, 10, 5, 9, 0)}
        assert ids(visible_clients([client], "Lunes", today=MONDAY)) == ["a"]

    def test_visited_today_disappears(self):
        client = {"id": "a", "freq": "triweekly", "visitDay": "Lunes",
                  "lastVisited": datetime(2026, 10, 12, 10, 30)}
        assert visible_clients([client], "Lunes", today=MONDAY) == []

    def test_past_day_of_week_hidden(self):
        client = {"id": "a", "freq": "monthly", "visitDay": "Lunes"}
        assert visible_clients([client], "Lunes", today=WEDNESDAY) == []

    def test_everything_upcoming_on_sunday(self):
        client = {"id": "a", "freq": "monthly", "visitDay": "Sábado",
                  "lastVisited": datetime(2026, 10, 17, 12, 0)}
        assert ids(visible_clients([client], "Sábado", today=SUNDAY)) == ["a"]
        assert all(is_future_day(day, SUNDAY) for day in ALL_DAYS)

    def test_unresolvable_anchor_excluded(self):
        clients = [
            {"id": "cyclic", "freq": "biweekly", "visitDay": "Feriado"},
            {"id": "weekly", "freq": "weekly", "visitDay": "Feriado"},
        ]
        assert ids(visible_clients(clients, "Feriado", today=MONDAY)) == ["weekly"]

    def test_weekly_ignores_anchor(self):
        client = {"id": "a", "freq": "weekly", "visitDay": "Lunes",
                  "lastVisited": datetime(2026, 10, 12, 7, 0)}
        assert ids(visible_clients([client], "Lunes", today=MONDAY)) == ["a"]


# ═══════════════════════════════════════════════════════════════
# 3. ORDER
# ═══════════════════════════════════════════════════════════════

class TestOrdering:

    def test_day_rank_beats_global_rank(self):
        clients = [
            {"id": "a", "freq": "weekly", "visitDay": "Lunes", "listOrder": 0, "listOrders": {"Lunes": 5}},
            {"id": "b", "freq": "weekly", "visitDay": "Lunes", "listOrder": 3},
            {"id": "c", "freq": "weekly", "visitDay": "Lunes", "listOrders": {"Martes": 0, "Lunes": 1}},
        ]
        assert ids(visible_clients(clients, "Lunes", today=MONDAY)) == ["c", "b", "a"]

    def test_sentinel_rank_sorts_first(self):
        clients = [
            {"id": "a", "freq": "weekly", "visitDay": "Lunes", "listOrders": {"Lunes": 1}},
            {"id": "b", "freq": "weekly", "visitDay": "Lunes", "listOrders": {"Lunes": 150000}},
            {"id": "c", "freq": "weekly", "visitDay": "Lunes", "listOrders": {"Lunes": 2}},
        ]
        assert sort_rank(clients[1], "Lunes") == 0
        assert ids(visible_clients(clients, "Lunes", today=MONDAY)) == ["b", "a", "c"]

    def test_sentinel_boundary(self):
        assert sort_rank({"listOrder": 100000}, "Lunes") == 100000
        assert sort_rank({"listOrder": 100001}, "Lunes") == 0

    def test_ties_keep_store_order(self):
        clients = [
            {"id": "x", "freq": "weekly", "visitDay": "Lunes"},
            {"id": "y", "freq": "weekly", "visitDay": "Lunes", "listOrder": 0},
            {"id": "z", "freq": "weekly", "visitDay": "Lunes", "listOrders": {"Lunes": 0}},
        ]
        assert ids(visible_clients(clients, "Lunes", today=MONDAY)) == ["x", "y", "z"]

    def test_day_clients_appends_completed(self):
        clients = [
            {"id": "done", "freq": "once", "visitDay": "Lunes", "isCompleted": True},
            {"id": "b", "freq": "weekly", "visitDay": "Lunes", "listOrder": 1},
            {"id": "a", "freq": "weekly", "visitDay": "Lunes", "listOrder": 0},
        ]
        assert ids(day_clients(clients, "Lunes", today=MONDAY)) == ["a", "b", "done"]

    def test_head_and_tail_ranks(self):
        clients = [
            {"id": "a", "freq": "weekly", "visitDay": "Lunes", "listOrders": {"Lunes": 2}},
            {"id": "b", "freq": "weekly", "visitDay": "Lunes", "listOrders": {"Lunes": 7}},
            {"id": "c", "freq": "weekly", "visitDay": "Lunes", "listOrders": {"Lunes": 200000}},
            {"id": "d", "freq": "on_demand", "visitDay": "Lunes", "listOrders": {"Lunes": -50}},
        ]
        assert head_rank(clients, "Lunes") == -1
        assert tail_rank(clients, "Lunes") == 8
        assert head_rank([], "Martes") == -1
        assert tail_rank([], "Martes") == 0


# ═══════════════════════════════════════════════════════════════
# 4. DIRECTORY & COUNTS
# ═══════════════════════════════════════════════════════════════

class TestDirectory:

    def test_search_is_accent_insensitive(self):
        clients = [
            {"id": "1", "name": "Zulma", "address": "Av. Italia 1234"},
            {"id": "2", "name": "José Pérez", "address": "Rambla"},
            {"id": "3", "name": "ana", "address": "Calle Peréz", "phone": "099 123"},
        ]
        assert ids(filtered_directory(clients, "perez")) == ["3", "2"]
        assert ids(filtered_directory(clients, "099")) == ["3"]
        assert ids(filtered_directory(clients, "")) == ["3", "2", "1"]

    def test_day_counts(self):
        clients = [
            {"id": "a", "freq": "weekly", "visitDays": ["Lunes", "Viernes"]},
            {"id": "b", "freq": "on_demand", "visitDay": "Lunes"},
            {"id": "c", "freq": "weekly", "visitDay": "Viernes", "isCompleted": True},
        ]
        counts = day_counts(clients, today=MONDAY)
        assert counts["Lunes"] == 1
        assert counts["Viernes"] == 1
        assert counts["Sábado"] == 0
        assert list(counts) == ALL_DAYS
