"""
Tests for page-size clamping and keyset cursors.
"""
from datetime import datetime, timedelta

import pytest

from mission_control.errors import ValidationError
from mission_control.models.activity import Activity
from mission_control.services.pagination import (
    clamp_limit,
    decode_cursor,
    encode_cursor,
    paginate,
)


class TestClampLimit:

    def test_default(self):
        assert clamp_limit(None) == 50

    def test_explicit_default(self):
        assert clamp_limit(None, 20) == 20

    def test_hard_ceiling(self):
        assert clamp_limit(500) == 100
        assert clamp_limit(100) == 100

    def test_floor(self):
        assert clamp_limit(0) == 1
        assert clamp_limit(-5) == 1


class TestCursor:

    def test_decode_returns_encoded_position(self):
        created_at = datetime(2026, 3, 1, 12, 30, 15, 250000)
        assert decode_cursor(encode_cursor(created_at, 42)) == (created_at, 42)

    @pytest.mark.parametrize("cursor", ["not-a-cursor", "e30=", "WyJub3QgYSBkYXRlIiwgMV0="])
    def test_malformed_cursor(self, cursor):
        with pytest.raises(ValidationError):
            decode_cursor(cursor)


class TestPaginate:

    @pytest.fixture
    def activities(self, db):
        base = datetime(2026, 1, 1, 9, 0, 0)
        rows = [
            Activity(action=f"step_{i}", agent_name="System", created_at=base + timedelta(minutes=i))
            for i in range(5)
        ]
        db.add_all(rows)
        db.commit()
        return rows

    def test_walks_every_row_once_newest_first(self, db, activities):
        seen = []
        cursor = None
        while True:
            page = paginate(db.query(Activity), Activity, cursor, 2)
            seen.extend(a.action for a in page.items)
            if page.is_done:
                break
            cursor = page.cursor
        assert seen == ["step_4", "step_3", "step_2", "step_1", "step_0"]

    def test_no_cursor_when_rows_fit(self, db, activities):
        page = paginate(db.query(Activity), Activity, None, 5)
        assert len(page.items) == 5
        assert page.cursor is None
        assert page.is_done

    def test_cursor_when_more_remain(self, db, activities):
        page = paginate(db.query(Activity), Activity, None, 4)
        assert len(page.items) == 4
        assert page.cursor is not None

    def test_ties_on_created_at_break_by_id(self, db):
        same = datetime(2026, 1, 1, 9, 0, 0)
        db.add_all([Activity(action=f"tie_{i}", created_at=same) for i in range(3)])
        db.commit()

        first = paginate(db.query(Activity), Activity, None, 2)
        second = paginate(db.query(Activity), Activity, first.cursor, 2)
        actions = [a.action for a in first.items + second.items]
        assert actions == ["tie_2", "tie_1", "tie_0"]
