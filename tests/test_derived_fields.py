from datetime import datetime, timedelta

import pytest

from taskboard.services import derived_fields as df

NOW = datetime(2024, 5, 10, 12, 0, 0)


def _subs(*flags):
    return [{"title": f"s{i}", "completed": f} for i, f in enumerate(flags)]


@pytest.mark.parametrize(
    "flags, expected",
    [
        ((), 0),
        ((True,), 100),
        ((True, False), 50),
        ((True, False, False), 33),
        ((True, True, False), 67),
        ((True,) + (False,) * 7, 13),
    ],
)
def test_completion_percentage_rounds_half_up(flags, expected):
    assert df.completion_percentage(_subs(*flags)) == expected


def test_is_overdue_only_for_open_tasks_past_due():
    past = NOW - timedelta(hours=1)
    assert df.is_overdue({"due_date": past, "status": "pending"}, NOW) is True
    assert df.is_overdue({"due_date": past, "status": "in-progress"}, NOW) is True
    assert df.is_overdue({"due_date": past, "status": "completed"}, NOW) is False
    assert df.is_overdue({"due_date": NOW + timedelta(hours=1), "status": "pending"}, NOW) is False
    assert df.is_overdue({"due_date": None, "status": "pending"}, NOW) is False


def test_days_until_due_uses_calendar_days():
    assert df.days_until_due({"due_date": None}, NOW) is None
    # menos de 24h pero al día siguiente
    assert df.days_until_due({"due_date": datetime(2024, 5, 11, 1, 0)}, NOW) == 1
    assert df.days_until_due({"due_date": datetime(2024, 5, 10, 23, 59)}, NOW) == 0
    assert df.days_until_due({"due_date": datetime(2024, 5, 7, 18, 0)}, NOW) == -3


def test_aggregate_status():
    assert df.aggregate_status("pending", _subs(True, True)) == "completed"
    assert df.aggregate_status("in-progress", _subs(True, False)) == "in-progress"
    assert df.aggregate_status("completed", _subs(True, False)) == "in-progress"
    assert df.aggregate_status("pending", _subs(False, False)) == "pending"
    assert df.aggregate_status("completed", []) == "completed"
    assert df.aggregate_status("pending", []) == "pending"


def test_task_fields_keys():
    task = {"due_date": NOW - timedelta(days=2), "status": "pending", "subtasks": _subs(True, False)}
    assert df.task_fields(task, NOW) == {
        "is_overdue": True,
        "days_until_due": -2,
        "completion_percentage": 50,
    }


def test_note_fields_formats_date():
    assert df.formatted_date(datetime(2024, 5, 1, 10, 0)) == "May 1, 2024"
    assert df.day_of_year(datetime(2024, 12, 31)) == 366
    assert df.note_fields({"date": datetime(2024, 5, 1, 10, 0)}) == {
        "formatted_date": "May 1, 2024",
        "day_of_year": 122,
    }


def test_note_fields_falls_back_to_created_at():
    fields = df.note_fields({"date": None, "created_at": datetime(2023, 1, 2)})
    assert fields == {"formatted_date": "January 2, 2023", "day_of_year": 2}


def test_initials():
    assert df.initials("Ana Maria") == "AM"
    assert df.initials("  josé   luis pérez ") == "JLP"
    assert df.initials("") == ""
    assert df.initials(None) == ""
