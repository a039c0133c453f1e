import locale

import pytest
from colorama import Style

from jira_worklog_summary.aggregator import Bucket
from jira_worklog_summary.formatter import (format_duration, humanize_duration, order_buckets, render_lines,
                                            use_system_collation)
from jira_worklog_summary.users import Assignee


def bucket(login, total, per_issue=None, display=None):
    a = Assignee(token=login, account_key=login, login_name=login, display_name=display or login, email="")
    return Bucket(a, total, dict(per_issue or {}))


def test_order_by_username_is_case_insensitive_ascending():
    rows = order_buckets([bucket("bob", 1), bucket("Alice", 2), bucket("carol", 3)], "username")
    assert [r.label for r in rows] == ["Alice", "bob", "carol"]


def test_order_by_duration_is_descending_and_stable_on_ties():
    rows = order_buckets([bucket("x", 10), bucket("y", 30), bucket("z", 10)], "duration")
    assert [r.label for r in rows] == ["y", "x", "z"]


def test_details_always_sorted_by_duration_descending():
    rows = order_buckets([bucket("x", 60, {"A-1": 10, "A-2": 40, "A-3": 10})], "username")
    assert rows[0].details == [("A-2", 40), ("A-1", 10), ("A-3", 10)]


def test_display_name_label():
    rows = order_buckets([bucket("jdoe", 0, display="John Doe")], "username", use_display_name=True)
    assert rows[0].label == "John Doe"


def test_format_duration_in_work_days():
    assert format_duration(6 * 3600) == "1.00d"
    assert format_duration(2 * 3600, hours_in_day=8, no_units=True) == "0.25"


def test_humanize_duration_uses_working_calendar():
    assert humanize_duration(0) == "0 minutes"
    assert humanize_duration(6 * 3600 + 3600 + 120) == "1 day, 1 hour, 2 minutes"
    assert humanize_duration(8 * 3600, hours_in_day=8) == "1 day"
    assert format_duration(90, humanize=True) == "2 minutes"


def test_render_lines_plain_with_total():
    rows = order_buckets([bucket("a", 3600), bucket("b", 7200)], "username")
    lines = render_lines(rows, lambda s: str(s), delimiter=";", color=False)
    assert lines == ["a;3600", "b;7200", "", "Total;10800"]


def test_render_lines_detailed_with_links_and_hidden_total():
    rows = order_buckets([bucket("a", 30, {"K-1": 10, "K-2": 20})], "username")
    lines = render_lines(rows, str, detailed=True, hide_total=True, color=False,
                         browse_url=lambda k: f"https://j/browse/{k}")
    assert lines == ["a\t30", "\tK-2 (https://j/browse/K-2)\t20", "\tK-1 (https://j/browse/K-1)\t10", ""]


def test_render_lines_colored():
    rows = order_buckets([bucket("a", 1)], "username")
    lines = render_lines(rows, str, hide_total=True, color=True)
    assert Style.RESET_ALL in lines[0]


@pytest.fixture
def english_collation():
    previous = locale.setlocale(locale.LC_COLLATE)
    for name in ("en_US.UTF-8", "en_US.utf8", "en_GB.UTF-8", "en_GB.utf8"):
        try:
            locale.setlocale(locale.LC_COLLATE, name)
            break
        except locale.Error:
            continue
    else:
        pytest.skip("no English UTF-8 locale installed")
    yield
    locale.setlocale(locale.LC_COLLATE, previous)


def test_order_by_username_follows_locale_collation(english_collation):
    rows = order_buckets([bucket("zoe", 1), bucket("émile", 2), bucket("adam", 3)], "username")
    assert [r.label for r in rows] == ["adam", "émile", "zoe"]


def test_use_system_collation_sets_lc_collate(monkeypatch):
    calls = []
    monkeypatch.setattr(locale, "setlocale", lambda category, name=None: calls.append((category, name)))
    use_system_collation()
    assert calls == [(locale.LC_COLLATE, "")]


def test_use_system_collation_tolerates_missing_locale(monkeypatch):
    def broken(category, name=None):
        raise locale.Error("unsupported locale setting")

    monkeypatch.setattr(locale, "setlocale", broken)
    use_system_collation()
