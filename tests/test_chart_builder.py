"""Tests for chart series."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from ccmeter.models.log_entry import UsageRecord
from ccmeter.services.chart_builder import build_chart_data, get_chart_data
from ccmeter.utils.data_source import ClaudeCodeDataSource

from .conftest import assistant_record, iso, write_log


def _entry(when, model="claude-sonnet-4", project="p", input_tokens=100, output_tokens=0):
    return UsageRecord(
        timestamp=when,
        model=model,
        project=project,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
    )


class TestBuildChartData:
    """Tests for grouping and ordering of chart series."""

    def test_daily_sorted_by_date(self):
        entries = [
            _entry(datetime(2026, 3, 9, 8, tzinfo=timezone.utc)),
            _entry(datetime(2026, 3, 7, 8, tzinfo=timezone.utc)),
            _entry(datetime(2026, 3, 9, 20, tzinfo=timezone.utc), output_tokens=10),
        ]

        chart = build_chart_data(entries)

        assert [d.date for d in chart.daily] == ["2026-03-07", "2026-03-09"]
        assert chart.daily[1].messages == 2
        assert chart.daily[1].input_tokens == 200
        assert chart.daily[1].output_tokens == 10
        assert chart.daily[0].cost == Decimal("0.0003")

    def test_hourly_sorted_by_hour(self):
        entries = [
            _entry(datetime(2026, 3, 9, 22, tzinfo=timezone.utc)),
            _entry(datetime(2026, 3, 8, 3, tzinfo=timezone.utc)),
            _entry(datetime(2026, 3, 9, 3, 45, tzinfo=timezone.utc)),
        ]

        chart = build_chart_data(entries)

        assert [h.hour for h in chart.hourly] == [3, 22]
        assert chart.hourly[0].messages == 2
        assert chart.hourly[0].tokens == 200

    def test_models_and_projects_largest_first(self):
        when = datetime(2026, 3, 9, tzinfo=timezone.utc)
        entries = [
            _entry(when, model="claude-3-haiku", project="small", input_tokens=10),
            _entry(when, model="claude-opus-4", project="big", input_tokens=500),
            _entry(when, model="claude-sonnet-4", project="mid", input_tokens=200),
            _entry(when, model="claude-3-haiku", project="mid", input_tokens=5),
        ]

        chart = build_chart_data(entries)

        assert [m.name for m in chart.by_model] == [
            "claude-opus-4",
            "claude-sonnet-4",
            "claude-3-haiku",
        ]
        assert chart.by_model[2].tokens == 15
        assert [p.name for p in chart.by_project] == ["big", "mid", "small"]
        assert chart.by_project[1].tokens == 205

    def test_ties_keep_first_seen_order(self):
        when = datetime(2026, 3, 9, tzinfo=timezone.utc)
        chart = build_chart_data(
            [_entry(when, project="first"), _entry(when, project="second")]
        )
        assert [p.name for p in chart.by_project] == ["first", "second"]

    def test_empty(self):
        chart = build_chart_data([])
        assert chart.daily == []
        assert chart.hourly == []
        assert chart.by_model == []
        assert chart.by_project == []


class TestGetChartData:
    """Tests for reading a trailing window from a data source."""

    def test_window_excludes_old_records(self, projects_dir):
        now = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
        write_log(
            projects_dir / "-a",
            "s.jsonl",
            [
                assistant_record(uuid="old", timestamp=iso(now - timedelta(days=40))),
                assistant_record(uuid="new", timestamp=iso(now - timedelta(days=2))),
            ],
        )
        source = ClaudeCodeDataSource(base_path=str(projects_dir))

        chart = get_chart_data(source, days=30, now=now)

        assert [d.date for d in chart.daily] == ["2026-03-08"]
        assert chart.by_project[0].name == "-a"
