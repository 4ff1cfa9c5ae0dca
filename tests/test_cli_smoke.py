"""
Minimal smoke tests for pt-scheduler CLI.

Tests basic functionality:
- App runs without errors
- Sessions are listed with double-booking flags
- Lifecycle commands write to the store
- Moves and date toggles change the schedule
- Stats and calendar export run
"""

import json
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from pt_scheduler.cli.main import app


runner = CliRunner()

CLIENTS = [
    {
        "id": "c1",
        "name": "Ana",
        "totalFee": 300,
        "paidAmount": 300,
        "expiryDate": "2024-03-31",
        "defaultTimeSlot": "09:00",
        "sessions": [
            {"id": "s1", "date": "2024-03-04", "time": "09:00", "completed": True},
            {"id": "s2", "date": "2024-03-11", "time": "09:00"},
        ],
    },
    {
        "id": "c2",
        "name": "Ben",
        "totalFee": 200,
        "expiryDate": "2024-04-30",
        "defaultTimeSlot": "18:00",
        "sessions": [
            {"id": "s3", "date": "2024-03-11", "time": "09:00", "status": "scheduled"},
        ],
    },
]


@pytest.fixture
def store_path():
    """Create a temporary clients file with two double-booked sessions."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "clients.json"
        path.write_text(json.dumps(CLIENTS), encoding="utf-8")
        yield path


def _session(store_path: Path, session_id: str) -> dict:
    for client in json.loads(store_path.read_text(encoding="utf-8")):
        for s in client["sessions"]:
            if s["id"] == session_id:
                return s
    raise KeyError(session_id)


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        """Test that app runs and shows help."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "toggle-date" in result.output

    def test_schedule_json_flags_conflicts(self, store_path):
        """Test schedule --json returns rows with double-booking flags."""
        result = runner.invoke(app, ["schedule", "-p", str(store_path), "--history", "--json"])

        assert result.exit_code == 0
        rows = {r["id"]: r for r in json.loads(result.output)}
        assert set(rows) == {"s1", "s2", "s3"}
        assert rows["s2"]["isDoubleBooked"] and rows["s3"]["isDoubleBooked"]
        assert not rows["s1"]["isDoubleBooked"]
        assert rows["s1"]["status"] == "completed"

    def test_schedule_hides_history_by_default(self, store_path):
        """Test completed sessions are hidden without --history."""
        result = runner.invoke(app, ["schedule", "-p", str(store_path), "--json"])

        assert result.exit_code == 0
        assert [r["id"] for r in json.loads(result.output)] == ["s2", "s3"]

    def test_conflicts_lists_slot(self, store_path):
        """Test conflicts shows the shared slot."""
        result = runner.invoke(app, ["conflicts", "-p", str(store_path)])

        assert result.exit_code == 0
        assert "2024-03-11 09:00" in result.output

    def test_complete_writes_store(self, store_path):
        """Test complete records intensity and feedback."""
        result = runner.invoke(app, [
            "complete", "s2",
            "-p", str(store_path),
            "--intensity", "8",
            "--feedback", "Good form",
        ])

        assert result.exit_code == 0
        assert "Completed" in result.output
        stored = _session(store_path, "s2")
        assert (stored["status"], stored["completed"], stored["intensity"]) == ("completed", True, 8)

    def test_complete_rejects_bad_intensity(self, store_path):
        """Test an out-of-range intensity is an error and nothing is written."""
        before = store_path.read_text(encoding="utf-8")
        result = runner.invoke(app, ["complete", "s2", "-p", str(store_path), "-i", "11"])

        assert result.exit_code == 1
        assert "Error" in result.output
        assert store_path.read_text(encoding="utf-8") == before

    def test_unknown_session_is_not_an_error(self, store_path):
        """Test a stale session id changes nothing and exits cleanly."""
        result = runner.invoke(app, ["cancel", "ghost", "-p", str(store_path)])

        assert result.exit_code == 0
        assert "not found" in result.output

    def test_miss_then_complete(self, store_path):
        """Test a missed session can still be logged as completed."""
        runner.invoke(app, ["miss", "s2", "-p", str(store_path)])
        assert _session(store_path, "s2")["status"] == "missed"

        result = runner.invoke(app, ["complete", "s2", "-p", str(store_path), "-i", "6"])
        assert result.exit_code == 0
        stored = _session(store_path, "s2")
        assert (stored["status"], stored["completed"], stored["intensity"]) == ("completed", True, 6)

        runner.invoke(app, ["reset", "s2", "-p", str(store_path)])
        assert _session(store_path, "s2")["status"] == "scheduled"

    def test_reschedule(self, store_path):
        """Test reschedule moves a session and requires both values."""
        result = runner.invoke(app, [
            "reschedule", "s1", "-p", str(store_path), "--date", "2024-03-20", "--time", "10:00",
        ])
        assert result.exit_code == 0
        stored = _session(store_path, "s1")
        assert (stored["date"], stored["time"], stored["status"]) == ("2024-03-20", "10:00", "scheduled")

        result = runner.invoke(app, ["reschedule", "s1", "-p", str(store_path), "--date", "2024-03-21"])
        assert result.exit_code == 1

    def test_move_resolves_conflict(self, store_path):
        """Test moving one of two double-booked sessions clears the conflict."""
        result = runner.invoke(app, ["move", "s3", "-p", str(store_path), "--hour", "10"])
        assert result.exit_code == 0
        assert _session(store_path, "s3")["time"] == "10:00"

        result = runner.invoke(app, ["conflicts", "-p", str(store_path)])
        assert "No double-bookings" in result.output

    def test_move_to_same_slot_changes_nothing(self, store_path):
        """Test dropping a session onto its own slot is a no-op."""
        result = runner.invoke(app, ["move", "s2", "-p", str(store_path), "--date", "2024-03-11"])

        assert result.exit_code == 0
        assert "Nothing changed" in result.output

    def test_move_requires_one_target(self, store_path):
        """Test move needs exactly one of --date or --hour."""
        result = runner.invoke(app, ["move", "s2", "-p", str(store_path)])
        assert result.exit_code == 1

    def test_toggle_date_books_and_removes(self, store_path):
        """Test toggle-date books a free date and un-books it again."""
        result = runner.invoke(app, ["toggle-date", "c1", "2024-03-18", "-p", str(store_path)])
        assert result.exit_code == 0
        assert "Booked 1" in result.output

        result = runner.invoke(app, ["toggle-date", "c1", "2024-03-18", "-p", str(store_path)])
        assert result.exit_code == 0
        assert "Removed" in result.output

    def test_toggle_date_recurring(self, store_path):
        """Test toggle-date --recurring books weekly up to the expiry date."""
        result = runner.invoke(app, [
            "toggle-date", "c2", "2024-04-01", "--recurring", "-p", str(store_path),
        ])

        assert result.exit_code == 0
        assert "Booked 5" in result.output

    def test_stats_json(self, store_path):
        """Test stats --json reports derived figures."""
        result = runner.invoke(app, ["stats", "-p", str(store_path), "--date", "2024-03-11", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["capacity"]["booked_hours"] == 2.0
        assert data["sessions_total"] == 3
        assert data["sessions_completed"] == 1
        assert data["monthly_revenue"] == 150.0
        assert data["collection_rate"] == 60

    def test_malformed_range_end_keeps_store_usable(self, store_path):
        """Test a session with a cleared end time does not break the store."""
        records = json.loads(store_path.read_text(encoding="utf-8"))
        records[0]["sessions"][1]["time"] = "09:00-"
        store_path.write_text(json.dumps(records), encoding="utf-8")

        result = runner.invoke(app, ["stats", "-p", str(store_path), "--date", "2024-03-11", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.output)["capacity"]["booked_hours"] == 2.0

    def test_stats_text(self, store_path):
        """Test stats prints the summary block."""
        result = runner.invoke(app, ["stats", "-p", str(store_path), "--date", "2024-03-11"])

        assert result.exit_code == 0
        assert "Business pulse" in result.output

    def test_renewals_with_malformed_expiry(self, store_path):
        """Test a bad expiry date on one client does not break renewals."""
        records = json.loads(store_path.read_text(encoding="utf-8"))
        records[0]["expiryDate"] = "end of March"
        store_path.write_text(json.dumps(records), encoding="utf-8")

        result = runner.invoke(app, ["renewals", "-p", str(store_path)])

        assert result.exit_code == 0
        assert "Ben" in result.output
        assert "Ana" not in result.output

    def test_export_ics_writes_file(self, store_path):
        """Test export-ics --all writes one event per session."""
        out = store_path.parent / "sessions.ics"
        result = runner.invoke(app, ["export-ics", "-p", str(store_path), "--all", "-o", str(out)])

        assert result.exit_code == 0
        assert "Exported 3" in result.output
        text = out.read_bytes().decode("utf-8")
        assert text.count("BEGIN:VEVENT") == 3
        assert "DTSTART:20240311T090000Z\r\n" in text

    def test_export_with_nothing_upcoming(self, store_path):
        """Test an empty export is informational, not an error."""
        out = store_path.parent / "sessions.ics"
        result = runner.invoke(app, ["export-ics", "-p", str(store_path), "-o", str(out)])

        assert result.exit_code == 0
        assert "No sessions to export" in result.output
        assert not out.exists()

    def test_calendar_link(self, store_path):
        """Test calendar-link prints a Google Calendar URL."""
        result = runner.invoke(app, ["calendar-link", "s2", "-p", str(store_path)])

        assert result.exit_code == 0
        assert "calendar.google.com" in result.output
        assert "20240311T090000Z" in result.output

    def test_corrupt_store_is_reported(self, store_path):
        """Test a malformed store file exits with an error."""
        store_path.write_text("{broken", encoding="utf-8")
        result = runner.invoke(app, ["schedule", "-p", str(store_path)])

        assert result.exit_code == 1
        assert "Error" in result.output
