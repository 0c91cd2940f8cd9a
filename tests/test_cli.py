"""Tests for the contentguard CLI."""

import tempfile
from pathlib import Path

from click.testing import CliRunner

from contentguard.cli import main
from contentguard.moderation.errors import LedgerError


def _invoke(tmpdir: str, *args: str):
    runner = CliRunner()
    return runner.invoke(
        main,
        list(args),
        env={"CONTENTGUARD_DATA_DIR": tmpdir, "CONTENTGUARD_CONFIG": "", "CONTENTGUARD_LOG_LEVEL": "ERROR"},
    )


def test_check_clean_text():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _invoke(tmpdir, "check", "a cute robot holding a flower")
        assert result.exit_code == 0
        assert "Content allowed" in result.output


def test_check_rejected_text_records_violation():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _invoke(tmpdir, "check", "naked person on beach", "--user", "u1")
        assert result.exit_code == 1
        assert "account_suspended" in result.output

        history = _invoke(tmpdir, "history", "u1")
        assert history.exit_code == 0
        assert "BLOCKED" in history.output


def test_sanitize():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _invoke(tmpdir, "sanitize", "a hot dog stand")
        assert result.exit_code == 0
        assert result.output.strip() == "a dog stand"


def test_violations_and_stats():
    with tempfile.TemporaryDirectory() as tmpdir:
        assert "No matching violations" in _invoke(tmpdir, "violations").output
        _invoke(tmpdir, "check", "toy gun", "--user", "u2")
        listing = _invoke(tmpdir, "violations", "--user", "u2")
        assert listing.exit_code == 0
        assert "1 total" in listing.output
        stats = _invoke(tmpdir, "stats")
        assert stats.exit_code == 0
        assert "u2" in stats.output


def test_block_unblock_cycle():
    with tempfile.TemporaryDirectory() as tmpdir:
        assert _invoke(tmpdir, "block", "u3", "--reason", "abuse").exit_code == 0
        assert "BLOCKED" in _invoke(tmpdir, "history", "u3").output
        unblock = _invoke(tmpdir, "unblock", "u3")
        assert unblock.exit_code == 0
        assert "1 violations resolved" in unblock.output
        assert "allowed" in _invoke(tmpdir, "history", "u3").output


def test_resolve_unknown_violation():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _invoke(tmpdir, "resolve", "does-not-exist")
        assert result.exit_code == 1
        assert "Violation not found" in result.output


def test_sanitize_keeps_bracketed_text():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _invoke(tmpdir, "sanitize", "a [bold]robot[/bold] toy")
        assert result.exit_code == 0
        assert result.output.strip() == "a [bold]robot[/bold] toy"

        stray = _invoke(tmpdir, "sanitize", "close [/] bracket")
        assert stray.exit_code == 0
        assert stray.output.strip() == "close [/] bracket"


def test_bracketed_user_id_is_shown_verbatim():
    with tempfile.TemporaryDirectory() as tmpdir:
        assert _invoke(tmpdir, "block", "[/]mallory").exit_code == 0
        history = _invoke(tmpdir, "history", "[/]mallory")
        assert history.exit_code == 0
        assert "[/]mallory" in history.output
        assert _invoke(tmpdir, "violations").exit_code == 0
        assert _invoke(tmpdir, "stats").exit_code == 0


def test_unwritable_data_dir_is_reported():
    with tempfile.TemporaryDirectory() as tmpdir:
        blocker = Path(tmpdir) / "not-a-dir"
        blocker.write_text("")
        result = _invoke(str(blocker), "sanitize", "a robot")
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert not isinstance(result.exception, LedgerError)


def test_check_reports_ledger_write_failure():
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "ledger" / "violations.jsonl").mkdir(parents=True)
        result = _invoke(tmpdir, "check", "naked person", "--user", "u1")
        assert result.exit_code == 1
        assert "Could not record violation" in result.output
        assert not isinstance(result.exception, LedgerError)
