"""Tests for the command-line entry point."""

from unittest.mock import MagicMock, patch

import run_triage


@patch("run_triage.TriageService")
def test_once_success(mock_service_cls, tmp_path):
    service = MagicMock()
    service.sync_now.return_value = {"ok": True, "updated": 3, "incremental": False}
    mock_service_cls.from_settings.return_value = service

    assert run_triage.main(["--once", "--settings", str(tmp_path / "absent.yaml")]) == 0

    service.sync_now.assert_called_once_with()
    service.start.assert_not_called()


@patch("run_triage.TriageService")
def test_once_failure(mock_service_cls, tmp_path):
    service = MagicMock()
    service.sync_now.return_value = {"ok": False, "updated": 0, "incremental": False, "error": "new: down"}
    mock_service_cls.from_settings.return_value = service

    assert run_triage.main(["--once", "--settings", str(tmp_path / "absent.yaml")]) == 1


@patch("run_triage.time.sleep", side_effect=KeyboardInterrupt)
@patch("run_triage.TriageService")
def test_runs_until_interrupted(mock_service_cls, mock_sleep, tmp_path):
    service = MagicMock()
    mock_service_cls.from_settings.return_value = service

    assert run_triage.main(["--settings", str(tmp_path / "absent.yaml")]) == 0

    service.start.assert_called_once_with()
    service.stop.assert_called_once_with()
