"""Tests for ledger_notify.main entry point."""

from __future__ import annotations

from unittest.mock import patch


def test_main_calls_uvicorn_run(monkeypatch) -> None:
    """Verify that main() delegates to uvicorn.run with expected args."""
    monkeypatch.setenv("LEDGERNOTIFY_CONFIG_PATH", "")
    monkeypatch.setattr("sys.argv", ["ledger-notify"])
    with patch("ledger_notify.main.uvicorn.run") as mock_run:
        from ledger_notify.main import main

        main()
        mock_run.assert_called_once()
        call_kwargs = mock_run.call_args
        assert call_kwargs[0][0] == "ledger_notify.api.app:create_app"
        assert call_kwargs[1]["factory"] is True
        assert call_kwargs[1]["port"] == 3000


def test_main_reads_config_file(monkeypatch, tmp_path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("server:\n  port: 4100\ndebug: true\n")
    monkeypatch.setenv("LEDGERNOTIFY_CONFIG_PATH", "")
    monkeypatch.setattr("sys.argv", ["ledger-notify", "--config", str(config)])
    with patch("ledger_notify.main.uvicorn.run") as mock_run:
        from ledger_notify.main import main

        main()
        assert mock_run.call_args[1]["port"] == 4100
        assert mock_run.call_args[1]["log_level"] == "debug"
