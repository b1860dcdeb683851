"""
Tests for the command line and environment config.
"""

import json

import pytest

from ..cli import main
from ..config import ClientConfig

PREVIOUS = json.dumps([[2, 2, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]])
NEXT = json.dumps([[4, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 2, 0]])


class TestReconcileCommand:
    def test_prints_one_op_per_line(self, capsys):
        main(["reconcile", PREVIOUS, NEXT, "left"])

        lines = capsys.readouterr().out.splitlines()
        ops = [json.loads(line) for line in lines if line.startswith("{")]
        assert [op["type"] for op in ops] == ["merge", "spawn"]
        assert ops[0]["to"] == [0, 0]
        assert "2 2 . ." in lines

    def test_reports_inconsistencies(self, capsys):
        main(["reconcile", PREVIOUS, json.dumps([[8, 0, 0, 0]] + [[0] * 4] * 3), "left"])

        assert "Inconsistencies:" in capsys.readouterr().out

    def test_rejects_invalid_board(self, capsys):
        with pytest.raises(SystemExit):
            main(["reconcile", PREVIOUS, json.dumps([[3, 0, 0, 0]] + [[0] * 4] * 3), "left"])
        assert "next board is invalid" in capsys.readouterr().out

    def test_rejects_non_json(self, capsys):
        with pytest.raises(SystemExit):
            main(["reconcile", "[[2,2", NEXT, "left"])
        assert "not JSON" in capsys.readouterr().out

    def test_no_command_prints_help(self):
        with pytest.raises(SystemExit):
            main([])


class TestConfig:
    def test_defaults(self):
        config = ClientConfig()
        assert (config.slide_ms, config.settle_ms, config.notify_ms) == (120, 160, 3000)
        assert config.http_timeout is None

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TILEFLOW_RULES_URL", "http://rules:9000/")
        monkeypatch.setenv("TILEFLOW_SLIDE_MS", "50")
        monkeypatch.setenv("TILEFLOW_HTTP_TIMEOUT", "2.5")
        monkeypatch.setenv("TILEFLOW_SESSION_IDLE_S", "90")
        monkeypatch.setenv("TILEFLOW_LOG_LEVEL", "debug")
        monkeypatch.setenv("ALLOWED_ORIGINS", "http://a,http://b")

        config = ClientConfig.from_env()

        assert config.rules_url == "http://rules:9000"
        assert config.slide_ms == 50
        assert config.settle_ms == 160
        assert config.http_timeout == 2.5
        assert config.session_idle_s == 90
        assert config.log_level == "DEBUG"
        assert config.allowed_origins == ["http://a", "http://b"]

    def test_instant_has_no_phase_delay(self):
        config = ClientConfig.instant()
        assert config.slide_ms == config.settle_ms == 0
