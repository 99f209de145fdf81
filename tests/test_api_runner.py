"""
tests/test_api_runner.py — ``python -m bittap.api`` Entry Point
================================================================
"""

from __future__ import annotations

from unittest.mock import patch

from bittap.api import __main__ as api_main


class TestApiRunner:
    def test_serves_on_configured_port(self, game_config, monkeypatch):
        monkeypatch.setattr(api_main, "load_config", lambda: game_config)

        with patch.object(api_main.uvicorn, "run") as run:
            api_main.main()

        run.assert_called_once()
        assert run.call_args.args[0] == "bittap.api.main:app"
        assert run.call_args.kwargs["port"] == game_config.api_port
