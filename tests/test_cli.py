import json
import logging

import pytest
import requests

import live_visualizer.cli as cli_module
from live_visualizer.client import VisualizerClient


@pytest.fixture
def run_cli(monkeypatch, tmp_path, session):
    monkeypatch.setenv("LIVE_VISUALIZER_CONFIG_PATH", str(tmp_path / "none.json"))
    monkeypatch.delenv("LIVE_VISUALIZER_URL", raising=False)
    monkeypatch.delenv("LIVE_VISUALIZER_LOG_PATH", raising=False)
    monkeypatch.delenv("LIVE_VISUALIZER_VERBOSE", raising=False)
    created = []
    logging_calls = []
    monkeypatch.setattr(
        cli_module,
        "configure_logging",
        lambda level, **kwargs: logging_calls.append({"level": level, **kwargs}),
    )

    def factory(settings):
        client = VisualizerClient(settings, session=session)
        created.append(client)
        return client

    monkeypatch.setattr(cli_module, "VisualizerClient", factory)

    def run(*argv):
        return cli_module.main(list(argv)), created

    run.logging_calls = logging_calls
    return run


def test_status_reachable(run_cli, session, capsys):
    session.queue([])

    code, clients = run_cli("--url", "http://viz:7000", "status")

    assert code == 0
    assert clients[0].base_url == "http://viz:7000"
    assert session.calls[0]["url"] == "http://viz:7000/api/live/structures"
    assert "reachable" in capsys.readouterr().out
    assert session.closed


def test_status_unreachable(run_cli, session, capsys):
    session.queue(requests.ConnectionError("refused"))

    code, _ = run_cli("status")

    assert code == 1
    assert "unreachable" in capsys.readouterr().out


def test_list_prints_json(run_cli, session, capsys):
    session.queue([{"name": "list1"}])

    code, _ = run_cli("list")

    assert code == 0
    assert json.loads(capsys.readouterr().out) == [{"name": "list1"}]


def test_show_and_matrix(run_cli, session, capsys):
    session.queue({"name": "list1", "nodes": []})
    assert run_cli("show", "list1")[0] == 0
    assert json.loads(capsys.readouterr().out)["name"] == "list1"

    session.queue({"cells": []})
    assert run_cli("matrix")[0] == 0
    assert json.loads(capsys.readouterr().out) == {"cells": []}


def test_delete_exit_code(run_cli, session):
    session.queue({"success": True})
    assert run_cli("delete", "list1")[0] == 0

    session.queue({"error": "Structure not found"})
    assert run_cli("--verbose", "delete", "list1")[0] == 1


def test_demo_runs_full_lifecycle(run_cli, session, capsys):
    session.queue({"id": 1})
    session.queue({"node": {"id": 7}})
    session.queue({"node": {"id": 7, "value": 99}})
    session.queue({"success": True})
    session.queue({"name": "cli_demo", "nodes": [{"id": 7, "dropped": True}]})
    session.queue({"success": True})

    code, _ = run_cli("demo")

    assert code == 0
    methods = [call["method"] for call in session.calls]
    assert methods == ["POST", "POST", "PUT", "DELETE", "GET", "DELETE"]
    assert session.bodies()[2] == {"value": 99, "metadata": {"color": "red"}}
    assert json.loads(capsys.readouterr().out)["name"] == "cli_demo"


def test_demo_still_deletes_when_create_fails(run_cli, session):
    session.queue("")
    session.queue({"success": True})

    code, _ = run_cli("demo", "--name", "broken")

    assert code == 1
    assert session.calls[-1]["method"] == "DELETE"
    assert session.calls[-1]["url"].endswith("/api/live/structure/broken")


def _write_config(tmp_path, monkeypatch, data):
    path = tmp_path / "live_visualizer.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    monkeypatch.setenv("LIVE_VISUALIZER_CONFIG_PATH", str(path))


def test_unknown_log_level_is_a_usage_error(run_cli, session, tmp_path, monkeypatch, capsys):
    _write_config(tmp_path, monkeypatch, {"logging": {"log_level": "chatty"}})

    with pytest.raises(SystemExit) as excinfo:
        run_cli("status")

    assert excinfo.value.code == 2
    assert "Unknown log level: CHATTY" in capsys.readouterr().err
    assert session.calls == []


def test_bad_config_value_is_a_usage_error(run_cli, tmp_path, monkeypatch, capsys):
    _write_config(tmp_path, monkeypatch, {"client": {"timeout": "soon"}})

    with pytest.raises(SystemExit) as excinfo:
        run_cli("list")

    assert excinfo.value.code == 2
    assert "client.timeout" in capsys.readouterr().err


def test_logging_levels_follow_flags(run_cli, session, tmp_path, monkeypatch):
    _write_config(tmp_path, monkeypatch, {"logging": {"log_level": "error"}})
    for _ in range(3):
        session.queue([])

    run_cli("status")
    run_cli("--verbose", "status")
    run_cli("--debug", "status")

    assert [call["level"] for call in run_cli.logging_calls] == [logging.ERROR, logging.INFO, logging.DEBUG]
    assert [call["debug"] for call in run_cli.logging_calls] == [False, False, True]
