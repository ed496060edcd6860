import pytest

from mcp_fetch import cli, mcp_server
from mcp_fetch.models import ToolResponse


def test_default_command_is_serve():
    args = cli.parse_args([])
    assert args.command == "serve"
    args = cli.parse_args(["--ignore-robots-txt"])
    assert args.command == "serve"
    assert args.ignore_robots_txt


def test_settings_from_args():
    args = cli.parse_args(
        ["get", "https://example.com", "--user-agent", "Bot/2", "--proxy-url", "http://p:1", "--no-clipboard"]
    )
    settings = cli.settings_from_args(args)
    assert settings.user_agent == "Bot/2"
    assert settings.proxy_url == "http://p:1"
    assert settings.publish_images is False
    assert settings.ignore_robots_txt is False


def test_get_prints_result(monkeypatch, capsys):
    seen = {}

    def _fake(url, max_length, start_index, raw, settings):
        seen.update(url=url, max_length=max_length, start_index=start_index, raw=raw)
        return ToolResponse(text="Contents of https://example.com:\nhi")

    monkeypatch.setattr(mcp_server, "handle_fetch", _fake)
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["get", "https://example.com", "--max-length", "5", "--start-index", "2", "--raw"])
    assert excinfo.value.code == 0
    assert capsys.readouterr().out == "Contents of https://example.com:\nhi\n"
    assert seen == {"url": "https://example.com", "max_length": 5, "start_index": 2, "raw": True}


def test_get_error_exits_non_zero(monkeypatch, capsys):
    monkeypatch.setattr(
        mcp_server, "handle_fetch", lambda *args, **kwargs: ToolResponse(text="Error: nope", is_error=True)
    )
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["get", "https://example.com"])
    assert excinfo.value.code == 1
    assert capsys.readouterr().err == "Error: nope\n"


def test_serve_startup_failure_exits_non_zero(monkeypatch):
    def _boom():
        raise OSError("stdio unavailable")

    monkeypatch.setattr(mcp_server.mcp, "run", _boom)
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["serve"])
    assert excinfo.value.code == 1
