import json

import httpx
import pytest
from click.testing import CliRunner

from chatbuysell import AsyncChatBuySell, config
from chatbuysell.cli.main import main
from chatbuysell.session import SESSION_KEY
from chatbuysell.storage import JsonFileStore


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "CONFIG_FILE", tmp_path / "config.json")
    monkeypatch.setenv("CHATBUYSELL_STORE", str(tmp_path / "store.json"))
    monkeypatch.delenv("CHATBUYSELL_BASE_URL", raising=False)
    return tmp_path


def sign_in(home) -> None:
    user = {"id": "u1", "username": "An", "type": "buyer"}
    JsonFileStore(home / "store.json").set(SESSION_KEY, json.dumps(user))


def test_whoami_anonymous(home):
    result = CliRunner().invoke(main, ["whoami"])
    assert result.exit_code == 0
    assert "Not logged in" in result.output


def test_whoami_and_logout(home):
    sign_in(home)
    runner = CliRunner()
    result = runner.invoke(main, ["whoami"])
    assert result.exit_code == 0
    assert "u1" in result.output

    assert runner.invoke(main, ["logout"]).exit_code == 0
    assert JsonFileStore(home / "store.json").get(SESSION_KEY) is None


def test_cli_client_does_not_autoload_rooms(home, monkeypatch):
    sign_in(home)
    requests = []

    def backend(request):
        requests.append(f"{request.method} {request.url.path}")
        return httpx.Response(200, json={"success": True})

    real = AsyncChatBuySell.from_settings.__func__

    def from_settings(cls, settings, **kwargs):
        return real(cls, settings, transport=httpx.MockTransport(backend), **kwargs)

    monkeypatch.setattr(AsyncChatBuySell, "from_settings", classmethod(from_settings))
    result = CliRunner().invoke(main, ["classify", "m1", "question"])
    assert result.exit_code == 0, result.output
    assert requests == ["POST /api/chat/classify"]


def test_classify_rejects_unknown_type(home):
    sign_in(home)
    result = CliRunner().invoke(main, ["classify", "m1", "spam"])
    assert result.exit_code == 2


def test_commands_require_login(home):
    result = CliRunner().invoke(main, ["rooms"])
    assert result.exit_code == 1


def test_config_set_url(home):
    result = CliRunner().invoke(main, ["config", "set-url", "http://backend.test/"])
    assert result.exit_code == 0
    assert json.loads((home / "config.json").read_text()) == {"base_url": "http://backend.test"}
    assert config.load_settings().base_url == "http://backend.test"
