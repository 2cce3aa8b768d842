from __future__ import annotations

import json

import pytest

from doctrans import cli
from doctrans.config import DEFAULT_CONFIG, load_config

from tests.fakes import FakeAIService, mapping


@pytest.fixture
def configured(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"openai": {"api_key": "sk-test"}}), encoding="utf-8")
    monkeypatch.setenv("DOCTRANS_CONFIG", str(path))
    return path


@pytest.fixture
def fake_service(monkeypatch):
    created: list[dict] = []

    def build(**kwargs):
        created.append(kwargs)
        return FakeAIService(mapping(str.upper))

    monkeypatch.setattr(cli, "AIService", build)
    return created


def test_init_config_writes_defaults(tmp_path, capsys) -> None:
    target = tmp_path / "config" / "config.json"

    assert cli.main(["init-config", "--path", str(target)]) == 0
    assert load_config(target) == DEFAULT_CONFIG
    assert str(target) in capsys.readouterr().out


def test_translate_requires_api_key(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("DOCTRANS_CONFIG", str(tmp_path / "absent.json"))
    source = tmp_path / "doc.json"
    source.write_text('{"title": "Hello"}', encoding="utf-8")

    assert cli.main(["translate", str(source), "--source", "en", "--target", "tr"]) == 1
    assert "API key not configured" in capsys.readouterr().err


def test_translate_rejects_unreadable_input(tmp_path, capsys) -> None:
    source = tmp_path / "broken.json"
    source.write_text("{oops", encoding="utf-8")

    assert cli.main(["translate", str(source), "--source", "en", "--target", "tr"]) == 1
    assert "Cannot read" in capsys.readouterr().err


def test_translate_prints_document(tmp_path, configured, fake_service, capsys) -> None:
    source = tmp_path / "doc.json"
    source.write_text(json.dumps({"title": "Hello", "id": "a-1", "code": "X1"}), encoding="utf-8")

    exit_code = cli.main(["translate", str(source), "--source", "en", "--target", "tr", "--protect", "code"])

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out) == {"title": "HELLO", "id": "a-1", "code": "X1"}
    assert fake_service[0]["model_override"] is None
    assert fake_service[0]["provider_override"] is None


def test_translate_writes_output_file(tmp_path, configured, fake_service) -> None:
    source = tmp_path / "doc.json"
    source.write_text(json.dumps(["Günaydın"]), encoding="utf-8")
    target = tmp_path / "out.json"

    exit_code = cli.main([
        "translate", str(source), "--source", "tr", "--target", "en", "--model", "gpt-4o", "--output", str(target),
    ])

    assert exit_code == 0
    assert json.loads(target.read_text(encoding="utf-8")) == ["GÜNAYDIN"]
    assert fake_service[0]["model_override"] == "gpt-4o"
