from __future__ import annotations

import copy
import json

import pytest

from doctrans.ai.exceptions import IntegrityError
from doctrans.translation import manager as manager_module
from doctrans.translation.manager import TranslationManager, TranslationResult, translate_document

from tests.fakes import FakeAIService, echo, failing, mapping

DOCUMENT = {
    "id": "scenario-7",
    "scene_type": "inbox",
    "title": "Welcome",
    "emails": [
        {
            "sender": "it@example.com",
            "subject": "Password reset",
            "body": "<p>Hello <b>{name}</b>, please review.</p>",
            "difficulty": "hard",
        }
    ],
    "score": 10,
}


@pytest.mark.asyncio
async def test_identity_backend_round_trips_the_document(config) -> None:
    service = FakeAIService(echo)

    result = await TranslationManager(service, config=config).translate(DOCUMENT, "en", "tr")

    assert result.success
    assert result.data == DOCUMENT
    assert result.error is None
    assert result.issues == []
    assert service.calls == [
        {"0": "Welcome", "1": "Password reset", "2": "__HTML0__Hello __HTML1__{name}__HTML2__, please review.__HTML3__"}
    ]


@pytest.mark.asyncio
async def test_translated_values_are_bound_with_tags_restored(config) -> None:
    replies = {
        "Welcome": "Hoş geldiniz",
        "Password reset": "Şifre sıfırlama",
        "__HTML0__Hello __HTML1__{name}__HTML2__, please review.__HTML3__":
            "__HTML0__Merhaba __HTML1__{name}__HTML2__, lütfen inceleyin.__HTML3__",
    }
    service = FakeAIService(mapping(replies.__getitem__))
    source = copy.deepcopy(DOCUMENT)

    result = await TranslationManager(service, config=config).translate(DOCUMENT, "en", "tr")

    assert DOCUMENT == source
    assert result.data["title"] == "Hoş geldiniz"
    assert result.data["emails"][0]["subject"] == "Şifre sıfırlama"
    assert result.data["emails"][0]["body"] == "<p>Merhaba <b>{name}</b>, lütfen inceleyin.</p>"
    assert result.data["emails"][0]["sender"] == "it@example.com"
    assert result.data["scene_type"] == "inbox"


@pytest.mark.asyncio
async def test_failing_backend_returns_the_source_values(config) -> None:
    result = await TranslationManager(FakeAIService(failing), config=config).translate(DOCUMENT, "en", "tr")

    assert result.success
    assert result.data == DOCUMENT
    assert result.error is None


@pytest.mark.asyncio
async def test_document_without_translatable_strings_makes_no_calls(config) -> None:
    service = FakeAIService(failing)
    document = {"id": "x", "count": 3, "flags": [True, None]}

    result = await TranslationManager(service, config=config).translate(document, "en", "tr")

    assert result.data == document
    assert service.calls == []


@pytest.mark.asyncio
async def test_soft_issues_are_summarized(config) -> None:
    service = FakeAIService(lambda payload: json.dumps({"0": "Ziyaret edin"}))
    document = {"text": "Visit https://example.com"}

    result = await TranslationManager(service, config=config).translate(document, "en", "tr")

    assert result.success
    assert result.data == {"text": "Ziyaret edin"}
    assert result.issues == ["chunk 1 index 0: url mismatch"]
    assert result.error == "Completed with 1 soft issues"
    assert result.to_dict() == {"success": True, "data": {"text": "Ziyaret edin"}, "error": "Completed with 1 soft issues"}


@pytest.mark.asyncio
async def test_caller_and_configured_keys_are_protected(config) -> None:
    config["translation"]["default_protected_keys"] = ["internal"]
    service = FakeAIService(echo)
    document = {"internalNote": "keep", "promoCode": "SAVE10", "label": "Buy now"}

    await TranslationManager(service, config=config).translate(document, "en", "tr", do_not_translate_keys=["promo"])

    assert service.calls == [{"0": "Buy now"}]


@pytest.mark.asyncio
async def test_large_documents_are_split_into_chunks(config) -> None:
    config["translation"].update(max_json_chars=200, initial_chunk_size=10, min_chunk_size=2, batch_size=2)
    service = FakeAIService(mapping(str.upper))
    document = {"items": [f"item number {i}" for i in range(30)]}

    result = await TranslationManager(service, config=config).translate(document, "en", "tr")

    assert len(service.calls) > 1
    assert all(len(json.dumps(call, separators=(",", ":"))) <= 200 for call in service.calls)
    assert result.data == {"items": [f"ITEM NUMBER {i}" for i in range(30)]}


@pytest.mark.asyncio
async def test_topic_and_languages_reach_the_system_prompt(config) -> None:
    service = FakeAIService(echo)

    await TranslationManager(service, config=config).translate({"title": "Hi"}, "en", "tr", topic="phishing awareness")

    prompt = service.system_prompts[0]
    assert "phishing awareness" in prompt
    assert "English (en)" in prompt
    assert "Turkish (tr)" in prompt


@pytest.mark.asyncio
async def test_progress_phases(config) -> None:
    config["translation"].update(initial_chunk_size=2, batch_size=2)
    phases: list[tuple[str, int, int]] = []
    service = FakeAIService(echo)
    manager = TranslationManager(
        service,
        config=config,
        progress_callback=lambda p: phases.append((p.phase, p.completed_chunks, p.processed_items)),
    )

    await manager.translate({"items": ["a1", "b2", "c3", "d4", "e5"]}, "en", "tr")

    assert phases == [
        ("extracted", 0, 0),
        ("batch_done", 2, 4),
        ("batch_done", 3, 5),
        ("completed", 3, 5),
    ]


@pytest.mark.asyncio
async def test_misaligned_results_raise_integrity_error(config, monkeypatch) -> None:
    async def lose_everything(*args, **kwargs):
        return []

    monkeypatch.setattr(manager_module, "translate_chunks_batched", lose_everything)
    manager = TranslationManager(FakeAIService(echo), config=config)

    with pytest.raises(IntegrityError) as exc_info:
        await manager.translate({"title": "Hi"}, "en", "tr")

    assert exc_info.value.code == "total_count_mismatch"


@pytest.mark.asyncio
async def test_translate_document_reports_fatal_errors(config, monkeypatch) -> None:
    async def lose_everything(*args, **kwargs):
        return []

    monkeypatch.setattr(manager_module, "translate_chunks_batched", lose_everything)

    result = await translate_document({"title": "Hi"}, "en", "tr", ai_service=FakeAIService(echo), config=config)

    assert result["success"] is False
    assert result["data"] is None
    assert "Total mismatch" in result["error"]


@pytest.mark.asyncio
async def test_translate_document_without_api_key(config) -> None:
    result = await translate_document({"title": "Hi"}, "en", "tr", config=config)

    assert result["success"] is False
    assert "API key not configured" in result["error"]


@pytest.mark.asyncio
async def test_translate_document_success_shape(config) -> None:
    result = await translate_document({"title": "Hi"}, "en", "tr", ai_service=FakeAIService(echo), config=config)

    assert result == {"success": True, "data": {"title": "Hi"}}


def test_result_to_dict_omits_empty_error() -> None:
    assert TranslationResult(success=True, data=[]).to_dict() == {"success": True, "data": []}


@pytest.mark.asyncio
async def test_configured_system_message_opens_the_prompt(config) -> None:
    config["translation"]["system_message"] = "You localize security training content."
    service = FakeAIService(echo)

    await TranslationManager(service, config=config).translate({"title": "Hi"}, "en", "tr")

    assert service.system_prompts[0].startswith("You localize security training content.\n")


@pytest.mark.asyncio
async def test_refusal_never_reaches_the_document(config) -> None:
    service = FakeAIService(lambda payload: "Sorry, I cannot translate {this} text")

    result = await TranslationManager(service, config=config).translate({"title": "Hello world"}, "en", "tr")

    assert result.data == {"title": "Hello world"}
    assert result.error is None
