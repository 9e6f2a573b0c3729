"""
Unit tests for the question bank loader and its cache.
"""

import json

import httpx
import pytest

from practice_analytics.bank.loader import QuestionBankCache, QuestionBankLoader, class_filename


@pytest.fixture
def bank_dir(tmp_path, sample_bank_raw):
    """Write the sample bank to a temp directory."""
    path = tmp_path / class_filename("AP Calculus BC")
    path.write_text(json.dumps(sample_bank_raw), encoding="utf-8")
    return tmp_path


@pytest.fixture
def loader(bank_dir):
    return QuestionBankLoader(bank_dir=bank_dir, cache=QuestionBankCache())


def test_class_filename():
    assert class_filename("AP Calculus BC") == "AP_Calculus_BC.json"
    assert class_filename("AP Physics 1: Algebra") == "AP_Physics_1__Algebra.json"


class TestCache:
    def test_set_get_invalidate(self, sample_class_data):
        cache = QuestionBankCache()
        cache.set("AP Calculus BC", sample_class_data)

        assert "AP Calculus BC" in cache
        assert len(cache) == 1
        assert cache.get("AP Calculus BC") is sample_class_data

        cache.invalidate("AP Calculus BC")
        assert cache.get("AP Calculus BC") is None

    def test_clear(self, sample_class_data):
        cache = QuestionBankCache()
        cache.set("a", sample_class_data)
        cache.set("b", sample_class_data)
        cache.clear()
        assert len(cache) == 0


class TestLoad:
    @pytest.mark.asyncio
    async def test_load_from_directory(self, loader):
        data = await loader.load("AP Calculus BC")

        assert data is not None
        assert [u.unit_name for u in data.units] == ["Limits", "Derivatives"]

    @pytest.mark.asyncio
    async def test_load_is_cached(self, loader, bank_dir):
        first = await loader.load("AP Calculus BC")
        (bank_dir / class_filename("AP Calculus BC")).unlink()

        second = await loader.load("AP Calculus BC")
        assert second is first

    @pytest.mark.asyncio
    async def test_refresh_bypasses_cache(self, loader, bank_dir):
        await loader.load("AP Calculus BC")
        (bank_dir / class_filename("AP Calculus BC")).unlink()

        assert await loader.load("AP Calculus BC", refresh=True) is None
        assert "AP Calculus BC" not in loader.cache

    @pytest.mark.asyncio
    async def test_missing_bank_returns_none(self, loader):
        assert await loader.load("AP Nonexistent") is None

    @pytest.mark.asyncio
    async def test_invalid_json_returns_none(self, tmp_path):
        (tmp_path / "Broken.json").write_text("{not json", encoding="utf-8")
        loader = QuestionBankLoader(bank_dir=tmp_path, cache=QuestionBankCache())

        assert await loader.load("Broken") is None

    @pytest.mark.asyncio
    async def test_empty_bank_returns_none(self, tmp_path):
        (tmp_path / "Empty.json").write_text(json.dumps({"units": []}), encoding="utf-8")
        loader = QuestionBankLoader(bank_dir=tmp_path, cache=QuestionBankCache())

        assert await loader.load("Empty") is None

    @pytest.mark.asyncio
    async def test_non_utf8_file_returns_none(self, tmp_path):
        (tmp_path / "Latin.json").write_bytes(b'{"units": [{"unitName": "\xff\xfe"}]}')
        loader = QuestionBankLoader(bank_dir=tmp_path, cache=QuestionBankCache())

        assert await loader.load("Latin") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"units": ["Limits"]},
            {"units": {"unitName": "Limits"}},
            {"units": [{"unitName": "Limits", "subtopics": [42]}]},
            {"units": [{"unitName": "Limits", "subtopics": [{"name": "A", "questions": ["q"]}]}]},
        ],
    )
    async def test_malformed_entries_return_none(self, tmp_path, payload):
        (tmp_path / "Malformed.json").write_text(json.dumps(payload), encoding="utf-8")
        loader = QuestionBankLoader(bank_dir=tmp_path, cache=QuestionBankCache())

        assert await loader.load("Malformed") is None
        assert loader.cache.get("Malformed") is None


class TestHttpLoad:
    @pytest.fixture
    def mock_http(self, monkeypatch, sample_bank_raw):
        """Route the loader's AsyncClient through a MockTransport."""
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            if request.url.path.endswith("AP_Calculus_BC.json"):
                return httpx.Response(200, json=sample_bank_raw)
            if request.url.path.endswith("Garbled.json"):
                return httpx.Response(200, content=b"<html>")
            return httpx.Response(404)

        real_client = httpx.AsyncClient

        def client_factory(*args, **kwargs):
            return real_client(*args, transport=httpx.MockTransport(handler), **kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", client_factory)
        return requested

    @pytest.mark.asyncio
    async def test_fetch_over_http(self, mock_http):
        loader = QuestionBankLoader(base_url="https://banks.example/", cache=QuestionBankCache())

        data = await loader.load("AP Calculus BC")

        assert data is not None
        assert mock_http == ["https://banks.example/AP_Calculus_BC.json"]

    @pytest.mark.asyncio
    async def test_http_error_returns_none(self, mock_http):
        loader = QuestionBankLoader(base_url="https://banks.example", cache=QuestionBankCache())
        assert await loader.load("AP Missing") is None

    @pytest.mark.asyncio
    async def test_invalid_http_json_returns_none(self, mock_http):
        loader = QuestionBankLoader(base_url="https://banks.example", cache=QuestionBankCache())
        assert await loader.load("Garbled") is None


class TestLookups:
    @pytest.mark.asyncio
    async def test_unit_and_subtopic_names(self, loader):
        assert await loader.get_unit_names("AP Calculus BC") == ["Limits", "Derivatives"]
        assert await loader.get_subtopic_names("AP Calculus BC", "Derivatives") == ["Graphs"]
        assert await loader.get_subtopic_names("AP Calculus BC", "Integrals") == []

    @pytest.mark.asyncio
    async def test_questions_for_subtopic_and_unit(self, loader):
        subtopic = await loader.get_questions_for_subtopic("AP Calculus BC", "Limits", "Definition")
        assert [q.id for q in subtopic] == ["lim-1", "lim-2"]

        unit = await loader.get_questions_for_unit("AP Calculus BC", "Derivatives")
        assert len(unit) == 2
        assert await loader.get_questions_for_unit("AP Calculus BC", "Integrals") == []

    @pytest.mark.asyncio
    async def test_question_by_id(self, loader):
        question = await loader.get_question_by_id("gr-1", ["AP Nonexistent", "AP Calculus BC"])
        assert question is not None
        assert question.has_stimulus

        assert await loader.get_question_by_id("nope", ["AP Calculus BC"]) is None

    @pytest.mark.asyncio
    async def test_lookups_on_missing_bank(self, loader):
        assert await loader.get_unit_names("AP Nonexistent") == []
