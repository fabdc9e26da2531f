"""
Tests for the AI extraction path: request shape, candidate ordering,
payload sanitizing and fallback to the heuristic extractor.

The model service is never contacted; httpx.AsyncClient.post is patched.
"""

import asyncio
import base64
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from pricelist.models.schemas import Candidate, ExtractionPolicy, Record
from pricelist.services.ai_extract import (
    CANDIDATES,
    TEXT_CHAR_BUDGET,
    ExtractionFailure,
    FailureReason,
    build_request_body,
    candidate_url,
    extract_json_array,
    extract_via_model,
    extract_with_fallback,
    normalize_type,
    record_from_payload,
    strip_code_fences,
)
from pricelist.services.extract import extract_heuristic

FIVE = [Candidate(model=f"m{i}", api_version="v1beta") for i in range(1, 6)]

SAMPLE_TEXT = "MRF PRICE LIST\n1. Zapper 4S 3.25-19 450 650\nSpecial Offer This Month Only On All Models"

ROWS = [
    {"brand": "MRF", "model": "Zapper 4S 3.25-19", "type": "Tube", "dp": 450, "mrp": 650},
    {"brand": "MRF", "model": "Nylogrip Plus 90/90-17", "type": "Tubeless", "dp": 1820, "mrp": 2075},
]


def _response(status=200, body=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body
    return resp


def _answer(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _model_of(url):
    return url.split("/models/")[1].split(":")[0]


class TestRequestShape:

    def test_candidate_url(self):
        url = candidate_url(Candidate(model="gemini-1.5-flash", api_version="v1"))
        assert url == "https://generativelanguage.googleapis.com/v1/models/gemini-1.5-flash:generateContent"
        assert candidate_url(FIVE[0], "http://localhost:8080/") == "http://localhost:8080/v1beta/models/m1:generateContent"

    def test_text_is_truncated(self):
        body = build_request_body("x" * (TEXT_CHAR_BUDGET + 5000))
        parts = body["contents"][0]["parts"]
        assert len(parts) == 2
        assert parts[1]["text"] == "PRICE LIST TEXT:\n" + "x" * TEXT_CHAR_BUDGET

    def test_buffer_goes_inline(self):
        body = build_request_body("ignored", b"%PDF-1.4 data")
        inline = body["contents"][0]["parts"][1]["inlineData"]
        assert inline["mimeType"] == "application/pdf"
        assert base64.b64decode(inline["data"]) == b"%PDF-1.4 data"

    def test_default_candidates_are_ordered_and_fixed(self):
        assert CANDIDATES[0] == Candidate(model="gemini-2.0-flash", api_version="v1beta")
        assert len(set(CANDIDATES)) == len(CANDIDATES)


class TestSanitizing:
    """Test clean-up of the model's free-form answer."""

    def test_strip_code_fences(self):
        assert strip_code_fences('```json\n[{"model": "A"}]\n```') == '[{"model": "A"}]'
        assert strip_code_fences('```\n[1]\n```') == "[1]"
        assert strip_code_fences('  [{"model": "A"}]  ') == '[{"model": "A"}]'

    def test_array_inside_chatter(self):
        text = 'Here you go: [{"brand": "MRF", "model": "Zapper", "dp": 450, "mrp": 650}] hope it helps'
        assert extract_json_array(text) == [{"brand": "MRF", "model": "Zapper", "dp": 450, "mrp": 650}]

    def test_skips_brackets_that_are_not_json(self):
        assert extract_json_array('Rows [see below]: [{"model": "A"}]') == [{"model": "A"}]

    def test_array_inside_object(self):
        assert extract_json_array('{"rows": [{"model": "A"}]}') == [{"model": "A"}]

    @pytest.mark.parametrize("text", ["[]", "no json at all", "[1, 2, 3]", '[{"model": "A"'])
    def test_unusable_answers(self, text):
        with pytest.raises(ValueError):
            extract_json_array(text)

    def test_normalize_type(self):
        assert normalize_type("Tubeless") == "Tubeless"
        assert normalize_type("T/L") == "Tubeless"
        assert normalize_type("tl") == "Tubeless"
        assert normalize_type("Unverified") == "Unverified"
        assert normalize_type("TT") == "Tube"
        assert normalize_type(None) == "Tube"

    def test_record_from_payload(self):
        policy = ExtractionPolicy()
        rec = record_from_payload({"model": " Gripp XL ", "dealerPrice": "1,450", "retailPrice": 1650.0}, policy)
        assert rec == Record(brand="UNKNOWN", model="Gripp XL", type="Tube", dp=1450, mrp=1650)

    def test_bad_prices_become_draft(self):
        policy = ExtractionPolicy()
        rec = record_from_payload({"brand": "CEAT", "model": "Zoom", "type": "Tubeless", "dp": -1, "mrp": "n/a"}, policy)
        assert rec == Record(brand="CEAT", model="Zoom", type="Unverified", dp=0, mrp=0)

    def test_unverified_forces_zero_prices(self):
        rec = record_from_payload({"model": "Zoom", "type": "Unverified", "dp": 10, "mrp": 20}, ExtractionPolicy())
        assert (rec.type, rec.dp, rec.mrp) == ("Unverified", 0, 0)

    def test_item_without_model_is_dropped(self):
        assert record_from_payload({"brand": "MRF", "dp": 450, "mrp": 650}, ExtractionPolicy()) is None


class TestCandidateLoop:
    """Test the ordered, single-shot candidate chain."""

    @pytest.mark.asyncio
    async def test_third_candidate_wins(self):
        """1 and 2 fail, 3 answers, 4 and 5 are never called."""
        called = []

        def fake_post(url, **kwargs):
            called.append(_model_of(url))
            if "/models/m1:" in url:
                raise httpx.ConnectError("connection refused")
            if "/models/m2:" in url:
                return _response(503, {"error": {"message": "overloaded"}})
            return _response(200, _answer(json.dumps(ROWS)))

        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.side_effect = fake_post
            records, winner = await extract_via_model(SAMPLE_TEXT, credential="secret", candidates=FIVE)

        assert called == ["m1", "m2", "m3"]
        assert winner == FIVE[2]
        assert [r.model_dump() for r in records] == ROWS

    @pytest.mark.asyncio
    async def test_credential_sent_as_header(self):
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(200, _answer(json.dumps(ROWS)))
            await extract_via_model(SAMPLE_TEXT, credential="secret", candidates=FIVE[:1], timeout=5)

        call_args = mock_post.call_args
        assert call_args[0][0].endswith("/v1beta/models/m1:generateContent")
        assert call_args[1]["headers"]["x-goog-api-key"] == "secret"
        assert call_args[1]["timeout"] == 5
        assert call_args[1]["json"]["generationConfig"]["temperature"] == 0

    @pytest.mark.asyncio
    async def test_error_body_and_empty_text_move_on(self):
        responses = [
            _response(200, {"error": {"message": "quota exceeded"}}),
            _response(200, _answer("   ")),
            _response(200, "not an object"),
            _response(200, {"candidates": []}),
            _response(200, _answer("```json\n" + json.dumps(ROWS) + "\n```")),
        ]
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.side_effect = responses
            records, winner = await extract_via_model(SAMPLE_TEXT, credential="secret", candidates=FIVE)

        assert mock_post.call_count == 5
        assert winner == FIVE[4]
        assert len(records) == 2

    @pytest.mark.asyncio
    async def test_all_candidates_exhausted(self):
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.side_effect = httpx.ReadTimeout("timed out")
            with pytest.raises(ExtractionFailure) as exc_info:
                await extract_via_model(SAMPLE_TEXT, credential="secret", candidates=FIVE)

        assert exc_info.value.reason is FailureReason.ALL_CANDIDATES_EXHAUSTED
        assert mock_post.call_count == 5

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_a_candidate_failure(self):
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.side_effect = [RuntimeError("boom"), _response(200, _answer(json.dumps(ROWS)))]
            _, winner = await extract_via_model(SAMPLE_TEXT, credential="secret", candidates=FIVE)

        assert winner == FIVE[1]

    @pytest.mark.asyncio
    async def test_malformed_answer_stops_the_chain(self):
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(200, _answer("Sorry, I cannot read this document."))
            with pytest.raises(ExtractionFailure) as exc_info:
                await extract_via_model(SAMPLE_TEXT, credential="secret", candidates=FIVE)

        assert exc_info.value.reason is FailureReason.MALFORMED_PAYLOAD
        assert mock_post.call_count == 1

    @pytest.mark.asyncio
    async def test_no_credential(self):
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            with pytest.raises(ExtractionFailure) as exc_info:
                await extract_via_model(SAMPLE_TEXT, credential=None, candidates=FIVE)

        assert exc_info.value.reason is FailureReason.NO_CREDENTIAL
        mock_post.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancelled_before_first_candidate(self):
        cancel = asyncio.Event()
        cancel.set()
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            with pytest.raises(ExtractionFailure) as exc_info:
                await extract_via_model(SAMPLE_TEXT, credential="secret", candidates=FIVE, cancel=cancel)

        assert exc_info.value.reason is FailureReason.CANCELLED
        mock_post.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancelled_between_candidates(self):
        cancel = asyncio.Event()

        def fake_post(url, **kwargs):
            cancel.set()
            return _response(500, None)

        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.side_effect = fake_post
            with pytest.raises(ExtractionFailure) as exc_info:
                await extract_via_model(SAMPLE_TEXT, credential="secret", candidates=FIVE, cancel=cancel)

        assert exc_info.value.reason is FailureReason.CANCELLED
        assert mock_post.call_count == 1


class TestFallback:
    """Test that every AI failure ends in the heuristic result."""

    @pytest.mark.asyncio
    async def test_exhausted_chain_equals_heuristic(self):
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(500, {"error": {"message": "internal"}})
            records, provenance = await extract_with_fallback(SAMPLE_TEXT, None, "secret", candidates=FIVE)

        expected = extract_heuristic(SAMPLE_TEXT)
        assert json.dumps([r.model_dump() for r in records]) == json.dumps([r.model_dump() for r in expected])
        assert provenance == {"source": "heuristic", "fallback_reason": "AllCandidatesExhausted"}

    @pytest.mark.asyncio
    async def test_malformed_payload_falls_back(self):
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(200, _answer("[]"))
            records, provenance = await extract_with_fallback(SAMPLE_TEXT, None, "secret", candidates=FIVE)

        assert records == extract_heuristic(SAMPLE_TEXT)
        assert provenance["fallback_reason"] == "MalformedPayload"

    @pytest.mark.asyncio
    async def test_ai_success_provenance(self):
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(200, _answer(json.dumps(ROWS)))
            records, provenance = await extract_with_fallback(SAMPLE_TEXT, None, "secret", candidates=FIVE)

        assert provenance == {"source": "ai", "model": "m1", "api_version": "v1beta"}
        assert records[1].type == "Tubeless"

    @pytest.mark.asyncio
    async def test_fallback_uses_policy(self):
        policy = ExtractionPolicy(default_brand="TYRE")
        records, provenance = await extract_with_fallback("Zapper 4S 450 650", None, None, policy=policy)
        assert provenance["fallback_reason"] == "NoCredential"
        assert records[0].brand == "TYRE"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"candidates": [{"content": {"parts": None}}]},
        {"candidates": [{"content": {"parts": [{"text": 123}]}}]},
    ])
    async def test_unreadable_parts_fall_back(self, body):
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(200, body)
            records, provenance = await extract_with_fallback(SAMPLE_TEXT, None, "secret", candidates=FIVE[:1])

        assert records == extract_heuristic(SAMPLE_TEXT)
        assert provenance["fallback_reason"] == "AllCandidatesExhausted"

    @pytest.mark.asyncio
    async def test_price_too_large_for_float_becomes_draft(self):
        answer = '[{"brand": "MRF", "model": "Zapper 4S", "dp": 450, "mrp": 1' + "0" * 400 + "}]"
        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            mock_post.return_value = _response(200, _answer(answer))
            records, provenance = await extract_with_fallback(SAMPLE_TEXT, None, "secret", candidates=FIVE[:1])

        assert provenance["source"] == "ai"
        assert records == [Record(brand="MRF", model="Zapper 4S", type="Unverified", dp=0, mrp=0)]
