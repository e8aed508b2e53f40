"""Tests for the extraction client: request building, parsing, and the OpenAI endpoint."""

import json

import pytest

from config import Settings
from models import CONTACT_FIELDS, Contact
from ocr import (
    EXTRACTION_PROMPT,
    FAILURE_MESSAGE,
    ContactExtractor,
    ExtractionError,
    OpenAIVisionEndpoint,
    build_request,
    parse_contacts,
)
from tests.fakes import JANE_JSON, FakeEndpoint, FakeOpenAI


class TestParseContacts:
    def test_valid_array(self):
        contacts = parse_contacts(JANE_JSON)
        assert contacts == [Contact(name="Jane Doe", company="", location="", email="", phone="")]

    def test_empty_array(self):
        assert parse_contacts("[]") == []

    def test_strips_code_fence_and_whitespace(self):
        text = "\n```json\n" + JANE_JSON + "\n```\n"
        assert parse_contacts(text)[0].name == "Jane Doe"

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "not json",
            '{"name": "Jane Doe"}',
            '[{"name": "Jane Doe", "company": "", "location": "", "email": ""}]',
            '[{"name": "A", "company": "", "location": "", "email": "", "phone": "", "fax": ""}]',
            '[{"name": "A", "company": "", "location": "", "email": "", "phone": 5551234}]',
            '[{"name": null, "company": "", "location": "", "email": "", "phone": ""}]',
        ],
    )
    def test_malformed_responses_raise(self, text: str):
        with pytest.raises(ExtractionError):
            parse_contacts(text)

    def test_one_bad_record_rejects_the_whole_list(self):
        good = json.loads(JANE_JSON)[0]
        text = json.dumps([good, {"name": "Broken"}])
        with pytest.raises(ExtractionError):
            parse_contacts(text)


class TestBuildRequest:
    def test_carries_instruction_and_schema(self):
        request = build_request("aGVsbG8=", "image/png")

        assert request.instruction == EXTRACTION_PROMPT
        items = request.schema["items"]
        assert request.schema["type"] == "array"
        assert items["required"] == list(CONTACT_FIELDS)
        assert set(items["properties"]) == set(CONTACT_FIELDS)
        assert items["additionalProperties"] is False

    def test_rejects_empty_image(self):
        with pytest.raises(ExtractionError):
            build_request("", "image/png")

    def test_rejects_unsupported_media_type(self):
        with pytest.raises(ExtractionError):
            build_request("aGVsbG8=", "application/pdf")

    def test_prompt_covers_empty_fields_and_headings(self):
        prompt = " ".join(EXTRACTION_PROMPT.lower().split())
        assert "empty string" in prompt
        assert "heading" in prompt
        assert "incomplete" in prompt


class TestContactExtractor:
    @pytest.mark.asyncio
    async def test_returns_contacts(self):
        endpoint = FakeEndpoint(JANE_JSON)
        contacts = await ContactExtractor(endpoint).extract("aGVsbG8=", "image/jpeg")

        assert [c.name for c in contacts] == ["Jane Doe"]
        assert len(endpoint.calls) == 1
        call = endpoint.calls[0]
        assert call["image"] == "aGVsbG8="
        assert call["media_type"] == "image/jpeg"
        assert call["instruction"] == EXTRACTION_PROMPT

    @pytest.mark.asyncio
    async def test_transport_error_is_normalized(self):
        endpoint = FakeEndpoint(error=ConnectionError("connect to 10.0.0.1:443 refused"))

        with pytest.raises(ExtractionError) as exc_info:
            await ContactExtractor(endpoint).extract("aGVsbG8=", "image/png")

        assert exc_info.value.user_message == FAILURE_MESSAGE
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_invalid_input_never_reaches_endpoint(self):
        endpoint = FakeEndpoint(JANE_JSON)
        with pytest.raises(ExtractionError):
            await ContactExtractor(endpoint).extract("", "image/png")
        assert endpoint.calls == []


class TestOpenAIVisionEndpoint:
    @pytest.mark.asyncio
    async def test_sends_image_and_strict_schema(self):
        client = FakeOpenAI(content=json.dumps({"contacts": json.loads(JANE_JSON)}))
        endpoint = OpenAIVisionEndpoint(client, model="gpt-4o-mini")
        schema = build_request("aGVsbG8=", "image/png").schema

        text = await endpoint.call("aGVsbG8=", "image/png", EXTRACTION_PROMPT, schema)

        assert json.loads(text) == json.loads(JANE_JSON)
        kwargs = client.completions.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        parts = kwargs["messages"][0]["content"]
        assert parts[0]["image_url"]["url"] == "data:image/png;base64,aGVsbG8="
        assert parts[1]["text"] == EXTRACTION_PROMPT
        fmt = kwargs["response_format"]
        assert fmt["type"] == "json_schema"
        assert fmt["json_schema"]["strict"] is True
        assert fmt["json_schema"]["schema"]["properties"]["contacts"] == schema

    @pytest.mark.asyncio
    async def test_empty_content_raises(self):
        endpoint = OpenAIVisionEndpoint(FakeOpenAI(content=None))
        with pytest.raises(ExtractionError):
            await endpoint.call("aGVsbG8=", "image/png", EXTRACTION_PROMPT, {})

    @pytest.mark.asyncio
    async def test_missing_envelope_raises(self):
        endpoint = OpenAIVisionEndpoint(FakeOpenAI(content=JANE_JSON))
        with pytest.raises(ExtractionError):
            await endpoint.call("aGVsbG8=", "image/png", EXTRACTION_PROMPT, {})

    @pytest.mark.asyncio
    async def test_without_credential_raises(self):
        endpoint = OpenAIVisionEndpoint.from_settings(Settings(openai_api_key=None, _env_file=None))
        with pytest.raises(ExtractionError):
            await endpoint.call("aGVsbG8=", "image/png", EXTRACTION_PROMPT, {})

    def test_from_settings_applies_timeout_and_retries(self):
        settings = Settings(
            openai_api_key="sk-test",
            openai_model="gpt-4o",
            openai_timeout=12.5,
            openai_max_retries=1,
            _env_file=None,
        )
        endpoint = OpenAIVisionEndpoint.from_settings(settings)

        assert endpoint.model == "gpt-4o"
        assert endpoint._client.timeout == 12.5
        assert endpoint._client.max_retries == 1
