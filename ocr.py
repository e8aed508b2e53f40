# ocr.py
import json
import logging
from typing import List, Protocol

from openai import AsyncOpenAI
from pydantic import TypeAdapter, ValidationError

from config import Settings
from models import Contact, ExtractionRequest

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Failed to analyze the image. The image may be unclear or contain no contacts."

EXTRACTION_PROMPT = """
Analyze the provided image, which contains contact information.
Identify each distinct contact and extract the following details for each one:
- name: full name of the person
- company: company or organization name
- location: location or address
- email: email address
- phone: phone number

Return the data as a JSON array with one object per contact. Every object must
contain all five keys. If a detail is not available for a contact,
use an empty string for that field instead of leaving the key out.
Do not include entries that seem incomplete or that are just titles or section headings.
""".strip()

_contacts = TypeAdapter(List[Contact])


class ExtractionError(Exception):
    """Any failure while extracting contacts; the cause is chained."""

    user_message = FAILURE_MESSAGE


class InferenceEndpoint(Protocol):
    async def call(self, image: str, media_type: str, instruction: str, schema: dict) -> str:
        """Send one encoded image with an instruction; return JSON text matching ``schema``."""
        ...


def build_request(encoded_image: str, media_type: str) -> ExtractionRequest:
    try:
        return ExtractionRequest(
            encoded_image=encoded_image,
            media_type=media_type,
            instruction=EXTRACTION_PROMPT,
        )
    except ValueError as e:
        raise ExtractionError(str(e)) from e


def _strip_code_fence(content: str) -> str:
    # ```json ... ``` wrappers
    if content.startswith("```"):
        first_newline = content.find("\n")
        content = content[first_newline + 1:] if first_newline != -1 else ""
        last_backticks = content.rfind("```")
        if last_backticks != -1:
            content = content[:last_backticks]
    return content.strip()


def parse_contacts(text: str) -> List[Contact]:
    """Parse the model's JSON array into contacts; all or nothing."""
    content = _strip_code_fence((text or "").strip())
    try:
        return _contacts.validate_json(content)
    except ValidationError as e:
        logger.debug("Unparseable extraction response: %s", content[:500])
        raise ExtractionError(
            f"response does not match the contact schema ({e.error_count()} error(s))"
        ) from e


class OpenAIVisionEndpoint:
    """Chat Completions with an image part and a strict JSON-schema response format."""

    def __init__(self, client: AsyncOpenAI | None, model: str = "gpt-4o-mini"):
        self._client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIVisionEndpoint":
        client = None
        if settings.openai_api_key:
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.openai_timeout,
                max_retries=settings.openai_max_retries,
            )
        else:
            logger.warning("OPENAI_API_KEY is not set; extraction requests will fail")
        return cls(client, model=settings.openai_model)

    async def call(self, image: str, media_type: str, instruction: str, schema: dict) -> str:
        if self._client is None:
            raise ExtractionError("OpenAI API key not configured")

        resp = await self._client.chat.completions.create(
            model=self.model,
            temperature=0,
            messages=[
                {"role": "user", "content": [
                    {"type": "image_url", "image_url": {"url": f"data:{media_type};base64,{image}"}},
                    {"type": "text", "text": instruction},
                ]},
            ],
            # strict mode needs an object root, so the array travels under "contacts"
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": "contact_list",
                    "strict": True,
                    "schema": {
                        "type": "object",
                        "properties": {"contacts": schema},
                        "required": ["contacts"],
                        "additionalProperties": False,
                    },
                },
            },
        )

        message = resp.choices[0].message if resp.choices else None
        if message is None or not message.content:
            refusal = getattr(message, "refusal", None)
            raise ExtractionError(f"empty response from OpenAI (refusal: {refusal!r})")
        logger.debug("Raw extraction response: %s", message.content[:500])

        try:
            payload = json.loads(message.content)
        except json.JSONDecodeError as e:
            raise ExtractionError(f"invalid JSON in extraction response: {e}") from e
        if not isinstance(payload, dict) or "contacts" not in payload:
            raise ExtractionError("extraction response has no 'contacts' array")
        return json.dumps(payload["contacts"])


class ContactExtractor:
    def __init__(self, endpoint: InferenceEndpoint):
        self.endpoint = endpoint

    async def extract(self, encoded_image: str, media_type: str) -> List[Contact]:
        """One extraction call for one image. Raises ExtractionError on any failure."""
        try:
            request = build_request(encoded_image, media_type)
            raw = await self.endpoint.call(
                request.encoded_image,
                request.media_type,
                request.instruction,
                request.schema,
            )
            contacts = parse_contacts(raw)
        except ExtractionError:
            logger.exception("Contact extraction failed")
            raise
        except Exception as e:
            logger.exception("Contact extraction failed")
            raise ExtractionError(f"contact extraction failed: {e}") from e

        logger.info("Extracted %d contact(s) from %s image", len(contacts), media_type)
        return contacts
