# models.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple, TypedDict

from pydantic import BaseModel, ConfigDict

# field -> (JSON type, description); order is the column order everywhere
CONTACT_FIELDS: Dict[str, Tuple[str, str]] = {
    "name":     ("string", "Full name of the person."),
    "company":  ("string", "Company or organization name."),
    "location": ("string", "Physical address or location."),
    "email":    ("string", "Email address."),
    "phone":    ("string", "Phone number."),
}

SUPPORTED_MEDIA_TYPES = frozenset({"image/png", "image/jpeg", "image/webp", "image/gif"})


class Contact(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    name: str
    company: str
    location: str
    email: str
    phone: str

    def as_row(self) -> List[str]:
        return [getattr(self, f) for f in CONTACT_FIELDS]


def contact_list_schema() -> dict:
    """JSON Schema for the model output: an array of contacts, every key required."""
    return {
        "type": "array",
        "items": {
            "type": "object",
            "properties": {
                name: {"type": type_, "description": desc}
                for name, (type_, desc) in CONTACT_FIELDS.items()
            },
            "required": list(CONTACT_FIELDS),
            "additionalProperties": False,
        },
    }


@dataclass(frozen=True)
class ImageUpload:
    data: bytes
    media_type: str
    name: str = "image"

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ExtractionRequest:
    encoded_image: str
    media_type: str
    instruction: str
    schema: dict = field(default_factory=contact_list_schema)

    def __post_init__(self):
        if not self.encoded_image:
            raise ValueError("encoded image is empty")
        if self.media_type not in SUPPORTED_MEDIA_TYPES:
            raise ValueError(f"unsupported media type: {self.media_type!r}")


class Phase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class AppState:
    phase: Phase = Phase.IDLE
    image: ImageUpload | None = None                    # currently displayed image
    contacts: Tuple[Contact, ...] = ()                  # replaced wholesale
    message: str | None = None                          # success / error text


class PipelineState(TypedDict, total=False):
    image: ImageUpload                                   # input
    encoded: str                                         # base64 payload
    contacts: List[Contact]                              # extraction output
