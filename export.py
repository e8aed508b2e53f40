# export.py
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Sequence

import pandas as pd
import pyperclip

from models import Contact

logger = logging.getLogger(__name__)

CSV_HEADERS = ("Name", "Company", "Location", "Email", "Phone")

COPY_LABEL = "Copy CSV"
COPIED_LABEL = "Copied!"
COPY_FAILED_LABEL = "Failed to copy"


class ExportError(Exception):
    """The CSV could not be written."""


class CopyResult(str, Enum):
    COPIED = "copied"
    FAILED = "failed"
    NOTHING_TO_COPY = "nothing_to_copy"


def _escape_csv_value(value: str) -> str:
    if any(ch in value for ch in (",", '"', "\n", "\r")):
        return '"' + value.replace('"', '""') + '"'
    return value


def to_csv(contacts: Sequence[Contact]) -> str:
    """Header plus one row per contact, joined with \\n. Empty list -> ""."""
    if not contacts:
        return ""
    rows: List[str] = [",".join(CSV_HEADERS)]
    for c in contacts:
        rows.append(",".join(_escape_csv_value(v) for v in c.as_row()))
    return "\n".join(rows)


def trigger_download(text: str, filename: str, directory: str | Path | None = None) -> Path:
    """Save CSV text as ``directory/filename``; the temp file never outlives the call."""
    if not text:
        raise ExportError("nothing to export")

    target = Path(directory or ".") / filename
    try:
        fd, tmp = tempfile.mkstemp(prefix=".contacts-", suffix=".tmp", dir=target.parent)
    except OSError as e:
        raise ExportError(f"could not save {target}: {e}") from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
        os.replace(tmp, target)
    except OSError as e:
        raise ExportError(f"could not save {target}: {e}") from e
    finally:
        if os.path.exists(tmp):
            os.unlink(tmp)

    logger.info("Saved %d bytes of CSV to %s", len(text.encode("utf-8")), target)
    return target


def copy_to_clipboard(text: str) -> CopyResult:
    if not text:
        return CopyResult.NOTHING_TO_COPY
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        logger.error("Failed to copy text: %s", e)
        return CopyResult.FAILED
    return CopyResult.COPIED


@dataclass
class CopyFeedback:
    """Label of the copy button; falls back to "Copy CSV" after ``delay`` seconds."""

    delay: float = 2.0
    clock: Callable[[], float] = time.monotonic
    result: CopyResult | None = None
    at: float = 0.0

    def record(self, result: CopyResult) -> None:
        self.result = result
        self.at = self.clock()

    @property
    def label(self) -> str:
        if self.result is None or self.clock() - self.at >= self.delay:
            return COPY_LABEL
        if self.result is CopyResult.COPIED:
            return COPIED_LABEL
        if self.result is CopyResult.FAILED:
            return COPY_FAILED_LABEL
        return COPY_LABEL


def contacts_frame(contacts: Sequence[Contact]) -> pd.DataFrame:
    return pd.DataFrame([c.as_row() for c in contacts], columns=list(CSV_HEADERS))
