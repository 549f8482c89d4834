"""Consumer code generation and validation."""
from __future__ import annotations

import re
import uuid
from typing import Callable

CONSUMER_CODE_PREFIX = "PPD"
GENERATED_CODE_PATTERN = re.compile(r"PPD[0-9A-F]{8}")
CONSUMER_CODE_PATTERN = re.compile(r"[A-Z0-9]{3,32}")
MAX_GENERATION_ATTEMPTS = 20


def normalize_code(value: str | None) -> str:
    return (value or "").strip().upper()


def is_valid_code(value: str | None) -> bool:
    """Return True when the (normalized) code matches the allowed pattern."""
    if not value:
        return False
    return bool(CONSUMER_CODE_PATTERN.fullmatch(normalize_code(value)))


def new_consumer_code() -> str:
    return f"{CONSUMER_CODE_PREFIX}{uuid.uuid4().hex[:8].upper()}"


def generate_unique_code(is_taken: Callable[[str], bool]) -> str:
    """Draw codes until ``is_taken`` rejects none of them."""
    for _ in range(MAX_GENERATION_ATTEMPTS):
        code = new_consumer_code()
        if not is_taken(code):
            return code
    raise RuntimeError("Nao foi possivel gerar um codigo de consumidor unico")
