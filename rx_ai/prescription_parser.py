"""
Prescription scan pipeline: data URI -> Groq vision -> validated name list.

Never raises. Every failure path logs and returns [].
"""

import json
import logging
import re
from typing import List

from pydantic import ValidationError

from .prescription_schema import PrescriptionScan
from .prompts import build_prompt
from .vision_client import get_vision_client

logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(r"^data:image/[\w.+-]+;base64,[A-Za-z0-9+/=\s]+$")


def is_image_data_uri(value: str) -> bool:
    return bool(value) and DATA_URI_PATTERN.match(value) is not None


def _extract_json(text: str) -> str:
    """Models sometimes wrap JSON in ```json fences despite instructions."""
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```(?:json)?\s*", "", text)
        text = re.sub(r"\s*```$", "", text)
    return text


def parse_scan_output(raw: str | None) -> List[str]:
    """Validate the model's text against PrescriptionScan; [] if it does not fit."""
    if not raw:
        return []
    try:
        data = json.loads(_extract_json(raw))
        return PrescriptionScan.model_validate(data).medicines
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"[Vision] Discarding unparsable model output: {type(e).__name__}")
        return []


def scan_prescription(photo_data_uri: str) -> List[str]:
    """Return medicine names read from a prescription photo (possibly empty)."""
    if not is_image_data_uri(photo_data_uri):
        logger.warning("[Vision] Rejected scan: not a base64 image data URI")
        return []

    client = get_vision_client()
    raw = client.read_prescription(build_prompt(), photo_data_uri)
    names = parse_scan_output(raw)
    logger.info(f"[Vision] Prescription scan found {len(names)} medicines")
    return names
