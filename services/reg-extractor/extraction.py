"""Extraction pipeline: send the image upstream, normalize the reply.

The model is told to answer with a bare {"results": [...]} object, but replies
may still carry prose or code fences around it. normalize_reply pulls the
object out and coerces every entry into an ExtractionResult instead of
rejecting malformed ones.
"""

import json
import logging
import re
import time

from models import ExtractionKind, ExtractionResult
from openrouter_client import OpenRouterClient

logger = logging.getLogger(__name__)

# First "{" through last "}" (greedy, spans newlines)
JSON_REGION = re.compile(r"\{[\s\S]*\}")


class ReplyParseError(Exception):
    """Reply contained no JSON-shaped region."""


class MalformedReplyError(Exception):
    """JSON-shaped region in the reply did not decode."""


def extract_from_image(image_url: str, client: OpenRouterClient) -> list[ExtractionResult]:
    """Run the extraction: upstream inference -> normalize."""
    start = time.monotonic()

    raw_text = client.complete(image_url)
    logger.info(
        "Upstream reply received in %dms (%d chars)",
        int((time.monotonic() - start) * 1000),
        len(raw_text),
    )

    results = normalize_reply(raw_text)
    logger.info("Extracted %d result(s)", len(results))
    return results


def find_json_region(raw: str) -> str | None:
    match = JSON_REGION.search(raw)
    return match.group(0) if match else None


def normalize_reply(raw: str) -> list[ExtractionResult]:
    """Turn raw model output into results.

    Raises ReplyParseError when there is nothing brace-delimited in the text,
    and MalformedReplyError when the delimited region is not valid JSON. A
    missing or non-list "results" field yields an empty list.
    """
    region = find_json_region(raw)
    if region is None:
        logger.warning("No JSON object in model reply: %s", raw[:200])
        raise ReplyParseError("Could not parse response from model.")

    try:
        parsed = json.loads(region)
    except json.JSONDecodeError as e:
        logger.warning("Malformed JSON in model reply: %s", region[:200])
        raise MalformedReplyError(str(e)) from e

    entries = parsed.get("results") if isinstance(parsed, dict) else None
    if not isinstance(entries, list):
        return []

    return [coerce_result(entry) for entry in entries]


def coerce_result(entry) -> ExtractionResult:
    """Map one upstream entry onto an ExtractionResult.

    Only "vin" is kept as-is; every other tag, including a missing one,
    becomes a registration.
    """
    if not isinstance(entry, dict):
        entry = {}

    kind = ExtractionKind.VIN if entry.get("type") == "vin" else ExtractionKind.REGISTRATION

    value = entry.get("value")
    if value is None:
        value = ""
    elif not isinstance(value, str):
        value = json.dumps(value)

    return ExtractionResult(
        kind=kind,
        value=value,
        uncertain=bool(entry.get("uncertain")),
    )
