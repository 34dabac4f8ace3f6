"""
LLM-based pairing of OCR text using OpenAI structured output.

The LLM is used as a layout-aware pairer: it copes with OCR blocks that
are interleaved or out of order, where the half-split heuristic breaks.
It never validates anything. Every value it returns still goes through the
same field validators as the half-split output.

Design:
  - JSON mode enforced (structured output, not free text)
  - Response shape checked with pydantic before use
  - Graceful fallback: no API key or any failure → returns None →
    the pipeline uses the half-split pairer
"""

from __future__ import annotations

import json
import logging

from openai import OpenAI
from pydantic import BaseModel, ValidationError

from .models import RawPair
from .pairing import MAX_PAIRS, dedupe_pairs, strip_preamble

logger = logging.getLogger(__name__)


# ─── System Prompt ───────────────────────────────────────────────────

SYSTEM_PROMPT = """\
You read OCR text from a tower-defense game's "Battle Report" screen.
Pair every stat label with the value printed next to it.

CRITICAL RULES:
1. Copy labels and values EXACTLY as written — do NOT fix OCR mistakes.
2. Do not invent values for labels that have none.
3. Keep units and symbols ($, k, m, b, t, q, h, m, s) as they appear.

The labels you should look for are:
Game Time, Real Time, Tier, Wave, Killed By, Coins Earned, Cash Earned,
Interest Earned, Gem Blocks Tapped, Cells Earned, Reroll Shards Earned

Return a JSON object of this exact shape:
{"pairs": [{"label": "string", "value": "string"}]}
"""


class _LLMPairing(BaseModel):
    pairs: list[RawPair]


def pair_with_llm(raw_text: str, api_key: str | None, model: str) -> list[RawPair] | None:
    """Pair OCR lines using an LLM.

    Returns:
        The pairs if the LLM succeeds, None if unavailable or failed.
        Failure is NOT an error — the pipeline falls back to half-split.
    """
    if not api_key:
        logger.info("No OpenAI API key configured — skipping LLM pairing")
        return None

    try:
        client = OpenAI(api_key=api_key)

        response = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": (
                        "Pair the stats in this OCR text:\n\n"
                        f"{strip_preamble(raw_text)}"
                    ),
                },
            ],
            response_format={"type": "json_object"},
        )

        content = response.choices[0].message.content
        if content is None:
            logger.error("LLM returned empty content")
            return None

        parsed = _LLMPairing.model_validate(json.loads(content))

    except (json.JSONDecodeError, ValidationError) as e:
        logger.error("LLM pairing returned malformed JSON: %s", e)
        return None
    except Exception as e:
        logger.error("LLM pairing failed: %s", e)
        return None

    pairs = [
        RawPair(label=p.label.strip(), value=p.value.strip()) for p in parsed.pairs
    ]
    logger.info("LLM pairing succeeded with %d pair(s)", len(pairs))
    return dedupe_pairs(pairs, MAX_PAIRS)
