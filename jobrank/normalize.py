"""
Job title normalization through a generative model (Gemini).

The model receives every raw title in one prompt and must answer with a
JSON array of ``{"id": ..., "title": ...}`` objects.
"""

import json
import re
from typing import Any, Dict, List

import google.generativeai as genai

from .logger import get_logger
from .models import Posting

logger = get_logger()

DEFAULT_MODEL = "gemini-1.5-flash"

PROMPT_TEMPLATE = (
    "Your task is to aggressively normalize job titles, leaving only the professional essence. "
    "Rules: 1. Remove seniority levels. 2. Remove clarifications in parentheses. "
    "3. If there are multiple positions via slash (/), keep the first one. "
    "4. Remove extra specializations. 5. Shorten long titles. "
    'Examples: "Монтажник РЭА и приборов" -> "Монтажник РЭА", '
    '"Токарь на оборонный завод" -> "Токарь", '
    '"Ведущий (старший) бухгалтер" -> "Бухгалтер", '
    '"Казначей/финансовый менеджер" -> "Казначей". '
    "CRITICALLY IMPORTANT: Your response must be only and exclusively a valid JSON array of objects, "
    'where each object has the format {{"id": vacancy_id_number, "title": "normalized_title"}}. '
    "Do not add anything extra. Here is the list: {titles}"
)

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


class NormalizationError(Exception):
    """Raised when the model call fails or its answer cannot be parsed."""
    pass


def build_prompt(postings: List[Posting]) -> str:
    titles = [{"id": p.id, "title": p.raw_title} for p in postings]
    return PROMPT_TEMPLATE.format(titles=json.dumps(titles, ensure_ascii=False))


def parse_normalized_titles(text: str) -> Dict[int, str]:
    """
    Extract the id -> title mapping from a model reply.

    The first ``[`` through the last ``]`` is parsed as JSON, so prose or
    code fences around the array are tolerated. Entries with a non-integer
    id or a blank title are dropped.

    Raises:
        NormalizationError: If no JSON array can be parsed from the reply
    """
    match = _JSON_ARRAY.search(text or "")
    if not match:
        raise NormalizationError("JSON array not found in the model response")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise NormalizationError(f"Model response is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise NormalizationError("Model response is not a JSON array")

    titles: Dict[int, str] = {}
    for entry in data:
        if not isinstance(entry, dict):
            continue
        try:
            posting_id = int(entry.get("id"))
        except (TypeError, ValueError):
            continue
        title = entry.get("title")
        if isinstance(title, str) and title.strip():
            titles[posting_id] = title.strip()
    return titles


def apply_normalized_titles(postings: List[Posting], titles: Dict[int, str]) -> int:
    """Set ``normalized_title`` on postings found in ``titles``; return how many."""
    applied = 0
    for posting in postings:
        title = titles.get(posting.id)
        if title is not None:
            posting.normalized_title = title
            applied += 1
    return applied


class TitleNormalizer:
    """Normalizes posting titles in place with one model call per batch."""

    def __init__(self, model: Any):
        """
        Args:
            model: Object with ``generate_content(prompt)`` returning a
                response exposing ``.text`` (e.g. ``genai.GenerativeModel``)
        """
        self.model = model

    @classmethod
    def from_api_key(cls, api_key: str, model_name: str = DEFAULT_MODEL) -> "TitleNormalizer":
        genai.configure(api_key=api_key)
        return cls(genai.GenerativeModel(model_name))

    def normalize(self, postings: List[Posting]) -> List[Posting]:
        """
        Fill in ``normalized_title`` for the given postings.

        Postings the model leaves out keep ``normalized_title`` unset.

        Raises:
            NormalizationError: On any model failure or unparsable reply
        """
        if not postings:
            return postings

        logger.info(f"Normalizing {len(postings)} titles")
        text = ""
        try:
            response = self.model.generate_content(build_prompt(postings))
            text = response.text
            titles = parse_normalized_titles(text)
        except NormalizationError:
            logger.error("Unusable normalization response", response=text)
            raise
        except Exception as e:
            logger.error("Normalization request failed", error=str(e), response=text)
            raise NormalizationError(f"Error contacting the title normalization service: {e}") from e

        applied = apply_normalized_titles(postings, titles)
        logger.info(f"Normalized {applied}/{len(postings)} titles", returned=len(titles))
        return postings
