"""
LLM summaries of library documents, cached per document.
"""

import json
import re
from typing import List, Optional

from llm.llm_util import DEFAULT_MODEL_NAME, get_llm_response
from triage.constants import MAX_SUMMARY_CONTENT_CHARS, PROMPTS_DIR
from triage.database import get_document, get_summary, save_summary
from triage.errors import ConflictError, RemoteTransportError
from triage.models import Summary
from triage.reader_client import ReaderClient
from util.logging_util import setup_logger

logger = setup_logger(__name__)

SUMMARIZE_TEMPLATE = PROMPTS_DIR / "summarize_article.jinja2"

_FENCE_RE = re.compile(r"```(?:json)?\n?")
_SUMMARY_FIELD_RE = re.compile(r'"summary"\s*:\s*"((?:[^"\\]|\\.)*)"')
_KEY_POINTS_FIELD_RE = re.compile(r'"keyPoints"\s*:\s*\[([^\]]*)\]')
_QUOTED_RE = re.compile(r'"((?:[^"\\]|\\.)*)"')


def _unescape(value: str) -> str:
    return value.replace('\\"', '"')


def parse_summary_response(text: str) -> Summary:
    """Turn the model's reply into a Summary.

    The model is asked for bare JSON but sometimes wraps it in markdown
    fences or returns something almost-JSON. As a last resort the whole
    reply is the summary.
    """
    cleaned = _FENCE_RE.sub("", text).strip()
    try:
        parsed = json.loads(cleaned)
    except ValueError:
        parsed = None

    if isinstance(parsed, dict):
        summary = parsed.get("summary")
        key_points = parsed.get("keyPoints") or []
        return Summary(
            summary=summary if isinstance(summary, str) and summary else text,
            key_points=[str(point) for point in key_points] if isinstance(key_points, list) else [],
        )

    summary_match = _SUMMARY_FIELD_RE.search(text)
    if summary_match:
        key_points_match = _KEY_POINTS_FIELD_RE.search(text)
        key_points: List[str] = []
        if key_points_match:
            key_points = [_unescape(point) for point in _QUOTED_RE.findall(key_points_match.group(1))]
        return Summary(summary=_unescape(summary_match.group(1)), key_points=key_points)

    logger.warning(f"Summary response was not JSON, using raw text: {text[:100]}")
    return Summary(summary=text, key_points=[])


def summarize(
    title: str,
    content: str,
    model_name: str = DEFAULT_MODEL_NAME,
    temperature: float = 0.3,
) -> Summary:
    """
    Summarize an article with the LLM.

    Args:
        title: The article title.
        content: The article text. Only the first MAX_SUMMARY_CONTENT_CHARS are sent.
        model_name: The Gemini model to use.
        temperature: Sampling temperature.

    Returns:
        A Summary with a short summary and its key points.

    Raises:
        RemoteTransportError: The model call failed.
    """
    try:
        response = get_llm_response(
            str(SUMMARIZE_TEMPLATE),
            {
                "title": title or "",
                "content": (content or "")[:MAX_SUMMARY_CONTENT_CHARS],
            },
            model_name=model_name,
            temperature=temperature,
        )
    except Exception as e:
        raise RemoteTransportError(f"Summarizer call failed: {e}") from e

    return parse_summary_response(response.strip())


def get_or_create_summary(
    client: ReaderClient,
    document_id: str,
    title: Optional[str],
    model_name: str = DEFAULT_MODEL_NAME,
    temperature: float = 0.3,
) -> Summary:
    """Return the cached summary for a document, summarizing it on a miss.

    Failed summaries are not cached, so the next request tries again.
    Without a title the stored document's title is used.
    """
    cached = get_summary(document_id)
    if cached is not None:
        logger.debug(f"Summary cache hit for {document_id}")
        return cached

    document = get_document(document_id)
    if document is None:
        raise ConflictError(f"Unknown document: {document_id}")

    content = client.get_document_content(document_id)
    result = summarize(title or document.title or "", content, model_name=model_name, temperature=temperature)
    saved = save_summary(document_id, result)
    logger.info(f"Summarized {document_id} ({len(saved.key_points)} key points)")
    return saved
