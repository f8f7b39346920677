"""
Readwise Reader client.

Talks to the Readwise MCP server over HTTP: JSON-RPC requests, with
responses framed as server-sent events.
"""

import json
import time
from datetime import datetime, timezone
from typing import Iterable, Optional, Set

import requests

from triage.errors import RemoteTransportError
from triage.models import Document, DocumentPage, Location
from util.logging_util import setup_logger, log_remote_call
from util.secrets import get_readwise_token

logger = setup_logger(__name__)

DEFAULT_MCP_URL = "https://mcp2.readwise.io/mcp"

LIST_DOCUMENTS_TOOL = "reader_list_documents"
MOVE_DOCUMENT_TOOL = "reader_move_document"
DOCUMENT_DETAILS_TOOL = "reader_get_document_details"


def _message_to_result(msg: dict) -> Optional[dict]:
    """Pull the tool result out of one JSON-RPC message.

    Returns None when the message carries nothing usable.
    """
    if msg.get("error"):
        raise RemoteTransportError(f"Readwise MCP error: {json.dumps(msg['error'])}")

    result = msg.get("result") or {}

    if result.get("isError"):
        error_text = "\n".join(
            item.get("text", "") for item in result.get("content") or []
            if isinstance(item, dict) and item.get("type") == "text"
        )
        raise RemoteTransportError(f"Readwise tool error: {error_text}")

    # Prefer structuredContent, fall back to text content
    if result.get("structuredContent") is not None:
        return result["structuredContent"]

    for item in result.get("content") or []:
        if not isinstance(item, dict) or item.get("type") != "text":
            continue
        try:
            return json.loads(item["text"])
        except (TypeError, ValueError):
            return {"text": item.get("text")}

    return None


def parse_mcp_response(raw: str) -> dict:
    """Parse the body of an MCP response into the tool's result payload.

    SSE bodies carry one JSON-RPC message per "data: " line; servers that
    answer with plain JSON send the message as the whole body.
    """
    data_lines = [
        line[len("data: "):].strip()
        for line in raw.splitlines()
        if line.startswith("data: ")
    ]
    if not data_lines and raw.strip():
        data_lines = [raw.strip()]

    for line in data_lines:
        if not line:
            continue
        try:
            msg = json.loads(line)
        except ValueError as e:
            raise RemoteTransportError(f"Unparseable Readwise MCP message: {line[:200]}") from e
        if not isinstance(msg, dict):
            continue
        result = _message_to_result(msg)
        if result is not None:
            return result

    raise RemoteTransportError("No valid response from Readwise MCP")


def normalize_tags(raw) -> Set[str]:
    """Tag names from the remote's tag map, or from a plain list of names."""
    if isinstance(raw, dict):
        return {name for name in raw if isinstance(name, str)}
    if isinstance(raw, (list, tuple, set)):
        names = set()
        for item in raw:
            if isinstance(item, str):
                names.add(item)
            elif isinstance(item, dict) and isinstance(item.get("name"), str):
                names.add(item["name"])
        return names
    return set()


def _optional_int(value) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _optional_str(value) -> Optional[str]:
    return None if value is None else str(value)


def record_to_document(record: dict, location: Location) -> Document:
    """Convert a remote listing record into a Document in the given collection."""
    if not isinstance(record, dict):
        raise RemoteTransportError(f"Malformed document record: {record!r}")
    document_id = record.get("id")
    if not document_id:
        raise RemoteTransportError(f"Document record without an id: {record!r}")

    return Document(
        id=str(document_id),
        location=location,
        title=_optional_str(record.get("title")),
        author=_optional_str(record.get("author")),
        category=_optional_str(record.get("category")),
        summary=_optional_str(record.get("summary")),
        source_url=_optional_str(record.get("source_url")),
        image_url=_optional_str(record.get("image_url")),
        word_count=_optional_int(record.get("word_count")),
        reading_time=_optional_str(record.get("reading_time")),
        saved_at=_optional_str(record.get("saved_at")),
        tags=normalize_tags(record.get("tags")),
    )


def format_updated_after(watermark: float) -> str:
    """ISO-8601 UTC timestamp for the remote's changed-since filter."""
    return datetime.fromtimestamp(watermark, tz=timezone.utc).isoformat()


class ReaderClient:
    """Client for the remote reading library."""

    def __init__(
        self,
        mcp_url: str = DEFAULT_MCP_URL,
        timeout: float = 30.0,
        token: Optional[str] = None,
    ):
        self.mcp_url = mcp_url
        self.timeout = timeout
        self._token = token

    def _headers(self) -> dict:
        token = self._token or get_readwise_token()
        return {
            "Authorization": f"Token {token}",
            "Content-Type": "application/json",
            "Accept": "application/json, text/event-stream",
        }

    def call_tool(self, tool: str, arguments: dict) -> dict:
        """Invoke an MCP tool and return its result payload."""
        payload = {
            "jsonrpc": "2.0",
            "method": "tools/call",
            "params": {"name": tool, "arguments": arguments},
            "id": f"{tool}-{int(time.time() * 1000)}",
        }

        start_time = time.time()
        try:
            resp = requests.post(
                self.mcp_url,
                headers=self._headers(),
                json=payload,
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise RemoteTransportError(f"Readwise request failed ({tool}): {e}") from e

        log_remote_call(logger, tool, arguments, (time.time() - start_time) * 1000)
        return parse_mcp_response(resp.text)

    def list_documents(
        self,
        location: Location,
        limit: int = 100,
        cursor: Optional[str] = None,
        fields: Optional[Iterable[str]] = None,
        updated_after: Optional[float] = None,
    ) -> DocumentPage:
        """Fetch one page of a collection.

        Args:
            location: Collection to list.
            limit: Page size.
            cursor: Cursor returned with the previous page, if any.
            fields: Subset of document fields to return.
            updated_after: Only return documents changed after this epoch time.

        Returns:
            The page's raw records and the cursor for the next page, if any.
        """
        params = {"location": location.value, "limit": limit}
        if cursor:
            params["page_cursor"] = cursor
        if fields:
            params["response_fields"] = list(fields)
        if updated_after is not None:
            params["updated_after"] = format_updated_after(updated_after)

        res = self.call_tool(LIST_DOCUMENTS_TOOL, params)
        if not isinstance(res, dict):
            raise RemoteTransportError(f"Malformed listing for {location.value}: {res!r}")

        records = res.get("results") or []
        if not isinstance(records, list):
            raise RemoteTransportError(f"Malformed listing for {location.value}: results is not a list")

        next_cursor = res.get("nextPageCursor") or None
        return DocumentPage(records=records, next_cursor=next_cursor)

    def move_document(self, document_id: str, location: Location) -> None:
        """Move a document to another collection."""
        self.call_tool(MOVE_DOCUMENT_TOOL, {"document_id": document_id, "location": location.value})

    def get_document_details(self, document_id: str) -> dict:
        return self.call_tool(DOCUMENT_DETAILS_TOOL, {"document_id": document_id})

    def get_document_content(self, document_id: str) -> str:
        """Full text of a document, falling back to its remote summary."""
        details = self.get_document_details(document_id)
        return details.get("content") or details.get("summary") or ""
