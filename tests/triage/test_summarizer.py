"""Tests for document summaries and the summary cache."""

from unittest.mock import MagicMock, patch

import pytest

from triage import db_engine
from triage.constants import MAX_SUMMARY_CONTENT_CHARS
from triage.database import get_summary, init_db, save_summary, upsert_document
from triage.errors import ConflictError, RemoteTransportError
from triage.models import Document, Location, Summary
from triage.summarizer import get_or_create_summary, parse_summary_response, summarize


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary file-backed database for testing."""
    test_engine = db_engine.create_triage_engine(tmp_path / "triage.db")
    db_engine.set_engine(test_engine)
    init_db()
    yield test_engine
    db_engine.reset_engine()


@pytest.fixture
def client():
    reader = MagicMock()
    reader.get_document_content.return_value = "Full article text."
    return reader


def add_document(document_id):
    upsert_document(Document(id=document_id, location=Location.NEW, title=f"Title {document_id}"))


class TestParseSummaryResponse:
    def test_plain_json(self):
        result = parse_summary_response('{"summary": "Short.", "keyPoints": ["a", "b"]}')
        assert result.summary == "Short."
        assert result.key_points == ["a", "b"]

    def test_fenced_json(self):
        text = '```json\n{"summary": "Fenced.", "keyPoints": ["x"]}\n```'
        result = parse_summary_response(text)
        assert result.summary == "Fenced."
        assert result.key_points == ["x"]

    def test_almost_json_falls_back_to_fields(self):
        """Test that a reply with a trailing comma still yields its fields."""
        text = 'Here you go: {"summary": "Says \\"hi\\".", "keyPoints": ["one", "two",]}'
        result = parse_summary_response(text)
        assert result.summary == 'Says "hi".'
        assert result.key_points == ["one", "two"]

    def test_plain_text_is_the_summary(self):
        result = parse_summary_response("Just prose, no JSON.")
        assert result.summary == "Just prose, no JSON."
        assert result.key_points == []

    def test_missing_key_points(self):
        result = parse_summary_response('{"summary": "Only a summary."}')
        assert result.key_points == []

    @pytest.mark.parametrize("value", ['{"a": 1}', '["x"]', "3", "null", '""'])
    def test_non_string_summary_uses_raw_text(self, value):
        text = '{"summary": ' + value + ', "keyPoints": ["k"]}'
        result = parse_summary_response(text)
        assert result.summary == text
        assert result.key_points == ["k"]


class TestSummarize:
    @patch("triage.summarizer.get_llm_response")
    def test_content_truncated(self, mock_llm):
        mock_llm.return_value = '{"summary": "S", "keyPoints": []}'

        summarize("Title", "x" * (MAX_SUMMARY_CONTENT_CHARS + 500))

        params = mock_llm.call_args[0][1]
        assert len(params["content"]) == MAX_SUMMARY_CONTENT_CHARS
        assert params["title"] == "Title"

    @patch("triage.summarizer.get_llm_response")
    def test_model_failure_is_transport_error(self, mock_llm):
        mock_llm.side_effect = Exception("quota exceeded")

        with pytest.raises(RemoteTransportError, match="quota exceeded"):
            summarize("Title", "content")


class TestSummaryCache:
    """Tests for the get-or-create summary gate."""

    def test_miss_summarizes_and_caches(self, temp_db, client):
        add_document("doc1")

        with patch("triage.summarizer.summarize") as mock_summarize:
            mock_summarize.return_value = Summary(summary="S", key_points=["k"])
            result = get_or_create_summary(client, "doc1", "Title doc1")

        assert result.summary == "S"
        assert result.key_points == ["k"]
        assert get_summary("doc1").summary == "S"
        client.get_document_content.assert_called_once_with("doc1")

    def test_repeat_calls_summarize_once(self, temp_db, client):
        """Test that the summarizer runs at most once per document."""
        add_document("doc1")

        with patch("triage.summarizer.summarize") as mock_summarize:
            mock_summarize.return_value = Summary(summary="S", key_points=["k"])
            first = get_or_create_summary(client, "doc1", "Title")
            second = get_or_create_summary(client, "doc1", "Title")

        assert mock_summarize.call_count == 1
        assert client.get_document_content.call_count == 1
        assert first.summary == second.summary
        assert first.key_points == second.key_points

    def test_cached_summary_skips_remote(self, temp_db, client):
        add_document("doc1")
        save_summary("doc1", Summary(summary="Cached", key_points=[]))

        with patch("triage.summarizer.summarize") as mock_summarize:
            result = get_or_create_summary(client, "doc1", "Title")

        assert result.summary == "Cached"
        mock_summarize.assert_not_called()
        client.get_document_content.assert_not_called()

    def test_failure_is_not_cached(self, temp_db, client):
        """Test that a failed summary leaves the cache empty so a retry can succeed."""
        add_document("doc1")

        with patch("triage.summarizer.summarize") as mock_summarize:
            mock_summarize.side_effect = RemoteTransportError("model down")
            with pytest.raises(RemoteTransportError):
                get_or_create_summary(client, "doc1", "Title")
            assert get_summary("doc1") is None

            mock_summarize.side_effect = None
            mock_summarize.return_value = Summary(summary="Second try", key_points=[])
            result = get_or_create_summary(client, "doc1", "Title")

        assert result.summary == "Second try"

    def test_content_fetch_failure_is_not_cached(self, temp_db, client):
        add_document("doc1")
        client.get_document_content.side_effect = RemoteTransportError("timeout")

        with pytest.raises(RemoteTransportError):
            get_or_create_summary(client, "doc1", "Title")

        assert get_summary("doc1") is None

    def test_stored_title_used_when_none_given(self, temp_db, client):
        add_document("doc1")

        with patch("triage.summarizer.summarize") as mock_summarize:
            mock_summarize.return_value = Summary(summary="S", key_points=[])
            get_or_create_summary(client, "doc1", None)

        assert mock_summarize.call_args[0][0] == "Title doc1"

    def test_given_title_wins(self, temp_db, client):
        add_document("doc1")

        with patch("triage.summarizer.summarize") as mock_summarize:
            mock_summarize.return_value = Summary(summary="S", key_points=[])
            get_or_create_summary(client, "doc1", "Shown title")

        assert mock_summarize.call_args[0][0] == "Shown title"

    def test_unknown_document_conflicts_before_remote_calls(self, temp_db, client):
        with patch("triage.summarizer.summarize") as mock_summarize:
            with pytest.raises(ConflictError):
                get_or_create_summary(client, "missing", "Title")

        mock_summarize.assert_not_called()
        client.get_document_content.assert_not_called()
