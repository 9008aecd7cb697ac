from unittest.mock import MagicMock, patch

import pytest
from google.api_core import exceptions as gexc

from schemas import AnalysisRequest, AnalysisResult, ExtractionSource
from services import firestore_client
from services.errors import PersistenceError


@pytest.fixture
def db():
    handle = MagicMock()
    handle.collection.return_value.document.return_value.id = "doc-1"
    with patch.object(firestore_client, "_db_handle", return_value=handle):
        yield handle


def _stored(db):
    return db.collection.return_value.document.return_value.set.call_args.args[0]


def test_save_analysis_payload(db):
    req = AnalysisRequest(images=["https://x/1.jpg"], bio="Hi", goals="Long-term")
    result = AnalysisResult(overallScore=8, strengths=["Smile"])

    assert firestore_client.save_analysis("uid-1", req, result) == "doc-1"
    db.collection.assert_called_once_with(firestore_client.PROFILE_ANALYSES)
    data = _stored(db)
    assert data["userId"] == "uid-1"
    assert data["images"] == ["https://x/1.jpg"]
    assert data["analysis"]["overallScore"] == 8
    assert "fallback" not in data["analysis"]
    assert data["createdAt"] is firestore_client.firestore.SERVER_TIMESTAMP


def test_write_failure_is_persistence_error(db):
    db.collection.return_value.document.return_value.set.side_effect = gexc.ServiceUnavailable("down")
    with pytest.raises(PersistenceError):
        firestore_client.save_record("bioSuggestions", "uid-1", {"suggestions": []})


def test_record_swallows_failures(db, caplog):
    db.collection.return_value.document.return_value.set.side_effect = gexc.ServiceUnavailable("down")
    req = AnalysisRequest(bio="Hi")
    assert firestore_client.record_analysis("uid-1", req, AnalysisResult(overallScore=5)) is None
    assert firestore_client.record(firestore_client.PROMPT_RESPONSES, "uid-1", {"prompt": "p"}) is None
    assert "persistence failed" in caplog.text


def test_sample_results_are_not_stored(db):
    result = AnalysisResult(source=ExtractionSource.SAMPLE)
    assert firestore_client.record_analysis("uid-1", AnalysisRequest(bio="Hi"), result) is None
    db.collection.assert_not_called()


def test_disabled_store_skips_writes(db, monkeypatch):
    monkeypatch.setenv("FIRESTORE_ENABLED", "false")
    assert firestore_client.record_analysis("uid-1", AnalysisRequest(bio="Hi"), AnalysisResult()) is None
    assert firestore_client.record("bioSuggestions", "uid-1", {}) is None
    db.collection.assert_not_called()


def test_record_returns_doc_id(db):
    assert firestore_client.record("bioSuggestions", "uid-1", {"suggestions": ["a"]}) == "doc-1"
    assert _stored(db)["suggestions"] == ["a"]


def test_missing_credentials_are_logged_not_raised(monkeypatch, caplog):
    from google.auth.exceptions import DefaultCredentialsError

    monkeypatch.setattr(firestore_client, "_db", None)
    with patch.object(firestore_client.firestore, "Client", side_effect=DefaultCredentialsError("no creds")):
        result = AnalysisResult(overallScore=5)
        assert firestore_client.record_analysis("uid-1", AnalysisRequest(bio="hi"), result) is None
        assert firestore_client.record(firestore_client.CONVERSATION_STARTERS, "uid-1", {}) is None
        with pytest.raises(PersistenceError):
            firestore_client.save_record(firestore_client.BIO_SUGGESTIONS, "uid-1", {})
    assert "no creds" in caplog.text
