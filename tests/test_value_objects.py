"""
Tests for value objects
"""
import pytest

from domain_models import JSONDoc
from jsonapi import errors as jsonapi
from value_objects import (
    DocumentIdentity, ExpectedRevision, normalize_revision, revision_generation,
)


class TestDocumentIdentity:
    """Tests for DocumentIdentity"""

    def test_from_route(self):
        identity = DocumentIdentity.from_route("io.cozy.events", "4521C325")
        assert identity.doctype == "io.cozy.events"
        assert identity.doc_id == "4521C325"
        assert str(identity) == "io.cozy.events/4521C325"
        assert not identity.is_collection

    def test_id_kept_as_given(self):
        assert DocumentIdentity.from_route("io.cozy.events", " x").doc_id == " x"

    def test_collection_identity(self):
        identity = DocumentIdentity.from_route("io.cozy.events")
        assert identity.is_collection
        assert str(identity) == "io.cozy.events"

    def test_empty_doctype_rejected(self):
        with pytest.raises(jsonapi.Error) as exc_info:
            DocumentIdentity.from_route("  ")
        assert exc_info.value.status == 400

    def test_immutable(self):
        identity = DocumentIdentity.from_route("io.cozy.events", "a")
        with pytest.raises(Exception):
            identity.doc_id = "b"


class TestNormalizeRevision:
    """ETag decoration is stripped"""

    @pytest.mark.parametrize("raw,expected", [
        ("1-abc", "1-abc"),
        ('"1-abc"', "1-abc"),
        ('W/"1-abc"', "1-abc"),
        ("  2-def ", "2-def"),
        ("", None),
        ('""', None),
        (None, None),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_revision(raw) == expected


class TestExpectedRevision:
    """Tests for ExpectedRevision resolution"""

    def test_header_only(self):
        assert ExpectedRevision.resolve('"1-abc"', None).value == "1-abc"

    def test_fallback_only(self):
        assert ExpectedRevision.resolve(None, "1-abc").value == "1-abc"

    def test_both_equal(self):
        assert ExpectedRevision.resolve("1-abc", "1-abc").value == "1-abc"

    def test_both_different_is_bad_request(self):
        with pytest.raises(jsonapi.Error) as exc_info:
            ExpectedRevision.resolve("1-abc", "2-def", "rev query parameter")
        assert exc_info.value.status == 400
        assert "rev query parameter" in exc_info.value.detail

    def test_absent(self):
        expected = ExpectedRevision.resolve(None, None)
        assert not expected.present
        assert expected.value is None


class TestRevisionGeneration:

    def test_generation(self):
        assert revision_generation("12-abcdef") == 12

    def test_unparseable(self):
        assert revision_generation("garbage") == 0


class TestJSONDoc:
    """Tests for the JSONDoc domain model"""

    def test_content_excludes_identity_and_type(self):
        doc = JSONDoc("io.cozy.events", {"_id": "a", "_rev": "1-x", "_type": "io.cozy.events",
                                         "title": "standup"})
        assert doc.content() == {"title": "standup"}

    def test_to_dict_adds_type(self):
        doc = JSONDoc.from_store("io.cozy.events", {"_id": "a", "_rev": "1-x"})
        assert doc.to_dict() == {"_id": "a", "_rev": "1-x", "_type": "io.cozy.events"}
        assert doc.id == "a"
        assert doc.rev == "1-x"

    def test_set_identity(self):
        doc = JSONDoc("io.cozy.events", {"title": "standup"})
        assert doc.id is None
        doc.set_identity("b", "2-y")
        assert (doc.id, doc.rev) == ("b", "2-y")
        assert doc.get("title") == "standup"
