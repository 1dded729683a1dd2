from datetime import datetime

import pytest
from bson import ObjectId
from pydantic import ValidationError

from database import parse_object_id, serialize
from errors import InvalidObjectId
from schemas import ExperienceRequest, ProfileRequest


@pytest.mark.parametrize("skills,expected", [
    ("a, b ,c", ["a", "b", "c"]),
    ("python", ["python"]),
    ("go,,rust, ", ["go", "rust"]),
    (["  sql ", "bash"], ["sql", "bash"]),
])
def test_skills_are_split_and_trimmed(skills, expected):
    assert ProfileRequest(status="Dev", skills=skills).skills == expected


def test_blank_skills_rejected():
    with pytest.raises(ValidationError):
        ProfileRequest(status="Dev", skills=" , ")


def test_profile_fields_skip_absent_values():
    payload = ProfileRequest(status="Dev", skills="a", bio="", linkedin="https://linkedin.com/in/jane")
    assert payload.profile_fields() == {
        "status": "Dev",
        "skills": ["a"],
        "social.linkedin": "https://linkedin.com/in/jane",
    }


def test_experience_entry_has_its_own_id():
    payload = ExperienceRequest.model_validate({"title": "Dev", "company": "Acme", "from": "2020-01-01"})
    doc = payload.to_entry().to_document()
    assert isinstance(doc["_id"], ObjectId)
    assert doc["from"] == datetime.fromisoformat("2020-01-01T00:00:00+00:00")
    assert doc["to"] is None


@pytest.mark.parametrize("value", ["", "123", "g" * 24, "abcdefghijkl", "5f1d7f1c2a4b3c00123456789"])
def test_parse_object_id_rejects_malformed(value):
    with pytest.raises(InvalidObjectId) as exc:
        parse_object_id(value, "Post")
    assert exc.value.msg == "Invalid Post ID format"


def test_parse_object_id():
    assert parse_object_id("5f1d7f1c2a4b3c0012345678", "Post") == ObjectId("5f1d7f1c2a4b3c0012345678")


def test_serialize_renames_ids():
    oid, uid = ObjectId(), ObjectId()
    doc = {"_id": oid, "likes": [{"_id": uid, "user": oid}], "date": datetime(2020, 1, 1)}
    assert serialize(doc) == {
        "id": str(oid),
        "likes": [{"id": str(uid), "user": str(oid)}],
        "date": "2020-01-01T00:00:00",
    }
