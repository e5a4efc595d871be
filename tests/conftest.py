from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from config import Settings, get_settings
from enquiries import EnquiryPipeline
from main import app, get_pipeline


class RecordingSender:
    """Stands in for SMTP; records messages and can fail for chosen recipients."""

    def __init__(self):
        self.sent = []
        self.fail_for = set()

    def __call__(self, message):
        if message.to in self.fail_for:
            raise ConnectionError("SMTP server unreachable")
        self.sent.append(message)
        return True


@pytest.fixture
def settings():
    return Settings(
        database_url="mongodb://localhost:27017",
        database_name="edu_test",
        admin_email="admin@example.com",
        support_email="help@example.com",
        environment="test",
    )


@pytest.fixture
def db(monkeypatch):
    mock_db = mongomock.MongoClient()["edu_test"]
    database.ensure_indexes(mock_db)
    monkeypatch.setattr(database, "_db", mock_db)
    return mock_db


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def client(db, settings, sender):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_pipeline] = lambda: EnquiryPipeline(settings, sender)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_country(db):
    def _make(slug, name=None, flag="", is_active=True, display_order=0):
        doc = {
            "name": name or slug.replace("-", " ").title(),
            "slug": slug,
            "flag": flag,
            "description": "",
            "is_active": is_active,
            "display_order": display_order,
        }
        doc["_id"] = db["country"].insert_one(doc).inserted_id
        return doc

    return _make


@pytest.fixture
def make_college(db):
    counter = {"n": 0}

    def _make(name, country, college_type="study_abroad", exams=(), is_active=True, about_content="", ranking=None):
        counter["n"] += 1
        doc = {
            "name": name,
            "slug": name.lower().replace(" ", "-"),
            "college_type": college_type,
            "country_ref": country["_id"],
            "exams": list(exams),
            "about_content": about_content,
            "is_active": is_active,
            "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=counter["n"]),
        }
        if ranking is not None:
            doc["ranking"] = {"title": "Ranking & Recognition", "country_ranking": ranking}
        doc["_id"] = db["college"].insert_one(doc).inserted_id
        return doc

    return _make
