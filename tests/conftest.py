"""
Shared fixtures: an app wired to an in-memory MongoDB and a recording notifier.

Nothing here needs a running MongoDB, mail relay or push relay.
"""

import itertools
from datetime import datetime, timedelta

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from internhub.core.config import Settings
from internhub.db.mongodb import get_db
from internhub.main import create_app
from internhub.services.notifier import Notifier, get_notifier


class RecordingNotifier(Notifier):
    """Keeps every event instead of delivering it."""

    def __init__(self, digest_result: bool = True, delivery_result: bool = True):
        self.events = []
        self.digest_result = digest_result
        self.delivery_result = delivery_result

    def application_submitted(self, application, opportunity, student):
        self.events.append(("application_submitted", application, opportunity, student))

    def application_status_changed(self, application, opportunity, student):
        self.events.append(("application_status_changed", application, opportunity, student))

    def alert_digest(self, student, alert, opportunities):
        self.events.append(("alert_digest", student, alert, opportunities))
        return self.digest_result

    def application_status_message(self, application, opportunity, organization, student, status, message):
        self.events.append(("application_status_message", application, student, status, message))
        return self.delivery_result

    def contact_message(self, name, email, subject, message):
        self.events.append(("contact_message", name, email, subject, message))
        return self.delivery_result

    def kinds(self):
        return [event[0] for event in self.events]


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        mongodb_db="internhub_test",
        jwt_secret_key="test-secret",
        smtp_host="",
        push_relay_url="",
    )


@pytest.fixture
def db():
    database = mongomock.MongoClient()["internhub_test"]
    database.students.create_index("email", unique=True)
    database.organizations.create_index("email", unique=True)
    database.applications.create_index([("opportunity", 1), ("student", 1)], unique=True)
    database.reviews.create_index([("opportunity", 1), ("student", 1)], unique=True)
    return database


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def app(settings, db, notifier):
    application = create_app(settings)
    application.dependency_overrides[get_db] = lambda: db
    application.dependency_overrides[get_notifier] = lambda: notifier
    return application


@pytest.fixture
def client(app):
    # no `with`: the lifespan (real MongoClient) stays off
    return TestClient(app, raise_server_exceptions=False)


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register_student(client, db):
    counter = itertools.count(1)

    def _register(first_name="Ada", resume="resumes/ada.pdf", admin=False, email_notifications=True):
        n = next(counter)
        email = f"student{n}@example.com"
        resp = client.post("/api/auth/register", json={
            "firstName": first_name,
            "lastName": "Lovelace",
            "email": email,
            "password": "secret123",
        })
        assert resp.status_code == 201, resp.text
        body = resp.json()

        updates = {}
        if resume:
            updates["resume"] = resume
        if admin:
            updates["role"] = "admin"
        if not email_notifications:
            updates["emailNotifications"] = False
        if updates:
            db.students.update_one({"_id": ObjectId(body["user"]["id"])}, {"$set": updates})

        return {"id": body["user"]["id"], "email": email, "headers": bearer(body["token"])}

    return _register


@pytest.fixture
def register_organization(client):
    counter = itertools.count(1)

    def _register(name=None, industry="Technology"):
        n = next(counter)
        email = f"org{n}@example.com"
        resp = client.post("/api/auth/register-company", json={
            "name": name or f"Org {n}",
            "email": email,
            "password": "secret123",
            "industry": industry,
        })
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return {"id": body["organization"]["id"], "email": email, "headers": bearer(body["token"])}

    return _register


def opportunity_payload(**overrides):
    now = datetime.utcnow()
    payload = {
        "title": "Backend Intern",
        "description": "Build APIs with Python and MongoDB",
        "location": "Berlin",
        "type": "remote",
        "duration": "3 months",
        "startDate": (now + timedelta(days=30)).isoformat(),
        "endDate": (now + timedelta(days=120)).isoformat(),
        "applicationDeadline": (now + timedelta(days=14)).isoformat(),
        "category": "Engineering",
        "industry": "Technology",
        "skills": ["python", "mongodb"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def create_opportunity(client):
    def _create(headers, **overrides):
        resp = client.post("/api/opportunities", json=opportunity_payload(**overrides), headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["opportunity"]

    return _create
