import os
from datetime import datetime

os.environ.setdefault("MONGO_URL", "mongodb://localhost:27017")
os.environ.setdefault("MONGO_DB", "jevah_test")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["MONGO_TRANSACTIONS"] = "false"
os.environ["MAIL_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["GEMINI_API_KEY"] = ""

import pytest
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from jevah.auth.jwt_handler import create_access_token
from jevah.auth.password import hash_password
from jevah.auth.services import new_user_document
from jevah.chatbot.gemini import GeminiClient, get_gemini_client
from jevah.db.mongo import MEDIA, USERS, ensure_indexes, get_database
from jevah.main import app
from jevah.media.services import _counters
from jevah.utils.storage import build_object_key, get_storage


class FakeStorage:
    def __init__(self):
        self.objects = {}
        self.deleted = []

    async def upload(self, data, folder, mime_type):
        key = build_object_key(folder, mime_type)
        self.objects[key] = data
        return {"url": f"https://cdn.jevah.test/{key}", "objectKey": key}

    async def delete(self, object_key):
        self.objects.pop(object_key, None)
        self.deleted.append(object_key)

    async def presigned_url(self, object_key):
        return f"https://cdn.jevah.test/{object_key}?signed=1"


@pytest.fixture
async def db():
    database = AsyncMongoMockClient()["jevah_test"]
    await ensure_indexes(database)
    return database


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
async def client(db, storage):
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_gemini_client] = lambda: GeminiClient(api_key="")
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Insert a verified user and return ``(user_document, auth_headers)``."""
    counter = {"n": 0}

    async def factory(role="learner", first_name="Grace", last_name="Okafor", **extra):
        counter["n"] += 1
        email = extra.pop("email", f"{first_name.lower()}{counter['n']}@jevah.io")
        doc = new_user_document(email, hash_password("Secret123!"), first_name, last_name, role)
        doc["isEmailVerified"] = True
        doc.update(extra)
        result = await db[USERS].insert_one(doc)
        doc["_id"] = result.inserted_id
        token = create_access_token({"user_id": str(doc["_id"]), "role": role})
        return doc, {"Authorization": f"Bearer {token}"}

    return factory


@pytest.fixture
async def verified_artist(make_user):
    return await make_user(
        role="artist",
        first_name="David",
        last_name="Psalmist",
        isVerifiedArtist=True,
        artistProfile={
            "artistName": "David Psalms",
            "genre": ["gospel"],
            "followerCount": 0,
            "followingCount": 0,
            "isVerifiedArtist": True,
            "verificationDocuments": [],
        },
    )


@pytest.fixture
def make_media(db):
    """Insert a media document owned by ``owner`` with zeroed counters."""

    async def factory(owner, content_type="videos", title="Morning Worship", **extra):
        now = datetime.utcnow()
        doc = {
            "title": title,
            "description": f"{title} session",
            "contentType": content_type,
            "category": "worship",
            "topics": ["praise"],
            "uploadedBy": owner["_id"],
            "isLive": False,
            "isDownloadable": False,
            "fileUrl": f"https://cdn.jevah.test/media/{content_type}/file",
            "createdAt": now,
            "updatedAt": now,
            **_counters(),
        }
        doc.update(extra)
        result = await db[MEDIA].insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    return factory
