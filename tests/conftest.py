import os
import tempfile

os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "dating-api-tests.log"))

from datetime import datetime  # noqa: E402
from itertools import count  # noqa: E402

import mongomock  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from dating_api.auth import create_access_token  # noqa: E402
from dating_api.coordinator import SwipeCoordinator  # noqa: E402
from dating_api.database import Database  # noqa: E402
from dating_api.directory import UserDirectory  # noqa: E402
from dating_api.feed import CandidateFeedSelector  # noqa: E402
from dating_api.ledger import SwipeLedger  # noqa: E402
from dating_api.main import app  # noqa: E402
from dating_api.matches import MatchStore  # noqa: E402


_emails = count(1)


@pytest.fixture
def database():
    db = Database(name="dating_test", client=mongomock.MongoClient())
    db.ensure_indexes()
    return db


@pytest.fixture
def directory(database):
    return UserDirectory(database.users)


@pytest.fixture
def ledger(database):
    return SwipeLedger(database.swipes)


@pytest.fixture
def match_store(database, directory):
    return MatchStore(database.matches, directory)


@pytest.fixture
def feed(directory, ledger):
    return CandidateFeedSelector(directory, ledger)


@pytest.fixture
def coordinator(directory, ledger, match_store):
    return SwipeCoordinator(directory, ledger, match_store, require_same_like_type=True)


@pytest.fixture
def make_user(database, directory):
    def _make(first_name="Alex", last_name="Doe", **fields):
        doc = {
            "email": f"user{next(_emails)}@mail.com",
            "password": "$2b$10$hashed",
            "first_name": first_name,
            "last_name": last_name,
            "date_of_birth": datetime(1995, 3, 10),
            "gender": "female",
            "role": "customer",
            "interests": [],
        }
        doc.update(fields)
        inserted_id = database.users.insert_one(doc).inserted_id
        return directory.find_by_id(str(inserted_id))

    return _make


@pytest.fixture
def client(database):
    app.state.database = database
    yield TestClient(app)
    app.state.database = None


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}

    return _headers
