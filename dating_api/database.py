from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection

from dating_api import config
from dating_api.logger import logger

# Collection names are the lowercased schema class names
USER_COLLECTION = "user"
SWIPE_COLLECTION = "swipe"
MATCH_COLLECTION = "match"


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Database:
    """
    Owns one MongoClient for the lifetime of the application.

    Created at startup, shared by every request through the ``get_database``
    dependency and closed at shutdown. Pass ``client`` to run against an
    already constructed client (e.g. mongomock in tests); an injected client
    is left open on ``close()``.
    """

    def __init__(
        self,
        url: str = config.MONGO_URL,
        name: str = config.DB_NAME,
        client: Optional[MongoClient] = None,
    ):
        self._owns_client = client is None
        self.client = client if client is not None else MongoClient(url, serverSelectionTimeoutMS=5000)
        self.name = name
        self.db = self.client[name]

    @property
    def users(self) -> Collection:
        return self.db[USER_COLLECTION]

    @property
    def swipes(self) -> Collection:
        return self.db[SWIPE_COLLECTION]

    @property
    def matches(self) -> Collection:
        return self.db[MATCH_COLLECTION]

    def ensure_indexes(self) -> None:
        # The unique indexes are what make swipes and matches idempotent under races
        self.swipes.create_index(
            [("swiper", ASCENDING), ("swiped", ASCENDING)], unique=True, name="uq_swipe_pair"
        )
        self.swipes.create_index([("swiped", ASCENDING), ("action", ASCENDING)], name="idx_swiped_action")
        self.matches.create_index("pair_key", unique=True, name="uq_match_pair")
        self.matches.create_index("users", name="idx_match_users")
        logger.info(f"Indexes ensured on database '{self.name}'")

    def collection_names(self) -> List[str]:
        return self.db.list_collection_names()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()
            logger.info("MongoDB client closed")
