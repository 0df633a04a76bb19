from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING
from pymongo.collection import Collection

from dating_api.errors import NotFoundError, ValidationError
from dating_api.schemas import User


def to_object_id(user_id: str) -> ObjectId:
    if not user_id:
        raise ValidationError("User ID is required")
    try:
        return ObjectId(user_id)
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid user id '{user_id}'")


def user_entity(doc: dict) -> User:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return User.model_validate(doc)


class UserDirectory:
    """Lookups over the user collection. Profiles are never written from here."""

    def __init__(self, users: Collection):
        self.users = users

    def get(self, user_id: str) -> Optional[User]:
        doc = self.users.find_one({"_id": to_object_id(user_id)})
        return user_entity(doc) if doc else None

    def find_by_id(self, user_id: str) -> User:
        user = self.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def find_many(self, user_ids: Iterable[str], include_admins: bool = False) -> Dict[str, User]:
        query: Dict[str, Any] = {"_id": {"$in": _object_ids(user_ids)}}
        if not include_admins:
            query["role"] = {"$ne": "admin"}
        return {str(doc["_id"]): user_entity(doc) for doc in self.users.find(query)}

    def query_excluding(
        self,
        excluded_ids: Iterable[str],
        skip: int = 0,
        limit: Optional[int] = None,
        extra: Optional[Dict[str, Any]] = None,
        exclude_role: str = "admin",
    ) -> List[User]:
        """Users outside ``excluded_ids`` and not of ``exclude_role``, in creation order."""
        cursor = self.users.find(_excluding(excluded_ids, extra, exclude_role)).sort("_id", ASCENDING).skip(skip)
        if limit is not None:
            cursor = cursor.limit(limit)
        return [user_entity(doc) for doc in cursor]

    def count_excluding(
        self,
        excluded_ids: Iterable[str],
        extra: Optional[Dict[str, Any]] = None,
        exclude_role: str = "admin",
    ) -> int:
        return self.users.count_documents(_excluding(excluded_ids, extra, exclude_role))


def _object_ids(user_ids: Iterable[str]) -> List[ObjectId]:
    return [ObjectId(uid) for uid in user_ids if ObjectId.is_valid(uid)]


def _excluding(
    excluded_ids: Iterable[str], extra: Optional[Dict[str, Any]], exclude_role: str
) -> Dict[str, Any]:
    query: Dict[str, Any] = {
        "_id": {"$nin": _object_ids(excluded_ids)},
        "role": {"$ne": exclude_role},
    }
    if extra:
        query.update(extra)
    return query
