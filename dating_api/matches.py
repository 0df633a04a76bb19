from typing import Dict, List, Optional, Tuple

from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from dating_api.database import now_utc
from dating_api.directory import UserDirectory
from dating_api.logger import logger
from dating_api.profiles import public_profile
from dating_api.schemas import LikeType, Match, MatchView


def pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for the unordered pair {user_a, user_b}."""
    first, second = sorted((user_a, user_b))
    return f"{first}:{second}"


def _match(doc: dict) -> Match:
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return Match.model_validate(doc)


class MatchStore:
    """Confirmed mutual matches, one immutable document per unordered pair."""

    def __init__(self, matches: Collection, directory: UserDirectory):
        self.matches = matches
        self.directory = directory

    def find_pair(self, user_a: str, user_b: str) -> Optional[Match]:
        doc = self.matches.find_one({"pair_key": pair_key(user_a, user_b)})
        return _match(doc) if doc else None

    def create_if_absent(
        self,
        user_a: str,
        user_b: str,
        like_types: Dict[str, Optional[LikeType]],
        is_mutual_emotion: bool,
    ) -> Tuple[Match, bool]:
        """Return the pair's match and whether this call created it."""
        existing = self.find_pair(user_a, user_b)
        if existing is not None:
            return existing, False

        match = Match(
            users=sorted((user_a, user_b)),
            pair_key=pair_key(user_a, user_b),
            like_types=like_types,
            is_mutual_emotion=is_mutual_emotion,
            created_at=now_utc(),
        )
        doc = match.model_dump(exclude={"id"})
        try:
            inserted_id = self.matches.insert_one(doc).inserted_id
        except DuplicateKeyError:
            # The other side's swipe completed the same match first
            existing = self.find_pair(user_a, user_b)
            if existing is None:
                raise
            logger.info(f"Concurrent match creation for {match.pair_key} absorbed")
            return existing, False

        match.id = str(inserted_id)
        logger.info(f"Match created: {match.pair_key} (mutual emotion: {is_mutual_emotion})")
        return match, True

    def for_user(self, user_id: str) -> List[Match]:
        cursor = self.matches.find({"users": user_id}).sort("created_at", -1)
        return [_match(doc) for doc in cursor]

    def count_for_user(self, user_id: str) -> int:
        return self.matches.count_documents({"users": user_id})

    def list_for_user(self, user_id: str) -> List[MatchView]:
        """Newest first, with the other party's public profile populated."""
        records = self.for_user(user_id)
        others = self.directory.find_many(m.other(user_id) for m in records)
        views = []
        for m in records:
            other = others.get(m.other(user_id))
            if other is None:
                # Admin or deleted account
                continue
            views.append(match_view(m, user_id, public_profile(other)))
        return views


def match_view(match: Match, viewer_id: str, other_profile) -> MatchView:
    return MatchView(
        id=match.id,
        other=other_profile,
        your_like_type=match.like_types.get(viewer_id),
        their_like_type=match.like_types.get(match.other(viewer_id)),
        is_mutual_emotion=match.is_mutual_emotion,
        matched_at=match.created_at,
    )
