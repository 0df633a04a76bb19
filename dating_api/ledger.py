from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from dating_api.database import now_utc
from dating_api.errors import ValidationError
from dating_api.logger import logger
from dating_api.schemas import LikeType, Swipe, SwipeAction


@dataclass(frozen=True)
class SwipeOutcome:
    record: Swipe
    created: bool

    @property
    def already_swiped(self) -> bool:
        return not self.created

    @property
    def prior_action(self) -> Optional[SwipeAction]:
        return None if self.created else self.record.action


def _swipe(doc: dict) -> Swipe:
    return Swipe.model_validate(doc)


class SwipeLedger:
    """
    Append-only record of swipes, at most one per ordered (swiper, swiped) pair.

    The unique index on the pair is the real guard; the lookup before the
    insert only saves a round trip for the common retry case.
    """

    def __init__(self, swipes: Collection):
        self.swipes = swipes

    def record(
        self,
        swiper_id: str,
        swiped_id: str,
        action: SwipeAction,
        like_type: Optional[LikeType] = None,
    ) -> SwipeOutcome:
        if swiper_id == swiped_id:
            raise ValidationError("Cannot swipe on yourself")
        if like_type is not None and action != "like":
            raise ValidationError("like_type can only be given with a like")

        existing = self.find(swiper_id, swiped_id)
        if existing is not None:
            return SwipeOutcome(existing, created=False)

        record = Swipe(
            swiper=swiper_id,
            swiped=swiped_id,
            action=action,
            like_type=like_type,
            created_at=now_utc(),
        )
        try:
            self.swipes.insert_one(record.model_dump())
        except DuplicateKeyError:
            existing = self.find(swiper_id, swiped_id)
            if existing is None:
                raise
            logger.info(f"Concurrent duplicate swipe {swiper_id} -> {swiped_id} absorbed")
            return SwipeOutcome(existing, created=False)

        logger.info(f"Swipe recorded: {swiper_id} -> {swiped_id} ({action}{'/' + like_type if like_type else ''})")
        return SwipeOutcome(record, created=True)

    def find(self, swiper_id: str, swiped_id: str) -> Optional[Swipe]:
        doc = self.swipes.find_one({"swiper": swiper_id, "swiped": swiped_id})
        return _swipe(doc) if doc else None

    def reciprocal_like(self, swiper_id: str, swiped_id: str) -> Optional[Swipe]:
        """The like ``swiped_id`` gave ``swiper_id``, if any."""
        doc = self.swipes.find_one({"swiper": swiped_id, "swiped": swiper_id, "action": "like"})
        return _swipe(doc) if doc else None

    def swiped_ids(self, user_id: str) -> Set[str]:
        return set(self.swipes.distinct("swiped", {"swiper": user_id}))

    def liked_by(self, user_id: str) -> List[Swipe]:
        """Outbound likes of ``user_id``, oldest first."""
        cursor = self.swipes.find({"swiper": user_id, "action": "like"}).sort("created_at", 1)
        return [_swipe(doc) for doc in cursor]

    def likes_received(self, user_id: str) -> List[Swipe]:
        """Inbound likes to ``user_id``, newest first."""
        cursor = self.swipes.find({"swiped": user_id, "action": "like"}).sort("created_at", -1)
        return [_swipe(doc) for doc in cursor]

    def swipes_toward(self, user_id: str, from_ids: Iterable[str]) -> Dict[str, Swipe]:
        """Swipes made on ``user_id`` by each of ``from_ids``, keyed by swiper."""
        cursor = self.swipes.find({"swiper": {"$in": list(from_ids)}, "swiped": user_id})
        return {doc["swiper"]: _swipe(doc) for doc in cursor}

    def count(self, **query) -> int:
        return self.swipes.count_documents(query)
