from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, FrozenSet, List, Optional, Set

from dating_api import config
from dating_api.directory import UserDirectory
from dating_api.errors import ValidationError
from dating_api.ledger import SwipeLedger
from dating_api.profiles import normalize_age_range, public_profile
from dating_api.schemas import CandidatePage, ReceivedLike, User


@dataclass(frozen=True)
class Exclusions:
    """The id sets a user must never be shown in the general feed."""

    own_id: str
    swiped: FrozenSet[str]
    friends: FrozenSet[str]
    pending_likes: FrozenSet[str]

    def union(self) -> Set[str]:
        return {self.own_id} | self.swiped | self.friends | self.pending_likes


def _years_before(day: date, years: int) -> datetime:
    try:
        shifted = day.replace(year=day.year - years)
    except ValueError:
        # 29 February in a non-leap year
        shifted = day.replace(year=day.year - years, day=28)
    return datetime(shifted.year, shifted.month, shifted.day)


class CandidateFeedSelector:
    def __init__(self, directory: UserDirectory, ledger: SwipeLedger):
        self.directory = directory
        self.ledger = ledger

    def exclusions(self, user: User) -> Exclusions:
        swiped = self.ledger.swiped_ids(user.id)
        likers = {s.swiper for s in self.ledger.likes_received(user.id)}
        return Exclusions(
            own_id=user.id,
            swiped=frozenset(swiped),
            friends=frozenset(user.friends),
            # Answering a pending like moves its sender into ``swiped``
            pending_likes=frozenset(likers - swiped),
        )

    def get_candidates(
        self,
        user: User,
        page: int = 1,
        page_size: int = config.DEFAULT_PAGE_SIZE,
        today: Optional[date] = None,
    ) -> CandidatePage:
        if page < 1:
            raise ValidationError("page must be 1 or greater")
        if not 1 <= page_size <= config.MAX_PAGE_SIZE:
            raise ValidationError(f"page_size must be between 1 and {config.MAX_PAGE_SIZE}")

        excluded = self.exclusions(user).union()
        total = self.directory.count_excluding(excluded)
        skip = (page - 1) * page_size
        users = self.directory.query_excluding(excluded, skip=skip, limit=page_size)
        return CandidatePage(
            items=[public_profile(u, today) for u in users],
            total_count=total,
            page=page,
            page_size=page_size,
            has_more=skip + len(users) < total,
        )

    def discovery_pool(self, user: User, today: Optional[date] = None) -> List[User]:
        """
        Feed-eligible users further narrowed by the viewer's gender preference
        and by birth dates inside the viewer's preferred age range.
        """
        extra: Dict[str, Any] = {}
        if user.looking_for and user.looking_for.lower() != "everyone":
            extra["gender"] = user.looking_for

        today = today or date.today()
        min_age, max_age = normalize_age_range(user.preferred_age_range)
        # age <= max_age  <=>  born after the day (max_age + 1) years ago
        extra["date_of_birth"] = {
            "$gt": _years_before(today, max_age + 1),
            "$lte": _years_before(today, min_age),
        }
        return self.directory.query_excluding(self.exclusions(user).union(), extra=extra)

    def pending_likes(self, user: User, today: Optional[date] = None) -> List[ReceivedLike]:
        """Inbound likes the user has not answered yet, newest first."""
        swiped = self.ledger.swiped_ids(user.id)
        pending = [s for s in self.ledger.likes_received(user.id) if s.swiper not in swiped]
        senders = self.directory.find_many(s.swiper for s in pending)
        return [
            ReceivedLike(
                profile=public_profile(senders[s.swiper], today),
                like_type=s.like_type,
                liked_at=s.created_at,
            )
            for s in pending
            if s.swiper in senders
        ]
