from typing import List, Optional

from dating_api import config
from dating_api.directory import UserDirectory
from dating_api.errors import ValidationError
from dating_api.ledger import SwipeLedger
from dating_api.logger import logger
from dating_api.matches import MatchStore, match_view
from dating_api.profiles import public_profile
from dating_api.schemas import (
    DetailedMatchView,
    LikedUser,
    LikeType,
    Swipe,
    SwipeAction,
    SwipeResult,
    SwipeStats,
    User,
)
from dating_api.scoring import score_match


def like_types_agree(mine: Optional[LikeType], theirs: Optional[LikeType]) -> bool:
    # A plain like on either side matches any like
    if mine is None or theirs is None:
        return True
    return mine == theirs


class SwipeCoordinator:
    """
    Turns one user's swipe into a ledger entry and, on a qualifying
    reciprocal like, a match.

    Only the ledger insert and the match insert write anything, and both are
    idempotent, so a failed call can simply be replayed.
    """

    def __init__(
        self,
        directory: UserDirectory,
        ledger: SwipeLedger,
        matches: MatchStore,
        require_same_like_type: bool = config.MATCH_REQUIRES_SAME_LIKE_TYPE,
    ):
        self.directory = directory
        self.ledger = ledger
        self.matches = matches
        self.require_same_like_type = require_same_like_type

    def swipe(
        self,
        swiper: User,
        target_id: Optional[str],
        action: SwipeAction,
        like_type: Optional[LikeType] = None,
    ) -> SwipeResult:
        if target_id == swiper.id:
            raise ValidationError("Cannot swipe on yourself")
        target = self.directory.find_by_id(target_id)
        outcome = self.ledger.record(swiper.id, target.id, action, like_type)
        if outcome.already_swiped:
            # Replaying a like also restores a match lost between the two writes
            self._settle_match(outcome.record)
            return SwipeResult(
                already_swiped=True,
                prior_action=outcome.prior_action,
                message="Already swiped on this user",
            )

        if not self._settle_match(outcome.record):
            return SwipeResult()
        return SwipeResult(
            is_match=True,
            matched_profile=public_profile(target),
            message="It's a match!",
        )

    def _settle_match(self, mine: Swipe) -> bool:
        """Create the match ``mine`` completes, if any. Dislikes never match."""
        if mine.action != "like":
            return False
        theirs = self.ledger.reciprocal_like(mine.swiper, mine.swiped)
        if theirs is None or not self._qualifies(mine, theirs):
            return False

        self.matches.create_if_absent(
            mine.swiper,
            mine.swiped,
            like_types={mine.swiper: mine.like_type, mine.swiped: theirs.like_type},
            is_mutual_emotion=True,
        )
        return True

    def _qualifies(self, mine: Swipe, theirs: Swipe) -> bool:
        if not self.require_same_like_type:
            return True
        if like_types_agree(mine.like_type, theirs.like_type):
            return True
        logger.debug(
            f"Mutual like {mine.swiper} <-> {mine.swiped} without a match: "
            f"{mine.like_type} vs {theirs.like_type}"
        )
        return False

    def detailed_matches(self, user: User) -> List[DetailedMatchView]:
        records = self.matches.for_user(user.id)
        others = self.directory.find_many(m.other(user.id) for m in records)
        views = []
        for m in records:
            other = others.get(m.other(user.id))
            if other is None:
                continue
            total, breakdown, mutual = score_match(user, other)
            base = match_view(m, user.id, public_profile(other))
            views.append(DetailedMatchView(
                **base.model_dump(),
                mutual_interests=mutual,
                compatibility_score=total,
                compatibility_breakdown=breakdown,
            ))
        return views

    def liked_users(self, user: User) -> List[LikedUser]:
        """Outbound likes that have not (yet) turned into a match."""
        likes = self.ledger.liked_by(user.id)
        profiles = self.directory.find_many(s.swiped for s in likes)
        theirs = self.ledger.swipes_toward(user.id, profiles)
        liked = []
        for s in likes:
            if s.swiped not in profiles or self.matches.find_pair(user.id, s.swiped):
                continue
            their_swipe = theirs.get(s.swiped)
            liked.append(LikedUser(
                profile=public_profile(profiles[s.swiped]),
                liked_at=s.created_at,
                has_viewed=their_swipe is not None,
                their_action=their_swipe.action if their_swipe else None,
                status="rejected" if their_swipe and their_swipe.action == "dislike" else "pending",
            ))
        return liked

    def stats(self, user: User) -> SwipeStats:
        total_likes = self.ledger.count(swiper=user.id, action="like")
        total_dislikes = self.ledger.count(swiper=user.id, action="dislike")
        total_matches = self.matches.count_for_user(user.id)
        return SwipeStats(
            total_likes=total_likes,
            total_dislikes=total_dislikes,
            total_swipes=total_likes + total_dislikes,
            total_matches=total_matches,
            likes_received=self.ledger.count(swiped=user.id, action="like"),
            match_rate=round(total_matches / total_likes * 100, 1) if total_likes else 0.0,
        )
