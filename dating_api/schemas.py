"""
Database Schemas for the Dating API

Each Pydantic model in the first section represents a MongoDB collection
(lowercased class name). The second section holds the payloads the HTTP
layer sends and receives.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

SwipeAction = Literal["like", "dislike"]
LikeType = Literal["crush", "intrigued", "curious", "fun"]
Role = Literal["admin", "customer"]

ROLES = ("admin", "customer")

_TEXT_FIELDS = (
    "email", "first_name", "last_name", "gender", "looking_for", "bio", "location",
    "profile_pic", "smoking", "alcohol", "relationship", "orientation", "education",
    "occupation", "religion", "politics", "height", "hairs", "eyes", "weight", "sociability",
)

_LEADING_INT = re.compile(r"\s*(\d+)")


def coerce_int(value: Any) -> Optional[int]:
    """Whole number from an int, integral float or leading digits of a string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        found = _LEADING_INT.match(value)
        return int(found.group(1)) if found else None
    return None


def _parse_datetime(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


class AgeRange(BaseModel):
    min: Optional[int] = None
    max: Optional[int] = None


class User(BaseModel):
    """Read-only view of a user document. The account service owns the collection."""

    model_config = ConfigDict(extra="ignore")

    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Union[datetime, date, None] = None
    gender: Optional[str] = None
    looking_for: Optional[str] = None
    preferred_age_range: Union[AgeRange, str, List[int], None] = Field(
        None, description='"min-max" string or {min, max} object'
    )
    bio: Optional[str] = None
    location: Optional[str] = None
    profile_pic: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    smoking: Optional[str] = None
    alcohol: Optional[str] = None
    relationship: Optional[str] = None
    orientation: Optional[str] = None
    education: Optional[str] = None
    occupation: Optional[str] = None
    religion: Optional[str] = None
    politics: Optional[str] = None
    height: Optional[str] = None
    hairs: Optional[str] = None
    eyes: Optional[str] = None
    weight: Optional[str] = None
    sociability: Optional[str] = None
    role: Role = "customer"
    friends: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def _text_or_none(cls, value: Any) -> Optional[str]:
        # Attributes of the wrong type or left blank count as not populated
        if isinstance(value, str) and value.strip():
            return value
        return None

    @field_validator("interests", mode="before")
    @classmethod
    def _interest_list(cls, value: Any) -> List[str]:
        if not isinstance(value, (list, tuple)):
            return []
        return [item for item in value if isinstance(item, str)]

    @field_validator("friends", mode="before")
    @classmethod
    def _friend_ids(cls, value: Any) -> List[str]:
        if not isinstance(value, (list, tuple)):
            return []
        return [str(item) for item in value]

    @field_validator("preferred_age_range", mode="before")
    @classmethod
    def _age_range(cls, value: Any) -> Any:
        # Stored as free-form data, so unreadable bounds are left unset
        if isinstance(value, (AgeRange, str)):
            return value
        if isinstance(value, dict):
            return AgeRange(min=coerce_int(value.get("min")), max=coerce_int(value.get("max")))
        if isinstance(value, (list, tuple)) and len(value) == 2:
            bounds = [coerce_int(item) for item in value]
            return bounds if None not in bounds else None
        return None

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def _birth_date(cls, value: Any) -> Union[datetime, date, None]:
        if isinstance(value, (datetime, date)):
            return value
        if isinstance(value, str):
            return _parse_datetime(value)
        return None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _timestamp(cls, value: Any) -> Optional[datetime]:
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            return _parse_datetime(value)
        return None

    @field_validator("role", mode="before")
    @classmethod
    def _known_role(cls, value: Any) -> str:
        return value if value in ROLES else "customer"

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class Swipe(BaseModel):
    swiper: str
    swiped: str
    action: SwipeAction
    like_type: Optional[LikeType] = None
    created_at: Optional[datetime] = None


class Match(BaseModel):
    id: Optional[str] = None
    users: List[str] = Field(..., min_length=2, max_length=2)
    pair_key: str
    like_types: Dict[str, Optional[LikeType]] = Field(default_factory=dict)
    is_mutual_emotion: bool = False
    created_at: Optional[datetime] = None

    def other(self, user_id: str) -> str:
        return self.users[1] if self.users[0] == user_id else self.users[0]


# ---------------------------------------------------------------------------
#  API payloads
# ---------------------------------------------------------------------------

class PublicProfile(BaseModel):
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: str = ""
    email: Optional[str] = None
    profile_pic: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    date_of_birth: Union[datetime, date, None] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    looking_for: Optional[str] = None
    interests: List[str] = []
    relationship: Optional[str] = None
    orientation: Optional[str] = None
    smoking: Optional[str] = None
    alcohol: Optional[str] = None
    education: Optional[str] = None
    occupation: Optional[str] = None
    religion: Optional[str] = None
    politics: Optional[str] = None
    height: Optional[str] = None
    hairs: Optional[str] = None
    eyes: Optional[str] = None
    weight: Optional[str] = None
    sociability: Optional[str] = None


class SwipeRequest(BaseModel):
    target_user_id: Optional[str] = None
    action: SwipeAction
    like_type: Optional[LikeType] = None


class SwipeResult(BaseModel):
    success: bool = True
    is_match: bool = False
    already_swiped: bool = False
    prior_action: Optional[SwipeAction] = None
    matched_profile: Optional[PublicProfile] = None
    message: str = "Swipe recorded"


class CandidatePage(BaseModel):
    items: List[PublicProfile]
    total_count: int
    page: int
    page_size: int
    has_more: bool


class MatchView(BaseModel):
    id: str
    other: Optional[PublicProfile] = None
    your_like_type: Optional[LikeType] = None
    their_like_type: Optional[LikeType] = None
    is_mutual_emotion: bool = False
    matched_at: Optional[datetime] = None


class DetailedMatchView(MatchView):
    mutual_interests: List[str] = []
    compatibility_score: int = 0
    compatibility_breakdown: Dict[str, int] = {}


class LikedUser(BaseModel):
    profile: PublicProfile
    liked_at: Optional[datetime] = None
    is_match: bool = False
    has_viewed: bool = False
    their_action: Optional[SwipeAction] = None
    status: Literal["pending", "rejected"] = "pending"


class ReceivedLike(BaseModel):
    profile: PublicProfile
    like_type: Optional[LikeType] = None
    liked_at: Optional[datetime] = None


class SwipeStats(BaseModel):
    total_likes: int
    total_dislikes: int
    total_swipes: int
    total_matches: int
    likes_received: int
    match_rate: float


class ScoredProfile(BaseModel):
    profile: PublicProfile
    match_score: int
    match_reasons: List[str]
    detailed_scoring: Dict[str, int]
    match_level: Literal["High", "Medium", "Low", "Poor"]


class DiscoverResponse(BaseModel):
    matches: List[ScoredProfile]
    total_matches: int
    high_matches: int
    medium_matches: int
    low_matches: int
    average_score: int
    best_match: Optional[ScoredProfile] = None
    last_updated: datetime
    message: Optional[str] = None
    suggestion: Optional[str] = None


class FactorDetail(BaseModel):
    score: int = 0
    match: bool = False


class InterestDetail(BaseModel):
    score: int = 0
    common: List[str] = []
    total: int = 0


class AgeDetail(BaseModel):
    score: int = 0
    compatible: bool = False
    age: Optional[int] = None


class LifestyleDetail(BaseModel):
    score: int = 0
    smoking: bool = False
    alcohol: bool = False


class CompatibilityDetails(BaseModel):
    interests: InterestDetail = InterestDetail()
    location: FactorDetail = FactorDetail()
    age: AgeDetail = AgeDetail()
    relationship: FactorDetail = FactorDetail()
    orientation: FactorDetail = FactorDetail()
    lifestyle: LifestyleDetail = LifestyleDetail()


class Compatibility(BaseModel):
    overall_score: int
    details: CompatibilityDetails
    reasons: List[str] = []


class CompatibilityResponse(BaseModel):
    user: PublicProfile
    compatibility: Compatibility
