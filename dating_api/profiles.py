from datetime import date, datetime
from typing import Any, Optional, Tuple, Union

from dating_api.schemas import AgeRange, PublicProfile, User, coerce_int

DEFAULT_MIN_AGE = 18
DEFAULT_MAX_AGE = 100


def calculate_age(birth: Union[datetime, date, str, None], today: Optional[date] = None) -> Optional[int]:
    """Whole years since ``birth``; None when the birth date is missing or unreadable."""
    if birth is None:
        return None
    if isinstance(birth, str):
        try:
            birth = datetime.fromisoformat(birth)
        except ValueError:
            return None
    today = today or date.today()
    age = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        age -= 1
    return age


def normalize_age_range(raw: Union[AgeRange, dict, str, list, tuple, None]) -> Tuple[int, int]:
    """
    Collapse every stored shape of a preferred age range to ``(min, max)``.

    Accepted: ``"25-35"``, ``{"min": 25, "max": 35}`` (or an AgeRange) and a
    two-element ``[25, 35]`` list. Missing, zero or unparsable bounds fall
    back to 18 and 100 respectively.
    """
    low: Any = None
    high: Any = None
    if isinstance(raw, str):
        parts = raw.split("-")
        low = parts[0]
        high = parts[1] if len(parts) > 1 else None
    elif isinstance(raw, AgeRange):
        low, high = raw.min, raw.max
    elif isinstance(raw, dict):
        low, high = raw.get("min"), raw.get("max")
    elif isinstance(raw, (list, tuple)) and len(raw) == 2:
        low, high = raw

    return coerce_int(low) or DEFAULT_MIN_AGE, coerce_int(high) or DEFAULT_MAX_AGE


def public_profile(user: User, today: Optional[date] = None) -> PublicProfile:
    return PublicProfile(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        full_name=user.full_name,
        email=user.email,
        profile_pic=user.profile_pic,
        bio=user.bio,
        location=user.location,
        date_of_birth=user.date_of_birth,
        age=calculate_age(user.date_of_birth, today),
        gender=user.gender,
        looking_for=user.looking_for,
        interests=user.interests,
        relationship=user.relationship,
        orientation=user.orientation,
        smoking=user.smoking,
        alcohol=user.alcohol,
        education=user.education,
        occupation=user.occupation,
        religion=user.religion,
        politics=user.politics,
        height=user.height,
        hairs=user.hairs,
        eyes=user.eyes,
        weight=user.weight,
        sociability=user.sociability,
    )
