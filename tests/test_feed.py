from datetime import date, datetime

import pytest
from bson import ObjectId

from dating_api.errors import ValidationError

TODAY = date(2026, 6, 15)


def _ids(page):
    return [item.id for item in page.items]


def test_feed_excludes_self_swiped_friends_pending_likes_and_admins(feed, ledger, make_user):
    friend = make_user("Fay")
    me = make_user("Me", friends=[ObjectId(friend.id)])
    liked = make_user("Lia")
    disliked = make_user("Dan")
    pending = make_user("Pat")
    make_user("Root", role="admin")
    stranger = make_user("Sam")

    ledger.record(me.id, liked.id, "like")
    ledger.record(me.id, disliked.id, "dislike")
    ledger.record(pending.id, me.id, "like")

    page = feed.get_candidates(me, page=1, page_size=20, today=TODAY)
    assert _ids(page) == [stranger.id]
    assert page.total_count == 1
    assert page.has_more is False

    exclusions = feed.exclusions(me)
    assert exclusions.pending_likes == {pending.id}
    assert exclusions.friends == {friend.id}
    assert exclusions.swiped == {liked.id, disliked.id}


def test_answering_a_pending_like_moves_it_out_of_pending(feed, ledger, make_user):
    me = make_user("Me")
    pat = make_user("Pat")
    ledger.record(pat.id, me.id, "like")
    assert [r.profile.id for r in feed.pending_likes(me)] == [pat.id]

    ledger.record(me.id, pat.id, "dislike")
    assert feed.pending_likes(me) == []
    assert feed.exclusions(me).pending_likes == frozenset()
    assert pat.id in feed.exclusions(me).swiped


def test_inbound_dislike_is_not_a_pending_like(feed, ledger, make_user):
    me = make_user("Me")
    other = make_user("Oli")
    ledger.record(other.id, me.id, "dislike")
    assert feed.pending_likes(me) == []
    assert _ids(feed.get_candidates(me, today=TODAY)) == [other.id]


def test_pending_likes_carry_like_type(feed, ledger, make_user):
    me = make_user("Me")
    kim = make_user("Kim")
    ledger.record(kim.id, me.id, "like", "intrigued")
    [received] = feed.pending_likes(me)
    assert received.like_type == "intrigued"
    assert received.liked_at is not None


def test_pagination_is_stable_and_reports_has_more(feed, make_user):
    me = make_user("Me")
    others = [make_user(f"User{i}") for i in range(5)]

    first = feed.get_candidates(me, page=1, page_size=2, today=TODAY)
    second = feed.get_candidates(me, page=2, page_size=2, today=TODAY)
    third = feed.get_candidates(me, page=3, page_size=2, today=TODAY)

    assert _ids(first) + _ids(second) + _ids(third) == [u.id for u in others]
    assert first.total_count == 5
    assert first.has_more and second.has_more
    assert not third.has_more
    assert feed.get_candidates(me, page=4, page_size=2, today=TODAY).items == []


def test_empty_feed_is_not_an_error(feed, make_user):
    me = make_user("Me")
    page = feed.get_candidates(me, today=TODAY)
    assert page.items == []
    assert page.total_count == 0
    assert page.has_more is False


def test_candidates_carry_full_name_and_age(feed, make_user):
    me = make_user("Me")
    make_user("Ana", "Silva", date_of_birth=datetime(1996, 6, 16))
    [item] = feed.get_candidates(me, today=TODAY).items
    assert item.full_name == "Ana Silva"
    assert item.age == 29


@pytest.mark.parametrize("page, page_size", [(0, 10), (1, 0), (1, 1000)])
def test_invalid_pagination(feed, make_user, page, page_size):
    with pytest.raises(ValidationError):
        feed.get_candidates(make_user("Me"), page=page, page_size=page_size)


def test_discovery_pool_applies_gender_and_age_preferences(feed, ledger, make_user):
    me = make_user("Me", gender="male", looking_for="female", preferred_age_range="25-35")
    fits = make_user("Fit", gender="female", date_of_birth=datetime(1996, 1, 1))       # 30
    oldest = make_user("Old", gender="female", date_of_birth=datetime(1990, 6, 16))    # 35
    make_user("TooOld", gender="female", date_of_birth=datetime(1990, 6, 15))          # 36
    make_user("TooYoung", gender="female", date_of_birth=datetime(2002, 1, 1))         # 24
    make_user("Male", gender="male", date_of_birth=datetime(1996, 1, 1))
    swiped = make_user("Swiped", gender="female", date_of_birth=datetime(1996, 1, 1))
    ledger.record(me.id, swiped.id, "dislike")

    pool = feed.discovery_pool(me, today=TODAY)
    assert [u.id for u in pool] == [fits.id, oldest.id]


def test_discovery_pool_for_everyone(feed, make_user):
    me = make_user("Me", looking_for="everyone")
    a = make_user("A", gender="male")
    b = make_user("B", gender="female")
    assert [u.id for u in feed.discovery_pool(me, today=TODAY)] == [a.id, b.id]


def test_corrupt_profile_does_not_break_a_neighbours_feed(feed, database, make_user):
    me = make_user("Me")
    database.users.insert_one({
        "first_name": "Odd",
        "last_name": 7,
        "date_of_birth": "sometime in the nineties",
        "preferred_age_range": {"min": "", "max": "abc"},
        "role": None,
        "interests": "hiking",
        "friends": None,
    })
    fine = make_user("Fine", preferred_age_range={"min": "", "max": 40})

    page = feed.get_candidates(me, today=TODAY)
    odd, listed_fine = page.items
    assert odd.full_name == "Odd"
    assert odd.age is None
    assert odd.interests == []
    assert listed_fine.id == fine.id
    assert page.total_count == 2
