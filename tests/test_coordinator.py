from datetime import datetime

import pytest
from bson import ObjectId

from dating_api.coordinator import SwipeCoordinator, like_types_agree
from dating_api.errors import NotFoundError, ValidationError


@pytest.fixture
def pair(make_user):
    return make_user("Ana", "Silva"), make_user("Ben", "Okafor")


def test_mutual_crush_creates_one_match(coordinator, pair, database):
    ana, ben = pair
    first = coordinator.swipe(ana, ben.id, "like", "crush")
    assert first.success and not first.is_match

    second = coordinator.swipe(ben, ana.id, "like", "crush")
    assert second.is_match
    assert second.matched_profile.id == ana.id
    assert second.matched_profile.full_name == "Ana Silva"

    records = list(database.matches.find())
    assert len(records) == 1
    assert records[0]["is_mutual_emotion"] is True
    view = coordinator.matches.list_for_user(ana.id)[0]
    assert view.your_like_type == "crush"
    assert view.their_like_type == "crush"


@pytest.mark.parametrize("first_is_ana", [True, False])
def test_match_is_symmetric_whichever_side_swipes_first(coordinator, pair, match_store, first_is_ana):
    ana, ben = pair
    a, b = (ana, ben) if first_is_ana else (ben, ana)
    coordinator.swipe(a, b.id, "like")
    result = coordinator.swipe(b, a.id, "like")

    assert result.is_match
    assert match_store.find_pair(ana.id, ben.id) is not None
    assert match_store.count_for_user(ana.id) == match_store.count_for_user(ben.id) == 1


def test_dislike_never_matches(coordinator, pair, database):
    ana, ben = pair
    coordinator.swipe(ben, ana.id, "like")
    result = coordinator.swipe(ana, ben.id, "dislike")
    assert result.success and not result.is_match
    assert database.matches.count_documents({}) == 0


def test_different_like_types_do_not_match(coordinator, pair, database):
    ana, ben = pair
    coordinator.swipe(ana, ben.id, "like", "crush")
    result = coordinator.swipe(ben, ana.id, "like", "fun")
    assert not result.is_match
    assert database.matches.count_documents({}) == 0


def test_plain_like_matches_typed_like(coordinator, pair, database):
    ana, ben = pair
    coordinator.swipe(ana, ben.id, "like", "curious")
    result = coordinator.swipe(ben, ana.id, "like")
    assert result.is_match
    assert database.matches.find_one()["is_mutual_emotion"] is True


def test_two_plain_likes_record_mutual_emotion(coordinator, pair, match_store):
    ana, ben = pair
    coordinator.swipe(ana, ben.id, "like")
    assert coordinator.swipe(ben, ana.id, "like").is_match

    match = match_store.find_pair(ana.id, ben.id)
    assert match.is_mutual_emotion is True
    assert match.like_types == {ana.id: None, ben.id: None}


def test_like_types_can_be_left_unenforced(directory, ledger, match_store, pair):
    ana, ben = pair
    lenient = SwipeCoordinator(directory, ledger, match_store, require_same_like_type=False)
    lenient.swipe(ana, ben.id, "like", "crush")
    assert lenient.swipe(ben, ana.id, "like", "fun").is_match


def test_like_types_agree():
    assert like_types_agree(None, None)
    assert like_types_agree("fun", None)
    assert like_types_agree("fun", "fun")
    assert not like_types_agree("fun", "crush")


def test_repeat_swipe_is_idempotent(coordinator, pair, database):
    ana, ben = pair
    coordinator.swipe(ana, ben.id, "like")
    again = coordinator.swipe(ana, ben.id, "dislike")

    assert again.success
    assert again.already_swiped
    assert not again.is_match
    assert again.prior_action == "like"
    assert database.swipes.count_documents({"swiper": ana.id, "swiped": ben.id}) == 1


def test_replayed_like_restores_a_lost_match(coordinator, pair, ledger, match_store):
    ana, ben = pair
    # Both likes landed but the process died before the match insert
    ledger.record(ana.id, ben.id, "like", "fun")
    ledger.record(ben.id, ana.id, "like", "fun")
    assert match_store.find_pair(ana.id, ben.id) is None

    result = coordinator.swipe(ben, ana.id, "like", "fun")
    assert result.already_swiped
    assert match_store.find_pair(ana.id, ben.id).is_mutual_emotion


def test_self_swipe_is_a_validation_error(coordinator, pair):
    ana, _ = pair
    with pytest.raises(ValidationError):
        coordinator.swipe(ana, ana.id, "like")


def test_unknown_or_malformed_target(coordinator, pair):
    ana, _ = pair
    with pytest.raises(NotFoundError):
        coordinator.swipe(ana, str(ObjectId()), "like")
    with pytest.raises(ValidationError):
        coordinator.swipe(ana, "not-an-id", "like")
    with pytest.raises(ValidationError):
        coordinator.swipe(ana, "", "like")


def test_stats(coordinator, make_user):
    ana, ben, cam, dee = (make_user(n) for n in ("Ana", "Ben", "Cam", "Dee"))
    coordinator.swipe(ana, ben.id, "like")
    coordinator.swipe(ana, cam.id, "like")
    coordinator.swipe(ana, dee.id, "dislike")
    coordinator.swipe(ben, ana.id, "like")
    coordinator.swipe(dee, ana.id, "like")

    stats = coordinator.stats(ana)
    assert stats.total_likes == 2
    assert stats.total_dislikes == 1
    assert stats.total_swipes == 3
    assert stats.total_matches == 1
    assert stats.likes_received == 2
    assert stats.match_rate == 50.0


def test_stats_without_likes(coordinator, make_user):
    stats = coordinator.stats(make_user("Ana"))
    assert stats.match_rate == 0
    assert stats.total_matches == 0


def test_liked_users_excludes_matches_and_reports_status(coordinator, make_user):
    ana, ben, cam, dee = (make_user(n) for n in ("Ana", "Ben", "Cam", "Dee"))
    coordinator.swipe(ana, ben.id, "like")
    coordinator.swipe(ana, cam.id, "like")
    coordinator.swipe(ana, dee.id, "like")
    coordinator.swipe(ben, ana.id, "like")     # match
    coordinator.swipe(cam, ana.id, "dislike")  # rejected

    liked = {entry.profile.id: entry for entry in coordinator.liked_users(ana)}
    assert set(liked) == {cam.id, dee.id}
    assert liked[cam.id].status == "rejected"
    assert liked[cam.id].has_viewed
    assert liked[cam.id].their_action == "dislike"
    assert liked[dee.id].status == "pending"
    assert not liked[dee.id].has_viewed


def test_detailed_matches_carry_bonus_compatibility(coordinator, make_user):
    ana = make_user("Ana", interests=["chess", "surf"], location="Lisbon", religion="none")
    ben = make_user("Ben", interests=["surf"], location="lisbon", religion="None",
                    date_of_birth=datetime(1990, 1, 1))
    coordinator.swipe(ana, ben.id, "like")
    coordinator.swipe(ben, ana.id, "like")

    [detail] = coordinator.detailed_matches(ana)
    assert detail.other.id == ben.id
    assert detail.mutual_interests == ["surf"]
    assert detail.compatibility_score == 45
    assert detail.compatibility_breakdown["religion"] == 10
