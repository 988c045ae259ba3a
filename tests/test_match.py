import logging

import pytest

from shazam_sync.match import classify, is_exact_match, MatchReconciler
from shazam_sync.models import MatchStatus, PageResult

from conftest import make_track, make_candidate


def test_artist_dash_title_is_a_match():
    candidate = make_candidate("Artist - Song", "x")
    result = classify(make_track(), [candidate])
    assert result.status == MatchStatus.MATCHED
    assert result.matched_track is candidate
    assert result.review_candidates == []


def test_separate_title_and_artist_is_a_match():
    result = classify(make_track(), [make_candidate("Other", "Other"), make_candidate("  SONG ", "artist ")])
    assert result.status == MatchStatus.MATCHED
    assert result.matched_track.title == "  SONG "


def test_first_exact_hit_wins():
    first = make_candidate("artist - song", "a")
    second = make_candidate("Song", "Artist")
    assert classify(make_track(), [make_candidate("nope", "x"), first, second]).matched_track is first


def test_no_exact_hit_needs_review():
    candidates = [make_candidate("Song Live", "Other"), make_candidate("Song Remix", "Other2")]
    result = classify(make_track(), candidates)
    assert result.status == MatchStatus.NEEDS_REVIEW
    assert result.matched_track is None
    assert result.review_candidates == candidates


def test_review_list_is_capped_in_original_order():
    candidates = [make_candidate(f"Song {i}", "Other") for i in range(5)]
    result = classify(make_track(), candidates)
    assert [c.title for c in result.review_candidates] == ["Song 0", "Song 1", "Song 2"]
    assert len(classify(make_track(), candidates, review_limit=1).review_candidates) == 1


def test_empty_candidates_is_no_match():
    result = classify(make_track(), [])
    assert result.status == MatchStatus.NO_MATCH
    assert result.matched_track is None
    assert result.review_candidates == []


def test_title_alone_is_not_enough():
    assert not is_exact_match(make_track(), make_candidate("Song", "Someone Else"))


def test_classify_is_deterministic():
    candidates = [make_candidate("Song Live", "Other"), make_candidate("Artist - Song", "x")]
    first = classify(make_track(), candidates)
    second = classify(make_track(), candidates)
    assert first == second


@pytest.fixture
def reconciler():
    r = MatchReconciler()
    page = PageResult(
        matched=[classify(make_track("m1"), [make_candidate("Artist - Song", "x")])],
        unmatched=[
            classify(make_track("r1"), [make_candidate("Song Live", "Other"), make_candidate("Remix", "Y")]),
            classify(make_track("n1"), []),
        ],
    )
    r.extend(page)
    return r


def test_buckets_after_extend(reconciler):
    assert [r.track_key for r in reconciler.matched] == ["m1"]
    assert [r.track_key for r in reconciler.needs_review] == ["r1", "n1"]
    assert reconciler.summary() == {"matched": 1, "needs_review": 1, "no_match": 1}


def test_move_to_matched_uses_first_review_candidate(reconciler):
    result = reconciler.move_to_matched("r1")
    assert result.status == MatchStatus.MATCHED
    assert result.matched_track.title == "Song Live"
    assert [r.track_key for r in reconciler.matched] == ["m1", "r1"]
    assert [r.track_key for r in reconciler.needs_review] == ["n1"]


def test_force_match_without_candidates(reconciler):
    result = reconciler.move_to_matched("n1")
    assert result.status == MatchStatus.MATCHED
    assert result.matched_track is None


def test_move_to_needs_review_then_back_restores_match(reconciler):
    original = reconciler.get("m1").matched_track

    result = reconciler.move_to_needs_review("m1")
    assert result.status == MatchStatus.NEEDS_REVIEW
    assert result.matched_track is None
    assert result.review_candidates[0] == original
    assert "m1" in [r.track_key for r in reconciler.needs_review]

    assert reconciler.move_to_matched("m1").matched_track == original


def test_moves_are_idempotent(reconciler):
    reconciler.move_to_matched("r1")
    reconciler.move_to_matched("r1")
    assert [r.track_key for r in reconciler.matched] == ["m1", "r1"]

    reconciler.move_to_needs_review("r1")
    reconciler.move_to_needs_review("r1")
    assert [r.track_key for r in reconciler.needs_review] == ["n1", "r1"]
    # the rejected candidate was already first in the review list
    assert [c.title for c in reconciler.get("r1").review_candidates] == ["Song Live", "Remix"]


def test_unknown_key_raises(reconciler):
    with pytest.raises(KeyError):
        reconciler.move_to_matched("missing")
    with pytest.raises(KeyError):
        reconciler.move_to_needs_review("missing")


def test_duplicate_track_key_keeps_first_result(caplog):
    r = MatchReconciler()
    first = classify(make_track("dup", index="1"), [make_candidate("Artist - Song", "x")])
    second = classify(make_track("dup", index="2"), [])
    with caplog.at_level(logging.WARNING, logger="shazam_sync.match"):
        r.add(first)
        r.add(second)
    assert r.get("dup") is first
    assert r.matched == [first]
    assert r.needs_review == []
    assert any("Duplicate TrackKey" in rec.getMessage() for rec in caplog.records)


def test_session_round_trip_keeps_buckets(reconciler):
    reconciler.move_to_needs_review("m1")
    restored = MatchReconciler.from_dict(reconciler.to_dict())
    assert restored.to_dict() == reconciler.to_dict()
    assert restored.move_to_matched("m1").matched_track.title == "Artist - Song"
