import pytest

from shazam_sync.match import classify
from shazam_sync.models import MatchStatus, PageCursor
from shazam_sync.pagination import run_page, has_more_pages, total_pages, page_slice

from conftest import make_track, make_candidate


TRACKS = [make_track(f"k{i}", title=f"Song {i}", index=str(i)) for i in range(1, 6)]


def exact_search(track):
    return [make_candidate(f"{track.artist} - {track.title}", "uploader")]


def test_page_slice_bounds():
    assert [t.track_key for t in page_slice(TRACKS, PageCursor(1, 2))] == ["k1", "k2"]
    assert [t.track_key for t in page_slice(TRACKS, PageCursor(3, 2))] == ["k5"]
    assert page_slice(TRACKS, PageCursor(4, 2)) == []


def test_cursor_rejects_non_positive_values():
    with pytest.raises(ValueError):
        PageCursor(0, 20)
    with pytest.raises(ValueError):
        PageCursor(1, 0)


def test_has_more_pages():
    assert has_more_pages(1, 2, 5)
    assert has_more_pages(2, 2, 5)
    assert not has_more_pages(3, 2, 5)
    assert not has_more_pages(1, 20, 20)
    assert total_pages(2, 5) == 3
    assert total_pages(20, 0) == 0


def test_run_page_searches_only_its_slice_in_order():
    searched = []

    def search(track):
        searched.append(track.track_key)
        return exact_search(track) if track.track_key != "k4" else []

    page = run_page(TRACKS, 2, 2, search, classify)

    assert searched == ["k3", "k4"]
    assert [r.track_key for r in page.matched] == ["k3"]
    assert [r.track_key for r in page.unmatched] == ["k4"]
    assert page.unmatched[0].status == MatchStatus.NO_MATCH


def test_failing_track_does_not_abort_page():
    def search(track):
        if track.track_key == "k1":
            raise RuntimeError("boom")
        return exact_search(track)

    page = run_page(TRACKS, 1, 3, search, classify)

    assert [r.track_key for r in page.matched] == ["k2", "k3"]
    assert [r.track_key for r in page.unmatched] == ["k1"]
    assert page.unmatched[0].status == MatchStatus.NO_MATCH
    assert len(page) == 3


def test_failing_classify_becomes_no_match():
    def bad_classify(track, candidates):
        raise ValueError("bad data")

    page = run_page(TRACKS, 1, 2, exact_search, bad_classify)
    assert page.matched == []
    assert [r.status for r in page.unmatched] == [MatchStatus.NO_MATCH, MatchStatus.NO_MATCH]


def test_progress_callback():
    seen = []
    run_page(TRACKS, 3, 2, exact_search, classify, on_progress=lambda i, n, t: seen.append((i, n, t.track_key)))
    assert seen == [(1, 1, "k5")]
