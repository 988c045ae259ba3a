import logging
from typing import Callable, List, Optional, Sequence

from .models import SourceTrack, CandidateTrack, MatchResult, MatchStatus, PageCursor, PageResult

logger = logging.getLogger(__name__)

SearchFn = Callable[[SourceTrack], List[CandidateTrack]]
ClassifyFn = Callable[[SourceTrack, List[CandidateTrack]], MatchResult]
ProgressFn = Callable[[int, int, SourceTrack], None]


def page_slice(tracks: Sequence[SourceTrack], cursor: PageCursor) -> List[SourceTrack]:
    return list(tracks[cursor.start:cursor.stop])


def has_more_pages(page_number: int, page_size: int, total: int) -> bool:
    return page_number * page_size < total


def total_pages(page_size: int, total: int) -> int:
    return (total + page_size - 1) // page_size


def run_page(all_tracks: Sequence[SourceTrack], page_number: int, page_size: int,
             search_fn: SearchFn, classify_fn: ClassifyFn,
             on_progress: Optional[ProgressFn] = None) -> PageResult:
    """Search and classify one page of tracks, one track at a time.

    A failure on one track turns that track into a no_match result; the rest
    of the page still runs. Merging into cumulative buckets and deciding
    whether another page exists is up to the caller.
    """
    cursor = PageCursor(page_number=page_number, page_size=page_size)
    tracks = page_slice(all_tracks, cursor)
    page = PageResult()

    logger.info(f"📄 Page {page_number}: {len(tracks)} tracks (of {len(all_tracks)})")

    for i, track in enumerate(tracks, 1):
        if on_progress:
            on_progress(i, len(tracks), track)
        logger.info(f"  Searching {cursor.start + i}/{len(all_tracks)}: {track}")
        try:
            candidates = search_fn(track)
            logger.info(f"    → Found {len(candidates)} candidates")
            result = classify_fn(track, candidates)
        except Exception as e:
            logger.error(f"❌ Error searching for {track.title} by {track.artist}: {e}")
            result = MatchResult(source_track=track, status=MatchStatus.NO_MATCH)

        if result.status == MatchStatus.MATCHED:
            page.matched.append(result)
        else:
            page.unmatched.append(result)
        logger.info(f"    {result}")

    logger.info(f"📊 Page {page_number}: ✅ {len(page.matched)} matched, 🔍 {len(page.unmatched)} to review")
    return page
