import logging
from typing import Any, Dict, List, Optional

from .models import SourceTrack, CandidateTrack, MatchResult, MatchStatus, PageResult

logger = logging.getLogger(__name__)

DEFAULT_REVIEW_LIMIT = 3


def normalize_text(text: Optional[str]) -> str:
    """Normalize text for exact comparison"""
    if not text:
        return ""
    return text.strip().lower()

def is_exact_match(track: SourceTrack, candidate: CandidateTrack) -> bool:
    """True when the candidate is the source track by title convention.

    Uploads are commonly titled "Artist - Title" under an unrelated account,
    so either that combined form or a separate title/artist pair counts.
    """
    candidate_title = normalize_text(candidate.title)
    combined = normalize_text(f"{track.artist.strip()} - {track.title.strip()}")
    if candidate_title == combined:
        return True
    return (candidate_title == normalize_text(track.title)
            and normalize_text(candidate.artist) == normalize_text(track.artist))

def classify(track: SourceTrack, candidates: List[CandidateTrack],
             review_limit: int = DEFAULT_REVIEW_LIMIT) -> MatchResult:
    """
    Classify a source track against its search candidates

    Args:
        track: Track from the Shazam export
        candidates: Search results in the order the API returned them
        review_limit: How many candidates to keep when a human has to decide

    Returns:
        MatchResult: no_match for no candidates, matched on the first exact
        hit, otherwise needs_review with the leading candidates
    """
    if not candidates:
        return MatchResult(source_track=track, status=MatchStatus.NO_MATCH)

    for candidate in candidates:
        if is_exact_match(track, candidate):
            return MatchResult(source_track=track, status=MatchStatus.MATCHED, matched_track=candidate)

    return MatchResult(
        source_track=track,
        status=MatchStatus.NEEDS_REVIEW,
        review_candidates=list(candidates[:review_limit]),
    )


class MatchReconciler:
    """Accumulates results into matched / needs-review buckets and applies manual moves.

    Both buckets are ordered lists; ``track_key`` indexes every result for
    lookups during moves. No-match results live in the review bucket.
    """

    def __init__(self, review_limit: int = DEFAULT_REVIEW_LIMIT):
        self.review_limit = review_limit
        self.matched: List[MatchResult] = []
        self.needs_review: List[MatchResult] = []
        self._by_key: Dict[str, MatchResult] = {}

    def __len__(self):
        return len(self._by_key)

    def __contains__(self, track_key: str) -> bool:
        return track_key in self._by_key

    def get(self, track_key: str) -> MatchResult:
        return self._by_key[track_key]

    def add(self, result: MatchResult):
        """Add a freshly classified result.

        A song tagged twice shows up under the same TrackKey; the first result
        stays and later ones are dropped with a warning.
        """
        if result.track_key in self._by_key:
            logger.warning(f"⚠️ Duplicate TrackKey {result.track_key!r} ({result.source_track}); keeping the first result")
            return
        self._by_key[result.track_key] = result
        if result.status == MatchStatus.MATCHED:
            self.matched.append(result)
        else:
            self.needs_review.append(result)

    def extend(self, page: PageResult):
        for result in page.matched:
            self.add(result)
        for result in page.unmatched:
            self.add(result)

    def move_to_needs_review(self, track_key: str) -> MatchResult:
        """Manually reject a match"""
        result = self._by_key[track_key]
        if result not in self.matched:
            return result

        self.matched.remove(result)
        previous = result.matched_track
        if previous is not None:
            # Keep the rejected match at the head of the review list so a
            # later move back restores it
            keys = [c.identity_key() for c in result.review_candidates]
            if previous.identity_key() not in keys:
                result.review_candidates = [previous] + result.review_candidates
            result.review_candidates = result.review_candidates[:self.review_limit]
        result.status = MatchStatus.NEEDS_REVIEW
        result.matched_track = None
        self.needs_review.append(result)
        return result

    def move_to_matched(self, track_key: str) -> MatchResult:
        """Manually accept a result; the first review candidate becomes the match"""
        result = self._by_key[track_key]
        if result not in self.needs_review:
            return result

        self.needs_review.remove(result)
        result.status = MatchStatus.MATCHED
        # May be None: a track without candidates can still be forced to matched
        result.matched_track = result.review_candidates[0] if result.review_candidates else None
        self.matched.append(result)
        return result

    def summary(self) -> Dict[str, int]:
        return {
            'matched': len(self.matched),
            'needs_review': sum(1 for r in self.needs_review if r.status == MatchStatus.NEEDS_REVIEW),
            'no_match': sum(1 for r in self.needs_review if r.status == MatchStatus.NO_MATCH),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'review_limit': self.review_limit,
            'matched': [r.to_dict() for r in self.matched],
            'needs_review': [r.to_dict() for r in self.needs_review],
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MatchReconciler":
        data = data or {}
        reconciler = cls(review_limit=data.get('review_limit', DEFAULT_REVIEW_LIMIT))
        for item in data.get('matched', []):
            result = MatchResult.from_dict(item)
            reconciler.matched.append(result)
            reconciler._by_key[result.track_key] = result
        for item in data.get('needs_review', []):
            result = MatchResult.from_dict(item)
            reconciler.needs_review.append(result)
            reconciler._by_key[result.track_key] = result
        return reconciler

