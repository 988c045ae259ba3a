from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from enum import Enum

class MatchStatus(Enum):
    MATCHED = "matched"
    NEEDS_REVIEW = "needs_review"
    NO_MATCH = "no_match"

@dataclass(frozen=True)
class SourceTrack:
    """One row of a Shazam export"""
    index: str
    tag_time: str
    title: str
    artist: str
    source_url: str
    track_key: str  # unique within one import

    def to_dict(self) -> Dict[str, str]:
        return {
            'index': self.index,
            'tag_time': self.tag_time,
            'title': self.title,
            'artist': self.artist,
            'source_url': self.source_url,
            'track_key': self.track_key,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceTrack":
        return cls(
            index=data.get('index', ''),
            tag_time=data.get('tag_time', ''),
            title=data.get('title', ''),
            artist=data.get('artist', ''),
            source_url=data.get('source_url', ''),
            track_key=data.get('track_key', ''),
        )

    def __str__(self):
        return f"{self.artist} - {self.title}"

@dataclass
class CandidateTrack:
    """A SoundCloud search result"""
    title: str
    artist: str
    url: str
    image_url: Optional[str] = None

    def identity_key(self) -> Tuple[str, str]:
        """(title, artist) compared case-insensitively, whitespace trimmed"""
        return (self.title or "").strip().lower(), (self.artist or "").strip().lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'artist': self.artist,
            'url': self.url,
            'image_url': self.image_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CandidateTrack":
        return cls(
            title=data.get('title', ''),
            artist=data.get('artist', ''),
            url=data.get('url', ''),
            image_url=data.get('image_url'),
        )

    def __str__(self):
        return f"{self.artist} - {self.title}"

@dataclass
class MatchResult:
    """Classification of one source track against its candidates"""
    source_track: SourceTrack
    status: MatchStatus
    matched_track: Optional[CandidateTrack] = None  # set iff status is MATCHED
    review_candidates: List[CandidateTrack] = field(default_factory=list)

    @property
    def track_key(self) -> str:
        return self.source_track.track_key

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source_track': self.source_track.to_dict(),
            'status': self.status.value,
            'matched_track': self.matched_track.to_dict() if self.matched_track else None,
            'review_candidates': [c.to_dict() for c in self.review_candidates],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchResult":
        matched = data.get('matched_track')
        return cls(
            source_track=SourceTrack.from_dict(data['source_track']),
            status=MatchStatus(data['status']),
            matched_track=CandidateTrack.from_dict(matched) if matched else None,
            review_candidates=[CandidateTrack.from_dict(c) for c in data.get('review_candidates') or []],
        )

    def __str__(self):
        if self.status == MatchStatus.MATCHED:
            return f"✅ {self.source_track} → {self.matched_track}"
        if self.status == MatchStatus.NEEDS_REVIEW:
            return f"🔍 {self.source_track} → {len(self.review_candidates)} candidates to review"
        return f"❌ {self.source_track} → No match"

@dataclass
class AuthSession:
    """Tokens for one authorization cycle, held in memory only"""
    code_verifier: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

@dataclass
class PageCursor:
    """1-based page over the ordered source track list"""
    page_number: int = 1
    page_size: int = 20

    def __post_init__(self):
        if self.page_number < 1:
            raise ValueError(f"page_number must be >= 1, got {self.page_number}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")

    @property
    def start(self) -> int:
        return (self.page_number - 1) * self.page_size

    @property
    def stop(self) -> int:
        return self.page_number * self.page_size

    def has_more(self, total: int) -> bool:
        return self.stop < total

    def next(self) -> "PageCursor":
        return PageCursor(page_number=self.page_number + 1, page_size=self.page_size)

@dataclass
class PageResult:
    """Results of one page, in track order"""
    matched: List[MatchResult] = field(default_factory=list)
    unmatched: List[MatchResult] = field(default_factory=list)

    def __len__(self):
        return len(self.matched) + len(self.unmatched)
