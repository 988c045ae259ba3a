import logging
from typing import List

from .models import SourceTrack
from .errors import CsvTooShortError, CsvHeaderMismatchError

logger = logging.getLogger(__name__)

EXPECTED_HEADER = "Index,TagTime,Title,Artist,URL,TrackKey"
FIELD_COUNT = 6


def parse_export(content: str) -> List[SourceTrack]:
    """Parse a Shazam CSV export into source tracks, in file order.

    The first non-blank line is free-form metadata and is ignored; the second
    must be the exact export header. Fields are split on bare commas, so a
    title or artist containing a comma produces a malformed row that is
    skipped.
    """
    lines = [line for line in content.split('\n') if line.strip()]

    if len(lines) < 2:
        raise CsvTooShortError(len(lines))

    actual_header = lines[1].strip()
    if actual_header != EXPECTED_HEADER:
        raise CsvHeaderMismatchError(EXPECTED_HEADER, actual_header)

    tracks: List[SourceTrack] = []

    for line_number, line in enumerate(lines[2:], 3):
        values = line.split(',')
        if len(values) != FIELD_COUNT:
            logger.warning(f"⚠️ Skipping malformed line {line_number} ({len(values)} fields): {line.strip()}")
            continue

        index, tag_time, title, artist, url, track_key = (v.strip() for v in values)

        tracks.append(SourceTrack(
            index=index,
            tag_time=tag_time,
            title=title,
            artist=artist,
            source_url=url,
            track_key=track_key,
        ))

    logger.info(f"✅ Parsed {len(tracks)} tracks from export")
    return tracks


def parse_export_file(path: str) -> List[SourceTrack]:
    """Read and parse an export file from disk"""
    # utf-8-sig drops the BOM some spreadsheet tools prepend
    with open(path, 'r', encoding='utf-8-sig') as f:
        return parse_export(f.read())
