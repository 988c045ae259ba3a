import logging
import requests
from typing import List, Optional, Dict, Any

from ..config import Settings
from ..models import SourceTrack, CandidateTrack
from ..errors import SearchUnauthenticatedError, SearchRequestFailedError

logger = logging.getLogger(__name__)


def build_query(track: SourceTrack) -> str:
    """Free-text query for a source track; double quotes would break the query syntax"""
    return f"{track.artist} {track.title}".replace('"', '')


def candidate_from_item(item: Dict[str, Any]) -> CandidateTrack:
    """Map one search API track object to a candidate"""
    user = item.get('user') or {}
    return CandidateTrack(
        title=item.get('title') or '',
        artist=user.get('username') or '',
        url=item.get('permalink_url') or '',
        image_url=item.get('artwork_url') or None,
    )


class SoundCloudProvider:
    """Handle SoundCloud API operations"""

    def __init__(self, access_token: Optional[str] = None, settings: Optional[Settings] = None,
                 session: Optional[requests.Session] = None):
        self.settings = settings or Settings.from_env()
        self.access_token = None
        self.base_url = self.settings.api_base
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json; charset=utf-8'})

        if access_token:
            self.set_access_token(access_token)

    def set_access_token(self, access_token: str):
        """Set or update the access token"""
        self.access_token = access_token
        self.session.headers.update({
            'Authorization': f'Bearer {access_token}'
        })

    def search_or_raise(self, track: SourceTrack) -> List[CandidateTrack]:
        """Search SoundCloud for a track, raising SearchError on failure"""
        return self.search_query(build_query(track))

    def search_query(self, query: str) -> List[CandidateTrack]:
        """Run one free-text search; whatever one call returns is the full candidate set"""
        if not self.access_token:
            raise SearchUnauthenticatedError()

        try:
            response = self.session.get(
                f"{self.base_url}/tracks",
                params={'q': query},
                timeout=self.settings.request_timeout,
            )
        except requests.RequestException as e:
            raise SearchRequestFailedError(None, str(e)) from e

        if not response.ok:
            raise SearchRequestFailedError(response.status_code, response.reason or "")

        try:
            data = response.json()
        except ValueError as e:
            raise SearchRequestFailedError(response.status_code, "response was not JSON") from e

        # Some endpoints wrap results in a paging envelope
        if isinstance(data, dict):
            data = data.get('collection', [])

        return [candidate_from_item(item) for item in data if isinstance(item, dict)]

    def search_track(self, track: SourceTrack) -> List[CandidateTrack]:
        """Search for a track; failures degrade to an empty candidate list"""
        query = build_query(track)
        try:
            candidates = self.search_query(query)
        except SearchUnauthenticatedError:
            logger.warning(f"🔒 Not signed in to SoundCloud, skipping search for: {track}")
            return []
        except SearchRequestFailedError as e:
            logger.error(f"❌ Error with query '{query}': {e}")
            return []

        if candidates:
            logger.info(f"✅ Found {len(candidates)} results with query: {query}")
        else:
            logger.info(f"❌ No results for query: {query}")
        return candidates
