import os
import tempfile

import pytest

# Keep test runs from creating timestamped files under ./logs
os.environ.setdefault("SYNC_LOG_FILE", os.path.join(tempfile.gettempdir(), "shazam_sync_tests.log"))

from shazam_sync.config import Settings  # noqa: E402
from shazam_sync.models import SourceTrack, CandidateTrack  # noqa: E402


HEADER = "Index,TagTime,Title,Artist,URL,TrackKey"


class FakeResponse:
    """Just enough of requests.Response for the code under test"""

    def __init__(self, status_code=200, payload=None, reason="OK"):
        self.status_code = status_code
        self._payload = payload
        self.reason = reason

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def make_track(key="k1", title="Song", artist="Artist", index="1"):
    return SourceTrack(index=index, tag_time="2024-01-01 10:00:00", title=title, artist=artist,
                       source_url="https://www.shazam.com/track/1", track_key=key)


def make_candidate(title, artist, url=None):
    return CandidateTrack(title=title, artist=artist, url=url or f"https://soundcloud.com/{artist}/{title}")


@pytest.fixture
def settings():
    return Settings(
        client_id="test-client",
        client_secret="test-secret",
        redirect_uri="http://localhost:5000/api/auth/callback",
        authorize_url="https://secure.soundcloud.test/authorize",
        token_url="https://secure.soundcloud.test/oauth/token",
        api_base="https://api.soundcloud.test",
        page_size=2,
        review_limit=3,
        request_timeout=5,
    )


@pytest.fixture
def export_csv():
    rows = [
        "1,2024-01-01 10:00:00,Song One,Artist A,https://shazam.com/1,k1",
        "2,2024-01-02 10:00:00,Song Two,Artist B,https://shazam.com/2,k2",
        "3,2024-01-03 10:00:00,Song Three,Artist C,https://shazam.com/3,k3",
    ]
    return "\n".join(["Shazam Library", HEADER] + rows) + "\n"
