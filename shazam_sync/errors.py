from typing import Optional


class SyncError(Exception):
    """Base class for all shazam_sync errors"""


# -------------- CSV import --------------
class ParseError(SyncError):
    """The export could not be imported"""


class CsvTooShortError(ParseError):
    def __init__(self, line_count: int):
        self.line_count = line_count
        super().__init__("CSV file must contain at least a header and one data row.")


class CsvHeaderMismatchError(ParseError):
    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f'Invalid CSV header. Expected: "{expected}", Got: "{actual}"')


# -------------- Authentication --------------
class AuthError(SyncError):
    """An authorization attempt failed; the user has to start over"""


class MissingCodeError(AuthError):
    def __init__(self):
        super().__init__("Missing authorization code")


class StateMismatchError(AuthError):
    def __init__(self):
        super().__init__("Authorization state mismatch")


class TokenRequestFailedError(AuthError):
    def __init__(self, status_code: int, reason: Optional[str] = None):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"Failed to obtain access token (HTTP {status_code}{' ' + reason if reason else ''})")


class MissingTokensError(AuthError):
    def __init__(self):
        super().__init__("Missing access token or refresh token")


# -------------- Search --------------
class SearchError(SyncError):
    """A catalog search failed"""


class SearchUnauthenticatedError(SearchError):
    def __init__(self):
        super().__init__("Access token not set")


class SearchRequestFailedError(SearchError):
    def __init__(self, status_code: Optional[int], detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"SoundCloud search failed (HTTP {status_code}){': ' + detail if detail else ''}")
