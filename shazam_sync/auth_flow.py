# OAuth 2.0 authorization code grant with PKCE for SoundCloud.
import base64
import hashlib
import logging
import secrets
import string
import time
import webbrowser
import requests
from urllib.parse import urlencode, parse_qs, urlparse
from typing import Optional, Dict, Any, Tuple

from .config import Settings
from .models import AuthSession
from .errors import MissingCodeError, StateMismatchError, TokenRequestFailedError, MissingTokensError

logger = logging.getLogger(__name__)

# RFC 7636 unreserved characters
VERIFIER_ALPHABET = string.ascii_letters + string.digits + '-._~'
VERIFIER_LENGTH = 128


def generate_code_verifier(length: int = VERIFIER_LENGTH) -> str:
    """Random verifier drawn from the unreserved character set"""
    if not 43 <= length <= 128:
        raise ValueError(f"Code verifier length must be between 43 and 128, got {length}")
    return ''.join(secrets.choice(VERIFIER_ALPHABET) for _ in range(length))


def compute_code_challenge(verifier: str) -> str:
    """base64url(SHA-256(verifier)) without padding"""
    digest = hashlib.sha256(verifier.encode('ascii')).digest()
    return base64.urlsafe_b64encode(digest).decode('ascii').rstrip('=')


def generate_state() -> str:
    return secrets.token_urlsafe(16)


class SoundCloudAuth:
    """Handle SoundCloud OAuth authentication"""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or Settings.from_env()
        self.client_id = self.settings.client_id
        self.client_secret = self.settings.client_secret
        self.redirect_uri = self.settings.redirect_uri
        self.scope = self.settings.scope
        self.session = session or requests.Session()

        if not self.client_id or not self.client_secret:
            raise ValueError("SOUNDCLOUD_CLIENT_ID and SOUNDCLOUD_CLIENT_SECRET must be set in environment variables")

    def get_auth_url(self, code_challenge: str, state: str) -> str:
        """Generate SoundCloud authorization URL"""
        params = {
            'client_id': self.client_id,
            'redirect_uri': self.redirect_uri,
            'response_type': 'code',
            'code_challenge': code_challenge,
            'code_challenge_method': 'S256',
            'state': state,
        }
        if self.scope:
            params['scope'] = self.scope

        return f"{self.settings.authorize_url}?{urlencode(params)}"

    def begin_authorization(self) -> Tuple[str, str, str]:
        """Start a PKCE cycle.

        Returns ``(auth_url, code_verifier, state)``. The caller must keep the
        verifier (for at most ``VERIFIER_TTL_SECONDS``) until the callback
        hands back the code.
        """
        verifier = generate_code_verifier()
        state = generate_state()
        auth_url = self.get_auth_url(compute_code_challenge(verifier), state)
        logger.info("🔐 Starting SoundCloud authorization")
        return auth_url, verifier, state

    def exchange_code(self, code: str, verifier: str) -> AuthSession:
        """Exchange authorization code for access and refresh tokens.

        Single attempt; any failure ends this authorization cycle.
        """
        if not code:
            raise MissingCodeError()

        data = {
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'grant_type': 'authorization_code',
            'code': code,
            'redirect_uri': self.redirect_uri,
            'code_verifier': verifier,
        }
        payload = self._post_token(data)

        access_token = payload.get('access_token')
        refresh_token = payload.get('refresh_token')
        if not access_token or not refresh_token:
            logger.error("❌ Missing access token or refresh token in token response")
            raise MissingTokensError()

        logger.info("✅ Access token obtained!")
        # The verifier is single-use and is not carried forward
        return AuthSession(code_verifier=None, access_token=access_token, refresh_token=refresh_token)

    def refresh_access_token(self, refresh_token: str) -> AuthSession:
        """Refresh access token using refresh token"""
        data = {
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'grant_type': 'refresh_token',
            'refresh_token': refresh_token,
        }
        payload = self._post_token(data)

        access_token = payload.get('access_token')
        if not access_token:
            raise MissingTokensError()
        # ensure refresh_token persists if not returned
        return AuthSession(
            access_token=access_token,
            refresh_token=payload.get('refresh_token') or refresh_token,
        )

    def _post_token(self, data: Dict[str, str]) -> Dict[str, Any]:
        response = self.session.post(
            self.settings.token_url,
            data=data,
            headers={'Accept': 'application/json'},
            timeout=self.settings.request_timeout,
        )
        if not response.ok:
            logger.error(f"❌ Failed to obtain access token: {response.status_code} {response.reason}")
            raise TokenRequestFailedError(response.status_code, response.reason)
        try:
            payload = response.json()
        except ValueError:
            logger.error("❌ Token endpoint returned a non-JSON body")
            raise MissingTokensError()
        if not isinstance(payload, dict):
            raise MissingTokensError()
        return payload

    def authenticate_interactive(self, timeout: int = 300, open_browser: bool = True) -> AuthSession:
        """Interactive authentication flow for the command line"""
        auth_url, verifier, state = self.begin_authorization()
        print(f"Opening browser to: {auth_url}")

        if open_browser:
            webbrowser.open(auth_url)

        # Start simple HTTP server to catch callback
        from http.server import HTTPServer, BaseHTTPRequestHandler
        import threading

        redirect = urlparse(self.redirect_uri)
        callback_path = redirect.path or '/'
        auth_code = None
        returned_state = None

        class CallbackHandler(BaseHTTPRequestHandler):
            def do_GET(self):
                nonlocal auth_code, returned_state
                parsed = urlparse(self.path)
                if parsed.path != callback_path:
                    self.send_response(404)
                    self.end_headers()
                    return

                query_params = parse_qs(parsed.query)
                code = query_params.get('code', [None])[0]
                if code:
                    returned_state = query_params.get('state', [None])[0]
                    auth_code = code
                    self.send_response(200)
                    self.send_header('Content-type', 'text/html')
                    self.end_headers()
                    self.wfile.write(b'<html><body><h1>Authentication successful!</h1><p>You can close this window.</p></body></html>')
                else:
                    self.send_response(400)
                    self.send_header('Content-type', 'text/html')
                    self.end_headers()
                    self.wfile.write(b'<html><body><h1>Authentication failed!</h1><p>No authorization code received.</p></body></html>')

            def log_message(self, format, *args):
                pass  # Suppress log messages

        server = HTTPServer((redirect.hostname or 'localhost', redirect.port or 80), CallbackHandler)
        server_thread = threading.Thread(target=server.serve_forever)
        server_thread.daemon = True
        server_thread.start()

        print("⏳ Waiting for authentication... (check your browser)")

        start_time = time.time()
        try:
            while auth_code is None and (time.time() - start_time) < timeout:
                time.sleep(1)
        finally:
            server.shutdown()
            server.server_close()

        if auth_code is None:
            raise TimeoutError("Authentication timed out")
        if returned_state != state:
            raise StateMismatchError()

        print("✅ Authorization code received!")
        return self.exchange_code(auth_code, verifier)
