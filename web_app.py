#!/usr/bin/env python3
"""
Flask web application for Shazam → SoundCloud sync
Upload a Shazam export, sign in with SoundCloud, and review matches page by page
"""
import os
import sys
import hashlib
from typing import List, Optional
from cachelib import SimpleCache
from flask import Flask, render_template, request, jsonify, session, redirect, url_for
from flask_caching import Cache
from flask_session import Session
from dotenv import load_dotenv

from shazam_sync.config import Settings, VERIFIER_TTL_SECONDS
from shazam_sync.models import SourceTrack, CandidateTrack
from shazam_sync.errors import (
    ParseError, CsvHeaderMismatchError, AuthError, MissingCodeError, StateMismatchError,
    TokenRequestFailedError, MissingTokensError, SearchError, SearchUnauthenticatedError,
)
from shazam_sync.csv_import import parse_export
from shazam_sync.auth_flow import SoundCloudAuth
from shazam_sync.providers.soundcloud import SoundCloudProvider, build_query
from shazam_sync.match import MatchReconciler, classify
from shazam_sync.pagination import run_page, has_more_pages, total_pages
from shazam_sync.utils.log import setup_logger

# Load environment variables
load_dotenv()

settings = Settings.from_env()

app = Flask(__name__)
app.secret_key = os.getenv('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production-12345')

# Server-side sessions kept in process memory only; tokens never touch disk
app.config['SESSION_TYPE'] = 'cachelib'
app.config['SESSION_CACHELIB'] = SimpleCache(threshold=500, default_timeout=VERIFIER_TTL_SECONDS)
app.config['SESSION_PERMANENT'] = True
app.config['PERMANENT_SESSION_LIFETIME'] = 3600  # 1 hour
app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'  # the OAuth callback is a top-level navigation
app.config['SESSION_COOKIE_HTTPONLY'] = True
app.config['SESSION_COOKIE_SECURE'] = False  # Set to True in production with HTTPS
app.config['MAX_CONTENT_LENGTH'] = 5 * 1024 * 1024

# Initialize session
Session(app)

# Search candidates cache (in-memory)
cache = Cache(app, config={'CACHE_TYPE': 'SimpleCache'})

# Set up logger
logger = setup_logger(log_file=os.getenv('SYNC_LOG_FILE'), prefix='web')


class CookieVerifierStore:
    """Short-lived cookie storage for the PKCE verifier and state between /login and the callback"""

    verifier_cookie = 'code_verifier'
    state_cookie = 'oauth_state'

    def __init__(self, max_age: int = VERIFIER_TTL_SECONDS, secure: bool = False):
        self.max_age = max_age
        self.secure = secure

    def save(self, response, verifier: str, state: str):
        for name, value in ((self.verifier_cookie, verifier), (self.state_cookie, state)):
            response.set_cookie(name, value, max_age=self.max_age, httponly=True,
                                samesite='Lax', secure=self.secure)

    def load_verifier(self, req) -> Optional[str]:
        return req.cookies.get(self.verifier_cookie)

    def load_state(self, req) -> Optional[str]:
        return req.cookies.get(self.state_cookie)

    def discard(self, response):
        response.delete_cookie(self.verifier_cookie)
        response.delete_cookie(self.state_cookie)


verifier_store = CookieVerifierStore(secure=app.config['SESSION_COOKIE_SECURE'])


def get_auth() -> SoundCloudAuth:
    return SoundCloudAuth(settings)


def get_provider() -> SoundCloudProvider:
    return SoundCloudProvider(session.get('access_token'), settings=settings)


def get_track_cache_key(track: SourceTrack) -> str:
    """Generate a stable cache key for a track based on its search query"""
    content = build_query(track).lower()
    track_hash = hashlib.md5(content.encode()).hexdigest()[:12]
    return f"cand_{track_hash}_{track.track_key}"


def cached_search(provider: SoundCloudProvider, track: SourceTrack) -> List[CandidateTrack]:
    """Search with a one-hour candidate cache; failed searches are not cached"""
    cache_key = get_track_cache_key(track)
    cached = cache.get(cache_key)
    if cached is not None:
        logger.info(f"    ✅ Using cached candidates for {track} (key: {cache_key})")
        return [CandidateTrack.from_dict(c) for c in cached]

    try:
        candidates = provider.search_or_raise(track)
    except SearchUnauthenticatedError:
        logger.warning(f"🔒 Not signed in to SoundCloud, skipping search for: {track}")
        return []
    except SearchError as e:
        logger.error(f"❌ Search failed for {track}: {e}")
        return []

    cache.set(cache_key, [c.to_dict() for c in candidates], timeout=3600)
    return candidates


def session_tracks() -> List[SourceTrack]:
    return [SourceTrack.from_dict(t) for t in session.get('tracks', [])]


def load_reconciler() -> MatchReconciler:
    data = session.get('results')
    if not data:
        return MatchReconciler(review_limit=settings.review_limit)
    return MatchReconciler.from_dict(data)


def save_reconciler(reconciler: MatchReconciler):
    session['results'] = reconciler.to_dict()
    session.modified = True


def results_payload(reconciler: MatchReconciler) -> dict:
    return {
        'matched': [r.to_dict() for r in reconciler.matched],
        'needs_review': [r.to_dict() for r in reconciler.needs_review],
        'counts': reconciler.summary(),
    }


@app.route('/')
def index():
    """Main page; picks up tokens handed over by the auth callback"""
    access_token = request.args.get('access_token')
    refresh_token = request.args.get('refresh_token')
    if access_token:
        session.permanent = True
        session['access_token'] = access_token
        session['refresh_token'] = refresh_token
        session.modified = True
        logger.info("🔐 SoundCloud tokens received")
    return render_template(
        'index.html',
        authenticated=bool(session.get('access_token')),
        total_tracks=len(session.get('tracks', [])),
    )


@app.route('/login')
def login():
    """Start the PKCE authorization redirect"""
    try:
        auth = get_auth()
    except ValueError as e:
        logger.error(f"Login error: {e}")
        return jsonify({'error': str(e)}), 500

    auth_url, verifier, state = auth.begin_authorization()
    response = redirect(auth_url)
    verifier_store.save(response, verifier, state)
    return response


@app.route('/api/auth/callback')
def auth_callback():
    """Exchange the authorization code and hand the tokens to the main page"""
    code = request.args.get('code')
    if not code:
        logger.error('Missing authorization code.')
        return jsonify({'error': str(MissingCodeError())}), 400

    verifier = verifier_store.load_verifier(request)
    if not verifier:
        logger.error('Missing or expired code verifier cookie.')
        return jsonify({'error': 'Missing code verifier; please sign in again'}), 400

    expected_state = verifier_store.load_state(request)
    returned_state = request.args.get('state')
    if expected_state and returned_state != expected_state:
        logger.error('OAuth state mismatch.')
        return jsonify({'error': str(StateMismatchError())}), 400

    try:
        tokens = get_auth().exchange_code(code, verifier)
    except TokenRequestFailedError as e:
        return jsonify({'error': 'Failed to obtain access token'}), e.status_code
    except MissingTokensError as e:
        return jsonify({'error': str(e)}), 500
    except Exception as e:
        logger.error(f'Error exchanging authorization code for access token: {e}')
        return jsonify({'error': 'Failed to exchange authorization code'}), 500

    # Tokens travel in the query string; they end up in browser history
    response = redirect(url_for('index', access_token=tokens.access_token, refresh_token=tokens.refresh_token))
    verifier_store.discard(response)
    return response


@app.route('/api/auth/refresh', methods=['POST'])
def auth_refresh():
    """Swap the session's refresh token for a new access token"""
    refresh_token = session.get('refresh_token')
    if not refresh_token:
        return jsonify({'error': 'Not signed in'}), 401

    try:
        tokens = get_auth().refresh_access_token(refresh_token)
    except TokenRequestFailedError as e:
        return jsonify({'error': str(e)}), e.status_code
    except AuthError as e:
        return jsonify({'error': str(e)}), 500
    except Exception as e:
        logger.error(f"Refresh error: {e}")
        return jsonify({'error': str(e)}), 500

    session['access_token'] = tokens.access_token
    session['refresh_token'] = tokens.refresh_token
    session.modified = True
    return jsonify({'status': 'ok'})


@app.route('/logout', methods=['POST'])
def logout():
    session.pop('access_token', None)
    session.pop('refresh_token', None)
    return jsonify({'status': 'ok'})


@app.route('/upload', methods=['POST'])
def upload():
    """Parse a Shazam export and reset the results"""
    try:
        upload_file = request.files.get('file')
        if upload_file is not None:
            content = upload_file.read().decode('utf-8-sig')
        else:
            data = request.get_json(silent=True) or {}
            content = data.get('csv', '')

        if not content:
            return jsonify({'error': 'No CSV provided'}), 400

        tracks = parse_export(content)
    except CsvHeaderMismatchError as e:
        return jsonify({'error': str(e), 'expected': e.expected, 'actual': e.actual}), 400
    except ParseError as e:
        return jsonify({'error': str(e)}), 400
    except UnicodeDecodeError:
        return jsonify({'error': 'CSV file must be UTF-8 text'}), 400
    except Exception as e:
        logger.error(f"Upload error: {e}")
        return jsonify({'error': str(e)}), 500

    session.permanent = True
    session['tracks'] = [t.to_dict() for t in tracks]
    session['page_number'] = 1
    session['page_size'] = settings.page_size
    save_reconciler(MatchReconciler(review_limit=settings.review_limit))

    logger.info(f"📥 Imported {len(tracks)} tracks")
    return jsonify({
        'total_tracks': len(tracks),
        'page_size': settings.page_size,
        'total_pages': total_pages(settings.page_size, len(tracks)),
    })


@app.route('/page/next', methods=['POST'])
def next_page():
    """Search and classify the next page of imported tracks"""
    tracks = session_tracks()
    if not tracks:
        return jsonify({'error': 'No tracks imported'}), 400

    page_number = session.get('page_number', 1)
    page_size = session.get('page_size', settings.page_size)
    if (page_number - 1) * page_size >= len(tracks):
        return jsonify({'error': 'No more pages'}), 400

    try:
        provider = get_provider()
        page = run_page(
            tracks, page_number, page_size,
            search_fn=lambda track: cached_search(provider, track),
            classify_fn=lambda track, candidates: classify(track, candidates, settings.review_limit),
        )
    except Exception as e:
        logger.error(f"Page error: {e}")
        return jsonify({'error': str(e)}), 500

    reconciler = load_reconciler()
    reconciler.extend(page)
    save_reconciler(reconciler)
    session['page_number'] = page_number + 1

    return jsonify({
        'page_number': page_number,
        'authenticated': provider.access_token is not None,
        'matched': [r.to_dict() for r in page.matched],
        'unmatched': [r.to_dict() for r in page.unmatched],
        'counts': reconciler.summary(),
        'has_more': has_more_pages(page_number, page_size, len(tracks)),
    })


@app.route('/results')
def results():
    return jsonify(results_payload(load_reconciler()))


@app.route('/results/<track_key>/matched', methods=['POST'])
def move_to_matched(track_key):
    reconciler = load_reconciler()
    try:
        result = reconciler.move_to_matched(track_key)
    except KeyError:
        return jsonify({'error': f'Unknown track: {track_key}'}), 404
    save_reconciler(reconciler)
    return jsonify({'result': result.to_dict(), 'counts': reconciler.summary()})


@app.route('/results/<track_key>/review', methods=['POST'])
def move_to_needs_review(track_key):
    reconciler = load_reconciler()
    try:
        result = reconciler.move_to_needs_review(track_key)
    except KeyError:
        return jsonify({'error': f'Unknown track: {track_key}'}), 404
    save_reconciler(reconciler)
    return jsonify({'result': result.to_dict(), 'counts': reconciler.summary()})


@app.route('/api/soundcloud/search', methods=['POST'])
def search_soundcloud():
    """Free-text SoundCloud search"""
    data = request.get_json(silent=True) or {}
    query = (data.get('query') or '').strip()
    if not query:
        return jsonify({'error': 'Query required'}), 400

    logger.info(f"Received search query: {query}")
    try:
        candidates = get_provider().search_query(query.replace('"', ''))
    except SearchUnauthenticatedError as e:
        return jsonify({'error': str(e)}), 401
    except SearchError as e:
        logger.error(f"Search error: {e}")
        return jsonify({'error': 'Failed to search SoundCloud'}), 502

    return jsonify({'results': [c.to_dict() for c in candidates]})


@app.route('/health')
def health():
    """Health check endpoint"""
    return jsonify({'status': 'ok'})


if __name__ == '__main__':
    # Check if credentials are set
    if not settings.has_credentials:
        print("❌ SoundCloud credentials not found")
        print("📝 Please set SOUNDCLOUD_CLIENT_ID and SOUNDCLOUD_CLIENT_SECRET in .env file")
        print("🔧 Run: python scripts/setup_env.py")
        sys.exit(1)

    print("\n🎵 Shazam → SoundCloud Sync Web UI")
    print("🌐 Starting server...")
    print("📱 Open http://127.0.0.1:5000 in your browser")
    print("🛑 Press Ctrl+C to stop\n")

    app.run(debug=True, host='127.0.0.1', port=5000)
