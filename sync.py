#!/usr/bin/env python3
"""
Match a Shazam export against SoundCloud from the command line
"""
import sys
import os
import json
import argparse
from typing import Optional
from dotenv import load_dotenv

from shazam_sync.config import Settings
from shazam_sync.errors import ParseError, AuthError
from shazam_sync.csv_import import parse_export_file
from shazam_sync.auth_flow import SoundCloudAuth
from shazam_sync.providers.soundcloud import SoundCloudProvider
from shazam_sync.match import MatchReconciler, classify
from shazam_sync.pagination import run_page, has_more_pages, total_pages
from shazam_sync.utils.log import setup_logger


def get_access_token(settings: Settings, logger, explicit_token: Optional[str] = None,
                     open_browser: bool = True) -> Optional[str]:
    """Use a provided token, or fall back to the interactive PKCE flow"""
    token = explicit_token or os.getenv('SOUNDCLOUD_ACCESS_TOKEN')
    if token:
        return token

    if not settings.has_credentials:
        logger.warning("⚠️  No SoundCloud credentials; searching without sign-in returns no candidates")
        return None

    logger.info("\n🔐 Authenticating with SoundCloud...")
    auth = SoundCloudAuth(settings)
    tokens = auth.authenticate_interactive(open_browser=open_browser)
    return tokens.access_token


def sync_export(csv_path: str, page: int = 1, page_size: Optional[int] = None, all_pages: bool = False,
                access_token: Optional[str] = None, open_browser: bool = True,
                output: Optional[str] = None, settings: Optional[Settings] = None) -> bool:
    """
    Parse the export, search SoundCloud page by page, and report the buckets
    """
    settings = settings or Settings.from_env()
    page_size = page_size or settings.page_size
    logger = setup_logger(log_file=os.getenv('SYNC_LOG_FILE'))
    logger.info(f"🎵 Shazam → SoundCloud: {csv_path}")

    # Step 1: Parse the export
    logger.info("\n📥 Reading export...")
    try:
        tracks = parse_export_file(csv_path)
    except ParseError as e:
        logger.error(f"❌ {e}")
        return False

    logger.info(f"📊 Found {len(tracks)} tracks in {total_pages(page_size, len(tracks))} pages of {page_size}")
    if not tracks:
        logger.warning("⚠️  Nothing to search")
        return True

    # Step 2: Authenticate
    try:
        token = get_access_token(settings, logger, access_token, open_browser)
    except (AuthError, TimeoutError) as e:
        logger.error(f"❌ Authentication failed: {e}")
        return False

    # Step 3: Search and classify
    provider = SoundCloudProvider(token, settings=settings)
    reconciler = MatchReconciler(review_limit=settings.review_limit)

    page_number = page
    while True:
        logger.info(f"\n🔍 Searching page {page_number}...")
        page_result = run_page(
            tracks, page_number, page_size,
            search_fn=provider.search_track,
            classify_fn=lambda track, candidates: classify(track, candidates, settings.review_limit),
        )
        reconciler.extend(page_result)
        if not all_pages or not has_more_pages(page_number, page_size, len(tracks)):
            break
        page_number += 1

    # Step 4: Report
    counts = reconciler.summary()
    logger.info(f"\n📊 Match Results:")
    logger.info(f"  ✅ Matched: {counts['matched']}")
    logger.info(f"  🔍 Needs review: {counts['needs_review']}")
    logger.info(f"  ❌ No matches: {counts['no_match']}")

    logger.info("\n📋 Detailed Results:")
    for result in reconciler.matched + reconciler.needs_review:
        logger.info(f"  {result}")

    if has_more_pages(page_number, page_size, len(tracks)):
        logger.info(f"\nℹ️ More tracks remain; run again with --page {page_number + 1} or use --all")

    if output:
        with open(output, 'w', encoding='utf-8') as f:
            json.dump(reconciler.to_dict(), f, indent=2, ensure_ascii=False)
        logger.info(f"💾 Saved results to {output}")

    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Match a Shazam CSV export against SoundCloud")
    parser.add_argument("csv_path", help="Path to the Shazam export (CSV)")
    parser.add_argument("--page", type=int, default=1, help="Page to search (1-based)")
    parser.add_argument("--page-size", type=int, help="Tracks per page (default: SYNC_PAGE_SIZE or 20)")
    parser.add_argument("--all", action="store_true", dest="all_pages",
                        help="Keep going until every page has been searched")
    parser.add_argument("--access-token", help="SoundCloud access token (skips the browser sign-in)")
    parser.add_argument("--no-browser", action="store_true",
                        help="Print the sign-in URL instead of opening a browser")
    parser.add_argument("--output", help="Write the result buckets to a JSON file")

    args = parser.parse_args(argv)

    if args.page < 1 or (args.page_size is not None and args.page_size < 1):
        parser.error("--page and --page-size must be positive")

    if not os.path.exists(args.csv_path):
        print(f"❌ File not found: {args.csv_path}")
        return 1

    # Load environment variables
    load_dotenv()

    try:
        success = sync_export(
            csv_path=args.csv_path,
            page=args.page,
            page_size=args.page_size,
            all_pages=args.all_pages,
            access_token=args.access_token,
            open_browser=not args.no_browser,
            output=args.output,
        )
        return 0 if success else 1
    except KeyboardInterrupt:
        print("\n⏹️  Sync cancelled by user")
        return 1
    except Exception as e:
        print(f"\n❌ Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
