#!/usr/bin/env python3
"""
Setup script to help configure environment variables
"""
import secrets
from pathlib import Path

def main():
    print("🔧 Shazam → SoundCloud Sync Setup")
    print("=" * 40)

    # Check if .env already exists
    env_file = Path(".env")
    if env_file.exists():
        print("📄 .env file already exists")
        overwrite = input("Do you want to overwrite it? (y/N): ").strip().lower()
        if overwrite != 'y':
            print("ℹ️  Keeping existing .env file")
            return

    print("\n📝 Please provide your SoundCloud app credentials:")
    print("   Register an app at: https://soundcloud.com/you/apps")
    print()

    client_id = input("SoundCloud Client ID: ").strip()
    client_secret = input("SoundCloud Client Secret: ").strip()

    if not client_id or not client_secret:
        print("❌ Both Client ID and Client Secret are required")
        return

    redirect_uri = input("Redirect URI [http://localhost:5000/api/auth/callback]: ").strip()
    redirect_uri = redirect_uri or "http://localhost:5000/api/auth/callback"

    # Create .env file
    env_content = f"""# SoundCloud API credentials
SOUNDCLOUD_CLIENT_ID={client_id}
SOUNDCLOUD_CLIENT_SECRET={client_secret}

# Must match the redirect URI registered for the app
SOUNDCLOUD_REDIRECT_URI={redirect_uri}

# Flask session signing key
FLASK_SECRET_KEY={secrets.token_hex(32)}

# Optional tuning
# SYNC_PAGE_SIZE=20
# SYNC_REVIEW_LIMIT=3
# SOUNDCLOUD_REQUEST_TIMEOUT=30
"""

    with open(".env", "w") as f:
        f.write(env_content)

    print("\n✅ .env file created successfully!")
    print("\n📋 Next steps:")
    print("1. Install the project: pip install -e .")
    print("2. Start the web UI: python web_app.py")
    print("3. Or match from the command line: python sync.py <export.csv>")
    print("\n🎵 Happy syncing!")

if __name__ == "__main__":
    main()
