#!/usr/bin/env python3
"""Helper script to bootstrap the Spotify OAuth token for Lambda.

Run this locally ONCE to authenticate the bot account and upload the
initial token to SSM. After that, the Lambda refreshes tokens itself.

Usage:
    python -m setlistbot.bootstrap_token

Requires:
    - AWS credentials configured (aws configure or env vars)
    - SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET set
    - SSM_TOKEN_PARAM set (optional, defaults to /setlistbot/spotify_token)
"""

import json
import os

import boto3
import spotipy
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth

from .config import SpotifySettings
from .spotify_client import REQUIRED_SCOPES


def main() -> int:
    settings = SpotifySettings()
    ssm_param = os.environ.get("SSM_TOKEN_PARAM", "/setlistbot/spotify_token")

    if not settings.client_id or not settings.client_secret:
        print("❌ Set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET env vars")
        return 1

    print("🎸 SetlistBot Token Bootstrap")
    print("=" * 40)
    print(f"Client ID: {settings.client_id[:8]}...")
    print(f"Redirect URI: {settings.redirect_uri}")
    print(f"SSM Parameter: {ssm_param}")
    print()

    # Keep the token in memory only; SSM is the single place it lives
    print("Opening browser for Spotify authentication...")
    auth_manager = SpotifyOAuth(
        client_id=settings.client_id,
        client_secret=settings.client_secret,
        redirect_uri=settings.redirect_uri,
        scope=" ".join(REQUIRED_SCOPES),
        cache_handler=MemoryCacheHandler(),
        open_browser=True,
    )

    sp = spotipy.Spotify(auth_manager=auth_manager)
    user = sp.current_user()
    print(f"✓ Authenticated as: {user.get('display_name')} ({user['id']})")

    token_info = auth_manager.get_cached_token()
    if not token_info:
        print("❌ Failed to get token")
        return 1

    print(f"\nUploading token to SSM: {ssm_param}")
    ssm = boto3.client("ssm")
    ssm.put_parameter(
        Name=ssm_param,
        Value=json.dumps(token_info),
        Type="SecureString",
        Overwrite=True,
    )
    print("✓ Token uploaded to SSM Parameter Store")
    print("\n✅ Bootstrap complete! Lambda can now use the token.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
