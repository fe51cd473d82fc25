"""HTTP traffic logging for debugging Spotify and setlist.fm calls.

Every request is logged with millisecond timing to a separate file.
Credentials (authorization headers, setlist.fm API key) are redacted.
"""

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

# Dedicated logger for HTTP traffic
http_logger = logging.getLogger("setlistbot.http")

# Headers to redact from logs
SENSITIVE_HEADERS = {"authorization", "x-api-key", "cookie", "set-cookie"}

DEFAULT_LOG_FILE = Path("setlistbot_http.log")


def setup_http_logging(
    log_file: Optional[Path] = None,
    console: bool = False,
) -> None:
    """Configure HTTP request/response logging.

    Args:
        log_file: Path to log file. Defaults to setlistbot_http.log
        console: Also log to console (very verbose!)
    """
    if http_logger.handlers:
        return

    formatter = logging.Formatter(
        "%(asctime)s.%(msecs)03d [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.FileHandler(log_file or DEFAULT_LOG_FILE, mode="a")
    file_handler.setFormatter(formatter)
    http_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        http_logger.addHandler(console_handler)

    http_logger.setLevel(logging.DEBUG)
    http_logger.propagate = False  # Keep traffic out of the main log

    http_logger.info(f"=== HTTP logging started at {datetime.now().isoformat()} ===")


def sanitize_headers(headers: dict) -> dict:
    """Replace credential headers with a placeholder."""
    return {
        k: ("***REDACTED***" if k.lower() in SENSITIVE_HEADERS else v)
        for k, v in (headers or {}).items()
    }


def truncate(text: str, max_len: int = 2000) -> str:
    """Shorten long response bodies."""
    if len(text) <= max_len:
        return text
    return text[:max_len] + f"... [truncated, {len(text)} total chars]"


class TimedSession:
    """Wraps a requests.Session and logs every request with its duration."""

    def __init__(self, session, label: str):
        self._session = session
        self._label = label
        self._request_counter = 0

    def request(self, method: str, url: str, **kwargs):
        self._request_counter += 1
        req_id = f"{self._label}-{self._request_counter}"

        # Session-level headers (like the setlist.fm API key) are merged in
        # by requests; log them too so redaction covers them
        headers = {**dict(getattr(self._session, "headers", {}) or {}), **(kwargs.get("headers") or {})}
        http_logger.debug(
            f"[{req_id}] --> {method} {url}\n"
            f"    Params: {kwargs.get('params') or {}}\n"
            f"    Headers: {sanitize_headers(headers)}"
        )

        start = time.perf_counter()
        try:
            response = self._session.request(method, url, **kwargs)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            http_logger.error(f"[{req_id}] <-- ERROR after {elapsed_ms:.1f}ms: {e}")
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000
        http_logger.debug(
            f"[{req_id}] <-- {response.status_code} {response.reason} ({elapsed_ms:.1f}ms)\n"
            f"    Headers: {sanitize_headers(dict(response.headers))}\n"
            f"    Body: {truncate(response.text)}"
        )
        return response

    def get(self, url: str, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs):
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs):
        return self.request("PUT", url, **kwargs)

    def delete(self, url: str, **kwargs):
        return self.request("DELETE", url, **kwargs)

    # Delegate all other attributes to the wrapped session
    def __getattr__(self, name):
        return getattr(self._session, name)


def patch_spotipy_client(spotify_client) -> None:
    """Patch a spotipy.Spotify client to log all HTTP requests.

    Args:
        spotify_client: A spotipy.Spotify instance
    """
    if getattr(spotify_client, "_http_logging_patched", False):
        return

    setup_http_logging()
    # Spotipy uses _session internally
    spotify_client._session = TimedSession(spotify_client._session, "SPOTIFY")
    spotify_client._http_logging_patched = True
    http_logger.info("Patched spotipy client for HTTP logging")


def timed_setlistfm_session(session) -> TimedSession:
    """Wrap the setlist.fm requests session for HTTP logging."""
    setup_http_logging()
    http_logger.info("Patched setlist.fm session for HTTP logging")
    return TimedSession(session, "SETLISTFM")
