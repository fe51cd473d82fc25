"""AWS Lambda handler for SetlistBot.

Runs housekeeping on an EventBridge schedule and converts setlists on demand.
Stores the Spotify OAuth token in SSM Parameter Store.

Events:
    {"action": "housekeeping"}
    {"action": "create", "setlist_id": "63de4613", "options": {...}}
"""

import dataclasses
import json
import logging
import os
from typing import Any, Optional

import boto3
from spotipy.cache_handler import CacheHandler

from .config import AppSettings, load_settings
from .errors import InsufficientMatches, ResolutionCancelled, SourceNotFound, TransientCatalogError
from .factory import Application, build_application
from .models import ResolutionOptions
from .spotify_client import SpotifyClient

logger = logging.getLogger()
logger.setLevel(logging.INFO)

# SSM parameter names
SSM_TOKEN_PARAM = os.environ.get("SSM_TOKEN_PARAM", "/setlistbot/spotify_token")

# Built once per container, so the dedup cache survives warm invocations
_app: Optional[Application] = None


class SSMTokenCache(CacheHandler):
    """Spotipy cache handler that stores tokens in AWS SSM Parameter Store."""

    def __init__(self, param_name: str, ssm_client=None):
        self.param_name = param_name
        self.ssm = ssm_client or boto3.client("ssm")

    def get_cached_token(self) -> dict | None:
        """Retrieve token from SSM."""
        try:
            response = self.ssm.get_parameter(Name=self.param_name, WithDecryption=True)
            return json.loads(response["Parameter"]["Value"])
        except self.ssm.exceptions.ParameterNotFound:
            logger.warning(f"No token found in SSM at {self.param_name}")
            return None

    def save_token_to_cache(self, token_info: dict) -> None:
        """Save refreshed token to SSM."""
        self.ssm.put_parameter(
            Name=self.param_name,
            Value=json.dumps(token_info),
            Type="SecureString",
            Overwrite=True,
        )
        logger.info("Saved token to SSM")


class LambdaSpotifyClient(SpotifyClient):
    """SpotifyClient that uses SSM for token storage."""

    def __init__(self, settings: AppSettings, ssm_param: str):
        super().__init__(
            settings.spotify,
            cache_handler=SSMTokenCache(ssm_param),
            open_browser=False,
        )


def get_app(run_startup_cycle: bool = True) -> Application:
    """Build the application on first use and reuse it afterwards.

    Args:
        run_startup_cycle: Fill the dedup cache with a housekeeping cycle on
            a cold start. Housekeeping invocations run their own cycle.
    """
    global _app
    if _app is None:
        settings = load_settings()
        spotify = LambdaSpotifyClient(settings, os.environ.get("SSM_TOKEN_PARAM", SSM_TOKEN_PARAM))
        _app = build_application(settings, spotify=spotify)
        if run_startup_cycle and not settings.debug_mode:
            _app.housekeeper.run_housekeeping_cycle()
    return _app


def _response(status: int, body: dict) -> dict[str, Any]:
    return {"statusCode": status, "body": json.dumps(body)}


def _parse_flag(name: str, value: Any) -> bool:
    """Accept JSON booleans and the strings "true" / "false"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"Option {name} must be true or false, got {value!r}")


def _options_from_event(app: Application, event: dict) -> ResolutionOptions:
    defaults = app.settings.resolution.default_options()
    known = {f.name for f in dataclasses.fields(ResolutionOptions)}
    overrides = {
        k: _parse_flag(k, v) for k, v in (event.get("options") or {}).items() if k in known
    }
    return dataclasses.replace(defaults, **overrides)


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Lambda handler function."""
    action = event.get("action", "housekeeping")
    logger.info(f"SetlistBot Lambda invoked: {action}")

    try:
        app = get_app(run_startup_cycle=action != "housekeeping")

        if action == "housekeeping":
            report = app.housekeeper.run_housekeeping_cycle()
            status = 500 if report.aborted else 200
            return _response(status, {
                "scanned": report.scanned,
                "evicted": len(report.evicted),
                "failed": len(report.failed),
                "cached": report.cached,
                "aborted": report.aborted,
            })

        if action == "create":
            setlist_id = event.get("setlist_id")
            if not setlist_id:
                return _response(400, {"error": "setlist_id is required"})
            try:
                options = _options_from_event(app, event)
            except ValueError as e:
                return _response(400, {"error": str(e)})
            result = app.creator.convert(setlist_id, options)
            return _response(200, {
                "playlist_id": result.collection_id,
                "playlist_url": result.collection_url,
                "reused": result.reused,
                "results": [
                    {
                        "song": o.song.name,
                        "result": o.kind.value,
                        "track": o.track.name if o.track else None,
                    }
                    for o in result.outcomes
                ],
            })

        return _response(400, {"error": f"Unknown action: {action}"})

    except SourceNotFound as e:
        return _response(404, {"error": str(e)})
    except InsufficientMatches as e:
        return _response(422, {"error": str(e)})
    except (TransientCatalogError, ResolutionCancelled) as e:
        return _response(503, {"error": str(e)})
    except Exception as e:
        logger.error(f"Lambda execution failed: {e}", exc_info=True)
        return _response(500, {"error": str(e)})


# For local testing
if __name__ == "__main__":
    print(json.dumps(handler({"action": "housekeeping"}, None), indent=2))
