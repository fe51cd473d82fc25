"""Main entry point for SetlistBot."""

import argparse
import dataclasses
import logging
import sys

from .config import AppSettings, load_settings
from .errors import InsufficientMatches, SourceNotFound, TransientCatalogError
from .factory import Application, build_application
from .models import CreationResult, ResolutionOptions

OPTION_FLAGS = (
    "include_tapes_main",
    "include_tapes_other",
    "include_cover_originals",
    "include_medley_parts",
    "attach_cover_image",
    "strict_search_only",
)


def setup_logging(debug: bool = False) -> None:
    """Configure logging for the application.

    Args:
        debug: Enable debug level logging.
    """
    level = logging.DEBUG if debug else logging.INFO
    format_str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=format_str,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from libraries
    logging.getLogger("spotipy").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="SetlistBot - Turn setlist.fm setlists into Spotify playlists",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  setlistbot https://www.setlist.fm/setlist/band/2024/venue-city-63de4613.html
  setlistbot 63de4613 --include-tapes-main --no-attach-cover-image
  setlistbot --housekeeping       # Run one housekeeping cycle and exit
  setlistbot --watch              # Run housekeeping on its schedule
  setlistbot --status             # Show configuration and playlist count

Environment Variables:
  SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET, SPOTIFY_REDIRECT_URI
  SETLISTFM_API_KEY               setlist.fm API key
  RESOLVE_*                       Default inclusion flags and search tuning
  HOUSEKEEPING_*                  Quota and schedule
  RETRY_MAX_ATTEMPTS, RETRY_DELAY_SECONDS
        """,
    )

    parser.add_argument(
        "setlist", nargs="?", help="setlist.fm setlist URL or id to convert"
    )

    for flag in OPTION_FLAGS:
        parser.add_argument(
            f"--{flag.replace('_', '-')}",
            dest=flag,
            action=argparse.BooleanOptionalAction,
            default=None,
            help=f"Override the {flag.upper()} default",
        )

    parser.add_argument(
        "--housekeeping",
        action="store_true",
        help="Run a single housekeeping cycle and exit",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep running housekeeping on its schedule",
    )
    parser.add_argument(
        "--skip-housekeeping",
        action="store_true",
        help="Don't rebuild the dedup cache before converting",
    )
    parser.add_argument(
        "--status",
        "-s",
        action="store_true",
        help="Show current status and configuration, then exit",
    )
    parser.add_argument(
        "--debug", "-d", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--http-log",
        action="store_true",
        help="Log all HTTP requests/responses to setlistbot_http.log with timing",
    )

    return parser.parse_args(argv)


def build_options(args: argparse.Namespace, settings: AppSettings) -> ResolutionOptions:
    """Settings defaults, overridden by any flag given on the command line."""
    overrides = {
        flag: getattr(args, flag)
        for flag in OPTION_FLAGS
        if getattr(args, flag, None) is not None
    }
    return dataclasses.replace(settings.resolution.default_options(), **overrides)


def show_status(app: Application) -> None:
    """Display current status and configuration."""
    settings = app.settings
    print("\n🎸 SetlistBot Status")
    print("=" * 50)

    try:
        print(f"👤 Logged in as: {app.spotify.user_id}")
    except Exception as e:
        print(f"❌ Not authenticated: {e}")
        return

    print(f"📈 Playlists created so far: {app.counter.formatted()}")

    print("\n⚙️  Configuration:")
    for flag, value in dataclasses.asdict(settings.resolution.default_options()).items():
        print(f"   {flag}: {value}")
    print(f"   Playlist quota: {settings.housekeeping.target_quota}")
    print(f"   Housekeeping interval: {settings.housekeeping.interval_hours}h")
    print()


def show_result(result: CreationResult) -> None:
    """Print the per-song outcomes of a conversion."""
    setlist = result.setlist
    state = "Reused existing" if result.reused else "Created new"
    print(f"\n✅ {state} playlist: {setlist.playlist_name}")
    print(f"   {result.collection_url}")
    print(
        f"   {result.resolved_count} of {len(result.outcomes)} songs found "
        f"(~{result.elapsed_seconds:.1f}s)\n"
    )
    for outcome in result.outcomes:
        song = outcome.song
        found = (
            f"{outcome.track.name} - {', '.join(outcome.track.artist_names)}"
            if outcome.track
            else ""
        )
        print(f"   {song.index:>3}. {song.name:<40} {outcome.kind.value:<15} {found}")
    print()


def main(argv=None) -> int:
    """Main entry point.

    Returns:
        Exit code.
    """
    args = parse_args(argv)

    # Load configuration
    try:
        settings = load_settings()
    except Exception as e:
        print(f"❌ Configuration error: {e}")
        print("\nMake sure you have configured the required environment variables.")
        return 1

    setup_logging(debug=args.debug or settings.debug)
    logger = logging.getLogger(__name__)

    if not (args.setlist or args.housekeeping or args.watch or args.status):
        print("Nothing to do. Pass a setlist URL or id, or see --help.")
        return 2

    logger.info("🎸 SetlistBot starting up...")

    try:
        app = build_application(settings, http_logging=args.http_log)
        logger.info(f"Authenticated as: {app.spotify.user_id}")
    except Exception as e:
        logger.error(f"Failed to authenticate with Spotify: {e}")
        print(
            "\n💡 Tip: Make sure your Spotify app is configured with the redirect URI: "
            f"{settings.spotify.redirect_uri}"
        )
        return 1

    if args.status:
        show_status(app)
        return 0

    scheduler = app.scheduler()
    try:
        if args.watch:
            scheduler.start()
            return 0

        if args.housekeeping or not (args.skip_housekeeping or settings.debug_mode):
            logger.info("Cleaning up and indexing existing playlists... (this might take a while)")
            report = scheduler.run_once()
            if report is not None and not report.aborted:
                logger.info(
                    f"Housekeeping: {report.scanned} scanned, "
                    f"{len(report.evicted)} evicted, {report.cached} cached"
                )
            if args.housekeeping:
                return 0 if report is not None and not report.aborted else 1

        options = build_options(args, settings)
        result = app.creator.convert(args.setlist, options, on_progress=logger.info)
        show_result(result)

    except SourceNotFound as e:
        logger.error(f"Couldn't find the setlist on setlist.fm: {e}")
        return 1

    except InsufficientMatches as e:
        logger.error(f"{e}. Is this the right setlist?")
        return 1

    except TransientCatalogError as e:
        logger.error(f"Spotify kept failing: {e}")
        return 1

    except KeyboardInterrupt:
        logger.info("Shutting down...")
        scheduler.stop()

    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1

    logger.info("👋 Goodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
