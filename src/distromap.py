"""distromap - cross-distribution package name mapper.

Reads a source package inventory, resolves every name against the lookup
service through a persistent cache, and writes a ``source -> target`` mapping.

    Returns:
        int: Exit code
"""
import logging
import os
import signal
import sys
import threading

from args import parse_args
from constants import Constants, ExitCodes
from cli_config import apply_cli_overrides, load_config
from cli_progress import ProgressBar
from common.http_client import LookupHttpClient, RateLimiter
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from mapping.batch import BatchDriver
from mapping.cache import CacheError, CacheUnavailableError, FileCacheStore
from mapping.inventory import InventoryError, load_pkgs_file, normalize_package_list, query_host_packages
from mapping.report import export_report, export_successful, render_text
from mapping.resolver import PackageResolver

logger = logging.getLogger(__name__)


def setup_logging(args):
    """Configure logging based on CLI arguments."""
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()
    configure_logging()

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
        except OSError as e:
            logging.error("Cannot open log file %s: %s", log_file, e)
            sys.exit(ExitCodes.FILE_ERROR.value)
        file_handler.setFormatter(
            logging.Formatter("[%(asctime)s] [%(levelname)s] %(name)s %(message)s")
        )
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def build_pkglist(args):
    """Collect the ordered, deduplicated source package list.

    Args:
        args: Parsed CLI arguments.

    Returns:
        list: Package names.
    """
    try:
        if getattr(args, "FROM_HOST", False):
            return query_host_packages()
        if getattr(args, "LIST_FROM_FILE", None):
            return load_pkgs_file(args.LIST_FROM_FILE)
        return normalize_package_list(getattr(args, "SINGLE", None) or [])
    except InventoryError as e:
        logging.error("%s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def build_resolver(cache):
    """Create the resolver from the effective configuration."""
    client = LookupHttpClient()
    limiter = RateLimiter(Constants.RATE_LIMIT_INTERVAL_SEC)
    return PackageResolver(
        cache,
        client,
        limiter,
        ttl=Constants.CACHE_TTL_SEC,
        primary_repo=Constants.TARGET_PRIMARY_REPO,
        community_repo=Constants.TARGET_COMMUNITY_REPO,
        base_url=Constants.LOOKUP_API_BASE,
        project_fallback=Constants.LOOKUP_PROJECT_FALLBACK,
    )


def clear_cache(cache):
    """Remove all cached resolutions (force refresh)."""
    logging.info("Clearing package mapping cache at %s", cache.directory)
    try:
        cache.ensure_ready()
        removed = cache.clear_all()
    except CacheError as e:
        logging.error("Cannot clear cache: %s", e)
        sys.exit(ExitCodes.CACHE_ERROR.value)
    logging.info("Removed %d cached entries.", removed)


def _install_interrupt_handler(cancel_event):
    """Turn the first Ctrl+C into a cooperative stop between packages."""
    def _handler(signum, frame):  # pylint: disable=unused-argument
        if cancel_event.is_set():
            raise KeyboardInterrupt
        logging.warning("Interrupt received; finishing the current package. "
                        "Press Ctrl+C again to abort immediately.")
        cancel_event.set()

    try:
        return signal.signal(signal.SIGINT, _handler)
    except ValueError:
        # not in the main thread
        return None


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    setup_logging(args)

    try:
        load_config(args)
    except (OSError, ValueError) as e:
        logging.error("Cannot load config: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    apply_cli_overrides(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main")
        )

    cache = FileCacheStore(Constants.CACHE_DIR)
    if args.CLEAR_CACHE:
        clear_cache(cache)

    pkglist = build_pkglist(args)
    if not pkglist:
        logging.warning("No packages found in the input list.")
        sys.exit(ExitCodes.SUCCESS.value)
    logging.info("Package list imported: %d packages", len(pkglist))

    resolver = build_resolver(cache)
    if not args.NO_PREFLIGHT:
        logging.debug("Performing network connectivity test to %s...",
                      Constants.LOOKUP_SERVICE_ROOT)
        if not resolver.client.check_connectivity():
            logging.error("Network Failure: Could not connect to %s.",
                          Constants.LOOKUP_SERVICE_ROOT)
            sys.exit(ExitCodes.CONNECTION_ERROR.value)

    cancel_event = threading.Event()
    previous_handler = _install_interrupt_handler(cancel_event)
    logging.info("You can safely interrupt (Ctrl+C) and resume this process.")
    try:
        with ProgressBar(disable=args.QUIET) as progress:
            driver = BatchDriver(resolver, progress_callback=progress, cancel_event=cancel_event)
            report = driver.run(pkglist, max_packages=args.MAX_PACKAGES)
    except CacheUnavailableError as e:
        logging.error("Package mapping aborted, cache unavailable: %s", e)
        sys.exit(ExitCodes.CACHE_ERROR.value)
    except KeyboardInterrupt:
        logging.error("Package mapping aborted by second interrupt; completed lookups "
                      "are cached and will be reused on the next run.")
        sys.exit(ExitCodes.INTERRUPTED.value)
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)

    if args.OUTPUT:
        try:
            export_report(report, args.OUTPUT, args.OUTPUT_FORMAT)
        except (OSError, ValueError) as e:
            logging.error("Mapping file couldn't be written to disk: %s", e)
            sys.exit(ExitCodes.FILE_ERROR.value)
    elif not args.QUIET:
        sys.stdout.write(render_text(report))

    if args.SUCCESSFUL_OUTPUT:
        try:
            export_successful(report, args.SUCCESSFUL_OUTPUT)
        except OSError as e:
            logging.error("Successful mapping file couldn't be written to disk: %s", e)
            sys.exit(ExitCodes.FILE_ERROR.value)

    if report.cancelled:
        sys.exit(ExitCodes.INTERRUPTED.value)
    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
