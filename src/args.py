"""Argument parsing functionality for distromap."""

import argparse
from constants import Constants


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="distromap",
        description=(
            "distromap - map installed package names from one Linux "
            "distribution to their equivalents on another"
        ),
        add_help=True,
    )

    input_group = parser.add_mutually_exclusive_group(required=True)
    input_group.add_argument("-l", "--load_list",
                             dest="LIST_FROM_FILE",
                             help="Load the list of source packages from a file (one per line)",
                             action="store", type=str)
    input_group.add_argument("-p", "--package",
                             dest="SINGLE",
                             help="Name a single package (repeatable).",
                             action="append", type=str)
    input_group.add_argument("--host",
                             dest="FROM_HOST",
                             help="Read installed packages from the host RPM database.",
                             action="store_true")

    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to the mapping file (text, JSON or CSV)",
                        action="store",
                        type=str)
    parser.add_argument("-f", "--format",
                        dest="OUTPUT_FORMAT",
                        help="Output format. If not specified, inferred from --output "
                             "extension; defaults to text.",
                        action="store",
                        type=str.lower,
                        choices=Constants.SUPPORTED_FORMATS)
    parser.add_argument("--successful-output",
                        dest="SUCCESSFUL_OUTPUT",
                        help="Also write only the found mappings (the target install list) to this file",
                        action="store",
                        type=str)
    parser.add_argument("--max-packages",
                        dest="MAX_PACKAGES",
                        help="Limit mapping to the first N packages (0 = no limit).",
                        action="store",
                        type=int,
                        default=0)
    parser.add_argument("--clear-cache",
                        dest="CLEAR_CACHE",
                        help="Clear the package mapping cache before running.",
                        action="store_true")
    parser.add_argument("--cache-dir",
                        dest="CACHE_DIR",
                        help="Directory holding the mapping cache",
                        action="store",
                        type=str)
    parser.add_argument("--cache-ttl",
                        dest="CACHE_TTL",
                        help="Cache entry lifetime in seconds (default: 86400)",
                        action="store",
                        type=int)
    parser.add_argument("--primary-repo",
                        dest="PRIMARY_REPO",
                        help="Official target repository name at the lookup service (default: arch)",
                        action="store",
                        type=str)
    parser.add_argument("--community-repo",
                        dest="COMMUNITY_REPO",
                        help="Community target repository name at the lookup service (default: aur)",
                        action="store",
                        type=str)
    parser.add_argument("--project-fallback",
                        dest="PROJECT_FALLBACK",
                        help="Fetch the project by identifier when the exact-name search finds nothing.",
                        action="store_true")
    parser.add_argument("--lookup-url",
                        dest="LOOKUP_URL",
                        help="Base URL of the lookup API",
                        action="store",
                        type=str)
    parser.add_argument("--no-preflight",
                        dest="NO_PREFLIGHT",
                        help="Skip the network connectivity check before mapping.",
                        action="store_true")
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level (default: $DISTROMAP_LOG_LEVEL or INFO)",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not output progress or the mapping to the console.",
                        action="store_true")
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)

    args = parser.parse_args(argv)
    if args.MAX_PACKAGES < 0:
        parser.error("--max-packages must be zero or a positive integer")
    return args
