"""CLI entry point for innebandy stats.

Provides ``main()`` as the sync entry point for the ``innebandy-stats``
console script, and ``async_main(args)`` which sets up logging, builds the
client and service, runs the requested command and prints the result.

Usage::

    innebandy-stats competitions                      # season 43, federation 8
    innebandy-stats competitions --season 42
    innebandy-stats standings 40123                   # points, descending
    innebandy-stats standings 40123 --sort goals --team "IBK Dalen"
    innebandy-stats standings 40123 --birth-year 2008 --asc --limit 20
    innebandy-stats standings 40123 --show-filters
"""

import argparse
import asyncio
import logging
import sys

from innebandy_stats.cache import TTLCache
from innebandy_stats.config import StatsConfig
from innebandy_stats.exceptions import InnebandyStatsError
from innebandy_stats.http_client import InnebandyClient
from innebandy_stats.logging_config import setup_logging
from innebandy_stats.models import Competition, PlayerStanding
from innebandy_stats.service import StandingsService
from innebandy_stats.view import (
    DEFAULT_SORT,
    SORT_KEYS,
    AvailableFilters,
    StandingsFilter,
    available_filters,
    filter_standings,
    sort_standings,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the innebandy-stats CLI."""
    parser = argparse.ArgumentParser(
        prog="innebandy-stats",
        description="Player scoring tables for innebandy competitions",
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default="data",
        help="Directory for log files (default: data)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="HTTP timeout in seconds (default: 30)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show debug output on the console",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    competitions = commands.add_parser(
        "competitions", help="List competitions for a season and federation",
    )
    competitions.add_argument(
        "--season",
        type=int,
        default=None,
        help="Season id (default: 43)",
    )
    competitions.add_argument(
        "--federation",
        type=int,
        default=None,
        help="Federation id (default: 8)",
    )

    standings = commands.add_parser(
        "standings", help="Player scoring table for a competition",
    )
    standings.add_argument("competition_id", type=int, help="Competition id")
    standings.add_argument("--team", type=str, default=None, help="Only this team")
    standings.add_argument("--age", type=int, default=None, help="Only players of this age")
    standings.add_argument(
        "--birth-year", type=int, default=None, help="Only players born this year",
    )
    standings.add_argument(
        "--sort",
        choices=SORT_KEYS,
        default=DEFAULT_SORT,
        help="Sort column (default: points)",
    )
    standings.add_argument(
        "--asc",
        action="store_true",
        help="Sort ascending instead of descending",
    )
    standings.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Show at most this many rows",
    )
    standings.add_argument(
        "--show-filters",
        action="store_true",
        help="List the teams, ages and birth years available as filters",
    )
    return parser


def _format_competitions(competitions: list[Competition]) -> str:
    """One line per competition: id, name and category."""
    if not competitions:
        return "No competitions found."
    lines = []
    for c in competitions:
        category = f"  ({c.category_name})" if c.category_name else ""
        lines.append(f"{c.competition_id:>8}  {c.name}{category}")
    return "\n".join(lines)


def _format_standings(name: str, standings: list[PlayerStanding]) -> str:
    """Render a standings table as fixed-width text."""
    header = (
        f"{'#':>3}  {'Player':<28} {'Team':<24} {'Born':>4} "
        f"{'GP':>3} {'G':>3} {'A':>3} {'P':>4} {'P/GP':>5} {'PIM':>4}"
    )
    lines = [
        "=" * len(header),
        name or "(unnamed competition)",
        "-" * len(header),
        header,
        "-" * len(header),
    ]
    for rank, s in enumerate(standings, start=1):
        born = str(s.birth_year) if s.birth_year > 0 else "-"
        lines.append(
            f"{rank:>3}  {s.name[:28]:<28} {s.team[:24]:<24} {born:>4} "
            f"{s.matches:>3} {s.goals:>3} {s.assists:>3} {s.points:>4} "
            f"{s.points_per_game:>5.2f} {s.penalty_minutes:>4}"
        )
    if not standings:
        lines.append("No players.")
    lines.append("=" * len(header))
    return "\n".join(lines)


def _format_filters(available: AvailableFilters) -> str:
    """Filter values present in the unfiltered table."""
    def join(values):
        return ", ".join(str(v) for v in values) or "-"

    return "\n".join([
        f"Teams:       {join(available.teams)}",
        f"Ages:        {join(available.ages)}",
        f"Birth years: {join(available.birth_years)}",
    ])


async def async_main(args: argparse.Namespace) -> str:
    """Async entry point: set up components, run the command, return its output."""
    # 1. Logging
    console_level = logging.DEBUG if args.verbose else logging.WARNING
    log_file = setup_logging(
        data_dir=args.data_dir, console_level=console_level, name=args.command,
    )

    # 2. Config
    config_overrides = {"data_dir": args.data_dir}
    if args.timeout is not None:
        config_overrides["http_timeout"] = args.timeout
    config = StatsConfig(**config_overrides)
    logger.info("Running %s, log=%s", args.command, log_file)

    # 3. Client + service
    async with InnebandyClient(config) as client:
        service = StandingsService(client, TTLCache(), config)

        if args.command == "competitions":
            competitions = await service.get_competitions(args.season, args.federation)
            output = _format_competitions(competitions)
        else:
            standings = await service.compute_standings(args.competition_id)
            name = await service.get_competition_name(args.competition_id)
            flt = StandingsFilter(
                team=args.team, age=args.age, birth_year=args.birth_year,
            )
            rows = sort_standings(
                filter_standings(standings, flt), args.sort, descending=not args.asc,
            )
            if args.limit is not None:
                rows = rows[:args.limit]
            output = _format_standings(name, rows)
            if args.show_filters:
                output += "\n" + _format_filters(available_filters(standings))

        logger.debug("Client stats: %s", client.stats)
    return output


def main() -> None:
    """Sync entry point for the innebandy-stats console script."""
    parser = build_parser()
    args = parser.parse_args()
    try:
        output = asyncio.run(async_main(args))
    except InnebandyStatsError as exc:
        logger.error("Command failed: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(130)
    finally:
        logging.shutdown()
    print(output)


if __name__ == "__main__":
    main()
