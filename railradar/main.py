"""
Rail Radar - Main entry point.

Usage:
    python -m railradar.main path START_ID END_ID
    python -m railradar.main path START_ID END_ID --via VIA_ID --json
    python -m railradar.main alternatives START_ID END_ID -k 3
    python -m railradar.main serve --port 8000
"""

import argparse
import json
import sys
from pathlib import Path

from railradar.config import settings
from railradar.exceptions import RailRadarError
from railradar.logging_config import setup_logger
from railradar.pathfinding import PathFinder, PathResult
from railradar.store import JsonGraphStore


def format_duration(minutes: float | None) -> str:
    """Format duration in minutes to human readable string."""
    if minutes is None:
        return ""
    hours = int(minutes // 60)
    mins = int(minutes % 60)
    if hours > 0:
        return f"{hours}h{mins:02d}"
    return f"{mins} min"


def format_result(result: PathResult) -> str:
    """Render a PathResult as plain text."""
    if not result.found:
        return "NO_PATH"

    lines = [
        " → ".join(station.name for station in result.path),
        f"Total: {result.total_weight:g} ({format_duration(result.total_weight)})",
    ]
    for edge in result.edges:
        routes = ",".join(edge.route_ids) or "-"
        lines.append(f"  {edge.from_station} → {edge.to_station} [{edge.edge_type}] {edge.weight:g} ({routes})")
    if result.next_stations:
        upcoming = ", ".join(
            f"{next_station.station.name} (+{next_station.distance:g})"
            for next_station in result.next_stations
        )
        lines.append(f"Next: {upcoming}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    # --data is accepted before or after the subcommand
    data_parent = argparse.ArgumentParser(add_help=False)
    data_parent.add_argument(
        "--data",
        type=Path,
        default=argparse.SUPPRESS,
        help="Path to the precomputed rail data JSON",
    )

    parser = argparse.ArgumentParser(
        description="Rail Radar - shortest paths over the rail station graph",
        parents=[data_parent],
    )
    parser.set_defaults(data=settings.data_file)
    subparsers = parser.add_subparsers(dest="command", required=True)

    path_parser = subparsers.add_parser(
        "path", help="Shortest path between two stations", parents=[data_parent]
    )
    path_parser.add_argument("start", help="Start station id")
    path_parser.add_argument("end", help="End station id")
    path_parser.add_argument(
        "--via",
        action="append",
        default=[],
        help="Waypoint station id (repeatable, in order)",
    )
    path_parser.add_argument("--json", action="store_true", help="Print JSON output")

    alt_parser = subparsers.add_parser(
        "alternatives", help="Several loop-free paths, lightest first", parents=[data_parent]
    )
    alt_parser.add_argument("start", help="Start station id")
    alt_parser.add_argument("end", help="End station id")
    alt_parser.add_argument("-k", type=int, default=3, help="Number of paths (default: 3)")
    alt_parser.add_argument("--json", action="store_true", help="Print JSON output")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API", parents=[data_parent])
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger()

    if args.command == "serve":
        import uvicorn

        settings.data_file = args.data
        uvicorn.run("railradar.web.app:app", host=args.host, port=args.port)
        return 0

    try:
        return run_query(args, PathFinder(JsonGraphStore(args.data)))
    except RailRadarError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


def run_query(args: argparse.Namespace, pathfinder: PathFinder) -> int:
    """Run a path or alternatives command and print the outcome."""
    if args.command == "alternatives":
        results = pathfinder.get_alternative_paths(args.start, args.end, k=args.k)
        if args.json:
            print(json.dumps([r.to_dict() for r in results], ensure_ascii=False, indent=2))
        else:
            for i, result in enumerate(results, 1):
                print(f"#{i} {format_result(result)}")
        return 0 if results else 1

    if args.via:
        result = pathfinder.find_path_with_waypoints(args.start, args.end, args.via)
    else:
        result = pathfinder.find_path(args.start, args.end)

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(format_result(result))
    return 0 if result.found else 1


if __name__ == "__main__":
    sys.exit(main())
