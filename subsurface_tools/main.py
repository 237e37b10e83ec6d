"""Command-line entry point: ``python -m subsurface_tools <command>``.

Each command reads dive-log / GPX files, runs one operation of the core and
writes the resulting document (stdout when no ``--output`` is given).
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence

from .config import DEFAULT_SALINITY, DIVE_TRACK_INTERVAL_S, GEONAMES_ENABLED, GEONAMES_USERNAME
from .correlation import dives_to_track, sites_to_track, track_depth, track_to_dive_log
from .divelog import DiveLog
from .errors import (
    DocumentFormatError,
    EmptyTrackError,
    SiteCollisionError,
    TimeZoneError,
    TimeZoneLookupError,
)
from .gpx import TrackReader
from .report import build_report, fuse_dates, parse_instants, write_report
from .tools import geonames_resolver

LOGGER = logging.getLogger(__name__)

_HANDLED_ERRORS = (
    DocumentFormatError,
    EmptyTrackError,
    SiteCollisionError,
    TimeZoneError,
    TimeZoneLookupError,
    OSError,
    ValueError,
)


def _setup_logging(level: str = "INFO") -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=getattr(logging, level),
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )
    else:
        logging.getLogger().setLevel(getattr(logging, level))


def _read(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def _emit(text: str, output: Optional[str]) -> None:
    if not output:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")
        return
    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(text, encoding="utf-8")
    LOGGER.info("Output written to %s", output_path)


def _load_dive_log(path: str, default_tz: Optional[str]) -> DiveLog:
    dive_log = DiveLog(_read(path))
    if default_tz:
        dive_log.default_timezone = default_tz
    return dive_log


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
def _cmd_sites_gpx(args: argparse.Namespace) -> int:
    dive_log = _load_dive_log(args.divelog, args.default_tz)
    _emit(sites_to_track(dive_log), args.output)
    return 0


def _cmd_dives_gpx(args: argparse.Namespace) -> int:
    dive_log = _load_dive_log(args.divelog, args.default_tz)
    _emit(dives_to_track(dive_log, args.interval), args.output)
    return 0


def _cmd_gpx_merge(args: argparse.Namespace) -> int:
    dive_log = _load_dive_log(args.divelog, args.default_tz)
    track = TrackReader(_read(args.gpx))
    located, merged = track_to_dive_log(track, dive_log)
    LOGGER.info("Dives located: %d, waypoints merged: %d", located, merged)
    _emit(dive_log.to_xml(), args.output)
    return 0


def _cmd_gpx_depth(args: argparse.Namespace) -> int:
    dive_log = _load_dive_log(args.divelog, args.default_tz)
    track = TrackReader(_read(args.gpx))
    _emit(track_depth(track, dive_log), args.output)
    return 0


def _cmd_date_fusion(args: argparse.Namespace) -> int:
    if not args.gpx and not args.divelog:
        LOGGER.error("date-fusion needs --gpx and/or --divelog")
        return 2
    track = TrackReader(_read(args.gpx)) if args.gpx else None
    dive_log = _load_dive_log(args.divelog, args.default_tz) if args.divelog else None
    instants = parse_instants(_read(args.dates).splitlines())
    frame = build_report(fuse_dates(instants, track, dive_log))
    write_report(frame, args.output)
    return 0


def _cmd_fix_salinity(args: argparse.Namespace) -> int:
    dive_log = _load_dive_log(args.divelog, args.default_tz)
    eligible, changed = dive_log.fix_salinity(args.salinity)
    LOGGER.info("Salinity: %d of %d dive computers changed", changed, eligible)
    _emit(dive_log.to_xml(), args.output)
    return 0


def _cmd_fix_serial(args: argparse.Namespace) -> int:
    dive_log = _load_dive_log(args.divelog, args.default_tz)
    eligible, changed = dive_log.fix_serial()
    LOGGER.info("Serial: %d of %d dive computers changed", changed, eligible)
    _emit(dive_log.to_xml(), args.output)
    return 0


def _cmd_timezone(args: argparse.Namespace) -> int:
    dive_log = _load_dive_log(args.divelog, args.default_tz)
    resolver = None
    if args.geonames and GEONAMES_ENABLED:
        if args.geonames_user:
            resolver = geonames_resolver(args.geonames_user)
        else:
            LOGGER.warning("GEONAMES_USERNAME not set; located sites use %s", args.tz)
    sites, dives = dive_log.apply_timezones(args.tz, replace=args.replace, resolver=resolver)
    LOGGER.info("Timezone: %d sites and %d dives changed", sites, dives)
    _emit(dive_log.to_xml(), args.output)
    return 0


def _cmd_compact(args: argparse.Namespace) -> int:
    dive_log = _load_dive_log(args.divelog, args.default_tz)
    removed = dive_log.compact_samples()
    LOGGER.info("Compact: %d samples removed", removed)
    _emit(dive_log.to_xml(), args.output)
    return 0


_COMMANDS: Dict[str, Callable[[argparse.Namespace], int]] = {
    "sites-gpx": _cmd_sites_gpx,
    "dives-gpx": _cmd_dives_gpx,
    "gpx-merge": _cmd_gpx_merge,
    "gpx-depth": _cmd_gpx_depth,
    "date-fusion": _cmd_date_fusion,
    "fix-salinity": _cmd_fix_salinity,
    "fix-serial": _cmd_fix_serial,
    "timezone": _cmd_timezone,
    "compact": _cmd_compact,
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="subsurface_tools",
        description="Convert and repair Subsurface dive logs and GPX tracks.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--default-tz",
        default=None,
        help="Timezone for dives without a marker or located site (default: host offset)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def command(name: str, help_text: str, gpx: bool = False) -> argparse.ArgumentParser:
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("divelog", help="Subsurface XML (.ssrf) file")
        if gpx:
            cmd.add_argument("gpx", help="GPX track file")
        cmd.add_argument("-o", "--output", default=None, help="Output file (default: stdout)")
        return cmd

    command("sites-gpx", "Export located dive sites as GPX waypoints")
    dives = command("dives-gpx", "Export located dives as GPX tracks")
    dives.add_argument(
        "--interval",
        type=int,
        default=DIVE_TRACK_INTERVAL_S,
        help=f"Target seconds between track points (default: {DIVE_TRACK_INTERVAL_S})",
    )
    command("gpx-merge", "Locate dives and add sites from a GPX track", gpx=True)
    command("gpx-depth", "Lower GPX track altitudes by the dive depth", gpx=True)

    salinity = command("fix-salinity", "Add water salinity to dive computers lacking it")
    salinity.add_argument("--salinity", default=DEFAULT_SALINITY, help="Salinity value")
    command("fix-serial", "Add serial numbers from fingerprint settings")
    command("compact", "Drop redundant dive samples")

    tz = command("timezone", "Write #tz: markers into sites and unlocated dives")
    tz.add_argument("--tz", required=True, help="Fallback timezone (+HHMM, GMT or UTC)")
    tz.add_argument("--replace", action="store_true", help="Replace existing markers")
    tz.add_argument(
        "--no-geonames",
        dest="geonames",
        action="store_false",
        help="Skip the geonames.org look-up for located sites",
    )
    tz.add_argument("--geonames-user", default=GEONAMES_USERNAME, help="geonames.org account")

    fusion = sub.add_parser("date-fusion", help="Report position and dive data at given instants")
    fusion.add_argument("dates", help="File with one ISO timestamp per line")
    fusion.add_argument("--gpx", default=None, help="GPX track file")
    fusion.add_argument("--divelog", default=None, help="Subsurface XML (.ssrf) file")
    fusion.add_argument(
        "-o",
        "--output",
        default="date-fusion.csv",
        help="Report path, .xlsx for a workbook (default: date-fusion.csv)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse ``argv`` and run the selected command. Returns the exit status."""

    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.log_level)
    try:
        return _COMMANDS[args.command](args)
    except _HANDLED_ERRORS as exc:
        LOGGER.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
