import argparse
import logging

from timespan import datetimes, patterns
from timespan.errors import TimespanError


def _duration(args):
    return patterns.reformat(
        args.value,
        args.in_patterns or None,
        args.out_pattern,
        args.instant,
    )


def _datetime(args):
    return datetimes.format(
        args.value,
        args.in_patterns or None,
        args.out_pattern,
        args.zone,
        args.to_zone,
    )


def entrance(argv=None):
    timespan_argparse = argparse.ArgumentParser(
        description="timespan duration and datetime converter."
    )
    timespan_argparse.add_argument(
        "--verbose",
        "-v",
        help="Log each pattern attempted",
        action="store_true",
    )
    commands = timespan_argparse.add_subparsers(dest="command")

    duration = commands.add_parser("duration", help="Convert a duration between patterns")
    duration.add_argument("value", type=str)
    duration.add_argument(
        "--from",
        dest="in_patterns",
        action="append",
        help='Pattern the value is in, e.g. "xml" or "milliseconds". Repeat to try several in order',
    )
    duration.add_argument("--to", dest="out_pattern", help="Pattern to render the duration in")
    duration.add_argument(
        "--instant",
        help="ISO-8601 datetime anchoring years and months (defaults to now)",
    )
    duration.set_defaults(handler=_duration)

    instant = commands.add_parser("datetime", help="Convert a datetime between patterns and zones")
    instant.add_argument("value", type=str)
    instant.add_argument(
        "--from",
        dest="in_patterns",
        action="append",
        help='Pattern the value is in, e.g. "datetime.jdbc" or "%%d/%%m/%%Y". Repeat to try several in order',
    )
    instant.add_argument("--to", dest="out_pattern", help="Pattern to render the datetime in")
    instant.add_argument("--zone", help="Zone the value's wall clock is read in")
    instant.add_argument("--to-zone", dest="to_zone", help="Zone the datetime is converted to")
    instant.set_defaults(handler=_datetime)

    args = timespan_argparse.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if not args.command:
        timespan_argparse.error(
            "timespan: You need to specify the command (i.e.: duration or datetime)"
        )

    try:
        result = args.handler(args)
    except TimespanError as error:
        timespan_argparse.error("timespan %s: %s" % (args.command, error))

    logging.info(f"timespan {args.command}: {args.value!r} converted to {result!r}")
    print(result)
    return result
