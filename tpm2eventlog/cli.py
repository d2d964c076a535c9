#!/usr/bin/env python3

import argparse
import json
import logging
import sys

from .errors import EventLogError
from .eventlog import EventLog
from .render import yaml_eventlog

logger = logging.getLogger(__name__)


def logging_level(string):
    """Convert a string to a logging level"""
    if string.isnumeric():
        return int(string)
    level = getattr(logging, string.upper(), None)
    if not isinstance(level, int):
        raise argparse.ArgumentTypeError("invalid log level {}".format(string))
    return level


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tpm2-eventlog",
        description="Dump a binary TCG event log and the PCR values it implies",
    )
    parser.add_argument("-f", "--file", required=True, help="binary event log file")
    parser.add_argument(
        "-o", "--output", help="write the document to this file instead of stdout"
    )
    parser.add_argument(
        "--json", action="store_true", help="emit JSON instead of the YAML stream"
    )
    parser.add_argument(
        "-l",
        "--level",
        type=logging_level,
        default=logging.WARNING,
        help="set logging level",
    )
    return parser


def _dump(buffer: bytes, as_json: bool, out) -> None:
    if as_json:
        evlog = EventLog(buffer)
        out.write(json.dumps(evlog.to_json(), default=lambda o: o.to_json(), indent=4))
        out.write("\n")
    else:
        yaml_eventlog(buffer, out)


def main(argv=None) -> int:
    """Program entry point"""
    args = _parser().parse_args(argv)
    logging.basicConfig(format="[%(levelname)s] %(name)s: %(message)s", level=args.level)

    try:
        with open(args.file, "rb") as fp:
            buffer = fp.read()
    except OSError as e:
        print(f"error: cannot read {args.file}: {e.strerror}", file=sys.stderr)
        return 1
    logger.debug("read %d bytes from %s", len(buffer), args.file)

    try:
        if args.output:
            with open(args.output, "w", encoding="utf-8") as out:
                _dump(buffer, args.json, out)
        else:
            _dump(buffer, args.json, sys.stdout)
    except EventLogError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"error: cannot write {args.output}: {e.strerror}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
