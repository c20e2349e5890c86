#!/usr/bin/env python3
"""
openfalcon command line

Runs datasource queries from a shell, printing JSON:

    openfalcon -c openfalcon.yaml query 'cpu.load' '#A.max' --from now-1h
    openfalcon find 'cpu.*'
"""

import argparse
import json
import logging
import sys

import yaml

from .config import load_config
from .datasource import OpenFalconDatasource
from .exceptions import OpenFalconError
from .templating import TemplateVariables


def parse_variables(pairs):
    variables = {}
    for pair in pairs or []:
        name, sep, value = pair.partition("=")
        if not sep:
            raise argparse.ArgumentTypeError(f"variable must be NAME=VALUE, got {pair!r}")
        variables[name] = value.split(",") if "," in value else value
    return variables


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="openfalcon", description="OpenFalcon datasource queries")
    parser.add_argument("-c", "--config", help="Path to YAML config (default: env / ./openfalcon.yaml)")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    parser.add_argument("--var", action="append", metavar="NAME=VALUE", help="Template variable (repeatable)")

    sub = parser.add_subparsers(dest="command", required=True)

    query = sub.add_parser("query", help="Run a render query")
    query.add_argument("targets", nargs="+", help="Target expressions, lettered A, B, ... in order")
    query.add_argument("--from", dest="from_", default="now-1h", help="Range start (default: now-1h)")
    query.add_argument("--until", default="now", help="Range end (default: now)")
    query.add_argument("--format", default=None, help="'png' prints the render URL instead")
    query.add_argument("--max-data-points", type=int, default=None)
    query.add_argument("--hide", action="append", default=[], metavar="LETTER",
                       help="Hide a target from output; it can still be referenced")

    find = sub.add_parser("find", help="Find metrics")
    find.add_argument("query", nargs="?", default="")

    return parser


def main(argv=None) -> int:
    """Main entry point for the openfalcon command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        variables = TemplateVariables(parse_variables(args.var))
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    try:
        config = load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"error: cannot load configuration: {e}", file=sys.stderr)
        return 1

    datasource = OpenFalconDatasource(config, variables=variables)

    try:
        if args.command == "query":
            hidden = {letter.upper() for letter in args.hide}
            targets = [
                {"target": expr, "hide": chr(ord("A") + i) in hidden}
                for i, expr in enumerate(args.targets)
            ]
            result = datasource.query({
                "range": {"from": args.from_, "to": args.until},
                "targets": targets,
                "format": args.format,
                "maxDataPoints": args.max_data_points,
            })
        else:
            result = datasource.metric_find_query(args.query)
    except OpenFalconError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if isinstance(result, str):
        print(result)
    else:
        print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
