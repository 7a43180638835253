"""
Command line entry point for VOC Records.
"""

from __future__ import annotations
import argparse
import platform
import sys
from pathlib import Path
from typing import List, Optional

from .core.errors import VocRecordsError
from .services import ConfigService, LoggingService, PrepareService


def prepare(args: argparse.Namespace) -> int:
    logger = LoggingService(verbose=args.verbose, log_file=args.log_file)
    logger.debug("System info", platform=platform.platform(),
                 python_version=platform.python_version())

    try:
        config = ConfigService(logger).load(args.config, overrides={
            "input_dirs": args.input,
            "output_dir": args.output,
            "test_ratio": args.retain,
            "seed": args.seed,
            "label_policy": args.label_policy,
            "record_extension": args.ext,
            "workers": args.workers,
            "write_report": False if args.no_report else None,
            "run_log": False if args.no_run_log else None,
        })
    except VocRecordsError as e:
        logger.error(f"Invalid configuration: {e.message}", exception=e)
        return 1
    try:
        report = PrepareService(logger).run(config)
    except VocRecordsError:
        # already logged by the service
        return 1

    print(report.summary())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voc-records",
        description="Convert PASCAL-VOC datasets into record files for object detection training",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    prepare_parser = subparsers.add_parser(
        "prepare",
        help="Generate the label map and two record files: a training set and a test set",
    )
    prepare_parser.add_argument(
        "-i",
        "--input",
        type=Path,
        action="append",
        help="Input directory, searched recursively. Can be given several times",
    )
    prepare_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output directory for the record files and the label map",
    )
    prepare_parser.add_argument(
        "--retain",
        default=None,
        help="Share of the data placed in the test set, e.g. 20%%, 0.2 or 20/100 (default 20%%)",
    )
    prepare_parser.add_argument("--seed", type=int, default=None, help="Shuffle seed (default 42)")
    prepare_parser.add_argument(
        "--label-policy",
        choices=["sorted", "first_seen"],
        default=None,
        help="Label id numbering (default sorted)",
    )
    prepare_parser.add_argument("--ext", default=None, help="Record file extension (default records)")
    prepare_parser.add_argument("--workers", type=int, default=None, help="Annotation parsing threads")
    prepare_parser.add_argument("--config", type=Path, default=None, help="YAML or JSON config file")
    prepare_parser.add_argument("--log-file", type=Path, default=None, help="Also append the log to this file")
    prepare_parser.add_argument("--no-run-log", action="store_true", help="Skip logs/prepare.log in the output directory")
    prepare_parser.add_argument("--no-report", action="store_true", help="Skip reports/prepare_report.json")
    prepare_parser.add_argument("-v", "--verbose", action="store_true")
    prepare_parser.set_defaults(func=prepare)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
