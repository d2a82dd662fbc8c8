from __future__ import annotations
import argparse
import logging
from typing import Any, Dict, List
from bbunify.batch import run_batch
from bbunify.core.reference import load_reference_set
from bbunify.io import load_config, build_options
from bbunify.io.trace_io import save_json
from bbunify.reporting import format_text_report, build_json_report
from bbunify import __version__

logger = logging.getLogger("bbunify")

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bbunify",
        description="Drop trace entries outside a set of valid basic blocks and renumber the rest.",
    )
    parser.add_argument("valid_bb_file", help="File listing valid basic-block addresses, one hex value per line")
    parser.add_argument("traces", nargs="+", help="Trace files, or directories of trace files, to unify")
    parser.add_argument("-o", "--output", dest="output_dir", default=None, help="Output directory (default: next to each input; .unified/.stripped files found in input directories are skipped)")
    parser.add_argument("-v", "--verbose", action="store_true", default=None, help="Report dropped entries per file")
    parser.add_argument("--strip", action="store_true", default=None, help="Omit identifiers and write .stripped files")
    parser.add_argument("-j", "--jobs", type=int, default=None, help="Number of worker processes (default: CPU count)")
    parser.add_argument("--check-ids", dest="check_ids", action="store_true", default=None,
                        help="Fail a file whose identifiers are not exactly 0, 1, 2, ...")
    parser.add_argument("--config", default=None, help="Path to configuration file (JSON/YAML)")
    parser.add_argument("--report", default=None, help="Path to write the JSON run report")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser

def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    cfg: Dict[str, Any] = {}
    try:
        if args.config:
            cfg = load_config(args.config)
        options = build_options(
            cfg,
            output_dir=args.output_dir,
            strip=args.strip,
            verbose=args.verbose,
            jobs=args.jobs,
            check_ids=args.check_ids,
        )
    except (OSError, ValueError) as e:
        parser.error(str(e))

    logging.basicConfig(
        level=logging.INFO if options.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        reference = load_reference_set(args.valid_bb_file)
    except OSError as e:
        logger.error("cannot read valid block file: %s", e)
        return 1

    try:
        result = run_batch(reference, args.traces, options)
    except OSError as e:
        logger.error("cannot create output directory: %s", e)
        return 1

    if args.report:
        try:
            save_json(args.report, build_json_report(result, reference_size=len(reference)))
        except OSError as e:
            logger.error("cannot write report: %s", e)
            return 1
    elif options.verbose:
        print(format_text_report(result, reference_size=len(reference)))

    if not result.ok:
        logger.error("%d of %d files failed", len(result.failed), len(result.outcomes))
    return result.exit_code

if __name__ == "__main__":
    raise SystemExit(main())
