import argparse
from pathlib import Path

from . import __version__
from .aggregate import format_counts, format_stats
from .env import LOG_LEVELS, Settings, load_env, load_settings
from .errors import ON_ERROR_CHOICES, ParseError
from .logger import StructuredLogger, get_logger
from .pipeline import CachedRecords, first, read_lines, run, take
from .schema import validate_header

HISTOGRAM_FIELDS = {
    "matched": lambda md: md.matched,
    "group": lambda md: md.group,
}


def _settings(args: argparse.Namespace) -> Settings:
    base = load_settings()
    return Settings(
        input=Path(args.input) if args.input else base.input,
        workers=args.workers if args.workers is not None else base.workers,
        shard_size=args.shard_size if args.shard_size is not None else base.shard_size,
        on_error=args.on_error or base.on_error,
        log_level=args.log_level or base.log_level,
        log_dir=base.log_dir,
    )


def _logger(settings: Settings) -> StructuredLogger:
    return get_logger(level=settings.log_level, log_dir=settings.log_dir)


def _require_input(path: Path) -> None:
    if not path.exists():
        raise SystemExit(f"Input file not found: {path}")


def _value_label(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def cmd_head(args: argparse.Namespace) -> None:
    settings = _settings(args)
    _require_input(settings.input)
    for line in take(read_lines(settings.input), args.n):
        print(line)


def cmd_count(args: argparse.Namespace) -> None:
    settings = _settings(args)
    _require_input(settings.input)
    logger = _logger(settings)
    try:
        result = run(
            read_lines(settings.input),
            workers=settings.workers,
            shard_size=settings.shard_size,
            on_error=settings.on_error,
            logger=logger,
        )
    except ParseError as e:
        raise SystemExit(f"Parse failed: {e}")
    for line in format_counts(result.counts):
        print(line)
    logger.log_metrics_summary()


def cmd_histogram(args: argparse.Namespace) -> None:
    settings = _settings(args)
    _require_input(settings.input)
    cached = CachedRecords.from_file(
        settings.input,
        workers=settings.workers,
        shard_size=settings.shard_size,
        on_error=settings.on_error,
        logger=_logger(settings),
    )
    try:
        pairs = cached.histogram(key=HISTOGRAM_FIELDS[args.field])
    except ParseError as e:
        raise SystemExit(f"Parse failed: {e}")
    for value, count in pairs:
        print(f"{_value_label(value)} -> {count}")


def cmd_stats(args: argparse.Namespace) -> None:
    settings = _settings(args)
    _require_input(settings.input)
    try:
        result = run(
            read_lines(settings.input),
            workers=settings.workers,
            shard_size=settings.shard_size,
            on_error=settings.on_error,
            logger=_logger(settings),
        )
    except ParseError as e:
        raise SystemExit(f"Parse failed: {e}")
    for line in format_stats(result.stats):
        print(line)


def cmd_validate(args: argparse.Namespace) -> None:
    settings = _settings(args)
    _require_input(settings.input)
    header = first(read_lines(settings.input))
    errors = validate_header(header) if header is not None else ["File is empty"]
    result = run(
        read_lines(settings.input),
        workers=settings.workers,
        shard_size=settings.shard_size,
        on_error="skip",
        logger=_logger(settings),
    )
    errors.extend(str(f.error) for f in result.failures)
    if errors:
        print("Invalid:")
        for e in errors:
            print(f" - {e}")
        raise SystemExit(2)
    print(f"Valid ({result.total} records)")


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--input", help="Path to linkage CSV (default: $LINKAGE_INPUT or raw_data/linkage.csv)")
    p.add_argument("--workers", type=int, help="Worker threads for the parse map (default: $LINKAGE_WORKERS or 1)")
    p.add_argument("--shard-size", type=int, help="Lines per shard (default: $LINKAGE_SHARD_SIZE or 10000)")
    p.add_argument("--on-error", choices=ON_ERROR_CHOICES, help="raise on the first bad line or skip and log it")
    p.add_argument("--log-level", choices=LOG_LEVELS, help="Log level (default: $LINKAGE_LOG_LEVEL or INFO)")


def main(argv=None):
    # Load .env if present (LINKAGE_INPUT, LINKAGE_WORKERS, etc.)
    load_env()
    parser = argparse.ArgumentParser(prog="linkage", description="Record linkage exploration CLI")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    hd = subparsers.add_parser("head", help="Print the first lines of the raw file, header included")
    _add_common(hd)
    hd.add_argument("--n", type=int, default=10, help="Number of lines (default 10)")
    hd.set_defaults(func=cmd_head)

    cnt = subparsers.add_parser("count", help="Count matched and unmatched record pairs")
    _add_common(cnt)
    cnt.set_defaults(func=cmd_count)

    hst = subparsers.add_parser("histogram", help="Count records by value, most frequent first")
    _add_common(hst)
    hst.add_argument("--field", choices=sorted(HISTOGRAM_FIELDS), default="matched", help="Field to count by")
    hst.set_defaults(func=cmd_histogram)

    sts = subparsers.add_parser("stats", help="Summary statistics for each score column, ignoring missing values")
    _add_common(sts)
    sts.set_defaults(func=cmd_stats)

    val = subparsers.add_parser("validate", help="Check the header and every data line")
    _add_common(val)
    val.set_defaults(func=cmd_validate)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        try:
            args.func(args)
        except ValueError as e:
            # Bad LINKAGE_* settings or shard size
            raise SystemExit(str(e))
        return

    parser.print_help()


if __name__ == "__main__":
    main()
