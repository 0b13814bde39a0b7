"""Command line entry point: hash a directory with a progress bar."""

import argparse
import asyncio
import json
import sys
from contextlib import aclosing
from pathlib import Path

from pydantic import ValidationError
from tqdm import tqdm

from progress_hasher.config.settings import Settings, load_settings_file
from progress_hasher.core.enumerator import SymlinkPolicy
from progress_hasher.core.pipeline import progressed_hashing, with_deadline
from progress_hasher.core.status import Error, Progress, Result, Started
from progress_hasher.utils.logger import get_logger

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="progress-hasher",
        description="Hash every file under a directory, showing progress",
    )
    parser.add_argument("root", type=Path, help="Directory to hash")
    parser.add_argument("--max-concurrency", type=int, help="Files read at the same time")
    parser.add_argument("--algorithm", dest="hash_algorithm", help="hashlib algorithm (default: sha256)")
    parser.add_argument(
        "--follow-symlinks",
        action="store_true",
        help="Follow symbolic links (cycles are walked once)",
    )
    parser.add_argument("--max-file-size", type=int, help="Abort if a file exceeds this many bytes")
    parser.add_argument("--timeout", type=float, help="Give up after this many seconds")
    parser.add_argument("--relative", action="store_true", help="Print paths relative to root")
    parser.add_argument("--json", action="store_true", help="Print a JSON object instead of lines")
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar")
    parser.add_argument(
        "--events",
        action="store_true",
        help="Print every event as a JSON line instead of the final listing",
    )
    parser.add_argument("--config", type=Path, help="YAML settings file")
    parser.add_argument("--log-file", type=Path, help="Append JSONL logs to this file")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Merge the optional YAML file, environment and command line flags."""
    overrides = {
        "max_concurrency": args.max_concurrency,
        "hash_algorithm": args.hash_algorithm,
        "symlink_policy": SymlinkPolicy.FOLLOW if args.follow_symlinks else None,
        "max_file_size": args.max_file_size,
        "log_file": args.log_file,
    }
    if args.config:
        return load_settings_file(args.config, **overrides)
    return Settings(**{key: value for key, value in overrides.items() if value is not None})


def format_hashes(hashes: dict[Path, str], root: Path, relative: bool, as_json: bool) -> str:
    """Render the final mapping, sorted by path."""
    base = root.absolute()
    rows = []
    for path in sorted(hashes):
        shown = path.relative_to(base) if relative else path
        rows.append((shown.as_posix(), hashes[path]))

    if as_json:
        return json.dumps(dict(rows), indent=2)
    return "\n".join(f"{digest}  {path}" for path, digest in rows)


async def run(args: argparse.Namespace, settings: Settings) -> int:
    """Consume the event stream, drive the progress bar and print results."""
    events = progressed_hashing(args.root, settings=settings)
    if args.timeout is not None:
        events = with_deadline(events, args.timeout)

    bar = None
    try:
        async with aclosing(events):
            async for event in events:
                if args.events:
                    print(json.dumps(event.to_dict()), flush=True)
                    if event.is_terminal:
                        return EXIT_OK if isinstance(event, Result) else EXIT_ERROR
                elif isinstance(event, Started):
                    bar = tqdm(total=event.total_files, desc="Hashing", unit="file", disable=args.no_progress)
                elif isinstance(event, Progress):
                    bar.update(1)
                    bar.set_postfix_str(event.current_file.name, refresh=False)
                elif isinstance(event, Result):
                    if bar is not None:
                        bar.close()
                    output = format_hashes(event.hashes, args.root, args.relative, args.json)
                    if output:
                        print(output)
                    return EXIT_OK
                elif isinstance(event, Error):
                    if bar is not None:
                        bar.close()
                    print(f"error: {event.cause}", file=sys.stderr)
                    return EXIT_ERROR
    finally:
        if bar is not None:
            bar.close()

    return EXIT_ERROR


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args)
    except (ValidationError, ValueError, OSError) as e:
        print(f"error: invalid configuration: {e}", file=sys.stderr)
        return EXIT_USAGE

    get_logger("progress_hasher", settings.log_file, settings.log_level)

    try:
        return asyncio.run(run(args, settings))
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
