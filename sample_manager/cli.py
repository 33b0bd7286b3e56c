#!/usr/bin/env python3
"""
Sample Manager - command line entry point.

    sample-manager analyze kick.wav hat.wav [--json] [--force]
    sample-manager analyze loops/*.wav --no-cache --workers 4
    sample-manager cache stats
    sample-manager cache list
    sample-manager cache cleanup
    sample-manager cache clear
    sample-manager cache put kick-01 kick.wav
    sample-manager cache get kick-01 -o out.wav

Configuration comes from the environment (and a .env file in the working
directory); see sample_manager.core.config.settings.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from sample_manager import __version__
from sample_manager.common.logging import setup_logging, get_logger
from sample_manager.core.adapters import AudioLoader
from sample_manager.core.config import (
    CacheBackend,
    Settings,
    create_byte_store,
    create_sample_cache,
    get_settings,
)
from sample_manager.core.errors import ConfigurationError, SampleManagerError
from sample_manager.modules.analysis import AnalysisConfig, FeatureExtractionPipeline, BatchProcessor
from sample_manager.modules.analysis.pipelines import summarize
from sample_manager.modules.analysis.services import SampleAnalysisService

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sample-manager",
        description="Audio sample feature extraction and content cache",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", help="Override LOG_LEVEL")
    parser.add_argument("--log-file", help="Also write JSON logs to this file")
    parser.add_argument("--json-logs", action="store_true", default=None,
                        help="JSON formatted console logs")
    parser.add_argument("--backend", choices=[b.value for b in CacheBackend],
                        help="Override CACHE_BACKEND")
    parser.add_argument("--db-path", help="Override CACHE_DB_PATH")

    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Extract features from audio files")
    analyze.add_argument("files", nargs="+", type=Path)
    analyze.add_argument("--json", action="store_true", help="Print descriptors as JSON")
    analyze.add_argument("--force", action="store_true", help="Ignore cached descriptors")
    analyze.add_argument("--no-cache", action="store_true",
                         help="Analyse without touching the cache")
    analyze.add_argument("--workers", type=int, help="Threads for --no-cache batches")

    cache = sub.add_parser("cache", help="Inspect and maintain the sample cache")
    cache_sub = cache.add_subparsers(dest="cache_command", required=True)

    stats = cache_sub.add_parser("stats", help="Size, entry count, utilization")
    stats.add_argument("--json", action="store_true")
    cache_sub.add_parser("list", help="Entries, least recently used first")
    cache_sub.add_parser("cleanup", help="Drop expired entries, then enforce the size budget")
    cache_sub.add_parser("clear", help="Remove every entry")

    put = cache_sub.add_parser("put", help="Store a file under an id")
    put.add_argument("sample_id")
    put.add_argument("file", type=Path)
    put.add_argument("--mime-type", help="Defaults to a guess from the extension")

    get = cache_sub.add_parser("get", help="Fetch an entry")
    get.add_argument("sample_id")
    get.add_argument("-o", "--output", type=Path, help="Write bytes here (default: stdout)")

    return parser


def _open_cache(args: argparse.Namespace, settings: Settings):
    backend = CacheBackend(args.backend) if args.backend else settings.cache_backend
    store = create_byte_store(backend, db_path=args.db_path or settings.cache_db_path)
    return create_sample_cache(store=store, settings=settings)


def _print_descriptor(name: str, descriptor, from_cache: bool = False) -> None:
    suffix = " (cached)" if from_cache else ""
    print(f"{name}{suffix}")
    for line in summarize(descriptor):
        print(f"  {line}")


def cmd_analyze(args: argparse.Namespace, settings: Settings) -> int:
    config = AnalysisConfig.from_settings(settings)
    pipeline = FeatureExtractionPipeline(config)
    loader = AudioLoader(sample_rate=settings.sample_rate)
    failures = 0
    report = []

    if args.no_cache:
        items = []
        for path in args.files:
            try:
                items.append((str(path), loader.load(path)))
            except (SampleManagerError, FileNotFoundError) as e:
                failures += 1
                report.append({"file": str(path), "error": str(e)})
                print(f"{path}: {e}", file=sys.stderr)
        processor = BatchProcessor(
            pipeline,
            workers=args.workers or settings.workers,
            show_progress=len(items) > 1 and not args.json,
        )
        batch = processor.process(items)
        for item in batch.results:
            if item.success:
                report.append({"file": item.sample_id, "descriptor": item.descriptor.to_dict()})
                if not args.json:
                    _print_descriptor(item.sample_id, item.descriptor)
            else:
                failures += 1
                report.append({"file": item.sample_id, "error": item.error})
                print(f"{item.sample_id}: {item.error}", file=sys.stderr)
    else:
        service = SampleAnalysisService(_open_cache(args, settings), pipeline=pipeline, loader=loader)
        for path in args.files:
            try:
                outcome = service.analyze_file(path, force=args.force)
            except (SampleManagerError, FileNotFoundError) as e:
                failures += 1
                report.append({"file": str(path), "error": str(e)})
                print(f"{path}: {e}", file=sys.stderr)
                continue
            report.append({"file": str(path), **outcome.to_dict()})
            if not args.json:
                _print_descriptor(str(path), outcome.descriptor, outcome.from_cache)

    if args.json:
        print(json.dumps(report, indent=2))
    return EXIT_FAILURE if failures else EXIT_OK


def cmd_cache(args: argparse.Namespace, settings: Settings) -> int:
    cache = _open_cache(args, settings)
    command = args.cache_command

    if command == "stats":
        stats = cache.stats()
        if args.json:
            print(json.dumps(stats.to_dict(), indent=2))
        else:
            print(f"entries:     {stats.entry_count}")
            print(f"total size:  {stats.total_size_mb:.2f} MB")
            print(f"budget:      {stats.budget / (1024 * 1024):.2f} MB")
            print(f"utilization: {stats.utilization_percent:.2f}%")
        return EXIT_OK

    if command == "list":
        for entry in cache.entries():
            print(f"{entry.id}\t{entry.size_bytes}\t{entry.mime_type}\t{entry.last_accessed_at:.0f}")
        return EXIT_OK

    if command == "cleanup":
        removed = cache.cleanup()
        print(f"removed {len(removed)} entries")
        return EXIT_OK

    if command == "clear":
        cache.clear()
        print("cache cleared")
        return EXIT_OK

    if command == "put":
        if not args.file.exists():
            print(f"{args.file}: not found", file=sys.stderr)
            return EXIT_FAILURE
        mime_type = args.mime_type or AudioLoader.mime_type_for(args.file)
        result = cache.put(args.sample_id, args.file.read_bytes(), mime_type)
        print(f"stored {args.sample_id} ({result.entry.size_bytes} bytes)")
        for evicted in result.evicted:
            print(f"evicted {evicted}")
        return EXIT_OK

    if command == "get":
        data = cache.get(args.sample_id)
        if data is None:
            print(f"{args.sample_id}: not cached", file=sys.stderr)
            return EXIT_FAILURE
        if args.output:
            args.output.write_bytes(data)
        else:
            sys.stdout.buffer.write(data)
            sys.stdout.buffer.flush()
        return EXIT_OK

    raise ValueError(f"Unknown cache command: {command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    load_dotenv(Path.cwd() / ".env")
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
        # None defers to LOG_LEVEL / LOG_JSON_FORMAT, then logging-config.yaml
        setup_logging(
            level=args.log_level,
            log_file=args.log_file,
            json_format=args.json_logs,
        )
        if args.command == "analyze":
            return cmd_analyze(args, settings)
        return cmd_cache(args, settings)
    except ConfigurationError as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except SampleManagerError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
