"""
Command line entry point (confwatch = confwatch.cli:main): watch, check, version.
"""

import argparse
import json
import logging
import sys
import threading
from pathlib import Path
from typing import Any

import structlog

from confwatch import __version__


def configure_logging(level: str) -> None:
    """Route structlog output to stderr, dropping events below level."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper(), logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


def _settings_from_args(args: argparse.Namespace):
    """WatchSettings from --settings FILE, with PATH / flags given on the command line taking precedence."""
    from confwatch.settings import WatchSettings, load_settings

    if args.settings:
        settings = load_settings(args.settings)
        updates: dict[str, Any] = {}
        if args.path:
            updates["path"] = str(Path(args.path).absolute())
        if args.strategy is not None:
            updates["strategy"] = args.strategy
        if args.interval is not None:
            updates["interval"] = args.interval
        if args.yaml:
            updates["format"] = "yaml"
        if args.expand_env:
            updates["expand_env"] = True
        return WatchSettings.model_validate({**settings.model_dump(), **updates})
    if not args.path:
        raise SystemExit("watch: PATH is required unless --settings is given")
    return WatchSettings(
        path=args.path,
        strategy=args.strategy or "poll",
        interval=args.interval if args.interval is not None else 1.0,
        format="yaml" if args.yaml else None,
        expand_env=args.expand_env,
    )


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, sort_keys=True, default=str, ensure_ascii=False)


def cmd_watch(args: argparse.Namespace) -> int:
    """Load the file, log its value, then log every update until interrupted (or --duration elapses)."""
    from pydantic import ValidationError

    from confwatch.errors import ConfwatchError
    from confwatch.watcher import from_settings

    configure_logging(args.log_level)
    log = structlog.get_logger("confwatch.cli")
    try:
        settings = _settings_from_args(args)
    except (ConfwatchError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    def on_update(value: Any) -> None:
        log.info("config_file_updated", config=value)
        if args.print:
            print(_dump(value), flush=True)

    try:
        watcher = from_settings(settings, logger=log, on_update=on_update)
    except (ConfwatchError, ValueError) as e:
        log.error("config_load_failed", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    with watcher:
        value = watcher.read()
        log.info("config_loaded", config=value, strategy=settings.strategy)
        if args.print:
            print(_dump(value), flush=True)
        try:
            threading.Event().wait(args.duration)
        except KeyboardInterrupt:
            pass
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Decode the file once and print it as JSON."""
    from confwatch.codecs import JsonCodec, YamlCodec, codec_for_path
    from confwatch.errors import DecodeError

    path = Path(args.path)
    if args.yaml:
        codec = YamlCodec(expand_env=args.expand_env)
    elif args.json:
        codec = JsonCodec(expand_env=args.expand_env)
    else:
        codec = codec_for_path(path, expand_env=args.expand_env)
    try:
        value = codec.decode(path.read_bytes())
    except (OSError, DecodeError) as e:
        print(f"Error: {path}: {e}", file=sys.stderr)
        return 1
    print(_dump(value))
    return 0


def cmd_version(_: argparse.Namespace) -> int:
    """Print version."""
    print(__version__)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="confwatch",
        description="confwatch: watch a JSON/YAML config file and report changes (watch, check, version).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # watch
    p_watch = sub.add_parser("watch", help="Load a config file and log every change until interrupted")
    p_watch.add_argument("path", nargs="?", default=None, help="File to watch (optional with --settings)")
    p_watch.add_argument("--settings", default=None, help="YAML watch settings (path, strategy, interval, format, expand_env)")
    p_watch.add_argument("--strategy", choices=["poll", "event"], default=None, help="Change detection (default: poll)")
    p_watch.add_argument("--interval", type=float, default=None, help="Poll interval in seconds (default: 1.0)")
    p_watch.add_argument("--yaml", action="store_true", help="Decode as YAML regardless of suffix")
    p_watch.add_argument("--expand-env", action="store_true", help="Substitute ${VAR} in string values")
    p_watch.add_argument("--print", action="store_true", help="Also print each value as JSON on stdout")
    p_watch.add_argument("--duration", type=float, default=None, help="Stop after this many seconds (default: run until Ctrl-C)")
    p_watch.add_argument("--log-level", default="info", help="debug, info, warning, error (default: info)")
    p_watch.set_defaults(func=cmd_watch)

    # check
    p_check = sub.add_parser("check", help="Decode a config file once and print it as JSON")
    p_check.add_argument("path", help="File to decode")
    fmt = p_check.add_mutually_exclusive_group()
    fmt.add_argument("--yaml", action="store_true", help="Decode as YAML")
    fmt.add_argument("--json", action="store_true", help="Decode as JSON")
    p_check.add_argument("--expand-env", action="store_true", help="Substitute ${VAR} in string values")
    p_check.set_defaults(func=cmd_check)

    # version
    p_version = sub.add_parser("version", help="Print version")
    p_version.set_defaults(func=cmd_version)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
