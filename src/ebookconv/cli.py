from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from ebookconv import __version__
from ebookconv.config import EbookConvConfig, load_config
from ebookconv.dispatch import convert, format_for_path, supported_conversions
from ebookconv.errors import EbookConvConfigError, EbookConvError, UnsupportedConversionError
from ebookconv.metadata import Metadata
from ebookconv.progress import ConversionProgress

EXIT_OK = 0
EXIT_CONFIG_OR_USAGE = 2
EXIT_CONVERSION_ERROR = 3

STDIN_MARKER = "-"


def _add_common_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to ebookconv.toml (defaults to searching upward from cwd).",
    )
    p.add_argument(
        "--to",
        dest="target_format",
        type=str,
        default=None,
        help="Target format: json or html (defaults to convert.to, then html).",
    )
    p.add_argument("--title", type=str, default=None, help="Document title.")
    p.add_argument("--author", type=str, default=None, help="Document author.")
    p.add_argument("--language", type=str, default=None, help="Document language tag.")
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print a machine-readable JSON result to stdout.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ebookconv")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    convert_p = subparsers.add_parser("convert", help="Convert text/markdown files.")
    _add_common_flags(convert_p)
    convert_p.add_argument("inputs", nargs="+", help="Input files, or - for stdin.")
    convert_p.add_argument(
        "--from",
        dest="source_format",
        type=str,
        default=None,
        help="Source format: txt, md or markdown (defaults to the input suffix).",
    )
    convert_p.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Output file (only with a single input).",
    )
    convert_p.add_argument("--stdout", action="store_true", help="Write results to stdout.")
    convert_p.add_argument("--no-progress", action="store_true", help="Disable the progress bar.")

    subparsers.add_parser("formats", help="List supported conversions.")

    watch_p = subparsers.add_parser("watch", help="Re-convert files when they change.")
    _add_common_flags(watch_p)
    watch_p.add_argument(
        "paths",
        nargs="*",
        help="Directories to watch (defaults to watch.paths from the config).",
    )

    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _is_json_mode(args: argparse.Namespace) -> bool:
    return bool(getattr(args, "json_output", False))


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.DEBUG if getattr(args, "verbose", False) else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _print_error(e: BaseException) -> None:
    msg = (str(e) or repr(e)).strip()
    _eprint(f"error: {msg}")


def _emit_json(payload: dict[str, object]) -> None:
    print(json.dumps(payload, ensure_ascii=False))


def _load_config(args: argparse.Namespace) -> EbookConvConfig:
    config_path = Path(args.config).resolve() if getattr(args, "config", None) else None
    return load_config(config_path=config_path)


def _target_format(args: argparse.Namespace, cfg: EbookConvConfig) -> str:
    return (args.target_format or cfg.convert.to).lower()


def _metadata_for(args: argparse.Namespace, cfg: EbookConvConfig, stem: str | None) -> Metadata:
    # Per field: CLI flag, then config, then the input file name (title only).
    flags = Metadata(title=args.title, author=args.author, language=args.language)
    merged = flags.merged_over(cfg.metadata)
    if stem:
        merged = merged.merged_over(Metadata(title=stem))
    return merged


def _output_path(
    input_path: Path,
    *,
    target_format: str,
    cfg: EbookConvConfig,
    explicit: str | None,
) -> Path:
    if explicit:
        return Path(explicit)
    name = f"{input_path.stem}.{target_format}"
    if cfg.convert.output_dir:
        out_dir = Path(cfg.convert.output_dir)
        if not out_dir.is_absolute():
            out_dir = cfg.root / out_dir
        return out_dir / name
    return input_path.with_name(name)


def convert_path(
    input_path: Path,
    *,
    source_format: str | None,
    target_format: str,
    metadata: Metadata,
) -> str:
    """Read one input file and return the converted document."""

    fmt = source_format or format_for_path(input_path)
    if fmt is None:
        raise UnsupportedConversionError(input_path.suffix or input_path.name, target_format)
    content = input_path.read_text(encoding="utf-8-sig")
    return convert(content, fmt, target_format, metadata)


def _write_output(out_path: Path, document: str) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(document, encoding="utf-8")


def _convert_stdin(args: argparse.Namespace, cfg: EbookConvConfig) -> int:
    if not args.source_format:
        _eprint("error: --from is required when reading from stdin.")
        return EXIT_CONFIG_OR_USAGE
    target = _target_format(args, cfg)
    try:
        document = convert(
            sys.stdin.read(), args.source_format, target, _metadata_for(args, cfg, None)
        )
    except EbookConvError as e:
        if _is_json_mode(args):
            _emit_json({"command": "convert", "ok": False, "error": str(e)})
        else:
            _print_error(e)
        return EXIT_CONVERSION_ERROR
    sys.stdout.write(document)
    return EXIT_OK


def cmd_convert(args: argparse.Namespace) -> int:
    try:
        cfg = _load_config(args)
    except EbookConvConfigError as e:
        _print_error(e)
        return EXIT_CONFIG_OR_USAGE

    if args.inputs == [STDIN_MARKER]:
        return _convert_stdin(args, cfg)
    if STDIN_MARKER in args.inputs:
        _eprint("error: - (stdin) cannot be combined with other inputs.")
        return EXIT_CONFIG_OR_USAGE
    if args.output and len(args.inputs) > 1:
        _eprint("error: --output can only be used with a single input.")
        return EXIT_CONFIG_OR_USAGE

    target = _target_format(args, cfg)
    inputs = [Path(p) for p in args.inputs]

    progress = None
    if len(inputs) > 1 and (not bool(args.no_progress)) and sys.stderr.isatty():
        progress = ConversionProgress(total=len(inputs), stream=sys.stderr)

    written: list[str] = []
    errors: list[dict[str, str]] = []
    for input_path in inputs:
        try:
            document = convert_path(
                input_path,
                source_format=args.source_format,
                target_format=target,
                metadata=_metadata_for(args, cfg, input_path.stem),
            )
            if args.stdout:
                sys.stdout.write(document)
            else:
                out_path = _output_path(
                    input_path, target_format=target, cfg=cfg, explicit=args.output
                )
                _write_output(out_path, document)
                written.append(str(out_path))
        except (EbookConvError, OSError, UnicodeDecodeError) as e:
            errors.append({"path": str(input_path), "error": str(e) or type(e).__name__})
            if not _is_json_mode(args):
                _print_error(e)
            if progress is not None:
                progress.record(str(input_path), ok=False)
            continue
        if progress is not None:
            progress.record(str(input_path), ok=True)

    if progress is not None:
        progress.close()

    if _is_json_mode(args):
        _emit_json({"command": "convert", "ok": not errors, "written": written, "errors": errors})
    return EXIT_CONVERSION_ERROR if errors else EXIT_OK


def cmd_formats(args: argparse.Namespace) -> int:
    for pair in supported_conversions():
        print(pair)
    return EXIT_OK


def cmd_watch(args: argparse.Namespace) -> int:
    from ebookconv import watcher

    try:
        cfg = _load_config(args)
        watcher.check_watchfiles_available()
    except (EbookConvConfigError, ImportError) as e:
        _print_error(e)
        return EXIT_CONFIG_OR_USAGE

    target = _target_format(args, cfg)
    if args.paths:
        roots = [Path(p).resolve() for p in args.paths]
    else:
        roots = [(cfg.root / p).resolve() for p in cfg.watch.paths]
    missing = [str(r) for r in roots if not r.is_dir()]
    if missing:
        _eprint(f"error: watch path is not a directory: {', '.join(missing)}")
        return EXIT_CONFIG_OR_USAGE

    def convert_file(path: Path) -> Path:
        document = convert_path(
            path,
            source_format=None,
            target_format=target,
            metadata=_metadata_for(args, cfg, path.stem),
        )
        out_path = _output_path(path, target_format=target, cfg=cfg, explicit=None)
        _write_output(out_path, document)
        return out_path

    def on_cycle_result(result: watcher.WatchCycleResult) -> None:
        if _is_json_mode(args):
            _emit_json(watcher.format_watch_cycle_json(result))
            return
        for path, msg in result.errors:
            _eprint(f"warn: {path}: {msg}")

    def on_event(msg: str) -> None:
        if not _is_json_mode(args):
            _eprint(msg)

    _eprint(f"[watch] watching {', '.join(str(r) for r in roots)} (Ctrl-C to stop)")
    try:
        asyncio.run(
            watcher.run_watch_loop(
                changes_iter=watcher.make_watchfiles_iter(
                    roots, debounce_ms=cfg.watch.debounce_ms
                ),
                run_cycle=watcher.build_cycle_runner(convert_file),
                on_event=on_event,
                on_cycle_result=on_cycle_result,
                on_error=_print_error,
                roots=roots,
            )
        )
    except KeyboardInterrupt:
        pass
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(list(sys.argv[1:] if argv is None else argv))
    except SystemExit as e:
        # argparse uses SystemExit for --help/--version and parse errors.
        code = e.code
        return int(code) if isinstance(code, int) else EXIT_CONFIG_OR_USAGE

    _configure_logging(args)

    if args.command == "convert":
        return cmd_convert(args)
    if args.command == "formats":
        return cmd_formats(args)
    if args.command == "watch":
        return cmd_watch(args)

    return EXIT_CONFIG_OR_USAGE


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
