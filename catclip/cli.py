"""CLI entry point: copy the contents of files (text, PDF, images via OCR) to the clipboard."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from . import logging_utils
from .clipboard import ClipboardSink
from .config import ExtractionConfig, load_config
from .decoder import decode_text
from .errors import CatclipError, FileTooLarge, truncate_message
from .models import ExtractionResult
from .pipeline import ExtractionPipeline

STDIN_NAME = "-"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="catclip",
        description="Copy file contents to the system clipboard. PDFs without a "
        "text layer and images are run through OCR.",
    )
    parser.add_argument(
        "files",
        nargs="+",
        metavar="FILE",
        help="Files to copy; '-' reads standard input. Multiple files are joined with newlines.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output.")
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress all output except errors.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print a JSON payload with the text and warnings on stdout.",
    )
    parser.add_argument(
        "--no-clipboard",
        action="store_true",
        help="Do not copy to the clipboard; print the text instead.",
    )
    return parser


def _print_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False), flush=True)


def _read_stdin(config: ExtractionConfig) -> str:
    limit = config.max_input_bytes
    data = sys.stdin.buffer.read(limit + 1)
    if len(data) > limit:
        raise FileTooLarge("<stdin>", len(data))
    return decode_text(data, "<stdin>")


def _log_level(args: argparse.Namespace) -> int:
    if args.verbose:
        return logging.DEBUG
    if args.quiet:
        return logging.ERROR
    return logging.WARNING


def main(
    argv: Optional[List[str]] = None,
    *,
    pipeline: Optional[ExtractionPipeline] = None,
    sink: Optional[ClipboardSink] = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logger = logging_utils.configure_logging(_log_level(args))
    config = pipeline.config if pipeline is not None else load_config()

    try:
        pipeline = pipeline or ExtractionPipeline(config)
        texts: List[str] = []
        warnings: List[Dict[str, Any]] = []
        truncated = False

        for name in args.files:
            if name == STDIN_NAME:
                logger.debug("Reading from stdin")
                result = ExtractionResult(text=_read_stdin(config))
            else:
                logger.debug("Reading file: %s", name)
                result = pipeline.extract(name)
            texts.append(result.text)
            warnings.extend(
                {"file": name, "page": w.page_index, "reason": w.reason.value}
                for w in result.warnings
            )
            truncated = truncated or result.truncated

        combined = "\n".join(texts)
        if args.no_clipboard:
            size = len(combined.encode("utf-8"))
        else:
            owned = sink is None
            active = sink if sink is not None else ClipboardSink(
                max_output_bytes=config.max_output_bytes
            )
            try:
                size = active.copy(combined)
            finally:
                if owned:
                    active.close()

        if args.json:
            _print_json(
                {
                    "success": True,
                    "text": combined,
                    "bytes": size,
                    "warnings": warnings,
                    "truncated": truncated,
                }
            )
        elif args.no_clipboard:
            sys.stdout.write(combined)
            if combined and not combined.endswith("\n"):
                sys.stdout.write("\n")
            sys.stdout.flush()

        if not args.quiet and not args.no_clipboard:
            if len(args.files) == 1:
                source = "stdin" if args.files[0] == STDIN_NAME else args.files[0]
            else:
                source = f"{len(args.files)} files"
            print(f"Copied {size} bytes from {source} to clipboard", file=sys.stderr)
        return 0

    except CatclipError as exc:
        message = truncate_message(str(exc))
        logger.debug("catclip failed", exc_info=True)
        if args.json:
            _print_json({"success": False, "error": message})
        print(f"Error: {message}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry
    sys.exit(main())
