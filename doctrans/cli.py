"""Command line entry point: translate a JSON document file."""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from doctrans.ai.exceptions import TranslationError
from doctrans.ai.service import AIService, validate_ai_config
from doctrans.config import create_default_config, load_config
from doctrans.logger import get_logger
from doctrans.translation.manager import translate_document

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="doctrans", description="Translate the text of a JSON document with an LLM")
    subparsers = parser.add_subparsers(dest="command", required=True)

    translate = subparsers.add_parser("translate", help="Translate a JSON file")
    translate.add_argument("input", help="Path to the source JSON document")
    translate.add_argument("--source", required=True, help="Source language (code or name)")
    translate.add_argument("--target", required=True, help="Target language (code or name)")
    translate.add_argument("--protect", action="append", default=[], metavar="KEY",
                           help="Key fragment that must not be translated (repeatable)")
    translate.add_argument("--topic", default=None, help="Topic hint for the prompt")
    translate.add_argument("--provider", default=None, help="Override the configured AI provider")
    translate.add_argument("--model", default=None, help="Override the provider's default model")
    translate.add_argument("--output", default=None, help="Write the result here instead of stdout")

    init_config = subparsers.add_parser("init-config", help="Write the default configuration file")
    init_config.add_argument("--path", default=None, help="Target path (defaults to the active config file)")

    return parser


async def _run_translate(args: argparse.Namespace) -> int:
    source_path = Path(args.input)
    try:
        document = json.loads(source_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        print(f"Cannot read {source_path}: {e}", file=sys.stderr)
        return 1

    config = load_config()
    try:
        validate_ai_config(provider_override=args.provider, config=config)
    except TranslationError as e:
        print(str(e), file=sys.stderr)
        return 1

    service = AIService(model_override=args.model, provider_override=args.provider, config=config)
    result = await translate_document(
        document,
        args.source,
        args.target,
        do_not_translate_keys=args.protect,
        topic=args.topic,
        ai_service=service,
        config=config,
    )

    if not result["success"]:
        print(f"Translation failed: {result.get('error')}", file=sys.stderr)
        return 1

    if result.get("error"):
        print(result["error"], file=sys.stderr)

    output = json.dumps(result["data"], ensure_ascii=False, indent=2)
    if args.output:
        Path(args.output).write_text(output + "\n", encoding="utf-8")
        logger.info(f"Wrote translated document to {args.output}")
    else:
        print(output)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.command == "init-config":
        target = create_default_config(Path(args.path) if args.path else None)
        print(f"Default configuration written to {target}")
        return 0

    return asyncio.run(_run_translate(args))


if __name__ == "__main__":
    raise SystemExit(main())
