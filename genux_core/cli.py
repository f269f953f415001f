#!/usr/bin/env python3
"""
Genux CLI - manage stored features and apply them to HTML files or pages

Usage:
    genux list [--json]
    genux remove <id>
    genux clear
    genux generate "<prompt>" --type markup --html page.html [--out out.html]
    genux apply --html page.html [--out out.html]
    genux preview <url> [--screenshot shot.png]
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, List

from .browser import open_page
from .diagnostics import get_logger
from .documents import HtmlDocument
from .exceptions import GenuxError
from .genux import Genux

logger = get_logger(__name__)


def _options(args: argparse.Namespace) -> Dict[str, Any]:
    options: Dict[str, Any] = {"confirmDestructive": False}
    if getattr(args, "storage_path", None):
        options["storagePath"] = args.storage_path
    if getattr(args, "proxy", None):
        options["proxyEndpoint"] = args.proxy
    if getattr(args, "target", None):
        options["targetContainer"] = args.target
    return options


def _load_html(path: str) -> HtmlDocument:
    try:
        return HtmlDocument.from_file(path)
    except OSError as e:
        raise GenuxError(f"Cannot read HTML file {path}: {e}") from e


async def _list(args: argparse.Namespace) -> int:
    genux = Genux(HtmlDocument(), _options(args))
    features = await genux.get_features()
    if args.json:
        print(json.dumps([f.to_dict() for f in features], indent=2, ensure_ascii=False))
        return 0
    if not features:
        print("No features created yet")
        return 0
    for feature in features:
        print(f"{feature.id}\t{feature.type.value}\t{feature.prompt}")
    return 0


async def _remove(args: argparse.Namespace) -> int:
    genux = Genux(HtmlDocument(), _options(args))
    if await genux.coordinator.store.get(args.id) is None:
        print(f"No feature with id {args.id}", file=sys.stderr)
        return 1
    await genux.remove_feature(args.id, confirm=False)
    print(f"Removed {args.id}")
    return 0


async def _clear(args: argparse.Namespace) -> int:
    genux = Genux(HtmlDocument(), _options(args))
    await genux.clear_features(confirm=False)
    print("All features cleared")
    return 0


async def _generate(args: argparse.Namespace) -> int:
    document = _load_html(args.html)
    genux = Genux(document, _options(args))
    result = await genux.generate_feature(args.prompt, args.type)
    if not result.persisted:
        return 1
    document.save(args.out or args.html)
    print(f"Created feature {result.feature.id} ({result.feature.type.value})")
    return 0 if result.applied else 2


async def _apply(args: argparse.Namespace) -> int:
    document = _load_html(args.html)
    genux = Genux(document, _options(args))
    await genux.initialize()
    document.save(args.out or args.html)
    count = await document.count_tagged()
    print(f"Applied {count} feature(s)")
    return 0


async def _preview(args: argparse.Namespace) -> int:
    async with open_page(args.url, headless=not args.headed) as document:
        genux = Genux(document, _options(args))
        await genux.initialize()
        if args.screenshot:
            await document.page.screenshot(path=args.screenshot, full_page=True)
            print(f"Screenshot saved to {args.screenshot}")
        for message in genux.coordinator.engine.script_errors:
            print(message, file=sys.stderr)
    return 0


COMMANDS = {
    "list": _list,
    "remove": _remove,
    "clear": _clear,
    "generate": _generate,
    "apply": _apply,
    "preview": _preview,
}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="genux", description="genux - natural-language UI features")
    p.add_argument("--storage-path", help="Local storage file (default: $GENUX_STORAGE_PATH)")
    p.add_argument("--proxy", help="Proxy endpoint for generation requests")
    p.add_argument("--target", help="CSS selector for the markup target container")
    sub = p.add_subparsers(dest="cmd")

    p_list = sub.add_parser("list", help="List stored features")
    p_list.add_argument("--json", action="store_true", help="Print records as JSON")

    p_remove = sub.add_parser("remove", help="Remove a stored feature")
    p_remove.add_argument("id", type=int)

    sub.add_parser("clear", help="Remove all stored features")

    p_gen = sub.add_parser("generate", help="Generate a feature and apply it to an HTML file")
    p_gen.add_argument("prompt")
    p_gen.add_argument("--type", default="script", help="script, markup or stylesheet")
    p_gen.add_argument("--html", required=True, help="HTML file used as context and target")
    p_gen.add_argument("--out", help="Write the result here instead of overwriting --html")

    p_apply = sub.add_parser("apply", help="Apply all stored features to an HTML file")
    p_apply.add_argument("--html", required=True)
    p_apply.add_argument("--out")

    p_prev = sub.add_parser("preview", help="Open a URL in Chromium with stored features applied")
    p_prev.add_argument("url")
    p_prev.add_argument("--screenshot", help="Save a full-page screenshot")
    p_prev.add_argument("--headed", action="store_true", help="Show the browser window")
    return p


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.cmd:
        parser.print_help()
        return 0
    try:
        return int(asyncio.run(COMMANDS[args.cmd](args)) or 0)
    except GenuxError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
