#!/usr/bin/env python3
"""
Command line front end for the contact extractor.

Usage:
    python cli.py extract team.png
    python cli.py extract team.png -o contacts.csv
    python cli.py extract team.png --copy
"""
import argparse
import asyncio
import sys
from pathlib import Path

from config import configure_logging, get_settings
from controller import ContactController
from encoder import ImageReadError, load_image
from export import CopyResult, ExportError, copy_to_clipboard, to_csv, trigger_download
from models import Phase


def cmd_extract(args, controller: ContactController) -> int:
    try:
        image = load_image(args.image)
    except ImageReadError as e:
        controller.reject(args.image, e)
    else:
        asyncio.run(controller.upload(image))

    state = controller.state
    print(state.message, file=sys.stderr)
    if state.phase is not Phase.SUCCESS:
        return 1

    csv_text = to_csv(state.contacts)

    if args.output:
        try:
            path = trigger_download(csv_text, args.output.name, directory=args.output.parent)
        except ExportError as e:
            print(f"Could not save CSV: {e}", file=sys.stderr)
            return 1
        print(f"Saved {len(state.contacts)} contact(s) to {path}", file=sys.stderr)
    else:
        print(csv_text)

    if args.copy:
        result = copy_to_clipboard(csv_text)
        print("Copied!" if result is CopyResult.COPIED else "Failed to copy", file=sys.stderr)

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract contacts from an image of a contact list")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    p_extract = sub.add_parser("extract", help="Extract contacts from an image")
    p_extract.add_argument("image", help="Path to a PNG/JPEG/WEBP/GIF image")
    p_extract.add_argument("-o", "--output", type=Path, help="Write CSV to this file instead of stdout")
    p_extract.add_argument("--copy", action="store_true", help="Also copy the CSV to the clipboard")
    return parser


def main(argv=None, controller: ContactController | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging("DEBUG" if args.debug else settings.log_level)

    if args.command != "extract":
        parser.print_help()
        return 2

    controller = controller or ContactController.from_settings(settings)
    return cmd_extract(args, controller)


if __name__ == "__main__":
    sys.exit(main())
