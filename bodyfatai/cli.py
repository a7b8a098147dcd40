"""CLI entry point for BodyFatAI."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

from .capture import BodyCamera, normalize_file
from .config import load_config
from .db import ReminderStore
from .errors import BodyFatError, user_message
from .report import render_report, result_to_json
from .session import DAY_MS, AnalysisSession


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="bodyfatai",
        description="BodyFatAI — estimate body fat from a photo and create a shareable card",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="path to a TOML config file",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="enable debug logging")

    sub = parser.add_subparsers(dest="command")

    # cameras
    sub.add_parser("cameras", help="list available cameras")

    # analyze
    analyze_parser = sub.add_parser("analyze", help="analyze a photo (file or camera)")
    analyze_parser.add_argument("--image", type=str, help="use an existing image file")
    analyze_parser.add_argument("--json", action="store_true", help="print JSON")
    analyze_parser.add_argument(
        "--override", type=str, default=None, metavar="VALUE",
        help="replace the estimate with a self-reported value",
    )
    analyze_parser.add_argument(
        "--share", type=str, nargs="?", const="", default=None, metavar="DIR",
        help="write bodyfat-analysis.png into DIR (default: share.output_dir)",
    )
    analyze_parser.add_argument(
        "--brand", type=str, default=None,
        help="branding text on the share image",
    )

    # reminder
    reminder_parser = sub.add_parser("reminder", help="inspect or change the check-in reminder")
    reminder_parser.add_argument("action", choices=["status", "clear", "schedule"])

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    load_dotenv()
    config = load_config(args.config)

    match args.command:
        case "cameras":
            _cmd_cameras()
        case "analyze":
            sys.exit(asyncio.run(_cmd_analyze(config, args)))
        case "reminder":
            _cmd_reminder(config, args.action)


def _cmd_cameras() -> None:
    cameras = BodyCamera.list_cameras()
    if not cameras:
        print("No cameras found.")
        return
    print(f"Available cameras: {len(cameras)}")
    for idx in cameras:
        print(f"  camera {idx}")


def _cmd_reminder(config, action: str) -> None:
    store = ReminderStore(config.reminder.db_path)
    try:
        match action:
            case "status":
                due = store.due_at()
                if due is None:
                    print("No reminder scheduled.")
                elif store.is_due():
                    print("Time for a new check-in photo!")
                else:
                    print(f"Next check-in due at {due} (epoch ms).")
            case "clear":
                store.clear()
                print("Reminder cleared.")
            case "schedule":
                due = store.schedule_in(config.reminder.interval_days * DAY_MS)
                print(f"Reminder scheduled (due at {due}).")
    finally:
        store.close()


async def _cmd_analyze(config, args) -> int:
    try:
        if args.image:
            image = normalize_file(
                args.image,
                bound=config.capture.max_dimension,
                quality=config.capture.jpeg_quality,
            )
            if image is None:
                print(f"Not an image file: {args.image}", file=sys.stderr)
                return 1
        else:
            camera = BodyCamera(
                camera_index=config.capture.camera_index,
                quality=config.capture.jpeg_quality,
            )
            print("📷 Capturing...", file=sys.stderr)
            image = camera.capture()

        async with AnalysisSession(config) as session:
            if session.reminder_due():
                print("⏰ It has been two weeks: time for a new check-in photo.", file=sys.stderr)

            print("🔍 Analyzing...", file=sys.stderr)
            result = await session.analyze(image)
            if result is None:
                return 1

            if args.override is not None and result.is_unavailable:
                print("Ignoring --override: no estimate to adjust.", file=sys.stderr)
            elif args.override is not None:
                session.display.begin_edit()
                if not session.display.commit(args.override):
                    print("Ignoring empty override.", file=sys.stderr)

            if args.json:
                print(json.dumps(result_to_json(result, session.display), ensure_ascii=False, indent=2))
            else:
                print()
                print(render_report(result, session.display))

            if args.brand is not None and args.share is None:
                print("Ignoring --brand: it only applies with --share.", file=sys.stderr)

            if args.share is not None and not result.is_unavailable:
                artifact = await session.open_share(image.data, branding=args.brand)
                if artifact is not None:
                    path = artifact.save(args.share or config.share.output_dir)
                    payload = artifact.share_payload()
                    out = sys.stderr if args.json else sys.stdout
                    print(f"\n🖼  Share image: {path}", file=out)
                    print(f"   {payload['title']}: {payload['text']}", file=out)
        return 0
    except BodyFatError as e:
        print(user_message(e), file=sys.stderr)
        return 1
    except (ValueError, ImportError) as e:
        print(str(e), file=sys.stderr)
        return 1
