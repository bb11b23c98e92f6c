"""CLI entry point for FridgeFriend."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date

from dotenv import load_dotenv

from .camera import FridgeCamera
from .config import load_config
from .errors import LowConfidenceError, PipelineError
from .expiry import format_expiry, is_expiring_soon, remaining_days
from .pipeline import FreshnessPipeline, InventoryItemDraft


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="fridgefriend",
        description="FridgeFriend: recognize food items and estimate their expiry dates",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the config file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # cameras
    sub.add_parser("cameras", help="List available cameras")

    # capture
    capture_parser = sub.add_parser("capture", help="Capture a still image")
    capture_parser.add_argument("--camera", type=int, default=None, help="Camera index")

    # detect
    detect_parser = sub.add_parser(
        "detect", help="Recognize a food item and estimate its expiry date"
    )
    source = detect_parser.add_mutually_exclusive_group()
    source.add_argument("--image", type=str, help="Use an existing image file")
    source.add_argument("--camera", type=int, default=None, help="Camera index")
    detect_parser.add_argument("--quantity", type=int, default=1)
    detect_parser.add_argument(
        "--purchase-date", type=str, default=None, help="YYYY-MM-DD (default: today)"
    )
    detect_parser.add_argument(
        "--accept-low-confidence",
        action="store_true",
        help="Keep a detection below the confidence gate",
    )
    detect_parser.add_argument("--save", action="store_true", help="Add to inventory")
    detect_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # label
    label_parser = sub.add_parser("label", help="Read a printed expiry date")
    label_parser.add_argument("--image", type=str, required=True, help="Label image file")
    label_parser.add_argument(
        "--purchase-date", type=str, default=None, help="YYYY-MM-DD (default: today)"
    )
    label_parser.add_argument(
        "--save", type=str, default=None, metavar="NAME",
        help="Add to inventory under this product name",
    )
    label_parser.add_argument("--quantity", type=int, default=1)
    label_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # list
    list_parser = sub.add_parser("list", help="Show inventory ordered by expiry")
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # delete
    delete_parser = sub.add_parser("delete", help="Delete an inventory item")
    delete_parser.add_argument("item_id", type=int)

    # watch
    sub.add_parser("watch", help="Run scheduled expiry alerts")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_dotenv()
    config = load_config(args.config)

    try:
        match args.command:
            case "cameras":
                _cmd_cameras()
            case "capture":
                _cmd_capture(config, args)
            case "detect":
                asyncio.run(_cmd_detect(config, args))
            case "label":
                asyncio.run(_cmd_label(config, args))
            case "list":
                _cmd_list(config, args)
            case "delete":
                _cmd_delete(config, args)
            case "watch":
                asyncio.run(_cmd_watch(config))
    except (PipelineError, RuntimeError, ImportError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        pass


def _purchase_date(value: str | None) -> date:
    return date.fromisoformat(value) if value else date.today()


def _cmd_cameras() -> None:
    cameras = FridgeCamera.list_cameras()
    if not cameras:
        print("No cameras found.")
        return
    print(f"Available cameras: {len(cameras)}")
    for idx in cameras:
        print(f"  camera {idx}")


def _cmd_capture(config, args) -> None:
    camera = FridgeCamera(
        camera_indices=config.camera.indices,
        save_dir=config.camera.save_dir,
    )
    capture = camera.capture(args.camera)
    print(f"Saved {capture.image_path}")


async def _cmd_detect(config, args) -> None:
    kwargs = {
        "purchase_date": _purchase_date(args.purchase_date),
        "quantity": args.quantity,
        "accept_low_confidence": args.accept_low_confidence,
    }

    async with FreshnessPipeline.from_config(config) as pipeline:
        try:
            if args.image:
                draft = await pipeline.detect_from_file(args.image, **kwargs)
            else:
                camera = FridgeCamera(
                    camera_indices=config.camera.indices,
                    save_dir=config.camera.save_dir,
                )
                print("Scanning...")
                with camera.open(args.camera) as stream:
                    draft = await pipeline.detect_from_camera(stream, **kwargs)
        except LowConfidenceError as e:
            best = e.result.detection
            raise PipelineError(
                f"{e.message}: {best.class_label} ({best.confidence:.0%}). "
                f"Retake the photo or pass --accept-low-confidence."
            ) from e

    if args.json:
        print(json.dumps(draft.to_dict(), indent=2))
    else:
        _print_draft(draft)

    if args.save:
        _save(config, draft)


async def _cmd_label(config, args) -> None:
    purchase_date = _purchase_date(args.purchase_date)

    async with FreshnessPipeline.from_config(config) as pipeline:
        result = await pipeline.extract_from_label_file(args.image, purchase_date)

    if args.json:
        print(json.dumps({
            "expiry_date": result.expiry_date.isoformat(),
            "printed_date": result.extracted.iso_date,
            "used_fallback": result.used_fallback,
            "error": result.error,
        }, indent=2))
    else:
        if result.error:
            print(f"OCR error: {result.error}", file=sys.stderr)
        if result.used_fallback:
            print(
                f"No printed date found; defaulting to "
                f"{format_expiry(result.expiry_date)}"
            )
        else:
            print(f"Expiry date: {format_expiry(result.expiry_date)}")

    if args.save:
        draft = InventoryItemDraft(
            product_name=args.save,
            quantity=args.quantity,
            purchase_date=purchase_date,
            expiry_date=result.expiry_date,
        )
        _save(config, draft)


def _print_draft(draft: InventoryItemDraft) -> None:
    print(f"{draft.product_name} x{draft.quantity}")
    if draft.confidence is not None:
        flag = "  (low confidence)" if draft.low_confidence else ""
        print(f"  confidence : {draft.confidence:.0%}{flag}")
    if draft.spoilage is not None:
        s = draft.spoilage
        print(f"  freshness  : {s.level.value} ({s.spoilage_percentage:.1f}% spoiled)")
    print(f"  purchased  : {format_expiry(draft.purchase_date)}")
    print(f"  expires    : {format_expiry(draft.expiry_date)}")


def _save(config, draft: InventoryItemDraft) -> None:
    from .db import InventoryDB

    db = InventoryDB(config.database.path)
    try:
        item_id = db.add_draft(draft, owner=config.database.owner)
    finally:
        db.close()
    print(f"Saved as item #{item_id}")


def _cmd_list(config, args) -> None:
    from .db import InventoryDB

    db = InventoryDB(config.database.path)
    try:
        items = db.list_items(owner=config.database.owner)
    finally:
        db.close()

    today = date.today()
    for item in items:
        expiry_date = date.fromisoformat(item["expiry_date"])
        item["remaining_days"] = remaining_days(expiry_date, today)
        item["formatted_expiry"] = format_expiry(expiry_date)

    if args.json:
        print(json.dumps(items, indent=2))
        return

    if not items:
        print("Inventory is empty.")
        return
    soon = config.expiry.expiring_soon_days
    for item in items:
        expiry_date = date.fromisoformat(item["expiry_date"])
        mark = "!" if is_expiring_soon(expiry_date, today, soon) else " "
        print(
            f"{mark} #{item['id']:<4} {item['product_name']:<16} "
            f"x{item['quantity']:<3} {item['formatted_expiry']}  "
            f"{item['remaining_days']} days"
        )


def _cmd_delete(config, args) -> None:
    from .db import InventoryDB

    db = InventoryDB(config.database.path)
    try:
        deleted = db.delete_item(args.item_id)
    finally:
        db.close()
    if not deleted:
        print(f"No item #{args.item_id}", file=sys.stderr)
        sys.exit(1)
    print(f"Deleted item #{args.item_id}")


async def _cmd_watch(config) -> None:
    from .scheduler import ExpiryWatchScheduler

    scheduler = ExpiryWatchScheduler(config)
    scheduler.start()
    print("Watching expiry dates. Press Ctrl+C to stop.")
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop()
