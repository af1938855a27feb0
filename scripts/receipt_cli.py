#!/usr/bin/env python
"""Review and import a receipt from a shell.

Examples:
    python -m scripts.receipt_cli list 12 --restaurant 1
    python -m scripts.receipt_cli map 12 --restaurant 1 --line 40 --product 7
    python -m scripts.receipt_cli new 12 --restaurant 1 --line 41 --all-duplicates
    python -m scripts.receipt_cli commit 12 --restaurant 1
    python -m scripts.receipt_cli finalize 12 --restaurant 1
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List

from larder.core.receipt_import import ReceiptImportService
from larder.db import get_engine_and_session
from larder.exceptions import LarderError
from larder.models.receipt_line_item import MappingStatus
from larder.schemas import MappingUpdate, ReceiptLineItemRead

STATUS_ICONS = {
    MappingStatus.PENDING: "?",
    MappingStatus.MAPPED: "✓",
    MappingStatus.NEW_ITEM: "+",
    MappingStatus.IGNORED: "-",
}


def format_lines(lines: List[ReceiptLineItemRead]) -> str:
    rows = []
    for line in lines:
        suggestion = ""
        if line.suggested_size_value is not None or line.suggested_package_type:
            suggestion = (
                f"  [suggested: {line.suggested_size_value or ''} "
                f"{line.suggested_size_unit or ''} {line.suggested_package_type or ''}]"
            )
        score = f"{line.confidence_score:.2f}" if line.confidence_score is not None else "-"
        rows.append(
            f"{STATUS_ICONS[line.mapping_status]} #{line.id:<5} {line.display_name:<40} "
            f"qty={line.parsed_quantity or '-'} price={line.parsed_price or '-'} "
            f"product={line.matched_product_id or '-'} score={score}{suggestion}"
        )
    return "\n".join(rows) if rows else "(no line items)"


async def run(args: argparse.Namespace) -> int:
    engine, SessionLocal = get_engine_and_session()
    try:
        async with SessionLocal() as session:
            service = ReceiptImportService(session, args.restaurant)

            if args.command == "list":
                print(format_lines(await service.list_line_items(args.receipt_id)))
                return 0

            if args.command in ("map", "new", "ignore"):
                if args.command == "map":
                    updates = MappingUpdate(matched_product_id=args.product, mapping_status=MappingStatus.MAPPED)
                elif args.command == "new":
                    updates = MappingUpdate(matched_product_id=None, mapping_status=MappingStatus.NEW_ITEM)
                else:
                    updates = MappingUpdate(mapping_status=MappingStatus.IGNORED)
                ok = await service.update_mapping(args.line, updates, apply_to_duplicates=args.all_duplicates)
                print("✓ mapping updated" if ok else "✗ failed to update item mapping")
                return 0 if ok else 1

            if args.command == "commit":
                report = await service.commit(args.receipt_id)
                print(
                    f"✓ imported {report.imported_count} items "
                    f"(total {report.imported_total}), {len(report.failed)} failed"
                )
                for result in report.failed:
                    print(f"  ✗ line #{result.line_id}: {result.error}")
                for warning in report.warnings:
                    print(f"  ! {warning}")
                return 0 if not report.failed and not report.warnings else 1

            ok = await service.finalize(args.receipt_id)
            print("✓ receipt finalized" if ok else "✗ failed to finalize receipt")
            return 0 if ok else 1
    except LarderError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 2
    finally:
        await engine.dispose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Receipt review and import")
    parser.add_argument("command", choices=["list", "map", "new", "ignore", "commit", "finalize"])
    parser.add_argument("receipt_id", type=int)
    parser.add_argument("--restaurant", type=int, required=True, help="restaurant id")
    parser.add_argument("--line", type=int, help="line item id (map/new/ignore)")
    parser.add_argument("--product", type=int, help="product id (map)")
    parser.add_argument("--all-duplicates", action="store_true",
                        help="apply the decision to pending lines with the same name")
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    if args.command in ("map", "new", "ignore") and args.line is None:
        parser.error("--line is required")
    if args.command == "map" and args.product is None:
        parser.error("--product is required for map")
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
