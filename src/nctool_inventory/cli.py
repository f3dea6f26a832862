from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import config
from .core import ToolInventory
from .errors import ImportValidationError, ToolInventoryError, ValidationError
from .model import TOOL_TYPES, ToolRecord
from .query import SORT_DIRECTIONS, SORT_FIELDS, ToolView
from .store import JsonSettingsStore
from .util import fmt_mm, fmt_tool_number, plural


SORT_CHOICES = [f"{f}-{d}" for f in SORT_FIELDS for d in SORT_DIRECTIONS]


def _tool_number_arg(s: str) -> Optional[str]:
    # "none" / "-" は未割当（ライブラリ）
    return None if s.strip().lower() in ("", "none", "-") else s


def _add_tool_options(p: argparse.ArgumentParser, required: bool) -> None:
    p.add_argument("--name", required=required, default=None, help="tool name / description")
    p.add_argument("--type", choices=TOOL_TYPES, default=("flat" if required else None), help="tool type")
    p.add_argument("--diameter", required=required, default=None, help="diameter (mm)")
    p.add_argument("--tool-number", type=_tool_number_arg, default=argparse.SUPPRESS,
                   help="magazine slot (T#), 'none' for library")
    p.add_argument("--tlo", default=None, help="tool length offset (mm)")
    p.add_argument("--notes", default=None)
    p.add_argument("--sku", default=None, help="SKU / part number")
    p.add_argument("--image", default=None, help="image path or URL")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="nctool-inventory", description="CNC tool inventory")
    ap.add_argument("--settings", default=None, help=f"settings JSON (env {config.ENV_SETTINGS})")
    ap.add_argument("--app-settings", default=None, help=f"app settings JSON (env {config.ENV_APP_SETTINGS})")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="show magazine and library tools")
    p.add_argument("--search", default="", help="filter by T#, name or type")
    p.add_argument("--sort", choices=SORT_CHOICES, default=config.DEFAULT_SORT)

    p = sub.add_parser("slots", help="show magazine slots and their occupants")
    p.add_argument("--editing", type=int, default=None, help="tool id being edited")

    p = sub.add_parser("add", help="add a tool")
    _add_tool_options(p, required=True)

    p = sub.add_parser("edit", help="edit a tool")
    p.add_argument("id", type=int)
    _add_tool_options(p, required=False)

    p = sub.add_parser("delete", help="delete a tool")
    p.add_argument("id", type=int)
    p.add_argument("--yes", action="store_true", help="do not ask for confirmation")

    p = sub.add_parser("export", help="export all tools to tool-library-YYYY-MM-DD.json")
    p.add_argument("--out", default=".", help="output directory")

    p = sub.add_parser("import", help="import tools from a JSON file")
    p.add_argument("file")
    p.add_argument("--replace", action="store_true", help="replace tools with the same id without asking")

    p = sub.add_parser("export-xlsx", help="write the tool list as XLSX")
    p.add_argument("--out", required=True, help="output .xlsx path")
    p.add_argument("--embed-images", action="store_true", help="embed local tool images")
    p.add_argument("--max-px", type=int, default=config.DEFAULT_THUMB_PX, help="max image size (px)")
    p.add_argument("--image-base", default=None, help="base directory for relative image paths")
    return ap


def _ask(prompt: str) -> bool:
    try:
        return input(prompt + " [y/N] ").strip().lower() in ("y", "yes")
    except EOFError:
        return False


def _form_data(args: argparse.Namespace, base: Optional[ToolRecord] = None) -> Dict[str, Any]:
    """
    CLI 引数 -> フォーム入力。edit では未指定の項目は既存値を使う。
    """
    data: Dict[str, Any] = base.to_dict() if base is not None else {
        "toolNumber": None, "offsets": {}, "metadata": {},
    }
    if hasattr(args, "tool_number"):
        data["toolNumber"] = args.tool_number
    for key in ("name", "type", "diameter"):
        v = getattr(args, key)
        if v is not None:
            data[key] = v
    if args.tlo is not None:
        data["offsets"] = {**data.get("offsets", {}), "tlo": args.tlo}
    for key in ("notes", "sku", "image"):
        v = getattr(args, key)
        if v is not None:
            data["metadata"] = {**data.get("metadata", {}), key: v}
    return data


def _print_table(title: str, tools: List[ToolRecord]) -> None:
    print(f"== {title} ({plural(len(tools))})")
    if not tools:
        print("   (none)")
        return
    for t in tools:
        print(f"{fmt_tool_number(t.tool_number):>5}  #{t.id:<4} {t.name:<32} {t.type_label:<14} {fmt_mm(t.diameter):>9}")


def _print_view(view: ToolView) -> None:
    _print_table("Magazine", view.magazine)
    _print_table("Library", view.library)
    print(f"{plural(view.shown)} shown / {plural(view.total)}")


def run(args: argparse.Namespace, inv: ToolInventory) -> int:
    cmd = args.command

    if cmd == "list":
        _print_view(inv.view(args.search, args.sort))

    elif cmd == "slots":
        for n, holder in inv.slots(args.editing):
            print(f"T{n}" + (f"  (swap with: {holder.name})" if holder else ""))

    elif cmd == "add":
        result = inv.add(_form_data(args))
        print(f"OK: added #{result.tool.id} {fmt_tool_number(result.tool.tool_number)} {result.tool.name}")
        if result.displaced:
            print(f"   {result.displaced.name} -> {fmt_tool_number(result.displaced.tool_number)}")

    elif cmd == "edit":
        result = inv.edit(args.id, _form_data(args, base=inv.get(args.id)))
        print(f"OK: saved #{result.tool.id} {fmt_tool_number(result.tool.tool_number)} {result.tool.name}")
        if result.displaced:
            print(f"   {result.displaced.name} -> {fmt_tool_number(result.displaced.tool_number)}")

    elif cmd == "delete":
        def confirm(tool: ToolRecord) -> bool:
            return args.yes or _ask(f"Are you sure you want to delete #{tool.id} - {tool.name}?")

        if inv.delete(args.id, confirm=confirm) is None:
            print("cancelled")
        else:
            print(f"OK: deleted #{args.id}")

    elif cmd == "export":
        print("OK:", inv.export_file(Path(args.out)))

    elif cmd == "import":
        def confirm(conflicts: List[ToolRecord]) -> bool:
            ids = ", ".join(str(t.id) for t in conflicts)
            return args.replace or _ask(
                f"The following tool ids already exist: {ids}\nReplace existing tools and import?"
            )

        result = inv.import_file(Path(args.file), confirm=confirm)
        print(f"Successfully imported {plural(result.imported)}")
        if result.displaced:
            print("   moved to library: " + ", ".join(f"#{i}" for i in result.displaced))

    elif cmd == "export-xlsx":
        written, images = inv.export_xlsx(
            Path(args.out),
            embed_images=args.embed_images,
            max_px=args.max_px,
            image_base=Path(args.image_base) if args.image_base else None,
        )
        print("OK:", args.out)
        print({"tools": written, "embedded_images": images})

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    store = JsonSettingsStore(config.settings_path(args.settings), config.app_settings_path(args.app_settings))
    with ToolInventory(store) as inv:
        try:
            inv.load()
            return run(args, inv)
        except ValidationError as e:
            print("Validation errors:", file=sys.stderr)
            for msg in e.errors:
                print(f"  - {msg}", file=sys.stderr)
            return 1
        except ImportValidationError as e:
            print(str(e), file=sys.stderr)
            print(f"({plural(e.failed)} failed)", file=sys.stderr)
            return 1
        except ToolInventoryError as e:
            print(str(e), file=sys.stderr)
            return 1
        except (OSError, ValueError) as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
        finally:
            inv.flush()


if __name__ == "__main__":
    raise SystemExit(main())
