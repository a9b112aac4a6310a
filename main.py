"""
main.py

Run Sheet Builder - command line entry point.

Every command loads the persisted run sheet, applies one operation, and
saves the result. Requirements:
    pip install -e .
    GOOGLE_API_KEY=... (required for AI import of scanned PDFs)

Examples:
    python main.py template circuit-assembly-2025
    python main.py add NOTE
    python main.py update <id> --set text="Chairman at the lectern"
    python main.py import scan.pdf
    python main.py export -o ./exports
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List

from errors import RunSheetError
from models import Direction, SegmentType, StageItemKind
from settings import get_settings
from document.model import describe
from document.store import DocumentStore, FileBlobStore, open_default_store
from session import RunSheetSession
from stage.diagram import items_of
from templates import scan_templates

log = logging.getLogger(__name__)

_TYPE_CHOICES = [t.value for t in SegmentType]
_KIND_CHOICES = [k.value for k in StageItemKind]


def _parse_assignments(pairs: List[str]) -> Dict[str, object]:
    """Parse ``key=value`` pairs; ``isMedia`` takes true/false."""
    out: Dict[str, object] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise SystemExit(f"Error: expected key=value, got {pair!r}")
        if key == "isMedia":
            out[key] = value.strip().lower() in ("1", "true", "yes", "on")
        else:
            out[key] = value
    return out


def _open_session(args) -> RunSheetSession:
    if args.data_dir:
        store = DocumentStore(FileBlobStore(Path(args.data_dir)))
    else:
        store = open_default_store()
    return RunSheetSession(store, model=args.model)


def _report(changed: bool, what: str) -> None:
    print(what if changed else "No change.")


def cmd_show(session, args):
    """Print the current run sheet."""
    doc = session.document
    if not len(doc):
        print("Empty Run Sheet")
        return
    for i, seg in enumerate(doc):
        fields = ", ".join(f"{k}={v!r}" for k, v in seg.content.to_dict().items() if k != "stageItems")
        print(f"{i:3d}  {seg.id}  {str(seg.type) or '?':<10} {fields}")
        for item in items_of(seg):
            print(f"       - {item.id} {item.kind} ({item.x:.1f}, {item.y:.1f})")
    counts = ", ".join(f"{k}: {v}" for k, v in describe(doc).items())
    print(f"\n{len(doc)} segments ({counts})")


def cmd_add(session, args):
    _report(session.add_segment(args.type), f"Added {args.type} segment {session.document.ids()[-1]}")


def cmd_insert_after(session, args):
    _report(session.insert_after(args.id, args.type), f"Inserted {args.type} after {args.id}")


def cmd_update(session, args):
    """Overlay key=value pairs onto the segment's current content."""
    seg = session.document.get(args.id)
    if seg is None:
        print("No change.")
        return
    content = seg.content.to_dict()
    content.update(_parse_assignments(args.set))
    _report(session.update_segment(args.id, content), f"Updated {args.id}")


def cmd_remove(session, args):
    _report(session.remove_segment(args.id), f"Removed {args.id}")


def cmd_move(session, args):
    _report(session.move_segment(args.id, args.direction), f"Moved {args.id} {args.direction}")


def cmd_reset(session, args):
    session.reset_to_default()
    print("Run sheet reset to default.")


def cmd_clear(session, args):
    session.clear_all()
    print("Run sheet cleared.")


def cmd_template(session, args):
    """Load a template, or list templates when no name is given."""
    if not args.name:
        for name, segments in scan_templates().items():
            print(f"  {name} ({len(segments)} segments)")
        return
    try:
        session.load_template(args.name)
    except KeyError as e:
        raise SystemExit(f"Error: {e.args[0]}")
    print(f"Loaded template {args.name}.")


def cmd_export(session, args):
    if args.stdout:
        print(session.export_document())
        return
    path = session.export_to_file(args.output or ".")
    print(f"Exported to {path}")


def cmd_import(session, args):
    session.import_file(args.file)
    print(f"Imported {len(session.document)} segments from {args.file}")


def cmd_stage_add(session, args):
    _report(session.add_stage_item(args.segment, args.kind), f"Added {args.kind} to {args.segment}")


def cmd_stage_place(session, args):
    _report(
        session.place_stage_item(args.segment, args.item, args.x, args.y),
        f"Placed {args.item}",
    )


def cmd_stage_remove(session, args):
    _report(session.remove_stage_item(args.segment, args.item), f"Removed {args.item}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="runsheet",
        description="AV Run Sheet Builder - assemble live-event run sheets",
    )
    parser.add_argument("--data-dir", help="Directory holding the persisted run sheet")
    parser.add_argument("--model", help="Gemini model for AI import")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    p = subparsers.add_parser("show", help="Print the run sheet")
    p.set_defaults(func=cmd_show)

    p = subparsers.add_parser("add", help="Append a segment")
    p.add_argument("type", choices=_TYPE_CHOICES)
    p.set_defaults(func=cmd_add)

    p = subparsers.add_parser("insert-after", help="Insert a segment after another")
    p.add_argument("id")
    p.add_argument("type", choices=_TYPE_CHOICES)
    p.set_defaults(func=cmd_insert_after)

    p = subparsers.add_parser("update", help="Set content fields of a segment")
    p.add_argument("id")
    p.add_argument("--set", action="append", default=[], metavar="KEY=VALUE",
                   help="Content field, e.g. title=Morning or isMedia=false")
    p.set_defaults(func=cmd_update)

    p = subparsers.add_parser("remove", help="Delete a segment")
    p.add_argument("id")
    p.set_defaults(func=cmd_remove)

    p = subparsers.add_parser("move", help="Move a segment up or down")
    p.add_argument("id")
    p.add_argument("direction", choices=[d.value for d in Direction])
    p.set_defaults(func=cmd_move)

    p = subparsers.add_parser("reset", help="Reset to the default run sheet")
    p.set_defaults(func=cmd_reset)

    p = subparsers.add_parser("clear", help="Remove every segment")
    p.set_defaults(func=cmd_clear)

    p = subparsers.add_parser("template", help="Load a built-in template (lists them without a name)")
    p.add_argument("name", nargs="?")
    p.set_defaults(func=cmd_template)

    p = subparsers.add_parser("export", help="Export the run sheet as JSON")
    p.add_argument("-o", "--output", help="Directory to write into (default: current)")
    p.add_argument("--stdout", action="store_true", help="Print instead of writing a file")
    p.set_defaults(func=cmd_export)

    p = subparsers.add_parser("import", help="Import a .json run sheet or a scanned .pdf")
    p.add_argument("file")
    p.set_defaults(func=cmd_import)

    p = subparsers.add_parser("stage-add", help="Add a prop to a diagram segment")
    p.add_argument("segment")
    p.add_argument("kind", choices=_KIND_CHOICES)
    p.set_defaults(func=cmd_stage_add)

    p = subparsers.add_parser("stage-place", help="Move a diagram prop to x y (0-100)")
    p.add_argument("segment")
    p.add_argument("item")
    p.add_argument("x", type=float)
    p.add_argument("y", type=float)
    p.set_defaults(func=cmd_stage_place)

    p = subparsers.add_parser("stage-remove", help="Remove a prop from a diagram")
    p.add_argument("segment")
    p.add_argument("item")
    p.set_defaults(func=cmd_stage_remove)

    return parser


def main(argv=None):
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = "DEBUG" if args.verbose else get_settings().settings.general.log_level
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if not args.command:
        parser.print_help()
        return

    session = _open_session(args)
    try:
        args.func(session, args)
    except RunSheetError as e:
        print(e.user_message, file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
