#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
FieldGallery: file API CLI

Examples:
  # Every file of project 12, grouped the way the gallery shows them
  python scripts/gallery_query.py list 12

  # Only the videos
  python scripts/gallery_query.py list 12 --type video

  # Upload a photo with a description
  python scripts/gallery_query.py upload 12 ./site.jpg --description "North wall"

  # Delete a file
  python scripts/gallery_query.py delete 345

  # Save annotations from a JSON file (list of annotation objects)
  python scripts/gallery_query.py annotate 345 marks.json --image-url https://cdn/x.png

  # Point at another server
  python scripts/gallery_query.py --api-url http://staging:8000 list 12
"""

import argparse
import json
import mimetypes
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import httpx

from fieldgallery.core.config import SETTINGS
from fieldgallery.core.logging_setup import setup_logging
from fieldgallery.services.gallery import MediaGallery
from fieldgallery.services.gateway import FileGateway
from fieldgallery.services.notify import ERROR, RecordingNotifier
from fieldgallery.services.query_cache import QueryCache
from fieldgallery.utils.http import abs_url


def make_client(api_url: str) -> httpx.Client:
    return httpx.Client(base_url=api_url, timeout=SETTINGS.timeout)


@contextmanager
def open_gallery(args, project_id: Optional[int] = None) -> Iterator[MediaGallery]:
    """Gallery on a fresh HTTP client; the client is closed on exit."""
    client = make_client(args.api_url)
    try:
        yield MediaGallery(FileGateway(client), RecordingNotifier(), QueryCache(),
                           project_id=project_id, view_mode=SETTINGS.default_view)
    finally:
        client.close()


def report(gallery: MediaGallery) -> int:
    """Print toasts; exit status 1 if any of them was an error."""
    rc = 0
    for t in gallery.notifier.toasts:
        stream = sys.stderr if t.kind == ERROR else sys.stdout
        print(f"{t.title}: {t.message}", file=stream)
        if t.kind == ERROR:
            rc = 1
    return rc


# --- subcommands ---
def cmd_list(args) -> int:
    with open_gallery(args, project_id=args.project_id) as g:
        if not g.load():
            return report(g)
        groups = {"image": g.images, "video": g.videos, "document": g.documents}
        wanted = [args.type] if args.type else list(groups)
        for name in wanted:
            rows = groups[name]
            print(f"== {name}s ({len(rows)})")
            for f in rows:
                c = g.card(f)
                line = f"{c.id:>6} | {c.title} | {c.size} | {c.date} | {abs_url(args.api_url, c.url)}"
                if c.annotated:
                    line += " | annotated"
                if c.uploader:
                    line += f" | by {c.uploader}"
                print(line)
            if not rows:
                print("(no rows)")
        counts = g.classified.counts()
        print(f"total {counts['total']}: {counts['images']} images, "
              f"{counts['videos']} videos, {counts['documents']} documents")
    return 0


def cmd_delete(args) -> int:
    with open_gallery(args) as g:
        g.delete_file(args.file_id)
        return report(g)


def cmd_upload(args) -> int:
    path = Path(args.path).expanduser()
    if not path.is_file():
        print(f"not a file: {path}", file=sys.stderr)
        return 2
    ctype = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    with open_gallery(args, project_id=args.project_id) as g:
        created = g.upload_photo(path.read_bytes(), path.name, args.description or "", ctype)
        rc = report(g)
    if created is not None:
        print(f"created file {created.id} ({created.file_type})")
    return rc


def cmd_annotate(args) -> int:
    path = Path(args.json_file).expanduser()
    if not path.is_file():
        print(f"not a file: {path}", file=sys.stderr)
        return 2
    try:
        annotations: List[dict] = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        print(f"invalid JSON in {path}: {e}", file=sys.stderr)
        return 2
    if not isinstance(annotations, list):
        print("annotation file must hold a JSON list", file=sys.stderr)
        return 2
    with open_gallery(args) as g:
        g.save_annotations(annotations, args.image_url or "", file_id=args.file_id)
        return report(g)


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Query and change gallery files through the file API")
    ap.add_argument("--api-url", default=SETTINGS.api_url, help="file API base URL")
    ap.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    ap.add_argument("-v", "--verbose", action="count", default=0)
    ap.add_argument("-q", "--quiet", action="store_true")
    ap.add_argument("--json-logs", action="store_true", help="JSON lines in the log file")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("list", help="list a project's files")
    p.add_argument("project_id", type=int)
    p.add_argument("--type", choices=["image", "video", "document"])
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("delete", help="delete one file")
    p.add_argument("file_id", type=int)
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("upload", help="upload a photo to a project")
    p.add_argument("project_id", type=int)
    p.add_argument("path")
    p.add_argument("--description", default="")
    p.set_defaults(func=cmd_upload)

    p = sub.add_parser("annotate", help="save annotations for a file")
    p.add_argument("file_id", type=int)
    p.add_argument("json_file")
    p.add_argument("--image-url", default="", help="URL of the rendered annotated image")
    p.set_defaults(func=cmd_annotate)

    args = ap.parse_args(argv)
    # -v/-q win over the configured level
    level = args.log_level or (None if (args.verbose or args.quiet) else SETTINGS.log_level)
    setup_logging(level, SETTINGS.logs_dir, args.json_logs or SETTINGS.json_logs,
                  args.verbose, args.quiet)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
