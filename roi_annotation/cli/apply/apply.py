"""
Headless host: drives an annotation session from a JSON-lines stream.

Each input line is one inbound command, e.g.
``{"type": "addPoint", "x": 0.1, "y": 0.2}``. Every outbound message
is printed as one JSON line.
"""

import json
import logging
import sys
from gettext import gettext as _
from typing import IO, Iterable, Iterator

from roi_annotation.core.annotation import AnnotationSession, EventType, ImageDimensions
from roi_annotation.core.annotation.messages import error_message
from roi_annotation.storage import ROIStorage, ROIStorageError
from roi_annotation.utils.config import load_cfg

logger = logging.getLogger(__name__)


def read_commands(lines: Iterable[str]) -> Iterator[dict]:
    """Decode JSON lines, yielding an error marker for undecodable ones."""
    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            yield json.loads(line)
        except json.JSONDecodeError as e:
            yield {
                "type": None,
                "_decode_error": _("Line {lineno}: invalid JSON ({error})").format(
                    lineno=lineno, error=e.msg
                ),
            }


def run(session: AnnotationSession, lines: Iterable[str], out: IO[str]) -> int:
    """
    Feed commands into an initialized session.

    Returns:
        Number of commands that failed
    """
    failures = 0

    def on_error(event):
        nonlocal failures
        failures += 1

    session.events.on(EventType.ERROR, on_error)
    try:
        for message in read_commands(lines):
            if isinstance(message, dict) and "_decode_error" in message:
                failures += 1
                print(json.dumps(error_message(message["_decode_error"])), file=out)
                continue
            session.handle_message(message)
    finally:
        session.events.off(EventType.ERROR, on_error)
    return failures


def handle(args):
    cfg = load_cfg()
    if args.max_history is not None:
        cfg.max_history_size = args.max_history

    def post(message):
        print(json.dumps(message), file=sys.stdout)

    session = AnnotationSession(
        cfg=cfg,
        storage=ROIStorage(supported_version=cfg.roi_version),
        post_message=post,
        export_sink=lambda text: post({"type": "exported", "data": json.loads(text)}),
    )

    dimensions = None
    if args.width is not None and args.height is not None:
        dimensions = ImageDimensions(width=args.width, height=args.height)
    try:
        session.initialize(args.image, dimensions, load_existing=not args.fresh)
    except ROIStorageError as e:
        post(error_message(str(e)))
        return 1

    if str(args.commands) == "-":
        failures = run(session, sys.stdin, sys.stdout)
    else:
        with args.commands.open("r", encoding="utf-8") as f:
            failures = run(session, f, sys.stdout)

    if args.save:
        failures += run(session, [json.dumps({"type": "save"})], sys.stdout)

    if failures:
        logger.warning(_("{count} commands failed").format(count=failures))
        return 1
    return 0
