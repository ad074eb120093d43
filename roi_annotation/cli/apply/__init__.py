from gettext import gettext as _
from pathlib import Path

COMMAND_DESCRIPTION = _(
    "Replay editor commands (JSON lines) on an image and print the results"
)


def command(subparser):
    subparser.add_argument("image", type=Path, help=_("Image to annotate"))
    subparser.add_argument(
        "commands",
        type=Path,
        help=_("File with one JSON command per line, '-' for stdin"),
    )
    subparser.add_argument(
        "--save",
        action="store_true",
        help=_("Save the ROIs next to the image when done"),
    )
    subparser.add_argument(
        "--width", type=int, help=_("Image width, read from the image if omitted")
    )
    subparser.add_argument(
        "--height", type=int, help=_("Image height, read from the image if omitted")
    )
    subparser.add_argument(
        "--fresh",
        action="store_true",
        help=_("Ignore ROIs already stored for the image"),
    )
    subparser.add_argument(
        "--max-history",
        dest="max_history",
        type=int,
        help=_("Maximum number of undo steps"),
    )

    def handle(args):
        from .apply import handle as apply_handle

        return apply_handle(args)

    return handle
