from gettext import gettext as _
from pathlib import Path

COMMAND_DESCRIPTION = _("Summarize the ROIs stored for an image")


def command(subparser):
    subparser.add_argument("image", type=Path, help=_("Annotated image"))

    def handle(args):
        from .info import handle as info_handle

        return info_handle(args)

    return handle
