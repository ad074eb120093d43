from gettext import gettext as _
from pathlib import Path

COMMAND_DESCRIPTION = _("Export the ROIs of an image as JSON")


def command(subparser):
    subparser.add_argument("image", type=Path, help=_("Annotated image"))
    subparser.add_argument(
        "-o",
        "--output",
        dest="output",
        type=Path,
        help=_("Write to this file instead of stdout"),
    )
    subparser.add_argument(
        "--overwrite",
        action="store_true",
        help=_("Overwrite output file if it exists"),
    )

    def handle(args):
        import sys

        from roi_annotation.storage import ROIStorage, ROIStorageError, roi_path_for
        from roi_annotation.utils.config import load_cfg

        cfg = load_cfg()
        storage = ROIStorage(supported_version=cfg.roi_version)
        try:
            roi_data = storage.load(args.image)
        except ROIStorageError as e:
            print(e, file=sys.stderr)
            return 1
        if roi_data is None:
            print(
                _("No ROI file at {path}").format(path=roi_path_for(args.image)),
                file=sys.stderr,
            )
            return 1

        if args.output is None:
            storage.export(roi_data, sys.stdout.write)
            sys.stdout.write("\n")
            return 0

        if not args.overwrite:
            assert not args.output.exists(), _(
                "Output exists, use --overwrite to ignore this"
            )
        args.output.parent.mkdir(exist_ok=True, parents=True)
        storage.export(roi_data, args.output.write_text)
        return 0

    return handle
