import argparse
import os
import re
import sys

from loguru import logger

from flowery.discover import icon_name, load_manifest, resolve_sources, unique_names
from flowery.errors import FloweryError
from flowery.layout import ALGORITHMS, pack
from flowery.sheet import compose, encode_png, load_icon, write_bytes
from flowery.stylesheet import image_url, render

DEFAULT_IMG = "./sprite.png"
DEFAULT_CSS = "./sprite.css"

description = """
Combine a collection of icons into a sprite sheet and the CSS classes that
position each icon within it.
"""

epilog = """
examples:
  flowery sprites/
  flowery sprites/ --css dist/sprite.css --img dist/sprite.png
  flowery sprites/ --ratio .5
"""


def positive_float(value):
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if not number > 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {value!r}")
    return number


def non_negative_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value!r}")
    return number


def class_prefix(value):
    if not re.fullmatch(r"[A-Za-z0-9_-]*", value):
        raise argparse.ArgumentTypeError(f"invalid class prefix: {value!r}")
    return value


parser = argparse.ArgumentParser(
    prog="flowery",
    description=description,
    epilog=epilog,
    formatter_class=argparse.RawDescriptionHelpFormatter,
    conflict_handler="resolve",
)
parser.add_argument("inputs", metavar="PATH", nargs="*",
                    help="icon files or directories (default: current directory)")
parser.add_argument("-c", "--css", metavar="PATH", default=DEFAULT_CSS,
                    help="output css")
parser.add_argument("-i", "--img", metavar="PATH", default=DEFAULT_IMG,
                    help="output image")
parser.add_argument("-r", "--ratio", type=positive_float, default=1.0,
                    help="css position resize ratio")
parser.add_argument("-R", "--recursive", action="store_true",
                    help="read images in subdirectories too")
parser.add_argument("-v", "--verbose", action="store_true",
                    help="log error messages")
parser.add_argument("-p", "--padding", type=non_negative_int, default=0,
                    help="pixels between icons")
parser.add_argument("-a", "--algorithm", choices=ALGORITHMS, default="binary-tree",
                    help="layout of the icons on the sheet")
parser.add_argument("--prefix", type=class_prefix, default="icon-",
                    help="css class prefix for each icon")
parser.add_argument("-m", "--manifest", metavar="FILE",
                    help="file of 'name path' lines naming the icons explicitly")
parser.add_argument("--no-compress", action="store_true",
                    help="write the sheet without optimizing it")


def collect_icons(args):
    """Return the (name, path) pairs to put on the sheet."""
    entries = []
    if args.manifest:
        entries.extend(load_manifest(args.manifest))
    if args.inputs or not args.manifest:
        output = os.path.abspath(args.img)
        entries.extend(
            (icon_name(path), path)
            for path in resolve_sources(args.inputs, args.recursive)
            if path != output
        )
    return unique_names(entries, prefix=args.prefix)


def run(args):
    icons = collect_icons(args)
    if not icons:
        raise FloweryError("no icons found")
    logger.info(f"Found {len(icons)} icons")

    images = {}
    for name, path in icons:
        logger.debug(f"{name}: {path}")
        images[name] = load_icon(path)

    layout = pack(
        [(name, path, *images[name].size) for name, path in icons],
        padding=args.padding,
        algorithm=args.algorithm,
    )
    css = render(layout, image_url(args.img, args.css), ratio=args.ratio, prefix=args.prefix)
    data = encode_png(compose(layout, images), compress=not args.no_compress)

    write_bytes(args.img, data)
    logger.info(f"Wrote {args.img} ({layout.width}x{layout.height}, {len(data)} bytes)")
    write_bytes(args.css, css.encode("utf-8"))
    logger.info(f"Wrote {args.css}")
    return layout


def main(argv=None):
    args = parser.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, format="{message}", level="DEBUG" if args.verbose else "INFO")

    try:
        run(args)
    except (FloweryError, OSError) as e:
        logger.error(f"error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
