"""
Raster side of the sprite: loading icons, pasting them onto the sheet and
encoding the result as a (compressed) PNG.
"""

import io
import os
import shutil
import subprocess
import tempfile

from loguru import logger
from PIL import Image

from flowery.errors import FloweryError

OPTIPNG_LEVEL = "-o2"


def _rasterize_svg(path):
    # cairosvg needs the native cairo library, only load it for SVG input.
    import cairosvg

    return Image.open(io.BytesIO(cairosvg.svg2png(url=path)))


def load_icon(path):
    # a malformed SVG raises xml.etree.ElementTree.ParseError, a SyntaxError
    try:
        if path.lower().endswith(".svg"):
            image = _rasterize_svg(path)
        else:
            image = Image.open(path)
        with image:
            return image.convert("RGBA")
    except (OSError, ValueError, SyntaxError) as e:
        raise FloweryError(f"cannot read image {path}: {e}") from e


def compose(layout, images):
    """Paste each image (keyed by placement name) onto a transparent sheet."""
    sheet = Image.new("RGBA", (layout.width, layout.height), (0, 0, 0, 0))
    for p in layout.placements:
        sheet.paste(images[p.name], (p.x, p.y))
    return sheet


def _optipng(data):
    optipng = shutil.which("optipng")
    if not optipng:
        logger.debug("optipng not found on PATH, keeping Pillow output")
        return data
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "sprite.png")
        with open(path, "wb") as f:
            f.write(data)
        res = subprocess.run([optipng, OPTIPNG_LEVEL, "-quiet", path], capture_output=True)
        if res.returncode != 0:
            logger.debug(f"optipng failed: {res.stderr.decode(errors='replace').strip()}")
            return data
        with open(path, "rb") as f:
            crushed = f.read()
    logger.debug(f"optipng: {len(data)} -> {len(crushed)} bytes")
    return crushed if len(crushed) < len(data) else data


def encode_png(image, compress=True):
    buf = io.BytesIO()
    image.save(buf, "PNG", optimize=compress)
    data = buf.getvalue()
    if compress:
        data = _optipng(data)
    return data


def write_bytes(path, data):
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)
