"""
Placement of icons on the sprite sheet.

`binary-tree` hands the rectangles to rectpack's MaxRects packer; the two
stacking algorithms line the icons up in input order.
"""

import math
from dataclasses import dataclass, field

from loguru import logger
from rectpack import MaxRectsBssf, PackingBin, PackingMode, newPacker

from flowery.errors import FloweryError

ALGORITHMS = ("binary-tree", "top-down", "left-right")


@dataclass(frozen=True)
class Placement:
    name: str
    path: str
    x: int
    y: int
    width: int
    height: int


@dataclass
class Layout:
    width: int
    height: int
    placements: list = field(default_factory=list)


def _bounded(placements):
    width = max(p.x + p.width for p in placements)
    height = max(p.y + p.height for p in placements)
    return Layout(width, height, placements)


def _stack(sizes, padding, vertical):
    placements = []
    offset = 0
    for name, path, w, h in sizes:
        if vertical:
            placements.append(Placement(name, path, 0, offset, w, h))
            offset += h + padding
        else:
            placements.append(Placement(name, path, offset, 0, w, h))
            offset += w + padding
    return placements


def _binary_tree(sizes, padding):
    padded = [(w + padding, h + padding) for _, _, w, h in sizes]
    total_area = sum(w * h for w, h in padded)
    side = int(math.sqrt(total_area)) + 1
    width = max(side, max(w for w, _ in padded))
    height = max(side, max(h for _, h in padded))

    while True:
        packer = newPacker(
            mode=PackingMode.Offline,
            bin_algo=PackingBin.BFF,
            pack_algo=MaxRectsBssf,
            rotation=False,
        )
        for rid, (w, h) in enumerate(padded):
            packer.add_rect(w, h, rid=rid)
        packer.add_bin(width, height)
        packer.pack()
        rects = packer.rect_list()
        if len(rects) == len(padded):
            break
        logger.debug(f"{len(rects)}/{len(padded)} icons fit in {width}x{height}, growing")
        if width <= height:
            width *= 2
        else:
            height *= 2

    positions = {rid: (x, y) for _, x, y, _, _, rid in rects}
    placements = []
    for rid, (name, path, w, h) in enumerate(sizes):
        x, y = positions[rid]
        placements.append(Placement(name, path, x, y, w, h))
    return placements


def pack(sizes, padding=0, algorithm="binary-tree"):
    """Lay out `(name, path, width, height)` tuples on a single sheet.

    Icons are kept at least `padding` pixels apart and the returned sheet
    size is the tight bounding box of the placements.
    """
    sizes = list(sizes)
    if not sizes:
        raise FloweryError("no icons to pack")
    if padding < 0:
        raise FloweryError(f"padding must not be negative: {padding}")

    if algorithm == "binary-tree":
        placements = _binary_tree(sizes, padding)
    elif algorithm == "top-down":
        placements = _stack(sizes, padding, vertical=True)
    elif algorithm == "left-right":
        placements = _stack(sizes, padding, vertical=False)
    else:
        raise FloweryError(f"unknown algorithm {algorithm!r}, expected one of {', '.join(ALGORITHMS)}")
    return _bounded(placements)
