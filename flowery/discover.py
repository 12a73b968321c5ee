"""
Find icon files on disk and give each one a CSS-friendly name.
"""

import os
import re
from collections import deque

from loguru import logger

from flowery.errors import FloweryError

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".svg")


def is_image_path(path):
    return os.path.splitext(path)[1].lower() in IMAGE_EXTENSIONS


def scan_directory(path, recursive=False):
    """Return the image files below `path`, sorted within each directory.

    Subdirectories are only entered when `recursive` is set. They are
    queued while their parent is listed and all of them are drained
    before returning. Directories that cannot be listed are skipped.
    """
    found = []
    visited = set()
    pending = deque([os.path.abspath(path)])
    while pending:
        current = pending.popleft()
        real = os.path.realpath(current)
        if real in visited:
            continue
        visited.add(real)
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.debug(f"skipping {current}: {e.strerror or e}")
            continue
        for entry in entries:
            if entry.is_dir():
                if recursive:
                    pending.append(entry.path)
            elif is_image_path(entry.name):
                found.append(entry.path)
    return found


def resolve_sources(inputs, recursive=False):
    """Expand the command line inputs into a list of absolute icon paths."""
    inputs = list(inputs) or [os.getcwd()]
    sources = []
    seen = set()
    for input_path in inputs:
        input_path = os.path.abspath(input_path)
        if os.path.isdir(input_path):
            paths = scan_directory(input_path, recursive)
        elif is_image_path(input_path):
            paths = [input_path]
        else:
            logger.debug(f"ignoring {input_path}: not an image or directory")
            continue
        for path in paths:
            if path not in seen:
                seen.add(path)
                sources.append(path)
    return sources


def css_identifier(text):
    name = re.sub(r"[^A-Za-z0-9_-]", "-", text)
    if not name:
        raise FloweryError(f"cannot derive a name from {text!r}")
    return name


def icon_name(path):
    return css_identifier(os.path.splitext(os.path.basename(path))[0])


def class_name(prefix, name):
    cls = prefix + name
    # class selectors cannot start with a digit, "-digit", "--" or be a bare "-"
    if re.match(r"\d|-\d|--|-$", cls):
        cls = "_" + cls
    return cls


def unique_names(entries, prefix=""):
    """Suffix names whose CSS class is taken with -2, -3, ... keeping the first one as is."""
    named = []
    taken = set()
    for name, path in entries:
        unique, n = name, 1
        while class_name(prefix, unique) in taken:
            n += 1
            unique = f"{name}-{n}"
        if unique != name:
            logger.warning(f"duplicate icon name {name!r}, using {unique!r} for {path}")
        taken.add(class_name(prefix, unique))
        named.append((unique, path))
    return named


def name_icons(paths, prefix=""):
    return unique_names(((icon_name(path), path) for path in paths), prefix)


def read_manifest(lines, base_dir=None):
    """Parse a manifest of `name path` lines with `$alias value` definitions.

    Returns a list of (name, path) pairs in file order. Relative paths are
    resolved against `base_dir` when it is given.
    """
    icons = []
    aliases = {}

    def expand(match):
        try:
            return aliases[match.group(1)]
        except KeyError:
            raise FloweryError(f"undefined alias ${match.group(1)}") from None

    for lineno, line in enumerate(lines, 1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split(None, 1)
        if len(parts) != 2:
            raise FloweryError(f"manifest line {lineno}: expected two fields, got {line!r}")
        if line.startswith("$"):
            alias, value = parts
            aliases[alias[1:]] = value
        else:
            name, path = parts
            path = re.sub(r"\$(\w+)", expand, path)
            if base_dir is not None:
                path = os.path.join(base_dir, path)
            icons.append((css_identifier(name), os.path.abspath(path)))
    return icons


def load_manifest(path):
    with open(path) as f:
        return read_manifest(f, base_dir=os.path.dirname(os.path.abspath(path)))
