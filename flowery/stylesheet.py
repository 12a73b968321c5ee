import logging
import os
import xml.dom
from contextlib import contextmanager

import cssutils
from cssutils.serialize import CSSSerializer

from flowery.discover import class_name
from flowery.errors import FloweryError


@contextmanager
def _serializing():
    """Use two-space indentation and silence cssutils for the duration."""
    # cssutils reports properties outside its profiles (background-size) as warnings.
    log = logging.getLogger("CSSUTILS")
    level = log.level
    previous = cssutils.ser
    serializer = CSSSerializer()
    serializer.prefs.indent = "  "
    serializer.prefs.indentClosingBrace = False
    serializer.prefs.omitLastSemicolon = False
    log.setLevel(logging.CRITICAL)
    cssutils.setSerializer(serializer)
    try:
        yield
    finally:
        cssutils.setSerializer(previous)
        log.setLevel(level)


def _px(value):
    value = round(value, 2)
    if value == int(value):
        value = int(value)
    return f"{value}px"


def scale(layout, ratio):
    """Multiply the sheet size and every placement by `ratio`.

    Returns `(sheet_width, sheet_height, rows)` where rows holds
    `(name, x, y, width, height)` for each icon.
    """
    rows = [
        (
            p.name,
            round(p.x * ratio, 2),
            round(p.y * ratio, 2),
            round(p.width * ratio, 2),
            round(p.height * ratio, 2),
        )
        for p in layout.placements
    ]
    return round(layout.width * ratio, 2), round(layout.height * ratio, 2), rows


def image_url(img_path, css_path):
    css_dir = os.path.dirname(os.path.abspath(css_path))
    return os.path.relpath(os.path.abspath(img_path), css_dir).replace(os.sep, "/")


def render(layout, url, ratio=1, prefix="icon-"):
    sheet_width, sheet_height, rows = scale(layout, ratio)
    with _serializing():
        try:
            sheet = cssutils.css.CSSStyleSheet()

            selectors = ", ".join("." + class_name(prefix, name) for name, *_ in rows)
            base = cssutils.css.CSSStyleRule(selectorText=selectors)
            base.style.setProperty("background-image", f'url("{url}")')
            base.style.setProperty("background-repeat", "no-repeat")
            base.style.setProperty("background-size", f"{_px(sheet_width)} {_px(sheet_height)}")
            sheet.add(base)

            for name, x, y, width, height in rows:
                rule = cssutils.css.CSSStyleRule(selectorText="." + class_name(prefix, name))
                rule.style.setProperty("background-position", f"{_px(-x)} {_px(-y)}")
                rule.style.setProperty("width", _px(width))
                rule.style.setProperty("height", _px(height))
                sheet.add(rule)
        except xml.dom.DOMException as e:
            raise FloweryError(f"cannot render stylesheet: {e}") from e
        return sheet.cssText.decode("utf-8") + "\n"
