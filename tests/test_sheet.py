import io
import sys
import types
from xml.etree.ElementTree import ParseError

import pytest
from PIL import Image

from flowery.errors import FloweryError
from flowery.layout import Layout, Placement
from flowery.sheet import compose, encode_png, load_icon, write_bytes

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 128)


@pytest.fixture
def no_optipng(monkeypatch):
    monkeypatch.setattr("flowery.sheet.shutil.which", lambda name: None)


def test_load_icon_converts_to_rgba(tmp_path, make_icon):
    path = make_icon(tmp_path / "rgb.jpg", mode="RGB", color=(0, 255, 0, 255))
    image = load_icon(path)
    assert image.mode == "RGBA"
    assert image.size == (16, 16)


def test_load_icon_rejects_garbage(tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"definitely not a png")
    with pytest.raises(FloweryError, match="broken.png"):
        load_icon(str(path))


def test_load_icon_missing_file(tmp_path):
    with pytest.raises(FloweryError, match="missing.png"):
        load_icon(str(tmp_path / "missing.png"))


def test_compose():
    layout = Layout(30, 10, [
        Placement("red", "/r.png", 0, 0, 10, 10),
        Placement("blue", "/b.png", 20, 2, 10, 8),
    ])
    images = {
        "red": Image.new("RGBA", (10, 10), RED),
        "blue": Image.new("RGBA", (10, 8), BLUE),
    }
    sheet = compose(layout, images)
    assert sheet.size == (30, 10)
    assert sheet.getpixel((0, 0)) == RED
    assert sheet.getpixel((9, 9)) == RED
    assert sheet.getpixel((15, 5)) == (0, 0, 0, 0)
    assert sheet.getpixel((20, 2)) == BLUE
    assert sheet.getpixel((20, 1)) == (0, 0, 0, 0)


@pytest.mark.parametrize("compress", [True, False])
def test_encode_png(compress, no_optipng):
    image = Image.new("RGBA", (12, 6), BLUE)
    data = encode_png(image, compress=compress)
    assert data.startswith(b"\x89PNG\r\n\x1a\n")
    with Image.open(io.BytesIO(data)) as decoded:
        assert decoded.size == (12, 6)
        assert decoded.convert("RGBA").getpixel((5, 3)) == BLUE


def test_encode_png_keeps_smaller_optipng_output(monkeypatch):
    calls = []

    def fake_run(cmd, capture_output):
        calls.append(cmd)
        with open(cmd[-1], "wb") as f:
            f.write(b"tiny")
        return type("Result", (), {"returncode": 0, "stderr": b""})()

    monkeypatch.setattr("flowery.sheet.shutil.which", lambda name: "/usr/bin/optipng")
    monkeypatch.setattr("flowery.sheet.subprocess.run", fake_run)
    assert encode_png(Image.new("RGBA", (4, 4), RED)) == b"tiny"
    assert calls[0][0] == "/usr/bin/optipng"


def test_encode_png_ignores_failed_optipng(monkeypatch):
    def fake_run(cmd, capture_output):
        return type("Result", (), {"returncode": 1, "stderr": b"boom"})()

    monkeypatch.setattr("flowery.sheet.shutil.which", lambda name: "/usr/bin/optipng")
    monkeypatch.setattr("flowery.sheet.subprocess.run", fake_run)
    assert encode_png(Image.new("RGBA", (4, 4), RED)).startswith(b"\x89PNG")


def test_encode_png_without_compression_skips_optipng(monkeypatch):
    monkeypatch.setattr("flowery.sheet.shutil.which", lambda name: pytest.fail("optipng looked up"))
    encode_png(Image.new("RGBA", (4, 4), RED), compress=False)


def test_write_bytes_creates_directories(tmp_path):
    path = tmp_path / "dist" / "img" / "sprite.png"
    write_bytes(str(path), b"data")
    assert path.read_bytes() == b"data"


@pytest.fixture
def fake_cairosvg(monkeypatch):
    module = types.ModuleType("cairosvg")
    monkeypatch.setitem(sys.modules, "cairosvg", module)
    return module


def test_load_icon_rasterizes_svg(tmp_path, fake_cairosvg):
    path = tmp_path / "logo.svg"
    path.write_text('<svg xmlns="http://www.w3.org/2000/svg" width="6" height="4"/>')

    def svg2png(url):
        assert url == str(path)
        buf = io.BytesIO()
        Image.new("RGBA", (6, 4), BLUE).save(buf, "PNG")
        return buf.getvalue()

    fake_cairosvg.svg2png = svg2png
    image = load_icon(str(path))
    assert image.mode == "RGBA"
    assert image.size == (6, 4)
    assert image.getpixel((0, 0)) == BLUE


def test_load_icon_rejects_malformed_svg(tmp_path, fake_cairosvg):
    path = tmp_path / "broken.svg"
    path.write_text("<svg")

    def svg2png(url):
        raise ParseError("unclosed token: line 1, column 0")

    fake_cairosvg.svg2png = svg2png
    with pytest.raises(FloweryError, match="broken.svg"):
        load_icon(str(path))
