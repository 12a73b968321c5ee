import os

import pytest
from PIL import Image


@pytest.fixture
def make_icon():
    """Write a solid-colour icon and return its path."""

    def make(path, size=(16, 16), color=(255, 0, 0, 255), mode="RGBA"):
        os.makedirs(os.path.dirname(str(path)), exist_ok=True)
        image = Image.new(mode, size, color if mode == "RGBA" else color[: len(mode)])
        image.save(str(path))
        return str(path)

    return make
