"""Shared fixtures: real image and PDF inputs generated in memory."""

import io

import pikepdf
import pytest
from PIL import Image


def _image_bytes(fmt: str, size=(120, 80), mode="RGB", color=(200, 30, 60)) -> bytes:
    img = Image.new(mode, size, color)
    # A gradient keeps lossy encoders from collapsing the image to a few bytes.
    for x in range(size[0]):
        for y in range(0, size[1], 4):
            value = (x * 2 + y) % 256
            img.putpixel((x, y), (value, 255 - value, value // 2) + ((128,) if mode == "RGBA" else ()))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    return _image_bytes("PNG")


@pytest.fixture
def rgba_png_bytes():
    return _image_bytes("PNG", mode="RGBA", color=(10, 20, 30, 0))


@pytest.fixture
def jpeg_bytes():
    return _image_bytes("JPEG")


@pytest.fixture
def pdf_bytes():
    pdf = pikepdf.new()
    pdf.add_blank_page(page_size=(612, 792))
    pdf.add_blank_page(page_size=(612, 792))
    pdf.docinfo["/Title"] = "Quarterly Report"
    pdf.docinfo["/Author"] = "Finance Team"
    pdf.docinfo["/Creator"] = "Report Builder"
    pdf.docinfo["/Producer"] = "Some PDF Library 1.0"
    pdf.docinfo["/Subject"] = "Numbers"
    buf = io.BytesIO()
    pdf.save(buf)
    return buf.getvalue()


@pytest.fixture
def text_bytes():
    return b"The quick brown fox jumps over the lazy dog.\n" * 200
