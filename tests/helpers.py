"""Test data builders."""

from __future__ import annotations

import io

from PIL import Image


def make_jpeg(width: int = 16, height: int = 16) -> bytes:
    """Encode a small solid-color JPEG."""
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color=(180, 40, 40)).save(buf, format="JPEG")
    return buf.getvalue()


def make_png(width: int = 16, height: int = 16) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color=(40, 40, 180)).save(buf, format="PNG")
    return buf.getvalue()


def pad_to(data: bytes, size: int) -> bytes:
    """Append trailing zero bytes after the image so the file is exactly ``size`` bytes."""
    return data + b"\x00" * (size - len(data))


def customer_data(**overrides) -> dict:
    data = {
        "lastname": "Doe",
        "firstname": "John",
        "email": "john@x.com",
        "city": "NY",
        "country": "Canada",
    }
    data.update(overrides)
    return data


def make_mpo(width: int = 16, height: int = 16) -> bytes:
    """Encode a two-frame multi-picture JPEG, as phone cameras write them."""
    buf = io.BytesIO()
    first = Image.new("RGB", (width, height), color=(180, 40, 40))
    second = Image.new("RGB", (width, height), color=(40, 180, 40))
    first.save(buf, format="MPO", save_all=True, append_images=[second])
    return buf.getvalue()
