"""
BlurHash encoder.

Produces the compact placeholder string clients render while the real image
loads. Components are cosine-basis projections over a downsampled copy of
the image: one DC term (average colour) plus up to 80 AC terms.
"""
import io
import math
from typing import Tuple

import numpy as np
from PIL import Image

ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz#$%*+,-.:;=?@[]^_{|}~"
WORKING_SIZE = 64


def encode_base83(value: int, length: int) -> str:
    result = ""
    for i in range(1, length + 1):
        digit = (value // (83 ** (length - i))) % 83
        result += ALPHABET[digit]
    return result


def srgb_to_linear(values: np.ndarray) -> np.ndarray:
    v = values / 255.0
    return np.where(v <= 0.04045, v / 12.92, ((v + 0.055) / 1.055) ** 2.4)


def linear_to_srgb(value: float) -> int:
    v = max(0.0, min(1.0, value))
    if v <= 0.0031308:
        return int(v * 12.92 * 255 + 0.5)
    return int((1.055 * (v ** (1 / 2.4)) - 0.055) * 255 + 0.5)


def sign_pow(value: float, exponent: float) -> float:
    return math.copysign(abs(value) ** exponent, value)


def components_for(width: int, height: int) -> Tuple[int, int]:
    """Pick a component grid that follows the image's aspect ratio"""
    aspect = width / height if height else 1.0
    if aspect > 1.5:
        return 5, 3
    if aspect < 0.67:
        return 3, 5
    return 4, 3


def _encode_dc(rgb) -> int:
    return (linear_to_srgb(rgb[0]) << 16) + (linear_to_srgb(rgb[1]) << 8) + linear_to_srgb(rgb[2])


def _encode_ac(rgb, maximum_value: float) -> int:
    quantised = [
        int(max(0, min(18, math.floor(sign_pow(channel / maximum_value, 0.5) * 9 + 9.5))))
        for channel in rgb
    ]
    return quantised[0] * 19 * 19 + quantised[1] * 19 + quantised[2]


def encode(image: Image.Image, x_components: int = 4, y_components: int = 3) -> str:
    if not (1 <= x_components <= 9 and 1 <= y_components <= 9):
        raise ValueError("BlurHash components must be between 1 and 9")
    if x_components * y_components > 81:
        raise ValueError("BlurHash supports at most 81 components")

    working = image.convert("RGB")
    if working.width > WORKING_SIZE or working.height > WORKING_SIZE:
        working = working.copy()
        working.thumbnail((WORKING_SIZE, WORKING_SIZE), Image.Resampling.LANCZOS)

    pixels = srgb_to_linear(np.asarray(working, dtype=np.float64))
    height, width = pixels.shape[:2]
    xs = np.arange(width, dtype=np.float64)
    ys = np.arange(height, dtype=np.float64)

    factors = []
    for j in range(y_components):
        for i in range(x_components):
            basis = np.outer(np.cos(math.pi * j * ys / height), np.cos(math.pi * i * xs / width))
            normalisation = 1.0 if i == 0 and j == 0 else 2.0
            scale = normalisation / (width * height)
            factor = (pixels * basis[:, :, None]).sum(axis=(0, 1)) * scale
            factors.append([float(c) for c in factor])

    dc, ac = factors[0], factors[1:]
    size_flag = (x_components - 1) + (y_components - 1) * 9
    result = encode_base83(size_flag, 1)

    if ac:
        actual_maximum = max(abs(c) for factor in ac for c in factor)
        quantised_maximum = int(max(0, min(82, math.floor(actual_maximum * 166 - 0.5))))
        maximum_value = (quantised_maximum + 1) / 166
        result += encode_base83(quantised_maximum, 1)
    else:
        maximum_value = 1.0
        result += encode_base83(0, 1)

    result += encode_base83(_encode_dc(dc), 4)
    for factor in ac:
        result += encode_base83(_encode_ac(factor, maximum_value), 2)

    return result


def blur_hash_for_bytes(data: bytes) -> str:
    """Decode image bytes and hash them with an aspect-appropriate grid"""
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        x_components, y_components = components_for(img.width, img.height)
        return encode(img, x_components, y_components)
