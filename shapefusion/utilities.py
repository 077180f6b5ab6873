"""Image helpers: palette rendering, thumbnails and colour metrics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Tuple

Colour16 = Tuple[int, int, int]

_RED = b"\xff\x00\x00"
_WHITE = b"\xff\xff\xff"


@dataclass
class RgbImage:
    """A packed 8-bit RGB image, row by row."""

    width: int
    height: int
    data: bytearray = field(default_factory=bytearray)

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("image dimensions must not be negative")
        expected = self.width * self.height * 3
        if not self.data:
            self.data = bytearray(expected)
        elif len(self.data) != expected:
            raise ValueError(
                f"image data holds {len(self.data)} bytes, expected {expected}"
            )
        else:
            self.data = bytearray(self.data)

    def pixel(self, x: int, y: int) -> Tuple[int, int, int]:
        """Return the (red, green, blue) value at column x, row y."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height}")
        start = (y * self.width + x) * 3
        r, g, b = self.data[start:start + 3]
        return r, g, b


def shapes_bitmap_to_image(
    pixels: bytes,
    width: int,
    height: int,
    color_table: Sequence[Colour16],
    transparent: bool,
    white_transparency: bool = False,
) -> RgbImage:
    """Render 8-bit indexed pixels through a table of 16-bit (r, g, b) colours.

    With both transparent and white_transparency set, index 0 renders white
    instead of the chroma-key colour.
    """
    count = width * height
    if len(pixels) < count:
        raise ValueError(f"bitmap holds {len(pixels)} pixels, expected {count}")
    colours = len(color_table)
    out = bytearray()
    for value in bytes(pixels[:count]):
        if value == 0 and transparent and white_transparency:
            out += _WHITE
        elif value < colours:
            r, g, b = color_table[value]
            out += bytes(((r >> 8) & 0xFF, (g >> 8) & 0xFF, (b >> 8) & 0xFF))
        else:
            raise ValueError(
                f"pixel value {value} with just {colours} colors per table"
            )
    return RgbImage(width, height, out)


def _average_scale(image: RgbImage, new_w: int, new_h: int) -> RgbImage:
    w, h = image.width, image.height
    cells = new_w * new_h
    sums = [0] * (cells * 3)
    counts = [0] * cells
    src = image.data
    for y in range(h):
        row = (y * new_h // h) * new_w
        for x in range(w):
            cell = x * new_w // w + row
            s = (y * w + x) * 3
            d = cell * 3
            sums[d] += src[s]
            sums[d + 1] += src[s + 1]
            sums[d + 2] += src[s + 2]
            counts[cell] += 1
    out = bytearray(cells * 3)
    for cell, count in enumerate(counts):
        if count:
            d = cell * 3
            out[d:d + 3] = bytes(total // count for total in sums[d:d + 3])
    return RgbImage(new_w, new_h, out)


def _nearest_scale(image: RgbImage, new_w: int, new_h: int) -> RgbImage:
    w, h = image.width, image.height
    src = image.data
    out = bytearray()
    for y in range(new_h):
        row = (y * h // new_h) * w
        for x in range(new_w):
            s = (row + x * w // new_w) * 3
            out += src[s:s + 3]
    return RgbImage(new_w, new_h, out)


def image_thumbnail(image: RgbImage, tn_size: int, filtering: bool = True) -> RgbImage:
    """Scale an image down so its larger side is tn_size, keeping the aspect ratio.

    Images already small enough are returned as a copy. With filtering, each
    destination pixel is the average of the source pixels that land on it;
    without it, nearest-neighbour sampling is used.
    """
    w, h = image.width, image.height
    if w <= tn_size and h <= tn_size:
        return RgbImage(w, h, bytearray(image.data))
    if w > h:
        new_w = tn_size
        new_h = max(new_w * h // w, 1)
    else:
        new_h = tn_size
        new_w = max(new_h * w // h, 1)
    if filtering:
        return _average_scale(image, new_w, new_h)
    return _nearest_scale(image, new_w, new_h)


def bad_thumbnail(tn_size: int) -> RgbImage:
    """Build the square "bad item" thumbnail: a thick red X on white."""
    out = bytearray()
    for y in range(tn_size):
        for x in range(tn_size):
            on_cross = y in (
                x,
                x - 1,
                x + 1,
                tn_size - x - 1,
                tn_size - x - 2,
                tn_size - x,
            )
            out += _RED if on_cross else _WHITE
    return RgbImage(tn_size, tn_size, out)


def colour_distance(
    r1: float, g1: float, b1: float, r2: float, g2: float, b2: float
) -> float:
    """Squared perceptual distance between two RGB colours in [0, 1]."""
    r_mean = (r1 + r2) / 2.0
    delta_r = r1 - r2
    delta_g = g1 - g2
    delta_b = b1 - b2
    return (
        (2.0 + r_mean) * delta_r * delta_r
        + 4.0 * delta_g * delta_g
        + (2.0 + 1.0 - r_mean) * delta_b * delta_b
    )