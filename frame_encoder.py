import numpy as np
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Union

"""
Text encoding of the PIWO7 pixel animation format.

A document is a header followed by one block per frame:

    PIWO_7_FILE
    <width> <height>
    <blank>
    50
    <width values> (each followed by a space), repeated <height> times
    <blank>

Blocks are joined with LF; writing through a text-mode file gives the platform newline.
"""

PIWO_MAGIC = "PIWO_7_FILE"
FRAME_MARKER = "50"
MAX_COLOR = 0xFFFFFF

@dataclass
class PiwoDocument:
    width: int
    height: int
    frames: np.ndarray  # (n_frames, height, width) uint32

    @property
    def frame_count(self) -> int:
        return len(self.frames)

def encode_header(width: int, height: int) -> str:
    return f"{PIWO_MAGIC}\n{width} {height}\n\n"

def encode_frame(grid: np.ndarray) -> str:
    """Serialize one (height, width) grid of packed colors into a frame block."""
    lines = [FRAME_MARKER]
    for row in grid:
        # Trailing space after the last value is part of the format
        lines.append("".join(f"{int(value)} " for value in row))
    lines.append("")
    return "\n".join(lines) + "\n"

def encode_document(width: int, height: int, grids: Iterable[np.ndarray]) -> str:
    parts = [encode_header(width, height)]
    parts.extend(encode_frame(grid) for grid in grids)
    return "".join(parts)

def decode_piwo(text: str) -> PiwoDocument:
    """Parse a PIWO7 document back into its frames."""
    lines = text.splitlines()
    if len(lines) < 3 or lines[0] != PIWO_MAGIC:
        raise ValueError(f"Not a PIWO7 document (expected {PIWO_MAGIC!r} header)")

    try:
        width, height = (int(v) for v in lines[1].split())
    except ValueError:
        raise ValueError(f"Invalid dimensions line: {lines[1]!r}") from None
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid dimensions: {width}x{height}")
    if lines[2] != "":
        raise ValueError("Missing blank line after header")

    body = lines[3:]
    block_len = height + 2
    if len(body) % block_len != 0:
        raise ValueError(f"Truncated frame block: {len(body)} lines is not a multiple of {block_len}")

    frames: List[np.ndarray] = []
    for start in range(0, len(body), block_len):
        number = start // block_len + 1
        block = body[start:start + block_len]
        if block[0] != FRAME_MARKER:
            raise ValueError(f"Frame {number}: expected marker {FRAME_MARKER!r}, got {block[0]!r}")
        if block[-1] != "":
            raise ValueError(f"Frame {number}: missing blank separator line")

        grid = np.zeros((height, width), dtype=np.uint32)
        for y, line in enumerate(block[1:-1]):
            values = [int(v) for v in line.split()]
            if len(values) != width:
                raise ValueError(f"Frame {number}, row {y}: expected {width} values, got {len(values)}")
            if any(v < 0 or v > MAX_COLOR for v in values):
                raise ValueError(f"Frame {number}, row {y}: color out of range")
            grid[y] = values
        frames.append(grid)

    if frames:
        stacked = np.stack(frames)
    else:
        stacked = np.zeros((0, height, width), dtype=np.uint32)
    return PiwoDocument(width=width, height=height, frames=stacked)

def read_piwo(path: Union[str, Path]) -> PiwoDocument:
    with open(path, "r") as f:
        return decode_piwo(f.read())

def unpack_rgb(grid: np.ndarray) -> np.ndarray:
    """Turn a grid of packed colors back into a BGR uint8 image."""
    grid = np.asarray(grid, dtype=np.uint32)
    image = np.empty(grid.shape + (3,), dtype=np.uint8)
    image[..., 0] = grid & 0xFF
    image[..., 1] = (grid >> 8) & 0xFF
    image[..., 2] = (grid >> 16) & 0xFF
    return image
