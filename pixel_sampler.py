import cv2
import numpy as np
from typing import Optional, Tuple

from piwo_errors import ColorSampleMissing

"""
Pixel sampler that turns decoded bitmap frames into packed RGB grids.
Frames come from OpenCV, so channels are in BGR order.
Each pixel becomes a single 24-bit integer (R << 16) | (G << 8) | B.
"""

def pack_rgb(red: int, green: int, blue: int) -> int:
    """Pack three 8-bit channel samples into one 24-bit color value."""
    return ((red & 0xFF) << 16) | ((green & 0xFF) << 8) | (blue & 0xFF)

class PixelSampler:
    def __init__(self, target_size: Tuple[int, int] = (12, 10)):
        """
        Initialize the pixel sampler.

        Args:
            target_size: Tuple of (width, height) of the frames being sampled
        """
        self.target_size = target_size

    @property
    def width(self) -> int:
        return self.target_size[0]

    @property
    def height(self) -> int:
        return self.target_size[1]

    def resample(self, frame: np.ndarray, interpolation: int = cv2.INTER_AREA) -> np.ndarray:
        """Resize a full resolution frame down to the target size."""
        if frame is None:
            raise ColorSampleMissing("Frame has no decoded pixels")
        return cv2.resize(frame, self.target_size, interpolation=interpolation)

    def sample_frame(self, frame: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Read the target_size pixels of a frame into a (height, width) grid of packed colors.

        Args:
            frame: Decoded BGR or BGRA image, already at the target size
            out: Optional scratch grid to reuse; it is overwritten completely
        """
        if frame is None:
            raise ColorSampleMissing("Frame has no decoded pixels")
        if frame.ndim != 3 or frame.shape[2] < 3:
            raise ColorSampleMissing(f"Frame has no RGB samples (shape {frame.shape})")
        if frame.shape[0] < self.height or frame.shape[1] < self.width:
            raise ColorSampleMissing(
                f"Frame is {frame.shape[1]}x{frame.shape[0]}, "
                f"expected at least {self.width}x{self.height}"
            )

        # Alpha, if present, is dropped here
        pixels = frame[:self.height, :self.width, :3]
        self._check_samples(pixels)

        blue = np.asarray(pixels[..., 0]).astype(np.uint32) & 0xFF
        green = np.asarray(pixels[..., 1]).astype(np.uint32) & 0xFF
        red = np.asarray(pixels[..., 2]).astype(np.uint32) & 0xFF
        packed = (red << 16) | (green << 8) | blue

        if out is None:
            return packed
        out[...] = packed
        return out

    def _check_samples(self, pixels: np.ndarray):
        missing = np.zeros(pixels.shape[:2], dtype=bool)
        if np.ma.isMaskedArray(pixels):
            missing |= np.ma.getmaskarray(pixels).any(axis=2)
        if np.issubdtype(pixels.dtype, np.floating):
            missing |= ~np.isfinite(np.ma.getdata(pixels)).all(axis=2)
        if missing.any():
            y, x = np.argwhere(missing)[0]
            raise ColorSampleMissing(f"Pixel ({x}, {y}) has no color sample")
