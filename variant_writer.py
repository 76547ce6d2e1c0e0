import os
import cv2
import numpy as np
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from frame_encoder import encode_document
from piwo_errors import ColorSampleMissing, FrameSourceMissing, OutputWriteFailure, PiwoError
from pixel_sampler import PixelSampler

"""
Writes one PIWO7 file per variant.
Frames are numbered from 1 and appended in order; the whole document is
built in memory and written in one go so a file never holds fewer blocks
than the frames it was asked to encode.
"""

FRAME_FILE_PATTERN = "raw-frame-{}.bmp"

ProgressCallback = Callable[[Optional[str], int, int], None]
FrameSource = Callable[[int], np.ndarray]

class BitmapFrameSource:
    def __init__(
        self,
        frames_dir: Union[str, Path],
        first_number: int = 1,
        transform: Optional[Callable[[np.ndarray], np.ndarray]] = None
    ):
        """
        Loads numbered bitmaps written by the frame extractor.

        Args:
            frames_dir: Directory holding raw-frame-<n>.bmp files
            first_number: File number of frame 1 (ffmpeg's -start_number)
            transform: Optional resampling applied to each decoded bitmap
        """
        self.frames_dir = Path(frames_dir)
        self.first_number = first_number
        self.transform = transform

    def path_for(self, index: int) -> Path:
        return self.frames_dir / FRAME_FILE_PATTERN.format(self.first_number + index - 1)

    def __call__(self, index: int) -> np.ndarray:
        path = self.path_for(index)
        if not path.is_file():
            raise FrameSourceMissing(index, path)
        frame = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if frame is None:
            raise ColorSampleMissing(f"Could not decode {path}", frame_index=index)
        if self.transform is not None:
            frame = self.transform(frame)
        return frame

class VariantWriter:
    def __init__(self, target_size: Tuple[int, int] = (12, 10), on_progress: Optional[ProgressCallback] = None):
        """
        Args:
            target_size: Tuple of (width, height) written to the header
            on_progress: Called as on_progress(variant, index, total) after each frame
        """
        self.sampler = PixelSampler(target_size=target_size)
        self.on_progress = on_progress

    @property
    def width(self) -> int:
        return self.sampler.width

    @property
    def height(self) -> int:
        return self.sampler.height

    def render(self, frame_source: FrameSource, total_frames: int, variant: Optional[str] = None) -> str:
        """Encode frames 1..total_frames into a complete PIWO7 document."""
        if total_frames < 0:
            raise ValueError(f"total_frames must be >= 0, got {total_frames}")

        grids = self._sample_frames(frame_source, total_frames, variant)
        return encode_document(self.width, self.height, grids)

    def _sample_frames(self, frame_source: FrameSource, total_frames: int, variant: Optional[str]):
        # Yields the same scratch grid each time; each block is encoded before the next frame is read
        grid = np.zeros((self.height, self.width), dtype=np.uint32)

        for index in range(1, total_frames + 1):
            try:
                frame = frame_source(index)
                self.sampler.sample_frame(frame, out=grid)
            except PiwoError as e:
                if e.variant is None:
                    e.variant = variant
                if e.frame_index is None:
                    e.frame_index = index
                raise
            yield grid

            if self.on_progress is not None:
                self.on_progress(variant, index, total_frames)

    def write(
        self,
        frame_source: FrameSource,
        total_frames: int,
        output_path: Union[str, Path],
        variant: Optional[str] = None
    ) -> Path:
        document = self.render(frame_source, total_frames, variant=variant)
        return write_document(output_path, document, variant=variant)

def write_document(output_path: Union[str, Path], document: str, variant: Optional[str] = None) -> Path:
    """Write a finished document, replacing whatever is at output_path."""
    output_path = Path(output_path)
    tmp_path = output_path.with_name(output_path.name + ".tmp")
    replaced = False
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w") as f:
            f.write(document)
        os.replace(tmp_path, output_path)
        replaced = True
    except OSError as e:
        raise OutputWriteFailure(output_path, e.strerror or str(e), variant=variant) from e
    finally:
        # Also runs on KeyboardInterrupt
        if not replaced and tmp_path.exists():
            tmp_path.unlink()
    return output_path
