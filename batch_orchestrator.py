import shutil
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from piwo_errors import OutputWriteFailure, PiwoError
from pixel_sampler import PixelSampler
from variant_writer import BitmapFrameSource, ProgressCallback, VariantWriter
from variants import INTERPOLATION, SCALER, Variant

"""
Runs the frame -> PIWO7 conversion once per variant.
Each variant gets its own bitmaps and its own output file; a failure in one
variant is recorded in its result and the remaining variants still run.
"""

SOURCE_FRAMES_DIR = "source"

@dataclass
class VariantResult:
    variant: Variant
    output_path: Path
    frames_written: int = 0
    error: Optional[PiwoError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

class BatchOrchestrator:
    def __init__(
        self,
        tools,
        video_path: Union[str, Path],
        frames_dir: Union[str, Path],
        output_dir: Union[str, Path],
        total_frames: int,
        target_size: Tuple[int, int] = (12, 10),
        first_number: int = 1,
        on_progress: Optional[ProgressCallback] = None,
        on_variant_start: Optional[Callable[[Variant], None]] = None,
        on_variant_done: Optional[Callable[[VariantResult], None]] = None,
        max_workers: int = 1
    ):
        """
        Args:
            tools: Frame extractor, anything with FfmpegTools.extract_frames' signature
            video_path: Video the frames are taken from
            frames_dir: Scratch directory for extracted bitmaps
            output_dir: Directory receiving output-<variant>.piwo7 files
            total_frames: Number of frames encoded per variant
            target_size: Tuple of (width, height) of the encoded frames
            first_number: File number the extractor gives the first bitmap
            on_progress: Called as on_progress(variant_name, index, total) after each frame
            on_variant_start: Called with the variant before its frames are extracted
            on_variant_done: Called with each finished VariantResult, failed or not
            max_workers: Number of variants processed at once
        """
        self.tools = tools
        self.video_path = Path(video_path)
        self.frames_dir = Path(frames_dir)
        self.output_dir = Path(output_dir)
        self.total_frames = total_frames
        self.target_size = target_size
        self.first_number = first_number
        self.on_progress = on_progress
        self.on_variant_start = on_variant_start
        self.on_variant_done = on_variant_done
        self.max_workers = max(1, max_workers)

        self._source_lock = threading.Lock()
        self._source_extracted = False

    def output_path(self, variant: Variant) -> Path:
        return self.output_dir / variant.output_name

    def run(self, catalog: List[Variant]) -> List[VariantResult]:
        """Process every variant in catalog order and return one result per variant."""
        if self.max_workers == 1 or len(catalog) <= 1:
            return [self.process_variant(variant) for variant in catalog]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(self.process_variant, catalog))

    def process_variant(self, variant: Variant) -> VariantResult:
        output_path = self.output_path(variant)
        result = VariantResult(variant=variant, output_path=output_path)

        if self.on_variant_start is not None:
            self.on_variant_start(variant)

        try:
            remove_stale_output(output_path, variant.name)
            frame_source = self.frame_source(variant)
            writer = VariantWriter(target_size=self.target_size, on_progress=self.on_progress)
            writer.write(frame_source, self.total_frames, output_path, variant=variant.name)
            result.frames_written = self.total_frames
        except PiwoError as e:
            if e.variant is None:
                e.variant = variant.name
            result.error = e

        if self.on_variant_done is not None:
            self.on_variant_done(result)
        return result

    def frame_source(self, variant: Variant) -> BitmapFrameSource:
        """Produce the variant's bitmaps and return a loader for them."""
        if variant.kind == SCALER:
            frames_dir = self.frames_dir / variant.name
            clear_frames_dir(frames_dir)
            self.tools.extract_frames(
                self.video_path,
                frames_dir,
                size=self.target_size,
                scaler=variant.name,
                start_number=self.first_number
            )
            return BitmapFrameSource(frames_dir, first_number=self.first_number)

        if variant.kind == INTERPOLATION:
            frames_dir = self.extract_source_frames()
            sampler = PixelSampler(target_size=self.target_size)
            return BitmapFrameSource(
                frames_dir,
                first_number=self.first_number,
                transform=lambda frame: sampler.resample(frame, variant.interpolation)
            )

        raise ValueError(f"Unknown variant kind {variant.kind!r}")

    def extract_source_frames(self) -> Path:
        """Extract full resolution frames once, shared by all interpolation variants."""
        frames_dir = self.frames_dir / SOURCE_FRAMES_DIR
        with self._source_lock:
            if not self._source_extracted:
                clear_frames_dir(frames_dir)
                self.tools.extract_frames(self.video_path, frames_dir, start_number=self.first_number)
                self._source_extracted = True
        return frames_dir

def remove_stale_output(output_path: Path, variant_name: str):
    """Delete an earlier run's output so a variant is never appended to."""
    try:
        if output_path.exists():
            output_path.unlink()
    except OSError as e:
        raise OutputWriteFailure(output_path, e.strerror or str(e), variant=variant_name) from e

def clear_frames_dir(frames_dir: Path):
    """Empty an extraction directory so only this run's bitmaps can be read from it."""
    shutil.rmtree(frames_dir, ignore_errors=True)
