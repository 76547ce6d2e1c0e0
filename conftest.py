import cv2
import numpy as np
from pathlib import Path

from media_tools import MediaMetadata
from piwo_errors import ExternalToolFailure
from variant_writer import FRAME_FILE_PATTERN

SOURCE_SIZE = (48, 40)

def frame_color(number: int):
    """BGR color of the synthetic frame with the given 1-based position."""
    return (number % 256, (2 * number) % 256, (3 * number) % 256)

def solid_frame(size, bgr):
    width, height = size
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:] = bgr
    return frame

class FakeTools:
    """Stands in for FfmpegTools: writes solid-color bitmaps instead of decoding a video."""

    def __init__(self, n_frames=3, fps=20.0, duration=None, missing=None, failing=None):
        self.n_frames = n_frames
        self.fps = fps
        self.duration = duration if duration is not None else n_frames / fps
        self.missing = missing or {}  # scaler name -> frame positions not written
        self.failing = set(failing or [])
        self.calls = []

    def probe(self, video_path):
        self.calls.append(("probe", Path(video_path)))
        return MediaMetadata(duration=self.duration, fps=self.fps, audio_bitrate_kbps=128.0)

    def change_framerate(self, video_path, output_path, fps):
        self.calls.append(("change_framerate", Path(video_path), fps))
        self.fps = float(fps)
        Path(output_path).write_bytes(b"video")
        return Path(output_path)

    def extract_audio(self, video_path, output_path):
        self.calls.append(("extract_audio", Path(video_path)))
        Path(output_path).write_bytes(b"audio")
        return Path(output_path)

    def extract_frames(self, video_path, output_dir, size=None, scaler=None, start_number=1):
        self.calls.append(("extract_frames", scaler, size))
        if scaler in self.failing:
            raise ExternalToolFailure(["ffmpeg"], returncode=1, stderr=f"unsupported scaler {scaler}")
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        skipped = self.missing.get(scaler, ())
        for position in range(1, self.n_frames + 1):
            if position in skipped:
                continue
            frame = solid_frame(size or SOURCE_SIZE, frame_color(position))
            path = output_dir / FRAME_FILE_PATTERN.format(start_number + position - 1)
            cv2.imwrite(str(path), frame)
        return output_dir

