import json
import math
import shutil
import subprocess
from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import List, Optional, Tuple, Union

from piwo_errors import ExternalToolFailure
from variant_writer import FRAME_FILE_PATTERN

"""
Thin wrappers around the ffmpeg and ffprobe executables.
Handles metadata probing, frame rate changes, audio export and frame extraction.
Every call is bounded by a timeout and raises ExternalToolFailure on error.
"""

TOOL_TIMEOUT = 600  # seconds

@dataclass
class MediaMetadata:
    duration: float  # seconds
    fps: float
    audio_bitrate_kbps: float  # 0 when there is no audio stream

def parse_frame_rate(value: Optional[str]) -> float:
    """Parse ffprobe rates such as '30000/1001' or '25'."""
    if not value:
        return 0.0
    try:
        rate = Fraction(value)
    except (ValueError, ZeroDivisionError):
        return 0.0
    return float(rate)

def parse_metadata(probe: dict) -> MediaMetadata:
    streams = probe.get("streams", [])
    video = next((s for s in streams if s.get("codec_type") == "video"), None)
    audio = next((s for s in streams if s.get("codec_type") == "audio"), None)
    if video is None:
        raise ValueError("No video stream found")

    duration = float(probe.get("format", {}).get("duration") or video.get("duration") or 0.0)
    fps = parse_frame_rate(video.get("r_frame_rate")) or parse_frame_rate(video.get("avg_frame_rate"))
    bitrate = 0.0
    if audio is not None and audio.get("bit_rate"):
        bitrate = float(audio["bit_rate"]) / 1000.0
    return MediaMetadata(duration=duration, fps=fps, audio_bitrate_kbps=bitrate)

def count_frames(duration: float, fps: float) -> int:
    return int(math.floor(fps * duration))

def estimate_audio_seconds(metadata: MediaMetadata) -> float:
    """Rough export time estimate: audio size in kB over its bitrate."""
    if metadata.audio_bitrate_kbps <= 0:
        return 0.0
    audio_size = metadata.duration * metadata.audio_bitrate_kbps / 8
    return audio_size / metadata.audio_bitrate_kbps

class FfmpegTools:
    def __init__(self, timeout: float = TOOL_TIMEOUT, ffmpeg: str = "ffmpeg", ffprobe: str = "ffprobe"):
        """
        Args:
            timeout: Upper bound in seconds for any single ffmpeg/ffprobe call
            ffmpeg: ffmpeg executable name or path
            ffprobe: ffprobe executable name or path
        """
        self.timeout = timeout
        self.ffmpeg = ffmpeg
        self.ffprobe = ffprobe

    def available(self) -> bool:
        return shutil.which(self.ffmpeg) is not None and shutil.which(self.ffprobe) is not None

    def run(self, command: List[str]) -> str:
        try:
            result = subprocess.run(command, capture_output=True, text=True, check=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            stderr = e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
            raise ExternalToolFailure(command, stderr=stderr, timed_out=True) from e
        except subprocess.CalledProcessError as e:
            raise ExternalToolFailure(command, returncode=e.returncode, stderr=e.stderr or "") from e
        except OSError as e:
            raise ExternalToolFailure(command, stderr=str(e)) from e
        return result.stdout

    def probe(self, video_path: Union[str, Path]) -> MediaMetadata:
        command = [
            self.ffprobe, "-v", "error",
            "-print_format", "json",
            "-show_format", "-show_streams",
            str(video_path),
        ]
        output = self.run(command)
        try:
            return parse_metadata(json.loads(output))
        except ValueError as e:
            raise ExternalToolFailure(command, returncode=0, stderr=str(e)) from e

    def change_framerate(self, video_path: Union[str, Path], output_path: Union[str, Path], fps: float) -> Path:
        self.run([
            self.ffmpeg, "-y", "-i", str(video_path),
            "-r", f"{fps:g}",
            "-c:a", "copy",
            str(output_path),
        ])
        return Path(output_path)

    def extract_audio(self, video_path: Union[str, Path], output_path: Union[str, Path]) -> Path:
        self.run([
            self.ffmpeg, "-y", "-i", str(video_path),
            "-vn", "-acodec", "libmp3lame", "-qscale:a", "2",
            str(output_path),
        ])
        return Path(output_path)

    def extract_frames(
        self,
        video_path: Union[str, Path],
        output_dir: Union[str, Path],
        size: Optional[Tuple[int, int]] = None,
        scaler: Optional[str] = None,
        start_number: int = 1
    ) -> Path:
        """
        Dump every frame of a video as numbered bitmaps.

        Args:
            video_path: Input video
            output_dir: Directory that receives raw-frame-<n>.bmp files
            size: Optional (width, height) to scale to while extracting
            scaler: ffmpeg sws_flags algorithm used when size is given
            start_number: Number of the first bitmap written
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        command = [self.ffmpeg, "-y", "-i", str(video_path)]
        if size is not None:
            scale = f"scale={size[0]}:{size[1]}"
            if scaler:
                scale += f":sws_flags={scaler}"
            command += ["-vf", f"select=gte(n\\,0),{scale}", "-vsync", "vfr"]
        command += [
            "-start_number", str(start_number),
            str(output_dir / FRAME_FILE_PATTERN.format("%d")),
        ]
        self.run(command)
        return output_dir
