import argparse
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from batch_orchestrator import BatchOrchestrator, VariantResult
from media_tools import TOOL_TIMEOUT, FfmpegTools, count_frames, estimate_audio_seconds
from piwo_errors import ExternalToolFailure
from variants import SCALER, CATALOGS, Variant, get_catalog

"""
Command line entry point: converts a video into one PIWO7 file per variant.
Exports the audio track, extracts frames at 12x10 with every resizing
variant of the chosen catalog, and optionally removes the temporary frames.
"""

FRAME_WIDTH = 12
FRAME_HEIGHT = 10
DESIRED_FRAMERATE = 20
DATA_DIR = Path("data")
FRAMERATE_TOLERANCE = 0.1

@dataclass
class ConverterConfig:
    input_path: Path
    data_dir: Path = DATA_DIR
    width: int = FRAME_WIDTH
    height: int = FRAME_HEIGHT
    framerate: int = DESIRED_FRAMERATE
    catalog: str = SCALER
    variants: Optional[List[str]] = None
    first_number: int = 1
    timeout: float = TOOL_TIMEOUT
    workers: int = 1
    assume_yes: bool = False

    @property
    def target_size(self):
        return (self.width, self.height)

    @property
    def audio_path(self) -> Path:
        return self.data_dir / "audio.mp3"

    @property
    def frames_dir(self) -> Path:
        return self.data_dir / "frames"

    @property
    def retimed_video_path(self) -> Path:
        return self.data_dir / f"video-{self.framerate}-fps.mp4"

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "ConverterConfig":
        return cls(
            input_path=Path(args.input),
            data_dir=Path(args.data_dir),
            width=args.width,
            height=args.height,
            framerate=args.fps,
            catalog=args.catalog,
            variants=args.variants,
            first_number=args.start_number,
            timeout=args.timeout,
            workers=args.workers,
            assume_yes=args.yes,
        )

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Convert a video into PIWO7 files, one per resizing variant")
    parser.add_argument("-i", "--input", type=str, required=True, help="Path to the input mp4 file.")
    parser.add_argument("--data_dir", type=str, default=str(DATA_DIR))
    parser.add_argument("--catalog", type=str, choices=sorted(CATALOGS), default=SCALER,
                        help="ffmpeg scaler algorithms or OpenCV interpolation methods")
    parser.add_argument("--variants", type=str, nargs="+", default=None,
                        help="Only run these variants of the catalog")
    parser.add_argument("--width", type=int, default=FRAME_WIDTH)
    parser.add_argument("--height", type=int, default=FRAME_HEIGHT)
    parser.add_argument("--fps", type=int, default=DESIRED_FRAMERATE)
    parser.add_argument("--start_number", type=int, default=1, help="Number of the first extracted bitmap")
    parser.add_argument("--timeout", type=float, default=TOOL_TIMEOUT, help="Seconds allowed per ffmpeg call")
    parser.add_argument("--workers", type=int, default=1, help="Variants processed in parallel")
    parser.add_argument("-y", "--yes", action="store_true", help="Answer yes to every prompt")
    return parser.parse_args(argv)

def prompt_yes_no(message: str) -> bool:
    try:
        answer = input(f"{message} (y/n)? ")
    except EOFError:
        return False
    return answer.strip().lower().startswith("y")

def print_progress(variant: Optional[str], index: int, total: int):
    end = "\n" if index == total else ""
    print(f"\rFrames processed ({variant}): {index}/{total}", end=end, flush=True)

def print_result(result: VariantResult):
    if result.ok:
        print(f"Output file created for {result.variant.name}: {result.output_path}")
    else:
        print(f"\nFailed {result.variant.name}: {result.error}")

def convert(config: ConverterConfig, tools: FfmpegTools, confirm: Callable[[str], bool] = prompt_yes_no) -> int:
    """Run the whole conversion. Returns the process exit code."""
    if config.assume_yes:
        confirm = lambda message: True

    catalog: List[Variant] = get_catalog(config.catalog, config.variants)
    config.frames_dir.mkdir(parents=True, exist_ok=True)
    video_path = config.input_path

    try:
        metadata = tools.probe(video_path)
        # Frames are counted at the desired rate, so re-time the video first
        if abs(metadata.fps - config.framerate) > FRAMERATE_TOLERANCE:
            print(f"Changing framerate from {metadata.fps:.2f} to {config.framerate} fps...")
            video_path = tools.change_framerate(video_path, config.retimed_video_path, config.framerate)
            metadata = tools.probe(video_path)

        audio_seconds = estimate_audio_seconds(metadata)
        if not confirm(f"Exporting audio will take approximately {audio_seconds:.0f} seconds. Do you want to continue"):
            return 0

        print("Exporting audio...")
        tools.extract_audio(video_path, config.audio_path)
        print(f"Audio exported to {config.audio_path}.")
    except ExternalToolFailure as e:
        print(f"Could not prepare {config.input_path}: {e}")
        return 1

    total_frames = count_frames(metadata.duration, config.framerate)
    seconds_per_variant = total_frames / config.framerate
    if not confirm(
        f"Exporting video frames will take approximately {seconds_per_variant:.0f} seconds. "
        f"They need to be exported for each of the {len(catalog)} variants so in total this will take "
        f"{seconds_per_variant * len(catalog):.0f} seconds. Do you want to continue"
    ):
        return 0

    print(f"Processing {total_frames} frames per variant, this might take a while...")
    orchestrator = BatchOrchestrator(
        tools,
        video_path,
        config.frames_dir,
        config.data_dir,
        total_frames,
        target_size=config.target_size,
        first_number=config.first_number,
        on_progress=print_progress,
        on_variant_start=lambda variant: print(f"Exporting video frames for {variant.name}..."),
        on_variant_done=print_result,
        max_workers=config.workers,
    )
    results = orchestrator.run(catalog)

    failed = [r for r in results if not r.ok]
    print(f"\n{len(results) - len(failed)}/{len(results)} variants converted.")
    for result in failed:
        print(f"  {result.variant.name}: {result.error}")

    if confirm("Remove temporary files"):
        remove_temporary_files(config)

    return 1 if failed else 0

def remove_temporary_files(config: ConverterConfig):
    if config.frames_dir.exists():
        shutil.rmtree(config.frames_dir)
    if config.retimed_video_path.exists():
        config.retimed_video_path.unlink()

def main(argv=None):
    args = parse_args(argv)
    config = ConverterConfig.from_args(args)
    tools = FfmpegTools(timeout=config.timeout)
    if not tools.available():
        print("ffmpeg and ffprobe must be installed and on PATH")
        sys.exit(1)
    try:
        sys.exit(convert(config, tools))
    except ValueError as e:
        print(e)
        sys.exit(2)

if __name__ == "__main__":
    main()
