from typing import List, Optional

"""
Error types raised while converting video frames to PIWO7 files.
Every error can carry the variant and frame index it happened at so the
batch report can name both.
"""

class PiwoError(Exception):
    def __init__(self, message: str, variant: Optional[str] = None, frame_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.variant = variant
        self.frame_index = frame_index

    def __str__(self):
        location = []
        if self.variant is not None:
            location.append(f"variant {self.variant}")
        if self.frame_index is not None:
            location.append(f"frame {self.frame_index}")
        if not location:
            return self.message
        return f"{self.message} ({', '.join(location)})"

class ColorSampleMissing(PiwoError):
    """A decoded pixel had no usable R/G/B sample."""

class FrameSourceMissing(PiwoError):
    def __init__(self, frame_index: int, path=None, variant: Optional[str] = None):
        message = f"Bitmap for frame {frame_index} is missing"
        if path is not None:
            message += f": {path}"
        super().__init__(message, variant=variant, frame_index=frame_index)
        self.path = path

    def __str__(self):
        if self.variant is None:
            return self.message
        return f"{self.message} (variant {self.variant})"

class ExternalToolFailure(PiwoError):
    def __init__(self, command: List[str], returncode: Optional[int] = None,
                 stderr: str = "", timed_out: bool = False, variant: Optional[str] = None):
        tool = command[0] if command else "external tool"
        if timed_out:
            message = f"{tool} timed out"
        elif returncode is None:
            message = f"{tool} could not be started"
        else:
            message = f"{tool} exited with code {returncode}"
        # Last lines of ffmpeg's stderr carry the actual reason
        tail = "\n".join(stderr.strip().splitlines()[-5:])
        if tail:
            message += f": {tail}"
        super().__init__(message, variant=variant)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        self.timed_out = timed_out

class OutputWriteFailure(PiwoError):
    def __init__(self, path, reason: str, variant: Optional[str] = None):
        super().__init__(f"Could not write {path}: {reason}", variant=variant)
        self.path = path
