import argparse
import cv2
import numpy as np

from frame_encoder import PiwoDocument, read_piwo, unpack_rgb

"""
Player for PIWO7 files.
Unpacks each frame's colors and shows it nearest-neighbour upscaled
so individual pixels stay visible.
"""

class PiwoPlayer:
    def __init__(self, display_size: int = 480):
        """
        Initialize the player.

        Args:
            display_size: Width of the display window; height follows the frame aspect ratio
        """
        self.display_size = display_size
        self.window_name = 'PIWO7'

    def _prepare_frame(self, grid: np.ndarray) -> np.ndarray:
        """Convert a grid of packed colors to a displayable BGR image."""
        image = unpack_rgb(grid)
        height, width = grid.shape
        display_height = max(1, round(self.display_size * height / width))
        return cv2.resize(image, (self.display_size, display_height), interpolation=cv2.INTER_NEAREST)

    def display_frame(self, grid: np.ndarray, wait_time: int = 1) -> int:
        """Display a single frame and return the key pressed."""
        cv2.imshow(self.window_name, self._prepare_frame(grid))
        return cv2.waitKey(wait_time) & 0xFF

    def cleanup(self):
        """Clean up OpenCV windows."""
        cv2.destroyAllWindows()

    def play_document(self, document: PiwoDocument, delay: int = 50, loop: bool = False):
        """
        Display all frames of a document.

        Args:
            document: Parsed PIWO7 document
            delay: Delay between frames in milliseconds (50 ms is 20 fps)
            loop: Start over after the last frame until 'q' is pressed
        """
        try:
            while True:
                for grid in document.frames:
                    if self.display_frame(grid, wait_time=delay) == ord('q'):
                        return
                if not loop or document.frame_count == 0:
                    return
        finally:
            self.cleanup()

def main():
    parser = argparse.ArgumentParser(description="Play a PIWO7 file")
    parser.add_argument("path", type=str)
    parser.add_argument("--delay", type=int, default=50, help="Milliseconds per frame")
    parser.add_argument("--size", type=int, default=480, help="Window width in pixels")
    parser.add_argument("--loop", action="store_true")
    args = parser.parse_args()

    document = read_piwo(args.path)
    print(f"{args.path}: {document.frame_count} frames, {document.width}x{document.height}")
    PiwoPlayer(display_size=args.size).play_document(document, delay=args.delay, loop=args.loop)

if __name__ == "__main__":
    main()
