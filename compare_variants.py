import argparse
import matplotlib.pyplot as plt
from pathlib import Path
from typing import List, Union

from frame_encoder import read_piwo, unpack_rgb

"""
Side-by-side comparison of the same frame across variant outputs.
Reads output-<variant>.piwo7 files and saves one figure with a panel per variant.
"""

def variant_name(path: Path) -> str:
    stem = path.stem
    return stem[len("output-"):] if stem.startswith("output-") else stem

def plot_variants(paths: List[Union[str, Path]], frame_number: int, save_path: Union[str, Path], columns: int = 4):
    """
    Plot frame_number (1-based) of every file into one figure.

    Files with fewer frames are shown as empty panels titled 'missing'.
    """
    if not paths:
        raise ValueError("No PIWO7 files to compare")
    paths = [Path(p) for p in paths]
    columns = max(1, min(columns, len(paths)))
    rows = (len(paths) + columns - 1) // columns

    plt.figure(figsize=(3 * columns, 2.6 * rows))
    for i, path in enumerate(paths):
        document = read_piwo(path)
        plt.subplot(rows, columns, i + 1)
        if 1 <= frame_number <= document.frame_count:
            # unpack_rgb gives BGR, matplotlib wants RGB
            image = unpack_rgb(document.frames[frame_number - 1])[..., ::-1]
            plt.imshow(image, interpolation='nearest')
            plt.title(variant_name(path))
        else:
            plt.title(f'{variant_name(path)} (missing)')
        plt.axis('off')

    plt.suptitle(f'Frame {frame_number}')
    plt.tight_layout()
    plt.savefig(save_path, dpi=150, bbox_inches='tight')
    plt.close()
    return Path(save_path)

def main():
    parser = argparse.ArgumentParser(description="Compare one frame across PIWO7 variant outputs")
    parser.add_argument("--data_dir", type=str, default="data")
    parser.add_argument("--frame", type=int, default=1)
    parser.add_argument("--output", type=str, default="variant_comparison.png")
    args = parser.parse_args()

    paths = sorted(Path(args.data_dir).glob("output-*.piwo7"))
    if not paths:
        raise FileNotFoundError(f"No output-*.piwo7 files in {args.data_dir}")
    save_path = plot_variants(paths, args.frame, args.output)
    print(f"Saved comparison of {len(paths)} variants to {save_path}")

if __name__ == "__main__":
    main()
