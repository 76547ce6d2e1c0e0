import numpy as np
import pytest

from frame_encoder import (
    FRAME_MARKER, PIWO_MAGIC, decode_piwo, encode_document, encode_frame,
    encode_header, read_piwo, unpack_rgb
)

def test_header():
    assert encode_header(12, 10) == "PIWO_7_FILE\n12 10\n\n"

def test_frame_block_shape():
    grid = np.arange(120, dtype=np.uint32).reshape(10, 12)
    lines = encode_frame(grid).split("\n")

    # marker, 10 rows, blank separator, and the empty tail after the final newline
    assert len(lines) == 13
    assert lines[0] == FRAME_MARKER
    assert lines[11] == ""
    assert lines[12] == ""
    for y, line in enumerate(lines[1:11]):
        assert line.endswith(" ")
        values = line.split(" ")[:-1]
        assert len(values) == 12
        assert [int(v) for v in values] == list(range(y * 12, y * 12 + 12))

def test_uniform_frame_text():
    grid = np.full((10, 12), 660510, dtype=np.uint32)
    expected = "50\n" + ("660510 " * 12 + "\n") * 10 + "\n"
    assert encode_frame(grid) == expected

def test_decode_document():
    first = np.full((2, 3), 16777215, dtype=np.uint32)
    second = np.array([[0, 1, 2], [3, 4, 5]], dtype=np.uint32)
    text = encode_document(3, 2, [first, second])

    document = decode_piwo(text)

    assert (document.width, document.height) == (3, 2)
    assert document.frame_count == 2
    assert (document.frames[0] == first).all()
    assert (document.frames[1] == second).all()

def test_decode_empty_document():
    document = decode_piwo(encode_header(12, 10))
    assert document.frames.shape == (0, 10, 12)

def test_read_piwo_accepts_crlf(tmp_path):
    path = tmp_path / "crlf.piwo7"
    text = encode_document(2, 1, [np.array([[7, 8]], dtype=np.uint32)])
    path.write_bytes(text.replace("\n", "\r\n").encode())

    document = read_piwo(path)

    assert document.frames.tolist() == [[[7, 8]]]

@pytest.mark.parametrize("text", [
    "",
    "PIWO_6_FILE\n1 1\n\n",
    f"{PIWO_MAGIC}\n1\n\n",
    f"{PIWO_MAGIC}\n1 1\nx\n",
    f"{PIWO_MAGIC}\n2 1\n\n50\n1 2 \n",
    f"{PIWO_MAGIC}\n2 1\n\n51\n1 2 \n\n",
    f"{PIWO_MAGIC}\n2 1\n\n50\n1 \n\n",
    f"{PIWO_MAGIC}\n2 1\n\n50\n1 16777216 \n\n",
])
def test_decode_rejects_malformed(text):
    with pytest.raises(ValueError):
        decode_piwo(text)

def test_unpack_rgb():
    grid = np.array([[16711680, 65280, 255]], dtype=np.uint32)
    image = unpack_rgb(grid)
    assert image.dtype == np.uint8
    assert image[0].tolist() == [[0, 0, 255], [0, 255, 0], [255, 0, 0]]
