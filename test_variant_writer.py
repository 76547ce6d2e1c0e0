import cv2
import numpy as np
import pytest

from conftest import frame_color, solid_frame
from frame_encoder import encode_document, read_piwo
from piwo_errors import ColorSampleMissing, FrameSourceMissing, OutputWriteFailure
from pixel_sampler import pack_rgb
import variant_writer
from variant_writer import BitmapFrameSource, VariantWriter, write_document

def numbered_source(index):
    return solid_frame((12, 10), frame_color(index))

def expected_value(index):
    blue, green, red = frame_color(index)
    return pack_rgb(red, green, blue)

def test_header_and_frame_count(tmp_path):
    path = tmp_path / "out.piwo7"
    VariantWriter().write(numbered_source, 4, path, variant="bilinear")

    lines = path.read_text().split("\n")
    assert lines[:3] == ["PIWO_7_FILE", "12 10", ""]
    assert lines.count("50") == 4

    document = read_piwo(path)
    assert document.frame_count == 4
    for index in range(1, 5):
        assert (document.frames[index - 1] == expected_value(index)).all()

def test_single_uniform_frame(tmp_path):
    path = tmp_path / "out.piwo7"
    VariantWriter().write(lambda index: solid_frame((12, 10), (30, 20, 10)), 1, path)

    expected = "PIWO_7_FILE\n12 10\n\n50\n" + ("660510 " * 12 + "\n") * 10 + "\n"
    assert path.read_text() == expected

def test_zero_frames_writes_header_only(tmp_path):
    path = tmp_path / "out.piwo7"
    VariantWriter().write(numbered_source, 0, path)
    assert path.read_text() == "PIWO_7_FILE\n12 10\n\n"

def test_negative_frame_count_rejected():
    with pytest.raises(ValueError):
        VariantWriter().render(numbered_source, -1)

def test_progress_is_monotonic(tmp_path):
    calls = []
    writer = VariantWriter(on_progress=lambda variant, index, total: calls.append((variant, index, total)))
    writer.write(numbered_source, 3, tmp_path / "out.piwo7", variant="area")
    assert calls == [("area", 1, 3), ("area", 2, 3), ("area", 3, 3)]

def test_rewrite_overwrites(tmp_path):
    path = tmp_path / "out.piwo7"
    writer = VariantWriter()
    writer.write(numbered_source, 3, path)
    first = path.read_bytes()
    writer.write(numbered_source, 3, path)
    assert path.read_bytes() == first
    assert not (tmp_path / "out.piwo7.tmp").exists()

def test_missing_frame_stops_without_writing(tmp_path):
    path = tmp_path / "out.piwo7"

    def source(index):
        if index == 3:
            raise FrameSourceMissing(index)
        return numbered_source(index)

    with pytest.raises(FrameSourceMissing) as excinfo:
        VariantWriter().write(source, 5, path, variant="gauss")

    assert excinfo.value.frame_index == 3
    assert excinfo.value.variant == "gauss"
    assert "frame 3" in str(excinfo.value)
    assert not path.exists()

def test_color_error_gets_variant_and_frame():
    def source(index):
        return None if index == 2 else numbered_source(index)

    with pytest.raises(ColorSampleMissing) as excinfo:
        VariantWriter().render(source, 3, variant="sinc")

    assert excinfo.value.frame_index == 2
    assert "variant sinc" in str(excinfo.value)
    assert "frame 2" in str(excinfo.value)

def test_write_into_directory_fails(tmp_path):
    target = tmp_path / "taken"
    target.mkdir()
    with pytest.raises(OutputWriteFailure) as excinfo:
        write_document(target, "PIWO_7_FILE\n1 1\n\n", variant="spline")
    assert excinfo.value.variant == "spline"
    assert not (tmp_path / "taken.tmp").exists()

@pytest.mark.parametrize("first_number", [0, 1, 7])
def test_bitmap_source_numbering(tmp_path, first_number):
    for position in range(1, 4):
        path = tmp_path / f"raw-frame-{first_number + position - 1}.bmp"
        cv2.imwrite(str(path), solid_frame((12, 10), frame_color(position)))

    source = BitmapFrameSource(tmp_path, first_number=first_number)

    for position in range(1, 4):
        assert tuple(source(position)[0, 0]) == frame_color(position)
    with pytest.raises(FrameSourceMissing) as excinfo:
        source(4)
    assert excinfo.value.frame_index == 4
    assert excinfo.value.path == tmp_path / f"raw-frame-{first_number + 3}.bmp"

def test_bitmap_source_undecodable(tmp_path):
    (tmp_path / "raw-frame-1.bmp").write_bytes(b"not a bitmap")
    with pytest.raises(ColorSampleMissing):
        BitmapFrameSource(tmp_path)(1)

def test_bitmap_source_transform(tmp_path):
    cv2.imwrite(str(tmp_path / "raw-frame-1.bmp"), solid_frame((48, 40), (1, 2, 3)))
    source = BitmapFrameSource(tmp_path, transform=lambda frame: cv2.resize(frame, (12, 10)))
    assert source(1).shape == (10, 12, 3)

def test_interrupted_write_leaves_no_temp_file(tmp_path, monkeypatch):
    def interrupt(src, dst):
        raise KeyboardInterrupt

    monkeypatch.setattr(variant_writer.os, "replace", interrupt)
    path = tmp_path / "out.piwo7"

    with pytest.raises(KeyboardInterrupt):
        write_document(path, "PIWO_7_FILE\n1 1\n\n")

    assert not (tmp_path / "out.piwo7.tmp").exists()
    assert not path.exists()

def test_render_matches_encoded_document():
    grids = [np.full((10, 12), expected_value(index), dtype=np.uint32) for index in range(1, 4)]
    assert VariantWriter().render(numbered_source, 3) == encode_document(12, 10, grids)
