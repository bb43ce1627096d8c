import threading

import fitz
import pytest

from smart_compressor import pipeline
from smart_compressor.errors import (
    CompressionCancelled,
    CompressionError,
    ParseError,
    RenderError,
)
from smart_compressor.pdf_writer import mm_to_points
from smart_compressor.pipeline import (
    compress,
    compress_file,
    default_target_bytes,
    progress_percent,
)


def test_compress_returns_valid_pdf(sample_pdf):
    result = compress(sample_pdf, 2 * 1024 * 1024)

    assert result.size == len(result.data)
    assert result.page_count == 3
    assert result.input_size == len(sample_pdf)
    assert (result.plan.scale, result.plan.quality) == (1.2, 0.8)

    with fitz.open(stream=result.data, filetype="pdf") as doc:
        assert doc.page_count == 3
        for page in doc:
            assert page.rect.width == pytest.approx(mm_to_points(210), abs=0.01)
            # A4 source keeps its aspect ratio
            assert page.rect.height / page.rect.width == pytest.approx(842 / 595, rel=0.01)
            assert page.get_text().strip() == ""


def test_progress_sequence(sample_pdf):
    calls = []
    compress(sample_pdf, 1024 * 1024, on_progress=calls.append)
    assert calls == [0, 33, 67, 100]


def test_progress_single_page(pdf_factory):
    calls = []
    compress(pdf_factory(1), 1024 * 1024, on_progress=calls.append)
    assert calls == [0, 100]


def test_progress_percent_rounds_half_up():
    assert progress_percent(1, 8) == 13
    assert progress_percent(3, 8) == 38
    assert progress_percent(0, 5) == 0
    assert progress_percent(5, 5) == 100


def test_progress_call_count(pdf_factory):
    calls = []
    compress(pdf_factory(8, width=100, height=100), 1024 * 1024, on_progress=calls.append)
    assert len(calls) == 9
    assert calls == sorted(calls)
    assert calls[-1] == 100
    assert calls[1] == 13


def test_invalid_input_raises_parse_error_without_progress():
    calls = []
    with pytest.raises(CompressionError) as excinfo:
        compress(b"definitely not a pdf", 1024, on_progress=calls.append)

    assert isinstance(excinfo.value.cause, ParseError)
    assert isinstance(excinfo.value.__cause__, ParseError)
    assert calls == []


def test_render_failure_aborts_run(sample_pdf, monkeypatch):
    real_render = pipeline.render_page

    def flaky_render(page, scale):
        if page.number == 1:
            raise RenderError("Failed to render page 2: broken")
        return real_render(page, scale)

    monkeypatch.setattr(pipeline, "render_page", flaky_render)

    calls = []
    with pytest.raises(CompressionError) as excinfo:
        compress(sample_pdf, 1024 * 1024, on_progress=calls.append)

    assert isinstance(excinfo.value.cause, RenderError)
    assert calls == [0, 33]


def test_unexpected_failure_is_wrapped(sample_pdf, monkeypatch):
    def broken_encode(frame, quality):
        raise MemoryError("out of memory")

    monkeypatch.setattr(pipeline, "encode_jpeg", broken_encode)

    with pytest.raises(CompressionError) as excinfo:
        compress(sample_pdf, 1024 * 1024)
    assert isinstance(excinfo.value.cause, MemoryError)


def test_cancel_between_pages(sample_pdf):
    cancel = threading.Event()
    calls = []

    def on_progress(percent):
        calls.append(percent)
        cancel.set()

    with pytest.raises(CompressionCancelled):
        compress(sample_pdf, 1024 * 1024, on_progress=on_progress, cancel_event=cancel)

    assert calls == [0]


def test_target_below_overhead_still_produces_output(pdf_factory):
    result = compress(pdf_factory(1), 1000)

    assert (result.plan.scale, result.plan.quality) == (0.6, 0.4)
    assert result.size > 1000


def test_recompressing_output_does_not_fail(sample_pdf):
    first = compress(sample_pdf, 200 * 1024)
    second = compress(first.data, first.size * 4)

    assert second.page_count == 3
    with fitz.open(stream=second.data, filetype="pdf") as doc:
        assert doc.page_count == 3


def test_smaller_target_gives_smaller_output(pdf_factory):
    source = pdf_factory(4)
    big = compress(source, 50 * 1024 * 1024)
    small = compress(source, 100 * 1024)
    assert small.size < big.size


def test_transparent_regions_are_white_in_output(transparent_pdf):
    result = compress(transparent_pdf, 5 * 1024 * 1024)

    with fitz.open(stream=result.data, filetype="pdf") as doc:
        pix = doc[0].get_pixmap(alpha=False)
        width, height = pix.width, pix.height
        samples = pix.samples

    def pixel(x, y):
        offset = (y * width + x) * 3
        return tuple(samples[offset:offset + 3])

    left = pixel(width // 4, height // 2)
    right = pixel(3 * width // 4, height // 2)
    assert min(left) >= 240
    assert right[2] > 200 and right[0] < 60


def test_result_summary_and_ratio(sample_pdf):
    result = compress(sample_pdf, 1024 * 1024)
    assert result.compression_ratio == pytest.approx(result.size / len(sample_pdf))
    assert result.reduction_pct == pytest.approx((1 - result.compression_ratio) * 100)
    assert "Pages: 3" in result.summary()


def test_compress_file_writes_output(tmp_path, sample_pdf):
    src = tmp_path / "in.pdf"
    dst = tmp_path / "out.pdf"
    src.write_bytes(sample_pdf)

    result = compress_file(src, dst, target_size_bytes=512 * 1024)

    assert dst.read_bytes() == result.data
    assert not (tmp_path / "out.pdf.part").exists()


def test_compress_file_defaults_to_seventy_percent(tmp_path, sample_pdf, monkeypatch):
    src = tmp_path / "in.pdf"
    src.write_bytes(sample_pdf)
    seen = {}
    real_compress = pipeline.compress

    def spy(source_bytes, target_size_bytes, *args):
        seen["target"] = target_size_bytes
        return real_compress(source_bytes, target_size_bytes, *args)

    monkeypatch.setattr(pipeline, "compress", spy)
    compress_file(src, tmp_path / "out.pdf")

    assert seen["target"] == pytest.approx(len(sample_pdf) * 0.7)
    assert default_target_bytes(1000) == pytest.approx(700)


def test_failed_compress_file_leaves_nothing(tmp_path):
    src = tmp_path / "broken.pdf"
    dst = tmp_path / "out.pdf"
    src.write_bytes(b"%PDF-garbage")

    with pytest.raises(CompressionError):
        compress_file(src, dst, target_size_bytes=1024)

    assert not dst.exists()
    assert list(tmp_path.iterdir()) == [src]
