import pytest
from PIL import Image

from certgen.errors import DecodeError, FetchError
from certgen.fetch import fetch_image_bytes
from certgen.imaging import PillowBackend, parse_color
from certgen.pdf import package_pdf

from tests.conftest import char_width, png_bytes


class FixedWidthBackend(PillowBackend):
    @staticmethod
    def measure_text(font, text):
        return char_width(text)


def test_decode_returns_rgba():
    image = PillowBackend().decode(png_bytes(300, 200))
    assert image.size == (300, 200)
    assert image.mode == "RGBA"


def test_decode_rejects_garbage():
    with pytest.raises(DecodeError):
        PillowBackend().decode(b"<html>403 Forbidden</html>")


def test_font_size_scales_with_height():
    backend = PillowBackend()
    assert backend.font_size_for(800) == 40
    assert backend.font_size_for(100) == 12
    assert PillowBackend(font_size=30).font_size_for(800) == 30


def test_fonts_are_cached():
    backend = PillowBackend()
    assert backend.font("bold", 800) is backend.font("bold", 800)
    with pytest.raises(ValueError):
        backend.font("italic", 800)


def test_draw_text_rewraps_at_draw_width():
    backend = FixedWidthBackend()
    image = Image.new("RGBA", (400, 300), "white")
    font = backend.font("regular", 300)

    drawn = backend.draw_text(image, font, 10, 10, "aaa bbb ccc\nsupercalifragilistic", 80)

    assert drawn == "aaa bbb\nccc\nsupercalifragilistic"


def test_draw_text_marks_pixels():
    backend = PillowBackend(text_color="#ff0000")
    image = Image.new("RGBA", (600, 400), (255, 255, 255, 255))

    backend.draw_text(image, backend.font("regular", 1000), 20, 20, "ANA LEE", 560)

    assert (255, 0, 0, 255) in {color for _, color in image.getcolors(maxcolors=100000)}


def test_encode_flattens_transparency(tmp_path):
    image = Image.new("RGBA", (50, 40), (0, 0, 0, 0))
    path = PillowBackend.encode(image, str(tmp_path / "out.png"))

    with Image.open(path) as written:
        assert written.mode == "RGB"
        assert written.getpixel((0, 0)) == (255, 255, 255)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("#102030", (16, 32, 48, 255)),
        ("#10203080", (16, 32, 48, 128)),
        ("red", (0, 0, 0, 255)),
        ("#zzzzzz", (0, 0, 0, 255)),
    ],
)
def test_parse_color(value, expected):
    assert parse_color(value) == expected


def test_package_pdf_matches_image_size(tmp_path):
    image_path = tmp_path / "cert.png"
    Image.new("RGB", (1200, 800), "white").save(image_path)
    pdf_path = tmp_path / "cert.pdf"

    assert package_pdf(str(image_path), str(pdf_path)) == (1200, 800)
    assert pdf_path.read_bytes().startswith(b"%PDF")
    assert not (tmp_path / "cert.pdf.part").exists()


def test_fetch_reads_local_files(tmp_path):
    path = tmp_path / "bg.png"
    path.write_bytes(b"png-bytes")
    assert fetch_image_bytes(str(path)) == b"png-bytes"


def test_fetch_missing_file(tmp_path):
    with pytest.raises(FetchError):
        fetch_image_bytes(str(tmp_path / "missing.png"))


def test_fetch_empty_reference():
    with pytest.raises(FetchError):
        fetch_image_bytes("")


def test_fetch_network_error(monkeypatch):
    import requests

    def boom(url, timeout):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(requests, "get", boom)
    with pytest.raises(FetchError):
        fetch_image_bytes("https://dl.airtable.com/cert.png", timeout=5)
