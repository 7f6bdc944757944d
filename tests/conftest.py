from io import BytesIO

import pytest
from PIL import Image

from certgen.config import FieldMap, Settings
from certgen.imaging import PillowBackend
from certgen.store import EligibleRecord


def char_width(text):
    """Deterministic measurement: every character is 10px wide."""
    return len(text) * 10


def png_bytes(width=1200, height=800, color=(255, 255, 255)):
    buf = BytesIO()
    Image.new("RGB", (width, height), color).save(buf, "PNG")
    return buf.getvalue()


class FakeBackend:
    """Backend with fixed-width fonts that records draw calls."""

    def __init__(self):
        self.drawn = []

    def font(self, weight, height):
        return weight

    def measure_text(self, font, text):
        return char_width(text)

    def draw_text(self, image, font, x, y, text, max_width):
        self.drawn.append({"font": font, "x": x, "y": y, "text": text, "max_width": max_width})
        return text


class RecordingBackend(PillowBackend):
    """Real Pillow backend that also records every draw call."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.drawn = []

    def draw_text(self, image, font, x, y, text, max_width):
        self.drawn.append({"x": x, "y": y, "text": text, "max_width": max_width})
        return super().draw_text(image, font, x, y, text, max_width)


class FakeStore:
    def __init__(self, records=(), fail_fetch=None, fail_mark=None):
        self.records = list(records)
        self.fail_fetch = fail_fetch
        self.fail_mark = fail_mark
        self.marked = []
        self.fetch_calls = 0

    def eligible_records(self):
        self.fetch_calls += 1
        if self.fail_fetch:
            raise self.fail_fetch
        return list(self.records)

    def count_pending(self):
        return len(self.records)

    def mark_generated(self, record_id, url=None, filename=None):
        if self.fail_mark:
            raise self.fail_mark
        self.marked.append((record_id, url, filename))


class FakeUploader:
    def __init__(self, error=None):
        self.error = error
        self.uploads = []

    def upload(self, local_path, destination_name):
        from certgen.uploader import UploadResult

        if self.error:
            raise self.error
        self.uploads.append((local_path, destination_name))
        return UploadResult(f"file-{len(self.uploads)}")


def make_record(record_id="rec1", **overrides):
    values = {
        "record_id": record_id,
        "display_id": record_id,
        "participant_name": "ANA LEE",
        "achievement_level": "GOLD",
        "programme_name": "young coders",
        "certificate_image_ref": f"https://images.example.com/{record_id}.png",
    }
    values.update(overrides)
    return EligibleRecord(**values)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        airtable_api_key="key",
        airtable_base_id="app123",
        airtable_table_name="Certificates",
        fields=FieldMap(),
        output_dir=str(tmp_path / "out"),
    )


@pytest.fixture
def fake_backend():
    return FakeBackend()
