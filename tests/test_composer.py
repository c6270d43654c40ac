"""
Tests for the ledger composer
"""
from datetime import datetime, timezone

import pytest
from PIL import Image

from sitephoto.core.errors import ExportError, LoadError, ValidationError
from sitephoto.core.models import PhotoCategory, PhotoRecord
from sitephoto.ledger.composer import (
    PLACEHOLDER_TEXT,
    LedgerComposer,
    decode_image,
    ledger_filename,
    meta_text,
    safe_filename_part,
)
from sitephoto.ledger.layout import LedgerConfig
from sitephoto.ledger.pdf_writer import ALIGN_LEFT, ALIGN_RIGHT, LedgerRenderer

FIXED_NOW = datetime(2026, 10, 19, 14, 5, 9)


class RecordingRenderer(LedgerRenderer):
    """LedgerRenderer that records every call"""

    def __init__(self):
        self.calls = []
        self.finished = False

    def begin_page(self):
        self.calls.append(("begin_page",))

    def draw_image(self, image, rect):
        self.calls.append(("image", image.size, rect))

    def draw_text(self, x, y, text, size, bold=False, align=ALIGN_LEFT):
        self.calls.append(("text", x, y, text, size, bold, align))

    def draw_rect(self, rect, line_width=0.2):
        self.calls.append(("rect", rect))

    def draw_line(self, x1, y1, x2, y2, line_width=0.2):
        self.calls.append(("line", x1, y1, x2, y2))

    def end_page(self):
        self.calls.append(("end_page",))

    def finish(self):
        self.finished = True

    def pages(self):
        """Calls grouped per page"""
        pages, current = [], None
        for call in self.calls:
            if call[0] == "begin_page":
                current = []
            elif call[0] == "end_page":
                pages.append(current)
            else:
                current.append(call)
        return pages

    def texts(self, page):
        return [call[3] for call in page if call[0] == "text"]


def make_photo(index, caption=None, category=None):
    return PhotoRecord(
        id=f"photo-{index}",
        project_id="project-1",
        filename=f"IMG_{index}.jpg",
        image_url=f"/uploads/IMG_{index}.jpg",
        taken_at=datetime(2026, 5, index, 9, 0, tzinfo=timezone.utc),
        caption=caption if caption is not None else f"Photo {index}",
        category=category,
    )


@pytest.fixture
def photos():
    return [make_photo(i) for i in range(1, 6)]


@pytest.fixture
def loader(jpeg_factory):
    """Image loader where photo-3 is missing"""
    def load(photo):
        if photo.id == "photo-3":
            raise LoadError("404")
        return jpeg_factory((400, 300), "green")
    return load


@pytest.fixture
def composer(loader):
    return LedgerComposer(loader, clock=lambda: FIXED_NOW)


class TestHelpers:
    """Tests for module helpers"""

    def test_decode_image(self, jpeg_factory):
        image = decode_image(jpeg_factory((40, 30)))

        assert image.size == (40, 30)
        assert image.mode == "RGB"

    @pytest.mark.parametrize("data", [b"", b"<html>404</html>"])
    def test_decode_invalid(self, data):
        with pytest.raises(LoadError):
            decode_image(data)

    def test_safe_filename_part(self):
        assert safe_filename_part("Site A/B: phase 1") == "Site_A_B_phase_1"

    def test_ledger_filename(self):
        assert ledger_filename("photos", "Riverside Office", FIXED_NOW) == (
            "photos_Riverside_Office_2026-10-19T14-05-09.pdf"
        )

    def test_ledger_filename_without_project(self):
        assert ledger_filename("photos", "", FIXED_NOW) == "photos_2026-10-19T14-05-09.pdf"

    def test_meta_text(self):
        photo = make_photo(2, category=PhotoCategory(process="structure"))

        assert meta_text(photo) == "Structure / 2026/05/02"

    def test_meta_text_truncated(self):
        category = PhotoCategory(process="structure", location="2F", work_type="electrical")

        result = meta_text(make_photo(2, category=category))

        assert result == "Structure / 2F / Electrical..."

    def test_meta_text_without_category(self):
        assert meta_text(make_photo(2)) == "2026/05/02"


class TestRender:
    """Tests for LedgerComposer.render"""

    def test_pages_and_order(self, composer, photos):
        renderer = RecordingRenderer()

        composer.render(photos, LedgerConfig(photos_per_page=4), renderer)

        pages = renderer.pages()
        assert len(pages) == 2
        captions = [t for page in pages for t in renderer.texts(page) if t.startswith("Photo ")]
        assert captions == ["Photo 1", "Photo 2", "Photo 3", "Photo 4", "Photo 5"]
        assert renderer.finished

    def test_failed_image_gets_placeholder(self, composer, photos):
        renderer = RecordingRenderer()

        failed = composer.render(photos, LedgerConfig(photos_per_page=4), renderer)

        assert failed == ["photo-3"]
        first_page = renderer.pages()[0]
        assert sum(1 for call in first_page if call[0] == "image") == 3
        assert sum(1 for call in first_page if call[0] == "rect") == 1
        assert PLACEHOLDER_TEXT in renderer.texts(first_page)
        assert "Photo 3" in renderer.texts(first_page)

    def test_footer_page_numbers_and_date(self, composer, photos):
        renderer = RecordingRenderer()

        composer.render(photos, LedgerConfig(photos_per_page=4), renderer)

        for number, page in enumerate(renderer.pages(), start=1):
            footer = [call for call in page if call[0] == "text" and call[2] == 282]
            assert ("text", 10, 282, "2026/10/19", 8, False, ALIGN_LEFT) in footer
            assert ("text", 200, 282, f"{number} / 2", 8, False, ALIGN_RIGHT) in footer

    def test_no_footer(self, composer, photos):
        renderer = RecordingRenderer()
        config = LedgerConfig(photos_per_page=6, show_date=False, show_page_number=False)

        composer.render(photos, config, renderer)

        texts = renderer.texts(renderer.pages()[0])
        assert "2026/10/19" not in texts
        assert "1 / 1" not in texts

    def test_header(self, composer, photos):
        renderer = RecordingRenderer()
        config = LedgerConfig(company_name="ACME Build", project_name="Riverside")

        composer.render(photos[:1], config, renderer)

        page = renderer.pages()[0]
        assert ("text", 105, 17, "ACME Build", 14, True, "center") in page
        assert ("text", 105, 23, "Riverside", 12, False, "center") in page
        assert ("line", 10, 28, 200, 28) in page

    def test_no_header_without_names(self, composer, photos):
        renderer = RecordingRenderer()

        composer.render(photos[:1], LedgerConfig(), renderer)

        assert not [call for call in renderer.pages()[0] if call[0] == "line"]

    def test_long_caption_truncated(self, composer):
        renderer = RecordingRenderer()
        photo = make_photo(1, caption="Exterior wall finish on the east elevation")

        composer.render([photo], LedgerConfig(photos_per_page=1), renderer)

        assert "Exterior wall finish on the..." in renderer.texts(renderer.pages()[0])

    def test_empty_caption_placeholder(self, composer):
        renderer = RecordingRenderer()

        composer.render([make_photo(1, caption="")], LedgerConfig(photos_per_page=1), renderer)

        assert "No caption" in renderer.texts(renderer.pages()[0])

    def test_oversized_image_gets_placeholder(self, jpeg_factory, photos, monkeypatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10_000)

        def load(photo):
            size = (400, 300) if photo.id == "photo-3" else (50, 40)
            return jpeg_factory(size, "green")

        renderer = RecordingRenderer()
        composer = LedgerComposer(load, clock=lambda: FIXED_NOW)

        failed = composer.render(photos, LedgerConfig(photos_per_page=4), renderer)

        assert failed == ["photo-3"]
        assert len(renderer.pages()) == 2
        assert PLACEHOLDER_TEXT in renderer.texts(renderer.pages()[0])

    def test_failed_draw_gets_placeholder(self, composer, photos):
        class FailingImageRenderer(RecordingRenderer):
            def draw_image(self, image, rect):
                raise OSError("cannot embed image")

        renderer = FailingImageRenderer()

        failed = composer.render(photos, LedgerConfig(photos_per_page=4), renderer)

        assert failed == ["photo-1", "photo-2", "photo-3", "photo-4", "photo-5"]
        assert renderer.texts(renderer.pages()[1]).count(PLACEHOLDER_TEXT) == 1
        assert renderer.finished

    def test_images_aspect_fit_in_cell(self, composer, photos):
        renderer = RecordingRenderer()

        composer.render(photos[:1], LedgerConfig(photos_per_page=1), renderer)

        _, size, rect = next(c for c in renderer.pages()[0] if c[0] == "image")
        assert size == (400, 300)
        assert rect.width / rect.height == pytest.approx(4 / 3)

    def test_empty_input_rejected(self, composer):
        with pytest.raises(ValidationError):
            composer.render([], LedgerConfig(), RecordingRenderer())


class TestExportPdf:
    """Tests for LedgerComposer.export_pdf"""

    def test_writes_pdf_into_folder(self, composer, photos, tmp_path):
        config = LedgerConfig(photos_per_page=4, project_name="Riverside Office")

        result = composer.export_pdf(
            photos, config, tmp_path / "out", "ledger", project_name="Riverside Office"
        )

        assert result.path == tmp_path / "out" / "ledger_Riverside_Office_2026-10-19T14-05-09.pdf"
        assert result.path.read_bytes().startswith(b"%PDF")
        assert result.page_count == 2
        assert result.failed_photo_ids == ["photo-3"]

    def test_filename_uses_filtered_project_not_header(self, composer, tmp_path):
        header_only = composer.resolve_path(tmp_path, project_name=None)
        filtered = composer.resolve_path(tmp_path, project_name="Riverside Office")

        assert header_only.name == "photos_2026-10-19T14-05-09.pdf"
        assert filtered.name == "photos_Riverside_Office_2026-10-19T14-05-09.pdf"

    def test_header_text_kept_out_of_filename(self, composer, photos, tmp_path):
        config = LedgerConfig(photos_per_page=6, project_name="Typed Header")

        result = composer.export_pdf(photos, config, tmp_path)

        assert result.path.name == "photos_2026-10-19T14-05-09.pdf"

    def test_explicit_pdf_path(self, composer, photos, tmp_path):
        target = tmp_path / "custom.pdf"

        result = composer.export_pdf(photos, LedgerConfig(photos_per_page=6), target)

        assert result.path == target
        assert result.page_count == 1
        assert target.exists()

    def test_empty_input(self, composer, tmp_path):
        with pytest.raises(ValidationError):
            composer.export_pdf([], LedgerConfig(), tmp_path)

        assert list(tmp_path.iterdir()) == []

    def test_failure_leaves_no_file(self, photos, tmp_path):
        def broken_loader(photo):
            raise RuntimeError("renderer exploded")

        composer = LedgerComposer(broken_loader, clock=lambda: FIXED_NOW)
        target = tmp_path / "broken.pdf"

        with pytest.raises(ExportError):
            composer.export_pdf(photos, LedgerConfig(), target)

        assert not target.exists()
