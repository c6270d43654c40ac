"""
Shared pytest fixtures for SitePhoto tests
"""
import os
from datetime import datetime, timezone
from io import BytesIO

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import reportlab
from PIL import Image
from PySide6.QtGui import QColor, QImage
from PySide6.QtWidgets import QApplication

from sitephoto.core.backend import InMemoryBackend
from sitephoto.core.models import (
    PhotoCategory,
    PhotoRecord,
    Signboard,
    SignboardContent,
)


@pytest.fixture(scope="session")
def qapp():
    """One QApplication for the whole run (fonts and painting need it)"""
    app = QApplication.instance() or QApplication([])
    yield app


def make_jpeg(size=(200, 100), color="blue") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color=color).save(buffer, "JPEG", quality=90)
    return buffer.getvalue()


@pytest.fixture
def ttf_font():
    """Path of the Vera TrueType font bundled with reportlab"""
    return os.path.join(os.path.dirname(reportlab.__file__), "fonts", "Vera.ttf")


@pytest.fixture
def jpeg_factory():
    """Callable building JPEG bytes of a given size and colour"""
    return make_jpeg


@pytest.fixture
def jpeg_bytes():
    """A 200x100 blue JPEG"""
    return make_jpeg()


@pytest.fixture
def source_image(qapp):
    """A 200x100 opaque blue QImage"""
    image = QImage(200, 100, QImage.Format.Format_RGB32)
    image.fill(QColor("blue"))
    return image


@pytest.fixture
def sample_category():
    return PhotoCategory(process="foundation", location="Grid A-1", work_type="civil")


@pytest.fixture
def sample_photo(sample_category):
    return PhotoRecord(
        id="photo-1",
        project_id="project-1",
        filename="IMG_0001.jpg",
        image_url="https://example.com/uploads/IMG_0001.jpg",
        taken_at=datetime(2026, 5, 1, 9, 30, tzinfo=timezone.utc),
        caption="Rebar before pour",
        category=sample_category,
        signboard_id="sb-1",
    )


@pytest.fixture
def sample_signboard():
    return Signboard(
        id="sb-1",
        project_id="project-1",
        title="Riverside",
        content=SignboardContent(
            project_name="Riverside Office",
            construction_period="2026/04/01 - 2027/03/31",
            contractor="Example Construction Co.",
            supervisor="J. Smith",
            contact="03-0000-0000",
        ),
    )


@pytest.fixture
def memory_backend(jpeg_bytes):
    """InMemoryBackend with one project holding three photos"""
    backend = InMemoryBackend()
    project = backend.add_project("Riverside Office")
    for index in range(3):
        backend.add_photo(
            project.id,
            jpeg_bytes,
            caption=f"Photo {index + 1}",
            taken_at=datetime(2026, 5, index + 1, tzinfo=timezone.utc),
        )
    return backend
