"""
Demo content for offline mode.

Seeds an InMemoryBackend with one project, its signboard and a handful of
generated site photos so the editor and ledger can be tried without a
server.
"""

from datetime import datetime, timedelta, timezone
from io import BytesIO
from typing import List, Tuple

from PIL import Image, ImageDraw

from sitephoto.core.backend import InMemoryBackend
from sitephoto.core.models import PhotoCategory, Signboard, SignboardContent

DEMO_PHOTOS: List[Tuple[str, str, str, str]] = [
    # (caption, process, location, work type)
    ("Excavation north side", "foundation", "Grid A-1", "civil"),
    ("Rebar before pour", "foundation", "Grid A-2", "civil"),
    ("Column formwork", "structure", "2F", "architecture"),
    ("Conduit routing", "structure", "2F ceiling", "electrical"),
    ("Drain pipe test", "finishing", "1F toilet", "plumbing"),
    ("Exterior wall finish", "finishing", "East elevation", "architecture"),
    ("Final inspection", "inspection", "Entrance", "other"),
]

_PALETTE = ["#8d6e63", "#78909c", "#a1887f", "#90a4ae", "#6d4c41", "#b0bec5", "#546e7a"]


def demo_jpeg(label: str, color: str, size: Tuple[int, int] = (1280, 960)) -> bytes:
    """A flat-coloured JPEG with a grid and a label."""
    image = Image.new("RGB", size, color)
    draw = ImageDraw.Draw(image)
    width, height = size
    for x in range(0, width, 160):
        draw.line([(x, 0), (x, height)], fill="#ffffff", width=1)
    for y in range(0, height, 160):
        draw.line([(0, y), (width, y)], fill="#ffffff", width=1)
    draw.rectangle([40, 40, width - 40, 140], fill="#263238")
    draw.text((60, 80), label, fill="#ffffff")

    buffer = BytesIO()
    image.save(buffer, "JPEG", quality=85)
    return buffer.getvalue()


def seed_demo_backend(backend: InMemoryBackend) -> None:
    project = backend.add_project("Riverside Office Building", "1-2-3 Riverside", "in_progress")
    signboard = backend.add_signboard(
        Signboard(
            id="demo-signboard",
            project_id=project.id,
            title="Riverside Office",
            content=SignboardContent(
                project_name="Riverside Office Building",
                construction_period="2026/04/01 - 2027/03/31",
                contractor="Example Construction Co.",
                supervisor="J. Smith",
                contact="03-0000-0000",
            ),
        )
    )

    start = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)
    for index, (caption, process, location, work_type) in enumerate(DEMO_PHOTOS):
        backend.add_photo(
            project.id,
            demo_jpeg(caption, _PALETTE[index % len(_PALETTE)]),
            caption=caption,
            category=PhotoCategory(process=process, location=location, work_type=work_type),
            taken_at=start + timedelta(days=7 * index),
            signboard_id=signboard.id if index % 2 == 0 else None,
        )
