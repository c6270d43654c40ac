"""
Photo ledger composer.

Lays photos out in a grid, a fixed number per page in input order, and
draws them with captions, an optional header and an optional footer. A
photo whose image cannot be loaded gets a placeholder; the rest of the
ledger is still produced.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from PIL import Image, UnidentifiedImageError

from sitephoto.core.errors import ExportError, LoadError, SitePhotoError, ValidationError
from sitephoto.core.models import PhotoRecord
from sitephoto.ledger.layout import (
    MARGIN_MM,
    PAGE_HEIGHT_MM,
    PAGE_WIDTH_MM,
    LedgerConfig,
    caption_text,
    cell_rect,
    fit_image,
    image_area,
    paginate,
    truncate_text,
)
from sitephoto.ledger.pdf_writer import (
    ALIGN_CENTER,
    ALIGN_LEFT,
    ALIGN_RIGHT,
    LedgerRenderer,
    ReportLabRenderer,
)
from sitephoto.services.logging_service import get_logger

ImageLoader = Callable[[PhotoRecord], bytes]

DATE_FORMAT = "%Y/%m/%d"
FILENAME_TIME_FORMAT = "%Y-%m-%dT%H-%M-%S"
PLACEHOLDER_TEXT = "Image unavailable"

_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\s]+')


@dataclass
class ExportResult:
    """Outcome of a ledger export."""
    path: Path
    page_count: int
    failed_photo_ids: List[str] = field(default_factory=list)


def decode_image(data: bytes) -> Image.Image:
    """
    Fully decode image bytes with Pillow.

    Raises:
        LoadError: If the data is not a readable image.
    """
    if not data:
        raise LoadError("Empty image data")
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise LoadError(f"Image could not be decoded: {e}") from e

    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    return image


def safe_filename_part(text: str) -> str:
    """Replace path separators and other unsafe characters with '_'."""
    return _UNSAFE_FILENAME_CHARS.sub("_", text.strip()).strip("_.")


def ledger_filename(prefix: str, project_name: Optional[str], when: datetime) -> str:
    """`<prefix>_<project>_<timestamp>.pdf`, or without project when none is set."""
    parts = [safe_filename_part(prefix) or "photos"]
    project = safe_filename_part(project_name or "")
    if project:
        parts.append(project)
    parts.append(when.strftime(FILENAME_TIME_FORMAT))
    return "_".join(parts) + ".pdf"


def meta_text(photo: PhotoRecord) -> str:
    """Category labels and the date the photo was taken, ' / ' separated."""
    parts = photo.category.labels() if photo.category else []
    parts.append(photo.taken_at.strftime(DATE_FORMAT))
    return truncate_text(" / ".join(parts))


class LedgerComposer:
    """
    Produces photo ledgers.

    Args:
        image_loader: Returns the encoded image of a photo; may raise.
        font_path: Optional TrueType font for non-Latin captions.
        bold_font_path: Optional bold variant of font_path.
        clock: Source of the current time (footer date and filenames).
    """

    def __init__(
        self,
        image_loader: ImageLoader,
        font_path: Optional[str] = None,
        bold_font_path: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._logger = get_logger(__name__)
        self._load_image = image_loader
        self._font_path = font_path
        self._bold_font_path = bold_font_path
        self._clock = clock

    # ─── Rendering ────────────────────────────────────────────────────────

    def render(
        self,
        photos: Sequence[PhotoRecord],
        config: LedgerConfig,
        renderer: LedgerRenderer,
    ) -> List[str]:
        """
        Draw every page of the ledger through renderer.

        Returns the ids of photos whose image could not be loaded.
        """
        if not photos:
            raise ValidationError("There are no photos to export")

        pages = paginate(photos, config.photos_per_page)
        today = self._clock().strftime(DATE_FORMAT)
        failed: List[str] = []

        for page_number, page_photos in enumerate(pages, start=1):
            renderer.begin_page()

            if config.show_header:
                self._draw_header(renderer, config)

            for slot, photo in enumerate(page_photos):
                if not self._draw_cell(renderer, config, slot, photo):
                    failed.append(photo.id)

            if config.show_footer:
                self._draw_footer(renderer, config, today, page_number, len(pages))

            renderer.end_page()
            self._logger.debug(f"Ledger page {page_number}/{len(pages)} drawn")

        renderer.finish()
        return failed

    def _draw_header(self, renderer: LedgerRenderer, config: LedgerConfig) -> None:
        y = MARGIN_MM + 7
        center = PAGE_WIDTH_MM / 2
        if config.company_name:
            renderer.draw_text(center, y, config.company_name, 14, bold=True, align=ALIGN_CENTER)
            y += 6
        if config.project_name:
            renderer.draw_text(center, y, config.project_name, 12, align=ALIGN_CENTER)

        rule_y = MARGIN_MM + config.header_height - 2
        renderer.draw_line(MARGIN_MM, rule_y, PAGE_WIDTH_MM - MARGIN_MM, rule_y, 0.5)

    def _draw_footer(
        self,
        renderer: LedgerRenderer,
        config: LedgerConfig,
        today: str,
        page_number: int,
        total_pages: int,
    ) -> None:
        y = PAGE_HEIGHT_MM - MARGIN_MM - 5
        if config.show_date:
            renderer.draw_text(MARGIN_MM, y, today, 8, align=ALIGN_LEFT)
        if config.show_page_number:
            renderer.draw_text(
                PAGE_WIDTH_MM - MARGIN_MM, y, f"{page_number} / {total_pages}", 8, align=ALIGN_RIGHT
            )

    def _draw_cell(
        self,
        renderer: LedgerRenderer,
        config: LedgerConfig,
        slot: int,
        photo: PhotoRecord,
    ) -> bool:
        """Draw one photo cell; returns False when a placeholder was drawn."""
        cell = cell_rect(config, slot)
        area = image_area(cell)
        loaded = True

        try:
            image = decode_image(self._load_image(photo))
            renderer.draw_image(image, fit_image(area, image.width, image.height, config.fit_mode))
        except (SitePhotoError, OSError, ValueError) as e:
            self._logger.warning(f"Ledger image for photo {photo.id} unavailable: {e}")
            renderer.draw_rect(area)
            renderer.draw_text(area.center_x, area.center_y, PLACEHOLDER_TEXT, 10, align=ALIGN_CENTER)
            loaded = False

        renderer.draw_text(
            cell.center_x, cell.bottom - 5, caption_text(photo.caption), 8, align=ALIGN_CENTER
        )
        renderer.draw_text(cell.center_x, cell.bottom - 2, meta_text(photo), 6, align=ALIGN_CENTER)
        return loaded

    # ─── Export ───────────────────────────────────────────────────────────

    def resolve_path(
        self,
        destination: Union[str, Path],
        prefix: str = "photos",
        project_name: Optional[str] = None,
    ) -> Path:
        """
        A .pdf destination is used as is; anything else is a folder.

        project_name is the project the photos were filtered by, not the
        header text.
        """
        destination = Path(destination).expanduser()
        if destination.suffix.lower() == ".pdf":
            return destination
        return destination / ledger_filename(prefix, project_name, self._clock())

    def export_pdf(
        self,
        photos: Sequence[PhotoRecord],
        config: LedgerConfig,
        destination: Union[str, Path],
        prefix: str = "photos",
        project_name: Optional[str] = None,
    ) -> ExportResult:
        """
        Write the ledger as a PDF.

        The filename carries project_name when the photos come from a single
        project.

        Raises:
            ValidationError: If photos is empty.
            ExportError: If the document could not be written; no partial
                file is left behind.
        """
        if not photos:
            raise ValidationError("There are no photos to export")

        path = self.resolve_path(destination, prefix, project_name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            renderer = ReportLabRenderer(
                path,
                title=config.project_name or "Photo Ledger",
                font_path=self._font_path,
                bold_font_path=self._bold_font_path,
            )
            failed = self.render(photos, config, renderer)
        except Exception as e:
            path.unlink(missing_ok=True)
            self._logger.error(f"Ledger export to {path} failed: {e}")
            raise ExportError(f"Could not create the PDF: {e}") from e

        result = ExportResult(path, renderer.page_count, failed)
        self._logger.info(
            f"Ledger exported: {len(photos)} photo(s), {result.page_count} page(s), "
            f"{len(failed)} failed, {path}"
        )
        return result
