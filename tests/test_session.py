"""
Tests for AnnotationSession and the drawing tools
"""
from io import BytesIO

import pytest
from PIL import Image
from PySide6.QtCore import QPointF
from PySide6.QtGui import QColor, QImage

from sitephoto.core.errors import LoadError, ValidationError
from sitephoto.core.models import PhotoRecord
from sitephoto.editor.annotations import AnnotationType, StampKind, StrokeStyle
from sitephoto.editor.session import (
    AnnotationSession,
    SessionState,
    buffer_size_for,
    build_annotated_photo,
    load_source_image,
)
from sitephoto.editor.tools import (
    ArrowTool,
    CircleTool,
    EraserTool,
    PenTool,
    RectangleTool,
    TextTool,
    ToolType,
    create_tool,
)

RED = QColor("#ff0000")
BLUE = QColor("blue")
WHITE = QColor("white")


def pixel(session, x, y) -> QColor:
    return session.surface.to_image().pixelColor(x, y)


def drag(session, *points):
    session.pointer_down(QPointF(*points[0]))
    for point in points[1:]:
        session.pointer_move(QPointF(*point))
    session.pointer_up()


@pytest.fixture
def session(source_image):
    return AnnotationSession(source_image, style=StrokeStyle(RED, 3))


class TestLoading:
    """Tests for decoding and sizing the source image"""

    def test_load_source_image(self, qapp, jpeg_bytes):
        image = load_source_image(jpeg_bytes)

        assert (image.width(), image.height()) == (200, 100)

    @pytest.mark.parametrize("data", [b"", b"definitely not an image"])
    def test_load_invalid_data_raises(self, qapp, data):
        with pytest.raises(LoadError):
            load_source_image(data)

    def test_buffer_defaults_to_source_size(self, source_image):
        assert buffer_size_for(source_image) == (200, 100)

    def test_buffer_keeps_aspect_ratio(self, source_image):
        assert buffer_size_for(source_image, 100) == (100, 50)

    def test_buffer_width_is_capped(self, source_image):
        assert buffer_size_for(source_image, 1000, max_width=400) == (400, 200)

    def test_null_image_rejected(self, qapp):
        with pytest.raises(LoadError):
            AnnotationSession(QImage())

    def test_session_buffer_width(self, source_image):
        session = AnnotationSession(source_image, buffer_width=100)

        assert session.buffer_size == (100, 50)
        assert pixel(session, 50, 25) == BLUE


class TestToolFactory:
    """Tests for create_tool"""

    @pytest.mark.parametrize("tool_type,tool_class", [
        (ToolType.PEN, PenTool),
        (ToolType.ERASER, EraserTool),
        (ToolType.ARROW, ArrowTool),
        (ToolType.RECTANGLE, RectangleTool),
        (ToolType.CIRCLE, CircleTool),
        (ToolType.TEXT, TextTool),
    ])
    def test_create_tool(self, tool_type, tool_class):
        tool = create_tool(tool_type)

        assert isinstance(tool, tool_class)
        assert tool.tool_type == tool_type

    def test_unknown_tool_raises(self):
        with pytest.raises(ValueError):
            create_tool("laser")


class TestPenAndEraser:
    """Tests for freehand drawing"""

    def test_pen_stroke_draws_and_logs(self, session):
        drag(session, (10, 50), (100, 50), (190, 50))

        assert pixel(session, 100, 50) == RED
        assert pixel(session, 100, 10) == BLUE
        records = session.annotations
        assert len(records) == 1
        assert records[0].annotation_type == AnnotationType.PEN
        assert records[0].points == [(10, 50), (100, 50), (190, 50)]
        assert records[0].color == "#ff0000"
        assert records[0].line_width == 3
        assert session.state == SessionState.IDLE

    def test_click_without_move_logs_nothing(self, session):
        before = session.surface.to_image()

        drag(session, (40, 40))

        assert session.annotations == []
        assert session.surface.to_image() == before

    def test_moves_ignored_when_idle(self, session):
        before = session.surface.to_image()

        session.pointer_move(QPointF(50, 50))

        assert session.surface.to_image() == before
        assert session.state == SessionState.IDLE

    def test_eraser_clears_to_transparent(self, session):
        session.set_tool(ToolType.ERASER)
        drag(session, (10, 50), (190, 50))

        assert pixel(session, 100, 50).alpha() == 0
        assert pixel(session, 100, 10) == BLUE
        record = session.annotations[0]
        assert record.annotation_type == AnnotationType.ERASER
        assert record.color is None
        assert record.line_width == 9

    def test_erased_pixels_export_white(self, session):
        session.set_tool(ToolType.ERASER)
        drag(session, (10, 50), (190, 50))

        exported = session.export_image()

        assert exported.pixelColor(100, 50) == WHITE
        assert exported.pixelColor(100, 10) == BLUE

    def test_pointer_leave_ends_gesture(self, session):
        session.pointer_down(QPointF(10, 50))
        session.pointer_move(QPointF(60, 50))
        session.pointer_leave()

        assert session.state == SessionState.IDLE
        assert len(session.annotations) == 1

        session.pointer_move(QPointF(150, 50))
        assert pixel(session, 120, 50) == BLUE


class TestShapeTools:
    """Tests for tools with a live preview"""

    def test_rectangle_preview_does_not_accumulate(self, session, source_image):
        session.set_tool(ToolType.RECTANGLE)
        drag(session, (20, 20), (150, 80), (60, 60))

        expected = AnnotationSession(source_image, style=StrokeStyle(RED, 3))
        expected.set_tool(ToolType.RECTANGLE)
        drag(expected, (20, 20), (60, 60))

        assert session.surface.to_image() == expected.surface.to_image()
        assert pixel(session, 150, 50) == BLUE

    @pytest.mark.parametrize("tool_type", [ToolType.ARROW, ToolType.CIRCLE])
    def test_many_previews_leave_one_shape(self, session, source_image, tool_type):
        session.set_tool(tool_type)
        drag(session, (40, 30), (150, 80), (180, 90), (20, 90), (90, 60))

        expected = AnnotationSession(source_image, style=StrokeStyle(RED, 3))
        expected.set_tool(tool_type)
        drag(expected, (40, 30), (90, 60))

        assert session.surface.to_image() == expected.surface.to_image()
        assert session.surface.to_image() != AnnotationSession(source_image).surface.to_image()
        assert len(session.annotations) == 1

    def test_rectangle_record_stores_final_geometry(self, session):
        session.set_tool(ToolType.RECTANGLE)
        drag(session, (20, 20), (150, 80), (60, 60))

        record = session.annotations[0]
        assert record.annotation_type == AnnotationType.RECTANGLE
        assert record.points == [(20, 20), (60, 60)]
        assert not session.has_snapshot

    def test_shape_click_without_move(self, session):
        before = session.surface.to_image()
        session.set_tool(ToolType.CIRCLE)

        drag(session, (100, 50))

        assert session.annotations == []
        assert not session.has_snapshot
        assert session.surface.to_image() == before

    def test_snapshot_held_only_during_gesture(self, session):
        session.set_tool(ToolType.ARROW)
        session.pointer_down(QPointF(10, 10))

        assert session.has_snapshot

        session.pointer_move(QPointF(100, 80))
        session.pointer_up()

        assert not session.has_snapshot
        assert session.annotations[0].annotation_type == AnnotationType.ARROW

    def test_circle_outline(self, session):
        session.set_tool(ToolType.CIRCLE)
        drag(session, (100, 50), (130, 50))

        assert pixel(session, 100, 50) == BLUE
        assert pixel(session, 130, 50) != BLUE
        assert session.annotations[0].points == [(100, 50), (130, 50)]


class TestToolSwitching:
    """Tests for set_tool and style changes"""

    def test_switch_mid_gesture_commits_stroke(self, session):
        session.pointer_down(QPointF(10, 50))
        session.pointer_move(QPointF(80, 50))

        session.set_tool(ToolType.RECTANGLE)

        assert session.state == SessionState.IDLE
        assert session.tool_type == ToolType.RECTANGLE
        assert [r.annotation_type for r in session.annotations] == [AnnotationType.PEN]

    def test_switch_mid_shape_keeps_last_preview(self, session):
        session.set_tool(ToolType.RECTANGLE)
        session.pointer_down(QPointF(20, 20))
        session.pointer_move(QPointF(60, 60))

        session.set_tool(ToolType.PEN)

        assert not session.has_snapshot
        assert pixel(session, 60, 40) == RED

    def test_style_applies_to_next_gesture(self, session):
        session.set_color(QColor("#00ff00"))
        session.set_line_width(5)
        drag(session, (10, 50), (190, 50))

        record = session.annotations[0]
        assert record.color == "#00ff00"
        assert record.line_width == 5
        assert pixel(session, 100, 48) == QColor("#00ff00")

    def test_line_width_must_be_positive(self, session):
        with pytest.raises(ValidationError):
            session.set_line_width(0)


class TestText:
    """Tests for the text tool states"""

    def test_press_requests_text(self, session):
        requested = []
        session.on_text_requested = requested.append
        session.set_tool(ToolType.TEXT)

        session.pointer_down(QPointF(30, 40))

        assert session.state == SessionState.AWAITING_TEXT
        assert requested == [QPointF(30, 40)]
        assert session.pending_text_position == QPointF(30, 40)

    def test_presses_ignored_while_awaiting(self, session):
        requested = []
        session.on_text_requested = requested.append
        session.set_tool(ToolType.TEXT)
        session.pointer_down(QPointF(30, 40))

        session.pointer_down(QPointF(90, 90))

        assert len(requested) == 1
        assert session.pending_text_position == QPointF(30, 40)

    def test_submit_text_logs_record(self, session):
        session.set_tool(ToolType.TEXT)
        session.pointer_down(QPointF(30, 40))

        assert session.submit_text("Crack") is True

        record = session.annotations[0]
        assert record.annotation_type == AnnotationType.TEXT
        assert record.text == "Crack"
        assert record.points == [(30, 40)]
        assert session.state == SessionState.IDLE

    def test_empty_text_draws_nothing(self, session):
        before = session.surface.to_image()
        session.set_tool(ToolType.TEXT)
        session.pointer_down(QPointF(30, 40))

        assert session.submit_text("") is False

        assert session.annotations == []
        assert session.state == SessionState.IDLE
        assert session.surface.to_image() == before

    def test_submit_without_request(self, session):
        assert session.submit_text("orphan") is False
        assert session.annotations == []

    def test_cancel_text(self, session):
        session.set_tool(ToolType.TEXT)
        session.pointer_down(QPointF(30, 40))

        session.cancel_text()

        assert session.state == SessionState.IDLE
        assert session.pending_text_position is None

    def test_switching_tool_cancels_text(self, session):
        session.set_tool(ToolType.TEXT)
        session.pointer_down(QPointF(30, 40))

        session.set_tool(ToolType.PEN)

        assert session.state == SessionState.IDLE
        assert session.submit_text("late") is False


class TestStamps:
    """Tests for verdict stamps"""

    def test_stamp_centred_by_default(self, session):
        session.add_stamp(StampKind.OK)

        assert pixel(session, 25, 15) == StampKind.OK.background
        assert pixel(session, 5, 5) == BLUE
        record = session.annotations[0]
        assert record.annotation_type == AnnotationType.STAMP
        assert record.stamp == StampKind.OK
        assert record.points == [(100, 50)]

    @pytest.mark.parametrize("kind", list(StampKind))
    @pytest.mark.parametrize("size", [(200, 100), (640, 480)])
    def test_stamp_centred_on_any_buffer(self, kind, size):
        source = QImage(*size, QImage.Format.Format_RGB32)
        source.fill(BLUE)
        session = AnnotationSession(source)
        cx, cy = size[0] // 2, size[1] // 2

        session.add_stamp(kind)

        assert pixel(session, cx - 75, cy - 35) == kind.background
        assert pixel(session, cx + 75, cy + 35) == kind.background
        assert pixel(session, cx - 80, cy) == kind.foreground
        assert pixel(session, cx - 85, cy - 35) == BLUE
        assert pixel(session, cx + 85, cy + 35) == BLUE
        assert pixel(session, cx, cy - 45) == BLUE
        assert session.annotations[0].points == [(cx, cy)]

    def test_stamp_colours_distinct(self):
        pairs = {(kind.background.name(), kind.foreground.name()) for kind in StampKind}

        assert len(pairs) == 3
        assert all(kind.background != kind.foreground for kind in StampKind)
        assert [kind.label for kind in StampKind] == ["OK", "NG", "REVIEW"]

    def test_stamp_border(self, session):
        session.add_stamp(StampKind.NG)

        assert pixel(session, 20, 50) == StampKind.NG.foreground


class TestClearAndExport:
    """Tests for clearing and JPEG export"""

    def test_clear_restores_source(self, session, source_image):
        pristine = AnnotationSession(source_image).surface.to_image()
        drag(session, (10, 50), (190, 50))
        session.add_stamp(StampKind.NEEDS_REVIEW)

        session.clear()

        assert session.surface.to_image() == pristine
        assert session.annotations == []
        assert session.state == SessionState.IDLE

    def test_source_is_never_modified(self, session, source_image):
        original = source_image.copy()
        drag(session, (10, 50), (190, 50))

        assert session.source == original

    def test_export_jpeg(self, session):
        drag(session, (10, 50), (190, 50))

        data = session.export_jpeg(90)

        assert data[:2] == b"\xff\xd8"
        with Image.open(BytesIO(data)) as image:
            assert image.size == (200, 100)
            assert image.mode == "RGB"

    def test_annotations_returns_copy(self, session):
        drag(session, (10, 50), (190, 50))

        session.annotations.clear()

        assert len(session.annotations) == 1


class TestAnnotatedPhoto:
    """Tests for build_annotated_photo"""

    def test_inherits_project_category_signboard(self, sample_photo):
        new_photo = build_annotated_photo(sample_photo, b"jpeg")

        assert new_photo.project_id == "project-1"
        assert new_photo.category == sample_photo.category
        assert new_photo.signboard_id == "sb-1"
        assert new_photo.caption == "Rebar before pour (annotated)"
        assert new_photo.image_bytes == b"jpeg"
        assert new_photo.content_type == "image/jpeg"

    def test_filename(self, sample_photo):
        new_photo = build_annotated_photo(sample_photo, b"jpeg")

        assert new_photo.filename.startswith("annotated-")
        assert new_photo.filename.endswith(".jpg")

    def test_missing_caption(self, sample_photo):
        photo = PhotoRecord(
            id="p", project_id="x", filename="a.jpg", image_url="/a.jpg",
            taken_at=sample_photo.taken_at,
        )

        assert build_annotated_photo(photo, b"j").caption == "Photo (annotated)"
