"""
Tests for the REST and in-memory backends
"""
import json
from unittest.mock import MagicMock

import pytest
import requests

from sitephoto.core.backend import InMemoryBackend, RestBackend
from sitephoto.core.errors import BackendError, LoadError
from sitephoto.core.models import NewPhoto, PhotoCategory, PhotoRecord

PHOTO_JSON = {
    "id": "photo-1",
    "projectId": "project-1",
    "filename": "IMG_0001.jpg",
    "filepath": "/uploads/IMG_0001.jpg",
    "takenAt": "2026-05-01T09:30:00Z",
    "caption": "Rebar",
    "category": {"process": "foundation", "workType": "civil"},
}


def make_response(payload=None, status=200, content=b""):
    response = MagicMock()
    response.ok = 200 <= status < 300
    response.status_code = status
    response.content = content
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    if response.ok:
        response.raise_for_status.return_value = None
    else:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status}")
    return response


@pytest.fixture
def http():
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def rest(http):
    return RestBackend("http://localhost:3000/api", token="secret", session=http)


class TestRestBackendRequests:
    """Tests for the request envelope handling"""

    def test_token_sent_as_bearer(self, rest, http):
        assert http.headers["Authorization"] == "Bearer secret"

    def test_no_token_no_header(self, http):
        RestBackend("http://localhost:3000/api", session=http)

        assert "Authorization" not in http.headers

    def test_list_projects(self, rest, http):
        http.request.return_value = make_response({
            "success": True,
            "data": {"items": [{"id": "p1", "name": "Riverside", "status": "in_progress"}]},
        })

        projects = rest.list_projects()

        assert [p.name for p in projects] == ["Riverside"]
        method, url = http.request.call_args[0]
        assert (method, url) == ("GET", "http://localhost:3000/api/projects")

    def test_list_projects_walks_pages(self, rest, http):
        http.request.side_effect = [
            make_response({"success": True, "data": {
                "items": [{"id": "p1", "name": "Riverside"}],
                "pagination": {"page": 1, "limit": 1, "total": 2, "totalPages": 2},
            }}),
            make_response({"success": True, "data": {
                "items": [{"id": "p2", "name": "Warehouse"}],
                "pagination": {"page": 2, "limit": 1, "total": 2, "totalPages": 2},
            }}),
        ]

        projects = rest.list_projects(limit=1)

        assert [p.id for p in projects] == ["p1", "p2"]
        assert http.request.call_count == 2
        assert http.request.call_args[1]["params"] == {"page": 2, "limit": 1}

    def test_error_envelope_raises(self, rest, http):
        http.request.return_value = make_response(
            {"success": False, "error": {"code": "NOT_FOUND", "message": "Photo not found"}},
            status=404,
        )

        with pytest.raises(BackendError) as exc_info:
            rest.get_photo("missing")

        assert exc_info.value.code == "NOT_FOUND"
        assert exc_info.value.status == 404
        assert exc_info.value.message == "Photo not found"

    def test_success_false_with_200(self, rest, http):
        http.request.return_value = make_response({"success": False})

        with pytest.raises(BackendError) as exc_info:
            rest.list_projects()

        assert exc_info.value.code == "HTTP_ERROR"

    def test_non_json_error(self, rest, http):
        http.request.return_value = make_response(None, status=502)

        with pytest.raises(BackendError) as exc_info:
            rest.list_projects()

        assert exc_info.value.message == "API Error: 502"

    def test_network_error(self, rest, http):
        http.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(BackendError) as exc_info:
            rest.list_projects()

        assert exc_info.value.code == "NETWORK_ERROR"


class TestRestBackendPhotos:
    """Tests for photo operations over HTTP"""

    def test_list_photos_with_pagination(self, rest, http):
        http.request.return_value = make_response({
            "success": True,
            "data": {
                "items": [PHOTO_JSON],
                "pagination": {"page": 2, "limit": 10, "total": 11, "totalPages": 2},
            },
        })

        result = rest.list_photos(project_id="project-1", page=2, limit=10)

        assert result.items[0].id == "photo-1"
        assert result.items[0].category.work_type == "civil"
        assert result.pagination.total_pages == 2
        params = http.request.call_args[1]["params"]
        assert params == {"page": 2, "limit": 10, "projectId": "project-1"}

    def test_list_all_photos_walks_pages(self, rest, http):
        second = dict(PHOTO_JSON, id="photo-2")
        http.request.side_effect = [
            make_response({"success": True, "data": {
                "items": [PHOTO_JSON],
                "pagination": {"page": 1, "limit": 1, "total": 2, "totalPages": 2},
            }}),
            make_response({"success": True, "data": {
                "items": [second],
                "pagination": {"page": 2, "limit": 1, "total": 2, "totalPages": 2},
            }}),
        ]

        photos = rest.list_all_photos(limit=1)

        assert [p.id for p in photos] == ["photo-1", "photo-2"]

    def test_image_url_resolves_against_host(self, rest):
        photo = PhotoRecord.from_dict(PHOTO_JSON)

        assert rest.image_url(photo) == "http://localhost:3000/uploads/IMG_0001.jpg"

    def test_fetch_image(self, rest, http):
        http.get.return_value = make_response(content=b"\xff\xd8jpeg")

        data = rest.fetch_image(PhotoRecord.from_dict(PHOTO_JSON))

        assert data == b"\xff\xd8jpeg"

    def test_fetch_image_failure(self, rest, http):
        http.get.return_value = make_response(status=404)

        with pytest.raises(LoadError):
            rest.fetch_image(PhotoRecord.from_dict(PHOTO_JSON))

    def test_create_photo_multipart(self, rest, http):
        http.request.return_value = make_response({"success": True, "data": PHOTO_JSON})
        new_photo = NewPhoto(
            project_id="project-1",
            image_bytes=b"jpeg",
            filename="annotated-1.jpg",
            caption="Rebar (annotated)",
            category=PhotoCategory(process="foundation", location="基礎"),
            signboard_id="sb-1",
        )

        record = rest.create_photo(new_photo)

        assert record.id == "photo-1"
        args, kwargs = http.request.call_args
        assert args == ("POST", "http://localhost:3000/api/photos/upload")
        assert kwargs["files"] == {"photo": ("annotated-1.jpg", b"jpeg", "image/jpeg")}
        form = kwargs["data"]
        assert form["projectId"] == "project-1"
        assert form["caption"] == "Rebar (annotated)"
        assert form["signboardId"] == "sb-1"
        assert json.loads(form["category"]) == {"process": "foundation", "location": "基礎"}
        assert "基礎" in form["category"]

    def test_update_and_delete(self, rest, http):
        http.request.return_value = make_response({"success": True, "data": PHOTO_JSON})

        rest.update_photo("photo-1", {"caption": "Rebar"})
        assert http.request.call_args[0] == ("PUT", "http://localhost:3000/api/photos/photo-1")
        assert http.request.call_args[1]["json"] == {"caption": "Rebar"}

        rest.delete_photo("photo-1")
        assert http.request.call_args[0] == ("DELETE", "http://localhost:3000/api/photos/photo-1")

    def test_signboards(self, rest, http):
        http.request.return_value = make_response({"success": True, "data": {"items": [{
            "id": "sb-1",
            "projectId": "project-1",
            "title": "Riverside",
            "content": {"projectName": "Riverside Office", "contractor": "ACME"},
        }]}})

        signboards = rest.list_signboards("project-1")

        assert signboards[0].content.contractor == "ACME"
        assert http.request.call_args[1]["params"] == {"projectId": "project-1"}


class TestInMemoryBackend:
    """Tests for the dict-backed backend"""

    def test_list_photos_paginates(self, memory_backend):
        result = memory_backend.list_photos(page=2, limit=2)

        assert [p.caption for p in result.items] == ["Photo 3"]
        assert result.pagination.total == 3
        assert result.pagination.total_pages == 2

    def test_list_all_photos(self, memory_backend):
        photos = memory_backend.list_all_photos(limit=2)

        assert [p.caption for p in photos] == ["Photo 1", "Photo 2", "Photo 3"]

    def test_filter_by_project(self, memory_backend, jpeg_bytes):
        other = memory_backend.add_project("Other")
        memory_backend.add_photo(other.id, jpeg_bytes, caption="Elsewhere")

        photos = memory_backend.list_all_photos(other.id)

        assert [p.caption for p in photos] == ["Elsewhere"]

    def test_create_and_fetch(self, memory_backend, jpeg_bytes):
        project = memory_backend.list_projects()[0]

        record = memory_backend.create_photo(NewPhoto(project.id, jpeg_bytes, "a.jpg", "New"))

        assert memory_backend.get_photo(record.id).caption == "New"
        assert memory_backend.fetch_image(record) == jpeg_bytes

    def test_create_requires_project(self, memory_backend):
        with pytest.raises(BackendError) as exc_info:
            memory_backend.create_photo(NewPhoto("", b"jpeg", "a.jpg"))

        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_create_requires_file(self, memory_backend):
        project = memory_backend.list_projects()[0]

        with pytest.raises(BackendError) as exc_info:
            memory_backend.create_photo(NewPhoto(project.id, b"", "a.jpg"))

        assert exc_info.value.code == "NO_FILE"

    def test_update_photo(self, memory_backend):
        photo = memory_backend.list_all_photos()[0]

        updated = memory_backend.update_photo(photo.id, {
            "caption": "Renamed",
            "category": {"process": "inspection"},
        })

        assert updated.caption == "Renamed"
        assert updated.category.process == "inspection"

    def test_delete_photo(self, memory_backend):
        photo = memory_backend.list_all_photos()[0]

        memory_backend.delete_photo(photo.id)

        with pytest.raises(BackendError) as exc_info:
            memory_backend.get_photo(photo.id)
        assert exc_info.value.status == 404
        with pytest.raises(LoadError):
            memory_backend.fetch_image(photo)

    def test_signboards(self, sample_signboard):
        backend = InMemoryBackend()
        backend.add_signboard(sample_signboard)

        assert backend.get_signboard("sb-1") is sample_signboard
        assert backend.list_signboards("project-1") == [sample_signboard]
        assert backend.list_signboards("other") == []
        with pytest.raises(BackendError):
            backend.get_signboard("missing")
