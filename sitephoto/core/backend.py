"""
Backend clients for SitePhoto.

The client talks to a REST backend that stores projects, signboards and
photos. Three deployments (local server, edge worker, lambda) expose the
same surface, so one HTTP client covers all of them:

- PhotoBackend: abstract interface used by the UI and the editor
- RestBackend: HTTP implementation on top of requests
- InMemoryBackend: dict-backed implementation for tests and offline mode
"""

import json
import math
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin
from uuid import uuid4

import requests

from sitephoto.core.errors import BackendError, LoadError
from sitephoto.core.models import (
    ListResult,
    NewPhoto,
    Pagination,
    PhotoCategory,
    PhotoRecord,
    Project,
    Signboard,
)
from sitephoto.services.logging_service import get_logger


class PhotoBackend(ABC):
    """Operations the client needs from the CRUD backend."""

    @abstractmethod
    def list_projects(self) -> List[Project]:
        pass

    @abstractmethod
    def get_project(self, project_id: str) -> Project:
        pass

    @abstractmethod
    def list_photos(
        self,
        project_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> ListResult[PhotoRecord]:
        pass

    @abstractmethod
    def get_photo(self, photo_id: str) -> PhotoRecord:
        pass

    @abstractmethod
    def fetch_image(self, photo: PhotoRecord) -> bytes:
        """
        Download the encoded image of a photo.

        Raises:
            LoadError: If the image cannot be retrieved.
        """
        pass

    @abstractmethod
    def create_photo(self, new_photo: NewPhoto) -> PhotoRecord:
        pass

    @abstractmethod
    def update_photo(self, photo_id: str, changes: Dict[str, Any]) -> PhotoRecord:
        pass

    @abstractmethod
    def delete_photo(self, photo_id: str) -> None:
        pass

    @abstractmethod
    def list_signboards(self, project_id: Optional[str] = None) -> List[Signboard]:
        pass

    @abstractmethod
    def get_signboard(self, signboard_id: str) -> Signboard:
        pass

    def list_all_photos(self, project_id: Optional[str] = None, limit: int = 100) -> List[PhotoRecord]:
        """Walk every page of the photo listing."""
        photos: List[PhotoRecord] = []
        page = 1
        while True:
            result = self.list_photos(project_id=project_id, page=page, limit=limit)
            photos.extend(result.items)
            if page >= result.pagination.total_pages or not result.items:
                return photos
            page += 1


class RestBackend(PhotoBackend):
    """
    HTTP client for the SitePhoto REST API.

    Responses use the envelope {success, data, error: {code, message}}.
    Any non-2xx status or `success: false` raises BackendError.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._logger = get_logger(__name__)
        self._base_url = base_url.rstrip("/") + "/"
        self._timeout = timeout
        self._session = session or requests.Session()
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, path: str) -> str:
        return urljoin(self._base_url, path.lstrip("/"))

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = self._url(path)
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as e:
            self._logger.error(f"{method} {url} failed: {e}")
            raise BackendError("NETWORK_ERROR", str(e)) from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.ok or not isinstance(payload, dict) or not payload.get("success", False):
            error = {}
            if isinstance(payload, dict):
                error = payload.get("error") or {}
            code = error.get("code", "HTTP_ERROR")
            message = error.get("message") or f"API Error: {response.status_code}"
            self._logger.warning(f"{method} {url} -> {response.status_code} {code}: {message}")
            raise BackendError(code, message, response.status_code)

        return payload.get("data")

    # ─── Projects ─────────────────────────────────────────────────────────

    def list_projects(self, limit: int = 100) -> List[Project]:
        """Every project, walking the paginated listing."""
        projects: List[Project] = []
        page = 1
        while True:
            data = self._request("GET", "/projects", params={"page": page, "limit": limit}) or {}
            items = data.get("items", [])
            projects.extend(Project.from_dict(item) for item in items)
            pagination = data.get("pagination")
            if not pagination or not items or page >= Pagination.from_dict(pagination).total_pages:
                return projects
            page += 1

    def get_project(self, project_id: str) -> Project:
        return Project.from_dict(self._request("GET", f"/projects/{project_id}"))

    # ─── Photos ───────────────────────────────────────────────────────────

    def list_photos(
        self,
        project_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> ListResult[PhotoRecord]:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if project_id:
            params["projectId"] = project_id
        data = self._request("GET", "/photos", params=params) or {}
        items = [PhotoRecord.from_dict(item) for item in data.get("items", [])]
        pagination = data.get("pagination")
        if pagination:
            return ListResult(items, Pagination.from_dict(pagination))
        return ListResult(items, Pagination(page, limit, len(items), 1))

    def get_photo(self, photo_id: str) -> PhotoRecord:
        return PhotoRecord.from_dict(self._request("GET", f"/photos/{photo_id}"))

    def image_url(self, photo: PhotoRecord) -> str:
        """Absolute URL of a photo image; relative paths resolve against the host."""
        return urljoin(self._base_url, photo.image_url)

    def fetch_image(self, photo: PhotoRecord) -> bytes:
        url = self.image_url(photo)
        try:
            response = self._session.get(url, timeout=self._timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise LoadError(f"Could not load image for photo {photo.id}: {e}") from e
        return response.content

    def create_photo(self, new_photo: NewPhoto) -> PhotoRecord:
        form: Dict[str, str] = {"projectId": new_photo.project_id}
        if new_photo.caption:
            form["caption"] = new_photo.caption
        if new_photo.signboard_id:
            form["signboardId"] = new_photo.signboard_id
        if new_photo.category and not new_photo.category.is_empty():
            form["category"] = json.dumps(new_photo.category.to_dict(), ensure_ascii=False)

        files = {
            "photo": (new_photo.filename, new_photo.image_bytes, new_photo.content_type),
        }
        data = self._request("POST", "/photos/upload", data=form, files=files)
        record = PhotoRecord.from_dict(data)
        self._logger.info(f"Uploaded photo {record.id} to project {record.project_id}")
        return record

    def update_photo(self, photo_id: str, changes: Dict[str, Any]) -> PhotoRecord:
        return PhotoRecord.from_dict(self._request("PUT", f"/photos/{photo_id}", json=changes))

    def delete_photo(self, photo_id: str) -> None:
        self._request("DELETE", f"/photos/{photo_id}")

    # ─── Signboards ───────────────────────────────────────────────────────

    def list_signboards(self, project_id: Optional[str] = None) -> List[Signboard]:
        params = {"projectId": project_id} if project_id else None
        data = self._request("GET", "/signboards", params=params) or {}
        items = data.get("items", []) if isinstance(data, dict) else data
        return [Signboard.from_dict(item) for item in items]

    def get_signboard(self, signboard_id: str) -> Signboard:
        return Signboard.from_dict(self._request("GET", f"/signboards/{signboard_id}"))


class InMemoryBackend(PhotoBackend):
    """Dict-backed backend used by tests and the offline demo mode."""

    def __init__(self) -> None:
        self._logger = get_logger(__name__)
        self._projects: Dict[str, Project] = {}
        self._photos: Dict[str, PhotoRecord] = {}
        self._images: Dict[str, bytes] = {}
        self._signboards: Dict[str, Signboard] = {}

    # ─── Seeding ──────────────────────────────────────────────────────────

    def add_project(self, name: str, location: str = "", status: str = "in_progress") -> Project:
        project = Project(id=str(uuid4()), name=name, location=location, status=status)
        self._projects[project.id] = project
        return project

    def add_signboard(self, signboard: Signboard) -> Signboard:
        self._signboards[signboard.id] = signboard
        return signboard

    def add_photo(
        self,
        project_id: str,
        image_bytes: bytes,
        caption: Optional[str] = None,
        category: Optional[PhotoCategory] = None,
        taken_at: Optional[datetime] = None,
        filename: Optional[str] = None,
        signboard_id: Optional[str] = None,
    ) -> PhotoRecord:
        photo_id = str(uuid4())
        record = PhotoRecord(
            id=photo_id,
            project_id=project_id,
            filename=filename or f"photo-{photo_id}.jpg",
            image_url=f"memory://{photo_id}",
            taken_at=taken_at or datetime.now(timezone.utc),
            caption=caption,
            category=category,
            signboard_id=signboard_id,
        )
        self._photos[photo_id] = record
        self._images[photo_id] = image_bytes
        return record

    # ─── PhotoBackend ─────────────────────────────────────────────────────

    def _not_found(self, kind: str, item_id: str) -> BackendError:
        return BackendError("NOT_FOUND", f"{kind} not found: {item_id}", 404)

    def list_projects(self) -> List[Project]:
        return list(self._projects.values())

    def get_project(self, project_id: str) -> Project:
        if project_id not in self._projects:
            raise self._not_found("Project", project_id)
        return self._projects[project_id]

    def list_photos(
        self,
        project_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> ListResult[PhotoRecord]:
        photos = [
            p for p in self._photos.values()
            if project_id is None or p.project_id == project_id
        ]
        total = len(photos)
        start = (page - 1) * limit
        pagination = Pagination(page, limit, total, math.ceil(total / limit) if limit else 0)
        return ListResult(photos[start:start + limit], pagination)

    def get_photo(self, photo_id: str) -> PhotoRecord:
        if photo_id not in self._photos:
            raise self._not_found("Photo", photo_id)
        return self._photos[photo_id]

    def fetch_image(self, photo: PhotoRecord) -> bytes:
        if photo.id not in self._images:
            raise LoadError(f"Could not load image for photo {photo.id}")
        return self._images[photo.id]

    def create_photo(self, new_photo: NewPhoto) -> PhotoRecord:
        if not new_photo.project_id:
            raise BackendError("VALIDATION_ERROR", "projectId is required", 400)
        if not new_photo.image_bytes:
            raise BackendError("NO_FILE", "No file uploaded", 400)
        record = self.add_photo(
            new_photo.project_id,
            new_photo.image_bytes,
            caption=new_photo.caption,
            category=new_photo.category,
            filename=new_photo.filename,
            signboard_id=new_photo.signboard_id,
        )
        self._logger.info(f"Stored photo {record.id} ({len(new_photo.image_bytes)} bytes)")
        return record

    def update_photo(self, photo_id: str, changes: Dict[str, Any]) -> PhotoRecord:
        record = self.get_photo(photo_id)
        if "caption" in changes:
            record.caption = changes["caption"]
        if "category" in changes:
            record.category = PhotoCategory.from_dict(changes["category"])
        if "signboardId" in changes:
            record.signboard_id = changes["signboardId"]
        return record

    def delete_photo(self, photo_id: str) -> None:
        if photo_id not in self._photos:
            raise self._not_found("Photo", photo_id)
        del self._photos[photo_id]
        self._images.pop(photo_id, None)

    def list_signboards(self, project_id: Optional[str] = None) -> List[Signboard]:
        return [
            s for s in self._signboards.values()
            if project_id is None or s.project_id == project_id
        ]

    def get_signboard(self, signboard_id: str) -> Signboard:
        if signboard_id not in self._signboards:
            raise self._not_found("Signboard", signboard_id)
        return self._signboards[signboard_id]
