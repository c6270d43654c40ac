"""
Record models for the SitePhoto backend.

Plain dataclasses mirroring the backend's JSON payloads. Keys on the wire
are camelCase; `from_dict` / `to_dict` translate them.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar

PROCESS_LABELS: Dict[str, str] = {
    "foundation": "Foundation",
    "structure": "Structure",
    "finishing": "Finishing",
    "completion": "Completion",
    "inspection": "Inspection",
    "other": "Other",
}

WORK_TYPE_LABELS: Dict[str, str] = {
    "architecture": "Architecture",
    "electrical": "Electrical",
    "plumbing": "Plumbing",
    "civil": "Civil",
    "landscape": "Landscape",
    "other": "Other",
}


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp (a trailing 'Z' is accepted)."""
    if isinstance(value, datetime):
        return value
    if not value:
        return datetime.now(timezone.utc)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass
class PhotoCategory:
    """Classification metadata attached to a photo."""
    process: Optional[str] = None
    location: Optional[str] = None
    work_type: Optional[str] = None

    def labels(self) -> List[str]:
        """Display labels in order process, location, work type."""
        parts = []
        if self.process:
            parts.append(PROCESS_LABELS.get(self.process, self.process))
        if self.location:
            parts.append(self.location)
        if self.work_type:
            parts.append(WORK_TYPE_LABELS.get(self.work_type, self.work_type))
        return parts

    def is_empty(self) -> bool:
        return not (self.process or self.location or self.work_type)

    def to_dict(self) -> Dict[str, str]:
        data = {}
        if self.process:
            data["process"] = self.process
        if self.location:
            data["location"] = self.location
        if self.work_type:
            data["workType"] = self.work_type
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["PhotoCategory"]:
        if not data:
            return None
        return cls(
            process=data.get("process"),
            location=data.get("location"),
            work_type=data.get("workType"),
        )


@dataclass
class PhotoRecord:
    """A stored photo."""
    id: str
    project_id: str
    filename: str
    image_url: str
    taken_at: datetime
    caption: Optional[str] = None
    category: Optional[PhotoCategory] = None
    signboard_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "projectId": self.project_id,
            "filename": self.filename,
            "filepath": self.image_url,
            "takenAt": self.taken_at.isoformat(),
        }
        if self.caption is not None:
            data["caption"] = self.caption
        if self.category is not None:
            data["category"] = self.category.to_dict()
        if self.signboard_id:
            data["signboardId"] = self.signboard_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PhotoRecord":
        # The edge and lambda deployments expose thumbnailUrl, the local
        # server only filepath
        image_url = (
            data.get("thumbnailUrl")
            or data.get("filepath")
            or f"/uploads/{data.get('filename', '')}"
        )
        return cls(
            id=data["id"],
            project_id=data["projectId"],
            filename=data.get("filename", ""),
            image_url=image_url,
            taken_at=parse_timestamp(data.get("takenAt")),
            caption=data.get("caption"),
            category=PhotoCategory.from_dict(data.get("category")),
            signboard_id=data.get("signboardId"),
        )


@dataclass
class NewPhoto:
    """A request to create a photo record from encoded image bytes."""
    project_id: str
    image_bytes: bytes
    filename: str
    caption: Optional[str] = None
    category: Optional[PhotoCategory] = None
    signboard_id: Optional[str] = None
    content_type: str = "image/jpeg"


@dataclass
class Project:
    """A construction job."""
    id: str
    name: str
    location: str = ""
    status: str = "planned"
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            location=data.get("location", ""),
            status=data.get("status", "planned"),
            description=data.get("description"),
        )


@dataclass
class SignboardContent:
    """Text shown on a site signboard."""
    project_name: str = ""
    construction_period: str = ""
    contractor: str = ""
    supervisor: Optional[str] = None
    contact: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SignboardContent":
        data = data or {}
        return cls(
            project_name=data.get("projectName", ""),
            construction_period=data.get("constructionPeriod", ""),
            contractor=data.get("contractor", ""),
            supervisor=data.get("supervisor"),
            contact=data.get("contact"),
        )


@dataclass
class Signboard:
    """A metadata placard shown in site photos."""
    id: str
    project_id: str
    title: str
    content: SignboardContent = field(default_factory=SignboardContent)

    @property
    def heading(self) -> str:
        return f"【{self.content.project_name or self.title}】"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Signboard":
        return cls(
            id=data["id"],
            project_id=data.get("projectId", ""),
            title=data.get("title", ""),
            content=SignboardContent.from_dict(data.get("content")),
        )


@dataclass
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pagination":
        return cls(
            page=int(data.get("page", 1)),
            limit=int(data.get("limit", 20)),
            total=int(data.get("total", 0)),
            total_pages=int(data.get("totalPages", 0)),
        )


T = TypeVar("T")


@dataclass
class ListResult(Generic[T]):
    """One page of a paginated listing."""
    items: List[T]
    pagination: Pagination
