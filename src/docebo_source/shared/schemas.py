"""
Schemas Module - Pydantic data models for the source.
=====================================================

Defines the data contracts at the API boundary and the emitted record:
- Catalog entries and catalog pages
- Course details and related-course items/lists
- CourseNode, the denormalized record handed to the sink

Required fields are explicit; optional fields default to None instead of
being dereferenced blindly. Unknown API fields are kept (extra="allow").
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from docebo_source.shared.logging import get_logger

logger = get_logger(__name__)

ItemId = Union[int, str]

NODE_PARENT = "__SOURCE__"
NODE_TYPE = "CoursePages"
ACTIVE_ACCESS_STATUS = 1


def id_key(value: ItemId) -> str:
    """Normalize an identifier for joins (10 and "10" are the same course)."""
    return str(value).strip()


# ─────────────────────────────────────────────────────────────────────────────
# Catalog Models
# ─────────────────────────────────────────────────────────────────────────────


class CatalogEntry(BaseModel):
    """One item of a catalog page."""

    model_config = ConfigDict(extra="allow")

    item_id: ItemId
    access_status: Optional[int] = None

    @property
    def key(self) -> str:
        """Join key of the entry."""
        return id_key(self.item_id)

    @property
    def is_active(self) -> bool:
        """Whether the entry is eligible for detail and related fetching."""
        return self.access_status == ACTIVE_ACCESS_STATUS


class CatalogPage(BaseModel):
    """
    The data envelope of one catalog page.

    Malformed entries are skipped one by one, so a single bad item does
    not cost the rest of the page.
    """

    items: list[CatalogEntry] = Field(default_factory=list)
    current_page: int
    has_more_data: bool = False

    @field_validator("items", mode="before")
    @classmethod
    def skip_malformed_entries(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        entries = []
        for raw in v:
            try:
                entries.append(CatalogEntry.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Docebo: Skipping malformed catalog entry {raw!r}: {e}")
        return entries


# ─────────────────────────────────────────────────────────────────────────────
# Course Models
# ─────────────────────────────────────────────────────────────────────────────


class CourseDetail(BaseModel):
    """Full record of one course, as returned by /learn/v1/courses/{id}."""

    model_config = ConfigDict(extra="allow")

    id: ItemId
    slug_name: Optional[str] = None
    thumbnail: Optional[Any] = None
    uidCourse: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[Any] = None
    credits: Optional[Any] = None
    additional_fields: Optional[Any] = None
    tree: Optional[Any] = None

    @field_validator("id")
    @classmethod
    def id_not_empty(cls, v: ItemId) -> ItemId:
        if id_key(v) == "":
            raise ValueError("course id must not be empty")
        return v

    @property
    def key(self) -> str:
        return id_key(self.id)


class RelatedCourseItem(BaseModel):
    """
    One related course as returned by the by_category endpoint.

    Raw API fields are carried through untouched; slug is filled in from
    the matching CourseDetail.
    """

    model_config = ConfigDict(extra="allow")

    id_course: ItemId
    slug: Optional[str] = None

    @property
    def key(self) -> str:
        return id_key(self.id_course)

    def to_record(self) -> dict[str, Any]:
        """Dump the item with its raw fields and slug."""
        return self.model_dump()


class RelatedCourseList(BaseModel):
    """Related courses of one catalog entry."""

    id: str
    items: list[RelatedCourseItem] = Field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Output Record
# ─────────────────────────────────────────────────────────────────────────────


class NodeInternal(BaseModel):
    """Node bookkeeping fields consumed by the sink."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = NODE_TYPE
    content_digest: Optional[str] = Field(default=None, alias="contentDigest")


class CourseNode(BaseModel):
    """
    Denormalized course record emitted to the sink.

    related_courses is None when no related list matched the course; it is
    then left out of the record entirely.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    parent: str = NODE_PARENT
    internal: NodeInternal = Field(default_factory=NodeInternal)
    slug: Optional[str] = None
    img: Optional[Any] = None
    uid_course: Optional[str] = Field(default=None, alias="uidCourse")
    name: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[Any] = None
    credits: Optional[Any] = None
    additional_fields: Optional[Any] = Field(default=None, alias="additionalFields")
    tree: Optional[Any] = None
    related_courses: Optional[list[dict[str, Any]]] = Field(
        default=None, alias="relatedCourses"
    )

    @field_validator("id")
    @classmethod
    def id_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("node id must not be empty")
        return v

    @classmethod
    def from_detail(
        cls,
        detail: CourseDetail,
        related: Optional[RelatedCourseList] = None,
    ) -> "CourseNode":
        """Build a node from a course detail and its related list, if any."""
        return cls(
            id=detail.key,
            slug=detail.slug_name,
            img=detail.thumbnail,
            uid_course=detail.uidCourse,
            name=detail.name,
            description=detail.description,
            duration=detail.duration,
            credits=detail.credits,
            additional_fields=detail.additional_fields,
            tree=detail.tree,
            related_courses=(
                [item.to_record() for item in related.items] if related is not None else None
            ),
        )

    def content_payload(self) -> dict[str, Any]:
        """The record without its content digest, i.e. what gets hashed."""
        record = self.model_dump(by_alias=True)
        record["internal"].pop("contentDigest", None)
        if record.get("relatedCourses") is None:
            record.pop("relatedCourses", None)
        return record

    def to_record(self) -> dict[str, Any]:
        """The record as handed to the sink."""
        record = self.content_payload()
        if self.internal.content_digest is not None:
            record["internal"]["contentDigest"] = self.internal.content_digest
        return record
