import uuid
from typing import Optional

from sqlalchemy import TEXT, Boolean, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.errors import Error, Result
from ..events.domain_events import (
    CategoryCreatedEvent,
    CategoryHierarchyChangedEvent,
    CategoryStatusChangedEvent,
    CategoryUpdatedEvent,
)
from .base import AggregateRoot
from .value_objects import Slug


class CategoryErrors:
    NameRequired = Error.validation("Category.NameRequired", "Category name cannot be empty")
    CircularReference = Error.validation(
        "Category.CircularReference",
        "Circular reference: a category cannot be its own parent or ancestor",
    )

    @staticmethod
    def not_found(category_id: object) -> Error:
        return Error.not_found(
            "Category.NotFound", f"Category with ID {category_id} was not found"
        )

    @staticmethod
    def slug_not_found(slug: str) -> Error:
        return Error.not_found(
            "Category.NotFound", f"Category with slug '{slug}' was not found"
        )

    @staticmethod
    def duplicate_slug(slug: str) -> Error:
        return Error.conflict(
            "Category.DuplicateSlug", f"A category with slug '{slug}' already exists"
        )


class Category(AggregateRoot):
    """
    Catalog category.

    ``level`` and ``path`` are materialized from the ancestor chain and only
    ever written by the aggregate itself.
    """

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("categories.id"), nullable=True, index=True
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    path: Mapped[str] = mapped_column(String(2048), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @classmethod
    def create(
        cls,
        name: str,
        slug: str,
        description: Optional[str] = None,
        parent: Optional["Category"] = None,
        is_active: bool = True,
    ) -> Result["Category"]:
        if not name or not name.strip():
            return Result.failure(CategoryErrors.NameRequired)

        slug_result = Slug.create(slug)
        if slug_result.is_failure:
            return slug_result

        category = cls(
            id=uuid.uuid4(),
            name=name.strip(),
            slug=slug_result.value.value,
            description=description,
            is_active=is_active,
        )
        category._place_under(parent)
        category.add_domain_event(
            CategoryCreatedEvent(category_id=category.id, parent_id=category.parent_id)
        )
        return Result.success(category)

    @classmethod
    def create_inactive(
        cls,
        name: str,
        slug: str,
        description: Optional[str] = None,
        parent: Optional["Category"] = None,
    ) -> Result["Category"]:
        return cls.create(name, slug, description, parent, is_active=False)

    def update(
        self, name: str, slug: str, description: Optional[str] = None
    ) -> Result["Category"]:
        """Rename; a new slug also rewrites the last segment of ``path``"""
        if not name or not name.strip():
            return Result.failure(CategoryErrors.NameRequired)

        slug_result = Slug.create(slug)
        if slug_result.is_failure:
            return slug_result

        self.name = name.strip()
        self.description = description
        if slug_result.value.value != self.slug:
            self.slug = slug_result.value.value
            self.path = f"{self.parent_path}/{self.slug}"

        self.add_domain_event(
            CategoryUpdatedEvent(category_id=self.id, parent_id=self.parent_id)
        )
        return Result.success(self)

    def activate(self) -> Result[None]:
        return self.change_status(True)

    def deactivate(self) -> Result[None]:
        return self.change_status(False)

    def change_status(self, is_active: bool) -> Result[None]:
        """Idempotent; never touches descendants"""
        if self.is_active == is_active:
            return Result.success()

        self.is_active = is_active
        self.add_domain_event(
            CategoryStatusChangedEvent(
                category_id=self.id, is_active=is_active, parent_id=self.parent_id
            )
        )
        return Result.success()

    def set_parent(self, parent: Optional["Category"]) -> Result[None]:
        """
        Move under ``parent`` (or to the root when ``None``).

        Only this node is recomputed here; descendants are refreshed by the
        hierarchy service through ``rebase_path``.
        """
        if parent is not None and (
            parent.id == self.id or self.is_ancestor_of(parent)
        ):
            return Result.failure(CategoryErrors.CircularReference)

        old_parent_id = self.parent_id
        self._place_under(parent)
        self.add_domain_event(
            CategoryHierarchyChangedEvent(
                category_id=self.id,
                old_parent_id=old_parent_id,
                new_parent_id=self.parent_id,
            )
        )
        return Result.success()

    def rebase_path(self, parent: Optional["Category"]) -> bool:
        """Recompute level/path from an already-moved parent; True if changed"""
        if parent is None:
            expected_level = 0
            expected_path = f"/{self.slug}"
        else:
            expected_level = parent.level + 1
            expected_path = f"{parent.path}/{self.slug}"
        if self.level == expected_level and self.path == expected_path:
            return False

        self.level = expected_level
        self.path = expected_path
        self.add_domain_event(
            CategoryHierarchyChangedEvent(
                category_id=self.id,
                old_parent_id=self.parent_id,
                new_parent_id=self.parent_id,
            )
        )
        return True

    def is_ancestor_of(self, other: "Category") -> bool:
        return bool(self.path) and other.path.startswith(f"{self.path}/")

    @property
    def parent_path(self) -> str:
        """Path of the parent, empty for roots"""
        return self.path.rsplit("/", 1)[0] if self.path else ""

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def _place_under(self, parent: Optional["Category"]) -> None:
        if parent is None:
            self.parent_id = None
            self.level = 0
            self.path = f"/{self.slug}"
        else:
            self.parent_id = parent.id
            self.level = parent.level + 1
            self.path = f"{parent.path}/{self.slug}"

    def __repr__(self) -> str:
        return f"<Category {self.slug} level={self.level} path={self.path}>"
