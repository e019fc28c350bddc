"""
Category tree maintenance.

Moving a category rewrites ``level`` and ``path`` for the whole subtree in the
same unit of work, so readers never observe a half-moved branch.
"""

import uuid
from collections import defaultdict, deque
from typing import Deque, Dict, List, Optional, Sequence, Set

from ..core.errors import Result
from ..core.settings import get_settings
from ..core.unit_of_work import UnitOfWork
from ..models.category import Category, CategoryErrors
from ..utils.logging import setup_store_logging as setup_logging

logger = setup_logging("store_service.category_hierarchy", log_level=get_settings().LOG_LEVEL)


class CategoryHierarchyService:
    """Cycle checks, reparenting and hierarchy repair"""

    def __init__(self, uow: UnitOfWork, max_depth: Optional[int] = None):
        self.uow = uow
        self.max_depth = max_depth or get_settings().CATEGORY_MAX_DEPTH

    async def ensure_no_cycle(
        self, category_id: uuid.UUID, new_parent_id: Optional[uuid.UUID]
    ) -> Result[List[uuid.UUID]]:
        """
        Walk up from ``new_parent_id`` and fail if ``category_id`` is reached.

        On success the value is the ancestor chain that was walked, nearest
        first. The walk also stops on a revisited node or after ``max_depth``
        steps, both of which mean the stored tree is already corrupt.
        """
        visited: List[uuid.UUID] = []
        current = new_parent_id
        while current is not None:
            if current == category_id:
                return Result.failure(CategoryErrors.CircularReference)
            if current in visited or len(visited) >= self.max_depth:
                logger.warning(
                    "Category ancestor walk aborted on corrupt hierarchy",
                    extra={
                        "category_id": str(category_id),
                        "new_parent_id": str(new_parent_id),
                        "steps": len(visited),
                    },
                )
                return Result.failure(CategoryErrors.CircularReference)
            visited.append(current)
            current = await self.uow.category_reader.get_parent_id(current)
        return Result.success(visited)

    async def reparent(
        self, category: Category, new_parent: Optional[Category]
    ) -> Result[List[Category]]:
        """
        Move ``category`` under ``new_parent`` and rebase its descendants.

        Every ancestor the cycle check relied on is written with a version
        bump, so a concurrent move that would close a loop through one of them
        fails with a concurrency conflict on save. Returns the descendants
        whose level/path changed.
        """
        new_parent_id = new_parent.id if new_parent is not None else None
        if category.parent_id == new_parent_id:
            return Result.success([])

        cycle_check = await self.ensure_no_cycle(category.id, new_parent_id)
        if cycle_check.is_failure:
            return cycle_check

        for ancestor_id in cycle_check.value:
            ancestor = await self.uow.category_writer.get_by_id(ancestor_id)
            if ancestor is not None:
                ancestor.touch()

        # Loaded before the move, while their paths still sit under the old one
        descendants = await self.uow.category_writer.get_descendants(category)

        moved = category.set_parent(new_parent)
        if moved.is_failure:
            return moved

        rebased = self.rebase_subtree(category, descendants)
        logger.info(
            "Category moved",
            extra={
                "category_id": str(category.id),
                "new_parent_id": str(new_parent_id) if new_parent_id else None,
                "level": category.level,
                "path": category.path,
                "descendants_rebased": len(rebased),
            },
        )
        return Result.success(rebased)

    async def refresh_descendants(
        self, category: Category, old_path: str
    ) -> List[Category]:
        """Rebase the subtree that lived under ``old_path`` after a slug change"""
        if old_path == category.path:
            return []

        descendants = await self.uow.category_writer.get_descendants_by_path(old_path)
        return self.rebase_subtree(category, descendants)

    @staticmethod
    def rebase_subtree(
        root: Category, descendants: Sequence[Category]
    ) -> List[Category]:
        """``descendants`` must be ordered top-down"""
        by_id: Dict[uuid.UUID, Category] = {root.id: root}
        by_id.update((d.id, d) for d in descendants)

        rebased = []
        for descendant in descendants:
            parent = by_id.get(descendant.parent_id)
            if parent is None:
                continue
            if descendant.rebase_path(parent):
                rebased.append(descendant)
        return rebased

    async def rebuild_hierarchy(self) -> Dict[str, int]:
        """
        Recompute level/path of every category from its parent links.

        Categories whose parent no longer exists become roots. Nodes caught in a
        parent cycle cannot be reached from any root and are left untouched.
        """
        categories = await self.uow.category_writer.get_all()
        by_id = {c.id: c for c in categories}

        children: Dict[Optional[uuid.UUID], List[Category]] = defaultdict(list)
        for category in categories:
            parent_id = category.parent_id if category.parent_id in by_id else None
            children[parent_id].append(category)

        repaired = 0
        reached: Set[uuid.UUID] = set()
        queue: Deque[Category] = deque()

        for root in children[None]:
            if root.parent_id is not None:
                root.set_parent(None)
                repaired += 1
            elif root.rebase_path(None):
                repaired += 1
            reached.add(root.id)
            queue.append(root)

        while queue:
            parent = queue.popleft()
            for child in children[parent.id]:
                if child.id in reached:
                    continue
                if child.rebase_path(parent):
                    repaired += 1
                reached.add(child.id)
                queue.append(child)

        unreachable = len(categories) - len(reached)
        if unreachable:
            logger.error(
                "Categories unreachable from any root (parent cycle)",
                extra={
                    "unreachable": unreachable,
                    "category_ids": [
                        str(c.id) for c in categories if c.id not in reached
                    ],
                },
            )

        logger.info(
            "Category hierarchy rebuilt",
            extra={"categories_checked": len(categories), "categories_repaired": repaired},
        )
        return {"categories_checked": len(categories), "categories_repaired": repaired}
