# backend/portfolio_engine/services/categories/service.py
"""
Category Service for managing the per-account category tree and the
asset → category assignments the charts group by.

This service handles:
- Top-level categories (create, rename, remove, recolor, list)
- Subcategories (one level below a category)
- Assigning holdings to a category or one of its subcategories
- Building the SubcategoryAssignment used by BY_SUBCATEGORY charts

Design Principles:
- No HTTP Knowledge: Raises domain exceptions, not HTTPException
- Priorities are dense (1..n) within a parent; removal renumbers them
- Colors are restricted to the chart palette and stored uppercase
- Each asset has at most one assignment per top-level category

Usage:
    from portfolio_engine.services.categories import CategoryService

    service = CategoryService()

    service.add_category(db, account_id, "Risk", color="#ff0000")
    service.add_subcategory(db, account_id, "Risk", "High")
    service.assign_holdings(db, account_id, "Risk", {"Apple": "High", "Cash": None})

    assignment = service.get_subcategory_assignment(db, account_id, "Risk")
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from portfolio_engine.models import Category, HoldingsCategoryAssignment
from portfolio_engine.services.constants import CHART_PALETTE, DEFAULT_CATEGORY_COLOR
from portfolio_engine.services.exceptions import (
    CategoryNotFoundError,
    DuplicateNameError,
    InvalidColorError,
    SubcategoryNotFoundError,
    ValidationError,
)
from portfolio_engine.services.valuation.types import SubcategoryAssignment

logger = logging.getLogger(__name__)


class CategoryService:
    """
    Service for categories, subcategories and holdings assignments.

    Every write commits on success and rolls back on failure.
    """

    def __init__(self) -> None:
        logger.info("CategoryService initialized")

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def list_categories(self, db: Session, account_id: uuid.UUID) -> list[Category]:
        """Top-level categories ordered by priority."""
        return list(db.scalars(
            select(Category)
            .where(Category.account_id == account_id, Category.parent_id.is_(None))
            .order_by(Category.priority, Category.id)
        ).all())

    def get_category(self, db: Session, account_id: uuid.UUID, name: str) -> Category:
        """
        Find a top-level category by name.

        Raises:
            CategoryNotFoundError: If the account has no such category
        """
        category = self._find_category(db, account_id, name)
        if category is None:
            raise CategoryNotFoundError(name)
        return category

    def add_category(
            self,
            db: Session,
            account_id: uuid.UUID,
            name: str,
            color: str | None = None,
    ) -> Category:
        """
        Create a top-level category at the lowest priority.

        Raises:
            ValidationError: Empty name
            DuplicateNameError: Name already taken
            InvalidColorError: Color not in the palette
        """
        name = self._clean_name(name, "name")
        color = self._validate_color(color) if color is not None else None

        if self._find_category(db, account_id, name) is not None:
            raise DuplicateNameError(name)

        category = Category(
            account_id=account_id,
            name=name,
            parent_id=None,
            priority=self._next_priority(db, account_id, None),
            color=color,
        )
        return self._commit(db, category, f"Added category '{name}' for account {account_id}")

    def rename_category(self, db: Session, account_id: uuid.UUID, old_name: str, new_name: str) -> Category:
        old_name = self._clean_name(old_name, "old_name")
        new_name = self._clean_name(new_name, "new_name")

        category = self.get_category(db, account_id, old_name)
        if new_name != old_name and self._find_category(db, account_id, new_name) is not None:
            raise DuplicateNameError(new_name)

        category.name = new_name
        return self._commit(db, category, f"Renamed category '{old_name}' to '{new_name}'")

    def remove_category(self, db: Session, account_id: uuid.UUID, name: str) -> None:
        """
        Delete a category with its subcategories and assignments, then
        renumber the remaining categories 1..n.
        """
        category = self.get_category(db, account_id, name)
        category_ids = [category.id] + [sub.id for sub in category.subcategories]

        try:
            db.execute(
                delete(HoldingsCategoryAssignment).where(
                    HoldingsCategoryAssignment.account_id == account_id,
                    HoldingsCategoryAssignment.category_id.in_(category_ids),
                )
            )
            db.delete(category)
            db.flush()
            self._renumber(self.list_categories(db, account_id))
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Removed category '{name}' ({len(category_ids) - 1} subcategories) for account {account_id}")

    def update_category_color(self, db: Session, account_id: uuid.UUID, name: str, color: str) -> Category:
        color = self._validate_color(color)
        category = self.get_category(db, account_id, name)
        category.color = color
        return self._commit(db, category, f"Set color of category '{name}' to {color}")

    def get_category_names(self, db: Session, account_id: uuid.UUID) -> list[str]:
        return [c.name for c in self.list_categories(db, account_id)]

    def get_names_map(self, db: Session, account_id: uuid.UUID) -> dict:
        """
        Category and subcategory names.

        Returns:
            {"categories": [...], "subcategories": {category: [...]}}
        """
        categories = self.list_categories(db, account_id)
        return {
            "categories": [c.name for c in categories],
            "subcategories": {c.name: [s.name for s in c.subcategories] for c in categories},
        }

    def get_category_color_map(self, db: Session, account_id: uuid.UUID) -> dict[str, str]:
        """Category name → stored color (blue when unset), in priority order."""
        return {
            c.name: c.color or DEFAULT_CATEGORY_COLOR
            for c in self.list_categories(db, account_id)
        }

    # =========================================================================
    # SUBCATEGORIES
    # =========================================================================

    def list_subcategories(self, db: Session, account_id: uuid.UUID, category_name: str) -> list[Category]:
        """Subcategories of a category ordered by priority."""
        category = self.get_category(db, account_id, category_name)
        return list(db.scalars(
            select(Category)
            .where(Category.account_id == account_id, Category.parent_id == category.id)
            .order_by(Category.priority, Category.id)
        ).all())

    def add_subcategory(
            self,
            db: Session,
            account_id: uuid.UUID,
            category_name: str,
            name: str,
            color: str | None = None,
    ) -> Category:
        name = self._clean_name(name, "name")
        color = self._validate_color(color) if color is not None else None

        category = self.get_category(db, account_id, category_name)
        if self._find_subcategory(db, account_id, category, name) is not None:
            raise DuplicateNameError(name, parent_name=category.name)

        subcategory = Category(
            account_id=account_id,
            name=name,
            parent_id=category.id,
            priority=self._next_priority(db, account_id, category.id),
            color=color,
        )
        return self._commit(db, subcategory, f"Added subcategory '{name}' to '{category.name}'")

    def rename_subcategory(
            self,
            db: Session,
            account_id: uuid.UUID,
            category_name: str,
            old_name: str,
            new_name: str,
    ) -> Category:
        new_name = self._clean_name(new_name, "new_name")
        category = self.get_category(db, account_id, category_name)
        subcategory = self._get_subcategory(db, account_id, category, old_name)

        if new_name != subcategory.name and self._find_subcategory(db, account_id, category, new_name) is not None:
            raise DuplicateNameError(new_name, parent_name=category.name)

        subcategory.name = new_name
        return self._commit(db, subcategory, f"Renamed subcategory '{old_name}' to '{new_name}' in '{category.name}'")

    def remove_subcategory(self, db: Session, account_id: uuid.UUID, category_name: str, name: str) -> None:
        """
        Delete a subcategory. Its assets move to the parent category; the
        remaining subcategories are renumbered 1..n.
        """
        category = self.get_category(db, account_id, category_name)
        subcategory = self._get_subcategory(db, account_id, category, name)

        try:
            moved = 0
            for assignment in self._assignments_for(db, account_id, [subcategory.id]):
                assignment.category_id = category.id
                moved += 1
            db.flush()

            db.delete(subcategory)
            db.flush()
            db.refresh(category)
            self._renumber(list(category.subcategories))
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Removed subcategory '{name}' from '{category.name}'; moved {moved} assets to the parent")

    def update_subcategory_color(
            self,
            db: Session,
            account_id: uuid.UUID,
            category_name: str,
            name: str,
            color: str,
    ) -> Category:
        color = self._validate_color(color)
        category = self.get_category(db, account_id, category_name)
        subcategory = self._get_subcategory(db, account_id, category, name)
        subcategory.color = color
        return self._commit(db, subcategory, f"Set color of subcategory '{name}' to {color}")

    def get_subcategory_color_map(self, db: Session, account_id: uuid.UUID, category_name: str) -> dict[str, str]:
        return {
            s.name: s.color or DEFAULT_CATEGORY_COLOR
            for s in self.list_subcategories(db, account_id, category_name)
        }

    # =========================================================================
    # HOLDINGS ASSIGNMENTS
    # =========================================================================

    def assign_holdings(
            self,
            db: Session,
            account_id: uuid.UUID,
            category_name: str,
            assets: Mapping[str, str | None],
    ) -> int:
        """
        Assign assets to a category or its subcategories.

        Missing categories and subcategories are created. An asset already
        assigned somewhere in this category is moved.

        Args:
            assets: asset_name → subcategory name, or None for the category itself

        Returns:
            Number of assets assigned
        """
        category_name = self._clean_name(category_name, "category_name")
        for asset_name in assets:
            self._clean_name(asset_name, "asset_name")

        try:
            category = self._find_category(db, account_id, category_name)
            if category is None:
                category = Category(
                    account_id=account_id,
                    name=category_name,
                    priority=self._next_priority(db, account_id, None),
                )
                db.add(category)
                db.flush()

            family_ids = self._family_ids(db, account_id, category)

            for asset_name, subcategory_name in assets.items():
                target_id = category.id
                if subcategory_name is not None and subcategory_name.strip():
                    subcategory = self._find_subcategory(db, account_id, category, subcategory_name.strip())
                    if subcategory is None:
                        subcategory = Category(
                            account_id=account_id,
                            name=subcategory_name.strip(),
                            parent_id=category.id,
                            priority=self._next_priority(db, account_id, category.id),
                        )
                        db.add(subcategory)
                        db.flush()
                        family_ids.append(subcategory.id)
                    target_id = subcategory.id

                db.execute(
                    delete(HoldingsCategoryAssignment).where(
                        HoldingsCategoryAssignment.account_id == account_id,
                        HoldingsCategoryAssignment.asset_name == asset_name,
                        HoldingsCategoryAssignment.category_id.in_(family_ids),
                    )
                )
                db.add(HoldingsCategoryAssignment(
                    account_id=account_id,
                    asset_name=asset_name,
                    category_id=target_id,
                ))
                db.flush()

            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Assigned {len(assets)} assets to category '{category_name}' for account {account_id}")
        return len(assets)

    def remove_holding_assignment(
            self,
            db: Session,
            account_id: uuid.UUID,
            category_name: str,
            asset_name: str,
    ) -> bool:
        """
        Remove an asset from a category (and its subcategories).

        Returns:
            True if an assignment was removed
        """
        category = self.get_category(db, account_id, category_name)
        try:
            result = db.execute(
                delete(HoldingsCategoryAssignment).where(
                    HoldingsCategoryAssignment.account_id == account_id,
                    HoldingsCategoryAssignment.asset_name == asset_name,
                    HoldingsCategoryAssignment.category_id.in_(self._family_ids(db, account_id, category)),
                )
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        return result.rowcount > 0

    def list_asset_assignments(
            self,
            db: Session,
            account_id: uuid.UUID,
            category_id: int,
    ) -> list[HoldingsCategoryAssignment]:
        """Assignments to a category or any of its subcategories."""
        category = db.get(Category, category_id)
        if category is None or category.account_id != account_id:
            raise CategoryNotFoundError(str(category_id))
        return self._assignments_for(db, account_id, self._family_ids(db, account_id, category))

    def get_holdings_categories(self, db: Session, account_id: uuid.UUID) -> dict[str, dict[str, str | None]]:
        """
        {category: {asset_name: subcategory or None}} for every category,
        in priority order.
        """
        result: dict[str, dict[str, str | None]] = {}
        for category in self.list_categories(db, account_id):
            assignment = self._build_assignment(db, account_id, category)
            result[category.name] = dict(assignment.labels)
        return result

    def get_subcategory_assignment(
            self,
            db: Session,
            account_id: uuid.UUID,
            category_name: str,
    ) -> SubcategoryAssignment:
        """
        The category split used by BY_SUBCATEGORY charts.

        Raises:
            CategoryNotFoundError: If the category does not exist
        """
        category = self.get_category(db, account_id, category_name)
        return self._build_assignment(db, account_id, category)

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    def _build_assignment(self, db: Session, account_id: uuid.UUID, category: Category) -> SubcategoryAssignment:
        names_by_id = {sub.id: sub.name for sub in category.subcategories}
        labels: dict[str, str | None] = {}
        for row in self._assignments_for(db, account_id, [category.id, *names_by_id]):
            labels[row.asset_name] = names_by_id.get(row.category_id)

        return SubcategoryAssignment(
            category_name=category.name,
            labels=labels,
            priorities={sub.name: sub.priority for sub in category.subcategories},
        )

    def _assignments_for(
            self,
            db: Session,
            account_id: uuid.UUID,
            category_ids: list[int],
    ) -> list[HoldingsCategoryAssignment]:
        if not category_ids:
            return []
        return list(db.scalars(
            select(HoldingsCategoryAssignment)
            .where(
                HoldingsCategoryAssignment.account_id == account_id,
                HoldingsCategoryAssignment.category_id.in_(category_ids),
            )
            .order_by(HoldingsCategoryAssignment.asset_name)
        ).all())

    def _family_ids(self, db: Session, account_id: uuid.UUID, category: Category) -> list[int]:
        sub_ids = db.scalars(
            select(Category.id).where(Category.account_id == account_id, Category.parent_id == category.id)
        ).all()
        return [category.id, *sub_ids]

    def _find_category(self, db: Session, account_id: uuid.UUID, name: str) -> Category | None:
        return db.scalar(
            select(Category).where(
                Category.account_id == account_id,
                Category.parent_id.is_(None),
                Category.name == name,
            )
        )

    def _find_subcategory(
            self,
            db: Session,
            account_id: uuid.UUID,
            category: Category,
            name: str,
    ) -> Category | None:
        return db.scalar(
            select(Category).where(
                Category.account_id == account_id,
                Category.parent_id == category.id,
                Category.name == name,
            )
        )

    def _get_subcategory(self, db: Session, account_id: uuid.UUID, category: Category, name: str) -> Category:
        subcategory = self._find_subcategory(db, account_id, category, name.strip() if name else name)
        if subcategory is None:
            raise SubcategoryNotFoundError(category.name, name)
        return subcategory

    def _next_priority(self, db: Session, account_id: uuid.UUID, parent_id: int | None) -> int:
        query = select(func.max(Category.priority)).where(Category.account_id == account_id)
        if parent_id is None:
            query = query.where(Category.parent_id.is_(None))
        else:
            query = query.where(Category.parent_id == parent_id)
        return (db.scalar(query) or 0) + 1

    @staticmethod
    def _renumber(categories: list[Category]) -> None:
        for priority, category in enumerate(sorted(categories, key=lambda c: (c.priority, c.id)), start=1):
            category.priority = priority

    @staticmethod
    def _clean_name(name: str | None, field: str) -> str:
        if name is None or not name.strip():
            raise ValidationError(f"{field} cannot be empty", field=field)
        return name.strip()

    @staticmethod
    def _validate_color(color: str) -> str:
        normalized = color.strip().upper() if color else ""
        if normalized not in CHART_PALETTE:
            raise InvalidColorError(color, list(CHART_PALETTE))
        return normalized

    @staticmethod
    def _commit(db: Session, category: Category, message: str) -> Category:
        try:
            db.add(category)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(category)
        logger.info(message)
        return category
