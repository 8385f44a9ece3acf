# backend/tests/services/test_categories.py
"""
Tests for CategoryService: the category tree, colors and holdings
assignments.
"""

import pytest

from portfolio_engine.services.constants import CHART_PALETTE, DEFAULT_CATEGORY_COLOR
from portfolio_engine.services.exceptions import (
    CategoryNotFoundError,
    DuplicateNameError,
    InvalidColorError,
    SubcategoryNotFoundError,
    ValidationError,
)
from tests.conftest import ACCOUNT_ID, OTHER_ACCOUNT_ID, seed_category


# =============================================================================
# CATEGORIES
# =============================================================================

class TestCategories:

    def test_add_assigns_next_priority(self, db, category_service):
        category_service.add_category(db, ACCOUNT_ID, "Risk")
        region = category_service.add_category(db, ACCOUNT_ID, "Region")

        assert region.priority == 2
        assert category_service.get_category_names(db, ACCOUNT_ID) == ["Risk", "Region"]

    def test_name_is_trimmed(self, db, category_service):
        category = category_service.add_category(db, ACCOUNT_ID, "  Risk  ")

        assert category.name == "Risk"

    def test_duplicate_name_rejected(self, db, category_service):
        category_service.add_category(db, ACCOUNT_ID, "Risk")

        with pytest.raises(DuplicateNameError):
            category_service.add_category(db, ACCOUNT_ID, "Risk")

    def test_same_name_allowed_for_other_account(self, db, category_service):
        category_service.add_category(db, ACCOUNT_ID, "Risk")
        category_service.add_category(db, OTHER_ACCOUNT_ID, "Risk")

        assert category_service.get_category_names(db, OTHER_ACCOUNT_ID) == ["Risk"]

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_name_rejected(self, db, category_service, name):
        with pytest.raises(ValidationError):
            category_service.add_category(db, ACCOUNT_ID, name)

    def test_rename(self, db, category_service):
        category_service.add_category(db, ACCOUNT_ID, "Risk")

        category_service.rename_category(db, ACCOUNT_ID, "Risk", "Volatility")

        assert category_service.get_category_names(db, ACCOUNT_ID) == ["Volatility"]

    def test_rename_onto_existing_name_rejected(self, db, category_service):
        category_service.add_category(db, ACCOUNT_ID, "Risk")
        category_service.add_category(db, ACCOUNT_ID, "Region")

        with pytest.raises(DuplicateNameError):
            category_service.rename_category(db, ACCOUNT_ID, "Risk", "Region")

    def test_get_unknown_category(self, db, category_service):
        with pytest.raises(CategoryNotFoundError):
            category_service.get_category(db, ACCOUNT_ID, "Nope")

    def test_remove_renumbers_remaining(self, db, category_service):
        for name in ("A", "B", "C"):
            category_service.add_category(db, ACCOUNT_ID, name)

        category_service.remove_category(db, ACCOUNT_ID, "A")

        categories = category_service.list_categories(db, ACCOUNT_ID)
        assert [(c.name, c.priority) for c in categories] == [("B", 1), ("C", 2)]

    def test_remove_drops_subcategories_and_assignments(self, db, category_service):
        seed_category(db, "Type", subcategories=["Stocks"])
        category_service.assign_holdings(db, ACCOUNT_ID, "Type", {"Apple": "Stocks"})

        category_service.remove_category(db, ACCOUNT_ID, "Type")

        assert category_service.get_holdings_categories(db, ACCOUNT_ID) == {}
        assert category_service.get_names_map(db, ACCOUNT_ID) == {"categories": [], "subcategories": {}}


class TestColors:

    def test_color_normalized_to_uppercase(self, db, category_service):
        category = category_service.add_category(db, ACCOUNT_ID, "Risk", color="#ff0000")

        assert category.color == "#FF0000"

    def test_color_outside_palette_rejected(self, db, category_service):
        with pytest.raises(InvalidColorError) as exc_info:
            category_service.add_category(db, ACCOUNT_ID, "Risk", color="#123456")

        assert exc_info.value.available == list(CHART_PALETTE)

    def test_color_map_defaults_to_blue(self, db, category_service):
        category_service.add_category(db, ACCOUNT_ID, "Risk")
        category_service.add_category(db, ACCOUNT_ID, "Region", color=CHART_PALETTE[1])

        assert category_service.get_category_color_map(db, ACCOUNT_ID) == {
            "Risk": DEFAULT_CATEGORY_COLOR,
            "Region": CHART_PALETTE[1],
        }

    def test_update_colors(self, db, category_service):
        seed_category(db, "Risk", subcategories=["High"])

        category_service.update_category_color(db, ACCOUNT_ID, "Risk", CHART_PALETTE[0])
        category_service.update_subcategory_color(db, ACCOUNT_ID, "Risk", "High", CHART_PALETTE[1])

        assert category_service.get_category_color_map(db, ACCOUNT_ID) == {"Risk": CHART_PALETTE[0]}
        assert category_service.get_subcategory_color_map(db, ACCOUNT_ID, "Risk") == {"High": CHART_PALETTE[1]}


# =============================================================================
# SUBCATEGORIES
# =============================================================================

class TestSubcategories:

    def test_add_and_list_in_priority_order(self, db, category_service):
        category_service.add_category(db, ACCOUNT_ID, "Risk")
        category_service.add_subcategory(db, ACCOUNT_ID, "Risk", "High")
        category_service.add_subcategory(db, ACCOUNT_ID, "Risk", "Low")

        subs = category_service.list_subcategories(db, ACCOUNT_ID, "Risk")

        assert [(s.name, s.priority) for s in subs] == [("High", 1), ("Low", 2)]

    def test_subcategories_do_not_appear_as_categories(self, db, category_service):
        seed_category(db, "Risk", subcategories=["High"])

        assert category_service.get_category_names(db, ACCOUNT_ID) == ["Risk"]
        assert category_service.get_names_map(db, ACCOUNT_ID) == {
            "categories": ["Risk"],
            "subcategories": {"Risk": ["High"]},
        }

    def test_duplicate_within_category_rejected(self, db, category_service):
        seed_category(db, "Risk", subcategories=["High"])

        with pytest.raises(DuplicateNameError) as exc_info:
            category_service.add_subcategory(db, ACCOUNT_ID, "Risk", "High")

        assert exc_info.value.parent_name == "Risk"

    def test_same_name_in_different_categories(self, db, category_service):
        seed_category(db, "Risk", subcategories=["Other"])
        seed_category(db, "Region", subcategories=[], priority=2)

        sub = category_service.add_subcategory(db, ACCOUNT_ID, "Region", "Other")

        assert sub.priority == 1

    def test_add_to_unknown_category(self, db, category_service):
        with pytest.raises(CategoryNotFoundError):
            category_service.add_subcategory(db, ACCOUNT_ID, "Nope", "High")

    def test_rename(self, db, category_service):
        seed_category(db, "Risk", subcategories=["High", "Low"])

        category_service.rename_subcategory(db, ACCOUNT_ID, "Risk", "High", "Aggressive")

        assert [s.name for s in category_service.list_subcategories(db, ACCOUNT_ID, "Risk")] == ["Aggressive", "Low"]

    def test_rename_unknown_subcategory(self, db, category_service):
        seed_category(db, "Risk")

        with pytest.raises(SubcategoryNotFoundError):
            category_service.rename_subcategory(db, ACCOUNT_ID, "Risk", "Ghost", "New")

    def test_remove_moves_assets_to_parent_and_renumbers(self, db, category_service):
        seed_category(db, "Risk", subcategories=["High", "Mid", "Low"])
        category_service.assign_holdings(db, ACCOUNT_ID, "Risk", {"Apple": "High", "Bond": "Low"})

        category_service.remove_subcategory(db, ACCOUNT_ID, "Risk", "High")

        subs = category_service.list_subcategories(db, ACCOUNT_ID, "Risk")
        assert [(s.name, s.priority) for s in subs] == [("Mid", 1), ("Low", 2)]
        assert category_service.get_holdings_categories(db, ACCOUNT_ID) == {
            "Risk": {"Apple": None, "Bond": "Low"},
        }


# =============================================================================
# HOLDINGS ASSIGNMENTS
# =============================================================================

class TestAssignments:

    def test_assign_creates_missing_categories(self, db, category_service):
        count = category_service.assign_holdings(db, ACCOUNT_ID, "Risk", {"Apple": "High", "Cash": None})

        assert count == 2
        assert category_service.get_names_map(db, ACCOUNT_ID) == {
            "categories": ["Risk"],
            "subcategories": {"Risk": ["High"]},
        }
        assert category_service.get_holdings_categories(db, ACCOUNT_ID) == {
            "Risk": {"Apple": "High", "Cash": None},
        }

    def test_reassign_moves_within_category(self, db, category_service):
        seed_category(db, "Risk", subcategories=["High", "Low"])
        category_service.assign_holdings(db, ACCOUNT_ID, "Risk", {"Apple": "High"})

        category_service.assign_holdings(db, ACCOUNT_ID, "Risk", {"Apple": "Low"})

        category = category_service.get_category(db, ACCOUNT_ID, "Risk")
        rows = category_service.list_asset_assignments(db, ACCOUNT_ID, category.id)
        assert len(rows) == 1
        assert category_service.get_holdings_categories(db, ACCOUNT_ID)["Risk"] == {"Apple": "Low"}

    def test_asset_can_sit_in_several_categories(self, db, category_service):
        category_service.assign_holdings(db, ACCOUNT_ID, "Risk", {"Apple": "High"})
        category_service.assign_holdings(db, ACCOUNT_ID, "Region", {"Apple": "US"})

        assert category_service.get_holdings_categories(db, ACCOUNT_ID) == {
            "Risk": {"Apple": "High"},
            "Region": {"Apple": "US"},
        }

    def test_blank_asset_name_rejected(self, db, category_service):
        with pytest.raises(ValidationError):
            category_service.assign_holdings(db, ACCOUNT_ID, "Risk", {" ": "High"})

    def test_remove_assignment(self, db, category_service):
        category_service.assign_holdings(db, ACCOUNT_ID, "Risk", {"Apple": "High", "Bond": None})

        assert category_service.remove_holding_assignment(db, ACCOUNT_ID, "Risk", "Apple") is True
        assert category_service.remove_holding_assignment(db, ACCOUNT_ID, "Risk", "Apple") is False
        assert category_service.get_holdings_categories(db, ACCOUNT_ID) == {"Risk": {"Bond": None}}

    def test_list_assignments_of_other_account_category(self, db, category_service):
        category = seed_category(db, "Risk", account_id=OTHER_ACCOUNT_ID)

        with pytest.raises(CategoryNotFoundError):
            category_service.list_asset_assignments(db, ACCOUNT_ID, category.id)

    def test_subcategory_assignment(self, db, category_service):
        seed_category(db, "Type", subcategories=["Stocks", "Bonds"])
        category_service.assign_holdings(db, ACCOUNT_ID, "Type", {"Apple": "Stocks", "Bund": "Bonds", "Cash": None})

        assignment = category_service.get_subcategory_assignment(db, ACCOUNT_ID, "Type")

        assert assignment.category_name == "Type"
        assert assignment.labels == {"Apple": "Stocks", "Bund": "Bonds", "Cash": None}
        assert assignment.priorities == {"Stocks": 1, "Bonds": 2}

    def test_subcategory_assignment_unknown_category(self, db, category_service):
        with pytest.raises(CategoryNotFoundError):
            category_service.get_subcategory_assignment(db, ACCOUNT_ID, "Nope")
