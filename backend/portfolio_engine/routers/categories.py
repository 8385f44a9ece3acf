# backend/portfolio_engine/routers/categories.py
"""
Category, subcategory and holdings-assignment endpoints.

Categories are per account, ordered by priority (1 = first). Each has
optional subcategories, also prioritized, which group the entries of a
BY_SUBCATEGORY chart. Names are path segments; URL-encode them.

Categories:
- GET    /accounts/{id}/categories
- POST   /accounts/{id}/categories
- GET    /accounts/{id}/categories/names
- GET    /accounts/{id}/categories/colors
- PATCH  /accounts/{id}/categories/{name}
- PUT    /accounts/{id}/categories/{name}/color
- DELETE /accounts/{id}/categories/{name}

Subcategories:
- GET    /accounts/{id}/categories/{name}/subcategories
- POST   /accounts/{id}/categories/{name}/subcategories
- GET    /accounts/{id}/categories/{name}/subcategories/colors
- PATCH  /accounts/{id}/categories/{name}/subcategories/{sub}
- PUT    /accounts/{id}/categories/{name}/subcategories/{sub}/color
- DELETE /accounts/{id}/categories/{name}/subcategories/{sub}

Assignments:
- GET    /accounts/{id}/holdings-categories
- PUT    /accounts/{id}/categories/{name}/holdings
- DELETE /accounts/{id}/categories/{name}/holdings/{asset_name}
"""

import uuid

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from portfolio_engine.database import get_db
from portfolio_engine.dependencies import get_category_service
from portfolio_engine.middleware.rate_limit import RATE_LIMIT_DEFAULT, RATE_LIMIT_WRITE, limiter
from portfolio_engine.schemas.categories import (
    CategoryCreate,
    CategoryNamesResponse,
    CategoryRename,
    CategoryResponse,
    ColorMapResponse,
    ColorUpdate,
    HoldingsAssignmentRequest,
    HoldingsCategoriesResponse,
)
from portfolio_engine.services.categories.service import CategoryService
from portfolio_engine.services.exceptions import NotFoundError

router = APIRouter(
    prefix="/accounts",
    tags=["Categories"],
)


# =============================================================================
# CATEGORIES
# =============================================================================

@router.get("/{account_id}/categories", response_model=list[CategoryResponse])
@limiter.limit(RATE_LIMIT_DEFAULT)
def list_categories(
        request: Request,
        account_id: uuid.UUID,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> list[CategoryResponse]:
    return [CategoryResponse.model_validate(c) for c in service.list_categories(db, account_id)]


@router.post(
    "/{account_id}/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(RATE_LIMIT_WRITE)
def add_category(
        request: Request,
        account_id: uuid.UUID,
        payload: CategoryCreate,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    """
    Create a category at the lowest priority.

    Raises **409** for a duplicate name and **400** for a color outside
    the chart palette.
    """
    category = service.add_category(db, account_id, payload.name, color=payload.color)
    return CategoryResponse.model_validate(category)


@router.get("/{account_id}/categories/names", response_model=CategoryNamesResponse)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_category_names(
        request: Request,
        account_id: uuid.UUID,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> CategoryNamesResponse:
    return CategoryNamesResponse(**service.get_names_map(db, account_id))


@router.get("/{account_id}/categories/colors", response_model=ColorMapResponse)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_category_colors(
        request: Request,
        account_id: uuid.UUID,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> ColorMapResponse:
    return ColorMapResponse(colors=service.get_category_color_map(db, account_id))


@router.patch("/{account_id}/categories/{category_name}", response_model=CategoryResponse)
@limiter.limit(RATE_LIMIT_WRITE)
def rename_category(
        request: Request,
        account_id: uuid.UUID,
        category_name: str,
        payload: CategoryRename,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    category = service.rename_category(db, account_id, category_name, payload.new_name)
    return CategoryResponse.model_validate(category)


@router.put("/{account_id}/categories/{category_name}/color", response_model=CategoryResponse)
@limiter.limit(RATE_LIMIT_WRITE)
def update_category_color(
        request: Request,
        account_id: uuid.UUID,
        category_name: str,
        payload: ColorUpdate,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    category = service.update_category_color(db, account_id, category_name, payload.color)
    return CategoryResponse.model_validate(category)


@router.delete("/{account_id}/categories/{category_name}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(RATE_LIMIT_WRITE)
def remove_category(
        request: Request,
        account_id: uuid.UUID,
        category_name: str,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> None:
    """Delete a category with its subcategories and assignments; later categories move up."""
    service.remove_category(db, account_id, category_name)


# =============================================================================
# SUBCATEGORIES
# =============================================================================

@router.get(
    "/{account_id}/categories/{category_name}/subcategories",
    response_model=list[CategoryResponse],
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def list_subcategories(
        request: Request,
        account_id: uuid.UUID,
        category_name: str,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> list[CategoryResponse]:
    return [
        CategoryResponse.model_validate(s)
        for s in service.list_subcategories(db, account_id, category_name)
    ]


@router.post(
    "/{account_id}/categories/{category_name}/subcategories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(RATE_LIMIT_WRITE)
def add_subcategory(
        request: Request,
        account_id: uuid.UUID,
        category_name: str,
        payload: CategoryCreate,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    subcategory = service.add_subcategory(db, account_id, category_name, payload.name, color=payload.color)
    return CategoryResponse.model_validate(subcategory)


@router.get(
    "/{account_id}/categories/{category_name}/subcategories/colors",
    response_model=ColorMapResponse,
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_subcategory_colors(
        request: Request,
        account_id: uuid.UUID,
        category_name: str,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> ColorMapResponse:
    return ColorMapResponse(colors=service.get_subcategory_color_map(db, account_id, category_name))


@router.patch(
    "/{account_id}/categories/{category_name}/subcategories/{subcategory_name}",
    response_model=CategoryResponse,
)
@limiter.limit(RATE_LIMIT_WRITE)
def rename_subcategory(
        request: Request,
        account_id: uuid.UUID,
        category_name: str,
        subcategory_name: str,
        payload: CategoryRename,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    subcategory = service.rename_subcategory(
        db, account_id, category_name, subcategory_name, payload.new_name
    )
    return CategoryResponse.model_validate(subcategory)


@router.put(
    "/{account_id}/categories/{category_name}/subcategories/{subcategory_name}/color",
    response_model=CategoryResponse,
)
@limiter.limit(RATE_LIMIT_WRITE)
def update_subcategory_color(
        request: Request,
        account_id: uuid.UUID,
        category_name: str,
        subcategory_name: str,
        payload: ColorUpdate,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    subcategory = service.update_subcategory_color(
        db, account_id, category_name, subcategory_name, payload.color
    )
    return CategoryResponse.model_validate(subcategory)


@router.delete(
    "/{account_id}/categories/{category_name}/subcategories/{subcategory_name}",
    status_code=status.HTTP_204_NO_CONTENT,
)
@limiter.limit(RATE_LIMIT_WRITE)
def remove_subcategory(
        request: Request,
        account_id: uuid.UUID,
        category_name: str,
        subcategory_name: str,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> None:
    """Delete a subcategory; its assets fall back to the parent category."""
    service.remove_subcategory(db, account_id, category_name, subcategory_name)


# =============================================================================
# HOLDINGS ASSIGNMENTS
# =============================================================================

@router.get("/{account_id}/holdings-categories", response_model=HoldingsCategoriesResponse)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_holdings_categories(
        request: Request,
        account_id: uuid.UUID,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> HoldingsCategoriesResponse:
    return HoldingsCategoriesResponse(categories=service.get_holdings_categories(db, account_id))


@router.put(
    "/{account_id}/categories/{category_name}/holdings",
    response_model=HoldingsCategoriesResponse,
)
@limiter.limit(RATE_LIMIT_WRITE)
def assign_holdings(
        request: Request,
        account_id: uuid.UUID,
        category_name: str,
        payload: HoldingsAssignmentRequest,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> HoldingsCategoriesResponse:
    """
    Assign assets to the category (`null`) or to a named subcategory.

    Missing categories and subcategories are created on the fly.
    """
    service.assign_holdings(db, account_id, category_name, payload.assets)
    return HoldingsCategoriesResponse(categories=service.get_holdings_categories(db, account_id))


@router.delete(
    "/{account_id}/categories/{category_name}/holdings/{asset_name}",
    status_code=status.HTTP_204_NO_CONTENT,
)
@limiter.limit(RATE_LIMIT_WRITE)
def remove_holding_assignment(
        request: Request,
        account_id: uuid.UUID,
        category_name: str,
        asset_name: str,
        db: Session = Depends(get_db),
        service: CategoryService = Depends(get_category_service),
) -> None:
    if not service.remove_holding_assignment(db, account_id, category_name, asset_name):
        raise NotFoundError(
            f"Asset '{asset_name}' is not assigned to category '{category_name}'",
            resource_type="assignment",
            resource_id=asset_name,
        )
