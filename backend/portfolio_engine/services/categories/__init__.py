# backend/portfolio_engine/services/categories/__init__.py
"""Category tree and holdings assignments."""

from portfolio_engine.services.categories.service import CategoryService

__all__ = ["CategoryService"]
