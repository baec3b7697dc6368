"""Catalogue API package."""

from storefront.catalogue.api.routes import item_router

__all__ = ["item_router"]
