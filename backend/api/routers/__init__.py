"""
API Routers package.

Each module contains a FastAPI router for a specific domain.
"""

from .product_compare import router as product_compare_router

__all__ = [
    "product_compare_router",
]
