"""
Repository Pattern for Database Operations

- CartRepository: per-user cart rows
"""
from .cart_repo import CartRepository

__all__ = [
    "CartRepository",
]
