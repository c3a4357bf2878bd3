"""Aggregate router exports."""
from .inbox import router as inbox_router

__all__ = ["inbox_router"]
