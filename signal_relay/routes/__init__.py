from .status import build_status_router, base_prefix

__all__ = ["build_status_router", "base_prefix"]
