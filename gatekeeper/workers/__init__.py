# =======================================================================================
# gatekeeper/workers/__init__.py - Workers Package
# =======================================================================================
from .limiter_cleanup import LimiterCleanupWorker

__all__ = ["LimiterCleanupWorker"]
