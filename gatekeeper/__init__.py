# =======================================================================================
# gatekeeper/__init__.py - Package Initialization
# =======================================================================================
"""
GateKeeper Central API - Checkpoint Logging Backend

Role-based access control and offline-first delta synchronization for
gate operators, supervisors and administrators.
"""

__version__ = "1.0.0"
__author__ = "GateKeeper Team"
