# edulink/auth/__init__.py
"""
Authentication modules for EduLink.

This package contains:
- identity.py: Canonical authenticated identity model built from access-token claims
"""
from edulink.auth.identity import Identity

__all__ = ["Identity"]
