"""
Interfaces module - host-facing adapters for the annotation core.

Provides the session registry hosts use to open and close editors.
"""

from .session_manager import ManagedSession, SessionManager, session_key

__all__ = ['ManagedSession', 'SessionManager', 'session_key']
