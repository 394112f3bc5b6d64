"""Viewer session handling."""

from event_federation.auth.session import ViewerListener, ViewerSession

__all__ = ["ViewerSession", "ViewerListener"]
