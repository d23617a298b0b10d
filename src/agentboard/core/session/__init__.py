"""Instance and session scoping."""

from agentboard.core.session.scope import Scope, SessionManager

__all__ = ["Scope", "SessionManager"]
