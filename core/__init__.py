"""
Core client components: connection state, command loop and logging
"""

from .state import ConnectionState, ConnectionStateTracker, StateTransition

__all__ = ["ConnectionState", "ConnectionStateTracker", "StateTransition"]
