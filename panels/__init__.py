"""
Panel building, loading, device reconciliation and input routing
"""

from .builder import PanelContainer, PanelView
from .devices import DeviceReconciler, reconcile
from .loader import PanelLoader
from .input_router import InputRouter

__all__ = ["PanelContainer", "PanelView", "DeviceReconciler", "reconcile", "PanelLoader", "InputRouter"]
