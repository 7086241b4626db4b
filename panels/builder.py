"""
Headless panel container: builds panel views from a descriptor and
records which device resources the panel uses
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Callable, Awaitable, Set

from core.logging_config import get_logger
from relay.errors import PanelBuildError, AssetError
from relay.models import PanelDescriptor, DeviceRequest

# Control type -> name of the field holding an asset file, if any
CONTROL_TYPES = {
    "button": None,
    "slider": None,
    "text-label": None,
    "icon-label": "icon",
    "image-label": "image",
}

AssetCheck = Callable[[str], Awaitable[Optional[str]]]


@dataclass
class PanelView:
    """One page of controls"""
    id: str
    controls: List[Dict[str, Any]] = field(default_factory=list)


class PanelContainer:
    """
    Holds the built panel.

    build() replaces the container's contents; remove_views() empties it.
    Asset availability is delegated to asset_check, which returns None for
    an available asset or a short reason otherwise.
    """

    def __init__(self, asset_check: Optional[AssetCheck] = None):
        self.logger = get_logger(__name__)
        self.asset_check = asset_check
        self.views: Dict[str, PanelView] = {}
        self.current_view: Optional[str] = None
        self.used_device_resources: Dict[int, DeviceRequest] = {}
        self.visible = False

    async def build(self, descriptor: PanelDescriptor):
        """
        Build views from the descriptor.

        Raises:
            PanelBuildError: The descriptor is structurally invalid
            AssetError: Referenced assets are unavailable
        """
        data = descriptor.data
        if not isinstance(data, dict):
            raise PanelBuildError(f"Panel {descriptor.name} is not an object")

        raw_views = data.get("views")
        if not isinstance(raw_views, list) or not raw_views:
            raise PanelBuildError(f"Panel {descriptor.name} has no views")

        raw_assets = data.get("assets", [])
        if not isinstance(raw_assets, list):
            raise PanelBuildError(f"Panel {descriptor.name} assets must be a list")
        default_view = data.get("defaultView")
        if default_view is not None and not isinstance(default_view, str):
            raise PanelBuildError(f"Panel {descriptor.name} defaultView must be a view id")

        views: Dict[str, PanelView] = {}
        assets: List[str] = [str(a) for a in raw_assets]
        buttons: Dict[int, int] = {}
        axes: Dict[int, Set[str]] = {}

        for index, raw_view in enumerate(raw_views):
            if not isinstance(raw_view, dict) or not raw_view.get("id"):
                raise PanelBuildError(f"View {index + 1} has no id")

            view = PanelView(str(raw_view["id"]))
            if view.id in views:
                raise PanelBuildError(f"Duplicate view id {view.id}")

            controls = raw_view.get("controls", [])
            if not isinstance(controls, list):
                raise PanelBuildError(f"Controls of view {view.id} must be a list")
            for control in controls:
                self._add_control(view, control, buttons, axes, assets)
            views[view.id] = view

        missing = await self._check_assets(assets)
        if missing:
            raise AssetError("Failed to load panel assets", missing)

        self.views = views
        self.used_device_resources = {
            device_id: DeviceRequest(buttons.get(device_id, 0), frozenset(axes.get(device_id, set())))
            for device_id in sorted(set(buttons) | set(axes))
        }

        self.current_view = default_view if default_view in views else next(iter(views))
        self.logger.info(f"Built panel {descriptor.name} with {len(views)} views, "
                         f"{len(self.used_device_resources)} devices")

    def _add_control(self, view: PanelView, control: Any, buttons: Dict[int, int],
                     axes: Dict[int, Set[str]], assets: List[str]):
        if not isinstance(control, dict):
            raise PanelBuildError(f"Invalid control in view {view.id}")

        control_type = control.get("type")
        if control_type not in CONTROL_TYPES:
            raise PanelBuildError(f"Unknown control type {control_type!r} in view {view.id}")

        asset_field = CONTROL_TYPES[control_type]
        if asset_field:
            if not control.get(asset_field):
                raise PanelBuildError(f"{control_type} in view {view.id} has no {asset_field}")
            assets.append(str(control[asset_field]))

        if "device" in control:
            try:
                device_id = int(control["device"])
                button = int(control.get("button", 0))
            except (TypeError, ValueError):
                raise PanelBuildError(f"Invalid device binding in view {view.id}: {control!r}")

            if control_type == "button" and "button" in control:
                buttons[device_id] = max(buttons.get(device_id, 0), button)
            elif control_type == "slider" and "axis" in control:
                axes.setdefault(device_id, set()).add(str(control["axis"]))
                buttons.setdefault(device_id, 0)

        view.controls.append(control)

    async def _check_assets(self, assets: List[str]) -> List[str]:
        """All assets are checked concurrently; returns one line per missing asset"""
        if self.asset_check is None or not assets:
            return []

        unique = list(dict.fromkeys(assets))
        reasons = await asyncio.gather(*(self.asset_check(asset) for asset in unique))
        return [f"Unable to load asset {asset} ({reason})"
                for asset, reason in zip(unique, reasons) if reason]

    def remove_views(self):
        """Tear down the built panel; safe to call when empty"""
        if self.views:
            self.logger.debug(f"Removing {len(self.views)} views")
        self.views = {}
        self.current_view = None
        self.used_device_resources = {}

    def set_view(self, view_id: str) -> bool:
        if view_id not in self.views:
            self.logger.warning(f"Unknown view {view_id}")
            return False
        self.current_view = view_id
        return True

    def show(self):
        self.visible = True

    def hide(self):
        self.visible = False
