"""Session state: the photos, the logo, placement settings and navigation.

Every transition builds the new values first and assigns them last, then
calls ``recompute_placement`` explicitly when geometry may have changed.
"""

from dataclasses import replace

from geometry import normalize_params, recompute_placement
from models import (
    Anchor, Custom, ImageAsset, NATIVE_SIZE, OutputSize, PlacementParameters, Preset,
)


class Session:
    """Full editing state. Not persisted; lives as long as the window."""

    def __init__(self):
        self.sources: list[ImageAsset] = []
        self.logo: ImageAsset | None = None
        self.placement = PlacementParameters()
        self.output_size: OutputSize = NATIVE_SIZE
        self.current_index: int | None = None

    # --- Derived ---

    @property
    def current_source(self) -> ImageAsset | None:
        if self.current_index is None:
            return None
        return self.sources[self.current_index]

    @property
    def can_render(self) -> bool:
        return (self.current_source is not None and self.logo is not None
                and self.placement.rect is not None)

    @property
    def can_export(self) -> bool:
        return bool(self.sources) and self.logo is not None

    def index_of(self, asset_id: str) -> int | None:
        for i, asset in enumerate(self.sources):
            if asset.asset_id == asset_id:
                return i
        return None

    def _recompute(self):
        self.placement = recompute_placement(self)

    # --- Sources ---

    def add_sources(self, assets: list[ImageAsset]) -> int:
        """Append assets in arrival order. Returns how many were added."""
        assets = list(assets)
        if not assets:
            return 0
        was_empty = not self.sources
        self.sources = self.sources + assets
        if was_empty:
            self.current_index = 0
        self._recompute()
        return len(assets)

    def remove_source(self, asset_id: str) -> bool:
        """Remove the asset with *asset_id*. Returns False if it wasn't present."""
        idx = self.index_of(asset_id)
        if idx is None:
            return False
        remaining = self.sources[:idx] + self.sources[idx + 1:]
        current = self.current_index
        if not remaining:
            current = None
        elif current is not None and current >= len(remaining):
            current = len(remaining) - 1
        self.sources = remaining
        self.current_index = current
        if current is None:
            self.placement = replace(self.placement, rect=None)
        else:
            self._recompute()
        return True

    def clear_sources(self):
        self.sources = []
        self.current_index = None
        self.placement = replace(self.placement, rect=None)

    # --- Navigation ---

    def select(self, index: int) -> bool:
        """Make *index* the current item, clamped into range. No-op when empty."""
        if not self.sources:
            return False
        new_index = max(0, min(index, len(self.sources) - 1))
        if new_index == self.current_index:
            return False
        self.current_index = new_index
        self._recompute()
        return True

    def navigate(self, step: int) -> bool:
        if self.current_index is None:
            return False
        return self.select(self.current_index + step)

    def next(self) -> bool:
        return self.navigate(1)

    def previous(self) -> bool:
        return self.navigate(-1)

    # --- Logo & output ---

    def set_logo(self, asset: ImageAsset):
        self.logo = asset
        self._recompute()

    def set_output_size(self, size: OutputSize):
        self.output_size = size
        self._recompute()

    # --- Placement ---

    def _update_placement(self, **changes):
        self.placement = normalize_params(replace(self.placement, **changes))

    def set_anchor(self, anchor: Anchor):
        self._update_placement(position=Preset(Anchor(anchor)))
        self._recompute()

    def set_custom_position(self, x: float, y: float):
        """Place the logo at an explicit point; anchor math is bypassed."""
        self._update_placement(position=Custom(x, y))
        self._recompute()

    def set_size_percentage(self, percentage: float):
        self._update_placement(size_percentage=percentage)
        self._recompute()

    def set_margin(self, margin: float):
        self._update_placement(margin=margin)
        self._recompute()

    def set_opacity(self, opacity: float):
        # Opacity never moves the logo, so the rect is left as is.
        self._update_placement(opacity=opacity)

    def reset_position(self):
        self.set_anchor(Anchor.TR)
