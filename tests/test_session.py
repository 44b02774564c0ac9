"""Tests for Session state transitions."""
import pytest

from models import (
    Anchor, Custom, ImageAsset, NATIVE_SIZE, OUTPUT_SIZES, PlacementParameters, Preset,
)
from session import Session


def _asset(w, h, asset_id=None):
    return ImageAsset(png_data=b'', pixel_width=w, pixel_height=h,
                      asset_id=asset_id or f"id-{w}x{h}")


@pytest.fixture
def session():
    s = Session()
    s.add_sources([_asset(1600, 1200, "a"), _asset(800, 800, "b"), _asset(600, 900, "c")])
    s.set_logo(_asset(400, 200, "logo"))
    return s


class TestEmptySession:

    def test_defaults(self):
        s = Session()
        assert s.sources == []
        assert s.current_index is None
        assert s.current_source is None
        assert s.logo is None
        assert s.output_size == NATIVE_SIZE
        assert s.placement == PlacementParameters()
        assert not s.can_render
        assert not s.can_export

    def test_setters_without_source_are_noops(self):
        s = Session()
        s.set_logo(_asset(100, 100))
        s.set_anchor(Anchor.BL)
        s.set_size_percentage(30)
        s.set_margin(5)
        s.set_output_size(OUTPUT_SIZES[1])
        assert s.placement.rect is None
        # Parameters are still recorded for when a photo arrives
        assert s.placement.position == Preset(Anchor.BL)
        assert s.placement.size_percentage == 30

    def test_navigation_is_noop(self):
        s = Session()
        assert s.next() is False
        assert s.previous() is False
        assert s.select(3) is False
        assert s.current_index is None


class TestAddRemove:

    def test_first_add_selects_index_zero(self):
        s = Session()
        assert s.add_sources([_asset(100, 100, "x")]) == 1
        assert s.current_index == 0

    def test_later_add_keeps_index(self, session):
        session.select(2)
        session.add_sources([_asset(100, 100, "d")])
        assert session.current_index == 2
        assert [a.asset_id for a in session.sources] == ["a", "b", "c", "d"]

    def test_add_nothing(self):
        s = Session()
        assert s.add_sources([]) == 0
        assert s.current_index is None

    def test_remove_unknown_id(self, session):
        assert session.remove_source("nope") is False
        assert len(session.sources) == 3

    def test_remove_last_reclamps_index(self, session):
        session.select(2)
        assert session.remove_source("c") is True
        assert session.current_index == 1
        assert session.current_source.asset_id == "b"

    def test_remove_before_current_keeps_index(self, session):
        session.select(1)
        session.remove_source("a")
        assert session.current_index == 1
        assert session.current_source.asset_id == "c"

    def test_removing_only_source_resets_to_none(self):
        s = Session()
        s.add_sources([_asset(100, 100, "only")])
        s.remove_source("only")
        assert s.current_index is None
        assert s.current_source is None
        assert s.next() is False
        assert s.previous() is False
        assert s.current_index is None

    def test_clear_sources(self, session):
        session.clear_sources()
        assert session.sources == []
        assert session.current_index is None
        assert session.placement.rect is None
        assert not session.can_render

    def test_removing_last_source_drops_rect(self, session):
        for asset_id in ("a", "b", "c"):
            session.remove_source(asset_id)
        assert session.placement.rect is None
        # Other settings survive for the next photo
        assert session.placement.position == Preset(Anchor.TR)


class TestNavigation:

    def test_next_and_previous(self, session):
        assert session.current_index == 0
        assert session.next() is True
        assert session.current_index == 1
        assert session.previous() is True
        assert session.current_index == 0

    def test_never_wraps(self, session):
        assert session.previous() is False
        assert session.current_index == 0
        session.select(2)
        assert session.next() is False
        assert session.current_index == 2

    def test_select_clamps(self, session):
        session.select(99)
        assert session.current_index == 2
        session.select(-5)
        assert session.current_index == 0

    def test_navigation_recomputes_for_new_source(self, session):
        session.set_output_size(NATIVE_SIZE)
        w0 = session.placement.rect.width
        session.next()  # 800x800
        assert session.placement.rect.width == pytest.approx(800 * 0.15)
        assert session.placement.rect.width != w0


class TestPlacementTransitions:

    def test_logo_set_resolves_rect(self, session):
        r = session.placement.rect
        assert r is not None
        assert (r.width, r.height) == pytest.approx((240, 120))
        assert (r.x, r.y) == pytest.approx((1600 - 240 - 20, 20))

    def test_replacing_logo_recomputes(self, session):
        session.set_logo(_asset(100, 100, "square"))
        r = session.placement.rect
        assert r.height == pytest.approx(r.width)

    def test_output_size_recomputes(self, session):
        session.set_output_size(OUTPUT_SIZES[1])
        r = session.placement.rect
        assert (r.x, r.y, r.width, r.height) == pytest.approx((830, 20, 150, 75))

    def test_anchor(self, session):
        session.set_anchor(Anchor.BL)
        r = session.placement.rect
        assert session.placement.position == Preset(Anchor.BL)
        assert (r.x, r.y) == pytest.approx((20, 1200 - 120 - 20))

    def test_size_clamped_to_range(self, session):
        session.set_size_percentage(90)
        assert session.placement.size_percentage == 50
        session.set_size_percentage(1)
        assert session.placement.size_percentage == 5
        assert session.placement.rect.width == pytest.approx(1600 * 0.05)

    def test_margin(self, session):
        session.set_margin(100)
        assert session.placement.rect.y == pytest.approx(100)
        session.set_margin(-10)
        assert session.placement.margin == 0

    def test_opacity_does_not_move_logo(self, session):
        before = session.placement.rect
        session.set_opacity(55)
        assert session.placement.opacity == 55
        assert session.placement.rect == before
        session.set_opacity(0)
        assert session.placement.opacity == 10

    def test_custom_position_passes_through(self, session):
        session.set_custom_position(300, 400)
        assert session.placement.position == Custom(300, 400)
        assert (session.placement.rect.x, session.placement.rect.y) == (300, 400)
        # Size changes keep the custom point
        session.set_size_percentage(20)
        assert (session.placement.rect.x, session.placement.rect.y) == (300, 400)

    def test_reset_position(self, session):
        session.set_anchor(Anchor.C)
        session.reset_position()
        assert session.placement.position == Preset(Anchor.TR)

    def test_recompute_is_idempotent(self, session):
        session.set_anchor(Anchor.BC)
        first = session.placement
        session.set_anchor(Anchor.BC)
        assert session.placement == first

    def test_can_render_and_export(self, session):
        assert session.can_render
        assert session.can_export
