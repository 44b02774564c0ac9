"""Geometry solver: canvas fill-scaling and logo placement.

Pure functions, no Qt and no I/O. Everything here works in output-canvas
pixel space with float coordinates; nothing is rounded.
"""

from dataclasses import replace

from models import (
    Anchor, CanvasGeometry, Custom, ImageAsset, LogoRect, OutputSize,
    PlacementParameters, Preset, clamp,
    MARGIN_MAX, OPACITY_MAX, OPACITY_MIN, SIZE_PERCENT_MAX, SIZE_PERCENT_MIN,
)


def _require_positive(**dims):
    for name, value in dims.items():
        if not value or value <= 0:
            raise ValueError(f"{name} must be positive, got {value!r}")


# ------------------------------------------------------------------ #
#  Canvas                                                             #
# ------------------------------------------------------------------ #

def fill_scale(source_w: int, source_h: int, target: OutputSize) -> CanvasGeometry:
    """Map a source image into the target canvas, filling it and cropping overflow.

    With the native sentinel the canvas is the source itself. Otherwise the
    source is scaled by the larger of the two axis ratios so it covers the
    whole canvas, and centered so overflow is cropped symmetrically.
    """
    _require_positive(source_w=source_w, source_h=source_h)

    if target.is_native:
        return CanvasGeometry(
            canvas_width=source_w, canvas_height=source_h,
            image_width=source_w, image_height=source_h,
            offset_x=0.0, offset_y=0.0, scale=1.0,
        )

    cw, ch = target.width, target.height
    scale = max(cw / source_w, ch / source_h)
    iw = source_w * scale
    ih = source_h * scale
    return CanvasGeometry(
        canvas_width=cw, canvas_height=ch,
        image_width=iw, image_height=ih,
        offset_x=(cw - iw) / 2, offset_y=(ch - ih) / 2,
        scale=scale,
    )


# ------------------------------------------------------------------ #
#  Logo                                                               #
# ------------------------------------------------------------------ #

def derive_logo_rect(canvas_w: float, logo_native_w: int, logo_native_h: int,
                     size_percentage: float) -> tuple[float, float]:
    """Logo (width, height): a percentage of canvas width, native aspect ratio kept."""
    _require_positive(canvas_w=canvas_w, logo_native_w=logo_native_w,
                      logo_native_h=logo_native_h)
    width = canvas_w * size_percentage / 100
    height = width * logo_native_h / logo_native_w
    return width, height


def clamp_to_canvas(x: float, y: float, canvas_w: float, canvas_h: float,
                    logo_w: float, logo_h: float) -> tuple[float, float]:
    """Keep the logo on the canvas. Collapses to 0 on an axis the logo overflows."""
    x = max(0.0, min(x, canvas_w - logo_w))
    y = max(0.0, min(y, canvas_h - logo_h))
    return x, y


def resolve_anchor(anchor: Anchor, canvas_w: float, canvas_h: float,
                   logo_w: float, logo_h: float, margin: float) -> tuple[float, float]:
    """Top-left (x, y) of the logo for an anchor preset, clamped onto the canvas."""
    anchor = Anchor(anchor)
    x = {
        "left": margin,
        "center": (canvas_w - logo_w) / 2,
        "right": canvas_w - logo_w - margin,
    }[anchor.horizontal]
    y = {
        "top": margin,
        "center": (canvas_h - logo_h) / 2,
        "bottom": canvas_h - logo_h - margin,
    }[anchor.vertical]
    return clamp_to_canvas(x, y, canvas_w, canvas_h, logo_w, logo_h)


# ------------------------------------------------------------------ #
#  Recompute chain                                                    #
# ------------------------------------------------------------------ #

def placement_for(source: ImageAsset, logo: ImageAsset,
                  params: PlacementParameters, output_size: OutputSize) -> PlacementParameters:
    """Resolve *params* against one source image: canvas -> logo size -> position."""
    geo = fill_scale(source.pixel_width, source.pixel_height, output_size)
    cw, ch = geo.canvas_width, geo.canvas_height
    lw, lh = derive_logo_rect(cw, logo.pixel_width, logo.pixel_height,
                              params.size_percentage)

    position = params.position
    if isinstance(position, Preset):
        x, y = resolve_anchor(position.anchor, cw, ch, lw, lh, params.margin)
    elif isinstance(position, Custom):
        x, y = clamp_to_canvas(position.x, position.y, cw, ch, lw, lh)
    else:
        raise TypeError(f"Unknown position variant: {position!r}")

    return replace(params, rect=LogoRect(x, y, lw, lh))


def recompute_placement(session) -> PlacementParameters:
    """Recompute the resolved rect for the session's active source and logo.

    Returns the session's parameters unchanged when there is no active source
    or no logo.
    """
    source = session.current_source
    if source is None or session.logo is None:
        return session.placement
    return placement_for(source, session.logo, session.placement, session.output_size)


def normalize_params(params: PlacementParameters) -> PlacementParameters:
    """Clamp every user-settable parameter into its allowed range."""
    return replace(
        params,
        margin=clamp(params.margin, 0, MARGIN_MAX),
        size_percentage=clamp(params.size_percentage, SIZE_PERCENT_MIN, SIZE_PERCENT_MAX),
        opacity=clamp(params.opacity, OPACITY_MIN, OPACITY_MAX),
    )
