"""
Toolbar markup for a resolved place.

render_toolbar() is a pure function of a PlaceRecord and DisplayOptions.
render_block() adds the block flow on top: resolve the configured place
if there is a place ID and an API key, otherwise show sample data.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from localscoop.resolver import PlaceResolver
from localscoop.sanitizers import (
    coerce_bool,
    coerce_color,
    coerce_enum,
    coerce_float,
    coerce_non_negative_int,
    sanitize_text,
    strip_tags,
)
from localscoop.types import SAMPLE_PLACE, PlaceRecord

logger = logging.getLogger(__name__)

ALLOWED_SIZES = ("small", "medium", "large", "xlarge")
ALLOWED_BORDER_STYLES = ("none", "solid", "dashed", "dotted")
ALLOWED_FONT_WEIGHTS = (
    "normal", "bold", "bolder", "lighter",
    "100", "200", "300", "400", "500", "600", "700", "800", "900",
)
ALLOWED_TEXT_TRANSFORMS = ("none", "uppercase", "lowercase", "capitalize")

WRAPPER_CLASS = "wp-block-localscoop"

_environment = Environment(
    loader=PackageLoader("localscoop", "templates"),
    autoescape=select_autoescape(default=True, default_for_string=True),
    trim_blocks=True,
    lstrip_blocks=True,
)


@dataclass(frozen=True)
class DisplayOptions:
    """Sanitized block attributes controlling what is shown and how."""

    show_open_status: bool = True
    show_phone: bool = True
    show_directions: bool = True

    open_status_color: str = ""
    closed_status_color: str = ""
    background_color: str = ""
    mobile_bar_background: str = ""
    phone_button_color: str = ""
    directions_button_color: str = ""

    phone_icon_text: str = "CALL"
    directions_icon_text: str = "MAP"

    mobile_icon_font_size: int = 14
    border_radius: int = 8
    padding: int = 16

    status_badge_size: str = "medium"
    button_size: str = "medium"

    button_border_width: int = 0
    button_border_style: str = "solid"
    button_border_color: str = ""
    button_text_color: str = ""
    button_hover_color: str = ""
    button_hover_text_color: str = ""
    button_font_size: int = 16
    button_font_weight: str = "normal"
    button_letter_spacing: float = 0.0
    button_text_transform: str = "none"
    button_padding_top: int = 12
    button_padding_right: int = 24
    button_padding_bottom: int = 12
    button_padding_left: int = 24
    button_margin: int = 8

    @classmethod
    def from_attributes(cls, attributes: Mapping[str, Any]) -> "DisplayOptions":
        """
        Build options from raw block attributes (camelCase keys).

        Every value is sanitized; unknown or malformed values fall back
        to the defaults above.
        """
        a = attributes
        d = cls()
        return cls(
            show_open_status=coerce_bool(a.get("showOpenStatus"), d.show_open_status),
            show_phone=coerce_bool(a.get("showPhone"), d.show_phone),
            show_directions=coerce_bool(a.get("showDirections"), d.show_directions),
            open_status_color=coerce_color(a.get("openStatusColor")),
            closed_status_color=coerce_color(a.get("closedStatusColor")),
            background_color=coerce_color(a.get("backgroundColor")),
            # May be a gradient, so only tags are stripped
            mobile_bar_background=strip_tags(a.get("mobileBarBackground")),
            phone_button_color=coerce_color(a.get("phoneButtonColor")),
            directions_button_color=coerce_color(a.get("directionsButtonColor")),
            phone_icon_text=sanitize_text(a.get("phoneIconText", d.phone_icon_text)),
            directions_icon_text=sanitize_text(
                a.get("directionsIconText", d.directions_icon_text)
            ),
            mobile_icon_font_size=coerce_non_negative_int(
                a.get("mobileIconFontSize"), d.mobile_icon_font_size
            ),
            border_radius=coerce_non_negative_int(a.get("borderRadius"), d.border_radius),
            padding=coerce_non_negative_int(a.get("padding"), d.padding),
            status_badge_size=coerce_enum(
                a.get("statusBadgeSize"), ALLOWED_SIZES, d.status_badge_size
            ),
            button_size=coerce_enum(a.get("buttonSize"), ALLOWED_SIZES, d.button_size),
            button_border_width=coerce_non_negative_int(
                a.get("buttonBorderWidth"), d.button_border_width
            ),
            button_border_style=coerce_enum(
                a.get("buttonBorderStyle"), ALLOWED_BORDER_STYLES, d.button_border_style
            ),
            button_border_color=coerce_color(a.get("buttonBorderColor")),
            button_text_color=coerce_color(a.get("buttonTextColor")),
            button_hover_color=coerce_color(a.get("buttonHoverColor")),
            button_hover_text_color=coerce_color(a.get("buttonHoverTextColor")),
            button_font_size=coerce_non_negative_int(
                a.get("buttonFontSize"), d.button_font_size
            ),
            button_font_weight=coerce_enum(
                a.get("buttonFontWeight"), ALLOWED_FONT_WEIGHTS, d.button_font_weight
            ),
            button_letter_spacing=coerce_float(
                a.get("buttonLetterSpacing"), d.button_letter_spacing
            ),
            button_text_transform=coerce_enum(
                a.get("buttonTextTransform"),
                ALLOWED_TEXT_TRANSFORMS,
                d.button_text_transform,
            ),
            button_padding_top=coerce_non_negative_int(
                a.get("buttonPaddingTop"), d.button_padding_top
            ),
            button_padding_right=coerce_non_negative_int(
                a.get("buttonPaddingRight"), d.button_padding_right
            ),
            button_padding_bottom=coerce_non_negative_int(
                a.get("buttonPaddingBottom"), d.button_padding_bottom
            ),
            button_padding_left=coerce_non_negative_int(
                a.get("buttonPaddingLeft"), d.button_padding_left
            ),
            button_margin=coerce_non_negative_int(a.get("buttonMargin"), d.button_margin),
        )


def build_inline_styles(options: DisplayOptions) -> list[str]:
    """
    CSS declarations for the wrapper's style attribute.

    Optional colors are only emitted when set; sizes and paddings are
    always emitted.
    """
    styles: list[str] = []

    def add(prop: str, value: Any, unit: str = "") -> None:
        styles.append(f"{prop}: {value}{unit}")

    if options.background_color:
        add("background-color", options.background_color)
    if options.open_status_color:
        add("--open-status-color", options.open_status_color)
    if options.closed_status_color:
        add("--closed-status-color", options.closed_status_color)
    add("--status-badge-size", options.status_badge_size)
    add("--button-size", options.button_size)

    if options.mobile_bar_background:
        add("--mobile-bar-bg", options.mobile_bar_background)
    if options.phone_button_color:
        add("--phone-button-bg", options.phone_button_color)
    if options.directions_button_color:
        add("--directions-button-bg", options.directions_button_color)
    add("--mobile-text-font-size", options.mobile_icon_font_size, "px")

    if options.button_border_width > 0:
        add("--button-border-width", options.button_border_width, "px")
    add("--button-border-style", options.button_border_style)
    if options.button_border_color:
        add("--button-border-color", options.button_border_color)
    if options.button_text_color:
        add("--button-text-color", options.button_text_color)
    if options.button_hover_color:
        add("--button-hover-color", options.button_hover_color)
    if options.button_hover_text_color:
        add("--button-hover-text-color", options.button_hover_text_color)
    if options.button_font_size:
        add("--button-font-size", options.button_font_size, "px")
    add("--button-font-weight", options.button_font_weight)
    if options.button_letter_spacing != 0:
        add("--button-letter-spacing", f"{options.button_letter_spacing:g}", "px")
    if options.button_text_transform != "none":
        add("--button-text-transform", options.button_text_transform)

    add(
        "--button-padding",
        f"{options.button_padding_top}px {options.button_padding_right}px "
        f"{options.button_padding_bottom}px {options.button_padding_left}px",
    )
    if options.button_margin:
        add("--button-margin", options.button_margin, "px")
    if options.border_radius:
        add("--button-border-radius", options.border_radius, "px")

    return styles


def render_toolbar(
    place: PlaceRecord,
    options: Optional[DisplayOptions] = None,
    class_name: str = WRAPPER_CLASS,
) -> str:
    """
    Render the desktop and mobile toolbar markup for a place.

    Args:
        place: Record to display
        options: Display options (defaults when omitted)
        class_name: CSS class of the wrapper element

    Returns:
        HTML string, with all values escaped
    """
    options = options or DisplayOptions()
    template = _environment.get_template("toolbar.html.j2")
    return template.render(
        place=place,
        options=options,
        class_name=class_name,
        inline_style="; ".join(build_inline_styles(options)),
    )


def render_block(
    attributes: Mapping[str, Any],
    resolver: PlaceResolver,
    api_key: Optional[str],
) -> str:
    """
    Render a block instance from its attributes.

    Real data is used only when both a place ID and an API key are
    available and resolution succeeds; otherwise sample data is shown.
    """
    place_id = sanitize_text(attributes.get("placeId"))
    place = SAMPLE_PLACE
    if place_id and api_key:
        place = resolver.resolve_or_sample(place_id, api_key)
    else:
        logger.debug("Place ID or API key missing, rendering sample data")
    return render_toolbar(place, DisplayOptions.from_attributes(attributes))
