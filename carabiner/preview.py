from typing import Callable

from loguru import logger
from pydantic import BaseModel

from .channel import (
    ChannelMessage,
    Dimensions,
    ExactConstraint,
    FilterStyle,
    SetBorderColor,
    SetBorderStyle,
    SetBorderWidth,
    SetControlSelected,
    SetOverlayOpacity,
    SetResolution,
    SetTransparency,
    SetVideoStream,
    SetWebcams,
    StreamConstraints,
    VideoConstraints,
    VideoSource,
)
from .models import SharedSettings

# Border width "none" is a hairline so the frameless window stays grabbable
HAIRLINE_BORDER = "0.1px"
HAIRLINE_COLOR = "rgba(0, 0, 0, 0.1)"

BORDER_SIZES = {HAIRLINE_BORDER: 0, "thin": 3, "medium": 5, "thick": 20}

# Space the window keeps around the video element
WINDOW_PADDING = 25
RESIZE_MARGIN = 15

DEFAULT_WINDOW_SIZE = (505, 295)


def px(value: str) -> int:
    return int(float(value.removesuffix("px")))


class PreviewState(BaseModel):
    width: str = f"{DEFAULT_WINDOW_SIZE[0] - WINDOW_PADDING}px"
    height: str = f"{DEFAULT_WINDOW_SIZE[1] - WINDOW_PADDING}px"
    border_width: str = "medium"
    border_style: str = "solid"
    border_color: str = "#662D91"
    # Color actually painted; differs from border_color under a hairline border
    painted_color: str = "#662D91"
    filter: str = "none"
    overlay_opacity: float = 0.0
    stream: StreamConstraints | None = None
    control_device_id: str = ""


class PreviewSurface:
    """Visual state of the floating preview window.

    Rendering is left to the host toolkit; this object applies channel
    messages to the state it would render and works out the window size.
    """

    def __init__(self, post: Callable[[ChannelMessage], None] | None = None):
        self.post = post
        self.state = PreviewState()

    def handle(self, message: ChannelMessage) -> None:
        state = self.state
        match message:
            case SetResolution(payload=dims):
                state.width, state.height = dims.width, dims.height
            case SetBorderWidth(payload=width):
                state.border_width = width
                state.painted_color = HAIRLINE_COLOR if width == HAIRLINE_BORDER else state.border_color
            case SetBorderStyle(payload=style):
                state.border_style = style
            case SetBorderColor(payload=color):
                state.border_color = color
                if state.border_width != HAIRLINE_BORDER:
                    state.painted_color = color
            case SetTransparency(payload=style):
                state.filter = style.filter
            case SetOverlayOpacity(payload=opacity):
                state.overlay_opacity = opacity
            case SetVideoStream(payload=constraints):
                state.stream = constraints
                logger.debug(f"Preview switching to video source {constraints.device_id}")
            case SetControlSelected(payload=device_id):
                state.control_device_id = device_id
            case _:
                pass

    @property
    def window_size(self) -> tuple[int, int]:
        border = BORDER_SIZES.get(self.state.border_width, 0)
        return (
            px(self.state.width) + WINDOW_PADDING + border,
            px(self.state.height) + WINDOW_PADDING + border,
        )

    def resize(self, window_width: int, window_height: int) -> None:
        """Fit the video to a user-resized window and report the new resolution."""
        dims = Dimensions(
            width=f"{window_width - RESIZE_MARGIN}px",
            height=f"{window_height - RESIZE_MARGIN}px",
        )
        self.handle(SetResolution(payload=dims))
        if self.post:
            self.post(SetResolution(payload=dims))

    def announce_sources(self, sources: list[VideoSource]) -> None:
        if not sources:
            logger.warning("No camera/capture card found")
            return
        if self.post:
            self.post(SetWebcams(payload=sources))

    def restore(self, settings: SharedSettings) -> None:
        """Apply the persisted look before the first channel message arrives."""
        display, border = settings.display, settings.border
        messages: list[ChannelMessage] = [
            SetBorderColor(payload=border.color),
            SetBorderStyle(payload=border.style),
            SetBorderWidth(payload=border.width),
            SetTransparency(payload=FilterStyle(filter=display.filter)),
            SetOverlayOpacity(payload=display.overlay_opacity),
            SetControlSelected(payload=settings.control.device_id),
        ]
        if display.device_id:
            constraints = StreamConstraints(video=VideoConstraints(device_id=ExactConstraint(exact=display.device_id)))
            messages.append(SetVideoStream(payload=constraints))
        if display.resolution:
            width, _, height = display.resolution.partition("|")
            if width and height:
                messages.append(SetResolution(payload=Dimensions(width=width, height=height)))
        for message in messages:
            self.handle(message)
