from __future__ import annotations

import math
from typing import Optional, Tuple

from common.geo import normalize_bearing
from common.types import CaptureMetadata, FrameSize
from common.logging_setup import get_logger


log = get_logger("targeting")

TapPoint = Tuple[float, float]


def compute_target_bearing(
    tap_point: Optional[TapPoint],
    frame_size: FrameSize,
    metadata: CaptureMetadata,
) -> float:
    """
    Map a tap on the captured frame to an absolute compass bearing.

    The horizontal offset from frame center, as a fraction in [-0.5, 0.5],
    is scaled by the effective FOV and added to the camera heading. No tap
    (automatic / center-of-frame capture) returns the heading unchanged.

    Raises:
        ValueError: zero or negative frame dimensions, or a tap that is not
            finite or lies outside 0 <= x <= width.
    """
    if frame_size.is_degenerate:
        raise ValueError(f"frame size must be positive, got {frame_size.width}x{frame_size.height}")
    if tap_point is None:
        return metadata.heading_deg

    x = float(tap_point[0])
    if not math.isfinite(x):
        raise ValueError(f"tap x must be finite, got {x}")
    if not 0.0 <= x <= frame_size.width:
        raise ValueError(f"tap x={x} lies outside the frame (width {frame_size.width})")
    offset = (x / float(frame_size.width)) - 0.5
    target = normalize_bearing(metadata.heading_deg + offset * metadata.field_of_view_deg)
    log.debug(
        "tap bearing",
        extra={"extra": {"x": x, "offset": offset, "fov": metadata.field_of_view_deg, "bearing": target}},
    )
    return target
