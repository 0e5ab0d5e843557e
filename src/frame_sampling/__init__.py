"""Package for frame planning and decoding components."""

from .frame_sampler import FrameDecoder, VideoHandle
from .timestamps import SelectionPolicy, plan, plan_first_frame, plan_random, plan_smart

__all__ = [
    "FrameDecoder",
    "VideoHandle",
    "SelectionPolicy",
    "plan",
    "plan_first_frame",
    "plan_random",
    "plan_smart",
]
