"""Statistical color transfer between a reference and a target image.

The target image's per-channel distribution is reshaped to match the
reference image in a chosen working color space (Lab, RGB, HSV or XYZ), with
an independent blend rate for each channel. Statistics are computed on the
natural logarithm of the channel values, following Reinhard et al., "Color
Transfer between Images" (2001).

Module Organization
-------------------

colorspaces
    Data-driven table of working color spaces: forward/backward conversions
    and channel labels.

channel_stats
    Log-domain per-channel mean and population standard deviation.

matching
    Mean/variance matching of one channel and linear rate blending.

engine
    The full transfer pipeline with per-space caching of statistics.

controller
    Mode/rate state machine driven by ``ModeChange`` and ``RateChange`` commands.

io_utils
    Image validation, Pillow-based loading and atomic saving.

cli
    Command-line interface with JSON/YAML configuration support.

viewer
    Optional OpenCV windows and trackbars for interactive tuning.

Example Usage
-------------

    from statistical_color_transfer import ColorSpace, ModeController, ModeChange, RateChange

    controller = ModeController.from_images(reference, target)
    controller.handle(ModeChange(ColorSpace.LAB))
    controller.handle(RateChange.from_percent(0, 40))
    result = controller.output

    # Or in a single call
    from statistical_color_transfer import transfer_colors

    result = transfer_colors(reference, target, ColorSpace.HSV, rates=(1.0, 0.5, 1.0))
"""
from __future__ import annotations

import logging

from .channel_stats import DEGENERATE_STD, LOG_EPSILON, ChannelStats, compute_channel_stats, to_log_domain
from .cli import build_settings, main, parse_args, run_transfer
from .colorspaces import COLOR_SPACES, DEFAULT_COLOR_SPACE, ColorSpace, WorkingSpace, backward, forward
from .controller import ModeChange, ModeController, RateChange
from .engine import TransferEngine, transfer_colors
from .io_utils import ConfigurationError, load_image, save_image, validate_image, validate_output_path
from .matching import blend_channel, match_channel, scale_factor
from .settings import RateVector, TransferSettings

__version__ = "0.1.0"

LOGGER = logging.getLogger("statistical_color_transfer")

__all__ = [
    "COLOR_SPACES",
    "ChannelStats",
    "ColorSpace",
    "ConfigurationError",
    "DEFAULT_COLOR_SPACE",
    "DEGENERATE_STD",
    "LOG_EPSILON",
    "ModeChange",
    "ModeController",
    "RateChange",
    "RateVector",
    "TransferEngine",
    "TransferSettings",
    "WorkingSpace",
    "backward",
    "blend_channel",
    "build_settings",
    "compute_channel_stats",
    "forward",
    "load_image",
    "main",
    "match_channel",
    "parse_args",
    "run_transfer",
    "save_image",
    "scale_factor",
    "to_log_domain",
    "transfer_colors",
    "validate_image",
    "validate_output_path",
]
