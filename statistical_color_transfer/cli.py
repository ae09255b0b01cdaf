"""Command-line interface wiring for statistical colour transfer."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import numpy as np
import yaml

from .colorspaces import DEFAULT_COLOR_SPACE, ColorSpace
from .controller import ModeChange, ModeController, RateChange
from .io_utils import ConfigurationError, load_image, save_image, validate_output_path
from .settings import PERCENT_MAX, TransferSettings

LOGGER = logging.getLogger("statistical_color_transfer")


def _load_config_data(path: Path) -> Mapping[str, Any]:
    """Load configuration from a JSON or YAML file.

    Args:
        path: Path to configuration file (.json, .yaml, or .yml).

    Returns:
        Dictionary mapping option names to values.

    Raises:
        FileNotFoundError: If the configuration file doesn't exist.
        ValueError: If the file cannot be parsed or is not a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    text = path.read_text()
    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ValueError(f"Unable to parse configuration file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Configuration file {path} must contain a mapping of option names to values")
    return data


def _build_parser_aliases(parser: argparse.ArgumentParser) -> tuple[dict[str, argparse.Action], dict[str, str]]:
    """Map every option spelling (dest, ``--flag``, ``flag_name``) to its parser action."""
    dest_to_action: dict[str, argparse.Action] = {}
    alias_to_dest: dict[str, str] = {}
    for action in parser._actions:  # pylint: disable=protected-access
        if action.dest in {argparse.SUPPRESS, "help", "config"}:
            continue
        dest_to_action[action.dest] = action
        alias_to_dest[action.dest] = action.dest
        for option_string in action.option_strings:
            alias_to_dest[option_string.lstrip("-").replace("-", "_")] = action.dest
    return dest_to_action, alias_to_dest


def _coerce_config_value(action: argparse.Action, value: Any, *, source: Path, key: str) -> Any:
    """Convert a configuration value so it matches what argparse would produce."""

    if value is None:
        return None

    if isinstance(action, argparse._StoreTrueAction):  # pylint: disable=protected-access
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in {"1", "true", "yes", "on"}:
                return True
            if lowered in {"0", "false", "no", "off"}:
                return False
        raise ValueError(f"Invalid boolean for '{key}' in {source}: expected true/false value, got {value!r}")

    single = action.nargs in (None, "?")
    if single:
        items = [value]
    elif isinstance(value, (list, tuple)):
        items = list(value)
        if isinstance(action.nargs, int) and len(items) != action.nargs:
            raise ValueError(
                f"Invalid value for '{key}' in {source}: expected {action.nargs} values, got {len(items)}"
            )
    else:
        raise ValueError(f"Invalid value for '{key}' in {source}: expected a list, got {value!r}")

    converted = []
    for item in items:
        if action.type is not None:
            try:
                item = action.type(item)
            except (TypeError, ValueError, argparse.ArgumentTypeError) as exc:
                raise ValueError(f"Invalid value for '{key}' in {source}: {exc}") from exc
        if action.choices is not None and item not in action.choices:
            raise ValueError(
                f"Invalid value for '{key}' in {source}: {item!r} (choose from {sorted(action.choices)})"
            )
        converted.append(item)

    return converted[0] if single else converted


def _percent(value: Any) -> int:
    try:
        percent = int(value)
    except (TypeError, ValueError):
        raise argparse.ArgumentTypeError(f"invalid rate percentage: {value!r}") from None
    if not 0 <= percent <= PERCENT_MAX:
        raise argparse.ArgumentTypeError(f"rate percentage must be between 0 and {PERCENT_MAX}, got {percent}")
    return percent


def _mode(value: Any) -> str:
    return str(value).strip().lower()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Match the per-channel color statistics of a target image to a reference image.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional configuration file (JSON, or YAML for .yaml/.yml files)",
    )
    parser.add_argument("reference", type=Path, help="Image whose color statistics are transferred")
    parser.add_argument("target", type=Path, help="Image whose colors are modified")
    parser.add_argument(
        "output",
        type=Path,
        nargs="?",
        default=None,
        help="Where the result is written on exit; nothing is written when omitted",
    )
    parser.add_argument(
        "--mode",
        type=_mode,
        default=DEFAULT_COLOR_SPACE.value,
        choices=[space.value for space in ColorSpace],
        help="Working color space for the transfer",
    )
    parser.add_argument(
        "--rates",
        type=_percent,
        nargs=3,
        default=[PERCENT_MAX] * 3,
        metavar=("C1", "C2", "C3"),
        help="Per-channel transfer rate in percent (0 keeps the target, 100 fully matches the reference)",
    )
    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Open the OpenCV windows to tune mode and rates by hand (L/R/H/X keys, ESC to save and exit)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    return parser


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = build_parser()
    argv_list = list(argv) if argv is not None else None

    config_probe, _ = parser.parse_known_args(argv_list)
    if config_probe.config is not None:
        try:
            raw_config = _load_config_data(config_probe.config)
            dest_to_action, alias_to_dest = _build_parser_aliases(parser)

            converted_defaults: dict[str, Any] = {}
            for key, value in raw_config.items():
                if not isinstance(key, str):
                    raise ValueError("Configuration keys must be strings")
                dest = alias_to_dest.get(key.replace("-", "_"))
                if dest is None:
                    raise ValueError(f"Unknown configuration option '{key}' in {config_probe.config}")
                converted_defaults[dest] = _coerce_config_value(
                    dest_to_action[dest], value, source=config_probe.config, key=key
                )

            parser.set_defaults(**converted_defaults)
        except (OSError, ValueError) as exc:
            parser.error(str(exc))

    args = parser.parse_args(argv_list)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s: %(message)s")
    return args


def build_settings(args: argparse.Namespace) -> TransferSettings:
    """Construct transfer settings from parsed command-line arguments."""
    settings = TransferSettings.from_options(args.mode, args.rates)
    LOGGER.debug("Using settings: %s", settings)
    return settings


def prime_controller(controller: ModeController, settings: TransferSettings) -> None:
    """Issue the commands that bring *controller* to *settings*."""
    controller.handle(ModeChange(settings.mode))
    for channel, rate in enumerate(settings.rates):
        if rate != controller.rates[channel]:
            controller.handle(RateChange(channel, rate))


def run_transfer(args: argparse.Namespace) -> np.ndarray:
    """Load the images, run the transfer (optionally interactively) and persist the result."""

    settings = build_settings(args)
    if args.output is not None:
        validate_output_path(args.output)
    reference = load_image(args.reference)
    target = load_image(args.target)
    LOGGER.info(
        "Loaded reference %s (%sx%s) and target %s (%sx%s)",
        args.reference,
        reference.shape[1],
        reference.shape[0],
        args.target,
        target.shape[1],
        target.shape[0],
    )

    controller = ModeController.from_images(reference, target)
    prime_controller(controller, settings)

    if args.interactive:
        from .viewer import InteractiveSession  # pylint: disable=import-outside-toplevel

        InteractiveSession(controller).run()

    output = controller.output
    assert output is not None
    labels = ", ".join(
        f"{name}={percent}%" for name, percent in zip(controller.channel_names, controller.rates.as_percent())
    )
    LOGGER.info("Final transfer in %s: %s", controller.space.name, labels)

    if args.output is not None:
        save_image(args.output, output)
    elif not args.interactive:
        LOGGER.warning("No output path given; the result was computed but not saved")
    return output


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    try:
        run_transfer(args)
    except (OSError, ConfigurationError) as exc:
        LOGGER.error("%s", exc)
        raise SystemExit(1) from exc
    return 0


__all__ = [
    "build_parser",
    "build_settings",
    "main",
    "parse_args",
    "prime_controller",
    "run_transfer",
]
