"""Allow ``python -m statistical_color_transfer``."""
from __future__ import annotations

from .cli import main


if __name__ == "__main__":  # pragma: no cover - exercised via integration test
    raise SystemExit(main())
