"""Module entry point: python -m stay_window ..."""

from __future__ import annotations

from stay_window.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
