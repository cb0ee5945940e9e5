"""Entry point for `python -m review_cli` and the `sqlreview` console script."""

from __future__ import annotations

from review_cli.app import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
