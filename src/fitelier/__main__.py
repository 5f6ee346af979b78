"""Punto de entrada: ``python -m fitelier``."""

from __future__ import annotations

from fitelier.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
