"""
Entry point for ``python -m tilebench``.

Running behaviours:
    python -m tilebench list
    python -m tilebench run buffer --coordinate 0/0/0
"""

from __future__ import annotations

import sys
from typing import Sequence

from tilebench.cli import commands


def main(argv: Sequence[str] | None = None) -> None:
    args = list(argv if argv is not None else sys.argv[1:])
    raise SystemExit(commands.main(args))


if __name__ == "__main__":  # pragma: no cover - module execution guard
    main()
