#!/usr/bin/env python3
"""Local CLI entrypoint to run the verifier outside of a CI job.

Usage:
  SET_LOWER_BOUNDS=/path/to/set-lower-bounds \
    python scripts/verify_lower_bounds.py [--manifest-path Cargo.toml] [--no-restore]

This calls the same cli.main used by the ``bounds-verifier`` console script.
"""

from __future__ import annotations

import sys

from bounds_verifier.cli import main


if __name__ == "__main__":
    raise SystemExit(main(["verify-lower-bounds", *sys.argv[1:]]))
