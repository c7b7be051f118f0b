"""Allow ``python -m bounds_verifier``."""

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
