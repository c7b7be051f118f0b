"""bounds-verifier core package.

This package checks that the minimum dependency versions a Cargo project
declares are actually sufficient to build it under strict lints. The logic is
callable from the console script, CI wrappers and tests alike.
"""

__all__ = [
    "core",
]
