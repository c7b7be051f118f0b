"""Strict rustc lint directives applied to every verification build."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class StrictFlags:
    """Immutable, ordered set of rustc lint directives."""

    directives: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.directives:
            raise ValueError("Strict flag set must contain at least one directive")
        if any(not directive.strip() for directive in self.directives):
            raise ValueError("Directives must be non-empty strings")

    def as_rustflags(self) -> str:
        """Return the value placed in ``RUSTFLAGS``."""
        return " ".join(self.directives)

    @classmethod
    def from_lints(cls, *, deny: tuple[str, ...] = (), allow: tuple[str, ...] = ()) -> StrictFlags:
        directives: list[str] = []
        for lint in deny:
            directives.extend(("-D", lint))
        for lint in allow:
            directives.extend(("-A", lint))
        return cls(directives=tuple(directives))


RUST_2018_IDIOMS = (
    "bare-trait-objects",
    "ellipsis-inclusive-range-patterns",
    "unused-extern-crates",
)

DENY = StrictFlags.from_lints(
    deny=("warnings", "future-incompatible", "unused") + RUST_2018_IDIOMS,
)
