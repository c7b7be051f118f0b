import dataclasses

import pytest

from bounds_verifier.flags import DENY, StrictFlags


def test_deny_flags_match_ci_lint_set():
    assert DENY.as_rustflags() == (
        "-D warnings -D future-incompatible -D unused "
        "-D bare-trait-objects -D ellipsis-inclusive-range-patterns -D unused-extern-crates"
    )


def test_from_lints_keeps_order_and_appends_allows():
    flags = StrictFlags.from_lints(deny=("warnings", "unused"), allow=("dead-code",))

    assert flags.directives == ("-D", "warnings", "-D", "unused", "-A", "dead-code")


def test_flag_set_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        DENY.directives = ()


def test_empty_flag_set_is_rejected():
    with pytest.raises(ValueError):
        StrictFlags(directives=())
