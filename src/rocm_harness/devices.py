"""Per-feature device support checks.

Each predicate is all-or-nothing: a single unsupported target among the
discovered devices disables the feature, and no devices at all means no
support. The two denylists are kept apart even though they currently hold
the same architectures, since the features are independent in the debugger.
"""

from typing import Collection, Sequence

DEBUG_MULTI_PROCESS_UNSUPPORTED_TARGETS: frozenset[str] = frozenset(
    {
        "gfx900",
        "gfx906",
        "gfx908",
        "gfx1010",
        "gfx1011",
        "gfx1012",
        "gfx1030",
        "gfx1031",
        "gfx1032",
    }
)

PRECISE_MEMORY_UNSUPPORTED_TARGETS: frozenset[str] = frozenset(
    {
        "gfx900",
        "gfx906",
        "gfx908",
        "gfx1010",
        "gfx1011",
        "gfx1012",
        "gfx1030",
        "gfx1031",
        "gfx1032",
    }
)


def _all_supported(targets: Sequence[str], unsupported: Collection[str]) -> bool:
    if not targets:
        return False
    for target in targets:
        if target in unsupported:
            return False
    return True


def hip_devices_support_debug_multi_process(targets: Sequence[str]) -> bool:
    """True if every target supports debugging multiple processes at once."""
    return _all_supported(targets, DEBUG_MULTI_PROCESS_UNSUPPORTED_TARGETS)


def hip_devices_support_precise_memory(targets: Sequence[str]) -> bool:
    """True if every target supports precise memory violation reporting."""
    return _all_supported(targets, PRECISE_MEMORY_UNSUPPORTED_TARGETS)
