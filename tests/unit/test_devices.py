"""Tests for devices module - per-feature denylist predicates."""

import itertools

import pytest

from rocm_harness.devices import (
    DEBUG_MULTI_PROCESS_UNSUPPORTED_TARGETS,
    PRECISE_MEMORY_UNSUPPORTED_TARGETS,
    hip_devices_support_debug_multi_process,
    hip_devices_support_precise_memory,
)

PREDICATES = [hip_devices_support_debug_multi_process, hip_devices_support_precise_memory]


@pytest.mark.parametrize("predicate", PREDICATES)
def test_no_devices_means_no_support(predicate):
    assert predicate([]) is False


@pytest.mark.parametrize("predicate", PREDICATES)
def test_supported_devices(predicate):
    assert predicate(["gfx1100"]) is True
    assert predicate(["gfx90a", "gfx940", "gfx1100"]) is True


@pytest.mark.parametrize("predicate", PREDICATES)
def test_single_unsupported_device_disables_feature(predicate):
    for targets in itertools.permutations(["gfx90a", "gfx1100", "gfx906"]):
        assert predicate(list(targets)) is False


@pytest.mark.parametrize("predicate", PREDICATES)
def test_override_with_host_cpu_entry(predicate):
    """gfx000 is not denylisted, but gfx900 and gfx1030 are."""
    assert predicate(["gfx900", "gfx000", "gfx1030"]) is False


@pytest.mark.parametrize(
    "predicate, denylist",
    [
        (hip_devices_support_debug_multi_process, DEBUG_MULTI_PROCESS_UNSUPPORTED_TARGETS),
        (hip_devices_support_precise_memory, PRECISE_MEMORY_UNSUPPORTED_TARGETS),
    ],
)
def test_every_denylisted_target_is_rejected(predicate, denylist):
    for target in denylist:
        assert predicate([target]) is False


def test_denylists_are_separate_objects():
    assert DEBUG_MULTI_PROCESS_UNSUPPORTED_TARGETS is not PRECISE_MEMORY_UNSUPPORTED_TARGETS
    assert {"gfx900", "gfx1030"} <= DEBUG_MULTI_PROCESS_UNSUPPORTED_TARGETS
    assert "gfx1100" not in PRECISE_MEMORY_UNSUPPORTED_TARGETS
