"""API version priority tests."""

from __future__ import annotations

import pytest
from kube_typegen.version_reconciliation import ApiVersion, Stability, sort_version_labels


@pytest.mark.parametrize(
    ("label", "stability", "major", "minor"),
    [
        ("v1", Stability.GA, 1, None),
        ("v2beta5", Stability.BETA, 2, 5),
        ("v1alpha", Stability.ALPHA, 1, None),
        ("foo", Stability.OTHER, 0, None),
        ("v1gamma1", Stability.OTHER, 0, None),
    ],
)
def test_parse(label: str, stability: Stability, major: int, minor: int | None) -> None:
    parsed = ApiVersion.parse(label)

    assert (parsed.stability, parsed.major, parsed.minor) == (stability, major, minor)


def test_sort_orders_by_stability_then_version() -> None:
    labels = ["v1alpha1", "v1", "v2beta1", "foo", "v2", "v1beta2", "v1beta1", "bar", "v10"]

    assert sort_version_labels(labels) == [
        "v10",
        "v2",
        "v1",
        "v2beta1",
        "v1beta2",
        "v1beta1",
        "v1alpha1",
        "bar",
        "foo",
    ]


def test_present_minor_beats_missing_minor() -> None:
    assert sort_version_labels(["v1beta", "v1beta1"]) == ["v1beta1", "v1beta"]
