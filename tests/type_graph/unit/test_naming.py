"""Schema path and type name derivation tests."""

from __future__ import annotations

import pytest
from kube_typegen.type_graph import SchemaPath, pascal_case


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("podSelector", "PodSelector"),
        ("HTTPRoute", "HttpRoute"),
        ("matchLabels", "MatchLabels"),
        ("x-kubernetes-list", "XKubernetesList"),
        ("ipv4", "Ipv4"),
        ("HTTP/2", "Http2"),
    ],
)
def test_pascal_case(label: str, expected: str) -> None:
    assert pascal_case(label) == expected


def test_render_marks_items_values_and_variants() -> None:
    selector = SchemaPath.root("Server").child_property("spec").child_property("podSelector")

    assert selector.child_items().child_property("operator").render() == (
        "Server.spec.podSelector[].operator"
    )
    assert selector.child_value().render() == "Server.spec.podSelector{}"
    assert selector.child_variant("Http").render() == "Server.spec.podSelector<Http>"


def test_candidates_start_innermost_and_widen() -> None:
    path = (
        SchemaPath.root("Server")
        .child_property("spec")
        .child_property("podSelector")
        .child_items()
        .child_property("operator")
    )

    assert path.name_candidates() == (
        "Operator",
        "PodSelectorOperator",
        "SpecPodSelectorOperator",
        "ServerSpecPodSelectorOperator",
    )


def test_variant_labels_extend_the_enclosing_unit() -> None:
    path = SchemaPath.root("Server").child_property("backend").child_variant("Http")

    assert path.name_units() == ("Server", "BackendHttp")
    assert path.name_candidates()[0] == "BackendHttp"


def test_root_label_is_kept_when_already_a_type_name() -> None:
    assert SchemaPath.root("HTTPRoute").name_units() == ("HTTPRoute",)
    assert SchemaPath.root("my-widget").name_units() == ("MyWidget",)


def test_paths_without_usable_words_have_no_candidates() -> None:
    assert SchemaPath.root("Server").child_property("$").name_candidates() == ("Server",)
    assert SchemaPath.root("42").name_candidates() == ()
