"""Tests for the attribution graph."""

from __future__ import annotations

import pytest

from distillmeta.attribution import AttributionGraph, AttributionGraphBuilder, content_type, node_id
from distillmeta.models import EventKind
from tests._fixtures.activity import commit, event
from tests._fixtures.repo_builder import at


def _builder() -> AttributionGraphBuilder:
    return AttributionGraphBuilder(clock=lambda: at(20))


def test_commits_on_different_days_produce_separate_links() -> None:
    graph = AttributionGraph.baseline("octo/notes", at(20))
    events = [
        commit("a1", "Ada", at(1), "Draft", [("content/index.md", 10, 0)]),
        commit("b2", "Ada", at(2), "Revise", [("content/index.md", 3, 1)]),
    ]

    added = _builder().update(graph, events)

    assert added == 2
    contributor = graph.nodes[node_id("contributor", "Ada")]
    assert contributor.contributions == 2
    assert contributor.attrs["contributionBreakdown"] == {"code": 2}
    assert contributor.attrs["firstContribution"] == "2024-03-01T12:00:00Z"
    content = graph.nodes[node_id("content", "content/index.md")]
    assert content.contributions == 2
    assert content.attrs["contentType"] == "markdown"
    assert [link.weight for link in graph.links] == [10.0, 4.0]


def test_rerunning_the_same_events_adds_nothing() -> None:
    graph = AttributionGraph.baseline("octo/notes", at(20))
    events = [
        commit("a1", "Ada", at(1), "Draft", [("content/index.md", 10, 0), ("code/plot.py", 5, 0)]),
        event(EventKind.ISSUE_OPEN, "reader", at(2), "issues/4", title="Unclear claim", state="open", labels=[]),
    ]
    builder = _builder()
    builder.update(graph, events)
    first = graph.to_dict()

    assert builder.update(graph, events) == 0
    assert graph.to_dict() == first


def test_platform_events_link_with_kind_weights() -> None:
    graph = AttributionGraph.baseline("octo/notes", at(20))
    events = [
        event(EventKind.ISSUE_OPEN, "reader", at(1), "issues/4", title="Question", state="open", labels=["q"]),
        event(EventKind.PR_OPEN, "contributor", at(2), "pulls/7", title="Revise", state="open", merged=False),
        event(EventKind.PR_REVIEW, "editor", at(3), "pulls/7", reviewId=1, state="APPROVED"),
        event(EventKind.ISSUE_COMMENT, "octo", at(3), "issues/4", commentId=2),
        event(EventKind.PR_COMMENT, "editor", at(4), "pulls/7", commentId=3, origin="review"),
        event(EventKind.PR_COMMIT, "contributor", at(4), "pulls/7", sha="f00"),
    ]

    _builder().update(graph, events)

    assert [(link.kind, link.weight) for link in graph.links] == [
        ("issue", 1.0),
        ("pull_request", 1.0),
        ("review", 0.8),
        ("comment", 0.5),
        ("comment", 0.5),
    ]
    editor = graph.nodes[node_id("contributor", "editor")]
    assert editor.attrs["contributionBreakdown"] == {"review": 1, "comment": 1}
    assert graph.nodes[node_id("content", "pulls/7")].attrs["contentType"] == "pull_request"
    assert graph.nodes[node_id("content", "issues/4")].attrs["title"] == "Question"


def test_metrics_summarize_the_graph() -> None:
    graph = AttributionGraph.baseline("octo/notes", at(20))
    _builder().update(graph, [commit("a1", "Ada", at(1), "Draft", [("content/index.md", 1, 0)])])

    metrics = graph.metadata["metrics"]

    assert metrics["contributorCount"] == 1
    assert metrics["contentNodes"] == 1
    assert metrics["totalContributions"] == 1
    assert metrics["density"] == pytest.approx(1.0)
    assert metrics["lastUpdated"] == "2024-03-20T12:00:00Z"


def test_graph_round_trips_through_dict() -> None:
    graph = AttributionGraph.baseline("octo/notes", at(20))
    _builder().update(graph, [commit("a1", "Ada Lovelace", at(1), "Draft", [("content/index.md", 1, 0)])])

    restored = AttributionGraph.from_dict(graph.to_dict())

    assert restored.to_dict() == graph.to_dict()
    assert _builder().update(restored, [commit("a1", "Ada Lovelace", at(1), "Draft", [("content/index.md", 1, 0)])]) == 0


def test_from_dict_rejects_malformed_payload() -> None:
    with pytest.raises(ValueError):
        AttributionGraph.from_dict({"nodes": "nope", "links": []})
    with pytest.raises(ValueError):
        AttributionGraph.from_dict({"nodes": [], "links": [{"source": "a"}]})


def test_content_type_and_node_ids() -> None:
    assert content_type("code/analysis.ipynb") == "notebook"
    assert content_type("Makefile") == "other"
    assert node_id("contributor", "Ada Lovelace") == "contributor:Ada_Lovelace"
