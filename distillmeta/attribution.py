"""Contributor/content attribution graph built from normalized activity events."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from .logging import get_logger
from .models import Event, EventKind, format_timestamp, parse_timestamp, utc_now

GRAPH_VERSION = "1.0.0"

CONTRIBUTOR = "contributor"
CONTENT = "content"

_CONTENT_TYPES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("md", "markdown"), "markdown"),
    (("js", "jsx", "ts", "tsx"), "javascript"),
    (("py",), "python"),
    (("r",), "r"),
    (("ipynb",), "notebook"),
    (("json", "yaml", "yml"), "data"),
    (("png", "jpg", "jpeg", "gif", "svg"), "image"),
    (("css", "scss", "less"), "style"),
    (("html", "htm"), "html"),
)

# (link kind, weight) per event kind; pull request commits are not linked because
# the same change also arrives as a commit.
_LINK_RULES: Dict[EventKind, Tuple[str, float]] = {
    EventKind.ISSUE_OPEN: ("issue", 1.0),
    EventKind.PR_OPEN: ("pull_request", 1.0),
    EventKind.PR_REVIEW: ("review", 0.8),
    EventKind.ISSUE_COMMENT: ("comment", 0.5),
    EventKind.PR_COMMENT: ("comment", 0.5),
}


def node_id(kind: str, name: str) -> str:
    return f"{kind}:{re.sub(r'[^a-zA-Z0-9]', '_', name)}"


def content_type(path: str) -> str:
    extension = path.rsplit(".", 1)[-1].lower() if "." in path else ""
    for extensions, label in _CONTENT_TYPES:
        if extension in extensions:
            return label
    return "other"


@dataclass
class Node:
    id: str
    kind: str
    attrs: Dict[str, Any] = field(default_factory=dict)
    contributions: int = 0

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.attrs)
        payload.update({"id": self.id, "kind": self.kind, "contributions": self.contributions})
        return payload


@dataclass
class Link:
    source: str
    target: str
    kind: str
    weight: float
    timestamp: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> Tuple[str, str, str, str]:
        return (self.source, self.target, self.kind, self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "kind": self.kind,
            "weight": self.weight,
            "timestamp": self.timestamp,
            "metadata": dict(self.metadata),
        }


class AttributionGraph:
    """Monotonically growing graph of contributors, content and contribution links."""

    def __init__(
        self,
        nodes: Iterable[Node] = (),
        links: Iterable[Link] = (),
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        self.nodes: Dict[str, Node] = {}
        self.links: List[Link] = []
        self._link_keys: Set[Tuple[str, str, str, str]] = set()
        self.metadata: Dict[str, Any] = dict(metadata or {})
        for node in nodes:
            self.nodes.setdefault(node.id, node)
        for link in links:
            self.add_link(link)

    @classmethod
    def baseline(cls, repository: str, now: datetime) -> "AttributionGraph":
        return cls(
            metadata={
                "repository": repository,
                "generated": format_timestamp(now),
                "version": GRAPH_VERSION,
            }
        )

    def add_contributor(self, key: str, **attrs: Any) -> str:
        return self._upsert(CONTRIBUTOR, key, attrs)

    def add_content(self, path: str, *, title: Optional[str] = None, kind: Optional[str] = None) -> str:
        return self._upsert(
            CONTENT, path, {"path": path, "title": title, "contentType": kind or content_type(path)}
        )

    def add_link(self, link: Link) -> bool:
        if link.key in self._link_keys:
            return False
        self._link_keys.add(link.key)
        self.links.append(link)
        return True

    def recompute_metrics(self, now: datetime) -> Dict[str, Any]:
        """Refresh per-node contribution tallies and the graph-level metrics."""
        outgoing: Dict[str, List[Link]] = {}
        incoming: Dict[str, int] = {}
        for link in self.links:
            outgoing.setdefault(link.source, []).append(link)
            incoming[link.target] = incoming.get(link.target, 0) + 1

        for node in self.nodes.values():
            if node.kind != CONTRIBUTOR:
                node.contributions = incoming.get(node.id, 0)
                continue
            links = outgoing.get(node.id, [])
            breakdown: Dict[str, int] = {}
            for link in links:
                breakdown[link.kind] = breakdown.get(link.kind, 0) + 1
            node.contributions = len(links)
            node.attrs["contributions"] = len(links)
            node.attrs["contributionBreakdown"] = breakdown
            node.attrs["firstContribution"] = _earliest(link.timestamp for link in links)

        node_count = len(self.nodes)
        pairs = node_count * (node_count - 1) / 2
        metrics = {
            "contributorCount": sum(1 for node in self.nodes.values() if node.kind == CONTRIBUTOR),
            "totalContributions": len(self.links),
            "contentNodes": sum(1 for node in self.nodes.values() if node.kind != CONTRIBUTOR),
            "density": len(self.links) / pairs if pairs > 0 else 0.0,
            "lastUpdated": format_timestamp(now),
        }
        self.metadata["metrics"] = metrics
        return metrics

    def contributors(self) -> List[Node]:
        return [node for node in self.nodes.values() if node.kind == CONTRIBUTOR]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes.values()],
            "links": [link.to_dict() for link in self.links],
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "AttributionGraph":
        if not isinstance(payload, Mapping):
            raise ValueError("attribution graph must be a mapping")
        raw_nodes = payload.get("nodes")
        raw_links = payload.get("links")
        metadata = payload.get("metadata", {})
        if not isinstance(raw_nodes, list) or not isinstance(raw_links, list):
            raise ValueError("attribution graph requires node and link lists")
        if not isinstance(metadata, Mapping):
            raise ValueError("attribution metadata must be a mapping")
        return cls(
            nodes=[_node_from_dict(item) for item in raw_nodes],
            links=[_link_from_dict(item) for item in raw_links],
            metadata=metadata,
        )

    def _upsert(self, kind: str, key: str, attrs: Mapping[str, Any]) -> str:
        identifier = node_id(kind, key)
        node = self.nodes.get(identifier)
        if node is None:
            self.nodes[identifier] = Node(id=identifier, kind=kind, attrs=dict(attrs))
            return identifier
        for name, value in attrs.items():
            if value is not None and node.attrs.get(name) is None:
                node.attrs[name] = value
        return identifier


def _node_from_dict(payload: Any) -> Node:
    if not isinstance(payload, Mapping):
        raise ValueError("graph node must be a mapping")
    identifier = payload.get("id")
    kind = payload.get("kind")
    if not isinstance(identifier, str) or kind not in (CONTRIBUTOR, CONTENT):
        raise ValueError("graph node requires an id and a contributor/content kind")
    contributions = payload.get("contributions", 0)
    attrs = {key: value for key, value in payload.items() if key not in {"id", "kind", "contributions"}}
    return Node(
        id=identifier,
        kind=kind,
        attrs=attrs,
        contributions=contributions if isinstance(contributions, int) else 0,
    )


def _link_from_dict(payload: Any) -> Link:
    if not isinstance(payload, Mapping):
        raise ValueError("graph link must be a mapping")
    source, target, kind = payload.get("source"), payload.get("target"), payload.get("kind")
    weight, timestamp = payload.get("weight"), payload.get("timestamp")
    if not all(isinstance(value, str) for value in (source, target, kind, timestamp)):
        raise ValueError("graph link requires source, target, kind and timestamp")
    if not isinstance(weight, (int, float)) or isinstance(weight, bool):
        raise ValueError("graph link weight must be numeric")
    metadata = payload.get("metadata", {})
    return Link(
        source=source,
        target=target,
        kind=kind,
        weight=float(weight),
        timestamp=timestamp,
        metadata=dict(metadata) if isinstance(metadata, Mapping) else {},
    )


def _earliest(timestamps: Iterable[str]) -> Optional[str]:
    earliest: Optional[Tuple[datetime, str]] = None
    for raw in timestamps:
        try:
            parsed = parse_timestamp(raw)
        except ValueError:
            continue
        if earliest is None or parsed < earliest[0]:
            earliest = (parsed, raw)
    return earliest[1] if earliest else None


class AttributionGraphBuilder:
    """Folds activity events into an attribution graph."""

    def __init__(self, *, clock: Callable[[], datetime] = utc_now) -> None:
        self.clock = clock
        self.logger = get_logger("attribution")

    def update(self, graph: AttributionGraph, events: Iterable[Event]) -> int:
        """Add links for ``events``; returns how many were new."""
        added = 0
        for event in events:
            for link in self._links_for(graph, event):
                if graph.add_link(link):
                    added += 1
        graph.recompute_metrics(self.clock())
        self.logger.info("Attribution graph: %d new link(s), %d total", added, len(graph.links))
        return added

    def _links_for(self, graph: AttributionGraph, event: Event) -> List[Link]:
        timestamp = format_timestamp(event.timestamp)
        payload = event.payload

        if event.kind is EventKind.COMMIT:
            source = graph.add_contributor(
                event.actor, name=event.actor, email=payload.get("email"), github=None
            )
            links = []
            for delta in payload.get("files", []):
                target = graph.add_content(delta["path"])
                links.append(
                    Link(
                        source=source,
                        target=target,
                        kind="code",
                        weight=float(delta["additions"] + delta["deletions"]),
                        timestamp=timestamp,
                        metadata={
                            "commitHash": event.target_ref,
                            "message": payload.get("message", ""),
                            "additions": delta["additions"],
                            "deletions": delta["deletions"],
                        },
                    )
                )
            return links

        rule = _LINK_RULES.get(event.kind)
        if rule is None:
            return []
        kind, weight = rule
        source = graph.add_contributor(event.actor, name=event.actor, github=event.actor)
        target = graph.add_content(
            event.target_ref,
            title=payload.get("title"),
            kind="issue" if event.target_ref.startswith("issues/") else "pull_request",
        )
        return [
            Link(
                source=source,
                target=target,
                kind=kind,
                weight=weight,
                timestamp=timestamp,
                metadata=_link_metadata(event),
            )
        ]


def _link_metadata(event: Event) -> Dict[str, Any]:
    payload = event.payload
    if event.kind is EventKind.ISSUE_OPEN:
        return {
            "title": payload.get("title"),
            "state": payload.get("state"),
            "labels": list(payload.get("labels", [])),
            "url": payload.get("url"),
        }
    if event.kind is EventKind.PR_OPEN:
        return {
            "title": payload.get("title"),
            "state": payload.get("state"),
            "merged": payload.get("merged"),
            "url": payload.get("url"),
        }
    if event.kind is EventKind.PR_REVIEW:
        return {"reviewId": payload.get("reviewId"), "state": payload.get("state"), "url": payload.get("url")}
    return {"commentId": payload.get("commentId"), "url": payload.get("url")}


__all__ = [
    "AttributionGraph",
    "AttributionGraphBuilder",
    "Link",
    "Node",
    "content_type",
    "node_id",
]
