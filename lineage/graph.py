from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Optional

from .dates import compute_age, extract_year
from .models import Person, Relationship, TreeLink, TreeNode
from .relationships import RelationshipIndex

NODE_COLOR_DECEASED = "#ef4444"
NODE_COLOR_CHILD = "#22c55e"
NODE_COLOR_ADULT = "#3b82f6"
NODE_COLOR_ELDER = "#f59e0b"
NODE_COLOR_UNKNOWN = "#6b7280"

LINK_COLORS = {
    "parent": "#3b82f6",
    "child": "#3b82f6",
    "spouse": "#ef4444",
    "sibling": "#22c55e",
}
LINK_COLOR_OTHER = "#6b7280"


@dataclass
class Graph:
    nodes: list[TreeNode] = field(default_factory=list)
    links: list[TreeLink] = field(default_factory=list)
    root_id: Optional[str] = None

    def node(self, node_id: str) -> TreeNode:
        for n in self.nodes:
            if n.id == node_id:
                return n
        raise KeyError(node_id)

    def __bool__(self) -> bool:
        return bool(self.nodes)


def _link_for(rel: Relationship) -> TreeLink:
    t = rel.type.value
    source, target = rel.person1_id, rel.person2_id
    # Tree links only know parent/spouse/sibling; child edges are the same
    # fact pointed the other way.
    if t == "child":
        t = "parent"
        source, target = target, source
    elif t == "partner":
        t = "spouse"
    return TreeLink(id=rel.id, source=source, target=target, type=t)


def build_graph(
    people: Iterable[Person],
    relationships: Iterable[Relationship],
    root_id: str | None = None,
    *,
    generation: int = 0,
    depth: int = 0,
) -> Graph:
    """Wrap people as nodes and relationships as links for the layout.

    Node positions start unset and generation/depth keep the supplied
    defaults (see ``assign_depths`` for BFS depths). Links whose endpoints
    are not both among ``people`` are dropped; the rest keep raw ids as
    source/target until the simulation resolves them.
    """

    nodes = [
        TreeNode(id=p.id, person=p, generation=generation, depth=depth, index=i)
        for i, p in enumerate(people)
    ]
    ids = {n.id for n in nodes}

    links: list[TreeLink] = []
    for rel in relationships:
        if rel.person1_id not in ids or rel.person2_id not in ids:
            continue
        link = _link_for(rel)
        link.index = len(links)
        links.append(link)

    return Graph(nodes=nodes, links=links, root_id=root_id if root_id in ids else None)


def assign_depths(graph: Graph) -> Graph:
    """Set BFS depth and signed generation from the root over parent links.

    Ancestors get negative generations, descendants positive, spouses share
    their partner's generation. Siblings are not followed. Nodes that the
    root cannot reach keep their defaults.
    """

    if graph.root_id is None:
        return graph

    by_id = {n.id: n for n in graph.nodes}
    adjacency: dict[str, list[tuple[str, int]]] = {}
    for link in graph.links:
        s, t = link.source_id, link.target_id
        if link.type == "parent":
            adjacency.setdefault(s, []).append((t, 1))
            adjacency.setdefault(t, []).append((s, -1))
        elif link.type == "spouse":
            adjacency.setdefault(s, []).append((t, 0))
            adjacency.setdefault(t, []).append((s, 0))

    root = by_id[graph.root_id]
    root.depth = 0
    root.generation = 0
    seen = {root.id}
    frontier = [root.id]
    while frontier:
        next_frontier: list[str] = []
        for nid in frontier:
            node = by_id[nid]
            for nb, step in adjacency.get(nid, []):
                if nb in seen:
                    continue
                seen.add(nb)
                other = by_id[nb]
                other.generation = node.generation + step
                other.depth = node.depth + (1 if step else 0)
                next_frontier.append(nb)
        frontier = next_frontier
    return graph


def neighborhood(
    index: RelationshipIndex,
    start: str,
    *,
    depth: int,
    max_nodes: int,
) -> dict[str, int]:
    """Return person->distance for a BFS around ``start``.

    Distances count parent/child hops. Spouses are attached at their
    partner's distance but not expanded further, to avoid pulling in large
    lateral marriage networks; siblings are reached through shared parents.
    """

    distances: dict[str, int] = {start: 0}

    for sp in index.spouses_of(start):
        if sp in distances:
            continue
        distances[sp] = 0
        if len(distances) >= max_nodes:
            return distances

    if depth <= 0:
        return distances

    frontier = [start]
    for d in range(1, depth + 1):
        next_frontier: list[str] = []

        # Expand only through parent/child edges (generation distance).
        for node in frontier:
            for nb in index.parents_of(node) + index.children_of(node):
                if nb in distances:
                    continue
                distances[nb] = d
                next_frontier.append(nb)
                if len(distances) >= max_nodes:
                    return distances

        # Attach spouses for newly discovered nodes at this generation.
        for pid in next_frontier:
            for sp in index.spouses_of(pid):
                if sp in distances:
                    continue
                distances[sp] = d
                if len(distances) >= max_nodes:
                    return distances

        frontier = next_frontier
        if not frontier:
            break

    return distances


# ---------------------------------------------------------------------------
# Visual encoding
# ---------------------------------------------------------------------------


def node_color(person: Person, *, today: date | None = None) -> str:
    if person.death_date:
        return NODE_COLOR_DECEASED
    if person.birth_date and extract_year(person.birth_date) is not None:
        age = compute_age(person.birth_date, today=today)
        if age < 18:
            return NODE_COLOR_CHILD
        if age < 65:
            return NODE_COLOR_ADULT
        return NODE_COLOR_ELDER
    return NODE_COLOR_UNKNOWN


def link_color(link_type: str) -> str:
    return LINK_COLORS.get(link_type, LINK_COLOR_OTHER)


def life_span_label(person: Person) -> str:
    birth = extract_year(person.birth_date)
    death = extract_year(person.death_date)
    if birth and death:
        return f"{birth}-{death}"
    if birth:
        return f"b. {birth}"
    return ""


def graph_payload(graph: Graph, *, today: date | None = None) -> dict[str, Any]:
    """JSON-ready nodes/links with colors and current coordinates."""

    nodes = [
        {
            "id": n.id,
            "name": n.person.full_name,
            "years": life_span_label(n.person),
            "generation": n.generation,
            "depth": n.depth,
            "x": n.x,
            "y": n.y,
            "color": node_color(n.person, today=today),
            "is_root": n.id == graph.root_id,
        }
        for n in graph.nodes
    ]
    links = [
        {
            "id": link.id,
            "source": link.source_id,
            "target": link.target_id,
            "type": link.type,
            "color": link_color(link.type),
        }
        for link in graph.links
    ]
    return {"root_id": graph.root_id, "nodes": nodes, "links": links}
