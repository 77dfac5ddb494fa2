"""Tree helpers over flat collection rows."""

from __future__ import annotations

from typing import Any, Iterable


def compute_recursive_counts(collections: Iterable[dict[str, Any]]) -> dict[Any, dict[str, Any]]:
    """Link flat ``{id, parent_id, prompt_count}`` rows into a tree.

    Every node gets ``children`` and ``total_prompts`` (own prompts plus all
    descendants'). Rows whose parent is not in the input become roots.
    Returns the nodes keyed by id.
    """
    nodes: dict[Any, dict[str, Any]] = {}
    for row in collections:
        nodes[row["id"]] = {**row, "children": [], "total_prompts": 0}

    roots = []
    for node in nodes.values():
        parent_id = node.get("parent_id")
        if parent_id is not None and parent_id in nodes:
            nodes[parent_id]["children"].append(node)
        else:
            roots.append(node)

    def _total(node: dict[str, Any]) -> int:
        count = node.get("prompt_count") or 0
        for child in node["children"]:
            count += _total(child)
        node["total_prompts"] = count
        return count

    for root in roots:
        _total(root)

    return nodes


def build_tree(collections: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Roots of the tree built by :func:`compute_recursive_counts`, sorted by title."""
    nodes = compute_recursive_counts(collections)
    roots = [n for n in nodes.values() if n.get("parent_id") is None or n["parent_id"] not in nodes]

    def _sort(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        items.sort(key=lambda n: (n.get("title") or "").lower())
        for item in items:
            _sort(item["children"])
        return items

    return _sort(roots)


def filter_hidden_collections(tree: list[dict[str, Any]], hidden_ids: Iterable[Any]) -> list[dict[str, Any]]:
    """Drop hidden nodes together with everything below them."""
    hidden = set(hidden_ids)
    if not hidden:
        return tree

    visible = []
    for node in tree:
        if node["id"] in hidden:
            continue
        visible.append({**node, "children": filter_hidden_collections(node.get("children", []), hidden)})
    return visible
