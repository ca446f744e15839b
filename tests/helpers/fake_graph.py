"""In-memory GraphStore for tests.

Executes the loader's statements from their ``kind``/``meta``/``params``
instead of parsing Cypher, with the same MERGE semantics the real queries
have: one node per (label, key value), one relationship per
(type, from, to, qualifier values).
"""

from collections import defaultdict

from zonecell.contracts import GraphStoreError


class InMemoryGraphStore:
    """GraphStore double with inspectable state.

    Parameters
    ----------
    fail_on : set of str, optional
        Statement kinds that raise GraphStoreError (failure injection).
    """

    def __init__(self, fail_on=None):
        self.nodes = defaultdict(dict)       # label -> key value -> properties
        self.node_keys = {}                  # label -> key property
        self.rels = defaultdict(dict)        # rel type -> edge key -> properties
        self.constraints = set()
        self.statements = []
        self.fail_on = set(fail_on or ())
        self.closed = False

    # -- GraphStore protocol -------------------------------------------------

    def write(self, statement):
        return self._execute(statement)

    def read(self, statement):
        return self._execute(statement)

    def close(self):
        self.closed = True

    # -- helpers ---------------------------------------------------------------

    def add_node(self, label, key, props):
        """Seed a node directly (e.g. a ZoneType owned by another loader)."""
        self.node_keys.setdefault(label, key)
        self.nodes[label][props[key]] = dict(props)

    def count(self, label):
        return len(self.nodes.get(label, {}))

    def edge_count(self, rel_type):
        return len(self.rels.get(rel_type, {}))

    def _find(self, label, prop, value):
        key = self.node_keys.get(label)
        if key == prop:
            node = self.nodes.get(label, {}).get(value)
            return [node] if node is not None else []
        return [n for n in self.nodes.get(label, {}).values() if n.get(prop) == value]

    def _merge_edge(self, rel_type, from_label, a, to_label, b, qualifier_values, props):
        edge_key = (from_label, a[self.node_keys[from_label]],
                    to_label, b[self.node_keys[to_label]], qualifier_values)
        self.rels[rel_type].setdefault(edge_key, {}).update(props)

    def _execute(self, statement):
        if self.closed:
            raise GraphStoreError("Graph store is closed")
        self.statements.append(statement)
        if statement.kind in self.fail_on:
            raise GraphStoreError(f"{statement.kind} failed: injected failure")

        meta, params = statement.meta, statement.params
        handler = getattr(self, f"_do_{statement.kind}")
        return handler(meta, params)

    def _do_unique_constraint(self, meta, params):
        self.constraints.add((meta["label"], meta["property"]))
        self.node_keys.setdefault(meta["label"], meta["property"])
        return []

    def _do_upsert_nodes(self, meta, params):
        label, key = meta["label"], meta["key"]
        self.node_keys.setdefault(label, key)
        for row in params["rows"]:
            self.nodes[label].setdefault(row[key], {}).update(row)
        return [{"count": len(params["rows"])}]

    def _do_link_pairs(self, meta, params):
        count = 0
        for link in params["links"]:
            for a in self._find(meta["from_label"], meta["from_key"], link["from"]):
                for b in self._find(meta["to_label"], meta["to_key"], link["to"]):
                    qualifier_values = tuple(link[q] for q in meta["qualifiers"])
                    props = {p: link.get(p) for p in meta.get("properties", ())}
                    self._merge_edge(meta["rel_type"], meta["from_label"], a,
                                     meta["to_label"], b, qualifier_values, props)
                    count += 1
        return [{"count": count}]

    def _do_link_shared_property(self, meta, params):
        count = 0
        for a in list(self.nodes.get(meta["from_label"], {}).values()):
            value = a.get(meta["from_property"])
            if value is None:
                continue
            for b in self._find(meta["to_label"], meta["to_key"], value):
                self._merge_edge(meta["rel_type"], meta["from_label"], a,
                                 meta["to_label"], b, (), {})
                count += 1
        return [{"count": count}]

    def _do_count_nodes(self, meta, params):
        return [{"count": self.count(meta["label"])}]

    def _do_count_relationships(self, meta, params):
        return [{"count": self.edge_count(meta["rel_type"])}]

    def _do_count_by_property(self, meta, params):
        counts = defaultdict(int)
        for node in self.nodes.get(meta["label"], {}).values():
            counts[node.get(meta["property"])] += 1
        return [{"value": v, "count": c}
                for v, c in sorted(counts.items(), key=lambda kv: -kv[1])]
