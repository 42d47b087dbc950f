"""
Cypher query builders for the FalkorDB repository.

FalkorDB does not support parameterized labels or relationship types, so
those are spliced into the query text after backtick-escaping. Everything
else (names, property maps, label lists used in predicates) is passed as a
parameter. Builders return ``(query, params)`` and never touch the network.
"""

from typing import Any

from ..models.entity import LabelMatchMode, RelationshipDirection

# Node fields with a fixed meaning; never treated as user properties.
RESERVED_FIELDS: frozenset[str] = frozenset({"name", "observations"})

# Projects every incident edge of ``n`` in the same round trip as the node.
# collect() drops the NULLs produced by nodes without edges.
ENTITY_PROJECTION = (
    "OPTIONAL MATCH (n)-[r]-() "
    "WITH n, collect(CASE WHEN r IS NOT NULL THEN "
    "{from_name: startNode(r).name, to_name: endNode(r).name, name: type(r), properties: properties(r)} "
    "END) AS rels "
    "RETURN labels(n) AS labels, properties(n) AS props, "
    "[x IN rels WHERE x IS NOT NULL] AS rels"
)


# ── Escaping / parameters ────────────────────────────────────────────────


def escape_identifier(name: str) -> str:
    """Backtick-quote a label, relationship type or property key."""
    return "`" + name.replace("`", "``") + "`"


def label_clause(labels: list[str]) -> str:
    """``["A", "B"]`` → ``:`A`:`B```; empty list → ``""``."""
    return "".join(f":{escape_identifier(label)}" for label in labels)


def query_param(native: Any) -> Any:
    """Make an encoded value safe for the driver's parameter serializer.

    The driver inlines parameters as Cypher literals and has no byte-string
    literal, so bytes go out as a list of ints. Map keys are left alone: the
    driver backtick-quotes every key itself.
    """
    if isinstance(native, (bytes, bytearray)):
        return list(native)
    if isinstance(native, (list, tuple)):
        return [query_param(item) for item in native]
    if isinstance(native, dict):
        return {key: query_param(item) for key, item in native.items()}
    return native


# ── Entities ─────────────────────────────────────────────────────────────


def create_entities(rows: list[dict[str, Any]]) -> tuple[str, dict[str, Any]]:
    """One CREATE for the whole batch.

    Each row is ``{"labels": [...], "props": {...}}``. Label sets differ per
    row and cannot be parameters, so every row gets its own pattern.
    """
    patterns = []
    assignments = []
    params: dict[str, Any] = {}
    for i, row in enumerate(rows):
        patterns.append(f"(e{i}{label_clause(row['labels'])})")
        assignments.append(f"e{i} = $p{i}")
        params[f"p{i}"] = query_param(row["props"])
    query = f"CREATE {', '.join(patterns)} SET {', '.join(assignments)}"
    return query, params


def find_entity_by_name(name: str) -> tuple[str, dict[str, Any]]:
    return f"MATCH (n {{name: $name}}) {ENTITY_PROJECTION}", {"name": name}


def find_entities_by_labels(
    labels: list[str],
    match_mode: LabelMatchMode,
    required_label: str | None = None,
) -> tuple[str, dict[str, Any]]:
    conditions = []
    params: dict[str, Any] = {}
    if required_label is not None:
        conditions.append("$required IN labels(n)")
        params["required"] = required_label
    if labels:
        if LabelMatchMode(match_mode) is LabelMatchMode.ANY:
            conditions.append("ANY(l IN $labels WHERE l IN labels(n))")
        else:
            conditions.append("ALL(l IN $labels WHERE l IN labels(n))")
        params["labels"] = list(labels)

    where = f"WHERE {' AND '.join(conditions)} " if conditions else ""
    return f"MATCH (n) {where}{ENTITY_PROJECTION}", params


def traversal_pattern(
    relationship_type: str | None,
    direction: RelationshipDirection | None,
    depth: int,
) -> str:
    """Variable-length path pattern between ``start`` and ``n``."""
    rel_type = f":{escape_identifier(relationship_type)}" if relationship_type else ""
    rel = f"[{rel_type}*1..{int(depth)}]"
    direction = RelationshipDirection(direction) if direction is not None else RelationshipDirection.BOTH
    if direction is RelationshipDirection.OUTGOING:
        return f"-{rel}->"
    if direction is RelationshipDirection.INCOMING:
        return f"<-{rel}-"
    return f"-{rel}-"


def find_related_entities(
    name: str,
    relationship_type: str | None,
    direction: RelationshipDirection | None,
    depth: int,
) -> tuple[str, dict[str, Any]]:
    pattern = traversal_pattern(relationship_type, direction, depth)
    query = (
        f"MATCH (start {{name: $name}}) MATCH (start){pattern}(n) "
        "WITH DISTINCT n "
        f"{ENTITY_PROJECTION}"
    )
    return query, {"name": name}


def delete_entities(names: list[str]) -> tuple[str, dict[str, Any]]:
    return "MATCH (n) WHERE n.name IN $names DETACH DELETE n", {"names": list(names)}


# ── Observations ─────────────────────────────────────────────────────────


def set_observations(name: str, observations: list[str]) -> tuple[str, dict[str, Any]]:
    return (
        "MATCH (n {name: $name}) SET n.observations = $observations",
        {"name": name, "observations": list(observations)},
    )


# ── Labels ───────────────────────────────────────────────────────────────


def add_labels(name: str, labels: list[str]) -> tuple[str, dict[str, Any]]:
    return f"MATCH (n {{name: $name}}) SET n{label_clause(labels)}", {"name": name}


def remove_labels(name: str, labels: list[str]) -> tuple[str, dict[str, Any]]:
    return f"MATCH (n {{name: $name}}) REMOVE n{label_clause(labels)}", {"name": name}


def get_labels(name: str) -> tuple[str, dict[str, Any]]:
    return "MATCH (n {name: $name}) RETURN labels(n)", {"name": name}


# ── Properties (entities and relationships) ──────────────────────────────


def add_properties(match_clause: str, var: str, props: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    """Merge ``props`` into the matched element."""
    return f"{match_clause} SET {var} += $props", {"props": query_param(props)}


def remove_properties(match_clause: str, var: str, keys: list[str]) -> tuple[str, dict[str, Any]]:
    """Drop the given keys (FalkorDB removes a property by setting it to NULL)."""
    assignments = ", ".join(f"{var}.{escape_identifier(key)} = NULL" for key in keys)
    return f"{match_clause} SET {assignments}", {}


def set_properties(
    match_clause: str,
    var: str,
    props: dict[str, Any],
    preserve: bool = False,
) -> tuple[str, dict[str, Any]]:
    """Replace every property of the matched element with ``props``.

    With ``preserve`` the reserved node fields survive the replacement.
    """
    params = {"props": query_param({k: v for k, v in props.items() if not (preserve and k in RESERVED_FIELDS)})}
    if not preserve:
        return f"{match_clause} SET {var} = $props", params
    query = (
        f"{match_clause} "
        f"WITH {var}, {var}.name AS keep_name, {var}.observations AS keep_observations "
        f"SET {var} = $props "
        f"SET {var}.name = keep_name, {var}.observations = keep_observations"
    )
    return query, params


ENTITY_MATCH = "MATCH (n {name: $name})"


def relationship_match(name: str) -> str:
    return f"MATCH (a {{name: $from_name}})-[r:{escape_identifier(name)}]->(b {{name: $to_name}})"


# ── Relationships ────────────────────────────────────────────────────────


def create_relationships(name: str, rows: list[dict[str, Any]]) -> tuple[str, dict[str, Any]]:
    """Create all edges of one type; rows are ``{"from_name", "to_name", "props"}``."""
    query = (
        "UNWIND $rows AS row "
        "MATCH (a {name: row.from_name}), (b {name: row.to_name}) "
        f"CREATE (a)-[r:{escape_identifier(name)}]->(b) "
        "SET r = row.props"
    )
    return query, {"rows": query_param(rows)}


def find_relationships(
    from_: str | None = None,
    to: str | None = None,
    name: str | None = None,
) -> tuple[str, dict[str, Any]]:
    conditions = []
    params: dict[str, Any] = {}
    if from_ is not None:
        conditions.append("a.name = $from_name")
        params["from_name"] = from_
    if to is not None:
        conditions.append("b.name = $to_name")
        params["to_name"] = to
    if name is not None:
        conditions.append("type(r) = $type")
        params["type"] = name

    where = f" WHERE {' AND '.join(conditions)}" if conditions else ""
    query = (
        f"MATCH (a)-[r]->(b){where} "
        "RETURN a.name AS from_name, b.name AS to_name, type(r) AS name, properties(r) AS props"
    )
    return query, params


def delete_relationships(rows: list[dict[str, str]]) -> tuple[str, dict[str, Any]]:
    """Rows are ``{"from_name", "to_name", "name"}``."""
    query = (
        "UNWIND $rows AS row "
        "MATCH (a {name: row.from_name})-[r]->(b {name: row.to_name}) "
        "WHERE type(r) = row.name "
        "DELETE r"
    )
    return query, {"rows": query_param(rows)}
