"""Term statistics: coefficient labels, dyad change statistics and summaries.

Labels follow ergm naming (``edges``, ``nodematch.group``,
``nodefactor.race.B``, ``degree2``, ``Form~edges``, ``offset(edges)``) so
coefficient vectors and monitored statistics line up with their terms.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from ..core.errors import FormulaError
from .formula import DYAD_INDEPENDENT_TERMS, Formula, Term

Edge = tuple[int, int]
ChangeStat = Callable[[int, int], list[float]]


# =============================================================================
# Labels
# =============================================================================


def _attr_values(term: Term, vertex_attributes: dict[str, Sequence[Any]]) -> Sequence[Any]:
    attr = term.args[0]
    if attr not in vertex_attributes:
        raise FormulaError(f"{term.name}(): no vertex attribute named {attr!r}")
    return vertex_attributes[attr]


def _factor_levels(values: Sequence[Any]) -> list[Any]:
    distinct = {v for v in values if v is not None}
    try:
        return sorted(distinct)
    except TypeError:
        return sorted(distinct, key=str)


def term_labels(term: Term, vertex_attributes: dict[str, Sequence[Any]]) -> list[str]:
    """Coefficient/statistic labels contributed by one term."""
    if term.inner is not None:
        inner = formula_labels(term.inner, vertex_attributes)
        if term.name == "offset":
            return [f"offset({label})" for label in inner]
        return [f"{term.name}~{label}" for label in inner]

    name = term.name
    if name in ("edges", "meandeg", "isolates", "concurrent"):
        return [name]
    if name in ("nodematch", "absdiff"):
        return [f"{name}.{term.args[0]}"]
    if name == "nodefactor":
        levels = _factor_levels(_attr_values(term, vertex_attributes))
        # First level is the reference category
        return [f"nodefactor.{term.args[0]}.{level}" for level in levels[1:]]
    if name == "degree":
        return [f"degree{k}" for k in term.args[0]]
    raise FormulaError(f"Unknown formula term: {name}")


def formula_labels(formula: Formula, vertex_attributes: dict[str, Sequence[Any]]) -> list[str]:
    """All labels of a formula, in term order."""
    labels: list[str] = []
    for term in formula.terms:
        labels.extend(term_labels(term, vertex_attributes))
    return labels


# =============================================================================
# Dyad change statistics
# =============================================================================


def _term_change(
    term: Term,
    vertex_attributes: dict[str, Sequence[Any]],
    num_active: int,
) -> ChangeStat:
    if term.inner is not None:
        if term.name != "offset":
            raise FormulaError(
                f"{term.name}() must be split into its own formula before drawing"
            )
        return dyad_change_function(term.inner, vertex_attributes, num_active)

    name = term.name
    if name not in DYAD_INDEPENDENT_TERMS:
        raise FormulaError(
            f"Term {name} is not dyad-independent and cannot be simulated "
            f"by the reference sampler"
        )

    if name == "edges":
        return lambda i, j: [1.0]
    if name == "meandeg":
        scale = 2.0 / num_active if num_active > 0 else 0.0
        return lambda i, j: [scale]

    values = _attr_values(term, vertex_attributes)
    if name == "nodematch":
        return lambda i, j: [1.0 if values[i] == values[j] else 0.0]
    if name == "absdiff":
        return lambda i, j: [abs(float(values[i]) - float(values[j]))]

    levels = _factor_levels(values)[1:]
    return lambda i, j: [
        float((values[i] == level) + (values[j] == level)) for level in levels
    ]


def dyad_change_function(
    formula: Formula,
    vertex_attributes: dict[str, Sequence[Any]],
    num_active: int,
) -> ChangeStat:
    """Build ``f(i, j) -> change vector`` for toggling dyad (i, j) on.

    Only dyad-independent terms are accepted, so the change vector does
    not depend on the rest of the network.

    Raises:
        FormulaError: If the formula holds a dyad-dependent term
    """
    parts = [_term_change(t, vertex_attributes, num_active) for t in formula.terms]

    def change(i: int, j: int) -> list[float]:
        out: list[float] = []
        for part in parts:
            out.extend(part(i, j))
        return out

    return change


# =============================================================================
# Summaries
# =============================================================================


def _term_summary(
    term: Term,
    edges: list[Edge],
    vertex_attributes: dict[str, Sequence[Any]],
    nodes: Sequence[int],
    degree: dict[int, int],
) -> list[float]:
    if term.inner is not None:
        return _formula_summary(term.inner, edges, vertex_attributes, nodes, degree)

    name = term.name
    if name == "edges":
        return [float(len(edges))]
    if name == "meandeg":
        return [2.0 * len(edges) / len(nodes) if nodes else 0.0]
    if name == "isolates":
        return [float(sum(1 for v in nodes if degree[v] == 0))]
    if name == "concurrent":
        return [float(sum(1 for v in nodes if degree[v] >= 2))]
    if name == "degree":
        return [float(sum(1 for v in nodes if degree[v] == k)) for k in term.args[0]]

    values = _attr_values(term, vertex_attributes)
    if name == "nodematch":
        return [float(sum(1 for i, j in edges if values[i] == values[j]))]
    if name == "absdiff":
        return [sum(abs(float(values[i]) - float(values[j])) for i, j in edges)]
    if name == "nodefactor":
        levels = _factor_levels(values)[1:]
        return [
            float(sum((values[i] == level) + (values[j] == level) for i, j in edges))
            for level in levels
        ]
    raise FormulaError(f"Unknown formula term: {name}")


def _formula_summary(
    formula: Formula,
    edges: list[Edge],
    vertex_attributes: dict[str, Sequence[Any]],
    nodes: Sequence[int],
    degree: dict[int, int],
) -> list[float]:
    values: list[float] = []
    for term in formula.terms:
        values.extend(_term_summary(term, edges, vertex_attributes, nodes, degree))
    return values


def summary_statistics(
    formula: Formula,
    edges: Sequence[Edge],
    vertex_attributes: dict[str, Sequence[Any]],
    nodes: Sequence[int],
) -> list[tuple[str, float]]:
    """Evaluate every statistic of ``formula`` on the subgraph induced by ``nodes``.

    Args:
        formula: Formula to evaluate
        edges: Undirected edge list ``(tail, head)``
        vertex_attributes: Attribute vectors indexed by node id
        nodes: Node ids to count (normally the active population)

    Returns:
        ``(label, value)`` pairs in formula order; labels may repeat
    """
    node_set = set(nodes)
    kept = [(i, j) for i, j in edges if i in node_set and j in node_set]
    degree = {v: 0 for v in node_set}
    for i, j in kept:
        degree[i] += 1
        degree[j] += 1

    labels = formula_labels(formula, vertex_attributes)
    values = _formula_summary(formula, kept, vertex_attributes, sorted(node_set), degree)
    return list(zip(labels, values))


# =============================================================================
# Statistics matrix
# =============================================================================


@dataclass
class StatsMatrix:
    """Per-slice statistics, one row per simulated time slice.

    Column names can repeat when a monitoring formula overlaps with the
    model formula; ``deduplicated()`` keeps the first occurrence.
    """

    columns: list[str]
    rows: list[list[float]] = field(default_factory=list)

    def append(self, values: Sequence[float]) -> None:
        if len(values) != len(self.columns):
            raise ValueError(
                f"Row has {len(values)} values for {len(self.columns)} columns"
            )
        self.rows.append([float(v) for v in values])

    def deduplicated(self) -> "StatsMatrix":
        keep: list[int] = []
        seen: set[str] = set()
        for idx, name in enumerate(self.columns):
            if name not in seen:
                seen.add(name)
                keep.append(idx)
        return StatsMatrix(
            columns=[self.columns[i] for i in keep],
            rows=[[row[i] for i in keep] for row in self.rows],
        )

    def column(self, name: str) -> list[float]:
        idx = self.columns.index(name)
        return [row[idx] for row in self.rows]

    def to_records(self) -> list[dict[str, float]]:
        return [dict(zip(self.columns, row)) for row in self.rows]

    def __len__(self) -> int:
        return len(self.rows)
