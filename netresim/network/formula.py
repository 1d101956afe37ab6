"""Model formulas for network statistics.

Formulas use the familiar one-sided ergm syntax:

    ~edges + nodematch("group") + degree(0:3)

A formula is a pydantic model that validates from (and serializes back to)
its string form, so it can live inside YAML run configurations. Durational
models are composed from a formation and a dissolution formula as

    ~Form(~edges + nodematch("group")) + Persist(~offset(edges))
"""

import re
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, PrivateAttr, model_serializer, model_validator

from ..core.errors import FormulaError

# Terms whose single argument is itself a formula
WRAPPER_TERMS = {"offset", "Form", "Persist"}

# Terms a dyad-independent sampler can draw from
DYAD_INDEPENDENT_TERMS = {"edges", "nodematch", "nodefactor", "absdiff", "meandeg"}

# Terms that can only be summarised on an existing network
SUMMARY_ONLY_TERMS = {"isolates", "concurrent", "degree"}

KNOWN_TERMS = WRAPPER_TERMS | DYAD_INDEPENDENT_TERMS | SUMMARY_ONLY_TERMS

_TERM_PATTERN = re.compile(r"\s*([A-Za-z_][\w.]*)\s*(?:\((.*)\))?\s*", re.S)
_RANGE_PATTERN = re.compile(r"\s*(-?\d+)\s*:\s*(-?\d+)\s*")


@dataclass(frozen=True)
class Term:
    """A single formula term, e.g. ``nodematch("group")``."""

    name: str
    args: tuple[Any, ...] = ()
    inner: "Formula | None" = field(default=None, compare=False)

    @property
    def is_wrapper(self) -> bool:
        return self.name in WRAPPER_TERMS

    def __str__(self) -> str:
        if self.inner is not None:
            inner = str(self.inner)
            # offset() wraps a bare term list; Form/Persist keep the tilde
            if self.name == "offset":
                inner = inner.lstrip("~")
            return f"{self.name}({inner})"
        if not self.args:
            return self.name
        return f"{self.name}({', '.join(_format_arg(a) for a in self.args)})"


def _format_arg(arg: Any) -> str:
    if isinstance(arg, str):
        return f'"{arg}"'
    if isinstance(arg, tuple):
        if len(arg) > 1 and list(arg) == list(range(arg[0], arg[-1] + 1)):
            return f"{arg[0]}:{arg[-1]}"
        return "c(" + ", ".join(str(a) for a in arg) + ")"
    return str(arg)


def _split_top_level(text: str, sep: str) -> list[str]:
    """Split on ``sep`` outside of parentheses and quotes."""
    parts: list[str] = []
    depth = 0
    quote: str | None = None
    current: list[str] = []

    for ch in text:
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise FormulaError(f"Unbalanced parentheses in {text!r}")
        elif ch == sep and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)

    if depth != 0 or quote:
        raise FormulaError(f"Unbalanced parentheses or quotes in {text!r}")
    parts.append("".join(current))
    return parts


def _parse_arg(raw: str) -> Any:
    raw = raw.strip()
    if not raw:
        raise FormulaError("Empty term argument")
    if raw[0] in ("'", '"') and raw[-1] == raw[0]:
        return raw[1:-1]
    range_match = _RANGE_PATTERN.fullmatch(raw)
    if range_match:
        lo, hi = int(range_match.group(1)), int(range_match.group(2))
        return tuple(range(lo, hi + 1))
    if raw.startswith("c(") and raw.endswith(")"):
        return tuple(int(v) for v in _split_top_level(raw[2:-1], ","))
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        pass
    if re.fullmatch(r"[A-Za-z_][\w.]*", raw):
        return raw
    raise FormulaError(f"Cannot parse term argument {raw!r}")


def _parse_term(source: str) -> Term:
    match = _TERM_PATTERN.fullmatch(source)
    if not match:
        raise FormulaError(f"Cannot parse formula term {source.strip()!r}")

    name, arg_text = match.group(1), match.group(2)
    if name not in KNOWN_TERMS:
        raise FormulaError(f"Unknown formula term: {name}")

    if name in WRAPPER_TERMS:
        if not arg_text or not arg_text.strip():
            raise FormulaError(f"{name}() requires a formula argument")
        return Term(name=name, inner=Formula.parse(arg_text))

    args: tuple[Any, ...] = ()
    if arg_text is not None and arg_text.strip():
        args = tuple(_parse_arg(a) for a in _split_top_level(arg_text, ","))

    if name in {"nodematch", "nodefactor", "absdiff"} and (
        len(args) != 1 or not isinstance(args[0], str)
    ):
        raise FormulaError(f"{name}() takes a single attribute name")
    if name == "degree":
        if len(args) != 1:
            raise FormulaError("degree() takes a single degree or range")
        if isinstance(args[0], int):
            args = ((args[0],),)
    return Term(name=name, args=args)


def _parse_body(text: str) -> tuple[Term, ...]:
    body = text.strip()
    if body.startswith("~"):
        body = body[1:]
    if not body.strip():
        raise FormulaError("Formula has no terms")
    return tuple(_parse_term(part) for part in _split_top_level(body, "+"))


def _canonical_text(terms: tuple[Term, ...]) -> str:
    return "~" + " + ".join(str(t) for t in terms)


class Formula(BaseModel):
    """An ordered, immutable list of model terms.

    Validates from a plain string, so ``NetworkParameters(formation="~edges")``
    works, and dumps back to the same canonical string.
    """

    text: str

    _terms: tuple[Term, ...] = PrivateAttr(default=())

    @model_validator(mode="before")
    @classmethod
    def _coerce_string(cls, data: Any) -> Any:
        if isinstance(data, Formula):
            return {"text": data.text}
        if isinstance(data, str):
            return {"text": _canonical_text(_parse_body(data))}
        return data

    def model_post_init(self, __context: Any) -> None:
        self._terms = _parse_body(self.text)

    @model_serializer
    def _serialize(self) -> str:
        return self.text

    @classmethod
    def parse(cls, text: "str | Formula") -> "Formula":
        """Parse a formula string (the leading ``~`` is optional).

        Raises:
            FormulaError: If a term is unknown or malformed
        """
        if isinstance(text, Formula):
            return text
        return cls(text=_canonical_text(_parse_body(text)))

    @classmethod
    def compose_tergm(
        cls, formation: "Formula | str", dissolution: "Formula | str"
    ) -> "Formula":
        """Build ``~Form(formation) + Persist(dissolution)``."""
        formation = cls.parse(formation)
        dissolution = cls.parse(dissolution)
        return cls.parse(f"~Form({formation.text}) + Persist({dissolution.text})")

    @property
    def terms(self) -> tuple[Term, ...]:
        return self._terms

    @property
    def is_tergm(self) -> bool:
        """True when the formula separates formation and persistence."""
        return any(t.name in ("Form", "Persist") for t in self._terms)

    def split_tergm(self) -> tuple["Formula", "Formula"]:
        """Return the (formation, persistence) formulas of a composed model.

        Raises:
            FormulaError: If the formula lacks exactly one Form and one Persist
        """
        form = [t for t in self._terms if t.name == "Form"]
        persist = [t for t in self._terms if t.name == "Persist"]
        if len(form) != 1 or len(persist) != 1 or len(self._terms) != 2:
            raise FormulaError(
                f"Expected ~Form(...) + Persist(...), got {self.text}"
            )
        return form[0].inner, persist[0].inner

    def __str__(self) -> str:
        return self.text

    def __hash__(self) -> int:
        return hash(self.text)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, str):
            try:
                other = Formula.parse(other)
            except FormulaError:
                return False
        if not isinstance(other, Formula):
            return NotImplemented
        return self.text == other.text
