"""
Robolab Kernel — Block Validation

Normalizes block nodes coming from the editor before they reach the compiler.
Every block resolves to one of the nine canonical kinds.
Validation is structural (well-formed?) plus field domains (in range?).
Out-of-range fields are clamped, never rejected.

The editor registered its blocks under Indonesian type names; those are
accepted as aliases and their field names are mapped onto the canonical ones.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from robolab.kernel.types import BLOCK_KINDS, COMPOUND_KINDS, BlockNode, CompileWarning

# ---------------------------------------------------------------------------
# Aliases
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KindAlias:
    kind: str
    field_names: dict[str, str]
    implied: dict[str, Any]


def _alias(kind: str, field_names: dict[str, str] | None = None, **implied: Any) -> KindAlias:
    return KindAlias(kind=kind, field_names=field_names or {}, implied=implied)


KIND_ALIASES: dict[str, KindAlias] = {
    # Free-canvas chapter blocks
    "gerak_maju": _alias("move", {"STEPS": "distance"}),
    "putar_kanan": _alias("turn", {"DEGREES": "degrees"}, direction="right"),
    "putar_kiri": _alias("turn", {"DEGREES": "degrees"}, direction="left"),
    "tunggu": _alias("wait", {"SECONDS": "seconds"}),
    "kontrol_ulangi": _alias("repeat-n", {"TIMES": "count"}),
    "kontrol_selamanya": _alias("repeat-forever"),
    "kontrol_jika": _alias("if-condition", {"CONDITION": "condition"}),
    "kejadian_mulai": _alias("start-event"),
    # Robot manual blocks
    "robot_mulai": _alias("start-event"),
    "robot_maju": _alias("move", {"N": "distance"}),
    "robot_putar": _alias("turn", {"DEG": "degrees"}, direction="right"),
    "robot_ulangi": _alias("repeat-n", {"N": "count"}),
    "robot_jika_finish": _alias("if-goal-reached"),
    "robot_bilang": _alias("say", {"TEXT": "text"}),
}


# ---------------------------------------------------------------------------
# Field domains
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NumberDomain:
    minimum: float
    maximum: float | None  # None = bounded by the loop ceiling
    default: float
    integer: bool = True


@dataclass(frozen=True)
class ChoiceDomain:
    choices: tuple[str, ...]
    default: str


@dataclass(frozen=True)
class TextDomain:
    default: str
    max_length: int = 200


FIELD_DOMAINS: dict[str, dict[str, NumberDomain | ChoiceDomain | TextDomain]] = {
    "move": {"distance": NumberDomain(1, 100, 1)},
    "turn": {
        "degrees": NumberDomain(1, 360, 90),
        "direction": ChoiceDomain(("right", "left"), "right"),
    },
    "wait": {"seconds": NumberDomain(0.1, 10, 1, integer=False)},
    "say": {"text": TextDomain("Selesai")},
    "repeat-n": {"count": NumberDomain(1, None, 2)},
    "repeat-forever": {},
    "if-condition": {"condition": ChoiceDomain(("goal-reached", "true", "false"), "false")},
    "if-goal-reached": {},
    "start-event": {},
}

# Editor blocks that declare their own ranges; other fields use FIELD_DOMAINS
ALIAS_FIELD_DOMAINS: dict[str, dict[str, NumberDomain]] = {
    "gerak_maju": {"distance": NumberDomain(1, 100, 10)},
    "kontrol_ulangi": {"count": NumberDomain(1, None, 10)},
    "robot_maju": {"distance": NumberDomain(1, 20, 1)},
    "robot_putar": {"degrees": NumberDomain(45, 360, 90)},
    "robot_ulangi": {"count": NumberDomain(1, 50, 2)},
}


def field_domains(kind: str, source_kind: str | None = None) -> dict[str, NumberDomain | ChoiceDomain | TextDomain]:
    """Domain table for a canonical kind, with the editor alias's own ranges applied."""
    domains = FIELD_DOMAINS.get(kind, {})
    overrides = ALIAS_FIELD_DOMAINS.get(source_kind or "")
    if not overrides:
        return domains
    return {**domains, **overrides}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def canonical_block(node: BlockNode) -> BlockNode | None:
    """
    Resolve aliases and field names. Returns None for unknown kinds.
    The body is passed through untouched; the compiler recurses into it.
    """
    if node.kind in BLOCK_KINDS:
        return node

    alias = KIND_ALIASES.get(node.kind)
    if alias is None:
        return None

    fields: dict[str, Any] = dict(alias.implied)
    for name, value in node.fields.items():
        fields[alias.field_names.get(name, name)] = value
    return BlockNode(kind=alias.kind, fields=fields, body=node.body)


def validate_block(node: BlockNode) -> list[str]:
    """
    Validate a canonical block's structure.
    Returns a list of error strings. Empty list = valid.

    Checks:
    - Is the kind recognized?
    - Does only a compound kind carry a body?
    """
    errors: list[str] = []

    if node.kind not in BLOCK_KINDS:
        errors.append(f"Unknown block kind: {node.kind}")
        return errors

    if node.body is not None and node.kind not in COMPOUND_KINDS:
        errors.append(f"{node.kind} cannot contain nested blocks")

    return errors


def coerce_fields(
    node: BlockNode,
    *,
    loop_ceiling: int,
    path: str = "",
    source_kind: str | None = None,
) -> tuple[dict[str, Any], list[CompileWarning]]:
    """
    Fill defaults and clamp every declared field into its domain.
    Unknown fields are ignored. Returns (fields, warnings).

    `source_kind` is the editor type the block was written as; its own
    ranges replace the canonical ones.
    """
    domains = field_domains(node.kind, source_kind)
    values: dict[str, Any] = {}
    warnings: list[CompileWarning] = []

    for name, domain in domains.items():
        raw = node.fields.get(name)
        if isinstance(domain, NumberDomain):
            value, problem = _coerce_number(raw, domain, loop_ceiling)
        elif isinstance(domain, ChoiceDomain):
            value, problem = _coerce_choice(raw, domain)
        else:
            value, problem = _coerce_text(raw, domain)

        if problem:
            warnings.append(
                CompileWarning(
                    code="INVALID_FIELD_VALUE",
                    message=f"{node.kind}.{name}: {problem}",
                    path=path,
                    details={"field": name, "value": raw, "coerced": value},
                )
            )
        values[name] = value

    return values, warnings


# ---------------------------------------------------------------------------
# Per-domain coercion
# ---------------------------------------------------------------------------


def _show(raw: Any) -> str:
    # repr() refuses ints past the interpreter's digit limit
    if isinstance(raw, int) and not isinstance(raw, bool) and raw.bit_length() > 64:
        return "a very large integer" if raw > 0 else "a very large negative integer"
    return repr(raw)


def _coerce_number(raw: Any, domain: NumberDomain, loop_ceiling: int) -> tuple[float, str | None]:
    maximum = domain.maximum if domain.maximum is not None else loop_ceiling
    if raw is None:
        return domain.default, None
    shown = _show(raw)

    number: float | None
    if isinstance(raw, bool):
        number = None
    elif isinstance(raw, int | float):
        try:
            number = float(raw)
        except OverflowError:
            # Integers past float range clamp like infinities
            number = math.inf if raw > 0 else -math.inf
    elif isinstance(raw, str):
        try:
            number = float(raw.strip())
        except ValueError:
            number = None
    else:
        number = None

    if number is None or math.isnan(number):
        return domain.default, f"expected a number, got {shown}; using {domain.default}"

    problem = None
    if number < domain.minimum:
        problem = f"{shown} below minimum {domain.minimum}"
        number = domain.minimum
    elif number > maximum:
        problem = f"{shown} above maximum {maximum}"
        number = maximum

    if domain.integer:
        rounded = int(round(number))
        if rounded != number and problem is None:
            problem = f"{shown} is not a whole number; rounded to {rounded}"
        return rounded, problem
    return number, problem


def _coerce_choice(raw: Any, domain: ChoiceDomain) -> tuple[str, str | None]:
    if raw is None:
        return domain.default, None
    if isinstance(raw, bool):
        raw = "true" if raw else "false"
    value = (raw if isinstance(raw, str) else _show(raw)).strip().lower().replace("_", "-")
    if value in domain.choices:
        return value, None
    return domain.default, f"{_show(raw)} not one of {list(domain.choices)}; using {domain.default!r}"


def _coerce_text(raw: Any, domain: TextDomain) -> tuple[str, str | None]:
    if raw is None:
        return domain.default, None
    text = raw if isinstance(raw, str) else _show(raw)
    if len(text) > domain.max_length:
        return text[: domain.max_length], f"text longer than {domain.max_length} characters; truncated"
    return text, None
