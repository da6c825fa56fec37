"""Conditional staffing rules.

A rule pairs a condition (drive-thru type, cook count, shift type, weekday)
with an action (require / exclude a position, or set position counts). Rules
travel as JSON objects between the rule builder and this engine:

    {"rule_name": "DT2 needs a second presenter", "priority": 10,
     "is_active": true,
     "condition": {"dt_type": "DT2", "num_cooks": {"gte": 2}},
     "action": {"require_position": "DT Presenter", "count": 2}}

Each condition key and each action key decodes to its own variant class, so
matching and rendering are per-variant and the wire format is rebuilt by
``to_dict``. All present condition keys must hold. A rule whose condition
has no recognised keys never matches; a rule with a malformed condition or
action is kept but never matches either.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Union

from .errors import RuleEvaluationError
from .io.schemas import to_bool_strict
from .models import DAY_NAMES

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 100

DEFAULT_SHIFT_CONFIG: dict[str, Any] = {
    "dt_type": "DT1",
    "num_cooks": 1,
    "num_pack_stations": 2,
    "require_shift_runner": True,
    "require_manager": True,
    "additional_settings": {},
}


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DeploymentContext:
    dt_type: str | None = None
    num_cooks: int | None = None
    shift_type: str | None = None
    day_of_week: str | None = None
    date: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Counts may arrive as form strings; anything unusable never matches.
        object.__setattr__(self, "num_cooks", _context_int(self.num_cooks))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DeploymentContext":
        known = {"dt_type", "num_cooks", "shift_type", "day_of_week", "date"}
        return cls(
            dt_type=payload.get("dt_type"),
            num_cooks=payload.get("num_cooks"),
            shift_type=payload.get("shift_type"),
            day_of_week=payload.get("day_of_week"),
            date=payload.get("date"),
            extras={k: v for k, v in payload.items() if k not in known},
        )


def build_context(
    date_iso: str,
    shift_type: str,
    config: Mapping[str, Any] | None = None,
) -> DeploymentContext:
    """Context for one shift on one date, from a shift configuration row."""
    cfg = {**DEFAULT_SHIFT_CONFIG, **(config or {})}
    weekday = DAY_NAMES[date.fromisoformat(date_iso).weekday()]
    extras = {
        "num_pack_stations": cfg.get("num_pack_stations"),
        "require_shift_runner": cfg.get("require_shift_runner"),
        "require_manager": cfg.get("require_manager"),
        **(cfg.get("additional_settings") or {}),
    }
    return DeploymentContext(
        dt_type=cfg.get("dt_type"),
        num_cooks=cfg.get("num_cooks"),
        shift_type=shift_type,
        day_of_week=weekday,
        date=date_iso,
        extras=extras,
    )


# ---------------------------------------------------------------------------
# Condition variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DtTypeIs:
    value: str

    def matches(self, ctx: DeploymentContext) -> bool:
        return ctx.dt_type == self.value

    def describe(self) -> list[str]:
        return [f"Drive-Thru is {self.value}"]

    def to_dict(self) -> dict[str, Any]:
        return {"dt_type": self.value}


@dataclass(frozen=True)
class NumCooksWithin:
    gte: int | None = None
    lte: int | None = None
    eq: int | None = None

    def matches(self, ctx: DeploymentContext) -> bool:
        cooks = ctx.num_cooks
        if cooks is None:
            return False
        if self.gte is not None and not cooks >= self.gte:
            return False
        if self.lte is not None and not cooks <= self.lte:
            return False
        if self.eq is not None and cooks != self.eq:
            return False
        return True

    def describe(self) -> list[str]:
        parts = []
        if self.gte is not None:
            parts.append(f"at least {self.gte} cooks")
        if self.lte is not None:
            parts.append(f"at most {self.lte} cooks")
        if self.eq is not None:
            parts.append(f"exactly {self.eq} cooks")
        return parts

    def to_dict(self) -> dict[str, Any]:
        bounds = {k: v for k, v in (("gte", self.gte), ("lte", self.lte), ("eq", self.eq)) if v is not None}
        return {"num_cooks": bounds}


@dataclass(frozen=True)
class ShiftTypeIs:
    value: str

    def matches(self, ctx: DeploymentContext) -> bool:
        return ctx.shift_type == self.value

    def describe(self) -> list[str]:
        return [self.value]

    def to_dict(self) -> dict[str, Any]:
        return {"shift_type": self.value}


@dataclass(frozen=True)
class DayOfWeekIs:
    value: str

    def matches(self, ctx: DeploymentContext) -> bool:
        return ctx.day_of_week == self.value

    def describe(self) -> list[str]:
        return [f"on {self.value}"]

    def to_dict(self) -> dict[str, Any]:
        return {"day_of_week": self.value}


Condition = Union[DtTypeIs, NumCooksWithin, ShiftTypeIs, DayOfWeekIs]


@dataclass(frozen=True)
class ConditionExpr:
    clauses: tuple[Condition, ...] = ()

    def matches(self, ctx: DeploymentContext) -> bool:
        # No clauses means no match, never "match everything".
        if not self.clauses:
            return False
        return all(clause.matches(ctx) for clause in self.clauses)

    def describe(self) -> list[str]:
        return [part for clause in self.clauses for part in clause.describe()]

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for clause in self.clauses:
            out.update(clause.to_dict())
        return out

    @classmethod
    def from_dict(cls, payload: Any) -> "ConditionExpr":
        """Decode the wire format; unknown keys are ignored.

        Raises RuleEvaluationError for a known key with an unusable value.
        """
        if not isinstance(payload, Mapping):
            return cls()

        clauses: list[Condition] = []
        if _present(payload.get("dt_type")):
            clauses.append(DtTypeIs(_as_str("dt_type", payload["dt_type"])))

        cooks = payload.get("num_cooks")
        if cooks is not None:
            if not isinstance(cooks, Mapping):
                raise RuleEvaluationError(f"num_cooks must be an object, got {cooks!r}")
            bounds = {
                key: _as_int(f"num_cooks.{key}", cooks[key])
                for key in ("gte", "lte", "eq")
                if cooks.get(key) is not None
            }
            if bounds:
                clauses.append(NumCooksWithin(**bounds))

        if _present(payload.get("shift_type")):
            clauses.append(ShiftTypeIs(_as_str("shift_type", payload["shift_type"])))
        if _present(payload.get("day_of_week")):
            clauses.append(DayOfWeekIs(_as_str("day_of_week", payload["day_of_week"])))
        return cls(tuple(clauses))


# ---------------------------------------------------------------------------
# Action variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RequirePosition:
    position: str
    count: int = 1

    def describe(self) -> list[str]:
        plural = "s" if self.count > 1 else ""
        return [f"require {self.count} {self.position}{plural}"]

    def to_dict(self) -> dict[str, Any]:
        return {"require_position": self.position, "count": self.count}


@dataclass(frozen=True)
class ExcludePosition:
    position: str

    def describe(self) -> list[str]:
        return [f"exclude {self.position}"]

    def to_dict(self) -> dict[str, Any]:
        return {"exclude_position": self.position}


@dataclass(frozen=True)
class AdjustPositionCount:
    counts: dict[str, int] = field(default_factory=dict)

    def describe(self) -> list[str]:
        return [f"set {pos} to {count}" for pos, count in self.counts.items()]

    def to_dict(self) -> dict[str, Any]:
        return {"adjust_position_count": dict(self.counts)}


Action = Union[RequirePosition, ExcludePosition, AdjustPositionCount]


@dataclass(frozen=True)
class ActionExpr:
    items: tuple[Action, ...] = ()
    source: str = ""

    def describe(self) -> list[str]:
        return [part for item in self.items for part in item.describe()]

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for item in self.items:
            out.update(item.to_dict())
        return out

    @classmethod
    def from_dict(cls, payload: Any, *, source: str = "") -> "ActionExpr":
        if not isinstance(payload, Mapping):
            return cls(source=source)

        items: list[Action] = []
        if _present(payload.get("require_position")):
            count = payload.get("count")
            items.append(
                RequirePosition(
                    _as_str("require_position", payload["require_position"]),
                    _as_int("count", count) if count is not None else 1,
                )
            )
        if _present(payload.get("exclude_position")):
            items.append(ExcludePosition(_as_str("exclude_position", payload["exclude_position"])))

        adjust = payload.get("adjust_position_count")
        if adjust is not None:
            if not isinstance(adjust, Mapping):
                raise RuleEvaluationError(f"adjust_position_count must be an object, got {adjust!r}")
            counts = {str(pos): _as_int(f"adjust_position_count.{pos}", n) for pos, n in adjust.items()}
            if counts:
                items.append(AdjustPositionCount(counts))
        return cls(tuple(items), source=source)


# ---------------------------------------------------------------------------
# Rules and evaluation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StaffingRule:
    name: str
    priority: int = DEFAULT_PRIORITY
    is_active: bool = True
    condition: ConditionExpr = field(default_factory=ConditionExpr)
    action: ActionExpr = field(default_factory=ActionExpr)
    description: str = ""
    error: str | None = None

    def matches(self, ctx: DeploymentContext) -> bool:
        return self.is_active and self.error is None and self.condition.matches(ctx)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_name": self.name,
            "priority": self.priority,
            "is_active": self.is_active,
            "description": self.description,
            "condition": self.condition.to_dict(),
            "action": self.action.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "StaffingRule":
        """Decode a stored rule row. Malformed rules decode but never match."""
        name = str(payload.get("rule_name") or payload.get("name") or "")
        is_active = _as_active(payload.get("is_active"))
        description = str(payload.get("description") or "")
        try:
            priority = _as_int("priority", payload.get("priority", DEFAULT_PRIORITY))
            condition = ConditionExpr.from_dict(payload.get("condition"))
            action = ActionExpr.from_dict(payload.get("action"), source=name)
        except RuleEvaluationError as exc:
            logger.warning("Rule %r is malformed and will never match: %s", name, exc)
            return cls(
                name=name,
                priority=DEFAULT_PRIORITY,
                is_active=is_active,
                description=description,
                error=str(exc),
            )
        return cls(
            name=name,
            priority=priority,
            is_active=is_active,
            condition=condition,
            action=action,
            description=description,
        )


def evaluate(
    rules: Iterable[StaffingRule | Mapping[str, Any]],
    context: DeploymentContext | Mapping[str, Any],
) -> list[ActionExpr]:
    """Actions of every active rule whose condition matches ``context``.

    Ordered by ascending priority, ties in declaration order. When a caller
    merges the result, later actions override earlier ones.
    """
    ctx = context if isinstance(context, DeploymentContext) else DeploymentContext.from_dict(context)
    decoded = [r if isinstance(r, StaffingRule) else StaffingRule.from_dict(r) for r in rules]

    actions: list[ActionExpr] = []
    for rule in sorted(decoded, key=lambda r: r.priority):
        if not rule.matches(ctx):
            continue
        action = rule.action if rule.action.source else replace(rule.action, source=rule.name)
        actions.append(action)
    return actions


def describe_rule(condition: ConditionExpr | Mapping[str, Any] | None, action: ActionExpr | Mapping[str, Any] | None) -> tuple[list[str], list[str]]:
    """English fragments for a rule card: ``(conditions, actions)``."""
    if not isinstance(condition, ConditionExpr):
        condition = ConditionExpr.from_dict(condition)
    if not isinstance(action, ActionExpr):
        action = ActionExpr.from_dict(action)
    conditions = condition.describe() or ["No conditions set"]
    actions = action.describe() or ["No actions set"]
    return conditions, actions


def validate_rule_definition(payload: Mapping[str, Any]) -> dict[str, str]:
    """Field -> message for a rule the builder is about to save. Empty when valid."""
    errors: dict[str, str] = {}
    if not str(payload.get("rule_name") or "").strip():
        errors["rule_name"] = "Please give your rule a name"

    try:
        condition = ConditionExpr.from_dict(payload.get("condition"))
    except RuleEvaluationError as exc:
        errors["conditions"] = str(exc)
    else:
        if not condition.clauses:
            errors["conditions"] = "Add at least one condition"

    try:
        action = ActionExpr.from_dict(payload.get("action"))
    except RuleEvaluationError as exc:
        errors["actions"] = str(exc)
    else:
        if not action.items:
            errors["actions"] = "Add at least one action"
    return errors


# ---------------------------------------------------------------------------
# Applying matched actions to a shift configuration
# ---------------------------------------------------------------------------


def apply_actions(config: Mapping[str, Any], actions: Sequence[ActionExpr]) -> dict[str, Any]:
    """Fold matched actions into a copy of ``config``.

    Adds ``required_positions``, ``excluded_positions`` and
    ``position_adjustments``; a later count for the same position wins.
    """
    merged = dict(config)
    required = list(merged.get("required_positions") or [])
    excluded = list(merged.get("excluded_positions") or [])
    adjustments = dict(merged.get("position_adjustments") or {})

    for expr in actions:
        for item in expr.items:
            if isinstance(item, RequirePosition):
                required.append({"position": item.position, "count": item.count, "source": expr.source})
            elif isinstance(item, ExcludePosition):
                excluded.append(item.position)
            elif isinstance(item, AdjustPositionCount):
                adjustments.update(item.counts)

    merged["required_positions"] = required
    merged["excluded_positions"] = excluded
    merged["position_adjustments"] = adjustments
    return merged


def is_position_excluded(position: str, config: Mapping[str, Any]) -> bool:
    target = position.lower()
    return any(str(p).lower() == target for p in config.get("excluded_positions") or [])


def position_count_adjustment(position: str, config: Mapping[str, Any]) -> int | None:
    """Count set for ``position`` by an adjust action, or None."""
    return (config.get("position_adjustments") or {}).get(position)


def required_positions(
    config: Mapping[str, Any],
    core_positions: Iterable[Mapping[str, Any]] = (),
) -> list[dict[str, Any]]:
    """Positions a shift must staff, lowest priority number first.

    Combines mandatory core positions, positions required by rules, and the
    drive-thru / cook / shift-runner / manager defaults implied by the
    configuration. Excluded positions are dropped and adjusted counts
    override min/max.
    """
    positions: list[dict[str, Any]] = []
    for core in core_positions:
        if core.get("is_mandatory") and core.get("position"):
            positions.append({
                "position": core["position"],
                "min_count": core.get("min_count", 1),
                "max_count": core.get("max_count", 1),
                "priority": core.get("priority", DEFAULT_PRIORITY),
                "source": "core",
            })

    for req in config.get("required_positions") or []:
        positions.append({
            "position": req["position"],
            "min_count": req.get("count", 1),
            "max_count": req.get("count", 1),
            "priority": req.get("priority", DEFAULT_PRIORITY),
            "source": req.get("source", "rule"),
        })

    names = [p["position"].lower() for p in positions]

    if config.get("dt_type") == "DT1" and "dt presenter" not in names:
        positions.append(_default_position("DT Presenter", 10, "dt1_config"))

    num_cooks = int(config.get("num_cooks") or 0)
    if num_cooks > 0 and not any(n in ("cook", "cook2") for n in names):
        for i in range(num_cooks):
            positions.append(_default_position("Cook" if i == 0 else f"Cook{i + 1}", 5, "cook_config"))

    if config.get("require_shift_runner") and not any("shift runner" in n or n == "sr" for n in names):
        positions.append(_default_position("Shift Runner", 3, "shift_runner_config"))

    if config.get("require_manager") and not any("manager" in n or n == "am" for n in names):
        positions.append(_default_position("Manager", 2, "manager_config"))

    result = []
    for p in positions:
        if is_position_excluded(p["position"], config):
            continue
        override = position_count_adjustment(p["position"], config)
        if override is not None:
            p = {**p, "min_count": override, "max_count": override}
        result.append(p)
    return sorted(result, key=lambda p: p["priority"])


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _default_position(name: str, priority: int, source: str) -> dict[str, Any]:
    return {"position": name, "min_count": 1, "max_count": 1, "priority": priority, "source": source}


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _context_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return _as_int("num_cooks", value)
    except RuleEvaluationError:
        logger.warning("Ignoring unusable num_cooks %r in deployment context", value)
        return None


def _as_active(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return value is not False
    flag = to_bool_strict(str(value))
    if flag is None:
        logger.warning("Unrecognised is_active value %r; rule treated as inactive", value)
        return False
    return flag


def _as_str(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise RuleEvaluationError(f"{key} must be a string, got {value!r}")
    return value


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise RuleEvaluationError(f"{key} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise RuleEvaluationError(f"{key} must be an integer, got {value!r}")
