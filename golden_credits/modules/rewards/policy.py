"""
Reward Policy Table: declarative base rewards per (game, event type).

Purpose
-------
Turn a game event and its parameters into a base Golden Credits amount,
before mastery/streak multipliers and the daily cap are applied.

Rules are loaded from `rewards.games` in the YAML configuration. Each rule
has a formula kind:

- ``fixed``      : ``base``
- ``lookup``     : ``table[params[param]]`` (exact key), 0 when absent
- ``threshold``  : value of the highest key <= ``params[param]``, 0 below all keys
- ``per_unit``   : ``floor(params[param] / unit) * amount``, optional ``max``
- ``per_count``  : ``params[param or "count"] * amount``, optional ``max``;
                   a missing or zero count counts as ``default_count`` (1)

and optional additive modifiers:

- ``param_bonus`` : ``values[params[param]]`` added (e.g. difficulty)
- ``flag_bonus``  : ``amount`` added when ``params[param]`` is truthy
- ``first_of_day_bonus`` (rule-level): added on the first award of the rule
  per game per reference day

Validation happens at load; a malformed table raises InvalidConfigurationError.

Bases are Decimals and may be fractional (0.1 GC per perfect tap). They are
rounded once, by the caller, after the multipliers are applied.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from golden_credits.core.exceptions import InvalidConfigurationError
from golden_credits.core.logging.logger import get_logger
from golden_credits.modules.shared.exceptions import (
    UnknownRewardTypeError,
    ValidationError,
)

logger = get_logger(__name__)

FORMULA_KINDS = ("fixed", "lookup", "threshold", "per_unit", "per_count")
MODIFIER_KINDS = ("param_bonus", "flag_bonus")


def _numeric_param(params: Mapping[str, Any], name: str) -> float:
    raw = params.get(name)
    if raw is None:
        return 0.0
    if isinstance(raw, bool):
        return 1.0 if raw else 0.0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValidationError(name, f"Must be numeric, got {raw!r}") from None
    if math.isnan(value) or math.isinf(value):
        raise ValidationError(name, f"Must be a finite number, got {raw!r}")
    return max(0.0, value)


@dataclass(frozen=True)
class RewardModifier:
    kind: str
    param: str
    amount: int = 0
    values: Mapping[str, int] = field(default_factory=dict)

    def apply(self, params: Mapping[str, Any]) -> int:
        raw = params.get(self.param)
        if self.kind == "flag_bonus":
            return self.amount if raw else 0
        if raw is None:
            return 0
        return self.values.get(str(raw).lower(), 0)


@dataclass(frozen=True)
class RewardRule:
    """One (game, event type) formula."""

    game_id: str
    event_type: str
    kind: str
    base: int = 0
    param: Optional[str] = None
    table: Tuple[Tuple[float, int], ...] = ()
    lookup: Mapping[str, int] = field(default_factory=dict)
    unit: float = 1.0
    amount: float = 0
    max_amount: Optional[int] = None
    default_count: int = 1
    modifiers: Tuple[RewardModifier, ...] = ()
    first_of_day_bonus: int = 0

    @property
    def key(self) -> Tuple[str, str]:
        return (self.game_id, self.event_type)

    def _formula(self, params: Mapping[str, Any]) -> Decimal:
        if self.kind == "fixed":
            return Decimal(self.base)

        if self.kind == "lookup":
            raw = params.get(self.param or "")
            if raw is None:
                return Decimal(0)
            return Decimal(self.lookup.get(_lookup_key(raw), 0))

        if self.kind == "threshold":
            value = _numeric_param(params, self.param or "")
            reward = 0
            for threshold, amount in self.table:
                if value >= threshold:
                    reward = amount
            return Decimal(reward)

        if self.kind == "per_unit":
            value = _numeric_param(params, self.param or "")
            units = Decimal(int(value // self.unit))
        else:
            count = _numeric_param(params, self.param or "count")
            units = _as_decimal(count) if count else Decimal(self.default_count)

        reward = units * _as_decimal(self.amount)
        if self.max_amount is not None:
            reward = min(reward, Decimal(self.max_amount))
        return reward

    def compute(self, params: Optional[Mapping[str, Any]] = None, first_of_day: bool = False) -> Decimal:
        """Return the unrounded base reward (>= 0) for the given event parameters."""
        params = params or {}
        total = self._formula(params)
        for modifier in self.modifiers:
            total += modifier.apply(params)
        if first_of_day:
            total += self.first_of_day_bonus
        return max(Decimal(0), total)


def _as_decimal(value: float) -> Decimal:
    return Decimal(str(value))


def _lookup_key(raw: Any) -> str:
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    return str(raw).lower()


class RewardPolicyTable:
    """
    Immutable table of reward rules.

    >>> table = RewardPolicyTable.from_config({"flame-of-wisdom": {"participation": {"kind": "fixed", "base": 2}}})
    >>> table.base_amount("flame-of-wisdom", "participation")
    Decimal('2')
    """

    def __init__(self, rules: Iterable[RewardRule]) -> None:
        self._rules: Dict[Tuple[str, str], RewardRule] = {}
        for rule in rules:
            if rule.key in self._rules:
                raise InvalidConfigurationError(
                    f"rewards.games.{rule.game_id}.{rule.event_type}",
                    "duplicate reward rule",
                )
            self._rules[rule.key] = rule

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #

    @classmethod
    def from_config(cls, games: Mapping[str, Any]) -> "RewardPolicyTable":
        """
        Build the table from the `rewards.games` mapping.

        Raises
        ------
        InvalidConfigurationError
            If any rule is malformed.
        """
        if not isinstance(games, Mapping) or not games:
            raise InvalidConfigurationError("rewards.games", "no reward rules configured")

        rules: List[RewardRule] = []
        for game_id, events in games.items():
            if not isinstance(events, Mapping) or not events:
                raise InvalidConfigurationError(
                    f"rewards.games.{game_id}", "must map event types to rules"
                )
            for event_type, definition in events.items():
                rules.append(cls._parse_rule(str(game_id), str(event_type), definition))

        table = cls(rules)
        logger.info(
            "Reward policy table loaded",
            extra={"game_count": len(table.games()), "rule_count": len(rules)},
        )
        return table

    @staticmethod
    def _parse_rule(game_id: str, event_type: str, definition: Any) -> RewardRule:
        key = f"rewards.games.{game_id}.{event_type}"

        if isinstance(definition, int) and not isinstance(definition, bool):
            definition = {"kind": "fixed", "base": definition}
        if not isinstance(definition, Mapping):
            raise InvalidConfigurationError(key, "rule must be a mapping or an integer")

        kind = definition.get("kind", "fixed")
        if kind not in FORMULA_KINDS:
            raise InvalidConfigurationError(key, f"unknown formula kind '{kind}'")

        def non_negative_int(name: str, default: Optional[int] = 0) -> Optional[int]:
            value = definition.get(name, default)
            if value is None:
                return None
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidConfigurationError(key, f"'{name}' must be a non-negative integer")
            return value

        param = definition.get("param")
        if kind in ("lookup", "threshold", "per_unit") and not param:
            raise InvalidConfigurationError(key, f"'{kind}' rules need a 'param'")

        table: Tuple[Tuple[float, int], ...] = ()
        lookup: Dict[str, int] = {}
        if kind in ("lookup", "threshold"):
            raw_table = definition.get("table")
            if not isinstance(raw_table, Mapping) or not raw_table:
                raise InvalidConfigurationError(key, "'table' must be a non-empty mapping")
            for raw_key, raw_value in raw_table.items():
                if isinstance(raw_value, bool) or not isinstance(raw_value, int) or raw_value < 0:
                    raise InvalidConfigurationError(key, "table values must be non-negative integers")
                if kind == "lookup":
                    lookup[_lookup_key(raw_key)] = raw_value
            if kind == "threshold":
                try:
                    table = tuple(
                        sorted((float(k), int(v)) for k, v in raw_table.items())
                    )
                except (TypeError, ValueError):
                    raise InvalidConfigurationError(key, "threshold keys must be numeric") from None

        unit = definition.get("unit", 1)
        if kind == "per_unit":
            if isinstance(unit, bool) or not isinstance(unit, (int, float)) or unit <= 0:
                raise InvalidConfigurationError(key, "'unit' must be a positive number")

        amount = definition.get("amount", 0)
        if kind in ("per_unit", "per_count"):
            if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount < 0:
                raise InvalidConfigurationError(key, "'amount' must be a non-negative number")

        modifiers: List[RewardModifier] = []
        for index, raw_modifier in enumerate(definition.get("modifiers") or []):
            mod_key = f"{key}.modifiers[{index}]"
            if not isinstance(raw_modifier, Mapping):
                raise InvalidConfigurationError(mod_key, "modifier must be a mapping")
            mod_kind = raw_modifier.get("kind")
            mod_param = raw_modifier.get("param")
            if mod_kind not in MODIFIER_KINDS or not mod_param:
                raise InvalidConfigurationError(
                    mod_key, f"modifier needs kind in {MODIFIER_KINDS} and a param"
                )
            if mod_kind == "param_bonus":
                values = raw_modifier.get("values")
                if not isinstance(values, Mapping):
                    raise InvalidConfigurationError(mod_key, "'values' must be a mapping")
                modifiers.append(
                    RewardModifier(
                        kind=mod_kind,
                        param=str(mod_param),
                        values={str(k).lower(): int(v) for k, v in values.items()},
                    )
                )
            else:
                modifiers.append(
                    RewardModifier(
                        kind=mod_kind,
                        param=str(mod_param),
                        amount=int(raw_modifier.get("amount", 0)),
                    )
                )

        return RewardRule(
            game_id=game_id,
            event_type=event_type,
            kind=kind,
            base=non_negative_int("base") or 0,
            param=str(param) if param else None,
            table=table,
            lookup=lookup,
            unit=float(unit),
            amount=amount,
            max_amount=non_negative_int("max", None),
            default_count=non_negative_int("default_count", 1) or 0,
            modifiers=tuple(modifiers),
            first_of_day_bonus=non_negative_int("first_of_day_bonus") or 0,
        )

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def lookup(self, game_id: str, event_type: str) -> RewardRule:
        """
        Raises
        ------
        UnknownRewardTypeError
            If no rule exists for the pair.
        """
        rule = self._rules.get((game_id, event_type))
        if rule is None:
            raise UnknownRewardTypeError(game_id, event_type)
        return rule

    def base_amount(
        self,
        game_id: str,
        event_type: str,
        params: Optional[Mapping[str, Any]] = None,
        first_of_day: bool = False,
    ) -> Decimal:
        return self.lookup(game_id, event_type).compute(params, first_of_day=first_of_day)

    def has_rule(self, game_id: str, event_type: str) -> bool:
        return (game_id, event_type) in self._rules

    def games(self) -> List[str]:
        return sorted({game_id for game_id, _ in self._rules})

    def events_for(self, game_id: str) -> List[str]:
        return sorted(event for game, event in self._rules if game == game_id)
