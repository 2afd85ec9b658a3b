"""Declarative payload constraints.

A rule set maps a payload field to the checks it must pass::

    {"startDate": {"presence": {"allowEmpty": False}, "datetime": {...}}}

Check names are resolved against ``CHECKS`` when a :class:`RuleSet` is built,
so a typo in a rule set fails at import time rather than per request.
"""

from __future__ import annotations

import copy
import operator
import re
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import pandas as pd
import structlog

from . import canon
from .exceptions import ConstraintConfigError, require
from .types import ValidationResult

logger = structlog.get_logger()

RuleSpec = Mapping[str, Mapping[str, Any]]
Parser = Callable[[Any], Any]

CHECKS: Dict[str, type["Check"]] = {}


def register(name: str):
    def deco(cls: type["Check"]) -> type["Check"]:
        if name in CHECKS:
            raise ConstraintConfigError(f"Check '{name}' is already registered.")
        cls.name = name
        CHECKS[name] = cls
        return cls

    return deco


def is_defined(value: Any) -> bool:
    return value is not None


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def humanize(attribute: str) -> str:
    """'startDate' -> 'Start date', 'stop_date' -> 'Stop date'."""
    words = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", attribute)
    words = words.replace("_", " ").lower()
    return words[:1].upper() + words[1:]


def _presence_error(value: Any, allow_empty: bool) -> Optional[str]:
    if not is_defined(value):
        return "can't be blank"
    if not allow_empty and is_empty(value):
        return "can't be blank"
    return None


class Check:
    """A single named check bound to its options."""

    name: str = ""

    def __init__(self, options: Mapping[str, Any]):
        self.options = dict(options)
        self.configure()

    def configure(self) -> None:
        """Validate and pre-compute options; raise ConstraintConfigError."""

    def __call__(
        self,
        value: Any,
        attribute: str,
        attributes: Mapping[str, Any],
        rules: "RuleSet",
    ) -> Optional[str]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.options!r})"


@register("presence")
class Presence(Check):
    def configure(self) -> None:
        self.allow_empty = bool(self.options.get("allowEmpty", False))

    def __call__(self, value, attribute, attributes, rules):
        return _presence_error(value, self.allow_empty)


@register("datetime")
class DatetimeBound(Check):
    """Value must parse as a UTC timestamp, optionally within bounds."""

    def configure(self) -> None:
        self.date_only = bool(self.options.get("dateOnly", False))
        self.earliest = self._bound("earliest")
        self.latest = self._bound("latest")

    def _bound(self, key: str) -> Optional[pd.Timestamp]:
        if key not in self.options:
            return None
        ts = self.parse(self.options[key])
        require(
            not pd.isna(ts),
            f"datetime option '{key}' is not a valid date: {self.options[key]!r}",
            ConstraintConfigError,
        )
        return ts

    @staticmethod
    def parse(value: Any) -> pd.Timestamp:
        """Parse to a tz-aware UTC Timestamp; NaT when it cannot be parsed."""
        if isinstance(value, bool) or not value:
            return pd.NaT
        if not isinstance(value, (str, int, float, date, datetime, pd.Timestamp)):
            return pd.NaT
        if isinstance(value, (int, float)):
            # epoch milliseconds
            return pd.to_datetime(value, unit="ms", utc=True, errors="coerce")
        return pd.to_datetime(value, utc=True, errors="coerce")

    def format(self, ts: pd.Timestamp) -> str:
        fmt = "%Y-%m-%d" if self.date_only else "%Y-%m-%dT%H:%M:%SZ"
        return ts.strftime(fmt)

    def __call__(self, value, attribute, attributes, rules):
        if not is_defined(value):
            return None
        ts = self.parse(value)
        if pd.isna(ts):
            return "must be a valid date"
        if self.earliest is not None and ts < self.earliest:
            return f"must be no earlier than {self.format(self.earliest)}"
        if self.latest is not None and ts > self.latest:
            return f"must be no later than {self.format(self.latest)}"
        return None


@register("requirePresence")
class RequirePresence(Check):
    """If this field is set, the listed fields must be present too."""

    def configure(self) -> None:
        attrs = self.options.get("attributes") or []
        require(
            isinstance(attrs, (list, tuple)) and all(isinstance(a, str) for a in attrs),
            "requirePresence 'attributes' must be a list of field names.",
            ConstraintConfigError,
        )
        self.attributes: Tuple[str, ...] = tuple(attrs)
        self.allow_empty = bool(self.options.get("allowEmpty", False))

    def __call__(self, value, attribute, attributes, rules):
        if not is_defined(value) or not self.attributes:
            return None
        missing = [
            other
            for other in self.attributes
            if _presence_error(attributes.get(other), self.allow_empty)
        ]
        if missing:
            return f"requires the presence of {','.join(missing)}"
        return None


OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "lessThan": operator.lt,
    "<": operator.lt,
    "lessThanOrEqual": operator.le,
    "<=": operator.le,
    "greaterThan": operator.gt,
    ">": operator.gt,
    "greaterThanOrEqual": operator.ge,
    ">=": operator.ge,
}

_OPERATOR_TEXT: Dict[Callable[[Any, Any], bool], str] = {
    operator.lt: "less than",
    operator.le: "less than or equal to",
    operator.gt: "greater than",
    operator.ge: "greater than or equal to",
}


def _compare(op: Callable[[Any, Any], bool], lhs: Any, rhs: Any) -> bool:
    # uncomparable pairs fail, like NaN comparisons do
    if lhs is None or rhs is None or lhs is pd.NaT or rhs is pd.NaT:
        return False
    try:
        return bool(op(lhs, rhs))
    except TypeError:
        return False


@register("relationalOperator")
class RelationalOperator(Check):
    """Compare this field against other fields, e.g. stopDate > startDate."""

    def configure(self) -> None:
        attrs = self.options.get("attributes") or {}
        require(
            isinstance(attrs, Mapping),
            "relationalOperator 'attributes' must map field -> {operator: ...}.",
            ConstraintConfigError,
        )
        comparisons = []
        for other, opts in attrs.items():
            op_name = (opts or {}).get("operator")
            op = OPERATORS.get(op_name)
            if op is None:
                raise ConstraintConfigError(
                    f"Unknown relational operator {op_name!r} for '{other}'."
                )
            comparisons.append((other, op))
        self.comparisons: Tuple[Tuple[str, Callable[[Any, Any], bool]], ...] = tuple(
            comparisons
        )

    def __call__(self, value, attribute, attributes, rules):
        if not is_defined(value) or not self.comparisons:
            return None
        failed = []
        for other, op in self.comparisons:
            lhs, rhs = rules.comparable(attribute, value, other, attributes.get(other))
            if not _compare(op, lhs, rhs):
                failed.append(f"{_OPERATOR_TEXT[op]} {humanize(other).lower()}")
        if failed:
            return f"is required to be {', '.join(failed)}"
        return None


class RuleSet:
    """A rule spec compiled against the check registry."""

    def __init__(self, spec: RuleSpec):
        compiled: Dict[str, Tuple[Check, ...]] = {}
        for field, checks in spec.items():
            bound: List[Check] = []
            for name, options in checks.items():
                # falsy options switch a check off
                if options is None or options is False:
                    continue
                impl = CHECKS.get(name)
                if impl is None:
                    raise ConstraintConfigError(
                        f"Unknown check '{name}' declared for field '{field}'."
                    )
                if options is True:
                    options = {}
                require(
                    isinstance(options, Mapping),
                    f"Options for '{field}.{name}' must be a mapping.",
                    ConstraintConfigError,
                )
                bound.append(impl(options))
            compiled[field] = tuple(bound)
        self.spec = copy.deepcopy(dict(spec))
        self._fields = MappingProxyType(compiled)

    @property
    def fields(self) -> Mapping[str, Tuple[Check, ...]]:
        return self._fields

    def parser_for(self, field: str) -> Optional[Parser]:
        for check in self._fields.get(field, ()):
            if isinstance(check, DatetimeBound):
                return check.parse
        return None

    def comparable(
        self, attribute: str, value: Any, other: str, other_value: Any
    ) -> Tuple[Any, Any]:
        """Raw values, or parsed timestamps when both fields are datetimes."""
        parse = self.parser_for(attribute)
        parse_other = self.parser_for(other)
        if parse is not None and parse_other is not None:
            return parse(value), parse_other(other_value)
        return value, other_value

    def validate(self, payload: Mapping[str, Any]) -> ValidationResult:
        errors: Dict[str, List[str]] = {}
        for field, checks in self._fields.items():
            value = payload.get(field)
            label = humanize(field)
            for check in checks:
                message = check(value, field, payload, self)
                if message:
                    errors.setdefault(field, []).append(f"{label} {message}")
        return errors or None

    def __repr__(self) -> str:
        return f"RuleSet({list(self._fields)})"


def validate(
    payload: Mapping[str, Any], rules: RuleSet | RuleSpec
) -> ValidationResult:
    """Run every declared check; None when the payload passes."""
    if not isinstance(rules, RuleSet):
        rules = RuleSet(rules)
    result = rules.validate(payload)
    if result:
        logger.debug("payload_rejected", fields=sorted(result))
    return result


BASE_RULES: Dict[str, Dict[str, Any]] = {
    "startDate": {
        "presence": {"allowEmpty": False},
        "datetime": {"earliest": canon.EPOCH_FLOOR},
    },
    "stopDate": {
        "datetime": {"earliest": canon.EPOCH_FLOOR},
        "requirePresence": {"attributes": ["startDate"], "allowEmpty": False},
        "relationalOperator": {
            "attributes": {"startDate": {"operator": "greaterThan"}},
        },
    },
}

# Separate copies so one granularity's rules can change without touching the rest
YEAR_RULES = RuleSet(copy.deepcopy(BASE_RULES))
MONTH_RULES = RuleSet(copy.deepcopy(BASE_RULES))
DAY_RULES = RuleSet(copy.deepcopy(BASE_RULES))
HOUR_RULES = RuleSet(copy.deepcopy(BASE_RULES))
