"""Validation of reported performance metric values.

A stored PerformanceMetric is loaded once into an immutable MetricDefinition
whose validation criteria are already parsed into a structured form
(NumericRange for numeric measures, OptionList for option measures). The
validator is a pure function over a definition and one candidate value; it
reports rejection through a ValidationResult and never raises for an
unacceptable value.

Rules, first applicable wins:
1. Null return selected and allowed -> valid.
2. Empty value -> invalid if mandatory, otherwise valid.
3. Measure-specific format check, then range/option check.
"""
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple, Union

from fips_reporting.core.errors import ReportingError
from fips_reporting.models.performance_metric import MetricMeasure

VALUE_FIELD = "value"

NUMERIC_MEASURES = frozenset({
    MetricMeasure.NUMBER,
    MetricMeasure.DECIMAL,
    MetricMeasure.PERCENTAGE,
})
OPTION_MEASURES = frozenset({
    MetricMeasure.SINGLE_OPTION,
    MetricMeasure.MULTIPLE_OPTION,
})

BOOLEAN_VALUES = ("Yes", "No")

_INTEGER_PATTERN = re.compile(r"^\s*[+-]?\d+\s*$")
_DECIMAL_PATTERN = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)\s*$")

MIN_PREFIX = "min:"
MAX_PREFIX = "max:"


class UnknownMeasureError(ReportingError):
    """Raised when a metric's measure is not one of MetricMeasure."""

    def __init__(self, measure: Optional[str]):
        self.measure = measure
        super().__init__(f"Unknown metric measure: {measure!r}")


@dataclass(frozen=True)
class RangeBound:
    """A single min:/max: clause."""
    kind: str  # "min" or "max"
    limit: Decimal


@dataclass(frozen=True)
class NumericRange:
    """Ordered range clauses; the first violated clause is reported."""
    bounds: Tuple[RangeBound, ...] = ()

    @property
    def minimum(self) -> Optional[Decimal]:
        return next((b.limit for b in self.bounds if b.kind == "min"), None)

    @property
    def maximum(self) -> Optional[Decimal]:
        return next((b.limit for b in self.bounds if b.kind == "max"), None)


@dataclass(frozen=True)
class OptionList:
    """Allowed option strings, in configured order."""
    options: Tuple[str, ...] = ()

    def __contains__(self, item: str) -> bool:
        return item in self.options

    def display(self) -> str:
        return ", ".join(self.options)


Criteria = Union[NumericRange, OptionList, None]


@dataclass(frozen=True)
class MetricDefinition:
    """Read-only rule set for one reportable quantity."""
    metric_id: int
    name: str
    measure: MetricMeasure
    mandatory: bool = False
    null_return_allowed: bool = False
    criteria: Criteria = None
    enabled: bool = True


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one value. field_name/error_message are empty when valid."""
    is_valid: bool
    error_message: str = ""
    field_name: str = ""

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(is_valid=True)

    @classmethod
    def invalid(cls, message: str, field_name: str = VALUE_FIELD) -> "ValidationResult":
        return cls(is_valid=False, error_message=message, field_name=field_name)


def parse_measure(value: Optional[str]) -> MetricMeasure:
    """Resolve a stored measure string to MetricMeasure (case-insensitive)."""
    if isinstance(value, MetricMeasure):
        return value
    # "SingleOption", "single option" and "single_option" are the same measure
    normalized = (value or "").strip().lower().replace(" ", "").replace("_", "")
    for measure in MetricMeasure:
        if measure.value.replace("_", "") == normalized:
            return measure
    raise UnknownMeasureError(value)


def parse_decimal(text: str) -> Optional[Decimal]:
    """Parse a plain decimal literal (no exponent, NaN or Infinity)."""
    if text is None or not _DECIMAL_PATTERN.match(text):
        return None
    try:
        return Decimal(text.strip())
    except InvalidOperation:
        return None


def parse_integer(text: str) -> Optional[int]:
    """Parse a whole number with optional sign."""
    if text is None or not _INTEGER_PATTERN.match(text):
        return None
    return int(text.strip())


def _split_csv(text: str) -> Tuple[str, ...]:
    return tuple(part.strip() for part in text.split(",") if part.strip())


def parse_numeric_range(raw: Optional[str]) -> NumericRange:
    """Parse "min:<n>,max:<n>" clauses. Unparsable clauses are skipped."""
    if not raw:
        return NumericRange()
    bounds = []
    for clause in _split_csv(raw.strip().strip('"')):
        for kind, prefix in (("min", MIN_PREFIX), ("max", MAX_PREFIX)):
            if clause.startswith(prefix):
                limit = parse_decimal(clause[len(prefix):])
                if limit is not None:
                    bounds.append(RangeBound(kind=kind, limit=limit))
                break
    return NumericRange(bounds=tuple(bounds))


def parse_option_list(raw: Optional[str]) -> Optional[OptionList]:
    """Parse a comma-separated option list. No criteria means no option check."""
    if not raw:
        return None
    return OptionList(options=_split_csv(raw))


def parse_validation_criteria(measure: MetricMeasure, raw: Optional[str]) -> Criteria:
    """Parse the stored criteria string into the structure for this measure."""
    if measure in NUMERIC_MEASURES:
        return parse_numeric_range(raw)
    if measure in OPTION_MEASURES:
        return parse_option_list(raw)
    return None


def find_criteria_problems(measure: MetricMeasure, raw: Optional[str]) -> list[str]:
    """List configuration problems where the criteria string does not fit the measure.

    The validator itself tolerates all of these; this check is applied when
    administrators write a metric so that new mismatches are rejected.
    """
    if not raw or not raw.strip():
        return []
    clauses = _split_csv(raw.strip().strip('"'))
    problems = []
    if measure in NUMERIC_MEASURES:
        for clause in clauses:
            if clause.startswith(MIN_PREFIX) or clause.startswith(MAX_PREFIX):
                if parse_decimal(clause[4:]) is None:
                    problems.append(f"'{clause}' does not have a numeric bound")
            else:
                problems.append(f"'{clause}' is not a min: or max: clause")
    elif measure in OPTION_MEASURES:
        if not clauses:
            problems.append("option list is empty")
        for clause in clauses:
            if clause.startswith(MIN_PREFIX) or clause.startswith(MAX_PREFIX):
                problems.append(f"'{clause}' is a range clause but the measure expects options")
    else:
        problems.append(f"measure '{measure.value}' does not take validation criteria")
    return problems


def load_metric_definition(metric) -> MetricDefinition:
    """Build a MetricDefinition from a PerformanceMetric row.

    Raises UnknownMeasureError if the stored measure is not recognised.
    """
    measure = parse_measure(metric.measure)
    return MetricDefinition(
        metric_id=metric.metric_id,
        name=metric.name,
        measure=measure,
        mandatory=bool(metric.mandatory),
        null_return_allowed=bool(metric.can_report_null_return),
        criteria=parse_validation_criteria(measure, metric.validation_criteria),
        enabled=bool(metric.enabled),
    )


def _check_range(metric: MetricDefinition, value: Decimal) -> ValidationResult:
    criteria = metric.criteria
    if not isinstance(criteria, NumericRange):
        return ValidationResult.ok()
    for bound in criteria.bounds:
        if bound.kind == "min" and value < bound.limit:
            return ValidationResult.invalid(f"'{metric.name}' must be at least {bound.limit}.")
        if bound.kind == "max" and value > bound.limit:
            return ValidationResult.invalid(f"'{metric.name}' must be no more than {bound.limit}.")
    return ValidationResult.ok()


def _validate_number(metric: MetricDefinition, value: str) -> ValidationResult:
    parsed = parse_integer(value)
    if parsed is None:
        return ValidationResult.invalid(f"'{metric.name}' must be a whole number.")
    return _check_range(metric, Decimal(parsed))


def _validate_decimal(metric: MetricDefinition, value: str) -> ValidationResult:
    parsed = parse_decimal(value)
    if parsed is None:
        if metric.measure == MetricMeasure.PERCENTAGE:
            return ValidationResult.invalid(f"'{metric.name}' must be a number.")
        return ValidationResult.invalid(f"'{metric.name}' must be a decimal number.")
    return _check_range(metric, parsed)


def _validate_boolean(metric: MetricDefinition, value: str) -> ValidationResult:
    if value not in BOOLEAN_VALUES:
        return ValidationResult.invalid(f"'{metric.name}' must be either 'Yes' or 'No'.")
    return ValidationResult.ok()


def _validate_single_option(metric: MetricDefinition, value: str) -> ValidationResult:
    options = metric.criteria
    if not isinstance(options, OptionList):
        return ValidationResult.ok()
    if value not in options:
        return ValidationResult.invalid(f"'{metric.name}' must be one of: {options.display()}")
    return ValidationResult.ok()


def _validate_multiple_option(metric: MetricDefinition, value: str) -> ValidationResult:
    options = metric.criteria
    if not isinstance(options, OptionList):
        return ValidationResult.ok()
    for selected in _split_csv(value):
        if selected not in options:
            return ValidationResult.invalid(
                f"'{metric.name}' contains invalid option: {selected}. "
                f"Valid options are: {options.display()}"
            )
    return ValidationResult.ok()


def _validate_text(metric: MetricDefinition, value: str) -> ValidationResult:
    return ValidationResult.ok()


_VALIDATORS = {
    MetricMeasure.NUMBER: _validate_number,
    MetricMeasure.DECIMAL: _validate_decimal,
    MetricMeasure.PERCENTAGE: _validate_decimal,
    MetricMeasure.BOOLEAN: _validate_boolean,
    MetricMeasure.SINGLE_OPTION: _validate_single_option,
    MetricMeasure.MULTIPLE_OPTION: _validate_multiple_option,
    MetricMeasure.TEXT: _validate_text,
}


def validate_metric_value(
    metric: MetricDefinition,
    raw_value: Optional[str],
    is_null_return: bool = False,
) -> ValidationResult:
    """Decide whether raw_value is acceptable for metric.

    Args:
        metric: Loaded metric definition
        raw_value: Unvalidated user input (None or blank counts as empty)
        is_null_return: True when the user marked the metric as not applicable

    Returns:
        ValidationResult; when invalid, field_name is "value" and
        error_message is the text to show next to the field.
    """
    if is_null_return and metric.null_return_allowed:
        return ValidationResult.ok()

    if raw_value is None or not raw_value.strip():
        if metric.mandatory:
            return ValidationResult.invalid(f"'{metric.name}' is mandatory and must be completed.")
        return ValidationResult.ok()

    return _VALIDATORS[metric.measure](metric, raw_value)
