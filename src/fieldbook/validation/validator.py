"""
Validator - Raw Input Validation

🛂 Gatekeeper Before the Repository:
Validators run a set of rules over raw input, collect every failure per
field and raise a single ValidationError, or hand back typed values ready to
build identifiers and criteria. Message rendering is delegated to the
injected Translator.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Type

from ..core.criteria import Criteria
from ..core.errors import InvalidCriteria, ValidationError
from ..domains.common import UserIdentifier, CustomerIdentifier
from ..domains.daily_report import DailyReportCriteria
from ..domains.feedback import FeedbackCriteria, FeedbackStatus, FeedbackType
from ..domains.transaction_history import TransactionHistoryCriteria
from ..domains.visit import VisitCriteria
from .rules import (
    BooleanRule, ClosedEnumRule, DateTimeRangeRule, IdentifierRule, IntegerRule,
    Rule, StringRule,
)
from .translation import NullTranslator, Translator

logger = logging.getLogger(__name__)

MAX_CURSOR_LENGTH = 2048


class Validator:
    """
    Validates a mapping of raw values against named rules.

    Fields absent from the input, or explicitly None, are skipped; every
    rule is optional in that sense.
    """

    def __init__(self, rules: Dict[str, Rule], translator: Optional[Translator] = None):
        self.rules = rules
        self.translator = translator or NullTranslator()

    def errors(self, data: Mapping[str, Any]) -> Dict[str, List[str]]:
        """Get all validation errors for ``data``"""
        errors: Dict[str, List[str]] = {}
        for field in data:
            if field not in self.rules:
                errors.setdefault(field, []).append(
                    self.translator.translate(":attribute is not allowed.", {"attribute": field})
                )
        for field, rule in self.rules.items():
            value = data.get(field)
            if value is None:
                continue
            template = rule.failure(value)
            if template is not None:
                errors.setdefault(field, []).append(
                    self.translator.translate(template, {"attribute": field})
                )
        return errors

    def validate(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Validate and convert ``data``.

        Returns:
            Typed values for every supplied field

        Raises:
            ValidationError: if any field fails its rule
        """
        errors = self.errors(data)
        if errors:
            logger.debug(f"Validation failed for fields: {', '.join(sorted(errors))}")
            raise ValidationError(
                f"Validation failed for {', '.join(sorted(errors))}",
                field=next(iter(sorted(errors))),
                errors=errors,
            )
        return {
            field: self.rules[field].convert(value)
            for field, value in data.items()
            if value is not None
        }


def pagination_rules() -> Dict[str, Rule]:
    return {
        "offset": IntegerRule(min=0),
        "limit": IntegerRule(min=1),
        "cursor": StringRule(max_length=MAX_CURSOR_LENGTH),
    }


CRITERIA_RULES: Dict[Type[Criteria], Dict[str, Rule]] = {
    DailyReportCriteria: {
        "date": DateTimeRangeRule(),
        "user": IdentifierRule(UserIdentifier),
        "is_submitted": BooleanRule(),
        "sort": ClosedEnumRule(DailyReportCriteria.sort_type),
    },
    FeedbackCriteria: {
        "status": ClosedEnumRule(FeedbackStatus),
        "type": ClosedEnumRule(FeedbackType),
        "sort": ClosedEnumRule(FeedbackCriteria.sort_type),
    },
    VisitCriteria: {
        "user": IdentifierRule(UserIdentifier),
        "sort": ClosedEnumRule(VisitCriteria.sort_type),
    },
    TransactionHistoryCriteria: {
        "user": IdentifierRule(UserIdentifier),
        "customer": IdentifierRule(CustomerIdentifier),
        "sort": ClosedEnumRule(TransactionHistoryCriteria.sort_type),
    },
}


class CriteriaValidator:
    """Builds a domain Criteria from raw request input"""

    def __init__(self, criteria_type: Type[Criteria], translator: Optional[Translator] = None):
        if criteria_type not in CRITERIA_RULES:
            raise ValueError(f"No validation rules for {criteria_type.__name__}")
        self.criteria_type = criteria_type
        self.validator = Validator({**CRITERIA_RULES[criteria_type], **pagination_rules()}, translator)

    def parse(self, data: Mapping[str, Any]) -> Criteria:
        """
        Validate ``data`` and build the criteria.

        Raises:
            ValidationError: if a field fails its rule, or the combination of
                fields is rejected by the criteria itself
        """
        values = self.validator.validate(data)
        try:
            return self.criteria_type(**values)
        except InvalidCriteria as e:
            field = e.details["field"]
            message = self.validator.translator.translate(e.details["reason"], {"attribute": field})
            raise ValidationError(e.message, field=field, errors={field: [message]}) from e


__all__ = ["Validator", "CriteriaValidator", "CRITERIA_RULES", "pagination_rules"]
