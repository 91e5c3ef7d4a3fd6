"""
Fieldbook Validation

Rules that turn raw input into identifiers, sorts and criteria, plus the
translators used to render their messages.
"""

from .rules import (
    BooleanRule, ClosedEnumRule, DateTimeRangeRule, IdentifierRule, IntegerRule,
    Rule, StringRule,
)
from .translation import MessageTranslator, NullTranslator, Translator, create_translator
from .validator import CRITERIA_RULES, CriteriaValidator, Validator, pagination_rules

__all__ = [
    "Rule", "ClosedEnumRule", "IdentifierRule", "IntegerRule", "StringRule",
    "BooleanRule", "DateTimeRangeRule",
    "Translator", "MessageTranslator", "NullTranslator", "create_translator",
    "Validator", "CriteriaValidator", "CRITERIA_RULES", "pagination_rules",
]
