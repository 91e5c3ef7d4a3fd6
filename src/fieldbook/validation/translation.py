"""
Validation Message Translation

🌐 Pluggable Message Rendering:
Validation rules produce message templates such as
``":attribute must be a integer."``. A Translator turns a template into the
text shown to callers. The composition root picks the implementation from
configuration; tests typically use NullTranslator.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

DEFAULT_LOCALE = "en"


class Translator(ABC):
    """Abstract interface for rendering validation message templates"""

    @abstractmethod
    def translate(self, template: str, replace: Optional[Dict[str, Any]] = None) -> str:
        """
        Render a message template.

        Args:
            template: Message template with ``:placeholder`` markers
            replace: Placeholder values, keyed without the leading colon

        Returns:
            Rendered message
        """
        pass

    @property
    @abstractmethod
    def locale(self) -> str:
        pass


class MessageTranslator(Translator):
    """
    Renders templates, optionally through a per-locale catalog.

    A catalog maps an English template to its translation for one locale.
    Templates missing from the catalog are rendered as given.
    """

    def __init__(self, locale: str = DEFAULT_LOCALE,
                 catalog: Optional[Dict[str, Dict[str, str]]] = None):
        self._locale = locale
        self._catalog = catalog or {}

    @property
    def locale(self) -> str:
        return self._locale

    def set_locale(self, locale: str):
        self._locale = locale

    def translate(self, template: str, replace: Optional[Dict[str, Any]] = None) -> str:
        message = self._catalog.get(self._locale, {}).get(template, template)
        # Longest placeholders first; ":attribute" is a prefix of ":attribute_name"
        for key in sorted(replace or {}, key=len, reverse=True):
            message = message.replace(f":{key}", str(replace[key]))
        return message


class NullTranslator(Translator):
    """Translator that renders every message as an empty string"""

    @property
    def locale(self) -> str:
        return DEFAULT_LOCALE

    def translate(self, template: str, replace: Optional[Dict[str, Any]] = None) -> str:
        return ""


def create_translator(kind: str, locale: str = DEFAULT_LOCALE) -> Translator:
    """Build the translator named in configuration ("message" or "null")"""
    if kind == "message":
        return MessageTranslator(locale=locale)
    if kind == "null":
        return NullTranslator()
    raise ValueError(f"Unknown translator: {kind}")


__all__ = ["Translator", "MessageTranslator", "NullTranslator", "create_translator", "DEFAULT_LOCALE"]
