"""Text canonicalization applied to record fields before comparison."""

from typing import Any, Dict, Type
from abc import ABC, abstractmethod
import re
import unicodedata

_WHITESPACE_RE = re.compile(r'\s+')
_PUNCTUATION_RE = re.compile(r'[^\w\s]')


class BasePreprocessor(ABC):
    """Base class for preprocessors with common functionality."""

    @abstractmethod
    def process(self, value: Any) -> str:
        """Process a value into a standardized string format."""
        pass

    def _handle_null(self, value: Any) -> bool:
        """Check if value is null or not text at all."""
        return not isinstance(value, str)


class TextPreprocessor(BasePreprocessor):
    """
    Canonicalizes free text so case, spacing, accents and punctuation
    do not affect similarity.

    Steps, in order: lowercase, collapse whitespace runs to a single
    space, trim, drop combining accent marks, strip every character
    that is neither a word character nor whitespace.
    """

    def __init__(self, lowercase: bool = True, remove_accents: bool = True):
        self.lowercase = lowercase
        self.remove_accents = remove_accents

    def process(self, value: Any) -> str:
        if self._handle_null(value):
            return ''

        text = value
        if self.lowercase:
            text = text.lower()

        text = _WHITESPACE_RE.sub(' ', text).strip()

        if self.remove_accents:
            text = ''.join(
                c for c in unicodedata.normalize('NFD', text)
                if unicodedata.category(c) != 'Mn'
            )

        return _PUNCTUATION_RE.sub('', text)


class PreprocessorRegistry:
    """Registry for preprocessor types."""

    def __init__(self):
        self._preprocessors: Dict[str, Type[BasePreprocessor]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        self.register('text', TextPreprocessor)

    def register(self, name: str, preprocessor_class: Type[BasePreprocessor]) -> None:
        """
        Register a new preprocessor type.

        Args:
            name: Name to register the preprocessor under
            preprocessor_class: Preprocessor class to register
        """
        self._preprocessors[name] = preprocessor_class

    def create(
        self,
        name: str,
        **kwargs: Any
    ) -> BasePreprocessor:
        """
        Create a preprocessor instance.

        Args:
            name: Name of the preprocessor type
            **kwargs: Configuration parameters for the preprocessor

        Returns:
            BasePreprocessor: Configured preprocessor instance

        Raises:
            ValueError: If preprocessor type not found
        """
        preprocessor_class = self._preprocessors.get(name)
        if not preprocessor_class:
            raise ValueError(f"Unknown preprocessor type: {name}")

        return preprocessor_class(**kwargs)

    def __contains__(self, name: str) -> bool:
        return name in self._preprocessors


# Global registry instance
registry = PreprocessorRegistry()

_default_text_preprocessor = TextPreprocessor()


def register_preprocessor(name: str, preprocessor_class: Type[BasePreprocessor]) -> None:
    """
    Register a new preprocessor type globally.

    Args:
        name: Name to register the preprocessor under
        preprocessor_class: Preprocessor class to register
    """
    registry.register(name, preprocessor_class)


def normalize(text: Any) -> str:
    """Return the canonical form of ``text``; absent values give ''."""
    return _default_text_preprocessor.process(text)
