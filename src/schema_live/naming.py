"""
Naming helpers: case conversion, inflection and model class lookup.
"""

from __future__ import annotations

import importlib
import inspect
import logging
import re
from types import ModuleType
from typing import Dict, List, Optional, Union

import inflect

logger = logging.getLogger(__name__)

_inflector = inflect.engine()

_SEPARATORS = re.compile(r"[-_\s]+")


def studly(value: str) -> str:
    """Convert ``role_user`` or ``role-user`` into ``RoleUser``."""
    return "".join(part[:1].upper() + part[1:] for part in _SEPARATORS.split(value) if part)


def lower_camel(value: str) -> str:
    """Convert ``role_user`` into ``roleUser``."""
    name = studly(value)
    return name[:1].lower() + name[1:]


def _split_last_word(value: str):
    parts = _SEPARATORS.split(value)
    return value[: len(value) - len(parts[-1])], parts[-1]


def singularize(value: str) -> str:
    """Singularize the last word of a snake or studly name."""
    head, word = _split_last_word(value)
    if not word:
        return value
    singular = _inflector.singular_noun(word)
    return head + singular if singular else value


def pluralize(value: str) -> str:
    """Pluralize the last word of a snake or studly name."""
    head, word = _split_last_word(value)
    if not word:
        return value
    if _inflector.singular_noun(word):
        # Already plural
        return value
    return head + _inflector.plural_noun(word)


def import_model_class(path: str) -> type:
    """Import a class from its dotted path, e.g. ``myapp.models.User``."""
    module_name, _, class_name = path.rpartition(".")
    module = importlib.import_module(module_name)
    return getattr(module, class_name)


class ModelResolver:
    """
    Guesses the model class backing a table.

    For a table name the candidates are the studly name, its singular and its
    plural (``user_roles`` -> ``UserRoles``, ``UserRole``). The first candidate
    that is a class in the namespace module wins; the dotted path of that
    class is returned. Unresolvable names give ``None``.
    """

    def __init__(self, namespace: Optional[Union[str, ModuleType]] = None):
        self.namespace = namespace
        self._module: Optional[ModuleType] = None
        self._loaded = False
        self._cache: Dict[str, Optional[str]] = {}

    @staticmethod
    def candidates(base_name: str) -> List[str]:
        names: List[str] = []
        for guess in (studly(base_name), studly(singularize(base_name)), studly(pluralize(base_name))):
            if guess and guess not in names:
                names.append(guess)
        return names

    def _load_module(self) -> Optional[ModuleType]:
        if not self._loaded:
            self._loaded = True
            if isinstance(self.namespace, ModuleType):
                self._module = self.namespace
            elif self.namespace:
                try:
                    self._module = importlib.import_module(self.namespace)
                except ImportError as e:
                    logger.warning(f"Model namespace {self.namespace} could not be imported: {e}")
        return self._module

    def resolve(self, base_name: str) -> Optional[str]:
        """Return the dotted path of the model class for a table, if any."""
        if base_name in self._cache:
            return self._cache[base_name]

        module = self._load_module()
        resolved = None
        if module is not None:
            for candidate in self.candidates(base_name):
                obj = getattr(module, candidate, None)
                if inspect.isclass(obj):
                    resolved = f"{module.__name__}.{candidate}"
                    break
            if resolved is None:
                logger.debug(f"No model class found for {base_name} in {module.__name__}")

        self._cache[base_name] = resolved
        return resolved
