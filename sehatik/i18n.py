"""
sehatik/i18n.py
================
Localization collaborator — Sehatik

The engine only stores and emits localization keys. Turning a key into
display text is the job of a ``Localizer`` supplied by the host
application; ``KeyLocalizer`` is the default used by the HTTP surface and
in tests.
"""

import logging
from collections.abc import Mapping
from typing import Any, Protocol

logger = logging.getLogger("sehatik.i18n")


class Localizer(Protocol):
    def resolve(self, key: str, params: Mapping[str, Any] | None = None) -> str: ...


class KeyLocalizer:
    """
    Resolve keys from an optional flat catalog, echoing unknown keys.

    Catalog entries may contain ``{name}`` placeholders filled from ``params``.
    """

    def __init__(self, catalog: Mapping[str, str] | None = None) -> None:
        self._catalog = dict(catalog or {})

    def resolve(self, key: str, params: Mapping[str, Any] | None = None) -> str:
        template = self._catalog.get(key)
        if template is None:
            return key
        if not params:
            return template
        try:
            return template.format(**params)
        except (KeyError, IndexError, ValueError):
            logger.warning("Catalog entry '%s' does not accept the given params.", key)
            return template
