"""Prop key normalization for native DOM elements."""

from __future__ import annotations

from typing import Any

# Prefixes whose hyphenated keys React expects verbatim (aria-label, data-id)
VERBATIM_PREFIXES = frozenset({"aria", "data"})


def camel_case(key: Any) -> Any:
	"""Camel-case a hyphenated prop name: "http-equiv" -> "httpEquiv".

	Non-string keys, single-word keys and `aria-*` / `data-*` keys are
	returned unchanged.
	"""
	if not isinstance(key, str):
		return key
	first, *rest = key.split("-")
	if not rest or first in VERBATIM_PREFIXES:
		return key
	return first + "".join(word.capitalize() for word in rest)
