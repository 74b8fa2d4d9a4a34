"""Typed access to the STRAND_* environment variables."""

from __future__ import annotations

import os
from typing import Literal, cast

StrandEnv = Literal["dev", "prod"]

ENV_STRAND_ENV = "STRAND_ENV"
ENV_STRAND_DEBUG = "STRAND_DEBUG"
ENV_STRAND_DEBUG_GUARD = "STRAND_DEBUG_GUARD"
ENV_STRAND_WARN_DYNAMIC_PROPS = "STRAND_WARN_DYNAMIC_PROPS"
ENV_STRAND_RUNTIME_MODULE = "STRAND_RUNTIME_MODULE"
ENV_STRAND_REACT_MODULE = "STRAND_REACT_MODULE"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def _get_flag(name: str) -> bool | None:
	value = os.environ.get(name)
	if value is None:
		return None
	value = value.strip().lower()
	if value in _TRUTHY:
		return True
	if value in _FALSY:
		return False
	raise ValueError(f"{name} must be a boolean flag, got {value!r}")


def _set_flag(name: str, value: bool | None) -> None:
	if value is None:
		os.environ.pop(name, None)
	else:
		os.environ[name] = "1" if value else "0"


def _set_str(name: str, value: str | None) -> None:
	if value is None:
		os.environ.pop(name, None)
	else:
		os.environ[name] = value


class Env:
	"""Environment-backed settings. Setters write through to os.environ."""

	@property
	def strand_env(self) -> StrandEnv:
		value = os.environ.get(ENV_STRAND_ENV, "dev").strip().lower()
		if value not in ("dev", "prod"):
			raise ValueError(f"{ENV_STRAND_ENV} must be 'dev' or 'prod', got {value!r}")
		return cast(StrandEnv, value)

	@strand_env.setter
	def strand_env(self, value: StrandEnv) -> None:
		os.environ[ENV_STRAND_ENV] = value

	@property
	def debug(self) -> bool:
		"""Explicit STRAND_DEBUG, else true outside of prod."""
		flag = _get_flag(ENV_STRAND_DEBUG)
		if flag is None:
			return self.strand_env != "prod"
		return flag

	@debug.setter
	def debug(self, value: bool | None) -> None:
		_set_flag(ENV_STRAND_DEBUG, value)

	@property
	def debug_guard(self) -> str | None:
		return os.environ.get(ENV_STRAND_DEBUG_GUARD) or None

	@debug_guard.setter
	def debug_guard(self, value: str | None) -> None:
		_set_str(ENV_STRAND_DEBUG_GUARD, value)

	@property
	def warn_dynamic_props(self) -> bool:
		flag = _get_flag(ENV_STRAND_WARN_DYNAMIC_PROPS)
		return True if flag is None else flag

	@warn_dynamic_props.setter
	def warn_dynamic_props(self, value: bool | None) -> None:
		_set_flag(ENV_STRAND_WARN_DYNAMIC_PROPS, value)

	@property
	def runtime_module(self) -> str:
		return os.environ.get(ENV_STRAND_RUNTIME_MODULE) or "@strand/runtime"

	@runtime_module.setter
	def runtime_module(self, value: str | None) -> None:
		_set_str(ENV_STRAND_RUNTIME_MODULE, value)

	@property
	def react_module(self) -> str:
		return os.environ.get(ENV_STRAND_REACT_MODULE) or "react"

	@react_module.setter
	def react_module(self, value: str | None) -> None:
		_set_str(ENV_STRAND_REACT_MODULE, value)


env = Env()
