from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from strand.env import env


@dataclass(frozen=True, slots=True, kw_only=True)
class CompileOptions:
	"""Build-time settings for code generation.

	debug: emit hot-reload signatures, display names and registry calls.
	debug_guard: JS expression (e.g. `import.meta.env.DEV`) that additionally
		gates every debug side effect at load/call time.
	warn_dynamic_props: log a diagnostic when props fall back to runtime dispatch.
	"""

	debug: bool = True
	debug_guard: str | None = None
	warn_dynamic_props: bool = True
	react_module: str = "react"
	runtime_module: str = "@strand/runtime"

	@classmethod
	def from_env(cls, **overrides: Any) -> CompileOptions:
		"""Options from STRAND_* variables. Keyword overrides win when not None."""
		opts = cls(
			debug=env.debug,
			debug_guard=env.debug_guard,
			warn_dynamic_props=env.warn_dynamic_props,
			react_module=env.react_module,
			runtime_module=env.runtime_module,
		)
		given = {k: v for k, v in overrides.items() if v is not None}
		return replace(opts, **given) if given else opts

	def release(self) -> CompileOptions:
		return replace(self, debug=False)
