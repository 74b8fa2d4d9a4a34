"""Python-side hot-reload bookkeeping.

Each compiled component owns a Signature: its identity across reloads plus
the ordered hook list the JS signature function receives. The process-wide
HOT_RELOAD_REGISTRY maps qualified names to the latest entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
	from strand.component import Component


@dataclass(slots=True)
class Signature:
	qualified_name: str
	# JS binding of the signature function in the generated module
	binding: str
	hooks: tuple[str, ...] | None = None

	@property
	def populated(self) -> bool:
		return self.hooks is not None

	def populate(self, hooks: list[str]) -> None:
		if self.hooks is not None:
			raise RuntimeError(f"Signature for {self.qualified_name} is already populated")
		self.hooks = tuple(hooks)

	@property
	def fingerprint(self) -> str:
		if self.hooks is None:
			raise RuntimeError(f"Signature for {self.qualified_name} is not populated")
		return "".join(self.hooks)


@dataclass(slots=True, frozen=True)
class RegistryEntry:
	component: Component
	signature: Signature


@dataclass(slots=True)
class HotReloadRegistry:
	"""Qualified name -> latest RegistryEntry. Entries are never removed."""

	entries: dict[str, RegistryEntry] = field(default_factory=dict)

	def register(self, name: str, entry: RegistryEntry) -> None:
		self.entries[name] = entry

	def get(self, name: str) -> RegistryEntry | None:
		return self.entries.get(name)

	def __contains__(self, name: object) -> bool:
		return name in self.entries

	def __len__(self) -> int:
		return len(self.entries)

	def clear(self) -> None:
		"""Reset for test isolation."""
		self.entries.clear()


HOT_RELOAD_REGISTRY = HotReloadRegistry()
