"""External JS primitives that generated code calls into."""

from __future__ import annotations

from strand.config import CompileOptions
from strand.imports import Import


class Runtime:
	"""Imports for the React API and the strand runtime support library.

	From React:
	- createElement(type, props, ...children)
	- Fragment

	From the runtime module:
	- dynamicElement(type, ...args): element creation with runtime props detection
	- extractProps(props): props object as seen by a component body
	- mergeProps(static, spread): static props with the spread object on top
	- toJs(value): deep conversion of Python-side structures (Map, arrays) to plain JS
	- createSignature(): hot-reload signature function
	- register(component, name): hot-reload registration
	"""

	__slots__ = (
		"createElement",
		"Fragment",
		"dynamicElement",
		"extractProps",
		"mergeProps",
		"toJs",
		"createSignature",
		"register",
	)

	createElement: Import
	Fragment: Import
	dynamicElement: Import
	extractProps: Import
	mergeProps: Import
	toJs: Import
	createSignature: Import
	register: Import

	def __init__(self, options: CompileOptions | None = None) -> None:
		options = options or CompileOptions()
		react = options.react_module
		rt = options.runtime_module
		self.createElement = Import("createElement", react)
		self.Fragment = Import("Fragment", react)
		self.dynamicElement = Import("dynamicElement", rt)
		self.extractProps = Import("extractProps", rt)
		self.mergeProps = Import("mergeProps", rt)
		self.toJs = Import("toJs", rt)
		self.createSignature = Import("createSignature", rt)
		self.register = Import("register", rt)
