"""strand: React function components written in Python, compiled to JavaScript."""

from strand import dom as dom
from strand.codegen import CompiledModule as CompiledModule
from strand.codegen import compile_component as compile_component
from strand.codegen import compile_module as compile_module
from strand.component import COMPONENTS as COMPONENTS
from strand.component import Component as Component
from strand.component import component as component
from strand.config import CompileOptions as CompileOptions
from strand.context import BuildContext as BuildContext
from strand.context import Diagnostic as Diagnostic
from strand.element import Element as Element
from strand.element import fragment as fragment
from strand.element import h as h
from strand.env import env as env
from strand.errors import TranspileError as TranspileError
from strand.hot_reload import HOT_RELOAD_REGISTRY as HOT_RELOAD_REGISTRY
from strand.imports import Import as Import
from strand.keys import camel_case as camel_case
from strand.version import __version__ as __version__
