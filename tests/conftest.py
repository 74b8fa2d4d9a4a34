import pytest
from strand.component import COMPONENTS
from strand.env import (
	ENV_STRAND_DEBUG,
	ENV_STRAND_DEBUG_GUARD,
	ENV_STRAND_ENV,
	ENV_STRAND_REACT_MODULE,
	ENV_STRAND_RUNTIME_MODULE,
	ENV_STRAND_WARN_DYNAMIC_PROPS,
)
from strand.hot_reload import HOT_RELOAD_REGISTRY


@pytest.fixture(autouse=True)
def _reset_registries(monkeypatch: pytest.MonkeyPatch):  # pyright: ignore[reportUnusedFunction]
	for name in (
		ENV_STRAND_ENV,
		ENV_STRAND_DEBUG,
		ENV_STRAND_DEBUG_GUARD,
		ENV_STRAND_WARN_DYNAMIC_PROPS,
		ENV_STRAND_RUNTIME_MODULE,
		ENV_STRAND_REACT_MODULE,
	):
		monkeypatch.delenv(name, raising=False)
	COMPONENTS.clear()
	HOT_RELOAD_REGISTRY.clear()
	yield
	COMPONENTS.clear()
	HOT_RELOAD_REGISTRY.clear()
