import pytest
from strand.keys import camel_case


class TestCamelCase:
	@pytest.mark.parametrize(
		"key,expected",
		[
			("http-equiv", "httpEquiv"),
			("accept-charset", "acceptCharset"),
			("font-size", "fontSize"),
			("stroke-dash-array", "strokeDashArray"),
			("on-CLICK", "onClick"),
			("Z-index", "ZIndex"),
		],
	)
	def test_hyphenated_keys(self, key: str, expected: str):
		assert camel_case(key) == expected

	@pytest.mark.parametrize("key", ["aria-label", "aria-described-by", "data-id", "data-test-id"])
	def test_aria_and_data_unchanged(self, key: str):
		assert camel_case(key) == key

	@pytest.mark.parametrize("key", ["class", "onClick", "className", ""])
	def test_single_segment_unchanged(self, key: str):
		assert camel_case(key) == key

	def test_idempotent_on_camel_cased(self):
		once = camel_case("http-equiv")
		assert camel_case(once) == once

	def test_non_string_keys_unchanged(self):
		assert camel_case(1) == 1
		assert camel_case(None) is None
		sentinel = object()
		assert camel_case(sentinel) is sentinel
