import textwrap
from pathlib import Path

from strand.cli import cli
from strand.version import __version__
from typer.testing import CliRunner

runner = CliRunner()

HELLO = """
from strand import component, h


@component
def Hello(*, name: str):
	return h("p", None, name)
"""

LOOSE = """
from strand import component, h


@component
def Loose(props):
	return h("div", props.extra)
"""

BROKEN = """
from strand import component, h


@component
def Broken(props):
	with open("x"):
		pass
	return h("div")
"""


def write_module(tmp_path: Path, name: str, source: str) -> Path:
	path = tmp_path / f"{name}.py"
	path.write_text(textwrap.dedent(source))
	return path


class TestCompile:
	def test_to_stdout(self, tmp_path: Path):
		path = write_module(tmp_path, "cli_stdout", HELLO)
		result = runner.invoke(cli, ["compile", str(path), "--release"])
		assert result.exit_code == 0, result.output
		assert "// Generated by strand from cli_stdout. Do not edit." in result.output
		assert "export const Hello = Hello_render;" in result.output
		assert "createSignature" not in result.output

	def test_debug_guard(self, tmp_path: Path):
		path = write_module(tmp_path, "cli_guard", HELLO)
		result = runner.invoke(
			cli, ["compile", str(path), "--debug", "--debug-guard", "import.meta.env.DEV"]
		)
		assert result.exit_code == 0, result.output
		assert (
			"const Hello_sig = import.meta.env.DEV ? createSignature() : null;" in result.output
		)

	def test_prod_env_disables_debug(self, tmp_path: Path):
		path = write_module(tmp_path, "cli_prod", HELLO)
		result = runner.invoke(cli, ["compile", str(path)], env={"STRAND_ENV": "prod"})
		assert result.exit_code == 0, result.output
		assert "Hello_sig" not in result.output

	def test_default_is_debug(self, tmp_path: Path):
		path = write_module(tmp_path, "cli_dev", HELLO)
		result = runner.invoke(cli, ["compile", str(path)])
		assert result.exit_code == 0, result.output
		assert 'register(Hello, "cli_dev:Hello");' in result.output

	def test_write_to_directory(self, tmp_path: Path):
		path = write_module(tmp_path, "cli_written", HELLO)
		out = tmp_path / "web"
		out.mkdir()

		result = runner.invoke(cli, ["compile", str(path), "-o", str(out), "--release"])
		assert result.exit_code == 0, result.output
		assert "Compiled 1 component(s)" in result.output
		assert (out / "cli_written.js").read_text().startswith("// Generated by strand")

		again = runner.invoke(cli, ["compile", str(path), "-o", str(out), "--release"])
		assert again.exit_code == 0, again.output
		assert "Up to date" in again.output

	def test_transpile_error_exits(self, tmp_path: Path):
		path = write_module(tmp_path, "cli_broken", BROKEN)
		result = runner.invoke(cli, ["compile", str(path)])
		assert result.exit_code == 1
		assert "Unsupported statement: With" in result.output

	def test_missing_file(self, tmp_path: Path):
		result = runner.invoke(cli, ["compile", str(tmp_path / "nope.py")])
		assert result.exit_code == 1
		assert "Could not load" in result.output

	def test_no_warn_dynamic(self, tmp_path: Path):
		path = write_module(tmp_path, "cli_quiet", LOOSE)
		result = runner.invoke(cli, ["compile", str(path), "--release", "--no-warn-dynamic"])
		assert result.exit_code == 0, result.output
		assert "Unable to determine props statically" not in result.output
		assert 'dynamicElement("div", props.extra)' in result.output


class TestCheck:
	def test_clean_module(self, tmp_path: Path):
		path = write_module(tmp_path, "cli_clean", HELLO)
		result = runner.invoke(cli, ["check", str(path)])
		assert result.exit_code == 0, result.output
		assert "no dynamic props" in result.output

	def test_reports_missed_optimizations(self, tmp_path: Path):
		path = write_module(tmp_path, "cli_loose", LOOSE)
		result = runner.invoke(cli, ["check", str(path)])
		assert result.exit_code == 0, result.output
		assert "Unable to determine props statically" in result.output
		assert "1 missed optimization(s)" in result.output

	def test_strict_fails(self, tmp_path: Path):
		path = write_module(tmp_path, "cli_strict", LOOSE)
		result = runner.invoke(cli, ["check", str(path), "--strict"])
		assert result.exit_code == 1


def test_version():
	result = runner.invoke(cli, ["version"])
	assert result.exit_code == 0
	assert result.output == f"{__version__}\n"
