"""Tests for the ``python -m zemscript`` command line."""

import pytest
from zemscript.__main__ import main
from zemscript.config import ZEMSCRIPT_CONFIG


FACT = """\
fact = function(n) {
    if (n <= 1) { return 1; }
    return n * fact(n - 1);
};
println('fact(5) = ', fact(5));
x = fact(6);
"""


@pytest.fixture
def script(tmp_path):
    def _make(text, name="script.zem"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _make


@pytest.fixture(autouse=True)
def no_env_config(monkeypatch):
    monkeypatch.delenv(ZEMSCRIPT_CONFIG, raising=False)


class TestRun:
    """The run command."""

    def test_run(self, script, capsys):
        assert main(["run", script(FACT)]) == 0
        assert capsys.readouterr().out == "fact(5) = 120\n"

    def test_print_result(self, script, capsys):
        assert main(["run", script(FACT), "--print-result"]) == 0
        assert capsys.readouterr().out.splitlines()[-1] == "720"

    def test_runtime_error(self, script, capsys):
        assert main(["run", script("x = 1;\ny = missing;\n")]) == 1
        err = capsys.readouterr().err
        assert "error[E401]" in err
        assert "y = missing;" in err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["run", str(tmp_path / "nope.zem")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_config_file(self, script, tmp_path, capsys):
        config = tmp_path / "limits.yaml"
        config.write_text("max_exponent: 3\n", encoding="utf-8")
        assert main(["run", script("x = 2 ^ 4;"), "--config", str(config)]) == 1
        assert "out of range" in capsys.readouterr().err

    def test_invalid_config(self, script, tmp_path, capsys):
        config = tmp_path / "bad.yaml"
        config.write_text("max_call_depth: -1\n", encoding="utf-8")
        assert main(["run", script("x = 1;"), "-c", str(config)]) == 1
        assert "invalid configuration" in capsys.readouterr().err

    def test_config_from_environment(self, script, tmp_path, monkeypatch, capsys):
        config = tmp_path / "env.yaml"
        config.write_text("load_builtins: false\n", encoding="utf-8")
        monkeypatch.setenv(ZEMSCRIPT_CONFIG, str(config))
        assert main(["run", script("println('hi');")]) == 1
        assert "undeclared function 'println'" in capsys.readouterr().err

    def test_bad_log_level(self, script):
        with pytest.raises(SystemExit):
            main(["run", script("x = 1;"), "--log-level", "chatty"])


class TestCheck:
    """The check command."""

    def test_ok(self, script, capsys):
        assert main(["check", script(FACT, "fact.zem")]) == 0
        assert capsys.readouterr().out.strip() == "OK: fact.zem - 3 statement(s), no errors"

    def test_syntax_error(self, script, capsys):
        assert main(["check", script("x = (1;\n")]) == 1
        err = capsys.readouterr().err
        assert "error[E101]" in err
        assert "1 error(s)" in err

    def test_does_not_run(self, script, capsys):
        """Runtime problems are not reported by check."""
        assert main(["check", script("x = missing;")]) == 0


class TestPrinters:
    """The sexpr and fmt commands."""

    def test_sexpr(self, script, capsys):
        assert main(["sexpr", script("n = 2 + 2 * 3; f();")]) == 0
        assert capsys.readouterr().out.splitlines() == ["(set! n (+ 2 (* 2 3)))", "(f)"]

    def test_fmt(self, script, capsys):
        assert main(["fmt", script("if (a) { b = 1 + 2; }")]) == 0
        assert capsys.readouterr().out == "if (a) {\n    b = (1 + 2);\n}\n"

    def test_fmt_parse_error(self, script, capsys):
        assert main(["fmt", script("if a")]) == 1
        assert "error[E101]" in capsys.readouterr().err


class TestUsage:
    """Argument parsing."""

    def test_requires_command(self):
        with pytest.raises(SystemExit):
            main([])
