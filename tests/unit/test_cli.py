"""
Command line entry point.
"""

import pytest

from lioncode.__main__ import main


@pytest.fixture
def source_file(tmp_path):
    def _write(text: str, name: str = "main.lion"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


class TestCli:
    def test_compiles_to_stdout(self, source_file, capsys):
        assert main([str(source_file("roar -Hello LMU!-"))]) == 0
        assert capsys.readouterr().out == 'console.log("Hello LMU!");\n'

    def test_output_file(self, source_file, tmp_path, capsys):
        out = tmp_path / "build" / "main.js"
        assert main([str(source_file("x = 2 * 3 roar x")), "-o", str(out)]) == 0
        assert out.read_text(encoding="utf-8") == "let x = 6;\nconsole.log(x);\n"
        assert capsys.readouterr().out == ""

    def test_no_optimize(self, source_file, capsys):
        assert main([str(source_file("roar 1 + 2")), "--no-optimize"]) == 0
        assert capsys.readouterr().out == "console.log((1 + 2));\n"

    @pytest.mark.parametrize("stage, prefix", [
        ("parse", "program"),
        ("ast", "(program"),
        ("optimized", "(program"),
    ])
    def test_emit_stage(self, source_file, capsys, stage, prefix):
        assert main([str(source_file("roar 1 + 2")), "--emit", stage]) == 0
        assert capsys.readouterr().out.startswith(prefix)

    def test_emit_optimized_shows_folding(self, source_file, capsys):
        main([str(source_file("roar 1 + 2")), "--emit", "optimized"])
        assert "(number-literal 3)" in capsys.readouterr().out

    def test_semantic_error(self, source_file, capsys):
        assert main([str(source_file("roar x"))]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "error[E0100]: Variable 'x' not declared" in captured.err
        assert "1 | roar x" in captured.err
        assert "aborting due to 1 previous error" in captured.err

    def test_syntax_error(self, source_file, capsys):
        assert main([str(source_file("x = = 1"))]) == 1
        assert "error[E0001]" in capsys.readouterr().err

    def test_unknown_target(self, source_file, capsys):
        assert main([str(source_file("roar 1")), "--target", "py"]) == 1
        assert "Unknown output type: py" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.lion")]) == 1
        assert "file not found" in capsys.readouterr().err

    def test_directory_is_rejected(self, tmp_path, capsys):
        assert main([str(tmp_path)]) == 1
        assert "not a file" in capsys.readouterr().err
