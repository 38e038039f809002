import json
import pathlib

import pytest

import bixolon_label_layout as bll
import bixolon_label_layout.cli
import bixolon_label_layout.errors


#============================================
def _write_layout(tmp_path: pathlib.Path) -> pathlib.Path:
	layout = {
		"widthMM": 58,
		"heightMM": 40,
		"objects": [
			{"type": "textbox", "text": "Price {{price}}", "width": 150, "fontSize": 10},
			{"type": "circle", "radius": 3},
		],
	}
	path = tmp_path / "label.json"
	path.write_text(json.dumps(layout), encoding="utf-8")
	return path


#============================================
def test_wrap_prints_lines(tmp_path: pathlib.Path, capsys: pytest.CaptureFixture) -> None:
	"""
	The wrap command prints one row per line with its width.
	"""
	argv = ["wrap", "the quick brown fox jumps over the lazy dog", "-w", "60", "-f", "10", "--fonts-dir", str(tmp_path)]
	assert bll.cli.main(argv) == 0
	out = capsys.readouterr().out
	assert "|the quick|" in out
	assert "|the lazy dog|" in out
	assert "Lines: 4" in out
	assert "Metrics: fallback table" in out


#============================================
def test_compile_prints_payload(tmp_path: pathlib.Path, capsys: pytest.CaptureFixture) -> None:
	"""
	The compile command prints the request body and reports skips.
	"""
	path = _write_layout(tmp_path)
	preview = tmp_path / "preview.pdf"
	argv = ["compile", str(path), "-s", "price=99", "--fonts-dir", str(tmp_path), "-p", str(preview)]
	assert bll.cli.main(argv) == 0
	captured = capsys.readouterr()
	payload = json.loads(captured.out)
	assert payload["id"] == 0
	texts = [item["params"].get("text") for item in payload["functions"]]
	assert "Price 99" in texts
	assert "circle" in captured.err
	assert preview.is_file()


#============================================
def test_bad_placeholder_option(tmp_path: pathlib.Path, capsys: pytest.CaptureFixture) -> None:
	"""
	Placeholder options without an equals sign fail cleanly.
	"""
	path = _write_layout(tmp_path)
	assert bll.cli.main(["compile", str(path), "-s", "price"]) == 1
	assert "key=value" in capsys.readouterr().err


#============================================
def test_missing_layout_file(tmp_path: pathlib.Path, capsys: pytest.CaptureFixture) -> None:
	"""
	A missing input file is reported with exit code 1.
	"""
	assert bll.cli.main(["compile", str(tmp_path / "none.json")]) == 1
	assert "Error" in capsys.readouterr().err


#============================================
def test_parse_placeholders() -> None:
	"""
	Values may contain equals signs after the first one.
	"""
	assert bll.cli.parse_placeholders(["a=1", "b=x=y"]) == {"a": "1", "b": "x=y"}
	assert bll.cli.parse_placeholders(None) == {}
	with pytest.raises(bll.errors.InputError):
		bll.cli.parse_placeholders(["=1"])
