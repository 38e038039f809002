import os
import pathlib

import pytest

import bixolon_label_layout as bll
import bixolon_label_layout.errors
import bixolon_label_layout.storage


LAYOUT = {"widthMM": 58, "heightMM": 40, "objects": [{"type": "textbox", "text": "Мёд"}]}


#============================================
def test_save_load_delete(tmp_path: pathlib.Path) -> None:
	"""
	A saved layout loads back unchanged and can be deleted.
	"""
	store = bll.storage.LayoutStore(tmp_path / "layouts")
	filename = store.save("honey_58x40", LAYOUT)
	assert filename == "honey_58x40.json"
	assert store.load("honey_58x40.json") == LAYOUT
	assert store.load("honey_58x40") == LAYOUT
	text = (tmp_path / "layouts" / filename).read_text(encoding="utf-8")
	assert "Мёд" in text
	store.delete(filename)
	with pytest.raises(FileNotFoundError):
		store.load(filename)
	with pytest.raises(FileNotFoundError):
		store.delete(filename)


#============================================
def test_traversal_rejected_before_write(tmp_path: pathlib.Path) -> None:
	"""
	Names with path parts never reach the filesystem.
	"""
	root = tmp_path / "layouts"
	store = bll.storage.LayoutStore(root)
	for name in ("../evil", "..", "a/b", "a.b", "evil.json/x", ""):
		with pytest.raises(bll.errors.InputError):
			store.save(name, LAYOUT)
	assert not root.exists()
	assert not (tmp_path / "evil.json").exists()
	with pytest.raises(bll.errors.InputError):
		store.load("../../etc/passwd")


#============================================
def test_filename_pattern() -> None:
	"""
	Only letters, digits, underscore and dash are allowed, plus .json.
	"""
	assert bll.storage.is_valid_filename("Label-1_a")
	assert bll.storage.is_valid_filename("Label-1_a.json")
	assert not bll.storage.is_valid_filename("label.txt")
	assert not bll.storage.is_valid_filename("метка")
	assert not bll.storage.is_valid_filename(None)


#============================================
def test_list_newest_first(tmp_path: pathlib.Path) -> None:
	"""
	Listing is ordered by modification time, newest first.
	"""
	store = bll.storage.LayoutStore(tmp_path)
	for index, name in enumerate(("old", "middle", "new")):
		store.save(name, LAYOUT)
		stamp = 1700000000 + index * 60
		os.utime(tmp_path / f"{name}.json", (stamp, stamp))
	(tmp_path / "notes.txt").write_text("skip me", encoding="utf-8")
	layouts = store.list_layouts()
	assert [entry["name"] for entry in layouts] == ["new", "middle", "old"]
	assert layouts[0]["filename"] == "new.json"
	assert layouts[-1]["createdAt"].startswith("2023-11-14T22:13:20")


#============================================
def test_list_missing_root(tmp_path: pathlib.Path) -> None:
	"""
	A store that was never written to lists nothing.
	"""
	assert bll.storage.LayoutStore(tmp_path / "none").list_layouts() == []


#============================================
def test_invalid_json_is_input_error(tmp_path: pathlib.Path) -> None:
	"""
	A corrupt layout file is reported, not crashed on.
	"""
	(tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
	store = bll.storage.LayoutStore(tmp_path)
	with pytest.raises(bll.errors.InputError):
		store.load("broken")


#============================================
def test_non_object_layout_rejected(tmp_path: pathlib.Path) -> None:
	"""
	Only JSON objects are stored.
	"""
	store = bll.storage.LayoutStore(tmp_path)
	with pytest.raises(bll.errors.InputError):
		store.save("list", [1, 2])
	assert store.list_layouts() == []
