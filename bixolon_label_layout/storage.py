"""
Flat-file JSON storage for layout documents.
"""

# Standard Library
import datetime
import json
import logging
import os
import pathlib
import re

# local repo modules
import bixolon_label_layout as bll
import bixolon_label_layout.errors


InputError = bll.errors.InputError

FILENAME_PATTERN = re.compile(r"[A-Za-z0-9_-]+(\.json)?")
LAYOUT_SUFFIX = ".json"

logger = logging.getLogger(__name__)


#============================================
def is_valid_filename(filename: str) -> bool:
	"""
	Check a layout filename against the allowed character set.
	"""
	if not isinstance(filename, str):
		return False
	return FILENAME_PATTERN.fullmatch(filename) is not None


class LayoutStore:
	"""
	Layout documents kept as one JSON file per name under a root folder.

	Every name is validated and its resolved path checked to stay inside
	the root before the filesystem is touched.
	"""

	def __init__(self, root: str | os.PathLike):
		self.root = pathlib.Path(root)

	#============================================
	def ensure_root(self) -> None:
		self.root.mkdir(parents=True, exist_ok=True)

	#============================================
	def resolve(self, filename: str) -> pathlib.Path:
		"""
		Map a filename to a path inside the root.

		Args:
			filename: Layout name with or without the .json suffix.

		Returns:
			Resolved file path.

		Raises:
			InputError: For invalid names or paths escaping the root.
		"""
		if not is_valid_filename(filename):
			raise InputError(f"invalid layout filename: {filename!r}")
		if not filename.endswith(LAYOUT_SUFFIX):
			filename += LAYOUT_SUFFIX
		root = self.root.resolve()
		path = (root / filename).resolve()
		if path.parent != root:
			raise InputError(f"layout path escapes the storage folder: {filename!r}")
		return path

	#============================================
	def save(self, name: str, data: dict) -> str:
		"""
		Write a layout document.

		Args:
			name: Layout name without suffix.
			data: Layout document.

		Returns:
			Stored filename.
		"""
		if not name:
			raise InputError("layout name is required")
		if not isinstance(data, dict):
			raise InputError("layout data must be an object")
		path = self.resolve(name)
		self.ensure_root()
		with open(path, "w", encoding="utf-8") as handle:
			json.dump(data, handle, ensure_ascii=False, indent=2)
		logger.info("Layout saved: %s", path.name)
		return path.name

	#============================================
	def load(self, filename: str) -> dict:
		"""
		Read a layout document.

		Raises:
			InputError: For invalid names or invalid JSON.
			FileNotFoundError: When the layout does not exist.
		"""
		path = self.resolve(filename)
		if not path.is_file():
			raise FileNotFoundError(f"layout not found: {path.name}")
		try:
			with open(path, "r", encoding="utf-8") as handle:
				return json.load(handle)
		except json.JSONDecodeError as error:
			raise InputError(f"layout file {path.name} contains invalid JSON: {error}") from error

	#============================================
	def delete(self, filename: str) -> None:
		path = self.resolve(filename)
		if not path.is_file():
			raise FileNotFoundError(f"layout not found: {path.name}")
		path.unlink()
		logger.info("Layout deleted: %s", path.name)

	#============================================
	def list_layouts(self) -> list[dict]:
		"""
		List stored layouts, newest first.

		Returns:
			Dicts with name, filename and createdAt (ISO modification time).
		"""
		if not self.root.is_dir():
			return []
		entries = []
		for path in self.root.iterdir():
			if not path.is_file() or path.suffix.lower() != LAYOUT_SUFFIX:
				continue
			mtime = path.stat().st_mtime
			entries.append((mtime, path))
		entries.sort(key=lambda entry: entry[0], reverse=True)
		layouts = []
		for mtime, path in entries:
			created = datetime.datetime.fromtimestamp(mtime, tz=datetime.timezone.utc)
			layouts.append({
				"name": path.stem,
				"filename": path.name,
				"createdAt": created.isoformat(),
			})
		return layouts
