"""
Font resolution for text measurement.

Font files are registered with reportlab so the same face can be used for
measurement and for PDF previews.
"""

# Standard Library
import dataclasses
import logging
import os
import pathlib

# PIP3 modules
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfbase.ttfonts

# local repo modules
import bixolon_label_layout as bll
import bixolon_label_layout.errors


ResourceUnavailable = bll.errors.ResourceUnavailable

logger = logging.getLogger(__name__)

# reportlab normalizes every face to a 1000 unit em square
REPORTLAB_UNITS_PER_EM = 1000.0

FONT_FILES = {
	"Arial": "ARIAL.TTF",
	"Arial Bold": "ARIALBD.TTF",
	"Arial Italic": "ARIALI.TTF",
	"Arial Bold Italic": "ARIALBI.TTF",
	"Arial Narrow": "ARIALN.TTF",
	"Arial Narrow Bold": "ARIALNB.TTF",
	"Arial Narrow Bold Italic": "ARIALNBI.TTF",
	"Arial Narrow Italic": "ARIALNI.TTF",
	"Arial Black": "ARIBLK.TTF",
	"Courier New": "COUR.TTF",
	"Courier New Bold": "COURBD.TTF",
	"Courier New Bold Italic": "COURBI.TTF",
	"Courier New Italic": "COURI.TTF",
	"Georgia": "GEORGIA.TTF",
	"Georgia Bold": "GEORGIAB.TTF",
	"Georgia Italic": "GEORGIAI.TTF",
	"Georgia Bold Italic": "GEORGIAZ.TTF",
	"Helvetica": "helvetica_regular.otf",
	"Helvetica Bold": "helvetica_bold.otf",
	"Helvetica Italic": "helvetica_oblique.otf",
	"Helvetica Bold Italic": "helvetica_boldoblique.otf",
	"Helvetica Light": "helvetica_light.otf",
	"Helvetica Light Italic": "helvetica_lightoblique.otf",
	"Helvetica Cyrillic Italic": "helvetica_cyr_oblique.ttf",
	"Helvetica Cyrillic Bold Italic": "helvetica_cyr_boldoblique.ttf",
	"Times New Roman": "TIMES.TTF",
	"Times New Roman Bold": "TIMESBD.TTF",
	"Times New Roman Italic": "TIMESI.TTF",
	"Times New Roman Bold Italic": "TIMESBI.TTF",
	"Verdana": "VERDANA.TTF",
	"Verdana Bold": "VERDANAB.TTF",
	"Verdana Italic": "VERDANAI.TTF",
	"Verdana Bold Italic": "VERDANAZ.TTF",
}

FONT_FILE_SUFFIXES = (".ttf", ".otf")


@dataclasses.dataclass(frozen=True)
class FontHandle:
	name: str
	char_widths: dict[int, float]
	units_per_em: float
	ascender: float
	descender: float
	line_gap: float | None = None

	#============================================
	def advance(self, char: str) -> float | None:
		"""
		Look up the advance width of one character.

		Args:
			char: Single character.

		Returns:
			Advance in font units, or None when the font has no glyph for it.
		"""
		return self.char_widths.get(ord(char))


#============================================
def style_keys(family: str, bold: bool, italic: bool) -> list[str]:
	"""
	List the table keys to try for a family and style, most specific first.

	Args:
		family: Font family name.
		bold: Bold flag.
		italic: Italic flag.

	Returns:
		Candidate keys.
	"""
	keys: list[str] = []
	if bold and italic:
		keys.append(f"{family} Bold Italic")
	if bold:
		keys.append(f"{family} Bold")
	if italic:
		keys.append(f"{family} Italic")
	keys.append(family)
	return keys


#============================================
def is_font_path(family: str) -> bool:
	"""
	Check whether a family string is really a font file path.
	"""
	return family.lower().endswith(FONT_FILE_SUFFIXES)


#============================================
def load_font_handle(path: pathlib.Path, name: str) -> FontHandle:
	"""
	Load a font file, register it with reportlab and wrap its metrics.

	Args:
		path: Font file path.
		name: Registration name.

	Returns:
		FontHandle.

	Raises:
		ResourceUnavailable: When the file is missing or cannot be parsed.
	"""
	if not path.is_file():
		raise ResourceUnavailable(f"font file not found: {path}")
	try:
		font = reportlab.pdfbase.ttfonts.TTFont(name, str(path))
	except (reportlab.pdfbase.ttfonts.TTFError, OSError) as error:
		raise ResourceUnavailable(f"cannot load font {path}: {error}") from error
	reportlab.pdfbase.pdfmetrics.registerFont(font)
	face = font.face
	return FontHandle(
		name=name,
		char_widths=dict(face.charWidths),
		units_per_em=REPORTLAB_UNITS_PER_EM,
		ascender=float(face.ascent),
		descender=float(face.descent),
	)


class FontRegistry:
	"""Resolve family and style flags to loaded font handles."""

	def __init__(self, fonts_dir: str | os.PathLike, font_files: dict[str, str] | None = None):
		self.fonts_dir = pathlib.Path(fonts_dir)
		self.font_files = dict(FONT_FILES if font_files is None else font_files)
		self._cache: dict[str, FontHandle] = {}

	#============================================
	def find_path(self, family: str, bold: bool, italic: bool) -> tuple[str, pathlib.Path]:
		"""
		Pick the font file for a family and style.

		Args:
			family: Font family name or a font file path.
			bold: Bold flag.
			italic: Italic flag.

		Returns:
			Tuple of (style key, file path).

		Raises:
			ResourceUnavailable: When no table entry matches.
		"""
		for key in style_keys(family, bold, italic):
			filename = self.font_files.get(key)
			if filename is not None:
				return (key, self.fonts_dir / filename)
		if is_font_path(family):
			return (pathlib.Path(family).stem, pathlib.Path(family))
		raise ResourceUnavailable(f"font {family!r} not found, pass a .ttf path instead")

	#============================================
	def load(self, family: str, bold: bool, italic: bool) -> FontHandle:
		"""
		Resolve and load a font, raising when unavailable.
		"""
		key, path = self.find_path(family, bold, italic)
		cache_key = str(path)
		handle = self._cache.get(cache_key)
		if handle is None:
			handle = load_font_handle(path, key.replace(" ", "-"))
			self._cache[cache_key] = handle
			logger.debug("Font loaded: %s", path)
		return handle

	#============================================
	def resolve_font(self, family: str, bold: bool, italic: bool) -> FontHandle | None:
		"""
		Resolve a font, returning None when it cannot be loaded.

		Args:
			family: Font family name or a font file path.
			bold: Bold flag.
			italic: Italic flag.

		Returns:
			FontHandle or None.
		"""
		try:
			return self.load(family, bold, italic)
		except ResourceUnavailable as error:
			logger.warning("%s; using fallback metrics", error)
			return None
