"""
Glyph width measurement.

A measurer is bound to one font decision per layout call: either a loaded
font handle or the static fallback width table, never a mix of both.
"""

# Standard Library
import dataclasses

# local repo modules
import bixolon_label_layout as bll
import bixolon_label_layout.config
import bixolon_label_layout.fonts


FontHandle = bll.fonts.FontHandle

LINE_HEIGHT_FACTOR = bll.config.LINE_HEIGHT_FACTOR
UNKNOWN_GLYPH_WIDTH = bll.config.UNKNOWN_GLYPH_WIDTH
FALLBACK_BOLD_FACTOR = bll.config.FALLBACK_BOLD_FACTOR
FALLBACK_ITALIC_FACTOR = bll.config.FALLBACK_ITALIC_FACTOR

# Widths as a fraction of the font size.
CYRILLIC_WIDTHS = {
	"а": 0.45, "б": 0.45, "в": 0.45, "г": 0.35, "д": 0.45, "е": 0.45, "ё": 0.45,
	"ж": 0.65, "з": 0.45, "и": 0.45, "й": 0.45, "к": 0.45, "л": 0.45, "м": 0.65,
	"н": 0.45, "о": 0.45, "п": 0.45, "р": 0.45, "с": 0.45, "т": 0.45, "у": 0.45,
	"ф": 0.65, "х": 0.45, "ц": 0.45, "ч": 0.45, "ш": 0.65, "щ": 0.65, "ъ": 0.45,
	"ы": 0.65, "ь": 0.45, "э": 0.45, "ю": 0.65, "я": 0.45,
	"А": 0.6, "Б": 0.6, "В": 0.6, "Г": 0.5, "Д": 0.65, "Е": 0.6, "Ё": 0.6,
	"Ж": 0.8, "З": 0.6, "И": 0.65, "Й": 0.65, "К": 0.6, "Л": 0.65, "М": 0.8,
	"Н": 0.65, "О": 0.65, "П": 0.65, "Р": 0.6, "С": 0.6, "Т": 0.6, "У": 0.6,
	"Ф": 0.8, "Х": 0.6, "Ц": 0.65, "Ч": 0.6, "Ш": 0.8, "Щ": 0.85, "Ъ": 0.65,
	"Ы": 0.75, "Ь": 0.6, "Э": 0.6, "Ю": 0.85, "Я": 0.6,
	"-": 0.3,
}

LATIN_WIDTHS = {
	"a": 0.5, "b": 0.55, "c": 0.45, "d": 0.55, "e": 0.5, "f": 0.3,
	"g": 0.55, "h": 0.55, "i": 0.25, "j": 0.25, "k": 0.5, "l": 0.25,
	"m": 0.85, "n": 0.55, "o": 0.55, "p": 0.55, "q": 0.55, "r": 0.35,
	"s": 0.45, "t": 0.3, "u": 0.55, "v": 0.5, "w": 0.75, "x": 0.5,
	"y": 0.5, "z": 0.45,
	"A": 0.65, "B": 0.65, "C": 0.7, "D": 0.7, "E": 0.6, "F": 0.55,
	"G": 0.75, "H": 0.7, "I": 0.25, "J": 0.5, "K": 0.65, "L": 0.55,
	"M": 0.85, "N": 0.7, "O": 0.75, "P": 0.6, "Q": 0.75, "R": 0.65,
	"S": 0.6, "T": 0.6, "U": 0.7, "V": 0.65, "W": 0.95, "X": 0.65,
	"Y": 0.65, "Z": 0.6,
	"0": 0.55, "1": 0.35, "2": 0.55, "3": 0.55, "4": 0.55, "5": 0.55,
	"6": 0.55, "7": 0.55, "8": 0.55, "9": 0.55,
	".": 0.25, ",": 0.25, "!": 0.25, "?": 0.45, ":": 0.25, ";": 0.25,
	"_": 0.45, "(": 0.3, ")": 0.3, "[": 0.3, "]": 0.3,
	"{": 0.3, "}": 0.3, "<": 0.45, ">": 0.45, "=": 0.45, "+": 0.45,
	"*": 0.35, "/": 0.25, "\\": 0.25, "|": 0.15, "@": 0.8, "#": 0.55,
	"$": 0.55, "%": 0.85, "^": 0.45, "&": 0.65, "~": 0.45, "`": 0.25,
	"\"": 0.35, "'": 0.15, " ": 0.25,
}


@dataclasses.dataclass(frozen=True)
class FontMetrics:
	ascender: float
	descender: float
	line_gap: float | None = None

	def to_dict(self) -> dict:
		return {
			"ascender": self.ascender,
			"descender": self.descender,
			"lineGap": self.line_gap,
		}


#============================================
def fallback_char_width(char: str, bold: bool, italic: bool) -> float:
	"""
	Relative width of a character from the static tables.

	Args:
		char: Single character.
		bold: Bold flag.
		italic: Italic flag.

	Returns:
		Width as a fraction of the font size.
	"""
	width = CYRILLIC_WIDTHS.get(char)
	if width is None:
		width = LATIN_WIDTHS.get(char, UNKNOWN_GLYPH_WIDTH)
	if bold:
		width *= FALLBACK_BOLD_FACTOR
	if italic:
		width *= FALLBACK_ITALIC_FACTOR
	return width


class TextMeasurer:
	"""Measure strings at one font size against a font or the fallback table."""

	def __init__(self, font: FontHandle | None, font_size: float, bold: bool = False, italic: bool = False):
		self.font = font
		self.font_size = font_size
		self.bold = bold
		self.italic = italic

	@classmethod
	def for_font(cls, font: FontHandle | None, font_size: float, bold: bool = False, italic: bool = False):
		"""
		Build the measurer for one layout call.

		Args:
			font: Loaded font handle, or None for the fallback table.
			font_size: Font size.
			bold: Bold flag, only used by the fallback table.
			italic: Italic flag, only used by the fallback table.

		Returns:
			TextMeasurer.
		"""
		if font_size <= 0:
			raise ValueError(f"font size must be positive, got {font_size}")
		return cls(font, float(font_size), bold=bold, italic=italic)

	@property
	def uses_fallback(self) -> bool:
		return self.font is None

	#============================================
	def char_width(self, char: str) -> float:
		"""
		Width of a single character at the bound font size.
		"""
		if self.font is None:
			return fallback_char_width(char, self.bold, self.italic) * self.font_size
		advance = self.font.advance(char)
		if advance is None:
			return self.font_size * UNKNOWN_GLYPH_WIDTH
		return (advance / self.font.units_per_em) * self.font_size

	#============================================
	def measure(self, text: str) -> float:
		"""
		Width of a string, summed per character.

		Args:
			text: Text to measure.

		Returns:
			Width in the same unit as the font size.
		"""
		if not text:
			return 0.0
		total = 0.0
		for char in text:
			total += self.char_width(char)
		return total

	#============================================
	def line_height(self) -> float:
		"""
		Baseline-to-baseline distance for wrapped lines.
		"""
		if self.font is None:
			return self.font_size * LINE_HEIGHT_FACTOR
		ascent = self.font.ascender / self.font.units_per_em * self.font_size
		descent = abs(self.font.descender) / self.font.units_per_em * self.font_size
		return (ascent + descent) * LINE_HEIGHT_FACTOR

	#============================================
	def font_metrics(self) -> FontMetrics | None:
		"""
		Vertical metrics scaled to the font size, or None in fallback mode.
		"""
		if self.font is None:
			return None
		scale = self.font_size / self.font.units_per_em
		line_gap = None
		if self.font.line_gap is not None:
			line_gap = self.font.line_gap * scale
		return FontMetrics(
			ascender=self.font.ascender * scale,
			descender=self.font.descender * scale,
			line_gap=line_gap,
		)
