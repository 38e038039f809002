"""
Line breaking for label text blocks.

Text is split into paragraphs on newlines, words are packed greedily into
lines that fit the block width, oversized words are hyphenated at pattern
break points, and anything that still does not fit is split per character.
"""

# Standard Library
import dataclasses
import logging

# local repo modules
import bixolon_label_layout as bll
import bixolon_label_layout.alignment
import bixolon_label_layout.config
import bixolon_label_layout.fonts
import bixolon_label_layout.hyphenation
import bixolon_label_layout.metrics


FontRegistry = bll.fonts.FontRegistry
Hyphenator = bll.hyphenation.Hyphenator
TextMeasurer = bll.metrics.TextMeasurer
FontMetrics = bll.metrics.FontMetrics
align_lines = bll.alignment.align_lines
ALIGN_LEFT = bll.alignment.ALIGN_LEFT
ALIGN_CENTER = bll.alignment.ALIGN_CENTER
ALIGN_RIGHT = bll.alignment.ALIGN_RIGHT

DEFAULT_FONT_FAMILY = bll.config.DEFAULT_FONT_FAMILY
REBALANCE_WIDTH_RATIO = bll.config.REBALANCE_WIDTH_RATIO
MIN_HYPHENATION_WORD_LENGTH = bll.config.MIN_HYPHENATION_WORD_LENGTH

HYPHEN = "-"
PARAGRAPH_BREAK = ""

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class LayoutOptions:
	font_family: str = DEFAULT_FONT_FAMILY
	bold: bool = False
	italic: bool = False
	align: str = ALIGN_LEFT
	hyphenate: bool = True
	rebalance_when_hyphenating: bool = False


@dataclasses.dataclass(frozen=True)
class TextRun:
	text: str
	font_size: float
	block_width: float
	options: LayoutOptions = LayoutOptions()


@dataclasses.dataclass(frozen=True)
class LayoutLine:
	text: str
	width: float


@dataclasses.dataclass
class LineLayoutResult:
	lines: list[str]
	line_height: float
	font_size: float
	block_width: float
	hyphenate: bool
	font_metrics: FontMetrics | None = None
	widths: list[float] = dataclasses.field(default_factory=list)

	@property
	def layout_lines(self) -> list[LayoutLine]:
		return [LayoutLine(text, width) for text, width in zip(self.lines, self.widths)]

	def to_dict(self) -> dict:
		metrics = None
		if self.font_metrics is not None:
			metrics = self.font_metrics.to_dict()
		return {
			"lines": list(self.lines),
			"lineHeight": self.line_height,
			"fontSize": self.font_size,
			"blockWidth": self.block_width,
			"useHyphenation": self.hyphenate,
			"fontMetrics": metrics,
		}


#============================================
def split_words(paragraph: str) -> list[str]:
	"""
	Split a paragraph on runs of whitespace, dropping empty tokens.
	"""
	return paragraph.split()


#============================================
def split_by_characters(word: str, block_width: float, measurer: TextMeasurer) -> list[str]:
	"""
	Split a word into chunks that each fit the block width.

	A chunk always holds at least one character, so a block narrower than
	a single glyph still makes progress with one character per chunk.

	Args:
		word: Text to split.
		block_width: Maximum chunk width.
		measurer: Width source.

	Returns:
		Chunks in order.
	"""
	chunks: list[str] = []
	current = ""
	for char in word:
		candidate = current + char
		if current and measurer.measure(candidate) > block_width:
			chunks.append(current)
			current = char
			continue
		current = candidate
	if current:
		chunks.append(current)
	return chunks


class LineBreaker:
	"""Wrap text for one measurer and one set of options."""

	def __init__(self, measurer: TextMeasurer, block_width: float, hyphenator: Hyphenator, options: LayoutOptions):
		self.measurer = measurer
		self.block_width = block_width
		self.hyphenator = hyphenator
		self.options = options

	#============================================
	def fits(self, text: str) -> bool:
		return self.measurer.measure(text) <= self.block_width

	#============================================
	def break_text(self, text: str) -> list[str]:
		"""
		Wrap every paragraph and join them with blank boundary lines.

		Args:
			text: Source text, paragraphs separated by newlines.

		Returns:
			Wrapped lines before alignment.
		"""
		if not text:
			return []
		paragraphs = text.split("\n")
		lines: list[str] = []
		for index, paragraph in enumerate(paragraphs):
			lines.extend(self.break_paragraph(paragraph))
			if index < len(paragraphs) - 1:
				lines.append(PARAGRAPH_BREAK)
		if self.should_rebalance(lines):
			lines = self.rebalance(lines)
		return lines

	#============================================
	def break_paragraph(self, paragraph: str) -> list[str]:
		"""
		Greedy word wrap of one paragraph.
		"""
		lines: list[str] = []
		current = ""
		for word in split_words(paragraph):
			candidate = f"{current} {word}" if current else word
			if self.fits(candidate):
				current = candidate
				continue
			if current:
				lines.append(current)
				current = ""
			if self.fits(word):
				current = word
				continue
			current = self.place_oversized_word(word, lines)
		if current:
			lines.append(current)
		return lines

	#============================================
	def place_oversized_word(self, word: str, lines: list[str]) -> str:
		"""
		Break a word wider than the block across lines.

		Hyphenated head fragments are appended to `lines` with a literal
		hyphen. The tail that fits becomes the new current line.

		Args:
			word: Word wider than the block.
			lines: Output lines, extended in place.

		Returns:
			Text that starts the next current line, possibly empty.
		"""
		fragments = [word]
		if self.options.hyphenate and len(word) >= MIN_HYPHENATION_WORD_LENGTH:
			fragments = self.hyphenator.fragments(word)
		start = 0
		while start < len(fragments):
			rest = "".join(fragments[start:])
			if self.fits(rest):
				return rest
			end = self.longest_hyphenated_prefix(fragments, start)
			if end is None:
				break
			lines.append("".join(fragments[start:end]) + HYPHEN)
			start = end
		rest = "".join(fragments[start:])
		logger.debug("Character split for %r", rest)
		lines.extend(split_by_characters(rest, self.block_width, self.measurer))
		return ""

	#============================================
	def longest_hyphenated_prefix(self, fragments: list[str], start: int) -> int | None:
		"""
		Find how many fragments from `start` fit on one line with a hyphen.

		Args:
			fragments: Word fragments.
			start: Index of the first fragment not yet placed.

		Returns:
			End index (exclusive) of the longest fitting run, or None.
		"""
		best = None
		for end in range(start + 1, len(fragments)):
			head = "".join(fragments[start:end]) + HYPHEN
			if not self.fits(head):
				break
			best = end
		return best

	#============================================
	def should_rebalance(self, lines: list[str]) -> bool:
		if len(lines) < 2:
			return False
		if self.options.hyphenate:
			return self.options.rebalance_when_hyphenating
		return True

	#============================================
	def rebalance(self, lines: list[str]) -> list[str]:
		"""
		Pull a hyphenated head fragment up onto short lines.

		A line narrower than two thirds of the block takes the first
		fragment of the next line's first word, when that fragment fits
		together with a trailing hyphen.

		Args:
			lines: Wrapped lines.

		Returns:
			New list of lines.
		"""
		balanced = list(lines)
		threshold = self.block_width * REBALANCE_WIDTH_RATIO
		for index in range(len(balanced) - 1):
			current = balanced[index]
			following = balanced[index + 1]
			if not current or not following:
				continue
			if current.endswith(HYPHEN):
				continue
			if self.measurer.measure(current.lstrip()) >= threshold:
				continue
			words = split_words(following)
			if not words:
				continue
			first_word = words[0]
			if HYPHEN in first_word or len(first_word) < MIN_HYPHENATION_WORD_LENGTH:
				continue
			fragments = self.hyphenator.fragments(first_word)
			if len(fragments) < 2:
				continue
			candidate = f"{current} {fragments[0]}{HYPHEN}"
			if not self.fits(candidate):
				continue
			balanced[index] = candidate
			balanced[index + 1] = " ".join(["".join(fragments[1:])] + words[1:])
		return balanced


#============================================
def resolve_measurer(run: TextRun, registry: FontRegistry | None) -> TextMeasurer:
	"""
	Decide once between font metrics and the fallback table.
	"""
	options = run.options
	font = None
	if registry is not None:
		font = registry.resolve_font(options.font_family, options.bold, options.italic)
	return TextMeasurer.for_font(font, run.font_size, bold=options.bold, italic=options.italic)


#============================================
def layout_text(run: TextRun, registry: FontRegistry | None = None, hyphenator: Hyphenator | None = None) -> LineLayoutResult:
	"""
	Wrap a text run into printable lines.

	Args:
		run: Text, size, block width and style options.
		registry: Font source; None measures with the fallback table.
		hyphenator: Hyphenation source; defaults to the Russian patterns.

	Returns:
		LineLayoutResult.
	"""
	if run.block_width <= 0:
		raise ValueError(f"block width must be positive, got {run.block_width}")
	if hyphenator is None:
		hyphenator = Hyphenator()
	measurer = resolve_measurer(run, registry)
	breaker = LineBreaker(measurer, run.block_width, hyphenator, run.options)
	lines = breaker.break_text(run.text)
	lines = align_lines(lines, run.block_width, measurer, run.options.align)
	return LineLayoutResult(
		lines=lines,
		line_height=measurer.line_height(),
		font_size=run.font_size,
		block_width=run.block_width,
		hyphenate=run.options.hyphenate,
		font_metrics=measurer.font_metrics(),
		widths=[measurer.measure(line) for line in lines],
	)


#============================================
def calculate_text_layout(
	text: str,
	font_size: float,
	block_width: float,
	bold: bool = False,
	italic: bool = False,
	centered: bool = False,
	font_family: str = DEFAULT_FONT_FAMILY,
	hyphenate: bool = True,
	right: bool = False,
	registry: FontRegistry | None = None,
	hyphenator: Hyphenator | None = None,
) -> LineLayoutResult:
	"""
	Flat-argument wrapper around layout_text.
	"""
	align = ALIGN_LEFT
	if centered:
		align = ALIGN_CENTER
	elif right:
		align = ALIGN_RIGHT
	options = LayoutOptions(
		font_family=font_family,
		bold=bold,
		italic=italic,
		align=align,
		hyphenate=hyphenate,
	)
	run = TextRun(text=text, font_size=font_size, block_width=block_width, options=options)
	return layout_text(run, registry=registry, hyphenator=hyphenator)
