"""
Pattern based hyphenation with minimum fragment rules.
"""

# PIP3 modules
import pyphen

# local repo modules
import bixolon_label_layout as bll
import bixolon_label_layout.config


SOFT_HYPHEN = bll.config.SOFT_HYPHEN
HYPHENATION_LANGUAGE = bll.config.HYPHENATION_LANGUAGE
MIN_HYPHENATION_WORD_LENGTH = bll.config.MIN_HYPHENATION_WORD_LENGTH
MIN_HYPHENATION_REMAINDER = bll.config.MIN_HYPHENATION_REMAINDER


class Hyphenator:
	"""
	Split words at language pattern break points.

	Break points come from the pyphen dictionary for the language, marked
	with a soft hyphen and then split apart.
	"""

	def __init__(
		self,
		lang: str = HYPHENATION_LANGUAGE,
		min_word_length: int = MIN_HYPHENATION_WORD_LENGTH,
		min_remainder: int = MIN_HYPHENATION_REMAINDER,
	):
		self.lang = lang
		self.min_word_length = min_word_length
		self.min_remainder = min_remainder
		self._dic = None

	@property
	def dictionary(self) -> pyphen.Pyphen:
		if self._dic is None:
			self._dic = pyphen.Pyphen(lang=self.lang)
		return self._dic

	#============================================
	def raw_parts(self, word: str) -> list[str]:
		"""
		Split a word at every pattern break point.

		Args:
			word: Single word without whitespace.

		Returns:
			Parts in order; a single part when the word is too short or has
			no break points.
		"""
		if len(word) < self.min_word_length:
			return [word]
		marked = self.dictionary.inserted(word, hyphen=SOFT_HYPHEN)
		parts = [part for part in marked.split(SOFT_HYPHEN) if part]
		if not parts:
			return [word]
		return parts

	#============================================
	def fragments(self, word: str) -> list[str]:
		"""
		Split a word into fragments that respect the minimum remainder.

		Every fragment except the last leaves at least `min_remainder`
		characters after it. Raw parts that would leave less are merged
		forward into the final fragment.

		Args:
			word: Single word without whitespace.

		Returns:
			Fragments concatenating to exactly `word`.
		"""
		parts = self.raw_parts(word)
		if len(parts) < 2:
			return [word]
		fragments: list[str] = []
		current = ""
		consumed = 0
		for index, part in enumerate(parts):
			current += part
			consumed += len(part)
			is_last = index == len(parts) - 1
			if is_last:
				break
			remainder = len(word) - consumed
			if remainder >= self.min_remainder:
				fragments.append(current)
				current = ""
		if current:
			fragments.append(current)
		if len(fragments) < 2:
			return [word]
		return fragments


#============================================
def hyphenate(word: str, hyphenator: Hyphenator | None = None) -> list[str]:
	"""
	Split a word into hyphenation fragments with the default language.
	"""
	if hyphenator is None:
		hyphenator = Hyphenator()
	return hyphenator.fragments(word)
