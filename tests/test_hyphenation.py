import bixolon_label_layout as bll
import bixolon_label_layout.hyphenation


#============================================
class TableHyphenator(bll.hyphenation.Hyphenator):
	"""
	Hyphenator reading break points from a fixed table.
	"""

	def __init__(self, table: dict):
		super().__init__()
		self.table = table

	def raw_parts(self, word: str) -> list[str]:
		if len(word) < self.min_word_length:
			return [word]
		return list(self.table.get(word, [word]))


#============================================
def test_short_remainder_merges_forward() -> None:
	"""
	A break leaving fewer than three characters is dropped.
	"""
	hyphenator = TableHyphenator({"примеры": ["при", "мер", "ы"]})
	assert hyphenator.fragments("примеры") == ["при", "меры"]


#============================================
def test_fragments_concatenate_to_word() -> None:
	"""
	Fragments always rebuild the original word.
	"""
	hyphenator = TableHyphenator({"колокола": ["ко", "ло", "ко", "ла"]})
	fragments = hyphenator.fragments("колокола")
	assert fragments == ["ко", "ло", "кола"]
	assert "".join(fragments) == "колокола"


#============================================
def test_single_fragment_returns_word() -> None:
	"""
	Words whose only break is too close to the end stay whole.
	"""
	hyphenator = TableHyphenator({"тесты": ["тес", "ты"]})
	assert hyphenator.fragments("тесты") == ["тесты"]


#============================================
def test_short_words_never_split() -> None:
	"""
	Words under five characters skip the dictionary entirely.
	"""
	hyphenator = bll.hyphenation.Hyphenator()
	assert hyphenator.raw_parts("мама") == ["мама"]
	assert hyphenator.fragments("дом") == ["дом"]
	assert hyphenator._dic is None


#============================================
def test_russian_patterns_split_long_word() -> None:
	"""
	The Russian dictionary finds break points in a long word.
	"""
	word = "тестирования"
	fragments = bll.hyphenation.hyphenate(word)
	assert len(fragments) >= 2
	assert "".join(fragments) == word
	consumed = 0
	for fragment in fragments[:-1]:
		consumed += len(fragment)
		assert len(word) - consumed >= 3
