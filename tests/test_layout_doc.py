import pytest

import bixolon_label_layout as bll
import bixolon_label_layout.errors
import bixolon_label_layout.hyphenation
import bixolon_label_layout.layout_doc


PANGRAM = "the quick brown fox jumps over the lazy dog"


#============================================
class NoBreakHyphenator(bll.hyphenation.Hyphenator):
	"""
	Hyphenator that never finds a break point.
	"""

	def raw_parts(self, word: str) -> list[str]:
		return [word]


#============================================
def _document(*objects) -> dict:
	return {"widthMM": 58, "heightMM": 40, "objects": list(objects)}


#============================================
def test_placeholder_replaced() -> None:
	"""
	Known placeholders are substituted in text fields.
	"""
	data = _document({"type": "textbox", "text": "Мёд {{sort}}"})
	result = bll.layout_doc.replace_placeholders(data, {"sort": "Липовый"})
	assert result["objects"][0]["text"] == "Мёд Липовый"
	# the source document is untouched
	assert data["objects"][0]["text"] == "Мёд {{sort}}"


#============================================
def test_unresolved_placeholder_kept() -> None:
	"""
	Placeholders without a value stay literal.
	"""
	data = _document({"type": "textbox", "text": "Мёд {{sort}}"})
	assert bll.layout_doc.replace_placeholders(data, {})["objects"][0]["text"] == "Мёд {{sort}}"
	result = bll.layout_doc.replace_placeholders(data, {"price": 10})
	assert result["objects"][0]["text"] == "Мёд {{sort}}"


#============================================
def test_placeholders_in_every_string_field() -> None:
	"""
	Barcode data and nested values are substituted too; numbers are stringified.
	"""
	data = _document(
		{"type": "barcode", "data": "{{code}}", "meta": {"note": "{{code}}-{{n}}"}},
		{"type": "textbox", "text": "{{n}} шт", "fontSize": 12},
	)
	result = bll.layout_doc.replace_placeholders(data, {"code": "4006381333931", "n": 5})
	assert result["objects"][0]["data"] == "4006381333931"
	assert result["objects"][0]["meta"]["note"] == "4006381333931-5"
	assert result["objects"][1]["text"] == "5 шт"
	assert result["objects"][1]["fontSize"] == 12


#============================================
def test_validate_layout_rejects_missing_size() -> None:
	"""
	Label size must be present and positive.
	"""
	with pytest.raises(bll.errors.InputError):
		bll.layout_doc.validate_layout({"heightMM": 40, "objects": []})
	with pytest.raises(bll.errors.InputError):
		bll.layout_doc.validate_layout({"widthMM": 0, "heightMM": 40})
	with pytest.raises(bll.errors.InputError):
		bll.layout_doc.validate_layout({"widthMM": 58, "heightMM": 40, "objects": "x"})
	with pytest.raises(bll.errors.InputError):
		bll.layout_doc.validate_layout([])
	bll.layout_doc.validate_layout(_document())


#============================================
def test_parse_layout_element_types() -> None:
	"""
	Canvas objects become typed elements; unknown types are kept as unsupported.
	"""
	layout = bll.layout_doc.parse_layout(_document(
		{"type": "textbox", "text": "a", "fontWeight": "bold", "fontStyle": "italic", "textAlign": "center"},
		{"type": "rect", "width": 10, "height": 5},
		{"type": "barcode", "data": "123", "symbol": "ean-13"},
		{"type": "qrcode", "data": "x", "eccLevel": "h"},
		{"type": "image", "src": "data:image/png;base64,AAAA"},
		{"type": "circle", "radius": 3},
	))
	kinds = [type(element).__name__ for element in layout.elements]
	assert kinds == [
		"TextElement", "RectElement", "BarcodeElement",
		"QRElement", "ImageElement", "UnsupportedElement",
	]
	text = layout.elements[0]
	assert text.bold and text.italic
	assert text.align == "center"
	assert layout.elements[2].symbol == "EAN_13"
	assert layout.elements[3].ecc_level == "H"
	assert layout.width_mm == 58.0


#============================================
def test_malformed_objects_become_unsupported() -> None:
	"""
	A bad object is reported with its reason instead of failing the layout.
	"""
	layout = bll.layout_doc.parse_layout(_document(
		{"type": "textbox"},
		{"type": "rect", "width": 10},
		{"type": "textbox", "text": "ok", "left": "far"},
	))
	reasons = [element.reason for element in layout.elements]
	assert all(isinstance(element, bll.layout_doc.UnsupportedElement) for element in layout.elements)
	assert "text" in reasons[0]
	assert "width and height" in reasons[1]
	assert "left" in reasons[2]


#============================================
def test_font_weight_threshold() -> None:
	"""
	Weights of 600 and above count as bold.
	"""
	assert bll.layout_doc.is_bold(600)
	assert bll.layout_doc.is_bold("700")
	assert bll.layout_doc.is_bold("bold")
	assert not bll.layout_doc.is_bold(400)
	assert not bll.layout_doc.is_bold("normal")
	assert not bll.layout_doc.is_bold(None)


#============================================
def test_expand_text_into_lines() -> None:
	"""
	A text box becomes one element per line, one line height apart.
	"""
	layout = bll.layout_doc.parse_layout(_document(
		{"type": "textbox", "text": PANGRAM, "left": 10, "top": 10, "width": 60, "fontSize": 10},
	))
	expanded = bll.layout_doc.expand_text_elements(layout, hyphenator=NoBreakHyphenator())
	texts = [element.text for element in expanded.elements]
	tops = [element.top for element in expanded.elements]
	assert texts == ["the quick", "brown fox", "jumps over", "the lazy dog"]
	assert tops == pytest.approx([10, 22, 34, 46])
	assert all(element.wrapped for element in expanded.elements)
	assert all(element.left == 10 for element in expanded.elements)
	# the parsed layout is not changed
	assert len(layout.elements) == 1


#============================================
def test_expand_scaled_text_keeps_blank_slots() -> None:
	"""
	Blank lines are dropped but still move the following lines down.
	"""
	layout = bll.layout_doc.parse_layout(_document(
		{"type": "textbox", "text": "ab\n\ncd", "top": 10, "width": 100, "fontSize": 10, "scaleY": 2},
		{"type": "text", "text": "free", "top": 0},
	))
	expanded = bll.layout_doc.expand_text_elements(layout, hyphenator=NoBreakHyphenator())
	assert [element.text for element in expanded.elements] == ["ab", "cd", "free"]
	assert expanded.elements[1].top == pytest.approx(10 + 3 * 12 * 2)
	# no width, no wrapping
	assert expanded.elements[2].wrapped is False


#============================================
def test_expanded_centered_text_is_padded() -> None:
	"""
	Centered boxes print left aligned lines with leading spaces.
	"""
	layout = bll.layout_doc.parse_layout(_document(
		{"type": "textbox", "text": "aa", "width": 100, "fontSize": 10, "textAlign": "center"},
	))
	expanded = bll.layout_doc.expand_text_elements(layout, hyphenator=NoBreakHyphenator())
	element = expanded.elements[0]
	assert element.text == " " * 18 + "aa"
	assert element.align == "left"


#============================================
def test_non_positive_font_size_is_unsupported() -> None:
	"""
	Text with a zero or negative font size is reported, not measured.
	"""
	layout = bll.layout_doc.parse_layout(_document(
		{"type": "textbox", "text": "a", "fontSize": 0},
		{"type": "textbox", "text": "b", "fontSize": -3},
	))
	assert all(isinstance(element, bll.layout_doc.UnsupportedElement) for element in layout.elements)
	assert "fontSize" in layout.elements[1].reason
