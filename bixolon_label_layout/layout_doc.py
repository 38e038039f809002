"""
Label layout documents.

A layout document is the JSON saved by the canvas editor: label size in
millimeters plus a list of canvas objects positioned in canvas units.
"""

# Standard Library
import copy
import dataclasses
import logging
import re

# local repo modules
import bixolon_label_layout as bll
import bixolon_label_layout.alignment
import bixolon_label_layout.config
import bixolon_label_layout.errors
import bixolon_label_layout.fonts
import bixolon_label_layout.hyphenation
import bixolon_label_layout.line_breaker


InputError = bll.errors.InputError
ElementConversionError = bll.errors.ElementConversionError
FontRegistry = bll.fonts.FontRegistry
Hyphenator = bll.hyphenation.Hyphenator
LayoutOptions = bll.line_breaker.LayoutOptions
TextRun = bll.line_breaker.TextRun
layout_text = bll.line_breaker.layout_text
ALIGNMENTS = bll.alignment.ALIGNMENTS
ALIGN_LEFT = bll.alignment.ALIGN_LEFT

DEFAULT_FONT_FAMILY = bll.config.DEFAULT_FONT_FAMILY
DEFAULT_FONT_SIZE = bll.config.DEFAULT_FONT_SIZE

TEXT_TYPES = ("text", "textbox", "i-text")
PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class LabelElement:
	kind: str
	left: float = 0.0
	top: float = 0.0
	width: float = 0.0
	height: float = 0.0
	scale_x: float = 1.0
	scale_y: float = 1.0
	angle: float = 0.0

	@property
	def scaled_width(self) -> float:
		return self.width * self.scale_x

	@property
	def scaled_height(self) -> float:
		return self.height * self.scale_y


@dataclasses.dataclass
class TextElement(LabelElement):
	text: str = ""
	font_size: float = DEFAULT_FONT_SIZE
	font_family: str = DEFAULT_FONT_FAMILY
	bold: bool = False
	italic: bool = False
	align: str = ALIGN_LEFT
	fill: str = "#000000"
	hyphenate: bool = True
	# set on the per-line elements produced by expand_text_elements
	wrapped: bool = False


@dataclasses.dataclass
class ImageElement(LabelElement):
	src: str = ""


@dataclasses.dataclass
class BarcodeElement(LabelElement):
	data: str = ""
	symbol: str = "CODE128"
	bar_height: float | None = None
	narrow_bar: int = 2
	wide_bar: int = 5
	hri_position: int = 3


@dataclasses.dataclass
class QRElement(LabelElement):
	data: str = ""
	ecc_level: str = "M"
	module_size: int = 5


@dataclasses.dataclass
class RectElement(LabelElement):
	stroke: str = "#000000"
	stroke_width: float = 1.0
	fill: str = ""


@dataclasses.dataclass
class UnsupportedElement(LabelElement):
	reason: str = ""


@dataclasses.dataclass
class LabelLayout:
	width_mm: float
	height_mm: float
	elements: list[LabelElement]
	created_at: str | None = None


#============================================
def read_number(obj: dict, key: str, default: float) -> float:
	"""
	Read a numeric field from a canvas object.

	Args:
		obj: Canvas object.
		key: Field name.
		default: Value when the field is absent or null.

	Returns:
		Float value.

	Raises:
		ElementConversionError: When the field is not numeric.
	"""
	value = obj.get(key)
	if value is None:
		return default
	if isinstance(value, bool):
		raise ElementConversionError(f"field {key!r} must be a number, got {value!r}")
	try:
		return float(value)
	except (TypeError, ValueError) as error:
		raise ElementConversionError(f"field {key!r} must be a number, got {value!r}") from error


#============================================
def require_text(obj: dict, *keys: str) -> str:
	"""
	Return the first present string field among `keys`.
	"""
	for key in keys:
		value = obj.get(key)
		if value is None:
			continue
		if isinstance(value, (int, float)) and not isinstance(value, bool):
			return str(value)
		if not isinstance(value, str):
			raise ElementConversionError(f"field {key!r} must be a string")
		return value
	raise ElementConversionError(f"missing required field {keys[0]!r}")


#============================================
def is_bold(font_weight) -> bool:
	if isinstance(font_weight, str):
		if font_weight.lower() == "bold":
			return True
		if not font_weight.isdigit():
			return False
		font_weight = int(font_weight)
	if isinstance(font_weight, (int, float)):
		return font_weight >= 600
	return False


#============================================
def base_fields(obj: dict) -> dict:
	return {
		"kind": str(obj.get("type", "")),
		"left": read_number(obj, "left", 0.0),
		"top": read_number(obj, "top", 0.0),
		"width": read_number(obj, "width", 0.0),
		"height": read_number(obj, "height", 0.0),
		"scale_x": read_number(obj, "scaleX", 1.0),
		"scale_y": read_number(obj, "scaleY", 1.0),
		"angle": read_number(obj, "angle", 0.0),
	}


#============================================
def parse_text_element(obj: dict) -> TextElement:
	fields = base_fields(obj)
	font_size = read_number(obj, "fontSize", DEFAULT_FONT_SIZE)
	if font_size <= 0:
		raise ElementConversionError(f"fontSize must be positive, got {font_size}")
	align = str(obj.get("textAlign") or ALIGN_LEFT).lower()
	if align not in ALIGNMENTS:
		align = ALIGN_LEFT
	return TextElement(
		text=require_text(obj, "text"),
		font_size=font_size,
		font_family=str(obj.get("fontFamily") or DEFAULT_FONT_FAMILY),
		bold=is_bold(obj.get("fontWeight")),
		italic=str(obj.get("fontStyle") or "").lower() in ("italic", "oblique"),
		align=align,
		fill=str(obj.get("fill") or "#000000"),
		hyphenate=bool(obj.get("hyphenate", True)),
		**fields,
	)


#============================================
def parse_rect_element(obj: dict) -> RectElement:
	if obj.get("width") is None or obj.get("height") is None:
		raise ElementConversionError("rect requires width and height")
	fill = obj.get("fill")
	return RectElement(
		stroke=str(obj.get("stroke") or "#000000"),
		stroke_width=read_number(obj, "strokeWidth", 1.0),
		fill=fill if isinstance(fill, str) else "",
		**base_fields(obj),
	)


#============================================
def parse_barcode_element(obj: dict) -> BarcodeElement:
	bar_height = None
	if obj.get("barcodeHeight") is not None:
		bar_height = read_number(obj, "barcodeHeight", 0.0)
	symbol = str(obj.get("symbol") or obj.get("format") or "CODE128")
	return BarcodeElement(
		data=require_text(obj, "data", "text"),
		symbol=symbol.upper().replace("-", "_"),
		bar_height=bar_height,
		narrow_bar=int(read_number(obj, "narrowBar", 2)),
		wide_bar=int(read_number(obj, "wideBar", 5)),
		hri_position=int(read_number(obj, "hriPosition", 3)),
		**base_fields(obj),
	)


#============================================
def parse_qr_element(obj: dict) -> QRElement:
	return QRElement(
		data=require_text(obj, "data", "text"),
		ecc_level=str(obj.get("eccLevel") or "M").upper(),
		module_size=int(read_number(obj, "size", 5)),
		**base_fields(obj),
	)


#============================================
def parse_image_element(obj: dict) -> ImageElement:
	src = obj.get("src") or ""
	if not isinstance(src, str):
		raise ElementConversionError("image src must be a string")
	return ImageElement(src=src, **base_fields(obj))


ELEMENT_PARSERS = {
	"text": parse_text_element,
	"textbox": parse_text_element,
	"i-text": parse_text_element,
	"rect": parse_rect_element,
	"barcode": parse_barcode_element,
	"qrcode": parse_qr_element,
	"image": parse_image_element,
}


#============================================
def parse_element(obj: dict) -> LabelElement:
	"""
	Convert one canvas object into a typed element.

	Unknown types become UnsupportedElement; malformed objects of a known
	type raise.

	Args:
		obj: Canvas object dict.

	Returns:
		LabelElement subclass instance.

	Raises:
		ElementConversionError: When a required field is missing or invalid.
	"""
	if not isinstance(obj, dict):
		raise ElementConversionError("canvas object must be a JSON object")
	kind = str(obj.get("type", ""))
	parser = ELEMENT_PARSERS.get(kind)
	if parser is None:
		return UnsupportedElement(kind=kind, reason=f"unsupported object type {kind!r}")
	return parser(obj)


#============================================
def validate_layout(data: dict) -> None:
	"""
	Check the label size fields of a layout document.

	Raises:
		InputError: When widthMM or heightMM is missing or not positive.
	"""
	if not isinstance(data, dict):
		raise InputError("layout data must be a JSON object")
	for key in ("widthMM", "heightMM"):
		value = data.get(key)
		if value is None or isinstance(value, bool):
			raise InputError("layout must contain widthMM and heightMM")
		try:
			number = float(value)
		except (TypeError, ValueError) as error:
			raise InputError(f"{key} must be a number") from error
		if number <= 0:
			raise InputError(f"{key} must be positive")
	objects = data.get("objects", [])
	if objects is not None and not isinstance(objects, list):
		raise InputError("objects must be a list")


#============================================
def parse_layout(data: dict) -> LabelLayout:
	"""
	Validate a layout document and parse its objects.

	Objects that fail to parse are kept as UnsupportedElement carrying the
	reason, so the compiler can report them without aborting.

	Args:
		data: Layout document.

	Returns:
		LabelLayout.
	"""
	validate_layout(data)
	elements: list[LabelElement] = []
	for index, obj in enumerate(data.get("objects") or []):
		try:
			elements.append(parse_element(obj))
		except ElementConversionError as error:
			kind = obj.get("type", "") if isinstance(obj, dict) else ""
			logger.warning("Object %d (%s) is malformed: %s", index, kind, error)
			elements.append(UnsupportedElement(kind=str(kind), reason=str(error)))
	return LabelLayout(
		width_mm=float(data["widthMM"]),
		height_mm=float(data["heightMM"]),
		elements=elements,
		created_at=data.get("createdAt"),
	)


#============================================
def substitute(text: str, values: dict) -> str:
	"""
	Replace every {{name}} token that has a value; keep the rest verbatim.
	"""
	def replace(match: re.Match) -> str:
		key = match.group(1)
		if key not in values:
			return match.group(0)
		return str(values[key])
	return PLACEHOLDER_PATTERN.sub(replace, text)


#============================================
def substitute_value(value, values: dict):
	if isinstance(value, str):
		return substitute(value, values)
	if isinstance(value, list):
		return [substitute_value(item, values) for item in value]
	if isinstance(value, dict):
		return {key: substitute_value(item, values) for key, item in value.items()}
	return value


#============================================
def replace_placeholders(data: dict, values: dict | None) -> dict:
	"""
	Fill {{name}} placeholders in every string field of every object.

	Args:
		data: Layout document; not modified.
		values: Placeholder values by name.

	Returns:
		Deep copy of the document with placeholders replaced.
	"""
	result = copy.deepcopy(data)
	if not values:
		return result
	objects = result.get("objects")
	if not isinstance(objects, list):
		return result
	result["objects"] = [substitute_value(obj, values) for obj in objects]
	logger.debug("Placeholders replaced: %s", sorted(values))
	return result


#============================================
def expand_text_element(
	element: TextElement,
	registry: FontRegistry | None,
	hyphenator: Hyphenator | None,
) -> list[TextElement]:
	"""
	Wrap one text element into one element per printed line.

	The wrap runs in unscaled canvas units, so scale factors only move the
	line offsets.

	Args:
		element: Text element to wrap.
		registry: Font source for measurement.
		hyphenator: Hyphenation source.

	Returns:
		Per-line text elements; blank lines keep their slot but are dropped.
	"""
	if element.wrapped or element.width <= 0:
		return [element]
	options = LayoutOptions(
		font_family=element.font_family,
		bold=element.bold,
		italic=element.italic,
		align=element.align,
		hyphenate=element.hyphenate,
	)
	run = TextRun(
		text=element.text,
		font_size=element.font_size,
		block_width=element.width,
		options=options,
	)
	result = layout_text(run, registry=registry, hyphenator=hyphenator)
	expanded = []
	for index, line in enumerate(result.lines):
		if not line.strip():
			continue
		top = element.top + index * result.line_height * element.scale_y
		expanded.append(dataclasses.replace(
			element,
			text=line,
			top=top,
			height=result.line_height,
			align=ALIGN_LEFT,
			wrapped=True,
		))
	return expanded


#============================================
def expand_text_elements(
	layout: LabelLayout,
	registry: FontRegistry | None = None,
	hyphenator: Hyphenator | None = None,
) -> LabelLayout:
	"""
	Return a copy of the layout with every text element split into lines.

	Args:
		layout: Parsed layout; not modified.
		registry: Font source for measurement.
		hyphenator: Hyphenation source.

	Returns:
		New LabelLayout.
	"""
	if hyphenator is None:
		hyphenator = Hyphenator()
	elements: list[LabelElement] = []
	for element in layout.elements:
		if isinstance(element, TextElement):
			elements.extend(expand_text_element(element, registry, hyphenator))
			continue
		elements.append(element)
	return dataclasses.replace(layout, elements=elements)
