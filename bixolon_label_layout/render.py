"""
PDF preview of a compiled label.

The preview uses the same wrapped lines as the printer, drawn on a page
the size of the label, so layout problems show up before anything is
printed.
"""

# Standard Library
import io
import pathlib

# PIP3 modules
import PIL.Image
import reportlab.graphics.renderPDF
import reportlab.lib.utils
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfgen.canvas

# local repo modules
import bixolon_label_layout as bll
import bixolon_label_layout.barcode
import bixolon_label_layout.commands
import bixolon_label_layout.compiler
import bixolon_label_layout.config
import bixolon_label_layout.errors
import bixolon_label_layout.fonts
import bixolon_label_layout.hyphenation
import bixolon_label_layout.layout_doc


InputError = bll.errors.InputError
ElementConversionError = bll.errors.ElementConversionError
PrinterConfig = bll.config.PrinterConfig
MM_PER_INCH = bll.config.MM_PER_INCH
POINTS_PER_INCH = bll.config.POINTS_PER_INCH
FontRegistry = bll.fonts.FontRegistry
Hyphenator = bll.hyphenation.Hyphenator
LabelLayout = bll.layout_doc.LabelLayout
TextElement = bll.layout_doc.TextElement
ImageElement = bll.layout_doc.ImageElement
BarcodeElement = bll.layout_doc.BarcodeElement
QRElement = bll.layout_doc.QRElement
RectElement = bll.layout_doc.RectElement
parse_layout = bll.layout_doc.parse_layout
expand_text_elements = bll.layout_doc.expand_text_elements
decode_data_url = bll.compiler.decode_data_url
normalize_symbol = bll.commands.normalize_symbol
SYMBOL_BCIDS = bll.barcode.SYMBOL_BCIDS
build_barcode_drawing = bll.barcode.build_barcode_drawing

DEFAULT_FONT_REGULAR = "Helvetica"
DEFAULT_FONT_BOLD = "Helvetica-Bold"
DEFAULT_FONT_ITALIC = "Helvetica-Oblique"
DEFAULT_FONT_BOLD_ITALIC = "Helvetica-BoldOblique"
PLACEHOLDER_FONT_SIZE = 6.0


#============================================
def parse_hex_color(value: str) -> tuple[float, float, float]:
	"""
	Parse a hex color string into RGB floats.

	Args:
		value: Color string like "#AABBCC" or "#ABC".

	Returns:
		Tuple of (r, g, b) in 0.0-1.0 range, black when unparseable.
	"""
	if not value or not value.startswith("#"):
		return (0.0, 0.0, 0.0)
	digits = value[1:]
	if len(digits) == 3:
		digits = "".join(char * 2 for char in digits)
	if len(digits) != 6:
		return (0.0, 0.0, 0.0)
	try:
		red = int(digits[0:2], 16) / 255.0
		green = int(digits[2:4], 16) / 255.0
		blue = int(digits[4:6], 16) / 255.0
	except ValueError:
		return (0.0, 0.0, 0.0)
	return (red, green, blue)


#============================================
def map_font_name(font_name: str, bold: bool, italic: bool, registry: FontRegistry | None) -> str:
	"""
	Pick the PDF font for a text element.

	A font the registry can load is registered with reportlab under its
	handle name; otherwise the Helvetica family stands in.

	Args:
		font_name: Font family.
		bold: Bold flag.
		italic: Italic flag.
		registry: Font source or None.

	Returns:
		ReportLab font name.
	"""
	if registry is not None:
		handle = registry.resolve_font(font_name, bold, italic)
		if handle is not None:
			return handle.name
	if italic and bold:
		return DEFAULT_FONT_BOLD_ITALIC
	if italic:
		return DEFAULT_FONT_ITALIC
	if bold:
		return DEFAULT_FONT_BOLD
	return DEFAULT_FONT_REGULAR


class PreviewCanvas:
	"""Map canvas units to PDF points for one label page."""

	def __init__(self, pdf: reportlab.pdfgen.canvas.Canvas, page_height: float, config: PrinterConfig):
		self.pdf = pdf
		self.page_height = page_height
		self.scale_x = config.dots_per_pixel_x * POINTS_PER_INCH / config.dpi
		self.scale_y = config.dots_per_pixel_y * POINTS_PER_INCH / config.dpi

	def x(self, value: float) -> float:
		return value * self.scale_x

	def top(self, value: float) -> float:
		return self.page_height - value * self.scale_y

	def width(self, value: float) -> float:
		return value * self.scale_x

	def height(self, value: float) -> float:
		return value * self.scale_y


#============================================
def draw_text_element(view: PreviewCanvas, element: TextElement, registry: FontRegistry | None) -> None:
	"""
	Draw one wrapped text line.

	Args:
		view: Preview canvas.
		element: Per-line text element.
		registry: Font source or None.
	"""
	font_name = map_font_name(element.font_family, element.bold, element.italic, registry)
	font_size = view.height(element.font_size * element.scale_y)
	pdf = view.pdf
	pdf.setFont(font_name, font_size)
	color = parse_hex_color(element.fill)
	pdf.setFillColorRGB(color[0], color[1], color[2])
	ascent = reportlab.pdfbase.pdfmetrics.getAscent(font_name, font_size)
	baseline = view.top(element.top) - ascent
	pdf.drawString(view.x(element.left), baseline, element.text)


#============================================
def draw_rect_element(view: PreviewCanvas, element: RectElement) -> None:
	"""
	Draw a rectangle outline, filled when the element has a fill color.
	"""
	pdf = view.pdf
	width = view.width(element.scaled_width)
	height = view.height(element.scaled_height)
	stroke = parse_hex_color(element.stroke)
	pdf.setStrokeColorRGB(stroke[0], stroke[1], stroke[2])
	pdf.setLineWidth(max(0.1, view.width(element.stroke_width)))
	fill = 0
	if element.fill.startswith("#"):
		color = parse_hex_color(element.fill)
		pdf.setFillColorRGB(color[0], color[1], color[2])
		fill = 1
	pdf.rect(view.x(element.left), view.top(element.top) - height, width, height, stroke=1, fill=fill)


#============================================
def draw_placeholder(view: PreviewCanvas, left: float, top: float, width: float, height: float, caption: str) -> None:
	"""
	Outline a box and write a caption where content cannot be drawn.
	"""
	pdf = view.pdf
	box_width = view.width(width)
	box_height = view.height(height)
	bottom = view.top(top) - box_height
	pdf.setStrokeColorRGB(0.5, 0.5, 0.5)
	pdf.setLineWidth(0.5)
	pdf.rect(view.x(left), bottom, box_width, box_height, stroke=1, fill=0)
	pdf.setFont(DEFAULT_FONT_REGULAR, PLACEHOLDER_FONT_SIZE)
	pdf.setFillColorRGB(0.3, 0.3, 0.3)
	pdf.drawString(view.x(left) + 1.0, bottom + 1.0, caption)


#============================================
def draw_code_element(view: PreviewCanvas, element: BarcodeElement | QRElement) -> None:
	"""
	Draw a barcode or QR code, or a captioned box when the data is invalid.
	"""
	if isinstance(element, QRElement):
		bcid = "qrcode"
	else:
		bcid = SYMBOL_BCIDS.get(normalize_symbol(element.symbol), "code128")
	width = view.width(element.scaled_width)
	height = view.height(element.scaled_height)
	try:
		drawing = build_barcode_drawing(bcid, element.data, height=height or None, width=width or None)
	except InputError:
		draw_placeholder(view, element.left, element.top, element.scaled_width, element.scaled_height, element.data)
		return
	bottom = view.top(element.top) - drawing.height
	reportlab.graphics.renderPDF.draw(drawing, view.pdf, view.x(element.left), bottom)


#============================================
def draw_image_element(view: PreviewCanvas, element: ImageElement) -> None:
	"""
	Draw an inline image; linked images get a captioned box.
	"""
	try:
		raw = decode_data_url(element.src)
		image = PIL.Image.open(io.BytesIO(raw))
		image.load()
	except (ElementConversionError, OSError):
		draw_placeholder(view, element.left, element.top, element.scaled_width, element.scaled_height, "image")
		return
	width = view.width(element.scaled_width)
	height = view.height(element.scaled_height)
	view.pdf.drawImage(
		reportlab.lib.utils.ImageReader(image),
		view.x(element.left),
		view.top(element.top) - height,
		width=width,
		height=height,
		mask="auto",
		preserveAspectRatio=False,
		anchor="sw",
	)


#============================================
def render_preview_pdf(
	layout_data,
	output_path: str | pathlib.Path,
	config: PrinterConfig | None = None,
	registry: FontRegistry | None = None,
	hyphenator: Hyphenator | None = None,
	draw_outline: bool = True,
) -> int:
	"""
	Render a layout to a one page PDF the size of the label.

	Args:
		layout_data: Layout document dict or parsed LabelLayout.
		output_path: Output PDF path.
		config: Printer settings for the unit conversion.
		registry: Font source for wrapping and drawing.
		hyphenator: Hyphenation source.
		draw_outline: Outline the label edge.

	Returns:
		Number of elements drawn.
	"""
	if config is None:
		config = PrinterConfig()
	layout = layout_data
	if not isinstance(layout_data, LabelLayout):
		layout = parse_layout(layout_data)
	expanded = expand_text_elements(layout, registry, hyphenator)
	page_width = layout.width_mm / MM_PER_INCH * POINTS_PER_INCH
	page_height = layout.height_mm / MM_PER_INCH * POINTS_PER_INCH
	pdf = reportlab.pdfgen.canvas.Canvas(str(output_path), pagesize=(page_width, page_height))
	view = PreviewCanvas(pdf, page_height, config)
	if draw_outline:
		pdf.setStrokeColorRGB(0.8, 0.8, 0.8)
		pdf.setLineWidth(0.5)
		pdf.rect(0, 0, page_width, page_height, stroke=1, fill=0)
	drawn = 0
	for element in expanded.elements:
		if isinstance(element, TextElement):
			draw_text_element(view, element, registry)
		elif isinstance(element, RectElement):
			draw_rect_element(view, element)
		elif isinstance(element, (BarcodeElement, QRElement)):
			draw_code_element(view, element)
		elif isinstance(element, ImageElement):
			draw_image_element(view, element)
		else:
			continue
		drawn += 1
	pdf.showPage()
	pdf.save()
	return drawn
