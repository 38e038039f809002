"""
Compile label layouts into device command lists.
"""

# Standard Library
import base64
import binascii
import dataclasses
import io
import logging

# PIP3 modules
import PIL.Image

# local repo modules
import bixolon_label_layout as bll
import bixolon_label_layout.barcode
import bixolon_label_layout.commands
import bixolon_label_layout.config
import bixolon_label_layout.errors
import bixolon_label_layout.fonts
import bixolon_label_layout.hyphenation
import bixolon_label_layout.layout_doc


InputError = bll.errors.InputError
ElementConversionError = bll.errors.ElementConversionError
PrinterConfig = bll.config.PrinterConfig
PrintSettings = bll.config.PrintSettings
mm_to_dots = bll.config.mm_to_dots
PROTOCOL_NAMED = bll.config.PROTOCOL_NAMED
PROTOCOL_POSITIONAL = bll.config.PROTOCOL_POSITIONAL
DeviceCommand = bll.commands.DeviceCommand
command = bll.commands.command
symbol_code = bll.commands.symbol_code
normalize_symbol = bll.commands.normalize_symbol
qr_ecc_percent = bll.commands.qr_ecc_percent
nearest_device_font = bll.commands.nearest_device_font
serializer_for = bll.commands.serializer_for
FontRegistry = bll.fonts.FontRegistry
Hyphenator = bll.hyphenation.Hyphenator
LabelLayout = bll.layout_doc.LabelLayout
LabelElement = bll.layout_doc.LabelElement
TextElement = bll.layout_doc.TextElement
ImageElement = bll.layout_doc.ImageElement
BarcodeElement = bll.layout_doc.BarcodeElement
QRElement = bll.layout_doc.QRElement
RectElement = bll.layout_doc.RectElement
UnsupportedElement = bll.layout_doc.UnsupportedElement
parse_layout = bll.layout_doc.parse_layout
expand_text_elements = bll.layout_doc.expand_text_elements

DEFAULT_BARCODE_HEIGHT = 80
ALIGNMENT_CODES = {"left": 0, "center": 1, "right": 2}
BITMAP_THRESHOLD = 128
TRANSPARENT_FILLS = ("", "transparent", "none")

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class ElementOutcome:
	index: int
	kind: str
	command: DeviceCommand | None = None
	skip_reason: str | None = None

	@property
	def skipped(self) -> bool:
		return self.command is None


@dataclasses.dataclass
class PrintJob:
	id: int | None
	commands: list[DeviceCommand]
	variant: str
	width_dots: int
	length_dots: int
	skipped: list[ElementOutcome] = dataclasses.field(default_factory=list)

	#============================================
	def functions(self):
		"""
		Encode the command list for the job's protocol variant.
		"""
		return serializer_for(self.variant).serialize(self.commands)

	#============================================
	def payload(self, printer_name: str) -> dict:
		"""
		Build the request body for the print endpoint.

		Args:
			printer_name: Target printer name.

		Returns:
			Dict with id, functions and printer.
		"""
		return {
			"id": self.id,
			"functions": self.functions(),
			"printer": printer_name,
		}


#============================================
def decode_data_url(src: str) -> bytes:
	"""
	Extract the bytes of a base64 data URL.

	Raises:
		ElementConversionError: When the URL is not base64 encoded data.
	"""
	header, _, encoded = src.partition(",")
	if not header.startswith("data:") or ";base64" not in header:
		raise ElementConversionError("image src is not a base64 data URL")
	try:
		return base64.b64decode(encoded, validate=True)
	except (binascii.Error, ValueError) as error:
		raise ElementConversionError(f"image data is not valid base64: {error}") from error


#============================================
def rasterize_image(src: str, width_dots: int) -> str:
	"""
	Turn an inline image into a 1-bit PNG scaled to the print width.

	Args:
		src: Data URL of the image.
		width_dots: Target width in dots.

	Returns:
		Base64 encoded PNG.
	"""
	raw = decode_data_url(src)
	try:
		image = PIL.Image.open(io.BytesIO(raw))
		image.load()
	except (OSError, PIL.Image.DecompressionBombError) as error:
		raise ElementConversionError(f"cannot decode image: {error}") from error
	if image.mode in ("RGBA", "LA", "P"):
		image = image.convert("RGBA")
		background = PIL.Image.new("RGBA", image.size, (255, 255, 255, 255))
		background.alpha_composite(image)
		image = background
	image = image.convert("L")
	if width_dots > 0 and image.width != width_dots:
		height = max(1, round(image.height * width_dots / image.width))
		image = image.resize((width_dots, height))
	image = image.point(lambda value: 255 if value >= BITMAP_THRESHOLD else 0).convert("1")
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	return base64.b64encode(buffer.getvalue()).decode("ascii")


class LabelCompiler:
	"""
	Convert a layout document into a PrintJob.

	Text elements are wrapped first, then each element becomes one device
	command. Elements that cannot be converted are skipped and reported on
	the job.
	"""

	def __init__(
		self,
		config: PrinterConfig | None = None,
		registry: FontRegistry | None = None,
		hyphenator: Hyphenator | None = None,
		truetype_text: bool = False,
	):
		self.config = config or PrinterConfig()
		self.registry = registry
		self.hyphenator = hyphenator or Hyphenator()
		self.truetype_text = truetype_text

	@property
	def variant(self) -> str:
		return self.config.protocol

	#============================================
	def x_dots(self, value: float) -> int:
		return round(value * self.config.dots_per_pixel_x)

	#============================================
	def y_dots(self, value: float) -> int:
		return round(value * self.config.dots_per_pixel_y)

	#============================================
	def compile(self, layout_data, settings: PrintSettings | None = None, job_id: int | None = None) -> PrintJob:
		"""
		Compile a layout into an ordered command list.

		Args:
			layout_data: Layout document dict or parsed LabelLayout.
			settings: Print settings, defaults when None.
			job_id: Job id to stamp on the result.

		Returns:
			PrintJob.

		Raises:
			InputError: When the label size is missing.
		"""
		if settings is None:
			settings = PrintSettings()
		layout = layout_data
		if not isinstance(layout_data, LabelLayout):
			layout = parse_layout(layout_data)
		expanded = expand_text_elements(layout, self.registry, self.hyphenator)
		width_dots = mm_to_dots(layout.width_mm, self.config.dpi)
		length_dots = mm_to_dots(layout.height_mm, self.config.dpi)
		gap_dots = round(length_dots * settings.gap_ratio)
		logger.debug(
			"Label %sx%s mm -> %sx%s dots, gap %s dots",
			layout.width_mm, layout.height_mm, width_dots, length_dots, gap_dots,
		)
		commands = self.setup_commands(width_dots, length_dots, gap_dots, settings)
		skipped = []
		for index, element in enumerate(expanded.elements):
			outcome = self.convert(index, element)
			if outcome.skipped:
				logger.warning("Skipped object %d (%s): %s", index, outcome.kind, outcome.skip_reason)
				skipped.append(outcome)
				continue
			commands.append(outcome.command)
		commands.append(self.print_command(settings))
		return PrintJob(
			id=job_id,
			commands=commands,
			variant=self.variant,
			width_dots=width_dots,
			length_dots=length_dots,
			skipped=skipped,
		)

	#============================================
	def setup_commands(self, width_dots: int, length_dots: int, gap_dots: int, settings: PrintSettings) -> list[DeviceCommand]:
		"""
		Commands that prepare the buffer and media before any drawing.
		"""
		if self.variant == PROTOCOL_POSITIONAL:
			return [
				command("clearBuffer"),
				command("setWidth", width=width_dots),
				command(
					"setLength",
					labelLength=length_dots,
					gapLength=gap_dots,
					mediaType=settings.media_type,
					offset=0,
				),
			]
		return [
			command("clearBuffer"),
			command("setWidth", width=width_dots),
			command(
				"setLength",
				labelLength=length_dots,
				gapLength=gap_dots,
				mediaType=settings.media_type,
				offset=0,
			),
			command("setOrientation", direction=settings.orientation),
			command("setSpeed", speed=settings.speed),
			command("setDensity", density=settings.density),
			command("setMargin", h=settings.margin_h, v=settings.margin_v),
		]

	#============================================
	def print_command(self, settings: PrintSettings) -> DeviceCommand:
		if self.variant == PROTOCOL_POSITIONAL:
			return command("printBuffer", copies=settings.copies)
		return command("printBuffer")

	#============================================
	def convert(self, index: int, element: LabelElement) -> ElementOutcome:
		"""
		Convert one element, turning conversion failures into a skip.

		Args:
			index: Position in the expanded element list.
			element: Element to convert.

		Returns:
			ElementOutcome with either a command or a skip reason.
		"""
		try:
			cmd = self.element_command(element)
		except ElementConversionError as error:
			return ElementOutcome(index, element.kind, skip_reason=str(error))
		return ElementOutcome(index, element.kind, command=cmd)

	#============================================
	def element_command(self, element: LabelElement) -> DeviceCommand:
		if isinstance(element, UnsupportedElement):
			raise ElementConversionError(element.reason or f"unsupported object type {element.kind!r}")
		if isinstance(element, TextElement):
			return self.text_command(element)
		if isinstance(element, RectElement):
			return self.rect_command(element)
		if isinstance(element, BarcodeElement):
			return self.barcode_command(element)
		if isinstance(element, QRElement):
			return self.qr_command(element)
		if isinstance(element, ImageElement):
			return self.image_command(element)
		raise ElementConversionError(f"no converter for {type(element).__name__}")

	#============================================
	def text_command(self, element: TextElement) -> DeviceCommand:
		"""
		Draw one text line with a device font or a TrueType font.
		"""
		if not element.text.strip():
			raise ElementConversionError("empty text")
		x = self.x_dots(element.left)
		y = self.y_dots(element.top)
		width_enlarge = max(1, round(element.scale_x))
		height_enlarge = max(1, round(element.scale_y))
		bold = 1 if element.bold else 0
		alignment = ALIGNMENT_CODES.get(element.align, 0)
		if self.variant == PROTOCOL_NAMED:
			return command(
				"drawDeviceFont",
				text=element.text,
				x=x,
				y=y,
				fontType=0,
				widthEnlarge=width_enlarge,
				heightEnlarge=height_enlarge,
				rotation=0,
				invert=0,
				bold=bold,
				alignment=alignment,
			)
		size_dots = self.y_dots(element.font_size * element.scale_y)
		if self.truetype_text:
			return command(
				"drawTrueTypeFont",
				text=element.text,
				x=x,
				y=y,
				fontName=element.font_family,
				fontSize=size_dots,
				rotation=0,
				italic=element.italic,
				bold=element.bold,
				underline=False,
				compression=100,
			)
		return command(
			"drawDeviceFont",
			text=element.text,
			x=x,
			y=y,
			fontSelection=nearest_device_font(size_dots),
			fontWidth=1,
			fontHeight=1,
			rightSpacing=0,
			rotation=0,
			reverse=False,
			bold=element.bold,
			alignment=alignment,
		)

	#============================================
	def rect_command(self, element: RectElement) -> DeviceCommand:
		x = self.x_dots(element.left)
		y = self.y_dots(element.top)
		width = self.x_dots(element.scaled_width)
		height = self.y_dots(element.scaled_height)
		if width <= 0 or height <= 0:
			raise ElementConversionError("rect has no area")
		if self.variant == PROTOCOL_NAMED:
			return command(
				"drawBlock",
				x=x,
				y=y,
				width=width,
				height=height,
				lineWidth=1,
				color=element.stroke,
			)
		option = "O"
		if element.fill.strip().lower() not in TRANSPARENT_FILLS:
			option = "B"
		return command(
			"drawBlock",
			startX=x,
			startY=y,
			endX=x + width,
			endY=y + height,
			option=option,
			thickness=max(1, self.x_dots(element.stroke_width)),
		)

	#============================================
	def barcode_command(self, element: BarcodeElement) -> DeviceCommand:
		"""
		Draw a 1D barcode, completing EAN and UPC check digits.
		"""
		symbol = normalize_symbol(element.symbol)
		data = element.data
		bcid = bll.barcode.SYMBOL_BCIDS.get(symbol)
		if bcid is not None:
			try:
				data = bll.barcode.normalize_barcode(bcid, data)
			except InputError as error:
				raise ElementConversionError(str(error)) from error
		if not data:
			raise ElementConversionError("barcode data is empty")
		height = DEFAULT_BARCODE_HEIGHT
		if element.bar_height:
			height = round(element.bar_height)
		elif element.scaled_height > 0:
			height = self.y_dots(element.scaled_height)
		x = self.x_dots(element.left)
		y = self.y_dots(element.top)
		code = symbol_code(symbol, self.variant)
		if self.variant == PROTOCOL_NAMED:
			return command(
				"draw1DBarcode",
				data=data,
				x=x,
				y=y,
				symbol=code,
				narrowbar=element.narrow_bar,
				widebar=element.wide_bar,
				height=height,
				rotation=0,
				hriPosition=element.hri_position,
			)
		return command(
			"draw1DBarcode",
			data=data,
			x=x,
			y=y,
			symbol=code,
			narrowBar=element.narrow_bar,
			wideBar=element.wide_bar,
			height=height,
			rotation=0,
			hri=element.hri_position,
		)

	#============================================
	def qr_command(self, element: QRElement) -> DeviceCommand:
		if not element.data:
			raise ElementConversionError("QR data is empty")
		x = self.x_dots(element.left)
		y = self.y_dots(element.top)
		ecc = qr_ecc_percent(element.ecc_level)
		if self.variant == PROTOCOL_NAMED:
			return command(
				"drawQRCode",
				data=element.data,
				x=x,
				y=y,
				model=1,
				alignment=0,
				moduleSize=element.module_size,
				eccLevel=ecc,
			)
		return command(
			"drawQRCode",
			data=element.data,
			x=x,
			y=y,
			model=2,
			eccLevel=ecc,
			size=element.module_size,
			rotation=0,
		)

	#============================================
	def image_command(self, element: ImageElement) -> DeviceCommand:
		"""
		Draw an inline image as a 1-bit bitmap.

		Only data URLs are printable; linked images need to be fetched by
		the caller and inlined first.
		"""
		if not element.src.startswith("data:"):
			raise ElementConversionError("image has no inline data")
		width = self.x_dots(element.scaled_width)
		data = rasterize_image(element.src, width)
		return command(
			"drawBitmap",
			data=data,
			x=self.x_dots(element.left),
			y=self.y_dots(element.top),
			width=width,
			dither=0,
		)
