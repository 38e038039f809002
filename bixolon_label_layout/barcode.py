"""
Barcode data validation and preview rendering.
"""

# PIP3 modules
import reportlab.graphics.barcode
import reportlab.graphics.renderSVG

# local repo modules
import bixolon_label_layout as bll
import bixolon_label_layout.errors


InputError = bll.errors.InputError

# data digits before the check digit
CHECKSUM_LENGTHS = {
	"ean13": 12,
	"ean8": 7,
	"upca": 11,
}

REPORTLAB_CODES = {
	"ean13": "EAN13",
	"ean8": "EAN8",
	"upca": "UPCA",
	"code128": "Code128",
	"code39": "Standard39",
	"code93": "Standard93",
	"interleaved2of5": "I2of5",
	"codabar": "Codabar",
	"rationalizedcodabar": "Codabar",
	"qrcode": "QR",
}

# device symbology names to bcid
SYMBOL_BCIDS = {
	"EAN13": "ean13",
	"EAN8": "ean8",
	"UPC_A": "upca",
	"CODE128": "code128",
	"CODE39": "code39",
	"CODE93": "code93",
	"ITF": "interleaved2of5",
	"CODABAR": "codabar",
}


#============================================
def ean_check_digit(digits: str) -> int:
	"""
	Compute the mod-10 check digit used by EAN and UPC codes.

	Weights alternate 3 and 1 starting from the rightmost data digit.

	Args:
		digits: Data digits without the check digit.

	Returns:
		Check digit 0-9.
	"""
	if not digits.isdigit():
		raise InputError(f"barcode data must contain only digits: {digits!r}")
	total = 0
	for position, char in enumerate(reversed(digits)):
		weight = 3 if position % 2 == 0 else 1
		total += int(char) * weight
	return (10 - total % 10) % 10


#============================================
def normalize_barcode(bcid: str, text: str) -> str:
	"""
	Validate barcode data and complete the check digit where needed.

	For EAN-13, EAN-8 and UPC-A, short data is left padded with zeros to
	the data length and the check digit appended; full length data must
	carry the correct check digit.

	Args:
		bcid: Symbology id such as "ean13".
		text: Barcode data.

	Returns:
		Data to encode.

	Raises:
		InputError: For an unknown symbology or invalid data.
	"""
	bcid = bcid.strip().lower()
	if bcid not in REPORTLAB_CODES:
		raise InputError(f"unsupported barcode type: {bcid}")
	text = (text or "").strip()
	if not text:
		raise InputError("barcode text is required")
	data_length = CHECKSUM_LENGTHS.get(bcid)
	if data_length is None:
		return text
	if not text.isdigit():
		raise InputError(f"{bcid} data must contain only digits")
	if len(text) <= data_length:
		digits = text.zfill(data_length)
		return digits + str(ean_check_digit(digits))
	if len(text) == data_length + 1:
		expected = ean_check_digit(text[:-1])
		if int(text[-1]) != expected:
			raise InputError(f"{bcid} check digit mismatch: expected {expected}, got {text[-1]}")
		return text
	raise InputError(f"{bcid} data must have {data_length} or {data_length + 1} digits, got {len(text)}")


#============================================
def build_barcode_drawing(
	bcid: str,
	text: str,
	include_text: bool = False,
	height: float | None = None,
	width: float | None = None,
):
	"""
	Build a reportlab drawing for a barcode or QR code.

	Args:
		bcid: Symbology id.
		text: Barcode data.
		include_text: Print the human readable line under the bars.
		height: Drawing height in points.
		width: Drawing width in points.

	Returns:
		reportlab Drawing.

	Raises:
		InputError: For an unknown symbology or data the symbology rejects.
	"""
	data = normalize_barcode(bcid, text)
	bcid = bcid.strip().lower()
	code_name = REPORTLAB_CODES[bcid]
	data_length = CHECKSUM_LENGTHS.get(bcid)
	if data_length is not None:
		# the widgets compute the check digit themselves
		data = data[:data_length]
	options = {"value": data}
	if code_name != "QR":
		options["humanReadable"] = include_text
	if width:
		options["width"] = float(width)
	if height:
		options["height"] = float(height)
	try:
		return reportlab.graphics.barcode.createBarcodeDrawing(code_name, **options)
	except ValueError as error:
		raise InputError(f"cannot encode {bcid} data: {error}") from error


#============================================
def render_barcode_svg(
	bcid: str,
	text: str,
	include_text: bool = False,
	height: float | None = None,
	width: float | None = None,
) -> str:
	"""
	Render a barcode or QR code to an SVG document.

	Args:
		bcid: Symbology id.
		text: Barcode data.
		include_text: Print the human readable line under the bars.
		height: Drawing height in points.
		width: Drawing width in points.

	Returns:
		SVG markup.
	"""
	drawing = build_barcode_drawing(bcid, text, include_text, height, width)
	return reportlab.graphics.renderSVG.drawToString(drawing)
