"""
Shared configuration and constants.
"""

# Standard Library
import dataclasses
import os

# local repo modules
import bixolon_label_layout as bll
import bixolon_label_layout.errors


InputError = bll.errors.InputError

DEVICE_DPI = 203
MM_PER_INCH = 25.4
POINTS_PER_INCH = 72.0
DOTS_PER_PIXEL_X = DEVICE_DPI / POINTS_PER_INCH
DOTS_PER_PIXEL_Y = DEVICE_DPI / POINTS_PER_INCH

LINE_HEIGHT_FACTOR = 1.2
MIN_HYPHENATION_WORD_LENGTH = 5
MIN_HYPHENATION_REMAINDER = 3
REBALANCE_WIDTH_RATIO = 2.0 / 3.0
UNKNOWN_GLYPH_WIDTH = 0.5
FALLBACK_BOLD_FACTOR = 1.2
FALLBACK_ITALIC_FACTOR = 1.1
SOFT_HYPHEN = "\u00ad"
HYPHENATION_LANGUAGE = "ru_RU"

DEFAULT_FONT_FAMILY = "Arial"
DEFAULT_FONT_SIZE = 20.0

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 18080
DEFAULT_PRINTER_NAME = "Printer1"
DEFAULT_TIMEOUT_MS = 3000
STATUS_TIMEOUT = 5.0
PRINTER_MODEL = "Bixolon XD3-40d"

PROTOCOL_NAMED = "named"
PROTOCOL_POSITIONAL = "positional"
PROTOCOLS = (PROTOCOL_NAMED, PROTOCOL_POSITIONAL)

DEFAULT_SERVER_PORT = 3000
DEFAULT_LAYOUTS_DIR = "layouts"
DEFAULT_FONTS_DIR = os.path.join("bixolon", "fonts")
DEFAULT_CORS_ORIGIN = "*"


@dataclasses.dataclass
class PrintSettings:
	speed: int = 4
	density: int = 12
	orientation: str = "T"
	margin_h: int = 10
	margin_v: int = 10
	gap_ratio: float = 0.1
	media_type: str = "G"
	copies: int = 1


@dataclasses.dataclass
class PrinterConfig:
	host: str = DEFAULT_HOST
	port: int = DEFAULT_PORT
	printer_name: str = DEFAULT_PRINTER_NAME
	timeout: float = DEFAULT_TIMEOUT_MS / 1000.0
	debug: bool = False
	protocol: str = PROTOCOL_NAMED
	dpi: int = DEVICE_DPI
	dots_per_pixel_x: float = DOTS_PER_PIXEL_X
	dots_per_pixel_y: float = DOTS_PER_PIXEL_Y

	@property
	def server_url(self) -> str:
		return f"http://{self.host}:{self.port}/WebPrintSDK"


@dataclasses.dataclass
class ServerConfig:
	port: int = DEFAULT_SERVER_PORT
	layouts_dir: str = DEFAULT_LAYOUTS_DIR
	fonts_dir: str = DEFAULT_FONTS_DIR
	cors_origin: str = DEFAULT_CORS_ORIGIN


#============================================
def mm_to_dots(mm: float, dpi: int = DEVICE_DPI) -> int:
	"""
	Convert millimeters to printer dots.

	Args:
		mm: Length in millimeters.
		dpi: Device resolution.

	Returns:
		Length in dots, rounded to the nearest dot.
	"""
	return round((mm / MM_PER_INCH) * dpi)


#============================================
def dots_to_mm(dots: float, dpi: int = DEVICE_DPI) -> float:
	"""
	Convert printer dots back to millimeters.

	Args:
		dots: Length in dots.
		dpi: Device resolution.

	Returns:
		Length in millimeters.
	"""
	return (dots * MM_PER_INCH) / dpi


#============================================
def parse_print_settings(values: dict | None) -> PrintSettings:
	"""
	Build print settings from a request payload.

	Accepts both the snake_case field names and the camelCase keys the
	canvas editor sends (marginH, gapPercent, mediaType).

	Args:
		values: Partial settings mapping or None.

	Returns:
		PrintSettings with defaults for missing keys.
	"""
	settings = PrintSettings()
	if not values:
		return settings
	aliases = {
		"marginH": "margin_h",
		"marginV": "margin_v",
		"gapPercent": "gap_ratio",
		"mediaType": "media_type",
	}
	field_types = {field.name: field.type for field in dataclasses.fields(PrintSettings)}
	for key, value in values.items():
		name = aliases.get(key, key)
		field_type = field_types.get(name)
		if field_type is None:
			continue
		try:
			setattr(settings, name, field_type(value))
		except (TypeError, ValueError) as error:
			raise InputError(f"{key} must be {field_type.__name__}, got {value!r}") from error
	return settings


#============================================
def _env_int(environ: dict, key: str, default: int) -> int:
	raw = environ.get(key)
	if raw is None or raw == "":
		return default
	try:
		return int(raw)
	except ValueError as error:
		raise InputError(f"{key} must be an integer, got {raw!r}") from error


#============================================
def _env_float(environ: dict, key: str, default: float) -> float:
	raw = environ.get(key)
	if raw is None or raw == "":
		return default
	try:
		return float(raw)
	except ValueError as error:
		raise InputError(f"{key} must be a number, got {raw!r}") from error


#============================================
def load_printer_config(environ: dict | None = None) -> PrinterConfig:
	"""
	Read printer connection settings from the environment.

	Args:
		environ: Mapping to read from, defaults to os.environ.

	Returns:
		PrinterConfig.
	"""
	if environ is None:
		environ = dict(os.environ)
	protocol = environ.get("BIXOLON_PROTOCOL", PROTOCOL_NAMED).strip().lower()
	if protocol not in PROTOCOLS:
		raise InputError(f"BIXOLON_PROTOCOL must be one of {PROTOCOLS}, got {protocol!r}")
	timeout_ms = _env_int(environ, "BIXOLON_TIMEOUT", DEFAULT_TIMEOUT_MS)
	return PrinterConfig(
		host=environ.get("BIXOLON_HOST", DEFAULT_HOST),
		port=_env_int(environ, "BIXOLON_PORT", DEFAULT_PORT),
		printer_name=environ.get("BIXOLON_PRINTER_NAME", DEFAULT_PRINTER_NAME),
		timeout=timeout_ms / 1000.0,
		debug=environ.get("BIXOLON_DEBUG", "false").lower() == "true",
		protocol=protocol,
		dots_per_pixel_x=_env_float(environ, "BIXOLON_DOTS_PER_PIXEL_X", DOTS_PER_PIXEL_X),
		dots_per_pixel_y=_env_float(environ, "BIXOLON_DOTS_PER_PIXEL_Y", DOTS_PER_PIXEL_Y),
	)


#============================================
def load_server_config(environ: dict | None = None) -> ServerConfig:
	"""
	Read HTTP server settings from the environment.

	Args:
		environ: Mapping to read from, defaults to os.environ.

	Returns:
		ServerConfig.
	"""
	if environ is None:
		environ = dict(os.environ)
	return ServerConfig(
		port=_env_int(environ, "PORT", DEFAULT_SERVER_PORT),
		layouts_dir=environ.get("LAYOUTS_DIR", DEFAULT_LAYOUTS_DIR),
		fonts_dir=environ.get("FONTS_DIR", DEFAULT_FONTS_DIR),
		cors_origin=environ.get("CORS_ORIGIN", DEFAULT_CORS_ORIGIN),
	)
