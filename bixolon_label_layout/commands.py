"""
Device commands and their wire encodings.

A command is built once as a name plus ordered (parameter, value) pairs.
The serializer picked for the target firmware decides whether the wire
form uses named parameters or positional argument arrays.
"""

# Standard Library
import dataclasses

# local repo modules
import bixolon_label_layout as bll
import bixolon_label_layout.config


PROTOCOL_NAMED = bll.config.PROTOCOL_NAMED
PROTOCOL_POSITIONAL = bll.config.PROTOCOL_POSITIONAL

# 1D symbology codes differ between firmware generations
NAMED_SYMBOLS = {
	"UPC_A": 0,
	"UPC_E": 1,
	"EAN8": 2,
	"EAN13": 3,
	"CODE39": 4,
	"ITF": 5,
	"CODABAR": 6,
	"CODE93": 7,
	"CODE128": 8,
}

POSITIONAL_SYMBOLS = {
	"CODE39": 0,
	"CODE128": 1,
	"ITF": 2,
	"CODABAR": 3,
	"CODE93": 4,
	"UPC_A": 5,
	"UPC_E": 6,
	"EAN13": 7,
	"EAN8": 8,
}

SYMBOL_ALIASES = {
	"EAN_13": "EAN13",
	"EAN_8": "EAN8",
	"UPCA": "UPC_A",
	"UPCE": "UPC_E",
	"CODE_128": "CODE128",
	"CODE_39": "CODE39",
	"CODE_93": "CODE93",
	"I2OF5": "ITF",
}

DEFAULT_SYMBOL = "CODE128"

QR_ECC_LEVELS = {"L": 7, "M": 15, "Q": 25, "H": 30}
DEFAULT_QR_ECC = "M"

# character height in dots of the built-in bitmap fonts
DEVICE_FONT_HEIGHTS = {
	"0": 15,
	"1": 20,
	"2": 25,
	"3": 30,
	"4": 38,
	"5": 50,
	"6": 76,
}


@dataclasses.dataclass(frozen=True)
class DeviceCommand:
	name: str
	params: tuple[tuple[str, object], ...] = ()

	@property
	def args(self) -> list:
		return [value for _, value in self.params]

	@property
	def named_params(self) -> dict:
		return dict(self.params)


#============================================
def command(name: str, **params) -> DeviceCommand:
	"""
	Build a command keeping keyword order as parameter order.
	"""
	return DeviceCommand(name, tuple(params.items()))


#============================================
def normalize_symbol(symbol: str) -> str:
	key = symbol.strip().upper().replace("-", "_")
	return SYMBOL_ALIASES.get(key, key)


#============================================
def symbol_code(symbol: str, variant: str) -> int:
	"""
	Look up the device code for a symbology name.

	Unknown names map to CODE128.

	Args:
		symbol: Symbology name such as "EAN13".
		variant: PROTOCOL_NAMED or PROTOCOL_POSITIONAL.

	Returns:
		Device code.
	"""
	table = NAMED_SYMBOLS if variant == PROTOCOL_NAMED else POSITIONAL_SYMBOLS
	return table.get(normalize_symbol(symbol), table[DEFAULT_SYMBOL])


#============================================
def qr_ecc_percent(level: str) -> int:
	return QR_ECC_LEVELS.get(str(level).upper(), QR_ECC_LEVELS[DEFAULT_QR_ECC])


#============================================
def nearest_device_font(height_dots: float) -> str:
	"""
	Pick the built-in font whose character height is closest.

	Ties go to the smaller font.

	Args:
		height_dots: Wanted character height in dots.

	Returns:
		Device font id.
	"""
	best_id = None
	best_delta = None
	for font_id, font_height in DEVICE_FONT_HEIGHTS.items():
		delta = abs(font_height - height_dots)
		if best_delta is None or delta < best_delta:
			best_id = font_id
			best_delta = delta
	return best_id


class NamedSerializer:
	"""Encode commands as a list of {"name", "params"} objects."""

	variant = PROTOCOL_NAMED

	def serialize(self, commands: list[DeviceCommand]) -> list[dict]:
		return [{"name": cmd.name, "params": cmd.named_params} for cmd in commands]


class PositionalSerializer:
	"""Encode commands as {"func0": {name: [args]}, "func1": ...}."""

	variant = PROTOCOL_POSITIONAL

	def serialize(self, commands: list[DeviceCommand]) -> dict:
		functions = {}
		for index, cmd in enumerate(commands):
			functions[f"func{index}"] = {cmd.name: cmd.args}
		return functions


SERIALIZERS = {
	PROTOCOL_NAMED: NamedSerializer,
	PROTOCOL_POSITIONAL: PositionalSerializer,
}


#============================================
def serializer_for(variant: str):
	"""
	Return the serializer for a protocol variant.

	Raises:
		ValueError: For an unknown variant.
	"""
	serializer_class = SERIALIZERS.get(variant)
	if serializer_class is None:
		raise ValueError(f"unknown protocol variant: {variant}")
	return serializer_class()
