import pytest

import bixolon_label_layout as bll
import bixolon_label_layout.config
import bixolon_label_layout.errors


#============================================
def test_mm_to_dots_known_values() -> None:
	"""
	Millimeters convert at 203 dpi with rounding.
	"""
	assert bll.config.mm_to_dots(58) == 464
	assert bll.config.mm_to_dots(40) == 320
	assert bll.config.mm_to_dots(25.4) == 203
	assert bll.config.mm_to_dots(0) == 0


#============================================
def test_unit_round_trip_within_one_dot() -> None:
	"""
	Converting to dots and back loses less than one dot.
	"""
	one_dot = bll.config.MM_PER_INCH / bll.config.DEVICE_DPI
	for tenth in range(1, 1200, 7):
		mm = tenth / 10.0
		back = bll.config.dots_to_mm(bll.config.mm_to_dots(mm))
		assert abs(back - mm) <= one_dot


#============================================
def test_printer_config_from_environment() -> None:
	"""
	Environment values override the defaults.
	"""
	environ = {
		"BIXOLON_HOST": "10.0.0.5",
		"BIXOLON_PORT": "9000",
		"BIXOLON_PRINTER_NAME": "Shelf",
		"BIXOLON_TIMEOUT": "1500",
		"BIXOLON_PROTOCOL": "Positional",
		"BIXOLON_DEBUG": "TRUE",
	}
	config = bll.config.load_printer_config(environ)
	assert config.host == "10.0.0.5"
	assert config.port == 9000
	assert config.printer_name == "Shelf"
	assert config.timeout == pytest.approx(1.5)
	assert config.protocol == "positional"
	assert config.debug is True
	assert config.server_url == "http://10.0.0.5:9000/WebPrintSDK"


#============================================
def test_printer_config_defaults() -> None:
	"""
	An empty environment gives the stock printer settings.
	"""
	config = bll.config.load_printer_config({})
	assert config.host == "localhost"
	assert config.port == 18080
	assert config.printer_name == "Printer1"
	assert config.timeout == pytest.approx(3.0)
	assert config.protocol == "named"
	assert config.dots_per_pixel_x == pytest.approx(203 / 72)


#============================================
def test_invalid_environment_values() -> None:
	"""
	Unparseable numbers and unknown protocols are input errors.
	"""
	with pytest.raises(bll.errors.InputError):
		bll.config.load_printer_config({"BIXOLON_PORT": "eighty"})
	with pytest.raises(bll.errors.InputError):
		bll.config.load_printer_config({"BIXOLON_PROTOCOL": "zpl"})
	with pytest.raises(bll.errors.InputError):
		bll.config.load_server_config({"PORT": "x"})


#============================================
def test_server_config_from_environment() -> None:
	"""
	Server settings read PORT, LAYOUTS_DIR and CORS_ORIGIN.
	"""
	config = bll.config.load_server_config({"PORT": "8080", "LAYOUTS_DIR": "/tmp/l", "CORS_ORIGIN": "http://a"})
	assert config.port == 8080
	assert config.layouts_dir == "/tmp/l"
	assert config.cors_origin == "http://a"


#============================================
def test_print_settings_aliases() -> None:
	"""
	Editor keys map onto settings fields; unknown keys are ignored.
	"""
	settings = bll.config.parse_print_settings({
		"speed": 6,
		"marginH": 4,
		"gapPercent": 0.2,
		"mediaType": "C",
		"unknown": 1,
	})
	assert settings.speed == 6
	assert settings.margin_h == 4
	assert settings.gap_ratio == pytest.approx(0.2)
	assert settings.media_type == "C"
	assert settings.density == 12
	assert bll.config.parse_print_settings(None) == bll.config.PrintSettings()


#============================================
def test_print_settings_coerced_to_field_types() -> None:
	"""
	String values from form posts become numbers; unparsable ones are input errors.
	"""
	settings = bll.config.parse_print_settings({"copies": "2", "gapPercent": "0.2", "density": 14.0})
	assert settings.copies == 2
	assert isinstance(settings.copies, int)
	assert settings.gap_ratio == pytest.approx(0.2)
	assert isinstance(settings.density, int)
	with pytest.raises(bll.errors.InputError) as info:
		bll.config.parse_print_settings({"speed": "fast"})
	assert "speed" in str(info.value)
