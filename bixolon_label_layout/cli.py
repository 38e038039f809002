"""
CLI entry points for label layout and printing.
"""

# Standard Library
import argparse
import json
import logging
import pathlib
import sys

# PIP3 modules
import uvicorn

# local repo modules
import bixolon_label_layout as bll
import bixolon_label_layout.compiler
import bixolon_label_layout.config
import bixolon_label_layout.dispatcher
import bixolon_label_layout.errors
import bixolon_label_layout.fonts
import bixolon_label_layout.hyphenation
import bixolon_label_layout.layout_doc
import bixolon_label_layout.line_breaker
import bixolon_label_layout.render
import bixolon_label_layout.server


LabelPrintError = bll.errors.LabelPrintError
InputError = bll.errors.InputError
PrinterConfig = bll.config.PrinterConfig
PrintSettings = bll.config.PrintSettings
FontRegistry = bll.fonts.FontRegistry
Hyphenator = bll.hyphenation.Hyphenator
LabelCompiler = bll.compiler.LabelCompiler
PrintDispatcher = bll.dispatcher.PrintDispatcher
LayoutOptions = bll.line_breaker.LayoutOptions
TextRun = bll.line_breaker.TextRun

DEFAULT_FONTS_DIR = bll.config.DEFAULT_FONTS_DIR
DEFAULT_FONT_FAMILY = bll.config.DEFAULT_FONT_FAMILY
PROTOCOLS = bll.config.PROTOCOLS
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


#============================================
def configure_logging(debug: bool) -> None:
	level = logging.DEBUG if debug else logging.INFO
	logging.basicConfig(level=level, format=LOG_FORMAT)


#============================================
def read_json(path: str) -> dict:
	"""
	Read a JSON document from a file path.

	Raises:
		InputError: When the file is not valid JSON.
	"""
	with open(path, "r", encoding="utf-8") as handle:
		try:
			return json.load(handle)
		except json.JSONDecodeError as error:
			raise InputError(f"{path} is not valid JSON: {error}") from error


#============================================
def parse_placeholders(values: list[str] | None) -> dict:
	"""
	Parse repeated key=value options into a dict.
	"""
	placeholders = {}
	for item in values or []:
		key, sep, value = item.partition("=")
		if not sep or not key:
			raise InputError(f"placeholder must look like key=value, got {item!r}")
		placeholders[key] = value
	return placeholders


#============================================
def build_printer_config(args: argparse.Namespace) -> PrinterConfig:
	"""
	Start from the environment and apply command line overrides.

	Args:
		args: Parsed argparse namespace.

	Returns:
		PrinterConfig.
	"""
	config = bll.config.load_printer_config()
	if getattr(args, "host", None):
		config.host = args.host
	if getattr(args, "port", None):
		config.port = args.port
	if getattr(args, "printer_name", None):
		config.printer_name = args.printer_name
	if getattr(args, "protocol", None):
		config.protocol = args.protocol
	if getattr(args, "debug", False):
		config.debug = True
	return config


#============================================
def build_settings(args: argparse.Namespace) -> PrintSettings:
	settings = PrintSettings()
	if args.speed is not None:
		settings.speed = args.speed
	if args.density is not None:
		settings.density = args.density
	if args.copies is not None:
		settings.copies = args.copies
	return settings


#============================================
def add_layout_arguments(parser: argparse.ArgumentParser) -> None:
	parser.add_argument("layout", help="Layout JSON file.")
	parser.add_argument("-s", "--set", dest="placeholders", action="append", help="Placeholder value as key=value.")
	parser.add_argument("--fonts-dir", dest="fonts_dir", default=DEFAULT_FONTS_DIR, help="Font files folder.")
	parser.add_argument("--protocol", dest="protocol", choices=PROTOCOLS, default=None, help="Command wire format.")
	parser.add_argument("--speed", dest="speed", type=int, default=None, help="Print speed.")
	parser.add_argument("--density", dest="density", type=int, default=None, help="Print density.")
	parser.add_argument("--copies", dest="copies", type=int, default=None, help="Number of copies.")


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Lay out and print labels on Bixolon label printers.")
	parser.add_argument("--debug", dest="debug", action="store_true", help="Verbose logging.")
	subparsers = parser.add_subparsers(dest="command", required=True)

	wrap_parser = subparsers.add_parser("wrap", help="Print wrapped lines for a text.")
	wrap_parser.add_argument("text", help="Text to wrap; use \\n for paragraph breaks.")
	wrap_parser.add_argument("-w", "--width", dest="width", type=float, required=True, help="Block width.")
	wrap_parser.add_argument("-f", "--font-size", dest="font_size", type=float, default=12.0, help="Font size.")
	wrap_parser.add_argument("--font", dest="font_family", default=DEFAULT_FONT_FAMILY, help="Font family or file.")
	wrap_parser.add_argument("--fonts-dir", dest="fonts_dir", default=DEFAULT_FONTS_DIR, help="Font files folder.")
	wrap_parser.add_argument("-b", "--bold", dest="bold", action="store_true", help="Bold text.")
	wrap_parser.add_argument("-i", "--italic", dest="italic", action="store_true", help="Italic text.")
	wrap_parser.add_argument("-a", "--align", dest="align", choices=("left", "center", "right"), default="left", help="Alignment.")
	wrap_parser.add_argument("-H", "--no-hyphenation", dest="hyphenate", action="store_false", help="Disable hyphenation.")
	wrap_parser.add_argument("--rebalance", dest="rebalance", action="store_true", help="Rebalance lines even with hyphenation.")

	compile_parser = subparsers.add_parser("compile", help="Print the device payload for a layout.")
	add_layout_arguments(compile_parser)
	compile_parser.add_argument("-p", "--preview", dest="preview_path", default=None, help="Also write a PDF preview.")

	print_parser = subparsers.add_parser("print", help="Compile a layout and send it to the printer.")
	add_layout_arguments(print_parser)
	print_parser.add_argument("--host", dest="host", default=None, help="Web Print SDK host.")
	print_parser.add_argument("--port", dest="port", type=int, default=None, help="Web Print SDK port.")
	print_parser.add_argument("--printer", dest="printer_name", default=None, help="Printer name.")

	serve_parser = subparsers.add_parser("serve", help="Run the HTTP API.")
	serve_parser.add_argument("--host", dest="host", default="0.0.0.0", help="Listen address.")
	serve_parser.add_argument("--port", dest="port", type=int, default=None, help="Listen port.")

	args = parser.parse_args(argv)
	return args


#============================================
def run_wrap(args: argparse.Namespace) -> None:
	"""
	Wrap a text and print one line per row.
	"""
	options = LayoutOptions(
		font_family=args.font_family,
		bold=args.bold,
		italic=args.italic,
		align=args.align,
		hyphenate=args.hyphenate,
		rebalance_when_hyphenating=args.rebalance,
	)
	text = args.text.replace("\\n", "\n")
	run = TextRun(text=text, font_size=args.font_size, block_width=args.width, options=options)
	registry = FontRegistry(args.fonts_dir)
	result = bll.line_breaker.layout_text(run, registry=registry)
	for line in result.layout_lines:
		print(f"{line.width:8.2f} |{line.text}|")
	print(f"Lines: {len(result.lines)}")
	print(f"Line height: {result.line_height:.2f}")
	if result.font_metrics is None:
		print("Metrics: fallback table")


#============================================
def load_layout(args: argparse.Namespace) -> dict:
	layout = read_json(args.layout)
	placeholders = parse_placeholders(args.placeholders)
	if placeholders:
		layout = bll.layout_doc.replace_placeholders(layout, placeholders)
	return layout


#============================================
def run_compile(args: argparse.Namespace) -> None:
	"""
	Compile a layout and print the request body.
	"""
	config = build_printer_config(args)
	registry = FontRegistry(args.fonts_dir)
	hyphenator = Hyphenator()
	layout = load_layout(args)
	compiler = LabelCompiler(config, registry=registry, hyphenator=hyphenator)
	job = compiler.compile(layout, build_settings(args), job_id=0)
	print(json.dumps(job.payload(config.printer_name), ensure_ascii=False, indent=2))
	for outcome in job.skipped:
		print(f"Skipped object {outcome.index} ({outcome.kind}): {outcome.skip_reason}", file=sys.stderr)
	if args.preview_path:
		count = bll.render.render_preview_pdf(
			layout,
			pathlib.Path(args.preview_path),
			config=config,
			registry=registry,
			hyphenator=hyphenator,
		)
		print(f"Preview written: {args.preview_path} ({count} elements)", file=sys.stderr)


#============================================
def run_print(args: argparse.Namespace) -> int:
	"""
	Compile a layout and dispatch it.

	Returns:
		Process exit code.
	"""
	config = build_printer_config(args)
	registry = FontRegistry(args.fonts_dir)
	compiler = LabelCompiler(config, registry=registry)
	dispatcher = PrintDispatcher(config, compiler=compiler)
	print(f"Printer: {config.server_url}/{config.printer_name}")
	result = dispatcher.print_label(load_layout(args), build_settings(args))
	if not result.success:
		print(f"Print failed: {result.error}")
		return 1
	print(f"Print job sent: {result.request_id}")
	return 0


#============================================
def run_serve(args: argparse.Namespace) -> None:
	"""
	Run the HTTP API with uvicorn.
	"""
	server_config = bll.config.load_server_config()
	if args.port is not None:
		server_config.port = args.port
	printer_config = bll.config.load_printer_config()
	printer_config.debug = printer_config.debug or args.debug
	app = bll.server.create_app(server_config, printer_config)
	print(f"Serving on http://{args.host}:{server_config.port}")
	uvicorn.run(app, host=args.host, port=server_config.port)


#============================================
def main(argv: list[str] | None = None) -> int:
	"""
	Main entry point.
	"""
	args = parse_args(argv)
	configure_logging(args.debug)
	try:
		if args.command == "wrap":
			run_wrap(args)
		elif args.command == "compile":
			run_compile(args)
		elif args.command == "print":
			return run_print(args)
		elif args.command == "serve":
			run_serve(args)
	except (LabelPrintError, OSError) as error:
		print(f"Error: {error}", file=sys.stderr)
		return 1
	return 0
