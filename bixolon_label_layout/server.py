"""
HTTP API for layout storage, text layout and printing.
"""

# Standard Library
import logging

# PIP3 modules
import fastapi
import fastapi.exceptions
import fastapi.middleware.cors
import fastapi.responses
import pydantic

# local repo modules
import bixolon_label_layout as bll
import bixolon_label_layout.barcode
import bixolon_label_layout.compiler
import bixolon_label_layout.config
import bixolon_label_layout.dispatcher
import bixolon_label_layout.errors
import bixolon_label_layout.fonts
import bixolon_label_layout.hyphenation
import bixolon_label_layout.layout_doc
import bixolon_label_layout.line_breaker
import bixolon_label_layout.storage


InputError = bll.errors.InputError
PrintError = bll.errors.PrintError
ServerConfig = bll.config.ServerConfig
PrinterConfig = bll.config.PrinterConfig
parse_print_settings = bll.config.parse_print_settings
LabelCompiler = bll.compiler.LabelCompiler
PrintDispatcher = bll.dispatcher.PrintDispatcher
FontRegistry = bll.fonts.FontRegistry
Hyphenator = bll.hyphenation.Hyphenator
LayoutStore = bll.storage.LayoutStore
validate_layout = bll.layout_doc.validate_layout
replace_placeholders = bll.layout_doc.replace_placeholders
calculate_text_layout = bll.line_breaker.calculate_text_layout
render_barcode_svg = bll.barcode.render_barcode_svg

logger = logging.getLogger(__name__)


class SaveLayoutRequest(pydantic.BaseModel):
	name: str = pydantic.Field(..., min_length=1, description="Layout name without extension")
	layoutData: dict = pydantic.Field(..., description="Canvas layout document")


class PrintRequest(pydantic.BaseModel):
	template: str | None = pydantic.Field(None, description="Saved layout name")
	data: dict | None = pydantic.Field(None, description="Placeholder values")
	layoutData: dict | None = pydantic.Field(None, description="Inline layout document")
	printSettings: dict | None = pydantic.Field(None, description="Print setting overrides")


class TextLayoutRequest(pydantic.BaseModel):
	text: str
	fontSize: float = pydantic.Field(..., gt=0)
	blockWidth: float = pydantic.Field(..., gt=0)
	isBold: bool = False
	isItalic: bool = False
	isCentered: bool = False
	fontName: str = bll.config.DEFAULT_FONT_FAMILY
	useHyphenation: bool = True
	isRighted: bool = False


#============================================
def error_response(status_code: int, message: str, **extra) -> fastapi.responses.JSONResponse:
	content = {"error": message}
	content.update(extra)
	return fastapi.responses.JSONResponse(status_code=status_code, content=content)


#============================================
def create_app(
	server_config: ServerConfig | None = None,
	printer_config: PrinterConfig | None = None,
	store: LayoutStore | None = None,
	dispatcher: PrintDispatcher | None = None,
	registry: FontRegistry | None = None,
	hyphenator: Hyphenator | None = None,
) -> fastapi.FastAPI:
	"""
	Build the FastAPI application.

	Collaborators default to instances built from the configs, so tests
	can pass a dispatcher with a fake session or a store in a temp folder.

	Args:
		server_config: Listen and storage settings.
		printer_config: Printer connection settings.
		store: Layout storage.
		dispatcher: Print dispatcher.
		registry: Font source for text layout.
		hyphenator: Hyphenation source.

	Returns:
		FastAPI application.
	"""
	server_config = server_config or ServerConfig()
	printer_config = printer_config or PrinterConfig()
	if store is None:
		store = LayoutStore(server_config.layouts_dir)
	if registry is None:
		registry = FontRegistry(server_config.fonts_dir)
	if hyphenator is None:
		hyphenator = Hyphenator()
	if dispatcher is None:
		compiler = LabelCompiler(printer_config, registry=registry, hyphenator=hyphenator)
		dispatcher = PrintDispatcher(printer_config, compiler=compiler)

	app = fastapi.FastAPI(
		title="Bixolon Label Layout API",
		description="Store label layouts, wrap text and print on Bixolon label printers",
	)
	app.add_middleware(
		fastapi.middleware.cors.CORSMiddleware,
		allow_origins=[server_config.cors_origin],
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)

	@app.exception_handler(InputError)
	async def input_error_handler(request: fastapi.Request, error: InputError):
		return error_response(400, str(error))

	@app.exception_handler(FileNotFoundError)
	async def not_found_handler(request: fastapi.Request, error: FileNotFoundError):
		return error_response(404, str(error))

	@app.exception_handler(PrintError)
	async def print_error_handler(request: fastapi.Request, error: PrintError):
		return error_response(502, str(error), statusCode=error.status_code, body=error.body)

	@app.exception_handler(fastapi.exceptions.RequestValidationError)
	async def validation_error_handler(request: fastapi.Request, error: fastapi.exceptions.RequestValidationError):
		messages = []
		for item in error.errors():
			location = ".".join(str(part) for part in item.get("loc", ()))
			messages.append(f"{location}: {item.get('msg')}")
		return error_response(400, "; ".join(messages) or "invalid request")

	@app.post("/api/layouts/save", summary="Save a layout")
	def save_layout(request: SaveLayoutRequest):
		filename = store.save(request.name, request.layoutData)
		return {"message": "Layout saved", "filename": filename}

	@app.get("/api/layouts", summary="List saved layouts")
	def list_layouts():
		return store.list_layouts()

	@app.get("/api/layouts/{filename}", summary="Load a layout")
	def load_layout(filename: str):
		return store.load(filename)

	@app.delete("/api/layouts/{filename}", summary="Delete a layout")
	def delete_layout(filename: str):
		store.delete(filename)
		return {"message": "Layout deleted"}

	@app.get("/api/printer-info", summary="Printer configuration")
	def printer_info():
		return dispatcher.get_info()

	@app.get("/api/printer-connection", summary="Check the printer connection")
	def printer_connection():
		return {"connected": dispatcher.check_connection()}

	@app.post("/api/print", summary="Print a saved or inline layout")
	def print_label(request: PrintRequest):
		settings = parse_print_settings(request.printSettings)
		if request.template:
			layout = store.load(request.template)
			placeholders = request.data or {}
		elif request.layoutData is not None:
			layout = request.layoutData
			placeholders = request.data or {}
		else:
			raise InputError("template or layoutData is required")
		validate_layout(layout)
		if placeholders:
			layout = replace_placeholders(layout, placeholders)
		result = dispatcher.print_label(layout, settings)
		if not result.success:
			return error_response(502, result.error or "print failed", result=result.to_dict())
		return {"message": "Label sent to the printer", "result": result.to_dict()}

	@app.get("/api/barcode", summary="Render a barcode as SVG")
	def barcode(
		bcid: str,
		text: str,
		includetext: bool = False,
		height: float | None = None,
		width: float | None = None,
	):
		svg = render_barcode_svg(bcid, text, include_text=includetext, height=height, width=width)
		return fastapi.responses.Response(content=svg, media_type="image/svg+xml")

	@app.post("/api/text-layout", summary="Wrap text for a text box")
	def text_layout(request: TextLayoutRequest):
		result = calculate_text_layout(
			request.text,
			request.fontSize,
			request.blockWidth,
			bold=request.isBold,
			italic=request.isItalic,
			centered=request.isCentered,
			font_family=request.fontName,
			hyphenate=request.useHyphenation,
			right=request.isRighted,
			registry=registry,
			hyphenator=hyphenator,
		)
		return result.to_dict()

	return app
