"""
Send compiled print jobs to the Web Print SDK service.
"""

# Standard Library
import dataclasses
import datetime
import json
import logging
import threading
import time

# PIP3 modules
import requests

# local repo modules
import bixolon_label_layout as bll
import bixolon_label_layout.compiler
import bixolon_label_layout.config
import bixolon_label_layout.errors
import bixolon_label_layout.layout_doc


PrintError = bll.errors.PrintError
ConnectivityError = bll.errors.ConnectivityError
ProtocolError = bll.errors.ProtocolError
PrinterConfig = bll.config.PrinterConfig
PrintSettings = bll.config.PrintSettings
STATUS_TIMEOUT = bll.config.STATUS_TIMEOUT
PRINTER_MODEL = bll.config.PRINTER_MODEL
LabelCompiler = bll.compiler.LabelCompiler
PrintJob = bll.compiler.PrintJob
validate_layout = bll.layout_doc.validate_layout
replace_placeholders = bll.layout_doc.replace_placeholders

JOB_ID_MODULUS = 1000000

logger = logging.getLogger(__name__)


class JobIdSequence:
	"""Process-wide job ids seeded from the clock."""

	def __init__(self, seed: int | None = None):
		if seed is None:
			seed = int(time.time()) % JOB_ID_MODULUS
		self._value = seed
		self._lock = threading.Lock()

	def next(self) -> int:
		with self._lock:
			value = self._value
			self._value += 1
		return value


@dataclasses.dataclass
class DispatchResult:
	success: bool
	request_id: int | None
	response: object = None
	timestamp: str = ""
	error: str | None = None
	status_code: int | None = None
	body: object = None

	def to_dict(self) -> dict:
		result = {
			"success": self.success,
			"requestId": self.request_id,
			"response": self.response,
			"timestamp": self.timestamp,
		}
		if not self.success:
			result["error"] = self.error
			result["statusCode"] = self.status_code
			result["body"] = self.body
		return result


#============================================
def utc_timestamp() -> str:
	return datetime.datetime.now(datetime.timezone.utc).isoformat()


#============================================
def response_body(response: requests.Response):
	"""
	Decode a response body as JSON, falling back to text.
	"""
	try:
		return response.json()
	except ValueError:
		return response.text


class PrintDispatcher:
	"""
	Client for one printer behind the Web Print SDK.

	Args:
		config: Connection settings.
		session: Object with requests-style get and post.
		sequence: Job id source.
		compiler: Compiler used by print_label.
	"""

	def __init__(
		self,
		config: PrinterConfig | None = None,
		session=None,
		sequence: JobIdSequence | None = None,
		compiler: LabelCompiler | None = None,
	):
		self.config = config or PrinterConfig()
		self.session = session or requests.Session()
		self.sequence = sequence or JobIdSequence()
		self.compiler = compiler or LabelCompiler(self.config)

	@property
	def printer_url(self) -> str:
		return f"{self.config.server_url}/{self.config.printer_name}"

	#============================================
	def check_connection(self) -> bool:
		"""
		Ask the SDK whether the printer is reachable.

		Returns:
			True when the status endpoint reports a positive Result.
		"""
		url = f"{self.printer_url}/checkStatus"
		try:
			response = self.session.get(url, timeout=STATUS_TIMEOUT)
			data = response.json()
		except (requests.RequestException, ValueError) as error:
			logger.warning("Web Print SDK unavailable at %s:%s: %s", self.config.host, self.config.port, error)
			return False
		if response.status_code >= 400:
			logger.warning("Status check %s returned %s", url, response.status_code)
			return False
		if not isinstance(data, dict):
			return False
		connected = bool(data.get("Result"))
		logger.debug("Status check %s: %s", url, connected)
		return connected

	#============================================
	def send(self, job: PrintJob) -> object:
		"""
		POST a job in one request.

		Args:
			job: Compiled job with an id.

		Returns:
			Decoded device response.

		Raises:
			ConnectivityError: On network failure or timeout.
			ProtocolError: On a non-success HTTP status.
		"""
		payload = job.payload(self.config.printer_name)
		if self.config.debug:
			logger.info("Payload: %s", json.dumps(payload, ensure_ascii=False))
		try:
			response = self.session.post(self.printer_url, json=payload, timeout=self.config.timeout)
		except requests.RequestException as error:
			raise ConnectivityError(
				f"print request to {self.config.host}:{self.config.port} failed: {error}"
			) from error
		body = response_body(response)
		if response.status_code >= 400:
			raise ProtocolError(
				f"print request to {self.config.host}:{self.config.port} failed with status code {response.status_code}",
				status_code=response.status_code,
				body=body,
			)
		return body

	#============================================
	def dispatch(self, job: PrintJob) -> DispatchResult:
		"""
		Check the printer, then submit the job.

		No retries are made; a failed result carries the message and any
		upstream status and body.

		Args:
			job: Compiled job; gets an id from the sequence when it has none.

		Returns:
			DispatchResult.
		"""
		if job.id is None:
			job.id = self.sequence.next()
		try:
			if not self.check_connection():
				raise ConnectivityError(f"Web Print SDK is not available at {self.config.server_url}")
			response = self.send(job)
		except PrintError as error:
			logger.warning("Print job %s failed: %s", job.id, error)
			return DispatchResult(
				success=False,
				request_id=job.id,
				timestamp=utc_timestamp(),
				error=str(error),
				status_code=error.status_code,
				body=error.body,
			)
		logger.info("Print job %s sent to %s", job.id, self.config.printer_name)
		return DispatchResult(
			success=True,
			request_id=job.id,
			response=response,
			timestamp=utc_timestamp(),
		)

	#============================================
	def print_label(self, layout_data: dict, settings: PrintSettings | None = None, placeholders: dict | None = None) -> DispatchResult:
		"""
		Validate, compile and dispatch a layout document.

		Args:
			layout_data: Layout document.
			settings: Print settings.
			placeholders: Values for {{name}} tokens.

		Returns:
			DispatchResult.

		Raises:
			InputError: When the layout has no label size.
		"""
		validate_layout(layout_data)
		if placeholders:
			layout_data = replace_placeholders(layout_data, placeholders)
		job = self.compiler.compile(layout_data, settings, job_id=self.sequence.next())
		return self.dispatch(job)

	#============================================
	def get_info(self) -> dict:
		"""
		Describe the printer configuration.
		"""
		return {
			"model": PRINTER_MODEL,
			"dpi": self.config.dpi,
			"host": self.config.host,
			"port": self.config.port,
			"printerName": self.config.printer_name,
			"protocol": self.config.protocol,
			"dotsPerPixelX": f"{self.config.dots_per_pixel_x:.2f}",
			"dotsPerPixelY": f"{self.config.dots_per_pixel_y:.2f}",
			"defaultSettings": dataclasses.asdict(PrintSettings()),
			"serverURL": self.config.server_url,
		}
