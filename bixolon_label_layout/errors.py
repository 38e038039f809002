"""
Error taxonomy for layout, compilation and dispatch.
"""


class LabelPrintError(Exception):
	"""Base error."""


class InputError(LabelPrintError):
	"""Caller supplied data that cannot be used: missing fields, bad names, bad barcodes."""


class ResourceUnavailable(LabelPrintError):
	"""A font resource could not be resolved or loaded."""


class ElementConversionError(LabelPrintError):
	"""A single layout element could not be turned into a device command."""


class PrintError(LabelPrintError):
	"""Dispatch to the device failed."""

	def __init__(self, message: str, status_code: int | None = None, body=None):
		super().__init__(message)
		self.status_code = status_code
		self.body = body


class ConnectivityError(PrintError):
	"""Device unreachable at the pre-flight check or during submission."""


class ProtocolError(PrintError):
	"""Device answered with a non-success status."""
