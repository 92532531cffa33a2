"""
Exception types for resolution, layout and export failures.
"""


class SheetError(Exception):
	"""Base class for barcode sheet errors."""


class ResolutionError(SheetError):
	"""An image reference could not be turned into a reachable URL."""


class LayoutError(SheetError):
	"""A render pass was aborted."""


class ImageLoadError(LayoutError):
	"""An image could not be fetched or decoded, or has zero size."""


class PageOverflowError(LayoutError):
	"""Composed content is taller than the page."""


class ExportError(SheetError):
	"""The export action failed."""


class SerializationError(ExportError):
	"""The rendered page could not be encoded."""


class ExportNotAllowedError(ExportError):
	"""Export was requested while the sheet cannot be exported."""
