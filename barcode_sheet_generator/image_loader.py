"""
Fetch and decode barcode images for layout.
"""

# Standard Library
import dataclasses
import io
import pathlib
import re
import urllib.parse

# PIP3 modules
import defusedxml.ElementTree as ElementTree
import httpx
import PIL.Image
import pymupdf

# local repo modules
import barcode_sheet_generator as bsg
import barcode_sheet_generator.config
import barcode_sheet_generator.errors


ImageLoadError = bsg.errors.ImageLoadError

DPI = bsg.config.DPI
ASSUMED_VECTOR_DPI = bsg.config.ASSUMED_VECTOR_DPI
VECTOR_EXTENSIONS = bsg.config.VECTOR_EXTENSIONS
SVG_UNIT_PX = bsg.config.SVG_UNIT_PX
URL_DISPLAY_LENGTH = bsg.config.URL_DISPLAY_LENGTH
HTTP_TIMEOUT_SECONDS = bsg.config.HTTP_TIMEOUT_SECONDS

SVG_LENGTH_PATTERN = re.compile(r"^\s*([0-9]*\.?[0-9]+(?:[eE][-+]?[0-9]+)?)\s*([a-zA-Z]*)\s*$")


@dataclasses.dataclass
class LoadedImage:
	url: str
	image: PIL.Image.Image
	intrinsic_width: float
	intrinsic_height: float
	width: float
	height: float
	is_vector: bool


#============================================
def truncate_url(url: str) -> str:
	"""
	Shorten a URL for error messages.

	Args:
		url: Full URL.

	Returns:
		URL cut to the display length, with an ellipsis.
	"""
	return f"{url[:URL_DISPLAY_LENGTH]}..."


#============================================
def is_vector_url(url: str) -> bool:
	"""
	Check whether a URL points at a vector image.

	Args:
		url: Image URL or path.

	Returns:
		True when the path extension is a vector format.
	"""
	path = urllib.parse.urlsplit(url).path or url
	return path.lower().endswith(VECTOR_EXTENSIONS)


#============================================
def apply_vector_correction(
	width: float,
	height: float,
	url: str,
	target_dpi: float = DPI,
) -> tuple[float, float]:
	"""
	Scale intrinsic vector dimensions to the target resolution.

	Vector renderers size documents at 96 DPI, so a vector asset has to be
	scaled up before it occupies the intended physical size on a 300 DPI page.
	Raster sizes pass through unchanged.

	Args:
		width: Intrinsic width in pixels.
		height: Intrinsic height in pixels.
		url: Image URL, used for format detection.
		target_dpi: Page resolution.

	Returns:
		Tuple of (width, height) in page pixels.
	"""
	if not is_vector_url(url):
		return (width, height)
	factor = target_dpi / ASSUMED_VECTOR_DPI
	return (width * factor, height * factor)


#============================================
def is_remote_url(url: str) -> bool:
	"""
	Check whether a URL needs an HTTP fetch.

	Args:
		url: Image URL or path.

	Returns:
		True for http and https URLs.
	"""
	return url.startswith("http://") or url.startswith("https://")


#============================================
def read_local_bytes(url: str) -> bytes:
	"""
	Read image bytes from a file URL or local path.

	Args:
		url: file:// URL or filesystem path.

	Returns:
		File contents.
	"""
	if url.startswith("file://"):
		path = pathlib.Path(urllib.parse.unquote(urllib.parse.urlsplit(url).path))
	else:
		path = pathlib.Path(url)
	try:
		return path.read_bytes()
	except (OSError, ValueError) as error:
		raise ImageLoadError(f"Failed to load: {truncate_url(url)} ({error})") from error


#============================================
async def fetch_image_bytes(url: str, client: httpx.AsyncClient | None = None) -> bytes:
	"""
	Fetch image bytes over HTTP or from disk.

	Args:
		url: Image URL or path.
		client: Optional shared HTTP client.

	Returns:
		Raw image bytes.
	"""
	if not is_remote_url(url):
		return read_local_bytes(url)
	try:
		if client is None:
			async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS, follow_redirects=True) as own_client:
				response = await own_client.get(url)
		else:
			response = await client.get(url)
		response.raise_for_status()
	except (httpx.HTTPError, httpx.InvalidURL) as error:
		raise ImageLoadError(f"Failed to load: {truncate_url(url)} ({error})") from error
	return response.content


#============================================
def decode_raster(data: bytes, url: str) -> PIL.Image.Image:
	"""
	Decode raster image bytes.

	Args:
		data: Encoded image bytes.
		url: Source URL for error messages.

	Returns:
		Decoded RGBA image.
	"""
	try:
		image = PIL.Image.open(io.BytesIO(data))
		image.load()
	except (OSError, ValueError, PIL.Image.DecompressionBombError) as error:
		raise ImageLoadError(f"Failed to decode: {truncate_url(url)}") from error
	return image.convert("RGBA")


#============================================
def parse_svg_length(value: str | None) -> float | None:
	"""
	Convert an SVG length attribute to CSS pixels.

	Args:
		value: Attribute text such as "100", "40mm" or "1in".

	Returns:
		Length in CSS pixels, or None for missing, relative or unknown units.
	"""
	if value is None:
		return None
	match = SVG_LENGTH_PATTERN.match(value)
	if match is None:
		return None
	unit = match.group(2).lower()
	if unit not in SVG_UNIT_PX:
		return None
	return float(match.group(1)) * SVG_UNIT_PX[unit]


#============================================
def svg_intrinsic_size(data: bytes, url: str) -> tuple[float, float]:
	"""
	Read the intrinsic size of an SVG document in CSS pixels.

	Explicit width and height win; a missing one is filled from the
	viewBox aspect ratio, and the viewBox size is used when both are missing.

	Args:
		data: SVG bytes.
		url: Source URL for error messages.

	Returns:
		Tuple of (width, height), zero when the document gives no size.
	"""
	try:
		root = ElementTree.fromstring(data)
	except (ElementTree.ParseError, ValueError) as error:
		raise ImageLoadError(f"Failed to decode: {truncate_url(url)}") from error
	if not root.tag.endswith("svg"):
		raise ImageLoadError(f"Failed to decode: {truncate_url(url)}")

	width = parse_svg_length(root.get("width"))
	height = parse_svg_length(root.get("height"))
	view_width = None
	view_height = None
	view_box = root.get("viewBox")
	if view_box:
		parts = view_box.replace(",", " ").split()
		if len(parts) == 4:
			try:
				view_width = float(parts[2])
				view_height = float(parts[3])
			except ValueError:
				view_width = None
				view_height = None
	has_ratio = bool(view_width) and bool(view_height)

	if width is None and height is None:
		if has_ratio:
			return (view_width, view_height)
		return (0.0, 0.0)
	if width is None:
		width = height * view_width / view_height if has_ratio else 0.0
	if height is None:
		height = width * view_height / view_width if has_ratio else 0.0
	return (width, height)


#============================================
def decode_vector(data: bytes, url: str, scale: float) -> tuple[PIL.Image.Image, float, float]:
	"""
	Rasterize an SVG document.

	MuPDF sizes pages in points, so the raster matrix maps its page size
	onto the CSS pixel size times the scale.

	Args:
		data: SVG bytes.
		url: Source URL for error messages.
		scale: Rasterization scale relative to the intrinsic size.

	Returns:
		Tuple of (RGBA image, intrinsic width, intrinsic height).
	"""
	intrinsic_width, intrinsic_height = svg_intrinsic_size(data, url)
	if intrinsic_width <= 0 or intrinsic_height <= 0:
		raise ImageLoadError(f"Image from {truncate_url(url)} has zero dimensions.")
	try:
		document = pymupdf.open(stream=data, filetype="svg")
	except RuntimeError as error:
		raise ImageLoadError(f"Failed to decode: {truncate_url(url)}") from error
	try:
		if document.page_count < 1:
			raise ImageLoadError(f"Failed to decode: {truncate_url(url)}")
		page = document[0]
		if page.rect.width <= 0 or page.rect.height <= 0:
			raise ImageLoadError(f"Image from {truncate_url(url)} has zero dimensions.")
		matrix = pymupdf.Matrix(
			intrinsic_width * scale / page.rect.width,
			intrinsic_height * scale / page.rect.height,
		)
		pixmap = page.get_pixmap(matrix=matrix, alpha=True)
		image = PIL.Image.frombytes("RGBA", [pixmap.width, pixmap.height], pixmap.samples)
	finally:
		document.close()
	return (image, intrinsic_width, intrinsic_height)


#============================================
async def load_image(
	url: str,
	target_dpi: float = DPI,
	client: httpx.AsyncClient | None = None,
) -> LoadedImage:
	"""
	Load an image and compute its layout size in page pixels.

	Args:
		url: Resolved image URL.
		target_dpi: Page resolution.
		client: Optional shared HTTP client.

	Returns:
		LoadedImage with the vector correction applied.
	"""
	data = await fetch_image_bytes(url, client)
	if not data:
		raise ImageLoadError(f"Failed to load: {truncate_url(url)} (empty response)")

	vector = is_vector_url(url)
	if vector:
		scale = target_dpi / ASSUMED_VECTOR_DPI
		image, intrinsic_width, intrinsic_height = decode_vector(data, url, scale)
	else:
		image = decode_raster(data, url)
		intrinsic_width, intrinsic_height = image.size

	if intrinsic_width <= 0 or intrinsic_height <= 0:
		raise ImageLoadError(f"Image from {truncate_url(url)} has zero dimensions.")
	width, height = apply_vector_correction(intrinsic_width, intrinsic_height, url, target_dpi)
	return LoadedImage(
		url=url,
		image=image,
		intrinsic_width=intrinsic_width,
		intrinsic_height=intrinsic_height,
		width=width,
		height=height,
		is_vector=vector,
	)


#============================================
def make_loader(client: httpx.AsyncClient | None = None, target_dpi: float = DPI):
	"""
	Bind load_image to a shared client and resolution.

	Args:
		client: Shared HTTP client.
		target_dpi: Page resolution.

	Returns:
		Async callable taking a URL and returning a LoadedImage.
	"""
	async def loader(url: str) -> LoadedImage:
		return await load_image(url, target_dpi, client)
	return loader
