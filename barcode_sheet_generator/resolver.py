"""
Resolve user-entered barcode references into loadable image URLs.
"""

# Standard Library
import pathlib
import urllib.parse

# PIP3 modules
import httpx

# local repo modules
import barcode_sheet_generator as bsg
import barcode_sheet_generator.config
import barcode_sheet_generator.errors


ResolutionError = bsg.errors.ResolutionError

RESOLVE_PATH = bsg.config.RESOLVE_PATH


#============================================
def is_direct_url(token: str) -> bool:
	"""
	Check whether a token is already a URL.

	Args:
		token: User-entered reference.

	Returns:
		True for http and https URLs.
	"""
	return token.startswith("http://") or token.startswith("https://")


#============================================
def is_local_file(token: str) -> bool:
	"""
	Check whether a token names an existing local file.

	Args:
		token: User-entered reference.

	Returns:
		True when the path exists and is a regular file.
	"""
	try:
		return pathlib.Path(token).is_file()
	except (OSError, ValueError):
		return False


#============================================
def parse_lookup_response(status_code: int, payload: object, token: str) -> str:
	"""
	Extract the image URL from a lookup response body.

	Args:
		status_code: HTTP status code.
		payload: Decoded JSON body, or None when it was not JSON.
		token: Token that was looked up.

	Returns:
		Image URL.
	"""
	if not 200 <= status_code < 300:
		message = f"Barcode '{token}' not found."
		if isinstance(payload, dict) and isinstance(payload.get("error"), str) and payload["error"]:
			message = payload["error"]
		raise ResolutionError(message)
	if not isinstance(payload, dict):
		raise ResolutionError("Invalid response from lookup service.")
	image_url = payload.get("imageUrl")
	if not isinstance(image_url, str) or not image_url:
		raise ResolutionError("Invalid response from lookup service.")
	return image_url


class Resolver:
	"""
	HTTP client for the lookup endpoint and direct-URL checks.

	Args:
		base_url: Lookup service root, e.g. "https://example.org/api".
		client: Shared AsyncClient, owned by the caller.
	"""

	def __init__(self, base_url: str | None, client: httpx.AsyncClient):
		self.base_url = base_url.rstrip("/") if base_url else None
		self.client = client

	#============================================
	async def lookup(self, token: str) -> str:
		"""
		Ask the lookup endpoint for the image URL of a barcode key.

		Args:
			token: Barcode key.

		Returns:
			Image URL from the service.
		"""
		if self.base_url is None:
			raise ResolutionError(f"No lookup service configured for '{token}'.")
		try:
			response = await self.client.get(
				f"{self.base_url}{RESOLVE_PATH}",
				params={"number": token},
			)
		except (httpx.HTTPError, httpx.InvalidURL) as error:
			raise ResolutionError(f"Lookup service unreachable: {error}") from error
		try:
			payload = response.json()
		except ValueError:
			payload = None
		return parse_lookup_response(response.status_code, payload, token)

	#============================================
	async def check_reachable(self, url: str) -> None:
		"""
		Confirm an image URL answers a HEAD request.

		Args:
			url: Image URL.
		"""
		try:
			response = await self.client.head(url)
		except (httpx.HTTPError, httpx.InvalidURL) as error:
			raise ResolutionError(f"Image URL is not reachable: {error}") from error
		if not response.is_success:
			raise ResolutionError("Image URL is not reachable or invalid.")

	#============================================
	async def resolve(self, token: str) -> str:
		"""
		Turn a user token into a checked, loadable image URL.

		Direct http(s) URLs skip the lookup. file:// URLs only need the file
		to exist, and a path to an existing local file becomes a file:// URL.

		Args:
			token: User-entered reference.

		Returns:
			Resolved image URL.
		"""
		token = token.strip()
		if not token:
			raise ResolutionError("Empty barcode reference.")
		if token.startswith("file://"):
			path = pathlib.Path(urllib.parse.unquote(urllib.parse.urlsplit(token).path))
			if not path.is_file():
				raise ResolutionError(f"Image file not found: {path}")
			return token
		if is_direct_url(token):
			url = token
		elif is_local_file(token):
			return pathlib.Path(token).resolve().as_uri()
		else:
			url = await self.lookup(token)
		await self.check_reachable(url)
		return url
