"""
Pytest configuration for local imports and shared image fixtures.
"""

# Standard Library
import io
import os
import sys

# PIP3 modules
import PIL.Image
import pytest

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()
import barcode_sheet_generator.image_loader


#============================================
def encode_test_png(width: int, height: int, color: tuple[int, int, int] = (0, 0, 0)) -> bytes:
	"""
	Encode a solid-color PNG.

	Args:
		width: Image width.
		height: Image height.
		color: RGB fill.

	Returns:
		PNG bytes.
	"""
	buffer = io.BytesIO()
	PIL.Image.new("RGB", (width, height), color).save(buffer, format="PNG")
	return buffer.getvalue()


#============================================
@pytest.fixture
def png_bytes():
	"""
	Factory fixture for solid-color PNG bytes.
	"""
	return encode_test_png


#============================================
@pytest.fixture
def fake_loader():
	"""
	Factory fixture for an async loader with fixed cell sizes.

	The returned loader looks up (width, height) by URL, defaults to
	100x50, and records every URL it was asked for in loader.calls.
	"""
	def build(sizes: dict[str, tuple[float, float]] | None = None, color=(0, 0, 0, 255)):
		sizes = sizes or {}
		calls: list[str] = []

		async def loader(url: str) -> barcode_sheet_generator.image_loader.LoadedImage:
			calls.append(url)
			width, height = sizes.get(url, (100.0, 50.0))
			return barcode_sheet_generator.image_loader.LoadedImage(
				url=url,
				image=PIL.Image.new("RGBA", (4, 4), color),
				intrinsic_width=width,
				intrinsic_height=height,
				width=width,
				height=height,
				is_vector=False,
			)

		loader.calls = calls
		return loader
	return build
