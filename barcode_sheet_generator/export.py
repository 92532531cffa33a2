"""
Full-resolution export: render once and encode the page.
"""

# Standard Library
import dataclasses
import io
import json
import pathlib
import typing

# PIP3 modules
import PIL.Image
import reportlab.lib.pagesizes
import reportlab.lib.utils
import reportlab.pdfgen.canvas

# local repo modules
import barcode_sheet_generator as bsg
import barcode_sheet_generator.config
import barcode_sheet_generator.errors
import barcode_sheet_generator.groups
import barcode_sheet_generator.layout
import barcode_sheet_generator.render_target


Group = bsg.config.Group
PageLayout = bsg.config.PageLayout
SerializationError = bsg.errors.SerializationError
ExportNotAllowedError = bsg.errors.ExportNotAllowedError

DPI = bsg.config.DPI
PAGE_WIDTH_PX = bsg.config.PAGE_WIDTH_PX
PAGE_HEIGHT_PX = bsg.config.PAGE_HEIGHT_PX
MODE_EXPORT = bsg.config.MODE_EXPORT


@dataclasses.dataclass
class ExportResult:
	png_bytes: bytes
	layout: PageLayout


#============================================
def encode_png(image: PIL.Image.Image) -> bytes:
	"""
	Encode a page image as PNG with 300 DPI metadata.

	Args:
		image: Rendered page.

	Returns:
		PNG bytes.
	"""
	buffer = io.BytesIO()
	try:
		image.save(buffer, format="PNG", dpi=(DPI, DPI))
	except (OSError, ValueError) as error:
		raise SerializationError(f"Failed to create image data: {error}") from error
	data = buffer.getvalue()
	if not data:
		raise SerializationError("Failed to create image data. The page may be empty or too large.")
	return data


#============================================
async def export_page(
	groups: typing.Sequence[Group],
	loader: bsg.layout.Loader | None = None,
	verbose: bool = False,
) -> ExportResult:
	"""
	Render the groups on a fresh page-sized surface and encode it.

	Args:
		groups: Group snapshot.
		loader: Async image loader.
		verbose: Print progress.

	Returns:
		ExportResult with PNG bytes and the page layout.
	"""
	snapshot = tuple(groups)
	blockers = bsg.groups.export_blockers(snapshot)
	if blockers:
		raise ExportNotAllowedError(" ".join(blockers))
	surface = bsg.render_target.prepare_surface(MODE_EXPORT)
	layout = await bsg.layout.render(snapshot, surface, loader, verbose=verbose)
	png_bytes = encode_png(surface.image)
	return ExportResult(png_bytes=png_bytes, layout=layout)


#============================================
async def export_png(
	groups: typing.Sequence[Group],
	loader: bsg.layout.Loader | None = None,
) -> bytes:
	result = await export_page(groups, loader)
	return result.png_bytes


#============================================
def export_pdf(png_bytes: bytes) -> bytes:
	"""
	Wrap a rendered PNG on a single A4 PDF page.

	Args:
		png_bytes: Exported page PNG.

	Returns:
		PDF bytes.
	"""
	page_width, page_height = reportlab.lib.pagesizes.A4
	buffer = io.BytesIO()
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=(page_width, page_height))
	image_reader = reportlab.lib.utils.ImageReader(io.BytesIO(png_bytes))
	pdf.drawImage(
		image_reader,
		0,
		0,
		width=page_width,
		height=page_height,
		mask=None,
		preserveAspectRatio=False,
		anchor="sw",
	)
	pdf.showPage()
	pdf.save()
	return buffer.getvalue()


#============================================
def write_export(data: bytes, output_path: pathlib.Path) -> pathlib.Path:
	"""
	Write export bytes to disk.

	Args:
		data: Encoded file contents.
		output_path: File path, or a directory to hold the default file name.

	Returns:
		Path written.
	"""
	if output_path.is_dir():
		output_path = output_path / bsg.config.EXPORT_FILENAME
	output_path.parent.mkdir(parents=True, exist_ok=True)
	output_path.write_bytes(data)
	return output_path


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	groups: typing.Sequence[Group],
	layout: PageLayout,
	output_path: pathlib.Path,
) -> None:
	"""
	Write a manifest JSON file describing the exported page.

	Args:
		manifest_path: Output path.
		groups: Exported groups.
		layout: Page layout from the render pass.
		output_path: Exported image path.
	"""
	data = {
		"output": str(output_path),
		"page": {
			"width_in": bsg.config.PAGE_WIDTH_INCHES,
			"height_in": bsg.config.PAGE_HEIGHT_INCHES,
			"dpi": DPI,
			"width_px": PAGE_WIDTH_PX,
			"height_px": PAGE_HEIGHT_PX,
		},
		"groups": [
			{
				"image_ref": group.image_ref,
				"resolved_url": group.resolved_url,
				"title": group.title,
				"repeat_x": group.repeat_x,
				"repeat_y": group.repeat_y,
				"margin_top_in": group.margin_top_in,
			}
			for group in groups
		],
		"placements": [dataclasses.asdict(placement) for placement in layout.placements],
		"cursor_y": layout.cursor_y,
	}
	with manifest_path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)
