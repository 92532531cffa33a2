"""
Drawing surfaces for preview and export renders.
"""

# Standard Library
import pathlib

# PIP3 modules
import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont
import reportlab

# local repo modules
import barcode_sheet_generator as bsg
import barcode_sheet_generator.config


RenderContext = bsg.config.RenderContext

PAGE_WIDTH_PX = bsg.config.PAGE_WIDTH_PX
PAGE_HEIGHT_PX = bsg.config.PAGE_HEIGHT_PX
MODE_PREVIEW = bsg.config.MODE_PREVIEW
MODE_EXPORT = bsg.config.MODE_EXPORT
BACKGROUND_COLOR = bsg.config.BACKGROUND_COLOR
TITLE_COLOR = bsg.config.TITLE_COLOR
TITLE_FONT_FILE = bsg.config.TITLE_FONT_FILE
ERROR_TINT_COLOR = bsg.config.ERROR_TINT_COLOR
ERROR_TINT_ALPHA = bsg.config.ERROR_TINT_ALPHA

_FONT_CACHE: dict[int, PIL.ImageFont.FreeTypeFont] = {}


#============================================
def title_font_path() -> pathlib.Path:
	"""
	Locate the bold TrueType font shipped with ReportLab.

	Returns:
		Font file path.
	"""
	return pathlib.Path(reportlab.__file__).parent / "fonts" / TITLE_FONT_FILE


#============================================
def load_title_font(size_px: int) -> PIL.ImageFont.FreeTypeFont:
	"""
	Load the title font at a pixel size.

	Args:
		size_px: Font size in pixels.

	Returns:
		FreeType font.
	"""
	size_px = max(1, size_px)
	font = _FONT_CACHE.get(size_px)
	if font is None:
		font = PIL.ImageFont.truetype(str(title_font_path()), size_px)
		_FONT_CACHE[size_px] = font
	return font


#============================================
def export_context() -> RenderContext:
	"""
	Build the full-resolution export context.

	Returns:
		RenderContext at page size and scale 1.
	"""
	return RenderContext(
		mode=MODE_EXPORT,
		width_px=PAGE_WIDTH_PX,
		height_px=PAGE_HEIGHT_PX,
		scale=1.0,
	)


#============================================
def preview_context(
	box_width: float,
	box_height: float,
	device_pixel_ratio: float = 1.0,
) -> RenderContext:
	"""
	Build a preview context that fits the page inside a display box.

	Args:
		box_width: Box width in display units.
		box_height: Box height in display units.
		device_pixel_ratio: Physical pixels per display unit.

	Returns:
		RenderContext sized to the box in physical pixels.
	"""
	if box_width <= 0 or box_height <= 0:
		raise ValueError(f"Preview box must be positive, got {box_width}x{box_height}")
	if device_pixel_ratio <= 0:
		device_pixel_ratio = 1.0
	fit = min(box_width / PAGE_WIDTH_PX, box_height / PAGE_HEIGHT_PX)
	return RenderContext(
		mode=MODE_PREVIEW,
		width_px=max(1, int(round(box_width * device_pixel_ratio))),
		height_px=max(1, int(round(box_height * device_pixel_ratio))),
		scale=fit * device_pixel_ratio,
	)


class Surface:
	"""
	A raster canvas addressed in page pixels.

	Drawing calls take page coordinates; the surface applies the context
	scale and truncates to whole pixels.
	"""

	def __init__(self, context: RenderContext):
		self.context = context
		self.image = PIL.Image.new("RGB", (context.width_px, context.height_px), BACKGROUND_COLOR)

	@property
	def scale(self) -> float:
		return self.context.scale

	#============================================
	def resize(self, context: RenderContext) -> None:
		"""
		Replace the backing image, which clears any drawn content.

		Args:
			context: New render context.
		"""
		self.context = context
		self.image = PIL.Image.new("RGB", (context.width_px, context.height_px), BACKGROUND_COLOR)

	#============================================
	def fill(self, color: tuple[int, int, int] = BACKGROUND_COLOR) -> None:
		"""
		Fill the whole surface with a solid color.

		Args:
			color: RGB color.
		"""
		self.image.paste(color, (0, 0, self.image.width, self.image.height))

	def to_device(self, value: float) -> int:
		return int(value * self.scale)

	#============================================
	def draw_centered_text(
		self,
		text: str,
		center_x: float,
		baseline_y: float,
		font_height_px: float,
	) -> None:
		"""
		Draw bold text centered on a point, with its baseline at baseline_y.

		Args:
			text: Text to draw.
			center_x: Horizontal center in page pixels.
			baseline_y: Baseline position in page pixels.
			font_height_px: Font size in page pixels.
		"""
		font = load_title_font(int(round(font_height_px * self.scale)))
		draw = PIL.ImageDraw.Draw(self.image)
		draw.text(
			(center_x * self.scale, baseline_y * self.scale),
			text,
			fill=TITLE_COLOR,
			font=font,
			anchor="ms",
		)

	#============================================
	def draw_cells(
		self,
		image: PIL.Image.Image,
		positions: list[tuple[float, float]],
		cell_width: float,
		cell_height: float,
	) -> int:
		"""
		Paste copies of an image at page positions.

		Each cell spans from its truncated origin to the truncated origin of
		the next cell, so adjacent cells tile without gaps.

		Args:
			image: RGBA source image.
			positions: Cell origins in page pixels.
			cell_width: Cell width in page pixels.
			cell_height: Cell height in page pixels.

		Returns:
			Number of cells drawn.
		"""
		resized: dict[tuple[int, int], PIL.Image.Image] = {}
		count = 0
		for x, y in positions:
			x0 = self.to_device(x)
			y0 = self.to_device(y)
			width = self.to_device(x + cell_width) - x0
			height = self.to_device(y + cell_height) - y0
			if width <= 0 or height <= 0:
				continue
			key = (width, height)
			cell = resized.get(key)
			if cell is None:
				cell = image.resize(key, PIL.Image.Resampling.LANCZOS)
				resized[key] = cell
			self.image.paste(cell, (x0, y0), cell)
			count += 1
		return count

	#============================================
	def tint(
		self,
		color: tuple[int, int, int] = ERROR_TINT_COLOR,
		alpha: float = ERROR_TINT_ALPHA,
	) -> None:
		"""
		Blend a translucent color over the whole surface.

		Args:
			color: RGB tint color.
			alpha: Tint opacity from 0.0 to 1.0.
		"""
		overlay = PIL.Image.new("RGB", self.image.size, color)
		self.image = PIL.Image.blend(self.image, overlay, alpha)


#============================================
def prepare_surface(
	mode: str,
	surface: Surface | None = None,
	box: tuple[float, float] | None = None,
	device_pixel_ratio: float = 1.0,
) -> Surface:
	"""
	Produce a cleared surface sized for a render mode.

	Export always gets a fresh page-sized surface. Preview reuses the given
	surface when there is one, resizing it to the box.

	Args:
		mode: MODE_PREVIEW or MODE_EXPORT.
		surface: Existing preview surface to reuse.
		box: Preview box (width, height) in display units.
		device_pixel_ratio: Physical pixels per display unit.

	Returns:
		Surface ready for a render pass.
	"""
	if mode == MODE_EXPORT:
		return Surface(export_context())
	if mode != MODE_PREVIEW:
		raise ValueError(f"Unknown render mode: {mode}")
	if box is None:
		box = bsg.config.DEFAULT_PREVIEW_BOX
	context = preview_context(box[0], box[1], device_pixel_ratio)
	if surface is None:
		return Surface(context)
	surface.resize(context)
	return surface
