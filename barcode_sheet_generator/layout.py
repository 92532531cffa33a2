"""
Page composition: stack barcode groups top-to-bottom on one page.
"""

# Standard Library
import typing

# local repo modules
import barcode_sheet_generator as bsg
import barcode_sheet_generator.config
import barcode_sheet_generator.errors
import barcode_sheet_generator.image_loader
import barcode_sheet_generator.render_target


Group = bsg.config.Group
GroupPlacement = bsg.config.GroupPlacement
PageLayout = bsg.config.PageLayout
LoadedImage = bsg.image_loader.LoadedImage
Surface = bsg.render_target.Surface
LayoutError = bsg.errors.LayoutError
ImageLoadError = bsg.errors.ImageLoadError
PageOverflowError = bsg.errors.PageOverflowError

Loader = typing.Callable[[str], typing.Awaitable[LoadedImage]]

DPI = bsg.config.DPI
PAGE_WIDTH_PX = bsg.config.PAGE_WIDTH_PX
PAGE_HEIGHT_PX = bsg.config.PAGE_HEIGHT_PX
TITLE_FONT_HEIGHT_PX = bsg.config.TITLE_FONT_HEIGHT_PX
TITLE_LINE_FACTOR = bsg.config.TITLE_LINE_FACTOR
STATE_VALID = bsg.config.STATE_VALID
PROGRESS_BAR_WIDTH = bsg.config.PROGRESS_BAR_WIDTH


#============================================
def print_progress(prefix: str, current: int, total: int) -> None:
	"""
	Print a simple progress bar.

	Args:
		prefix: Label text.
		current: Current count.
		total: Total count.
	"""
	if total <= 0:
		return
	percent = int(round((current / total) * 100.0))
	filled = int(round(PROGRESS_BAR_WIDTH * percent / 100.0))
	bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
	print(f"{prefix} [{bar}] {current}/{total} ({percent}%)", end="\r")


#============================================
def is_renderable(group: Group) -> bool:
	"""
	Check whether a group contributes to the page.

	Args:
		group: Group to check.

	Returns:
		True for validated groups with a URL and a non-empty grid.
	"""
	if group.validation_state != STATE_VALID or not group.resolved_url:
		return False
	return group.repeat_x > 0 and group.repeat_y > 0


#============================================
def has_title(group: Group) -> bool:
	return bool(group.title.strip())


#============================================
def compute_center_offset(available: float, size: float) -> float:
	"""
	Offset that centers a span inside an available span.

	Args:
		available: Available dimension.
		size: Content dimension.

	Returns:
		Offset in pixels; negative when the content is wider.
	"""
	return (available - size) / 2.0


#============================================
def compute_grid_positions(
	start_x: float,
	start_y: float,
	cell_width: float,
	cell_height: float,
	repeat_x: int,
	repeat_y: int,
) -> list[tuple[float, float]]:
	"""
	Compute cell origins for a repeat grid in row-major order.

	Args:
		start_x: Grid left edge.
		start_y: Grid top edge.
		cell_width: Cell width.
		cell_height: Cell height.
		repeat_x: Columns.
		repeat_y: Rows.

	Returns:
		List of (x, y) cell origins.
	"""
	positions: list[tuple[float, float]] = []
	for row in range(repeat_y):
		for col in range(repeat_x):
			positions.append((start_x + col * cell_width, start_y + row * cell_height))
	return positions


#============================================
async def default_loader(url: str) -> LoadedImage:
	return await bsg.image_loader.load_image(url, DPI)


#============================================
async def layout_groups(
	groups: typing.Sequence[Group],
	surface: Surface,
	loader: Loader,
	verbose: bool = False,
) -> PageLayout:
	"""
	Place and draw each renderable group, advancing a vertical cursor.

	Args:
		groups: Groups in stacking order.
		surface: Surface to draw into.
		loader: Async image loader.
		verbose: Print progress.

	Returns:
		PageLayout describing every drawn group.
	"""
	active = [group for group in groups if is_renderable(group)]
	placements: list[GroupPlacement] = []
	cursor_y = 0.0
	total = len(active)
	for index, group in enumerate(active, start=1):
		cursor_y += bsg.config.inches_to_pixels(group.margin_top_in, DPI)

		title_baseline_y = None
		if has_title(group):
			title_baseline_y = cursor_y + TITLE_FONT_HEIGHT_PX
			surface.draw_centered_text(
				group.title,
				PAGE_WIDTH_PX / 2.0,
				title_baseline_y,
				TITLE_FONT_HEIGHT_PX,
			)
			cursor_y += TITLE_FONT_HEIGHT_PX * TITLE_LINE_FACTOR

		loaded = await loader(group.resolved_url)
		cell_width = loaded.width
		cell_height = loaded.height
		if cell_width <= 0 or cell_height <= 0:
			short_url = bsg.image_loader.truncate_url(group.resolved_url)
			raise ImageLoadError(f"Image from {short_url} has zero dimensions.")

		grid_width = group.repeat_x * cell_width
		grid_height = group.repeat_y * cell_height
		if cursor_y + grid_height > PAGE_HEIGHT_PX:
			raise PageOverflowError("Content overflows A4 page. Reduce counts or adjust margins.")

		start_x = compute_center_offset(PAGE_WIDTH_PX, grid_width)
		start_y = cursor_y
		positions = compute_grid_positions(
			start_x,
			start_y,
			cell_width,
			cell_height,
			group.repeat_x,
			group.repeat_y,
		)
		surface.draw_cells(loaded.image, positions, cell_width, cell_height)
		cursor_y += grid_height

		placements.append(
			GroupPlacement(
				group_id=group.group_id,
				url=group.resolved_url,
				title_baseline_y=title_baseline_y,
				start_x=start_x,
				start_y=start_y,
				cell_width=cell_width,
				cell_height=cell_height,
				grid_width=grid_width,
				grid_height=grid_height,
				repeat_x=group.repeat_x,
				repeat_y=group.repeat_y,
			)
		)
		if verbose:
			print_progress("Groups", index, total)
	if verbose and total > 0:
		print()
	return PageLayout(placements=placements, cursor_y=cursor_y)


#============================================
async def render(
	groups: typing.Sequence[Group],
	surface: Surface,
	loader: Loader | None = None,
	verbose: bool = False,
) -> PageLayout:
	"""
	Run one full render pass from a blank page.

	On failure the surface keeps whatever was drawn before the error, gets a
	red tint, and the error is re-raised.

	Args:
		groups: Group snapshot in stacking order.
		surface: Prepared surface.
		loader: Async image loader, defaults to load_image at 300 DPI.
		verbose: Print progress.

	Returns:
		PageLayout for the drawn page.
	"""
	if loader is None:
		loader = default_loader
	surface.fill()
	try:
		return await layout_groups(groups, surface, loader, verbose=verbose)
	except LayoutError:
		surface.tint()
		raise
