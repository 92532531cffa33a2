import PIL.Image
import pytest

import barcode_sheet_generator.config
import barcode_sheet_generator.render_target


config = barcode_sheet_generator.config
render_target = barcode_sheet_generator.render_target


#============================================
def test_export_context_is_full_page() -> None:
	context = render_target.export_context()
	assert (context.width_px, context.height_px) == (2481, 3507)
	assert context.scale == 1.0
	assert context.mode == config.MODE_EXPORT


#============================================
def test_preview_context_fits_page_in_box() -> None:
	"""
	Scale fits the page inside the box and multiplies by the pixel ratio.
	"""
	context = render_target.preview_context(600, 848, 2.0)
	assert (context.width_px, context.height_px) == (1200, 1696)
	expected = min(600 / 2481, 848 / 3507) * 2.0
	assert context.scale == pytest.approx(expected)

	wide = render_target.preview_context(2000, 500)
	assert wide.scale == pytest.approx(500 / 3507)


#============================================
def test_preview_context_rejects_empty_box() -> None:
	with pytest.raises(ValueError):
		render_target.preview_context(0, 848)
	with pytest.raises(ValueError):
		render_target.prepare_surface(config.MODE_PREVIEW, box=(600, -1))


#============================================
def test_prepare_surface_reuses_and_clears_preview() -> None:
	surface = render_target.prepare_surface(config.MODE_PREVIEW, box=(100, 140))
	surface.fill((0, 0, 0))
	again = render_target.prepare_surface(config.MODE_PREVIEW, surface, box=(120, 170))
	assert again is surface
	assert surface.image.size == (120, 170)
	assert surface.image.getpixel((5, 5)) == config.BACKGROUND_COLOR

	exported = render_target.prepare_surface(config.MODE_EXPORT, surface)
	assert exported is not surface
	assert exported.image.size == (config.PAGE_WIDTH_PX, config.PAGE_HEIGHT_PX)


#============================================
def test_unknown_mode_raises() -> None:
	with pytest.raises(ValueError):
		render_target.prepare_surface("print")


#============================================
def test_tint_reddens_white_page() -> None:
	surface = render_target.Surface(render_target.preview_context(50, 70))
	surface.tint()
	red, green, blue = surface.image.getpixel((10, 10))
	assert red == 255
	assert 225 <= green <= 231
	assert green == blue


#============================================
def test_draw_cells_tile_without_gaps() -> None:
	"""
	Adjacent cells meet at truncated origins, even at fractional scale.
	"""
	surface = render_target.Surface(render_target.preview_context(248.1, 350.7))
	black = PIL.Image.new("RGBA", (4, 4), (0, 0, 0, 255))
	positions = [(0.0, 0.0), (33.0, 0.0), (66.0, 0.0)]
	drawn = surface.draw_cells(black, positions, 33.0, 33.0)
	assert drawn == 3
	row = [surface.image.getpixel((x, 1)) for x in range(0, surface.to_device(99.0))]
	assert all(pixel == (0, 0, 0) for pixel in row)


#============================================
def test_title_font_ships_with_reportlab() -> None:
	assert render_target.title_font_path().is_file()
	font = render_target.load_title_font(20)
	assert render_target.load_title_font(20) is font
