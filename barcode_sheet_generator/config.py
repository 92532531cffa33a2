"""
Shared configuration and constants.
"""

# Standard Library
import dataclasses


POINTS_PER_INCH = 72.0
DPI = 300

PAGE_WIDTH_INCHES = 8.27
PAGE_HEIGHT_INCHES = 11.69

ASSUMED_VECTOR_DPI = 96.0
VECTOR_EXTENSIONS = (".svg",)
# CSS pixels per unit for SVG root width/height attributes
SVG_UNIT_PX = {
	"": 1.0,
	"px": 1.0,
	"in": 96.0,
	"cm": 96.0 / 2.54,
	"mm": 96.0 / 25.4,
	"pt": 96.0 / 72.0,
	"pc": 16.0,
}

TITLE_FONT_SIZE_PT = 16.0
TITLE_LINE_FACTOR = 1.5
TITLE_FONT_FILE = "VeraBd.ttf"
TITLE_COLOR = (0, 0, 0)
BACKGROUND_COLOR = (255, 255, 255)
ERROR_TINT_COLOR = (255, 0, 0)
ERROR_TINT_ALPHA = 0.1
URL_DISPLAY_LENGTH = 50

DEFAULT_REPEAT_X = 5
DEFAULT_REPEAT_Y = 10
DEFAULT_FIRST_MARGIN_IN = 0.0
DEFAULT_MARGIN_IN = 0.1

VALIDATION_DEBOUNCE_SECONDS = 0.5
RENDER_DEBOUNCE_SECONDS = 0.3
HTTP_TIMEOUT_SECONDS = 30.0

DEFAULT_PREVIEW_BOX = (600, 848)
DEFAULT_DEVICE_PIXEL_RATIO = 1.0

EXPORT_FILENAME = "barcode-sheet-A4-300dpi.png"
RESOLVE_PATH = "/resolve"
PROGRESS_BAR_WIDTH = 20

STATE_UNVALIDATED = "unvalidated"
STATE_PENDING = "pending"
STATE_VALID = "valid"
STATE_INVALID = "invalid"

MODE_PREVIEW = "preview"
MODE_EXPORT = "export"


@dataclasses.dataclass(frozen=True)
class Group:
	group_id: int
	image_ref: str = ""
	resolved_url: str = ""
	validation_state: str = STATE_UNVALIDATED
	title: str = ""
	repeat_x: int = DEFAULT_REPEAT_X
	repeat_y: int = DEFAULT_REPEAT_Y
	margin_top_in: float = DEFAULT_FIRST_MARGIN_IN


@dataclasses.dataclass(frozen=True)
class RenderContext:
	mode: str
	width_px: int
	height_px: int
	scale: float


@dataclasses.dataclass
class GroupPlacement:
	group_id: int
	url: str
	title_baseline_y: float | None
	start_x: float
	start_y: float
	cell_width: float
	cell_height: float
	grid_width: float
	grid_height: float
	repeat_x: int
	repeat_y: int


@dataclasses.dataclass
class PageLayout:
	placements: list[GroupPlacement]
	cursor_y: float


#============================================
def inches_to_pixels(value: float, dpi: float = DPI) -> float:
	"""
	Convert inches to pixels.

	Args:
		value: Inches value.
		dpi: Target resolution.

	Returns:
		Pixel value, unrounded.
	"""
	return value * dpi


#============================================
def points_to_pixels(value: float, dpi: float = DPI) -> float:
	"""
	Convert points to pixels.

	Args:
		value: Points value.
		dpi: Target resolution.

	Returns:
		Pixel value, unrounded.
	"""
	return (value / POINTS_PER_INCH) * dpi


PAGE_WIDTH_PX = int(round(inches_to_pixels(PAGE_WIDTH_INCHES)))
PAGE_HEIGHT_PX = int(round(inches_to_pixels(PAGE_HEIGHT_INCHES)))
TITLE_FONT_HEIGHT_PX = points_to_pixels(TITLE_FONT_SIZE_PT)
