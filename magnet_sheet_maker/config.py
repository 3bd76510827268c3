"""
Shared configuration, constants and error types.
"""

import dataclasses
import math


POINTS_PER_INCH = 72.0

DEFAULT_BLEED_SIZE = 675
DEFAULT_TRIM_SIZE = 600
DEFAULT_SAFE_SIZE = 525

DEFAULT_PAGE_WIDTH = 8.5
DEFAULT_PAGE_HEIGHT = 11.0
DEFAULT_ROWS = 4
DEFAULT_COLUMNS = 3
DEFAULT_UNIT_SIZE = 2.25
DEFAULT_GAP_X = 0.2
DEFAULT_GAP_Y = 0.2
DEFAULT_OUTPUT_NAME = "magnet_sheet.pdf"

BACKGROUND_COLOR = (255, 255, 255)
CAPTION_COLOR = (0, 0, 0)
CAPTION_FONT_SIZE = 30
CAPTION_BASELINE_OFFSET = 20
TRIM_GUIDE_COLOR = (255, 0, 0)
SAFE_GUIDE_COLOR = (0, 120, 255)
GUIDE_LINE_WIDTH = 2
SAFE_DASH_LENGTH = 10
SAFE_DASH_GAP = 6

OUTLINE_LINE_WIDTH = 0.3
OUTLINE_GRAY = 0.7

URL_TIMEOUT = 10
URL_MAX_BYTES = 20 * 1024 * 1024
URL_USER_AGENT = "MagnetSheetMaker/1.0"
IO_WORKERS = 2
MARGIN_EPSILON = 1e-9


#============================================
class ConfigurationError(ValueError):
	"""
	Template or sheet configuration violates a layout invariant.
	"""


#============================================
class AsyncIOFailure(RuntimeError):
	"""
	Bitmap decoding or document emission failed.
	"""


#============================================
class ImageDecodeFailed(AsyncIOFailure):
	"""
	A bitmap source could not be read or decoded.
	"""


#============================================
class EmitFailed(AsyncIOFailure):
	"""
	The sheet document could not be written.
	"""


#============================================
@dataclasses.dataclass(frozen=True)
class TemplateGeometry:
	bleed_size: int = DEFAULT_BLEED_SIZE
	trim_size: int = DEFAULT_TRIM_SIZE
	safe_size: int = DEFAULT_SAFE_SIZE

	def __post_init__(self) -> None:
		validate_geometry(self)

	@property
	def margin(self) -> float:
		return (self.bleed_size - self.trim_size) / 2.0

	@property
	def safe_margin(self) -> float:
		return (self.bleed_size - self.safe_size) / 2.0

	#============================================
	def trim_box(self) -> tuple[float, float, float, float]:
		"""
		Trim square in bleed pixel coordinates.

		Returns:
			Box (x0, y0, x1, y1).
		"""
		return centered_box(self.bleed_size, self.trim_size)

	#============================================
	def safe_box(self) -> tuple[float, float, float, float]:
		"""
		Safe-area square in bleed pixel coordinates.

		Returns:
			Box (x0, y0, x1, y1).
		"""
		return centered_box(self.bleed_size, self.safe_size)


#============================================
@dataclasses.dataclass
class SheetConfig:
	page_width: float = DEFAULT_PAGE_WIDTH
	page_height: float = DEFAULT_PAGE_HEIGHT
	rows: int = DEFAULT_ROWS
	cols: int = DEFAULT_COLUMNS
	unit_size: float = DEFAULT_UNIT_SIZE
	gap_x: float = DEFAULT_GAP_X
	gap_y: float = DEFAULT_GAP_Y
	unit_height: float | None = None
	draw_outlines: bool = False
	output_name: str = DEFAULT_OUTPUT_NAME

	@property
	def margin_x(self) -> float:
		return compute_margin(self.page_width, self.cols, self.unit_size, self.gap_x)

	@property
	def margin_y(self) -> float:
		return compute_margin(self.page_height, self.rows, self.unit_size, self.gap_y)

	@property
	def tile_count(self) -> int:
		return self.rows * self.cols


#============================================
def inches_to_points(value: float) -> float:
	"""
	Convert inches to points.

	Args:
		value: Inches value.

	Returns:
		Points value.
	"""
	return value * POINTS_PER_INCH


#============================================
def centered_box(outer: float, inner: float) -> tuple[float, float, float, float]:
	"""
	Compute a square of side inner centered in a square of side outer.

	Args:
		outer: Outer square edge.
		inner: Inner square edge.

	Returns:
		Box (x0, y0, x1, y1).
	"""
	offset = (outer - inner) / 2.0
	return (offset, offset, offset + inner, offset + inner)


#============================================
def compute_margin(page_extent: float, count: int, unit_size: float, gap: float) -> float:
	"""
	Compute the centering margin along one page axis.

	An empty axis has no tiles and no gaps, so the margin is half the page.

	Args:
		page_extent: Page width or height.
		count: Tiles along this axis.
		unit_size: Tile edge length.
		gap: Gap between neighbouring tiles.

	Returns:
		Margin on each side.
	"""
	if count <= 0:
		return page_extent / 2.0
	used = count * unit_size + (count - 1) * gap
	return (page_extent - used) / 2.0


#============================================
def validate_geometry(geometry: TemplateGeometry) -> None:
	"""
	Check bleed, trim and safe sizes nest strictly.

	Args:
		geometry: Template geometry.

	Raises:
		ConfigurationError: When the squares do not nest.
	"""
	for name in ("bleed_size", "trim_size", "safe_size"):
		value = getattr(geometry, name)
		if isinstance(value, bool) or not isinstance(value, int):
			raise ConfigurationError(f"{name} must be a whole number of pixels, got {value!r}")
	if geometry.bleed_size <= 0:
		raise ConfigurationError(f"bleed size must be positive, got {geometry.bleed_size}")
	if geometry.safe_size <= 0:
		raise ConfigurationError(f"safe size must be positive, got {geometry.safe_size}")
	if geometry.trim_size >= geometry.bleed_size:
		raise ConfigurationError(
			f"trim size {geometry.trim_size} must be smaller than bleed size {geometry.bleed_size}"
		)
	if geometry.safe_size >= geometry.trim_size:
		raise ConfigurationError(
			f"safe size {geometry.safe_size} must be smaller than trim size {geometry.trim_size}"
		)


#============================================
def validate_sheet_config(config: SheetConfig) -> None:
	"""
	Check a sheet configuration before any placement or emission.

	Args:
		config: Sheet configuration.

	Raises:
		ConfigurationError: On any invariant violation.
	"""
	for name in ("page_width", "page_height", "unit_size", "unit_height", "gap_x", "gap_y"):
		value = getattr(config, name)
		if value is None and name == "unit_height":
			continue
		if not math.isfinite(value):
			raise ConfigurationError(f"{name} must be finite, got {value}")
	if config.page_width <= 0.0 or config.page_height <= 0.0:
		raise ConfigurationError(
			f"page size must be positive, got {config.page_width} x {config.page_height}"
		)
	if config.rows < 0 or config.cols < 0:
		raise ConfigurationError(f"grid must be non-negative, got {config.rows} x {config.cols}")
	if config.unit_size <= 0.0:
		raise ConfigurationError(f"unit size must be positive, got {config.unit_size}")
	if config.unit_height is not None and config.unit_height != config.unit_size:
		raise ConfigurationError(
			f"tiles must be square, got {config.unit_size} x {config.unit_height}"
		)
	if config.gap_x < 0.0 or config.gap_y < 0.0:
		raise ConfigurationError(f"gaps must be non-negative, got {config.gap_x}, {config.gap_y}")
	if config.margin_x < -MARGIN_EPSILON:
		raise ConfigurationError(
			f"{config.cols} columns of {config.unit_size} in with {config.gap_x} in gaps "
			f"exceed page width {config.page_width} in"
		)
	if config.margin_y < -MARGIN_EPSILON:
		raise ConfigurationError(
			f"{config.rows} rows of {config.unit_size} in with {config.gap_y} in gaps "
			f"exceed page height {config.page_height} in"
		)


#============================================
@dataclasses.dataclass
class SheetResult:
	output_path: str | None
	tiles: int
	pages: int
	page_width: float
	page_height: float
	unit_size: float
	scale: float
