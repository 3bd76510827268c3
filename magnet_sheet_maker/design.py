"""
Design state and template compositing.
"""

# Standard Library
import dataclasses
import math
import threading

# PIP3 modules
import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont

# local repo modules
import magnet_sheet_maker as msm
import magnet_sheet_maker.config


TemplateGeometry = msm.config.TemplateGeometry

BACKGROUND_COLOR = msm.config.BACKGROUND_COLOR
CAPTION_COLOR = msm.config.CAPTION_COLOR
CAPTION_FONT_SIZE = msm.config.CAPTION_FONT_SIZE
CAPTION_BASELINE_OFFSET = msm.config.CAPTION_BASELINE_OFFSET
TRIM_GUIDE_COLOR = msm.config.TRIM_GUIDE_COLOR
SAFE_GUIDE_COLOR = msm.config.SAFE_GUIDE_COLOR
GUIDE_LINE_WIDTH = msm.config.GUIDE_LINE_WIDTH
SAFE_DASH_LENGTH = msm.config.SAFE_DASH_LENGTH
SAFE_DASH_GAP = msm.config.SAFE_DASH_GAP


@dataclasses.dataclass
class Design:
	source_image: PIL.Image.Image | None = None
	offset_x: float = 0
	offset_y: float = 0
	caption_text: str = ""
	guides_visible: bool = True


#============================================
def screen_to_template(
	dx: float,
	dy: float,
	display_size: float,
	geometry: TemplateGeometry,
) -> tuple[float, float]:
	"""
	Convert a drag delta on a scaled preview into bleed pixel units.

	Args:
		dx: Horizontal delta in screen pixels.
		dy: Vertical delta in screen pixels.
		display_size: Edge length of the preview on screen.
		geometry: Template geometry.

	Returns:
		Tuple of (dx, dy) in bleed pixels.
	"""
	if display_size <= 0:
		raise msm.config.ConfigurationError(f"display size must be positive, got {display_size}")
	factor = geometry.bleed_size / display_size
	return (dx * factor, dy * factor)


#============================================
def load_caption_font(size: int) -> PIL.ImageFont.FreeTypeFont:
	"""
	Load the caption font at a fixed size.

	Args:
		size: Font size in pixels.

	Returns:
		Pillow font.
	"""
	return PIL.ImageFont.load_default(size=size)


#============================================
def draw_dashed_line(
	draw: PIL.ImageDraw.ImageDraw,
	start: tuple[float, float],
	end: tuple[float, float],
	color: tuple[int, int, int],
	width: int,
) -> None:
	"""
	Draw an axis-aligned dashed line.

	Args:
		draw: Pillow draw context.
		start: Line start.
		end: Line end.
		color: Stroke color.
		width: Stroke width.
	"""
	x0, y0 = start
	x1, y1 = end
	length = abs(x1 - x0) + abs(y1 - y0)
	if length <= 0:
		return
	step_x = (x1 - x0) / length
	step_y = (y1 - y0) / length
	position = 0.0
	while position < length:
		dash_end = min(position + SAFE_DASH_LENGTH, length)
		draw.line(
			[
				(x0 + step_x * position, y0 + step_y * position),
				(x0 + step_x * dash_end, y0 + step_y * dash_end),
			],
			fill=color,
			width=width,
		)
		position = dash_end + SAFE_DASH_GAP


#============================================
def draw_guides(draw: PIL.ImageDraw.ImageDraw, geometry: TemplateGeometry) -> None:
	"""
	Draw the solid trim guide and the dashed safe-area guide.

	Args:
		draw: Pillow draw context.
		geometry: Template geometry.
	"""
	x0, y0, x1, y1 = geometry.trim_box()
	draw.rectangle([x0, y0, x1 - 1, y1 - 1], outline=TRIM_GUIDE_COLOR, width=GUIDE_LINE_WIDTH)

	x0, y0, x1, y1 = geometry.safe_box()
	x1 -= 1
	y1 -= 1
	corners = [(x0, y0), (x1, y0), (x1, y1), (x0, y1)]
	for index, corner in enumerate(corners):
		next_corner = corners[(index + 1) % len(corners)]
		draw_dashed_line(draw, corner, next_corner, SAFE_GUIDE_COLOR, GUIDE_LINE_WIDTH)


#============================================
def draw_caption(
	draw: PIL.ImageDraw.ImageDraw,
	text: str,
	geometry: TemplateGeometry,
) -> None:
	"""
	Draw caption text centered on the template with a fixed baseline.

	Args:
		draw: Pillow draw context.
		text: Caption text.
		geometry: Template geometry.
	"""
	font = load_caption_font(CAPTION_FONT_SIZE)
	anchor_x = geometry.bleed_size / 2.0
	baseline_y = geometry.bleed_size - CAPTION_BASELINE_OFFSET
	draw.text((anchor_x, baseline_y), text, fill=CAPTION_COLOR, font=font, anchor="ms")


#============================================
def round_half_up(value: float) -> int:
	"""
	Round a pixel offset with halves always going up.

	Args:
		value: Offset in bleed pixels.

	Returns:
		Whole pixel offset.
	"""
	return math.floor(value + 0.5)


#============================================
def compose(design: Design, geometry: TemplateGeometry, guides_visible: bool) -> PIL.Image.Image:
	"""
	Composite a design onto the bleed raster.

	Layers are drawn background, image, guides, caption; later layers
	cover earlier ones.

	Args:
		design: Design state.
		geometry: Template geometry.
		guides_visible: Whether to draw trim and safe guides.

	Returns:
		RGB image of side bleed_size.
	"""
	size = geometry.bleed_size
	composite = PIL.Image.new("RGB", (size, size), BACKGROUND_COLOR)

	image = design.source_image
	if image is not None:
		position = (round_half_up(design.offset_x), round_half_up(design.offset_y))
		if image.mode in ("RGBA", "LA") or "transparency" in image.info:
			rgba = image.convert("RGBA")
			composite.paste(rgba, position, rgba)
		else:
			composite.paste(image.convert("RGB"), position)

	draw = PIL.ImageDraw.Draw(composite)
	if guides_visible:
		draw_guides(draw, geometry)
	if design.caption_text:
		draw_caption(draw, design.caption_text, geometry)
	return composite


class DesignSurface:
	"""
	Owns one Design and renders it onto the bleed/trim/safe template.

	All mutation goes through the setters, which share a lock with render()
	so a composite is always taken from a consistent design.
	"""

	def __init__(self, geometry: TemplateGeometry | None = None, design: Design | None = None):
		self.geometry = geometry or TemplateGeometry()
		self._design = design if design is not None else Design()
		self._lock = threading.Lock()

	@property
	def design(self) -> Design:
		"""Snapshot of the current design; changes go through the setters."""
		with self._lock:
			return dataclasses.replace(self._design)

	def set_image(self, bitmap: PIL.Image.Image | None) -> None:
		"""Replace the source image, keeping offset and caption."""
		with self._lock:
			self._design.source_image = bitmap

	def set_offset(self, dx: float, dy: float) -> None:
		"""Set the image top-left in bleed pixels. Not clamped."""
		with self._lock:
			self._design.offset_x = dx
			self._design.offset_y = dy

	def move_by(self, dx: float, dy: float) -> None:
		with self._lock:
			self._design.offset_x += dx
			self._design.offset_y += dy

	def set_caption(self, text: str) -> None:
		with self._lock:
			self._design.caption_text = text or ""

	def set_guides_visible(self, visible: bool) -> None:
		with self._lock:
			self._design.guides_visible = bool(visible)

	def reset(self) -> Design:
		"""Start a fresh design for a new session."""
		with self._lock:
			self._design = Design()
			return dataclasses.replace(self._design)

	def center_image(self) -> None:
		"""Center the current image on the template."""
		with self._lock:
			image = self._design.source_image
			if image is None:
				return
			self._design.offset_x = (self.geometry.bleed_size - image.width) / 2.0
			self._design.offset_y = (self.geometry.bleed_size - image.height) / 2.0

	def render(self, guides_visible: bool | None = None) -> PIL.Image.Image:
		"""
		Render the composite.

		Args:
			guides_visible: Override the design's guide flag; None keeps it.

		Returns:
			RGB composite of side bleed_size.
		"""
		with self._lock:
			if guides_visible is None:
				guides_visible = self._design.guides_visible
			return compose(self._design, self.geometry, guides_visible)

	def render_preview(self) -> PIL.Image.Image:
		return self.render()

	def render_print(self) -> PIL.Image.Image:
		"""Render without guides for sheet output."""
		return self.render(guides_visible=False)
