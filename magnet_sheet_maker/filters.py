"""
Image pre-processing applied before a bitmap is handed to the design.

Every function returns a new image and leaves its input untouched.
"""

# PIP3 modules
import PIL.Image
import PIL.ImageFilter
import PIL.ImageOps

# local repo modules
import magnet_sheet_maker as msm
import magnet_sheet_maker.config


TemplateGeometry = msm.config.TemplateGeometry

SEPIA_DARK = (112, 66, 20)
SEPIA_LIGHT = (255, 240, 192)
DEFAULT_BLUR_RADIUS = 4.0


#============================================
def _split_alpha(image: PIL.Image.Image) -> tuple[PIL.Image.Image, PIL.Image.Image | None]:
	if image.mode == "RGBA":
		return (image.convert("RGB"), image.getchannel("A"))
	return (image.convert("RGB"), None)


#============================================
def _merge_alpha(image: PIL.Image.Image, alpha: PIL.Image.Image | None) -> PIL.Image.Image:
	if alpha is None:
		return image
	result = image.convert("RGBA")
	result.putalpha(alpha)
	return result


#============================================
def grayscale(image: PIL.Image.Image) -> PIL.Image.Image:
	"""
	Convert to gray while keeping transparency.

	Args:
		image: Source image.

	Returns:
		Gray image in RGB or RGBA mode.
	"""
	rgb, alpha = _split_alpha(image)
	gray = PIL.ImageOps.grayscale(rgb).convert("RGB")
	return _merge_alpha(gray, alpha)


#============================================
def sepia(image: PIL.Image.Image) -> PIL.Image.Image:
	"""
	Apply a sepia tone.

	Args:
		image: Source image.

	Returns:
		Toned image.
	"""
	rgb, alpha = _split_alpha(image)
	toned = PIL.ImageOps.colorize(PIL.ImageOps.grayscale(rgb), SEPIA_DARK, SEPIA_LIGHT)
	return _merge_alpha(toned, alpha)


#============================================
def blur(image: PIL.Image.Image, radius: float = DEFAULT_BLUR_RADIUS) -> PIL.Image.Image:
	"""
	Apply a gaussian blur.

	Args:
		image: Source image.
		radius: Blur radius in pixels.

	Returns:
		Blurred image.
	"""
	if radius <= 0:
		return image.copy()
	return image.filter(PIL.ImageFilter.GaussianBlur(radius))


#============================================
def rotate(image: PIL.Image.Image, degrees: float) -> PIL.Image.Image:
	"""
	Rotate counter-clockwise, expanding the canvas to hold the result.

	Corners uncovered by the rotation become transparent.

	Args:
		image: Source image.
		degrees: Rotation angle.

	Returns:
		Rotated RGBA image, or a copy when the angle is a full turn.
	"""
	if degrees % 360 == 0:
		return image.copy()
	rgba = image.convert("RGBA")
	return rgba.rotate(degrees, resample=PIL.Image.Resampling.BICUBIC, expand=True)


#============================================
def fit_to_bleed(image: PIL.Image.Image, geometry: TemplateGeometry) -> PIL.Image.Image:
	"""
	Scale an image so it covers the whole bleed square.

	The shorter side is scaled to bleed_size; aspect ratio is kept.

	Args:
		image: Source image.
		geometry: Template geometry.

	Returns:
		Resized image.
	"""
	width, height = image.size
	if width <= 0 or height <= 0:
		return image.copy()
	scale = geometry.bleed_size / min(width, height)
	target = (max(1, round(width * scale)), max(1, round(height * scale)))
	return image.resize(target, PIL.Image.Resampling.LANCZOS)


#============================================
def apply_named_filter(image: PIL.Image.Image, name: str | None) -> PIL.Image.Image:
	"""
	Apply a filter chosen by name.

	Args:
		image: Source image.
		name: One of FILTERS, or None for no change.

	Returns:
		Filtered image.
	"""
	if name is None:
		return image
	normalized = name.strip().lower()
	if normalized not in FILTERS:
		raise msm.config.ConfigurationError(f"unknown filter: {name}")
	return FILTERS[normalized](image)


FILTERS = {
	"grayscale": grayscale,
	"sepia": sepia,
	"blur": blur,
}
