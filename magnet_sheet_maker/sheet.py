"""
Sheet tiling and PDF emission.
"""

# Standard Library
import concurrent.futures
import json
import pathlib
import typing

# PIP3 modules
import PIL.Image
import reportlab.lib.utils
import reportlab.pdfgen.canvas

# local repo modules
import magnet_sheet_maker as msm
import magnet_sheet_maker.config
import magnet_sheet_maker.image_io


SheetConfig = msm.config.SheetConfig
SheetResult = msm.config.SheetResult
TemplateGeometry = msm.config.TemplateGeometry
ConfigurationError = msm.config.ConfigurationError
EmitFailed = msm.config.EmitFailed

OUTLINE_LINE_WIDTH = msm.config.OUTLINE_LINE_WIDTH
OUTLINE_GRAY = msm.config.OUTLINE_GRAY

inches_to_points = msm.config.inches_to_points


#============================================
def compute_placement(config: SheetConfig) -> list[tuple[float, float]]:
	"""
	Compute tile positions on the page.

	Positions are top-left corners in inches measured from the top-left
	page corner, in row-major order.

	Args:
		config: Sheet configuration.

	Returns:
		List of (x, y) positions, rows * cols long.

	Raises:
		ConfigurationError: When the grid does not fit the page.
	"""
	msm.config.validate_sheet_config(config)
	margin_x = config.margin_x
	margin_y = config.margin_y
	step_x = config.unit_size + config.gap_x
	step_y = config.unit_size + config.gap_y
	placement: list[tuple[float, float]] = []
	for row in range(config.rows):
		for col in range(config.cols):
			placement.append((margin_x + col * step_x, margin_y + row * step_y))
	return placement


#============================================
def tile_boxes(config: SheetConfig) -> list[tuple[float, float, float, float]]:
	"""
	Compute tile bounding boxes in inches.

	Args:
		config: Sheet configuration.

	Returns:
		List of (x0, y0, x1, y1) boxes in placement order.
	"""
	size = config.unit_size
	return [(x, y, x + size, y + size) for x, y in compute_placement(config)]


#============================================
def to_pdf_origin(x: float, y: float, config: SheetConfig) -> tuple[float, float]:
	"""
	Convert a top-left tile position in inches to a PDF lower-left in points.

	Args:
		x: Tile left in inches from the page left.
		y: Tile top in inches from the page top.
		config: Sheet configuration.

	Returns:
		Tuple of (x, y) in points from the page bottom-left.
	"""
	page_height = inches_to_points(config.page_height)
	unit = inches_to_points(config.unit_size)
	return (inches_to_points(x), page_height - inches_to_points(y) - unit)


#============================================
def draw_tile_outlines(
	pdf: reportlab.pdfgen.canvas.Canvas,
	placement: list[tuple[float, float]],
	config: SheetConfig,
) -> None:
	"""
	Draw thin outlines around each tile on the current page.

	Args:
		pdf: ReportLab canvas.
		placement: Tile positions in inches.
		config: Sheet configuration.
	"""
	unit = inches_to_points(config.unit_size)
	pdf.setLineWidth(OUTLINE_LINE_WIDTH)
	pdf.setStrokeColorRGB(OUTLINE_GRAY, OUTLINE_GRAY, OUTLINE_GRAY)
	for x, y in placement:
		pdf_x, pdf_y = to_pdf_origin(x, y, config)
		pdf.rect(pdf_x, pdf_y, unit, unit, stroke=1, fill=0)


#============================================
def emit(
	composite: PIL.Image.Image,
	config: SheetConfig,
	output: pathlib.Path | str | typing.BinaryIO | None = None,
) -> SheetResult:
	"""
	Tile a print composite onto one PDF page.

	Args:
		composite: Square print composite, without guides.
		config: Sheet configuration.
		output: Output path or binary file object; defaults to
			config.output_name in the working directory.

	Returns:
		SheetResult.

	Raises:
		ConfigurationError: Invalid sheet config or non-square composite.
		EmitFailed: When the document cannot be written.
	"""
	width, height = composite.size
	if width != height:
		raise ConfigurationError(f"composite must be square, got {width} x {height}")
	if width <= 0:
		raise ConfigurationError("composite is empty")
	placement = compute_placement(config)

	if output is None:
		output = pathlib.Path(config.output_name)
	output_path = None
	target = output
	if isinstance(output, (str, pathlib.Path)):
		output_path = str(output)
		target = output_path

	page_width = inches_to_points(config.page_width)
	page_height = inches_to_points(config.page_height)
	unit = inches_to_points(config.unit_size)
	try:
		pdf = reportlab.pdfgen.canvas.Canvas(target, pagesize=(page_width, page_height))
		image_reader = reportlab.lib.utils.ImageReader(composite.convert("RGB"))
		for x, y in placement:
			pdf_x, pdf_y = to_pdf_origin(x, y, config)
			pdf.drawImage(
				image_reader,
				pdf_x,
				pdf_y,
				width=unit,
				height=unit,
				mask=None,
				preserveAspectRatio=False,
				anchor="sw",
			)
		if config.draw_outlines:
			draw_tile_outlines(pdf, placement, config)
		# an empty grid still needs its single blank page
		pdf.showPage()
		pdf.save()
	except OSError as exc:
		raise EmitFailed(f"cannot write sheet: {exc}") from exc

	return SheetResult(
		output_path=output_path,
		tiles=len(placement),
		pages=1,
		page_width=config.page_width,
		page_height=config.page_height,
		unit_size=config.unit_size,
		scale=config.unit_size / width,
	)


#============================================
def emit_async(
	composite: PIL.Image.Image,
	config: SheetConfig,
	output: pathlib.Path | str | typing.BinaryIO | None = None,
) -> concurrent.futures.Future:
	"""
	Write the sheet in the background.

	Configuration is checked before the job is queued, so a bad config
	raises here rather than through the future.

	Args:
		composite: Square print composite.
		config: Sheet configuration.
		output: Output path or binary file object.

	Returns:
		Future resolving to a SheetResult.
	"""
	compute_placement(config)
	return msm.image_io.submit(emit, composite.copy(), config, output)


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	result: SheetResult,
	config: SheetConfig,
	geometry: TemplateGeometry,
	source: str | None = None,
) -> None:
	"""
	Write a manifest JSON file.

	Args:
		manifest_path: Output path.
		result: Emission result.
		config: Sheet configuration.
		geometry: Template geometry.
		source: Source image path or URL.

	Raises:
		EmitFailed: When the manifest cannot be written.
	"""
	data = {
		"source": source,
		"output": result.output_path,
		"tiles": result.tiles,
		"pages": result.pages,
		"scale_inches_per_pixel": result.scale,
		"template": {
			"bleed_size": geometry.bleed_size,
			"trim_size": geometry.trim_size,
			"safe_size": geometry.safe_size,
			"margin": geometry.margin,
			"safe_margin": geometry.safe_margin,
		},
		"layout": {
			"page_width": config.page_width,
			"page_height": config.page_height,
			"rows": config.rows,
			"cols": config.cols,
			"unit_size": config.unit_size,
			"gap_x": config.gap_x,
			"gap_y": config.gap_y,
			"margin_x": config.margin_x,
			"margin_y": config.margin_y,
			"draw_outlines": config.draw_outlines,
		},
		"placements": [list(position) for position in compute_placement(config)],
	}
	try:
		with manifest_path.open("w", encoding="utf-8") as handle:
			json.dump(data, handle, indent=2, sort_keys=True)
	except OSError as exc:
		raise EmitFailed(f"cannot write manifest {manifest_path}: {exc}") from exc
