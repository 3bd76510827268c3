"""
CLI entry points for magnet sheet generation.
"""

# Standard Library
import argparse
import pathlib
import sys
import time

# local repo modules
import magnet_sheet_maker as msm
import magnet_sheet_maker.config
import magnet_sheet_maker.design
import magnet_sheet_maker.filters
import magnet_sheet_maker.image_io
import magnet_sheet_maker.sheet


SheetConfig = msm.config.SheetConfig
TemplateGeometry = msm.config.TemplateGeometry
ConfigurationError = msm.config.ConfigurationError
AsyncIOFailure = msm.config.AsyncIOFailure
EmitFailed = msm.config.EmitFailed

DEFAULT_BLEED_SIZE = msm.config.DEFAULT_BLEED_SIZE
DEFAULT_TRIM_SIZE = msm.config.DEFAULT_TRIM_SIZE
DEFAULT_SAFE_SIZE = msm.config.DEFAULT_SAFE_SIZE
DEFAULT_PAGE_WIDTH = msm.config.DEFAULT_PAGE_WIDTH
DEFAULT_PAGE_HEIGHT = msm.config.DEFAULT_PAGE_HEIGHT
DEFAULT_ROWS = msm.config.DEFAULT_ROWS
DEFAULT_COLUMNS = msm.config.DEFAULT_COLUMNS
DEFAULT_UNIT_SIZE = msm.config.DEFAULT_UNIT_SIZE
DEFAULT_GAP_X = msm.config.DEFAULT_GAP_X
DEFAULT_GAP_Y = msm.config.DEFAULT_GAP_Y
DEFAULT_OUTPUT_NAME = msm.config.DEFAULT_OUTPUT_NAME


#============================================
def build_geometry(args: argparse.Namespace) -> TemplateGeometry:
	"""
	Build template geometry from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		TemplateGeometry.
	"""
	return TemplateGeometry(
		bleed_size=args.bleed_size,
		trim_size=args.trim_size,
		safe_size=args.safe_size,
	)


#============================================
def build_sheet_config(args: argparse.Namespace) -> SheetConfig:
	"""
	Build sheet config from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		SheetConfig.
	"""
	config = SheetConfig(
		page_width=args.page_width,
		page_height=args.page_height,
		rows=args.rows,
		cols=args.cols,
		unit_size=args.unit_size,
		gap_x=args.gap_x,
		gap_y=args.gap_y,
		draw_outlines=args.draw_outlines,
		output_name=pathlib.Path(args.output_path).name,
	)
	return config


#============================================
def build_parser() -> argparse.ArgumentParser:
	"""
	Build the argument parser.

	Returns:
		Argument parser.
	"""
	parser = argparse.ArgumentParser(description="Tile a square magnet design onto a printable PDF sheet.")
	parser.add_argument("image", help="Image file path or http(s) URL.")

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", default=DEFAULT_OUTPUT_NAME, help="Output PDF path.")
	output_group.add_argument("-p", "--preview", dest="preview_path", default=None, help="Write an edit preview PNG with guides.")
	output_group.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Output manifest JSON path.")

	design_group = parser.add_argument_group("Design")
	design_group.add_argument("-t", "--caption", dest="caption", default="", help="Caption text.")
	design_group.add_argument("-x", "--offset-x", dest="offset_x", type=float, default=None, help="Image left in template pixels.")
	design_group.add_argument("-y", "--offset-y", dest="offset_y", type=float, default=None, help="Image top in template pixels.")
	design_group.add_argument("-f", "--fit", dest="fit", action="store_true", help="Scale the image to cover the bleed area.")
	design_group.add_argument("-F", "--no-fit", dest="fit", action="store_false", help="Use the image at its natural size.")
	design_group.add_argument(
		"--filter",
		dest="filter_name",
		choices=sorted(msm.filters.FILTERS),
		default=None,
		help="Pre-processing filter.",
	)
	design_group.add_argument("--rotate", dest="rotate", type=float, default=0.0, help="Rotate the image by degrees.")

	template_group = parser.add_argument_group("Template")
	template_group.add_argument("--bleed-size", dest="bleed_size", type=int, default=DEFAULT_BLEED_SIZE, help="Bleed edge in pixels.")
	template_group.add_argument("--trim-size", dest="trim_size", type=int, default=DEFAULT_TRIM_SIZE, help="Trim edge in pixels.")
	template_group.add_argument("--safe-size", dest="safe_size", type=int, default=DEFAULT_SAFE_SIZE, help="Safe area edge in pixels.")

	sheet_group = parser.add_argument_group("Sheet")
	sheet_group.add_argument("-r", "--rows", dest="rows", type=int, default=DEFAULT_ROWS, help="Tile rows.")
	sheet_group.add_argument("-c", "--cols", dest="cols", type=int, default=DEFAULT_COLUMNS, help="Tile columns.")
	sheet_group.add_argument("-u", "--unit", dest="unit_size", type=float, default=DEFAULT_UNIT_SIZE, help="Tile edge in inches.")
	sheet_group.add_argument("--gap-x", dest="gap_x", type=float, default=DEFAULT_GAP_X, help="Horizontal gap in inches.")
	sheet_group.add_argument("--gap-y", dest="gap_y", type=float, default=DEFAULT_GAP_Y, help="Vertical gap in inches.")
	sheet_group.add_argument("--page-width", dest="page_width", type=float, default=DEFAULT_PAGE_WIDTH, help="Page width in inches.")
	sheet_group.add_argument("--page-height", dest="page_height", type=float, default=DEFAULT_PAGE_HEIGHT, help="Page height in inches.")
	sheet_group.add_argument("-d", "--draw-outlines", dest="draw_outlines", action="store_true", help="Draw tile outlines.")
	sheet_group.add_argument("-D", "--no-draw-outlines", dest="draw_outlines", action="store_false", help="Disable tile outlines.")

	parser.set_defaults(
		draw_outlines=False,
		fit=True,
	)
	return parser


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Argument list, or None for sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = build_parser()
	args = parser.parse_args(argv)
	return args


#============================================
def prepare_image(args: argparse.Namespace, geometry: TemplateGeometry):
	"""
	Load and pre-process the source image.

	Args:
		args: Parsed argparse namespace.
		geometry: Template geometry.

	Returns:
		Pillow image ready for the design.
	"""
	future = msm.image_io.load_image_async(args.image)
	image = future.result()
	print(f"Image loaded: {image.width} x {image.height} ({image.mode})")
	if args.rotate:
		image = msm.filters.rotate(image, args.rotate)
	if args.filter_name:
		image = msm.filters.apply_named_filter(image, args.filter_name)
	if args.fit:
		image = msm.filters.fit_to_bleed(image, geometry)
		print(f"Image fitted: {image.width} x {image.height}")
	return image


#============================================
def run_pipeline(args: argparse.Namespace) -> msm.config.SheetResult:
	"""
	Run the full pipeline from source image to PDF sheet.

	Args:
		args: Parsed argparse namespace.

	Returns:
		SheetResult.
	"""
	print("Magnet sheet pipeline")
	print(f"Source: {args.image}")
	print(f"Output PDF: {args.output_path}")
	if args.caption:
		print(f"Caption: {args.caption}")
	if args.filter_name:
		print(f"Filter: {args.filter_name}")
	print(f"Draw outlines: {args.draw_outlines}")

	start_time = time.perf_counter()
	geometry = build_geometry(args)
	config = build_sheet_config(args)
	placement = msm.sheet.compute_placement(config)
	print(f"Grid: {config.rows} x {config.cols} of {config.unit_size} in on {config.page_width} x {config.page_height} in")
	print(f"Margins: x={config.margin_x:.3f} in y={config.margin_y:.3f} in")

	load_start = time.perf_counter()
	image = prepare_image(args, geometry)
	load_end = time.perf_counter()

	surface = msm.design.DesignSurface(geometry)
	surface.set_image(image)
	surface.center_image()
	if args.offset_x is not None or args.offset_y is not None:
		offset_x = args.offset_x if args.offset_x is not None else surface.design.offset_x
		offset_y = args.offset_y if args.offset_y is not None else surface.design.offset_y
		surface.set_offset(offset_x, offset_y)
	surface.set_caption(args.caption)

	if args.preview_path:
		preview = surface.render_preview()
		try:
			preview.save(args.preview_path)
		except (OSError, ValueError) as exc:
			raise EmitFailed(f"cannot write preview {args.preview_path}: {exc}") from exc
		print(f"Preview written: {args.preview_path}")

	render_start = time.perf_counter()
	composite = surface.render_print()
	render_end = time.perf_counter()

	output_path = pathlib.Path(args.output_path)
	emit_start = time.perf_counter()
	result = msm.sheet.emit_async(composite, config, output_path).result()
	emit_end = time.perf_counter()
	print(f"Tiles placed: {result.tiles} of {len(placement)}")
	print(f"Scale: {result.scale:.6f} in/px")
	print(f"Sheet written: {result.output_path}")

	if args.manifest_path:
		msm.sheet.write_manifest(
			pathlib.Path(args.manifest_path),
			result,
			config,
			geometry,
			source=args.image,
		)
		print(f"Manifest written: {args.manifest_path}")

	total_time = time.perf_counter() - start_time
	print(
		"Timing: load={:.2f}s render={:.2f}s emit={:.2f}s total={:.2f}s".format(
			load_end - load_start,
			render_end - render_start,
			emit_end - emit_start,
			total_time,
		)
	)
	return result


#============================================
def main(argv: list[str] | None = None) -> int:
	"""
	Main entry point.

	Args:
		argv: Argument list, or None for sys.argv.

	Returns:
		Process exit code.
	"""
	args = parse_args(argv)
	try:
		run_pipeline(args)
	except ConfigurationError as exc:
		print(f"Configuration error: {exc}", file=sys.stderr)
		return 2
	except AsyncIOFailure as exc:
		print(f"I/O error: {exc}", file=sys.stderr)
		return 1
	return 0
