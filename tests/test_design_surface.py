import PIL.Image
import pytest

import magnet_sheet_maker.config as config
import magnet_sheet_maker.design as design


WHITE = config.BACKGROUND_COLOR
RED = (255, 0, 0)


#============================================
def _solid(width: int, height: int, color=RED) -> PIL.Image.Image:
	return PIL.Image.new("RGB", (width, height), color)


#============================================
def _window_has_color(image: PIL.Image.Image, center: tuple[int, int], color, radius: int = 3) -> bool:
	"""
	Check whether any pixel near center matches color.
	"""
	cx, cy = center
	for x in range(cx - radius, cx + radius + 1):
		for y in range(cy - radius, cy + radius + 1):
			if image.getpixel((x, y)) == tuple(color):
				return True
	return False


#============================================
def test_empty_design_is_background_only() -> None:
	surface = design.DesignSurface()
	composite = surface.render_print()
	assert composite.size == (675, 675)
	assert composite.mode == "RGB"
	assert composite.getcolors() == [(675 * 675, WHITE)]


#============================================
def test_image_drawn_at_offset_natural_size() -> None:
	"""
	The image is pasted at its offset without resizing.
	"""
	surface = design.DesignSurface()
	surface.set_image(_solid(10, 10))
	surface.set_offset(100, 50)
	composite = surface.render_print()
	assert composite.getpixel((100, 50)) == RED
	assert composite.getpixel((109, 59)) == RED
	assert composite.getpixel((110, 59)) == WHITE
	assert composite.getpixel((99, 50)) == WHITE
	assert composite.getpixel((105, 60)) == WHITE


#============================================
def test_offset_is_not_clamped() -> None:
	"""
	Images may hang off the template edge.
	"""
	surface = design.DesignSurface()
	surface.set_image(_solid(10, 10))
	surface.set_offset(-5, -5)
	composite = surface.render_print()
	assert composite.getpixel((0, 0)) == RED
	assert composite.getpixel((4, 4)) == RED
	assert composite.getpixel((5, 5)) == WHITE

	surface.set_offset(5000, 5000)
	assert surface.render_print().getcolors() == [(675 * 675, WHITE)]


#============================================
def test_small_image_leaves_background_uncovered() -> None:
	surface = design.DesignSurface()
	surface.set_image(_solid(100, 100))
	surface.center_image()
	composite = surface.render_print()
	assert composite.getpixel((337, 337)) == RED
	assert composite.getpixel((10, 10)) == WHITE
	assert composite.getpixel((664, 664)) == WHITE


#============================================
def test_set_image_keeps_offset_and_caption() -> None:
	surface = design.DesignSurface()
	surface.set_offset(12, 34)
	surface.set_caption("Hello")
	surface.set_image(_solid(5, 5))
	assert surface.design.offset_x == 12
	assert surface.design.offset_y == 34
	assert surface.design.caption_text == "Hello"


#============================================
def test_move_by_adds_to_offset() -> None:
	surface = design.DesignSurface()
	surface.set_offset(10, 20)
	surface.move_by(5, -30)
	assert (surface.design.offset_x, surface.design.offset_y) == (15, -10)


#============================================
def test_screen_to_template_scales_drag() -> None:
	geometry = config.TemplateGeometry()
	dx, dy = design.screen_to_template(10, -20, 337.5, geometry)
	assert dx == pytest.approx(20.0)
	assert dy == pytest.approx(-40.0)
	with pytest.raises(config.ConfigurationError):
		design.screen_to_template(1, 1, 0, geometry)


#============================================
def test_render_is_deterministic() -> None:
	surface = design.DesignSurface()
	surface.set_image(_solid(300, 200, (10, 200, 30)))
	surface.set_offset(40, 80)
	surface.set_caption("Fridge Friend")
	first = surface.render_preview()
	second = surface.render_preview()
	assert first.tobytes() == second.tobytes()
	assert surface.render_print().tobytes() == surface.render_print().tobytes()


#============================================
def test_print_composite_ignores_guide_flag() -> None:
	"""
	Print output is identical whatever the session guide flag says.
	"""
	surface = design.DesignSurface()
	surface.set_image(_solid(50, 50))
	surface.set_caption("Print me")
	surface.set_guides_visible(True)
	with_flag = surface.render_print()
	surface.set_guides_visible(False)
	without_flag = surface.render_print()
	assert with_flag.tobytes() == without_flag.tobytes()
	assert surface.render_preview().tobytes() == without_flag.tobytes()


#============================================
def test_guides_drawn_in_preview_only() -> None:
	surface = design.DesignSurface()
	surface.set_guides_visible(True)
	preview = surface.render_preview()
	printed = surface.render_print()
	assert preview.tobytes() != printed.tobytes()
	# solid trim line on the left edge, mid height
	assert _window_has_color(preview, (37, 337), config.TRIM_GUIDE_COLOR)
	assert not _window_has_color(printed, (37, 337), config.TRIM_GUIDE_COLOR)
	# dashed safe line starts at the safe corner
	assert _window_has_color(preview, (80, 75), config.SAFE_GUIDE_COLOR, radius=2)


#============================================
def test_safe_guide_is_dashed() -> None:
	"""
	The top safe edge has gaps between dashes.
	"""
	surface = design.DesignSurface()
	preview = surface.render_preview()
	guide = [
		any(preview.getpixel((x, y)) == config.SAFE_GUIDE_COLOR for y in range(72, 79))
		for x in range(80, 580)
	]
	assert any(guide)
	assert not all(guide)


#============================================
def test_guides_overdraw_image() -> None:
	surface = design.DesignSurface()
	surface.set_image(_solid(675, 675, (0, 0, 0)))
	preview = surface.render_preview()
	assert _window_has_color(preview, (37, 337), config.TRIM_GUIDE_COLOR)


#============================================
def test_caption_drawn_near_bottom_center() -> None:
	surface = design.DesignSurface()
	surface.set_caption("MAGNET")
	composite = surface.render_print()
	assert composite.getcolors() != [(675 * 675, WHITE)]
	baseline = 675 - config.CAPTION_BASELINE_OFFSET
	# text sits above the baseline in a band about one font size tall
	band = composite.crop((0, baseline - config.CAPTION_FONT_SIZE, 675, baseline))
	bbox = PIL.Image.eval(band.convert("L"), lambda value: 255 - value).getbbox()
	assert bbox is not None
	left, _top, right, _bottom = bbox
	assert abs((left + right) / 2.0 - 337.5) < 6.0
	# nothing above the caption band
	upper = composite.crop((0, 0, 675, baseline - 2 * config.CAPTION_FONT_SIZE))
	assert upper.getcolors() == [(upper.width * upper.height, WHITE)]


#============================================
def test_empty_caption_suppressed() -> None:
	surface = design.DesignSurface()
	surface.set_caption("")
	blank = surface.render_print()
	surface.set_caption("   ")
	spaces = surface.render_print()
	assert blank.getcolors() == [(675 * 675, WHITE)]
	assert spaces.getcolors() == [(675 * 675, WHITE)]


#============================================
def test_caption_drawn_over_image() -> None:
	surface = design.DesignSurface()
	surface.set_image(_solid(675, 675, (255, 255, 0)))
	plain = surface.render_print()
	surface.set_caption("Over")
	captioned = surface.render_print()
	assert plain.tobytes() != captioned.tobytes()


#============================================
def test_alpha_image_composited_over_background() -> None:
	image = PIL.Image.new("RGBA", (20, 20), (255, 0, 0, 0))
	image.paste((0, 0, 255, 255), (0, 0, 10, 20))
	surface = design.DesignSurface()
	surface.set_image(image)
	surface.set_offset(0, 0)
	composite = surface.render_print()
	assert composite.getpixel((5, 5)) == (0, 0, 255)
	assert composite.getpixel((15, 5)) == WHITE


#============================================
def test_reset_produces_fresh_design() -> None:
	surface = design.DesignSurface()
	surface.set_image(_solid(10, 10))
	surface.set_caption("x")
	surface.set_offset(3, 4)
	old = surface.design
	fresh = surface.reset()
	assert fresh == surface.design
	assert fresh == design.Design()
	assert old.caption_text == "x"
	assert (old.offset_x, old.offset_y) == (3, 4)


#============================================
def test_design_property_is_a_snapshot() -> None:
	"""
	Changing the returned design leaves the surface untouched.
	"""
	surface = design.DesignSurface()
	surface.set_caption("Hello")
	snapshot = surface.design
	snapshot.caption_text = "changed"
	snapshot.offset_x = 99
	assert surface.design.caption_text == "Hello"
	assert surface.design.offset_x == 0


#============================================
@pytest.mark.parametrize("offset, expected", [(0.5, 1), (1.5, 2), (2.5, 3), (-0.5, 0), (2.49, 2)])
def test_half_pixel_offsets_round_up(offset: float, expected: int) -> None:
	assert design.round_half_up(offset) == expected
	surface = design.DesignSurface()
	surface.set_image(_solid(10, 10))
	surface.set_offset(offset + 100, 100)
	composite = surface.render_print()
	assert composite.getpixel((100 + expected, 105)) == RED
	assert composite.getpixel((99 + expected, 105)) == WHITE


#============================================
def test_custom_geometry_sets_composite_size() -> None:
	geometry = config.TemplateGeometry(bleed_size=300, trim_size=250, safe_size=200)
	surface = design.DesignSurface(geometry)
	assert surface.render_preview().size == (300, 300)
