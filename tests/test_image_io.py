import io
import pathlib

import PIL.Image
import pytest

import magnet_sheet_maker.config as config
import magnet_sheet_maker.image_io as image_io


#============================================
def test_load_png_bytes(make_png) -> None:
	image = image_io.load_image_bytes(make_png(30, 20, "blue"))
	assert image.size == (30, 20)
	assert image.mode == "RGB"
	assert image.getpixel((0, 0)) == (0, 0, 255)


#============================================
def test_grayscale_converted_to_rgb(make_png) -> None:
	image = image_io.load_image_bytes(make_png(8, 8, 128, mode="L"))
	assert image.mode == "RGB"
	assert image.getpixel((0, 0)) == (128, 128, 128)


#============================================
def test_alpha_kept(make_png) -> None:
	image = image_io.load_image_bytes(make_png(8, 8, (255, 0, 0, 0), mode="RGBA"))
	assert image.mode == "RGBA"
	assert image.getpixel((0, 0))[3] == 0


#============================================
def test_jpeg_bytes() -> None:
	buffer = io.BytesIO()
	PIL.Image.new("RGB", (16, 16), "green").save(buffer, format="JPEG")
	image = image_io.load_image_bytes(buffer.getvalue())
	assert image.size == (16, 16)
	assert image.mode == "RGB"


#============================================
@pytest.mark.parametrize("data", [b"", b"not an image", b"\x89PNG\r\n\x1a\n truncated"])
def test_bad_bytes_raise(data: bytes) -> None:
	with pytest.raises(config.ImageDecodeFailed):
		image_io.load_image_bytes(data)


#============================================
def test_broken_png_chunk_raises(make_png) -> None:
	"""
	A zeroed IDAT length byte corrupts the chunk stream.
	"""
	data = bytearray(make_png(40, 40, (10, 200, 30)))
	data[36] = 0x00
	with pytest.raises(config.ImageDecodeFailed):
		image_io.load_image_bytes(bytes(data))


#============================================
def test_load_path(png_path: pathlib.Path) -> None:
	image = image_io.load_image_path(png_path)
	assert image.size == (200, 100)
	assert image_io.load_image(str(png_path)).size == (200, 100)
	assert image_io.load_image(png_path).size == (200, 100)


#============================================
def test_missing_path_raises(tmp_path: pathlib.Path) -> None:
	with pytest.raises(config.ImageDecodeFailed) as excinfo:
		image_io.load_image_path(tmp_path / "nope.png")
	assert isinstance(excinfo.value.__cause__, OSError)


#============================================
def test_unreachable_url_raises() -> None:
	with pytest.raises(config.ImageDecodeFailed):
		image_io.load_image_url("http://127.0.0.1:9/image.png", timeout=2)


#============================================
def test_non_url_rejected() -> None:
	with pytest.raises(config.ImageDecodeFailed):
		image_io.load_image_url("ftp://example.com/a.png")


#============================================
def test_is_url() -> None:
	assert image_io.is_url("https://example.com/a.png")
	assert image_io.is_url(" HTTP://example.com/a.png")
	assert not image_io.is_url("/tmp/a.png")


#============================================
def test_async_load_resolves(make_png) -> None:
	future = image_io.load_image_async(make_png(12, 34))
	assert future.result(timeout=30).size == (12, 34)


#============================================
def test_async_load_rejects_once() -> None:
	future = image_io.load_image_async(b"garbage")
	with pytest.raises(config.ImageDecodeFailed):
		future.result(timeout=30)
	assert isinstance(future.exception(), config.ImageDecodeFailed)
