"""
Bitmap decoding from bytes, files and URLs.
"""

# Standard Library
import concurrent.futures
import io
import pathlib
import urllib.error
import urllib.request

# PIP3 modules
import PIL.Image
import PIL.ImageOps

# local repo modules
import magnet_sheet_maker as msm
import magnet_sheet_maker.config


ImageDecodeFailed = msm.config.ImageDecodeFailed

URL_TIMEOUT = msm.config.URL_TIMEOUT
URL_MAX_BYTES = msm.config.URL_MAX_BYTES
URL_USER_AGENT = msm.config.URL_USER_AGENT
IO_WORKERS = msm.config.IO_WORKERS

_executor = concurrent.futures.ThreadPoolExecutor(
	max_workers=IO_WORKERS,
	thread_name_prefix="magnet-io",
)


#============================================
def is_url(source: str) -> bool:
	"""
	Check whether a source string is an http(s) URL.

	Args:
		source: Path or URL.

	Returns:
		True for http and https URLs.
	"""
	return source.strip().lower().startswith(("http://", "https://"))


#============================================
def normalize_image(image: PIL.Image.Image) -> PIL.Image.Image:
	"""
	Apply EXIF orientation and convert to RGB or RGBA.

	Args:
		image: Decoded Pillow image.

	Returns:
		Normalized image.
	"""
	image = PIL.ImageOps.exif_transpose(image)
	has_alpha = image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info
	if has_alpha:
		return image.convert("RGBA")
	if image.mode != "RGB":
		return image.convert("RGB")
	return image


#============================================
def load_image_bytes(data: bytes) -> PIL.Image.Image:
	"""
	Decode raw image bytes.

	Args:
		data: Encoded image file contents.

	Returns:
		Fully loaded image.

	Raises:
		ImageDecodeFailed: When the bytes are not a readable image.
	"""
	if not data:
		raise ImageDecodeFailed("no image data")
	try:
		image = PIL.Image.open(io.BytesIO(data))
		image.load()
	# Pillow raises SyntaxError for broken PNG chunks
	except (OSError, ValueError, EOFError, SyntaxError, PIL.Image.DecompressionBombError) as exc:
		raise ImageDecodeFailed(f"cannot decode image: {exc}") from exc
	return normalize_image(image)


#============================================
def load_image_path(path: pathlib.Path | str) -> PIL.Image.Image:
	"""
	Decode an image file from disk.

	Args:
		path: Image file path.

	Returns:
		Fully loaded image.

	Raises:
		ImageDecodeFailed: When the file is missing or unreadable.
	"""
	path = pathlib.Path(path)
	try:
		data = path.read_bytes()
	except OSError as exc:
		raise ImageDecodeFailed(f"cannot read {path}: {exc}") from exc
	return load_image_bytes(data)


#============================================
def load_image_url(url: str, timeout: float = URL_TIMEOUT) -> PIL.Image.Image:
	"""
	Download and decode a remote image.

	Args:
		url: http or https URL.
		timeout: Socket timeout in seconds.

	Returns:
		Fully loaded image.

	Raises:
		ImageDecodeFailed: On network failure or undecodable content.
	"""
	if not is_url(url):
		raise ImageDecodeFailed(f"not an http(s) URL: {url}")
	request = urllib.request.Request(url, headers={"User-Agent": URL_USER_AGENT})
	try:
		with urllib.request.urlopen(request, timeout=timeout) as response:
			data = response.read(URL_MAX_BYTES + 1)
	except (urllib.error.URLError, OSError, ValueError) as exc:
		raise ImageDecodeFailed(f"cannot fetch {url}: {exc}") from exc
	if len(data) > URL_MAX_BYTES:
		raise ImageDecodeFailed(f"image at {url} exceeds {URL_MAX_BYTES} bytes")
	return load_image_bytes(data)


#============================================
def load_image(source: str | pathlib.Path | bytes) -> PIL.Image.Image:
	"""
	Decode an image from bytes, a file path or a URL.

	Args:
		source: Raw bytes, path, or http(s) URL.

	Returns:
		Fully loaded image.
	"""
	if isinstance(source, (bytes, bytearray)):
		return load_image_bytes(bytes(source))
	if isinstance(source, str) and is_url(source):
		return load_image_url(source)
	return load_image_path(source)


#============================================
def load_image_async(source: str | pathlib.Path | bytes) -> concurrent.futures.Future:
	"""
	Decode an image in the background.

	The future resolves once with the image or fails once with
	ImageDecodeFailed. There is no retry.

	Args:
		source: Raw bytes, path, or http(s) URL.

	Returns:
		Future for the decoded image.
	"""
	return _executor.submit(load_image, source)


#============================================
def submit(func, *args, **kwargs) -> concurrent.futures.Future:
	"""
	Run a one-shot I/O job on the shared worker pool.

	Args:
		func: Callable to run.

	Returns:
		Future for the call.
	"""
	return _executor.submit(func, *args, **kwargs)
