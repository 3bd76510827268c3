"""
Pytest configuration for local imports and shared fixtures.
"""

# Standard Library
import io
import os
import sys

# PIP3 modules
import PIL.Image
import pytest

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()


#============================================
@pytest.fixture
def make_png():
	"""
	Factory fixture: make_png(width, height, color, mode) -> PNG bytes.
	"""
	def _make(width: int, height: int, color="red", mode: str = "RGB") -> bytes:
		image = PIL.Image.new(mode, (width, height), color)
		buffer = io.BytesIO()
		image.save(buffer, format="PNG")
		return buffer.getvalue()
	return _make


#============================================
@pytest.fixture
def png_path(tmp_path, make_png):
	"""
	A 200x100 red PNG on disk.
	"""
	path = tmp_path / "source.png"
	path.write_bytes(make_png(200, 100, "red"))
	return path
