"""
Image loading and OCR using Pillow and pytesseract.
"""
from io import BytesIO
from pathlib import Path
from typing import Callable, Iterable, List, Optional
import logging

from PIL import Image, ImageOps, UnidentifiedImageError
import pytesseract

from ..models.schema import InputImage

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class RecognitionError(RuntimeError):
    """Raised when an image could not be turned into text."""


class OCREngine:
    """Interface for anything that turns image bytes into text."""

    def recognize(self, data: bytes, lang: str,
                  on_progress: Optional[ProgressCallback] = None) -> str:
        """
        Recognize the text of one image.

        Args:
            data: Encoded image bytes
            lang: OCR language hint (e.g. "spa")
            on_progress: Optional callable receiving sub-progress in [0, 1]

        Returns:
            Recognized text
        """
        raise NotImplementedError


def to_grayscale(image: Image.Image) -> Image.Image:
    """Convert an image to 8-bit grayscale before recognition."""
    return ImageOps.grayscale(image)


class TesseractEngine(OCREngine):
    """OCR engine backed by the Tesseract binary."""

    def __init__(self, grayscale: bool = True, tesseract_cmd: Optional[str] = None):
        self.grayscale = grayscale
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def recognize(self, data: bytes, lang: str,
                  on_progress: Optional[ProgressCallback] = None) -> str:
        if on_progress:
            on_progress(0.0)

        try:
            image = Image.open(BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise RecognitionError(f"Unreadable image: {e}") from e

        if self.grayscale:
            image = to_grayscale(image)

        try:
            text = pytesseract.image_to_string(image, lang=lang)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
            raise RecognitionError(f"Tesseract failed: {e}") from e

        if on_progress:
            on_progress(1.0)

        return text.strip()


def load_images(paths: Iterable[Path]) -> List[InputImage]:
    """
    Read image files into memory, keeping the given order.

    Args:
        paths: Image file paths

    Returns:
        List of InputImage objects

    Raises:
        FileNotFoundError: If a path does not exist
    """
    images = []
    for path in paths:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Image file not found: {path}")

        images.append(InputImage(name=path.name, data=path.read_bytes()))
        logger.debug(f"Loaded {path.name}: {len(images[-1].data)} bytes")

    return images
