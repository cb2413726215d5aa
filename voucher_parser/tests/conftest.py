"""
Shared fixtures: sample OCR text and a fake OCR engine.
"""
import pytest

from ..core.ocr import OCREngine
from ..models.schema import InputImage


YAPE_TEXT = (
    "**Yape**\n"
    "¡Yapeaste!\n"
    "S/ 150.00\n"
    "Enviado a Juan Pérez\n"
    "14 marzo 2025 - 10:32 am\n"
    "Número de operación 01234567\n"
)

PLIN_TEXT = (
    "Plin\n"
    "Monto: 5/1,320.50\n"
    "ENVIAR A  María   López**\n"
    "Fecha: 3 setiembre 2025\n"
)


class FakeEngine(OCREngine):
    """Returns canned text keyed by the image bytes; fails for keys in ``fail_on``."""

    def __init__(self, texts=None, fail_on=()):
        self.texts = texts or {}
        self.fail_on = set(fail_on)
        self.calls = []

    def recognize(self, data, lang, on_progress=None):
        key = data.decode()
        self.calls.append((key, lang))
        if on_progress:
            on_progress(0.0)
            on_progress(0.5)
        if key in self.fail_on:
            raise RuntimeError(f"cannot read {key}")
        if on_progress:
            on_progress(1.0)
        return self.texts.get(key, "")


@pytest.fixture
def yape_text():
    return YAPE_TEXT


@pytest.fixture
def plin_text():
    return PLIN_TEXT


@pytest.fixture
def make_engine():
    """Factory for fake engines."""
    return FakeEngine


@pytest.fixture
def sample_images():
    """Four images: two readable vouchers, one unreadable, one without data."""
    return [
        InputImage(name="yape_juan.png", data=b"yape"),
        InputImage(name="plin_maria.jpeg", data=b"plin"),
        InputImage(name="borrosa.jpg", data=b"bad"),
        InputImage(name="otra captura.webp", data=b"empty"),
    ]


@pytest.fixture
def sample_engine():
    return FakeEngine({"yape": YAPE_TEXT, "plin": PLIN_TEXT, "empty": "sin datos"}, fail_on={"bad"})
