"""
Batch orchestration: OCR each image in order and extract its record.
"""
from typing import Callable, Iterator, List, Optional, Tuple
import logging

from .extract import extract_record, failed_record
from .ocr import OCREngine, TesseractEngine
from .rules import RuleBook, load_rulebook
from ..models.schema import BatchResult, InputImage, RecognitionOutcome, TransactionRecord

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Turns per-image sub-progress into one non-decreasing batch percentage."""

    def __init__(self, total: int, callback: Optional[Callable[[float], None]] = None):
        self.total = total
        self.callback = callback
        self.last: Optional[float] = None

    def report(self, index: int, partial: float = 0.0):
        """
        Report progress while image ``index`` is ``partial`` done.

        Args:
            index: Zero-based index of the image in flight
            partial: Sub-progress of that image in [0, 1]
        """
        if not self.callback or self.total <= 0:
            return

        partial = min(max(partial, 0.0), 1.0)
        percent = min((index + partial) / self.total * 100, 100.0)

        if self.last is not None and percent <= self.last:
            return

        self.last = percent
        self.callback(percent)

    def in_flight(self, index: int) -> Callable[[float], None]:
        """Sub-progress callback for the engine while image ``index`` is running."""
        def _report(partial: float):
            # Completion is reported once the record exists
            if partial < 1.0:
                self.report(index, partial)
        return _report

    def completed(self, index: int):
        self.report(index, 1.0)


class BatchRunner:
    """Runs OCR and field extraction over an ordered list of images."""

    def __init__(self, engine: OCREngine, rules: Optional[RuleBook] = None,
                 on_progress: Optional[Callable[[float], None]] = None,
                 should_cancel: Optional[Callable[[], bool]] = None,
                 lang: Optional[str] = None):
        self.engine = engine
        self.rules = rules or load_rulebook()
        self.on_progress = on_progress
        self.should_cancel = should_cancel
        self.lang = lang or self.rules.language
        self.cancelled = False

    def recognize(self, image: InputImage,
                  on_progress: Optional[Callable[[float], None]] = None) -> RecognitionOutcome:
        """
        Run OCR over a single image.

        Any exception raised by the engine is turned into a failed outcome so
        that one bad image never stops the batch.
        """
        try:
            text = self.engine.recognize(image.data, self.lang, on_progress)
        except Exception as e:
            logger.warning(f"Recognition failed for {image.name}: {e}")
            return RecognitionOutcome.failed(str(e) or e.__class__.__name__)

        return RecognitionOutcome.recognized(text)

    def iter_records(self, images: List[InputImage]) -> Iterator[Tuple[int, TransactionRecord]]:
        """
        Process images one at a time, yielding each record as soon as it exists.

        Args:
            images: Images in the order their records should appear

        Yields:
            (index, TransactionRecord) pairs in input order
        """
        self.cancelled = False
        tracker = ProgressTracker(len(images), self.on_progress)

        for index, image in enumerate(images):
            if self.should_cancel and self.should_cancel():
                logger.info(f"Batch cancelled after {index}/{len(images)} images")
                self.cancelled = True
                return

            tracker.report(index)
            logger.debug(f"Recognizing {index + 1}/{len(images)}: {image.name}")
            outcome = self.recognize(image, tracker.in_flight(index))

            if outcome.ok:
                record = extract_record(outcome.text, image.name, self.rules)
            else:
                record = failed_record(image.name, self.rules)

            tracker.completed(index)
            yield index, record

    def run(self, images: List[InputImage]) -> BatchResult:
        """
        Process a whole batch.

        Args:
            images: Images to process

        Returns:
            BatchResult with one record per processed image, in input order
        """
        result = BatchResult()

        for index, record in self.iter_records(images):
            result.records.append(record)
            if record.status == "failed":
                result.failures.append(index)

        result.cancelled = self.cancelled
        logger.info(
            f"Processed {len(result.records)}/{len(images)} images "
            f"({result.failed} failed)"
        )
        return result


def process_batch(images: List[InputImage], engine: Optional[OCREngine] = None,
                  rules: Optional[RuleBook] = None,
                  on_progress: Optional[Callable[[float], None]] = None,
                  should_cancel: Optional[Callable[[], bool]] = None) -> BatchResult:
    """
    Run the OCR pipeline over a batch of images.

    Args:
        images: Images to process, in order
        engine: OCR engine (defaults to Tesseract with grayscale pre-processing)
        rules: Rule book (defaults to the packaged one)
        on_progress: Callable receiving the batch percentage in [0, 100]
        should_cancel: Callable checked between images

    Returns:
        BatchResult object
    """
    runner = BatchRunner(
        engine or TesseractEngine(),
        rules=rules,
        on_progress=on_progress,
        should_cancel=should_cancel,
    )
    return runner.run(images)
