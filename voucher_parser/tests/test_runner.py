"""
Test suite for the batch pipeline.
"""
import pytest

from ..core.runner import BatchRunner, ProgressTracker, process_batch
from ..models.schema import BatchResult, InputImage


class TestBatchRunner:

    def test_one_record_per_image_in_order(self, sample_images, sample_engine):
        result = BatchRunner(sample_engine).run(sample_images)

        assert isinstance(result, BatchResult)
        assert len(result.records) == len(sample_images)
        assert [r.description for r in result.records] == [
            "yape_juan", "plin_maria", "borrosa", "otra captura"
        ]
        assert [call[0] for call in sample_engine.calls] == ["yape", "plin", "bad", "empty"]

    def test_failure_is_isolated(self, sample_images, sample_engine):
        result = BatchRunner(sample_engine).run(sample_images)

        assert result.failures == [2]
        assert result.failed == 1
        assert result.succeeded == 3

        failed = result.records[2]
        assert failed.status == "failed"
        assert failed.date == "ERROR"
        assert failed.operation_number == "ERROR"
        assert failed.amount == "ERROR"
        assert failed.recipient == "ERROR"

        # Images after the failure are still processed
        assert result.records[3].status == "extracted"
        assert result.records[3].amount == "N/A"

    def test_extracted_values(self, sample_images, sample_engine):
        result = BatchRunner(sample_engine).run(sample_images)

        assert result.records[0].amount == "S/ 150.00"
        assert result.records[0].operation_number == "01234567"
        assert result.records[1].amount == "S/1,320.50"
        assert result.records[1].recipient == "María López"

    @pytest.mark.parametrize("failing", [0, 1, 2])
    def test_order_independent_of_failure_position(self, make_engine, failing):
        images = [InputImage(name=f"img{i}.png", data=f"k{i}".encode()) for i in range(3)]
        engine = make_engine({f"k{i}": f"S/ {i}.00" for i in range(3)}, fail_on={f"k{failing}"})

        result = BatchRunner(engine).run(images)

        assert [r.description for r in result.records] == ["img0", "img1", "img2"]
        assert result.failures == [failing]
        for index, record in enumerate(result.records):
            if index == failing:
                assert record.amount == "ERROR"
            else:
                assert record.amount == f"S/ {index}.00"

    def test_any_exception_is_contained(self, make_engine):
        class ExplodingEngine(make_engine):
            def recognize(self, data, lang, on_progress=None):
                raise ValueError("corrupt header")

        result = BatchRunner(ExplodingEngine()).run([InputImage(name="x.png", data=b"x")])

        assert result.failures == [0]
        assert result.records[0].status == "failed"

    def test_recognize_outcome(self, make_engine):
        runner = BatchRunner(make_engine({"a": "texto"}, fail_on={"b"}))

        ok = runner.recognize(InputImage(name="a.png", data=b"a"))
        bad = runner.recognize(InputImage(name="b.png", data=b"b"))

        assert ok.ok and ok.text == "texto"
        assert not bad.ok
        assert "cannot read b" in bad.reason

    def test_empty_batch(self, sample_engine):
        progress = []
        result = BatchRunner(sample_engine, on_progress=progress.append).run([])

        assert result.records == []
        assert result.failures == []
        assert not result.cancelled
        assert sample_engine.calls == []
        assert progress == []

    def test_language_hint(self, sample_images, sample_engine, make_engine):
        BatchRunner(sample_engine).run(sample_images[:1])
        assert sample_engine.calls[0][1] == "spa"

        engine = make_engine()
        BatchRunner(engine, lang="eng").run(sample_images[:1])
        assert engine.calls[0][1] == "eng"

    def test_incremental_records(self, sample_images, sample_engine):
        runner = BatchRunner(sample_engine)
        seen = []

        for index, record in runner.iter_records(sample_images):
            # Only the images up to this one have been recognized so far
            assert len(sample_engine.calls) == index + 1
            seen.append(index)

        assert seen == [0, 1, 2, 3]

    def test_cancel_between_images(self, sample_images, sample_engine):
        runner = BatchRunner(sample_engine, should_cancel=lambda: len(sample_engine.calls) >= 2)
        result = runner.run(sample_images)

        assert result.cancelled
        assert len(result.records) == 2
        assert len(sample_engine.calls) == 2

    def test_process_batch(self, sample_images, sample_engine):
        result = process_batch(sample_images, engine=sample_engine)
        assert len(result.records) == 4


class TestProgress:

    def test_non_decreasing_and_ends_at_100(self, sample_images, sample_engine):
        progress = []
        BatchRunner(sample_engine, on_progress=progress.append).run(sample_images)

        assert progress == sorted(progress)
        assert all(0.0 <= p <= 100.0 for p in progress)
        assert progress[-1] == 100.0
        assert progress.count(100.0) == 1

    def test_completed_images_fraction(self, sample_images, sample_engine):
        progress = []
        runner = BatchRunner(sample_engine, on_progress=progress.append)
        total = len(sample_images)

        for index, _ in runner.iter_records(sample_images):
            assert progress[-1] == pytest.approx((index + 1) / total * 100)

    def test_sub_progress_of_image_in_flight(self, sample_images, sample_engine):
        progress = []
        BatchRunner(sample_engine, on_progress=progress.append).run(sample_images[:2])

        # start, half of image 1, image 1 done, half of image 2, image 2 done
        assert progress == pytest.approx([0.0, 25.0, 50.0, 75.0, 100.0])

    def test_tracker_ignores_regressions(self):
        progress = []
        tracker = ProgressTracker(4, progress.append)

        tracker.report(1, 0.5)
        tracker.report(1, 0.2)
        tracker.report(0, 1.0)
        tracker.report(3, 5.0)

        assert progress == pytest.approx([37.5, 100.0])

    def test_tracker_without_callback(self):
        ProgressTracker(3).report(1, 0.5)
