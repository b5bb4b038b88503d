"""Thread safety tests for pipelines and the background worker.

These tests verify that pipelines can be used from several threads without
corrupted results and that the worker drops superseded requests.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed

import numpy as np
import pytest

from instafilter import ImageBuffer, Pipeline, PipelineCancelledError, UnknownFilterError
from instafilter.filters import (
    FilterDescriptor,
    FilterRegistry,
    ParameterKey,
    ParameterSpec,
    PipelineWorker,
)


@pytest.fixture
def test_images():
    """Create a list of distinct test images."""
    images = []
    for i in range(8):
        pixels = np.full((24, 32, 4), 255, dtype=np.uint8)
        pixels[:, :, 0] = i * 30  # Red varies by index
        pixels[:, :, 1] = 40
        pixels[:, :, 2] = 200
        images.append(ImageBuffer.from_array(pixels))
    return images


@pytest.fixture
def blocking_registry():
    """Registry with a filter that blocks until released."""
    entered = threading.Event()
    release = threading.Event()

    def blocking(pixels, params):
        entered.set()
        release.wait(5)
        return pixels.copy()

    registry = FilterRegistry([
        FilterDescriptor(
            name='blocking',
            kernel=blocking,
            parameters=(ParameterSpec(ParameterKey.INTENSITY, 0.0, 0.0, 1.0),),
        ),
    ])
    yield registry, entered, release
    release.set()


class TestPipelineThreadSafety:
    """Pipelines used from several threads."""

    def test_shared_registry_separate_pipelines(self, registry, test_images):
        """Pipelines sharing one registry give the same results as sequential calls."""
        expected = [Pipeline(registry=registry).apply('sepia', img, 0.7) for img in test_images]

        def process(img):
            return Pipeline(registry=registry).apply('sepia', img, 0.7)

        with ThreadPoolExecutor(max_workers=4) as executor:
            results = list(executor.map(process, test_images))
        assert results == expected

    def test_shared_pipeline_serializes(self, registry, test_images):
        """Concurrent calls on one pipeline never see each other's state."""
        pipeline = Pipeline(registry=registry)
        names = ['sepia', 'invert', 'noir', 'vignette']
        jobs = [(names[i % len(names)], img) for i, img in enumerate(test_images)]
        expected = {
            i: Pipeline(registry=registry).apply(name, img, 0.5)
            for i, (name, img) in enumerate(jobs)
        }

        with ThreadPoolExecutor(max_workers=4) as executor:
            futures = {
                executor.submit(pipeline.apply, name, img, 0.5): i
                for i, (name, img) in enumerate(jobs)
            }
            for future in as_completed(futures):
                assert future.result() == expected[futures[future]]

    def test_concurrent_registration_and_lookup(self, registry):
        """Lookups stay valid while other threads register filters."""
        sepia = registry.lookup('sepia')
        errors = []

        def register(i):
            registry.register(FilterDescriptor(name=f'extra_{i}', kernel=sepia.kernel))

        def lookup(_):
            try:
                assert registry.lookup('sepia') is sepia
            except Exception as e:
                errors.append(e)

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(register, range(50)))
            list(executor.map(lookup, range(200)))
        assert errors == []
        assert len(registry.names()) == 60


class TestPipelineWorker:
    """Tests for the background worker."""

    def test_submit(self, registry, gray_image):
        with PipelineWorker(Pipeline(registry=registry)) as worker:
            future = worker.submit('invert', gray_image, 1.0)
            result = future.result(timeout=10)
        assert result.size == gray_image.size
        metrics = worker.get_metrics()
        assert metrics.submitted == 1
        assert metrics.completed == 1
        assert metrics.avg_time_ms >= 0.0

    def test_error_propagates(self, registry, gray_image):
        with PipelineWorker(Pipeline(registry=registry)) as worker:
            future = worker.submit('nope', gray_image, 0.5)
            with pytest.raises(UnknownFilterError):
                future.result(timeout=10)
        assert worker.get_metrics().failed == 1

    def test_latest_only(self, blocking_registry, gray_image):
        """A pending request is cancelled by a newer submission."""
        registry, entered, release = blocking_registry
        with PipelineWorker(Pipeline(registry=registry)) as worker:
            first = worker.submit('blocking', gray_image, 0.1)
            assert entered.wait(5)
            second = worker.submit('blocking', gray_image, 0.2)
            third = worker.submit('blocking', gray_image, 0.3)
            release.set()
            assert first.result(timeout=10) == gray_image
            with pytest.raises(PipelineCancelledError):
                second.result(timeout=10)
            assert third.result(timeout=10) == gray_image
        metrics = worker.get_metrics()
        assert metrics.submitted == 3
        assert metrics.completed == 2
        assert metrics.cancelled == 1

    def test_keep_all(self, blocking_registry, gray_image):
        """Without latest_only every request is processed."""
        registry, entered, release = blocking_registry
        with PipelineWorker(Pipeline(registry=registry), latest_only=False) as worker:
            futures = [worker.submit('blocking', gray_image, 0.1 * i) for i in range(3)]
            assert entered.wait(5)
            release.set()
            assert all(f.result(timeout=10) == gray_image for f in futures)
        assert worker.get_metrics().cancelled == 0
