"""Shared fixtures for pipeline tests."""

import pytest

from fractal_pipeline.core.math_functions import EscapeEvaluator, Viewport
from fractal_pipeline.core.sampling import SuperSampler
from fractal_pipeline.rendering.coloring import hot_cold


@pytest.fixture
def viewport():
    return Viewport(-2.2, -1.2, 1.2, 1.2)


@pytest.fixture
def evaluator():
    return EscapeEvaluator(hot_cold)


@pytest.fixture
def sampler(viewport, evaluator):
    return SuperSampler(viewport, evaluator)
