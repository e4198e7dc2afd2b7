import numpy as np
import pytest

from digitnet.core.backprop import backprop
from digitnet.core.cost import quadratic_cost
from digitnet.core.forward import feedforward
from digitnet.core.network import initialize
from digitnet.core.types import Sample
from digitnet.errors import DimensionMismatchError


def _cost(params, sample):
    return quadratic_cost(feedforward(params, sample.inputs), sample.targets)


def _numerical_gradients(params, sample, eps=1e-5):
    nabla_b = []
    nabla_w = []
    for group, out in ((params.biases, nabla_b), (params.weights, nabla_w)):
        for array in group:
            grad = np.zeros_like(array)
            for index in np.ndindex(array.shape):
                original = array[index]
                array[index] = original + eps
                plus = _cost(params, sample)
                array[index] = original - eps
                minus = _cost(params, sample)
                array[index] = original
                grad[index] = (plus - minus) / (2 * eps)
            out.append(grad)
    return nabla_b, nabla_w


@pytest.mark.parametrize("sizes, seed", [([2, 3, 1], 0), ([3, 4, 5, 2], 1), ([2, 2], 2)])
def test_backprop_matches_finite_differences(sizes, seed):
    rng = np.random.default_rng(seed)
    params = initialize(sizes, rng)
    sample = Sample(
        inputs=rng.uniform(0.0, 1.0, size=(sizes[0], 1)),
        targets=np.eye(sizes[-1])[0].reshape(-1, 1),
    )
    grads = backprop(params, sample)
    expected_b, expected_w = _numerical_gradients(params, sample)

    assert len(grads.nabla_biases) == len(params.biases)
    for analytic, numeric, b in zip(grads.nabla_biases, expected_b, params.biases):
        assert analytic.shape == b.shape
        np.testing.assert_allclose(analytic, numeric, atol=1e-4)
    for analytic, numeric, W in zip(grads.nabla_weights, expected_w, params.weights):
        assert analytic.shape == W.shape
        np.testing.assert_allclose(analytic, numeric, atol=1e-4)


def test_backprop_does_not_mutate_parameters():
    rng = np.random.default_rng(4)
    params = initialize([2, 3, 2], rng)
    snapshot = params.copy()
    backprop(params, Sample(inputs=np.ones((2, 1)), targets=np.array([[0.0], [1.0]])))
    for W, W0 in zip(params.weights, snapshot.weights):
        assert np.array_equal(W, W0)


def test_backprop_rejects_wrong_target_length():
    params = initialize([2, 3], np.random.default_rng(0))
    with pytest.raises(DimensionMismatchError):
        backprop(params, Sample(inputs=np.ones((2, 1)), targets=np.ones((2, 1))))
