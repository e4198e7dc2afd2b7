import numpy as np
import pytest

from digitnet.core.activations import sigmoid, sigmoid_prime
from digitnet.core.forward import feedforward, trace
from digitnet.core.network import NetworkParameters, initialize
from digitnet.errors import ConfigurationError, DimensionMismatchError


@pytest.mark.parametrize("sizes", [[2, 1], [2, 3, 1], [784, 30, 10], [4, 16, 16, 3]])
def test_initialize_shapes(sizes):
    params = initialize(sizes, np.random.default_rng(0))
    assert len(params.weights) == len(sizes) - 1
    assert len(params.biases) == len(sizes) - 1
    for idx, (W, b) in enumerate(zip(params.weights, params.biases)):
        assert W.shape == (sizes[idx + 1], sizes[idx])
        assert b.shape == (sizes[idx + 1], 1)


def test_initialize_is_standard_normal_and_seeded():
    a = initialize([50, 40, 30], np.random.default_rng(3))
    b = initialize([50, 40, 30], np.random.default_rng(3))
    for Wa, Wb in zip(a.weights, b.weights):
        np.testing.assert_array_equal(Wa, Wb)
    entries = np.concatenate([W.ravel() for W in a.weights] + [x.ravel() for x in a.biases])
    assert abs(entries.mean()) < 0.1
    assert 0.9 < entries.std() < 1.1


@pytest.mark.parametrize("sizes", [[], [3], [3, 0], [3, -1, 2], [3, 2.5], [True, 2]])
def test_initialize_rejects_bad_layer_sizes(sizes):
    with pytest.raises(ConfigurationError):
        initialize(sizes, np.random.default_rng(0))


def test_parameters_reject_wrong_shapes():
    with pytest.raises(ConfigurationError):
        NetworkParameters(
            layer_sizes=[2, 3],
            weights=[np.zeros((2, 3))],
            biases=[np.zeros((3, 1))],
        )


def test_sigmoid_matches_closed_form_and_never_overflows():
    z = np.linspace(-30, 30, 61).reshape(-1, 1)
    np.testing.assert_allclose(sigmoid(z), 1.0 / (1.0 + np.exp(-z)), rtol=1e-12)
    with np.errstate(over="raise"):
        extreme = sigmoid(np.array([[-1e4], [0.0], [1e4]]))
    np.testing.assert_allclose(extreme.ravel(), [0.0, 0.5, 1.0])
    np.testing.assert_allclose(sigmoid_prime(np.zeros((1, 1))), [[0.25]])


def test_feedforward_is_deterministic_and_pure():
    params = initialize([3, 4, 2], np.random.default_rng(1))
    before = [W.copy() for W in params.weights]
    x = np.array([[0.1], [0.5], [0.9]])
    first = feedforward(params, x)
    second = feedforward(params, x)
    assert first.shape == (2, 1)
    assert np.array_equal(first, second)
    for W, W0 in zip(params.weights, before):
        assert np.array_equal(W, W0)


def test_trace_matches_plain_forward_pass():
    params = initialize([3, 5, 4, 2], np.random.default_rng(2))
    x = np.array([0.2, 0.4, 0.6])
    state = trace(params, x)
    assert len(state.activations) == 4
    assert len(state.pre_activations) == 3
    assert state.activations[0].shape == (3, 1)
    assert np.array_equal(state.activations[-1], feedforward(params, x))
    np.testing.assert_array_equal(state.activations[2], sigmoid(state.pre_activations[1]))


def test_feedforward_rejects_wrong_input_length():
    params = initialize([3, 2], np.random.default_rng(0))
    with pytest.raises(DimensionMismatchError):
        feedforward(params, np.zeros((4, 1)))
    with pytest.raises(DimensionMismatchError):
        feedforward(params, np.zeros((1, 3)))
