import numpy as np

from digitnet.core.network import NetworkParameters
from digitnet.core.types import Sample
from digitnet.training.metrics import evaluate, first_argmax


def _constant_output_network(probabilities):
    """A one-transition network whose output is ``probabilities`` for any input."""

    p = np.asarray(probabilities, dtype=np.float64).reshape(-1, 1)
    return NetworkParameters(
        layer_sizes=[2, p.shape[0]],
        weights=[np.zeros((p.shape[0], 2))],
        biases=[np.log(p / (1.0 - p))],
    )


def test_first_argmax_prefers_lowest_index_on_ties():
    assert first_argmax(np.array([[0.2], [0.7], [0.7]])) == 1
    assert first_argmax(np.array([0.5, 0.5, 0.5])) == 0
    assert first_argmax(np.array([[0.0], [0.0], [1.0]])) == 2


def test_evaluate_counts_matching_predictions():
    target = np.array([[0.0], [1.0], [0.0]])
    sample = Sample(inputs=np.array([[0.3], [0.7]]), targets=target)

    right = _constant_output_network([0.1, 0.9, 0.05])
    wrong = _constant_output_network([0.9, 0.1, 0.05])

    assert evaluate(right, [sample]) == 1
    assert evaluate(wrong, [sample]) == 0
    assert evaluate(right, [sample, sample, sample]) == 3
    assert evaluate(right, []) == 0
