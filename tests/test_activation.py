import math

import numpy as np
import pytest

from feedforward import Activation, ConstructionError
from feedforward.activation import softmax

ELEMENTWISE = [a for a in Activation if a.is_elementwise]


class TestScalarFunctions:
    def test_identity(self):
        assert Activation.IDENTITY.apply(-3.5) == -3.5
        assert Activation.IDENTITY.derivative(12.0) == 1.0

    def test_sigmoid_at_zero(self):
        assert Activation.SIGMOID.apply(0.0) == 0.5
        assert Activation.SIGMOID.derivative(0.0) == 0.25

    def test_sigmoid_strictly_increasing_and_bounded(self):
        xs = np.linspace(-30.0, 30.0, 601)
        ys = [Activation.SIGMOID.apply(x) for x in xs]
        assert all(b > a for a, b in zip(ys, ys[1:]))
        assert all(0.0 < y < 1.0 for y in ys)

    def test_sigmoid_extreme_inputs_stay_finite(self):
        assert Activation.SIGMOID.apply(-1000.0) == 0.0
        assert Activation.SIGMOID.apply(1000.0) == 1.0

    def test_relu(self):
        assert Activation.RELU.apply(-2.0) == 0.0
        assert Activation.RELU.apply(3.0) == 3.0
        assert Activation.RELU.derivative(3.0) == 1.0
        assert Activation.RELU.derivative(-3.0) == 0.0
        assert Activation.RELU.derivative(0.0) == 0.0

    def test_leaky_relu(self):
        assert Activation.LEAKY_RELU.apply(-2.0) == pytest.approx(-0.2)
        assert Activation.LEAKY_RELU.apply(2.0) == 2.0
        assert Activation.LEAKY_RELU.derivative(-2.0) == pytest.approx(0.1)
        assert Activation.LEAKY_RELU.derivative(2.0) == 1.0

    def test_tanh(self):
        assert Activation.TANH.apply(0.5) == pytest.approx(math.tanh(0.5))
        assert Activation.TANH.derivative(0.5) == pytest.approx(1 - math.tanh(0.5) ** 2)

    def test_scalar_softmax_is_single_element_vector(self):
        assert Activation.SOFTMAX.apply(4.2) == 1.0
        assert Activation.SOFTMAX.derivative(4.2) == 0.0

    @pytest.mark.parametrize('activation', [Activation.SIGMOID, Activation.TANH, Activation.IDENTITY])
    @pytest.mark.parametrize('x', [-2.0, -0.3, 0.7, 1.9])
    def test_derivative_matches_finite_difference(self, activation, x):
        h = 1e-5
        numeric = (activation.apply(x + h) - activation.apply(x - h)) / (2 * h)
        assert activation.derivative(x) == pytest.approx(numeric, rel=1e-4, abs=1e-6)


class TestVectorFunctions:
    @pytest.mark.parametrize('activation', ELEMENTWISE)
    def test_vector_matches_scalar(self, activation):
        pre = np.array([-1.5, -0.2, 0.0, 0.4, 2.5], dtype=np.float32)
        out = activation.apply_vector(pre)
        deriv = activation.derivative_vector(pre)
        assert out.dtype == np.float32
        for i, x in enumerate(pre):
            assert out[i] == pytest.approx(activation.apply(x), abs=1e-6)
            assert deriv[i] == pytest.approx(activation.derivative(x), abs=1e-6)

    def test_apply_vector_returns_new_array(self):
        pre = np.array([1.0, 2.0], dtype=np.float32)
        out = Activation.IDENTITY.apply_vector(pre)
        out[0] = 99.0
        assert pre[0] == 1.0

    def test_softmax_sums_to_one(self):
        rng = np.random.default_rng(3)
        for _ in range(20):
            pre = rng.uniform(-20, 20, size=6).astype(np.float32)
            assert float(np.sum(Activation.SOFTMAX.apply_vector(pre))) == pytest.approx(1.0, abs=1e-5)

    def test_softmax_shift_invariant(self):
        pre = np.array([0.5, -1.0, 2.0, 0.0], dtype=np.float32)
        shifted = pre + np.float32(37.0)
        np.testing.assert_allclose(softmax(pre), softmax(shifted), atol=1e-6)

    def test_softmax_large_inputs_do_not_overflow(self):
        out = softmax(np.array([1000.0, 1000.0], dtype=np.float32))
        np.testing.assert_allclose(out, [0.5, 0.5])

    def test_softmax_backprop_is_jacobian_product(self):
        pre = np.array([0.2, -0.4, 1.1], dtype=np.float32)
        error = np.array([0.3, -0.7, 0.1], dtype=np.float32)
        s = softmax(pre).astype(np.float64)
        jacobian = np.diag(s) - np.outer(s, s)
        np.testing.assert_allclose(Activation.SOFTMAX.backprop(pre, error), jacobian @ error, atol=1e-6)

    def test_elementwise_backprop_scales_error(self):
        pre = np.array([-1.0, 2.0], dtype=np.float32)
        error = np.array([0.5, 0.5], dtype=np.float32)
        np.testing.assert_allclose(Activation.RELU.backprop(pre, error), [0.0, 0.5])


class TestFromName:
    @pytest.mark.parametrize('name,expected', [
        ('sigmoid', Activation.SIGMOID),
        ('ReLU', Activation.RELU),
        ('LeakyReLU', Activation.LEAKY_RELU),
        ('leaky-relu', Activation.LEAKY_RELU),
        ('TANH', Activation.TANH),
        ('softmax', Activation.SOFTMAX),
        ('linear', Activation.IDENTITY),
    ])
    def test_parses_names(self, name, expected):
        assert Activation.from_name(name) is expected

    def test_passes_members_through(self):
        assert Activation.from_name(Activation.TANH) is Activation.TANH

    def test_unknown_name(self):
        with pytest.raises(ConstructionError):
            Activation.from_name('swish')
