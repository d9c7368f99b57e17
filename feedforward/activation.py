import math
from enum import Enum

import numpy as np

from .errors import ConstructionError

LEAKY_SLOPE = 0.1


class Activation(Enum):
    """
    Transfer functions applied to a layer's pre-activation sums.

    Derivatives are always taken with respect to the pre-activation value.
    Softmax is the one joint function: it normalizes across the whole
    vector, so its scalar form treats the argument as a one-element vector.
    """

    IDENTITY = 'identity'
    SIGMOID = 'sigmoid'
    RELU = 'relu'
    LEAKY_RELU = 'leaky_relu'
    TANH = 'tanh'
    SOFTMAX = 'softmax'

    @classmethod
    def from_name(cls, name: str) -> 'Activation':
        """Parse a case-insensitive name such as 'sigmoid' or 'LeakyReLU'."""
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower().replace('-', '_')
        aliases = {'leakyrelu': 'leaky_relu', 'linear': 'identity'}
        key = aliases.get(key, key)
        try:
            return cls(key)
        except ValueError:
            valid = ', '.join(a.value for a in cls)
            raise ConstructionError(f"Unknown activation '{name}' (expected one of: {valid})",
                                    {'name': name}) from None

    @property
    def is_elementwise(self) -> bool:
        return self is not Activation.SOFTMAX

    def apply(self, x: float) -> float:
        x = float(x)
        if self is Activation.IDENTITY:
            return x
        if self is Activation.SIGMOID:
            return _scalar_sigmoid(x)
        if self is Activation.RELU:
            return max(0.0, x)
        if self is Activation.LEAKY_RELU:
            return max(x, LEAKY_SLOPE * x)
        if self is Activation.TANH:
            return math.tanh(x)
        return 1.0

    def derivative(self, x: float) -> float:
        x = float(x)
        if self is Activation.IDENTITY:
            return 1.0
        if self is Activation.SIGMOID:
            s = _scalar_sigmoid(x)
            return s * (1.0 - s)
        if self is Activation.RELU:
            # 0 at the kink
            return 1.0 if x > 0 else 0.0
        if self is Activation.LEAKY_RELU:
            return 1.0 if x > 0 else LEAKY_SLOPE
        if self is Activation.TANH:
            t = math.tanh(x)
            return 1.0 - t * t
        return 0.0

    def apply_vector(self, pre: np.ndarray) -> np.ndarray:
        """
        Apply the function to a whole pre-activation vector.

        Args:
            pre: 1-D float32 vector of pre-activation sums

        Returns:
            New float32 vector of the same length
        """
        pre = np.asarray(pre, dtype=np.float32)
        if self is Activation.IDENTITY:
            return pre.copy()
        if self is Activation.SIGMOID:
            return sigmoid(pre)
        if self is Activation.RELU:
            return np.maximum(pre, np.float32(0.0))
        if self is Activation.LEAKY_RELU:
            return np.maximum(pre, np.float32(LEAKY_SLOPE) * pre)
        if self is Activation.TANH:
            return np.tanh(pre)
        return softmax(pre)

    def derivative_vector(self, pre: np.ndarray) -> np.ndarray:
        """Elementwise derivative; for Softmax this is the Jacobian diagonal."""
        pre = np.asarray(pre, dtype=np.float32)
        if self is Activation.IDENTITY:
            return np.ones_like(pre)
        if self is Activation.SIGMOID:
            s = sigmoid(pre)
            return s * (np.float32(1.0) - s)
        if self is Activation.RELU:
            return (pre > 0).astype(np.float32)
        if self is Activation.LEAKY_RELU:
            return np.where(pre > 0, np.float32(1.0), np.float32(LEAKY_SLOPE)).astype(np.float32)
        if self is Activation.TANH:
            t = np.tanh(pre)
            return np.float32(1.0) - t * t
        s = softmax(pre)
        return s * (np.float32(1.0) - s)

    def backprop(self, pre: np.ndarray, error: np.ndarray) -> np.ndarray:
        """
        Turn the error arriving at a layer's outputs into per-unit deltas.

        Elementwise functions scale each error by the local derivative.
        Softmax multiplies by its full Jacobian: delta = s * (error - <error, s>).
        """
        error = np.asarray(error, dtype=np.float32)
        if self.is_elementwise:
            return error * self.derivative_vector(pre)
        s = softmax(pre)
        return s * (error - np.dot(error, s))

    def __str__(self):
        return self.value


def sigmoid(x: np.ndarray) -> np.ndarray:
    # exp overflow for very negative x only pushes the result to 0
    with np.errstate(over='ignore'):
        return (np.float32(1.0) / (np.float32(1.0) + np.exp(-x))).astype(np.float32)


def softmax(x: np.ndarray) -> np.ndarray:
    shifted = np.asarray(x, dtype=np.float32) - np.max(x)
    exps = np.exp(shifted)
    return (exps / np.sum(exps)).astype(np.float32)


def _scalar_sigmoid(x: float) -> float:
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)
