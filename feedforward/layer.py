import logging
from enum import Enum
from typing import Dict, NamedTuple, Optional, Sequence, Union

import numpy as np

from .activation import Activation
from .config import EngineConfig, get_config
from .errors import ConstructionError, DimensionError, NumericError

logger = logging.getLogger(__name__)

RandomSource = Union[None, int, np.random.Generator]


class LayerRole(Enum):
    INPUT = 'input'
    HIDDEN = 'hidden'
    OUTPUT = 'output'


class LayerTrace(NamedTuple):
    """Values retained from one forward pass, consumed by backward."""
    inputs: np.ndarray
    pre_activation: np.ndarray
    outputs: np.ndarray


def as_vector(values, name: str = 'input') -> np.ndarray:
    """Convert a sequence of numbers into a fresh 1-D float32 vector."""
    try:
        vector = np.array(values, dtype=np.float32)
    except ValueError as e:
        # ragged nesting such as [[1, 2], [3]]
        raise DimensionError(f"{name} must be a flat sequence of numbers: {e}",
                             expected=1, actual=-1, context={'what': 'shape'}) from e
    if vector.ndim != 1:
        raise DimensionError(f"{name} must be a flat sequence, got shape {vector.shape}",
                             expected=1, actual=vector.ndim, context={'what': 'ndim'})
    return vector


class Layer:
    """
    One stage of a feed-forward chain.

    Attributes:
        input_width: Number of units consumed
        output_width: Number of units produced
        role: Position of the layer in a model (input, hidden or output)
        activation: Transfer function applied to the pre-activation sums
        weights: (output_width, input_width) matrix, weights[i][j] links input j to output i
        bias: (output_width,) vector
        config: Engine configuration set by the owning model (global config if None)
    """

    def __init__(self,
                 input_width: int,
                 output_width: int,
                 role: LayerRole,
                 activation: Activation = Activation.IDENTITY):
        if input_width <= 0 or output_width <= 0:
            raise ConstructionError(
                f"Layer widths must be positive, got {input_width} -> {output_width}",
                {'input_width': input_width, 'output_width': output_width})

        self.input_width = int(input_width)
        self.output_width = int(output_width)
        self.role = LayerRole(role)
        self.activation = Activation.from_name(activation)

        self.weights = np.zeros((self.output_width, self.input_width), dtype=np.float32)
        self.bias = np.zeros(self.output_width, dtype=np.float32)
        self.config: Optional[EngineConfig] = None

    def forward(self, inputs) -> np.ndarray:
        """
        Compute this layer's outputs. Does not change layer state.

        Args:
            inputs: Sequence of input_width numbers

        Returns:
            New vector of output_width numbers
        """
        return self.forward_trace(inputs).outputs

    def forward_trace(self, inputs) -> LayerTrace:
        raise NotImplementedError

    def backward(self, trace: LayerTrace, error_signal, learning_rate: float) -> np.ndarray:
        raise NotImplementedError

    def randomize(self, source: RandomSource = None, scale: Optional[float] = None):
        """Fill parameters from a seed or generator; the input layer has none."""
        return None

    def parameter_count(self) -> int:
        return 0

    def get_config(self) -> EngineConfig:
        return self.config if self.config is not None else get_config()

    def _check_width(self, vector: np.ndarray, expected: int, name: str):
        if vector.shape[0] != expected:
            raise DimensionError(
                f"{self.role.value} layer expected {name} of length {expected}, got {vector.shape[0]}",
                expected=expected, actual=vector.shape[0], context={'what': name, 'role': self.role.value})

    def get_state(self) -> Dict:
        """Get layer state for serialization (copies, safe to mutate)."""
        return {
            'role': self.role.value,
            'input_width': self.input_width,
            'output_width': self.output_width,
            'activation': self.activation.value,
            'weights': self.weights.copy(),
            'bias': self.bias.copy(),
        }

    def set_parameters(self, weights, bias):
        """
        Replace weights and bias, e.g. when restoring a saved model.

        Args:
            weights: (output_width, input_width) nested sequence or array
            bias: Sequence of output_width numbers
        """
        try:
            weights = np.array(weights, dtype=np.float32)
        except ValueError as e:
            raise DimensionError(f"weights must be a rectangular matrix: {e}",
                                 expected=self.output_width, actual=-1, context={'what': 'weights'}) from e
        bias = as_vector(bias, 'bias')
        if weights.ndim != 2 or weights.shape[0] != self.output_width:
            rows = weights.shape[0] if weights.ndim >= 1 else 0
            raise DimensionError(
                f"weights must have {self.output_width} rows, got shape {weights.shape}",
                expected=self.output_width, actual=rows, context={'what': 'weights'})
        if weights.shape[1] != self.input_width:
            raise DimensionError(
                f"weight rows must have length {self.input_width}, got {weights.shape[1]}",
                expected=self.input_width, actual=weights.shape[1], context={'what': 'weights'})
        self._check_width(bias, self.output_width, 'bias')
        if not (np.all(np.isfinite(weights)) and np.all(np.isfinite(bias))):
            raise NumericError("parameters contain NaN or Inf", {'role': self.role.value})

        self.weights[...] = weights
        self.bias[...] = bias

    def __repr__(self):
        return (f"{type(self).__name__}({self.input_width}->{self.output_width}, "
                f"role={self.role.value}, activation={self.activation.value})")


class InputLayer(Layer):
    """Identity pass-through at the head of a model."""

    def __init__(self, width: int):
        super().__init__(width, width, LayerRole.INPUT, Activation.IDENTITY)

    def forward_trace(self, inputs) -> LayerTrace:
        x = as_vector(inputs)
        self._check_width(x, self.input_width, 'input')
        return LayerTrace(x, x, x.copy())

    def backward(self, trace: LayerTrace, error_signal, learning_rate: float) -> np.ndarray:
        """Pass the error through unchanged; there is nothing to update."""
        error = as_vector(error_signal, 'error_signal')
        self._check_width(error, self.output_width, 'error_signal')
        return error

    def set_parameters(self, weights, bias):
        raise ConstructionError("Input layers have no trainable parameters")


class DenseLayer(Layer):
    """
    Fully-connected affine transform followed by an activation.

    Used for both hidden and output roles; the role only affects where the
    layer may sit in a model.
    """

    def __init__(self,
                 input_width: int,
                 output_width: int,
                 activation: Activation = Activation.SIGMOID,
                 role: LayerRole = LayerRole.HIDDEN):
        if LayerRole(role) is LayerRole.INPUT:
            raise ConstructionError("DenseLayer cannot take the input role; use InputLayer")
        super().__init__(input_width, output_width, role, activation)

    def randomize(self, source: RandomSource = None, scale: Optional[float] = None):
        """
        Fill weights and bias with independent uniform values in [-scale, scale].

        Args:
            source: Int seed, numpy Generator, or None for fresh entropy
            scale: Distribution bound (config init_scale if None)
        """
        rng = np.random.default_rng(source)
        scale = self.get_config().init_scale if scale is None else float(scale)

        self.weights[...] = rng.uniform(-scale, scale, size=self.weights.shape)
        self.bias[...] = rng.uniform(-scale, scale, size=self.bias.shape)

    def forward_trace(self, inputs) -> LayerTrace:
        x = as_vector(inputs)
        self._check_width(x, self.input_width, 'input')

        pre = self.bias + self.weights @ x
        outputs = self.activation.apply_vector(pre)
        if self.get_config().check_finite:
            self._ensure_finite(pre, outputs, stage='forward')
        return LayerTrace(x, pre, outputs)

    def backward(self, trace: LayerTrace, error_signal, learning_rate: float) -> np.ndarray:
        """
        Apply the delta rule to this layer and return the error for the layer below.

        Args:
            trace: Values retained from forward_trace on the same input
            error_signal: Error at this layer's outputs (output_width numbers)
            learning_rate: Step size for the additive update

        Returns:
            Error for the preceding layer (input_width numbers), computed
            from the weights as they were before this update
        """
        error = as_vector(error_signal, 'error_signal')
        self._check_width(error, self.output_width, 'error_signal')
        self._check_width(trace.inputs, self.input_width, 'trace inputs')
        self._check_width(trace.pre_activation, self.output_width, 'trace pre_activation')

        delta = self.activation.backprop(trace.pre_activation, error)

        # All reads of the old weights happen before any write
        propagated = self.weights.T @ delta
        lr = np.float32(learning_rate)
        new_weights = self.weights + lr * np.outer(delta, trace.inputs)
        new_bias = self.bias + lr * delta

        self._ensure_finite(delta, propagated, new_weights, new_bias, stage='backward')

        self.weights[...] = new_weights
        self.bias[...] = new_bias
        return propagated.astype(np.float32)

    def parameter_count(self) -> int:
        return self.weights.size + self.bias.size

    def _ensure_finite(self, *arrays: np.ndarray, stage: str):
        for array in arrays:
            if not np.all(np.isfinite(array)):
                logger.error("Non-finite value in %s pass of %r", stage, self)
                raise NumericError(f"Non-finite value produced during {stage} pass",
                                   {'stage': stage, 'role': self.role.value})


def create_layer(input_width: int,
                 output_width: int,
                 role: LayerRole,
                 activation: Union[Activation, str] = Activation.IDENTITY) -> Layer:
    """
    Build a zero-initialized layer of the right kind for its role.

    Args:
        input_width: Units consumed
        output_width: Units produced (must equal input_width for the input role)
        role: LayerRole or its name
        activation: Activation or its name (ignored for the input role)

    Returns:
        InputLayer or DenseLayer
    """
    role = LayerRole(role)
    if role is LayerRole.INPUT:
        if input_width != output_width:
            raise ConstructionError(
                f"Input layer must have equal widths, got {input_width} -> {output_width}",
                {'input_width': input_width, 'output_width': output_width})
        return InputLayer(input_width)
    return DenseLayer(input_width, output_width, Activation.from_name(activation), role)


def layer_from_state(state: Dict) -> Layer:
    """Rebuild a layer from the dict produced by get_state."""
    layer = create_layer(state['input_width'], state['output_width'],
                         LayerRole(state['role']), state.get('activation', 'identity'))
    if layer.role is not LayerRole.INPUT:
        layer.set_parameters(state['weights'], state['bias'])
    return layer


def check_lengths(*pairs: Sequence) -> None:
    """Raise DimensionError for the first (vector, expected, name) triple whose length is off."""
    for vector, expected, name in pairs:
        if len(vector) != expected:
            raise DimensionError(f"{name} must have length {expected}, got {len(vector)}",
                                 expected=expected, actual=len(vector), context={'what': name})
