import logging
import math
import numbers
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .activation import Activation
from .config import EngineConfig, get_config
from .errors import ConstructionError, NumericError
from .layer import (DenseLayer, InputLayer, Layer, LayerRole, LayerTrace,
                    RandomSource, as_vector, check_lengths, layer_from_state)
from .loss import LossFunction, LossTracker, mean_squared_error

logger = logging.getLogger(__name__)

ActivationSpec = Union[Activation, str, Sequence[Union[Activation, str]]]
Sample = Tuple[Sequence[float], Sequence[float]]


class Model:
    """
    A feed-forward network: one input layer, zero or more hidden layers and
    one output layer, each layer's output width matching the next layer's
    input width.

    Inference (predict) never mutates the model. Training (train_one, train)
    runs a forward pass, then walks the layers in reverse applying the
    delta rule. Instances are not thread-safe; callers serialize access.
    """

    def __init__(self,
                 layer_widths: Sequence[int],
                 activations: ActivationSpec = Activation.SIGMOID,
                 config: Optional[EngineConfig] = None):
        """
        Initialize a model with zero parameters.

        Args:
            layer_widths: Unit counts, input first and output last (at least 2)
            activations: One activation per non-input layer, or a single one
                reused for all of them
            config: Engine configuration (global config if None)
        """
        widths = list(layer_widths)
        if len(widths) < 2:
            raise ConstructionError(f"A model needs at least 2 layer widths, got {len(widths)}",
                                    {'layer_widths': widths})
        for i, width in enumerate(widths):
            if not isinstance(width, numbers.Integral) or isinstance(width, bool) or width <= 0:
                raise ConstructionError(f"Layer width at position {i} must be a positive integer, got {width}",
                                        {'layer_widths': widths, 'index': i})

        if isinstance(activations, (Activation, str)):
            activations = [activations] * (len(widths) - 1)
        activations = [Activation.from_name(a) for a in activations]
        if len(activations) != len(widths) - 1:
            raise ConstructionError(
                f"Expected {len(widths) - 1} activations for {len(widths)} widths, got {len(activations)}",
                {'layer_widths': widths, 'activations': [a.value for a in activations]})

        layers: List[Layer] = [InputLayer(widths[0])]
        for i in range(1, len(widths)):
            role = LayerRole.OUTPUT if i == len(widths) - 1 else LayerRole.HIDDEN
            layers.append(DenseLayer(widths[i - 1], widths[i], activations[i - 1], role))

        self._attach(layers, config)
        logger.debug("Built %r", self)

    @classmethod
    def from_layers(cls, layers: Sequence[Layer], config: Optional[EngineConfig] = None) -> 'Model':
        """
        Build a model from explicit layers, checking role order and widths.

        Args:
            layers: Input layer, hidden layers, output layer (in that order)
            config: Engine configuration (global config if None)
        """
        layers = list(layers)
        if len(layers) < 2:
            raise ConstructionError(f"A model needs at least 2 layers, got {len(layers)}")
        if layers[0].role is not LayerRole.INPUT:
            raise ConstructionError(f"First layer must have the input role, got {layers[0].role.value}")
        if layers[-1].role is not LayerRole.OUTPUT:
            raise ConstructionError(f"Last layer must have the output role, got {layers[-1].role.value}")
        for i, layer in enumerate(layers[1:-1], start=1):
            if layer.role is not LayerRole.HIDDEN:
                raise ConstructionError(f"Layer {i} must have the hidden role, got {layer.role.value}")
        for i in range(1, len(layers)):
            if layers[i - 1].output_width != layers[i].input_width:
                raise ConstructionError(
                    f"Layer {i - 1} outputs {layers[i - 1].output_width} units but layer {i} "
                    f"expects {layers[i].input_width}",
                    {'index': i})

        model = cls.__new__(cls)
        model._attach(layers, config)
        return model

    @classmethod
    def from_state(cls, state: Dict, config: Optional[EngineConfig] = None) -> 'Model':
        """Rebuild a model from the dict produced by get_state."""
        model = cls.from_layers([layer_from_state(s) for s in state['layers']], config)
        model.training_steps = int(state.get('training_steps', 0))
        return model

    def _attach(self, layers: List[Layer], config: Optional[EngineConfig]):
        self.config = config if config is not None else get_config()
        self._layers: List[Layer] = layers
        for layer in layers:
            layer.config = self.config
        self.loss_tracker = LossTracker(max_history=self.config.loss_history)
        self.training_steps = 0

    # -- introspection -----------------------------------------------------

    @property
    def layers(self) -> Tuple[Layer, ...]:
        return tuple(self._layers)

    @property
    def layer_count(self) -> int:
        return len(self._layers)

    @property
    def input_width(self) -> int:
        return self._layers[0].input_width

    @property
    def output_width(self) -> int:
        return self._layers[-1].output_width

    def layer_widths(self) -> List[Tuple[int, int]]:
        """(input_width, output_width) for every layer, input layer first."""
        return [(layer.input_width, layer.output_width) for layer in self._layers]

    def layer_roles(self) -> List[LayerRole]:
        return [layer.role for layer in self._layers]

    def parameter_count(self) -> int:
        return sum(layer.parameter_count() for layer in self._layers)

    # -- parameters --------------------------------------------------------

    def randomize_all(self, seed: RandomSource = None, scale: Optional[float] = None):
        """
        Randomize every hidden and output layer from one generator.

        Args:
            seed: Int seed, numpy Generator, or None for fresh entropy
            scale: Uniform bound (config init_scale if None)
        """
        rng = np.random.default_rng(seed)
        scale = self.config.init_scale if scale is None else scale
        for layer in self._layers:
            layer.randomize(rng, scale)
        logger.debug("Randomized %d parameters (seed=%r, scale=%s)", self.parameter_count(), seed, scale)

    def get_state(self) -> Dict:
        """Get model state for serialization."""
        return {
            'layers': [layer.get_state() for layer in self._layers],
            'training_steps': self.training_steps,
        }

    def load_state(self, state: Dict):
        """
        Copy parameters from a get_state dict into this model.

        The layer count, widths and roles must match. Nothing is modified
        unless the whole state validates.
        """
        incoming = [layer_from_state(s) for s in state['layers']]
        if len(incoming) != len(self._layers):
            raise ConstructionError(f"State has {len(incoming)} layers, model has {len(self._layers)}")
        for i, (new, old) in enumerate(zip(incoming, self._layers)):
            if (new.role, new.input_width, new.output_width) != (old.role, old.input_width, old.output_width):
                raise ConstructionError(f"Layer {i} in state ({new!r}) does not match model layer ({old!r})",
                                        {'index': i})

        for new, old in zip(incoming, self._layers):
            old.activation = new.activation
            old.weights[...] = new.weights
            old.bias[...] = new.bias
        self.training_steps = int(state.get('training_steps', self.training_steps))

    def _save_parameter_snapshot(self) -> List[Tuple[np.ndarray, np.ndarray]]:
        return [(layer.weights.copy(), layer.bias.copy()) for layer in self._layers]

    def _restore_parameter_snapshot(self, snapshot: List[Tuple[np.ndarray, np.ndarray]]):
        for layer, (weights, bias) in zip(self._layers, snapshot):
            layer.weights[...] = weights
            layer.bias[...] = bias

    # -- inference ---------------------------------------------------------

    def forward(self, x) -> List[LayerTrace]:
        """
        Run a forward pass and keep every layer's trace.

        Args:
            x: Input vector

        Returns:
            One LayerTrace per layer, input layer first
        """
        traces = []
        signal = x
        for layer in self._layers:
            trace = layer.forward_trace(signal)
            traces.append(trace)
            signal = trace.outputs
        return traces

    def predict(self, x) -> np.ndarray:
        """
        Compute the model output for one input vector.

        Args:
            x: Sequence of input_width numbers

        Returns:
            New float32 vector of output_width numbers
        """
        signal = x
        for layer in self._layers:
            signal = layer.forward(signal)
        return signal

    def evaluate(self, dataset: Sequence[Sample],
                 loss_function: LossFunction = LossFunction.MEAN_SQUARED_ERROR) -> float:
        """Mean loss of predict() over a dataset; the model is not changed."""
        dataset = list(dataset)
        if len(dataset) == 0:
            raise ValueError("Cannot evaluate on an empty dataset")
        losses = [loss_function.compute(self.predict(x), as_vector(y, 'expected'))
                  for x, y in dataset]
        return float(np.mean(losses))

    # -- training ----------------------------------------------------------

    def train_one(self, x, expected, learning_rate: Optional[float] = None) -> float:
        """
        One delta-rule update on a single sample.

        Args:
            x: Input vector (input_width numbers)
            expected: Target vector (output_width numbers)
            learning_rate: Step size (config default if None)

        Returns:
            Mean squared error of the output computed before the update
        """
        learning_rate = self._check_learning_rate(learning_rate)
        x = as_vector(x)
        expected = as_vector(expected, 'expected')
        check_lengths((x, self.input_width, 'input'), (expected, self.output_width, 'expected'))

        traces = self.forward(x)
        outputs = traces[-1].outputs
        loss = mean_squared_error(outputs, expected)

        snapshot = self._save_parameter_snapshot()
        error = expected - outputs
        try:
            for layer, trace in zip(reversed(self._layers), reversed(traces)):
                error = layer.backward(trace, error, learning_rate)
        except NumericError:
            self._restore_parameter_snapshot(snapshot)
            logger.error("Training step %d failed, parameters restored", self.training_steps)
            raise

        self.training_steps += 1
        self.loss_tracker.record(loss)
        return loss

    def train(self,
              dataset: Sequence[Sample],
              epochs: int,
              learning_rate: Optional[float] = None,
              shuffle: bool = False,
              seed: RandomSource = None) -> List[float]:
        """
        Repeat train_one over a dataset for a number of epochs.

        Args:
            dataset: (input, expected) pairs
            epochs: Number of full passes over the dataset
            learning_rate: Step size (config default if None)
            shuffle: Visit samples in a fresh random order each epoch
            seed: Seed or generator for the shuffling order

        Returns:
            Mean training loss of each epoch
        """
        if epochs < 0:
            raise ValueError(f"epochs must be non-negative, got {epochs}")
        learning_rate = self._check_learning_rate(learning_rate)
        samples = [(as_vector(x), as_vector(y, 'expected')) for x, y in dataset]
        if len(samples) == 0:
            raise ValueError("Cannot train on an empty dataset")
        # Reject bad rows before any weight changes
        for x, y in samples:
            check_lengths((x, self.input_width, 'input'), (y, self.output_width, 'expected'))

        rng = np.random.default_rng(seed) if shuffle else None
        history = []
        for epoch in range(epochs):
            order = rng.permutation(len(samples)) if rng is not None else range(len(samples))
            epoch_loss = 0.0
            for idx in order:
                x, y = samples[idx]
                epoch_loss += self.train_one(x, y, learning_rate)
            history.append(epoch_loss / len(samples))

            if (epoch + 1) % self.config.log_every == 0 or epoch == epochs - 1:
                logger.info("Epoch %d/%d: loss=%.6f", epoch + 1, epochs, history[-1])
        return history

    def _check_learning_rate(self, learning_rate: Optional[float]) -> float:
        if learning_rate is None:
            return self.config.default_learning_rate
        learning_rate = float(learning_rate)
        if not math.isfinite(learning_rate) or learning_rate <= 0:
            raise ValueError(f"learning_rate must be a positive finite number, got {learning_rate}")
        return learning_rate

    # -- reporting ---------------------------------------------------------

    def get_network_stats(self) -> Dict:
        """Get network statistics."""
        return {
            'total_layers': self.layer_count,
            'hidden_layers': sum(1 for role in self.layer_roles() if role is LayerRole.HIDDEN),
            'total_parameters': self.parameter_count(),
            'layer_widths': self.layer_widths(),
            'training_steps': self.training_steps,
            'last_loss': self.loss_tracker.get_last_loss(),
            'avg_loss_50': self.loss_tracker.get_average_loss(50),
            'loss_stats': self.loss_tracker.get_statistics(),
        }

    def print_network_summary(self):
        """Print a summary of the network structure and training progress."""
        stats = self.get_network_stats()

        print("\n" + "=" * 60)
        print("FEED-FORWARD NETWORK SUMMARY")
        print("=" * 60)
        print(f"Training Steps: {stats['training_steps']}")
        print(f"Total Layers: {stats['total_layers']} ({stats['hidden_layers']} hidden)")
        print(f"Total Parameters: {stats['total_parameters']}")
        if stats['last_loss'] is not None:
            print(f"Last Loss: {stats['last_loss']:.6f}")
            print(f"Avg Loss (50): {stats['avg_loss_50']:.6f}")
        print()

        print("Layer Details:")
        for i, layer in enumerate(self._layers):
            print(f"  Layer {i}: {layer.role.value:<6} {layer.input_width:>4} -> {layer.output_width:<4} "
                  f"activation={layer.activation.value}, params={layer.parameter_count()}")
        print("=" * 60 + "\n")

    def __repr__(self):
        widths = [self.input_width] + [layer.output_width for layer in self._layers[1:]]
        return f"Model(widths={widths}, steps={self.training_steps})"
