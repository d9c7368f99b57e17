"""
Feed-Forward Neural Network Package

Layers, activations and a sequential model with forward inference and
delta-rule training.
"""

from .activation import Activation
from .config import EngineConfig, get_config, set_config
from .errors import ConstructionError, DimensionError, FeedForwardError, NumericError
from .layer import DenseLayer, InputLayer, Layer, LayerRole, LayerTrace, create_layer
from .logging_config import setup_logging
from .loss import LossFunction, LossTracker
from .network import Model

__all__ = [
    'Activation',
    'Layer',
    'InputLayer',
    'DenseLayer',
    'LayerRole',
    'LayerTrace',
    'create_layer',
    'Model',
    'LossFunction',
    'LossTracker',
    'FeedForwardError',
    'ConstructionError',
    'DimensionError',
    'NumericError',
    'EngineConfig',
    'get_config',
    'set_config',
    'setup_logging',
]
