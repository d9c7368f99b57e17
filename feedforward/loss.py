from collections import deque
from enum import Enum
from typing import Dict, Optional

import numpy as np

CROSS_ENTROPY_EPS = 1e-7


class LossFunction(Enum):
    MEAN_SQUARED_ERROR = 'mse'
    BINARY_CROSS_ENTROPY = 'binary_cross_entropy'
    CATEGORICAL_CROSS_ENTROPY = 'categorical_cross_entropy'

    def compute(self, prediction, target) -> float:
        """
        Compute the loss between a prediction and its target.

        Args:
            prediction: Predicted value(s)
            target: Target value(s), same length as prediction

        Returns:
            Mean loss over the vector
        """
        prediction = np.asarray(prediction, dtype=np.float64)
        target = np.asarray(target, dtype=np.float64)
        if prediction.shape != target.shape:
            raise ValueError(f"prediction shape {prediction.shape} != target shape {target.shape}")

        if self is LossFunction.MEAN_SQUARED_ERROR:
            return float(np.mean((target - prediction) ** 2))

        p = np.clip(prediction, CROSS_ENTROPY_EPS, 1.0 - CROSS_ENTROPY_EPS)
        if self is LossFunction.CATEGORICAL_CROSS_ENTROPY:
            # target is a distribution over the units, e.g. one-hot for softmax outputs
            return float(-np.sum(target * np.log(p)))
        # independent per-unit probabilities, e.g. sigmoid outputs
        return float(np.mean(-(target * np.log(p) + (1.0 - target) * np.log(1.0 - p))))


def mean_squared_error(prediction, target) -> float:
    return LossFunction.MEAN_SQUARED_ERROR.compute(prediction, target)


class LossTracker:
    """
    Keeps a bounded history of training losses.

    Attributes:
        loss_history: Recent losses, newest last
        total_recorded: Number of losses ever recorded
    """

    def __init__(self, max_history: int = 1000):
        self.max_history = max_history
        self.loss_history = deque(maxlen=max_history)
        self.total_recorded = 0
        self.best_loss: Optional[float] = None

    def record(self, loss: float):
        loss = float(loss)
        self.loss_history.append(loss)
        self.total_recorded += 1
        if self.best_loss is None or loss < self.best_loss:
            self.best_loss = loss

    def get_last_loss(self) -> Optional[float]:
        if len(self.loss_history) == 0:
            return None
        return self.loss_history[-1]

    def get_average_loss(self, n: int = 50) -> float:
        """Get the average of the last n recorded losses (0.0 if none)."""
        if n <= 0 or len(self.loss_history) == 0:
            return 0.0
        recent = list(self.loss_history)[-n:]
        return float(np.mean(recent))

    def get_statistics(self) -> Dict:
        """Get summary statistics of the recorded losses."""
        if len(self.loss_history) == 0:
            return {'count': 0, 'total_recorded': self.total_recorded}

        history = np.array(self.loss_history)
        return {
            'count': len(history),
            'total_recorded': self.total_recorded,
            'mean': float(np.mean(history)),
            'min': float(np.min(history)),
            'max': float(np.max(history)),
            'last': float(history[-1]),
            'best': self.best_loss,
        }

    def reset(self):
        self.loss_history.clear()
        self.total_recorded = 0
        self.best_loss = None

    def __repr__(self):
        return f"LossTracker(recorded={self.total_recorded}, avg50={self.get_average_loss(50):.4f})"
