import logging
import os
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

ENV_PREFIX = 'FEEDFORWARD_'


class EngineConfig:
    """Engine-wide defaults shared by layers and models."""

    def __init__(self,
                 init_scale: float = 0.3,
                 default_learning_rate: float = 0.5,
                 check_finite: bool = True,
                 log_every: int = 100,
                 loss_history: int = 1000):
        """
        Initialize engine configuration.

        Args:
            init_scale: Bound of the uniform distribution used by randomize
            default_learning_rate: Learning rate used when a caller passes none
            check_finite: If True, NaN/Inf values in the forward pass raise NumericError
                (parameter updates are always checked)
            log_every: Epochs between progress log lines during train()
            loss_history: Number of recent losses kept by a model's tracker
        """
        if init_scale <= 0:
            raise ValueError(f"init_scale must be positive, got {init_scale}")
        if default_learning_rate <= 0:
            raise ValueError(f"default_learning_rate must be positive, got {default_learning_rate}")
        if log_every < 1:
            raise ValueError(f"log_every must be at least 1, got {log_every}")
        if loss_history < 1:
            raise ValueError(f"loss_history must be at least 1, got {loss_history}")

        self.init_scale = float(init_scale)
        self.default_learning_rate = float(default_learning_rate)
        self.check_finite = bool(check_finite)
        self.log_every = int(log_every)
        self.loss_history = int(loss_history)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'EngineConfig':
        """
        Build a configuration from FEEDFORWARD_* environment variables.

        Unset variables keep their defaults, e.g. FEEDFORWARD_INIT_SCALE=0.5.
        """
        environ = os.environ if environ is None else environ
        kwargs = {}

        for name, parse in (('init_scale', float),
                            ('default_learning_rate', float),
                            ('check_finite', _parse_bool),
                            ('log_every', int),
                            ('loss_history', int)):
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is None:
                continue
            try:
                kwargs[name] = parse(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {ENV_PREFIX + name.upper()}: {raw!r}") from e

        return cls(**kwargs)

    def as_dict(self) -> dict:
        return {
            'init_scale': self.init_scale,
            'default_learning_rate': self.default_learning_rate,
            'check_finite': self.check_finite,
            'log_every': self.log_every,
            'loss_history': self.loss_history,
        }

    def __repr__(self):
        fields = ', '.join(f"{k}={v!r}" for k, v in self.as_dict().items())
        return f"EngineConfig({fields})"


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in ('1', 'true', 'yes', 'on'):
        return True
    if value in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(f"not a boolean: {raw!r}")


# Global engine configuration
_engine_config = None


def get_config() -> EngineConfig:
    """
    Get or create the global engine configuration.

    Returns:
        EngineConfig instance
    """
    global _engine_config
    if _engine_config is None:
        _engine_config = EngineConfig.from_env()
        logger.debug("Engine configuration: %r", _engine_config)
    return _engine_config


def set_config(config: Optional[EngineConfig]) -> None:
    """Replace the global configuration (None resets it to the environment defaults)."""
    global _engine_config
    _engine_config = config
