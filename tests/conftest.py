import logging

import pytest

from feedforward import Activation, Model, set_config

AND_DATASET = [
    ([0.0, 0.0], [0.0]),
    ([0.0, 1.0], [0.0]),
    ([1.0, 0.0], [0.0]),
    ([1.0, 1.0], [1.0]),
]


@pytest.fixture(autouse=True)
def quiet_logging():
    """Set up logging for tests."""
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("feedforward").setLevel(logging.WARNING)

    yield

    logging.getLogger("feedforward").setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def reset_config(monkeypatch):
    """Every test starts from default configuration, ignoring the environment."""
    for name in ('INIT_SCALE', 'DEFAULT_LEARNING_RATE', 'CHECK_FINITE', 'LOG_EVERY', 'LOSS_HISTORY'):
        monkeypatch.delenv(f"FEEDFORWARD_{name}", raising=False)
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def and_dataset():
    return [(list(x), list(y)) for x, y in AND_DATASET]


@pytest.fixture
def small_model():
    """A randomized 3-4-2 tanh/sigmoid model."""
    model = Model([3, 4, 2], [Activation.TANH, Activation.SIGMOID])
    model.randomize_all(7)
    return model
