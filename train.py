import logging

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from feedforward import Activation, Model, setup_logging

logger = logging.getLogger("feedforward.train")

AND_DATASET = [
    ([0.0, 0.0], [0.0]),
    ([0.0, 1.0], [0.0]),
    ([1.0, 0.0], [0.0]),
    ([1.0, 1.0], [1.0]),
]

XOR_DATASET = [
    ([0.0, 0.0], [0.0]),
    ([0.0, 1.0], [1.0]),
    ([1.0, 0.0], [1.0]),
    ([1.0, 1.0], [0.0]),
]


def train_logic_gate(name, dataset, widths, epochs=2000, learning_rate=0.5, seed=0):
    """
    Train a sigmoid network on a two-input logic gate.

    Args:
        name: Label used in logs
        dataset: (input, expected) pairs
        widths: Layer widths, input first
        epochs: Training epochs
        learning_rate: Step size
        seed: Seed for weight initialization

    Returns:
        (model, per-epoch loss history)
    """
    model = Model(widths, Activation.SIGMOID)
    model.randomize_all(seed)

    initial_loss = model.evaluate(dataset)
    logger.info("%s: training %r for %d epochs (initial loss %.4f)", name, model, epochs, initial_loss)

    history = model.train(dataset, epochs, learning_rate)
    logger.info("%s: final loss %.6f", name, history[-1])

    print(f"\n{name} truth table")
    print("-" * 30)
    for x, expected in dataset:
        prediction = model.predict(x)[0]
        print(f"  {x} -> {prediction:.4f} (expected {expected[0]:.0f})")

    model.print_network_summary()
    return model, history


def visualize_training(histories, output_path='training_results.png'):
    """Plot per-epoch loss for each trained task."""
    fig, axes = plt.subplots(1, len(histories), figsize=(7 * len(histories), 5))
    axes = np.atleast_1d(axes)

    for ax, (name, history) in zip(axes, histories.items()):
        ax.plot(history, 'b-', linewidth=2)
        ax.set_xlabel('Epoch')
        ax.set_ylabel('Mean Squared Error')
        ax.set_yscale('log')
        ax.set_title(f'{name} Loss')
        ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    logger.info("Visualization saved as '%s'", output_path)


if __name__ == "__main__":
    setup_logging(logging.INFO)

    print("\n" + "=" * 60)
    print("FEED-FORWARD NEURAL NETWORK - TRAINING DEMO")
    print("=" * 60)

    _, and_history = train_logic_gate("AND", AND_DATASET, [2, 2, 1])
    _, xor_history = train_logic_gate("XOR", XOR_DATASET, [2, 4, 1], epochs=5000)

    visualize_training({'AND': and_history, 'XOR': xor_history})
