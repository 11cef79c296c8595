"""
Small dense feed-forward network implemented with numpy.

Used as the numeric core of the forecasting models: He-initialized layers,
ReLU or linear activations, MSE loss and an Adam optimizer.
"""

import threading
from dataclasses import dataclass

import numpy as np
import structlog

logger = structlog.get_logger(__name__)

ACTIVATIONS = ("relu", "linear")


@dataclass
class _AdamState:
    learning_rate: float
    beta1: float = 0.9
    beta2: float = 0.999
    epsilon: float = 1e-7
    step: int = 0


class DenseNetwork:
    """Sequential stack of fully connected layers"""

    def __init__(
        self,
        input_dim: int,
        layers: list[tuple[int, str]],
        seed: int | None = None,
    ):
        """Build the network

        Args:
            input_dim: Number of input features
            layers: (units, activation) per layer, last one is the output
            seed: Random seed for weight initialization
        """
        for _, activation in layers:
            if activation not in ACTIVATIONS:
                raise ValueError(f"Unsupported activation '{activation}'")

        self.input_dim = input_dim
        self.layers = list(layers)
        rng = np.random.default_rng(seed)

        self.weights: list[np.ndarray] = []
        self.biases: list[np.ndarray] = []
        fan_in = input_dim
        for units, _ in self.layers:
            scale = np.sqrt(2.0 / fan_in)
            self.weights.append((rng.standard_normal((fan_in, units)) * scale).astype(np.float32))
            self.biases.append(np.zeros(units, dtype=np.float32))
            fan_in = units

        self._optimizer: _AdamState | None = None
        self._moments: list[tuple[np.ndarray, np.ndarray]] = []

    # ========================================
    # Topology and weights
    # ========================================

    @property
    def topology(self) -> dict:
        return {
            "input_dim": self.input_dim,
            "layers": [{"units": units, "activation": act} for units, act in self.layers],
        }

    @classmethod
    def from_topology(cls, topology: dict) -> "DenseNetwork":
        layers = [(layer["units"], layer["activation"]) for layer in topology["layers"]]
        return cls(input_dim=topology["input_dim"], layers=layers)

    def get_weights(self) -> list[np.ndarray]:
        """Weights and biases interleaved: [W0, b0, W1, b1, ...]"""
        result = []
        for w, b in zip(self.weights, self.biases, strict=True):
            result.extend([w.copy(), b.copy()])
        return result

    def set_weights(self, weights: list[np.ndarray]) -> None:
        if len(weights) != 2 * len(self.layers):
            raise ValueError(
                f"Expected {2 * len(self.layers)} weight arrays, got {len(weights)}"
            )

        for i in range(len(self.layers)):
            w = np.asarray(weights[2 * i], dtype=np.float32)
            b = np.asarray(weights[2 * i + 1], dtype=np.float32)
            if w.shape != self.weights[i].shape or b.shape != self.biases[i].shape:
                raise ValueError(f"Shape mismatch for layer {i}")
            self.weights[i] = w.copy()
            self.biases[i] = b.copy()

    # ========================================
    # Training
    # ========================================

    def compile(self, learning_rate: float) -> None:
        self._optimizer = _AdamState(learning_rate=learning_rate)
        self._moments = [
            (np.zeros_like(p), np.zeros_like(p)) for p in self._parameters()
        ]

    @property
    def is_compiled(self) -> bool:
        return self._optimizer is not None

    def predict(self, x: np.ndarray) -> np.ndarray:
        activations, _ = self._forward(np.atleast_2d(np.asarray(x, dtype=np.float32)))
        return activations[-1]

    def fit(
        self,
        x: np.ndarray,
        y: np.ndarray,
        epochs: int,
        batch_size: int,
        seed: int | None = None,
        stop: threading.Event | None = None,
    ) -> list[float]:
        """Train with mini-batch Adam on mean squared error

        Args:
            stop: When set, training ends at the next epoch boundary

        Returns:
            Loss on the full training set after each completed epoch
        """
        if self._optimizer is None:
            raise RuntimeError("Network must be compiled before training")

        x = np.atleast_2d(np.asarray(x, dtype=np.float32))
        y = np.asarray(y, dtype=np.float32).reshape(len(x), -1)
        rng = np.random.default_rng(seed)
        history = []

        for _ in range(epochs):
            if stop is not None and stop.is_set():
                logger.debug("Network training stopped early", completed_epochs=len(history))
                break

            order = rng.permutation(len(x))
            for start in range(0, len(x), batch_size):
                batch = order[start : start + batch_size]
                self._train_step(x[batch], y[batch])

            loss = float(np.mean((self.predict(x) - y) ** 2))
            history.append(loss)

        logger.debug(
            "Network trained",
            epochs=len(history),
            samples=len(x),
            final_loss=history[-1] if history else None,
        )
        return history

    def dispose(self) -> None:
        self.weights = []
        self.biases = []
        self._optimizer = None
        self._moments = []

    # ========================================
    # Internals
    # ========================================

    def _parameters(self) -> list[np.ndarray]:
        params = []
        for w, b in zip(self.weights, self.biases, strict=True):
            params.extend([w, b])
        return params

    def _forward(self, x: np.ndarray) -> tuple[list[np.ndarray], list[np.ndarray]]:
        activations = [x]
        pre_activations = []
        for w, b, (_, activation) in zip(self.weights, self.biases, self.layers, strict=True):
            z = activations[-1] @ w + b
            pre_activations.append(z)
            activations.append(np.maximum(z, 0) if activation == "relu" else z)
        return activations, pre_activations

    def _train_step(self, x: np.ndarray, y: np.ndarray) -> None:
        activations, pre_activations = self._forward(x)
        delta = 2.0 * (activations[-1] - y) / len(x)

        grads: list[np.ndarray] = []
        for i in reversed(range(len(self.layers))):
            if self.layers[i][1] == "relu":
                delta = delta * (pre_activations[i] > 0)
            grad_w = activations[i].T @ delta
            grad_b = delta.sum(axis=0)
            grads = [grad_w, grad_b, *grads]
            if i > 0:
                delta = delta @ self.weights[i].T

        self._apply_adam(grads)

    def _apply_adam(self, grads: list[np.ndarray]) -> None:
        opt = self._optimizer
        opt.step += 1
        correction1 = 1 - opt.beta1**opt.step
        correction2 = 1 - opt.beta2**opt.step

        params = self._parameters()
        for idx, (param, grad) in enumerate(zip(params, grads, strict=True)):
            m, v = self._moments[idx]
            m[...] = opt.beta1 * m + (1 - opt.beta1) * grad
            v[...] = opt.beta2 * v + (1 - opt.beta2) * grad**2
            m_hat = m / correction1
            v_hat = v / correction2
            param -= (opt.learning_rate * m_hat / (np.sqrt(v_hat) + opt.epsilon)).astype(
                param.dtype
            )
