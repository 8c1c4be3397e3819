import logging
import time

import numpy as np

from .helpers.logger import RunLogger
from .helpers.random_init import make_rng

logger = logging.getLogger(__name__)


def one_hot(label, num_classes):
    y = np.zeros(num_classes, dtype=np.float64)
    y[label] = 1.0
    return y


class Trainer:
    """
    Per-sample SGD driver for a Network whose output layer is a softmax.

    Samples are drawn at random (with replacement) from the training set;
    accumulated gradients are applied every ``batch_size`` samples with
    rate ``lr / batch_size``, so the step uses the minibatch mean gradient.
    """

    def __init__(
        self,
        network,
        input_id=None,
        output_id=None,
        epochs=10,
        lr=0.1,
        batch_size=32,
        seed=0,
        log_interval=1000,
        verbose=1,
    ):
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if log_interval <= 0:
            raise ValueError(f"log_interval must be positive, got {log_interval}")
        self.network = network
        self.input_id = network.input_id if input_id is None else input_id
        self.output_id = network.output_id if output_id is None else output_id
        self.epochs = epochs
        self.lr = lr
        self.batch_size = batch_size
        self.seed = seed
        self.log_interval = log_interval
        self.verbose = verbose
        self.rng = make_rng(seed)
        self.run_logger = None

    @property
    def num_classes(self):
        return self.network[self.output_id].nnodes

    def _inputs(self, image):
        # raw bytes -> [0, 1]
        return np.asarray(image, dtype=np.float64).ravel() / 255.0

    def _label(self, label, num_classes=None):
        if num_classes is None:
            num_classes = self.num_classes
        label = int(label)
        if not 0 <= label < num_classes:
            raise ValueError(
                f"label {label} out of range for {num_classes} classes"
            )
        return label

    def fit(self, images, labels, tag="run", runs_root="runs"):
        n = len(images)
        if n == 0:
            raise ValueError("empty training set")
        if len(labels) != n:
            raise ValueError(f"{n} images but {len(labels)} labels")

        net = self.network
        run_logger = RunLogger(root=runs_root, tag=tag)
        history = {"step": [], "error": []}

        if self.verbose > 0:
            logger.info(
                "training... (%d samples x %d epochs, lr=%g, batch_size=%d)",
                n, self.epochs, self.lr, self.batch_size,
            )
        t0 = time.time()
        etotal = 0.0
        pending = 0
        for i in range(self.epochs * n):
            # pick a random sample from the training data
            index = int(self.rng.integers(n))
            net.set_inputs(self.input_id, self._inputs(images[index]))
            target = one_hot(self._label(labels[index]), self.num_classes)
            net.learn_outputs(self.output_id, target)
            etotal += net.get_error_total(self.output_id)

            pending += 1
            if pending == self.batch_size:
                # minibatch: update the network every batch_size samples
                net.update(self.output_id, self.lr / self.batch_size)
                pending = 0

            if (i + 1) % self.log_interval == 0:
                error = etotal / self.log_interval
                history["step"].append(i + 1)
                history["error"].append(error)
                run_logger.log_step(i + 1, error=error)
                if self.verbose > 0:
                    logger.info("i=%d, error=%.4f", i + 1, error)
                etotal = 0.0

        if pending:
            net.update(self.output_id, self.lr / self.batch_size)

        run_logger.save_checkpoint(net._pack_npz_state())
        run_logger.save_json()
        self.run_logger = run_logger
        if self.verbose > 0:
            logger.info("training finished in %.1fs", time.time() - t0)
        return history

    def predict(self, image):
        # pick the most probable label
        self.network.set_inputs(self.input_id, self._inputs(image))
        return int(np.argmax(self.network.get_outputs(self.output_id)))

    def evaluate(self, images, labels, num_classes=None):
        if num_classes is None:
            num_classes = self.num_classes
        n = len(images)
        if len(labels) != n:
            raise ValueError(f"{n} images but {len(labels)} labels")

        if self.verbose > 0:
            logger.info("testing... (%d samples)", n)
        cm = np.zeros((num_classes, num_classes), dtype=np.int64)
        for i in range(n):
            cm[self._label(labels[i], num_classes), self.predict(images[i])] += 1
        ncorrect = int(np.trace(cm))
        accuracy = ncorrect / n if n > 0 else 0.0
        if self.verbose > 0:
            logger.info("ntests=%d, ncorrect=%d", n, ncorrect)
        return accuracy, cm
