import numpy as np


class SquaredErrorLoss:
    """
    Error signal seeded into the output layer by learn_outputs.

    errors = outputs - targets is the derivative of 0.5 * sum(errors**2).
    Combined with the softmax layer's unit gradients it is also the fused
    softmax + cross-entropy gradient.
    """

    def backward(self, outputs, targets):
        outputs = np.asarray(outputs, dtype=np.float64)
        targets = np.asarray(targets, dtype=np.float64)
        if outputs.shape != targets.shape:
            raise ValueError(
                f"targets shape {targets.shape} does not match outputs shape {outputs.shape}"
            )
        return outputs - targets

    def total(self, errors):
        # mean squared error over the node errors
        errors = np.asarray(errors)
        if errors.size == 0:
            return 0.0
        return float(np.mean(errors * errors))
