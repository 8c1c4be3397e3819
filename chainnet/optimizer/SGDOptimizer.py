class SGDOptimizer:
    def __init__(self, params, lr=1e-2):
        self.params = params  # list of [p, acc]
        self.lr = lr

    def step(self):
        # accumulators are sums over the examples since the last step
        for p, g in self.params:
            p -= self.lr * g
        self.zero_grad()

    def zero_grad(self):
        for _, g in self.params:
            g[...] = 0.0
