import numpy as np

from chainnet import Network


def generate_xor_data(n):
    X = np.array([list(map(int, format(i, f'0{n}b'))) for i in range(2**n)], dtype=np.float64)
    Y = np.sum(X, axis=1).astype(int) % 2  # odd parity = 1
    return X, Y


def build(n_input, n_hidden, seed=0):
    net = Network(seed=seed)
    linput = net.add_input(n_input, 1, 1)
    lhidden = net.add_full(linput, n_hidden, std=1.0)
    net.add_full(lhidden, 2, std=1.0)  # softmax over {even, odd}
    return net


def test(n, n_hidden, lr, epochs, seed=0):
    X, Y = generate_xor_data(n)
    net = build(n, n_hidden, seed=seed)
    out = net.output_id

    for epoch in range(epochs):
        etotal = 0.0
        for x, label in zip(X, Y):
            net.set_inputs(net.input_id, x)
            net.learn_outputs(out, np.eye(2)[label])
            etotal += net.get_error_total(out)
            net.update(out, lr)
        if epoch % max(1, epochs // 10) == 0:
            print(f"Epoch {epoch}, Error: {etotal / len(X):.4f}")

    preds = []
    for x in X:
        net.set_inputs(net.input_id, x)
        preds.append(int(np.argmax(net.get_outputs(out))))
    preds = np.array(preds)

    print(f"Predicting XOR for {n} inputs:")
    print(f"XOR-{n} Predictions:", preds)
    print(f"Accuracy: {np.mean(preds == Y) * 100:.2f}%")
    return preds


if __name__ == "__main__":
    test(n=2, n_hidden=4, lr=0.1, epochs=2_000)
    test(n=3, n_hidden=8, lr=0.1, epochs=2_000)
    test(n=4, n_hidden=16, lr=0.05, epochs=2_000)
