# MNIST_chain_predictions.py
"""Train and test a conv/fully-connected layer chain on the MNIST IDX files.

Usage:
    python MNIST_chain_predictions.py \
        data/train-images-idx3-ubyte data/train-labels-idx1-ubyte \
        data/t10k-images-idx3-ubyte data/t10k-labels-idx1-ubyte
"""
import argparse
import logging
import os
import csv

import numpy as np

from chainnet import Network, Trainer, IdxFile


# ------------------ Helpers ------------------
def build_network(seed=0, std=0.1):
    net = Network(seed=seed)
    # Input layer - 1x28x28.
    linput = net.add_input(1, 28, 28)
    # Conv1 layer - 16x14x14, 3x3 conv, padding=1, stride=2. (14-1)*2+3 <= 28+1*2
    lconv1 = net.add_conv(linput, 16, 14, 14, kernel_size=3, padding=1, stride=2, std=std)
    # Conv2 layer - 32x7x7, 3x3 conv, padding=1, stride=2. (7-1)*2+3 <= 14+1*2
    lconv2 = net.add_conv(lconv1, 32, 7, 7, kernel_size=3, padding=1, stride=2, std=std)
    lfull1 = net.add_full(lconv2, 200, std=std)
    lfull2 = net.add_full(lfull1, 200, std=std)
    # Output layer - 10 nodes (softmax).
    net.add_full(lfull2, 10, std=std)
    return net


def load_pair(images_path, labels_path, limit=None):
    images = IdxFile.load(images_path)
    labels = IdxFile.load(labels_path)
    if images.ndims != 3 or labels.ndims != 1:
        raise ValueError(
            f"expected 3-D images and 1-D labels, got {images.dims} and {labels.dims}"
        )
    if len(images) != len(labels):
        raise ValueError(f"{len(images)} images but {len(labels)} labels")
    n = len(images) if limit is None else min(limit, len(images))
    x = np.stack([images.get3(i) for i in range(n)]) if n else images.data[:0]
    y = np.array([labels.get1(i) for i in range(n)], dtype=np.int64)
    return x, y


def _save_matrix_csv(csv_path, mat):
    os.makedirs(os.path.dirname(csv_path), exist_ok=True)
    with open(csv_path, "w", newline="") as f:
        w = csv.writer(f)
        for r in mat:
            w.writerow(list(r))


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("train_images")
    parser.add_argument("train_labels")
    parser.add_argument("test_images")
    parser.add_argument("test_labels")
    parser.add_argument("--epochs", type=int, default=10)
    parser.add_argument("--lr", type=float, default=0.1)
    parser.add_argument("--batch-size", type=int, default=32)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--log-interval", type=int, default=1000)
    parser.add_argument("--limit", type=int, default=None,
                        help="use only the first N samples of each set")
    parser.add_argument("--runs-root", default="runs")
    parser.add_argument("--tag", default=None)
    return parser.parse_args(argv)


# ------------------ Main ------------------
def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s"
    )

    x_train, y_train = load_pair(args.train_images, args.train_labels, args.limit)
    x_test, y_test = load_pair(args.test_images, args.test_labels, args.limit)

    tag = args.tag or f"MNIST_chain_epochs_{args.epochs}_lr_{args.lr}_bs_{args.batch_size}"
    print(f"Training layer chain ({tag})")

    net = build_network(seed=args.seed)
    trainer = Trainer(
        net,
        epochs=args.epochs,
        lr=args.lr,
        batch_size=args.batch_size,
        seed=args.seed,
        log_interval=args.log_interval,
    )
    history = trainer.fit(x_train, y_train, tag=tag, runs_root=args.runs_root)

    test_acc, cm = trainer.evaluate(x_test, y_test)

    run_logger = trainer.run_logger
    metrics = run_logger.calculate_metrics_from_confusion_matrix(cm)
    run_logger.save_metrics_summary(metrics, cm=cm, tag=tag)
    _save_matrix_csv(os.path.join(run_logger.dir, "confusion_matrix.csv"), cm)
    run_logger.plot_error(history, tag=tag)
    run_logger.plot_confusion_matrix(cm, tag=tag)

    print(f"\nMacro Metrics:")
    print(f"Macro Precision: {metrics['macro_precision']:.4f}")
    print(f"Macro Recall: {metrics['macro_recall']:.4f}")
    print(f"Macro F1-Score: {metrics['macro_f1']:.4f}")

    print("\n===== Layer chain results =====")
    print(f"ntests={len(y_test)}, ncorrect={int(np.trace(cm))}")
    print("Test acc:", float(test_acc))
    print("Confusion matrix:\n", cm)
    print(f"Run files written to {run_logger.dir}")
    return test_acc


if __name__ == "__main__":
    main()
