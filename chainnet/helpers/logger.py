# helpers/logger.py
import numpy as np
import csv, json, datetime, pathlib
import matplotlib.pyplot as plt
import matplotlib.cm as colormap


class RunLogger:
    """
    Files produced by one training run, under <root>/<tag>_<timestamp>/:
    history.csv / history.json, checkpoint_last.npz, plots, metrics summary.
    """

    def __init__(self, root="runs", tag="run"):
        ts = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
        self.root = pathlib.Path(root)
        self.dir = self.root / f"{tag}_{ts}"
        self.dir.mkdir(parents=True, exist_ok=True)
        self.csv_path = self.dir / "history.csv"
        self.json_path = self.dir / "history.json"
        self.last_ckpt = self.dir / "checkpoint_last.npz"
        self.metrics = []  # list of dicts, one per logged interval
        self._csv_header_written = False

    # ---------- logging ----------
    def log_step(self, step, **kwargs):
        row = {"step": int(step), **{k: float(v) for k, v in kwargs.items()}}
        self.metrics.append(row)
        with open(self.csv_path, "a", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=list(row.keys()))
            if not self._csv_header_written:
                writer.writeheader()
                self._csv_header_written = True
            writer.writerow(row)

    def save_json(self):
        with open(self.json_path, "w") as f:
            json.dump(self.metrics, f, indent=2)

    def save_checkpoint(self, npz_dict):
        np.savez(self.last_ckpt, **npz_dict)
        return str(self.last_ckpt)

    # ---------- plotting ----------
    def _plots_dir(self, subdir):
        out = self.dir / subdir
        out.mkdir(parents=True, exist_ok=True)
        return out

    def plot_error(self, history, tag="run", subdir="plots"):
        """
        Saves the training error curve as error_curve_<tag>.png.
        history: {'step': [...], 'error': [...]}
        """
        steps = history.get("step", [])
        error = history.get("error", [])
        outdir = self._plots_dir(subdir)
        plt.figure()
        if len(error) > 0:
            plt.plot(steps, error, label="train error")
            plt.legend()
        plt.xlabel("Samples")
        plt.ylabel("Mean Squared Error")
        plt.title(f"Error vs Samples ({tag})")
        plt.tight_layout()
        path = outdir / f"error_curve_{tag}.png"
        plt.savefig(path, dpi=160)
        plt.close()
        return str(path)

    def plot_confusion_matrix(self, cm, tag="run", subdir="plots", class_names=None):
        """
        Saves confusion matrix heatmap as confusion_matrix_<tag>.png
        cm: (num_classes, num_classes) integer matrix
        """
        outdir = self._plots_dir(subdir)
        plt.figure(figsize=(8, 6))
        plt.imshow(cm, interpolation="nearest", cmap=colormap.Blues)
        plt.title(f"Confusion Matrix ({tag})")
        plt.colorbar()
        ticks = np.arange(cm.shape[0])
        if class_names is None:
            class_names = ticks
        plt.xticks(ticks, class_names, rotation=0)
        plt.yticks(ticks, class_names)

        thresh = cm.max() / 2.0 if cm.size > 0 else 0
        for i, j in np.ndindex(cm.shape):
            plt.text(
                j, i, format(cm[i, j], "d"),
                horizontalalignment="center",
                color="white" if cm[i, j] > thresh else "black",
            )

        plt.ylabel("True label")
        plt.xlabel("Predicted label")
        plt.tight_layout()
        path = outdir / f"confusion_matrix_{tag}.png"
        plt.savefig(path, dpi=160)
        plt.close()
        return str(path)

    # ---------- metrics calculation ----------
    def calculate_metrics_from_confusion_matrix(self, cm, eps=1e-12):
        """
        Macro precision / recall / F1 and accuracy.
        cm[i, j] counts samples of true label i predicted as j.
        """
        cm = np.asarray(cm)
        tp = np.diag(cm).astype(np.float64)
        fp = np.sum(cm, axis=0) - tp   # predicted as i, actually another class
        fn = np.sum(cm, axis=1) - tp   # actually i, predicted as another class

        precision = tp / (tp + fp + eps)
        recall = tp / (tp + fn + eps)
        f1 = 2 * precision * recall / (precision + recall + eps)
        total = np.sum(cm)

        return {
            "macro_precision": float(np.mean(precision)),
            "macro_recall": float(np.mean(recall)),
            "macro_f1": float(np.mean(f1)),
            "accuracy": float(np.trace(cm) / total) if total > 0 else 0.0,
            "precision_per_class": precision.tolist(),
            "recall_per_class": recall.tolist(),
            "f1_per_class": f1.tolist(),
        }

    def save_metrics_summary(self, metrics, cm=None, tag="run", filename="metrics_summary.json"):
        summary = {
            "experiment_tag": tag,
            "timestamp": datetime.datetime.now().isoformat(),
            "overall_metrics": {
                "accuracy": metrics.get("accuracy", 0.0),
                "macro_precision": metrics.get("macro_precision", 0.0),
                "macro_recall": metrics.get("macro_recall", 0.0),
                "macro_f1": metrics.get("macro_f1", 0.0),
            },
            "per_class_metrics": {
                "precision": metrics.get("precision_per_class", []),
                "recall": metrics.get("recall_per_class", []),
                "f1": metrics.get("f1_per_class", []),
            },
        }
        if cm is not None:
            summary["confusion_matrix"] = np.asarray(cm).tolist()

        output_path = self.dir / filename
        with open(output_path, "w") as f:
            json.dump(summary, f, indent=2)
        return str(output_path)
