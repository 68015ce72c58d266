"""Fashion-MNIST Classifier Benchmark.

Trains ten scikit-learn classifiers on random subsamples of Fashion-MNIST
(downsampled to 7x7 pixels) and ranks them with a weighted score over:
- Fraction of the training rows used
- Runtime as a fraction of an hour
- Test-set misclassification rate

Results are tracked in SQLite and rendered as Markdown and HTML reports.
"""

__version__ = "1.0.0"

from modelbench.config import BenchmarkConfig

__all__ = ['BenchmarkConfig']
