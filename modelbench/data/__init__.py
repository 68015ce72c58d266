"""Data management utilities.

This subpackage handles data operations:
- Loading the training pool and fixed test set
- Downsampling full-resolution images
- Base preprocessing
"""

from .loading import (
    CLASS_NAMES,
    FashionData,
    load_dataset,
    downsample_images,
    prepare_downsampled_csv,
    fetch_fashion_mnist
)
from .preprocessing import create_base_preprocessor, get_preprocessor_info

__all__ = [
    # Loading
    'CLASS_NAMES',
    'FashionData',
    'load_dataset',
    'downsample_images',
    'prepare_downsampled_csv',
    'fetch_fashion_mnist',
    # Preprocessing
    'create_base_preprocessor',
    'get_preprocessor_info'
]
