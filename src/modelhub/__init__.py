"""modelhub: catalog of datasets, models, prompts, GPU instances and training logs."""

__version__ = "0.1.0"
