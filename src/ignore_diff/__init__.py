"""ignore-diff: drop declared fields from Kubernetes resources before diffing."""

__version__ = "0.1.0"
