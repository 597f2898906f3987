"""Service layer: the repository facade and analytics built on it."""
