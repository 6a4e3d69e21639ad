"""Schema-validated document templates and a file-backed, versioned template registry."""

__version__ = "0.1.0"