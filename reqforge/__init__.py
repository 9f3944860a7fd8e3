"""ReqForge: requirements document assembly and versioned patch editing."""

__version__ = "1.0.0"
