__all__ = [
    "logging",
]
