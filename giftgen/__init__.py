"""Birthday gift recommendations from AI providers with an offline fallback."""

__version__ = "0.1.0"
