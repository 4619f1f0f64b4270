"""InstantCoder: prompt-to-text dispatch across LLM vendors."""

__version__ = "0.1.0"
