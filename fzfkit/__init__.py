"""Building blocks for a terminal fuzzy finder: field tokenizer, utilities and a light ANSI renderer."""

__version__ = "0.1.0"