"""MFL: a small functional language with Hindley-Milner type inference."""

__version__ = "0.1.0"
