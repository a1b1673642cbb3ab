"""Publish local Markdown articles to Qiita and keep a path-to-item mapping."""

__version__ = "0.3.0"
