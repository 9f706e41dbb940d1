"""Storyboard Engine - multi-agent storyboard and image generation pipeline."""

__version__ = "0.1.0"
