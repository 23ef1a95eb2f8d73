"""Bundled example models."""

from .template_generator import ExampleModelGenerator, EXAMPLES

__all__ = ["ExampleModelGenerator", "EXAMPLES"]
