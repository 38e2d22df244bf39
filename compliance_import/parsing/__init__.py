"""CSV text handling: tokenizer and template generation."""

from .template import template_csv, template_filename
from .tokenizer import BOM, split_logical_lines, tokenize

__all__ = [
    "BOM",
    "tokenize",
    "split_logical_lines",
    "template_csv",
    "template_filename",
]
