"""
Label expressions for Dockpool

Parsing, evaluation and image discovery for the boolean label expressions
jobs use to say where they may run.
"""

from .expression import And, Iff, Implies, Label, LabelAtom, Not, Or, Paren
from .parser import parse_label, parse_label_set
from .resolver import IMAGE_LABEL_PREFIX, extract_image_name, image_label, list_potential_images

__all__ = [
    "Label",
    "LabelAtom",
    "And",
    "Or",
    "Not",
    "Implies",
    "Iff",
    "Paren",
    "parse_label",
    "parse_label_set",
    "IMAGE_LABEL_PREFIX",
    "image_label",
    "extract_image_name",
    "list_potential_images",
]
