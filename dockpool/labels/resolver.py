"""
Image discovery in label expressions.

A job asks for a container image by mentioning a ``docker/<image>`` atom
anywhere in its label expression. Discovery is purely structural: every atom
is visited regardless of the operators around it, so ``!docker/foo`` still
yields ``docker/foo`` as a candidate. Whether a candidate is actually usable
is decided later by evaluating the full expression.
"""

from typing import List, Optional

from ..logging import get_logger
from .expression import Label, LabelAtom

IMAGE_LABEL_PREFIX = "docker/"

logger = get_logger(__name__)


def is_image_label(label: Label) -> bool:
    """True for atoms of the form ``docker/<non-empty image name>``."""
    if not isinstance(label, LabelAtom):
        return False
    name = label.name
    return name.startswith(IMAGE_LABEL_PREFIX) and len(name) > len(IMAGE_LABEL_PREFIX)


def image_label(image_name: str) -> LabelAtom:
    """The synthetic atom that stands for a preconfigured image."""
    return LabelAtom(IMAGE_LABEL_PREFIX + image_name)


def extract_image_name(atom: LabelAtom) -> str:
    return atom.name[len(IMAGE_LABEL_PREFIX):]


def list_potential_images(job_label: Optional[Label]) -> List[LabelAtom]:
    """Return every image atom in ``job_label``, in depth-first order."""
    return discover_potential_images(job_label, [])


def discover_potential_images(job_label: Optional[Label], results: List[LabelAtom]) -> List[LabelAtom]:
    if job_label is None:
        return results

    if isinstance(job_label, LabelAtom):
        if is_image_label(job_label):
            results.append(job_label)
        return results

    try:
        children = job_label.children()
    except Exception as e:
        logger.warning(
            "Error getting sub-labels of label expression",
            label_type=type(job_label).__name__,
            error=str(e),
        )
        return results

    for child in children:
        discover_potential_images(child, results)

    return results
