"""Object key naming for originals and their variants.

An original lives at ``<id>``; a variant at ``<id>_<height>``. Parentage is
encoded entirely in the key, so a prefix listing on ``<id>`` discovers an
original together with all of its variants.
"""

import uuid

VARIANT_SEPARATOR = "_"


def new_image_id() -> str:
    """Generate a fresh, never reused image id."""
    return str(uuid.uuid4())


def variant_key(image_id: str, height: int) -> str:
    """Key of the variant of ``image_id`` with the given pixel height."""
    return f"{image_id}{VARIANT_SEPARATOR}{height}"


def belongs_to(key: str, image_id: str) -> bool:
    """True if ``key`` is the original or a variant of ``image_id``."""
    return key == image_id or key.startswith(image_id + VARIANT_SEPARATOR)
