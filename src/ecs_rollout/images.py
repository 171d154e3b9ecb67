"""
Container image version parsing and substitution.

An image version is a ``<image path>:<tag>`` string supplied on the command
line. Applying a list of them to a task definition's container definitions
overwrites the ``image`` of every container whose current image matches the
path.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from ecs_rollout.aws.errors import InputValidationError

logger = logging.getLogger(__name__)

MALFORMED_IMAGE_VERSION = "exit: value of -v has to be like <image path>:<image version>"


@dataclass(frozen=True)
class ImageVersion:
    """A parsed ``path:tag`` entry."""
    path: str
    tag: str

    def __str__(self) -> str:
        return f"{self.path}:{self.tag}"

    @classmethod
    def parse(cls, value: str) -> "ImageVersion":
        parts = value.split(":")
        if len(parts) != 2 or not all(parts):
            raise InputValidationError(MALFORMED_IMAGE_VERSION)
        return cls(path=parts[0], tag=parts[1])


@dataclass(frozen=True)
class ImageChange:
    """One container image rewrite."""
    container_name: str
    old_image: str
    new_image: str


def parse_image_versions(value: str) -> List[ImageVersion]:
    """Parse a comma-separated list of image versions.

    The whole list is rejected if any entry is malformed.
    """
    return [ImageVersion.parse(entry) for entry in value.split(",")]


def image_repository(image: str) -> str:
    """Strip the tag or digest from an image reference.

    ``registry:5000/team/app:1.2`` -> ``registry:5000/team/app``
    """
    if "@" in image:
        return image.split("@", 1)[0]
    name, sep, tag = image.rpartition(":")
    # A colon before the last slash belongs to a registry port
    if sep and "/" not in tag:
        return name
    return image


def image_matches(image: str, path: str, match_mode: str = "substring") -> bool:
    """Whether a container image should be replaced for ``path``.

    ``substring`` matches any image containing ``path``, so ``repo/a`` also
    matches ``repo/ab``. ``exact`` compares the image's repository.
    """
    if match_mode == "exact":
        return image_repository(image) == path
    return path in image


def apply_image_versions(container_definitions: List[Dict[str, Any]],
                         image_versions: List[ImageVersion],
                         match_mode: str = "substring") -> List[ImageChange]:
    """Rewrite matching container images in place.

    Entries are applied in input order and, for each entry, containers in
    definition order; a container matched by several entries ends with the
    last one.
    """
    changes = []
    for version in image_versions:
        matched = False
        for container in container_definitions:
            current = container.get("image", "")
            if image_matches(current, version.path, match_mode):
                new_image = str(version)
                container["image"] = new_image
                changes.append(ImageChange(container.get("name", ""), current, new_image))
                matched = True
        if not matched:
            logger.debug(f"No container image matches {version.path}")
    return changes
