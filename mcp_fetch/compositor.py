"""Packing article images into bounded groups and stacking each group."""

from __future__ import annotations

import io
import logging
from typing import List, Sequence

from PIL import Image

from .config import BatchLimits
from .models import CompositeImage, ContentImage, ImageGroup

logger = logging.getLogger("mcp_fetch")


def _would_overflow(group: ImageGroup, image: ContentImage, limits: BatchLimits) -> bool:
    return (
        group.count + 1 > limits.max_images_per_group
        or group.height + image.height > limits.max_group_height
        or group.byte_size + image.byte_size > limits.max_group_bytes
    )


def group_images(images: Sequence[ContentImage], limits: BatchLimits) -> List[ImageGroup]:
    """Greedily split ``images`` into ordered groups that respect ``limits``.

    Images are never reordered or dropped. The limits bound combinations only,
    so an image that exceeds a limit on its own still gets a group to itself.
    """
    groups: List[ImageGroup] = []
    current = ImageGroup()
    for image in images:
        if current.count and _would_overflow(current, image, limits):
            groups.append(current)
            current = ImageGroup()
        current.add(image)
    if current.count:
        groups.append(current)
    return groups


def _flatten(image: Image.Image) -> Image.Image:
    """Composite any transparency onto white and return an RGB image."""
    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, "white")
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image.convert("RGB")


def composite_group(group: ImageGroup) -> CompositeImage:
    """Stack the group's images top to bottom, left aligned, on white."""
    width = max(image.width for image in group.images)
    height = sum(image.height for image in group.images)
    canvas = Image.new("RGB", (width, height), "white")

    offset = 0
    for member in group.images:
        if member.data is None:
            raise ValueError(f"Image {member.source_url} has not been downloaded")
        with Image.open(io.BytesIO(member.data)) as source:
            canvas.paste(_flatten(source), (0, offset))
        offset += member.height

    buffer = io.BytesIO()
    canvas.save(buffer, format="PNG")
    return CompositeImage(
        data=buffer.getvalue(),
        width=width,
        height=height,
        image_count=group.count,
    )


def build_composites(images: Sequence[ContentImage], limits: BatchLimits) -> List[CompositeImage]:
    groups = group_images(images, limits)
    logger.debug(
        "Packed %d image(s) into %d group(s): %s",
        len(images),
        len(groups),
        [group.count for group in groups],
    )
    return [composite_group(group) for group in groups]
