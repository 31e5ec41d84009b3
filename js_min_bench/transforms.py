"""Preprocessing applied to an input bundle before it is benchmarked."""
from __future__ import annotations

import logging
import pathlib
from typing import Callable, Mapping

from .metadata import JSFileMetadata
from .paths import DATA_DIR

logger = logging.getLogger(__name__)

TEN_MEGABYTES = 10 * 1000 * 1000


class UnknownTransformError(ValueError):
    pass


def repeat_until(source: str, threshold: int) -> str:
    """Concatenate ``source`` with itself until it is longer than ``threshold``."""
    if not source:
        raise ValueError("cannot repeat an empty bundle")
    data = source
    while len(data) < threshold:
        data += source
    return data


def gen_10x_angular(
    bundle_path: str,
    inputs: Mapping[str, JSFileMetadata],
    data_dir: pathlib.Path = DATA_DIR,
    threshold: int = TEN_MEGABYTES,
) -> pathlib.Path:
    ng_path = pathlib.Path(inputs["angularjs"].bundle_path)
    data = repeat_until(ng_path.read_text(encoding="utf-8"), threshold)
    out_path = data_dir / bundle_path
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(data, encoding="utf-8")
    logger.info("Wrote %s (%d chars)", out_path, len(data))
    return out_path


TRANSFORMS: dict[str, Callable[..., pathlib.Path]] = {
    "angularjs 10x": gen_10x_angular,
}


def apply_transform(
    name: str,
    bundle_path: str,
    inputs: Mapping[str, JSFileMetadata],
    data_dir: pathlib.Path = DATA_DIR,
) -> pathlib.Path:
    try:
        transform = TRANSFORMS[name]
    except KeyError:
        raise UnknownTransformError(f"unknown transform {name}") from None
    return transform(bundle_path, inputs, data_dir=data_dir)
