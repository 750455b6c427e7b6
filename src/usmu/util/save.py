# -*- coding: utf-8 -*-
"""Output of recorded IV curves.

Samples are written as a two column CSV table (`voltage,current`, in volts
and amperes), one row per sample, to a file or to stdout. Values use the
same shortest round-trip formatting as the wire protocol so nothing is lost
between the device and the file.

A JSON side-car next to the CSV file keeps the sweep settings and the
identity of the device that produced it.
"""

from __future__ import annotations

import io
import os
import sys
import typing
from datetime import datetime

import numpy as np
import simplejson as json
from loguru import logger

from usmu._version import __version__
from usmu.protocol.codec import format_float

if typing.TYPE_CHECKING:
    from usmu.types import Sample, SweepConfig

CSV_HEADER = ("voltage", "current")


def _iv_table(samples: typing.Sequence[Sample]) -> np.ndarray:
    """(n, 2) array of round-trip formatted volts and amperes."""
    rows = [
        (format_float(s.voltage.to("V")), format_float(s.current.to("A")))
        for s in samples
    ]
    return np.array(rows, dtype=str).reshape(-1, len(CSV_HEADER))


def write_iv_csv(fh: typing.TextIO, samples: typing.Sequence[Sample]) -> None:
    np.savetxt(
        fh,
        _iv_table(samples),
        fmt="%s",
        delimiter=",",
        header=",".join(CSV_HEADER),
        comments="",
    )


def format_iv_csv(samples: typing.Sequence[Sample]) -> str:
    buf = io.StringIO()
    write_iv_csv(buf, samples)
    return buf.getvalue()


def save_iv_csv(
    samples: typing.Sequence[Sample], path: typing.Optional[str] = None
) -> typing.Optional[str]:
    """Write samples as CSV to `path`, or to stdout if no path is given.

    Returns the absolute path written to, or None for stdout.
    """
    if path is None or path == "-":
        write_iv_csv(sys.stdout, samples)
        sys.stdout.flush()
        return None

    path = os.path.abspath(path)
    with open(path, "w", newline="") as f:
        write_iv_csv(f, samples)
    logger.info("Saved {} samples to {}", len(samples), path)
    return path


def metadata_path(csv_path: str) -> str:
    return os.path.splitext(csv_path)[0] + ".json"


def save_iv_metadata(
    csv_path: str,
    config: SweepConfig,
    identity: typing.Optional[int | str] = None,
    port: typing.Optional[str] = None,
) -> str:
    """Write the sweep settings next to a saved CSV file."""
    path = metadata_path(csv_path)
    metadata = {
        "usmu_version": __version__,
        "timestamp": datetime.now().isoformat(timespec="seconds"),
        "device": {"port": port, "identity": identity},
        "sweep": config.to_dict(),
        "data_file": os.path.basename(csv_path),
    }
    with open(path, "w") as f:
        json.dump(metadata, f, indent=4)
    logger.debug("Saved metadata to {}", path)
    return path
