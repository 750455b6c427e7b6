"""Finding and selecting attached uSMUs.

A uSMU shows up as a USB serial port with vendor id 1155 and product id
22336. Several can be attached at once; they are told apart either by port
path or by the identity number the device reports for `*IDN?`.

Selection rules (`select_candidate`):

- no candidate: `DeviceNotFoundError`
- exactly one candidate: selected, whatever the selectors say
- several candidates and no selector: `AmbiguousDeviceError` listing all of
  them with their identities
- otherwise filter by exact port path and/or exact identity; exactly one
  candidate must remain (`DeviceNotFoundError` if none,
  `AmbiguousDeviceError` if several)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from loguru import logger

from usmu.types.errors import AmbiguousDeviceError, DeviceNotFoundError, USMUError
from usmu.util.check_hw import list_usb_serial_ports
from usmu.util.defaults import DEFAULT_TIMEOUT, USB_PID, USB_VID

from .usmu import MicroSMU

IDENTITY_UNKNOWN = "<failed to read>"


@dataclass(frozen=True)
class PortCandidate:
    """A serial port that looks like a uSMU.

    Attributes
    ----------
    device : str
        Port path / name, e.g. "/dev/ttyACM0" or "COM3"
    vid : int
        Reported USB vendor id
    pid : int
        Reported USB product id
    identity : str
        Identity number reported by the device, or `IDENTITY_UNKNOWN`
    """

    device: str
    vid: int
    pid: int
    identity: str = IDENTITY_UNKNOWN

    def __str__(self):
        return f"{self.device} - {self.identity}"


def read_identity(port: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Best-effort identity read; any failure gives `IDENTITY_UNKNOWN`."""
    smu = MicroSMU(port, timeout=timeout)
    try:
        smu.open()
        return str(smu.get_identity())
    except (USMUError, OSError) as e:
        logger.warning("Could not read uSMU identity on {}: {}", port, e)
        return IDENTITY_UNKNOWN
    finally:
        smu.close()


def enumerate_candidates(
    identify: bool = True, timeout: float = DEFAULT_TIMEOUT
) -> list[PortCandidate]:
    """List serial ports with the uSMU USB vendor/product id.

    Parameters
    ----------
    identify : bool, optional
        Open each port and ask for the device identity, by default True
    timeout : float, optional
        Reply timeout for the identity query (seconds)
    """
    candidates = []
    for p in list_usb_serial_ports(vid=USB_VID, pid=USB_PID):
        identity = read_identity(p.device, timeout) if identify else IDENTITY_UNKNOWN
        candidates.append(PortCandidate(p.device, p.vid, p.pid, identity))
    logger.debug("Found {} uSMU candidate(s): {}", len(candidates), candidates)
    return candidates


def select_candidate(
    candidates: Sequence[PortCandidate],
    port: Optional[str] = None,
    identity: Optional[str] = None,
) -> PortCandidate:
    """Pick exactly one candidate, see module docstring for the rules."""
    candidates = list(candidates)
    if not candidates:
        raise DeviceNotFoundError(
            "Could not find uSMU. No matching serial port identified."
        )
    if len(candidates) == 1:
        return candidates[0]
    if port is None and identity is None:
        raise AmbiguousDeviceError(
            "Multiple uSMUs are attached, but neither port nor identity are "
            + "defined. Specify at least one to disambiguate the device.",
            candidates,
        )

    remaining = candidates
    if port is not None:
        remaining = [c for c in remaining if c.device == str(port)]
    if identity is not None:
        remaining = [c for c in remaining if c.identity == str(identity)]

    selectors = ", ".join(
        f"{name}={value!r}"
        for name, value in (("port", port), ("identity", identity))
        if value is not None
    )
    if not remaining:
        raise DeviceNotFoundError(f"No attached uSMU matches {selectors}")
    if len(remaining) > 1:
        raise AmbiguousDeviceError(
            f"Several attached uSMUs match {selectors}", remaining
        )
    return remaining[0]


def discover(
    port: Optional[str] = None,
    identity: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> MicroSMU:
    """Find, select and open one uSMU.

    Parameters
    ----------
    port : str, optional
        Exact port path of the wanted device
    identity : str, optional
        Exact identity number of the wanted device
    timeout : float, optional
        Reply timeout of the returned session (seconds)

    Returns
    -------
    MicroSMU
        Open session with the selected device
    """
    candidates = enumerate_candidates(timeout=timeout)
    selected = select_candidate(candidates, port=port, identity=identity)
    logger.info("Selected uSMU {}", selected)
    smu = MicroSMU(selected.device, timeout=timeout)
    smu.open()
    return smu
