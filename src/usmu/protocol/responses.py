"""Replies of the uSMU and the grammar each one is decoded with."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Type, TypeVar

import numpy as np

from usmu.types.units import Current, Voltage

from .codec import AMPERE, FLOAT32, U16, U32, VOLT, Field, Template, decode_grammar

IDENTITY_BANNER = "uSMU version 1.0 ID:"

R = TypeVar("R", bound="Response")


@dataclass(frozen=True)
class Response:
    """Base class for all replies."""

    pass


@dataclass(frozen=True)
class EmptyResponse(Response):
    """Acknowledgement of a command that produces no reply line."""

    pass


@dataclass(frozen=True)
class MeasureResponse(Response):
    """Measured (ADC read-back) voltage and current."""

    voltage: Voltage
    current: Current


@dataclass(frozen=True)
class DifferentialConversionResponse(Response):
    value: int


@dataclass(frozen=True)
class ReadEepromResponse(Response):
    value: np.float32


@dataclass(frozen=True)
class IdentityResponse(Response):
    uid: int


RESPONSE_GRAMMAR: dict[Type[Response], Template] = {
    EmptyResponse: (),
    MeasureResponse: (Field("voltage", VOLT), ",", Field("current", AMPERE)),
    DifferentialConversionResponse: (Field("value", U16),),
    ReadEepromResponse: (Field("value", FLOAT32),),
    IdentityResponse: (IDENTITY_BANNER, Field("uid", U32)),
}


def decode(response_type: Type[R], line: str) -> R:
    """Decode one reply line (terminator already stripped) as `response_type`.

    Raises
    ------
    UnexpectedTokenError
        A literal of the grammar did not match.
    MalformedReplyError
        A numeric field was missing or out of range.
    TrailingDataError
        Content remained after the last expected field.
    """
    return response_type(**decode_grammar(RESPONSE_GRAMMAR[response_type], line))
