"""Map script outlet calls onto the host message vocabulary."""

from __future__ import annotations

from pdbridge.types import OutletMessage, Value, describe_value, is_value


def marshal_outlet(outlet: int, *values: Value) -> OutletMessage:
    """Build the outlet message for `emit(outlet, *values)`.

    - no values: ``bang``
    - one number: ``float``
    - one string: ``symbol``
    - one nested list: ``anything``
    - two or more values: ``list``, values unchanged and in order

    The outlet index is passed through; the host owns bounds checking.
    """

    for value in values:
        if not is_value(value):
            raise TypeError(f"cannot send {describe_value(value)} to an outlet: expected number, str or list")

    if not values:
        return OutletMessage(outlet=outlet, selector="bang")
    if len(values) == 1:
        value = values[0]
        if isinstance(value, (int, float)):
            return OutletMessage(outlet=outlet, selector="float", args=(value,))
        if isinstance(value, str):
            return OutletMessage(outlet=outlet, selector="symbol", args=(value,))
        return OutletMessage(outlet=outlet, selector="anything", args=(value,))
    return OutletMessage(outlet=outlet, selector="list", args=tuple(values))
