"""Call history files, which can be used to predict the exchange data."""

from __future__ import annotations

from typing import Iterable, Sequence, TextIO

from .core import QSO

NAME_FIELD = "Name"
EXCH1_FIELD = "Exch1"


def export(stream: TextIO, field_names: Sequence[str], qsos: Iterable[QSO]) -> None:
    """Write a call history file with the last exchange of each callsign.

    Empty field names skip the exchange value at their position.
    Raises ValueError if no field name is given.
    """
    used_field_names = [name for name in field_names if name]
    if not used_field_names:
        raise ValueError("no field names configured for this contest")

    callsign_to_exchange: dict[str, Sequence[str]] = {}
    for qso in qsos:
        callsign_to_exchange[qso.callsign] = qso.their_exchange

    entries = sorted(
        ",".join(
            [call]
            + [exchange[i] for i, name in enumerate(field_names) if name]
        )
        if used_field_names
        else call
        for call, exchange in callsign_to_exchange.items()
    )

    stream.write(
        f"!!Order!!,Call,{','.join(used_field_names)}\n"
        "# Call history created with Hello Contest\n"
        "# Enter some additional information here\n"
    )
    for entry in entries:
        stream.write(f"{entry}\n")