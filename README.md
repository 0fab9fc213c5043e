# hellocontest

The core of a contest logger for amateur radio operators: the data model of a
contest log, score keeping, a bandmap of spotted stations, call information
lookup and call history export. It is a library; it has no dependencies
outside the standard library.

## Modules

- `hellocontest.core` – the data model: `Band`, `Mode`, `Workmode`,
  `Property`, `QSO`, `DXCCPrefix`, `Station`, `ContestDefinition`,
  `Contest`, `ExchangeField`, `EntryField`, `AnnotatedCallsign`, `Radio`,
  `Keyer`, `KeyerSettings`, `KeyerPreset` and `Service`.
  `Contest.update_exchange_fields()` derives my and their exchange fields
  from the contest definition; `Contest.bands()` lists the contest's bands,
  and `Contest.started(now)`, `Contest.finished(now)` and
  `Contest.running(now)` tell where a timed contest stands.
  `parse_callsign(text)` normalizes a callsign to upper case and raises
  `ValueError` for text that is not a callsign.
- `hellocontest.score` – `BandScore`, `BandGraph` and `Score` add up QSOs,
  duplicates, points and multipliers per band and over time
  (`new_band_graph` splits a timed contest into 60 bins).
  `Score.stacked_graph_per_band()` stacks the band graphs in band order and
  `str(score)` gives a score table. `QSORate` holds rate statistics and
  formats the time since the last QSO.
- `hellocontest.spots` – `Spot`, `SpotSource`, `SpotType` (with its
  priority), `BandmapEntry`, `BandSummary`, `Callinfo`, `BandmapFrame`,
  `BandmapWeights` and the orderings `bandmap_by_frequency`,
  `bandmap_by_distance(frequency)`, `bandmap_by_descending_value` and
  `descending(order)`.
- `hellocontest.bandmap.entries` – `Entries` merges spots of the same
  station into entries kept in frequency order, drops spots older than a
  maximum age, removes likely false spots and builds a summary per band.
  Listeners with `entry_added`, `entry_updated`, `entry_removed` or
  `entry_selected` methods are told about changes.
- `hellocontest.bandmap.false_entry` – `check_false_entry(entry1, entry2)`
  decides whether one of two nearby entries is a busted spot of the other;
  `levenshtein_distance(a, b)` is the edit distance it uses.
- `hellocontest.bandmap.bandmap` – `Bandmap` keeps the entries, marks spots
  of stations already worked, shows a `BandmapFrame` to its view and jumps
  to the nearest, next higher, next lower or most valuable entry. With an
  update period it refreshes itself on a background thread until `close()`
  is called (it is also a context manager); with `update_period=None` it
  refreshes only when its state changes. `Logger` logs entry changes.
- `hellocontest.callinfo` – `CallinfoService` works out the DXCC entity,
  worked and duplicate status, value and predicted exchange of a callsign,
  and shows it together with supercheck partial matches in its view.
- `hellocontest.callhistory` – `export(stream, field_names, qsos)` writes a
  call history file with the last exchange of each callsign; it raises
  `ValueError` when no field name is given.
- `hellocontest.clock` – `SystemClock` and `StaticClock`, which are
  interchangeable, so tests can fix the time.
- `hellocontest.status` – `ServiceStatus` remembers whether each service is
  available and tells listeners with a `status_changed` method.

## Examples

```python
from hellocontest.score import BandScore, QSOScore

score = BandScore()
for _ in range(4):
    score.add_qso(QSOScore(points=2))
print(score.result())  # 8
```

```python
import io

from hellocontest.callhistory import export
from hellocontest.core import QSO, parse_callsign

qsos = [QSO(callsign=parse_callsign("dl1abc"), their_exchange=["Hans", "599"])]
out = io.StringIO()
export(out, ["Name", ""], qsos)
print(out.getvalue())
# !!Order!!,Call,Name
# # Call history created with Hello Contest
# # Enter some additional information here
# DL1ABC,Hans
```

## What it does not do

This package is the logic only. It has no command and no user interface;
views are plain objects you pass in. It does not store or load log files or
configuration, does not connect to DX clusters, radios or keyers, and ships
no DXCC prefix database, supercheck partial database or call history
reader: `CallinfoService` and `Bandmap` take such finders, dupe checkers and
valuers as objects you provide.

## Tests

Install with the `test` extra, then run `pytest`.