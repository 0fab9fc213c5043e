"""Core logic for amateur radio contest logging: data model, scores, spots, bandmap, call info and call history export."""

__version__ = "0.1.0"