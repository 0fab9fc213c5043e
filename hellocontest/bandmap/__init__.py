"""Bandmap of spotted stations: entries, false spot detection and the bandmap itself."""