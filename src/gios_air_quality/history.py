#  Provides a python client for looking up stations and retrieving
#  air quality data from the GIOŚ (api.gios.gov.pl) portal.
#  Copyright (C) 2025 chickendrop89

#  This library is free software; you can redistribute it and/or modify it
#  under the terms of the GNU Lesser General Public License as published by
#  the Free Software Foundation; either version 3 of the License, or
#  (at your option) any later version.

#  This library is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU Lesser General Public License for more details.

"""
Persistent search history
"""

from datetime import datetime
import json
import logging
import os
import tempfile

from gios_air_quality import const
from gios_air_quality.models import HistoryEntry


_LOGGER = logging.getLogger(__name__)

def _parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp to naive local time, None if unparsable."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _is_newer(candidate: HistoryEntry, current: HistoryEntry) -> bool:
    candidate_time = _parse_timestamp(candidate.timestamp)
    current_time = _parse_timestamp(current.timestamp)

    if candidate_time is None:
        return False
    if current_time is None:
        return True
    return candidate_time > current_time


class HistoryStore:
    """
    Saved station snapshots kept in a single JSON array, newest first.

    The file is read in full and rewritten in full on every change. A single
    writer is assumed.
    """

    def __init__(self, path: str = const.HISTORY_FILE_NAME, auto_load: bool = True):
        """
        Initialize the store.

        :param path: Location of the history JSON file
        :type path: str
        :param auto_load: Read the file immediately
        :type auto_load: bool
        """
        self._path = path
        self._entries: list[HistoryEntry] = []

        if auto_load:
            self.load()


    @property
    def path(self) -> str:
        return self._path

    @property
    def entries(self) -> list[HistoryEntry]:
        """In-memory copy of the history as of the last load or change."""
        return self._entries


    def load(self) -> list[HistoryEntry]:
        """
        Read the history file.

        A missing or corrupted file yields an empty history. Entries that
        cannot be decoded are skipped.

        :return: Entries, newest first
        :rtype: list[HistoryEntry]
        """
        try:
            with open(self._path, "r", encoding="utf-8") as file:
                raw = json.load(file)
        except FileNotFoundError:
            _LOGGER.debug("No history file at %s.", self._path)
            raw = []
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
            _LOGGER.warning("Could not read history file %s: %s", self._path, exc)
            raw = []

        if not isinstance(raw, list):
            _LOGGER.warning("History file %s does not contain a list.", self._path)
            raw = []

        entries = []
        for item in raw:
            try:
                entries.append(HistoryEntry.from_dict(item))
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                _LOGGER.debug("Skipping malformed history entry: %s", exc)

        self._entries = entries
        return entries


    def save(self, entries: list[HistoryEntry]) -> None:
        """
        Replace the history file with ``entries``.

        The data is written to a temporary file next to the target and moved
        over it, so readers never see a half-written file.

        :param entries: Entries to persist, newest first
        :type entries: list[HistoryEntry]
        """
        directory = os.path.dirname(os.path.abspath(self._path))
        os.makedirs(directory, exist_ok=True)

        payload = [entry.to_dict() for entry in entries]
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=directory,
            suffix=".tmp",
            delete=False,
        ) as file:
            temp_path = file.name
            try:
                json.dump(payload, file, ensure_ascii=False, indent=4)
            except (TypeError, ValueError, OSError):
                file.close()
                os.unlink(temp_path)
                raise

        try:
            os.replace(temp_path, self._path)
        except OSError:
            os.unlink(temp_path)
            raise

        self._entries = list(entries)
        _LOGGER.info("Saved %d history entries to %s.", len(entries), self._path)


    def prepend(self, entry: HistoryEntry) -> list[HistoryEntry]:
        """Add an entry in front of the persisted history."""
        entries = self.load()
        entries.insert(0, entry)
        self.save(entries)
        return self._entries


    def remove_at(self, index: int) -> list[HistoryEntry]:
        """Remove one entry; an index out of range changes nothing."""
        if index < 0 or index >= len(self._entries):
            _LOGGER.debug("History index %d out of range, nothing removed.", index)
            return self._entries

        entries = list(self._entries)
        del entries[index]
        self.save(entries)
        return self._entries


    def clear(self) -> list[HistoryEntry]:
        self.save([])
        return self._entries


    def entries_for_city(self, city: str) -> list[HistoryEntry]:
        """
        Latest saved entry of every station in a city.

        Cities are compared case-insensitively. When a station was saved more
        than once, the entry with the latest timestamp is kept.

        :param city: City name
        :type city: str
        :return: One entry per station id
        :rtype: list[HistoryEntry]
        """
        city_lower = city.lower()
        latest: dict[int, HistoryEntry] = {}

        for entry in self._entries:
            if entry.city_name.lower() != city_lower:
                continue

            existing = latest.get(entry.station_id)
            if existing is None or _is_newer(entry, existing):
                latest[entry.station_id] = entry

        return list(latest.values())
