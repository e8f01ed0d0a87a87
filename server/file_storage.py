"""File-based storage implementation."""

import json
import os
import uuid
from datetime import datetime

from core.interfaces import Storage, ENTITIES

DATETIME_PREFIX = '__datetime__:'


def _encode(value):
    if isinstance(value, datetime):
        return DATETIME_PREFIX + value.isoformat()
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_encode(v) for v in value]
    return value


def _decode(value):
    if isinstance(value, str) and value.startswith(DATETIME_PREFIX):
        return datetime.fromisoformat(value[len(DATETIME_PREFIX):])
    if isinstance(value, dict):
        return {k: _decode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_decode(v) for v in value]
    return value


def _sort_key(field: str):
    # None sorts before any value
    def key(record):
        value = record.get(field)
        return (value is not None, value)
    return key


class FileStorage(Storage):
    """Single JSON file holding every entity. Meant for local development."""

    def __init__(self, state_file: str = None):
        # Project root is one level up from server/
        project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        self.state_file = state_file or os.path.join(project_root, 'hanyu_state.json')

    def _load(self) -> dict:
        data = {}
        if os.path.exists(self.state_file):
            with open(self.state_file, 'r', encoding='utf-8') as f:
                data = _decode(json.load(f))
        for entity in ENTITIES:
            data.setdefault(entity, [])
        return data

    def _save(self, data: dict) -> None:
        with open(self.state_file, 'w', encoding='utf-8') as f:
            json.dump(_encode(data), f, indent=2, ensure_ascii=False)

    def _records(self, data: dict, entity: str) -> list[dict]:
        if entity not in ENTITIES:
            raise ValueError(f"Unknown entity: {entity}")
        return data[entity]

    @staticmethod
    def _matches(record: dict, filters: dict) -> bool:
        return all(record.get(k) == v for k, v in filters.items())

    def find_one(self, entity: str, **filters) -> dict | None:
        for record in self._records(self._load(), entity):
            if self._matches(record, filters):
                return dict(record)
        return None

    def find_many(self, entity: str, order_by: str = None, descending: bool = False,
                  limit: int = None, **filters) -> list[dict]:
        records = [dict(r) for r in self._records(self._load(), entity) if self._matches(r, filters)]
        if order_by:
            records.sort(key=_sort_key(order_by), reverse=descending)
        if limit is not None:
            records = records[:limit]
        return records

    def create(self, entity: str, fields: dict) -> dict:
        data = self._load()
        record = {'id': str(uuid.uuid4()), **fields}
        self._records(data, entity).append(record)
        self._save(data)
        return dict(record)

    def update(self, entity: str, record_id: str, fields: dict) -> dict | None:
        data = self._load()
        for record in self._records(data, entity):
            if record.get('id') == record_id:
                record.update(fields)
                self._save(data)
                return dict(record)
        return None

    def delete(self, entity: str, **filters) -> int:
        data = self._load()
        records = self._records(data, entity)
        kept = [r for r in records if not self._matches(r, filters)]
        deleted = len(records) - len(kept)
        if deleted:
            data[entity] = kept
            self._save(data)
        return deleted

    def count(self, entity: str, **filters) -> int:
        return sum(1 for r in self._records(self._load(), entity) if self._matches(r, filters))
