"""
Submission mutual exclusion.

On databases with row locks the ``SELECT ... FOR UPDATE`` on the latest
attempt row serializes concurrent submits. Backends without row locks
(SQLite during development) fall back to a process-local lock keyed on the
(questionnaire, user, class) tuple. A key's lock lives only while some
thread holds or waits for it.
"""
import threading
from contextlib import contextmanager

from django.db import connection

_registry_lock = threading.Lock()
# key -> [lock, holders]; holders counts threads holding or waiting.
_keyed_locks = {}


def _acquire_entry(key):
    with _registry_lock:
        entry = _keyed_locks.get(key)
        if entry is None:
            entry = [threading.Lock(), 0]
            _keyed_locks[key] = entry
        entry[1] += 1
        return entry[0]


def _release_entry(key):
    with _registry_lock:
        entry = _keyed_locks[key]
        entry[1] -= 1
        if entry[1] == 0:
            del _keyed_locks[key]


@contextmanager
def keyed_lock(key):
    lock = _acquire_entry(key)
    try:
        with lock:
            yield
    finally:
        _release_entry(key)


@contextmanager
def submission_lock(questionnaire_id, user_id, course_class_id):
    if connection.features.has_select_for_update:
        yield
        return
    with keyed_lock(('submit', questionnaire_id, user_id, course_class_id)):
        yield
