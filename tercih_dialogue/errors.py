# tercih_dialogue/errors.py
"""
Exceptions raised by the dialogue engine.

Expected conditions (nothing understood, unknown session, empty text) are not
errors and never reach these types.
"""

from __future__ import annotations


class DialogueError(Exception):
    """Base class for dialogue engine failures."""


class LexiconConfigError(DialogueError):
    """
    The declarative tables contradict each other, e.g. an intent the
    classifier can emit has no required-entity row.
    """
