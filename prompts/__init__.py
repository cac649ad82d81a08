"""
System prompt templates for the chat assistant, one file per language.
Each template has a {records} slot for the ledger JSON.
"""

import os
from typing import Dict

SUPPORTED_LANGUAGES = ("en", "zh", "ms")

_PROMPT_DIR = os.path.dirname(os.path.abspath(__file__))
_prompt_cache: Dict[str, str] = {}


def load_prompt(filename: str) -> str:
    """Read a template file from this package, cached after the first read."""
    if filename not in _prompt_cache:
        filepath = os.path.join(_PROMPT_DIR, filename)
        with open(filepath, 'r', encoding='utf-8') as f:
            _prompt_cache[filename] = f.read()
    return _prompt_cache[filename]


def get_system_prompt(language: str = "en") -> str:
    """Template for a language; anything outside SUPPORTED_LANGUAGES gets English."""
    if language not in SUPPORTED_LANGUAGES:
        language = "en"
    return load_prompt(f"system_prompt_{language}.txt")


def clear_prompt_cache():
    _prompt_cache.clear()
