# Question bank files: seed tests with their questions embedded inline.

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

from pydantic import ValidationError

from schemas.tests import BankTestIn

_BASE = Path(__file__).resolve().parent
DEFAULT_BANK_PATH = _BASE / "data" / "bank.json"


def _iter_jsonl(p: Path) -> Iterable[Dict[str, Any]]:
    with p.open("r", encoding="utf-8") as f:
        for line in f:
            s = line.strip()
            if not s or s.startswith("#") or s.startswith("//"):
                continue
            try:
                yield json.loads(s)
            except json.JSONDecodeError:
                # Skip malformed rows instead of failing the whole import
                continue


def _iter_json(p: Path) -> Iterable[Dict[str, Any]]:
    with p.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError:
            # Treat a broken JSON file as empty
            data = []
    if isinstance(data, dict):
        data = data.get("tests", [])
    if isinstance(data, list):
        for obj in data:
            yield obj


def iter_bank_files(path: Path) -> Iterable[Path]:
    if path.is_dir():
        for p in sorted(path.rglob("*")):
            if p.is_file() and p.suffix.lower() in (".json", ".jsonl"):
                yield p
    elif path.exists():
        yield path


def load_bank(path: Path) -> Tuple[List[BankTestIn], int]:
    """
    Parse every test record under ``path`` (a .json/.jsonl file or a directory of them).
    Returns the valid records and the number of records skipped as invalid.
    """
    tests: List[BankTestIn] = []
    skipped = 0
    for p in iter_bank_files(path):
        source = _iter_jsonl(p) if p.suffix.lower() == ".jsonl" else _iter_json(p)
        for raw in source:
            if not isinstance(raw, dict):
                skipped += 1
                continue
            try:
                tests.append(BankTestIn.model_validate(raw))
            except ValidationError:
                skipped += 1
    return tests, skipped
