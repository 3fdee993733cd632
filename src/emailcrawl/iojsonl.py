from __future__ import annotations
import json
from typing import Iterable, Mapping

def write_jsonl(records_iterable: Iterable[Mapping], out_path: str) -> None:
    """Write an iterable of mapping records to a UTF-8 JSONL file."""
    with open(out_path, "w", encoding="utf-8") as f:
        for rec in records_iterable:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")
