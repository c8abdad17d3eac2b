"""
I/O utilities for batch extraction: line reading and JSONL output.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .models import MatchResult


def iter_lines(file_path: str, limit: Optional[int] = None) -> Iterator[Tuple[int, str]]:
    """
    Yield ``(line_number, line)`` pairs with trailing newlines removed.

    Args:
        file_path: Input text file
        limit: Stop after this many lines
    """
    with open(file_path, 'r', encoding='utf-8', errors='ignore') as f:
        for line_num, line in enumerate(f, 1):
            if limit and line_num > limit:
                break
            yield line_num, line.rstrip('\r\n')


def count_lines(file_path: str, limit: Optional[int] = None) -> int:
    """Count the lines iter_lines would yield."""
    return sum(1 for _ in iter_lines(file_path, limit))


def result_record(line_num: int, result: MatchResult) -> Dict[str, Any]:
    """Flatten one match into a JSON-friendly record."""
    return {
        'line_number': line_num,
        'values': result.to_dict(),
        'raw': result.named_raw,
        'kinds': {spec.identifier: str(result.kind(i)) for i, spec in enumerate(result.fields)},
        'spans': [list(span) for span in result.spans],
    }


class JSONLWriter:
    """
    Writer for JSONL (JSON Lines) format.
    """

    def __init__(self, file_path: str):
        self.file_path = Path(file_path)
        self.file_handle = None

    def __enter__(self):
        self.file_handle = open(self.file_path, 'w', encoding='utf-8')
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.file_handle:
            self.file_handle.close()

    def write_record(self, record: Dict[str, Any]) -> None:
        """Write a single record to the JSONL file."""
        if not self.file_handle:
            raise ValueError("JSONLWriter not opened")

        json.dump(record, self.file_handle, ensure_ascii=False)
        self.file_handle.write('\n')

    def write_result(self, line_num: int, result: MatchResult) -> None:
        self.write_record(result_record(line_num, result))


class JSONLReader:
    """
    Reader for JSONL (JSON Lines) format.
    """

    def __init__(self, file_path: str):
        self.file_path = Path(file_path)

    def read_records(self) -> List[Dict[str, Any]]:
        """Read all records from the JSONL file."""
        return list(self)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        if not self.file_path.exists():
            return

        with open(self.file_path, 'r', encoding='utf-8') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue

                try:
                    yield json.loads(line)
                except json.JSONDecodeError as e:
                    print(f"Warning: Skipping invalid record at line {line_num}: {e}")
