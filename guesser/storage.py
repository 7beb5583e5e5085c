"""JSON output persistence for simulated games."""

import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import OutputConfig
from .simulate import GameRecord, summarize


def record_to_dict(record: GameRecord) -> dict:
    """Convert a game record to a JSON-serializable dict."""
    data = asdict(record)
    data["transcript"] = [
        {"question": question, "grade": grade} for question, grade in record.transcript
    ]
    return data


def record_from_dict(data: dict) -> GameRecord:
    """Rebuild a game record from its dict form."""
    data = dict(data)
    data["transcript"] = [(t["question"], t["grade"]) for t in data.get("transcript", [])]
    return GameRecord(**data)


def save_records(
    records: list[GameRecord],
    output_dir: str | Path,
    batch_name: Optional[str] = None
) -> Path:
    """Save game records to a single JSONL file.

    Args:
        records: Records to save
        output_dir: Directory to save to
        batch_name: Optional name for the batch file

    Returns:
        Path to saved file
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if batch_name is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        batch_name = f"games_{timestamp}"

    filepath = output_dir / f"{batch_name}.jsonl"

    with open(filepath, "w") as f:
        for record in records:
            f.write(json.dumps(record_to_dict(record)) + "\n")

    return filepath


def load_records(filepath: str | Path) -> list[GameRecord]:
    """Load game records from a JSONL file."""
    records = []

    with open(filepath) as f:
        for line in f:
            if not line.strip():
                continue
            records.append(record_from_dict(json.loads(line)))

    return records


def save_summary(
    records: list[GameRecord],
    output_dir: str | Path,
    config: Optional[OutputConfig] = None,
    batch_name: Optional[str] = None
) -> Path:
    """Save summary statistics of a batch.

    Args:
        records: Records to summarize
        output_dir: Directory to save to
        config: Output configuration
        batch_name: Optional name for the summary file

    Returns:
        Path to saved summary
    """
    config = config or OutputConfig()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if batch_name is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        batch_name = f"summary_{timestamp}"

    summary = summarize(records)
    summary["generated_at"] = datetime.now().isoformat()

    filepath = output_dir / f"{batch_name}.json"
    with open(filepath, "w") as f:
        json.dump(summary, f, indent=config.indent)

    return filepath
