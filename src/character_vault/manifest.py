from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .data.loader import read_json
from .data.snapshot import actor_from_payload

logger = logging.getLogger(__name__)


def build_manifest(in_dir: Path, url_prefix: str = "./data/actors/") -> List[Dict[str, str]]:
    entries: List[Dict[str, str]] = []
    for path in sorted(Path(in_dir).iterdir()):
        if not path.is_file() or path.suffix.lower() != ".json":
            continue
        try:
            payload = read_json(path)
        except (OSError, ValueError) as exc:
            logger.warning("Skipping invalid JSON %s: %s", path.name, exc)
            continue
        actor = actor_from_payload(payload)
        name = actor.get("name") if isinstance(actor, dict) else None
        if not isinstance(name, str) or not name:
            name = path.stem
        entries.append({"name": name, "file": f"{url_prefix}{path.name}"})
    entries.sort(key=lambda entry: entry["name"].casefold())
    return entries


def write_manifest(entries: List[Dict[str, str]], out_file: Path) -> None:
    out_file = Path(out_file)
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(json.dumps(entries, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Build manifest.json from exported actor JSON files.")
    parser.add_argument("in_dir", type=Path, help="directory holding actor snapshots")
    parser.add_argument("out_file", type=Path, help="manifest file to write")
    parser.add_argument("--prefix", default="./data/actors/", help="path prefix written before each file name")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if not args.in_dir.is_dir():
        logger.error("Not a directory: %s", args.in_dir)
        return 1
    entries = build_manifest(args.in_dir, url_prefix=args.prefix)
    write_manifest(entries, args.out_file)
    logger.info("Wrote %d entries to %s", len(entries), args.out_file)
    return 0


if __name__ == "__main__":
    sys.exit(main())
