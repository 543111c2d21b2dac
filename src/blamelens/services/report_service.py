# Licensed under the Apache License, Version 2.0 (the "License");
# ...
from __future__ import annotations

import csv
import json
from typing import Iterable, Any, List, Union
from pathlib import Path

from ..domain.models import BlamePlaceholder, ResolutionFailure, ResolvedAnnotation

AnnotationResult = Union[ResolvedAnnotation, ResolutionFailure]


def annotation_to_dict(annotation: ResolvedAnnotation) -> dict[str, Any]:
    p = annotation.placeholder
    data: dict[str, Any] = {
        "kind": p.kind,
        "file_path": p.file_path,
        "anchor": p.anchor.to_list(),
        "summary": annotation.summary_text,
        "command": annotation.command,
    }
    if isinstance(p, BlamePlaceholder):
        data["range"] = p.range.to_list()
        data["author"] = annotation.author
        data["when"] = annotation.when.isoformat() if annotation.when else None
        data["locations"] = [
            {
                "order_index": loc.token.order_index,
                "revision_id": loc.token.revision_id,
                "line": loc.token.line.current_line_index,
                "original_line": loc.position.line,
                "author": loc.token.line.author,
                "token": loc.token.to_uri(),
            }
            for loc in annotation.locations
        ]
    return data


class ReportService:
    """
    Writes resolved annotations as JSON/NDJSON/CSV.

    Notes:
      - JSON (default): one array of annotation dicts.
      - NDJSON: one annotation dict per line.
      - CSV: one row per blame location; stable column order.
      - Failed resolutions are left out.
    """

    def _annotations(self, results: Iterable[AnnotationResult]) -> List[dict[str, Any]]:
        return [annotation_to_dict(r) for r in results if isinstance(r, ResolvedAnnotation)]

    def write_annotations(
        self, results: Iterable[AnnotationResult], out: Path, fmt: str = "json"
    ) -> Path:
        """
        Write an annotation report to `out` in the specified format.

        Returns:
            The path written.

        Raises:
            ValueError: if an unsupported format is requested.
        """
        fmt = (fmt or "json").lower()
        if fmt not in ("json", "ndjson", "csv"):
            raise ValueError(f"Unsupported format: {fmt}")

        annotations = self._annotations(results)
        out.parent.mkdir(parents=True, exist_ok=True)

        if fmt == "json":
            out.write_text(
                json.dumps(annotations, ensure_ascii=False, indent=2), encoding="utf-8"
            )
            return out

        if fmt == "ndjson":
            lines = (json.dumps(a, ensure_ascii=False) for a in annotations)
            text = "\n".join(lines)
            out.write_text(text + ("\n" if text else ""), encoding="utf-8")
            return out

        fieldnames = [
            "file_path",
            "anchor_line",
            "summary",
            "order_index",
            "revision_id",
            "line",
            "original_line",
            "author",
        ]
        with open(out, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            for a in annotations:
                for loc in a.get("locations", ()):
                    writer.writerow(
                        {
                            "file_path": a["file_path"],
                            "anchor_line": a["anchor"][0],
                            "summary": a["summary"],
                            "order_index": loc["order_index"],
                            "revision_id": loc["revision_id"],
                            "line": loc["line"],
                            "original_line": loc["original_line"],
                            "author": loc["author"],
                        }
                    )
        return out
