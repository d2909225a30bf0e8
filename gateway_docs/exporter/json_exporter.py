"""JSON exporter."""
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional


class JsonExporter:
    """Export documentation results to JSON."""

    @staticmethod
    def to_plain(result: Any) -> Any:
        """Convert records (anything with to_dict) and lists of them to plain data."""
        if hasattr(result, "to_dict"):
            return result.to_dict()
        if isinstance(result, (list, tuple)):
            return [JsonExporter.to_plain(item) for item in result]
        if isinstance(result, dict):
            return {k: JsonExporter.to_plain(v) for k, v in result.items()}
        return result

    def dumps(self, result: Any) -> str:
        """Serialize to an indented JSON string."""
        return json.dumps(self.to_plain(result), indent=2, ensure_ascii=False, default=str)

    def export(self, output_file: Path, result: Any, source: Optional[str] = None) -> None:
        """Export to JSON file."""
        output_file.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "metadata": {
                "created_at": datetime.now().isoformat(),
                "source": source,
            },
            "data": self.to_plain(result),
        }

        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)
