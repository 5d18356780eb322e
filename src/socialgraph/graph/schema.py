"""Graph schema file loading."""

from pathlib import Path

# Schema file location
SCHEMA_FILE = Path(__file__).parent / "schema.cypher"


def load_schema_statements(path: Path = SCHEMA_FILE) -> list[str]:
    """Read a Cypher schema file and split it into statements.

    ``//`` comment lines are dropped and statements are separated by ``;``.
    """
    lines = [
        line
        for line in path.read_text().splitlines()
        if not line.strip().startswith("//")
    ]
    return [stmt.strip() for stmt in "\n".join(lines).split(";") if stmt.strip()]
