"""Keys recognised in the input document.

Each logical field has an ordered pair of candidate keys (canonical first,
then the short alias) and the shape its value must decode into.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldSpec:
    canonical: str
    short: str | None = None
    shape: type = str

    @property
    def candidates(self) -> tuple[str, ...]:
        if self.short:
            return (self.canonical, self.short)
        return (self.canonical,)


# Paths
COLLECTION = FieldSpec("collection", "coll")
DATA_OBJECT = FieldSpec("data_object", "obj")
DIRECTORY = FieldSpec("directory", "dir")
FILE = FieldSpec("file")
ZONE = FieldSpec("zone")

# Permissions
ACCESS = FieldSpec("access", shape=list)
OWNER = FieldSpec("owner")
LEVEL = FieldSpec("level")

# Metadata
AVUS = FieldSpec("avus", shape=list)
ATTRIBUTE = FieldSpec("attribute", "a")
VALUE = FieldSpec("value", "v")
UNITS = FieldSpec("units", "u")
OPERATOR = FieldSpec("operator", "o")
