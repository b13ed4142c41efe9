"""
Fixed-Width Layout Configuration

Defines dataclasses describing where each field sits in a bank TXT line.
"""
from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class FieldDef:
    """
    Defines one fixed-width field.

    Attributes:
        name: Field name ('matricula', 'evento', 'competencia', 'valor')
        start: 0-indexed offset of the first character
        length: Number of characters
    """
    name: str
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length

    def slice(self, line: str) -> str:
        return line[self.start:self.end]


@dataclass(frozen=True)
class FixedWidthLayout:
    """
    Configuration for a bank fixed-width file.

    Attributes:
        name: Human-readable layout name
        fields: FieldDef list; must contain matricula, evento, competencia, valor
        min_length: Shortest data line that still holds the value field
        header_type: First character of header lines
        data_type: First character of data lines
    """
    name: str
    fields: List[FieldDef]
    min_length: int = 57
    header_type: str = '1'
    data_type: str = '2'
    _by_name: Dict[str, FieldDef] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        # frozen dataclass: populate the lookup through object.__setattr__
        object.__setattr__(self, '_by_name', {f.name: f for f in self.fields})

    def get_field(self, name: str) -> FieldDef:
        return self._by_name[name]


#   pos 0      record type (1=header, 2=data)
#   pos 1-9    sequence number
#   pos 10-21  base registration (unused)
#   pos 22-33  matricula: 10 digits base + 2 digits suffix
#   pos 34-43  evento
#   pos 44-49  competencia MMYYYY
#   pos 50-56  valor in cents
#   pos 57+    reference and trailing sequence (unused)
DEFAULT_BANK_LAYOUT = FixedWidthLayout(
    name="Consignado - Banco TXT v1",
    fields=[
        FieldDef(name="matricula", start=22, length=12),
        FieldDef(name="evento", start=34, length=10),
        FieldDef(name="competencia", start=44, length=6),
        FieldDef(name="valor", start=50, length=7),
    ],
    min_length=57,
)
