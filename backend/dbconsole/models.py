from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Mapping, Optional, Sequence


@dataclass(frozen=True)
class Relationship:
    """One foreign-key constraint; identified by its constraint name."""
    table_name: str
    column_name: str
    foreign_table: str
    foreign_column: str
    constraint_name: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Relationship":
        return cls(
            table_name=row['table_name'],
            column_name=row['column_name'],
            foreign_table=row['foreign_table'],
            foreign_column=row['foreign_column'],
            constraint_name=row['constraint_name'],
        )

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class TablePosition:
    table_name: str
    x: float
    y: float


@dataclass
class ColumnSchema:
    column_name: str
    data_type: str
    is_nullable: bool = True
    column_default: Optional[str] = None
    is_primary_key: bool = False
    is_foreign_key: bool = False
    foreign_key_table: Optional[str] = None
    foreign_key_column: Optional[str] = None

    def to_dict(self):
        return asdict(self)


@dataclass
class TableSchema:
    table_name: str
    columns: List[ColumnSchema] = field(default_factory=list)
    table_schema: str = ''

    def to_dict(self):
        return {
            "table_schema": self.table_schema,
            "table_name": self.table_name,
            "columns": [column.to_dict() for column in self.columns],
        }


# --- Query results: exactly one of the two variants below ---

@dataclass(frozen=True)
class QueryRows:
    columns: Sequence[str]
    rows: Sequence[Dict[str, Any]]

    @property
    def is_empty(self):
        return len(self.rows) == 0


@dataclass(frozen=True)
class QueryError:
    message: str
