"""Column type and value mapping between MySQL and SQLite.

This module is the only place that knows how the two dialects spell
their column types. Types are grouped into classes; a type is mapped by
finding its class in the source dialect and picking the canonical type
of that class in the target dialect.
"""

import json
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from travelcache.core.entities.database_config import Dialect

_logger = logging.getLogger(__name__)


def _is_finite(number: float | Decimal) -> bool:
    # NaN and infinities have no integer value
    if isinstance(number, Decimal):
        return number.is_finite()
    return math.isfinite(number)


def _is_nan(number: float | Decimal) -> bool:
    if isinstance(number, Decimal):
        return number.is_nan()
    return math.isnan(number)


class TypeClass(Enum):
    """Equivalence classes shared by both dialects."""

    INTEGER = "integer"
    REAL = "real"
    TEXT = "text"
    BINARY = "binary"
    TEMPORAL = "temporal"
    BOOLEAN = "boolean"


_MYSQL_TYPES: dict[str, TypeClass] = {
    "TINYINT": TypeClass.INTEGER,
    "SMALLINT": TypeClass.INTEGER,
    "MEDIUMINT": TypeClass.INTEGER,
    "INT": TypeClass.INTEGER,
    "INTEGER": TypeClass.INTEGER,
    "BIGINT": TypeClass.INTEGER,
    "YEAR": TypeClass.INTEGER,
    "FLOAT": TypeClass.REAL,
    "DOUBLE": TypeClass.REAL,
    "DECIMAL": TypeClass.REAL,
    "NUMERIC": TypeClass.REAL,
    "CHAR": TypeClass.TEXT,
    "VARCHAR": TypeClass.TEXT,
    "TINYTEXT": TypeClass.TEXT,
    "TEXT": TypeClass.TEXT,
    "MEDIUMTEXT": TypeClass.TEXT,
    "LONGTEXT": TypeClass.TEXT,
    "JSON": TypeClass.TEXT,
    "ENUM": TypeClass.TEXT,
    "SET": TypeClass.TEXT,
    "BINARY": TypeClass.BINARY,
    "VARBINARY": TypeClass.BINARY,
    "TINYBLOB": TypeClass.BINARY,
    "BLOB": TypeClass.BINARY,
    "MEDIUMBLOB": TypeClass.BINARY,
    "LONGBLOB": TypeClass.BINARY,
    "DATE": TypeClass.TEMPORAL,
    "TIME": TypeClass.TEMPORAL,
    "DATETIME": TypeClass.TEMPORAL,
    "TIMESTAMP": TypeClass.TEMPORAL,
    "BOOLEAN": TypeClass.BOOLEAN,
    "BOOL": TypeClass.BOOLEAN,
}

_SQLITE_TYPES: dict[str, TypeClass] = {
    "INTEGER": TypeClass.INTEGER,
    "INT": TypeClass.INTEGER,
    "BIGINT": TypeClass.INTEGER,
    "REAL": TypeClass.REAL,
    "DOUBLE": TypeClass.REAL,
    "FLOAT": TypeClass.REAL,
    "NUMERIC": TypeClass.REAL,
    "DECIMAL": TypeClass.REAL,
    "TEXT": TypeClass.TEXT,
    "CHAR": TypeClass.TEXT,
    "VARCHAR": TypeClass.TEXT,
    "CLOB": TypeClass.TEXT,
    "JSON": TypeClass.TEXT,
    "BLOB": TypeClass.BINARY,
    "DATE": TypeClass.TEMPORAL,
    "DATETIME": TypeClass.TEMPORAL,
    "TIMESTAMP": TypeClass.TEMPORAL,
    "BOOLEAN": TypeClass.BOOLEAN,
}

_SOURCE_TYPES = {Dialect.MYSQL: _MYSQL_TYPES, Dialect.SQLITE: _SQLITE_TYPES}

_TARGET_TYPES: dict[Dialect, dict[TypeClass, str]] = {
    Dialect.SQLITE: {
        TypeClass.INTEGER: "INTEGER",
        TypeClass.REAL: "REAL",
        TypeClass.TEXT: "TEXT",
        TypeClass.BINARY: "BLOB",
        TypeClass.TEMPORAL: "TEXT",
        TypeClass.BOOLEAN: "INTEGER",
    },
    Dialect.MYSQL: {
        TypeClass.INTEGER: "INT",
        TypeClass.REAL: "DOUBLE",
        TypeClass.TEXT: "TEXT",
        TypeClass.BINARY: "BLOB",
        TypeClass.TEMPORAL: "DATETIME",
        TypeClass.BOOLEAN: "TINYINT(1)",
    },
}

_NUMERIC = (TypeClass.INTEGER, TypeClass.REAL, TypeClass.BOOLEAN)
_TRUE_WORDS = frozenset({"true", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "no", "off", ""})
_NO_DEFAULT = object()


@dataclass(frozen=True)
class TypeCompatibility:
    """Whether values of one type survive conversion to another.

    Attributes:
        compatible: False when values cannot be converted at all.
        lossless: False when some values may change on the way.
        warnings: Human-readable reasons, for operator review.
    """

    compatible: bool = True
    lossless: bool = True
    warnings: list[str] = field(default_factory=list)


def extract_base_type(full_type: str | None) -> str:
    """Strip length and modifiers: ``"varchar(255) NOT NULL"`` -> ``"VARCHAR"``."""
    if not full_type:
        return "TEXT"
    return full_type.split("(")[0].strip().split(" ")[0].upper() or "TEXT"


def extract_length(full_type: str | None) -> int | None:
    """Declared length of ``VARCHAR(255)``-style types, if any."""
    match = re.search(r"\((\d+)\)", full_type or "")
    return int(match.group(1)) if match else None


class TypeMapper:
    """Maps column types and values between dialects.

    ``convert_value`` never raises on bad input. Unparsable text bound
    for a numeric column becomes ``0``; each such fallback is logged
    and counted in ``fallback_count`` so data-quality problems stay
    visible.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _logger
        self.fallback_count = 0

    def type_class(self, type_name: str, dialect: Dialect | None = None) -> TypeClass:
        """Classify a type; unknown types are treated as text."""
        base = extract_base_type(type_name)
        if base == "TINYINT" and extract_length(type_name) == 1:
            return TypeClass.BOOLEAN
        if dialect is not None:
            return _SOURCE_TYPES[dialect].get(base, TypeClass.TEXT)
        return _MYSQL_TYPES.get(base) or _SQLITE_TYPES.get(base, TypeClass.TEXT)

    def map_type(
        self,
        source_type: str,
        source_dialect: Dialect,
        target_dialect: Dialect,
    ) -> str:
        """Map a column type declared in one dialect to the other.

        Args:
            source_type: Declared type, with or without length/modifiers.
            source_dialect: Dialect the type was declared in.
            target_dialect: Dialect to translate to.

        Returns:
            The target type. Same-dialect mapping returns the declared
            type unchanged; unknown types map to the generic text type.
        """
        if source_dialect is target_dialect:
            return source_type.strip().upper() if source_type else "TEXT"
        type_class = self.type_class(source_type, source_dialect)
        return _TARGET_TYPES[target_dialect][type_class]

    def convert_value(self, value: Any, source_type: str, target_type: str) -> Any:
        """Convert a value for storage in a column of ``target_type``.

        Rules:
            - None stays None; same-class values pass through.
            - Numbers and booleans bound for text are stringified.
            - Text bound for a number is parsed; failures become 0.
            - Booleans bound for integers become 1/0.
            - Binary values pass through. Binary bound for a non-binary
              column is logged, since ``compatibility_info`` reports it
              as incompatible.
        """
        if value is None:
            return None

        source = self.type_class(source_type)
        target = self.type_class(target_type)

        if isinstance(value, (bytes, bytearray, memoryview)) or source is TypeClass.BINARY:
            if target is not TypeClass.BINARY:
                self._logger.warning(
                    "Binary value passed through unchanged for %s column", target_type
                )
            return value

        if source is target and target is not TypeClass.TEXT and not isinstance(value, str):
            return value

        if target is TypeClass.INTEGER:
            return self._to_integer(value, target_type)
        if target is TypeClass.BOOLEAN:
            return self._to_boolean(value, target_type)
        if target is TypeClass.REAL:
            return self._to_real(value, target_type)
        if target is TypeClass.TEMPORAL:
            return self._to_temporal(value)
        if target is TypeClass.BINARY:
            return str(value).encode("utf-8")
        return self._to_text(value)

    def compatibility_info(self, source_type: str, target_type: str) -> TypeCompatibility:
        """Describe the risks of converting ``source_type`` to ``target_type``."""
        source = self.type_class(source_type)
        target = self.type_class(target_type)
        compatible, lossless = True, True
        warnings: list[str] = []

        if source is TypeClass.BINARY and target is not TypeClass.BINARY:
            compatible = False
            warnings.append(f"Binary data cannot be converted to {extract_base_type(target_type)}")
        if source is TypeClass.REAL and target in (TypeClass.INTEGER, TypeClass.BOOLEAN):
            lossless = False
            warnings.append("Floating point to integer conversion may lose precision")
        if source in (TypeClass.TEXT, TypeClass.TEMPORAL) and target in _NUMERIC:
            lossless = False
            warnings.append("Text to numeric conversion may fail; unparsable values become 0")
        if source is TypeClass.INTEGER and target is TypeClass.BOOLEAN:
            lossless = False
            warnings.append("Integers other than 0 and 1 collapse to a boolean")
        if source is TypeClass.TEXT and target is TypeClass.TEMPORAL:
            lossless = False
            warnings.append("Text that is not a valid date is stored as-is")

        source_length = extract_length(source_type)
        target_length = extract_length(target_type)
        if (
            source is TypeClass.TEXT
            and target is TypeClass.TEXT
            and target_length is not None
            and (source_length is None or source_length > target_length)
        ):
            lossless = False
            warnings.append(f"Text longer than {target_length} characters may be truncated")

        return TypeCompatibility(compatible=compatible, lossless=lossless, warnings=warnings)

    def column_sql(
        self,
        name: str,
        declared_type: str,
        dialect: Dialect,
        *,
        primary_key: bool = False,
        auto_increment: bool = False,
        nullable: bool = True,
        default: Any = _NO_DEFAULT,
        unique: bool = False,
    ) -> str:
        """Render one column definition.

        ``declared_type`` is written in MySQL terms and mapped when the
        target is SQLite.
        """
        if dialect is Dialect.SQLITE:
            column_type = self.map_type(declared_type, Dialect.MYSQL, Dialect.SQLITE)
        else:
            column_type = declared_type.upper()

        definition = f"{name} {column_type}"
        if primary_key:
            if dialect is Dialect.SQLITE:
                definition += " PRIMARY KEY"
                if auto_increment:
                    definition += " AUTOINCREMENT"
            else:
                definition += " NOT NULL"
                if auto_increment:
                    definition += " AUTO_INCREMENT"
                definition += " PRIMARY KEY"
            return definition

        if not nullable:
            definition += " NOT NULL"
        if default is not _NO_DEFAULT:
            definition += f" DEFAULT {self._default_literal(default)}"
        if unique:
            definition += " UNIQUE"
        return definition

    # ------------------------------------------------------------------

    def _fallback(self, value: Any, target_type: str, zero: int | float) -> int | float:
        self.fallback_count += 1
        self._logger.warning(
            "Could not convert %r to %s; storing %r instead", value, target_type, zero
        )
        return zero

    def _to_integer(self, value: Any, target_type: str) -> int:
        if isinstance(value, (bool, int)):
            return int(value)
        number = value
        if not isinstance(value, (float, Decimal)):
            try:
                number = Decimal(str(value).strip())
            except (InvalidOperation, ValueError):
                return int(self._fallback(value, target_type, 0))
        if not _is_finite(number):
            return int(self._fallback(value, target_type, 0))
        return int(number)

    def _to_real(self, value: Any, target_type: str) -> float:
        if isinstance(value, (bool, int, float, Decimal)):
            return float(value)
        try:
            return float(str(value).strip())
        except ValueError:
            return float(self._fallback(value, target_type, 0.0))

    def _to_boolean(self, value: Any, target_type: str) -> int:
        if isinstance(value, (float, Decimal)) and _is_nan(value):
            return int(self._fallback(value, target_type, 0))
        if isinstance(value, (bool, int, float, Decimal)):
            return 1 if value else 0
        text = str(value).strip().lower()
        if text in _TRUE_WORDS:
            return 1
        if text in _FALSE_WORDS:
            return 0
        return 1 if self._to_integer(value, target_type) else 0

    def _to_temporal(self, value: Any) -> Any:
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(timezone.utc).replace(tzinfo=None)
            return value.strftime("%Y-%m-%d %H:%M:%S")
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            moment = datetime.fromtimestamp(value, tz=timezone.utc)
            return moment.strftime("%Y-%m-%d %H:%M:%S")
        return str(value)

    def _to_text(self, value: Any) -> str:
        if isinstance(value, str):
            return value
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, (bool, dict, list, tuple)):
            return json.dumps(value, ensure_ascii=False, default=str)
        return str(value)

    @staticmethod
    def _default_literal(default: Any) -> str:
        if default is None:
            return "NULL"
        if isinstance(default, bool):
            return "1" if default else "0"
        if isinstance(default, (int, float)):
            return str(default)
        if default == "CURRENT_TIMESTAMP":
            return default
        return "'" + str(default).replace("'", "''") + "'"
