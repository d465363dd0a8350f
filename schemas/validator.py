"""
Schema validation utilities for exported result files.

Checks that a DataFrame carries the columns (and compatible column types)
declared by a Pydantic schema before it is written, so downstream readers
of the CSV can rely on its layout.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple, Type, get_args

import pandas as pd
from pydantic import BaseModel


class SchemaValidationError(Exception):
    """Raised when schema validation fails."""

    def __init__(
        self,
        message: str,
        missing_columns: Optional[List[str]] = None,
        type_mismatches: Optional[Dict[str, Tuple[str, str]]] = None,
    ):
        super().__init__(message)
        self.missing_columns = missing_columns or []
        self.type_mismatches = type_mismatches or {}


def pandas_dtype_to_python_type(dtype) -> str:
    """Convert pandas dtype to a simplified type string."""
    dtype_str = str(dtype)

    if dtype_str.startswith('int') or dtype_str.startswith('Int'):
        return 'int'
    elif dtype_str.startswith('float'):
        return 'float'
    elif dtype_str in ('object', 'string'):
        return 'str'
    elif dtype_str in ('bool', 'boolean'):
        return 'bool'
    return dtype_str


def pydantic_type_to_string(annotation) -> str:
    """Convert a field annotation (Optional[X] included) to a type string."""
    candidates = [a for a in get_args(annotation) if a is not type(None)] or [annotation]
    return getattr(candidates[0], '__name__', str(candidates[0]))


def types_compatible(pandas_type: str, pydantic_type: str) -> bool:
    """
    Check if pandas type is compatible with pydantic type.

    Lenient: pandas stores nullable integers as float64 and all-None
    columns as object.
    """
    if pandas_type == pydantic_type:
        return True

    # float in pandas can represent nullable int
    if pandas_type == 'float' and pydantic_type == 'int':
        return True

    # object columns of all None/NaN fit any type
    if pandas_type == 'str':
        return True

    return False


def find_type_mismatches(
    df: pd.DataFrame,
    schema: Type[BaseModel],
) -> Dict[str, Tuple[str, str]]:
    """
    Columns whose dtype does not fit the schema annotation.

    Returns:
        {column: (pandas type, expected type)} for present columns only
    """
    mismatches = {}
    for name, info in schema.model_fields.items():
        if name not in df.columns:
            continue
        got = pandas_dtype_to_python_type(df[name].dtype)
        expected = pydantic_type_to_string(info.annotation)
        if not types_compatible(got, expected):
            mismatches[name] = (got, expected)
    return mismatches


def validate_dataframe(
    df: pd.DataFrame,
    schema: Type[BaseModel],
    strict: bool = False,
) -> List[str]:
    """
    Validate a DataFrame against a Pydantic schema.

    Args:
        df: DataFrame to validate
        schema: Pydantic model class defining expected columns
        strict: If True, fail on extra columns not in schema

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    fields = schema.model_fields

    missing = sorted(set(fields) - set(df.columns))
    if missing:
        errors.append(f"Missing required columns: {missing}")

    extra = sorted(set(df.columns) - set(fields))
    if extra and strict:
        errors.append(f"Unexpected columns (strict mode): {extra}")

    mismatches = find_type_mismatches(df, schema)
    if mismatches:
        details = [f"{name}: got {got}, expected {expected}" for name, (got, expected) in mismatches.items()]
        errors.append(f"Type mismatches: {'; '.join(details)}")

    return errors


def validated_df_to_csv(
    df: pd.DataFrame,
    file_path: Path,
    schema: Type[BaseModel],
    strict: bool = False,
    **to_csv_kwargs,
) -> None:
    """
    Validate a DataFrame against its schema and write to CSV.

    Raises:
        SchemaValidationError: If validation fails (nothing is written)
    """
    errors = validate_dataframe(df, schema, strict=strict)
    if errors:
        raise SchemaValidationError(
            f"Schema validation failed for '{Path(file_path).name}':\n"
            + "\n".join(f"  - {e}" for e in errors),
            missing_columns=sorted(set(schema.model_fields) - set(df.columns)),
            type_mismatches=find_type_mismatches(df, schema),
        )

    Path(file_path).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(file_path, **to_csv_kwargs)
