"""Catalog loading from CSV and spreadsheet files."""

from pathlib import Path
from typing import Any

import pandas as pd

from catalog_match.analysis.validation import DataValidator

CSV_EXTENSIONS = {".csv"}
EXCEL_EXTENSIONS = {".xlsx", ".xls"}


def read_catalog(path: Path) -> pd.DataFrame:
    """Read a catalog file into a DataFrame.

    CSV cells are read as text with header and value whitespace trimmed;
    spreadsheets use their first sheet.

    Args:
        path: Path to a .csv, .xlsx or .xls file

    Returns:
        Loaded DataFrame

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file extension is not supported
    """
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")

    suffix = path.suffix.lower()
    if suffix in CSV_EXTENSIONS:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
        if not df.empty:
            df = df.apply(lambda column: column.str.strip())
    elif suffix in EXCEL_EXTENSIONS:
        df = pd.read_excel(path, sheet_name=0)
    else:
        raise ValueError(f"Unsupported catalog format: {path.suffix} ({path})")

    df.columns = [str(column).strip() for column in df.columns]
    return df


def dataframe_to_records(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a DataFrame to records, turning missing cells into None."""
    return df.astype(object).where(df.notna(), None).to_dict(orient="records")


def load_records(
    path: Path,
    description_field: str | None = None,
    validator: DataValidator | None = None,
) -> list[dict[str, Any]]:
    """Load a catalog file as a list of records.

    Args:
        path: Catalog file path
        description_field: If given, the column must exist and is validated
        validator: Validator used for warnings. Defaults to DataValidator().

    Returns:
        One mapping per row, keyed by column name.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the format is unsupported or the description column is missing
    """
    df = read_catalog(path)

    if description_field is not None:
        if description_field not in df.columns:
            raise ValueError(
                f"{path.name} missing description column '{description_field}'. "
                f"Available columns: {', '.join(map(str, df.columns))}"
            )
        (validator or DataValidator()).validate_catalog(df, description_field, source=str(path))

    return dataframe_to_records(df)
