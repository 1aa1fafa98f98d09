"""Data validator for catalog DataFrames."""

import logging

import pandas as pd

logger = logging.getLogger(__name__)


class DataValidator:
    """Validates catalog data before matching."""

    def validate_catalog(
        self, df: pd.DataFrame, description_field: str, source: str = ""
    ) -> pd.DataFrame:
        """Validate a catalog DataFrame.

        Args:
            df: DataFrame to validate
            description_field: Column holding the descriptions to match
            source: Source identifier for logging (e.g., file path)

        Returns:
            Validated DataFrame (same as input)

        Note:
            Validation errors are logged as warnings but do not stop processing.
            Rows with blank descriptions are dropped later by the matcher.
        """
        source_info = f" ({source})" if source else ""

        if len(df) == 0:
            logger.warning(f"catalog has no rows{source_info}")
            return df

        if description_field not in df.columns:
            logger.warning(
                f"catalog missing description column '{description_field}'{source_info}: "
                f"available columns {list(df.columns)}"
            )
            return df

        descriptions = df[description_field]
        blank = descriptions.isna() | (descriptions.astype(str).str.strip() == "")
        if blank.any():
            logger.warning(
                f"catalog has {int(blank.sum())} rows with blank '{description_field}'{source_info}"
            )

        duplicated = descriptions[~blank].duplicated()
        if duplicated.any():
            logger.warning(
                f"catalog has {int(duplicated.sum())} duplicated "
                f"'{description_field}' values{source_info}"
            )

        return df
