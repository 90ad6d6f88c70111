"""Dataset builder for uploading tabular data to Fuusor."""

import datetime
import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

from .exceptions import ConfigurationError, NotFoundError, ValidationError
from .models import (
    DataSetData, DataSetOptions, DimensionField, DimensionFieldItem,
    DimensionHierarchy, DimensionHierarchyItem, Field, FieldType, Period, Row
)
from .utils import is_number, is_row_value, serialize_dataset, validate_date

logger = logging.getLogger(__name__)

# Accepted spellings for dataset option keys
_OPTION_KEYS = {
    "groupId": "group_id",
    "datasetId": "dataset_id",
    "datasetName": "dataset_name",
    "datasetType": "dataset_type",
    "primaryDate": "primary_date",
}
_REQUIRED_OPTIONS = ("group_id", "dataset_id", "dataset_name", "dataset_type")

def _is_missing(value: Any) -> bool:
    return value is None or value == ""

def _coerce_options(options: Union[DataSetOptions, Mapping[str, Any], None],
                    overrides: Dict[str, Any]) -> DataSetOptions:
    """Build DataSetOptions from a dataclass, a dict or keyword arguments."""
    if isinstance(options, DataSetOptions):
        values = dict(vars(options))
    else:
        values = {}
        for key, value in dict(options or {}).items():
            values[_OPTION_KEYS.get(key, key)] = value

    for key, value in overrides.items():
        values[_OPTION_KEYS.get(key, key)] = value

    unknown = set(values) - set(DataSetOptions.__dataclass_fields__)
    if unknown:
        raise ConfigurationError(f"Unknown dataset options: {', '.join(sorted(unknown))}")

    for key in _REQUIRED_OPTIONS:
        if _is_missing(values.get(key)):
            raise ConfigurationError(f"Missing dataset option {key}")

    return DataSetOptions(**values)

def _coerce_period(period: Any) -> Period:
    if isinstance(period, Period):
        return period
    if isinstance(period, Mapping):
        return Period(begin=period.get("begin"), end=period.get("end"))
    if isinstance(period, (tuple, list)) and len(period) == 2:
        return Period(begin=period[0], end=period[1])
    raise ConfigurationError(f"Incorrect period: {period!r}, use begin and end dates")

def _coerce_dimension_item(item: Any) -> DimensionFieldItem:
    if isinstance(item, DimensionFieldItem):
        item_id, name = item.id, item.name
    elif isinstance(item, Mapping):
        item_id, name = item.get("id"), item.get("name")
    else:
        raise ValidationError(f"Incorrect dimension item: {item!r}")

    if _is_missing(item_id) or _is_missing(name):
        raise ValidationError(
            f"Missing required properties for dimension item (id: {item_id}, name: {name})"
        )
    return DimensionFieldItem(id=item_id, name=name)

def _coerce_hierarchy_item(item: Any) -> DimensionHierarchyItem:
    if isinstance(item, DimensionHierarchyItem):
        item_id, name = item.id, item.name
    elif isinstance(item, Mapping):
        item_id, name = item.get("id"), item.get("name")
    else:
        raise ValidationError(f"Incorrect dimension hierarchy item: {item!r}")

    if _is_missing(item_id) or _is_missing(name):
        raise ValidationError(
            f"Missing required properties for dimension hierarchy item (id: {item_id}, name: {name})"
        )
    if isinstance(item, DimensionHierarchyItem):
        items, children = item.items, item.children
    else:
        items, children = item.get("items"), item.get("children")

    return DimensionHierarchyItem(
        id=item_id,
        name=name,
        items=list(items) if items is not None else None,
        children=[_coerce_hierarchy_item(child) for child in children]
        if children is not None else None,
    )

def _to_row_value(value: Any) -> Any:
    """Convert a pandas/numpy cell into a plain JSON-safe row value."""
    if value is None:
        return None
    if isinstance(value, (pd.Timestamp, datetime.datetime, datetime.date)):
        if pd.isna(value):
            return None
        return value.strftime("%Y-%m-%d")
    if not isinstance(value, str) and pd.api.types.is_scalar(value) and pd.isna(value):
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value

class DataSet:
    """
    Builder for a Fuusor dataset.

    A dataset collects field definitions, optional dimension hierarchies and
    data rows, validates them and uploads the whole set in one call. It is
    not safe for concurrent mutation.
    """

    def __init__(self, client, options: Union[DataSetOptions, Mapping[str, Any], None] = None,
                 **kwargs):
        """
        Initialize a dataset.

        Args:
            client: FuusorClient used for uploading
            options: DataSetOptions or a dict of dataset options
            **kwargs: Dataset options given as keyword arguments

        Raises:
            ConfigurationError: If required options are missing or malformed
        """
        if client is None:
            raise ConfigurationError("Missing client")

        options = _coerce_options(options, kwargs)

        if options.begin and _is_missing(options.end):
            raise ConfigurationError("Missing dataset option end although begin is set")
        if options.end and _is_missing(options.begin):
            raise ConfigurationError("Missing dataset option begin although end is set")

        if options.begin and options.end:
            if not validate_date(options.begin):
                raise ConfigurationError(
                    f"Incorrect dataset option begin format: {options.begin!r}, use YYYY-MM-DD"
                )
            if not validate_date(options.end):
                raise ConfigurationError(
                    f"Incorrect dataset option end format: {options.end!r}, use YYYY-MM-DD"
                )

        if options.begin and _is_missing(options.primary_date):
            raise ConfigurationError(
                "Missing dataset option primary_date (required when begin and end is set)"
            )

        self.client = client
        self.options = options
        self.data = DataSetData()

        if options.periods is not None:
            self.set_periods(options.periods)

    def __repr__(self) -> str:
        return (f"DataSet(dataset_id={self.options.dataset_id!r}, "
                f"rows={len(self.data.rows)})")

    @property
    def rows(self) -> List[Row]:
        return self.data.rows

    def set_periods(self, periods: Iterable[Any]) -> "DataSet":
        """
        Define financial year periods. Without periods, January to December is used.

        Args:
            periods: Period objects, ``{"begin": ..., "end": ...}`` dicts or
                ``(begin, end)`` tuples with YYYY-MM-DD dates

        Returns:
            The dataset itself
        """
        validated = []
        for period in periods:
            period = _coerce_period(period)
            if not validate_date(period.begin):
                raise ConfigurationError(
                    f"Incorrect period begin format: {period.begin!r}, use YYYY-MM-DD"
                )
            if not validate_date(period.end):
                raise ConfigurationError(
                    f"Incorrect period end format: {period.end!r}, use YYYY-MM-DD"
                )
            validated.append(Period(begin=period.begin, end=period.end))

        self.options.periods = validated
        return self

    # ------------------------------------------------------------------
    # Field definitions
    # ------------------------------------------------------------------
    def define_field(self, field_type: Union[FieldType, str], id: str, name: str,
                     items: Optional[Iterable[Any]] = None) -> "DataSet":
        """
        Define a field of the data rows.

        Args:
            field_type: One of ``dimension``, ``date``, ``value``, ``description``
            id: Field name in the row dicts
            name: Field display name
            items: Items of a ``dimension`` field (``id`` and ``name`` pairs),
                used as automatic filters in reports
        """
        try:
            field_type = FieldType(field_type)
        except ValueError:
            raise ValidationError(f"Unknown field type for define_field: {field_type}")

        if field_type is FieldType.DIMENSION:
            return self.define_dimension_field(id, name, items)
        if field_type is FieldType.DATE:
            return self.define_date_field(id, name)
        if field_type is FieldType.VALUE:
            return self.define_value_field(id, name)
        return self.define_description_field(id, name)

    def define_dimension_field(self, id: str, name: str,
                               items: Optional[Iterable[Any]] = None) -> "DataSet":
        items = [_coerce_dimension_item(item) for item in (items or [])]
        self.data.dimension_fields.append(DimensionField(id=id, name=name, items=items))
        return self

    def define_date_field(self, id: str, name: str) -> "DataSet":
        self.data.date_fields.append(Field(id=id, name=name))
        return self

    def define_value_field(self, id: str, name: str) -> "DataSet":
        self.data.value_fields.append(Field(id=id, name=name))
        return self

    def define_description_field(self, id: str, name: str) -> "DataSet":
        self.data.description_fields.append(Field(id=id, name=name))
        return self

    def get_dimension_field(self, dimension_id: str) -> DimensionField:
        for dimension in self.data.dimension_fields:
            if dimension.id == dimension_id:
                return dimension
        raise NotFoundError(f"Unknown dimension id: {dimension_id}")

    def push_dimension_field_dimension(self, dimension_id: str, item: Any) -> "DataSet":
        """
        Add an item to a previously defined dimension field.

        Args:
            dimension_id: Dimension field identifier
            item: DimensionFieldItem or dict with ``id`` and ``name``
        """
        item = _coerce_dimension_item(item)
        self.get_dimension_field(dimension_id).items.append(item)
        return self

    # ------------------------------------------------------------------
    # Hierarchies
    # ------------------------------------------------------------------
    def define_dimension_hierarchy(self, id: str, name: str, dimension_id: str) -> "DataSet":
        """
        Define an empty hierarchy for a dimension field.

        Args:
            id: Hierarchy id
            name: Hierarchy name
            dimension_id: Id of a previously defined dimension field

        Raises:
            NotFoundError: If the dimension field is not defined
        """
        self.get_dimension_field(dimension_id)
        self.data.dimension_hierarchies.append(
            DimensionHierarchy(id=id, name=name, dimension_id=dimension_id)
        )
        return self

    def get_dimension_hierarchy(self, hierarchy_id: str) -> DimensionHierarchy:
        for hierarchy in self.data.dimension_hierarchies:
            if hierarchy.id == hierarchy_id:
                return hierarchy
        raise NotFoundError(f"Unknown hierarchy id: {hierarchy_id}")

    def push_dimension_hierarchy_item(self, hierarchy_id: str, item: Any) -> "DataSet":
        """Append a tree node to an existing hierarchy."""
        hierarchy = self.get_dimension_hierarchy(hierarchy_id)
        hierarchy.items.append(_coerce_hierarchy_item(item))
        return self

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------
    def add_row(self, row: Mapping[str, Any]) -> "DataSet":
        """
        Add a data row.

        Values are only checked to be strings, numbers or None here; field
        specific rules are applied by :meth:`validate`. Numpy numbers become
        Python numbers and NaN or infinite floats become None.
        """
        new_row = {}
        for key, value in row.items():
            if not is_row_value(value):
                raise ValidationError(f"Incorrect row value for {key}: {value!r}")
            new_row[key] = _to_row_value(value)

        self.data.rows.append(new_row)
        return self

    def add_rows(self, rows: Iterable[Mapping[str, Any]]) -> "DataSet":
        for row in rows:
            self.add_row(row)
        return self

    def add_rows_from_dataframe(self, df: pd.DataFrame) -> "DataSet":
        """
        Add every row of a pandas DataFrame.

        Missing values become None, numpy scalars become Python numbers and
        dates become YYYY-MM-DD strings.

        Args:
            df: DataFrame whose columns are field ids
        """
        records = df.astype(object).to_dict(orient="records")
        for record in records:
            self.add_row({str(key): _to_row_value(value) for key, value in record.items()})

        logger.debug("Added %d rows from DataFrame to dataset '%s'",
                     len(records), self.options.dataset_id)
        return self

    def validate(self) -> None:
        """
        Check every row against the field types defined so far.

        Raises:
            ValidationError: On the first value breaking its field rule
        """
        value_fields = {f.id for f in self.data.value_fields}
        date_fields = {f.id for f in self.data.date_fields}

        for row in self.data.rows:
            for key, value in row.items():
                if key in value_fields:
                    if value is not None and not is_number(value):
                        raise ValidationError(
                            f"Value field expecting number or null. "
                            f"Incorrect row value for {key}: {value!r}"
                        )
                elif key in date_fields:
                    if value is not None and not validate_date(str(value)):
                        raise ValidationError(
                            f"Date field expecting YYYY-MM-DD formatted value or null. "
                            f"Incorrect row value for {key}: {value!r}"
                        )
                elif not is_row_value(value):
                    raise ValidationError(
                        f"Expecting string, number or null. Incorrect row value for {key}: {value!r}"
                    )

    def to_payload(self) -> Dict[str, Any]:
        """Return the upload payload with lower-cased top-level keys."""
        return serialize_dataset(self.options, self.data)

    def save(self) -> None:
        """
        Validate the dataset and upload it to Fuusor.

        Nothing is sent when validation fails.
        """
        self.validate()
        logger.info("Uploading dataset '%s' with %d rows",
                    self.options.dataset_id, len(self.data.rows))
        self.client.upload_dataset(self.to_payload())
