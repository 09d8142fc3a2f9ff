from .errors import (
    AlreadyBoundError,
    DBTableError,
    DuplicateRegistrationError,
    MismatchedConditionsError,
    NoSuchFieldError,
    TableNotBoundError,
    TooManyFieldsError,
    TooManyMultiplesError,
    UnknownDatabaseError,
)
from .fields import FieldDescriptor, parse_field_list
from .runtime.backends import (
    Msql2Backend,
    MsqlBackend,
    SQLiteBackend,
    build_type_registry,
    create_backend,
    register_backend,
)
from .runtime.datasource import DatabaseCatalog, DataSourceConfig, open_sqlite_connection
from .runtime.sql_recorder import record_sql
from .table import Table
from .types import TypeBehavior, TypeDescriptor, TypeRegistry

__version__ = "0.4.0"

__all__ = [
    "AlreadyBoundError",
    "DBTableError",
    "DataSourceConfig",
    "DatabaseCatalog",
    "DuplicateRegistrationError",
    "FieldDescriptor",
    "MismatchedConditionsError",
    "Msql2Backend",
    "MsqlBackend",
    "NoSuchFieldError",
    "SQLiteBackend",
    "Table",
    "TableNotBoundError",
    "TooManyFieldsError",
    "TooManyMultiplesError",
    "TypeBehavior",
    "TypeDescriptor",
    "TypeRegistry",
    "UnknownDatabaseError",
    "build_type_registry",
    "create_backend",
    "open_sqlite_connection",
    "parse_field_list",
    "record_sql",
    "register_backend",
]
