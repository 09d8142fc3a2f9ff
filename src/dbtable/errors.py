from __future__ import annotations


class DBTableError(Exception):
    """Base class for every failure raised by dbtable itself."""


class UnknownDatabaseError(DBTableError, LookupError):
    pass


class TableNotBoundError(DBTableError, RuntimeError):
    pass


class UnnamedTableError(DBTableError, RuntimeError):
    pass


class AlreadyBoundError(DBTableError, RuntimeError):
    pass


class TypeNotBoundError(DBTableError, RuntimeError):
    pass


class NoSuchFieldError(DBTableError, KeyError):
    def __str__(self) -> str:
        # KeyError repr-quotes its message
        return str(self.args[0]) if self.args else ""


class ConditionError(DBTableError, ValueError):
    pass


class MismatchedConditionsError(ConditionError):
    pass


class TooManyMultiplesError(ConditionError):
    pass


class TooManyFieldsError(ConditionError):
    pass


class EmptyMultipleError(ConditionError):
    pass


class DuplicateRegistrationError(DBTableError, ValueError):
    pass


class UnknownBackendKindError(DBTableError, LookupError):
    pass


class UnsupportedTypeError(DBTableError, LookupError):
    pass


class TypeSpecError(DBTableError, ValueError):
    pass


class TypeDefinitionError(DBTableError, ValueError):
    pass


class FieldDefinitionError(DBTableError, ValueError):
    pass


__all__ = [
    "AlreadyBoundError",
    "ConditionError",
    "DBTableError",
    "DuplicateRegistrationError",
    "EmptyMultipleError",
    "FieldDefinitionError",
    "MismatchedConditionsError",
    "NoSuchFieldError",
    "TableNotBoundError",
    "TooManyFieldsError",
    "TooManyMultiplesError",
    "TypeDefinitionError",
    "TypeNotBoundError",
    "TypeSpecError",
    "UnknownBackendKindError",
    "UnknownDatabaseError",
    "UnnamedTableError",
    "UnsupportedTypeError",
]
