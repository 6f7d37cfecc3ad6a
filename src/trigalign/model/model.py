import sys
from importlib import import_module
from typing import Any, Self


class DynamicImport():
    """Mixin for classes that can be chosen by name at runtime, as from a YAML config."""

    @classmethod
    def from_dynamic_import(cls, import_spec: str, external_package_path: str = None, **kwargs) -> Self:
        """Import a class by its dotted name, like "trigalign.readers.csv.CsvRecordingReader", and instantiate it.

        kwargs are passed to the class constructor as-is.
        Config values often arrive as strings, so constructors should convert their own args.

        external_package_path is for classes that weren't installed with pip or similar.
        It's added to sys.path only while importing, and sys.path is restored afterwards.

        Raises ValueError if import_spec isn't a dotted name, or if the imported class isn't a subclass of cls.
        """
        (module_name, _, class_name) = import_spec.rpartition(".")
        if not module_name or not class_name:
            raise ValueError(f"Expected a dotted module.ClassName, got: {import_spec}")

        original_sys_path = sys.path
        if external_package_path:
            sys.path = original_sys_path + [external_package_path]
        try:
            imported_module = import_module(module_name)
        finally:
            sys.path = original_sys_path

        imported_class = getattr(imported_module, class_name)
        if not issubclass(imported_class, cls):
            raise ValueError(f"Class {import_spec} is not a {cls.__name__}.")
        return imported_class(**kwargs)


class InteropData():
    """Utility methods to convert instances to and from standard types, for interop with other environments.

    The goal of this is to be able to read and write instances of InteropData classes as JSON or similar,
    in such a way that the results could be picked up by other environments, say Matlab and EEGLAB.
    Automatic, field-by-field serializers would expose implementation details that don't make sense
    in other environments, like numpy array details.  To avoid this, InteropData instances must
    convert themselves to and from standard types that most environments (or JSON) can understand, like
    int, float, str, dict, and list.
    """

    def to_interop(self) -> Any:
        """Convert this instance to standard types / collections like int, float, str, dict, or list."""
        raise NotImplementedError  # pragma: no cover

    @classmethod
    def from_interop(cls, interop) -> Self:
        """Create a new instance of this class from standard types / collections, as from to_interop()."""
        raise NotImplementedError  # pragma: no cover
