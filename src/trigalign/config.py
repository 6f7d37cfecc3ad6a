from typing import Any, Self
import logging
from dataclasses import dataclass, field
import yaml

from trigalign.readers.readers import RecordingReader
from trigalign.sync.synchronizer import SyncSettings


@dataclass
class TrigalignConfig():
    """Everything needed to read one recording and synchronize its events."""

    reader: RecordingReader
    sync_settings: SyncSettings = field(default_factory=SyncSettings)
    info: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_yaml_and_reader_overrides(cls, config_yaml: str = None, reader_overrides: list[str] = []) -> Self:
        """Load config from a YAML file, if given, then apply "name=value" overrides to the reader args."""
        if config_yaml:
            with open(config_yaml) as f:
                config = yaml.safe_load(f) or {}
        else:
            config = {}

        # samples_csv=real.csv
        reader_config = config.get("reader", {}) or {}
        reader_args = reader_config.get("args", {}) or {}
        for override in reader_overrides or []:
            (property, value) = override.split("=", maxsplit=1)
            reader_args[property] = value
        reader_config["args"] = reader_args
        config["reader"] = reader_config

        return cls.from_dict(config)

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> Self:
        reader = configure_reader(config.get("reader", {}) or {})
        sync_settings = SyncSettings.from_dict(config.get("sync", {}) or {})
        return TrigalignConfig(
            reader=reader,
            sync_settings=sync_settings,
            info=config.get("info", {}) or {}
        )


def configure_reader(reader_config: dict[str, Any]) -> RecordingReader:
    """Instantiate the configured reader by dynamic import."""
    reader_class = reader_config.get("class", "trigalign.readers.csv.CsvRecordingReader")
    reader_args = reader_config.get("args", {}) or {}
    external_package_path = reader_config.get("package_path", None)
    logging.info(f"Using reader {reader_class}")
    return RecordingReader.from_dynamic_import(reader_class, external_package_path, **reader_args)
