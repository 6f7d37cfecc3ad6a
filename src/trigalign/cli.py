import sys
import logging
from argparse import ArgumentParser
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from trigalign.__about__ import __version__ as trigalign_version
from trigalign.config import TrigalignConfig
from trigalign.model.recording import SyncResult
from trigalign.sync.synchronizer import synchronize
from trigalign.sync_file import SyncFile
from trigalign.plotters.sync_plotter import SyncPlotter

version_string = f"trigalign {trigalign_version}"


def set_up_logging(level: str = "INFO"):
    """Send log messages at or above the given level to stdout, replacing any existing root handlers."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True
    )
    logging.info(version_string)


def run_convert(
    result_file: str,
    trigalign_config: TrigalignConfig,
    include_samples: bool = False
) -> SyncResult:
    """Read the configured recording, synchronize its events, and write the result to a file."""
    with trigalign_config.reader as reader:
        recording = reader.read()

    result = synchronize(recording, trigalign_config.sync_settings)

    with SyncFile.for_file_suffix(result_file, include_samples) as sync_file:
        sync_file.append_result(result)
    return result


def run_plot(
    result_file: str,
    figure_file: str,
    trigalign_config: TrigalignConfig,
    include_samples: bool = False
) -> SyncResult:
    """Like run_convert(), above, but also save a figure comparing the trigger channel before and after.

    The trigger channel gets modified in place during sync, so this copies it first.
    """
    with trigalign_config.reader as reader:
        recording = reader.read()

    trigger_index = recording.find_channel(trigalign_config.sync_settings.trigger_label)
    if trigger_index is None:
        original_trigger = np.zeros(recording.sample_count())
    else:
        original_trigger = recording.samples[trigger_index, :].astype(float)
    event_table = recording.event_table.copy()

    result = synchronize(recording, trigalign_config.sync_settings)

    with SyncFile.for_file_suffix(result_file, include_samples) as sync_file:
        sync_file.append_result(result)

    title = trigalign_config.info.get("name", Path(result_file).stem)
    SyncPlotter().save(figure_file, original_trigger, event_table, result, title)
    logging.info(f"Saved figure: {figure_file}")
    return result


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = ArgumentParser(description="Reconcile a recording's trigger channel with its logged events.")
    parser.add_argument("mode",
                        type=str,
                        choices=["convert", "plot"],
                        help="mode to run in: convert to a result file only, or also plot a figure")
    parser.add_argument("--config", '-c',
                        type=str,
                        default=None,
                        help="Name of the config YAML file, optional when --reader gives everything the reader needs")
    parser.add_argument("--reader", '-r',
                        type=str,
                        nargs="+",
                        help="One or more reader args overrides, like: --reader arg_name=value arg_name=value ...")
    parser.add_argument("--result-file", '-f',
                        type=str,
                        required=True,
                        help="JSON result file to write, like result.json")
    parser.add_argument("--figure-file", '-g',
                        type=str,
                        default=None,
                        help="Image file to write in plot mode, defaults to the result file name with .png")
    parser.add_argument("--include-samples",
                        action="store_true",
                        help="Also write corrected samples to the result file")
    parser.add_argument("--log-level", '-l',
                        type=str,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        default="INFO",
                        help="Minimum level of log messages to print")
    parser.add_argument("--version", "-v", action="version", version=version_string)

    cli_args = parser.parse_args(argv)
    set_up_logging(cli_args.log_level)

    # Plot failures are less severe, since the result file may already be written.
    error_exit_codes = {"convert": 2, "plot": 1}
    try:
        trigalign_config = TrigalignConfig.from_yaml_and_reader_overrides(
            config_yaml=cli_args.config,
            reader_overrides=cli_args.reader
        )
        match cli_args.mode:
            case "convert":
                run_convert(cli_args.result_file, trigalign_config, cli_args.include_samples)
            case "plot":
                figure_file = cli_args.figure_file or Path(cli_args.result_file).with_suffix(".png").as_posix()
                run_plot(cli_args.result_file, figure_file, trigalign_config, cli_args.include_samples)
        exit_code = 0
    except Exception:
        logging.error(f"Error running {cli_args.mode}:", exc_info=True)
        exit_code = error_exit_codes[cli_args.mode]

    if exit_code:
        logging.error("Completed with errors.")
    else:
        logging.info(f"OK, wrote {cli_args.result_file}")

    return exit_code
