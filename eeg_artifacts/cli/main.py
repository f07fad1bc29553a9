"""
Main CLI entry point for EEG Artifacts

This module provides the command-line interface: load a recording (or
synthesize one), detect artifacts, optionally filter them by strength and
reject the contaminated subepochs, then write the cleaned signal and a
JSON report.
"""

import argparse
import logging
import sys

from ..core.config import EPOCH_SEC, STEP_SIZE_SEC, DetectionConfig, validate_config
from ..core.data_types import DetectionMode
from ..core.exceptions import EEGArtifactError
from ..record import EEGRecord
from ..utils.fake_data import synthesize_eeg
from ..utils.helpers import save_report, setup_logging


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser"""
    parser = argparse.ArgumentParser(
        description="EEG Artifacts - change-point artifact detection and epoch rejection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Detect artifacts in 30s steps and write a report
  python -m eeg_artifacts --csv night.csv --signals signals.csv --stepwise --report report.json

  # Keep the strongest artifacts only and write the cleaned recording
  python -m eeg_artifacts --csv night.csv --threshold 0.2 --reject --out cleaned.csv

  # Try the pipeline on synthetic data
  python -m eeg_artifacts --fake --duration 120 --reject
        """
    )

    # Data source (mutually exclusive)
    source_group = parser.add_mutually_exclusive_group(required=True)
    source_group.add_argument("--csv",
                              help="CSV recording with Time first and one column per channel")
    source_group.add_argument("--fake", action="store_true",
                              help="Use a synthetic recording with injected artifacts")

    parser.add_argument("--signals",
                        help="Signals CSV whose Label column names the channels")
    parser.add_argument("--duration", type=float, default=120.0,
                        help="Synthetic recording length in seconds (default: 120)")
    parser.add_argument("--fs", type=float, default=100.0,
                        help="Synthetic sampling frequency in Hz (default: 100)")

    # Detection parameters
    parser.add_argument("--stepwise", action="store_true",
                        help="Detect segment by segment instead of over the whole recording")
    parser.add_argument("--step-size", type=float, default=STEP_SIZE_SEC,
                        help=f"Stepwise segment length in seconds (default: {STEP_SIZE_SEC})")
    parser.add_argument("--alpha", type=float,
                        help="Collective anomaly threshold (default: bound to the mode)")
    parser.add_argument("--beta", type=float,
                        help="Point anomaly threshold (default: bound to the mode)")
    parser.add_argument("--mode", choices=[m.value for m in DetectionMode],
                        default=DetectionMode.MEAN.value,
                        help="Statistic the detector looks for (default: mean)")
    parser.add_argument("--jobs", type=int, default=1,
                        help="Parallel workers for stepwise detection (default: 1, -1 = all cores)")
    parser.add_argument("--epoch", type=float, default=EPOCH_SEC,
                        help=f"Epoch length in seconds (default: {EPOCH_SEC})")

    # Post-processing
    parser.add_argument("--threshold", type=float,
                        help="Drop anomalies whose normalized strength is below this value")
    parser.add_argument("--reject", action="store_true",
                        help="Remove contaminated subepochs from the recording")

    # Outputs
    parser.add_argument("--out",
                        help="Write the (cleaned) recording to this CSV file")
    parser.add_argument("--report",
                        help="Write the artifact analysis to this JSON file")

    # Logging
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable verbose logging")

    return parser


def config_from_args(args: argparse.Namespace) -> DetectionConfig:
    """Build and validate the detection configuration"""
    config = DetectionConfig(
        epoch_sec=args.epoch,
        stepwise=args.stepwise,
        step_size=args.step_size,
        alpha=args.alpha,
        beta=args.beta,
        mode=args.mode,
        threshold=args.threshold,
        n_jobs=args.jobs,
    )
    validate_config(config)
    return config


def load_record(args: argparse.Namespace, config: DetectionConfig) -> EEGRecord:
    if args.fake:
        logging.info("Using synthetic EEG data")
        data, _ = synthesize_eeg(duration=args.duration, fs=args.fs)
        return EEGRecord(data, fs=args.fs, epoch_sec=config.epoch_sec)
    return EEGRecord.from_csv(args.csv, args.signals, epoch_sec=config.epoch_sec)


def run_pipeline(record: EEGRecord, config: DetectionConfig) -> None:
    """Detection and strength filtering, in place on record"""
    if config.stepwise:
        record.artf_stepwise(step_size=config.step_size, alpha=config.alpha,
                             mode=config.mode, n_jobs=config.n_jobs)
    else:
        record.artf(alpha=config.alpha, beta=config.beta, mode=config.mode)

    if config.threshold is not None:
        record.sfilter(config.threshold)


def print_summary(record: EEGRecord, cleaned: EEGRecord = None) -> None:
    store = record.anomalies
    channels = sorted(record.contaminated_channels())
    print(f"Channels:        {', '.join(record.channels)}")
    print(f"Samples:         {record.n_samples} ({record.duration:.1f}s at {record.fs}Hz)")
    print(f"Collective:      {len(store.collective)} anomalies")
    print(f"Point:           {len(store.point)} anomalies")
    print(f"Contaminated:    {', '.join(channels) if channels else 'none'}")
    if cleaned is not None:
        print(f"After rejection: {cleaned.n_samples}/{record.n_samples} samples kept")


def main(argv=None) -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        config = config_from_args(args)
        record = load_record(args, config)
        run_pipeline(record, config)

        if args.report:
            save_report(record, args.report)

        cleaned = None
        if args.reject:
            if record.anomalies.is_empty:
                logging.info("No artifacts found; nothing to reject")
                cleaned = record.copy()
            else:
                cleaned = record.artf_reject()

        print_summary(record, cleaned)

        if args.out:
            (cleaned or record).save_csv(args.out)

        return 0

    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 0
    except (EEGArtifactError, FileNotFoundError) as e:
        logging.error(str(e))
        return 1
    except Exception as e:
        logging.error(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
