"""Main entry point for TechTimes"""
import argparse
import logging

from config import DATA_DIR, LOG_LEVEL
from techtimes.calculator import PerformanceCalculator
from techtimes.calendar_resolver import month_bounds, parse_month
from techtimes.aggregator import jobs_between
from techtimes.data_loader import DataLoader
from techtimes.job_storage import JobStorage
from techtimes.logging_config import setup_logging
from techtimes.models import MonthSnapshot, ValidationError
from techtimes.report_assembler import efficiency_display
from techtimes.report_generator import ReportGenerator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Generate a technician monthly performance report')
    parser.add_argument('--month', '-m', required=True, help='Month in YYYY-MM format')
    parser.add_argument('--data-dir', '-d', default=DATA_DIR,
                        help=f'Directory holding the JSON data files. Default: {DATA_DIR}')
    parser.add_argument('--jobs', '-j', default=None,
                        help='Excel/CSV file with jobs (replaces stored jobs for this month)')
    parser.add_argument('--absences', '-a', default=None,
                        help='Excel/CSV file with absences (replaces stored absences for this month)')
    parser.add_argument('--target', '-t', type=float, default=None,
                        help='Monthly target hours. Default: the stored monthly target')
    parser.add_argument('--output', '-o', default=None, help='Excel report output path')
    parser.add_argument('--csv', default=None, help='Jobs CSV output path')
    parser.add_argument('--log-level', default=LOG_LEVEL, help=f'Log level. Default: {LOG_LEVEL}')
    return parser


def load_snapshot(args) -> MonthSnapshot:
    """Stored month data, with jobs/absences/target replaced from the command line"""
    storage = JobStorage(args.data_dir)
    snapshot = storage.load_month_snapshot(args.month)
    start, end = month_bounds(*parse_month(args.month))

    jobs = snapshot.jobs
    if args.jobs:
        jobs = tuple(jobs_between(DataLoader.load_jobs(args.jobs), start, end))
        print(f"Loaded {len(jobs)} jobs for {args.month} from {args.jobs}")

    absences = snapshot.absences
    if args.absences:
        absences = tuple(a for a in DataLoader.load_absences(args.absences) if a.month == args.month)
        print(f"Loaded {len(absences)} absences for {args.month} from {args.absences}")

    return MonthSnapshot(
        month=args.month,
        jobs=jobs,
        absences=absences,
        schedule=snapshot.schedule,
        target_hours=args.target if args.target is not None else snapshot.target_hours,
        settings=snapshot.settings,
    )


def print_summary(report) -> None:
    print(f"\n=== Summary for {report.month} ===")
    print(f"Jobs: {report.total_jobs}")
    print(f"Total AW: {report.total_aw:,.2f}")
    print(f"Sold Hours: {report.sold_hours:,.2f}")
    print(f"Available Hours: {report.available_hours:,.2f} ({report.working_days} working days)")
    print(f"Effective Available Hours: {report.effective_available_hours:,.2f}")
    print(f"Efficiency: {efficiency_display(report.efficiency_percent)} ({report.efficiency_label})")
    print(f"Target: {report.adjusted_target_hours:,.2f} of {report.target_hours:,.2f} hours")
    if report.target_met:
        print(f"  → Target beaten by {abs(report.remaining_hours):,.2f} hours")
    else:
        print(f"  → {report.remaining_hours:,.2f} hours still to sell")


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        snapshot = load_snapshot(args)
        report = PerformanceCalculator(snapshot.settings).compute_snapshot(snapshot)
    except ValidationError as e:
        logger.error("Invalid input: %s", e, extra={'month': args.month, 'field': e.field})
        print(f"Error: {e}")
        return 1
    except FileNotFoundError as e:
        logger.error("Input file not found: %s", e.filename, extra={'month': args.month})
        print(f"Error: file not found: {e.filename or e}")
        return 1

    print_summary(report)

    if args.output or args.csv:
        generator = ReportGenerator.from_snapshot(snapshot)
        if args.output:
            generator.export_excel(args.output)
            print(f"Report saved to: {args.output}")
        if args.csv:
            generator.export_jobs_csv(args.csv)
            print(f"Jobs CSV saved to: {args.csv}")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
