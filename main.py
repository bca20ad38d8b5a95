"""Main entry point for Pest Ops Workforce Analytics"""
import argparse
import json
from pathlib import Path
from datetime import datetime

from pestops.data_loader import DataLoader
from pestops.calculator import CommissionCalculator, get_policy
from pestops.provisions import ProvisionAggregator
from pestops.report_generator import ProvisionReportGenerator
from pestops.facade import ReportWindow, compute_aggregates, window_provisions
from pestops.models import parse_datetime
from config import DEFAULT_MONTHS_BACK, DEFAULT_SCHEDULE_DAYS, COMMISSION_POLICY


def main():
    parser = argparse.ArgumentParser(description='Technician provisions, schedule gaps and pricing patterns')
    parser.add_argument('input_file', help='Path to input Excel/CSV/JSON file with job data')
    parser.add_argument('--technicians', '-t', required=True, help='Path to technicians JSON file')
    parser.add_argument('--absences', '-a', default=None, help='Path to absences JSON file')
    parser.add_argument('--months', '-m', type=int, default=DEFAULT_MONTHS_BACK,
                        help=f'Months of history. Default: {DEFAULT_MONTHS_BACK}')
    parser.add_argument('--days', '-d', type=int, default=DEFAULT_SCHEDULE_DAYS,
                        help=f'Days ahead for schedule gaps. Default: {DEFAULT_SCHEDULE_DAYS}')
    parser.add_argument('--policy', '-p', default=COMMISSION_POLICY,
                        help=f'Commission policy. Default: {COMMISSION_POLICY}')
    parser.add_argument('--now', default=None, help='Reference time (ISO format). Default: now')
    parser.add_argument('--output', '-o', default=None, help='Excel report path')
    parser.add_argument('--payroll', default=None, help='Payroll CSV path')
    parser.add_argument('--json', dest='json_output', default=None,
                        help='Write the full analytics payload as JSON')

    args = parser.parse_args()

    now = parse_datetime(args.now) if args.now else datetime.now()
    window = ReportWindow(now=now, months_back=args.months, schedule_days=args.days)
    policy = get_policy(args.policy)

    # Load data
    jobs = DataLoader.load_jobs(args.input_file)
    technicians = DataLoader.load_technicians(args.technicians)
    absences = DataLoader.load_absences(args.absences) if args.absences else []
    print(f"Loaded {len(jobs)} jobs, {len(technicians)} technicians")

    bundle = compute_aggregates(jobs, technicians, absences, window, policy=policy)

    # Excel report
    aggregator = ProvisionAggregator(CommissionCalculator(policy))
    provisions, monthly = window_provisions(jobs, technicians, window, aggregator)
    generator = ProvisionReportGenerator(provisions, monthly,
                                         period_start=window.start_date, period_end=window.today)

    if args.output:
        output_path = args.output
    else:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        output_path = f"output/reports/provisions_{timestamp}.xlsx"
    generator.export_excel(output_path)
    print(f"📁 Report saved to: {output_path}")

    if args.payroll:
        rows = generator.export_payroll_csv(args.payroll)
        print(f"📁 Payroll export saved to: {args.payroll} ({rows} rows)")

    if args.json_output:
        Path(args.json_output).parent.mkdir(parents=True, exist_ok=True)
        with open(args.json_output, 'w', encoding='utf-8') as f:
            json.dump(bundle, f, indent=2, ensure_ascii=False)
        print(f"📁 Analytics saved to: {args.json_output}")

    # Print summary
    kpi = bundle['analytics']['kpi']
    utilization = bundle['schedule']['utilization_summary']
    print(f"\n=== Provisions ({window.start_date} - {window.today}) ===")
    print(f"Policy: {bundle['analytics']['commission_policy']}")
    print(f"Provision YTD: {kpi['total_provision_ytd']:,.2f} kr")
    print(f"Revenue YTD: {kpi['total_revenue_ytd']:,.2f} kr")
    print(f"Current month: {kpi['current_month_provision']:,.2f} kr")
    if kpi['top_earner']:
        top = kpi['top_earner']
        print(f"Top earner: {top['name']} ({top['amount']:,.2f} kr, {top['cases']} cases)")

    print(f"\n=== Schedule ({window.today} - {window.schedule_end}) ===")
    print(f"Gaps: {len(bundle['schedule']['schedule_gaps'])} "
          f"({len(bundle['schedule']['available_gaps'])} available)")
    print(f"Average utilization: {utilization['average_utilization']:.1f}%")
    for row in bundle['schedule']['technician_availability']:
        marker = '⚠️' if row['status'] != 'optimal' else '✅'
        print(f"  {marker} {row['technician_name']}: {row['utilization_percent']:.1f}% ({row['status']})")

    print("\n=== Pricing patterns ===")
    patterns = bundle['pricing']['pricing_patterns']
    if not patterns:
        print("ℹ️ Not enough priced cases per category")
    for pattern in patterns:
        stats = pattern['price_stats']
        print(f"  {pattern['category']}: {pattern['case_count']} cases, "
              f"median {stats['median']:,.0f} kr ({stats['min']:,.0f} - {stats['max']:,.0f})")


if __name__ == '__main__':
    main()
