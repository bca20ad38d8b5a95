"""
Pest Ops Workforce Analytics - Coordinator Dashboard
"""
import streamlit as st
import pandas as pd
from datetime import datetime, date
import tempfile
from pathlib import Path

from pestops.facade import (
    WorkforceAnalyticsService, ReportWindow, CaseFilters,
    compute_aggregates, window_provisions
)
from pestops.calculator import CommissionCalculator, POLICIES, get_policy
from pestops.provisions import ProvisionAggregator
from pestops.report_generator import ProvisionReportGenerator
from pestops.errors import AggregationError
from config import (
    COMPANY_NAME, DEFAULT_MONTHS_BACK, DEFAULT_SCHEDULE_DAYS, COMMISSION_POLICY,
    PAYROLL_CSV_SEPARATOR
)


# Initialize service (cached across reruns)
@st.cache_resource
def _get_service():
    return WorkforceAnalyticsService()


@st.cache_data(ttl=300, show_spinner="Fetching records...")
def _fetch_records(months_back: int, schedule_days: int):
    """Wide queries for the window, cached for five minutes."""
    window = ReportWindow(now=datetime.now(), months_back=months_back, schedule_days=schedule_days)
    jobs, technicians, absences = _get_service().fetch(window)
    return window, jobs, technicians, absences


def _money(value: float) -> str:
    return f"{value:,.0f} kr".replace(',', ' ')


def page_provisions(window, jobs, technicians, bundle, policy_name: str):
    """Provision overview, monthly breakdown and exports"""
    st.header("💰 Provisions")
    analytics = bundle['analytics']
    kpi = analytics['kpi']

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("This month", _money(kpi['current_month_provision']))
    col2.metric("Provision YTD", _money(kpi['total_provision_ytd']))
    col3.metric("Revenue YTD", _money(kpi['total_revenue_ytd']))
    col4.metric("Active technicians", kpi['active_technicians'])

    if kpi['top_earner']:
        top = kpi['top_earner']
        st.success(f"🏆 Top earner: **{top['name']}** with {_money(top['amount'])} "
                   f"over {top['cases']} cases")

    # Per technician
    st.markdown("### 👥 Per Technician")
    provisions = [p for p in analytics['technician_provisions'] if p['total_cases'] > 0]
    if not provisions:
        st.info("📭 No completed cases with a price in this period.")
    else:
        df = pd.DataFrame([{
            'Technician': p['technician_name'],
            'Cases': p['total_cases'],
            'Primary': p['primary_cases'],
            'Secondary': p['secondary_cases'],
            'Tertiary': p['tertiary_cases'],
            'Revenue': _money(p['total_revenue']),
            'Provision': _money(p['total_provision_amount'])
        } for p in provisions])
        st.dataframe(df, use_container_width=True, hide_index=True)

    # Monthly
    st.markdown("### 📅 Monthly")
    monthly = analytics['monthly_summary']
    if not any(m['total_cases'] for m in monthly):
        st.info("📭 No provision data for the selected months.")
    else:
        chart_df = pd.DataFrame([{
            'Month': m['month'],
            'Private': m['private_provision'],
            'Business': m['business_provision']
        } for m in monthly]).set_index('Month')
        st.bar_chart(chart_df)

        graph = analytics['graph_data']
        series = pd.DataFrame([point['technician_data'] for point in graph],
                              index=[point['month'] for point in graph]).fillna(0.0)
        if not series.empty:
            st.markdown("#### Per technician and month")
            st.line_chart(series)

    # Exports
    st.markdown("### 📥 Export")
    aggregator = ProvisionAggregator(CommissionCalculator(get_policy(policy_name)))
    report_provisions, report_monthly = window_provisions(jobs, technicians, window, aggregator)
    generator = ProvisionReportGenerator(report_provisions, report_monthly,
                                         period_start=window.start_date, period_end=window.today)
    timestamp = datetime.now().strftime('%Y%m%d_%H%M')

    col1, col2 = st.columns(2)
    with col1:
        with tempfile.NamedTemporaryFile(delete=False, suffix='.xlsx') as tmp:
            tmp_path = tmp.name
        generator.export_excel(tmp_path)
        with open(tmp_path, 'rb') as f:
            excel_data = f.read()
        Path(tmp_path).unlink(missing_ok=True)

        st.download_button(
            label="📊 Download Excel Report",
            data=excel_data,
            file_name=f"provisions_{timestamp}.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
    with col2:
        payroll_csv = generator.payroll_dataframe().to_csv(sep=PAYROLL_CSV_SEPARATOR, index=False)
        st.download_button(
            label="🧾 Download Payroll CSV",
            data=payroll_csv.encode('utf-8'),
            file_name=f"payroll_{timestamp}.csv",
            mime="text/csv"
        )


def page_schedule(bundle):
    """Gaps in the coming days and technician utilization"""
    st.header("🗓️ Schedule & Utilization")
    schedule = bundle['schedule']
    window = bundle['window']
    st.caption(f"{window['schedule_start']} - {window['schedule_end']}")

    summary = schedule['utilization_summary']
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Average utilization", f"{summary['average_utilization']:.0f}%")
    col2.metric("Underutilized", summary['underutilized'])
    col3.metric("Overutilized", summary['overutilized'])
    col4.metric("Available hours", f"{summary['total_available_hours']:.1f} h")

    for absent in schedule['absent_technicians']:
        st.warning(f"⚠️ {absent['technician_name']} is away: {absent['absence_summary']}")

    st.markdown("### 📊 Utilization")
    availability = schedule['technician_availability']
    if not availability:
        st.info("📭 No active technicians with a work schedule.")
    else:
        df = pd.DataFrame([{
            'Technician': u['technician_name'],
            'Work hours': round(u['total_work_hours'], 1),
            'Booked hours': round(u['scheduled_hours'], 1),
            'Available hours': round(u['available_hours'], 1),
            'Utilization %': round(u['utilization_percent'], 1),
            'Status': u['status']
        } for u in availability])
        st.dataframe(df, use_container_width=True, hide_index=True)

    st.markdown("### 🕳️ Open Gaps")
    only_available = st.checkbox("Hide gaps of absent technicians", value=True)
    gaps = schedule['available_gaps'] if only_available else schedule['schedule_gaps']
    if not gaps:
        st.info("📭 No gaps of an hour or more in the coming days.")
    else:
        df = pd.DataFrame([{
            'Date': g['date'],
            'Day': g['weekday'],
            'Technician': g['technician_name'],
            'From': g['start_time'],
            'To': g['end_time'],
            'Hours': round(g['duration_hours'], 1),
            'Size': g['classification'],
            'Suggested slot': f"{g['suggested_slot']['start_time']} - {g['suggested_slot']['end_time']}"
        } for g in gaps])
        st.dataframe(df, use_container_width=True, hide_index=True)

    st.markdown("### 📋 Upcoming Cases")
    upcoming = schedule['upcoming_cases']
    if not upcoming:
        st.info("📭 No booked cases in the coming days.")
    else:
        df = pd.DataFrame([{
            'Start': c['start_date'][:16].replace('T', ' '),
            'End': c['end_date'][:16].replace('T', ' '),
            'Case': c['title'],
            'Category': c['category'],
            'Technicians': ', '.join(a['technician_name'] for a in c['assignees'])
        } for c in upcoming])
        st.dataframe(df, use_container_width=True, hide_index=True)


def page_pricing(bundle):
    """Price profile per pest category"""
    st.header("🏷️ Pricing Patterns")
    patterns = bundle['pricing']['pricing_patterns']
    if not patterns:
        st.info("📭 Not enough priced cases per category yet.")
        return

    overview = pd.DataFrame([{
        'Category': p['category'],
        'Cases': p['case_count'],
        'Mean': _money(p['price_stats']['mean']),
        'Median': _money(p['price_stats']['median']),
        'Min': _money(p['price_stats']['min']),
        'Max': _money(p['price_stats']['max']),
        'Mean hours': round(p['duration_stats']['mean_hours'], 1)
        if p['duration_stats']['mean_hours'] is not None else None
    } for p in patterns])
    st.dataframe(overview, use_container_width=True, hide_index=True)

    selected = st.selectbox("Category", [p['category'] for p in patterns])
    pattern = next(p for p in patterns if p['category'] == selected)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.markdown("#### 👥 By technicians")
        st.dataframe(pd.DataFrame(pattern['technician_count_breakdown']).T, use_container_width=True)
    with col2:
        st.markdown("#### 🧩 By complexity")
        st.dataframe(pd.DataFrame(pattern['complexity_distribution']).T, use_container_width=True)
    with col3:
        st.markdown("#### ⏱️ By duration")
        st.dataframe(pd.DataFrame(pattern['duration_buckets']).T, use_container_width=True)

    st.markdown("#### 📋 Recent cases")
    st.dataframe(pd.DataFrame(pattern['samples']), use_container_width=True, hide_index=True)


def page_cases(window, jobs, technicians, absences, policy_name: str):
    """Searchable case list for the window"""
    st.header("📋 Cases")

    st.sidebar.markdown("### 🔎 Filters")
    tech_options = {'All technicians': None}
    tech_options.update({t.name: t.id for t in technicians})
    tech_label = st.sidebar.selectbox("Technician", list(tech_options))
    category = st.sidebar.text_input("Category")
    col1, col2 = st.sidebar.columns(2)
    with col1:
        min_price = st.number_input("Min price", min_value=0.0, value=0.0, step=500.0)
    with col2:
        max_price = st.number_input("Max price", min_value=0.0, value=0.0, step=500.0)
    date_from = st.sidebar.date_input("From", value=window.start_date, key="cases_from")
    date_to = st.sidebar.date_input("To", value=date.today(), key="cases_to")

    filters = CaseFilters(
        category=category or None,
        min_price=min_price or None,
        max_price=max_price or None,
        start_date=date_from,
        end_date=date_to
    )
    bundle = compute_aggregates(jobs, technicians, absences, window,
                                technician_id=tech_options[tech_label], filters=filters,
                                policy=get_policy(policy_name))
    cases = bundle['cases']

    metrics = cases['performance_metrics']
    col1, col2, col3 = st.columns(3)
    col1.metric("New cases (7 days)", metrics['total_cases'])
    col2.metric("Scheduled", metrics['scheduled_cases'])
    col3.metric("Avg. time to booking", f"{metrics['avg_scheduling_time_hours']:.0f} h")

    st.caption(f"{cases['filtered_cases']} of {cases['total_cases']} cases")
    if not cases['case_list']:
        st.info("📭 No cases match the filters.")
        return

    df = pd.DataFrame([{
        'Date': c['reference_date'][:10],
        'Case': c['title'],
        'Status': c['status'],
        'Category': c['category'],
        'Price': c['price'],
        'Source': c['source'],
        'Technicians': ', '.join(a['technician_name'] for a in c['assignees'])
    } for c in cases['case_list']])
    st.dataframe(df, use_container_width=True, hide_index=True)


def main():
    st.set_page_config(
        page_title=f"{COMPANY_NAME} - Workforce Analytics",
        page_icon="🐀",
        layout="wide"
    )

    # Sidebar navigation
    st.sidebar.title(f"🐀 {COMPANY_NAME}")
    page = st.sidebar.radio(
        "Navigation",
        ["💰 Provisions", "🗓️ Schedule", "🏷️ Pricing", "📋 Cases"],
        label_visibility="collapsed"
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown("### ⚙️ Settings")
    months_back = st.sidebar.slider("Months of history", min_value=1, max_value=24,
                                    value=DEFAULT_MONTHS_BACK)
    schedule_days = st.sidebar.slider("Days ahead", min_value=1, max_value=28,
                                      value=DEFAULT_SCHEDULE_DAYS)
    policy_names = list(POLICIES)
    policy_name = st.sidebar.selectbox("Commission policy", policy_names,
                                       index=policy_names.index(COMMISSION_POLICY))
    if st.sidebar.button("🔄 Refresh data"):
        _fetch_records.clear()

    st.sidebar.markdown("---")

    try:
        window, jobs, technicians, absences = _fetch_records(months_back, schedule_days)
    except AggregationError as e:
        st.error(f"❌ {e.user_message}")
        return

    if page == "📋 Cases":
        page_cases(window, jobs, technicians, absences, policy_name)
        return

    bundle = compute_aggregates(jobs, technicians, absences, window,
                                policy=get_policy(policy_name))

    # Page routing
    if page == "💰 Provisions":
        page_provisions(window, jobs, technicians, bundle, policy_name)
    elif page == "🗓️ Schedule":
        page_schedule(bundle)
    elif page == "🏷️ Pricing":
        page_pricing(bundle)


if __name__ == '__main__':
    main()
