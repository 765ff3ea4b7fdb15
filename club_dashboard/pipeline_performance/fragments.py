# club_dashboard/pipeline_performance/fragments.py
"""
Streamlit Fragments for Pipeline Performance

- Sidebar filters: @st.fragment, edits go to the pending copy only;
  "Apply Filters" promotes them and triggers a full page rerun
- Section renderers: sales, onboarding, defaulters, regional
- Drill-down dialog (flat + tabbed) and location-wise dialog

VERSION: 1.0.0
"""

import logging
from datetime import date
from typing import Dict, List, Optional

import pandas as pd
import streamlit as st

from ..api_client import ReportingAPIError
from .charts import PipelineCharts
from .constants import (
    CACHE_KEY_SHOW_DRILLDOWN,
    CACHE_KEY_SHOW_LOCATION_WISE,
    CACHE_KEY_STORE,
    CUSTOM_RANGE,
    DATE_RANGE_LABELS,
    DATE_RANGES,
    FILTER_WIDGET_PREFIX,
    NUMBER_FORMAT,
    PAGE_SIZE,
    PERCENT_FORMAT,
    SECTION_LABELS,
    SECTIONS,
)
from .controller import DashboardController
from .data_loader import ReferenceData
from .drilldown import clamp_page, page_window, total_pages
from .filters import FilterState, get_filter_summary
from .metrics import summarize_countries
from .state import DashboardStore

logger = logging.getLogger(__name__)

RECORD_COLUMNS = {
    'name': 'Name',
    'contact': 'Contact',
    'email': 'Email',
    'phone': 'Phone',
    'assigned_to': 'Assigned To',
    'source': 'Source',
    'stage': 'Stage',
    'location': 'Club',
    'country': 'Country',
    'status': 'Status',
    'value': 'Value',
    'created_date': 'Created',
    'last_activity': 'Last Activity',
}


# =============================================================================
# SESSION HELPERS
# =============================================================================

def get_store() -> DashboardStore:
    """One store per browser session."""
    if CACHE_KEY_STORE not in st.session_state:
        st.session_state[CACHE_KEY_STORE] = DashboardStore()
    return st.session_state[CACHE_KEY_STORE]


def _number(value) -> str:
    return NUMBER_FORMAT.format(value or 0)


def _percent(value) -> str:
    return PERCENT_FORMAT.format(value or 0)


def _open_flat(controller: DashboardController, metric_type: str, title: str,
               expected_count=None, extra_params: Optional[Dict] = None):
    controller.drilldown.open(metric_type, title, expected_count=expected_count,
                              extra_params=extra_params)
    st.session_state[CACHE_KEY_SHOW_DRILLDOWN] = True


def _open_tabbed(controller: DashboardController, composite_id: str, title: str):
    controller.drilldown.open_tabbed(composite_id, title)
    st.session_state[CACHE_KEY_SHOW_DRILLDOWN] = True


def _open_breakdown(controller: DashboardController, breakdown: str, item: Dict):
    controller.drilldown.open_breakdown(breakdown, item)
    st.session_state[CACHE_KEY_SHOW_DRILLDOWN] = True


def _breakdown_picker(controller: DashboardController, items, breakdown: str, label: str):
    """Row picker + drill button under a breakdown chart."""
    if not items:
        return
    names = [row['name'] for row in items]
    name = st.selectbox(label, names, key=f"cp_pick_{breakdown}", label_visibility="collapsed")
    st.button(label, key=f"cp_dd_{breakdown}", on_click=_open_breakdown,
              args=(controller, breakdown, items[names.index(name)]))


def _metric_card(controller: DashboardController, label: str, value: str, key: str,
                 metric_type: Optional[str] = None, composite_id: Optional[str] = None,
                 expected_count=None, delta=None, help: Optional[str] = None):
    """st.metric with a drill-down button underneath."""
    st.metric(label=label, value=value, delta=delta, help=help)
    if composite_id:
        st.button("🔍 Details", key=f"cp_dd_{key}", on_click=_open_tabbed,
                  args=(controller, composite_id, label))
    elif metric_type:
        st.button("🔍 Details", key=f"cp_dd_{key}", on_click=_open_flat,
                  args=(controller, metric_type, label, expected_count))


# =============================================================================
# SIDEBAR FRAGMENT
# =============================================================================

def _multiselect(label: str, field_name: str, pending: FilterState, options: List[str],
                 format_func=str, placeholder: str = "All") -> List[str]:
    current = [] if pending.is_all(field_name) else [
        v for v in pending.values(field_name) if v in options
    ]
    return st.multiselect(
        label,
        options=options,
        default=current,
        format_func=format_func,
        placeholder=placeholder,
        key=f"{FILTER_WIDGET_PREFIX}{field_name}",
    )


def _clear_filter_widgets():
    for key in [k for k in st.session_state.keys() if str(k).startswith(FILTER_WIDGET_PREFIX)]:
        del st.session_state[key]


@st.fragment
def sidebar_filter_fragment(controller: DashboardController, reference: ReferenceData):
    """
    Fragment for sidebar filters.

    Widget changes only rerun this fragment and edit the pending copy.
    "Apply Filters" validates, applies and triggers a full page rerun.

    NOTE: Must be called inside `with st.sidebar:` context manager.
    """
    store = controller.store
    pending = store.state.pending_filters

    st.header("🏋️ Pipeline Performance")

    # ---- Location ----------------------------------------------------------
    st.subheader("🌏 Location")
    country_names = reference.country_names
    countries = _multiselect(
        "Country", 'country', pending, list(country_names),
        format_func=lambda c: country_names.get(c, c), placeholder="All countries",
    )

    clubs_df = reference.locations
    if countries and not clubs_df.empty:
        clubs_df = clubs_df[clubs_df['country'].astype(str).isin(countries)]
    club_names = dict(zip(clubs_df['id'], clubs_df['name']))
    clubs = _multiselect(
        "Club", 'club', pending, list(club_names),
        format_func=lambda c: club_names.get(c, c), placeholder="All clubs",
    )

    # ---- People & sources --------------------------------------------------
    st.subheader("👤 Filters")
    user_names = dict(zip(reference.users['id'], reference.users['name']))
    users = _multiselect(
        "Assigned User", 'assigned_user', pending, list(user_names),
        format_func=lambda u: user_names.get(u, u), placeholder="All users",
    )
    lead_sources = _multiselect(
        "Lead Source", 'lead_source', pending, list(store.state.valid_lead_sources),
        placeholder="All lead sources",
    )
    pipelines = _multiselect(
        "Pipeline", 'pipeline', pending, reference.pipeline_categories,
        placeholder="All pipelines",
    )

    # ---- Period ------------------------------------------------------------
    st.subheader("📅 Period")
    date_range = st.selectbox(
        "Date Range",
        options=list(DATE_RANGES),
        index=list(DATE_RANGES).index(pending.date_range) if pending.date_range in DATE_RANGES else 0,
        format_func=lambda r: DATE_RANGE_LABELS.get(r, r),
        key=f"{FILTER_WIDGET_PREFIX}date_range",
    )
    custom_start = custom_end = None
    if date_range == CUSTOM_RANGE:
        col1, col2 = st.columns(2)
        with col1:
            custom_start = st.date_input(
                "From",
                value=date.fromisoformat(pending.custom_start_date) if pending.custom_start_date else None,
                key=f"{FILTER_WIDGET_PREFIX}custom_start",
            )
        with col2:
            custom_end = st.date_input(
                "To",
                value=date.fromisoformat(pending.custom_end_date) if pending.custom_end_date else None,
                key=f"{FILTER_WIDGET_PREFIX}custom_end",
            )

    edited = (
        pending
        .with_values('country', countries)
        .with_values('club', clubs)
        .with_values('assigned_user', users)
        .with_values('lead_source', lead_sources)
        .with_values('pipeline', pipelines)
        .with_date_range(date_range, custom_start, custom_end)
    )
    if edited != pending:
        controller.edit_filters(edited)

    if edited != store.state.filters:
        st.caption("✏️ Unapplied changes")

    # ---- Buttons -----------------------------------------------------------
    col1, col2 = st.columns(2)
    with col1:
        apply_clicked = st.button("🔄 Apply Filters", type="primary",
                                  use_container_width=True, key='cp_apply_btn')
    with col2:
        reset_clicked = st.button("↩️ Reset", use_container_width=True, key='cp_reset_btn')

    if apply_clicked:
        if controller.apply_filters(edited):
            st.rerun(scope="app")
        st.error(f"⚠️ {store.state.error}")

    if reset_clicked:
        _clear_filter_widgets()
        controller.reset_filters()
        st.rerun(scope="app")


# =============================================================================
# SECTIONS
# =============================================================================

def sales_section(controller: DashboardController):
    metrics = controller.store.state.sales_metrics
    if metrics is None:
        st.info("No sales data loaded yet.")
        return

    changes = metrics.percentage_changes

    st.subheader("📈 Sales Pipeline")
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        _metric_card(controller, "Total Leads", _number(metrics.total_leads), 'leads',
                     metric_type='total-leads', expected_count=metrics.total_leads,
                     delta=f"{changes['leads']:.1f}%" if 'leads' in changes else None)
    with col2:
        _metric_card(controller, "Appointments", _number(metrics.total_appointments), 'appts',
                     metric_type='total-appointments', expected_count=metrics.total_appointments,
                     delta=f"{changes['appointments']:.1f}%" if 'appointments' in changes else None)
    with col3:
        _metric_card(controller, "NJMs", _number(metrics.total_njms), 'njms',
                     metric_type='total-njms', expected_count=metrics.total_njms,
                     delta=f"{changes['njms']:.1f}%" if 'njms' in changes else None)
    with col4:
        _metric_card(controller, "Membership Agreements", _number(metrics.membership_agreements),
                     'agreements', metric_type='membership-agreements',
                     expected_count=metrics.membership_agreements,
                     delta=f"{changes['memberships']:.1f}%" if 'memberships' in changes else None)

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        _metric_card(controller, "Online Leads", _number(metrics.online_leads), 'online',
                     metric_type='online-leads', expected_count=metrics.online_leads)
    with col2:
        _metric_card(controller, "Offline Leads", _number(metrics.offline_leads), 'offline',
                     metric_type='offline-leads', expected_count=metrics.offline_leads)
    with col3:
        _metric_card(controller, "Leads Without Tags", _number(metrics.leads_without_tags),
                     'untagged', metric_type='leads-without-tags',
                     expected_count=metrics.leads_without_tags)
    with col4:
        _metric_card(controller, "Paid Media NJMs", _number(metrics.total_paid_media),
                     'paid_media', metric_type='paid-media-njms',
                     expected_count=metrics.total_paid_media)

    col1, col2, _, _ = st.columns(4)
    with col1:
        _metric_card(controller, "Contacted", _number(metrics.total_contacted), 'contacted',
                     metric_type='contacted-njms', expected_count=metrics.total_contacted)
    with col2:
        _metric_card(controller, "Shown Appointments", _number(metrics.shown_appointments),
                     'shown', metric_type='shown-appointments',
                     expected_count=metrics.shown_appointments)

    st.markdown("##### 🔁 Conversion")
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        _metric_card(controller, "Lead to Sale", _percent(metrics.lead_to_sale_ratio),
                     'l2s', composite_id='lead-to-sale', help="NJMs ÷ Leads")
    with col2:
        _metric_card(controller, "Lead to Appointment", _percent(metrics.lead_to_appointment_ratio),
                     'l2a', composite_id='lead-to-appointment', help="Appointments ÷ Leads")
    with col3:
        _metric_card(controller, "Appointment to Sale", _percent(metrics.appointment_to_sale_ratio),
                     'a2s', composite_id='appointment-to-sale', help="NJMs ÷ Appointments")
    with col4:
        _metric_card(controller, "Contacted to Appointment",
                     _percent(metrics.contacted_to_appointment_ratio), 'c2a',
                     composite_id='contacted-to-appointment', help="Appointments ÷ Contacted")

    col1, col2, col3, _ = st.columns(4)
    with col1:
        _metric_card(controller, "Agreement Conversion", _percent(metrics.agreement_conversion_rate),
                     'agr', composite_id='agreement-vs-njm', help="Agreements ÷ NJMs")
    with col2:
        _metric_card(controller, "NJM to Showed", _percent(metrics.njm_to_showed_ratio),
                     'n2s', composite_id='njm-to-appt-showed', help="NJMs ÷ Appointments Showed")
    with col3:
        _metric_card(controller, "Online vs Offline",
                     f"{_number(metrics.online_leads)} / {_number(metrics.offline_leads)}",
                     'ovo', composite_id='online-vs-offline')

    # ---- Charts ------------------------------------------------------------
    st.divider()
    col1, col2 = st.columns(2)
    with col1:
        st.markdown("##### 📣 Lead Sources")
        st.altair_chart(PipelineCharts.build_breakdown_chart(metrics.lead_source_breakdown),
                        use_container_width=True)
        _breakdown_picker(controller, metrics.lead_source_breakdown, 'lead_source',
                          "🔍 Leads from source")
    with col2:
        st.markdown("##### 🏆 NJMs by Lead Source")
        st.altair_chart(PipelineCharts.build_breakdown_chart(metrics.lead_source_sale_breakdown),
                        use_container_width=True)
        _breakdown_picker(controller, metrics.lead_source_sale_breakdown, 'njm_lead_source',
                          "🔍 NJMs from source")

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("##### 📅 Appointment Status")
        st.altair_chart(PipelineCharts.build_breakdown_chart(metrics.appointment_status),
                        use_container_width=True)
        _breakdown_picker(controller, metrics.appointment_status, 'appointment_status',
                          "🔍 Appointments with status")
    with col2:
        trend_fragment(metrics.trend, controller.store.state.trend_sums or {})


@st.fragment
def trend_fragment(trend: Dict, trend_sums: Dict):
    st.markdown("##### 📊 Trends")
    granularity = st.radio("Granularity", ['daily', 'weekly', 'monthly'], horizontal=True,
                           format_func=str.title, key='cp_trend_granularity',
                           label_visibility="collapsed")
    st.altair_chart(PipelineCharts.build_trend_chart(trend.get(granularity, [])),
                    use_container_width=True)
    sums = trend_sums.get(granularity, {})
    st.caption(
        f"Σ Leads {_number(sums.get('leads'))} · "
        f"Appointments {_number(sums.get('appointments'))} · "
        f"NJMs {_number(sums.get('njms'))}"
    )


def onboarding_section(controller: DashboardController):
    metrics = controller.store.state.onboarding_metrics
    if metrics is None:
        st.info("No onboarding data loaded yet.")
        return

    st.subheader("🏁 Member Onboarding")
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        _metric_card(controller, "Assessment Uptake", _percent(metrics.assessment_uptake),
                     'uptake', composite_id='assessment-uptake',
                     help="15-min GoFast ÷ Membership Agreements")
    with col2:
        _metric_card(controller, "AF Results", _percent(metrics.af_results), 'af',
                     metric_type='af-results', expected_count=metrics.af_results_count,
                     help="AF Results ÷ Membership Agreements")
    with col3:
        _metric_card(controller, "AF Conversion", _percent(metrics.conversion_rate),
                     'afconv', composite_id='af-conversion', help="AF Results ÷ 15-min GoFast")
    with col4:
        _metric_card(controller, "App Adoption", _percent(metrics.app_adoption_rate),
                     'apps', composite_id='app-adoption', help="Apps ÷ Membership Agreements")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        _metric_card(controller, "Membership Agreements", _number(metrics.membership_agreements),
                     'ob_agreements', metric_type='membership-agreements',
                     expected_count=metrics.membership_agreements)
    with col2:
        _metric_card(controller, "15min GoFast", _number(metrics.gofast_15min), 'gofast',
                     metric_type='15min-gofast', expected_count=metrics.gofast_15min)
    with col3:
        st.metric("AF Results (count)", _number(metrics.af_results_count))
    with col4:
        st.metric("Apps", _number(metrics.apps))


def defaulters_section(controller: DashboardController):
    metrics = controller.store.state.defaulter_metrics
    if metrics is None:
        st.info("No defaulter data loaded yet.")
        return

    st.subheader("⚠️ Defaulters")
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        _metric_card(controller, "1-Month Defaulters", _number(metrics.total_defaulters), 'd1',
                     metric_type='defaulter-1m', expected_count=metrics.total_defaulters)
    with col2:
        _metric_card(controller, "2-Month Defaulters", _number(metrics.total_defaulters_2_month),
                     'd2', metric_type='defaulter-2m', expected_count=metrics.total_defaulters_2_month)
    with col3:
        _metric_card(controller, "3-Month Defaulters", _number(metrics.total_defaulters_3_month),
                     'd3', metric_type='defaulter-3m', expected_count=metrics.total_defaulters_3_month)
    with col4:
        st.metric("Communications Sent", _number(metrics.communications_sent))

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        _metric_card(controller, "Paid", _number(metrics.paid), 'paid',
                     metric_type='defaulter-paid', expected_count=metrics.paid)
    with col2:
        _metric_card(controller, "Promise to Pay", _number(metrics.total_ptp), 'ptp',
                     metric_type='defaulter-ptp', expected_count=metrics.total_ptp)
    with col3:
        _metric_card(controller, "No Response", _number(metrics.no_response), 'noresp',
                     metric_type='defaulter-noresponse', expected_count=metrics.no_response)
    with col4:
        _metric_card(controller, "Cancelled Membership", _number(metrics.cancelled_membership),
                     'cancelled', metric_type='defaulter-cancelled',
                     expected_count=metrics.cancelled_membership)

    col1, col2 = st.columns(2)
    with col1:
        st.metric("PTP Conversion", _percent(metrics.ptp_conversion), help="Paid ÷ PTP")
    with col2:
        st.metric(
            "Payment Recovery Rate",
            _percent(metrics.payment_recovery_rate),
            delta="Target met" if metrics.recovery_target_met else "Below 50% target",
            delta_color="normal" if metrics.recovery_target_met else "inverse",
            help="Paid ÷ (D1 + D2 + D3)",
        )


def regional_section(controller: DashboardController):
    locations = controller.store.state.locations
    if locations is None:
        st.info("No regional data loaded yet.")
        return

    st.subheader("🌏 Regional View")
    countries_df = summarize_countries(locations)

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("##### 🏆 Country Leaderboard")
        st.altair_chart(PipelineCharts.build_country_performance_chart(countries_df),
                        use_container_width=True)
    with col2:
        st.markdown("##### 🔁 Country Conversion")
        st.altair_chart(PipelineCharts.build_country_percentage_chart(countries_df),
                        use_container_width=True)

    st.dataframe(
        countries_df[['country_display', 'clubs', 'total_leads', 'appointment_showed',
                      'total_njm', 'lead_to_sale', 'appointment_to_sale']],
        hide_index=True,
        use_container_width=True,
        column_config={
            'country_display': 'Country',
            'clubs': st.column_config.NumberColumn('Clubs'),
            'total_leads': st.column_config.NumberColumn('Leads', format="%d"),
            'appointment_showed': st.column_config.NumberColumn('Showed', format="%d"),
            'total_njm': st.column_config.NumberColumn('NJMs', format="%d"),
            'lead_to_sale': st.column_config.NumberColumn('Lead→Sale %', format="%.2f"),
            'appointment_to_sale': st.column_config.NumberColumn('Appt→Sale %', format="%.2f"),
        },
    )

    with st.expander(f"🏢 Clubs ({len(locations)})"):
        st.dataframe(
            locations[['location_name', 'country_display', 'total_leads', 'appointment_showed',
                       'total_njm', 'lead_to_sale', 'appointment_to_sale']],
            hide_index=True,
            use_container_width=True,
        )

    if st.button("📍 Location-wise breakdown", key='cp_location_wise_btn'):
        st.session_state[CACHE_KEY_SHOW_LOCATION_WISE] = True


SECTION_RENDERERS = {
    'sales': sales_section,
    'onboarding': onboarding_section,
    'defaulters': defaulters_section,
    'regional': regional_section,
}


def render_section(controller: DashboardController):
    SECTION_RENDERERS[controller.store.state.active_section](controller)


def section_selector(controller: DashboardController) -> str:
    """Section radio; switching reloads the active section's endpoints."""
    current = controller.store.state.active_section
    section = st.radio(
        "Section",
        options=list(SECTIONS),
        index=list(SECTIONS).index(current),
        format_func=lambda s: SECTION_LABELS[s],
        horizontal=True,
        label_visibility="collapsed",
        key='cp_section',
    )
    if section != current:
        with st.spinner("Loading..."):
            controller.select_section(section)
    return section


# =============================================================================
# DRILL-DOWN DIALOG
# =============================================================================

def _records_table(rows):
    if not rows:
        st.info("No records found.")
        return
    df = pd.DataFrame(list(rows)).reindex(columns=list(RECORD_COLUMNS))
    st.dataframe(
        df.rename(columns=RECORD_COLUMNS),
        hide_index=True,
        use_container_width=True,
        column_config={'Value': st.column_config.NumberColumn('Value', format="%.2f")},
    )


def _pager(page: int, total_count: int, on_change, key: str):
    """Previous / page buttons / Next; each click refetches the requested page."""
    pages = total_pages(total_count, PAGE_SIZE)
    if pages <= 1:
        st.caption(f"{_number(total_count)} record(s)")
        return

    page = clamp_page(page, pages)
    window = page_window(page, pages)
    cols = st.columns(len(window) + 3)
    with cols[0]:
        st.button("◀", key=f"{key}_prev", disabled=page <= 1,
                  on_click=on_change, args=(page - 1,))
    for i, item in enumerate(window, start=1):
        with cols[i]:
            if item == '...':
                st.markdown("…")
            else:
                st.button(str(item), key=f"{key}_p{item}", disabled=item == page,
                          type="primary" if item == page else "secondary",
                          on_click=on_change, args=(item,))
    with cols[len(window) + 1]:
        st.button("▶", key=f"{key}_next", disabled=page >= pages,
                  on_click=on_change, args=(page + 1,))
    with cols[len(window) + 2]:
        st.caption(f"Page {page} of {pages} · {_number(total_count)} records")


@st.dialog("🔎 Drill-down", width="large")
def drilldown_dialog(controller: DashboardController):
    modal = controller.store.state.modal
    drilldown = controller.drilldown

    st.subheader(modal.title)
    if modal.loading:
        st.info("⏳ Loading records...")
    if modal.error:
        st.error(f"❌ {modal.error}")

    if modal.is_tabbed:
        labels = [f"{tab.label} ({_number(tab.total_count)})" for tab in modal.tabs]
        if labels:
            active = st.radio("Tab", options=list(range(len(labels))), index=modal.active_tab,
                              format_func=lambda i: labels[i], horizontal=True,
                              label_visibility="collapsed", key='cp_dd_tab')
            if active != modal.active_tab:
                drilldown.change_tab(active)
            tab = modal.tabs[active]
            _records_table(tab.data)
            _pager(tab.page, tab.total_count,
                   lambda p, i=active: drilldown.change_tab_page(i, p),
                   key=f"cp_dd_pager_{tab.role}")
    else:
        if modal.expected_count is not None:
            st.caption(f"Dashboard count: {_number(modal.expected_count)}")
        _records_table(modal.opportunities)
        _pager(modal.page, modal.total_count, drilldown.change_page, key='cp_dd_pager')

    if st.button("Close", key='cp_dd_close'):
        drilldown.close()
        st.rerun()


@st.dialog("📍 Location-wise Breakdown", width="large")
def location_wise_dialog(controller: DashboardController):
    try:
        df = controller.load_location_wise()
    except ReportingAPIError as e:
        st.error(f"❌ {e.message}")
        return

    if df.empty:
        st.info("No location data for the selected filters.")
        return

    st.dataframe(
        df[['location_name', 'country_display', 'total_opps', 'total_appointments',
            'njms_total', 'njm_online', 'njm_offline']],
        hide_index=True,
        use_container_width=True,
        column_config={
            'location_name': 'Club',
            'country_display': 'Country',
            'total_opps': st.column_config.NumberColumn('Total Opportunities', format="%d"),
            'total_appointments': st.column_config.NumberColumn('Total Appointments', format="%d"),
            'njms_total': st.column_config.NumberColumn('Total NJMs', format="%d"),
            'njm_online': st.column_config.NumberColumn('NJM Online', format="%d"),
            'njm_offline': st.column_config.NumberColumn('NJM Offline', format="%d"),
        },
    )


def render_dialogs(controller: DashboardController):
    """Open at most one dialog per run, right after the click that asked for it."""
    if st.session_state.pop(CACHE_KEY_SHOW_DRILLDOWN, False) and controller.store.state.modal.is_open:
        drilldown_dialog(controller)
    elif st.session_state.pop(CACHE_KEY_SHOW_LOCATION_WISE, False):
        location_wise_dialog(controller)


def filter_summary_caption(filters: FilterState):
    st.caption(f"📊 {get_filter_summary(filters)}")


__all__ = [
    'get_store',
    'sidebar_filter_fragment',
    'section_selector',
    'render_section',
    'sales_section',
    'onboarding_section',
    'defaulters_section',
    'regional_section',
    'trend_fragment',
    'drilldown_dialog',
    'location_wise_dialog',
    'render_dialogs',
    'filter_summary_caption',
]
