# club_dashboard/pipeline_performance/charts.py
"""
Altair Chart Builders for Pipeline Performance

- Lead source breakdown (bar, value + share)
- Appointment status breakdown
- Leads / appointments / NJMs trend lines
- Country performance (counts and conversion percentages)
"""

import logging
from typing import Dict, List, Sequence

import altair as alt
import pandas as pd

from .constants import CHART_HEIGHT, CHART_PALETTE, COLORS, TREND_FIELDS

logger = logging.getLogger(__name__)

TREND_LABELS = {'leads': 'Leads', 'appointments': 'Appointments', 'njms': 'NJMs'}


class PipelineCharts:
    """
    Chart builders for the pipeline performance dashboard.

    Usage:
        chart = PipelineCharts.build_breakdown_chart(metrics.lead_source_breakdown)
        st.altair_chart(chart, use_container_width=True)
    """

    @staticmethod
    def _empty_chart(message: str = "No data available") -> alt.Chart:
        return alt.Chart(pd.DataFrame({'text': [message]})).mark_text(
            size=14, color=COLORS['text_light']
        ).encode(
            text='text:N'
        ).properties(height=120)

    # =========================================================================
    # BREAKDOWNS
    # =========================================================================

    @staticmethod
    def build_breakdown_chart(
        breakdown: Sequence[Dict],
        title: str = "",
        value_title: str = "Count",
    ) -> alt.Chart:
        """Horizontal bars from [{name, value, percentage}], largest first."""
        if not breakdown:
            return PipelineCharts._empty_chart()

        df = pd.DataFrame(list(breakdown))
        names = df['name'].tolist()

        bars = alt.Chart(df).mark_bar(cornerRadiusEnd=3).encode(
            y=alt.Y('name:N', sort=names, title=''),
            x=alt.X('value:Q', title=value_title),
            color=alt.Color(
                'name:N',
                scale=alt.Scale(domain=names, range=CHART_PALETTE),
                legend=None,
            ),
            tooltip=[
                alt.Tooltip('name:N', title='Name'),
                alt.Tooltip('value:Q', title=value_title, format=',.0f'),
                alt.Tooltip('percentage:Q', title='Share %', format='.1f'),
            ],
        )

        text = alt.Chart(df).mark_text(align='left', dx=4, fontSize=11).encode(
            y=alt.Y('name:N', sort=names),
            x=alt.X('value:Q'),
            text=alt.Text('percentage:Q', format='.1f'),
        )

        return alt.layer(bars, text).properties(
            height=max(CHART_HEIGHT // 2, 32 * len(df)),
            title=title,
        )

    # =========================================================================
    # TRENDS
    # =========================================================================

    @staticmethod
    def build_trend_chart(series: List[Dict], title: str = "") -> alt.Chart:
        """Leads / appointments / NJMs per period."""
        if not series:
            return PipelineCharts._empty_chart()

        df = pd.DataFrame(series)
        periods = df['period'].astype(str).tolist()
        long_df = df.melt(
            id_vars=['period'],
            value_vars=list(TREND_FIELDS),
            var_name='Metric',
            value_name='Count',
        )
        long_df['period'] = long_df['period'].astype(str)
        long_df['Metric'] = long_df['Metric'].map(TREND_LABELS)

        color_scale = alt.Scale(
            domain=[TREND_LABELS[f] for f in TREND_FIELDS],
            range=[COLORS['leads'], COLORS['appointments'], COLORS['njms']],
        )

        return alt.Chart(long_df).mark_line(point=True, strokeWidth=2).encode(
            x=alt.X('period:N', sort=periods, title='Period'),
            y=alt.Y('Count:Q', title='Count'),
            color=alt.Color('Metric:N', scale=color_scale, legend=alt.Legend(orient='bottom')),
            tooltip=[
                alt.Tooltip('period:N', title='Period'),
                alt.Tooltip('Metric:N', title='Metric'),
                alt.Tooltip('Count:Q', title='Count', format=',.0f'),
            ],
        ).properties(height=CHART_HEIGHT, title=title)

    # =========================================================================
    # REGIONAL
    # =========================================================================

    @staticmethod
    def build_country_performance_chart(countries_df: pd.DataFrame) -> alt.Chart:
        """Grouped bars: leads, showed appointments and NJMs per country."""
        if countries_df is None or countries_df.empty:
            return PipelineCharts._empty_chart()

        long_df = countries_df.melt(
            id_vars=['country_display'],
            value_vars=['total_leads', 'appointment_showed', 'total_njm'],
            var_name='Metric',
            value_name='Count',
        )
        long_df['Metric'] = long_df['Metric'].map({
            'total_leads': 'Leads',
            'appointment_showed': 'Appointments Showed',
            'total_njm': 'NJMs',
        })

        return alt.Chart(long_df).mark_bar().encode(
            x=alt.X('country_display:N', title='Country'),
            xOffset='Metric:N',
            y=alt.Y('Count:Q', title='Count'),
            color=alt.Color(
                'Metric:N',
                scale=alt.Scale(
                    domain=['Leads', 'Appointments Showed', 'NJMs'],
                    range=[COLORS['leads'], COLORS['appointments'], COLORS['njms']],
                ),
                legend=alt.Legend(orient='bottom'),
            ),
            tooltip=[
                alt.Tooltip('country_display:N', title='Country'),
                alt.Tooltip('Metric:N', title='Metric'),
                alt.Tooltip('Count:Q', title='Count', format=',.0f'),
            ],
        ).properties(height=CHART_HEIGHT)

    @staticmethod
    def build_country_percentage_chart(countries_df: pd.DataFrame) -> alt.Chart:
        """Lead→sale and appointment→sale percentages per country."""
        if countries_df is None or countries_df.empty:
            return PipelineCharts._empty_chart()

        long_df = countries_df.melt(
            id_vars=['country_display'],
            value_vars=['lead_to_sale', 'appointment_to_sale'],
            var_name='Ratio',
            value_name='Percent',
        )
        long_df['Ratio'] = long_df['Ratio'].map({
            'lead_to_sale': 'Lead to Sale %',
            'appointment_to_sale': 'Appointment to Sale %',
        })

        return alt.Chart(long_df).mark_bar().encode(
            x=alt.X('country_display:N', title='Country'),
            xOffset='Ratio:N',
            y=alt.Y('Percent:Q', title='%'),
            color=alt.Color(
                'Ratio:N',
                scale=alt.Scale(range=[COLORS['primary'], COLORS['warning']]),
                legend=alt.Legend(orient='bottom'),
            ),
            tooltip=[
                alt.Tooltip('country_display:N', title='Country'),
                alt.Tooltip('Ratio:N', title='Ratio'),
                alt.Tooltip('Percent:Q', title='%', format='.2f'),
            ],
        ).properties(height=CHART_HEIGHT)


__all__ = ['PipelineCharts']
