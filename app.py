# app.py
"""
Club Performance Dashboard - Main Entry Point

Version: 1.0.0
"""

import streamlit as st
from club_dashboard.api_client import check_api_connection
from club_dashboard.config import config
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "Club Performance"
APP_ICON = "🏋️"
APP_VERSION = "1.0.0"

st.set_page_config(
    page_title=f"{APP_NAME} Dashboard",
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

# ==================== CUSTOM CSS ====================

st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        margin-bottom: 0.5rem;
        color: #1f77b4;
    }

    .sub-header {
        font-size: 1.1rem;
        color: #666;
        margin-bottom: 2rem;
    }

    .info-card {
        background: #f8f9fa;
        padding: 1.5rem;
        border-radius: 0.5rem;
        border-left: 4px solid #1f77b4;
        margin-bottom: 1rem;
    }

    .footer {
        text-align: center;
        color: #888;
        padding: 1rem;
        margin-top: 3rem;
        border-top: 1px solid #eee;
        font-size: 0.9rem;
    }
</style>
""", unsafe_allow_html=True)


# ==================== MAIN ====================

def main():
    """Main application entry point"""
    st.markdown(f'<p class="main-header">{APP_ICON} {APP_NAME}</p>', unsafe_allow_html=True)
    st.markdown('<p class="sub-header">Sales, onboarding and defaulter analytics across all clubs</p>',
                unsafe_allow_html=True)

    # Check reporting API connection
    api_ok, api_error = check_api_connection()
    if not api_ok:
        st.error(f"⚠️ {api_error}")
        st.info("Please check your network connection or the REPORTING_API_BASE_URL setting.")
        return

    st.success("✅ Reporting API connected")

    st.markdown("### 📊 Available Dashboards")
    st.markdown("""
    <div class="info-card">
        <strong>🏋️ Pipeline Performance</strong><br>
        <span style="color: #666;">Leads, appointments and NJMs; member onboarding; defaulter recovery;
        regional leaderboard. Click any metric to drill into the underlying records.</span>
    </div>
    """, unsafe_allow_html=True)

    if config.is_feature_enabled("DEBUG_MODE"):
        with st.expander("🔧 Configuration"):
            st.json({**config.get_api_config().to_dict(), **config.app_config})

    # Footer
    st.markdown(f"""
    <div class="footer">
        <strong>{APP_NAME}</strong> v{APP_VERSION}
    </div>
    """, unsafe_allow_html=True)


if __name__ == "__main__":
    main()
