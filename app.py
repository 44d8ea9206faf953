import logging
from contextlib import contextmanager
from typing import Dict, List, Optional

import pandas as pd
import streamlit as st

from core.assistant import CHAT_FALLBACK, Assistant, AssistantError, ChatSession
from core.charts import available_themes
from core.config import APP_NAME, DEFAULT_CHART_THEME, PREDICTION_PERIODS, configure_logging, load_settings
from core.data import DashboardCatalog, load_catalog
from core.filters import normalize_selection
from core.formatting import format_currency, format_number, format_number_columns, format_percent
from core.metrics_correlation import compute_correlation
from core.metrics_debug import compute_debug
from core.metrics_predictor import compute_stock_history, stock_label

logger = logging.getLogger(__name__)
settings = load_settings()
configure_logging(settings.log_level)


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #374151;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #9ca3af;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;}
        .card {border: 1px solid #374151;border-radius: 12px;padding: 16px;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;}
        .card-actions {font-size: 0.9rem;color: #3b82f6;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #1f2937;border: 1px solid #374151;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #d1d5db;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_selection_summary(chips: List[str]) -> str:
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_page_header(title: str, breadcrumb: str, summary_html: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    top = st.container()
    c1, c2 = top.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        btn_cols = st.columns(2)
        if btn_cols[0].button("Regenerate", help="Build a fresh set of synthetic series."):
            load_catalog.cache_clear()
            st.session_state.pop("ai_results", None)
            st.rerun()
        if export_df is not None and not export_df.empty:
            btn_cols[1].download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    if summary_html:
        st.markdown(f"<div class='chip-row'>{summary_html}</div>", unsafe_allow_html=True)


@st.cache_resource
def get_assistant() -> Optional[Assistant]:
    return Assistant.from_settings(settings.assistant)


def get_chat_session(assistant: Assistant) -> ChatSession:
    if "chat_session" not in st.session_state:
        st.session_state["chat_session"] = ChatSession(assistant.client)
    return st.session_state["chat_session"]


def cached_ai_result(key: tuple, produce) -> str:
    """Run an assistant call once per selection and keep the answer across reruns."""
    results: Dict[tuple, str] = st.session_state.setdefault("ai_results", {})
    if key not in results:
        with st.spinner("Asking the AI assistant..."):
            results[key] = produce()
    return results[key]


# ---------- UI setup ----------
st.set_page_config(page_title=f"{APP_NAME} Dashboard", layout="wide")
inject_base_styles()
st.title(f"{APP_NAME}")
st.caption("COVID-19 vs. market correlation, stock outlooks and an AI chatbot, on synthetic data.")

catalog: DashboardCatalog = load_catalog(settings.seed)
assistant = get_assistant()
themes = available_themes()

# ----- Sidebar: navigation + settings -----
with st.sidebar:
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", ["Correlation Analysis", "Stock Predictor", "AI Chatbot", "Contact"], index=0)
    more_page = None
    with st.expander("More", expanded=False):
        if st.checkbox("Show data quality page", value=False):
            more_page = "Data Quality"

    st.markdown("---")
    theme = st.selectbox("Chart theme", options=themes, index=themes.index(DEFAULT_CHART_THEME))

    st.markdown("---")
    with st.expander("Need help?", expanded=False):
        help_query = st.text_input("Ask about the app", key="help_query")
        if st.button("Ask", key="help_submit", disabled=assistant is None) and help_query.strip():
            with st.spinner("Looking that up..."):
                st.session_state["help_response"] = assistant.get_help(help_query)
        if st.session_state.get("help_response"):
            st.info(st.session_state["help_response"])
        if assistant is None:
            st.caption("Help bot needs GEMINI_API_KEY.")


def render_assistant_box(title: str, key: tuple, produce):
    with card(title):
        if assistant is None:
            st.warning("AI assistant is not configured. Set GEMINI_API_KEY to enable it.")
            return
        st.write(cached_ai_result(key, produce))


# ----- Page renderers -----

def render_correlation_page():
    countries = catalog.list_countries()
    if not countries:
        st.error("No country datasets available.")
        return
    country = st.selectbox("Country", options=countries, key="country")
    selection = normalize_selection(
        {"country": country, "theme": theme}, available_countries=countries, available_themes=themes
    )
    dataset = catalog.fetch_country_dataset(selection.country)
    if dataset is None:
        st.error(f"No data for {selection.country}.")
        return
    payload = compute_correlation(selection, dataset)
    kpis = payload["kpis"]
    period = payload["period"]

    summary_html = format_selection_summary(
        [f"Country: {selection.country}", f"Index: {dataset.index_name}", f"{period['start']} → {period['end']}"]
    )
    frame = dataset.to_frame()
    render_page_header("Correlation Analysis", "Home / Correlation Analysis", summary_html, export_df=frame, export_name=f"{selection.country.lower()}.csv")

    with card("Key figures"):
        cols = st.columns(5)
        cols[0].metric("Peak daily cases", format_number(kpis["peak_cases"]))
        cols[1].metric("Avg daily cases", format_number(kpis["avg_cases"]))
        cols[2].metric("Total deaths", format_number(kpis["total_deaths"]))
        cols[3].metric(
            f"{dataset.index_name} last",
            format_number(kpis["index_last"], 2),
            delta=format_percent(kpis["index_change_pct"]) if kpis["index_change_pct"] is not None else None,
        )
        cols[4].metric(
            "Cases vs index (r)",
            f"{kpis['cases_index_correlation']:.2f}" if kpis["cases_index_correlation"] is not None else "N/A",
            help="Pearson correlation between daily cases and the index value.",
        )

    chart_cols = st.columns(2)
    with chart_cols[0]:
        with card("COVID-19 Trends"):
            st.vega_lite_chart(payload["charts"]["covid_trends"], use_container_width=True, theme=None)
    with chart_cols[1]:
        with card("Stock Market Performance"):
            st.vega_lite_chart(payload["charts"]["market_performance"], use_container_width=True, theme=None)

    with card("Last 14 days"):
        recent = frame.tail(14).iloc[::-1]
        st.dataframe(format_number_columns(recent, ["cases", "deaths"]), hide_index=True, use_container_width=True)

    ai_cols = st.columns(2)
    with ai_cols[0]:
        render_assistant_box(
            "AI correlation analysis",
            ("analysis", selection.country),
            lambda: assistant.analyze_country(selection.country, dataset),
        )
    with ai_cols[1]:
        render_assistant_box(
            f"{dataset.index_name}: 30-day outlook",
            ("index_prediction", selection.country),
            lambda: assistant.predict_index(selection.country, dataset),
        )


def render_predictor_page():
    listings = catalog.list_stocks()
    if not listings:
        st.error("No stock datasets available.")
        return
    names = {s.ticker: s.name for s in listings}
    control_cols = st.columns(2)
    with control_cols[0]:
        ticker = st.selectbox("Stock", options=list(names), format_func=lambda t: f"{t} - {names[t]}", key="ticker")
    with control_cols[1]:
        period = st.radio("Forecast horizon (days)", options=list(PREDICTION_PERIODS), horizontal=True, key="prediction_period")
    selection = normalize_selection(
        {"ticker": ticker, "prediction_period": period, "theme": theme},
        available_tickers=list(names),
        available_themes=themes,
    )
    dataset = catalog.fetch_stock_dataset(selection.ticker)
    if dataset is None:
        st.error(f"No data for {selection.ticker}.")
        return
    payload = compute_stock_history(selection, dataset)
    kpis = payload["kpis"]
    period_info = payload["period"]

    summary_html = format_selection_summary(
        [f"Stock: {stock_label(dataset, selection.ticker)}", f"{period_info['start']} → {period_info['end']}", f"Horizon: {selection.prediction_period}d"]
    )
    frame = dataset.to_frame()
    render_page_header("Stock Predictor", "Home / Stock Predictor", summary_html, export_df=frame, export_name=f"{selection.ticker}.csv")

    with card("Price summary"):
        cols = st.columns(4)
        cols[0].metric("Last close", format_currency(kpis["last_close"]), delta=format_percent(kpis["change_pct"]) if kpis["change_pct"] is not None else None)
        cols[1].metric("High", format_currency(kpis["high"]))
        cols[2].metric("Low", format_currency(kpis["low"]))
        cols[3].metric("Average", format_currency(kpis["average"]))

    with card("Historical Stock Price"):
        st.vega_lite_chart(payload["charts"]["price_history"], use_container_width=True, theme=None)

    render_assistant_box(
        f"AI forecast: next {selection.prediction_period} days",
        ("stock_prediction", selection.ticker, selection.prediction_period),
        lambda: assistant.predict_stock(selection.ticker, dataset, selection.prediction_period),
    )


def render_chatbot_page():
    render_page_header("AI Chatbot", "Home / AI Chatbot", "")
    if assistant is None:
        st.warning("AI assistant is not configured. Set GEMINI_API_KEY to enable the chatbot.")
        return
    session = get_chat_session(assistant)
    if st.button("New conversation"):
        session.reset()
    for message in session.transcript():
        with st.chat_message("assistant" if message.role == "model" else "user"):
            st.markdown(message.text)
    prompt = st.chat_input("Type your message...")
    if prompt and prompt.strip():
        with st.chat_message("user"):
            st.markdown(prompt)
        with st.chat_message("assistant"):
            with st.spinner("Thinking..."):
                try:
                    reply = session.send(prompt.strip())
                except AssistantError:
                    logger.exception("chat failed")
                    reply = CHAT_FALLBACK
            st.markdown(reply)


def render_contact_page():
    render_page_header("Contact", "Home / Contact", "")
    with card("Get in touch"):
        st.markdown(
            f"{APP_NAME} is a demo dashboard built on synthetic data. "
            "Nothing shown here is financial or medical advice."
        )
        with st.form("contact_form", clear_on_submit=True):
            name = st.text_input("Name")
            email = st.text_input("Email")
            message = st.text_area("Message")
            if st.form_submit_button("Send"):
                if not (name.strip() and email.strip() and message.strip()):
                    st.error("Please fill in every field.")
                else:
                    st.success(f"Thanks {name.strip()}, we'll get back to you.")


def render_debug_page():
    render_page_header("Data Quality", "Home / More / Data Quality", "")
    payload = compute_debug(catalog)
    with card("Row counts"):
        st.write(payload["row_counts"])
        if payload["invariant_violations"]:
            st.error(f"{payload['invariant_violations']} invariant violations found.")
        else:
            st.success("All series are aligned, gap-free and within bounds.")
    with card("Country datasets"):
        st.dataframe(pd.DataFrame(payload["countries"]), hide_index=True, use_container_width=True)
        st.caption("deaths_exceed_cases is informational: the death fraction is drawn per day and is not capped.")
    with card("Stock datasets"):
        st.dataframe(pd.DataFrame(payload["stocks"]), hide_index=True, use_container_width=True)


current_page = more_page or nav_choice

if current_page == "Correlation Analysis":
    render_correlation_page()
elif current_page == "Stock Predictor":
    render_predictor_page()
elif current_page == "AI Chatbot":
    render_chatbot_page()
elif current_page == "Contact":
    render_contact_page()
else:
    render_debug_page()
