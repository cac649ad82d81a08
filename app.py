"""
MyAsset - Streamlit Application
Asset ledger, portfolio dashboard, property and fixed deposit views, and AI assistant.
"""

import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import logging
from datetime import date
from typing import List, Optional
from dotenv import load_dotenv

from config import get_settings
from db_engine import init_db
from llm_engine import LLMClient, ChatAssistant
from models import AssetRecord, AssetStatus, AssetType
from repositories import UserPreferencesRepository
from services.common import (
    ALL,
    PROPERTY_ACTIONS,
    SUGGESTED_ACTIONS,
    format_currency,
    parse_iso_date,
    to_float,
)
from services.csv_io import export_csv, export_filename, flag_duplicates, import_summary, parse_csv
from services.errors import ChatError, CsvImportError, RecordStoreError, ValidationError
from services.portfolio import DashboardEngine, PERFORMANCE_RANGES, available_currencies
from services.records import RecordService
from services.views import ASC, DESC, PAGE_SIZE_OPTIONS, ListViewState, PageResult
from tools import build_portfolio_tools

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=get_settings().log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Configure Streamlit page
st.set_page_config(
    page_title="MyAsset - Personal Asset Tracker",
    page_icon="💰",
    layout="wide"
)

# Initialize database
init_db()

TYPE_OPTIONS = [t.value for t in AssetType]
STATUS_OPTIONS = [s.value for s in AssetStatus]
SORT_LABELS = {
    'date': 'Date',
    'asset_type': 'Type',
    'name': 'Name',
    'action': 'Action',
    'amount': 'Amount',
    'interest_rate': 'Rate (%)',
    'interest_dividend': 'Interest/Dividend',
    'maturity_date': 'Maturity Date',
    'status': 'Status',
}


# ==================== SESSION STATE ====================
if "engine" not in st.session_state:
    st.session_state.engine = DashboardEngine(currency=UserPreferencesRepository.get_base_currency())

if "record_service" not in st.session_state:
    st.session_state.record_service = RecordService(on_change=st.session_state.engine.set_records)
    st.session_state.record_service.load()

if "editing_id" not in st.session_state:
    st.session_state.editing_id = None

if "messages" not in st.session_state:
    st.session_state.messages = []

if "llm_client" not in st.session_state:
    st.session_state.llm_client = None

if "chat_assistant" not in st.session_state:
    st.session_state.chat_assistant = None

if "import_candidates" not in st.session_state:
    st.session_state.import_candidates = None


# ==================== HELPER FUNCTIONS ====================
def get_engine() -> DashboardEngine:
    return st.session_state.engine


def get_service() -> RecordService:
    return st.session_state.record_service


def get_language() -> str:
    prefs = UserPreferencesRepository.get()
    return prefs.language if prefs and prefs.language else "en"


def auto_initialize_llm():
    """Auto-initialize LLM from .env if configuration exists."""
    if st.session_state.llm_client is not None:
        return

    if get_settings().is_openai_configured:
        try:
            st.session_state.llm_client = LLMClient(mode="cloud")
        except Exception as e:
            st.session_state.llm_client = None
            logger.warning(f"Failed to auto-initialize LLM: {e}")


def records_to_dataframe(rows: List[AssetRecord]) -> pd.DataFrame:
    """Table rows for st.dataframe."""
    return pd.DataFrame([
        {
            'Date': r.date,
            'Type': r.asset_type,
            'Name': r.name,
            'Action': r.action,
            'Unit Price': r.unit_price,
            'Quantity': r.quantity,
            'Amount': r.amount,
            'Fee': r.fee,
            'Rate (%)': r.interest_rate,
            'Interest/Dividend': r.interest_dividend,
            'Maturity Date': r.maturity_date,
            'Status': r.status,
            'Currency': r.currency,
            'Remarks': r.remarks,
        }
        for r in rows
    ])


def allocation_figure(engine: DashboardEngine) -> Optional[go.Figure]:
    """Ring chart of the allocation breakdown."""
    entries = engine.allocation
    if not entries:
        return None
    fig = go.Figure(go.Pie(
        labels=[e.name for e in entries],
        values=[e.value for e in entries],
        marker=dict(colors=[e.color for e in entries]),
        hole=0.5,
        sort=False
    ))
    fig.update_layout(title="Allocation", margin=dict(t=40, b=0, l=0, r=0))
    return fig


def render_pager(state: ListViewState, result: PageResult, key: str):
    """Page size selector and page navigation for a table."""
    col1, col2, col3 = st.columns([2, 2, 3])
    with col1:
        size = st.selectbox(
            "Rows per page",
            PAGE_SIZE_OPTIONS,
            index=PAGE_SIZE_OPTIONS.index(state.page_size) if state.page_size in PAGE_SIZE_OPTIONS else 0,
            key=f"{key}_page_size"
        )
        if size != state.page_size:
            state.set_page_size(size)
            st.rerun()
    with col2:
        page = st.number_input(
            f"Page (of {result.page_count})",
            min_value=1,
            max_value=result.page_count,
            value=result.page,
            step=1,
            key=f"{key}_page_{result.page}_{result.page_count}"
        )
        if page != state.page:
            state.set_page(int(page))
            st.rerun()
    with col3:
        st.caption(f"Showing {result.first_index}-{result.last_index} of {result.total}")


def render_sort_controls(state: ListViewState, key: str):
    """Sort key and direction selectors for a table."""
    current_key, current_direction = state.effective_sort
    keys = list(SORT_LABELS)
    col1, col2 = st.columns(2)
    with col1:
        sort_key = st.selectbox(
            "Sort by",
            keys,
            index=keys.index(current_key) if current_key in keys else 0,
            format_func=lambda k: SORT_LABELS[k],
            key=f"{key}_sort_key"
        )
    with col2:
        direction = st.radio(
            "Direction",
            [DESC, ASC],
            index=0 if current_direction == DESC else 1,
            format_func=lambda d: "Descending" if d == DESC else "Ascending",
            horizontal=True,
            key=f"{key}_sort_direction"
        )
    if (sort_key, direction) != (current_key, current_direction):
        state.set_sort(sort_key, direction)
        st.rerun()


# ==================== SIDEBAR ====================
def render_sidebar():
    """Render the sidebar with currency and assistant settings."""
    engine = get_engine()
    service = get_service()

    st.sidebar.title("⚙️ Settings")

    # --- Currency ---
    st.sidebar.subheader("💱 Currency")
    currencies = available_currencies(service.records, engine.currency)
    selected = st.sidebar.selectbox("Show amounts in", currencies, index=0)
    if selected != engine.currency:
        previous = engine.currency
        engine.set_currency(selected)
        try:
            UserPreferencesRepository.save_base_currency(selected)
        except Exception as e:
            engine.set_currency(previous)
            logger.error(f"Error saving currency preference: {e}")
            st.sidebar.error(f"❌ Could not save currency preference: {e}")
        st.rerun()

    if st.sidebar.button("🔄 Reload records", use_container_width=True):
        if not service.load():
            st.sidebar.error(f"❌ {service.last_error}")
        else:
            st.sidebar.success("✅ Records reloaded")

    # --- LLM Settings ---
    st.sidebar.subheader("🤖 Assistant")
    settings = get_settings()

    llm_mode = st.sidebar.radio(
        "LLM Mode",
        ["Cloud (OpenAI-Compatible)", "Local (Ollama)"],
        index=0,
        help="Choose between cloud OpenAI-compatible API or local Ollama server"
    )
    mode_value = "cloud" if llm_mode == "Cloud (OpenAI-Compatible)" else "local"

    if mode_value == "cloud":
        model_name = st.sidebar.text_input("Model Name", value=settings.openai_model or "gpt-4o")
        api_key = st.sidebar.text_input("API Key", type="password", value=settings.openai_api_key or "")
        base_url = st.sidebar.text_input("Base URL (Optional)", value=settings.openai_base_url or "")
        base_url = base_url if base_url else None
    else:
        model_name = st.sidebar.text_input("Model Name", value=settings.local_model)
        base_url = st.sidebar.text_input("Base URL", value=settings.local_llm_url)
        api_key = "ollama"

    if st.sidebar.button("Update LLM Settings", use_container_width=True):
        try:
            st.session_state.llm_client = LLMClient(
                mode=mode_value,
                model_name=model_name,
                base_url=base_url,
                api_key=api_key or None
            )
            st.session_state.chat_assistant = None
            st.sidebar.success("✅ LLM settings updated!")
        except Exception as e:
            st.sidebar.error(f"❌ Error: {str(e)}")


# ==================== MAIN CONTENT ====================
def render_dashboard():
    """Render totals, allocation and history for the selected currency."""
    engine = get_engine()
    st.subheader(f"📊 Dashboard ({engine.currency})")

    options = [ALL] + TYPE_OPTIONS
    type_filter = st.selectbox(
        "Asset type", options, index=options.index(engine.type_filter),
        key=f"dashboard_type_{engine.type_filter}"
    )
    if type_filter != engine.type_filter:
        engine.set_type_filter(type_filter)
        st.rerun()

    total = engine.total_value
    top = engine.top_asset

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total Value (Active)", format_currency(total.value, total.currency))
    with col2:
        label = "Top Asset Type" if engine.type_filter == ALL else "Top Holding"
        st.metric(label, top.name, format_currency(top.value, total.currency), delta_color="off")
    with col3:
        st.metric("Records", f"{engine.record_count}")

    if engine.record_count == 0:
        st.info("No records in this currency yet. Add one in the 'Records' tab.")
        return

    col1, col2 = st.columns(2)
    with col1:
        fig = allocation_figure(engine)
        if fig is not None:
            st.plotly_chart(fig, use_container_width=True)
        else:
            st.info("No active holdings to chart.")
    with col2:
        time_range = st.radio("Performance", PERFORMANCE_RANGES, index=1, horizontal=True)
        series = engine.performance_series(time_range)
        df_perf = pd.DataFrame([{'Date': p.date, 'Value': p.value} for p in series])
        fig = px.area(df_perf, x='Date', y='Value', title=f"Performance ({time_range})")
        st.plotly_chart(fig, use_container_width=True)

    st.markdown("### Net Worth")
    df_nw = pd.DataFrame([{'Date': p.date, 'Net Worth': p.value} for p in engine.net_worth_series])
    if not df_nw.empty:
        st.line_chart(df_nw.set_index('Date'))

    st.markdown("### Recent Transactions")
    st.dataframe(records_to_dataframe(engine.filtered_records[:10]), use_container_width=True, hide_index=True)


def render_property():
    """Render property cash flow and the property ledger."""
    engine = get_engine()
    st.subheader("🏢 Property")

    names = engine.property_names
    if not names:
        st.info("No property records in this currency.")
        return

    options = [ALL] + names
    selected = st.selectbox(
        "Property",
        options,
        index=options.index(engine.selected_property) if engine.selected_property in options else 0
    )
    if selected != engine.selected_property:
        engine.set_selected_property(selected)
        st.rerun()

    flow = engine.property_cash_flow
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total Invested", format_currency(flow.total_invested, engine.currency))
    with col2:
        st.metric("Total Returned", format_currency(flow.total_returned, engine.currency))
    with col3:
        st.metric("Net Cash Flow", format_currency(flow.net_cash_flow, engine.currency))

    render_sort_controls(engine.property_view, "property")
    result = engine.property_page()
    st.dataframe(records_to_dataframe(result.rows), use_container_width=True, hide_index=True)
    render_pager(engine.property_view, result, "property")


def render_fixed_deposits():
    """Render fixed deposit principal, expected interest and the deposit list."""
    engine = get_engine()
    st.subheader("🏦 Fixed Deposits")

    stats = engine.fd_stats
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Active Principal", format_currency(stats.principal, engine.currency))
    with col2:
        st.metric("Expected Interest", format_currency(stats.expected_interest, engine.currency))
    with col3:
        st.metric("Active Deposits", f"{stats.count}")

    search = st.text_input("Search bank", value=engine.fd_view.search, key="fd_search")
    if search != engine.fd_view.search:
        engine.fd_view.set_search(search)
        st.rerun()

    render_sort_controls(engine.fd_view, "fd")
    result = engine.fd_page()
    st.dataframe(records_to_dataframe(result.rows), use_container_width=True, hide_index=True)
    render_pager(engine.fd_view, result, "fd")


def render_record_form(editing: Optional[AssetRecord]):
    """Render the create/edit form for a record."""
    st.subheader("✏️ Edit Record" if editing else "➕ New Record")

    base = editing or AssetRecord(
        date=date.today().isoformat(),
        asset_type=AssetType.STOCK.value,
        name="",
        action="Buy",
        status=AssetStatus.ACTIVE.value,
        currency=get_engine().currency,
    )
    form_key = f"record_form_{editing.id if editing else 'new'}"
    asset_type = st.selectbox(
        "Type", TYPE_OPTIONS, index=TYPE_OPTIONS.index(base.asset_type), key=f"{form_key}_type"
    )

    with st.form(form_key):
        col1, col2 = st.columns(2)
        with col1:
            record_date = st.date_input("Date", value=parse_iso_date(base.date) or date.today())
            name = st.text_input("Name / Identifier", value=base.name, placeholder="e.g. Maybank, EPF, Gold")
            if asset_type == AssetType.PROPERTY:
                action = st.selectbox(
                    "Action", PROPERTY_ACTIONS,
                    index=PROPERTY_ACTIONS.index(base.action) if base.action in PROPERTY_ACTIONS else 0
                )
            else:
                action = st.text_input("Action", value=base.action, help=f"e.g. {', '.join(SUGGESTED_ACTIONS)}")
            status = st.selectbox("Status", STATUS_OPTIONS, index=STATUS_OPTIONS.index(base.status))
            currency = st.text_input("Currency", value=base.currency or get_engine().currency)
        with col2:
            amount = st.text_input("Total Amount", value=str(base.amount or ""))
            unit_price = st.text_input("Unit Price", value=str(base.unit_price or ""))
            quantity = st.text_input("Quantity", value=str(base.quantity or ""))
            fee = st.text_input("Fee", value=str(base.fee or ""))
            rate = st.text_input("Interest Rate (% p.a.)", value=str(base.interest_rate or ""))
            interest = st.text_input(
                "Interest/Dividend",
                value=str(base.interest_dividend or ""),
                disabled=asset_type == AssetType.FIXED_DEPOSIT,
                help="Calculated from rate and maturity date for fixed deposits"
            )
            maturity = st.text_input("Maturity Date (YYYY-MM-DD)", value=base.maturity_date or "")
        remarks = st.text_area("Remarks", value=base.remarks or "")

        submitted = st.form_submit_button("💾 Save Record", use_container_width=True)

    if submitted:
        draft = AssetRecord(
            date=record_date.isoformat(),
            asset_type=asset_type,
            name=name,
            action=action,
            amount=to_float(amount),
            unit_price=unit_price,
            quantity=quantity,
            fee=fee,
            interest_rate=rate,
            interest_dividend=None if asset_type == AssetType.FIXED_DEPOSIT else interest,
            maturity_date=maturity,
            status=status,
            currency=currency,
            remarks=remarks,
        )
        try:
            get_service().save(draft, editing.id if editing else None)
            st.session_state.editing_id = None
            st.success("✅ Record saved!")
            st.rerun()
        except ValidationError as e:
            for message in e.errors:
                st.error(f"❌ {message}")
        except RecordStoreError as e:
            st.error(f"❌ {e}")

    if editing and st.button("Cancel editing"):
        st.session_state.editing_id = None
        st.rerun()


def render_import_export():
    """Render CSV export and the two-step import flow."""
    engine = get_engine()
    service = get_service()

    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            label="📥 Export CSV",
            data=export_csv(engine.filtered_records),
            file_name=export_filename(),
            mime="text/csv",
            use_container_width=True
        )
    with col2:
        uploaded = st.file_uploader("📤 Import CSV", type=["csv"])
        if uploaded is not None and st.button("Read file", use_container_width=True):
            try:
                parsed = parse_csv(uploaded.getvalue().decode("utf-8-sig"))
                st.session_state.import_candidates = flag_duplicates(parsed, service.records)
            except (CsvImportError, UnicodeDecodeError) as e:
                st.session_state.import_candidates = None
                st.error(f"❌ {e}")

    candidates = st.session_state.import_candidates
    if candidates is None:
        return

    summary = import_summary(candidates)
    st.markdown("#### Confirm Import")
    c1, c2, c3 = st.columns(3)
    c1.metric("Total Records", summary.count)
    c2.metric("Asset Types", summary.type_count)
    c3.metric("Likely Duplicates", summary.duplicate_count)
    for currency, value in summary.totals_by_currency.items():
        st.caption(f"Total value ({currency}): {format_currency(value, currency)}")
    for record in summary.preview:
        st.text(f"{record.date} - {record.name}  {record.amount}")
    if summary.count > 3:
        st.caption(f"+ {summary.count - 3} more...")

    skip_duplicates = st.checkbox("Skip likely duplicates", value=True)
    col1, col2 = st.columns(2)
    with col1:
        if st.button("✅ Confirm Import", type="primary", use_container_width=True):
            to_store = [c.record for c in candidates if not (skip_duplicates and c.is_duplicate)]
            try:
                created = service.import_records(to_store)
                st.session_state.import_candidates = None
                st.success(f"✅ Imported {len(created)} records")
                st.rerun()
            except RecordStoreError as e:
                st.error(f"❌ {e}")
    with col2:
        if st.button("Discard", use_container_width=True):
            st.session_state.import_candidates = None
            st.rerun()


def render_records():
    """Render the full ledger with search, filter, sort, paging and batch delete."""
    engine = get_engine()
    service = get_service()
    view = engine.records_view
    st.subheader("📒 Records")

    if service.last_error:
        st.error(f"❌ {service.last_error}")

    col1, col2 = st.columns(2)
    with col1:
        search = st.text_input("Search name or remarks", value=view.search, key="records_search")
        if search != view.search:
            view.set_search(search)
            st.rerun()
    with col2:
        options = [ALL] + TYPE_OPTIONS
        type_filter = st.selectbox(
            "Type", options, index=options.index(view.type_filter), key=f"records_type_{view.type_filter}"
        )
        if type_filter != view.type_filter:
            engine.set_type_filter(type_filter)
            st.rerun()

    render_sort_controls(view, "records")
    result = engine.records_page()
    st.dataframe(records_to_dataframe(result.rows), use_container_width=True, hide_index=True)
    render_pager(view, result, "records")

    labels = {r.id: f"{r.date} | {r.asset_type} | {r.name} | {r.action} | {r.amount}" for r in result.rows}
    selected = st.multiselect(
        "Select records", list(labels), default=[i for i in view.selected_ids if i in labels],
        format_func=lambda i: labels[i]
    )
    view.selected_ids = set(selected)

    col1, col2 = st.columns(2)
    with col1:
        if st.button("✏️ Edit selected", disabled=len(selected) != 1, use_container_width=True):
            st.session_state.editing_id = selected[0]
            st.rerun()
    with col2:
        if st.button(f"🗑️ Delete {len(selected)} selected", disabled=not selected, use_container_width=True):
            try:
                if len(selected) == 1:
                    service.delete(selected[0])
                else:
                    service.delete_many(selected)
                view.clear_selection()
                st.success("✅ Deleted")
                st.rerun()
            except RecordStoreError as e:
                st.error(f"❌ {e}")

    st.markdown("---")
    editing = service.get(st.session_state.editing_id) if st.session_state.editing_id else None
    render_record_form(editing)

    st.markdown("---")
    render_import_export()


def render_settings():
    """Render profile preferences."""
    st.subheader("⚙️ Preferences")
    prefs = UserPreferencesRepository.get()

    display_name = st.text_input("Display name", value=(prefs.display_name if prefs else "") or "")
    languages = ["en", "zh", "ms"]
    language = st.selectbox(
        "Assistant language", languages,
        index=languages.index(prefs.language) if prefs and prefs.language in languages else 0
    )
    theme = st.radio(
        "Theme", ["dark", "light"],
        index=1 if prefs and prefs.theme == "light" else 0, horizontal=True
    )

    if st.button("Save Preferences"):
        try:
            UserPreferencesRepository.save_display_name(display_name)
            UserPreferencesRepository.save_language(language)
            UserPreferencesRepository.save_theme(theme)
            st.session_state.chat_assistant = None
            st.success("✅ Preferences saved!")
        except Exception as e:
            logger.error(f"Error updating preferences: {e}")
            st.error(f"❌ Could not save preferences: {e}")


def render_chat_interface():
    """Render AI chat interface over the user's records."""
    st.subheader("🤖 AI Assistant")

    if st.session_state.llm_client is None:
        st.info("⚠️ Please configure LLM settings in the sidebar first.")
        return

    if st.session_state.chat_assistant is None:
        engine = get_engine()
        st.session_state.chat_assistant = ChatAssistant(
            st.session_state.llm_client.get_llm(),
            engine.records,
            tools=build_portfolio_tools(engine),
            language=get_language()
        )
        st.session_state.messages = [{
            "role": "assistant",
            "content": "Hi! Ask me anything about your assets."
        }]

    if st.button("🔄 New conversation"):
        st.session_state.chat_assistant = None
        st.rerun()

    for message in st.session_state.messages:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])

    if prompt := st.chat_input("Ask about your portfolio..."):
        st.session_state.messages.append({"role": "user", "content": prompt})
        with st.chat_message("user"):
            st.markdown(prompt)

        with st.chat_message("assistant"):
            with st.spinner("Thinking..."):
                try:
                    reply = st.session_state.chat_assistant.send(prompt)
                    st.markdown(reply)
                    st.session_state.messages.append({"role": "assistant", "content": reply})
                except ChatError as e:
                    st.error(f"❌ {e}")


# ==================== MAIN APP ====================
def main():
    """Main application entry point."""
    prefs = UserPreferencesRepository.get()
    greeting = f", {prefs.display_name}" if prefs and prefs.display_name else ""
    st.title("💰 MyAsset")
    st.markdown(f"*Track every asset in one place{greeting}.*")

    auto_initialize_llm()
    render_sidebar()

    if get_service().last_error:
        st.warning(f"⚠️ {get_service().last_error}")

    tab1, tab2, tab3, tab4, tab5, tab6 = st.tabs([
        "📊 Dashboard", "🏢 Property", "🏦 Fixed Deposits",
        "📒 Records", "🤖 AI Assistant", "⚙️ Settings"
    ])

    with tab1:
        render_dashboard()

    with tab2:
        render_property()

    with tab3:
        render_fixed_deposits()

    with tab4:
        render_records()

    with tab5:
        render_chat_interface()

    with tab6:
        render_settings()

    st.markdown("---")
    st.markdown(
        "<div style='text-align: center; color: gray;'>"
        "MyAsset is for personal record keeping only. Not financial advice.</div>",
        unsafe_allow_html=True
    )


if __name__ == "__main__":
    main()
