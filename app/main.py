"""
Streamlit Frontend for North Ledger

The screens a bookkeeper (or their CPA) uses day to day: record journal
entries, browse the journal, and read the Profit & Loss and Balance Sheet.

DESIGN PRINCIPLES:
1. The running debit/credit totals are always visible while typing
2. A rejected entry shows ONE clear message and nothing is saved
3. Posted entries are read-only; the only action on them is Void
4. Every figure on a report page comes from storage, never from the form
"""

import asyncio
import io
from datetime import date
from decimal import Decimal, InvalidOperation

import streamlit as st

from north_ledger.audit import create_correlation_id
from north_ledger.ledger import ChartOfAccounts, JournalValidationError, LedgerError
from north_ledger.models.ledger import (
    JournalEntryLine,
    JournalEntryStatus,
    LedgerSession,
)
from north_ledger.models.statements import FinancialStatement, StatementType
from north_ledger.orchestrator import JournalEntryFlow, ReportFlow, create_app_components
from north_ledger.services.storage import StorageError


# Page configuration
st.set_page_config(
    page_title="North Ledger",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .balanced-box {
        padding: 12px 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .unbalanced-box {
        padding: 12px 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)

GENERIC_STORAGE_MESSAGE = "We couldn't reach the ledger storage. Please try again in a moment."


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components(use_storage=True)


def _money(value: Decimal) -> str:
    return f"{value:,.2f}"


def _to_decimal(value) -> Decimal:
    if value in (None, ""):
        return Decimal("0")
    try:
        return Decimal(str(value)).quantize(Decimal("0.01"))
    except InvalidOperation:
        return Decimal("0")


def get_session() -> LedgerSession:
    """Build the session from the sidebar identity fields."""
    user_id = st.session_state.get("user_id") or "local-user"
    client_id = st.session_state.get("client_id") or None
    return LedgerSession(user_id=user_id, client_id=client_id)


def main():
    """Main application entry point."""
    journal_flow, report_flow, sheets_client = get_components()

    st.sidebar.title("📒 North Ledger")
    st.sidebar.text_input("Your user ID", key="user_id", value="local-user")
    st.sidebar.text_input(
        "Client ID (leave empty for your own books)",
        key="client_id",
    )
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["✍️ New Journal Entry", "📚 Journal", "📈 Profit & Loss", "⚖️ Balance Sheet", "⚙️ Settings"],
        index=0,
    )

    if sheets_client is None:
        st.sidebar.warning("Running on in-memory storage. Nothing is saved after restart.")

    session = get_session()

    if page == "✍️ New Journal Entry":
        render_entry_page(journal_flow, session)
    elif page == "📚 Journal":
        render_journal_page(journal_flow, session)
    elif page == "📈 Profit & Loss":
        render_statement_page(report_flow, session, StatementType.PROFIT_LOSS)
    elif page == "⚖️ Balance Sheet":
        render_statement_page(report_flow, session, StatementType.BALANCE_SHEET)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_entry_page(journal_flow: JournalEntryFlow, session: LedgerSession):
    """Render the journal entry form."""
    st.title("✍️ New Journal Entry")

    try:
        chart: ChartOfAccounts = run_async(journal_flow.load_chart(session))
    except StorageError:
        st.error(GENERIC_STORAGE_MESSAGE)
        return

    accounts = chart.active()
    if not accounts:
        st.info("No active accounts yet. Add accounts to the chart before recording entries.")
        return

    labels = {account.label: account.id for account in accounts}

    col1, col2 = st.columns(2)
    with col1:
        entry_date = st.date_input("Date", value=date.today())
    with col2:
        reference = st.text_input("Reference (optional)", placeholder="Generated if left empty")
    description = st.text_area("Description", max_chars=500)

    st.markdown("**Lines**")
    rows = st.data_editor(
        [
            {"Account": None, "Description": "", "Debit": None, "Credit": None},
            {"Account": None, "Description": "", "Debit": None, "Credit": None},
        ],
        num_rows="dynamic",
        use_container_width=True,
        column_config={
            "Account": st.column_config.SelectboxColumn("Account", options=list(labels)),
            "Debit": st.column_config.NumberColumn("Debit", min_value=0.0, step=0.01, format="%.2f"),
            "Credit": st.column_config.NumberColumn("Credit", min_value=0.0, step=0.01, format="%.2f"),
        },
        key="entry_lines",
    )

    lines = [
        JournalEntryLine(
            account_id=labels.get(row.get("Account") or "", ""),
            description=row.get("Description") or None,
            debit_amount=_to_decimal(row.get("Debit")),
            credit_amount=_to_decimal(row.get("Credit")),
        )
        for row in rows
    ]

    total_debit = sum((line.debit_amount for line in lines), Decimal("0"))
    total_credit = sum((line.credit_amount for line in lines), Decimal("0"))
    box = "balanced-box" if total_debit == total_credit and total_debit > 0 else "unbalanced-box"
    st.markdown(f"""
    <div class="{box}">
        <strong>Debits:</strong> {_money(total_debit)} &nbsp;&nbsp;
        <strong>Credits:</strong> {_money(total_credit)} &nbsp;&nbsp;
        <strong>Difference:</strong> {_money(total_debit - total_credit)}
    </div>
    """, unsafe_allow_html=True)

    col1, col2 = st.columns(2)
    with col1:
        post_clicked = st.button("✅ Post Entry", type="primary")
    with col2:
        draft_clicked = st.button("💾 Save as Draft")

    if not (post_clicked or draft_clicked):
        return

    try:
        saved = run_async(
            journal_flow.submit_entry(
                session,
                entry_date=entry_date,
                description=description,
                lines=lines,
                reference=reference or None,
                post=post_clicked,
                correlation_id=create_correlation_id(),
            )
        )
    except JournalValidationError as e:
        st.error(e.result.first_error)
        st.markdown(journal_flow.validator.get_user_friendly_summary(e.result))
        return
    except StorageError:
        st.error(GENERIC_STORAGE_MESSAGE)
        return

    st.success(f"Entry {saved.reference} {saved.status.value}.")


def render_journal_page(journal_flow: JournalEntryFlow, session: LedgerSession):
    """Render the journal list with post/void actions."""
    st.title("📚 Journal")

    status_filter = st.selectbox(
        "Status",
        options=[None] + list(JournalEntryStatus),
        format_func=lambda x: "All" if x is None else x.value.title(),
    )

    try:
        entries = run_async(journal_flow.list_entries(session, status=status_filter))
    except StorageError:
        st.error(GENERIC_STORAGE_MESSAGE)
        return

    if not entries:
        st.info("No journal entries yet.")
        return

    for entry in entries:
        title = f"{entry.date.isoformat()} · {entry.reference or entry.id} · {entry.description}"
        with st.expander(f"[{entry.status.value.upper()}] {title}"):
            st.table([
                {
                    "Account": line.account_name or line.account_id,
                    "Description": line.description or "",
                    "Debit": _money(line.debit_amount) if line.debit_amount else "",
                    "Credit": _money(line.credit_amount) if line.credit_amount else "",
                }
                for line in entry.lines
            ])
            if entry.reverses_entry_id:
                st.caption(f"Reverses entry {entry.reverses_entry_id}")
            if entry.reversed_by_entry_id:
                st.caption(f"Reversed by entry {entry.reversed_by_entry_id}")

            if entry.status == JournalEntryStatus.DRAFT:
                if st.button("Post", key=f"post-{entry.id}"):
                    _run_action(journal_flow.post_draft(session, entry.id))

            if entry.status != JournalEntryStatus.VOID and not entry.in_reversal_pair:
                if st.button("Void", key=f"void-{entry.id}"):
                    _run_action(journal_flow.void_entry(session, entry.id))
                if entry.status == JournalEntryStatus.POSTED:
                    if st.button("Reverse", key=f"rev-{entry.id}", help="Record a reversing entry dated today"):
                        _run_action(journal_flow.reverse_entry(session, entry.id))


def _run_action(coro):
    try:
        run_async(coro)
    except JournalValidationError as e:
        st.error(e.result.first_error)
        return
    except LedgerError as e:
        st.error(str(e))
        return
    except StorageError:
        st.error(GENERIC_STORAGE_MESSAGE)
        return
    st.rerun()


def render_statement_page(
    report_flow: ReportFlow,
    session: LedgerSession,
    statement_type: StatementType,
):
    """Render a Profit & Loss or Balance Sheet page."""
    st.title(statement_type.title)

    today = date.today()
    col1, col2 = st.columns(2)
    with col1:
        period_start = st.date_input("From", value=date(today.year, 1, 1), key=f"{statement_type.value}-from")
    with col2:
        period_end = st.date_input("To", value=today, key=f"{statement_type.value}-to")

    try:
        statement: FinancialStatement = run_async(
            report_flow.statement(statement_type, session, period_start, period_end)
        )
    except ValueError as e:
        st.error(str(e))
        return
    except StorageError:
        st.error(GENERIC_STORAGE_MESSAGE)
        return

    if statement_type == StatementType.BALANCE_SHEET:
        st.caption("Balances as of today. Equity is total assets minus total liabilities.")

    for section in statement.sections():
        st.subheader(section)
        items = statement.items_in(section)
        if not items:
            st.write("None")
            continue
        st.table([{"Account": i.category, "Amount": _money(i.amount)} for i in items])

    st.markdown("---")
    cols = st.columns(len(statement.totals) or 1)
    for col, (name, value) in zip(cols, statement.totals.items()):
        with col:
            st.markdown(f"{name}<br><span class='big-number'>{_money(value)}</span>", unsafe_allow_html=True)

    st.markdown("---")
    buffer = io.StringIO()
    run_async(report_flow.export_csv(session, statement, buffer))
    st.download_button(
        "⬇️ Download CSV",
        data=buffer.getvalue(),
        file_name=f"{statement.type.value}_{period_start}_{period_end}.csv",
        mime="text/csv",
    )

    if report_flow.can_export_to_sheets and st.button("📤 Export to Google Sheets"):
        try:
            count = run_async(report_flow.export_to_sheets(session, statement))
            st.success(f"Exported {count} rows.")
        except StorageError:
            st.error(GENERIC_STORAGE_MESSAGE)


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    from north_ledger.config import validate_all_settings

    status = validate_all_settings()

    sections = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Ledger rules", "ledger"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "Create a `.env` file with your Google Sheets credentials path and "
        "spreadsheet ID. See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
