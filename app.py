"""
Vaultify - Streamlit Application
Multi-platform investment tracker with AI market intel and cloud sync.
"""

import streamlit as st
import logging
from datetime import date
from typing import List, Optional
from dotenv import load_dotenv

from config import get_settings, setup_logging
from db_engine import init_db
from models import AssetType, Portfolio, TransactionType
from services import (
    LedgerService,
    MarketDataService,
    PortfolioService,
    SyncService,
    SyncStatus,
    format_currency,
    format_percent,
)

# Load environment variables
load_dotenv()
setup_logging()

logger = logging.getLogger(__name__)

# Configure Streamlit page
st.set_page_config(
    page_title="Vaultify - Investment Tracker",
    page_icon="🏦",
    layout="wide"
)

# Initialize database
init_db()

ASSET_TYPE_LABELS = {
    AssetType.STOCK: "Philippine Stock",
    AssetType.CRYPTO: "Crypto",
    AssetType.SAVING: "Savings / Bank",
}

SENTIMENT_BADGES = {
    "positive": "🟢 Positive",
    "negative": "🔴 Negative",
    "neutral": "⚪ Neutral",
}


# ==================== SESSION STATE ====================
if "price_map" not in st.session_state:
    st.session_state.price_map = {}

if "insight" not in st.session_state:
    st.session_state.insight = None

if "refresh_attempted" not in st.session_state:
    st.session_state.refresh_attempted = False

if "market_data" not in st.session_state:
    st.session_state.market_data = MarketDataService()

if "sync" not in st.session_state:
    st.session_state.sync = SyncService()


# ==================== HELPER FUNCTIONS ====================
def get_portfolio() -> Portfolio:
    return Portfolio.default()


def refresh_market_data(target_symbols: Optional[List[str]] = None):
    """Fetch prices, then the market insight, for held (or the given) symbols."""
    portfolio = get_portfolio()
    ledger = LedgerService(portfolio)
    service = PortfolioService(portfolio)

    if target_symbols:
        symbols = target_symbols
    else:
        positions = service.get_positions(ledger.list_transactions())
        symbols = service.priceable_symbols(positions)

    if not symbols:
        return

    market_data: MarketDataService = st.session_state.market_data

    with st.spinner("Fetching prices and market intel..."):
        prices, insight = market_data.refresh(symbols, portfolio.base_currency)

    st.session_state.price_map = {**st.session_state.price_map, **prices}
    st.session_state.insight = insight


# ==================== SIDEBAR ====================
def render_transaction_form():
    """Render the new-transaction form."""
    st.sidebar.subheader("➕ New Transaction")

    ledger = LedgerService(get_portfolio())
    platforms = ledger.get_platforms()

    with st.sidebar.form("new_transaction", clear_on_submit=True):
        tx_type = st.radio(
            "Type",
            [TransactionType.BUY, TransactionType.SELL],
            format_func=lambda t: "Buy / Deposit" if t == TransactionType.BUY else "Sell / Withdraw",
            horizontal=True
        )
        asset_type = st.selectbox(
            "Asset Type",
            list(ASSET_TYPE_LABELS),
            format_func=lambda a: ASSET_TYPE_LABELS[a]
        )
        platform = st.selectbox("Platform", platforms if platforms else ["col"])
        symbol = st.text_input(
            "Symbol / Account",
            placeholder="BTC, ETH, SM, BDO or e.g. Maya Savings"
        )

        col1, col2 = st.columns(2)
        with col1:
            price = st.number_input(
                "Price / Amount*",
                min_value=0.0,
                value=None,
                step=0.01,
                format="%.4f",
                help="Unit price, or the deposit/withdrawal amount for savings"
            )
            fees = st.number_input("Fees", min_value=0.0, value=0.0, step=0.01)
        with col2:
            quantity = st.number_input(
                "Quantity",
                min_value=0.0,
                value=None,
                step=0.0001,
                format="%.8f",
                help="Ignored for savings"
            )
            balance = st.number_input(
                "Current Balance",
                min_value=0.0,
                value=None,
                step=0.01,
                help="Savings only: account balance snapshot"
            )

        tx_date = st.date_input("Date", value=date.today())

        submitted = st.form_submit_button("Log Transaction", use_container_width=True)

        if submitted:
            try:
                tx = ledger.record_transaction(
                    symbol=symbol,
                    transaction_type=tx_type,
                    asset_type=asset_type,
                    platform=platform,
                    price=price,
                    quantity=quantity,
                    fees=fees,
                    transaction_date=tx_date,
                    balance_snapshot=balance
                )
            except ValueError as e:
                st.error(f"❌ {e}")
                return

            st.success(f"✅ Logged {tx.transaction_type.value} {tx.symbol}")
            if tx.asset_type != AssetType.SAVING and tx.symbol not in st.session_state.price_map:
                refresh_market_data([tx.symbol])
            st.rerun()


def render_platform_manager():
    """Render the add-platform control."""
    ledger = LedgerService(get_portfolio())

    with st.sidebar.expander("🏷️ Platforms"):
        st.caption(", ".join(ledger.get_platforms()) or "No platforms yet.")
        new_platform = st.text_input("New platform", key="new_platform_name")
        if st.button("Add Platform", use_container_width=True):
            try:
                ledger.add_platform(new_platform)
                st.rerun()
            except ValueError as e:
                st.error(f"❌ {e}")


def render_sync_panel():
    """Render cloud backup/restore controls."""
    st.sidebar.subheader("☁️ Cloud Sync")

    settings = get_settings()
    ledger = LedgerService(get_portfolio())
    sync_code = ledger.get_sync_key()
    sync: SyncService = st.session_state.sync

    if not settings.is_sync_configured:
        st.sidebar.warning("⚠️ Set SYNC_MASTER_KEY to enable cloud sync")
        return

    st.sidebar.code(sync_code or "NOT BACKED UP")

    if st.sidebar.button(
        "Update Cloud Backup" if sync_code else "Create First Backup",
        use_container_width=True
    ):
        with st.spinner("Updating cloud..." if sync_code else "Creating backup..."):
            new_key = sync.push(sync_code, ledger.export_state())
        if new_key:
            ledger.set_sync_key(new_key)
            st.sidebar.success("✅ Data pushed successfully!")
        else:
            st.sidebar.error("❌ Sync failed. Please try again.")

    restore_code = st.sidebar.text_input("Restore from code", placeholder="Enter Bin ID...")
    if st.sidebar.button("Restore from Cloud", use_container_width=True):
        code = restore_code.strip() or sync_code
        with st.spinner("Pulling from cloud..."):
            result = sync.pull(code)

        if result.ok:
            ledger.import_state(result.payload)
            ledger.set_sync_key(code)
            st.session_state.refresh_attempted = False
            st.sidebar.success(f"✅ {result.message}")
            st.rerun()
        elif result.status == SyncStatus.NOT_FOUND:
            st.sidebar.warning(f"⚠️ {result.message}")
        else:
            st.sidebar.error(f"❌ {result.message}")

    if sync_code and st.sidebar.button("Forget Sync Code", use_container_width=True):
        ledger.clear_sync_key()
        st.rerun()


def render_sidebar():
    """Render the sidebar with forms and settings."""
    st.sidebar.title("🏦 Vaultify")
    render_transaction_form()
    render_platform_manager()
    render_sync_panel()

    settings = get_settings()
    st.sidebar.subheader("🤖 Market Data")
    if settings.llm_mode == "local":
        st.sidebar.caption(f"Local model: {settings.local_model}")
    elif settings.is_openai_configured:
        st.sidebar.caption(f"Cloud model: {settings.openai_model}")
    else:
        st.sidebar.warning("⚠️ Set OPENAI_API_KEY and OPENAI_MODEL for live prices")


# ==================== MAIN CONTENT ====================
def render_dashboard(positions):
    """Render headline metrics, platform allocation and market intel."""
    portfolio = get_portfolio()
    currency = portfolio.base_currency
    summary = PortfolioService.summarize(positions)

    col1, col2, col3 = st.columns([2, 1, 1])
    with col1:
        st.metric(
            "Portfolio Market Value",
            format_currency(summary.total_market_value, currency),
            delta=f"{format_percent(summary.total_gain_percent)} ({format_currency(summary.total_gain, currency)})"
        )
    with col2:
        st.metric("Total Capital (Pure)", format_currency(summary.total_invested, currency))
        st.caption("Excludes transaction fees")
    with col3:
        st.metric("Savings Growth", format_currency(summary.savings_yield, currency))
        st.caption("Accrued interest")

    left, right = st.columns([2, 1])

    with left:
        st.markdown("### Assets by Platform")
        allocation = PortfolioService.platform_allocation(positions)
        if allocation.empty:
            st.info("No active positions")
        else:
            st.bar_chart(allocation.set_index('platform'), horizontal=True)

    with right:
        st.markdown("### Market Intel")
        insight = st.session_state.insight
        if insight is None:
            st.info("Add assets to analyze")
        else:
            st.caption(SENTIMENT_BADGES.get(insight.sentiment, insight.sentiment))
            st.markdown(insight.content)
            for source in insight.sources[:get_settings().max_insight_sources]:
                st.markdown(f"- [{source.title}]({source.uri})")


def render_positions(positions):
    """Render positions grouped by platform."""
    currency = get_portfolio().base_currency
    groups = PortfolioService.group_by_platform(positions)

    if not groups:
        st.info("No assets recorded")
        return

    for group in groups:
        header = (
            f"**{group.platform.upper()}** · {len(group.positions)} Active Holdings · "
            f"{format_currency(group.total_capital, currency)} Total Capital"
        )
        with st.expander(header, expanded=True):
            for pos in group.positions:
                col1, col2 = st.columns([3, 1])
                with col1:
                    st.markdown(f"**{pos.symbol}** · {ASSET_TYPE_LABELS[pos.asset_type]}")
                    current = format_currency(pos.current_price, currency, 4) if pos.current_price is not None else "---"
                    st.caption(
                        f"{pos.total_quantity:,.8g} Units · "
                        f"Ave: {format_currency(pos.average_price, currency, 4)} · Cur: {current}"
                    )
                with col2:
                    st.markdown(f"**{format_currency(pos.display_value, currency)}**")
                    if pos.unrealized_gain_percent is not None:
                        st.caption(format_percent(pos.unrealized_gain_percent))
                    if pos.monthly_gain is not None:
                        st.caption(f"MoM {format_currency(pos.monthly_gain, currency)}")

            with st.popover("Details"):
                st.dataframe(PortfolioService.positions_frame(group.positions), hide_index=True)


def render_history():
    """Render the transaction audit log with delete buttons."""
    portfolio = get_portfolio()
    ledger = LedgerService(portfolio)
    transactions = ledger.history()

    if not transactions:
        st.info("No trade history in this portfolio.")
        return

    for tx in transactions:
        cols = st.columns([2, 1, 2, 2, 2, 1])
        cols[0].text(tx.transaction_date.isoformat())
        badge = "🟢" if tx.transaction_type == TransactionType.BUY else "🔴"
        cols[1].text(f"{badge} {tx.transaction_type.value}")
        cols[2].text(f"{tx.symbol} · {tx.platform}")
        cols[3].text(f"{tx.quantity:,.8g} @ {format_currency(tx.price, portfolio.base_currency)}")
        cols[4].text(format_currency(tx.total_amount, portfolio.base_currency))
        if cols[5].button("🗑️", key=f"delete_{tx.id}"):
            ledger.delete_transaction(tx.id)
            st.rerun()


# ==================== MAIN APP ====================
def main():
    """Main application entry point."""
    portfolio = get_portfolio()
    ledger = LedgerService(portfolio)

    render_sidebar()

    transactions = ledger.list_transactions()

    # Fetch market data once per session (and again after a cloud restore)
    if not st.session_state.refresh_attempted and transactions:
        st.session_state.refresh_attempted = True
        refresh_market_data()

    header, action = st.columns([4, 1])
    with header:
        st.title("📈 Market View")
        st.caption(f"{portfolio.name} · {portfolio.base_currency} Base")
    with action:
        if st.button("🔄 Refresh Price", use_container_width=True):
            refresh_market_data()

    positions = PortfolioService(portfolio).get_positions(transactions, st.session_state.price_map)

    tab1, tab2, tab3 = st.tabs(["📊 Dashboard", "📁 Portfolio", "🕑 History"])

    with tab1:
        render_dashboard(positions)

    with tab2:
        render_positions(positions)

    with tab3:
        render_history()


if __name__ == "__main__":
    main()
