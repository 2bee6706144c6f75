import asyncio
import atexit
import logging
from datetime import date

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from fintrack.aggregations import STATUS_OVER, STATUS_WARNING
from fintrack.async_reports import load_snapshot
from fintrack.config import configure_logging, load_settings
from fintrack.domain import BudgetCategory, Category, TransactionType, month_key, month_label
from fintrack.errors import NotFoundError, TransportError, ValidationError
from fintrack.events import (
    BUDGET_SAVED,
    TRANSACTION_DELETED,
    TRANSACTION_SAVED,
    EventBus,
    budget_alert_handler,
)
from fintrack.filters import filter_transactions
from fintrack.services import default_dashboard_service
from fintrack.store import FinanceStore, seed_store

logger = logging.getLogger("fintrack.app")

st.set_page_config(page_title="Personal Finance Tracker", layout="wide")

STATUS_LABELS = {STATUS_OVER: "Over Budget", STATUS_WARNING: "Near Limit"}


def mark_stale(event, payload: dict) -> dict:
    st.session_state.stale = True
    return {}


def collect_alert(event, payload: dict) -> dict:
    snapshot = st.session_state.get("snapshot")
    if snapshot is None:
        return {}
    t = payload["transaction"]
    others = tuple(x for x in snapshot.transactions if x.id != t.id)
    result = budget_alert_handler(event, {
        "transaction": t,
        "transactions": others + (t,),
        "budgets": snapshot.budgets,
    })
    if "alert" in result:
        st.session_state.alerts.append(result["alert"])
    return result


@st.cache_resource
def get_store() -> FinanceStore:
    settings = load_settings()
    configure_logging(settings.log_level)

    bus = EventBus()
    for name in (TRANSACTION_SAVED, TRANSACTION_DELETED, BUDGET_SAVED):
        bus.subscribe(name, mark_stale)
    bus.subscribe(TRANSACTION_SAVED, collect_alert)

    store = FinanceStore(settings.database_url, bus=bus).open()
    atexit.register(store.close)
    return store


def run_action(action, *args, success: str = "") -> bool:
    """Run one store write followed by a full refetch; report failures in the banner.

    The write stays on the script thread so event handlers can reach session state.
    """
    try:
        action(*args)
        snapshot = asyncio.run(load_snapshot(store))
    except ValidationError as e:
        st.session_state.error = e.message
        return False
    except NotFoundError as e:
        st.session_state.error = str(e)
        return False
    except TransportError as e:
        logger.error("store unavailable: %s", e)
        st.session_state.error = "Could not reach the database. Please try again."
        return False
    st.session_state.snapshot = snapshot
    st.session_state.stale = False
    if success:
        st.session_state.flash = success
    return True


def tx_to_df(tx_list) -> pd.DataFrame:
    rows = [
        {
            "id": t.id,
            "date": pd.to_datetime(t.date),
            "description": t.description,
            "category": t.category.value,
            "type": t.type.value,
            "amount": t.amount,
            "signed": t.amount if t.is_income else -t.amount,
        }
        for t in tx_list
    ]
    return pd.DataFrame(rows, columns=["id", "date", "description", "category", "type", "amount", "signed"])


def money(x: float) -> str:
    return f"${x:,.2f}"


store = get_store()

for key, default in (("error", None), ("flash", None), ("alerts", []), ("editing", None), ("stale", True)):
    if key not in st.session_state:
        st.session_state[key] = default

if st.session_state.stale or "snapshot" not in st.session_state:
    try:
        st.session_state.snapshot = asyncio.run(load_snapshot(store))
        st.session_state.stale = False
    except TransportError as e:
        logger.error("could not load data: %s", e)
        st.session_state.error = "Failed to load transactions and budgets"
        if "snapshot" not in st.session_state:
            st.session_state.snapshot = None

snapshot = st.session_state.snapshot
today = date.today()

st.title("💰 Personal Finance Tracker")

if st.session_state.error:
    c1, c2 = st.columns([6, 1])
    with c1:
        st.error(st.session_state.error)
    with c2:
        if st.button("Dismiss", key="btn_dismiss"):
            st.session_state.error = None
            st.rerun()

if st.session_state.flash:
    st.success(st.session_state.flash)
    st.session_state.flash = None

for alert in st.session_state.alerts:
    st.warning(f"⚠️ {alert}")
st.session_state.alerts = []

if snapshot is None:
    st.stop()

report = default_dashboard_service().build(snapshot, today)
result = report["result"]
for check in report["validation"]:
    for msg in check["messages"]:
        st.sidebar.warning(msg)

settings = load_settings()
st.sidebar.markdown("### ⚙️ Data")
st.sidebar.caption(f"Store: `{store.url}`")
if not snapshot.transactions and not snapshot.budgets:
    if st.sidebar.button("Load sample data", key="btn_seed"):
        run_action(seed_store, store, settings.seed_path, success="Sample data loaded")
        st.rerun()

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Overview", "🧾 Transactions", "🎯 Budgets", "💡 Insights"]
)

if menu == "🏠 Overview":
    summary = result["summary"]
    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric("Total Income", money(summary.total_income))
    with k2:
        st.metric("Total Expenses", money(summary.total_expenses))
    with k3:
        st.metric("Net Balance", money(summary.net_balance))
    with k4:
        st.metric("Transactions", summary.transaction_count)

    col_m, col_c = st.columns(2)
    with col_m:
        st.subheader("Monthly Expenses")
        monthly = result["monthly_expenses"]
        if monthly:
            fig_m = px.bar(
                x=[m.label for m in monthly],
                y=[m.total for m in monthly],
                labels={"x": "Month", "y": "Expenses ($)"},
                template="plotly_dark",
            )
            fig_m.update_layout(margin=dict(t=30, b=10, l=10, r=10))
            st.plotly_chart(fig_m, use_container_width=True)
        else:
            st.info("No expense data available")

    with col_c:
        st.subheader("Expenses by Category")
        shares = result["category_breakdown"]
        if shares:
            df_cat = pd.DataFrame(
                [{"Category": s.category.value, "Total": s.amount, "Share": s.percentage} for s in shares]
            )
            fig_cat = px.pie(df_cat, values="Total", names="Category", hole=0.35)
            fig_cat.update_layout(height=320, margin=dict(t=30, b=10, l=10, r=10))
            st.plotly_chart(fig_cat, use_container_width=True)
            st.dataframe(
                df_cat.assign(
                    Total=df_cat["Total"].map(money),
                    Share=df_cat["Share"].map(lambda v: f"{v:.1f}%"),
                ),
                hide_index=True,
                use_container_width=True,
            )
        else:
            st.info("No expense data available")

    st.subheader("Recent Transactions")
    recent = result["recent_transactions"]
    if recent:
        for t in recent:
            sign = "+" if t.is_income else "-"
            c1, c2 = st.columns([4, 1])
            c1.markdown(f"**{t.description}**  \n{t.category.value} • {t.date:%Y-%m-%d}")
            c2.markdown(f"**{sign}{money(t.amount)}**")
    else:
        st.info("No transactions yet. Add your first transaction to get started!")

elif menu == "🧾 Transactions":
    st.header("🧾 Transactions")

    editing = st.session_state.editing
    st.subheader("✏️ Edit Transaction" if editing else "➕ Add Transaction")
    with st.form("tx_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            kind = st.radio(
                "Type",
                [k.value for k in TransactionType],
                index=[k.value for k in TransactionType].index(editing.type.value) if editing else 1,
                horizontal=True,
            )
            amount = st.number_input(
                "Amount ($)", min_value=0.0, step=1.0, format="%.2f",
                value=float(editing.amount) if editing else 0.0,
            )
            tx_date = st.date_input("Date", value=editing.date if editing else today)
        with col2:
            labels = [c.value for c in Category]
            category = st.selectbox(
                "Category", labels,
                index=labels.index(editing.category.value) if editing else 0,
            )
            description = st.text_input("Description", value=editing.description if editing else "")
        submitted = st.form_submit_button("Save changes" if editing else "Add Transaction")

        if submitted:
            payload = {
                "amount": amount,
                "date": tx_date,
                "description": description,
                "category": category,
                "type": kind,
            }
            if editing:
                ok = run_action(store.transactions.update, editing.id, payload, success="Transaction updated")
            else:
                ok = run_action(store.transactions.create, payload, success="Transaction added")
            if ok:
                st.session_state.editing = None
            st.rerun()

    if editing and st.button("Cancel edit", key="btn_cancel_edit"):
        st.session_state.editing = None
        st.rerun()

    st.divider()

    f1, f2, f3 = st.columns([2, 1, 1])
    with f1:
        term = st.text_input("Search", placeholder="Description or category")
    with f2:
        cat_choice = st.selectbox("Category", ["All"] + [c.value for c in Category])
    with f3:
        type_choice = st.selectbox("Type", ["All"] + [k.value for k in TransactionType])

    shown = filter_transactions(
        snapshot.transactions,
        term=term,
        category=None if cat_choice == "All" else Category(cat_choice),
        kind=None if type_choice == "All" else TransactionType(type_choice),
    )

    if not shown:
        st.info(
            "No transactions yet." if not snapshot.transactions
            else "No transactions match your filters."
        )
    else:
        for t in shown:
            c1, c2, c3, c4 = st.columns([4, 2, 1, 1])
            sign = "+" if t.is_income else "-"
            c1.markdown(f"**{t.description}**  \n{t.category.value} • {t.date:%Y-%m-%d}")
            c2.markdown(f"{sign}{money(t.amount)}")
            if c3.button("Edit", key=f"edit_{t.id}"):
                st.session_state.editing = t
                st.rerun()
            if c4.button("Delete", key=f"del_{t.id}"):
                run_action(store.transactions.delete, t.id, success="Transaction deleted")
                st.rerun()

        csv = tx_to_df(shown).drop(columns=["signed"]).to_csv(index=False)
        st.download_button("⬇ Download CSV", csv, file_name="transactions.csv", mime="text/csv")

elif menu == "🎯 Budgets":
    st.header("🎯 Budgets")

    with st.form("budget_form", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        with col1:
            b_category = st.selectbox("Category", [c.value for c in BudgetCategory])
        with col2:
            b_amount = st.number_input("Monthly cap ($)", min_value=0.0, step=10.0, format="%.2f")
        with col3:
            b_month = st.text_input("Month (YYYY-MM)", value=month_key(today))
        if st.form_submit_button("Set Budget"):
            run_action(
                store.budgets.upsert,
                {"category": b_category, "amount": b_amount, "month": b_month},
                success=f"Budget saved for {b_category}",
            )
            st.rerun()

    comparison = result["budget_comparison"]
    if not comparison:
        st.info("No budgets set yet. Create your first budget to start tracking!")
    else:
        for item in comparison:
            c1, c2 = st.columns([3, 2])
            with c1:
                st.markdown(f"**{item.category.value}**  \n{month_label(item.month)}")
            with c2:
                left = (
                    f"{money(item.remaining)} remaining" if item.remaining >= 0
                    else f"{money(abs(item.remaining))} over budget"
                )
                st.markdown(f"{money(item.actual_spending)} / {money(item.amount)}  \n{left}")
            st.progress(float(np.clip(item.percentage_used, 0, 100)) / 100)
            st.caption(f"{item.percentage_used:.1f}% used • {STATUS_LABELS.get(item.status, 'On Track')}")

        fig_b = go.Figure()
        names = [f"{i.category.value} ({month_label(i.month)})" for i in comparison]
        fig_b.add_trace(go.Bar(x=names, y=[i.amount for i in comparison], name="Budget"))
        fig_b.add_trace(go.Bar(x=names, y=[i.actual_spending for i in comparison], name="Actual"))
        fig_b.update_layout(barmode="group", template="plotly_dark", title="Budget vs Actual Spending")
        st.plotly_chart(fig_b, use_container_width=True)

elif menu == "💡 Insights":
    st.header("💡 Insights")
    ins = result["insights"]

    k1, k2, k3 = st.columns(3)
    with k1:
        st.metric(
            "Monthly Spending Trend",
            f"{ins.spending_trend_percent:+.1f}%",
            help=(
                f"Compared to last month ({money(ins.last_month_spending)})"
                if ins.last_month_spending > 0 else "No data for last month"
            ),
        )
    with k2:
        st.metric("Average Transaction", money(ins.average_transaction_amount))
        st.caption(f"Across {ins.transaction_count} transactions")
    with k3:
        st.metric(
            "Most Active Category",
            ins.most_frequent_category.value if ins.most_frequent_category else "N/A",
        )
        st.caption(f"{ins.most_frequent_count} transactions" if ins.most_frequent_category else "No transactions yet")

    if ins.budget_alerts:
        st.subheader("⚠️ Budget Alerts")
        for a in ins.budget_alerts:
            st.warning(f"**{a.category.value}**: {money(a.spent)} of {money(a.budget_amount)} spent ({a.percentage:.0f}%)")

    st.subheader(f"Top Spending Categories: {month_label(ins.current_month)}")
    if not ins.top_categories:
        st.info("No expenses recorded this month")
    else:
        for rank, share in enumerate(ins.top_categories, start=1):
            c1, c2 = st.columns([4, 1])
            c1.markdown(f"**{rank}. {share.category.value}**  \n{share.percentage:.1f}% of this month's spending")
            c2.markdown(f"**{money(share.amount)}**")

    st.subheader("Activity Summary")
    a1, a2 = st.columns(2)
    with a1:
        st.metric("This Month", money(ins.current_month_spending))
    with a2:
        days = ins.days_since_last_transaction
        if days is None:
            st.metric("Last Activity", "N/A")
        else:
            st.metric("Last Activity", "Today" if days == 0 else f"{days} days ago")
