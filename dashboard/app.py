"""
Treasury dashboard: balances, active order, order history, recent audit events.
Run from repo root: streamlit run dashboard/app.py
Or with data dir: TREASURY_DASHBOARD_DATA_DIR=/path/to/data streamlit run dashboard/app.py
"""

import os

import streamlit as st

from data_reader import (
    get_active_order,
    get_balances,
    get_orders,
    get_pools,
    get_recent_journal_events,
    _data_dir,
)

UNIT = 10**18
TREASURY = os.environ.get("TREASURY_DASHBOARD_HOLDER", "treasury")

st.set_page_config(page_title="Treasury Dashboard", layout="wide")
st.title("Treasury Paper Trading Dashboard")

data_dir = _data_dir()
if not (data_dir / "treasury_state.db").exists():
    st.warning(f"No treasury state found under: `{data_dir}`")
    st.caption("Run 'treasury init' (and optionally 'treasury buy') with state_path pointing into this directory.")
    st.stop()

# Refresh
col_refresh, col_auto = st.columns([1, 3])
with col_refresh:
    if st.button("Refresh"):
        st.rerun()
with col_auto:
    auto_refresh = st.checkbox("Auto-refresh every 60s", value=False)

balances = get_balances(TREASURY)
active = get_active_order()

c1, c2, c3 = st.columns(3)
with c1:
    st.metric("Settlement", f"{balances.get('native', 0) / UNIT:,.4f}")
with c2:
    st.metric("Active order", f"#{active['id']} {active['status']}" if active else "None")
with c3:
    if active:
        st.metric("Position", f"{active['token_amount'] / UNIT:,.2f} {active['asset']}")
    else:
        st.metric("Position", "Flat")

with st.expander("Orders", expanded=True):
    orders = get_orders(limit=20)
    if not orders:
        st.caption("No orders yet.")
    else:
        for o in orders:
            ts = (o.get("sell_ts_utc") or o.get("buy_ts_utc") or "")[:19]
            profit = f"profit {o['profit'] / UNIT:,.4f}" if o["status"] == "SUCCESS" else ""
            st.text(f"{ts}  #{o['id']}  {o['status']:8s} spend {o['spend'] / UNIT:,.4f}  {profit}")

with st.expander("Pools", expanded=False):
    for p in get_pools():
        hook = f"  hook={p['hook']}" if p["hook"] else ""
        st.text(f"{p['pair']:28s} {p['reserve0'] / UNIT:,.2f} / {p['reserve1'] / UNIT:,.2f}{hook}")

with st.expander("Buybacks", expanded=False):
    buybacks = get_recent_journal_events(event_type="buyback_executed", limit=50)
    if not buybacks:
        st.caption("No buybacks yet.")
    else:
        for e in buybacks:
            ts = e.get("ts_utc", "")[:19]
            st.text(f"{ts}  order #{e.get('order_id')}  burned {int(e.get('burned', 0)) / UNIT:,.4f} {e.get('asset')}")

with st.expander("Fees withheld", expanded=False):
    fees = get_recent_journal_events(event_type="fee_withheld", limit=50)
    if not fees:
        st.caption("No fees withheld yet.")
    else:
        for e in fees:
            ts = e.get("ts_utc", "")[:19]
            st.text(f"{ts}  {e.get('pool')}  {e.get('currency')} fee -> forwarded {int(e.get('forwarded', 0)) / UNIT:,.6f}")

with st.expander("Rejected operations", expanded=False):
    failures = get_recent_journal_events(event_type="operation_failed", limit=50)
    if not failures:
        st.caption("No rejections.")
    else:
        for e in failures:
            ts = e.get("ts_utc", "")[:19]
            st.text(f"{ts}  {e.get('operation')}: {e.get('error')} {e.get('reason', '')[:100]}")

if auto_refresh:
    import time
    time.sleep(60)
    st.rerun()
