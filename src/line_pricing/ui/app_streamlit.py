"""
Streamlit UI for the Line Pricing tool.

Features:
- Line definition (code, quantity, unit price) in the sidebar
- Tax chain picked from the tax table
- Discount editor (percent, amount, tiered; unitary or extended; pre-tax or
  on the tax-inclusive total)
- Per-tax breakdown, resolution trace and CSV export
"""
import streamlit as st
import pandas as pd
from datetime import datetime

from line_pricing import __version__
from line_pricing.engine import Item, TaxTable, PricingError, discount_from_record
from line_pricing.config.settings import get_settings


st.set_page_config(
    page_title="Line Pricing",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_tax_table():
    """Get cached tax table."""
    return TaxTable(get_settings().tax_table)


try:
    tax_table = get_tax_table()
except PricingError as e:
    st.error(f"System Error: {e}")
    st.stop()


# ============================================================================
# SIDEBAR: Line definition
# ============================================================================
with st.sidebar:
    st.header("🧾 Line")

    with st.container(border=True):
        code = st.text_input("Item Code", value="ITEM-1")
        quantity = st.number_input("Quantity", min_value=0.0, value=1.0, step=1.0)
        unit_price = st.number_input("Unit Price", min_value=0.0, value=100.0, step=1.0, format="%.2f")

    st.subheader("Taxes")
    tax_codes = st.multiselect(
        "Tax Chain",
        options=tax_table.codes,
        format_func=lambda c: f"{c} | {tax_table.get(c).name or ''}",
        label_visibility="collapsed",
    )

    st.subheader("Discount")
    kind = st.selectbox("Kind", options=["none", "percent", "amount", "tiered"])
    discount_record = {"kind": kind}
    if kind in ("percent", "amount"):
        discount_record["value"] = st.number_input("Value", min_value=0.0, value=10.0, step=1.0)
    elif kind == "tiered":
        tiers_text = st.text_area("Tiers (threshold, percent per line)", value="0, 0\n500, 5\n1000, 10")
        tiers = []
        for line in tiers_text.strip().split('\n'):
            if ',' in line:
                threshold, percent = line.split(',', 1)
                try:
                    tiers.append((float(threshold), float(percent)))
                except ValueError:
                    st.warning(f"Ignoring tier line: {line}")
        discount_record["tiers"] = tiers
    if kind != "none":
        discount_record["is_unitary"] = st.toggle("Per unit", value=False)
        discount_record["affect_tax"] = not st.toggle("On tax-inclusive total", value=False)

    st.divider()
    if tax_table.loaded:
        st.success(f"🔧 **{len(tax_table.taxes)} Taxes Loaded**")
    else:
        st.warning("⚠️ No tax table loaded")


# ============================================================================
# MAIN CONTENT
# ============================================================================
st.title("Line Pricing")
st.caption(f"v{__version__} | {datetime.now().strftime('%Y-%m-%d')}")

try:
    item = Item(
        code=code,
        quantity=quantity,
        unit_price=unit_price,
        discount=discount_from_record(discount_record),
        taxes=tax_table.resolve(tax_codes),
    )
    result = item.breakdown()
except PricingError as e:
    st.error(str(e))
    st.stop()

m1, m2, m3, m4 = st.columns(4)
m1.metric("Subtotal", f"{result.subtotal:,.2f}")
m2.metric("Discount", f"{result.discount_amount:,.2f}")
m3.metric("Tax", f"{result.tax:,.2f}")
m4.metric("Total", f"{result.total:,.2f}")

st.subheader("Tax Chain")
if result.taxes:
    tax_df = pd.DataFrame(result.to_rows())
    st.dataframe(tax_df, hide_index=True, use_container_width=True)
    st.download_button(
        "📥 CSV",
        data=tax_df.to_csv(index=False),
        file_name=f"breakdown_{code}.csv",
        mime="text/csv",
    )
else:
    st.info("No taxes applied")

with st.expander("🔍 Resolution Details"):
    for t in result.trace:
        if t.value:
            st.caption(f"**{t.step}**: {t.description} = `{t.value}`")
        else:
            st.caption(f"**{t.step}**: {t.description}")

with st.expander("📚 Tax Table"):
    st.dataframe(tax_table.to_frame(), hide_index=True, use_container_width=True)
