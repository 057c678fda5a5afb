"""
Streamlit page:
- Carbon footprint calculator (saved to the local history)
- Live AQI at the nearest monitoring station
- Progress against the Paris goal

Run:
  streamlit run ecotrack/dashboard.py
"""

from __future__ import annotations

import os

import streamlit as st

from ecotrack.aqi import POLLUTANT_LABELS
from ecotrack.database import HistoryStore
from ecotrack.footprint import (
    DIET_FACTORS,
    GLOBAL_AVERAGE_T,
    breakdown,
    compare_to_average,
    compute_footprint,
    recommend,
    sanitize_inputs,
)
from ecotrack.history import derive_trend, goal_status, new_entry, trend_frame
from ecotrack.providers import DEFAULT_RADIUS_M, Geolocator, OpenAQClient, ProviderError, current_air_quality


st.set_page_config(page_title="EcoTrack", layout="wide")

DIET_LABELS = {
    "vegan": "Vegan",
    "vegetarian": "Vegetarian",
    "light": "Light Meat",
    "medium": "Medium Meat",
    "heavy": "Heavy Meat",
}


def _fmt_t(value: float) -> str:
    return f"{value:.2f} t CO₂e/yr"


st.title("EcoTrack: Carbon Footprint & Air Quality")

with st.sidebar:
    st.header("Settings")
    db_path = st.text_input("SQLite DB path", value="ecotrack.db")
    lat_text = st.text_input("Latitude (blank = look up by IP)", value="")
    lon_text = st.text_input("Longitude (blank = look up by IP)", value="")
    allow_lookup = st.toggle("Allow IP location lookup", value=True)
    radius = st.slider("Station search radius (m)", min_value=1000, max_value=50000, value=DEFAULT_RADIUS_M, step=1000)
    api_key = st.text_input("OpenAQ API key", value=os.getenv("OPENAQ_API_KEY", ""), type="password")

store = HistoryStore(db_path)
store.initialize()


st.subheader("Carbon Footprint Calculator")
form_col, result_col = st.columns([1, 1.2])

with form_col:
    with st.form("calculator"):
        car_km = st.text_input("Car travel (km/year)", placeholder="e.g., 8000")
        air_hours = st.text_input("Air travel (hours/year)", placeholder="e.g., 12")
        kwh = st.text_input("Electricity (kWh/month)", placeholder="e.g., 250")
        waste_kg = st.text_input("Waste (kg/month)", placeholder="e.g., 20")
        diet = st.selectbox(
            "Diet type",
            options=list(DIET_FACTORS),
            index=list(DIET_FACTORS).index("medium"),
            format_func=lambda d: f"{DIET_LABELS[d]} ({DIET_FACTORS[d]} t/yr)",
        )
        submitted = st.form_submit_button("Calculate", type="primary")
    st.caption("Emission factors: Car 0.0002 t/km, Air 0.09 t/h, Electricity 0.0007 t/kWh, Waste 0.0012 t/kg.")

inputs = sanitize_inputs(
    {
        "car_km_per_year": car_km,
        "air_hours_per_year": air_hours,
        "electricity_kwh_per_month": kwh,
        "waste_kg_per_month": waste_kg,
        "diet": diet,
    }
)
result = compute_footprint(inputs)

if submitted:
    entry = new_entry(inputs, result)
    store.append(entry)
    st.success(f"Saved calculation on {entry.timestamp.strftime('%Y-%m-%d %H:%M UTC')}")

with result_col:
    diff, side = compare_to_average(result.total)
    st.metric("Total annual footprint", _fmt_t(result.total))
    st.caption(f"This is {side} the global average of {GLOBAL_AVERAGE_T} t/yr by {diff:.2f} t.")
    st.dataframe(
        [{"Category": name, "t CO₂e/yr": round(value, 2)} for name, value in breakdown(result)],
        use_container_width=True,
        hide_index=True,
    )
    st.markdown("**Recommendations**")
    for line in recommend(result, inputs.diet):
        st.write(f"- {line}")


st.subheader("Air Quality Monitor")
if st.button("Check air quality near me"):
    try:
        lat = float(lat_text) if lat_text.strip() else None
        lon = float(lon_text) if lon_text.strip() else None
    except ValueError:
        st.error("Latitude/longitude must be numbers.")
    else:
        try:
            location = Geolocator(lat, lon, allow_lookup=allow_lookup).locate()
            station, aqi = current_air_quality(OpenAQClient(api_key=api_key or None), location, radius_m=radius)
        except ProviderError as e:
            st.error(str(e))
        else:
            aq_col1, aq_col2, aq_col3 = st.columns(3)
            with aq_col1:
                if aqi is None:
                    st.info("No PM2.5/PM10 data at the nearest station.")
                else:
                    st.metric("AQI", aqi.index)
                    st.caption(f"Level: {aqi.label} • Main pollutant: {POLLUTANT_LABELS[aqi.dominant_pollutant]}")
            with aq_col2:
                st.metric("Location", f"{station.city or station.name or 'Unknown'}, {station.country or ''}")
                st.caption(station.name or "")
            with aq_col3:
                pm25 = aqi.pm25 if aqi is not None else None
                pm10 = aqi.pm10 if aqi is not None else None
                st.metric("PM2.5 (µg/m³)", pm25 if pm25 is not None else "—")
                st.metric("PM10 (µg/m³)", pm10 if pm10 is not None else "—")
st.caption(
    "AQI levels: 0-50 Good, 51-100 Moderate, 101-150 Unhealthy for Sensitive, "
    "151-200 Unhealthy, 201-300 Very Unhealthy, 300+ Hazardous."
)


st.subheader("Progress Tracking")
stats = derive_trend(store.load())

if stats.has_trend:
    st.line_chart(trend_frame(stats), height=320)
else:
    st.info("Add at least 2 calculations to see your progress over time.")

p_col1, p_col2, p_col3 = st.columns(3)
with p_col1:
    st.metric("Current Footprint", f"{stats.latest_total:.2f} t/yr" if stats.latest_total is not None else "—")
with p_col2:
    st.metric("Total Change", f"{stats.percent_change:.1f}%" if stats.percent_change is not None else "—")
with p_col3:
    st.metric(f"Paris Goal Progress ({stats.goal} t/yr)", goal_status(stats) or "—")
