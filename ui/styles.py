from __future__ import annotations

import streamlit as st

APP_CSS = r"""
@import url('https://fonts.googleapis.com/css2?family=IBM+Plex+Sans:wght@400;500;600&family=Space+Grotesk:wght@500;600;700&display=swap');

html, body, [class*="st-"] {
  font-family: "IBM Plex Sans", ui-sans-serif, system-ui, sans-serif;
}

h1, h2, h3, h4 {
  font-family: "Space Grotesk", ui-sans-serif, system-ui, sans-serif;
  letter-spacing: -0.02em;
}

/* Night-sky backdrop behind the planet preview */
[data-testid="stAppViewContainer"] {
  background:
    radial-gradient(1000px 700px at 70% 20%, rgba(77, 168, 255, 0.10), rgba(0,0,0,0) 60%),
    linear-gradient(180deg, rgba(8, 32, 63, 0.06), rgba(0,0,0,0) 50%);
}

[data-testid="stSidebar"] {
  border-right: 1px solid rgba(17, 24, 39, 0.08);
}

[data-testid="stSidebar"] [data-testid="stVerticalBlock"] {
  gap: 0.6rem;
}

/* Phase status line under the progress bar */
.phase-status {
  font-size: 0.85rem;
  opacity: 0.75;
}
"""


def inject_global_styles() -> None:
    st.markdown(f"<style>{APP_CSS}</style>", unsafe_allow_html=True)
