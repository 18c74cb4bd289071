from __future__ import annotations

import altair as alt
import streamlit as st

from pulmoprobe.client import PredictionClient, PredictionResult
from pulmoprobe.dashboard import (
    EmptyDashboard,
    breakdown_frame,
    history_table,
    is_high_risk,
    stage_frame,
    summarize,
)
from pulmoprobe.history import PredictionHistory
from pulmoprobe.schema import CategoricalField, Field, FlagField, FormSchema, load_schema
from pulmoprobe.session import PredictionSession
from pulmoprobe.settings import Settings

PAGES = ["Home", "Dashboard", "About"]
FLAG_LABELS = {"0": "No", "1": "Yes"}

FEATURES = [
    (
        "Advanced AI Model",
        "Utilizes a fine-tuned Random Forest model for high-precision analysis of complex patient data.",
    ),
    (
        "Instantaneous Results",
        "Receive immediate risk assessments and confidence scores without any waiting period.",
    ),
    (
        "Secure & Anonymous",
        "Your data is processed securely. We are committed to ensuring patient data privacy and anonymity.",
    ),
]

BASE_CSS = """
@import url('https://fonts.googleapis.com/css2?family=Inter:wght@400;600;800&display=swap');

:root {
  --text: #1e293b;
  --muted: #64748b;
  --accent: #2563eb;
  --accent-2: #38bdf8;
  --card: #ffffff;
  --border: rgba(15, 23, 42, 0.08);
}

html, body, [class*="css"] {
  font-family: "Inter", sans-serif;
}

.stApp {
  background: #f8fafc;
  color: var(--text);
}

#MainMenu, footer {
  visibility: hidden;
}

.hero {
  text-align: center;
  padding: 2.5rem 1rem 1.5rem;
}

.hero-title {
  font-size: 3rem;
  font-weight: 800;
  letter-spacing: -0.02em;
  background: linear-gradient(90deg, var(--accent), var(--accent-2));
  -webkit-background-clip: text;
  color: transparent;
}

.hero-sub {
  color: var(--muted);
  font-size: 1.15rem;
}

div[data-testid="stForm"] {
  background: var(--card);
  border: 1px solid var(--border);
  border-radius: 16px;
  padding: 1.4rem 1.6rem;
  box-shadow: 0 16px 32px rgba(15, 23, 42, 0.06);
}

.result-card {
  border-radius: 12px;
  padding: 1rem 1.2rem;
  text-align: center;
}

.result-card.high {
  background: #fee2e2;
  color: #991b1b;
}

.result-card.low {
  background: #dcfce7;
  color: #166534;
}

.result-title {
  font-weight: 700;
  font-size: 1.15rem;
}

.result-error {
  color: #dc2626;
  font-size: 0.8rem;
  margin-top: 0.25rem;
}
"""


@st.cache_data
def cached_schema(variant: str, config_dir: str) -> FormSchema:
    """Load the schema variant once per process.

    Args:
        variant: Schema variant name.
        config_dir: Hydra config directory.

    Returns:
        The form schema.
    """
    return load_schema(variant, config_dir)


def apply_base_styles() -> None:
    """Inject the base theme styling."""
    st.markdown(f"<style>{BASE_CSS}</style>", unsafe_allow_html=True)


def get_session(schema: FormSchema) -> PredictionSession:
    """Return the form session stored in Streamlit session state, creating it on first use."""
    session = st.session_state.get("prediction_session")
    if session is None or session.schema.name != schema.name:
        session = PredictionSession(schema)
        st.session_state["prediction_session"] = session
    return session


def get_history() -> PredictionHistory:
    if "history" not in st.session_state:
        st.session_state["history"] = PredictionHistory()
    return st.session_state["history"]


def widget_key(field: Field) -> str:
    return f"{field.name}_input"


def clear_widgets(schema: FormSchema) -> None:
    """Drop widget values so the form redraws from the session state."""
    for field in schema.fields:
        st.session_state.pop(widget_key(field), None)


def render_field(field: Field, session: PredictionSession) -> str:
    """Render one form field and return its current raw value.

    Args:
        field: Field descriptor.
        session: Form session holding the current values and errors.

    Returns:
        The value as the form holds it.
    """
    current = session.form[field.name]
    disabled = session.locked
    if isinstance(field, CategoricalField):
        value = st.selectbox(
            field.label,
            field.options,
            index=field.options.index(current) if current in field.options else 0,
            key=widget_key(field),
            disabled=disabled,
        )
    elif isinstance(field, FlagField):
        value = st.selectbox(
            field.label,
            list(FLAG_LABELS),
            index=list(FLAG_LABELS).index(current) if current in FLAG_LABELS else 0,
            format_func=FLAG_LABELS.get,
            key=widget_key(field),
            disabled=disabled,
        )
    else:
        value = st.text_input(
            field.label,
            value=current,
            placeholder=f"{field.min_value:g} - {field.max_value:g}",
            key=widget_key(field),
            disabled=disabled,
        )
    error = session.errors.get(field.name)
    if error:
        st.caption(f":red[{error}]")
    return value


def render_result(result: PredictionResult, marker: str) -> None:
    """Render the prediction result card.

    Args:
        result: Prediction result.
        marker: Substring identifying high-risk labels.
    """
    tone = "high" if is_high_risk(result.risk, marker) or not result.ok else "low"
    error_line = f'<div class="result-error">{result.error}</div>' if result.error else ""
    card = f"""
    <div class="result-card {tone}">
      <div class="result-title">Prediction Result: {result.risk}</div>
      <div>Confidence Score: {result.confidence}%</div>
      {error_line}
    </div>
    """
    st.markdown(card, unsafe_allow_html=True)


def render_form(session: PredictionSession, history: PredictionHistory, client: PredictionClient) -> None:
    """Render the prediction form and handle a submission."""
    schema = session.schema
    st.subheader("Patient Data for Prediction")

    values: dict[str, str] = {}
    with st.form("prediction_form"):
        for section, fields in schema.sections.items():
            st.markdown(f"#### {section}")
            columns = st.columns(2)
            for index, field in enumerate(fields):
                with columns[index % 2]:
                    values[field.name] = render_field(field, session)
        submitted = st.form_submit_button("Get Prediction", type="primary", disabled=session.locked)

    if submitted:
        for name, value in values.items():
            session.update_field(name, value)
        with st.spinner("Predicting..."):
            event = session.submit(client)
        if event is not None:
            history.consume(event)
        st.rerun()

    if session.result is not None:
        render_result(session.result, schema.high_risk_marker)
        if st.button("Start New Prediction"):
            session.reset()
            clear_widgets(schema)
            st.rerun()


def render_home(session: PredictionSession, history: PredictionHistory, client: PredictionClient) -> None:
    st.markdown(
        """
        <div class="hero">
          <div class="hero-title">PulmoProbe AI</div>
          <div class="hero-sub">A comprehensive and intelligent tool for early-stage lung disease prediction.</div>
        </div>
        """,
        unsafe_allow_html=True,
    )

    st.markdown("### Why Choose PulmoProbe AI?")
    st.caption("We provide a powerful, data-driven approach to risk assessment.")
    for column, (title, description) in zip(st.columns(len(FEATURES)), FEATURES):
        with column:
            st.markdown(f"**{title}**")
            st.write(description)

    render_form(session, history, client)

    st.markdown("### Explore the Full Picture")
    st.write(
        "Dive deeper into model statistics, prediction trends, and detailed performance metrics "
        "on the Dashboard page in the sidebar."
    )


def render_empty_dashboard(empty: EmptyDashboard) -> None:
    st.markdown(f"## {empty.title}")
    st.info(empty.message)


def render_dashboard(history: PredictionHistory, schema: FormSchema, settings: Settings) -> None:
    """Render statistics, charts and the history table."""
    st.title("Live Dashboard")
    st.caption("This dashboard updates in real-time with every new prediction made.")

    records = history.records
    summary = summarize(records, schema.high_risk_marker, settings.model_accuracy)
    if isinstance(summary, EmptyDashboard):
        render_empty_dashboard(summary)
        return

    for column, (label, value) in zip(st.columns(4), summary.stats()):
        column.metric(label, value)

    chart_col, pie_col = st.columns([3, 2])
    with chart_col:
        st.markdown("#### Predictions by Cancer Stage")
        bar = (
            alt.Chart(stage_frame(summary))
            .mark_bar(color="#3b82f6")
            .encode(
                x=alt.X("name:N", title=None, sort=None),
                y=alt.Y("count:Q", title="Predictions"),
                tooltip=["name", "count"],
            )
        )
        st.altair_chart(bar, use_container_width=True)
    with pie_col:
        st.markdown("#### Risk Breakdown")
        pie = (
            alt.Chart(breakdown_frame(summary))
            .mark_arc(outerRadius=110)
            .encode(
                theta=alt.Theta("value:Q"),
                color=alt.Color(
                    "name:N",
                    scale=alt.Scale(domain=["Low Risk", "High Risk"], range=["#34D399", "#EF4444"]),
                    legend=alt.Legend(title=None, orient="bottom"),
                ),
                tooltip=["name", "value"],
            )
        )
        st.altair_chart(pie, use_container_width=True)

    st.markdown("#### Prediction History")
    st.dataframe(history_table(records), hide_index=True, use_container_width=True)


def render_about(schema: FormSchema) -> None:
    st.title("About PulmoProbe AI")
    st.write(
        "PulmoProbe AI collects a short patient profile, encodes it into the feature layout the "
        "risk model was trained on and returns the predicted risk with a confidence score."
    )
    st.markdown("#### Inputs")
    for section, fields in schema.sections.items():
        st.markdown(f"**{section}:** " + ", ".join(field.label for field in fields))
    st.caption("Educational prototype. Predictions are not medical advice.")


def main() -> None:
    """Run the Streamlit frontend."""
    st.set_page_config(page_title="PulmoProbe AI", layout="wide")
    apply_base_styles()

    settings = Settings()
    schema = cached_schema(settings.schema_variant, str(settings.config_dir))
    session = get_session(schema)
    history = get_history()

    st.sidebar.markdown("### PulmoProbe AI")
    page = st.sidebar.radio("Navigate", PAGES, label_visibility="collapsed")
    st.sidebar.markdown("### Backend")
    endpoint = st.sidebar.text_input("Backend URL", value=settings.api_url or schema.endpoint)
    st.sidebar.caption(f"Schema: {schema.name} ({schema.payload_format}) | Endpoint: {settings.api_path}")

    client = PredictionClient(endpoint, path=settings.api_path, timeout=settings.request_timeout)

    if page == "Dashboard":
        render_dashboard(history, schema, settings)
    elif page == "About":
        render_about(schema)
    else:
        render_home(session, history, client)


if __name__ == "__main__":
    main()
