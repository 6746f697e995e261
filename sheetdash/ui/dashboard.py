"""Streamlit presentation layer for the transfer, incident and message dashboards."""
from datetime import datetime
from pathlib import Path
from typing import Any, List, MutableMapping, Tuple

import streamlit as st

# Allow running via "streamlit run sheetdash/ui/dashboard.py" without installing the package
# by ensuring the repository root is on ``sys.path``.
if __package__ in {None, ""}:
    import sys

    sys.path.append(str(Path(__file__).resolve().parents[2]))

from sheetdash.core.config import load_settings
from sheetdash.core.logging import configure_logging
from sheetdash.core.models import (
    Conversation,
    IncidentFilters,
    IncidentRecord,
    MessageFilters,
    TransferFilters,
)
from sheetdash.export.sinks import conversation_filename, conversation_to_text
from sheetdash.ingestion.common import drive_preview_url
from sheetdash.processing.controller import AutoRefresh, Dashboards, build_dashboards
from sheetdash.review.status import WriteOutcome


def _session_dashboards() -> Dashboards:
    """Build controllers once per browser session and start the background refresh."""

    if "dashboards" not in st.session_state:
        settings = load_settings()
        dashboards = build_dashboards(settings)
        for controller in dashboards.all():
            controller.load()
        refresher = AutoRefresh(dashboards.all(), interval=settings.auto_refresh_seconds)
        refresher.start()
        st.session_state.dashboards = dashboards
        st.session_state.refresher = refresher
    return st.session_state.dashboards


def _date_range(prefix: str):
    cols = st.columns(2)
    start = cols[0].date_input("Desde", value=None, key=f"{prefix}_start")
    end = cols[1].date_input("Hasta", value=None, key=f"{prefix}_end")
    return start, end


def _show_error(message: str | None) -> None:
    if message:
        st.error(f"Error: {message}")
        st.caption("Asegúrate de que el Google Sheet sea público (cualquiera con el enlace puede ver).")


def _transfers_tab(dashboards: Dashboards) -> None:
    dashboard = dashboards.transfers
    start, end = _date_range("transfers")
    cols = st.columns(3)
    client = cols[0].text_input("Cliente (número o nombre)", key="transfers_client")
    order = cols[1].text_input("Nº pedido", key="transfers_order")
    source = cols[2].selectbox("Origen", [""] + dashboard.sources, key="transfers_source")
    dashboard.set_filters(TransferFilters(start, end, client, order, source))

    if st.button("Actualizar datos", key="transfers_refresh", disabled=dashboard.loading):
        dashboard.refresh()
    _show_error(dashboard.error)

    records = dashboard.records
    st.caption(f"{len(records)} justificantes")
    for record in records:
        cols = st.columns([1, 2, 3, 2, 2, 2])
        label = "👁" if record.viewed else "🙈"
        if cols[0].button(label, key=f"transfer_viewed_{record.row_index}"):
            dashboard.toggle_viewed(record)
            st.rerun()
        cols[1].write(record.client_number)
        cols[2].write(record.client_name)
        cols[3].write(record.order_number)
        cols[4].write(record.submission_date)
        if record.receipt_url:
            cols[5].link_button("Ver justificante", drive_preview_url(record.receipt_url))


CLIENT_FILTER_KEY = "incidents_client"
NO_DETAILS_TEXT = "Sin detalles adicionales"


def filter_by_client(state: MutableMapping[str, Any], client: str) -> None:
    """Button callback: narrow the incident list to one client."""

    state[CLIENT_FILTER_KEY] = client


def incident_detail_fields(record: IncidentRecord) -> List[Tuple[str, str]]:
    """Labelled fields shown in the incident detail panel; empty source is omitted."""

    fields = [
        ("Fecha", record.incident_date),
        ("Nº Cliente", record.client_number),
        ("Nombre Cliente", record.client_name),
        ("Nº Pedido", record.order_number),
        ("Tipo Incidencia", record.incident_type),
        ("Estado", record.status),
    ]
    if record.source:
        fields.append(("Fuente", record.source))
    return fields


def _incidents_tab(dashboards: Dashboards) -> None:
    dashboard = dashboards.incidents
    summary = dashboard.summary(filtered=False)
    metric_cols = st.columns(3)
    metric_cols[0].metric("Total incidencias", summary.total)
    metric_cols[1].metric("Abiertas", summary.open)
    metric_cols[2].metric("Cerradas", summary.closed)
    st.caption(f"{summary.open_percent:.0f}% abiertas")
    if summary.by_type:
        st.bar_chart(dict(summary.by_type))

    search = st.text_input("Buscar por Nº Cliente o Nº Pedido...", key="incidents_search")
    start, end = _date_range("incidents")
    cols = st.columns(5)
    client = cols[0].text_input("Cliente", key=CLIENT_FILTER_KEY)
    order = cols[1].text_input("Nº pedido", key="incidents_order")
    incident_type = cols[2].selectbox("Tipo", [""] + dashboard.incident_types, key="incidents_type")
    status = cols[3].selectbox("Estado", ["", "Abierta", "Cerrada"], key="incidents_status")
    source = cols[4].selectbox("Origen", [""] + dashboard.sources, key="incidents_source")
    dashboard.set_filters(
        IncidentFilters(
            start_date=start,
            end_date=end,
            client_search=client,
            order_search=order,
            source_filter=source,
            incident_type_filter=incident_type,
            status_filter=status,
            search_term=search,
        )
    )

    if st.button("Actualizar datos", key="incidents_refresh", disabled=dashboard.loading):
        dashboard.refresh()
    _show_error(dashboard.error)

    for record in dashboard.records:
        cols = st.columns([1, 2, 3, 2, 2, 2])
        label = "👁" if record.viewed else "🙈"
        if cols[0].button(label, key=f"incident_viewed_{record.row_index}"):
            dashboard.toggle_viewed(record)
            st.rerun()
        cols[1].button(
            record.client_number,
            key=f"incident_client_{record.row_index}",
            help="Filtrar por este cliente",
            on_click=filter_by_client,
            args=(st.session_state, record.client_number),
        )
        cols[2].write(f"{record.client_name} · {record.incident_type}")
        cols[3].write(record.order_number)
        cols[4].write(record.incident_date)
        if cols[5].button(record.status, key=f"incident_status_{record.row_index}"):
            change = dashboard.toggle_status(record.row_index)
            if change.outcome is WriteOutcome.TRANSPORT_FAILURE:
                st.toast("No se pudo actualizar el estado; se ha revertido.")
            st.rerun()
        with st.expander(f"Detalles · Pedido {record.order_number}"):
            for label, value in incident_detail_fields(record):
                st.markdown(f"**{label}:** {value}")
            st.markdown("**Detalles de la incidencia**")
            st.write(record.incident_details or NO_DETAILS_TEXT)


def _conversation_label(conversation: Conversation) -> str:
    last = conversation.last_message
    preview = last.text[:40] if last else ""
    return f"{conversation.phone} ({conversation.message_count}) · {preview}"


def _messages_tab(dashboards: Dashboards) -> None:
    dashboard = dashboards.messages
    start, end = _date_range("messages")
    search = st.text_input("Buscar teléfono o mensaje", key="messages_search")
    dashboard.set_filters(MessageFilters(start, end, search))

    if st.button("Actualizar datos", key="messages_refresh", disabled=dashboard.loading):
        dashboard.refresh()
    _show_error(dashboard.error)

    conversations = dashboard.conversations
    list_col, chat_col = st.columns([1, 2])
    with list_col:
        phones: List[str] = [convo.phone for convo in conversations]
        by_phone = {convo.phone: convo for convo in conversations}
        selected = st.radio(
            "Conversaciones",
            phones,
            index=None,
            format_func=lambda phone: _conversation_label(by_phone[phone]),
            key="messages_selected",
        )
        dashboard.select(selected)

    conversation = dashboard.selected_conversation
    with chat_col:
        if conversation is None:
            st.info("Selecciona una conversación")
            return
        for message in conversation.messages:
            with st.chat_message("user" if message.role == "user" else "assistant"):
                st.caption(message.timestamp)
                st.write(message.text)
        now = datetime.now()
        st.download_button(
            "Exportar conversación",
            data=conversation_to_text(conversation, now),
            file_name=conversation_filename(conversation.phone, now),
            mime="text/plain",
        )


def main() -> None:
    """Launch the dashboards."""

    configure_logging()
    st.set_page_config(page_title="Dashboard Granel", layout="wide")
    st.title("Dashboard Granel")

    dashboards = _session_dashboards()
    transfers_tab, incidents_tab, messages_tab = st.tabs(["Transferencias", "Incidencias", "WhatsApp"])
    with transfers_tab:
        _transfers_tab(dashboards)
    with incidents_tab:
        _incidents_tab(dashboards)
    with messages_tab:
        _messages_tab(dashboards)


if __name__ == "__main__":
    main()
