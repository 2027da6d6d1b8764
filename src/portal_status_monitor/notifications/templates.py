"""
E-mail bodies for the two alert variants.

Every builder is a pure function of its arguments: the caller supplies the already formatted
report timestamp so that rendering the same input twice gives the same payload.
"""

from __future__ import annotations

import html as _html
from typing import Iterable

from ..models import AnalysisResult, FailureReport, NotificationPayload, ServiceState


NOT_AVAILABLE = "No disponible"

STATE_ALERT = "state-alert"
CONNECTIVITY_ERROR = "connectivity-error"

_STATE_LABELS = {
    ServiceState.ACTIVE: "ACTIVO",
    ServiceState.INACTIVE: "INACTIVO",
    ServiceState.UNKNOWN: "DESCONOCIDO",
}
_STATE_COLORS = {
    ServiceState.ACTIVE: "#28a745",
    ServiceState.INACTIVE: "#dc3545",
    ServiceState.UNKNOWN: "#6c757d",
}
_STATE_ICONS = {
    ServiceState.ACTIVE: "✓",
    ServiceState.INACTIVE: "✗",
    ServiceState.UNKNOWN: "?",
}

TIMEOUT_DESCRIPTION = "El servicio no está disponible o no responde."
TIMEOUT_DETAIL = "No se pudo establecer conexión con el servicio dentro del tiempo de espera."
RECOMMENDED_ACTIONS = (
    "Verificar que el servicio esté en línea",
    "Revisar la conectividad de red",
    "Contactar al administrador del sistema",
)

_FOOTER_LINES = (
    "Este es un correo automático generado por el sistema de monitoreo.",
    "Por favor, no responda a este correo.",
)

_BASE_STYLE = """
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; }
        .header { padding: 20px; border-radius: 5px; margin-bottom: 20px; }
        .info { background-color: #e9ecef; padding: 15px; border-radius: 5px; margin: 10px 0; }
        .info-item { margin: 10px 0; }
        .info-label { font-weight: bold; color: #495057; }
        .footer { margin-top: 30px; padding-top: 20px; border-top: 1px solid #dee2e6; font-size: 12px; color: #6c757d; text-align: center; }
"""


def state_label(state: ServiceState) -> str:
    return _STATE_LABELS[state]


def state_alert_subject(state: ServiceState, service_name: str) -> str:
    if state is ServiceState.INACTIVE:
        return f"🚨 [ALERTA] {service_name} - Servicio INACTIVO"
    return f"[{service_name}] Estado del Servicio: {state_label(state)}"


def error_alert_subject(service_name: str) -> str:
    return f"🚨 [ERROR] {service_name} - Servicio No Disponible"


def _footer_html() -> str:
    return "\n".join(f"        <p>{line}</p>" for line in _FOOTER_LINES)


def _footer_text() -> str:
    return "---\n" + "\n".join(_FOOTER_LINES)


def _info_item(label: str, value: str) -> str:
    return f'        <div class="info-item"><span class="info-label">{label}:</span> {_html.escape(value)}</div>'


def render_state_text(result: AnalysisResult, *, service_name: str, generated_at: str) -> str:
    return "\n".join(
        [
            f"REPORTE DE ESTADO - {service_name.upper()}",
            "",
            f"Estado del servicio: {state_label(result.state)}",
            f"Última sincronización: {result.sync_timestamp or NOT_AVAILABLE}",
            f"Fecha del reporte: {generated_at}",
            "",
            _footer_text(),
        ]
    )


def render_state_html(result: AnalysisResult, *, service_name: str, generated_at: str) -> str:
    label = state_label(result.state)
    color = _STATE_COLORS[result.state]
    icon = _STATE_ICONS[result.state]
    info = "\n".join(
        [
            _info_item("Estado del servicio", label),
            _info_item("Última sincronización", result.sync_timestamp or NOT_AVAILABLE),
            _info_item("Fecha del reporte", generated_at),
        ]
    )
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <style>{_BASE_STYLE}
        .header {{ background-color: #f8f9fa; }}
        .estado {{ background-color: {color}; color: white; padding: 15px; border-radius: 5px; text-align: center; font-size: 24px; font-weight: bold; margin: 20px 0; }}
    </style>
</head>
<body>
    <div class="header"><h1>Reporte de Estado - {_html.escape(service_name)}</h1></div>
    <div class="estado">{icon} {label}</div>
    <div class="info">
{info}
    </div>
    <div class="footer">
{_footer_html()}
    </div>
</body>
</html>"""


def render_error_text(report: FailureReport, *, service_name: str, generated_at: str) -> str:
    return "\n".join(
        [
            f"ERROR DE CONEXIÓN - {service_name.upper()}",
            "",
            TIMEOUT_DESCRIPTION,
            "",
            TIMEOUT_DETAIL,
            "",
            "Tipo de error: Timeout de conexión",
            f"Fecha del error: {generated_at}",
            f"Mensaje: {report.message or 'No se pudo cargar la página inicial'}",
            "",
            "Acciones recomendadas:",
            *[f"- {action}" for action in RECOMMENDED_ACTIONS],
            "",
            _footer_text(),
        ]
    )


def render_error_html(report: FailureReport, *, service_name: str, generated_at: str) -> str:
    info = "\n".join(
        [
            _info_item("Tipo de error", "Timeout de conexión"),
            _info_item("Fecha del error", generated_at),
            _info_item("Mensaje", report.message or "No se pudo cargar la página inicial"),
        ]
    )
    actions = "\n".join(f"            <li>{action}</li>" for action in RECOMMENDED_ACTIONS)
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <style>{_BASE_STYLE}
        .header {{ background-color: #dc3545; color: white; }}
        .error {{ background-color: #f8d7da; border: 1px solid #f5c6cb; color: #721c24; padding: 15px; border-radius: 5px; margin: 20px 0; }}
    </style>
</head>
<body>
    <div class="header"><h1>🚨 Error de Conexión - {_html.escape(service_name)}</h1></div>
    <div class="error">
        <strong>{TIMEOUT_DESCRIPTION}</strong>
        <p>{TIMEOUT_DETAIL}</p>
    </div>
    <div class="info">
{info}
    </div>
    <div class="info">
        <p><strong>Acciones recomendadas:</strong></p>
        <ul>
{actions}
        </ul>
    </div>
    <div class="footer">
{_footer_html()}
    </div>
</body>
</html>"""


def build_state_alert(
    result: AnalysisResult,
    *,
    service_name: str,
    recipients: Iterable[str],
    generated_at: str,
) -> NotificationPayload:
    return NotificationPayload(
        kind=STATE_ALERT,
        subject=state_alert_subject(result.state, service_name),
        text_body=render_state_text(result, service_name=service_name, generated_at=generated_at),
        html_body=render_state_html(result, service_name=service_name, generated_at=generated_at),
        recipients=tuple(recipients),
    )


def build_error_alert(
    report: FailureReport,
    *,
    service_name: str,
    recipients: Iterable[str],
    generated_at: str,
) -> NotificationPayload:
    return NotificationPayload(
        kind=CONNECTIVITY_ERROR,
        subject=error_alert_subject(service_name),
        text_body=render_error_text(report, service_name=service_name, generated_at=generated_at),
        html_body=render_error_html(report, service_name=service_name, generated_at=generated_at),
        recipients=tuple(recipients),
    )
