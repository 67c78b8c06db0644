# output/html.py
import json
from html import escape

from config import DashboardConfig
from output.chart import LAB_CHART_ID
from output.view import DashboardView

HIGHCHARTS_URL = "https://code.highcharts.com/highcharts.js"
LAB_COLUMNS = ("Date", "Value", "Unit", "Status")

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <script src="{highcharts}"></script>
  <style>
    body {{ font-family: system-ui, sans-serif; margin: 2rem; color: #222; }}
    #status {{ color: #555; font-size: 0.9rem; }}
    .patient-grid {{ display: grid; grid-template-columns: repeat(4, 1fr); gap: 1rem; }}
    .patient-grid dt {{ font-weight: 600; }}
    .patient-grid dd {{ margin: 0; }}
    table {{ border-collapse: collapse; width: 100%; }}
    th, td {{ border-bottom: 1px solid #ddd; padding: 0.4rem; text-align: left; }}
    .error {{ color: #b00020; }}
    #lab-chart {{ height: 400px; margin-top: 2rem; }}
  </style>
</head>
<body>
  <h1>{title}</h1>
  <p id="status">{status}</p>
  <section>
    <h2>Patient</h2>
    <div id="patient-info">{patient}</div>
  </section>
  <section>
    <h2>{lab_heading}</h2>
    <table>
      <thead><tr>{header}</tr></thead>
      <tbody id="lab-table-body">{rows}</tbody>
    </table>
    <div id="{chart_id}"></div>
  </section>
  {chart_script}
</body>
</html>
"""


def render_patient(view: DashboardView) -> str:
    if view.patient is None:
        if view.patient_error is None:
            return ""
        return f"<p class='error'>{escape(view.patient_error)}</p>"

    items = "".join(
        f"\n    <div>\n      <dt>{escape(label)}</dt><dd>{escape(value)}</dd>\n    </div>"
        for label, value in view.patient.display_fields().items()
    )
    return f'\n  <dl class="patient-grid">{items}\n  </dl>\n'


def render_rows(view: DashboardView) -> str:
    if view.lab_placeholder is not None:
        return f"<tr><td colspan='{len(LAB_COLUMNS)}'>{escape(view.lab_placeholder)}</td></tr>"
    return "".join(
        "<tr>" + "".join(f"<td>{escape(cell)}</td>" for cell in row.cells()) + "</tr>"
        for row in view.lab_rows
    )


def _script_json(value) -> str:
    # "</" would end the script element early
    return json.dumps(value).replace("</", "<\\/")


def render_chart_script(view: DashboardView) -> str:
    if not view.charts:
        return ""
    calls = "\n".join(
        f"Highcharts.chart({_script_json(container)}, {_script_json(description)});"
        for container, description in view.charts.items()
    )
    return f"<script>\n{calls}\n</script>"


def render_page(view: DashboardView, config: DashboardConfig) -> str:
    return PAGE_TEMPLATE.format(
        title="Patient Lab Dashboard",
        highcharts=HIGHCHARTS_URL,
        status=escape(view.status),
        patient=render_patient(view),
        lab_heading=escape(f"{config.lab.series_name} ({config.lab.system}|{config.lab.code})"),
        header="".join(f"<th>{col}</th>" for col in LAB_COLUMNS),
        rows=render_rows(view),
        chart_id=LAB_CHART_ID,
        chart_script=render_chart_script(view),
    )
