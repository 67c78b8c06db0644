# output/chart.py
from typing import Dict, List

from config import LabTestConfig

NO_DATA_TITLE = "No data to display"
LAB_CHART_ID = "lab-chart"


def build_chart(dates: List[str], values: List[float], lab: LabTestConfig) -> Dict:
    """
    Returns a Highcharts chart description:
      - empty placeholder when there is nothing to plot
      - single-series line chart of the lab test otherwise
    """
    if not dates or not values:
        return {
            "title": {"text": NO_DATA_TITLE},
            "xAxis": {"categories": []},
            "series": [],
        }

    return {
        "chart": {"type": "line"},
        "title": {"text": lab.title},
        "xAxis": {
            "categories": list(dates),
            "title": {"text": "Date"},
        },
        "yAxis": {
            "title": {"text": lab.axis_title},
        },
        "tooltip": {
            "shared": True,
            "valueDecimals": 2,
        },
        "series": [
            {
                "name": lab.series_name,
                "data": list(values),
            }
        ],
        "credits": {"enabled": False},
    }


def render_chart(view, dates: List[str], values: List[float], lab: LabTestConfig, container_id: str = LAB_CHART_ID):
    view.render_chart(container_id, build_chart(dates, values, lab))
