from config import LabTestConfig
from output.chart import build_chart, render_chart
from output.view import DashboardView


def test_empty_chart_placeholder():
    expected = {"title": {"text": "No data to display"}, "xAxis": {"categories": []}, "series": []}
    assert build_chart([], [], LabTestConfig()) == expected
    assert build_chart(["2020-01-01"], [], LabTestConfig()) == expected


def test_line_chart_description():
    chart = build_chart(["2018-03-01", "2019-01-15"], [180.0, 195.5], LabTestConfig())

    assert chart["chart"] == {"type": "line"}
    assert chart["title"]["text"] == "Total Cholesterol Over Time"
    assert chart["xAxis"]["categories"] == ["2018-03-01", "2019-01-15"]
    assert chart["yAxis"]["title"]["text"] == "Cholesterol (mg/dL)"
    assert chart["tooltip"]["valueDecimals"] == 2
    assert chart["series"] == [{"name": "Cholesterol", "data": [180.0, 195.5]}]
    assert chart["credits"] == {"enabled": False}


def test_render_chart_targets_container():
    view = DashboardView()
    render_chart(view, [], [], LabTestConfig(), container_id="other-chart")
    assert view.charts["other-chart"]["series"] == []
