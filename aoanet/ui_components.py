import html
from typing import Dict, Any, List
import pandas as pd
import matplotlib.pyplot as plt

from .engine import AOAScheduler
from .models import EMPTY, Network
from .visualizations import create_network_diagram, fig_to_base64

def _is_missing(value: object) -> bool:
    try:
        return value is None or pd.isna(value)
    except (TypeError, ValueError):
        return False

def _safe_str(value: object) -> str:
    if _is_missing(value):
        return ""
    return str(value).strip()

def _safe_float(value: object, default: float = 0.0) -> float:
    if _is_missing(value):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default

def _id_str(value: object) -> str:
    # Spreadsheets turn "1" into 1.0; task ids stay textual.
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return _safe_str(value)

def import_tasks_from_dataframe(scheduler: AOAScheduler, df: pd.DataFrame) -> List[str]:
    """
    Append the rows of ``df`` to the scheduler, in row order.

    Expected columns (case-insensitive): id, min_duration, max_duration,
    required, description. A missing max_duration falls back to min_duration.

    Returns one error message per rejected row.
    """
    columns = {str(c).strip().lower().replace(" ", "_"): c for c in df.columns}
    if "id" not in columns:
        return ["Missing required column 'id'."]

    errors = []
    for idx, row in df.iterrows():
        task_id = _id_str(row[columns["id"]])
        if not task_id:
            continue
        min_duration = _safe_float(row[columns["min_duration"]]) if "min_duration" in columns else 0.0
        max_duration = (
            _safe_float(row[columns["max_duration"]], default=min_duration)
            if "max_duration" in columns else min_duration
        )
        required = _safe_str(row[columns["required"]]) if "required" in columns else ""
        description = _safe_str(row[columns["description"]]) if "description" in columns else ""

        success, message = scheduler.add_task(task_id, min_duration, max_duration, required, description)
        if not success:
            errors.append(f"Row {idx + 1}: {message}")
    return errors

def compute_network_stats(scheduler: AOAScheduler) -> Dict[str, object]:
    def counts(network: Network) -> Dict[str, int]:
        if network is None:
            return {"events": 0, "arcs": 0, "empty_arcs": 0}
        empty = sum(1 for _, label in network.iter_arcs() if label is EMPTY)
        return {"events": len(network.events), "arcs": len(network.arcs), "empty_arcs": empty}

    raw = counts(scheduler.raw_network)
    simplified = counts(scheduler.network)
    return {
        "raw_events": raw["events"],
        "raw_arcs": raw["arcs"],
        "raw_empty_arcs": raw["empty_arcs"],
        "events": simplified["events"],
        "arcs": simplified["arcs"],
        "empty_arcs": simplified["empty_arcs"],
        "events_removed": raw["events"] - simplified["events"],
        "arcs_removed": raw["arcs"] - simplified["arcs"],
        "duration": scheduler.project_duration,
        "duration_preserved": scheduler.raw_duration == scheduler.project_duration,
    }

def build_report_html(scheduler: AOAScheduler, theme: Dict[str, Any]) -> str:
    """
    Build a self-contained HTML report for the project.
    """
    net_b64 = ""
    if scheduler.network is not None:
        net_fig = create_network_diagram(scheduler.network.to_dict(), list(scheduler.critical_path), theme)
        net_b64 = fig_to_base64(net_fig)
        plt.close(net_fig)

    stats = compute_network_stats(scheduler)
    tasks_df = scheduler.get_tasks_dataframe()
    path_df = scheduler.get_path_dataframe()

    rows_html = ""
    for _, row in tasks_df.iterrows():
        is_crit = row['Critical'] == 'Yes'
        style = f"background-color: {theme['critical_soft']}; font-weight: bold;" if is_crit else ""
        rows_html += f"""
        <tr style="{style}">
            <td>{html.escape(str(row['ID']))}</td>
            <td>{html.escape(str(row['Description']))}</td>
            <td>{row['Min Duration']:g}</td>
            <td>{row['Max Duration']:g}</td>
            <td>{html.escape(str(row['Required']))}</td>
            <td>{row['Critical']}</td>
        </tr>
        """

    path_rows_html = ""
    for _, row in path_df.iterrows():
        path_rows_html += (
            f"<tr><td>{html.escape(str(row['From']))}</td><td>{html.escape(str(row['To']))}</td>"
            f"<td>{html.escape(str(row['Task']))}</td><td>{row['Duration']:g}</td>"
            f"<td>{row['Cumulative']:g}</td></tr>"
        )

    network_text = html.escape(str(scheduler.network)) if scheduler.network is not None else ""
    diagram_html = (
        f'<div class="img-container"><img src="data:image/png;base64,{net_b64}" alt="Network Diagram"></div>'
        if net_b64 else "<p>No network calculated.</p>"
    )

    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="UTF-8">
        <title>AOA Network Report</title>
        <style>
            body {{ font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; color: {theme['ink']}; background: {theme['bg']}; line-height: 1.6; }}
            .container {{ max-width: 1000px; margin: 0 auto; padding: 40px; background: white; box-shadow: 0 0 20px rgba(0,0,0,0.1); }}
            h1 {{ color: {theme['accent']}; border-bottom: 2px solid {theme['accent']}; padding-bottom: 10px; }}
            h2 {{ color: {theme['accent2']}; margin-top: 30px; }}
            table {{ width: 100%; border-collapse: collapse; margin: 20px 0; }}
            th, td {{ padding: 12px; border: 1px solid #ddd; text-align: left; }}
            th {{ background-color: #f8f9fa; }}
            pre {{ background: #f8f9fa; padding: 12px; border-radius: 8px; }}
            .img-container {{ text-align: center; margin: 30px 0; }}
            .img-container img {{ max-width: 100%; height: auto; border: 1px solid #ddd; }}
            .summary-box {{ display: flex; gap: 20px; margin: 20px 0; }}
            .summary-item {{ flex: 1; padding: 20px; background: #f8f9fa; border-radius: 8px; text-align: center; }}
            .summary-value {{ font-size: 24px; font-weight: bold; color: {theme['accent']}; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1>Activity-on-Arc Network Report</h1>

            <div class="summary-box">
                <div class="summary-item">
                    <div class="summary-label">Duration</div>
                    <div class="summary-value">{stats['duration']:g}</div>
                </div>
                <div class="summary-item">
                    <div class="summary-label">Tasks</div>
                    <div class="summary-value">{len(scheduler.tasks)}</div>
                </div>
                <div class="summary-item">
                    <div class="summary-label">Events (raw &rarr; simplified)</div>
                    <div class="summary-value">{stats['raw_events']} &rarr; {stats['events']}</div>
                </div>
            </div>

            <h2>Tasks</h2>
            <table>
                <thead>
                    <tr><th>ID</th><th>Description</th><th>Min</th><th>Max</th><th>Required</th><th>Crit</th></tr>
                </thead>
                <tbody>{rows_html}</tbody>
            </table>

            <h2>Critical Path</h2>
            <p>{' &rarr; '.join(html.escape(str(e)) for e in scheduler.critical_path)}</p>
            <table>
                <thead>
                    <tr><th>From</th><th>To</th><th>Task</th><th>Duration</th><th>Cumulative</th></tr>
                </thead>
                <tbody>{path_rows_html}</tbody>
            </table>

            <h2>Simplified Network</h2>
            <pre>{network_text}</pre>
            {diagram_html}

            <p style="font-size: 12px; color: #888; margin-top: 40px; text-align: center;">
                Generated by AOA Network Studio &bull; {pd.Timestamp.now().strftime('%Y-%m-%d %H:%M')}
            </p>
        </div>
    </body>
    </html>
    """
