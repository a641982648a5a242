"""Web interface for the climb chart."""

import io
import json
import logging
from functools import partial
from threading import Lock

from flask import Flask, render_template_string, request, send_file, jsonify

from climb_chart import __version_date__, get_git_hash
from climb_chart.app import start_chart
from climb_chart.charts import CLIMB_COLORS, MatplotlibPresenter
from climb_chart.config import _load_config, get_climb_sources, get_layout, get_setting
from climb_chart.coordinator import CommandRecorder, RenderCoordinator
from climb_chart.errors import ClimbChartError, FetchFailure
from climb_chart.loader import fetch_climb_samples

logger = logging.getLogger(__name__)

app = Flask(__name__)

# One chart per server process; toggles are applied one at a time
_chart_lock = Lock()
_chart: RenderCoordinator | None = None
_recorder = CommandRecorder()


def _get_chart() -> RenderCoordinator:
    """Load the configured climbs and initialize the chart on first use.

    Raises:
        FetchFailure: If any climb fails to load. Nothing is kept, so the
            next request tries again.
    """
    global _chart
    with _chart_lock:
        if _chart is None:
            config = _load_config()
            layout = get_layout(config)
            fetch = partial(fetch_climb_samples, timeout=get_setting("fetch_timeout", config))
            _chart = start_chart(
                get_climb_sources(config),
                _recorder,
                layout,
                fetch=fetch,
                max_workers=get_setting("fetch_workers", config),
                transition_ms=get_setting("transition_ms", config),
            )
            # Clients fetch the initial drawing from /api/chart
            _recorder.drain()
        return _chart


def _reset_chart() -> None:
    """Forget the loaded chart so the next request reloads all climbs."""
    global _chart
    with _chart_lock:
        _chart = None
        _recorder.drain()


HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>Climb Chart</title>
    <style>
        :root {
            --width: {{ layout.width|int }}px;
            --height: {{ layout.height|int }}px;
            --margin-right: {{ layout.margin_right|int }}px;
            --padding: {{ layout.padding|int }}px;
            --checkbox-spacing: {{ layout.checkbox_spacing|int }}px;
        }
        body {
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
            color: #333;
            margin: 20px;
        }
        .container { display: flex; gap: 20px; align-items: flex-start; }
        #climb-chart { width: var(--width); height: var(--height); }
        #climb-chart .line { fill: none; stroke-width: 1.5px; }
        #climb-chart text { font-size: 12px; fill: #333; }
        #climb-chart .hidden { display: none; }
        .climb-list { list-style: none; padding: 0; margin: var(--padding) 0 0 0; }
        .climb-option { height: var(--checkbox-spacing); display: flex; align-items: center; }
        .climb-option input:disabled + label { color: #999; }
        .error { color: #c62828; background: #ffebee; padding: 10px 14px; border-radius: 4px; }
        .footer { margin-top: 20px; font-size: 11px; color: #999; }
    </style>
</head>
<body>
    <h1>Climb Chart</h1>
    {% if error %}
    <p class="error">{{ error }}</p>
    {% else %}
    <div class="container">
        <svg id="climb-chart"></svg>
        <ul class="climb-list">
            {% for climb in climbs %}
            <li class="climb-option">
                <input type="checkbox" class="climb-toggle" id="climb-toggle-{{ climb.climb_id }}"
                       data-id="{{ climb.climb_id }}" {% if climb.visible %}checked{% endif %}>
                <label for="climb-toggle-{{ climb.climb_id }}">{{ climb.name }}</label>
            </li>
            {% endfor %}
        </ul>
    </div>
    <script src="https://d3js.org/d3.v7.min.js"></script>
    <script>
        "use strict";

        const LAYOUT = {{ layout_json|safe }};
        const COLORS = {{ colors_json|safe }};

        const chart = d3.select('#climb-chart').append('g');
        const xAxis = chart.append('g')
            .attr('transform', `translate(0, ${LAYOUT.height - LAYOUT.padding * 2})`);
        const yAxis = chart.append('g')
            .attr('transform', `translate(${LAYOUT.padding}, 0)`);
        const line = d3.line().x(d => d[0]).y(d => d[1]);

        function scaleFrom(s) {
            return d3.scaleLinear().domain(s.domain).range(s.range);
        }

        function climbGroup(id) {
            let group = chart.select(`#climb-${id}`);
            if (group.empty()) {
                group = chart.append('g').attr('id', `climb-${id}`);
                group.append('path').classed('line', true)
                    .style('stroke', COLORS[id % COLORS.length]);
                group.append('text').attr('dx', '10').attr('dy', '0.35em');
            }
            return group;
        }

        function placeClimb(group, command, duration) {
            const last = command.points[command.points.length - 1];
            group.classed('hidden', command.hidden);
            let path = group.select('path');
            let text = group.select('text').text(command.name);
            if (duration > 0) {
                // A newer transition on the same element replaces this one
                path = path.transition().duration(duration);
                text = text.transition().duration(duration);
            }
            path.attr('d', line(command.points));
            text.attr('transform', `translate(${last[0]}, ${last[1]})`);
        }

        const handlers = {
            draw_axes(c) {
                xAxis.call(d3.axisBottom(scaleFrom(c.scales.distance)));
                yAxis.call(d3.axisLeft(scaleFrom(c.scales.altitude)));
            },
            update_axes(c) {
                xAxis.transition().duration(c.duration_ms).call(d3.axisBottom(scaleFrom(c.scales.distance)));
                yAxis.transition().duration(c.duration_ms).call(d3.axisLeft(scaleFrom(c.scales.altitude)));
            },
            draw_climb_path(c) {
                placeClimb(climbGroup(c.id), c, 0);
            },
            update_climb_path(c) {
                placeClimb(climbGroup(c.id), c, c.duration_ms);
            },
            set_hidden(c) {
                climbGroup(c.id).classed('hidden', c.hidden);
            },
            set_checkbox_disabled(c) {
                const box = document.getElementById(`climb-toggle-${c.id}`);
                if (box) {
                    box.disabled = c.disabled;
                }
            },
        };

        function apply(commands) {
            commands.forEach(c => handlers[c.op](c));
        }

        fetch('/api/chart').then(r => r.json()).then(data => apply(data.commands));

        document.querySelectorAll('.climb-toggle').forEach(box => {
            box.addEventListener('change', () => {
                fetch('/api/toggle', {
                    method: 'POST',
                    headers: {'Content-Type': 'application/json'},
                    body: JSON.stringify({id: Number(box.dataset.id), checked: box.checked}),
                })
                    .then(r => r.json())
                    .then(data => {
                        if (!data.applied) {
                            box.checked = true;
                        }
                        apply(data.commands || []);
                    });
            });
        });
    </script>
    {% endif %}
    <div class="footer">Version {{ version_date }} ({{ git_hash }})</div>
</body>
</html>
"""


def _render_page(chart: RenderCoordinator | None, error: str | None = None):
    layout = chart.layout if chart is not None else get_layout(_load_config())
    return render_template_string(
        HTML_TEMPLATE,
        climbs=chart.records if chart is not None else [],
        layout=layout,
        layout_json=json.dumps({
            "width": layout.width,
            "height": layout.height,
            "padding": layout.padding,
        }),
        colors_json=json.dumps(CLIMB_COLORS),
        error=error,
        version_date=__version_date__,
        git_hash=get_git_hash(),
    )


@app.route("/")
def index():
    try:
        chart = _get_chart()
    except FetchFailure as e:
        logger.warning("Climb data could not be loaded: %s", e)
        return _render_page(None, error=f"Failed to load climb data: {e}"), 502
    except ClimbChartError as e:
        logger.warning("Chart could not be initialized: %s", e)
        return _render_page(None, error=str(e)), 500
    return _render_page(chart)


@app.route("/api/chart")
def api_chart():
    """Return the commands that draw the current chart state."""
    try:
        chart = _get_chart()
    except ClimbChartError as e:
        return jsonify({"error": str(e)}), 502
    recorder = CommandRecorder()
    with _chart_lock:
        chart.redraw(recorder)
    return jsonify({"commands": recorder.commands})


@app.route("/api/toggle", methods=["POST"])
def api_toggle():
    """Apply a checkbox toggle and return the resulting presentation commands."""
    payload = request.get_json(silent=True) or {}
    climb_id = payload.get("id")
    checked = payload.get("checked")
    if not isinstance(climb_id, int) or isinstance(climb_id, bool) or not isinstance(checked, bool):
        return jsonify({"error": "Expected JSON body with integer 'id' and boolean 'checked'"}), 400

    try:
        chart = _get_chart()
    except ClimbChartError as e:
        return jsonify({"error": str(e)}), 502

    with _chart_lock:
        try:
            change = chart.handle_visibility_toggle(climb_id, checked)
        except KeyError:
            _recorder.drain()
            return jsonify({"error": f"Unknown climb id: {climb_id}"}), 404
        commands = _recorder.drain()
        visible_count = chart.visibility.visible_count

    return jsonify({
        "applied": change is not None,
        "visible_count": visible_count,
        "commands": commands,
    })


@app.route("/chart.png")
def chart_png():
    """Render the current chart state as a PNG image."""
    try:
        chart = _get_chart()
    except ClimbChartError as e:
        return jsonify({"error": str(e)}), 502

    presenter = MatplotlibPresenter(chart.layout)
    try:
        with _chart_lock:
            chart.redraw(presenter)
        img_bytes = presenter.render_png()
    finally:
        presenter.close()
    return send_file(io.BytesIO(img_bytes), mimetype="image/png")


def main():
    """Run the web server."""
    import os
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    port = int(os.environ.get("PORT", 5050))
    print("Starting Climb Chart web server...")
    print(f"Open http://localhost:{port} in your browser")
    app.run(host="0.0.0.0", port=port, debug=True)


if __name__ == "__main__":
    main()
