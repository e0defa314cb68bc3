#!/usr/bin/env python3
"""
Read-only web viewer for the generated cluster analysis artifacts.

Routes:
- /                     index of the artifacts in OUTPUT_DIR
- /api/artifacts        artifact names, sizes and modification times
- /api/artifacts/<name> one artifact (JSON parsed, markdown as text)
- /prompt               the narrative (ai_prompt.md) as plain text
- /health, /ready       liveness / readiness (ready once cluster_summary.json exists)
- /metrics              Prometheus text exposition of request counters
"""
import html
import json
import logging
import os
import time
from datetime import datetime, timezone
from pathlib import Path

from flask import Flask, jsonify, Response, abort

from config import setup_logging, OUTPUT_DIR
from report.artifacts import CLUSTER_SUMMARY, NARRATIVE

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

app = Flask(__name__)

OUTPUT_PATH = Path(OUTPUT_DIR)

_ARTIFACT_SUFFIXES = ('.json', '.md')

# Metrics for observability
_metrics = {
    'requests_total': 0,
    'requests_by_endpoint': {},
    'errors_total': 0,
    'start_time': time.time()
}


def _record_request(endpoint: str):
    """Record request metrics"""
    _metrics['requests_total'] += 1
    _metrics['requests_by_endpoint'][endpoint] = _metrics['requests_by_endpoint'].get(endpoint, 0) + 1


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def list_artifacts():
    """Artifact files currently in the output directory, sorted by name"""
    if not OUTPUT_PATH.is_dir():
        return []
    out = []
    for p in sorted(OUTPUT_PATH.iterdir()):
        if p.is_file() and p.suffix in _ARTIFACT_SUFFIXES and not p.name.startswith('.'):
            stat = p.stat()
            out.append({
                'name': p.name,
                'size_bytes': stat.st_size,
                'modified_at': datetime.fromtimestamp(stat.st_mtime, timezone.utc).isoformat(),
            })
    return out


def _artifact_path(name: str):
    # Only plain file names of listed artifacts; nothing outside OUTPUT_PATH
    if os.path.basename(name) != name or not name.endswith(_ARTIFACT_SUFFIXES):
        return None
    path = OUTPUT_PATH / name
    return path if path.is_file() else None


def load_json(filepath):
    """Load JSON file; None when missing or unreadable"""
    filepath = Path(filepath)
    if not filepath.exists():
        return None
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading {filepath}: {e}")
        _metrics['errors_total'] += 1
        return None


@app.route('/')
def index():
    """Plain HTML index of the available artifacts"""
    _record_request('/')
    artifacts = list_artifacts()
    if not artifacts:
        body = "<p>No artifacts found. Run: python orchestrator.py</p>"
    else:
        items = ''.join(
            f'<li><a href="/api/artifacts/{html.escape(a["name"])}">{html.escape(a["name"])}</a>'
            f' ({a["size_bytes"]} bytes)</li>'
            for a in artifacts
        )
        body = f'<ul>{items}</ul><p><a href="/prompt">Narrative</a></p>'
    page = f"<html><head><title>Cluster Analysis</title></head><body><h1>Cluster Analysis Artifacts</h1>{body}</body></html>"
    return Response(page, mimetype='text/html')


@app.route('/api/artifacts')
def get_artifacts():
    """API endpoint listing artifacts"""
    _record_request('/api/artifacts')
    return jsonify({
        'output_dir': str(OUTPUT_PATH),
        'artifacts': list_artifacts(),
    })


@app.route('/api/artifacts/<name>')
def get_artifact(name):
    """API endpoint for a single artifact"""
    _record_request('/api/artifacts/<name>')
    path = _artifact_path(name)
    if path is None:
        return jsonify({"error": "Not found", "name": name}), 404
    if path.suffix == '.md':
        return Response(path.read_text(encoding='utf-8'), mimetype='text/markdown')
    data = load_json(path)
    if data is None:
        return jsonify({"error": "Artifact is not valid JSON", "name": name}), 500
    return jsonify(data)


@app.route('/prompt')
def prompt():
    """The narrative as plain text"""
    _record_request('/prompt')
    path = _artifact_path(NARRATIVE)
    if path is None:
        abort(404)
    return Response(path.read_text(encoding='utf-8'), mimetype='text/plain')


@app.route('/health')
def health():
    """Health check endpoint for liveness probes"""
    _record_request('/health')
    return jsonify({
        "status": "healthy",
        "timestamp": _timestamp()
    })


@app.route('/ready')
def ready():
    """Readiness check endpoint - verifies the cluster summary exists"""
    _record_request('/ready')
    summary = load_json(OUTPUT_PATH / CLUSTER_SUMMARY)
    if summary:
        return jsonify({
            "status": "ready",
            "generated_at": summary.get('generated_at'),
            "artifacts_available": len(list_artifacts()),
            "timestamp": _timestamp()
        })
    return jsonify({
        "status": "not_ready",
        "reason": f"{CLUSTER_SUMMARY} not found",
        "timestamp": _timestamp()
    }), 503


@app.route('/metrics')
def metrics():
    """Prometheus metrics endpoint for self-monitoring"""
    _record_request('/metrics')
    uptime = time.time() - _metrics['start_time']

    lines = [
        "# HELP k8s_health_ui_requests_total Total number of HTTP requests",
        "# TYPE k8s_health_ui_requests_total counter",
        f"k8s_health_ui_requests_total {_metrics['requests_total']}",
        "",
        "# HELP k8s_health_ui_errors_total Total number of errors",
        "# TYPE k8s_health_ui_errors_total counter",
        f"k8s_health_ui_errors_total {_metrics['errors_total']}",
        "",
        "# HELP k8s_health_ui_uptime_seconds UI uptime in seconds",
        "# TYPE k8s_health_ui_uptime_seconds gauge",
        f"k8s_health_ui_uptime_seconds {uptime:.2f}",
        "",
        "# HELP k8s_health_ui_summary_available Whether cluster_summary.json exists",
        "# TYPE k8s_health_ui_summary_available gauge",
        f"k8s_health_ui_summary_available {1 if (OUTPUT_PATH / CLUSTER_SUMMARY).is_file() else 0}",
        "",
        "# HELP k8s_health_ui_requests_by_endpoint Requests per endpoint",
        "# TYPE k8s_health_ui_requests_by_endpoint counter",
    ]
    for endpoint, count in sorted(_metrics['requests_by_endpoint'].items()):
        lines.append(f'k8s_health_ui_requests_by_endpoint{{endpoint="{endpoint}"}} {count}')

    return Response('\n'.join(lines) + '\n', mimetype='text/plain')


if __name__ == '__main__':
    logger.info("Kubernetes Cluster Health Viewer")
    logger.info(f"Serving artifacts from {OUTPUT_PATH.resolve()}")
    logger.info("Index: http://127.0.0.1:8080")
    logger.info("Ready: http://127.0.0.1:8080/ready")
    logger.info("Metrics: http://127.0.0.1:8080/metrics")
    app.run(debug=False, host='127.0.0.1', port=8080)
