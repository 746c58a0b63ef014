# app.py

import atexit
import logging

from flask import Flask, current_app, jsonify, request

from hostscan.config import DEFAULT_PROBE_METHOD, DEFAULT_TIMEOUT_MS, LOG_FORMAT, PROBE_METHODS
from hostscan.engine import ScanEngine
from hostscan.jobs import JobNotFound

logger = logging.getLogger(__name__)

# --- Configuration ---
app = Flask(__name__)
app.config['SCAN_ENGINE'] = ScanEngine()
atexit.register(lambda: app.config['SCAN_ENGINE'].shutdown())


def get_engine() -> ScanEngine:
    return current_app.config['SCAN_ENGINE']


def _scan_params() -> dict:
    """Reads scan parameters from the query string, falling back to a JSON body."""
    params = request.args.to_dict()
    body = request.get_json(silent=True)
    if isinstance(body, dict):
        for key, value in body.items():
            params.setdefault(key, value)
    return params


def _error(message: str, status: int):
    return jsonify({'error': message}), status


# --- API Routes ---

@app.route('/api/scan/start', methods=['POST'])
def start_scan():
    """Starts a background scan and returns its job id immediately."""
    params = _scan_params()

    cidr = params.get('cidr')
    if not isinstance(cidr, str) or not cidr.strip():
        return _error('cidr required', 400)

    try:
        timeout_ms = int(params.get('timeoutMs', DEFAULT_TIMEOUT_MS))
    except (TypeError, ValueError):
        return _error('timeoutMs must be an integer', 400)

    method = params.get('method', DEFAULT_PROBE_METHOD)
    if method not in PROBE_METHODS:
        return _error(f"method must be one of {', '.join(PROBE_METHODS)}", 400)

    job_id = get_engine().start(cidr.strip(), timeout_ms, method)
    return jsonify({'jobId': job_id})


@app.route('/api/scan/progress/<job_id>')
def scan_progress(job_id):
    """Percent done, finished flag and the records collected so far."""
    try:
        progress = get_engine().progress(job_id)
    except JobNotFound:
        return _error('job not found', 404)
    return jsonify(progress.to_dict())


# --- Run App ---
if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    # threaded=True so progress polls are served while other requests are in flight
    app.run(host='0.0.0.0', port=5000, threaded=True)
