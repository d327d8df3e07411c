#!/usr/bin/env python3
"""
HTTP front end for the finality benchmark.

POST /runTest {"rpcEndpoint": "<url>"} runs one benchmark and returns the
averaged milestones in milliseconds.
"""
import os
import typing as t

from flask import Flask, jsonify, request, send_from_directory

from config import BenchmarkConfig, load_config
from core.clock import SystemClock
from core.errors import (
    BenchmarkError,
    ConnectivityError,
    DeadlineExceededError,
    InsufficientFundsError,
    InvalidConfigurationError,
    RunCancelledError,
    SubmissionError,
)
from core.network import ConnectionManager, validate_endpoint
from scenarios.exp_finality import build_aggregator

PUBLIC_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "public")

ERROR_STATUS: t.Dict[t.Type[BenchmarkError], int] = {
    InvalidConfigurationError: 400,
    InsufficientFundsError: 402,
    SubmissionError: 422,
    RunCancelledError: 499,
    ConnectivityError: 502,
    DeadlineExceededError: 504,
}


def error_response(e: BenchmarkError):
    status = 500
    for error_type, code in ERROR_STATUS.items():
        if isinstance(e, error_type):
            status = code
            break
    return jsonify({"error": e.kind, "message": str(e)}), status


def create_app(config: BenchmarkConfig, connections: t.Optional[ConnectionManager] = None) -> Flask:
    app = Flask(__name__, static_folder=PUBLIC_DIR, static_url_path="")
    app.config["BENCHMARK"] = config
    connections = connections or ConnectionManager(
        retries=config.http_retries,
        backoff_factor=config.http_backoff_factor,
        timeout=config.http_timeout,
    )

    @app.errorhandler(BenchmarkError)
    def handle_benchmark_error(e: BenchmarkError):
        print(f"[Server] Run failed ({e.kind}): {e}")
        return error_response(e)

    @app.route('/')
    def index():
        return send_from_directory(PUBLIC_DIR, "index.html")

    @app.route('/health')
    def health():
        return jsonify({
            'status': 'ok',
            'network': config.network,
            'sender': config.sender,
        })

    @app.route('/runTest', methods=['POST'])
    def run_test():
        body = request.get_json(silent=True) or {}
        endpoint = validate_endpoint(body.get('rpcEndpoint'))
        print(f"[Server] Benchmark requested for {endpoint}")

        aggregator = build_aggregator(config, endpoint, connections=connections, clock=SystemClock())
        result = aggregator.run(config.transfer_spec(), config.trial_count)
        return jsonify(result.to_dict())

    return app


if __name__ == '__main__':
    benchmark_config = load_config()
    print(f"[Server] Running on port {benchmark_config.server_port}")
    create_app(benchmark_config).run(host='0.0.0.0', port=benchmark_config.server_port, threaded=True)
