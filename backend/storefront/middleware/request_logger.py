"""Per-request access log: method, path, final status and duration."""
import time

from flask import Flask, current_app, g, request


def _start_timer():
    g.request_started = time.perf_counter()


def _log_response(response):
    started = g.pop('request_started', None)
    duration_ms = (time.perf_counter() - started) * 1000 if started is not None else 0.0
    status = response.status_code
    msg = '%s %s - Status: %d - Duration: %.1fms'
    args = (request.method, request.full_path.rstrip('?'), status, duration_ms)
    if status >= 500:
        current_app.logger.error(msg, *args)
    elif status >= 400:
        current_app.logger.warning(msg, *args)
    else:
        current_app.logger.info(msg, *args)
    return response


def init_request_logger(app: Flask):
    # Register before other after_request hooks: Flask runs them in reverse,
    # so this one sees the status actually sent (304 included).
    app.before_request(_start_timer)
    app.after_request(_log_response)
