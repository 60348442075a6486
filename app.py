from flask import Flask, render_template, request, redirect, url_for, Response, jsonify, send_from_directory
import csv
import io
import os
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from flask_limiter import Limiter

import config
from domain_checker import process_domain_list, summarize
from models import ProbeStatus

app = Flask(__name__)
app.secret_key = config.SECRET_KEY

# Setup logging - place logs in a directory outside the web root
os.makedirs(config.LOG_DIR, exist_ok=True)

# Create a custom logger for bulk checks
search_logger = logging.getLogger('search_logger')
search_logger.setLevel(logging.INFO)

# Prevent the logger from propagating to the root logger
search_logger.propagate = False

if not search_logger.handlers:
    handler = RotatingFileHandler(os.path.join(config.LOG_DIR, 'search.log'),
                                  maxBytes=10485760, backupCount=10)  # 10MB per file, keep 10 files
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter('%(message)s'))
    search_logger.addHandler(handler)

# Create a logger for HTTP access logs
access_logger = logging.getLogger('access_logger')
access_logger.setLevel(logging.INFO)
access_logger.propagate = False

if not access_logger.handlers:
    access_handler = RotatingFileHandler(os.path.join(config.LOG_DIR, 'access.log'),
                                         maxBytes=10485760, backupCount=10)
    access_handler.setLevel(logging.INFO)
    access_handler.setFormatter(logging.Formatter('%(message)s'))
    access_logger.addHandler(access_handler)


def get_client_ip():
    """Client IP, honouring the first X-Forwarded-For hop when behind a proxy."""
    if request.headers.get('X-Forwarded-For'):
        return request.headers.get('X-Forwarded-For', '').split(',')[0].strip()
    return request.remote_addr or '-'


# Rate limiting: per client, in-memory storage only
limiter = Limiter(get_client_ip, app=app, storage_uri='memory://', headers_enabled=True)


def check_rate_limit():
    return f"{max(1, config.RATE_LIMIT_REQUESTS)} per {max(1, int(config.RATE_LIMIT_WINDOW))} seconds"


def rate_limit_disabled():
    return config.RATE_LIMIT_REQUESTS <= 0 or config.RATE_LIMIT_WINDOW <= 0


# Log all HTTP requests
@app.before_request
def log_request():
    client_ip = get_client_ip()
    request.log_info = {
        'client_ip': client_ip,
        'ip_version': "IPv6" if ':' in client_ip else "IPv4",
        'timestamp': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
        'method': request.method,
        'path': request.full_path if request.query_string else request.path,
        'user_agent': request.headers.get('User-Agent', '-'),
    }


@app.after_request
def after_request(response):
    log_info = getattr(request, 'log_info', None)
    if log_info is None:
        return response

    # Browser token is enough for a glance at who is calling
    browser = log_info['user_agent'].split(' ')[0] or '-'

    # Format: <ip> (<version>) | <datetime> | <method> <uri> | <status> | <browser>
    log_entry = (f"{log_info['client_ip']} ({log_info['ip_version']}) | {log_info['timestamp']} | "
                 f"{log_info['method']} {log_info['path']} | {response.status_code} | {browser}")
    access_logger.info(log_entry)

    return response


@app.errorhandler(405)
def method_not_allowed(error):
    if request.path.startswith('/api/'):
        return jsonify({'message': 'Method not allowed'}), 405
    return error


@app.errorhandler(429)
def too_many_requests(error):
    if request.path.startswith('/api/'):
        return jsonify({'message': 'Too many requests'}), 429
    return render_form_error("Too many checks, please wait a minute and try again.",
                             request.form.get('domains', ''), status=429)


def split_names(text):
    """Split textarea input into names, one per line (commas also accepted)."""
    names = []
    for line in text.replace(',', '\n').splitlines():
        line = line.strip()
        if line:
            names.append(line)
    return names


def run_check(names, method):
    """Run a bulk check and write one line to the search log."""
    client_ip = get_client_ip()
    timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    search_logger.info(f"{client_ip} | {timestamp} | {method} | {len(names)} names")

    return process_domain_list(names, config.EXTENSIONS, method)


@app.route('/')
def index():
    return render_template('index.html', methods=config.CHECK_METHODS, method=config.CHECK_METHOD,
                           extensions=config.EXTENSIONS, max_names=config.MAX_BASE_NAMES)


def render_form_error(message, names_text='', method=None, status=400):
    return render_template('index.html', error=message, names=names_text,
                           methods=config.CHECK_METHODS, method=method or config.CHECK_METHOD,
                           extensions=config.EXTENSIONS, max_names=config.MAX_BASE_NAMES), status


def read_form():
    """Pull names and method out of the submitted form, or return an error response."""
    names_text = request.form.get('domains', '')
    method = request.form.get('method', config.CHECK_METHOD).strip().lower()
    names = split_names(names_text)

    if method not in config.CHECK_METHODS:
        return None, None, render_form_error("Please pick a valid check method.", names_text)
    if len(names) > config.MAX_BASE_NAMES:
        return None, None, render_form_error(
            f"Please enter at most {config.MAX_BASE_NAMES} names at a time.", names_text, method)

    return names, method, None


@app.route('/check', methods=['POST'])
@limiter.limit(check_rate_limit, exempt_when=rate_limit_disabled)
def check():
    """Process the form and render the results table."""
    names, method, error = read_form()
    if error:
        return error

    # If the input is empty, redirect back to the home page
    if not names:
        return redirect(url_for('index'))

    aggregates, invalid = run_check(names, method)

    return render_template('results.html', aggregates=aggregates, invalid=invalid,
                           summary=summarize(aggregates), method=method,
                           names='\n'.join(names), extensions=config.EXTENSIONS)


@app.route('/export', methods=['POST'])
@limiter.limit(check_rate_limit, exempt_when=rate_limit_disabled)
def export_csv():
    """Export the taken combinations to a CSV file."""
    names, method, error = read_form()
    if error:
        return error
    if not names:
        return redirect(url_for('index'))

    aggregates, _ = run_check(names, method)

    # Create a CSV in memory
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(['Domain', 'Extension', 'Status'])
    for aggregate in aggregates:
        for result in aggregate.taken:
            writer.writerow([aggregate.base_domain, result.domain[len(aggregate.base_domain):], 'Taken'])

    filename = f"taken_domains_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
    return Response(
        output.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment;filename={filename}"}
    )


@app.route('/api/check-domain', methods=['POST'])
@limiter.limit(check_rate_limit, exempt_when=rate_limit_disabled)
def api_check_domain():
    """JSON endpoint: {"domains": [...], "method": "dns"} -> per-domain verdicts."""
    data = request.get_json(silent=True) or {}
    domains = data.get('domains') if isinstance(data, dict) else None

    # An empty list is a valid request with nothing to check
    if domains is None or not isinstance(domains, list):
        return jsonify({'message': 'Domains array is required'}), 400
    if not all(isinstance(d, str) for d in domains):
        return jsonify({'message': 'Domains must be strings'}), 400

    names = [d for d in domains if d.strip()]
    if len(names) > config.MAX_BASE_NAMES:
        return jsonify({'message': f'At most {config.MAX_BASE_NAMES} domains per request'}), 400

    method = str(data.get('method') or config.CHECK_METHOD).lower()
    if method not in config.CHECK_METHODS:
        return jsonify({'message': f"Unknown method, expected one of: {', '.join(config.CHECK_METHODS)}"}), 400

    aggregates, invalid = run_check(names, method)

    return jsonify({
        'results': [aggregate.to_dict() for aggregate in aggregates],
        'invalid': invalid,
        'summary': summarize(aggregates),
    })


@app.route('/robots.txt')
def robots():
    return send_from_directory(app.static_folder, 'robots.txt')


# This route will be used to check if the app is running
@app.route('/health')
def health_check():
    return {"status": "ok", "message": "Bulk domain checker is running"}


@app.template_filter('status_label')
def status_label(status):
    labels = {
        ProbeStatus.TAKEN: 'Taken',
        ProbeStatus.AVAILABLE: 'Available',
        ProbeStatus.ERROR: 'Error',
        ProbeStatus.UNKNOWN: 'Unknown',
    }
    return labels.get(status, str(status))


if __name__ == '__main__':
    # Use the platform's PORT environment variable if available, otherwise default to 5000
    print(f"Starting server on port {config.PORT}")
    app.run(host='0.0.0.0', port=config.PORT, debug=False)
