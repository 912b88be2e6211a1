# backend-services/marketcap-service/app.py
# Serves ticker autocomplete and the market-cap substitution comparison
import os
import logging
from logging.handlers import RotatingFileHandler
import threading
from concurrent.futures import ThreadPoolExecutor
from flask import Flask, current_app, jsonify, request
from flask_cors import CORS
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

# --- 1. Initialize Flask App and Basic Config ---
app = Flask(__name__)
PORT = int(os.getenv("PORT", 3001))
FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "*")
TICKER_CACHE_LIMIT = int(os.getenv("TICKER_CACHE_LIMIT", "1000"))
TICKER_CACHE_REFRESH_SECONDS = int(os.getenv("TICKER_CACHE_REFRESH_SECONDS", "0"))
TICKER_CACHE_WARM_ON_START = os.getenv("TICKER_CACHE_WARM_ON_START", "true").lower() in ['true', '1', 't']

# The browser client calls the API from its own origin
CORS(app, resources={r"/api/*": {"origins": FRONTEND_ORIGIN}})

# --- 2. Define Logging Setup Function ---
def setup_logging(app):
    """Configures console and rotating-file logging for the Flask app and the service modules."""
    log_level_str = os.environ.get("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Handlers (console + rotating file), built once
    handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    log_directory = os.environ.get("LOG_DIR", "/app/logs")
    file_logging_error = None
    try:
        os.makedirs(log_directory, exist_ok=True)
        log_file = os.path.join(log_directory, "marketcap_service.log")
        file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)
    except OSError as e:
        # Local runs without /app: console only
        file_logging_error = e

    app.logger.setLevel(log_level)
    app.logger.propagate = False

    # Clear existing handlers to avoid duplication
    for h in list(app.logger.handlers):
        app.logger.removeHandler(h)

    for h in handlers:
        app.logger.addHandler(h)

    # prevent werkzeug from duplicating to root/stdout
    werk = logging.getLogger("werkzeug")
    werk.propagate = False
    for h in list(werk.handlers):
        if isinstance(h, logging.StreamHandler):
            werk.removeHandler(h)

    # Module loggers that should emit through the same handlers
    module_names = [
        "providers.brapi_provider",
        "services.ticker_cache",
        "services.search_service",
        "services.comparison_service",
        "helper_functions",
    ]
    for name in module_names:
        module_loggers = logging.getLogger(name)
        module_loggers.setLevel(log_level)
        module_loggers.propagate = False
        for h in list(module_loggers.handlers):
            module_loggers.removeHandler(h)
        for h in handlers:
            module_loggers.addHandler(h)

    app.logger.info("Marketcap service logging initialized.")
    if file_logging_error:
        app.logger.warning(f"File logging disabled, cannot write to {log_directory}: {file_logging_error}")
# --- End of Logging Setup ---
setup_logging(app)

# --- 3. Import Project-Specific Modules ---
from providers.brapi_provider import BrapiClient
from services.ticker_cache import TickerCache
from services.search_service import build_search_service
from services.comparison_service import ComparisonService
from helper_functions import format_price, percentage_change
from errors import (
    IncompleteDataError,
    InternalError,
    InvalidInputError,
    MarketCapServiceError,
    NotFoundError,
    UpstreamUnavailableError,
)
from shared.contracts import ApiError

SERVICES_KEY = "marketcap_services"

# --- Service wiring ---
def create_services(provider=None, executor=None):
    """
    Builds an isolated set of collaborators sharing one provider client and one ticker cache.
    Tests call this with a stub provider.
    """
    provider = provider or BrapiClient()
    ticker_cache = TickerCache(provider, limit=TICKER_CACHE_LIMIT)
    return {
        "provider": provider,
        "ticker_cache": ticker_cache,
        "search": build_search_service(ticker_cache, provider),
        "comparison": ComparisonService(provider, executor=executor),
    }

def install_services(flask_app, services):
    flask_app.extensions[SERVICES_KEY] = services
    return services

def _services():
    return current_app.extensions[SERVICES_KEY]

# Two quote lookups per comparison, shared across requests
executor = ThreadPoolExecutor(max_workers=int(os.getenv("QUOTE_FETCH_WORKERS", "8")))
install_services(app, create_services(executor=executor))

def _error_response(error: MarketCapServiceError, status_code: int = None):
    body = ApiError(error=error.message).model_dump()
    return jsonify(body), status_code or error.status_code

# --- Ticker cache warm-up ---
def _warm_ticker_cache_bg(ticker_cache):
    # Fire-and-forget; populate() never raises
    ticker_cache.populate()

def start_background_jobs(flask_app):
    ticker_cache = flask_app.extensions[SERVICES_KEY]["ticker_cache"]
    if TICKER_CACHE_WARM_ON_START:
        threading.Thread(target=_warm_ticker_cache_bg, args=(ticker_cache,), daemon=True).start()

    if TICKER_CACHE_REFRESH_SECONDS > 0:
        scheduler = BackgroundScheduler(daemon=True)
        scheduler.add_job(
            ticker_cache.populate,
            IntervalTrigger(seconds=TICKER_CACHE_REFRESH_SECONDS),
            id="ticker_cache_refresh",
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        flask_app.logger.info(f"Ticker cache refresh scheduled every {TICKER_CACHE_REFRESH_SECONDS}s.")
        return scheduler
    flask_app.logger.info("Ticker cache periodic refresh disabled; the list is loaded once at startup.")
    return None

scheduler = start_background_jobs(app)

# --- API Endpoints ---
@app.route('/api/search', methods=['GET'])
def search_endpoint():
    """Autocomplete suggestions for the company search box."""
    query = request.args.get('q', '')
    try:
        suggestions = _services()["search"].search(query)
        return jsonify([s.model_dump() for s in suggestions]), 200
    except UpstreamUnavailableError as e:
        app.logger.error(f"Live search failed for {query!r}: {e.message}")
        return jsonify(ApiError(error="Failed to fetch search suggestions.").model_dump()), 500
    except Exception as e:
        app.logger.error(f"An unexpected error occurred in /api/search: {e}", exc_info=True)
        return _error_response(InternalError("Internal server error."))

@app.route('/api/compare', methods=['GET'])
def compare_endpoint():
    """
    Computes Company A's hypothetical share price with Company B's market cap.
    Query params: tickerA, tickerB.
    """
    ticker_a = request.args.get('tickerA')
    ticker_b = request.args.get('tickerB')
    try:
        result = _services()["comparison"].compare(ticker_a, ticker_b)
    except InvalidInputError as e:
        return _error_response(e)
    except (NotFoundError, IncompleteDataError) as e:
        app.logger.info(f"Comparison {ticker_a}/{ticker_b} rejected: {e.message}")
        return _error_response(e)
    except UpstreamUnavailableError as e:
        # Published contract: an unresolvable quote is a 404, whatever the cause upstream
        app.logger.error(f"Quote provider unavailable for {ticker_a}/{ticker_b}: {e.message}")
        return _error_response(e, 404)
    except Exception as e:
        app.logger.error(f"An unexpected error occurred in /api/compare: {e}", exc_info=True)
        return _error_response(InternalError("Internal server error."))

    app.logger.info(
        f"Compared {result.tickerA} with {result.tickerB}: hypothetical {format_price(result.hypotheticalPriceA)} "
        f"({percentage_change(result.currentPriceA, result.hypotheticalPriceA):+.2f}%)"
    )
    return jsonify(result.model_dump()), 200

@app.route('/api/cache/status', methods=['GET'])
def cache_status_endpoint():
    """Reports whether search is served from the local ticker list."""
    status = _services()["ticker_cache"].status()
    return jsonify(status.model_dump(mode="json")), 200

@app.route('/health', methods=['GET'])
def health_check():
    """Liveness check. A cold ticker cache does not make the service unhealthy."""
    return jsonify({
        "status": "healthy",
        "ticker_cache_ready": _services()["ticker_cache"].is_ready(),
    }), 200

if __name__ == '__main__':
    is_debug = os.environ.get('FLASK_DEBUG', '0').lower() in ['true', '1', 't']
    app.logger.info(f"Marketcap service listening on port {PORT}")
    app.run(host='0.0.0.0', port=PORT, debug=is_debug)
